"""Tests for key-path binding agents."""

import logging

import pytest

from signup_portal.models.exceptions import CapabilityError, KeyPathError
from signup_portal.services.reactive import (
    Command,
    KeyPathAgent,
    Observable,
    Signal,
    Subject,
    ValueSignal,
    bind,
    lifetime_of,
)
from signup_portal.services.reactive.keypath import SIGNAL_OPERATORS, operation_name


class Label:
    """Minimal widget with method-only setters."""

    def __init__(self):
        self.calls = []

    def update(self, text):
        self.calls.append(("update", text))

    def set_title_color(self, color, for_state="normal"):
        self.calls.append(("set_title_color", color, for_state))

    def move(self, x, y):
        self.calls.append(("move", x, y))


class Form(Observable):
    def __init__(self):
        self.valid = False


class TestPropertyDrive:
    """Tests for assignment bindings."""

    def test_nested_assignment_follows_signal(self, box):
        """agent.a.b.c = signal writes every value to a.b.c."""
        root = box(a=box(b=box(c=None)))
        values = Subject()

        bind(root).a.b.c = values
        values.send_next("v1")
        assert root.a.b.c == "v1"
        values.send_next("v2")
        assert root.a.b.c == "v2"

    def test_current_value_applied_immediately(self, box):
        """A signal that already holds a value sets it at bind time."""
        root = box(a=box(b=box(c=None)))
        bind(root).a.b.c = ValueSignal.of(42)
        assert root.a.b.c == 42

    def test_start_with_applies_immediately(self, box):
        """start_with upstream counts as a current value."""
        root = box(enabled=None)
        bind(root).enabled = Subject().start_with(True)
        assert root.enabled is True

    def test_explicit_builder(self, box):
        """key()/bind_from() does the same without interception."""
        root = box(a=box(b=0))
        values = ValueSignal.of(1)

        subscription = bind(root).key("a").bind_from("b", values)
        values.set(2)

        assert root.a.b == 2
        assert not subscription.disposed

    def test_property_alias(self, box):
        """property() is an alias of key()."""
        root = box(a=box(b=0))
        bind(root).property("a").property("b").bind_from(None, Signal.return_(9))
        assert root.a.b == 9

    def test_binding_ends_with_observer_lifetime(self, box):
        """Ending the observer's lifetime stops the binding."""
        root, owner = box(value=0), box()
        values = Subject()

        bind(root, owner).value = values
        values.send_next(1)
        lifetime_of(owner).end()
        values.send_next(2)

        assert root.value == 1

    def test_non_signal_assignment_rejected(self, box):
        """Assigning a plain value is a mistake, not a binding."""
        with pytest.raises(KeyPathError):
            bind(box(a=1)).a = 5

    def test_mapping_target(self, box):
        """The last segment may address a mapping key."""
        root = box(settings={})
        bind(root).settings.theme = Signal.return_("dark")
        assert root.settings == {"theme": "dark"}

    def test_binding_error_is_logged(self, box, caplog):
        """A failing signal is logged by the binding."""
        root = box(value=0)
        with caplog.at_level(logging.ERROR):
            bind(root).value = Signal.error(RuntimeError("broken source"))
        assert "broken source" in caplog.text


class TestObservation:
    """Tests for observation through operator names."""

    def test_operator_observes_key_path(self, box):
        """Operator names conclude the path and observe it."""
        root = box(a=box(b=3))
        seen = []
        bind(root).a.b.map(lambda v: v * 2).subscribe_next(seen.append)
        assert seen == [6]

    def test_observable_model_changes(self):
        """Observable models push every change."""
        form = Form()
        seen = []
        bind(form).valid.start_with("first").subscribe_next(seen.append)

        form.valid = True

        assert seen == ["first", False, True]

    def test_command_state(self):
        """Command attributes can be observed by key path."""
        pending = Subject()
        command = Command()
        command.add_action(lambda sender: pending)
        seen = []
        bind(command).executing.subscribe_next(seen.append)

        command.execute()
        pending.send_completed()

        assert seen == [False, True, False]

    def test_explicit_observe(self, box):
        """observe() returns the key-path signal."""
        seen = []
        bind(box(name="Ada")).key("name").observe().subscribe_next(seen.append)
        assert seen == ["Ada"]

    def test_operator_names(self):
        """Instance operators are recognized, constructors are not."""
        assert {"map", "filter", "start_with", "subscribe_next", "switch_to_latest"} <= SIGNAL_OPERATORS
        assert "combine_latest" not in SIGNAL_OPERATORS
        assert "interval" not in SIGNAL_OPERATORS


class TestLiftedCall:
    """Tests for lifted method calls."""

    def test_method_reinvoked_on_every_value(self, box):
        """The target method runs for each value of its Signal argument."""
        label = Label()
        text = Subject()

        root = box(label=label)
        bind(root).label.update(text)
        text.send_next("hello")
        text.send_next("bye")

        assert label.calls == [("update", "hello"), ("update", "bye")]

    def test_keyword_arguments_pass_through(self, box):
        """Plain arguments are passed unchanged alongside signal values."""
        label = Label()
        bind(box(label=label)).label.set_title_color(ValueSignal.of("#fff"), for_state="normal")
        assert label.calls == [("set_title_color", "#fff", "normal")]

    def test_signal_keyword_argument(self, box):
        """Signals may also be passed by keyword."""
        label = Label()
        state = Subject()
        root = box(label=label)
        bind(root).label.set_title_color("#000", for_state=state)
        state.send_next("hover")
        assert label.calls == [("set_title_color", "#000", "hover")]

    def test_waits_for_every_signal_argument(self, box):
        """The call uses the latest value of each Signal argument."""
        label = Label()
        xs, ys = Subject(), Subject()

        root = box(label=label)
        bind(root).label.move(xs, ys)
        xs.send_next(1)
        assert label.calls == []
        ys.send_next(2)
        xs.send_next(3)

        assert label.calls == [("move", 1, 2), ("move", 3, 2)]

    def test_explicit_lift_call(self, box):
        """lift_call() returns the running signal of results."""
        label = Label()
        results = bind(box(label=label)).key("label").lift_call("update", (Signal.return_("x"),))
        seen = []
        results.subscribe_next(seen.append)
        assert label.calls == [("update", "x")]
        assert seen == [None]

    def test_lift_call_keeps_only_latest_result(self, box):
        """Late subscribers see the most recent result, not every past one."""

        class Doubler:
            def double(self, n):
                return n * 2

        root = box(doubler=Doubler())
        source = Subject()
        results = bind(root).key("doubler").lift_call("double", (source,))
        for n in range(10_000):
            source.send_next(n)

        seen = []
        results.subscribe_next(seen.append)
        assert seen == [19_998]

    def test_capability_error(self, box):
        """A target without the operation fails before anything runs."""
        root = box(x=Label())
        with pytest.raises(CapabilityError) as excinfo:
            bind(root).key("x").foo(Subject(), bar=1)

        error = excinfo.value
        assert error.key_path == "x"
        assert error.operation == "foo:bar:"
        assert "x" in str(error)
        assert "foo:bar:" in str(error)

    def test_capability_error_wrong_keyword(self, box):
        """An existing method with the wrong keywords is also refused."""
        label = Label()
        with pytest.raises(CapabilityError) as excinfo:
            bind(box(label=label)).label.update(Subject(), colour="red")
        assert excinfo.value.operation == "update:colour:"
        assert label.calls == []

    def test_lift_stops_with_lifetime(self, box):
        """Ending the observer's lifetime stops the lifted call."""
        label, owner = Label(), box()
        text = Subject()
        root = box(label=label)
        bind(root, owner).label.update(text)

        lifetime_of(owner).end()
        text.send_next("late")

        assert label.calls == []

    def test_lift_without_signal_argument(self, box):
        """lift_call needs a Signal argument."""
        with pytest.raises(KeyPathError):
            bind(box(label=Label())).key("label").lift_call("update", ("plain",))

    def test_operation_name(self):
        """Operation names join the keywords with colons."""
        assert operation_name("foo", ["bar"]) == "foo:bar:"
        assert operation_name("update", []) == "update:"


class TestResolution:
    """Tests for resolution order and agent misuse."""

    def test_plain_access_extends_path(self, box):
        """Reads without signals keep building the path."""
        agent = bind(box())
        assert agent.a.b is agent
        assert agent.key_path == "a.b"
        assert str(agent) == "a.b"

    def test_call_without_signal_extends_path(self, box):
        """A call with only plain arguments is a path segment."""
        agent = bind(box())
        assert agent.resolve("a") is agent
        assert agent.resolve("b", 1) is agent
        assert agent.key_path == "a.b"

    def test_observation_wins_over_lift(self, box):
        """Operator names observe even with Signal arguments."""
        root = box(a=1)
        seen = []
        bind(root).a.start_with(0).subscribe_next(seen.append)
        assert seen == [0, 1]

    def test_assignment_wins_over_lift(self, box):
        """A trailing marker with one Signal drives a property."""
        root = box(a=box(b=0))
        agent = bind(root).a
        agent.resolve("b=", Signal.return_(5))
        assert root.a.b == 5

    def test_spent_agent_refuses_reuse(self, box):
        """An agent resolves exactly one binding."""
        root = box(a=0)
        agent = bind(root).a
        agent.observe()
        assert agent.spent
        with pytest.raises(KeyPathError):
            agent.b

    def test_empty_path(self, box):
        """Nothing can be concluded on an empty path."""
        with pytest.raises(KeyPathError):
            bind(box()).observe()
        with pytest.raises(KeyPathError):
            bind(box())()

    def test_invalid_segment(self, box):
        """Dotted or empty segment names are rejected."""
        with pytest.raises(KeyPathError):
            bind(box()).key("a.b")
        with pytest.raises(KeyPathError):
            bind(box()).key("")

    def test_private_names_are_not_segments(self, box):
        """Underscore names behave as ordinary missing attributes."""
        with pytest.raises(AttributeError):
            bind(box())._hidden

    def test_repr(self, box):
        """repr shows the root and the path."""
        agent = bind(box()).a
        assert isinstance(agent, KeyPathAgent)
        assert "key_path='a'" in repr(agent)
