"""SignupScreen: sign-up form driven entirely by reactive bindings.

Every piece of widget state below is derived from signals: the fields'
text, the create button's presses and the submit command's state. The
screen itself only feeds UI events into signals.
"""

from __future__ import annotations

import logging

from textual.app import ComposeResult
from textual.containers import Center, Middle, Vertical
from textual.screen import Screen
from textual.widgets import Button, Input, Static

from ..services.config import SignupConfig
from ..services.network import NetworkSimulator
from ..services.reactive import Command, Signal, Subject, ValueSignal, bind, lifetime_of
from ..services.validation import SignupValidator, form_issue_signal, form_valid_signal
from ..styles.base import (
    DISABLED_TEXT_COLOR,
    ENABLED_TEXT_COLOR,
    FAILURE_COLOR,
    FIELD_TEXT_COLOR,
    SUCCESS_COLOR,
)
from ..widgets.submit_button import SubmitButton

logger = logging.getLogger(__name__)

# (input id, screen attribute, label, placeholder)
FIELDS = [
    ("first-name", "first_name_field", "first name", "Ada"),
    ("last-name", "last_name_field", "last name", "Lovelace"),
    ("email", "email_field", "email", "ada@example.com"),
    ("re-email", "re_email_field", "repeat email", "ada@example.com"),
]


def submission_count(presses: Signal[object], executing: Signal[bool]) -> Signal[int]:
    """Count finished submissions.

    A submission ends when the button was pressed and executing stops.
    """
    submission_ended = (
        presses.map(lambda _: executing)
        .switch_to_latest()
        .filter(lambda processing: not processing)
    )
    return submission_ended.scan_with_start(0, lambda running, _: running + 1)


def status_visible(presses: Signal[object], executing: Signal[bool]) -> Signal[bool]:
    """Hidden until a submission has completed."""
    return submission_count(presses, executing).start_with(0).map(lambda count: count >= 1)


def status_text(results: Signal[bool], config: SignupConfig) -> Signal[str]:
    return results.flip_flop(config.success_message, config.failure_message)


def status_color(results: Signal[bool]) -> Signal[str]:
    return results.flip_flop(SUCCESS_COLOR, FAILURE_COLOR)


class SignupScreen(Screen):
    """The sign-up form."""

    def __init__(
        self,
        config: SignupConfig | None = None,
        network: NetworkSimulator | None = None,
        validator: SignupValidator | None = None,
    ) -> None:
        super().__init__()
        self._config = config or SignupConfig()
        self._network = network or NetworkSimulator(self._config)
        self._validator = validator or SignupValidator()
        self._texts: dict[str, ValueSignal[str]] = {
            field_id: ValueSignal.of("") for field_id, *_ in FIELDS
        }
        self._presses: Subject[Button] = Subject()
        self.submit_command: Command | None = None

    def compose(self) -> ComposeResult:
        with Middle():
            with Center():
                with Vertical(id="form"):
                    yield Static("create an account", classes="form-title")
                    for field_id, _, label, placeholder in FIELDS:
                        yield Static(label, classes="field-label")
                        yield Input(placeholder=placeholder, id=field_id)
                    yield Static("", id="hint")
                    yield SubmitButton("create", id="create")
                    yield Static("", id="status")

    def on_mount(self) -> None:
        """Look up widgets and wire the bindings."""
        for field_id, attribute, *_ in FIELDS:
            setattr(self, attribute, self.query_one(f"#{field_id}", Input))
        self.create_button = self.query_one("#create", SubmitButton)
        self.status_label = self.query_one("#status", Static)
        self.hint_label = self.query_one("#hint", Static)
        self._wire()

    def on_unmount(self) -> None:
        """End every binding owned by this screen."""
        lifetime_of(self).end()
        if self.submit_command is not None:
            self.submit_command.dispose()

    def on_input_changed(self, event: Input.Changed) -> None:
        text = self._texts.get(event.input.id or "")
        if text is not None:
            text.set(event.value)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "create":
            self._presses.send_next(event.button)

    def _wire(self) -> None:
        texts = [self._texts[field_id] for field_id, *_ in FIELDS]

        # Are all entries valid? Derived entirely from the field values.
        form_valid = form_valid_signal(*texts, validator=self._validator)
        bind(self).hint_label.update(form_issue_signal(*texts, validator=self._validator))

        # The command encapsulates the validity and in-flight checks.
        command = Command(form_valid)
        self.submit_command = command
        network_results = (
            command.add_action(self._network.submit)
            .switch_to_latest()
            .boolean()
            .deliver_on_main()
        )
        lifetime_of(self).add(self._presses.subscribe_next(command.execute))

        # Enabled while the form is valid and nothing is in flight.
        button_enabled = (
            bind(command, self).can_execute.start_with(command.can_execute)
            .boolean()
            .deliver_on_main()
        )
        bind(self).create_button.disabled = button_enabled.negate()

        # Title color follows enabledness; it is set through a method, so lift it.
        button_text_color = button_enabled.flip_flop(ENABLED_TEXT_COLOR, DISABLED_TEXT_COLOR)
        bind(self).create_button.set_title_color(button_text_color, for_state="normal")

        # Fields are greyed out and locked while submitting.
        executing = bind(command, self).executing.boolean().deliver_on_main()
        for _, attribute, *_ in FIELDS:
            bind(self).key(attribute).styles.color = executing.flip_flop(
                DISABLED_TEXT_COLOR, FIELD_TEXT_COLOR
            )
            bind(self).key(attribute).disabled = executing

        bind(self).status_label.display = status_visible(self._presses, executing)
        bind(self).status_label.update(status_text(network_results, self._config))
        bind(self).status_label.styles.color = status_color(network_results)

        bind(self.app, self).sub_title = executing.flip_flop("submitting…", "")
        logger.debug("Sign-up bindings wired")

    @property
    def presses(self) -> Signal[Button]:
        """Create-button presses."""
        return self._presses
