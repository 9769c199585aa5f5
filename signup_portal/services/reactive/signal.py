"""
Reactive primitives: Signal, Subject, ValueSignal, ReplaySignal.

Signal[T] is a push-based stream of values - equivalent to:
- ReactiveCocoa: RACSignal
- RxPY: Observable
- Textual: a stream of Message posts

Signals are cold: every subscription runs the producer again, and every
combinator returns a new Signal. Hot sources are:
- Subject: fed by hand (UI events)
- ValueSignal: holds a current value, replays it to new subscribers
- ReplaySignal: shares one upstream run with any number of subscribers

Events follow the grammar ``next* (error | completed)?``. Once a terminal
event is delivered the subscription disposes itself and nothing else
reaches the observer.

Example:
    first = Subject()
    last = Subject()
    full = Signal.combine_latest([first, last], lambda f, l: f"{f} {l}")
    full.subscribe_next(print)
    first.send_next("Ada")
    last.send_next("Lovelace")  # prints "Ada Lovelace"
"""

from __future__ import annotations

import inspect
import logging
import threading
from collections import deque
from numbers import Number
from typing import Any, Callable, Generic, Iterable, TypeVar

from ...models.exceptions import ArityMismatchError, UpstreamFailure
from .scheduler import Scheduler, TimerScheduler, main_scheduler
from .subscription import CompositeSubscription, SerialSubscription, Subscription

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")
S = TypeVar("S")

_MISSING: Any = object()

Producer = Callable[["Observer[T]"], "Subscription | Callable[[], None] | None"]

_default_timer_scheduler = TimerScheduler()


def _upstream_failure(exc: Exception) -> UpstreamFailure:
    """Wrap an exception raised by a user function."""
    if isinstance(exc, UpstreamFailure):
        return exc
    failure = UpstreamFailure(f"{type(exc).__name__}: {exc}")
    failure.__cause__ = exc
    return failure


def _log_error(error: Exception) -> None:
    logger.error(f"Unhandled signal error: {error}")


def _as_subscription(result: Subscription | Callable[[], None] | None) -> Subscription:
    if isinstance(result, Subscription):
        return result
    return Subscription(result)


def _takes_argument(fn: Callable[..., Any]) -> bool:
    """Check whether ``fn`` can be called with one positional argument."""
    try:
        params = inspect.signature(fn).parameters.values()
    except (TypeError, ValueError):
        return True
    for param in params:
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD, param.VAR_POSITIONAL):
            return True
    return False


def check_arity(fn: Callable[..., Any], count: int) -> None:
    """Verify ``fn`` declares exactly ``count`` positional parameters.

    A function with ``*args`` accepts any count at or above its required
    positionals. Callables without an inspectable signature are accepted.

    Raises:
        ArityMismatchError: If the counts differ
    """
    try:
        params = list(inspect.signature(fn).parameters.values())
    except (TypeError, ValueError):
        return
    positional = [
        p for p in params if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    ]
    if any(p.kind == p.VAR_POSITIONAL for p in params):
        required = sum(1 for p in positional if p.default is p.empty)
        if count < required:
            raise ArityMismatchError(count, required)
        return
    if len(positional) != count:
        raise ArityMismatchError(count, len(positional))


def booleanize(value: Any) -> bool:
    """Normalize a truth value coming from an observation bridge.

    Numeric flags (0/1) become real booleans; ``None`` is false.

    Raises:
        TypeError: For values with no agreed truth mapping
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, Number):
        return value != 0
    raise TypeError(f"Cannot interpret {value!r} as a boolean")


class Observer(Generic[T]):
    """Receives the events of one subscription.

    Stops forwarding after a terminal event and disposes the
    subscription it belongs to.
    """

    def __init__(
        self,
        on_next: Callable[[T], None] | None,
        on_error: Callable[[Exception], None] | None,
        on_completed: Callable[[], None] | None,
        subscription: CompositeSubscription,
    ) -> None:
        self._on_next = on_next
        self._on_error = on_error or _log_error
        self._on_completed = on_completed
        self._subscription = subscription
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped or self._subscription.disposed

    @property
    def subscription(self) -> CompositeSubscription:
        """Upstream subscriptions added here stop as soon as this observer does."""
        return self._subscription

    def send_next(self, value: T) -> None:
        if self.stopped:
            return
        if self._on_next is not None:
            self._on_next(value)

    def send_error(self, error: Exception) -> None:
        if self.stopped:
            return
        self._stopped = True
        try:
            self._on_error(error)
        finally:
            self._subscription.dispose()

    def send_completed(self) -> None:
        if self.stopped:
            return
        self._stopped = True
        try:
            if self._on_completed is not None:
                self._on_completed()
        finally:
            self._subscription.dispose()


class Signal(Generic[T]):
    """A push-based stream of values with composable operators.

    Every operator returns a new Signal; the receiver is never changed.
    """

    def __init__(self, producer: Producer | None = None) -> None:
        self._producer = producer

    # -- construction -------------------------------------------------

    @classmethod
    def create(cls, producer: Producer) -> Signal[Any]:
        """Create a cold signal from a producer function.

        The producer receives an Observer and may return a Subscription
        or a plain teardown callable.
        """
        return Signal(producer)

    @classmethod
    def return_(cls, value: U) -> Signal[U]:
        """Signal that sends ``value`` and completes."""

        def producer(observer: Observer[U]) -> None:
            observer.send_next(value)
            observer.send_completed()

        return Signal(producer)

    @classmethod
    def empty(cls) -> Signal[Any]:
        """Signal that completes immediately."""
        return Signal(lambda observer: observer.send_completed())

    @classmethod
    def never(cls) -> Signal[Any]:
        """Signal that sends nothing and never terminates."""
        return Signal(lambda observer: None)

    @classmethod
    def error(cls, error: Exception) -> Signal[Any]:
        """Signal that fails immediately with ``error``."""
        return Signal(lambda observer: observer.send_error(error))

    @classmethod
    def from_iterable(cls, values: Iterable[U]) -> Signal[U]:
        """Signal that sends each item of ``values`` then completes."""

        def producer(observer: Observer[U]) -> None:
            for value in values:
                if observer.stopped:
                    return
                observer.send_next(value)
            observer.send_completed()

        return Signal(producer)

    @classmethod
    def interval(cls, seconds: float, scheduler: Scheduler | None = None) -> Signal[Any]:
        """Send the scheduler's current time every ``seconds``, forever."""
        scheduler = scheduler or _default_timer_scheduler

        def producer(observer: Observer[Any]) -> Subscription:
            return scheduler.schedule_recurring(
                seconds, lambda: observer.send_next(scheduler.now())
            )

        return Signal(producer)

    @classmethod
    def combine_latest(
        cls,
        signals: Iterable[Signal[Any]],
        reduce: Callable[..., U] | None = None,
    ) -> Signal[Any]:
        """Combine the latest values of several signals.

        Sends once every input has sent at least one value, then again on
        every later value from any input. With ``reduce`` the latest values
        are passed as positional arguments; without it a tuple is sent.

        Raises:
            ArityMismatchError: If ``reduce`` does not take one parameter per
                signal. Checked here, before anything subscribes.
        """
        sources = list(signals)
        if reduce is not None:
            check_arity(reduce, len(sources))
        if not sources:
            return Signal.empty()

        def producer(observer: Observer[Any]) -> None:
            # Held while reducing and sending, so deliveries keep the order
            # of the updates that caused them. Reentrant for synchronous
            # feedback from downstream.
            lock = threading.RLock()
            values = [_MISSING] * len(sources)
            completed = [False] * len(sources)

            def handlers(index: int) -> tuple[Callable[[Any], None], Callable[[], None]]:
                def on_next(value: Any) -> None:
                    with lock:
                        values[index] = value
                        if any(v is _MISSING for v in values):
                            return
                        latest = tuple(values)
                        if reduce is None:
                            observer.send_next(latest)
                            return
                        try:
                            result = reduce(*latest)
                        except Exception as e:
                            observer.send_error(_upstream_failure(e))
                            return
                        observer.send_next(result)

                def on_completed() -> None:
                    with lock:
                        completed[index] = True
                        done = all(completed)
                    if done:
                        observer.send_completed()

                return on_next, on_completed

            for index, source in enumerate(sources):
                if observer.stopped:
                    return
                on_next, on_completed = handlers(index)
                source._subscribe_into(observer.subscription, on_next, observer.send_error, on_completed)

        return Signal(producer)

    @classmethod
    def reduce_latest(cls, *signals: Signal[Any], reduce: Callable[..., U]) -> Signal[U]:
        """``combine_latest`` taking the signals as positional arguments."""
        return cls.combine_latest(signals, reduce)

    @classmethod
    def merge(cls, signals: Iterable[Signal[Any]]) -> Signal[Any]:
        """Forward values from all signals; complete when all complete."""
        sources = list(signals)
        if not sources:
            return Signal.empty()

        def producer(observer: Observer[Any]) -> None:
            lock = threading.Lock()
            remaining = [len(sources)]

            def on_completed() -> None:
                with lock:
                    remaining[0] -= 1
                    done = remaining[0] == 0
                if done:
                    observer.send_completed()

            for source in sources:
                if observer.stopped:
                    return
                source._subscribe_into(observer.subscription, observer.send_next, observer.send_error, on_completed)

        return Signal(producer)

    # -- subscription -------------------------------------------------

    def subscribe(
        self,
        on_next: Callable[[T], None] | None = None,
        on_error: Callable[[Exception], None] | None = None,
        on_completed: Callable[[], None] | None = None,
    ) -> Subscription:
        """Subscribe to values, failure and completion.

        Without ``on_error`` a failure is logged at ERROR level.
        """
        return self._attach(CompositeSubscription(), on_next, on_error, on_completed)

    def subscribe_next(self, on_next: Callable[[T], None]) -> Subscription:
        """Subscribe to values only."""
        return self.subscribe(on_next)

    def _subscribe_into(
        self,
        parent: CompositeSubscription,
        on_next: Callable[[T], None] | None,
        on_error: Callable[[Exception], None] | None = None,
        on_completed: Callable[[], None] | None = None,
    ) -> CompositeSubscription:
        """Subscribe under ``parent``, linked before the producer runs.

        Disposing ``parent`` stops this subscription even while its
        producer is still emitting synchronously.
        """
        return self._attach(parent.add(CompositeSubscription()), on_next, on_error, on_completed)

    def _attach(
        self,
        subscription: CompositeSubscription,
        on_next: Callable[[T], None] | None,
        on_error: Callable[[Exception], None] | None,
        on_completed: Callable[[], None] | None,
    ) -> CompositeSubscription:
        observer = Observer(on_next, on_error, on_completed, subscription)
        subscription.add(_as_subscription(self._subscribe_core(observer)))
        return subscription

    def _subscribe_core(self, observer: Observer[T]) -> Subscription | Callable[[], None] | None:
        if self._producer is None:
            return None
        return self._producer(observer)

    # -- operators ----------------------------------------------------

    def map(self, fn: Callable[[T], U]) -> Signal[U]:
        """Transform each value. A raising ``fn`` fails the signal."""

        def producer(observer: Observer[U]) -> None:
            def on_next(value: T) -> None:
                try:
                    result = fn(value)
                except Exception as e:
                    observer.send_error(_upstream_failure(e))
                    return
                observer.send_next(result)

            self._subscribe_into(observer.subscription, on_next, observer.send_error, observer.send_completed)

        return Signal(producer)

    def filter(self, predicate: Callable[[T], bool]) -> Signal[T]:
        """Drop values for which ``predicate`` is false."""

        def producer(observer: Observer[T]) -> None:
            def on_next(value: T) -> None:
                try:
                    keep = predicate(value)
                except Exception as e:
                    observer.send_error(_upstream_failure(e))
                    return
                if keep:
                    observer.send_next(value)

            self._subscribe_into(observer.subscription, on_next, observer.send_error, observer.send_completed)

        return Signal(producer)

    def start_with(self, value: T) -> Signal[T]:
        """Send ``value`` to each new subscriber before upstream values."""

        def producer(observer: Observer[T]) -> None:
            observer.send_next(value)
            if observer.stopped:
                return
            self._subscribe_into(
                observer.subscription, observer.send_next, observer.send_error, observer.send_completed
            )

        return Signal(producer)

    def scan_with_start(self, seed: S, combine: Callable[[S, T], S]) -> Signal[S]:
        """Running fold; sends the accumulator after every value."""

        def producer(observer: Observer[S]) -> None:
            running = [seed]

            def on_next(value: T) -> None:
                try:
                    running[0] = combine(running[0], value)
                except Exception as e:
                    observer.send_error(_upstream_failure(e))
                    return
                observer.send_next(running[0])

            self._subscribe_into(observer.subscription, on_next, observer.send_error, observer.send_completed)

        return Signal(producer)

    def map_replace(self, replacement: Signal[U]) -> Signal[U]:
        """On every value, send the latest value of ``replacement`` instead.

        Values arriving before ``replacement`` has sent anything are dropped.
        """

        def producer(observer: Observer[U]) -> None:
            latest = [_MISSING]

            def remember(value: U) -> None:
                latest[0] = value

            def on_next(_: T) -> None:
                if latest[0] is not _MISSING:
                    observer.send_next(latest[0])

            replacement._subscribe_into(observer.subscription, remember, observer.send_error)
            self._subscribe_into(observer.subscription, on_next, observer.send_error, observer.send_completed)

        return Signal(producer)

    def take(self, count: int) -> Signal[T]:
        """Forward the first ``count`` values, then complete.

        Completing unsubscribes the upstream at once, so ``take`` also ends
        infinite synchronous sources.
        """

        def producer(observer: Observer[T]) -> None:
            if count <= 0:
                observer.send_completed()
                return
            taken = [0]

            def on_next(value: T) -> None:
                taken[0] += 1
                observer.send_next(value)
                if taken[0] >= count:
                    observer.send_completed()

            self._subscribe_into(observer.subscription, on_next, observer.send_error, observer.send_completed)

        return Signal(producer)

    def take_until(self, trigger: Signal[Any]) -> Signal[T]:
        """Forward values until ``trigger`` sends or completes."""

        def producer(observer: Observer[T]) -> None:
            trigger._subscribe_into(
                observer.subscription,
                lambda _: observer.send_completed(),
                observer.send_error,
                observer.send_completed,
            )
            if not observer.stopped:
                self._subscribe_into(
                    observer.subscription, observer.send_next, observer.send_error, observer.send_completed
                )

        return Signal(producer)

    def switch_to_latest(self) -> Signal[Any]:
        """Flatten a signal of signals, following only the newest inner one.

        The previous inner signal is unsubscribed the moment a new one
        arrives; nothing it sends afterwards is forwarded.
        """

        def producer(observer: Observer[Any]) -> None:
            lock = threading.Lock()
            state = {"generation": 0, "inner_active": False, "outer_done": False}
            serial = observer.subscription.add(SerialSubscription())

            def on_outer_next(inner: Any) -> None:
                if not isinstance(inner, Signal):
                    observer.send_error(_upstream_failure(
                        TypeError(f"switch_to_latest expected a Signal, got {inner!r}")
                    ))
                    return
                target = CompositeSubscription()
                with lock:
                    state["generation"] += 1
                    generation = state["generation"]
                    state["inner_active"] = True
                    serial.inner = target

                def is_current() -> bool:
                    return state["generation"] == generation

                def on_inner_next(value: Any) -> None:
                    if is_current():
                        observer.send_next(value)

                def on_inner_error(error: Exception) -> None:
                    if is_current():
                        observer.send_error(error)

                def on_inner_completed() -> None:
                    with lock:
                        if not is_current():
                            return
                        state["inner_active"] = False
                        done = state["outer_done"]
                    if done:
                        observer.send_completed()

                inner._attach(target, on_inner_next, on_inner_error, on_inner_completed)

            def on_outer_completed() -> None:
                with lock:
                    state["outer_done"] = True
                    done = not state["inner_active"]
                if done:
                    observer.send_completed()

            self._subscribe_into(observer.subscription, on_outer_next, observer.send_error, on_outer_completed)

        return Signal(producer)

    def sequence_many(self, fn: Callable[..., Signal[U]]) -> Signal[U]:
        """Map each value to a signal and concatenate those signals in order.

        Values arriving while an inner signal is still running wait their
        turn. ``fn`` may also take no arguments.
        """
        with_value = _takes_argument(fn)

        def producer(observer: Observer[U]) -> None:
            lock = threading.Lock()
            queue: deque[Any] = deque()
            state = {"active": False, "outer_done": False}
            parent = observer.subscription

            def subscribe_inner(value: Any) -> None:
                try:
                    inner = fn(value) if with_value else fn()
                except Exception as e:
                    observer.send_error(_upstream_failure(e))
                    return
                target = parent.add(CompositeSubscription())

                def on_inner_completed() -> None:
                    parent.remove(target)
                    with lock:
                        if queue:
                            following = queue.popleft()
                        else:
                            following = _MISSING
                            state["active"] = False
                        done = state["outer_done"] and following is _MISSING
                    if following is not _MISSING:
                        subscribe_inner(following)
                    elif done:
                        observer.send_completed()

                inner._attach(target, observer.send_next, observer.send_error, on_inner_completed)

            def on_outer_next(value: Any) -> None:
                with lock:
                    if state["active"]:
                        queue.append(value)
                        return
                    state["active"] = True
                subscribe_inner(value)

            def on_outer_completed() -> None:
                with lock:
                    state["outer_done"] = True
                    idle = not state["active"]
                if idle:
                    observer.send_completed()

            self._subscribe_into(parent, on_outer_next, observer.send_error, on_outer_completed)

        return Signal(producer)

    def deliver_on(self, scheduler: Scheduler) -> Signal[T]:
        """Deliver every event through ``scheduler``, keeping their order."""

        def producer(observer: Observer[T]) -> None:
            self._subscribe_into(
                observer.subscription,
                lambda value: scheduler.schedule(lambda: observer.send_next(value)),
                lambda error: scheduler.schedule(lambda: observer.send_error(error)),
                lambda: scheduler.schedule(observer.send_completed),
            )

        return Signal(producer)

    def deliver_on_main(self) -> Signal[T]:
        """Deliver on the designated main scheduler."""
        return self.deliver_on(main_scheduler())

    def replay(self, buffer_size: int | None = None) -> ReplaySignal[T]:
        """Subscribe now and share the recorded events with all subscribers.

        With ``buffer_size`` only that many of the latest values are kept
        for late subscribers.
        """
        return ReplaySignal(self, buffer_size)

    # Truth-value helpers

    def boolean(self) -> Signal[bool]:
        """Normalize values with ``booleanize``."""
        return self.map(booleanize)

    def negate(self) -> Signal[bool]:
        return self.map(lambda truth: not truth)

    def flip_flop(self, true_value: U, false_value: U) -> Signal[U]:
        """Map truth values to one of two values."""
        return self.map(lambda truth: true_value if truth else false_value)


class Subject(Signal[T]):
    """Hot signal fed by hand.

    A failing subscriber is logged and does not stop delivery to the
    others. Subscribers arriving after termination get the terminal
    event straight away.
    """

    def __init__(self) -> None:
        super().__init__()
        self._observers: list[Observer[T]] = []
        self._lock = threading.Lock()
        self._terminal: tuple[str, Exception | None] | None = None

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len([o for o in self._observers if not o.stopped])

    def _subscribe_core(self, observer: Observer[T]) -> Subscription | None:
        with self._lock:
            terminal = self._terminal
            if terminal is None:
                self._observers.append(observer)
        if terminal is not None:
            self._deliver_terminal(observer, terminal)
            return None
        return Subscription(lambda: self._remove(observer))

    def _remove(self, observer: Observer[T]) -> None:
        with self._lock:
            try:
                self._observers.remove(observer)
            except ValueError:
                pass

    def _snapshot(self) -> list[Observer[T]]:
        with self._lock:
            return list(self._observers)

    def send_next(self, value: T) -> None:
        self._broadcast(self._snapshot(), value)

    @staticmethod
    def _broadcast(observers: list[Observer[T]], value: T) -> None:
        for observer in observers:
            try:
                observer.send_next(value)
            except Exception as e:
                logger.error(f"Signal subscriber error: {e}")

    def send_error(self, error: Exception) -> None:
        self._terminate(("error", error))

    def send_completed(self) -> None:
        self._terminate(("completed", None))

    def _terminate(self, terminal: tuple[str, Exception | None]) -> None:
        with self._lock:
            if self._terminal is not None:
                return
            self._terminal = terminal
            observers, self._observers = self._observers, []
        for observer in observers:
            try:
                self._deliver_terminal(observer, terminal)
            except Exception as e:
                logger.error(f"Signal subscriber error: {e}")

    @staticmethod
    def _deliver_terminal(observer: Observer[T], terminal: tuple[str, Exception | None]) -> None:
        kind, error = terminal
        if kind == "error" and error is not None:
            observer.send_error(error)
        else:
            observer.send_completed()


class ValueSignal(Subject[T]):
    """
    Hot signal holding a current value.

    New subscribers receive the current value first. ``set`` notifies
    only when the value actually changes.

    Example:
        count = ValueSignal.of(0)
        count.subscribe_next(lambda v: print(f"Count: {v}"))  # prints "Count: 0"
        count.set(1)  # prints "Count: 1"
        count.update(lambda v: v + 1)  # prints "Count: 2"
    """

    def __init__(self, value: T) -> None:
        super().__init__()
        self._value = value
        self._generation = 0

    @classmethod
    def of(cls, value: T) -> ValueSignal[T]:
        """Create a value signal with initial value."""
        return cls(value)

    @property
    def value(self) -> T:
        """Get current value (read-only)."""
        return self._value

    @property
    def generation(self) -> int:
        """How many times the value has changed."""
        return self._generation

    def set(self, new_value: T) -> None:
        """Set new value and notify subscribers if changed."""
        with self._lock:
            if new_value == self._value:
                return
            self._value = new_value
            self._generation += 1
            observers = list(self._observers)
        self._broadcast(observers, new_value)

    def update(self, fn: Callable[[T], T]) -> None:
        """Update value via function."""
        self.set(fn(self._value))

    def _subscribe_core(self, observer: Observer[T]) -> Subscription | None:
        with self._lock:
            terminal = self._terminal
            current = self._value
            if terminal is None:
                self._observers.append(observer)
        if terminal is not None:
            self._deliver_terminal(observer, terminal)
            return None
        observer.send_next(current)
        return Subscription(lambda: self._remove(observer))


class ReplaySignal(Subject[T]):
    """Connects to its upstream once and replays everything it recorded.

    Created with ``Signal.replay()``. The upstream subscription is
    ``connection``; disposing it stops recording. A ``buffer_size`` keeps
    only that many of the latest values.
    """

    def __init__(self, upstream: Signal[T], buffer_size: int | None = None) -> None:
        super().__init__()
        self._events: deque[T] = deque(maxlen=buffer_size)
        self.connection = upstream.subscribe(self._record, self.send_error, self.send_completed)

    def _record(self, value: T) -> None:
        with self._lock:
            self._events.append(value)
            observers = list(self._observers)
        self._broadcast(observers, value)

    def _subscribe_core(self, observer: Observer[T]) -> Subscription | None:
        with self._lock:
            events = list(self._events)
            terminal = self._terminal
            if terminal is None:
                self._observers.append(observer)
        for value in events:
            observer.send_next(value)
        if terminal is not None:
            self._deliver_terminal(observer, terminal)
            return None
        return Subscription(lambda: self._remove(observer))
