"""Command: a gated, serialized action with observable state.

A Command wraps one or more action factories behind a can-execute
predicate. At most one execution is in flight at a time: the accept
decision and the ``executing`` flip happen under a single lock, so two
racing ``execute`` calls can never both be accepted.

Observable attributes (usable through ``bind(command).can_execute`` etc.):
- executing: True while an accepted execution has not finished
- can_execute: latest predicate value AND NOT executing
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, TypeVar

from ...models.exceptions import UpstreamFailure
from .observable import Observable
from .signal import ReplaySignal, Signal, Subject
from .subscription import Subscription

logger = logging.getLogger(__name__)

R = TypeVar("R")

ActionFactory = Callable[[Any], Signal[Any]]


class Command(Observable):
    """Gates actions behind a can-execute signal.

    Example:
        form_valid = Signal.combine_latest([name_signal], lambda n: bool(n))
        command = Command(form_valid)
        results = command.add_action(lambda sender: submit()).switch_to_latest()
        button_presses.subscribe_next(command.execute)
    """

    def __init__(self, can_execute: Signal[bool] | None = None) -> None:
        self._lock = threading.Lock()
        self._publish_lock = threading.RLock()
        self._in_flight = False
        self._predicate = can_execute is None
        self._factories: list[tuple[ActionFactory, Subject[Signal[Any]]]] = []
        self._errors: Subject[Exception] = Subject()
        self._can_execute_input = can_execute if can_execute is not None else Signal.never().start_with(True)

        self.executing = False
        self.can_execute = self._predicate

        self._predicate_subscription: Subscription = self._can_execute_input.subscribe(
            self._on_predicate,
            lambda e: logger.error(f"Command can-execute signal failed: {e}"),
        )

    @classmethod
    def create(cls, can_execute: Signal[bool] | None = None) -> Command:
        return cls(can_execute)

    @property
    def can_execute_signal(self) -> Signal[bool]:
        """The predicate signal the command was created with."""
        return self._can_execute_input

    @property
    def executing_signal(self) -> Signal[bool]:
        """Current executing state, then every change."""
        return self.observe_property("executing")

    @property
    def errors(self) -> Signal[Exception]:
        """Failures of accepted executions."""
        return self._errors

    def add_action(self, factory: Callable[[Any], Signal[R]]) -> Signal[Signal[R]]:
        """Register an action; returns a signal of per-execution result signals.

        Usually flattened with ``switch_to_latest()``.
        """
        results: Subject[Signal[R]] = Subject()
        with self._lock:
            self._factories.append((factory, results))
        return results

    def execute(self, value: Any = None) -> Signal[Any]:
        """Run every registered action with ``value``.

        Returns an empty signal when the command cannot execute (predicate
        false or an execution already in flight). Otherwise returns the
        merged results of all actions; ``executing`` stays True until that
        merged signal completes or fails.
        """
        with self._lock:
            if self._in_flight or not self._predicate:
                logger.debug(f"Command rejected execute({value!r})")
                return Signal.empty()
            self._in_flight = True
            factories = list(self._factories)
        self._publish_state()
        logger.debug(f"Command accepted execute({value!r})")

        runs: list[ReplaySignal[Any]] = []
        try:
            for factory, _ in factories:
                runs.append(factory(value).replay())
        except Exception as e:
            logger.error(f"Command action failed to start: {e}")
            for run in runs:
                run.connection.dispose()
            failure = UpstreamFailure(f"{type(e).__name__}: {e}")
            failure.__cause__ = e
            self._errors.send_next(failure)
            self._finish()
            return Signal.error(failure)

        for (_, results), run in zip(factories, runs):
            results.send_next(run)

        merged = Signal.merge(runs).replay()

        def on_error(error: Exception) -> None:
            logger.error(f"Command execution failed: {error}")
            self._errors.send_next(error)
            self._finish()

        merged.subscribe(None, on_error, self._finish)
        return merged

    def _on_predicate(self, value: bool) -> None:
        with self._lock:
            self._predicate = bool(value)
        self._publish_state()

    def _finish(self) -> None:
        with self._lock:
            if not self._in_flight:
                return
            self._in_flight = False
        logger.debug("Command execution finished")
        self._publish_state()

    def _publish_state(self) -> None:
        """Push the lock-protected state to the observable attributes.

        Writes are serialized and each one uses a fresh snapshot, so a
        publisher that was overtaken never writes an outdated value.
        """
        with self._publish_lock:
            while True:
                with self._lock:
                    executing = self._in_flight
                    can_execute = self._predicate and not self._in_flight
                if self.executing != executing:
                    self.executing = executing
                elif self.can_execute != can_execute:
                    self.can_execute = can_execute
                else:
                    return

    def dispose(self) -> None:
        """Stop listening to the can-execute signal."""
        self._predicate_subscription.dispose()
