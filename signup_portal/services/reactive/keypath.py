"""KeyPathAgent: chained attribute access that ends in a reactive binding.

``bind(obj, observer)`` returns an agent that collects a dotted key path
one attribute at a time. The first interaction that is not a plain
attribute read concludes the agent, in this order:

1. Observation: the name is a Signal operator (``map``, ``start_with``...).
   The key path is observed and the operator applied to that signal.
2. Property drive: an assignment of a Signal. Every value the signal
   sends is written to the key path, starting with its current value.
3. Lifted call: the path is non-empty and the call has a Signal argument.
   The method on the object at the path is re-invoked with the latest
   values whenever any Signal argument sends.
4. Otherwise the name is appended to the key path and the agent returned.

Example:
    bind(screen).create_button.disabled = can_submit.negate()
    bind(screen).status_label.update(status_text)
    bind(command).executing.map(lambda busy: "busy" if busy else "idle")

The explicit builder (``key``, ``observe``, ``bind_from``, ``lift_call``)
does the same without relying on attribute interception.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any

from ...models.exceptions import CapabilityError, KeyPathError
from .observable import (
    lifetime_of,
    observe_key_path,
    responds_to,
    set_value_for_key_path,
    value_for_key_path,
)
from .signal import ReplaySignal, Signal
from .subscription import Subscription

logger = logging.getLogger(__name__)

ASSIGNMENT_MARKER = "="

SIGNAL_OPERATORS = frozenset(
    name
    for name in dir(Signal)
    if not name.startswith("_")
    and callable(getattr(Signal, name))
    and not isinstance(inspect.getattr_static(Signal, name), classmethod)
)


def operation_name(name: str, keywords: list[str]) -> str:
    """Multi-part operation name: ``setTitleColor`` + ``for_state`` -> ``setTitleColor:for_state:``."""
    return ":".join([name, *keywords]) + ":"


class KeyPathAgent:
    """Accumulates a key path and resolves it into a binding.

    Each binding expression uses a fresh agent; once concluded the agent
    is spent and refuses further use.
    """

    def __init__(self, obj: Any, observer: Any) -> None:
        object.__setattr__(self, "_object", obj)
        object.__setattr__(self, "_observer", observer)
        object.__setattr__(self, "_segments", [])
        object.__setattr__(self, "_spent", False)

    @property
    def key_path(self) -> str:
        return ".".join(self._segments)

    @property
    def spent(self) -> bool:
        return self._spent

    def __str__(self) -> str:
        return self.key_path

    def __repr__(self) -> str:
        return f"KeyPathAgent({self._object!r}, key_path={self.key_path!r})"

    def _ensure_live(self) -> None:
        if self._spent:
            raise KeyPathError(
                f"Key path agent for '{self.key_path}' has already been used",
                suggestion="start a new expression with bind()",
            )

    def _conclude(self) -> str:
        self._ensure_live()
        if not self._segments:
            raise KeyPathError("Key path is empty", suggestion="name a property first")
        object.__setattr__(self, "_spent", True)
        return self.key_path

    # -- builder ------------------------------------------------------

    def key(self, name: str) -> KeyPathAgent:
        """Append a segment and keep building."""
        self._ensure_live()
        name = str(name)
        if not name or "." in name:
            raise KeyPathError(f"Invalid key path segment '{name}'")
        self._segments.append(name)
        return self

    def observe(self) -> Signal[Any]:
        """Signal of the value at the key path (current value first)."""
        key_path = self._conclude()
        return observe_key_path(self._object, key_path, self._observer)

    def bind_from(self, name: str | None, signal: Signal[Any]) -> Subscription:
        """Write every value of ``signal`` to the key path (plus ``name``).

        The signal's current value, if it has one, is applied immediately.
        The binding lasts until the observer's lifetime ends.
        """
        if not isinstance(signal, Signal):
            raise KeyPathError(
                f"Cannot bind {signal!r} to '{self.key_path}'",
                suggestion="wrap constants with Signal.return_()",
            )
        if name is not None:
            self.key(name)
        key_path = self._conclude()
        root = self._object

        def on_error(error: Exception) -> None:
            logger.error(f"Binding to '{key_path}' on {root!r} failed: {error}")

        subscription = signal.subscribe(
            lambda value: set_value_for_key_path(root, key_path, value),
            on_error,
        )
        logger.debug(f"Bound signal to '{key_path}' on {type(root).__name__}")
        return lifetime_of(self._observer).add(subscription)

    def lift_call(
        self,
        name: str,
        args: tuple[Any, ...] | list[Any] = (),
        kwargs: dict[str, Any] | None = None,
    ) -> ReplaySignal[Any]:
        """Invoke ``name`` on the object at the key path whenever a Signal argument sends.

        Non-Signal arguments are passed through unchanged. The call starts
        once every Signal argument has sent a value.

        Returns:
            Signal of the method's return values, replaying only the latest (already running)

        Raises:
            CapabilityError: If the target does not accept this call shape
        """
        self._ensure_live()
        kwargs = dict(kwargs or {})
        args = tuple(args)
        if not self._segments:
            raise KeyPathError(f"Cannot lift '{name}' without a target key path")
        sources = [a for a in args if isinstance(a, Signal)]
        sources += [v for v in kwargs.values() if isinstance(v, Signal)]
        if not sources:
            raise KeyPathError(
                f"Lifting '{name}' needs at least one Signal argument",
                suggestion="call the method directly instead",
            )

        key_path = self.key_path
        operation = operation_name(name, list(kwargs))
        target = value_for_key_path(self._object, key_path)
        if not responds_to(target, name, *args, **kwargs):
            raise CapabilityError(target, key_path, operation)
        self._conclude()
        method = getattr(target, name)

        def invoke(latest: tuple[Any, ...]) -> Any:
            values = iter(latest)
            call_args = [next(values) if isinstance(a, Signal) else a for a in args]
            call_kwargs = {
                key: next(values) if isinstance(value, Signal) else value
                for key, value in kwargs.items()
            }
            return method(*call_args, **call_kwargs)

        invocations = Signal.combine_latest(sources).map(invoke).replay(1)
        invocations.subscribe(
            None,
            lambda error: logger.error(f"Lifted `{operation}` on '{key_path}' failed: {error}"),
        )
        lifetime_of(self._observer).add(invocations.connection)
        logger.debug(f"Lifted `{operation}` on '{key_path}' with {len(sources)} signal(s)")
        return invocations

    # -- dynamic resolution ---------------------------------------------

    def resolve(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Decide what ``name(*args, **kwargs)`` means at this point of the chain."""
        self._ensure_live()
        if name in SIGNAL_OPERATORS:
            return getattr(self.observe(), name)(*args, **kwargs)
        if (
            name.endswith(ASSIGNMENT_MARKER)
            and len(args) == 1
            and not kwargs
            and isinstance(args[0], Signal)
        ):
            return self.bind_from(name[: -len(ASSIGNMENT_MARKER)], args[0])
        if self._segments and any(isinstance(a, Signal) for a in (*args, *kwargs.values())):
            return self.lift_call(name, args, kwargs)
        return self.key(name)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        self._ensure_live()
        if name in SIGNAL_OPERATORS:
            return getattr(self.observe(), name)
        return self.key(name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
            return
        if not isinstance(value, Signal):
            raise KeyPathError(
                f"Cannot bind {value!r} to '{self.key_path}.{name}'",
                suggestion="wrap constants with Signal.return_()",
            )
        self.resolve(name + ASSIGNMENT_MARKER, value)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        """Treat the last segment as a method name being called."""
        self._ensure_live()
        if not self._segments:
            raise KeyPathError("Nothing to call on an empty key path")
        name = self._segments.pop()
        return self.resolve(name, *args, **kwargs)

    property = key


def bind(obj: Any, observer: Any = None) -> KeyPathAgent:
    """Start a key-path binding expression on ``obj``.

    Bindings created by the expression belong to ``observer`` (default:
    ``obj`` itself) and end with its lifetime.
    """
    return KeyPathAgent(obj, obj if observer is None else observer)
