"""Observation bridge: turn object properties into signals and back.

Primitives used by the key-path binding layer:
- value_for_key_path / set_value_for_key_path: dotted get and set
- responds_to: can an object be called with a given argument shape?
- observe_key_path: a Signal of a property's value over time
- lifetime_of: the bag of bindings owned by an observer

Plain objects are read once when a subscription starts. Objects using the
Observable mixin announce every change of their public attributes.
"""

from __future__ import annotations

import inspect
import logging
import threading
import weakref
from collections.abc import Mapping, MutableMapping
from typing import Any

from ...models.exceptions import KeyPathError
from .signal import Observer, Signal, Subject, ValueSignal
from .subscription import CompositeSubscription, Subscription

logger = logging.getLogger(__name__)


def split_key_path(key_path: str) -> list[str]:
    """Split a dotted key path, rejecting empty segments."""
    segments = key_path.split(".")
    if not key_path or any(not segment for segment in segments):
        raise KeyPathError(f"Invalid key path '{key_path}'")
    return segments


def _value_for_key(target: Any, key: str, key_path: str) -> Any:
    if isinstance(target, Mapping):
        try:
            return target[key]
        except KeyError:
            raise KeyPathError(f"No key '{key}' in {target!r} (key path '{key_path}')") from None
    try:
        return getattr(target, key)
    except AttributeError:
        raise KeyPathError(f"{target!r} has no property '{key}' (key path '{key_path}')") from None


def value_for_key_path(obj: Any, key_path: str) -> Any:
    """Read the value at ``key_path`` relative to ``obj``.

    Raises:
        KeyPathError: If any segment cannot be resolved
    """
    current = obj
    for key in split_key_path(key_path):
        current = _value_for_key(current, key, key_path)
    return current


def set_value_for_key_path(obj: Any, key_path: str, value: Any) -> None:
    """Write ``value`` at ``key_path`` relative to ``obj``.

    Raises:
        KeyPathError: If the parent of the last segment cannot be resolved
    """
    *parents, key = split_key_path(key_path)
    target = obj
    for parent in parents:
        target = _value_for_key(target, parent, key_path)
    if isinstance(target, MutableMapping):
        target[key] = value
    else:
        setattr(target, key, value)


def responds_to(obj: Any, name: str, *args: Any, **kwargs: Any) -> bool:
    """Check that ``obj.name`` exists and accepts the given arguments."""
    method = getattr(obj, name, None)
    if method is None or not callable(method):
        return False
    try:
        inspect.signature(method).bind(*args, **kwargs)
    except TypeError:
        return False
    except ValueError:
        # No introspectable signature (some builtins); assume it fits
        return True
    return True


class Observable:
    """Mixin making public attribute assignments observable.

    Each observed attribute is backed by a ValueSignal, so observers get
    the current value on subscription and every later change.

    Example:
        class Form(Observable):
            def __init__(self):
                self.valid = False

        form = Form()
        form.observe_property("valid").subscribe_next(print)  # prints False
        form.valid = True  # prints True
    """

    _observable_lock = threading.RLock()

    def __setattr__(self, name: str, value: Any) -> None:
        super().__setattr__(name, value)
        if name.startswith("_"):
            return
        signals = self.__dict__.get("_property_signals")
        if signals and name in signals:
            signals[name].set(value)

    def observe_property(self, name: str) -> ValueSignal[Any]:
        """Get the signal tracking attribute ``name``.

        Raises:
            KeyPathError: If the attribute does not exist
        """
        with Observable._observable_lock:
            signals = self.__dict__.get("_property_signals")
            if signals is None:
                signals = {}
                object.__setattr__(self, "_property_signals", signals)
            if name not in signals:
                signals[name] = ValueSignal.of(_value_for_key(self, name, name))
            return signals[name]


class Lifetime:
    """Bindings owned by one observer.

    ``end()`` disposes every binding and completes ``ended``.
    """

    def __init__(self) -> None:
        self._subscriptions = CompositeSubscription()
        self._ended: Subject[None] = Subject()

    @property
    def ended(self) -> Signal[None]:
        return self._ended

    @property
    def is_ended(self) -> bool:
        return self._subscriptions.disposed

    def add(self, subscription: Subscription) -> Subscription:
        return self._subscriptions.add(subscription)

    def end(self) -> None:
        if self._subscriptions.disposed:
            return
        self._subscriptions.dispose()
        self._ended.send_completed()


_lifetimes: weakref.WeakKeyDictionary[Any, Lifetime] = weakref.WeakKeyDictionary()
# Pinned entries hold the observer itself, so its id cannot be reused
# while the entry exists.
_pinned_lifetimes: dict[int, tuple[Any, Lifetime]] = {}
_lifetimes_lock = threading.Lock()


def lifetime_of(observer: Any) -> Lifetime:
    """Get (or create) the lifetime of ``observer``.

    Ends automatically when the observer is garbage collected. Observers
    that cannot be weakly referenced are kept alive until ``end()`` is
    called on their lifetime. Once a lifetime has ended, the next call
    starts a fresh one.
    """
    with _lifetimes_lock:
        try:
            lifetime = _lifetimes.get(observer)
            if lifetime is None or lifetime.is_ended:
                lifetime = Lifetime()
                _lifetimes[observer] = lifetime
                weakref.finalize(observer, lifetime.end)
            return lifetime
        except TypeError:
            return _pinned_lifetime(observer)


def _pinned_lifetime(observer: Any) -> Lifetime:
    key = id(observer)
    entry = _pinned_lifetimes.get(key)
    if entry is not None and entry[0] is observer and not entry[1].is_ended:
        return entry[1]
    logger.debug(f"{type(observer).__name__} is not weakly referenceable; pinning its lifetime")
    lifetime = Lifetime()
    _pinned_lifetimes[key] = (observer, lifetime)
    lifetime.add(Subscription(lambda: _unpin(key, lifetime)))
    return lifetime


def _unpin(key: int, lifetime: Lifetime) -> None:
    with _lifetimes_lock:
        entry = _pinned_lifetimes.get(key)
        if entry is not None and entry[1] is lifetime:
            del _pinned_lifetimes[key]


def _observe_key(target: Any, key: str, key_path: str) -> Signal[Any]:
    if target is None:
        return Signal.never().start_with(None)
    if isinstance(target, Observable):
        return target.observe_property(key)

    def producer(observer: Observer[Any]) -> None:
        try:
            value = _value_for_key(target, key, key_path)
        except KeyPathError as e:
            observer.send_error(e)
            return
        observer.send_next(value)

    return Signal.create(producer)


def observe_key_path(obj: Any, key_path: str, observer: Any = None) -> Signal[Any]:
    """Signal of the value at ``key_path``, starting with its current value.

    Segments held by Observable objects follow later changes; when an
    intermediate object is replaced, the rest of the path is re-resolved
    against the new one. When ``observer`` is given the signal completes
    as soon as the observer's lifetime ends.
    """
    segments = split_key_path(key_path)

    def observe_from(target: Any, remaining: list[str]) -> Signal[Any]:
        key, rest = remaining[0], remaining[1:]
        head = _observe_key(target, key, key_path)
        if not rest:
            return head
        return head.map(lambda value: observe_from(value, rest)).switch_to_latest()

    signal = observe_from(obj, segments)
    if observer is not None:
        signal = signal.take_until(lifetime_of(observer).ended)
    return signal
