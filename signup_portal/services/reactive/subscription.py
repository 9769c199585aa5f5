"""Subscriptions: revocable links between a Signal and its observer.

Disposal is idempotent and only ever affects the subscription it is
called on. Calling a subscription is the same as disposing it, so it can
be used wherever an ``unsubscribe()`` callable is expected:

    sub = signal.subscribe_next(print)
    sub()  # Stop receiving updates
"""

from __future__ import annotations

import threading
from typing import Callable


class Subscription:
    """A revocable subscription with an optional teardown action."""

    def __init__(self, teardown: Callable[[], None] | None = None) -> None:
        self._teardown = teardown
        self._disposed = False
        self._lock = threading.Lock()

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Run the teardown action once. Later calls do nothing."""
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            teardown, self._teardown = self._teardown, None
        if teardown is not None:
            teardown()

    def __call__(self) -> None:
        self.dispose()


class CompositeSubscription(Subscription):
    """Disposes a group of subscriptions together.

    Subscriptions added after disposal are disposed immediately.
    """

    def __init__(self, *subscriptions: Subscription) -> None:
        super().__init__()
        self._children: list[Subscription] = list(subscriptions)

    def add(self, subscription: Subscription) -> Subscription:
        with self._lock:
            if not self._disposed:
                self._children.append(subscription)
                return subscription
        subscription.dispose()
        return subscription

    def remove(self, subscription: Subscription) -> None:
        """Forget a subscription without disposing it."""
        with self._lock:
            try:
                self._children.remove(subscription)
            except ValueError:
                pass

    def dispose(self) -> None:
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            children, self._children = self._children, []
        for child in children:
            child.dispose()


class SerialSubscription(Subscription):
    """Holds one inner subscription at a time.

    Replacing the inner subscription disposes the previous one first.
    """

    def __init__(self) -> None:
        super().__init__()
        self._inner: Subscription | None = None

    @property
    def inner(self) -> Subscription | None:
        return self._inner

    @inner.setter
    def inner(self, subscription: Subscription | None) -> None:
        with self._lock:
            if self._disposed:
                previous, dispose_new = None, True
            else:
                previous, self._inner, dispose_new = self._inner, subscription, False
        if previous is not None:
            previous.dispose()
        if dispose_new and subscription is not None:
            subscription.dispose()

    def dispose(self) -> None:
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            inner, self._inner = self._inner, None
        if inner is not None:
            inner.dispose()
