"""Schedulers: execution contexts that signal delivery can be moved onto.

Combinators never introduce threads on their own. Timer-based sources
(``Signal.interval``) and ``Signal.deliver_on`` are the only places a
scheduler decides where and when observers run.

- ImmediateScheduler: run inline on the calling thread
- TimerScheduler: daemon ``threading.Timer`` background work
- LoopScheduler: hand work to an asyncio event loop (the Textual app loop)
- ManualScheduler: virtual time, driven explicitly (tests, replays)
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable

from .subscription import Subscription

logger = logging.getLogger(__name__)

Action = Callable[[], None]


class Scheduler(ABC):
    """Where (and when) scheduled actions run."""

    def now(self) -> datetime:
        return datetime.now()

    @abstractmethod
    def schedule(self, action: Action) -> Subscription:
        """Run ``action`` as soon as possible on this context."""

    @abstractmethod
    def schedule_after(self, delay: float, action: Action) -> Subscription:
        """Run ``action`` once, ``delay`` seconds from now."""

    def schedule_recurring(self, period: float, action: Action) -> Subscription:
        """Run ``action`` every ``period`` seconds until disposed.

        Built from ``schedule_after``; the next tick is armed after the
        current one runs.
        """
        if period <= 0:
            raise ValueError(f"period must be positive, got {period}")
        holder: list[Subscription] = []
        cancelled = threading.Event()

        def tick() -> None:
            if cancelled.is_set():
                return
            action()
            if not cancelled.is_set():
                holder[0] = self.schedule_after(period, tick)

        holder.append(self.schedule_after(period, tick))

        def cancel() -> None:
            cancelled.set()
            holder[0].dispose()

        return Subscription(cancel)


class ImmediateScheduler(Scheduler):
    """Runs actions inline. Delayed work goes to a background timer."""

    def __init__(self) -> None:
        self._timers: TimerScheduler | None = None

    def schedule(self, action: Action) -> Subscription:
        action()
        return Subscription()

    def schedule_after(self, delay: float, action: Action) -> Subscription:
        if self._timers is None:
            self._timers = TimerScheduler()
        return self._timers.schedule_after(delay, action)


class TimerScheduler(Scheduler):
    """Runs actions on daemon ``threading.Timer`` threads."""

    def schedule(self, action: Action) -> Subscription:
        return self.schedule_after(0.0, action)

    def schedule_after(self, delay: float, action: Action) -> Subscription:
        timer = threading.Timer(max(delay, 0.0), action)
        timer.daemon = True
        timer.start()
        return Subscription(timer.cancel)


class LoopScheduler(Scheduler):
    """Delivers actions onto an asyncio event loop.

    Safe to call from any thread; actions keep their submission order.

    Example:
        # In App.on_mount
        set_main_scheduler(LoopScheduler(asyncio.get_running_loop()))
    """

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    def schedule(self, action: Action) -> Subscription:
        handle = self._loop.call_soon_threadsafe(action)
        return Subscription(handle.cancel)

    def schedule_after(self, delay: float, action: Action) -> Subscription:
        holder: list[asyncio.TimerHandle] = []
        cancelled = threading.Event()

        def arm() -> None:
            if not cancelled.is_set():
                holder.append(self._loop.call_later(delay, action))

        self._loop.call_soon_threadsafe(arm)

        def cancel() -> None:
            cancelled.set()
            if holder:
                self._loop.call_soon_threadsafe(holder[0].cancel)

        return Subscription(cancel)


class ManualScheduler(Scheduler):
    """Virtual-time scheduler driven by explicit calls.

    Nothing runs until ``drain()`` or ``advance_by()`` is called, which
    makes asynchronous compositions deterministic.

    Example:
        scheduler = ManualScheduler()
        Signal.interval(3, scheduler).take(1).subscribe_next(print)
        scheduler.advance_by(3)  # prints the tick time
    """

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2000, 1, 1)
        self._queue: list[tuple[datetime, int, list[Action | None]]] = []
        self._counter = itertools.count()

    def now(self) -> datetime:
        return self._now

    @property
    def pending(self) -> int:
        """Number of actions waiting to run (cancelled ones excluded)."""
        return sum(1 for _, _, slot in self._queue if slot[0] is not None)

    def schedule(self, action: Action) -> Subscription:
        return self._enqueue(self._now, action)

    def schedule_after(self, delay: float, action: Action) -> Subscription:
        return self._enqueue(self._now + timedelta(seconds=max(delay, 0.0)), action)

    def _enqueue(self, due: datetime, action: Action) -> Subscription:
        slot: list[Action | None] = [action]
        heapq.heappush(self._queue, (due, next(self._counter), slot))

        def cancel() -> None:
            slot[0] = None

        return Subscription(cancel)

    def drain(self) -> int:
        """Run every action due at the current virtual time.

        Returns:
            Number of actions run
        """
        return self._run_until(self._now)

    def advance_by(self, seconds: float) -> int:
        """Move virtual time forward, running actions as they come due.

        Returns:
            Number of actions run
        """
        return self._run_until(self._now + timedelta(seconds=seconds))

    def _run_until(self, target: datetime) -> int:
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, slot = heapq.heappop(self._queue)
            action = slot[0]
            if action is None:
                continue
            self._now = max(self._now, due)
            action()
            ran += 1
        self._now = max(self._now, target)
        return ran


_main_scheduler: Scheduler = ImmediateScheduler()


def main_scheduler() -> Scheduler:
    """Get the designated main (UI-safe) scheduler."""
    return _main_scheduler


def set_main_scheduler(scheduler: Scheduler) -> None:
    """Install the main scheduler (the app does this on mount)."""
    global _main_scheduler
    logger.debug(f"Main scheduler set to {type(scheduler).__name__}")
    _main_scheduler = scheduler
