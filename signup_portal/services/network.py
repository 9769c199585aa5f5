"""Simulated sign-up submission.

There is no server: a submission waits ``network_delay`` seconds and then
reports a random success or failure.
"""

from __future__ import annotations

import logging
import random
from typing import Any

from .config import SignupConfig
from .reactive import Scheduler, Signal

logger = logging.getLogger(__name__)


class NetworkSimulator:
    """Produces delayed, randomly successful submission results.

    Example:
        network = NetworkSimulator(SignupConfig(network_delay=3))
        network.submit().subscribe_next(print)  # True or False, 3s later
    """

    def __init__(
        self,
        config: SignupConfig | None = None,
        scheduler: Scheduler | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._config = config or SignupConfig()
        self._scheduler = scheduler
        self._rng = rng or random.Random()

    def _roll(self) -> Signal[bool]:
        succeeded = self._rng.random() < self._config.success_rate
        logger.info(f"Simulated submission {'succeeded' if succeeded else 'failed'}")
        return Signal.return_(succeeded)

    def submit(self, sender: Any = None) -> Signal[bool]:
        """Wait for the configured delay, then send one random boolean."""
        delay = self._config.network_delay
        logger.debug(f"Submitting sign-up from {sender!r}, result in {delay}s")
        if delay > 0:
            ticks = Signal.interval(delay, self._scheduler).take(1)
        else:
            ticks = Signal.return_(None)
        return ticks.sequence_many(self._roll)
