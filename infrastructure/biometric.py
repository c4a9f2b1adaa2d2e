"""Simulated biometric sensor.

Stands in for a real fingerprint/face prompt: after a fixed delay it reports
success with a configurable probability. Scheduling is pluggable so the GUI
can deliver the verdict on its own thread.
"""

from __future__ import annotations

from collections.abc import Callable
import random
import threading

from loguru import logger

Scheduler = Callable[[float, Callable[[], None]], None]


def thread_scheduler(delay: float, callback: Callable[[], None]) -> None:
    """Run `callback` after `delay` seconds on a daemon timer thread."""
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()


class SimulatedBiometricService:
    """Biometric verdicts drawn at random after `delay_seconds`."""

    def __init__(
        self,
        delay_seconds: float = 1.5,
        success_rate: float = 0.9,
        scheduler: Scheduler = thread_scheduler,
        rng: random.Random | None = None,
    ) -> None:
        if not 0.0 <= success_rate <= 1.0:
            raise ValueError(f"success_rate must be within 0..1, got {success_rate}")
        self._delay = max(0.0, float(delay_seconds))
        self._success_rate = success_rate
        self._scheduler = scheduler
        self._rng = rng or random.Random()

    def attempt(self, on_result: Callable[[bool], None]) -> None:
        def _resolve() -> None:
            success = self._rng.random() < self._success_rate
            logger.debug("Simulated biometric verdict: {}", success)
            on_result(success)

        self._scheduler(self._delay, _resolve)
