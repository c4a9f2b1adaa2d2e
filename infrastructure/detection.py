"""Simulated face detection over the configured people list."""

from __future__ import annotations

from collections.abc import Sequence
import random

from core.models import Person


class SimulatedDetectionService:
    """Tags a new photo with zero to `max_people` randomly chosen known people."""

    def __init__(
        self, people: Sequence[Person], max_people: int = 2, rng: random.Random | None = None
    ) -> None:
        self._people = list(people)
        self._max_people = max(0, int(max_people))
        self._rng = rng or random.Random()

    def detect(self, url: str) -> list[str]:  # pylint: disable=unused-argument
        limit = min(self._max_people, len(self._people))
        count = self._rng.randint(0, limit) if limit else 0
        return [p.id for p in self._rng.sample(self._people, count)]
