"""Search, person filtering and day grouping for the photo grid.

Everything here is a pure function of its inputs. `ViewProjection` adds a
small memo so repeated renders with unchanged inputs reuse the last result.
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

from core.models import AccessMode, Person, Photo
from core.services.interfaces import PersonCount

TODAY_LABEL = "Today"
YESTERDAY_LABEL = "Yesterday"


@dataclass(frozen=True)
class DayGroup:
    """Photos sharing one calendar day, most recent first."""

    label: str
    day: date
    photos: tuple[Photo, ...]


@dataclass(frozen=True)
class Projection:
    """Display sequence plus its day grouping."""

    photos: tuple[Photo, ...]
    groups: tuple[DayGroup, ...]

    @property
    def is_empty(self) -> bool:
        return not self.photos


def filter_photos(
    photos: Iterable[Photo], search_text: str = "", person_id: str | None = None
) -> list[Photo]:
    """Keep photos whose title contains `search_text` and that show `person_id`.

    Matching is case-insensitive; untitled photos never match a non-empty search.
    """
    result = list(photos)
    if search_text:
        needle = search_text.casefold()
        result = [p for p in result if p.title and needle in p.title.casefold()]
    if person_id:
        result = [p for p in result if person_id in p.person_ids]
    return result


def sort_newest_first(photos: Iterable[Photo]) -> list[Photo]:
    """Sort by date descending; equal dates keep their incoming order."""
    return sorted(photos, key=lambda p: p.date, reverse=True)


def day_label(day: date, today: date) -> str:
    """Return `Today`, `Yesterday` or e.g. `Monday, October 19`."""
    if day == today:
        return TODAY_LABEL
    if day == today - timedelta(days=1):
        return YESTERDAY_LABEL
    return f"{day:%A}, {day:%B} {day.day}"


def group_by_day(photos: Sequence[Photo], today: date) -> list[DayGroup]:
    """Bucket already-sorted photos by calendar day, keeping first-seen order."""
    buckets: dict[date, list[Photo]] = {}
    for photo in photos:
        buckets.setdefault(photo.date.date(), []).append(photo)
    return [
        DayGroup(label=day_label(day, today), day=day, photos=tuple(items))
        for day, items in buckets.items()
    ]


def project(
    photos: Iterable[Photo],
    search_text: str = "",
    person_id: str | None = None,
    today: date | None = None,
) -> Projection:
    """Filter, sort and group `photos` for display."""
    ordered = sort_newest_first(filter_photos(photos, search_text, person_id))
    groups = group_by_day(ordered, today or date.today())
    return Projection(photos=tuple(ordered), groups=tuple(groups))


def people_summary(
    people: Iterable[Person], accessible: Sequence[Photo], mode: AccessMode
) -> list[PersonCount]:
    """Count accessible photos per person.

    In public mode people without any photo are left out; the vault lists everyone.
    """
    result: list[PersonCount] = []
    for person in people:
        count = sum(1 for p in accessible if person.id in p.person_ids)
        if count == 0 and mode is not AccessMode.VAULT:
            continue
        result.append(PersonCount(person=person, count=count))
    return result


class ViewProjection:
    """Memoizing front for `project`.

    The cache key uses the identity of the source sequence (or an explicit
    `source_key` such as the engine revision) together with the query and the
    current day, since the Today/Yesterday labels roll over at midnight.
    """

    def __init__(self, capacity: int = 8, today: Callable[[], date] = date.today) -> None:
        self._cap = max(1, int(capacity))
        self._today = today
        self._data: OrderedDict[tuple[Any, ...], tuple[object, Projection]] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def project(
        self,
        photos: Sequence[Photo],
        search_text: str = "",
        person_id: str | None = None,
        source_key: object | None = None,
    ) -> Projection:
        today = self._today()
        source = source_key if source_key is not None else id(photos)
        key = (source, search_text, person_id, today)
        cached = self._data.get(key)
        # Holding the source object keeps its id from being reused while cached.
        if cached is not None and (source_key is not None or cached[0] is photos):
            self._data.move_to_end(key)
            self.hits += 1
            return cached[1]
        self.misses += 1
        result = project(photos, search_text, person_id, today)
        self._data[key] = (photos, result)
        while len(self._data) > self._cap:
            self._data.popitem(last=False)
        return result
