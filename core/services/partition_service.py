"""Photo collection owner that enforces the public/vault partition.

Every photo is in exactly one partition: `is_private` is the only membership
flag, and mutations swap whole immutable snapshots under a single-writer
lock, so no reader can see a photo in both partitions or in neither.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace
from datetime import datetime
import secrets
import threading

from core.errors import PhotoNotFoundError
from core.models import AccessMode, FilterAdjustment, Photo
from core.services.interfaces import DetectionService


def _new_photo_id() -> str:
    return secrets.token_hex(5)


class PhotoPartitionEngine:
    """Owns the photo collection and the operations that mutate it."""

    def __init__(
        self,
        photos: Iterable[Photo] | None = None,
        detector: DetectionService | None = None,
        id_factory: Callable[[], str] = _new_photo_id,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._lock = threading.RLock()
        # dict keeps insertion order, which is the storage order callers see.
        self._photos: dict[str, Photo] = {}
        for photo in photos or ():
            if photo.id in self._photos:
                raise ValueError(f"Duplicate photo id: {photo.id}")
            self._photos[photo.id] = photo
        self._detector = detector
        self._id_factory = id_factory
        self._clock = clock
        self._revision = 0

    @property
    def revision(self) -> int:
        """Counter increased by every successful mutation."""
        return self._revision

    @property
    def photos(self) -> tuple[Photo, ...]:
        with self._lock:
            return tuple(self._photos.values())

    def __len__(self) -> int:
        return len(self._photos)

    def __contains__(self, photo_id: object) -> bool:
        return photo_id in self._photos

    def get(self, photo_id: str) -> Photo:
        with self._lock:
            try:
                return self._photos[photo_id]
            except KeyError:
                raise PhotoNotFoundError(photo_id) from None

    def add_photo(
        self,
        url: str,
        title: str | None = None,
        person_ids: Sequence[str] | None = None,
        date: datetime | None = None,
    ) -> Photo:
        """Insert a new public photo.

        When `person_ids` is None the configured detector, if any, supplies them.
        """
        if person_ids is None:
            person_ids = self._detector.detect(url) if self._detector is not None else ()
        with self._lock:
            photo_id = self._id_factory()
            while photo_id in self._photos:
                photo_id = self._id_factory()
            photo = Photo(
                id=photo_id,
                url=url,
                date=date or self._clock(),
                is_private=False,
                title=title,
                filters=None,
                person_ids=tuple(person_ids),
            )
            self._photos[photo_id] = photo
            self._revision += 1
            return photo

    def toggle_privacy(self, photo_id: str) -> Photo:
        """Move the photo to the other partition and return the new snapshot."""
        with self._lock:
            photo = self.get(photo_id)
            return self._store(replace(photo, is_private=not photo.is_private))

    def update_filters(self, photo_id: str, adjustment: FilterAdjustment | None) -> Photo:
        """Replace the stored adjustment wholesale; None clears it."""
        with self._lock:
            photo = self.get(photo_id)
            return self._store(replace(photo, filters=adjustment))

    def rename_photo(self, photo_id: str, title: str | None) -> Photo:
        with self._lock:
            photo = self.get(photo_id)
            return self._store(replace(photo, title=title or None))

    def delete_photo(self, photo_id: str) -> None:
        """Remove the photo permanently."""
        with self._lock:
            if photo_id not in self._photos:
                raise PhotoNotFoundError(photo_id)
            del self._photos[photo_id]
            self._revision += 1

    def accessible_set(self, mode: AccessMode) -> tuple[Photo, ...]:
        """Photos visible under `mode`, in storage order."""
        with self._lock:
            return tuple(p for p in self._photos.values() if p.visible_in(mode))

    def _store(self, photo: Photo) -> Photo:
        self._photos[photo.id] = photo
        self._revision += 1
        return photo
