"""Transient, all-or-nothing filter editing for a single photo."""

from __future__ import annotations

from dataclasses import replace

from core.errors import EditSessionClosedError
from core.models import CHANNEL_RANGES, FilterAdjustment, Photo
from core.services.partition_service import PhotoPartitionEngine


class EditSession:
    """Buffer of in-progress adjustments for one photo.

    Slider changes only touch the buffer. `commit` writes it to the engine in
    one call, `discard` drops it; either way the session is then closed.
    """

    def __init__(self, engine: PhotoPartitionEngine, photo_id: str) -> None:
        photo = engine.get(photo_id)
        self._engine = engine
        self._photo_id = photo_id
        self._original = photo.filters
        self._buffer = photo.effective_filters
        self._open = True

    @property
    def photo_id(self) -> str:
        return self._photo_id

    @property
    def filters(self) -> FilterAdjustment:
        return self._buffer

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def is_dirty(self) -> bool:
        """True when committing would change the stored adjustment."""
        return self._buffer != (self._original or FilterAdjustment())

    def set(self, channel: str, value: float) -> FilterAdjustment:
        """Set one channel, clamped to its slider range."""
        self._ensure_open()
        if channel not in CHANNEL_RANGES:
            raise ValueError(f"Unknown filter channel: {channel}")
        low, high = CHANNEL_RANGES[channel]
        self._buffer = replace(self._buffer, **{channel: min(max(value, low), high)})
        return self._buffer

    def reset(self) -> FilterAdjustment:
        """Return every channel to its default, not to the last saved state."""
        self._ensure_open()
        self._buffer = FilterAdjustment()
        return self._buffer

    def commit(self) -> Photo:
        self._ensure_open()
        photo = self._engine.update_filters(self._photo_id, self._buffer)
        self._open = False
        return photo

    def discard(self) -> None:
        self._ensure_open()
        self._open = False

    def _ensure_open(self) -> None:
        if not self._open:
            raise EditSessionClosedError(f"Edit session for {self._photo_id} is closed")
