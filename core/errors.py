"""Exception types raised by the gallery core and infrastructure."""

from __future__ import annotations


class VaultGalleryError(Exception):
    """Base class for recoverable gallery errors."""


class PhotoNotFoundError(VaultGalleryError, LookupError):
    """An operation referenced a photo id absent from the collection."""

    def __init__(self, photo_id: str) -> None:
        super().__init__(f"Photo not found: {photo_id}")
        self.photo_id = photo_id


class EditSessionClosedError(VaultGalleryError):
    """The edit session was already committed or discarded."""


class IngestionError(VaultGalleryError):
    """A selected file could not be turned into a displayable image."""
