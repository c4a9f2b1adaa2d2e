"""Lightweight view model wrapper around `Photo`."""

from __future__ import annotations

from dataclasses import dataclass

from core.models import Person, Photo, filter_descriptor


@dataclass
class PhotoVM:
    """Expose convenient properties for bindings/templates."""

    photo: Photo

    @property
    def title(self) -> str:
        """Display title (fallback to a generic label)."""
        return self.photo.title or "Photo"

    @property
    def is_private(self) -> bool:
        return self.photo.is_private

    @property
    def filter_string(self) -> str:
        """CSS-style filter descriptor for the renderer."""
        return filter_descriptor(self.photo.filters)

    @property
    def storage_label(self) -> str:
        """Where the photo appears to live, as shown in the info panel."""
        return "/Internal Storage/Vault" if self.photo.is_private else "/Internal Storage/DCIM/Camera"

    @property
    def taken_at(self) -> str:
        return self.photo.date.strftime("%Y-%m-%d %H:%M")

    def people_names(self, people: list[Person]) -> list[str]:
        """Names of the known people tagged in the photo, in tag order."""
        by_id = {p.id: p.name for p in people}
        return [by_id[pid] for pid in self.photo.person_ids if pid in by_id]
