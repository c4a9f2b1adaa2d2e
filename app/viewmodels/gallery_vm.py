"""ViewModel orchestrating vault access, browsing state and photo actions."""

from __future__ import annotations

from collections.abc import Callable, Sequence

from loguru import logger

from core.errors import PhotoNotFoundError
from core.models import AccessMode, Person, Photo, filter_descriptor
from core.services.auth_service import VaultAuthenticator
from core.services.edit_session import EditSession
from core.services.interfaces import AuthSnapshot, PersonCount
from core.services.partition_service import PhotoPartitionEngine
from core.services.projection_service import Projection, ViewProjection, people_summary


class GalleryVM:
    """Main application view-model.

    Holds the presentation state the core does not own: the current access
    mode, the search query, the person filter, the photo open in the viewer,
    whether the lock screen is showing, and the active edit session.
    """

    def __init__(
        self,
        engine: PhotoPartitionEngine,
        auth: VaultAuthenticator,
        people: Sequence[Person] = (),
        projection: ViewProjection | None = None,
    ) -> None:
        """Create a GalleryVM.

        Args:
            engine: Owner of the photo collection.
            auth: Vault authentication state machine.
            people: Known people used for the person filter.
            projection: Memoizing projection (a fresh one by default).
        """
        self._engine = engine
        self._auth = auth
        self._people = list(people)
        self._projection = projection or ViewProjection()
        self._listeners: list[Callable[[], None]] = []
        self._edit: EditSession | None = None

        self.mode = AccessMode.PUBLIC
        self.search_text = ""
        self.person_filter: str | None = None
        self.selected_photo_id: str | None = None
        self.lock_screen_visible = False

        self._auth.add_listener(self._on_auth_changed)

    # Change notification
    def add_listener(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener()

    # Vault access
    @property
    def auth(self) -> VaultAuthenticator:
        return self._auth

    @property
    def in_vault(self) -> bool:
        return self.mode is AccessMode.VAULT

    def toggle_vault(self) -> None:
        """Leave the vault (locking it) or request entry, showing the lock screen if needed."""
        if self.in_vault:
            self._set_mode(AccessMode.PUBLIC)
            self._auth.lock()
        elif self._auth.snapshot().is_unlocked:
            self._set_mode(AccessMode.VAULT)
        else:
            self.lock_screen_visible = True
            logger.info("Vault access requested; showing lock screen")
        self._changed()

    def close_lock_screen(self) -> None:
        """Dismiss the lock screen and return to the public gallery."""
        if not self.lock_screen_visible:
            return
        self.lock_screen_visible = False
        self._auth.cancel()
        self._changed()

    def _on_auth_changed(self, snap: AuthSnapshot) -> None:
        if snap.is_unlocked and self.lock_screen_visible:
            self.lock_screen_visible = False
            self._set_mode(AccessMode.VAULT)
        self._changed()

    def _set_mode(self, mode: AccessMode) -> None:
        if mode is self.mode:
            return
        logger.info("Switching view mode {} -> {}", self.mode.value, mode.value)
        self.mode = mode
        self.person_filter = None
        self._close_viewer()

    # Browsing
    def accessible_photos(self) -> tuple[Photo, ...]:
        return self._engine.accessible_set(self.mode)

    def projection(self) -> Projection:
        return self._projection.project(
            self.accessible_photos(),
            self.search_text,
            self.person_filter,
            source_key=(self._engine.revision, self.mode),
        )

    def people(self) -> list[PersonCount]:
        return people_summary(self._people, self.accessible_photos(), self.mode)

    def set_search_text(self, text: str) -> None:
        self.search_text = text
        self._changed()

    def set_person_filter(self, person_id: str | None) -> None:
        self.person_filter = person_id or None
        self._changed()

    @staticmethod
    def filter_string(photo: Photo) -> str:
        return filter_descriptor(photo.filters)

    # Photos
    def add_photo(self, url: str, title: str | None = None) -> Photo:
        photo = self._engine.add_photo(url, title)
        logger.info("Added photo {} ({} people detected)", photo.id, len(photo.person_ids))
        self._changed()
        return photo

    @property
    def selected_photo(self) -> Photo | None:
        if self.selected_photo_id is None or self.selected_photo_id not in self._engine:
            return None
        return self._engine.get(self.selected_photo_id)

    def open_photo(self, photo_id: str) -> Photo:
        photo = self._engine.get(photo_id)
        if not photo.visible_in(self.mode):
            raise PhotoNotFoundError(photo_id)
        self.selected_photo_id = photo_id
        self._changed()
        return photo

    def close_photo(self) -> None:
        self._close_viewer()
        self._changed()

    def toggle_privacy(self, photo_id: str) -> Photo:
        """Move a photo between partitions; the viewer closes if it left this one."""
        try:
            photo = self._engine.toggle_privacy(photo_id)
        except PhotoNotFoundError:
            logger.warning("Toggle privacy: photo {} not found", photo_id)
            raise
        logger.info("Photo {} moved to {}", photo_id, "vault" if photo.is_private else "public")
        if photo_id == self.selected_photo_id and not photo.visible_in(self.mode):
            self._close_viewer()
        self._changed()
        return photo

    def rename_photo(self, photo_id: str, title: str | None) -> Photo:
        photo = self._engine.rename_photo(photo_id, title)
        self._changed()
        return photo

    def delete_photo(self, photo_id: str) -> None:
        try:
            self._engine.delete_photo(photo_id)
        except PhotoNotFoundError:
            logger.warning("Delete: photo {} not found", photo_id)
            raise
        logger.info("Deleted photo {}", photo_id)
        if photo_id == self.selected_photo_id:
            self._close_viewer()
        self._changed()

    def _close_viewer(self) -> None:
        self.selected_photo_id = None
        if self._edit is not None and self._edit.is_open:
            self._edit.discard()
        self._edit = None

    # Editing
    @property
    def edit_session(self) -> EditSession | None:
        return self._edit

    @property
    def has_unsaved_edit(self) -> bool:
        """True while an open edit session holds changes not yet saved."""
        return self._edit is not None and self._edit.is_open and self._edit.is_dirty

    def begin_edit(self) -> EditSession:
        """Start (or resume) editing the photo open in the viewer."""
        if self.selected_photo_id is None:
            raise PhotoNotFoundError("<no photo open>")
        if self._edit is None or not self._edit.is_open:
            self._edit = EditSession(self._engine, self.selected_photo_id)
        self._changed()
        return self._edit

    def save_edit(self) -> Photo | None:
        if self._edit is None:
            return None
        photo = self._edit.commit()
        self._edit = None
        logger.info("Saved adjustments for photo {}", photo.id)
        self._changed()
        return photo

    def cancel_edit(self) -> None:
        if self._edit is None:
            return
        if self._edit.is_open:
            self._edit.discard()
        self._edit = None
        self._changed()
