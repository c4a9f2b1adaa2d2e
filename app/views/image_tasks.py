from __future__ import annotations

from collections.abc import Callable

from PySide6.QtCore import QObject, QRunnable, QThreadPool, QTimer
from PySide6.QtGui import QImage
from loguru import logger

from core.errors import IngestionError, VaultGalleryError
from core.models import Photo, filter_descriptor
from infrastructure.image_service import ImageService, to_png_bytes


def thumbnail_token(photo: Photo) -> str:
    """Token identifying one rendering of a photo's thumbnail.

    A photo's url never changes, so the id and the applied filters are enough.
    """
    return f"thumb|{photo.id}|{filter_descriptor(photo.filters)}"


class _IngestTask(QRunnable):
    """QRunnable that turns a picked file into a data URI off the GUI thread.

    Emits `receiver.photoIngested(path, url, error)` upon completion. Exactly
    one of `url` and `error` is non-empty. The receiver is expected to own a
    Qt `Signal(str, str, str)` named `photoIngested`.
    """

    def __init__(self, *, path: str, service: ImageService, receiver: QObject) -> None:
        super().__init__()
        self._path = path
        self._service = service
        self._receiver = receiver

    def run(self) -> None:  # type: ignore[override]
        url = ""
        error = ""
        try:
            url = self._service.ingest(self._path)
        except IngestionError as ex:
            logger.warning("Ingestion failed for {}: {}", self._path, ex)
            error = str(ex)
        self._receiver.photoIngested.emit(self._path, url, error)  # type: ignore[attr-defined]


class _ThumbnailTask(QRunnable):
    """QRunnable that decodes and adjusts one thumbnail off the GUI thread.

    Emits `receiver.thumbnailLoaded(token, image)` where `image` is a QImage,
    or None when the url cannot be rendered. The receiver is expected to own
    a Qt `Signal(str, object)` named `thumbnailLoaded`.
    """

    def __init__(
        self, *, token: str, photo: Photo, service: ImageService, receiver: QObject
    ) -> None:
        super().__init__()
        self._token = token
        self._photo = photo
        self._service = service
        self._receiver = receiver

    def run(self) -> None:  # type: ignore[override]
        image = None
        try:
            thumb = self._service.get_thumbnail(self._photo.url, self._photo.filters)
            image = QImage.fromData(to_png_bytes(thumb))
        except VaultGalleryError as ex:
            logger.debug("Thumbnail unavailable for {}: {}", self._photo.id, ex)
        self._receiver.thumbnailLoaded.emit(self._token, image)  # type: ignore[attr-defined]


class ImageTaskRunner:
    """Dispatches ingestion and thumbnail tasks to the global thread pool."""

    def __init__(self, *, service: ImageService, receiver: QObject) -> None:
        self._service = service
        self._receiver = receiver
        self._pool = QThreadPool.globalInstance()

    def request_ingest(self, path: str) -> None:
        self._pool.start(_IngestTask(path=path, service=self._service, receiver=self._receiver))

    def request_thumbnail(self, photo: Photo) -> str:
        """Request the adjusted thumbnail of `photo`. Returns the token."""
        token = thumbnail_token(photo)
        task = _ThumbnailTask(
            token=token, photo=photo, service=self._service, receiver=self._receiver
        )
        self._pool.start(task)
        return token


def qt_scheduler(delay: float, callback: Callable[[], None]) -> None:
    """Scheduler for the biometric simulator that fires on the GUI thread."""
    QTimer.singleShot(int(delay * 1000), callback)
