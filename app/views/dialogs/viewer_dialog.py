from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtGui import QImage, QPixmap
from PySide6.QtWidgets import (
    QDialog,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QMessageBox,
    QPushButton,
    QSlider,
    QVBoxLayout,
    QWidget,
)
from loguru import logger

from app.viewmodels.gallery_vm import GalleryVM
from app.viewmodels.photo_vm import PhotoVM
from core.errors import VaultGalleryError
from core.models import CHANNEL_RANGES, FilterAdjustment
from infrastructure.image_service import ImageService, to_png_bytes

_CHANNEL_LABELS = {
    "brightness": "Brightness",
    "contrast": "Contrast",
    "saturation": "Saturation",
    "sepia": "Sepia",
    "grayscale": "Grayscale",
}


class PhotoViewerDialog(QDialog):
    """Full-size viewer with vault toggle, delete and the adjustment editor."""

    def __init__(self, vm: GalleryVM, image_service: ImageService, people=(), parent=None) -> None:
        super().__init__(parent)
        self._vm = vm
        self._img = image_service
        self._people = list(people)
        self.setWindowTitle("Photo")
        self.resize(900, 700)

        root = QVBoxLayout(self)
        bar = QHBoxLayout()
        self._btn_vault = QPushButton()
        self._btn_vault.clicked.connect(self._toggle_privacy)
        self._btn_edit = QPushButton("Edit")
        self._btn_edit.clicked.connect(self._begin_edit)
        btn_delete = QPushButton("Delete")
        btn_delete.clicked.connect(self._delete)
        bar.addWidget(self._btn_vault)
        bar.addWidget(self._btn_edit)
        bar.addStretch(1)
        bar.addWidget(btn_delete)
        root.addLayout(bar)

        self._image = QLabel()
        self._image.setAlignment(Qt.AlignCenter)
        self._image.setMinimumSize(400, 300)
        root.addWidget(self._image, 1)
        self._info = QLabel()
        root.addWidget(self._info)

        self._editor = QWidget()
        form = QFormLayout(self._editor)
        self._sliders: dict[str, QSlider] = {}
        for channel, (low, high) in CHANNEL_RANGES.items():
            slider = QSlider(Qt.Horizontal)
            slider.setRange(int(low), int(high))
            slider.valueChanged.connect(lambda v, c=channel: self._on_slider(c, v))
            form.addRow(_CHANNEL_LABELS[channel], slider)
            self._sliders[channel] = slider
        edit_bar = QHBoxLayout()
        btn_reset = QPushButton("Reset")
        btn_reset.clicked.connect(self._reset)
        btn_cancel = QPushButton("Cancel")
        btn_cancel.clicked.connect(self._cancel_edit)
        btn_save = QPushButton("Save")
        btn_save.clicked.connect(self._save_edit)
        edit_bar.addWidget(btn_reset)
        edit_bar.addStretch(1)
        edit_bar.addWidget(btn_cancel)
        edit_bar.addWidget(btn_save)
        form.addRow(edit_bar)
        root.addWidget(self._editor)

        self.finished.connect(lambda _: self._vm.close_photo())
        self._refresh()

    def _refresh(self) -> None:
        photo = self._vm.selected_photo
        if photo is None:
            # Photo left the current partition or was deleted.
            self.accept()
            return
        session = self._vm.edit_session
        editing = session is not None and session.is_open
        adjustment = session.filters if editing else photo.filters
        self._btn_vault.setText("Remove from Vault" if photo.is_private else "Move to Vault")
        self._btn_edit.setEnabled(not editing)
        self._editor.setVisible(editing)
        if editing:
            self._sync_sliders(session.filters)
        pvm = PhotoVM(photo)
        names = ", ".join(pvm.people_names(self._people)) or "-"
        self._info.setText(f"{pvm.title} | {pvm.taken_at} | {pvm.storage_label} | People: {names}")
        self._render_image(photo.url, adjustment)

    def _render_image(self, url: str, adjustment: FilterAdjustment | None) -> None:
        try:
            image = self._img.get_preview(url, adjustment)
        except VaultGalleryError as ex:
            logger.warning("Preview unavailable: {}", ex)
            self._image.setText("Preview unavailable")
            return
        qimg = QImage.fromData(to_png_bytes(image))
        pix = QPixmap.fromImage(qimg).scaled(
            self._image.size(), Qt.KeepAspectRatio, Qt.SmoothTransformation
        )
        self._image.setPixmap(pix)

    def _sync_sliders(self, adjustment: FilterAdjustment) -> None:
        for channel, slider in self._sliders.items():
            slider.blockSignals(True)
            slider.setValue(int(getattr(adjustment, channel)))
            slider.blockSignals(False)

    def _toggle_privacy(self) -> None:
        photo = self._vm.selected_photo
        if photo is None:
            return
        try:
            self._vm.toggle_privacy(photo.id)
        except VaultGalleryError as ex:
            QMessageBox.warning(self, "Vault", str(ex))
        self._refresh()

    def _delete(self) -> None:
        photo = self._vm.selected_photo
        if photo is None:
            return
        answer = QMessageBox.question(
            self, "Delete Photo", "Delete this photo permanently? This cannot be undone."
        )
        if answer != QMessageBox.Yes:
            return
        try:
            self._vm.delete_photo(photo.id)
        except VaultGalleryError as ex:
            QMessageBox.warning(self, "Delete", str(ex))
        self._refresh()

    def _begin_edit(self) -> None:
        self._vm.begin_edit()
        self._refresh()

    def _on_slider(self, channel: str, value: int) -> None:
        session = self._vm.edit_session
        if session is None or not session.is_open:
            return
        session.set(channel, value)
        self._render_image(self._vm.selected_photo.url, session.filters)

    def _reset(self) -> None:
        session = self._vm.edit_session
        if session is not None and session.is_open:
            session.reset()
        self._refresh()

    def _save_edit(self) -> None:
        try:
            self._vm.save_edit()
        except VaultGalleryError as ex:
            QMessageBox.warning(self, "Edit", str(ex))
        self._refresh()

    def _confirm_discard(self) -> bool:
        if not self._vm.has_unsaved_edit:
            return True
        answer = QMessageBox.question(
            self, "Discard Changes", "Discard the unsaved adjustments to this photo?"
        )
        return answer == QMessageBox.Yes

    def _cancel_edit(self) -> None:
        if not self._confirm_discard():
            return
        self._vm.cancel_edit()
        self._refresh()

    def reject(self) -> None:
        if self._vm.selected_photo is not None and not self._confirm_discard():
            return
        super().reject()
