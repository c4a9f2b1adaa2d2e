"""Main gallery window: day-grouped photo tree, search, people and vault toggle."""

from __future__ import annotations

from pathlib import Path

from PySide6.QtCore import QSize, Qt, Signal
from PySide6.QtGui import QIcon, QImage, QPixmap
from PySide6.QtWidgets import (
    QComboBox,
    QFileDialog,
    QHBoxLayout,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QTreeWidget,
    QTreeWidgetItem,
    QVBoxLayout,
    QWidget,
)
from app.viewmodels.gallery_vm import GalleryVM
from app.viewmodels.photo_vm import PhotoVM
from app.views.dialogs.lock_dialog import LockDialog
from app.views.dialogs.viewer_dialog import PhotoViewerDialog
from app.views.image_tasks import ImageTaskRunner, thumbnail_token
from core.errors import VaultGalleryError
from core.models import Photo
from core.services.projection_service import Projection
from infrastructure.image_service import ImageService
from infrastructure.logging import open_latest_log

PHOTO_ID_ROLE: int = Qt.UserRole


class MainWindow(QMainWindow):
    """Top-level window; every action goes through the `GalleryVM`."""

    # path, data-uri, error message
    photoIngested = Signal(str, str, str)
    # token, QImage or None
    thumbnailLoaded = Signal(str, object)

    def __init__(self, vm: GalleryVM, image_service: ImageService, people=()) -> None:
        super().__init__()
        self._vm = vm
        self._img = image_service
        self._people = list(people)
        self._tasks = ImageTaskRunner(service=image_service, receiver=self)
        self._lock_dialog: LockDialog | None = None
        self._shown: Projection | None = None
        self._items: dict[str, list[QTreeWidgetItem]] = {}
        self._icons: dict[str, QIcon] = {}
        self._pending: set[str] = set()

        self._setup_ui()
        self.photoIngested.connect(self._on_photo_ingested)
        self.thumbnailLoaded.connect(self._on_thumbnail_loaded)
        self._vm.add_listener(self.refresh)
        self.resize(1000, 760)
        self.refresh()

    def _setup_ui(self) -> None:
        central = QWidget()
        root = QVBoxLayout(central)

        bar = QHBoxLayout()
        self.search_edit = QLineEdit()
        self.search_edit.setPlaceholderText("Search photos...")
        self.search_edit.textChanged.connect(self._vm.set_search_text)
        self.person_combo = QComboBox()
        self.person_combo.currentIndexChanged.connect(self._on_person_changed)
        self.btn_add = QPushButton("Add Photo")
        self.btn_add.clicked.connect(self._pick_file)
        self.btn_vault = QPushButton()
        self.btn_vault.clicked.connect(self._vm.toggle_vault)
        bar.addWidget(self.search_edit, 1)
        bar.addWidget(self.person_combo)
        bar.addWidget(self.btn_add)
        bar.addWidget(self.btn_vault)
        root.addLayout(bar)

        self.tree = QTreeWidget()
        self.tree.setHeaderHidden(True)
        self.tree.setIconSize(QSize(96, 96))
        self.tree.itemActivated.connect(self._on_item_activated)
        root.addWidget(self.tree, 1)
        self.setCentralWidget(central)

        help_menu = self.menuBar().addMenu("Help")
        help_menu.addAction("Open Latest Log", self._open_latest_log)

    # Rendering
    def refresh(self) -> None:
        in_vault = self._vm.in_vault
        self.setWindowTitle("Private Vault" if in_vault else "VaultGallery")
        self.btn_vault.setText("Lock Vault" if in_vault else "Open Vault")
        self._refresh_people()
        self._refresh_tree()
        if self._vm.lock_screen_visible and self._lock_dialog is None:
            self._show_lock_dialog()

    def _refresh_people(self) -> None:
        combo = self.person_combo
        combo.blockSignals(True)
        combo.clear()
        combo.addItem("Everyone", None)
        for entry in self._vm.people():
            combo.addItem(f"{entry.person.name} ({entry.count})", entry.person.id)
        idx = combo.findData(self._vm.person_filter)
        combo.setCurrentIndex(max(idx, 0))
        combo.blockSignals(False)

    def _refresh_tree(self) -> None:
        projection = self._vm.projection()
        if projection is self._shown:
            return
        self._shown = projection
        self.tree.clear()
        self._items.clear()
        if projection.is_empty:
            placeholder = QTreeWidgetItem(["No photos found"])
            placeholder.setFlags(Qt.NoItemFlags)
            self.tree.addTopLevelItem(placeholder)
            return
        for group in projection.groups:
            header = QTreeWidgetItem([group.label])
            header.setFlags(Qt.ItemIsEnabled)
            self.tree.addTopLevelItem(header)
            for photo in group.photos:
                header.addChild(self._make_item(photo))
            header.setExpanded(True)
        # Icons of photos no longer listed are rendered again on demand.
        for token in set(self._icons) - set(self._items):
            del self._icons[token]

    def _make_item(self, photo: Photo) -> QTreeWidgetItem:
        pvm = PhotoVM(photo)
        label = f"{pvm.title}  (locked)" if pvm.is_private else pvm.title
        item = QTreeWidgetItem([label])
        item.setData(0, PHOTO_ID_ROLE, photo.id)
        token = thumbnail_token(photo)
        self._items.setdefault(token, []).append(item)
        icon = self._icons.get(token)
        if icon is not None:
            item.setIcon(0, icon)
        elif token not in self._pending:
            self._pending.add(token)
            self._tasks.request_thumbnail(photo)
        return item

    def _on_thumbnail_loaded(self, token: str, image: QImage | None) -> None:
        self._pending.discard(token)
        if image is None or image.isNull():
            return
        icon = QIcon(QPixmap.fromImage(image))
        self._icons[token] = icon
        for item in self._items.get(token, ()):
            item.setIcon(0, icon)

    # Actions
    def _on_person_changed(self, index: int) -> None:
        self._vm.set_person_filter(self.person_combo.itemData(index))

    def _on_item_activated(self, item: QTreeWidgetItem, _column: int) -> None:
        photo_id = item.data(0, PHOTO_ID_ROLE)
        if not photo_id:
            return
        try:
            self._vm.open_photo(photo_id)
        except VaultGalleryError as ex:
            QMessageBox.warning(self, "Photo", str(ex))
            return
        PhotoViewerDialog(self._vm, self._img, self._people, parent=self).exec()

    def _show_lock_dialog(self) -> None:
        self._lock_dialog = LockDialog(self._vm.auth, parent=self)
        try:
            if not self._lock_dialog.exec():
                self._vm.close_lock_screen()
        finally:
            self._lock_dialog = None

    def _open_latest_log(self) -> None:
        if not open_latest_log():
            self.statusBar().showMessage("No log file to open", 3000)

    def _pick_file(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, "Add Photo", "", "Images (*.png *.jpg *.jpeg *.gif *.bmp *.webp)"
        )
        if path:
            self.statusBar().showMessage(f"Importing {Path(path).name}...")
            self._tasks.request_ingest(path)

    def _on_photo_ingested(self, path: str, url: str, error: str) -> None:
        if error:
            self.statusBar().showMessage(error, 4000)
            return
        self._vm.add_photo(url, title=Path(path).name)
        self.statusBar().showMessage("Photo added", 2000)
