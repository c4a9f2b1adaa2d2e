from __future__ import annotations

import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication
from loguru import logger

from app.viewmodels.gallery_vm import GalleryVM
from app.views.image_tasks import qt_scheduler
from app.views.main_window import MainWindow
from core.models import Person
from core.services.auth_service import VaultAuthenticator
from core.services.partition_service import PhotoPartitionEngine
from infrastructure.biometric import SimulatedBiometricService
from infrastructure.detection import SimulatedDetectionService
from infrastructure.image_service import ImageService
from infrastructure.logging import init_logging
from infrastructure.pin_store import JsonFileStore, VaultPinStore
from infrastructure.settings import APP_DATA_DIR, JsonSettings, apply_locale

BASE_DIR = Path(__file__).parent


def _parse_people(settings: JsonSettings) -> list[Person]:
    # Expect a list like: [{"id":"p1","name":"Me","face_url":"..."}, ...]
    raw = settings.get("people", [])
    result: list[Person] = []
    if isinstance(raw, list):
        for item in raw:
            if isinstance(item, dict) and "id" in item:
                result.append(
                    Person(
                        id=str(item["id"]),
                        name=str(item.get("name", item["id"])),
                        face_url=str(item.get("face_url", "")),
                    )
                )
    return result


def _load_settings() -> JsonSettings:
    path = BASE_DIR / "settings.json"
    if path.exists():
        return JsonSettings(path)
    return JsonSettings.defaults()


def main() -> int:
    settings = _load_settings()
    log_dir = settings.get("logging.dir")
    log_path = init_logging(
        settings.get_path("logging.dir", "") if log_dir else None,
        level=str(settings.get("logging.level", "INFO")),
    )
    logger.info("VaultGallery starting, logging to {}", log_path)
    apply_locale(str(settings.get("display.locale", "") or ""))

    app = QApplication(sys.argv)

    people = _parse_people(settings)
    detector = None
    if settings.get("detection.enabled", True):
        detector = SimulatedDetectionService(people, settings.get_int("detection.max_people", 2))
    engine = PhotoPartitionEngine(detector=detector)

    pin_store = VaultPinStore(
        JsonFileStore(settings.get_path("pin.store_path", APP_DATA_DIR / "vault.json")),
        hashed=bool(settings.get("pin.hash", True)),
        iterations=settings.get_int("pin.hash_iterations", 200_000),
    )
    biometric = None
    if settings.get("biometric.enabled", True):
        biometric = SimulatedBiometricService(
            delay_seconds=settings.get_float("biometric.delay_seconds", 1.5),
            success_rate=settings.get_float("biometric.success_rate", 0.9),
            scheduler=qt_scheduler,
        )
    auth = VaultAuthenticator(
        pin_store, biometric=biometric, pin_length=settings.get_int("pin.length", 4)
    )

    vm = GalleryVM(engine, auth, people=people)
    img = ImageService(settings)
    win = MainWindow(vm=vm, image_service=img, people=people)
    win.statusBar().showMessage("Ready", 2000)
    win.show()

    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
