from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QDialog,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QVBoxLayout,
)

from core.models import AuthError, PinStep
from core.services.auth_service import VaultAuthenticator
from core.services.interfaces import AuthSnapshot

_TITLES = {
    PinStep.CREATE: "Set Vault PIN",
    PinStep.CONFIRM: "Confirm Vault PIN",
    PinStep.ENTER: "Vault Locked",
}

_SUBTITLES = {
    PinStep.CREATE: "Create a 4-digit PIN for security",
    PinStep.CONFIRM: "Re-enter your PIN to confirm",
    PinStep.ENTER: "Enter PIN or use Biometrics",
}

_ERRORS = {
    AuthError.WRONG_PIN: "Wrong PIN. Try again.",
    AuthError.PIN_MISMATCH: "PINs do not match.",
    AuthError.BIOMETRIC_FAILURE: "Biometric check failed. Try again.",
}


class LockDialog(QDialog):
    """Numeric keypad bound to a `VaultAuthenticator`.

    The dialog only forwards key presses and renders snapshots; it accepts
    itself once the authenticator reports the vault unlocked.
    """

    def __init__(self, auth: VaultAuthenticator, parent=None) -> None:
        super().__init__(parent)
        self._auth = auth
        self.setWindowTitle("Vault")
        self.setModal(True)

        root = QVBoxLayout(self)
        self._title = QLabel()
        self._title.setAlignment(Qt.AlignCenter)
        self._title.setStyleSheet("font-size: 18px; font-weight: bold;")
        self._subtitle = QLabel()
        self._subtitle.setAlignment(Qt.AlignCenter)
        root.addWidget(self._title)
        root.addWidget(self._subtitle)

        dots = QHBoxLayout()
        self._dots: list[QLabel] = []
        for _ in range(auth.pin_length):
            dot = QLabel("○")
            dot.setAlignment(Qt.AlignCenter)
            dots.addWidget(dot)
            self._dots.append(dot)
        root.addLayout(dots)

        pad = QGridLayout()
        for i in range(9):
            btn = QPushButton(str(i + 1))
            btn.clicked.connect(lambda _=False, d=str(i + 1): self._auth.press_digit(d))
            pad.addWidget(btn, i // 3, i % 3)
        self._btn_bio = QPushButton("Biometric")
        self._btn_bio.clicked.connect(self._auth.start_biometric)
        zero = QPushButton("0")
        zero.clicked.connect(lambda: self._auth.press_digit("0"))
        back = QPushButton("⌫")
        back.clicked.connect(self._auth.backspace)
        pad.addWidget(self._btn_bio, 3, 0)
        pad.addWidget(zero, 3, 1)
        pad.addWidget(back, 3, 2)
        root.addLayout(pad)

        cancel = QPushButton("Cancel && Return to Public Gallery")
        cancel.clicked.connect(self.reject)
        root.addWidget(cancel)

        self._auth.add_listener(self._render)
        self.finished.connect(lambda _: self._auth.remove_listener(self._render))
        self._render(self._auth.snapshot())

    def keyPressEvent(self, event) -> None:  # noqa: N802
        text = event.text()
        if len(text) == 1 and text in "0123456789":
            self._auth.press_digit(text)
        elif event.key() == Qt.Key_Backspace:
            self._auth.backspace()
        else:
            super().keyPressEvent(event)

    def _render(self, snap: AuthSnapshot) -> None:
        if snap.is_unlocked:
            self.accept()
            return
        self._title.setText(_TITLES[snap.step])
        if snap.scanning:
            self._subtitle.setText("Scanning...")
        elif snap.error is not None:
            self._subtitle.setText(_ERRORS[snap.error])
        else:
            self._subtitle.setText(_SUBTITLES[snap.step])
        self._subtitle.setStyleSheet("color: #b00020;" if snap.error else "")
        for i, dot in enumerate(self._dots):
            dot.setText("●" if i < snap.entered else "○")
        self._btn_bio.setVisible(snap.step is PinStep.ENTER and self._auth.biometric_available)
        self._btn_bio.setEnabled(not snap.scanning)
