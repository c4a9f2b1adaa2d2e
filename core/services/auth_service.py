"""PIN and biometric authentication state machine for the vault.

The machine is driven by discrete events (digit, backspace, lock, biometric
attempt, cancel). Each event is handled to completion under a lock; the only
asynchronous input is the biometric verdict, which re-enters through the
same lock and is dropped if it has gone stale.
"""

from __future__ import annotations

from collections.abc import Callable
import threading

from loguru import logger

from core.models import AuthError, AuthState, PinStep
from core.services.interfaces import AuthSnapshot, BiometricService, PinStore

PIN_LENGTH = 4

AuthListener = Callable[[AuthSnapshot], None]


class VaultAuthenticator:
    """Owns the Locked/Setup/Unlocked machine and its PIN entry sub-machine."""

    def __init__(
        self,
        pin_store: PinStore,
        biometric: BiometricService | None = None,
        pin_length: int = PIN_LENGTH,
    ) -> None:
        self._store = pin_store
        self._biometric = biometric
        self._pin_length = pin_length
        self._lock = threading.RLock()
        self._listeners: list[AuthListener] = []

        self._buffer = ""
        self._candidate: str | None = None
        self._error: AuthError | None = None
        self._scanning = False
        # Bumped whenever a pending scan must be ignored.
        self._scan_token = 0

        if self._store.has_pin():
            self._state = AuthState.LOCKED
            self._step = PinStep.ENTER
        else:
            self._state = AuthState.SETUP
            self._step = PinStep.CREATE
        logger.info("Vault auth initialised in state {}", self._state.value)

    # Observation
    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def step(self) -> PinStep:
        return self._step

    @property
    def error(self) -> AuthError | None:
        return self._error

    @property
    def is_scanning(self) -> bool:
        return self._scanning

    @property
    def pin_length(self) -> int:
        return self._pin_length

    @property
    def biometric_available(self) -> bool:
        return self._biometric is not None

    def snapshot(self) -> AuthSnapshot:
        with self._lock:
            return AuthSnapshot(
                state=self._state,
                step=self._step,
                entered=len(self._buffer),
                error=self._error,
                scanning=self._scanning,
            )

    def add_listener(self, listener: AuthListener) -> None:
        """Register `listener` to receive a snapshot after every change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: AuthListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # Events
    def press_digit(self, digit: str) -> AuthSnapshot:
        """Append `digit` to the entry buffer; the last digit triggers evaluation."""
        if len(digit) != 1 or digit not in "0123456789":
            raise ValueError(f"Expected a single digit, got {digit!r}")
        with self._lock:
            if self._state is AuthState.UNLOCKED or self._scanning:
                return self.snapshot()
            if len(self._buffer) >= self._pin_length:
                return self.snapshot()
            self._error = None
            self._buffer += digit
            if len(self._buffer) == self._pin_length:
                self._evaluate()
        return self._notify()

    def backspace(self) -> AuthSnapshot:
        with self._lock:
            self._buffer = self._buffer[:-1]
            self._error = None
        return self._notify()

    def lock(self) -> AuthSnapshot:
        """Leave the vault. Always succeeds; a first-run machine stays in setup."""
        with self._lock:
            self._reset_entry()
            if self._state is AuthState.UNLOCKED:
                self._state = AuthState.LOCKED
                self._step = PinStep.ENTER
                logger.info("Vault locked")
        return self._notify()

    def cancel(self) -> AuthSnapshot:
        """Dismiss the lock screen; any pending biometric verdict is ignored."""
        with self._lock:
            self._reset_entry()
            if self._step is PinStep.CONFIRM:
                self._step = PinStep.CREATE
        return self._notify()

    def start_biometric(self) -> AuthSnapshot:
        """Begin a biometric unlock. Only valid while locked at the PIN prompt."""
        with self._lock:
            if (
                self._biometric is None
                or self._state is not AuthState.LOCKED
                or self._step is not PinStep.ENTER
                or self._scanning
            ):
                return self.snapshot()
            self._buffer = ""
            self._error = None
            self._scanning = True
            self._scan_token += 1
            token = self._scan_token
            biometric = self._biometric
        logger.info("Biometric scan started")
        snap = self._notify()
        biometric.attempt(lambda success: self._on_biometric_result(token, success))
        return snap

    # Internals
    def _on_biometric_result(self, token: int, success: bool) -> None:
        with self._lock:
            if token != self._scan_token or not self._scanning:
                logger.debug("Ignoring stale biometric verdict")
                return
            self._scanning = False
            if self._state is not AuthState.LOCKED:
                return
            if success:
                self._state = AuthState.UNLOCKED
                logger.info("Vault unlocked by biometric")
            else:
                self._error = AuthError.BIOMETRIC_FAILURE
                logger.info("Biometric verification failed")
        self._notify()

    def _evaluate(self) -> None:
        entered = self._buffer
        self._buffer = ""
        if self._step is PinStep.CREATE:
            self._candidate = entered
            self._step = PinStep.CONFIRM
        elif self._step is PinStep.CONFIRM:
            if entered == self._candidate:
                self._store.save(entered)
                self._candidate = None
                self._state = AuthState.UNLOCKED
                logger.info("Vault PIN created; vault unlocked")
            else:
                self._candidate = None
                self._step = PinStep.CREATE
                self._error = AuthError.PIN_MISMATCH
                logger.info("PIN confirmation mismatch; restarting setup")
        elif self._store.verify(entered):
            self._state = AuthState.UNLOCKED
            logger.info("Vault unlocked by PIN")
        else:
            self._error = AuthError.WRONG_PIN
            logger.info("Wrong vault PIN entered")

    def _reset_entry(self) -> None:
        self._buffer = ""
        self._candidate = None
        self._error = None
        self._scanning = False
        self._scan_token += 1

    def _notify(self) -> AuthSnapshot:
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)
        return snap
