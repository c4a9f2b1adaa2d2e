"""Key-value persistence for the vault PIN.

`JsonFileStore` and `MemoryStore` provide the raw `get`/`set` contract;
`VaultPinStore` sits on top of either one and owns the `vault_pin` record.
By default the PIN is kept as a passlib `pbkdf2_sha256` hash rather than in
clear.
"""

from __future__ import annotations

import json
from pathlib import Path
import threading
from typing import Protocol

from loguru import logger
from passlib.context import CryptContext
from passlib.utils import consteq

PIN_KEY = "vault_pin"
DEFAULT_ITERATIONS = 200_000


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError


class MemoryStore:
    """Process-local store, mainly for tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore:
    """Flat string-to-string map persisted as a JSON object on disk."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(self._path.suffix + ".tmp")
            with tmp.open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            tmp.replace(self._path)

    def _read(self) -> dict[str, object]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as ex:
            logger.error("Failed to read key-value store {}: {}", self._path, ex)
            raise
        if not isinstance(data, dict):
            raise ValueError(f"Key-value store is not a JSON object: {self._path}")
        return data


def pin_context(iterations: int = DEFAULT_ITERATIONS) -> CryptContext:
    """CryptContext used to hash and verify vault PINs."""
    return CryptContext(
        schemes=["pbkdf2_sha256"],
        deprecated="auto",
        pbkdf2_sha256__default_rounds=iterations,
    )


_default_context = pin_context()


def hash_pin(pin: str, context: CryptContext | None = None) -> str:
    return (context or _default_context).hash(pin)


def check_pin(candidate: str, stored: str, context: CryptContext | None = None) -> bool:
    """Compare `candidate` with a stored hash or a legacy plaintext PIN."""
    ctx = context or _default_context
    if ctx.identify(stored) is None:
        return consteq(candidate, stored)
    try:
        return ctx.verify(candidate, stored)
    except ValueError as ex:
        logger.error("Stored vault PIN hash is malformed: {}", ex)
        return False


class VaultPinStore:
    """Adapter that reads, writes and verifies the single vault PIN."""

    def __init__(
        self,
        store: KeyValueStore,
        key: str = PIN_KEY,
        hashed: bool = True,
        iterations: int = DEFAULT_ITERATIONS,
    ) -> None:
        self._store = store
        self._key = key
        self._hashed = hashed
        self._context = pin_context(iterations)

    def has_pin(self) -> bool:
        return bool(self._store.get(self._key))

    def verify(self, candidate: str) -> bool:
        stored = self._store.get(self._key)
        if not stored:
            return False
        return check_pin(candidate, stored, self._context)

    def save(self, pin: str) -> None:
        if not pin.isdigit():
            raise ValueError("PIN must be numeric")
        value = hash_pin(pin, self._context) if self._hashed else pin
        self._store.set(self._key, value)
        logger.info("Vault PIN saved (hashed={})", self._hashed)
