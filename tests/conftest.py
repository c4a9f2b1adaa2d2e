"""Shared fixtures for core, infrastructure and view-model tests."""

from datetime import datetime, timedelta
import itertools

import pytest

from core.models import Photo
from core.services.auth_service import VaultAuthenticator
from core.services.partition_service import PhotoPartitionEngine
from infrastructure.pin_store import MemoryStore, VaultPinStore


class ManualBiometric:
    """Biometric double whose verdicts are delivered by the test."""

    def __init__(self):
        self.pending = []

    def attempt(self, on_result):
        self.pending.append(on_result)

    def resolve(self, success, index=-1):
        self.pending.pop(index)(success)


def immediate_scheduler(delay, callback):
    callback()


def enter(auth, digits):
    """Press each digit of `digits` on `auth` and return the last snapshot."""
    snap = auth.snapshot()
    for d in digits:
        snap = auth.press_digit(d)
    return snap


@pytest.fixture
def kv_store():
    return MemoryStore()


@pytest.fixture
def pin_store(kv_store):
    return VaultPinStore(kv_store, hashed=False)


@pytest.fixture
def biometric():
    return ManualBiometric()


@pytest.fixture
def setup_auth(pin_store, biometric):
    return VaultAuthenticator(pin_store, biometric=biometric)


@pytest.fixture
def locked_auth(kv_store, biometric):
    kv_store.set("vault_pin", "4242")
    return VaultAuthenticator(VaultPinStore(kv_store, hashed=False), biometric=biometric)


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda: f"ph{next(counter)}"


@pytest.fixture
def now():
    return datetime.now().replace(microsecond=0)


@pytest.fixture
def engine(id_factory):
    return PhotoPartitionEngine(id_factory=id_factory)


@pytest.fixture
def make_photo(now):
    def _make(photo_id, title=None, days_ago=0, is_private=False, person_ids=(), seconds_ago=0):
        return Photo(
            id=photo_id,
            url=f"file:///photos/{photo_id}.jpg",
            date=now - timedelta(days=days_ago, seconds=seconds_ago),
            is_private=is_private,
            title=title,
            person_ids=tuple(person_ids),
        )

    return _make
