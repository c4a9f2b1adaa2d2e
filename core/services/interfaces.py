"""Core service interfaces and shared data structures.

The core never talks to storage, sensors or detectors directly; it goes
through the small protocols declared here so infrastructure (or tests) can
plug in concrete implementations.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

from core.models import AuthError, AuthState, Person, PinStep


class PinStore(Protocol):
    """Persistent holder of the single vault PIN."""

    def has_pin(self) -> bool:
        """Return True once a PIN has been saved."""
        raise NotImplementedError

    def verify(self, candidate: str) -> bool:
        """Return True when `candidate` matches the saved PIN."""
        raise NotImplementedError

    def save(self, pin: str) -> None:
        """Persist `pin` as the vault PIN."""
        raise NotImplementedError


class DetectionService(Protocol):
    """Attaches person identifiers to a newly added photo."""

    def detect(self, url: str) -> Sequence[str]:
        raise NotImplementedError


class BiometricService(Protocol):
    """Produces an unlock verdict some time after `attempt` is called.

    `on_result` receives True on success and False on failure. It may be
    invoked from another thread.
    """

    def attempt(self, on_result: Callable[[bool], None]) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class AuthSnapshot:
    """Observable state of the authentication machine.

    Attributes:
        state: Outer state (locked, setup, unlocked).
        step: PIN entry step; meaningful only while not unlocked.
        entered: Number of digits currently buffered (never the digits).
        error: Transient error flag, cleared on the next input or transition.
        scanning: True while a biometric verdict is pending.
    """

    state: AuthState
    step: PinStep
    entered: int
    error: AuthError | None = None
    scanning: bool = False

    @property
    def is_unlocked(self) -> bool:
        return self.state is AuthState.UNLOCKED


@dataclass(frozen=True)
class PersonCount:
    """A known person and how many accessible photos show them."""

    person: Person
    count: int
