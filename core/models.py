"""Core domain models for gallery photos, adjustments, people and auth state."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum

# Slider ranges exposed by the editor; sepia/grayscale are also hard limits.
CHANNEL_RANGES: dict[str, tuple[float, float]] = {
    "brightness": (0, 200),
    "contrast": (0, 200),
    "saturation": (0, 200),
    "sepia": (0, 100),
    "grayscale": (0, 100),
}


class AccessMode(Enum):
    """Which partition of the collection the caller is browsing."""

    PUBLIC = "PUBLIC"
    VAULT = "VAULT"


class AuthState(Enum):
    LOCKED = "LOCKED"
    SETUP = "SETUP"
    UNLOCKED = "UNLOCKED"


class PinStep(Enum):
    ENTER = "ENTER"
    CREATE = "CREATE"
    CONFIRM = "CONFIRM"


class AuthError(Enum):
    """Transient, recoverable authentication outcomes shown to the user."""

    WRONG_PIN = "WRONG_PIN"
    PIN_MISMATCH = "PIN_MISMATCH"
    BIOMETRIC_FAILURE = "BIOMETRIC_FAILURE"


@dataclass(frozen=True)
class FilterAdjustment:
    """Non-destructive visual adjustment, expressed in percent per channel."""

    brightness: float = 100
    contrast: float = 100
    saturation: float = 100
    sepia: float = 0
    grayscale: float = 0

    def __post_init__(self) -> None:
        for name in ("sepia", "grayscale"):
            low, high = CHANNEL_RANGES[name]
            value = getattr(self, name)
            if not low <= value <= high:
                raise ValueError(f"{name} must be within {low}-{high}, got {value}")

    @classmethod
    def channels(cls) -> list[str]:
        """Channel names in descriptor order."""
        return [f.name for f in fields(cls)]

    @property
    def is_identity(self) -> bool:
        return self == FilterAdjustment()

    def to_css(self) -> str:
        """Compose the CSS-style filter descriptor used by renderers."""
        return (
            f"brightness({_fmt(self.brightness)}%) contrast({_fmt(self.contrast)}%) "
            f"saturate({_fmt(self.saturation)}%) sepia({_fmt(self.sepia)}%) "
            f"grayscale({_fmt(self.grayscale)}%)"
        )


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def filter_descriptor(adjustment: FilterAdjustment | None) -> str:
    """Return the descriptor for `adjustment`; absent adjustments render as `none`."""
    if adjustment is None:
        return "none"
    return adjustment.to_css()


@dataclass(frozen=True)
class Person:
    """A known person that detection may attach to photos."""

    id: str
    name: str
    face_url: str = ""


@dataclass(frozen=True)
class Photo:
    """Immutable snapshot of a gallery photo.

    The partition engine replaces snapshots wholesale, so a reader never
    observes a half-applied change.
    """

    id: str
    url: str
    date: datetime
    is_private: bool = False
    title: str | None = None
    filters: FilterAdjustment | None = None
    person_ids: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Drop duplicates while keeping first-seen order.
        object.__setattr__(self, "person_ids", tuple(dict.fromkeys(self.person_ids)))

    @property
    def effective_filters(self) -> FilterAdjustment:
        return self.filters or FilterAdjustment()

    def visible_in(self, mode: AccessMode) -> bool:
        """True when the photo belongs to the partition browsed under `mode`."""
        return self.is_private == (mode is AccessMode.VAULT)
