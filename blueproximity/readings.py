"""Results of a single proximity sample, and the enums the monitor decides with."""

from dataclasses import dataclass
from enum import Enum
from typing import Union


class LockState(Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"


class Verdict(Enum):
    NEAR = "near"
    FAR = "far"
    INDETERMINATE = "indeterminate"


@dataclass(frozen=True)
class InRange:
    """Device detected. Higher (less negative) signal_strength means closer."""
    signal_strength: int


@dataclass(frozen=True)
class OutOfRange:
    """Device not seen during the sample, or reported as disconnected."""


@dataclass(frozen=True)
class SamplingFailed:
    """The backend could not produce a sample at all."""
    cause: str


ProximityReading = Union[InRange, OutOfRange, SamplingFailed]
