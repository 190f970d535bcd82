"""
Editable EQ Entities

Bands (parametric mode) and control points (point mode) share one type.

Technical assumptions:
- frequency in Hz, domain [20, 20000]
- gain in dB, domain [-24, 24]
- q dimensionless, domain [0.1, 10]
- Values outside their domain are clamped, never rejected
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple, Optional
import math


FREQ_MIN = 20.0
FREQ_MAX = 20000.0
GAIN_MIN = -24.0
GAIN_MAX = 24.0
Q_MIN = 0.1
Q_MAX = 10.0
DEFAULT_Q = 1.0

REFERENCE_ID = "reference"
REFERENCE_FREQUENCY = 1000.0
REFERENCE_GAIN = 0.0


class BandKind(Enum):
    """Filter shape of a band. Values match the persisted profile format."""
    PEAKING = "peaking"
    LOW_SHELF = "lowshelf"
    HIGH_SHELF = "highshelf"
    NOTCH = "notch"
    BANDPASS = "bandpass"
    LOWPASS = "lowpass"
    HIGHPASS = "highpass"
    POINT = "point"

    @classmethod
    def parse(cls, value) -> "BandKind":
        """Parse a persisted kind, falling back to peaking for unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.PEAKING


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp_frequency(frequency: float) -> float:
    return clamp(float(frequency), FREQ_MIN, FREQ_MAX)


def clamp_gain(gain: float) -> float:
    return clamp(float(gain), GAIN_MIN, GAIN_MAX)


def clamp_q(q: float) -> float:
    return clamp(float(q), Q_MIN, Q_MAX)


def q_to_bandwidth(q: float) -> float:
    """Convert Q to bandwidth in octaves."""
    return (2 / math.log(2)) * math.asinh(1 / (2 * q))


class BandSnapshot(NamedTuple):
    """Values of a band captured at the start of a drag."""
    frequency: float
    gain: float
    q: float


@dataclass
class Band:
    """
    A single editable entity.

    Attributes:
        id: Opaque, stable identifier
        frequency: Center / corner frequency in Hz
        gain: Gain in dB
        q: Resonance / width
        kind: Filter shape (POINT for the point editor)
    """
    id: str
    frequency: float
    gain: float = 0.0
    q: float = DEFAULT_Q
    kind: BandKind = field(default=BandKind.PEAKING)

    def __post_init__(self):
        self.kind = BandKind.parse(self.kind)
        self.clamp()

    def clamp(self) -> None:
        """Clamp all numeric fields to their domain."""
        self.frequency = clamp_frequency(self.frequency)
        self.gain = clamp_gain(self.gain)
        self.q = clamp_q(self.q)

    def apply(
        self,
        frequency: Optional[float] = None,
        gain: Optional[float] = None,
        q: Optional[float] = None,
        kind: Optional[BandKind] = None,
    ) -> bool:
        """
        Update fields in place and re-clamp.

        Returns:
            True if any value actually changed
        """
        before = (self.frequency, self.gain, self.q, self.kind)
        if frequency is not None:
            self.frequency = frequency
        if gain is not None:
            self.gain = gain
        if q is not None:
            self.q = q
        if kind is not None:
            self.kind = BandKind.parse(kind)
        self.clamp()
        return before != (self.frequency, self.gain, self.q, self.kind)

    def snapshot(self) -> BandSnapshot:
        return BandSnapshot(self.frequency, self.gain, self.q)

    def copy(self) -> "Band":
        return Band(self.id, self.frequency, self.gain, self.q, self.kind)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "frequency": self.frequency,
            "gain": self.gain,
            "q": self.q,
            "type": self.kind.value,
        }

    @classmethod
    def from_dict(cls, data: dict, default_id: Optional[str] = None) -> "Band":
        """
        Build a band from a persisted record.

        Point records store their gain as "amplitude" and may have no id,
        in which case default_id is used.

        Raises:
            KeyError, TypeError, ValueError: Record is malformed
        """
        entity_id = data.get("id") or default_id
        if entity_id is None:
            raise KeyError("id")
        gain = data.get("gain", data.get("amplitude", 0.0))
        return cls(
            id=str(entity_id),
            frequency=float(data["frequency"]),
            gain=float(gain),
            q=float(data.get("q", DEFAULT_Q)),
            kind=BandKind.parse(data.get("type", BandKind.PEAKING)),
        )


def reference_anchor() -> Band:
    """The fixed (1 kHz, 0 dB) anchor of the point editor."""
    return Band(REFERENCE_ID, REFERENCE_FREQUENCY, REFERENCE_GAIN, DEFAULT_Q, BandKind.POINT)
