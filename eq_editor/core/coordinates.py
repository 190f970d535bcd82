"""
Coordinate Mapping

Bidirectional conversion between (frequency, gain) and pixel positions
inside the plot area of the curve editor.

Technical assumptions:
- Frequency axis is logarithmic (base 10) between range.min and range.max
- Gain axis is linear, top of the plot is the range maximum
- Pixel origin (0, 0) is the top-left corner of the inner plot area
- All functions accept scalars or numpy arrays and have no side effects
"""

from dataclasses import dataclass
import numpy as np


@dataclass(frozen=True)
class FrequencyRange:
    """Visible frequency range in Hz."""
    min: float = 20.0
    max: float = 20000.0

    def __post_init__(self):
        if self.min <= 0:
            raise ValueError("Frequency range must be positive")
        if self.max <= self.min:
            raise ValueError("Frequency range max must be greater than min")


@dataclass(frozen=True)
class AmplitudeRange:
    """Visible gain range in dB."""
    min: float = -24.0
    max: float = 24.0

    def __post_init__(self):
        if self.max <= self.min:
            raise ValueError("Amplitude range max must be greater than min")


DEFAULT_FREQ_RANGE = FrequencyRange()
DEFAULT_AMPLITUDE_RANGE = AmplitudeRange()


def freq_to_x(freq, width: float, freq_range: FrequencyRange = DEFAULT_FREQ_RANGE):
    """
    Convert frequency to x position.

    Args:
        freq: Frequency in Hz (scalar or array, must be > 0)
        width: Width of the plot area in pixels
        freq_range: Visible frequency range

    Returns:
        x position in pixels
    """
    min_log = np.log10(freq_range.min)
    max_log = np.log10(freq_range.max)
    return width * (np.log10(freq) - min_log) / (max_log - min_log)


def x_to_freq(x, width: float, freq_range: FrequencyRange = DEFAULT_FREQ_RANGE):
    """Convert x position to frequency (inverse of freq_to_x)."""
    min_log = np.log10(freq_range.min)
    max_log = np.log10(freq_range.max)
    return 10 ** (min_log + (x / width) * (max_log - min_log))


def gain_to_y(gain, height: float, amp_range: AmplitudeRange = DEFAULT_AMPLITUDE_RANGE):
    """
    Convert gain to y position.

    For the symmetric default range, 0 dB maps exactly to height / 2.
    """
    span = amp_range.max - amp_range.min
    return height * (1 - (gain - amp_range.min) / span)


def y_to_gain(y, height: float, amp_range: AmplitudeRange = DEFAULT_AMPLITUDE_RANGE):
    """Convert y position to gain (inverse of gain_to_y)."""
    span = amp_range.max - amp_range.min
    return amp_range.min + span * (1 - y / height)


@dataclass(frozen=True)
class Viewport:
    """
    Inner plot area together with its value ranges.

    Bundles the pure mapping functions for callers that always work
    against the same plot geometry.
    """
    width: float
    height: float
    freq_range: FrequencyRange = DEFAULT_FREQ_RANGE
    amp_range: AmplitudeRange = DEFAULT_AMPLITUDE_RANGE

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError("Viewport must have a positive size")

    @property
    def center_y(self) -> float:
        """Pixel row of the 0 dB line."""
        return float(gain_to_y(0.0, self.height, self.amp_range))

    def to_pixel(self, frequency: float, gain: float) -> tuple[float, float]:
        return (
            float(freq_to_x(frequency, self.width, self.freq_range)),
            float(gain_to_y(gain, self.height, self.amp_range)),
        )

    def to_value(self, x: float, y: float) -> tuple[float, float]:
        return (
            float(x_to_freq(x, self.width, self.freq_range)),
            float(y_to_gain(y, self.height, self.amp_range)),
        )

    def contains(self, x: float, y: float) -> bool:
        return 0 <= x <= self.width and 0 <= y <= self.height

    def clamp_pixel(self, x: float, y: float) -> tuple[float, float]:
        """Clamp a pointer position to the plot area."""
        return (
            max(0.0, min(self.width, x)),
            max(0.0, min(self.height, y)),
        )
