"""
Parametric Amplitude Curve

A broad tonal curve defined by a handful of parameters instead of bands.
It is added on top of the editor's response curve.

Curve types:
- parametric: five control points (20 Hz, low-mid, mid, high-mid, 20 kHz)
  interpolated in log-frequency, with a shape warp and a resonance bump
- shelving: sigmoid low and high shelves around the midpoint
- notch: gaussian dip at the midpoint
- bandpass: raised-cosine window between low-mid and high-mid

Shape warp: the log-domain interpolation parameter t is raised to a power
derived from shape in [0, 1]. shape < 0.5 gives exponents 1..3 (concave),
shape > 0.5 gives exponents 1..1/3 (convex).
"""

from dataclasses import dataclass, replace
from enum import Enum
import numpy as np

from .entities import FREQ_MIN, FREQ_MAX
from .interpolation import interpolate_log_linear


class CurveType(Enum):
    PARAMETRIC = "parametric"
    SHELVING = "shelving"
    NOTCH = "notch"
    BANDPASS = "bandpass"


@dataclass(frozen=True)
class AmplitudeCurveParams:
    """
    Parameters of the amplitude curve. Gains in dB, frequencies in Hz.

    Attributes:
        curve_type: Which curve formula to use
        curve_shape: Shape control in [0, 1], 0.5 is linear
        resonance_q: Width of the resonance bump / notch (higher is narrower)
    """
    low_end_gain: float = 0.0
    high_end_gain: float = 0.0
    mid_point_freq: float = 1000.0
    mid_point_gain: float = 0.0
    curve_type: CurveType = CurveType.PARAMETRIC
    curve_shape: float = 0.5
    low_mid_freq: float = 200.0
    low_mid_gain: float = 0.0
    high_mid_freq: float = 5000.0
    high_mid_gain: float = 0.0
    resonance_freq: float = 3000.0
    resonance_gain: float = 0.0
    resonance_q: float = 1.0

    def __post_init__(self):
        if not 0.0 <= self.curve_shape <= 1.0:
            raise ValueError("Curve shape must be in [0, 1]")
        for name in ("mid_point_freq", "low_mid_freq", "high_mid_freq", "resonance_freq"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.resonance_q < 0:
            raise ValueError("Resonance Q must not be negative")

    def with_values(self, **changes) -> "AmplitudeCurveParams":
        return replace(self, **changes)


def shape_exponent(shape: float) -> float:
    """Exponent applied to the interpolation parameter for a shape value."""
    if shape < 0.5:
        return 1 + (0.5 - shape) * 4
    if shape > 0.5:
        return 1 / (1 + (shape - 0.5) * 4)
    return 1.0


def resonance_bump(frequencies, resonance_freq: float, gain: float, q: float) -> np.ndarray:
    """Gaussian-like bump: gain * exp(-(log2(f / fr) * q)^2)."""
    freqs = np.asarray(frequencies, dtype=np.float64)
    octave_distance = np.log2(freqs / resonance_freq)
    return gain * np.exp(-np.power(octave_distance * q, 2))


def _parametric(freqs: np.ndarray, p: AmplitudeCurveParams) -> np.ndarray:
    control = [
        (FREQ_MIN, p.low_end_gain),
        (p.low_mid_freq, p.low_mid_gain),
        (p.mid_point_freq, p.mid_point_gain),
        (p.high_mid_freq, p.high_mid_gain),
        (FREQ_MAX, p.high_end_gain),
    ]
    gains = interpolate_log_linear(
        [f for f, _ in control],
        [g for _, g in control],
        freqs,
        power=shape_exponent(p.curve_shape),
    )
    if p.resonance_gain != 0 and p.resonance_q > 0:
        gains = gains + resonance_bump(freqs, p.resonance_freq, p.resonance_gain, p.resonance_q)
    return gains


def _shelving(freqs: np.ndarray, p: AmplitudeCurveParams) -> np.ndarray:
    steepness = 1 + p.curve_shape * 3
    distance = np.log10(freqs) - np.log10(p.mid_point_freq)
    low = p.low_end_gain / (1 + np.exp(steepness * distance))
    high = p.high_end_gain / (1 + np.exp(-steepness * distance))
    return low + high


def _notch(freqs: np.ndarray, p: AmplitudeCurveParams) -> np.ndarray:
    depth = -abs(p.mid_point_gain)
    return resonance_bump(freqs, p.mid_point_freq, depth, p.resonance_q * 2)


def _bandpass(freqs: np.ndarray, p: AmplitudeCurveParams) -> np.ndarray:
    log_low = np.log10(p.low_mid_freq)
    log_high = np.log10(p.high_mid_freq)
    width = log_high - log_low
    if width <= 0:
        return np.zeros_like(freqs)
    center = (log_low + log_high) / 2
    distance = 2 * np.abs(np.log10(freqs) - center) / width
    window = np.where(distance <= 1, np.cos(np.pi * np.minimum(distance, 1) / 2), 0.0)
    return p.mid_point_gain * np.power(window, 1 + p.curve_shape * 3)


_CURVES = {
    CurveType.PARAMETRIC: _parametric,
    CurveType.SHELVING: _shelving,
    CurveType.NOTCH: _notch,
    CurveType.BANDPASS: _bandpass,
}


def amplitude_at(frequencies, params: AmplitudeCurveParams) -> np.ndarray:
    """
    Evaluate the amplitude curve.

    Args:
        frequencies: Frequency or array of frequencies in Hz
        params: Curve parameters

    Returns:
        Gain in dB per frequency (always an array)
    """
    freqs = np.atleast_1d(np.asarray(frequencies, dtype=np.float64))
    return _CURVES[params.curve_type](freqs, params)
