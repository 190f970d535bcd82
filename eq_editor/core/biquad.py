"""
Biquad Frequency Response Oracle

Exact magnitude response of second-order IIR filters, used as the
preferred source of per-band curves by the response model.

Technical assumptions:
- Coefficients after Robert Bristow-Johnson's Audio EQ Cookbook
- Evaluation with scipy.signal.freqz at arbitrary query frequencies
- Sample rate 48 kHz (query frequencies above Nyquist are not supported)

Documented limitations:
- Digital filters warp near Nyquist, so the response close to 20 kHz
  differs slightly from the analog prototype
- lowpass / highpass / bandpass / notch ignore the gain parameter
"""

from typing import Protocol
import numpy as np
from scipy import signal

from .entities import BandKind


DEFAULT_SAMPLE_RATE = 48000
MIN_MAGNITUDE = 1e-12


class FilterResponseOracle(Protocol):
    """Source of exact per-band magnitude responses."""

    def evaluate(
        self,
        kind: BandKind,
        frequency0: float,
        q: float,
        gain_db: float,
        query_frequencies: np.ndarray,
    ) -> np.ndarray:
        """Return the magnitude in dB at each query frequency."""
        ...


def biquad_coefficients(
    kind: BandKind,
    frequency0: float,
    q: float,
    gain_db: float,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Compute normalized biquad coefficients.

    Args:
        kind: Filter shape
        frequency0: Center / corner frequency in Hz
        q: Quality factor
        gain_db: Gain in dB (peaking and shelves only)
        sample_rate: Sample rate in Hz

    Returns:
        (b, a) with a[0] == 1

    Raises:
        ValueError: Kind has no biquad realisation
    """
    a_gain = 10 ** (gain_db / 40)
    w0 = 2 * np.pi * frequency0 / sample_rate
    cos_w0 = np.cos(w0)
    alpha = np.sin(w0) / (2 * q)

    if kind == BandKind.PEAKING:
        b = [1 + alpha * a_gain, -2 * cos_w0, 1 - alpha * a_gain]
        a = [1 + alpha / a_gain, -2 * cos_w0, 1 - alpha / a_gain]
    elif kind == BandKind.LOW_SHELF:
        sqrt_a_alpha = 2 * np.sqrt(a_gain) * alpha
        b = [
            a_gain * ((a_gain + 1) - (a_gain - 1) * cos_w0 + sqrt_a_alpha),
            2 * a_gain * ((a_gain - 1) - (a_gain + 1) * cos_w0),
            a_gain * ((a_gain + 1) - (a_gain - 1) * cos_w0 - sqrt_a_alpha),
        ]
        a = [
            (a_gain + 1) + (a_gain - 1) * cos_w0 + sqrt_a_alpha,
            -2 * ((a_gain - 1) + (a_gain + 1) * cos_w0),
            (a_gain + 1) + (a_gain - 1) * cos_w0 - sqrt_a_alpha,
        ]
    elif kind == BandKind.HIGH_SHELF:
        sqrt_a_alpha = 2 * np.sqrt(a_gain) * alpha
        b = [
            a_gain * ((a_gain + 1) + (a_gain - 1) * cos_w0 + sqrt_a_alpha),
            -2 * a_gain * ((a_gain - 1) + (a_gain + 1) * cos_w0),
            a_gain * ((a_gain + 1) + (a_gain - 1) * cos_w0 - sqrt_a_alpha),
        ]
        a = [
            (a_gain + 1) - (a_gain - 1) * cos_w0 + sqrt_a_alpha,
            2 * ((a_gain - 1) - (a_gain + 1) * cos_w0),
            (a_gain + 1) - (a_gain - 1) * cos_w0 - sqrt_a_alpha,
        ]
    elif kind == BandKind.NOTCH:
        b = [1, -2 * cos_w0, 1]
        a = [1 + alpha, -2 * cos_w0, 1 - alpha]
    elif kind == BandKind.BANDPASS:
        # Constant 0 dB peak gain variant
        b = [alpha, 0, -alpha]
        a = [1 + alpha, -2 * cos_w0, 1 - alpha]
    elif kind == BandKind.LOWPASS:
        b = [(1 - cos_w0) / 2, 1 - cos_w0, (1 - cos_w0) / 2]
        a = [1 + alpha, -2 * cos_w0, 1 - alpha]
    elif kind == BandKind.HIGHPASS:
        b = [(1 + cos_w0) / 2, -(1 + cos_w0), (1 + cos_w0) / 2]
        a = [1 + alpha, -2 * cos_w0, 1 - alpha]
    else:
        raise ValueError(f"No biquad realisation for kind: {kind.value}")

    b = np.asarray(b, dtype=np.float64)
    a = np.asarray(a, dtype=np.float64)
    return b / a[0], a / a[0]


class BiquadResponseOracle:
    """
    FilterResponseOracle backed by scipy.signal.freqz.

    Stateless apart from the sample rate; safe to share between engines.
    """

    def __init__(self, sample_rate: int = DEFAULT_SAMPLE_RATE):
        if sample_rate <= 0:
            raise ValueError("Sample rate must be positive")
        self.sample_rate = sample_rate

    def evaluate(
        self,
        kind: BandKind,
        frequency0: float,
        q: float,
        gain_db: float,
        query_frequencies: np.ndarray,
    ) -> np.ndarray:
        freqs = np.asarray(query_frequencies, dtype=np.float64)
        if np.any(freqs >= self.sample_rate / 2):
            raise ValueError("Query frequencies must be below Nyquist")

        b, a = biquad_coefficients(kind, frequency0, q, gain_db, self.sample_rate)
        _, h = signal.freqz(b, a, worN=freqs, fs=self.sample_rate)
        return 20 * np.log10(np.maximum(np.abs(h), MIN_MAGNITUDE))
