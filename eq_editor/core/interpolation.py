"""
Log-Frequency Interpolation

Piecewise-linear interpolation of gain (dB) over log10 frequency, shared by
the point editor and the parametric amplitude curve.
"""

from typing import Sequence
import numpy as np


def interpolate_log_linear(
    point_frequencies: Sequence[float],
    point_gains: Sequence[float],
    query_frequencies,
    power: float = 1.0,
) -> np.ndarray:
    """
    Interpolate gains linearly over log10 frequency.

    Args:
        point_frequencies: Control point frequencies (any order)
        point_gains: Control point gains in dB
        query_frequencies: Frequency or frequencies to evaluate
        power: Exponent applied to the interpolation parameter t

    Returns:
        Gains at the query frequencies (always an array). Outside the
        control points the nearest endpoint is held. Zero-width spans
        are flat. No points give 0 dB, one point gives its gain.
    """
    query = np.atleast_1d(np.asarray(query_frequencies, dtype=np.float64))
    if len(point_frequencies) == 0:
        return np.zeros_like(query)

    freqs = np.asarray(point_frequencies, dtype=np.float64)
    gains = np.asarray(point_gains, dtype=np.float64)
    order = np.argsort(freqs, kind="stable")
    log_f = np.log10(freqs[order])
    gains = gains[order]

    if len(log_f) == 1:
        return np.full_like(query, gains[0])

    log_q = np.log10(query)
    upper = np.clip(np.searchsorted(log_f, log_q, side="right"), 1, len(log_f) - 1)
    lower = upper - 1
    span = log_f[upper] - log_f[lower]
    safe_span = np.where(span > 0, span, 1.0)
    t = np.where(span > 0, (log_q - log_f[lower]) / safe_span, 0.0)
    t = np.clip(t, 0.0, 1.0)
    if power != 1.0:
        t = np.power(t, power)
    return gains[lower] + (gains[upper] - gains[lower]) * t
