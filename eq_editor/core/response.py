"""
Frequency Response Model

Turns the editable entities into a plottable frequency -> magnitude curve.

Two strategies:
- Band combination: per-band dB responses are summed sample by sample
  (superposition in the dB domain, not in linear magnitude)
- Point interpolation: linear in log-frequency / linear-dB space between
  sorted control points, flat outside the outermost points

Per-band responses come from a FilterResponseOracle when one is given.
Without an oracle, or when it fails for a band, closed-form approximations
are used for that band.

Documented limitations:
- Oracle peak normalization is an approximation (see normalize_peak)
- The analytic approximations are visual, not DSP-accurate
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, NamedTuple, Optional, Sequence
import logging
import numpy as np

from .biquad import FilterResponseOracle
from .config import EditorMode
from .coordinates import FrequencyRange, DEFAULT_FREQ_RANGE
from .entities import Band, BandKind, GAIN_MIN
from .amplitude_curve import AmplitudeCurveParams, amplitude_at
from .interpolation import interpolate_log_linear

logger = logging.getLogger(__name__)


RESPONSE_GRID_SIZE = 500
AUTO_GAIN_POINTS = 128
AUTO_GAIN_SLOPE_DB_PER_OCTAVE = -4.5


def log_frequency_grid(
    num_points: int = RESPONSE_GRID_SIZE,
    freq_range: FrequencyRange = DEFAULT_FREQ_RANGE,
) -> np.ndarray:
    """Logarithmically spaced frequencies from freq_range.min to freq_range.max."""
    if num_points < 2:
        raise ValueError("Grid needs at least 2 points")
    return np.logspace(np.log10(freq_range.min), np.log10(freq_range.max), num_points)


class ResponseSample(NamedTuple):
    frequency: float
    magnitude: float


@dataclass(frozen=True)
class FrequencyResponse:
    """
    Immutable snapshot of a response curve, used only for plotting.

    Attributes:
        frequencies: Ascending frequencies in Hz (read-only array)
        magnitudes: Magnitude in dB per frequency (read-only array)
    """
    frequencies: np.ndarray
    magnitudes: np.ndarray

    def __post_init__(self):
        freqs = np.array(self.frequencies, dtype=np.float64)
        mags = np.array(self.magnitudes, dtype=np.float64)
        if freqs.shape != mags.shape:
            raise ValueError("Frequency and magnitude arrays must have the same shape")
        freqs.setflags(write=False)
        mags.setflags(write=False)
        object.__setattr__(self, "frequencies", freqs)
        object.__setattr__(self, "magnitudes", mags)

    @classmethod
    def flat(cls, frequencies: np.ndarray, level_db: float = 0.0) -> "FrequencyResponse":
        return cls(frequencies, np.full(len(frequencies), level_db, dtype=np.float64))

    def __len__(self) -> int:
        return len(self.frequencies)

    def __iter__(self) -> Iterator[ResponseSample]:
        for f, m in zip(self.frequencies, self.magnitudes):
            yield ResponseSample(float(f), float(m))

    def at(self, frequency: float) -> float:
        """Magnitude at an arbitrary frequency (log-frequency interpolation)."""
        return float(np.interp(np.log10(frequency), np.log10(self.frequencies), self.magnitudes))


# --- Band combination -------------------------------------------------------

def analytic_band_response(band: Band, frequencies: np.ndarray) -> np.ndarray:
    """
    Closed-form approximation of a band's magnitude response in dB.

    Used when no oracle is available.
    """
    freqs = np.asarray(frequencies, dtype=np.float64)
    octaves = np.log2(freqs / band.frequency)
    kind = band.kind

    if kind == BandKind.PEAKING:
        bw = octaves * band.q
        return band.gain / (1 + 4 * bw * bw)
    if kind == BandKind.NOTCH:
        # Gain is ignored, the dip always reaches the bottom of the domain
        bw = octaves * band.q
        return GAIN_MIN / (1 + 4 * bw * bw)
    if kind == BandKind.LOW_SHELF:
        rolled = band.gain / (1 + np.power(2.0, octaves * band.q))
        return np.where(freqs < band.frequency, band.gain, rolled)
    if kind == BandKind.HIGH_SHELF:
        rolled = band.gain / (1 + np.power(2.0, -octaves * band.q))
        return np.where(freqs > band.frequency, band.gain, rolled)
    if kind == BandKind.LOWPASS:
        return np.where(octaves > 0, -12 * octaves * band.q, 0.0)
    if kind == BandKind.HIGHPASS:
        return np.where(octaves < 0, 12 * octaves * band.q, 0.0)
    if kind == BandKind.BANDPASS:
        return -12 * np.abs(octaves) * band.q
    return np.zeros_like(freqs)


def normalize_peak(
    response_db: np.ndarray,
    band: Band,
    reference_db: Optional[float] = None,
) -> np.ndarray:
    """
    Rescale an oracle response so its peak equals the requested gain.

    Guards against oracle quantization at extreme Q. For peaking bands the
    peak is measured at the center frequency (reference_db); for shelves it
    is the extreme value of the sampled curve. Other kinds ignore gain and
    are returned unchanged.

    This is an approximation: the rescale is linear in dB over the whole
    curve, so skirt shapes of very narrow bands are scaled as well.
    """
    if band.kind == BandKind.PEAKING:
        measured = reference_db
    elif band.kind in (BandKind.LOW_SHELF, BandKind.HIGH_SHELF):
        measured = float(response_db[np.argmax(np.abs(response_db))]) if len(response_db) else None
    else:
        return response_db

    if measured is None or band.gain == 0 or abs(measured) < 1e-9:
        return response_db
    return response_db * (band.gain / measured)


def _oracle_band_response(
    band: Band,
    frequencies: np.ndarray,
    oracle: FilterResponseOracle,
) -> np.ndarray:
    query = np.append(frequencies, band.frequency)
    values = np.asarray(
        oracle.evaluate(band.kind, band.frequency, band.q, band.gain, query),
        dtype=np.float64,
    )
    if values.shape != query.shape:
        raise ValueError(f"Oracle returned {values.shape}, expected {query.shape}")
    if not np.all(np.isfinite(values)):
        raise ValueError("Oracle returned non-finite magnitudes")
    return normalize_peak(values[:-1], band, reference_db=float(values[-1]))


def band_response(
    band: Band,
    frequencies: np.ndarray,
    oracle: Optional[FilterResponseOracle] = None,
) -> np.ndarray:
    """
    Magnitude response of a single band in dB.

    Oracle failures fall back to the analytic approximation for this band only.
    """
    freqs = np.asarray(frequencies, dtype=np.float64)
    if band.kind == BandKind.POINT:
        return np.zeros_like(freqs)
    if oracle is not None:
        try:
            return _oracle_band_response(band, freqs, oracle)
        except Exception as e:
            logger.warning("Oracle failed for band %s (%s), using approximation", band.id, e)
    return analytic_band_response(band, freqs)


def combined_response(
    bands: Iterable[Band],
    frequencies: Optional[np.ndarray] = None,
    oracle: Optional[FilterResponseOracle] = None,
) -> FrequencyResponse:
    """
    Combined response of all bands: per-sample sum of per-band dB responses.

    Zero bands give a flat 0 dB curve.
    """
    freqs = log_frequency_grid() if frequencies is None else np.asarray(frequencies, dtype=np.float64)
    total = np.zeros_like(freqs)
    for band in bands:
        total += band_response(band, freqs, oracle)
    return FrequencyResponse(freqs, total)


def auto_gain_db(
    bands: Sequence[Band],
    oracle: Optional[FilterResponseOracle] = None,
    freq_range: FrequencyRange = DEFAULT_FREQ_RANGE,
) -> float:
    """
    Auto-gain compensation in dB for a set of bands.

    The combined response is weighted by an assumed -4.5 dB/octave program
    spectrum (0 dB at the low end of the range). The result is the negative
    of the largest weighted gain, never positive.
    """
    if not bands:
        return 0.0
    freqs = log_frequency_grid(AUTO_GAIN_POINTS, freq_range)
    response = combined_response(bands, freqs, oracle)
    weight = AUTO_GAIN_SLOPE_DB_PER_OCTAVE * np.log2(freqs / freq_range.min)
    return -max(0.0, float(np.max(response.magnitudes + weight)))


# --- Point interpolation ----------------------------------------------------

def point_response(
    points: Sequence[Band],
    frequencies: Optional[np.ndarray] = None,
    anchor: Optional[Band] = None,
) -> FrequencyResponse:
    """
    Piecewise response through control points (and the reference anchor).

    Fewer than 2 points give a flat curve at the single point's gain, or 0 dB.
    """
    freqs = log_frequency_grid() if frequencies is None else np.asarray(frequencies, dtype=np.float64)
    all_points = ([anchor] if anchor is not None else []) + list(points)
    gains = interpolate_log_linear(
        [p.frequency for p in all_points],
        [p.gain for p in all_points],
        freqs,
    )
    return FrequencyResponse(freqs, gains)


def apply_amplitude_curve(
    response: FrequencyResponse,
    params: Optional[AmplitudeCurveParams],
) -> FrequencyResponse:
    """Add a parametric amplitude curve on top of a response."""
    if params is None:
        return response
    return FrequencyResponse(
        response.frequencies,
        response.magnitudes + amplitude_at(response.frequencies, params),
    )


class ResponseModel:
    """
    Strategy selector and cache for the editor's response curve.

    The curve is recomputed only when the store's version changes.
    """

    def __init__(
        self,
        mode: EditorMode = EditorMode.BANDS,
        oracle: Optional[FilterResponseOracle] = None,
        grid: Optional[np.ndarray] = None,
        amplitude_curve: Optional[AmplitudeCurveParams] = None,
    ):
        self.mode = mode
        self.oracle = oracle
        self.grid = log_frequency_grid() if grid is None else np.asarray(grid, dtype=np.float64)
        self._amplitude_curve = amplitude_curve
        self._cache_key: Optional[tuple] = None
        self._cache: Optional[FrequencyResponse] = None

    @property
    def amplitude_curve(self) -> Optional[AmplitudeCurveParams]:
        return self._amplitude_curve

    @amplitude_curve.setter
    def amplitude_curve(self, params: Optional[AmplitudeCurveParams]):
        self._amplitude_curve = params
        self.invalidate()

    def invalidate(self) -> None:
        self._cache_key = None
        self._cache = None

    def compute(self, store) -> FrequencyResponse:
        """Response for the store's current entities."""
        key = (store.version, store.identity)
        if self._cache is not None and self._cache_key == key:
            return self._cache

        if self.mode == EditorMode.POINTS:
            response = point_response(store.entities, self.grid, store.anchor)
        else:
            response = combined_response(store.entities, self.grid, self.oracle)
        response = apply_amplitude_curve(response, self._amplitude_curve)

        self._cache_key = key
        self._cache = response
        return response

    def point_gain_at(self, store, frequency: float) -> float:
        """Interpolated point gain at a frequency, without the amplitude curve."""
        all_points = [store.anchor] + list(store.entities) if store.anchor else list(store.entities)
        return float(interpolate_log_linear(
            [p.frequency for p in all_points],
            [p.gain for p in all_points],
            frequency,
        )[0])

    def value_at(self, store, frequency: float) -> float:
        """
        Response at an arbitrary frequency.

        Point mode evaluates the interpolation exactly; band mode reads the
        cached curve.
        """
        if self.mode == EditorMode.POINTS:
            value = self.point_gain_at(store, frequency)
            if self._amplitude_curve is not None:
                value += float(amplitude_at(frequency, self._amplitude_curve)[0])
            return value
        return self.compute(store).at(frequency)
