"""
Tests for the frequency response model.
"""

import pytest
import numpy as np

from eq_editor.core.biquad import BiquadResponseOracle, biquad_coefficients
from eq_editor.core.config import EditorMode
from eq_editor.core.entities import Band, BandKind
from eq_editor.core.interpolation import interpolate_log_linear
from eq_editor.core.response import (
    FrequencyResponse,
    ResponseModel,
    analytic_band_response,
    auto_gain_db,
    band_response,
    combined_response,
    log_frequency_grid,
    normalize_peak,
    point_response,
)
from eq_editor.core.store import EntityStore


class FailingOracle:
    def evaluate(self, kind, frequency0, q, gain_db, query_frequencies):
        raise RuntimeError("service unavailable")


class WrongShapeOracle:
    def evaluate(self, kind, frequency0, q, gain_db, query_frequencies):
        return np.zeros(3)


class ScaledOracle:
    """Returns the analytic curve at half the requested gain."""

    def evaluate(self, kind, frequency0, q, gain_db, query_frequencies):
        band = Band("x", frequency0, gain_db / 2, q, kind)
        return analytic_band_response(band, np.asarray(query_frequencies))


class TestFrequencyGrid:
    """Tests for the log-spaced grid."""

    def test_grid_limits(self):
        """Grid spans 20 Hz to 20 kHz with 500 points."""
        grid = log_frequency_grid()

        assert len(grid) == 500
        assert grid[0] == pytest.approx(20.0)
        assert grid[-1] == pytest.approx(20000.0)
        assert np.all(np.diff(grid) > 0)

    def test_response_is_read_only(self):
        """FrequencyResponse arrays cannot be modified."""
        response = FrequencyResponse.flat(log_frequency_grid(10))

        with pytest.raises(ValueError):
            response.magnitudes[0] = 1.0
        assert len(list(response)) == 10


class TestBandCombination:
    """Tests for the band combination strategy."""

    def test_empty_is_flat(self):
        """No bands give 0 dB everywhere."""
        response = combined_response([])

        assert np.all(response.magnitudes == 0.0)
        assert response.at(1000.0) == 0.0

    def test_single_peak(self):
        """Peaking band reaches its gain at f0 and decays away from it."""
        band = Band("a", 1000.0, 6.0, 1.0)
        values = band_response(band, np.array([100.0, 500.0, 1000.0, 2000.0, 10000.0]))

        assert values[2] == pytest.approx(6.0)
        assert values[1] < values[2]
        assert values[3] < values[2]
        assert abs(values[0]) < 0.5
        assert abs(values[4]) < 0.5

    def test_two_separate_bands(self):
        """Non-overlapping bands keep their own gain."""
        bands = [Band("a", 200.0, 3.0, 1.0), Band("b", 5000.0, -3.0, 1.0)]
        freqs = np.array([200.0, 1000.0, 5000.0])
        response = combined_response(bands, freqs)

        assert response.magnitudes[0] == pytest.approx(3.0, abs=0.1)
        assert response.magnitudes[1] == pytest.approx(0.0, abs=0.01)
        assert response.magnitudes[2] == pytest.approx(-3.0, abs=0.1)

    def test_superposition(self):
        """Combined curve is the sum of the individual dB curves."""
        bands = [
            Band("a", 80.0, 4.0, 0.7, BandKind.LOW_SHELF),
            Band("b", 900.0, -5.0, 2.0),
            Band("c", 6000.0, 3.0, 1.0, BandKind.HIGH_SHELF),
            Band("d", 15000.0, 0.0, 0.7, BandKind.LOWPASS),
        ]
        grid = log_frequency_grid(200)
        combined = combined_response(bands, grid)
        expected = sum(band_response(b, grid) for b in bands)

        np.testing.assert_allclose(combined.magnitudes, expected)

    def test_shelves(self):
        """Shelves hold their gain on their own side."""
        low = Band("l", 200.0, 5.0, 1.0, BandKind.LOW_SHELF)
        high = Band("h", 2000.0, -4.0, 1.0, BandKind.HIGH_SHELF)
        freqs = np.array([50.0, 20000.0])

        assert analytic_band_response(low, freqs)[0] == pytest.approx(5.0)
        assert abs(analytic_band_response(low, freqs)[1]) < 0.1
        assert analytic_band_response(high, freqs)[1] == pytest.approx(-4.0)

    def test_pass_filters_one_sided(self):
        """Low/high pass only attenuate on their stop side."""
        lp = Band("lp", 1000.0, 0.0, 1.0, BandKind.LOWPASS)
        hp = Band("hp", 1000.0, 0.0, 1.0, BandKind.HIGHPASS)
        freqs = np.array([500.0, 2000.0])

        np.testing.assert_allclose(analytic_band_response(lp, freqs), [0.0, -12.0])
        np.testing.assert_allclose(analytic_band_response(hp, freqs), [-12.0, 0.0])

    def test_point_kind_is_neutral(self):
        """Plain points do not contribute to the band curve."""
        band = Band("p", 1000.0, 10.0, 1.0, BandKind.POINT)

        assert np.all(band_response(band, log_frequency_grid(20)) == 0.0)


class TestOracle:
    """Tests for oracle use and fallback."""

    def test_biquad_peak_gain(self):
        """Biquad oracle curve is normalized to the requested gain at f0."""
        oracle = BiquadResponseOracle()
        band = Band("a", 1000.0, 6.0, 1.0)
        values = band_response(band, np.array([1000.0, 20.0]), oracle)

        assert values[0] == pytest.approx(6.0, abs=1e-6)
        assert abs(values[1]) < 0.1

    def test_biquad_zero_gain_is_flat(self):
        """A 0 dB peaking biquad is transparent."""
        oracle = BiquadResponseOracle()
        grid = log_frequency_grid(50)
        values = oracle.evaluate(BandKind.PEAKING, 1000.0, 1.0, 0.0, grid)

        np.testing.assert_allclose(values, 0.0, atol=1e-9)

    def test_biquad_rejects_above_nyquist(self):
        """Query frequencies at or above Nyquist are rejected."""
        oracle = BiquadResponseOracle(sample_rate=16000)

        with pytest.raises(ValueError):
            oracle.evaluate(BandKind.PEAKING, 1000.0, 1.0, 3.0, np.array([9000.0]))

    def test_point_has_no_biquad(self):
        """Plain points cannot be realised as a biquad."""
        with pytest.raises(ValueError):
            biquad_coefficients(BandKind.POINT, 1000.0, 1.0, 0.0)

    def test_failure_falls_back(self):
        """Oracle exceptions fall back to the analytic curve."""
        band = Band("a", 1000.0, 6.0, 1.0)
        grid = log_frequency_grid(64)

        np.testing.assert_allclose(
            band_response(band, grid, FailingOracle()),
            analytic_band_response(band, grid),
        )

    def test_wrong_shape_falls_back(self):
        """Oracle output of the wrong shape is rejected per band."""
        band = Band("a", 300.0, -4.0, 2.0)
        grid = log_frequency_grid(64)

        np.testing.assert_allclose(
            band_response(band, grid, WrongShapeOracle()),
            analytic_band_response(band, grid),
        )

    def test_peak_normalization(self):
        """An oracle that undershoots is rescaled to the requested gain."""
        band = Band("a", 1000.0, 8.0, 1.0)
        values = band_response(band, np.array([1000.0, 2000.0]), ScaledOracle())
        expected = analytic_band_response(band, np.array([1000.0, 2000.0]))

        np.testing.assert_allclose(values, expected)

    def test_shelf_normalization(self):
        """Shelves are rescaled by the extreme value of the curve."""
        band = Band("s", 1000.0, 6.0, 1.0, BandKind.LOW_SHELF)
        curve = np.array([3.0, 2.0, 0.5])

        np.testing.assert_allclose(normalize_peak(curve, band), [6.0, 4.0, 1.0])

    def test_pass_filters_not_normalized(self):
        """Kinds that ignore gain are returned unchanged."""
        band = Band("lp", 1000.0, 6.0, 1.0, BandKind.LOWPASS)
        curve = np.array([0.0, -3.0, -12.0])

        np.testing.assert_allclose(normalize_peak(curve, band, reference_db=-3.0), curve)


class TestPointInterpolation:
    """Tests for the point interpolation strategy."""

    def test_no_points(self):
        """No points give 0 dB."""
        response = point_response([], np.array([20.0, 1000.0, 20000.0]))

        assert np.all(response.magnitudes == 0.0)

    def test_single_point(self):
        """A single point gives a flat curve at its gain."""
        response = point_response([Band("p", 300.0, 4.0)], np.array([20.0, 20000.0]))

        np.testing.assert_allclose(response.magnitudes, [4.0, 4.0])

    def test_log_linear_midpoint(self):
        """Halfway in log frequency is halfway in dB."""
        points = [Band("a", 100.0, 6.0), Band("b", 10000.0, -6.0)]
        response = point_response(points, np.array([1000.0]))

        assert response.magnitudes[0] == pytest.approx(0.0)

    def test_flat_extrapolation(self):
        """Outside the points the nearest endpoint is held."""
        points = [Band("a", 100.0, 6.0), Band("b", 1000.0, -2.0)]
        response = point_response(points, np.array([20.0, 20000.0]))

        np.testing.assert_allclose(response.magnitudes, [6.0, -2.0])

    def test_unsorted_points_and_anchor(self):
        """Points are sorted and the anchor takes part."""
        anchor = Band("reference", 1000.0, 0.0, 1.0, BandKind.POINT)
        points = [Band("b", 10000.0, 6.0), Band("a", 100.0, -6.0)]
        freqs = np.array([np.sqrt(100 * 1000), np.sqrt(1000 * 10000)])
        response = point_response(points, freqs, anchor)

        np.testing.assert_allclose(response.magnitudes, [-3.0, 3.0], atol=1e-9)

    def test_zero_width_span(self):
        """Two points at the same frequency do not divide by zero."""
        values = interpolate_log_linear([500.0, 500.0, 2000.0], [3.0, -3.0, 0.0],
                                        np.array([100.0, 500.0, 1000.0, 5000.0]))

        assert np.all(np.isfinite(values))
        assert values[0] == pytest.approx(3.0)
        assert values[3] == pytest.approx(0.0)

    def test_power_warp(self):
        """Exponent warps the interpolation parameter."""
        value = interpolate_log_linear([100.0, 10000.0], [0.0, 8.0], 1000.0, power=2.0)

        assert value[0] == pytest.approx(2.0)


class TestAutoGain:
    """Tests for auto gain compensation."""

    def test_no_bands(self):
        """No bands need no compensation."""
        assert auto_gain_db([]) == 0.0

    def test_cut_only(self):
        """Cuts never produce positive gain."""
        assert auto_gain_db([Band("a", 1000.0, -6.0, 1.0)]) == 0.0

    def test_low_boost(self):
        """A bass boost is compensated by its full gain."""
        gain = auto_gain_db([Band("a", 100.0, 6.0, 1.0, BandKind.LOW_SHELF)])

        assert gain == pytest.approx(-6.0)

    def test_treble_boost_weighted(self):
        """High boosts are weighted down by the program spectrum."""
        gain = auto_gain_db([Band("a", 8000.0, 6.0, 1.0)])

        assert -6.0 < gain <= 0.0


class TestResponseModel:
    """Tests for the cached response model."""

    def test_cache_follows_store_version(self):
        """The curve is recomputed only after a store change."""
        store = EntityStore()
        model = ResponseModel()
        first = model.compute(store)

        assert model.compute(store) is first

        band = store.add(1000.0, 6.0)
        second = model.compute(store)

        assert second is not first
        assert second.at(1000.0) == pytest.approx(6.0, abs=0.05)

        store.update(band.id, gain=-6.0)
        assert model.compute(store).at(1000.0) == pytest.approx(-6.0, abs=0.05)

    def test_point_mode_value(self):
        """Point mode interpolates through the reference anchor."""
        store = EntityStore(EditorMode.POINTS)
        store.add(100.0, 6.0)
        model = ResponseModel(mode=EditorMode.POINTS)

        assert model.value_at(store, 1000.0) == pytest.approx(0.0)
        assert model.value_at(store, np.sqrt(100 * 1000)) == pytest.approx(3.0)
        assert model.value_at(store, 20.0) == pytest.approx(6.0)

    def test_empty_store_flat(self):
        """Empty store gives 0 dB at 1 kHz."""
        assert ResponseModel().value_at(EntityStore(), 1000.0) == 0.0
