"""
Tests for display formatting.
"""

import pytest

from eq_editor.core.entities import q_to_bandwidth
from eq_editor.utils.formatting import (
    format_band,
    format_bandwidth,
    format_db,
    format_frequency,
    format_q,
)


class TestFormatting:
    """Tests for the formatting helpers."""

    def test_frequency(self):
        assert format_frequency(250) == "250 Hz"
        assert format_frequency(1500) == "1.5 kHz"

    def test_db(self):
        assert format_db(3) == "+3.0 dB"
        assert format_db(-12.34) == "-12.3 dB"
        assert format_db(3, signed=False) == "3.0 dB"
        assert format_db(float('-inf')) == "-∞ dB"

    def test_q(self):
        assert format_q(1.414) == "Q 1.41"

    def test_bandwidth(self):
        """Q = sqrt(2) corresponds to one octave."""
        assert format_bandwidth(2 ** 0.5) == "1.00 oct"

    def test_bandwidth_matches_core(self):
        assert format_bandwidth(2.0) == f"{q_to_bandwidth(2.0):.2f} oct"

    def test_bandwidth_rejects_zero(self):
        with pytest.raises(ValueError):
            format_bandwidth(0)

    def test_band(self):
        assert format_band(1000, 6) == "1.0 kHz  +6.0 dB"
        assert format_band(1000, 6, 1) == "1.0 kHz  +6.0 dB  Q 1.00"
