"""
Tests for hit testing and the selection model.
"""

import pytest

from eq_editor.core.coordinates import Viewport
from eq_editor.core.entities import Band
from eq_editor.core.selection import Marquee, Rect, SelectionModel, enclosed_ids, hit_test


VIEWPORT = Viewport(1000, 480)


def band_at(entity_id, x, y):
    """Band whose pixel position is (x, y) in VIEWPORT."""
    frequency, gain = VIEWPORT.to_value(x, y)
    return Band(entity_id, frequency, gain)


@pytest.fixture
def five_bands():
    return [
        band_at("a", 100, 100),
        band_at("b", 200, 150),
        band_at("c", 300, 200),
        band_at("d", 600, 300),
        band_at("e", 800, 400),
    ]


class TestHitTest:
    """Tests for pixel hit testing."""

    def test_hit_within_radius(self):
        bands = [band_at("a", 500, 240)]

        assert hit_test(bands, 506, 247, VIEWPORT) == "a"
        assert hit_test(bands, 511, 240, VIEWPORT) is None

    def test_radius_is_inclusive(self):
        bands = [band_at("a", 500, 240)]

        assert hit_test(bands, 500, 250, VIEWPORT, radius=10.0) == "a"

    def test_nearest_wins(self):
        bands = [band_at("a", 500, 240), band_at("b", 508, 240)]

        assert hit_test(bands, 505, 240, VIEWPORT) == "b"
        assert hit_test(bands, 503, 240, VIEWPORT) == "a"

    def test_nothing_hit(self):
        assert hit_test([], 10, 10, VIEWPORT) is None


class TestMarquee:
    """Tests for marquee rectangles."""

    def test_rect_is_direction_independent(self):
        forward = Marquee((10, 20), (110, 220)).rect
        backward = Marquee((110, 220), (10, 20)).rect

        assert forward == backward == Rect(10, 20, 100, 200)

    def test_enclosed_set_is_direction_independent(self, five_bands):
        forward = enclosed_ids(five_bands, Rect.from_corners(50, 50, 350, 250), VIEWPORT)
        backward = enclosed_ids(five_bands, Rect.from_corners(350, 250, 50, 50), VIEWPORT)

        assert forward == backward == frozenset({"a", "b", "c"})

    def test_membership_inclusive(self):
        rect = Rect(0, 0, 10, 10)

        assert rect.contains(10, 10)
        assert rect.contains(0, 5)
        assert not rect.contains(10.5, 5)


class TestSelectionModel:
    """Tests for the selection model."""

    def test_marquee_selects_enclosed(self, five_bands):
        """Marquee around 3 of 5 entities selects exactly those 3."""
        selection = SelectionModel()
        selection.begin_marquee(50, 50)
        selection.update_marquee(350, 250, five_bands, VIEWPORT)
        selection.finish_marquee()

        assert selection.ids == frozenset({"a", "b", "c"})

    def test_additive_marquee_unions(self, five_bands):
        """With the modifier the new set is added to the previous one."""
        selection = SelectionModel()
        selection.set({"a", "b", "c"})
        selection.begin_marquee(550, 250, additive=True)
        selection.update_marquee(650, 350, five_bands, VIEWPORT)
        selection.finish_marquee()

        assert selection.ids == frozenset({"a", "b", "c", "d"})

    def test_plain_marquee_replaces(self, five_bands):
        selection = SelectionModel()
        selection.set({"a"})
        selection.begin_marquee(550, 250)
        selection.update_marquee(650, 350, five_bands, VIEWPORT)

        assert selection.ids == frozenset({"d"})

    def test_live_update_shrinks(self, five_bands):
        """The selection follows the marquee while it is dragged."""
        selection = SelectionModel()
        selection.begin_marquee(50, 50)
        selection.update_marquee(350, 250, five_bands, VIEWPORT)
        selection.update_marquee(150, 120, five_bands, VIEWPORT)

        assert selection.ids == frozenset({"a"})

    def test_short_marquee_clears(self):
        """A tiny non-additive marquee is an empty-space click."""
        selection = SelectionModel(click_threshold=3.0)
        selection.set({"a", "b"})
        selection.begin_marquee(10, 10)
        selection.marquee.end = (11, 11)
        selection.finish_marquee()

        assert selection.ids == frozenset()

    def test_short_additive_marquee_keeps(self):
        selection = SelectionModel()
        selection.set({"a"})
        selection.begin_marquee(10, 10, additive=True)
        selection.finish_marquee()

        assert selection.ids == frozenset({"a"})

    def test_cancel_restores(self, five_bands):
        selection = SelectionModel()
        selection.set({"e"})
        selection.begin_marquee(50, 50)
        selection.update_marquee(350, 250, five_bands, VIEWPORT)
        selection.cancel_marquee()

        assert selection.ids == frozenset({"e"})
        assert selection.marquee is None

    def test_toggle_and_primary(self):
        selection = SelectionModel()
        selection.select_only("a")

        assert selection.toggle("b")
        assert selection.primary == "b"
        assert selection.is_multi()
        assert not selection.toggle("b")
        assert selection.ids == frozenset({"a"})
        assert selection.primary == "a"

    def test_prune(self):
        selection = SelectionModel()
        selection.set({"a", "b", "c"})
        selection.prune({"a", "c", "z"})

        assert selection.ids == frozenset({"a", "c"})

    def test_prune_marquee_base(self):
        """Pruned ids are not restored when the marquee is cancelled."""
        selection = SelectionModel()
        selection.set({"a", "b"})
        selection.begin_marquee(0, 0, additive=True)
        selection.prune({"b"})
        selection.cancel_marquee()

        assert selection.ids == frozenset({"b"})
