"""
Selection Model

Single and multi selection, pixel hit testing and marquee selection.

Technical assumptions:
- Hit testing works on pixel distance, not on value distance
- Rectangle membership is inclusive on all edges
- A marquee's rectangle does not depend on the drag direction
"""

from dataclasses import dataclass
from typing import Iterable, Optional
import math

from .coordinates import Viewport
from .entities import Band


@dataclass(frozen=True)
class Rect:
    """Axis-aligned pixel rectangle (x, y is the top-left corner)."""
    x: float
    y: float
    w: float
    h: float

    @classmethod
    def from_corners(cls, x0: float, y0: float, x1: float, y1: float) -> "Rect":
        return cls(min(x0, x1), min(y0, y1), abs(x1 - x0), abs(y1 - y0))

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.x + self.w and self.y <= py <= self.y + self.h

    @property
    def diagonal(self) -> float:
        return math.hypot(self.w, self.h)


@dataclass
class Marquee:
    """
    Live marquee gesture.

    Attributes:
        start: Pixel position of the pointer-down
        end: Current pixel position
        additive: Started with the select modifier (union instead of replace)
        base: Selection at the start of the gesture
    """
    start: tuple[float, float]
    end: tuple[float, float]
    additive: bool = False
    base: frozenset = frozenset()

    @property
    def rect(self) -> Rect:
        return Rect.from_corners(*self.start, *self.end)


def hit_test(
    entities: Iterable[Band],
    x: float,
    y: float,
    viewport: Viewport,
    radius: float = 10.0,
) -> Optional[str]:
    """
    Find the entity under the pointer.

    Args:
        entities: Candidate entities
        x, y: Pointer position in pixels
        viewport: Plot geometry
        radius: Maximum distance in pixels (inclusive)

    Returns:
        Id of the nearest entity within radius, or None
    """
    best_id = None
    best_distance = radius
    for entity in entities:
        ex, ey = viewport.to_pixel(entity.frequency, entity.gain)
        distance = math.hypot(ex - x, ey - y)
        if distance <= best_distance:
            if best_id is None or distance < best_distance:
                best_id = entity.id
                best_distance = distance
    return best_id


def enclosed_ids(entities: Iterable[Band], rect: Rect, viewport: Viewport) -> frozenset:
    """Ids of all entities whose pixel position lies inside rect."""
    return frozenset(
        entity.id
        for entity in entities
        if rect.contains(*viewport.to_pixel(entity.frequency, entity.gain))
    )


class SelectionModel:
    """
    Set of selected entity ids plus the optional live marquee.

    The primary id is the most recently selected entity.
    """

    def __init__(self, click_threshold: float = 3.0):
        self.click_threshold = click_threshold
        self._ids: frozenset = frozenset()
        self._primary: Optional[str] = None
        self.marquee: Optional[Marquee] = None

    @property
    def ids(self) -> frozenset:
        return self._ids

    @property
    def primary(self) -> Optional[str]:
        return self._primary

    def __contains__(self, entity_id) -> bool:
        return entity_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def is_multi(self) -> bool:
        return len(self._ids) > 1

    def set(self, ids: Iterable[str]) -> None:
        self._ids = frozenset(ids)
        if self._primary not in self._ids:
            self._primary = next(iter(sorted(self._ids)), None)

    def select_only(self, entity_id: str) -> None:
        self._ids = frozenset([entity_id])
        self._primary = entity_id

    def toggle(self, entity_id: str) -> bool:
        """Flip membership of one id. Returns True if it is now selected."""
        if entity_id in self._ids:
            self.set(self._ids - {entity_id})
            return False
        self._ids = self._ids | {entity_id}
        self._primary = entity_id
        return True

    def clear(self) -> None:
        self._ids = frozenset()
        self._primary = None

    def discard(self, entity_ids: Iterable[str]) -> None:
        self.set(self._ids - frozenset(entity_ids))

    def prune(self, valid_ids: Iterable[str]) -> None:
        """Drop ids that are no longer in the store, including a running marquee's base."""
        valid = frozenset(valid_ids)
        self.set(self._ids & valid)
        if self.marquee is not None:
            self.marquee.base = self.marquee.base & valid

    # --- Marquee ------------------------------------------------------------

    def begin_marquee(self, x: float, y: float, additive: bool = False) -> Marquee:
        self.marquee = Marquee((x, y), (x, y), additive, self._ids)
        return self.marquee

    def update_marquee(
        self,
        x: float,
        y: float,
        entities: Iterable[Band],
        viewport: Viewport,
    ) -> frozenset:
        """Move the marquee end and update the selection live."""
        if self.marquee is None:
            return self._ids
        self.marquee.end = (x, y)
        enclosed = enclosed_ids(entities, self.marquee.rect, viewport)
        if self.marquee.additive:
            self.set(self.marquee.base | enclosed)
        else:
            self.set(enclosed)
        return self._ids

    def finish_marquee(self) -> frozenset:
        """
        End the marquee gesture.

        A non-additive marquee smaller than the click threshold is an
        empty-space click and clears the selection.
        """
        marquee = self.marquee
        self.marquee = None
        if marquee is not None and not marquee.additive:
            if marquee.rect.diagonal < self.click_threshold:
                self.clear()
        return self._ids

    def cancel_marquee(self) -> None:
        """Abort the marquee and restore the pre-marquee selection."""
        if self.marquee is not None:
            self.set(self.marquee.base)
            self.marquee = None
