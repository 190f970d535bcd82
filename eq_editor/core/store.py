"""
Entity Store

In-memory list of bands or points, the point-mode reference anchor and
the output volume.

Technical assumptions:
- Ids are opaque strings produced by an injectable factory
- Insertion order is kept; the response model does its own sorting
- version changes on every mutation, identity only when the whole
  entity set is replaced (profile switch)
- The reference anchor exists only in point mode and is never part of ids
"""

from typing import Callable, Iterable, Optional
import logging
import uuid

from .config import EditorMode
from .entities import (
    Band,
    BandKind,
    REFERENCE_ID,
    GAIN_MIN,
    GAIN_MAX,
    clamp,
    reference_anchor,
)

logger = logging.getLogger(__name__)

StoreListener = Callable[["EntityStore", str], None]

# Change kinds passed to listeners
ADDED = "added"
UPDATED = "updated"
REMOVED = "removed"
REPLACED = "replaced"
VOLUME = "volume"


def default_id_factory() -> str:
    return f"band-{uuid.uuid4().hex[:12]}"


class EntityStore:
    """
    Owner of the editable entities.

    Listeners are called synchronously after each mutation with the store
    and the change kind.
    """

    def __init__(
        self,
        mode: EditorMode = EditorMode.BANDS,
        entities: Iterable[Band] = (),
        volume: float = 0.0,
        id_factory: Callable[[], str] = default_id_factory,
    ):
        self.mode = mode
        self._id_factory = id_factory
        self._entities: dict[str, Band] = {}
        self._volume = clamp(float(volume), GAIN_MIN, GAIN_MAX)
        self._listeners: list[StoreListener] = []
        self._anchor = reference_anchor() if mode == EditorMode.POINTS else None
        self.version = 0
        self.identity = 0
        for entity in entities:
            self._insert(entity.copy())

    # --- Queries ------------------------------------------------------------

    @property
    def entities(self) -> list[Band]:
        return list(self._entities.values())

    @property
    def ids(self) -> frozenset:
        return frozenset(self._entities)

    @property
    def anchor(self) -> Optional[Band]:
        """Reference anchor (point mode only), returned as a copy."""
        return self._anchor.copy() if self._anchor is not None else None

    @property
    def volume(self) -> float:
        return self._volume

    def get(self, entity_id: str) -> Optional[Band]:
        return self._entities.get(entity_id)

    def __contains__(self, entity_id) -> bool:
        return entity_id in self._entities

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self):
        return iter(list(self._entities.values()))

    # --- Mutations ----------------------------------------------------------

    def new_id(self) -> str:
        entity_id = self._id_factory()
        while entity_id in self._entities or entity_id == REFERENCE_ID:
            entity_id = self._id_factory()
        return entity_id

    def add(
        self,
        frequency: float,
        gain: float = 0.0,
        q: float = 1.0,
        kind: Optional[BandKind] = None,
    ) -> Band:
        """Create a new entity with a fresh id. Values are clamped."""
        if kind is None:
            kind = BandKind.POINT if self.mode == EditorMode.POINTS else BandKind.PEAKING
        band = Band(self.new_id(), frequency, gain, q, kind)
        self._insert(band)
        self._changed(ADDED)
        logger.debug("Added %s at %.1f Hz, %.2f dB", band.id, band.frequency, band.gain)
        return band

    def update(
        self,
        entity_id: str,
        frequency: Optional[float] = None,
        gain: Optional[float] = None,
        q: Optional[float] = None,
        kind: Optional[BandKind] = None,
    ) -> bool:
        """
        Update an entity in place.

        Returns:
            True if the entity exists and a value changed. Unknown ids are a no-op.
        """
        band = self._entities.get(entity_id)
        if band is None:
            return False
        if band.apply(frequency, gain, q, kind):
            self._changed(UPDATED)
            return True
        return False

    def update_many(self, values: dict) -> bool:
        """
        Update several entities with a single notification.

        Args:
            values: id -> (frequency, gain, q); unknown ids are skipped
        """
        changed = False
        for entity_id, (frequency, gain, q) in values.items():
            band = self._entities.get(entity_id)
            if band is not None and band.apply(frequency, gain, q):
                changed = True
        if changed:
            self._changed(UPDATED)
        return changed

    def remove(self, entity_id: str) -> bool:
        return self.remove_many([entity_id]) > 0

    def remove_many(self, entity_ids: Iterable[str]) -> int:
        """Delete entities; unknown ids (including the anchor) are ignored."""
        removed = 0
        for entity_id in list(entity_ids):
            if self._entities.pop(entity_id, None) is not None:
                removed += 1
        if removed:
            self._changed(REMOVED)
            logger.debug("Removed %d entities", removed)
        return removed

    def replace_all(self, entities: Iterable[Band], volume: Optional[float] = None) -> None:
        """Swap in a new entity set (profile switch)."""
        self._entities.clear()
        for entity in entities:
            self._insert(entity.copy())
        if volume is not None:
            self._volume = clamp(float(volume), GAIN_MIN, GAIN_MAX)
        self.identity += 1
        self._changed(REPLACED)

    def set_volume(self, volume: float) -> bool:
        volume = clamp(float(volume), GAIN_MIN, GAIN_MAX)
        if volume == self._volume:
            return False
        self._volume = volume
        self._changed(VOLUME)
        return True

    # --- Observers ----------------------------------------------------------

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a change listener. Returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def clear_listeners(self) -> None:
        self._listeners.clear()

    def _insert(self, band: Band) -> None:
        if band.id == REFERENCE_ID:
            logger.warning("Ignoring entity with reserved id %r", REFERENCE_ID)
            return
        if self.mode == EditorMode.POINTS:
            band.kind = BandKind.POINT
        self._entities[band.id] = band

    def _changed(self, kind: str) -> None:
        self.version += 1
        for listener in list(self._listeners):
            listener(self, kind)
