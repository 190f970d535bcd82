"""
Interaction Engine

Pointer and keyboard state machine of the curve editor. Turns raw input
events into EntityStore / SelectionModel mutations and produces the
render bundle for the painter.

States:
- IDLE, HOVER_ENTITY, HOVER_INSERTION_LINE (ghost node visible)
- DRAGGING_SINGLE, DRAGGING_MULTI, ADJUSTING_Q (shape modifier held while dragging)
- MARQUEE_SELECTING, DRAGGING_VOLUME

Technical assumptions:
- Single-threaded; the engine is the only writer of store and selection
- Pointer moves are rate-limited (leading + trailing); the trailing move
  is delivered by tick(), which the host calls from its render timer
- Pointer-up cancels any pending move and applies its own position, so
  the final position of a drag is always the release position
- Profile writes are debounced and flushed on pointer-up

Documented limitations:
- Q adjustment only exists in band mode, points have no width
- A pending move delivered after the pointer left the plot is clamped
  to the plot area, never rejected
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Optional
from contextlib import contextmanager
import logging
import math

from .config import EditorConfig, EditorMode
from .coordinates import Viewport, gain_to_y, y_to_gain
from .entities import Band, BandKind, BandSnapshot, clamp_q, q_to_bandwidth
from .profiles import (
    ProfileCommitter,
    ProfileData,
    ProfileRepository,
    load_profile_safe,
)
from .response import FrequencyResponse, ResponseModel, auto_gain_db, log_frequency_grid
from .amplitude_curve import AmplitudeCurveParams
from .selection import Rect, SelectionModel, hit_test
from .store import EntityStore, REMOVED, REPLACED
from .biquad import FilterResponseOracle
from .timing import Clock, RateLimiter, SystemClock

logger = logging.getLogger(__name__)


class InteractionState(Enum):
    IDLE = "idle"
    HOVER_ENTITY = "hover_entity"
    HOVER_INSERTION_LINE = "hover_insertion_line"
    DRAGGING_SINGLE = "dragging_single"
    DRAGGING_MULTI = "dragging_multi"
    ADJUSTING_Q = "adjusting_q"
    MARQUEE_SELECTING = "marquee_selecting"
    DRAGGING_VOLUME = "dragging_volume"


DRAG_STATES = (
    InteractionState.DRAGGING_SINGLE,
    InteractionState.DRAGGING_MULTI,
    InteractionState.ADJUSTING_Q,
)


class PointerButton(Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


@dataclass(frozen=True)
class Modifiers:
    """
    Modifier keys relevant to the editor.

    Attributes:
        shape: Switches vertical drag from gain to Q (Shift)
        select: Toggle / additive selection (Ctrl, Cmd or Alt)
    """
    shape: bool = False
    select: bool = False


NO_MODIFIERS = Modifiers()


@dataclass(frozen=True)
class CalibrationHint:
    """Best-effort hint for an audio feedback collaborator."""
    frequency: Optional[float] = None
    bandwidth: Optional[float] = None


HintSink = Callable[[CalibrationHint], None]


@dataclass(frozen=True)
class GhostNode:
    """
    Preview of where a click would insert a new entity.

    gain is the value the new entity gets; (x, y) is where the preview is
    drawn, on the displayed curve.
    """
    frequency: float
    gain: float
    x: float
    y: float


@dataclass(frozen=True)
class RenderBundle:
    """Everything the painter needs for one frame. Entities are copies."""
    entities: tuple
    response: FrequencyResponse
    selection: frozenset
    hovered_id: Optional[str]
    dragging_id: Optional[str]
    ghost_node: Optional[GhostNode]
    marquee_rect: Optional[Rect]
    state: InteractionState
    volume: float
    anchor: Optional[Band]
    hovering_volume: bool
    version: int


@dataclass
class EditorState:
    """
    Mutable interaction state owned by the engine.

    version is bumped on every change that affects the render bundle.
    """
    state: InteractionState = InteractionState.IDLE
    hovered_id: Optional[str] = None
    dragging_id: Optional[str] = None
    ghost_node: Optional[GhostNode] = None
    hovering_volume: bool = False
    snapshot: dict = field(default_factory=dict)
    drag_origin: Optional[tuple] = None
    drag_offset: tuple = (0.0, 0.0)
    multi: bool = False
    pointer: Optional[tuple] = None
    modifiers: Modifiers = NO_MODIFIERS
    last_q: Optional[float] = None
    version: int = 0

    def end_drag(self) -> None:
        self.dragging_id = None
        self.snapshot = {}
        self.drag_origin = None
        self.drag_offset = (0.0, 0.0)
        self.multi = False


EngineListener = Callable[["InteractionEngine"], None]


def _shrink_offset(offset: float, delta: float) -> float:
    """Reduce an offset by pointer travel in its own direction, never past zero."""
    if offset > 0 and delta > 0:
        return max(0.0, offset - delta)
    if offset < 0 and delta < 0:
        return min(0.0, offset - delta)
    return offset


INSTRUCTIONS = {
    InteractionState.IDLE: "Click the center line to add a band, drag to select",
    InteractionState.HOVER_ENTITY: "Drag to move, Shift+drag to change Q, right-click to delete",
    InteractionState.HOVER_INSERTION_LINE: "Click to add a band",
    InteractionState.DRAGGING_SINGLE: "Hold Shift to change Q",
    InteractionState.DRAGGING_MULTI: "Moving selected bands, hold Shift to change Q",
    InteractionState.ADJUSTING_Q: "Drag up to narrow, down to widen",
    InteractionState.MARQUEE_SELECTING: "Release to select, hold Ctrl to add to the selection",
    InteractionState.DRAGGING_VOLUME: "Drag to change the volume",
}

POINT_INSTRUCTIONS = {
    InteractionState.IDLE: "Click the curve to add a point, drag to select",
    InteractionState.HOVER_ENTITY: "Drag to move, right-click to delete",
    InteractionState.HOVER_INSERTION_LINE: "Click to add a point",
    InteractionState.DRAGGING_SINGLE: "Moving point",
    InteractionState.DRAGGING_MULTI: "Moving selected points",
}


class InteractionEngine:
    """
    Curve editor state machine.

    Args:
        store: Entities to edit; its mode selects bands or points
        config: Editor constants
        oracle: Exact per-band response source, analytic fallback if None
        repository: Profile storage, nothing is persisted if None
        profile_id: Profile written by the debounced commit
        clock: Time source for rate limiting and debouncing
        hint_sink: Receiver of calibration hints
        width, height: Initial plot area size in pixels
    """

    def __init__(
        self,
        store: Optional[EntityStore] = None,
        config: Optional[EditorConfig] = None,
        oracle: Optional[FilterResponseOracle] = None,
        repository: Optional[ProfileRepository] = None,
        profile_id: str = "default",
        clock: Optional[Clock] = None,
        hint_sink: Optional[HintSink] = None,
        width: float = 800.0,
        height: float = 400.0,
        amplitude_curve: Optional[AmplitudeCurveParams] = None,
    ):
        self.config = config or EditorConfig()
        self.store = store if store is not None else EntityStore()
        self.clock = clock or SystemClock()
        self.hint_sink = hint_sink
        self.selection = SelectionModel(self.config.marquee_click_threshold)
        self.viewport = Viewport(width, height, self.config.freq_range, self.config.amp_range)
        self.response = ResponseModel(
            mode=self.store.mode,
            oracle=oracle,
            grid=log_frequency_grid(self.config.response_points, self.config.freq_range),
            amplitude_curve=amplitude_curve,
        )
        self.state = EditorState()

        self._move_limiter = RateLimiter(self.config.move_interval, self.clock)
        self._committer: Optional[ProfileCommitter] = None
        if repository is not None:
            self._committer = ProfileCommitter(
                repository, profile_id, self._profile_snapshot, self.clock, self.config.commit_delay
            )
        self._listeners: list[EngineListener] = []
        self._depth = 0
        self._dirty = False
        self._destroyed = False
        self._unsubscribe_store = self.store.subscribe(self._on_store_changed)

    # --- Properties ---------------------------------------------------------

    @property
    def mode(self) -> EditorMode:
        return self.store.mode

    @property
    def oracle(self) -> Optional[FilterResponseOracle]:
        return self.response.oracle

    @property
    def profile_id(self) -> Optional[str]:
        return self._committer.profile_id if self._committer is not None else None

    @property
    def instruction(self) -> str:
        """Short hint text for the current interaction state."""
        state = self.state.state
        if self.state.hovering_volume and state == InteractionState.IDLE:
            return INSTRUCTIONS[InteractionState.DRAGGING_VOLUME]
        if self.mode == EditorMode.POINTS and state in POINT_INSTRUCTIONS:
            return POINT_INSTRUCTIONS[state]
        return INSTRUCTIONS[state]

    # --- Observers ----------------------------------------------------------

    def subscribe(self, listener: EngineListener) -> Callable[[], None]:
        """Register a listener called after every visible change."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @contextmanager
    def _mutation(self):
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1
            if self._depth == 0 and self._dirty:
                self._dirty = False
                self._notify()

    def _touch(self) -> None:
        self.state.version += 1
        self._dirty = True
        if self._depth == 0:
            self._dirty = False
            self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _on_store_changed(self, store: EntityStore, kind: str) -> None:
        if kind == REPLACED:
            self.selection.marquee = None
            self.selection.clear()
            self._move_limiter.cancel()
            self.state.end_drag()
            self.state.hovered_id = None
            self.state.ghost_node = None
            self.state.state = InteractionState.IDLE
        elif kind == REMOVED:
            ids = store.ids
            self.selection.prune(ids)
            if self.state.hovered_id not in ids:
                self.state.hovered_id = None
            self.state.snapshot = {k: v for k, v in self.state.snapshot.items() if k in ids}
            if self.state.dragging_id is not None and self.state.dragging_id not in ids:
                self._move_limiter.cancel()
                self.state.end_drag()
                self.state.state = InteractionState.IDLE
            if self.state.state == InteractionState.HOVER_ENTITY and self.state.hovered_id is None:
                self.state.state = InteractionState.IDLE
        if kind != REPLACED and self._committer is not None:
            self._committer.schedule()
        self._touch()

    # --- Pointer input ------------------------------------------------------

    def pointer_down(
        self,
        x: float,
        y: float,
        button: PointerButton = PointerButton.PRIMARY,
        modifiers: Modifiers = NO_MODIFIERS,
    ) -> None:
        if self._destroyed:
            return
        with self._mutation():
            self.state.modifiers = modifiers
            self._move_limiter.cancel()
            self.state.pointer = (x, y)
            if button == PointerButton.SECONDARY:
                self._secondary_down(x, y)
            else:
                self._primary_down(x, y)
            self._touch()

    def _primary_down(self, x: float, y: float) -> None:
        mods = self.state.modifiers

        if self._volume_handle_hit(x, y):
            self.state.state = InteractionState.DRAGGING_VOLUME
            self.state.ghost_node = None
            return

        hit = hit_test(self.store.entities, x, y, self.viewport, self.config.hit_radius)
        if hit is not None:
            if mods.select:
                self.selection.toggle(hit)
                self.state.hovered_id = hit
                self.state.state = InteractionState.HOVER_ENTITY
                return
            if self.selection.is_multi() and hit in self.selection:
                self._begin_drag(hit, multi=True, x=x, y=y)
            else:
                self.selection.select_only(hit)
                self._begin_drag(hit, multi=False, x=x, y=y)
            return

        candidate = self._insertion_candidate(x, y)
        if candidate is not None and not mods.select:
            band = self._create_at(candidate)
            self.selection.select_only(band.id)
            self._begin_drag(band.id, multi=False, x=x, y=y)
            self._emit_hint(frequency=band.frequency, bandwidth=1.0 / band.q)
            return

        self.selection.begin_marquee(x, y, additive=mods.select)
        self.state.hovered_id = None
        self.state.ghost_node = None
        self.state.state = InteractionState.MARQUEE_SELECTING

    def _secondary_down(self, x: float, y: float) -> None:
        hit = hit_test(self.store.entities, x, y, self.viewport, self.config.hit_radius)
        if hit is None:
            return
        if self.selection.is_multi() and hit in self.selection:
            ids = list(self.selection.ids)
        else:
            ids = [hit]
        self.store.remove_many(ids)
        self._update_hover(x, y)

    def pointer_move(self, x: float, y: float, modifiers: Optional[Modifiers] = None) -> None:
        """Submit a pointer move; applied now or on a later tick()."""
        if self._destroyed:
            return
        if modifiers is not None:
            self.set_modifiers(modifiers)
        self._move_limiter.call(lambda: self._apply_move(x, y))

    def pointer_up(self, x: Optional[float] = None, y: Optional[float] = None) -> None:
        """
        Finish the current gesture.

        The pending rate-limited move is dropped; the release position, when
        given, is applied synchronously instead.
        """
        if self._destroyed:
            return
        with self._mutation():
            self._move_limiter.cancel()
            has_position = x is not None and y is not None
            state = self.state.state

            if state in DRAG_STATES or state == InteractionState.DRAGGING_VOLUME:
                if has_position:
                    self._apply_move(x, y)
                self.state.end_drag()
            elif state == InteractionState.MARQUEE_SELECTING:
                if has_position:
                    self.selection.update_marquee(x, y, self.store.entities, self.viewport)
                self.selection.finish_marquee()

            if self._committer is not None:
                self._committer.flush()
            self.state.state = InteractionState.IDLE
            pointer = (x, y) if has_position else self.state.pointer
            if pointer is not None:
                self._update_hover(*pointer)
            self._touch()

    def pointer_leave(self) -> None:
        """Pointer left the plot area outside of a gesture."""
        if self._destroyed or self.state.state in DRAG_STATES:
            return
        if self.state.state in (InteractionState.MARQUEE_SELECTING, InteractionState.DRAGGING_VOLUME):
            return
        with self._mutation():
            self._move_limiter.cancel()
            self.state.hovered_id = None
            self.state.ghost_node = None
            self.state.hovering_volume = False
            self.state.state = InteractionState.IDLE
            self._touch()

    def set_modifiers(self, modifiers: Modifiers) -> None:
        """Update held modifier keys; toggles Q adjustment during a drag."""
        if self._destroyed or modifiers == self.state.modifiers:
            return
        with self._mutation():
            self.state.modifiers = modifiers
            state = self.state.state
            if state in DRAG_STATES:
                if modifiers.shape and self.mode == EditorMode.BANDS:
                    self.state.state = InteractionState.ADJUSTING_Q
                elif self.state.multi:
                    self.state.state = InteractionState.DRAGGING_MULTI
                else:
                    self.state.state = InteractionState.DRAGGING_SINGLE
            self._touch()

    def tick(self) -> None:
        """Run due deferred work (trailing pointer move, profile commit)."""
        if self._destroyed:
            return
        with self._mutation():
            self._move_limiter.poll()
            if self._committer is not None:
                self._committer.poll()

    # --- Gestures -----------------------------------------------------------

    def _begin_drag(self, entity_id: str, multi: bool, x: float, y: float) -> None:
        ids = self.selection.ids if multi else [entity_id]
        snapshot = {}
        for i in ids:
            band = self.store.get(i)
            if band is not None:
                snapshot[i] = band.snapshot()
        self.state.snapshot = snapshot
        self.state.dragging_id = entity_id
        self.state.multi = multi
        self.state.drag_origin = self.viewport.clamp_pixel(x, y)
        self.state.drag_offset = (0.0, 0.0)
        self.state.hovered_id = entity_id
        self.state.ghost_node = None
        if self.state.modifiers.shape and self.mode == EditorMode.BANDS:
            self.state.state = InteractionState.ADJUSTING_Q
        elif multi:
            self.state.state = InteractionState.DRAGGING_MULTI
        else:
            self.state.state = InteractionState.DRAGGING_SINGLE
        logger.debug("Drag started on %s (%d entities)", entity_id, len(snapshot))

    def _apply_move(self, x: float, y: float) -> None:
        with self._mutation():
            previous = self.state.pointer
            state = self.state.state
            if state == InteractionState.ADJUSTING_Q:
                self._adjust_q(x, y, previous)
            elif state in (InteractionState.DRAGGING_SINGLE, InteractionState.DRAGGING_MULTI):
                self._drag_to(x, y, previous)
            elif state == InteractionState.MARQUEE_SELECTING:
                self.selection.update_marquee(x, y, self.store.entities, self.viewport)
            elif state == InteractionState.DRAGGING_VOLUME:
                _, cy = self.viewport.clamp_pixel(x, y)
                self.store.set_volume(float(y_to_gain(cy, self.viewport.height, self.viewport.amp_range)))
            else:
                self._update_hover(x, y)
            self.state.pointer = (x, y)
            self._touch()

    def _drag_to(self, x: float, y: float, previous: Optional[tuple] = None) -> None:
        if previous is not None and not self.viewport.contains(x, y):
            # Outside the plot, travel away from it uses up the Q-adjust offset
            ox, oy = self.state.drag_offset
            self.state.drag_offset = (
                _shrink_offset(ox, x - previous[0]),
                _shrink_offset(oy, y - previous[1]),
            )
        ox, oy = self.state.drag_offset
        px, py = self.viewport.clamp_pixel(x - ox, y - oy)
        frequency, gain = self.viewport.to_value(px, py)

        if not self.state.multi:
            entity_id = self.state.dragging_id
            if entity_id is None or entity_id not in self.store:
                return
            self.store.update(entity_id, frequency=frequency, gain=gain)
            self._emit_hint(frequency=self.store.get(entity_id).frequency)
            return

        start_frequency, start_gain = self.viewport.to_value(*self.state.drag_origin)
        delta_log = math.log10(frequency) - math.log10(start_frequency)
        delta_gain = gain - start_gain
        values = {
            entity_id: (10 ** (math.log10(snap.frequency) + delta_log), snap.gain + delta_gain, None)
            for entity_id, snap in self.state.snapshot.items()
            if entity_id in self.store
        }
        self.store.update_many(values)

    def _adjust_q(self, x: float, y: float, previous: Optional[tuple]) -> None:
        if previous is None:
            return
        dx = x - previous[0]
        dy = y - previous[1]
        if self.viewport.contains(x, y):
            ox, oy = self.state.drag_offset
            self.state.drag_offset = (ox + dx, oy + dy)
        if dy == 0:
            return

        factor = math.exp(-dy * self.config.q_scale_factor)
        ids = self.state.snapshot.keys() if self.state.multi else [self.state.dragging_id]
        values = {}
        for entity_id in ids:
            band = self.store.get(entity_id)
            if band is not None:
                values[entity_id] = (None, None, clamp_q(band.q * factor))
        self.store.update_many(values)

        primary = self.store.get(self.state.dragging_id)
        if primary is not None:
            self.state.last_q = primary.q
            self._emit_hint(bandwidth=1.0 / primary.q)

    def _update_hover(self, x: float, y: float) -> None:
        self.state.hovering_volume = self._volume_handle_hit(x, y)
        hit = hit_test(self.store.entities, x, y, self.viewport, self.config.hit_radius)
        self.state.hovered_id = hit
        if hit is not None:
            self.state.ghost_node = None
            self.state.state = InteractionState.HOVER_ENTITY
            return
        candidate = None if self.state.hovering_volume else self._insertion_candidate(x, y)
        self.state.ghost_node = candidate
        if candidate is not None:
            self.state.state = InteractionState.HOVER_INSERTION_LINE
        else:
            self.state.state = InteractionState.IDLE

    def _insertion_candidate(self, x: float, y: float) -> Optional[GhostNode]:
        """Where a click at (x, y) would insert a new entity, if anywhere."""
        if not self.viewport.contains(x, y):
            return None
        frequency, _ = self.viewport.to_value(x, y)

        if self.mode == EditorMode.POINTS:
            curve_gain = self.response.value_at(self.store, frequency)
            curve_y = float(gain_to_y(curve_gain, self.viewport.height, self.viewport.amp_range))
            if abs(y - curve_y) > self.config.curve_threshold:
                return None
            return GhostNode(frequency, self.response.point_gain_at(self.store, frequency), x, curve_y)

        center_y = self.viewport.center_y
        if abs(y - center_y) > self.config.centerline_threshold:
            return None
        return GhostNode(frequency, 0.0, x, center_y)

    def _create_at(self, candidate: GhostNode) -> Band:
        if self.mode == EditorMode.POINTS:
            return self.store.add(candidate.frequency, candidate.gain, kind=BandKind.POINT)
        q = self.config.default_q
        if self.config.reuse_last_q and self.state.last_q is not None:
            q = self.state.last_q
        return self.store.add(candidate.frequency, 0.0, q, BandKind.PEAKING)

    def _volume_handle_hit(self, x: float, y: float) -> bool:
        size = self.config.volume_handle_size
        handle_y = float(gain_to_y(self.store.volume, self.viewport.height, self.viewport.amp_range))
        return (
            self.viewport.width - size <= x <= self.viewport.width
            and abs(y - handle_y) <= size / 2
        )

    def _emit_hint(self, frequency: Optional[float] = None, bandwidth: Optional[float] = None) -> None:
        if self.hint_sink is None:
            return
        try:
            self.hint_sink(CalibrationHint(frequency, bandwidth))
        except Exception as e:
            logger.warning("Calibration hint sink failed: %s", e)

    # --- Keyboard -----------------------------------------------------------

    def delete_selection(self) -> int:
        """Delete all selected entities (Delete / Backspace)."""
        if self._destroyed or self.state.state in DRAG_STATES:
            return 0
        return self.delete_entities(self.selection.ids)

    def escape(self) -> None:
        """Abort a marquee, otherwise clear the selection."""
        if self._destroyed:
            return
        with self._mutation():
            if self.state.state == InteractionState.MARQUEE_SELECTING:
                self.selection.cancel_marquee()
                self.state.state = InteractionState.IDLE
            elif self.state.state not in DRAG_STATES:
                self.selection.clear()
            self._touch()

    # --- Programmatic edits -------------------------------------------------

    def add_entity(
        self,
        frequency: float,
        gain: float = 0.0,
        q: Optional[float] = None,
        kind: Optional[BandKind] = None,
    ) -> Band:
        """Add an entity without pointer interaction. Values are clamped."""
        with self._mutation():
            return self.store.add(frequency, gain, self.config.default_q if q is None else q, kind)

    def update_entity(self, entity_id: str, **values) -> bool:
        """Update frequency / gain / q / kind of one entity. Unknown ids are a no-op."""
        with self._mutation():
            return self.store.update(entity_id, **values)

    def delete_entities(self, entity_ids) -> int:
        with self._mutation():
            return self.store.remove_many(entity_ids)

    def set_volume(self, volume: float) -> bool:
        with self._mutation():
            return self.store.set_volume(volume)

    def set_amplitude_curve(self, params: Optional[AmplitudeCurveParams]) -> None:
        with self._mutation():
            self.response.amplitude_curve = params
            self._touch()

    def auto_gain(self) -> float:
        """Suggested output gain in dB that keeps boosts from clipping."""
        if self.mode == EditorMode.POINTS:
            return 0.0
        return auto_gain_db(self.store.entities, self.oracle, self.config.freq_range)

    def resize(self, width: float, height: float) -> None:
        if width <= 0 or height <= 0:
            logger.debug("Ignoring resize to %sx%s", width, height)
            return
        with self._mutation():
            self.viewport = replace(self.viewport, width=width, height=height)
            self._touch()

    # --- Profiles -----------------------------------------------------------

    def load_profile(self, profile_id: Optional[str] = None) -> ProfileData:
        """
        Replace the entities with a stored profile.

        Pending writes for the previous profile are flushed first. A missing
        or malformed profile loads as empty.
        """
        if self._committer is None:
            raise ValueError("No profile repository configured")
        with self._mutation():
            self._committer.flush()
            if profile_id is not None:
                self._committer.profile_id = profile_id
            data = load_profile_safe(self._committer.repository, self._committer.profile_id)
            self.store.replace_all(data.entities, data.volume)
            logger.info("Loaded profile %s (%d entities)", self._committer.profile_id, len(data.entities))
            return data

    def flush(self) -> None:
        """Write pending profile changes now."""
        if self._committer is not None:
            self._committer.flush()

    def _profile_snapshot(self) -> ProfileData:
        return ProfileData([band.copy() for band in self.store.entities], self.store.volume)

    # --- Output -------------------------------------------------------------

    def render_bundle(self) -> RenderBundle:
        marquee = self.selection.marquee
        return RenderBundle(
            entities=tuple(band.copy() for band in self.store.entities),
            response=self.response.compute(self.store),
            selection=self.selection.ids,
            hovered_id=self.state.hovered_id,
            dragging_id=self.state.dragging_id,
            ghost_node=self.state.ghost_node,
            marquee_rect=marquee.rect if marquee is not None else None,
            state=self.state.state,
            volume=self.store.volume,
            anchor=self.store.anchor,
            hovering_volume=self.state.hovering_volume,
            version=self.state.version,
        )

    def selected_snapshots(self) -> dict:
        """Current values of the selected entities."""
        result = {}
        for entity_id in self.selection.ids:
            band = self.store.get(entity_id)
            if band is not None:
                result[entity_id] = BandSnapshot(band.frequency, band.gain, band.q)
        return result

    def bandwidth_of(self, entity_id: str) -> Optional[float]:
        band = self.store.get(entity_id)
        return q_to_bandwidth(band.q) if band is not None else None

    # --- Teardown -----------------------------------------------------------

    def destroy(self) -> None:
        """Cancel pending work and drop every listener. Idempotent."""
        if self._destroyed:
            return
        self._destroyed = True
        self._move_limiter.cancel()
        if self._committer is not None:
            self._committer.cancel()
        self._unsubscribe_store()
        self._listeners.clear()
        self.state.end_drag()
        self.selection.marquee = None
        logger.debug("Engine destroyed")
