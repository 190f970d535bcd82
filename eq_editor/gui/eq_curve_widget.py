"""
EQ curve widget - pyqtgraph host for the interaction engine.

The plot shows log10(frequency) on x and gain in dB on y. Mouse and
keyboard events are translated into engine calls; the engine's render
bundle is drawn after every change.
"""

from typing import Optional
import numpy as np
from PySide6.QtCore import Qt, QTimer, QRectF
from PySide6.QtGui import QColor, QPen, QBrush
from PySide6.QtWidgets import QGraphicsRectItem
import pyqtgraph as pg

from ..core.engine import (
    InteractionEngine,
    Modifiers,
    PointerButton,
    RenderBundle,
)
from ..utils.formatting import format_band


TICK_INTERVAL_MS = 16
STANDARD_FREQS = [20, 50, 100, 200, 500, 1000, 2000, 5000, 10000, 20000]

CURVE_COLOR = '#89b4fa'
HANDLE_COLOR = '#cdd6f4'
SELECTED_COLOR = '#f9e2af'
HOVER_COLOR = '#a6e3a1'
GHOST_COLOR = (137, 180, 250, 120)
VOLUME_COLOR = '#f38ba8'


def _format_tick(hz: float) -> str:
    if hz >= 1000:
        return f"{hz/1000:g}k"
    return f"{hz:g}"


def qt_modifiers(modifiers) -> Modifiers:
    """Map Qt keyboard modifiers to editor modifiers."""
    select_mask = (
        Qt.KeyboardModifier.ControlModifier
        | Qt.KeyboardModifier.MetaModifier
        | Qt.KeyboardModifier.AltModifier
    )
    return Modifiers(
        shape=bool(modifiers & Qt.KeyboardModifier.ShiftModifier),
        select=bool(modifiers & select_mask),
    )


class EQCurveWidget(pg.PlotWidget):
    """PlotWidget that forwards mouse input to an InteractionEngine."""

    def __init__(self, engine: InteractionEngine, parent=None):
        super().__init__(parent)
        self.engine = engine

        config = engine.config
        self._x_range = (np.log10(config.freq_range.min), np.log10(config.freq_range.max))
        self._y_range = (config.amp_range.min, config.amp_range.max)

        self.setBackground('#1e1e2e')
        self.showGrid(x=True, y=True, alpha=0.2)
        self.setMouseEnabled(x=False, y=False)
        self.setMenuEnabled(False)
        self.hideButtons()
        self.setXRange(*self._x_range, padding=0)
        self.setYRange(*self._y_range, padding=0)
        self.setLabel('left', 'Gain', units='dB')
        self.setLabel('bottom', 'Frequency')
        self.getAxis('bottom').setTicks([[
            (np.log10(f), _format_tick(f)) for f in STANDARD_FREQS
            if config.freq_range.min <= f <= config.freq_range.max
        ]])

        self.setMouseTracking(True)
        self.viewport().setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

        # Plot items
        self.center_line = pg.InfiniteLine(
            pos=0, angle=0, pen=pg.mkPen('#45475a', width=1, style=Qt.PenStyle.DashLine)
        )
        self.addItem(self.center_line)
        self.curve = self.plot(pen=pg.mkPen(CURVE_COLOR, width=2))
        self.handles = pg.ScatterPlotItem(size=12, pxMode=True)
        self.addItem(self.handles)
        self.anchor_marker = pg.ScatterPlotItem(
            size=8, symbol='d', pen=pg.mkPen('#585b70'), brush=pg.mkBrush('#585b70')
        )
        self.addItem(self.anchor_marker)
        self.ghost = pg.ScatterPlotItem(
            size=10, pen=pg.mkPen(GHOST_COLOR), brush=pg.mkBrush(None)
        )
        self.addItem(self.ghost)
        self.volume_marker = pg.ScatterPlotItem(
            size=config.volume_handle_size, symbol='s',
            pen=pg.mkPen(VOLUME_COLOR), brush=pg.mkBrush(VOLUME_COLOR),
        )
        self.addItem(self.volume_marker)

        self.marquee = QGraphicsRectItem()
        self.marquee.setPen(QPen(QColor(CURVE_COLOR)))
        self.marquee.setBrush(QBrush(QColor(137, 180, 250, 40)))
        self.marquee.setVisible(False)
        self.addItem(self.marquee)

        self.info_label = pg.TextItem(color='#a6adc8', anchor=(0, 0))
        self.addItem(self.info_label)

        # Render tick drives the rate limiter and the debounced commit
        self._timer = QTimer(self)
        self._timer.timeout.connect(self.engine.tick)
        self._timer.start(TICK_INTERVAL_MS)

        self._unsubscribe = engine.subscribe(lambda _engine: self._redraw())

        self._redraw()

    # --- Geometry -----------------------------------------------------------

    def _plot_rect(self) -> QRectF:
        return self.plotItem.vb.sceneBoundingRect()

    def _sync_viewport(self):
        rect = self._plot_rect()
        if rect.width() > 0 and rect.height() > 0:
            viewport = self.engine.viewport
            if viewport.width != rect.width() or viewport.height != rect.height():
                self.engine.resize(rect.width(), rect.height())

    def _event_pixel(self, ev) -> tuple[float, float]:
        """Event position relative to the top-left corner of the plot area."""
        scene_pos = self.mapToScene(ev.position().toPoint())
        rect = self._plot_rect()
        return scene_pos.x() - rect.left(), scene_pos.y() - rect.top()

    # --- Qt events ----------------------------------------------------------

    def resizeEvent(self, ev):
        super().resizeEvent(ev)
        self._sync_viewport()

    def mousePressEvent(self, ev):
        self._sync_viewport()
        x, y = self._event_pixel(ev)
        if ev.button() == Qt.MouseButton.RightButton:
            button = PointerButton.SECONDARY
        elif ev.button() == Qt.MouseButton.LeftButton:
            button = PointerButton.PRIMARY
        else:
            return
        self.engine.pointer_down(x, y, button, qt_modifiers(ev.modifiers()))
        ev.accept()

    def mouseMoveEvent(self, ev):
        x, y = self._event_pixel(ev)
        self.engine.pointer_move(x, y, qt_modifiers(ev.modifiers()))
        ev.accept()

    def mouseReleaseEvent(self, ev):
        if ev.button() not in (Qt.MouseButton.LeftButton, Qt.MouseButton.RightButton):
            return
        x, y = self._event_pixel(ev)
        self.engine.pointer_up(x, y)
        ev.accept()

    def leaveEvent(self, ev):
        self.engine.pointer_leave()
        super().leaveEvent(ev)

    def keyPressEvent(self, ev):
        key = ev.key()
        if key in (Qt.Key.Key_Delete, Qt.Key.Key_Backspace):
            self.engine.delete_selection()
        elif key == Qt.Key.Key_Escape:
            self.engine.escape()
        else:
            self.engine.set_modifiers(qt_modifiers(ev.modifiers()))
        ev.accept()

    def keyReleaseEvent(self, ev):
        self.engine.set_modifiers(qt_modifiers(ev.modifiers()))
        ev.accept()

    # --- Drawing ------------------------------------------------------------

    def _redraw(self):
        bundle = self.engine.render_bundle()
        response = bundle.response
        self.curve.setData(np.log10(response.frequencies), response.magnitudes)
        self._draw_handles(bundle)
        self._draw_overlays(bundle)

    def _draw_handles(self, bundle: RenderBundle):
        spots = []
        for entity in bundle.entities:
            if entity.id == bundle.dragging_id or entity.id in bundle.selection:
                color = SELECTED_COLOR
            elif entity.id == bundle.hovered_id:
                color = HOVER_COLOR
            else:
                color = HANDLE_COLOR
            spots.append({
                'pos': (np.log10(entity.frequency), entity.gain),
                'brush': pg.mkBrush(color),
                'pen': pg.mkPen('#1e1e2e'),
                'size': 14 if entity.id == bundle.hovered_id else 12,
            })
        self.handles.setData(spots)

        if bundle.anchor is not None:
            self.anchor_marker.setData([np.log10(bundle.anchor.frequency)], [bundle.anchor.gain])
        else:
            self.anchor_marker.setData([], [])

        self.volume_marker.setData([self._x_range[1]], [bundle.volume])
        self.volume_marker.setSize(
            self.engine.config.volume_handle_size + (4 if bundle.hovering_volume else 0)
        )

    def _draw_overlays(self, bundle: RenderBundle):
        ghost = bundle.ghost_node
        if ghost is not None:
            _, curve_gain = self.engine.viewport.to_value(ghost.x, ghost.y)
            self.ghost.setData([np.log10(ghost.frequency)], [curve_gain])
        else:
            self.ghost.setData([], [])

        rect = bundle.marquee_rect
        if rect is not None:
            viewport = self.engine.viewport
            f0, g0 = viewport.to_value(rect.x, rect.y + rect.h)
            f1, g1 = viewport.to_value(rect.x + rect.w, rect.y)
            self.marquee.setRect(QRectF(np.log10(f0), g0, np.log10(f1) - np.log10(f0), g1 - g0))
            self.marquee.setVisible(True)
        else:
            self.marquee.setVisible(False)

        focus = self._focus_entity(bundle)
        if focus is not None:
            self.info_label.setText(format_band(focus.frequency, focus.gain, focus.q))
            self.info_label.setPos(self._x_range[0], self._y_range[1])
            self.info_label.setVisible(True)
        else:
            self.info_label.setVisible(False)

    @staticmethod
    def _focus_entity(bundle: RenderBundle):
        focus_id: Optional[str] = bundle.dragging_id or bundle.hovered_id
        for entity in bundle.entities:
            if entity.id == focus_id:
                return entity
        return None

    # --- Teardown -----------------------------------------------------------

    def shutdown(self):
        """Stop the tick timer and detach from the engine."""
        self._timer.stop()
        self._unsubscribe()
        self.engine.destroy()
