"""Waveform canvas widget: owns the viewport and layout and routes input events."""

import logging
import time as time_module
from typing import Iterable, Optional

from PySide6.QtCore import Qt, QTimer, Signal
from PySide6.QtGui import (QPainter, QPaintEvent, QResizeEvent, QShowEvent, QMouseEvent,
                           QWheelEvent, QKeyEvent)
from PySide6.QtWidgets import QWidget

from .config import RENDERING, UI
from .data_model import DataFormat, Viewport, WaveformDocument
from .hover import HoverInfo, hover_time, resolve_hover
from .signal_layout import SignalLayout
from .signal_renderer import render_waveforms
from .time_grid_renderer import TimeGridRenderer

logger = logging.getLogger(__name__)


class WaveformCanvas(QWidget):
    """Widget drawing the ruler, tracks, sidebar and hover cursor.

    Viewport and layout state are touched by one event at a time; every
    mutation schedules a repaint through update().
    """

    hoverChanged = Signal(object)       # Optional[HoverInfo]
    viewportChanged = Signal()          # Zoom, offsets or canvas size changed
    layoutChanged = Signal()            # Rows added or removed by expand/collapse
    groupToggled = Signal(str, bool)    # (group key, expanded)

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._document: Optional[WaveformDocument] = None
        self._viewport = Viewport()
        self._layout = SignalLayout()
        self._time_grid = TimeGridRenderer()
        self._hover: Optional[HoverInfo] = None
        self._pointer_y: Optional[float] = None
        self._show_hover_info = UI.DEFAULT_SHOW_HOVER_INFO
        self._data_format = DataFormat.HEX
        self._last_paint_time_ms = 0.0

        self.setAttribute(Qt.WidgetAttribute.WA_OpaquePaintEvent)
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setMinimumWidth(RENDERING.MIN_CANVAS_WIDTH)

        # Deferred updates
        self._update_timer = QTimer(self)
        self._update_timer.setSingleShot(True)
        self._update_timer.timeout.connect(self._do_update)
        self._pending_update = False

    # ---- State ----
    @property
    def document(self) -> Optional[WaveformDocument]:
        return self._document

    @property
    def viewport(self) -> Viewport:
        return self._viewport

    @property
    def signal_layout(self) -> SignalLayout:
        return self._layout

    @property
    def hover(self) -> Optional[HoverInfo]:
        return self._hover

    @property
    def last_paint_time_ms(self) -> float:
        return self._last_paint_time_ms

    def setDocument(self, document: Optional[WaveformDocument],
                    expanded_groups: Optional[Iterable[str]] = None) -> None:
        """Replace the displayed document and reset zoom and scroll."""
        self._document = document
        self._layout.set_document(document, expanded_groups)
        if document is not None:
            self._viewport.set_time_bounds(document.min_time, document.end_time)
            self._time_grid.update_timescale(document.timescale)
        else:
            self._viewport.set_time_bounds(0, 0)
        self._viewport.resize(self.width(), self.height())
        self._viewport.set_content_height(self._layout.content_height)
        self._set_hover(None)
        self.layoutChanged.emit()
        self.viewportChanged.emit()
        self.update()

    def setShowHoverInfo(self, show: bool) -> None:
        self._show_hover_info = show
        self.update()

    def showHoverInfo(self) -> bool:
        return self._show_hover_info

    def setDataFormat(self, data_format: DataFormat) -> None:
        self._data_format = data_format
        self.update()

    def dataFormat(self) -> DataFormat:
        return self._data_format

    # ---- Viewport operations ----
    def setZoom(self, zoom: float) -> None:
        self._viewport.set_zoom(zoom)
        self._viewport_changed()

    def zoomIn(self) -> None:
        self._viewport.zoom_in()
        self._viewport_changed()

    def zoomOut(self) -> None:
        self._viewport.zoom_out()
        self._viewport_changed()

    def zoomFit(self) -> None:
        self._viewport.zoom_fit()
        self._viewport_changed()

    def setOffsets(self, x: float, y: float) -> None:
        self._viewport.set_offset(x, y)
        self._viewport_changed()

    def panBy(self, dx: float, dy: float = 0.0) -> None:
        self._viewport.pan_by(dx, dy)
        self._viewport_changed()

    # ---- Group operations ----
    def toggleGroup(self, key: str) -> None:
        group = self._layout.group(key)
        if group is None or not group.is_expandable:
            return
        expanded = self._layout.toggle(key)
        logger.debug("Group %s %s", key, "expanded" if expanded else "collapsed")
        self._layout_changed()
        self.groupToggled.emit(key, expanded)

    def expandAll(self) -> None:
        self._layout.expand_all()
        self._layout_changed()

    def collapseAll(self) -> None:
        self._layout.collapse_all()
        self._layout_changed()

    def _layout_changed(self) -> None:
        self._viewport.set_content_height(self._layout.content_height)
        self._set_hover(None)
        self.layoutChanged.emit()
        self._viewport_changed()

    def _viewport_changed(self) -> None:
        self.viewportChanged.emit()
        self.update()

    # ---- Qt events ----
    def resizeEvent(self, event: QResizeEvent) -> None:
        """Handle widget resize with deferred update."""
        super().resizeEvent(event)
        self._viewport.resize(event.size().width(), event.size().height())
        self.viewportChanged.emit()

        # Defer update to avoid multiple repaints during resize
        self._pending_update = True
        self._update_timer.stop()
        self._update_timer.start(RENDERING.UPDATE_TIMER_DELAY)

    def showEvent(self, event: QShowEvent) -> None:
        """Handle widget show event."""
        super().showEvent(event)
        if self.width() > 0 and self.height() > 0:
            self._viewport.resize(self.width(), self.height())
            self.update()

    def _do_update(self) -> None:
        """Perform the actual update after timer expires."""
        if self._pending_update:
            self._pending_update = False
            self.update()

    def paintEvent(self, event: QPaintEvent) -> None:
        paint_start_time = time_module.time()
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, False)
        painter.setRenderHint(QPainter.RenderHint.TextAntialiasing, True)
        try:
            render_waveforms(painter, self._document, self._viewport, self._layout,
                             hover=self._hover,
                             show_hover_info=self._show_hover_info,
                             data_format=self._data_format,
                             time_grid=self._time_grid,
                             pointer_y=self._pointer_y)
        finally:
            painter.end()
        self._last_paint_time_ms = (time_module.time() - paint_start_time) * 1000

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        self._update_hover(event.position().x(), event.position().y())
        super().mouseMoveEvent(event)

    def mousePressEvent(self, event: QMouseEvent) -> None:
        """Left click in the sidebar toggles the group of the row under the pointer."""
        x, y = event.position().x(), event.position().y()
        if event.button() == Qt.MouseButton.LeftButton and x < self._viewport.sidebar_width:
            row = self._layout.row_at(y, self._viewport.offset_y)
            if row is not None and row.group.is_expandable:
                self.toggleGroup(row.group.key)
                event.accept()
                return
        super().mousePressEvent(event)

    def leaveEvent(self, event) -> None:
        self._viewport.set_hovered_time(None)
        self._pointer_y = None
        self._set_hover(None)
        self.update()
        super().leaveEvent(event)

    def wheelEvent(self, event: QWheelEvent) -> None:
        """Ctrl+wheel zooms at the pointer, Shift+wheel pans, plain wheel scrolls rows."""
        steps = event.angleDelta().y() / 120.0
        if steps == 0:
            steps = event.angleDelta().x() / 120.0
        if steps == 0:
            super().wheelEvent(event)
            return

        modifiers = event.modifiers()
        if modifiers & Qt.KeyboardModifier.ControlModifier:
            factor = UI.ZOOM_WHEEL_FACTOR ** steps
            self._viewport.zoom_at(event.position().x(), self._viewport.zoom * factor)
        elif modifiers & Qt.KeyboardModifier.ShiftModifier:
            self._viewport.pan_by(-steps * self._viewport.drawable_width * UI.PAN_PERCENTAGE)
        else:
            self._viewport.pan_by(0.0, -steps * UI.SCROLL_STEP_PIXELS)
        self._update_hover(event.position().x(), event.position().y())
        self._viewport_changed()
        event.accept()

    def keyPressEvent(self, event: QKeyEvent) -> None:
        key = event.key()
        if key in (Qt.Key.Key_Plus, Qt.Key.Key_Equal):
            self.zoomIn()
        elif key == Qt.Key.Key_Minus:
            self.zoomOut()
        elif key == Qt.Key.Key_F:
            self.zoomFit()
        elif key == Qt.Key.Key_Left:
            self.panBy(-self._viewport.drawable_width * UI.PAN_PERCENTAGE)
        elif key == Qt.Key.Key_Right:
            self.panBy(self._viewport.drawable_width * UI.PAN_PERCENTAGE)
        else:
            super().keyPressEvent(event)
            return
        event.accept()

    # ---- Hover ----
    def _update_hover(self, x: float, y: float) -> None:
        self._viewport.set_hovered_time(hover_time(self._viewport, x))
        self._pointer_y = y
        self._set_hover(resolve_hover(self._document, self._layout, self._viewport, x, y))
        self.update()

    def _set_hover(self, hover: Optional[HoverInfo]) -> None:
        if hover != self._hover:
            self._hover = hover
            self.hoverChanged.emit(hover)
