"""Waveform signal renderer.

Purpose
- Provide the drawing routines for the waveform view: the time ruler and grid,
  one track per layout row, the sidebar with track names, the hover cursor and
  its value label.
- Keep the canvas widget thin: it owns the Viewport and SignalLayout and calls
  render_waveforms() from paintEvent; this module turns them into QPainter
  primitives.

Key ideas
- X axis is time mapped to pixels by the Viewport. Each track is drawn from
  WaveSegments (see signal_sampling) laid out along the X axis.
- Y axis is the row allocated to the track. calculate_signal_bounds returns
  top/bottom/middle Y coordinates inside that row with small margins.
- Every segment goes through draw_value_cell, which picks the representation
  from the signal width and the value: high/low levels for single bits, a
  hexagonal cell with the value inside for buses, and an outlined box with the
  offending character for values containing x or z.

This module depends only on QPainter and small data types from the local data
model, layout and sampling code; it contains no widget logic.
"""

from typing import Optional, Tuple

from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QColor, QFont, QFontMetrics, QPainter, QPen, QPolygonF

from .config import COLORS, RENDERING
from .data_model import DataFormat, Viewport, WaveformDocument
from .hover import HoverInfo
from .signal_layout import SignalLayout, TrackRow
from .signal_sampling import ValueKind, WaveSegment, format_value, sample_segments, undefined_char
from .time_grid_renderer import TimeGridRenderer

NO_DATA_MESSAGE = "No signal data available"


def calculate_signal_bounds(y: float, row_height: int, margin_top: int = RENDERING.SIGNAL_MARGIN_TOP,
                            margin_bottom: int = RENDERING.SIGNAL_MARGIN_BOTTOM) -> Tuple[float, float, float]:
    """Compute vertical drawing band inside a row.

    The returned values are used by all drawing routines to keep strokes away
    from row borders.

    Args:
        y: Top Y coordinate of the row in pixels.
        row_height: Row height in pixels.
        margin_top: Top inner margin.
        margin_bottom: Bottom inner margin.

    Returns:
        (y_top, y_bottom, y_middle): Y coordinates delimiting usable area and its center.
    """
    y_top = y + margin_top
    y_bottom = y + row_height - margin_bottom
    y_middle = y + row_height / 2
    return y_top, y_bottom, y_middle


def level_y(value: str, y_top: float, y_bottom: float, y_middle: float) -> float:
    """Y coordinate of a single-bit value: high for 1, low for 0, middle otherwise."""
    if value == '1':
        return y_top
    if value == '0':
        return y_bottom
    return y_middle


def _signal_pen(color: str) -> QPen:
    pen = QPen(QColor(color))
    pen.setWidth(RENDERING.WAVE_LINE_WIDTH)
    return pen


def draw_value_cell(painter: QPainter, segment: WaveSegment, y: float, row_height: int,
                    bit_width: int, previous: Optional[WaveSegment] = None,
                    data_format: DataFormat = DataFormat.HEX) -> None:
    """Draw one held value of a track.

    Args:
        painter: Active QPainter.
        segment: The value and its horizontal extent.
        y: Row top Y in pixels.
        row_height: Row height in pixels.
        bit_width: Width of the signal; 1 selects level drawing, more selects a bus cell.
        previous: Segment drawn just before this one, used for the riser of a level change.
        data_format: How bus values are written inside the cell.
    """
    y_top, y_bottom, y_middle = calculate_signal_bounds(y, row_height)
    x_start, x_end = segment.x_start, segment.x_end

    if segment.value_kind != ValueKind.NORMAL:
        _draw_undefined_cell(painter, segment, y_top, y_bottom)
        return

    if bit_width <= 1:
        painter.setPen(_signal_pen(COLORS.SIGNAL))
        current_y = level_y(segment.value, y_top, y_bottom, y_middle)
        painter.drawLine(QPointF(x_start, current_y), QPointF(x_end, current_y))
        if previous is not None and previous.value_kind == ValueKind.NORMAL:
            prev_y = level_y(previous.value, y_top, y_bottom, y_middle)
            if prev_y != current_y:
                painter.drawLine(QPointF(x_start, prev_y), QPointF(x_start, current_y))
        if segment.has_multiple_transitions:
            painter.drawLine(QPointF(x_start, y_top), QPointF(x_start, y_bottom))
        return

    _draw_bus_cell(painter, segment, y_top, y_bottom, y_middle, bit_width, data_format)


def _draw_bus_cell(painter: QPainter, segment: WaveSegment, y_top: float, y_bottom: float,
                   y_middle: float, bit_width: int, data_format: DataFormat) -> None:
    """Hexagonal cell with the formatted value centred inside."""
    x_start, x_end = segment.x_start, segment.x_end
    region_width = x_end - x_start
    painter.setPen(_signal_pen(COLORS.SIGNAL))

    # A region too narrow for a cell collapses to a vertical line
    if region_width < 2:
        painter.drawLine(QPointF(x_start, y_top), QPointF(x_start, y_bottom))
        return

    transition_width = min(RENDERING.BUS_TRANSITION_MAX_WIDTH, region_width / 2)
    x_left = x_start + transition_width
    x_right = x_end - transition_width
    painter.drawPolygon(QPolygonF([
        QPointF(x_start, y_middle),
        QPointF(x_left, y_top),
        QPointF(x_right, y_top),
        QPointF(x_end, y_middle),
        QPointF(x_right, y_bottom),
        QPointF(x_left, y_bottom),
    ]))

    interior_width = x_right - x_left - 2 * RENDERING.BUS_TEXT_PADDING
    if interior_width < RENDERING.MIN_BUS_TEXT_WIDTH:
        return
    font = QFont(RENDERING.FONT_FAMILY_MONO, RENDERING.FONT_SIZE_SMALL)
    painter.setFont(font)
    fm = QFontMetrics(font)
    text = fm.elidedText(format_value(segment.value, bit_width, data_format),
                         Qt.TextElideMode.ElideRight, int(interior_width))
    painter.setPen(QColor(COLORS.BUS_TEXT))
    painter.drawText(QRectF(x_left + RENDERING.BUS_TEXT_PADDING, y_top, interior_width, y_bottom - y_top),
                     Qt.AlignmentFlag.AlignCenter, text)


def _draw_undefined_cell(painter: QPainter, segment: WaveSegment, y_top: float, y_bottom: float) -> None:
    """Outlined box with the offending x/z character centred, in the error colour."""
    width = segment.x_end - segment.x_start
    if width <= 0:
        return
    pen = QPen(QColor(COLORS.UNDEFINED))
    pen.setWidth(0)  # cosmetic 1 device-pixel
    painter.setPen(pen)
    painter.setBrush(Qt.BrushStyle.NoBrush)
    rect = QRectF(segment.x_start, y_top, width, y_bottom - y_top)
    painter.drawRect(rect)
    painter.setFont(QFont(RENDERING.FONT_FAMILY_MONO, RENDERING.FONT_SIZE_SMALL))
    painter.drawText(rect, Qt.AlignmentFlag.AlignCenter, (undefined_char(segment.value) or 'x').upper())


def draw_signal_row(painter: QPainter, row: TrackRow, y: float, viewport: Viewport,
                    data_format: DataFormat = DataFormat.HEX) -> None:
    """Draw every visible segment of one track."""
    segments = sample_segments(row.signal, viewport)
    previous: Optional[WaveSegment] = None
    for segment in segments:
        draw_value_cell(painter, segment, y, row.height, row.signal.width, previous, data_format)
        previous = segment


def draw_sidebar(painter: QPainter, layout: SignalLayout, viewport: Viewport) -> None:
    """Track names indented by hierarchy depth, with expand markers for groups."""
    sidebar_width = viewport.sidebar_width
    painter.fillRect(0, viewport.header_height, sidebar_width, viewport.track_area_height,
                     QColor(COLORS.SIDEBAR_BACKGROUND))

    font = QFont(RENDERING.FONT_FAMILY, RENDERING.FONT_SIZE_LARGE)
    painter.setFont(font)
    fm = QFontMetrics(font)
    marker_width = fm.horizontalAdvance("▼ ")

    for row in layout.visible_rows(viewport.offset_y, viewport.track_area_height):
        y = layout.row_y(row, viewport.offset_y)
        x = RENDERING.SIDEBAR_PADDING + row.depth * RENDERING.HIERARCHY_INDENT
        rect = QRectF(x, y, max(0, sidebar_width - x - RENDERING.SIDEBAR_PADDING), row.height)
        painter.setPen(QColor(COLORS.TEXT))
        if row.is_group_row:
            marker = "▼" if layout.is_expanded(row.group.key) else "▶"
            painter.drawText(rect, Qt.AlignmentFlag.AlignVCenter | Qt.AlignmentFlag.AlignLeft, marker)
            rect.adjust(marker_width, 0, 0, 0)
        label = fm.elidedText(row.label, Qt.TextElideMode.ElideRight, int(rect.width()))
        painter.drawText(rect, Qt.AlignmentFlag.AlignVCenter | Qt.AlignmentFlag.AlignLeft, label)

    painter.setPen(QColor(COLORS.BORDER))
    painter.drawLine(sidebar_width, 0, sidebar_width, viewport.canvas_height)


def draw_cursor(painter: QPainter, x: float, viewport: Viewport) -> None:
    """Dashed vertical line from the ruler to the bottom of the canvas."""
    color = QColor(COLORS.CURSOR)
    color.setAlpha(COLORS.CURSOR_ALPHA)
    pen = QPen(color)
    pen.setWidth(RENDERING.CURSOR_WIDTH)
    pen.setDashPattern(list(RENDERING.CURSOR_DASH_PATTERN))
    painter.setPen(pen)
    painter.drawLine(QPointF(x, viewport.header_height), QPointF(x, viewport.canvas_height))


def draw_hover_label(painter: QPainter, x: float, y: float, text: str) -> None:
    """Floating "name: value" box to the right of the cursor."""
    font = QFont(RENDERING.FONT_FAMILY_MONO, RENDERING.FONT_SIZE_NORMAL)
    painter.setFont(font)
    fm = QFontMetrics(font)
    width = max(100, fm.horizontalAdvance(text) + 2 * RENDERING.TOOLTIP_PADDING)
    rect = QRectF(x + RENDERING.TOOLTIP_OFFSET_X, y - RENDERING.TOOLTIP_HEIGHT / 2,
                  width, RENDERING.TOOLTIP_HEIGHT)
    painter.fillRect(rect, QColor(*COLORS.TOOLTIP_BACKGROUND))
    painter.setPen(QColor(COLORS.TOOLTIP_TEXT))
    painter.drawText(rect, Qt.AlignmentFlag.AlignCenter, text)


def draw_no_data(painter: QPainter, viewport: Viewport) -> None:
    painter.setPen(QColor(COLORS.TEXT_MUTED))
    painter.setFont(QFont(RENDERING.FONT_FAMILY, RENDERING.FONT_SIZE_LARGE))
    painter.drawText(QRectF(0, 0, viewport.canvas_width, viewport.canvas_height),
                     Qt.AlignmentFlag.AlignCenter, NO_DATA_MESSAGE)


def render_waveforms(painter: Optional[QPainter], document: Optional[WaveformDocument],
                     viewport: Viewport, layout: SignalLayout,
                     hover: Optional[HoverInfo] = None,
                     show_hover_info: bool = True,
                     data_format: DataFormat = DataFormat.HEX,
                     time_grid: Optional[TimeGridRenderer] = None,
                     pointer_y: Optional[float] = None) -> None:
    """Draw the full waveform view onto an active painter.

    Does nothing without an active painter. An empty document or a degenerate
    viewport draws only the background and the "No signal data available"
    message.
    """
    if painter is None or not painter.isActive():
        return

    painter.fillRect(0, 0, viewport.canvas_width, viewport.canvas_height, QColor(COLORS.BACKGROUND))
    if document is None or document.is_empty or viewport.is_degenerate:
        draw_no_data(painter, viewport)
        return

    if time_grid is None:
        time_grid = TimeGridRenderer(timescale=document.timescale)
    tick_infos, _ = time_grid.calculate_ticks(viewport)
    time_grid.render_grid(painter, tick_infos, viewport)

    # Tracks, clipped to the waveform area
    painter.save()
    painter.setClipRect(viewport.sidebar_width, viewport.header_height,
                        viewport.drawable_width, viewport.track_area_height)
    for row in layout.visible_rows(viewport.offset_y, viewport.track_area_height):
        y = layout.row_y(row, viewport.offset_y)
        if row.index % 2:
            painter.fillRect(QRectF(viewport.sidebar_width, y, viewport.drawable_width, row.height),
                             QColor(COLORS.ALTERNATE_ROW))
        draw_signal_row(painter, row, y, viewport, data_format)
    painter.restore()

    draw_sidebar(painter, layout, viewport)
    cycle_label = time_grid.cycle_label(viewport, document.timescale_exponent, document.max_cycles)
    time_grid.render_ruler(painter, tick_infos, viewport, cycle_label)

    if viewport.hovered_time is not None:
        cursor_x = viewport.time_to_x(viewport.hovered_time)
        if viewport.sidebar_width <= cursor_x <= viewport.canvas_width:
            draw_cursor(painter, cursor_x, viewport)
            rows = layout.rows
            if show_hover_info and hover is not None and 0 <= hover.row < len(rows):
                row = rows[hover.row]
                if pointer_y is None:
                    pointer_y = layout.row_y(row, viewport.offset_y) + row.height / 2
                text = f"{hover.track_name}: {format_value(hover.value, row.signal.width, data_format)}"
                draw_hover_label(painter, cursor_x, pointer_y, text)
