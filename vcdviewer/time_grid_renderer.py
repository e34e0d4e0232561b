"""Time ruler and grid rendering module for the waveform canvas.

This module encapsulates all time ruler and grid rendering logic,
providing a clean, type-safe interface for the signal renderer.
"""

import math
from fractions import Fraction
from typing import List, Optional, Tuple, TypedDict

from PySide6.QtGui import QPainter, QPen, QColor, QFont, QFontMetrics

from .data_model import Time, TimeUnit, Timescale, Viewport
from .config import COLORS, RENDERING, TIME_RULER, TimeRulerDefaults


class TickInfo(TypedDict):
    """Information about a single tick position."""
    time_value: float  # Time value in raw VCD units
    pixel_x: int       # X coordinate in canvas pixels
    label: str         # Formatted label for this tick


def tick_step(visible_range: float, target_ticks: int = TIME_RULER.TARGET_TICKS) -> float:
    """Largest power of 10 giving about ``target_ticks`` ticks across the range."""
    if visible_range <= 0 or target_ticks <= 0:
        return 0.0
    return 10.0 ** math.floor(math.log10(visible_range / target_ticks))


def current_cycle(time: float, timescale_exponent: int) -> int:
    """Whole seconds-scaled cycle count at a raw time: floor(time * 10^exponent)."""
    return math.floor(Fraction(time) * Fraction(10) ** timescale_exponent)


class TimeGridRenderer:
    """Renderer for time ruler and grid lines.

    This class encapsulates all logic for calculating tick positions,
    formatting time labels, and rendering the time ruler, the cycle counter
    and the grid lines.
    """

    def __init__(self,
                 config: Optional[TimeRulerDefaults] = None,
                 timescale: Optional[Timescale] = None) -> None:
        """Initialize the renderer with configuration and timescale.

        Args:
            config: Time ruler configuration. Uses defaults if None.
            timescale: Waveform timescale. Defaults to 1s if None.
        """
        self._config: TimeRulerDefaults = config or TIME_RULER
        self._timescale: Timescale = timescale or Timescale(1, TimeUnit.SECONDS)

    @property
    def timescale(self) -> Timescale:
        return self._timescale

    def update_timescale(self, timescale: Timescale) -> None:
        """Update the timescale.

        Args:
            timescale: New timescale to use
        """
        self._timescale = timescale

    def calculate_ticks(self, viewport: Viewport) -> Tuple[List[TickInfo], float]:
        """Calculate tick positions for the visible window.

        The step is the largest power of 10 that yields about
        ``TARGET_TICKS`` ticks. Ticks sit on multiples of the step.

        Returns:
            Tuple of (tick_infos, step_size)
        """
        if viewport.is_degenerate:
            return [], 0.0

        start = viewport.visible_start_time
        end = viewport.visible_end_time
        step_size = tick_step(end - start, self._config.TARGET_TICKS)
        if step_size <= 0:
            return [], 0.0

        tick_infos: List[TickInfo] = []
        index = math.ceil(start / step_size)
        tick_time = index * step_size
        while tick_time <= end:
            tick_infos.append(TickInfo(
                time_value=tick_time,
                pixel_x=int(viewport.time_to_x(tick_time)),
                label=self._format_time_label(tick_time, self._timescale.unit, step_size),
            ))
            index += 1
            tick_time = index * step_size

        return tick_infos, step_size

    def render_ruler(self,
                     painter: QPainter,
                     tick_infos: List[TickInfo],
                     viewport: Viewport,
                     cycle_label: Optional[str] = None) -> None:
        """Render the time ruler across the waveform area.

        Args:
            painter: QPainter to render with
            tick_infos: List of tick information
            viewport: Current viewport (for canvas and sidebar geometry)
            cycle_label: Optional "Cycle: n/m" text drawn at the left of the ruler
        """
        canvas_width = viewport.canvas_width
        header_height = viewport.header_height
        painter.fillRect(0, 0, canvas_width, header_height, QColor(COLORS.HEADER_BACKGROUND))

        # Draw bottom line of ruler
        pen = QPen(QColor(COLORS.RULER_LINE))
        pen.setWidth(0)  # cosmetic 1 device-pixel
        painter.setPen(pen)
        painter.drawLine(0, header_height - 1, canvas_width, header_height - 1)

        font = QFont(RENDERING.FONT_FAMILY_MONO, RENDERING.FONT_SIZE_NORMAL)
        painter.setFont(font)
        fm = QFontMetrics(font)

        for tick_info in tick_infos:
            pixel_x = tick_info['pixel_x']
            if viewport.sidebar_width <= pixel_x <= canvas_width:
                painter.setPen(pen)
                painter.drawLine(pixel_x, header_height - self._config.TICK_HEIGHT,
                                 pixel_x, header_height - 1)

                label = tick_info['label']
                text_width = fm.horizontalAdvance(label)
                text_x = max(viewport.sidebar_width, pixel_x - text_width // 2)
                painter.setPen(QColor(COLORS.RULER_TEXT))
                painter.drawText(text_x, header_height - self._config.TEXT_Y_OFFSET - self._config.TICK_HEIGHT, label)

        if cycle_label:
            painter.setPen(QColor(COLORS.RULER_TEXT))
            painter.drawText(self._config.CYCLE_LABEL_X, self._config.CYCLE_LABEL_Y, cycle_label)

    def render_grid(self,
                    painter: QPainter,
                    tick_infos: List[TickInfo],
                    viewport: Viewport) -> None:
        """Render vertical grid lines below the ruler."""
        if not self._config.SHOW_GRID_LINES:
            return

        grid_color = QColor(COLORS.GRID)
        grid_color.setAlpha(COLORS.GRID_ALPHA)
        pen = QPen(grid_color)
        pen.setWidth(0)  # cosmetic 1 device-pixel
        painter.setPen(pen)

        for tick_info in tick_infos:
            pixel_x = tick_info['pixel_x']
            if viewport.sidebar_width <= pixel_x <= viewport.canvas_width:
                painter.drawLine(pixel_x, viewport.header_height, pixel_x, viewport.canvas_height)

    def cycle_label(self, viewport: Viewport, timescale_exponent: int, max_cycles: int) -> str:
        return f"Cycle: {current_cycle(viewport.visible_start_time, timescale_exponent)}/{max_cycles}"

    def _format_time_label(self, time: float, unit: TimeUnit, step_size: Optional[float] = None) -> str:
        """Format time value according to preferred unit.

        Args:
            time: Time value in raw VCD units
            unit: The preferred time unit for display
            step_size: The step size between ticks (used to determine decimal places)

        Returns:
            Formatted time label string
        """
        time_in_seconds = self._timescale.to_seconds(time)
        value = time_in_seconds * 10 ** -unit.to_exponent()

        # Determine decimal places based on step size
        decimal_places = 0
        if step_size is not None:
            step_in_unit = self._timescale.to_seconds(step_size) * 10 ** -unit.to_exponent()
            if step_in_unit >= 1:
                decimal_places = 0
            elif step_in_unit >= 0.1:
                decimal_places = 1
            elif step_in_unit >= 0.01:
                decimal_places = 2
            elif step_in_unit >= 0.001:
                decimal_places = 3
            else:
                decimal_places = 4  # Maximum precision

        if decimal_places == 0:
            formatted_value = f"{value:.0f}"
        else:
            formatted_value = f"{value:.{decimal_places}f}"
            # Remove trailing zeros after decimal point
            if '.' in formatted_value:
                formatted_value = formatted_value.rstrip('0').rstrip('.')

        # Handle unit upgrades for readability
        upgrades = {
            TimeUnit.FEMTOSECONDS: TimeUnit.PICOSECONDS,
            TimeUnit.PICOSECONDS: TimeUnit.NANOSECONDS,
            TimeUnit.NANOSECONDS: TimeUnit.MICROSECONDS,
            TimeUnit.MICROSECONDS: TimeUnit.MILLISECONDS,
            TimeUnit.MILLISECONDS: TimeUnit.SECONDS,
        }
        if unit in upgrades and abs(value) >= 1000:
            return self._format_time_label(time, upgrades[unit], step_size)

        return f"{formatted_value} {unit.value}"
