"""Centralized configuration for the VCD viewer.

This module contains all configuration constants, colors, and magic numbers
used by the parser, the layout and the renderer.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ParserConfig:
    """Configuration for the chunked VCD parser."""
    CHUNK_SIZE: int = 10000  # Lines processed before yielding to the scheduler
    MIN_CHUNK_SIZE: int = 1
    MAX_CHUNK_SIZE: int = 1000000


@dataclass(frozen=True)
class RenderingConfig:
    """Configuration for signal rendering."""
    SIGNAL_MARGIN_TOP: int = 5
    SIGNAL_MARGIN_BOTTOM: int = 5
    ROW_HEIGHT: int = 30
    HEADER_HEIGHT: int = 30  # Height of the time ruler
    SIDEBAR_WIDTH: int = 250
    HIERARCHY_INDENT: int = 10  # Sidebar indentation per hierarchy level
    SIDEBAR_PADDING: int = 5
    WAVE_LINE_WIDTH: int = 2

    # Bus cells
    BUS_TRANSITION_MAX_WIDTH: int = 6  # Maximum width of a hexagon point
    MIN_BUS_TEXT_WIDTH: int = 12
    BUS_TEXT_PADDING: int = 4

    # Font settings
    FONT_FAMILY: str = "Arial"
    FONT_FAMILY_MONO: str = "Monospace"
    FONT_SIZE_SMALL: int = 8
    FONT_SIZE_NORMAL: int = 9
    FONT_SIZE_LARGE: int = 10

    # Canvas settings
    MIN_CANVAS_WIDTH: int = 400
    UPDATE_TIMER_DELAY: int = 100  # milliseconds

    # Cursor settings
    CURSOR_WIDTH: int = 1
    CURSOR_DASH_PATTERN: tuple[float, float] = (5.0, 5.0)

    # Hover tooltip
    TOOLTIP_OFFSET_X: int = 5
    TOOLTIP_PADDING: int = 5
    TOOLTIP_HEIGHT: int = 40


@dataclass(frozen=True)
class ColorScheme:
    """Color scheme for the viewer."""
    # Backgrounds
    BACKGROUND: str = "#1e1e1e"
    SIDEBAR_BACKGROUND: str = "#252526"
    ALTERNATE_ROW: str = "#2a2a2d"
    HEADER_BACKGROUND: str = "#2d2d30"

    # Borders and lines
    BORDER: str = "#333333"
    GRID: str = "#ffffff"
    GRID_ALPHA: int = 26  # ~10% opacity
    RULER_LINE: str = "#808080"

    # Text
    TEXT: str = "#ffffff"
    TEXT_MUTED: str = "#808080"
    RULER_TEXT: str = "#ffd700"
    BUS_TEXT: str = "#ffffff"

    # Waveforms
    SIGNAL: str = "#00ffff"
    UNDEFINED: str = "#ff0000"

    # Cursor and tooltip
    CURSOR: str = "#ffffff"
    CURSOR_ALPHA: int = 128
    TOOLTIP_BACKGROUND: tuple[int, int, int, int] = (0, 0, 0, 178)  # RGBA
    TOOLTIP_TEXT: str = "#ffffff"


@dataclass(frozen=True)
class UIConfig:
    """UI-related configuration."""
    ZOOM_MIN: float = 0.1
    ZOOM_MAX: float = 10.0
    ZOOM_STEP: float = 0.1  # Zoom slider granularity
    ZOOM_WHEEL_FACTOR: float = 1.1  # Zoom factor per mouse wheel notch
    SCROLL_STEP_PIXELS: int = 30  # Vertical scroll per wheel notch
    PAN_PERCENTAGE: float = 0.1
    DEFAULT_SHOW_HOVER_INFO: bool = True


@dataclass(frozen=True)
class TimeRulerDefaults:
    """Default settings for time ruler."""
    TARGET_TICKS: int = 5
    TICK_HEIGHT: int = 5
    TEXT_Y_OFFSET: int = 5
    CYCLE_LABEL_X: int = 10
    CYCLE_LABEL_Y: int = 15
    SHOW_GRID_LINES: bool = True


# Global instances for easy access
PARSER = ParserConfig()
RENDERING = RenderingConfig()
COLORS = ColorScheme()
UI = UIConfig()
TIME_RULER = TimeRulerDefaults()
