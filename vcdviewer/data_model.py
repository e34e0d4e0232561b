"""Core data structures for the VCD viewer.

This module defines the parsed waveform model (Signal, WaveformDocument) and the
state of the view onto it (Viewport). Don't confuse the two: a WaveformDocument
is built once per parse and never changes afterwards, while the Viewport is
owned by the rendering layer and mutated by user gestures.

    WaveformDocument
    ├── signals: {name: Signal}      (declaration order, then bus expansions)
    │   ├── Signal
    │   │   ├── name: "clk"
    │   │   ├── width: 1
    │   │   ├── hierarchy: ("top",)
    │   │   └── wave: ((0, "0"), (5, "1"), (10, "0"))
    │   └── Signal
    │       ├── name: "data"
    │       ├── width: 4
    │       ├── bit_range: (3, 0)
    │       └── wave: ((0, "0000"), (10, "1x01"))
    ├── timescale_exponent: -9       (1 raw tick = 10^-9 s)
    └── max_time: 10                 (largest #time seen)

    Viewport
    ├── zoom: 1.0                    (clamped to [ZOOM_MIN, ZOOM_MAX])
    ├── offset_x / offset_y          (scroll offsets in pixels)
    └── hovered_time: Optional[float]
"""

import bisect
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from fractions import Fraction
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .config import RENDERING, UI

Time = int  # Raw VCD time units (multiply by the timescale magnitude for seconds)

# A single value change: (time, value) where value is a string of 0/1/x/z characters
WaveEntry = Tuple[Time, str]


class DataFormat(Enum):
    UNSIGNED = "unsigned"
    HEX = "hex"
    BIN = "bin"


class TimeUnit(Enum):
    FEMTOSECONDS = "fs"  # 10^-15 seconds
    PICOSECONDS = "ps"   # 10^-12 seconds
    NANOSECONDS = "ns"   # 10^-9 seconds
    MICROSECONDS = "μs"  # 10^-6 seconds
    MILLISECONDS = "ms"  # 10^-3 seconds
    SECONDS = "s"        # 10^0 seconds

    @classmethod
    def from_string(cls, s: str) -> Optional['TimeUnit']:
        """Convert string representation to TimeUnit."""
        mapping = {
            'fs': cls.FEMTOSECONDS,
            'ps': cls.PICOSECONDS,
            'ns': cls.NANOSECONDS,
            'us': cls.MICROSECONDS,  # Note: VCD files use 'us' not 'μs'
            'μs': cls.MICROSECONDS,
            'ms': cls.MILLISECONDS,
            's': cls.SECONDS
        }
        return mapping.get(s)

    @classmethod
    def from_exponent(cls, exponent: int) -> 'TimeUnit':
        """Largest unit whose exponent does not exceed the given one (clamped to fs..s)."""
        for unit in (cls.SECONDS, cls.MILLISECONDS, cls.MICROSECONDS,
                     cls.NANOSECONDS, cls.PICOSECONDS):
            if unit.to_exponent() <= exponent:
                return unit
        return cls.FEMTOSECONDS

    def to_exponent(self) -> int:
        """Get the power of 10 exponent for this unit."""
        exponents: dict[TimeUnit, int] = {
            TimeUnit.FEMTOSECONDS: -15,
            TimeUnit.PICOSECONDS: -12,
            TimeUnit.NANOSECONDS: -9,
            TimeUnit.MICROSECONDS: -6,
            TimeUnit.MILLISECONDS: -3,
            TimeUnit.SECONDS: 0
        }
        return exponents[self]


@dataclass(frozen=True)
class Timescale:
    """Represents the timescale of a waveform file."""
    factor: int  # The numeric factor (e.g., 1, 10, 100)
    unit: TimeUnit  # The time unit

    @classmethod
    def from_exponent(cls, exponent: int) -> 'Timescale':
        """Split a base-10 exponent into a factor and unit, e.g. -8 -> 10 ns."""
        unit = TimeUnit.from_exponent(exponent)
        return cls(10 ** (exponent - unit.to_exponent()), unit)

    def to_seconds(self, time: float) -> float:
        return time * self.factor * (10 ** self.unit.to_exponent())


def effective_value(wave: Tuple[WaveEntry, ...], time: float, width: int = 1) -> str:
    """Value held by a wave at the given time ("last value holds").

    Finds the first entry strictly after ``time`` and returns the entry just
    before it; when no later entry exists that is the last entry. A query before
    the first entry yields the implicit all-zero value.
    """
    index = bisect.bisect_right(wave, time, key=lambda entry: entry[0])
    if index == 0:
        return '0' * width
    return wave[index - 1][1]


@dataclass(frozen=True)
class Signal:
    """A single signal extracted from a VCD file.

    ``wave`` is sorted ascending by time and holds at most one entry per time.
    Every value is a string of exactly ``width`` characters from {0,1,x,z}.
    """
    id: str                                   # VCD identifier code (e.g. "!")
    name: str                                 # Declared name (e.g. "BinCount")
    width: int = 1
    wave: Tuple[WaveEntry, ...] = ()
    hierarchy: Tuple[str, ...] = ()           # Scope names from root to immediate parent
    var_type: str = "wire"
    bit_range: Optional[Tuple[int, int]] = None  # (first, last) declared index, e.g. (7, 0)

    @property
    def full_name(self) -> str:
        return '.'.join(self.hierarchy + (self.name,))

    @property
    def base_name(self) -> str:
        """Name without any bit-range suffix; used as the grouping key."""
        return self.name.split('[', 1)[0]

    @property
    def is_multi_bit(self) -> bool:
        return self.width > 1

    @property
    def times(self) -> List[Time]:
        return [time for time, _ in self.wave]

    def value_at(self, time: float) -> str:
        return effective_value(self.wave, time, self.width)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'width': self.width,
            'wave': [[time, value] for time, value in self.wave],
            'hierarchy': list(self.hierarchy),
        }


@dataclass(frozen=True)
class WaveformDocument:
    """Parsed waveform: signals keyed by unique name plus global time bounds.

    Built once per parse; re-parsing produces a new document.
    """
    signals: Mapping[str, Signal] = field(default_factory=dict)
    timescale_exponent: int = 0  # 1 raw time unit = 10^timescale_exponent seconds
    max_time: Time = 0           # Largest #time seen in the file
    metadata: Mapping[str, str] = field(default_factory=dict)

    @property
    def timescale_magnitude(self) -> float:
        """Seconds per raw time unit."""
        return 10.0 ** self.timescale_exponent

    @property
    def timescale(self) -> Timescale:
        return Timescale.from_exponent(self.timescale_exponent)

    @property
    def max_cycles(self) -> int:
        """ceil(max_time / 10^-exponent), computed exactly."""
        return math.ceil(Fraction(self.max_time) * Fraction(10) ** self.timescale_exponent)

    @property
    def min_time(self) -> Time:
        starts = [signal.wave[0][0] for signal in self.signals.values() if signal.wave]
        return min(starts) if starts else 0

    @property
    def end_time(self) -> Time:
        """Last point of the trace: the largest #time or wave entry."""
        ends = [signal.wave[-1][0] for signal in self.signals.values() if signal.wave]
        return max(ends + [self.max_time])

    @property
    def time_range(self) -> Time:
        return self.end_time - self.min_time

    @property
    def is_empty(self) -> bool:
        """True for the "no data" outcome: no signals or a zero time range."""
        return not self.signals or self.time_range <= 0

    def signal_list(self) -> List[Signal]:
        return list(self.signals.values())

    def get(self, name: str) -> Optional[Signal]:
        return self.signals.get(name)

    def with_signals(self, signals: Mapping[str, Signal]) -> 'WaveformDocument':
        return replace(self, signals=dict(signals))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'signals': [signal.to_dict() for signal in self.signals.values()],
            'timescale': self.timescale_magnitude,
            'maxCycles': self.max_cycles,
        }


@dataclass
class ViewportConfig:
    """Configuration for viewport behavior and constraints."""
    sidebar_width: int = RENDERING.SIDEBAR_WIDTH
    header_height: int = RENDERING.HEADER_HEIGHT
    zoom_min: float = UI.ZOOM_MIN
    zoom_max: float = UI.ZOOM_MAX
    zoom_wheel_factor: float = UI.ZOOM_WHEEL_FACTOR


@dataclass
class Viewport:
    """Zoom, scroll offset and the time <-> pixel transform.

    The drawable width W is the canvas width minus the sidebar S. With
    R = max_time - min_time:

        x_scale            = W * zoom / R
        visible_start_time = min_time + offset_x / x_scale
        x(t)               = (t - visible_start_time) * x_scale + S

    and the visible time window is [visible_start_time, visible_start_time + R / zoom].
    The transform is degenerate (x_scale == 0) when R or W is zero.
    """
    canvas_width: int = 800
    canvas_height: int = 600
    min_time: Time = 0
    max_time: Time = 0
    zoom: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0
    content_height: int = 0              # Total height of all layout rows
    hovered_time: Optional[float] = None
    config: ViewportConfig = field(default_factory=ViewportConfig)

    def __post_init__(self) -> None:
        self.zoom = self._clamp_zoom(self.zoom)
        self._clamp_offsets()

    # ---- Geometry ----
    @property
    def sidebar_width(self) -> int:
        return self.config.sidebar_width

    @property
    def header_height(self) -> int:
        return self.config.header_height

    @property
    def drawable_width(self) -> int:
        return max(0, self.canvas_width - self.config.sidebar_width)

    @property
    def track_area_height(self) -> int:
        return max(0, self.canvas_height - self.config.header_height)

    @property
    def time_range(self) -> Time:
        return self.max_time - self.min_time

    @property
    def is_degenerate(self) -> bool:
        return self.time_range <= 0 or self.drawable_width <= 0

    @property
    def x_scale(self) -> float:
        """Pixels per time unit."""
        if self.is_degenerate:
            return 0.0
        return self.drawable_width * self.zoom / self.time_range

    @property
    def visible_start_time(self) -> float:
        scale = self.x_scale
        if scale <= 0:
            return float(self.min_time)
        return self.min_time + self.offset_x / scale

    @property
    def visible_time_range(self) -> float:
        return self.time_range / self.zoom

    @property
    def visible_end_time(self) -> float:
        return self.visible_start_time + self.visible_time_range

    @property
    def max_offset_x(self) -> float:
        return max(0.0, self.drawable_width * self.zoom - self.drawable_width)

    @property
    def max_offset_y(self) -> float:
        return float(max(0, self.content_height - self.track_area_height))

    def time_to_x(self, time: float) -> float:
        """Convert simulation time to canvas x coordinate."""
        return (time - self.visible_start_time) * self.x_scale + self.config.sidebar_width

    def x_to_time(self, x: float) -> float:
        """Convert canvas x coordinate to simulation time."""
        scale = self.x_scale
        if scale <= 0:
            return self.visible_start_time
        return (x - self.config.sidebar_width) / scale + self.visible_start_time

    # ---- Mutation ----
    def set_time_bounds(self, min_time: Time, max_time: Time) -> None:
        """Attach the viewport to a new document's time span and reset the view."""
        self.min_time = min_time
        self.max_time = max_time
        self.zoom = self._clamp_zoom(1.0)
        self.offset_x = 0.0
        self.offset_y = 0.0
        self.hovered_time = None

    def resize(self, width: int, height: int) -> None:
        self.canvas_width = max(0, width)
        self.canvas_height = max(0, height)
        self._clamp_offsets()

    def set_content_height(self, height: int) -> None:
        self.content_height = max(0, height)
        self._clamp_offsets()

    def set_zoom(self, zoom: float) -> None:
        """Set zoom keeping the time at the left edge of the drawable area fixed."""
        self.zoom_at(self.config.sidebar_width, zoom)

    def zoom_at(self, x: float, zoom: float) -> None:
        """Set zoom keeping the time under canvas x coordinate fixed."""
        if self.is_degenerate:
            self.zoom = self._clamp_zoom(zoom)
            self._clamp_offsets()
            return
        anchor_time = self.x_to_time(x)
        self.zoom = self._clamp_zoom(zoom)
        new_start = anchor_time - (x - self.config.sidebar_width) / self.x_scale
        self.offset_x = (new_start - self.min_time) * self.x_scale
        self._clamp_offsets()

    def zoom_in(self, anchor_x: Optional[float] = None) -> None:
        anchor = self.config.sidebar_width if anchor_x is None else anchor_x
        self.zoom_at(anchor, self.zoom * self.config.zoom_wheel_factor)

    def zoom_out(self, anchor_x: Optional[float] = None) -> None:
        anchor = self.config.sidebar_width if anchor_x is None else anchor_x
        self.zoom_at(anchor, self.zoom / self.config.zoom_wheel_factor)

    def zoom_fit(self) -> None:
        self.zoom = self._clamp_zoom(1.0)
        self.offset_x = 0.0
        self._clamp_offsets()

    def set_offset(self, x: float, y: float) -> None:
        self.offset_x = x
        self.offset_y = y
        self._clamp_offsets()

    def pan_by(self, dx: float, dy: float = 0.0) -> None:
        self.set_offset(self.offset_x + dx, self.offset_y + dy)

    def set_hovered_time(self, time: Optional[float]) -> None:
        self.hovered_time = time

    def _clamp_zoom(self, zoom: float) -> float:
        return max(self.config.zoom_min, min(self.config.zoom_max, zoom))

    def _clamp_offsets(self) -> None:
        self.offset_x = max(0.0, min(self.offset_x, self.max_offset_x))
        self.offset_y = max(0.0, min(self.offset_y, self.max_offset_y))
