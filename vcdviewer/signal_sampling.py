"""Signal sampling module for converting waveform data to drawing segments.

This module turns the sparse (time, value) changes of a Signal into
horizontal segments in pixel space for the current Viewport. Each wave entry
becomes one segment that runs from its own x to the x of the next entry; the
last segment runs to the right edge of the visible window. Transitions that
fall into the same pixel column are merged so dense signals stay cheap to draw.
"""

import bisect
from dataclasses import dataclass
from enum import Enum
from math import ceil
from typing import List, Optional

from .data_model import DataFormat, Signal, Time, Viewport


class ValueKind(Enum):
    """Represents the kind of signal value."""
    NORMAL = "normal"          # Regular defined value
    UNDEFINED = "undefined"    # Unknown/uninitialized (X)
    HIGH_IMPEDANCE = "highz"   # High impedance (Z)


@dataclass
class WaveSegment:
    """One held value of a signal, laid out along the X axis."""
    time: Time                 # Time of the wave entry that starts the segment
    x_start: float
    x_end: float
    value: str
    value_kind: ValueKind
    has_multiple_transitions: bool = False    # Indicates pulse/glitch within the first pixel

    @property
    def width(self) -> float:
        return self.x_end - self.x_start


def determine_value_kind(value: str) -> ValueKind:
    """Determine the value kind from the string value."""
    lowered = value.lower()
    if 'x' in lowered:
        return ValueKind.UNDEFINED
    elif 'z' in lowered:
        return ValueKind.HIGH_IMPEDANCE
    return ValueKind.NORMAL


def undefined_char(value: str) -> Optional[str]:
    """First 'x' or 'z' character of a value, or None when the value is fully defined."""
    for c in value.lower():
        if c in 'xz':
            return c
    return None


def format_value(value: str, width: int, data_format: DataFormat = DataFormat.HEX) -> str:
    """Convert a binary string value into a formatted representation.

    Formats:
      - HEX: hexadecimal (e.g., "0xA3")
      - BIN: binary (e.g., "0b1010")
      - UNSIGNED: decimal string

    Single-bit values and values containing x/z are shown as-is, upper-cased.
    """
    if width <= 1 or not value or not set(value) <= {'0', '1'}:
        return value.upper()
    if data_format == DataFormat.HEX:
        digits = ceil(width / 4)
        return f"0x{int(value, 2):0{digits}X}"
    elif data_format == DataFormat.BIN:
        return "0b" + value
    return str(int(value, 2))


def sample_segments(signal: Signal, viewport: Viewport) -> List[WaveSegment]:
    """Build the drawable segments of a signal inside the visible window.

    Segment x coordinates are clipped to the waveform area
    [sidebar_width, canvas_width]. Returns an empty list when the viewport is
    degenerate (zero time range or zero drawable width) or the signal has no
    changes. A value lasting less than a pixel is folded into the next one,
    unless it only looks short because the left edge cut it.
    """
    if viewport.is_degenerate or not signal.wave:
        return []

    wave = signal.wave
    left = float(viewport.sidebar_width)
    right = float(viewport.canvas_width)

    # Start from the entry holding the value at the left edge
    first = bisect.bisect_right(wave, viewport.visible_start_time, key=lambda entry: entry[0])
    first = max(0, first - 1)

    segments: List[WaveSegment] = []
    previous_clipped = False
    for i in range(first, len(wave)):
        time, value = wave[i]
        x_start = viewport.time_to_x(time)
        if x_start >= right:
            break
        x_end = viewport.time_to_x(wave[i + 1][0]) if i + 1 < len(wave) else right
        clipped = x_start < left
        x_start = max(x_start, left)
        x_end = min(x_end, right)
        if x_end < x_start:
            continue

        previous = segments[-1] if segments else None
        if previous is not None and previous.width < 1 and not previous_clipped:
            # Previous value lasted less than a pixel; fold it into this one
            previous.x_end = x_end
            previous.value = value
            previous.value_kind = determine_value_kind(value)
            previous.has_multiple_transitions = True
            continue

        segments.append(WaveSegment(
            time=time,
            x_start=x_start,
            x_end=x_end,
            value=value,
            value_kind=determine_value_kind(value),
        ))
        previous_clipped = clipped
    return segments
