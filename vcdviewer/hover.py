"""Point-in-time queries for cursor and hover interaction."""

from dataclasses import dataclass
from typing import Optional

from .data_model import Viewport, WaveformDocument
from .signal_layout import SignalLayout


@dataclass(frozen=True)
class HoverInfo:
    """Value of the track under the pointer at the pointer's time."""
    track_name: str
    value: str
    time: float
    row: int


def hover_time(viewport: Viewport, x: float) -> Optional[float]:
    """Time under canvas x, or None over the sidebar or for a degenerate view."""
    if viewport.is_degenerate or x < viewport.sidebar_width:
        return None
    return viewport.x_to_time(x)


def resolve_hover(document: Optional[WaveformDocument], layout: SignalLayout,
                  viewport: Viewport, x: float, y: float) -> Optional[HoverInfo]:
    """Resolve the pixel position (x, y) to a track and the value it holds.

    The held value is the one of the last wave entry at or before the pointer
    time (the value persists until the next change). Returns None when the
    pointer is over the sidebar or the ruler, below the last track, or when
    the viewport cannot map pixels to time.
    """
    if document is None:
        return None
    time = hover_time(viewport, x)
    if time is None:
        return None
    row = layout.row_at(y, viewport.offset_y)
    if row is None:
        return None
    return HoverInfo(track_name=row.label, value=row.signal.value_at(time), time=time, row=row.index)
