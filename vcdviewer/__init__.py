"""VcdViewer - PySide6 VCD waveform engine and viewer widget."""

import importlib

__version__ = "0.1.0"

from .data_model import (
    Signal, WaveformDocument, DataFormat, TimeUnit, Timescale,
    Viewport, ViewportConfig, effective_value
)
from .vcd_parser import (
    parse_timescale, parse_vcd, parse_vcd_async, read_vcd_text,
    ChunkedVcdParse, ParserState
)
from .bus_expander import expand_bus, expand_buses
from .signal_layout import SignalGroup, SignalLayout, TrackRow, group_signals
from .hover import HoverInfo, resolve_hover
from .persistence import ViewState, save_state, load_state
from .config import PARSER, RENDERING, COLORS, UI, TIME_RULER

# Qt-backed exports, imported on first access so that the parser, layout and
# hover modules load without PySide6
_QT_EXPORTS = {
    'render_waveforms': 'signal_renderer',
    'draw_value_cell': 'signal_renderer',
    'VcdLoadTask': 'waveform_loader',
    'WaveformCanvas': 'waveform_canvas',
    'WaveformViewer': 'waveform_viewer',
}


def __getattr__(name):
    module_name = _QT_EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = importlib.import_module(f".{module_name}", __name__)
    return getattr(module, name)


__all__ = [
    'Signal', 'WaveformDocument', 'DataFormat', 'TimeUnit', 'Timescale',
    'Viewport', 'ViewportConfig', 'effective_value',
    'parse_timescale', 'parse_vcd', 'parse_vcd_async', 'read_vcd_text',
    'ChunkedVcdParse', 'ParserState',
    'expand_bus', 'expand_buses',
    'SignalGroup', 'SignalLayout', 'TrackRow', 'group_signals',
    'HoverInfo', 'resolve_hover',
    'render_waveforms', 'draw_value_cell',
    'VcdLoadTask', 'WaveformCanvas', 'WaveformViewer',
    'ViewState', 'save_state', 'load_state',
    'PARSER', 'RENDERING', 'COLORS', 'UI', 'TIME_RULER'
]
