"""Persistence module for saving and loading the viewer state.

Only the view onto a waveform is stored (which file, zoom, scroll offsets,
expanded groups and display preferences). Parsed signal data is never written;
the wave file is parsed again when a saved state is restored.
"""

import logging
import pathlib
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Union

import yaml

from .config import UI
from .data_model import DataFormat

logger = logging.getLogger(__name__)


@dataclass
class ViewState:
    """Serializable snapshot of what the viewer shows."""
    wave_file: Optional[str] = None
    zoom: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0
    expanded_groups: List[str] = field(default_factory=list)
    show_hover_info: bool = UI.DEFAULT_SHOW_HOVER_INFO
    data_format: DataFormat = DataFormat.HEX


def _serialize_state(state: ViewState) -> Dict[str, Any]:
    data = asdict(state)
    # Convert enum values to strings
    data['data_format'] = state.data_format.value
    return data


def _deserialize_state(data: Dict[str, Any]) -> ViewState:
    state = ViewState()
    state.wave_file = data.get('wave_file')
    state.zoom = float(data.get('zoom', state.zoom))
    state.offset_x = float(data.get('offset_x', state.offset_x))
    state.offset_y = float(data.get('offset_y', state.offset_y))
    state.expanded_groups = [str(key) for key in data.get('expanded_groups') or []]
    state.show_hover_info = bool(data.get('show_hover_info', state.show_hover_info))
    try:
        state.data_format = DataFormat(data.get('data_format', state.data_format.value))
    except ValueError:
        logger.warning("Unknown data format %r in saved state, using hex", data.get('data_format'))
        state.data_format = DataFormat.HEX
    return state


def save_state(state: ViewState, path: Union[str, pathlib.Path]) -> None:
    """Serialize the view state to YAML."""
    with open(path, 'w') as f:
        yaml.safe_dump(_serialize_state(state), f, default_flow_style=False, sort_keys=False)
    logger.info("Saved view state to %s", path)


def load_state(path: Union[str, pathlib.Path]) -> ViewState:
    """Deserialize a YAML view state. Missing keys fall back to defaults."""
    with open(path, 'r') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid view state file: {path}")

    state = _deserialize_state(data)
    wave_file = state.wave_file
    if wave_file and not pathlib.Path(wave_file).is_absolute():
        # Relative wave paths are resolved against the state file
        state.wave_file = str((pathlib.Path(path).parent / wave_file).resolve())
    return state
