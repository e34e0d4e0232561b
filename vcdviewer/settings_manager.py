"""
Centralized application settings management using QSettings.
"""

from typing import Optional, Any
from PySide6.QtCore import QObject, QSettings, Signal

from .config import PARSER, UI
from .data_model import DataFormat


class SettingsManager(QObject):
    """
    Singleton manager for application-level settings.

    Provides type-safe access to viewer preferences stored in QSettings.
    """

    # Signals emitted when settings change
    hover_info_changed = Signal(bool)
    data_format_changed = Signal(object)  # DataFormat
    chunk_size_changed = Signal(int)

    _instance: Optional['SettingsManager'] = None

    def __new__(cls) -> 'SettingsManager':
        """Ensure singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        """Initialize the settings manager."""
        if not hasattr(self, '_initialized'):
            super().__init__()
            self._settings = QSettings("VcdViewer", "Viewer")
            self._initialized = True

            # Cache for frequently accessed settings
            self._hover_info_cache: Optional[bool] = None
            self._data_format_cache: Optional[DataFormat] = None
            self._chunk_size_cache: Optional[int] = None

    # Hover tooltip settings
    def get_show_hover_info(self) -> bool:
        """Get whether the floating value label follows the cursor."""
        if self._hover_info_cache is None:
            value: Any = self._settings.value("view/show_hover_info", UI.DEFAULT_SHOW_HOVER_INFO, type=bool)
            self._hover_info_cache = bool(value) if value is not None else UI.DEFAULT_SHOW_HOVER_INFO
        return self._hover_info_cache

    def set_show_hover_info(self, enabled: bool) -> None:
        if self._hover_info_cache != enabled:
            self._hover_info_cache = enabled
            self._settings.setValue("view/show_hover_info", enabled)
            self._settings.sync()
            self.hover_info_changed.emit(enabled)

    # Bus value format
    def get_data_format(self) -> DataFormat:
        """Get the format used for bus values (hex by default)."""
        if self._data_format_cache is None:
            value: Any = self._settings.value("view/data_format", DataFormat.HEX.value, type=str)
            try:
                self._data_format_cache = DataFormat(value)
            except ValueError:
                self._data_format_cache = DataFormat.HEX
        return self._data_format_cache

    def set_data_format(self, data_format: DataFormat) -> None:
        if self._data_format_cache != data_format:
            self._data_format_cache = data_format
            self._settings.setValue("view/data_format", data_format.value)
            self._settings.sync()
            self.data_format_changed.emit(data_format)

    # Parser settings
    def get_chunk_size(self) -> int:
        """Get the number of VCD lines parsed per event-loop iteration."""
        if self._chunk_size_cache is None:
            value: Any = self._settings.value("parser/chunk_size", PARSER.CHUNK_SIZE, type=int)
            self._chunk_size_cache = int(value) if value else PARSER.CHUNK_SIZE
        return self._chunk_size_cache

    def set_chunk_size(self, chunk_size: int) -> None:
        chunk_size = max(PARSER.MIN_CHUNK_SIZE, min(PARSER.MAX_CHUNK_SIZE, chunk_size))
        if self._chunk_size_cache != chunk_size:
            self._chunk_size_cache = chunk_size
            self._settings.setValue("parser/chunk_size", chunk_size)
            self._settings.sync()
            self.chunk_size_changed.emit(chunk_size)

    def get_settings(self) -> QSettings:
        """
        Get the underlying QSettings object for direct access if needed.

        Returns:
            The QSettings instance
        """
        return self._settings

    def clear_cache(self) -> None:
        """Drop cached values so the next read goes to QSettings."""
        self._hover_info_cache = None
        self._data_format_cache = None
        self._chunk_size_cache = None
