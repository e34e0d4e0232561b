"""Waveform viewer widget: canvas plus zoom, scroll and display controls."""

import logging
from typing import Optional, cast

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (QWidget, QVBoxLayout, QHBoxLayout, QGridLayout, QScrollBar,
                               QSlider, QCheckBox, QComboBox, QLabel, QProgressBar, QFrame)

from .config import UI
from .data_model import DataFormat, WaveformDocument
from .hover import HoverInfo
from .persistence import ViewState
from .settings_manager import SettingsManager
from .signal_sampling import format_value
from .waveform_canvas import WaveformCanvas
from .waveform_loader import VcdLoadTask

logger = logging.getLogger(__name__)

_FORMAT_LABELS = [
    (DataFormat.HEX, "Hex"),
    (DataFormat.BIN, "Binary"),
    (DataFormat.UNSIGNED, "Decimal"),
]


class WaveformViewer(QWidget):
    """Hosts the WaveformCanvas with a zoom slider, hover toggle and scrollbars.

    Loads are chunked through VcdLoadTask. Every load bumps a generation
    counter; a task that finishes after a newer load was started is ignored.
    """

    documentLoaded = Signal(object)      # WaveformDocument
    loadProgress = Signal(int, int)      # (lines done, total lines)

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._settings = SettingsManager()
        self._document: Optional[WaveformDocument] = None
        self._wave_file: Optional[str] = None
        self._load_generation = 0
        self._active_task: Optional[VcdLoadTask] = None
        self._pending_state: Optional[ViewState] = None
        self._syncing = False

        self._info_bar: QLabel = cast(QLabel, None)
        self._zoom_slider: QSlider = cast(QSlider, None)
        self._hover_checkbox: QCheckBox = cast(QCheckBox, None)
        self._format_combo: QComboBox = cast(QComboBox, None)
        self._progress_bar: QProgressBar = cast(QProgressBar, None)
        self._canvas: WaveformCanvas = cast(WaveformCanvas, None)
        self._h_scrollbar: QScrollBar = cast(QScrollBar, None)
        self._v_scrollbar: QScrollBar = cast(QScrollBar, None)

        self._setup_ui()
        self._apply_settings()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        controls = QHBoxLayout()
        self._info_bar = QLabel("")
        self._info_bar.setFrameStyle(QFrame.Shape.Box)
        controls.addWidget(self._info_bar, 1)

        controls.addWidget(QLabel("Zoom"))
        self._zoom_slider = QSlider(Qt.Orientation.Horizontal)
        self._zoom_slider.setRange(round(UI.ZOOM_MIN / UI.ZOOM_STEP), round(UI.ZOOM_MAX / UI.ZOOM_STEP))
        self._zoom_slider.setValue(round(1.0 / UI.ZOOM_STEP))
        self._zoom_slider.setMinimumWidth(150)
        controls.addWidget(self._zoom_slider)

        self._hover_checkbox = QCheckBox("Show hover info")
        controls.addWidget(self._hover_checkbox)

        self._format_combo = QComboBox()
        for data_format, label in _FORMAT_LABELS:
            self._format_combo.addItem(label, data_format)
        controls.addWidget(self._format_combo)

        self._progress_bar = QProgressBar()
        self._progress_bar.setMaximumWidth(150)
        self._progress_bar.setVisible(False)
        controls.addWidget(self._progress_bar)
        layout.addLayout(controls)

        grid = QGridLayout()
        grid.setSpacing(0)
        self._canvas = WaveformCanvas()
        self._v_scrollbar = QScrollBar(Qt.Orientation.Vertical)
        self._h_scrollbar = QScrollBar(Qt.Orientation.Horizontal)
        grid.addWidget(self._canvas, 0, 0)
        grid.addWidget(self._v_scrollbar, 0, 1)
        grid.addWidget(self._h_scrollbar, 1, 0)
        layout.addLayout(grid, 1)

        # Connect signals
        self._zoom_slider.valueChanged.connect(self._on_zoom_slider_changed)
        self._hover_checkbox.toggled.connect(self._on_hover_toggled)
        self._format_combo.currentIndexChanged.connect(self._on_format_changed)
        self._h_scrollbar.valueChanged.connect(self._on_scrollbar_changed)
        self._v_scrollbar.valueChanged.connect(self._on_scrollbar_changed)
        self._canvas.viewportChanged.connect(self._sync_controls)
        self._canvas.hoverChanged.connect(self._on_hover_changed)

    def _apply_settings(self) -> None:
        self.setShowHoverInfo(self._settings.get_show_hover_info())
        self.setDataFormat(self._settings.get_data_format())

    # ---- Accessors ----
    @property
    def canvas(self) -> WaveformCanvas:
        return self._canvas

    @property
    def document(self) -> Optional[WaveformDocument]:
        return self._document

    @property
    def wave_file(self) -> Optional[str]:
        return self._wave_file

    @property
    def load_generation(self) -> int:
        return self._load_generation

    @property
    def is_loading(self) -> bool:
        return self._active_task is not None

    # ---- Loading ----
    def load_text(self, text: str, source: Optional[str] = None) -> VcdLoadTask:
        """Start a chunked parse of VCD text; the result replaces the current document."""
        return self._start_load(VcdLoadTask(text, self._settings.get_chunk_size(), source=source))

    def load_file(self, path: str) -> VcdLoadTask:
        """Read and parse a VCD file. OSError from reading propagates."""
        try:
            task = VcdLoadTask.from_file(path, self._settings.get_chunk_size())
        except OSError:
            # A view state queued for this file must not leak into the next load
            self._pending_state = None
            raise
        return self._start_load(task)

    def _start_load(self, task: VcdLoadTask) -> VcdLoadTask:
        self._load_generation += 1
        generation = self._load_generation
        task.setParent(self)
        task.progress.connect(lambda done, total: self._on_load_progress(generation, done, total))
        task.finished.connect(lambda document: self._on_load_finished(generation, task, document))
        self._active_task = task
        self._wave_file = task.source
        self._progress_bar.setValue(0)
        self._progress_bar.setVisible(True)
        task.start()
        return task

    def _on_load_progress(self, generation: int, done: int, total: int) -> None:
        if generation != self._load_generation:
            return
        self._progress_bar.setMaximum(max(1, total))
        self._progress_bar.setValue(done)
        self.loadProgress.emit(done, total)

    def _on_load_finished(self, generation: int, task: VcdLoadTask, document: WaveformDocument) -> None:
        task.deleteLater()
        if generation != self._load_generation:
            logger.debug("Discarding result of superseded load %d", generation)
            return
        self._active_task = None
        self._progress_bar.setVisible(False)
        self.setDocument(document)
        self.documentLoaded.emit(document)

    def setDocument(self, document: Optional[WaveformDocument]) -> None:
        """Show a document, applying any view state waiting for it."""
        self._document = document
        state = self._pending_state
        self._pending_state = None
        self._canvas.setDocument(document, state.expanded_groups if state else None)
        if state is not None:
            self._canvas.setZoom(state.zoom)
            self._canvas.setOffsets(state.offset_x, state.offset_y)
        self._sync_controls()
        self._on_hover_changed(self._canvas.hover)

    # ---- Display settings ----
    def setShowHoverInfo(self, show: bool) -> None:
        self._hover_checkbox.setChecked(show)
        self._canvas.setShowHoverInfo(show)

    def setDataFormat(self, data_format: DataFormat) -> None:
        for i in range(self._format_combo.count()):
            if self._format_combo.itemData(i) == data_format:
                self._format_combo.setCurrentIndex(i)
                break
        self._canvas.setDataFormat(data_format)

    # ---- View state ----
    def view_state(self) -> ViewState:
        viewport = self._canvas.viewport
        return ViewState(
            wave_file=self._wave_file,
            zoom=viewport.zoom,
            offset_x=viewport.offset_x,
            offset_y=viewport.offset_y,
            expanded_groups=self._canvas.signal_layout.expanded_groups,
            show_hover_info=self._canvas.showHoverInfo(),
            data_format=self._canvas.dataFormat(),
        )

    def apply_view_state(self, state: ViewState) -> None:
        """Apply display settings now; zoom, offsets and groups apply to the next document."""
        self.setShowHoverInfo(state.show_hover_info)
        self.setDataFormat(state.data_format)
        self._pending_state = state

    # ---- Control sync ----
    def _on_zoom_slider_changed(self, value: int) -> None:
        if self._syncing:
            return
        self._canvas.setZoom(value * UI.ZOOM_STEP)

    def _on_hover_toggled(self, checked: bool) -> None:
        self._canvas.setShowHoverInfo(checked)
        self._settings.set_show_hover_info(checked)

    def _on_format_changed(self, index: int) -> None:
        data_format = self._format_combo.itemData(index)
        if data_format is None:
            return
        self._canvas.setDataFormat(data_format)
        self._settings.set_data_format(data_format)
        self._on_hover_changed(self._canvas.hover)

    def _on_scrollbar_changed(self, _value: int) -> None:
        if self._syncing:
            return
        self._canvas.setOffsets(self._h_scrollbar.value(), self._v_scrollbar.value())

    def _sync_controls(self) -> None:
        """Mirror the canvas viewport into the slider and scrollbars."""
        viewport = self._canvas.viewport
        self._syncing = True
        try:
            self._zoom_slider.setValue(round(viewport.zoom / UI.ZOOM_STEP))
            self._h_scrollbar.setRange(0, int(viewport.max_offset_x))
            self._h_scrollbar.setPageStep(max(1, viewport.drawable_width))
            self._h_scrollbar.setValue(int(viewport.offset_x))
            self._v_scrollbar.setRange(0, int(viewport.max_offset_y))
            self._v_scrollbar.setPageStep(max(1, viewport.track_area_height))
            self._v_scrollbar.setSingleStep(UI.SCROLL_STEP_PIXELS)
            self._v_scrollbar.setValue(int(viewport.offset_y))
        finally:
            self._syncing = False

    def _on_hover_changed(self, hover: Optional[HoverInfo]) -> None:
        if self._document is None:
            self._info_bar.setText("")
            return
        timescale = self._document.timescale
        if hover is None:
            self._info_bar.setText(f"Timescale: {timescale.factor} {timescale.unit.value}")
            return
        rows = self._canvas.signal_layout.rows
        width = rows[hover.row].signal.width if 0 <= hover.row < len(rows) else 1
        value = format_value(hover.value, width, self._canvas.dataFormat())
        self._info_bar.setText(f"{hover.track_name}: {value} @ {hover.time:.2f}")
