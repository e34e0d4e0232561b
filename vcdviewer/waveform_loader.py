"""Chunked VCD loading driven by the Qt event loop."""

import logging
import time as time_module
from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal

from .bus_expander import expand_buses
from .config import PARSER
from .data_model import WaveformDocument
from .vcd_parser import ChunkedVcdParse, read_vcd_text

logger = logging.getLogger(__name__)


class VcdLoadTask(QObject):
    """Parse VCD text one chunk per event-loop iteration.

    Each chunk is scheduled with QTimer.singleShot(0, ...) so painting and
    input handling run between chunks. Buses are expanded once the last chunk
    is done and the resulting document is delivered through ``finished``.
    There is no cancellation: a superseded task simply runs to completion and
    its result is ignored by the caller.
    """

    progress = Signal(int, int)   # (lines done, total lines)
    finished = Signal(object)     # WaveformDocument

    def __init__(self, text: str, chunk_size: int = PARSER.CHUNK_SIZE,
                 source: Optional[str] = None, expand: bool = True,
                 parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._task = ChunkedVcdParse(text, chunk_size)
        self._source = source
        self._expand = expand
        self._started_at = 0.0
        self._document: Optional[WaveformDocument] = None

    @classmethod
    def from_file(cls, path: str, chunk_size: int = PARSER.CHUNK_SIZE,
                  parent: Optional[QObject] = None) -> 'VcdLoadTask':
        """Read a file and wrap its contents; OSError propagates to the caller."""
        return cls(read_vcd_text(path), chunk_size, source=path, parent=parent)

    @property
    def source(self) -> Optional[str]:
        return self._source

    @property
    def document(self) -> Optional[WaveformDocument]:
        return self._document

    @property
    def is_finished(self) -> bool:
        return self._document is not None

    def start(self) -> None:
        self._started_at = time_module.time()
        logger.info("Loading %s (%d lines)", self._source or "VCD text", self._task.total_lines)
        QTimer.singleShot(0, self._step)

    def _step(self) -> None:
        more = self._task.step()
        self.progress.emit(self._task.lines_done, self._task.total_lines)
        if more:
            QTimer.singleShot(0, self._step)
            return

        document = self._task.result()
        if self._expand:
            document = expand_buses(document)
        self._document = document
        logger.info("Loaded %s: %d signals in %.1f ms", self._source or "VCD text",
                    len(document.signals), (time_module.time() - self._started_at) * 1000)
        self.finished.emit(document)
