#!/usr/bin/env python3
"""VcdViewer Main Application Window"""

import sys
import argparse
import logging
import os
from pathlib import Path
from typing import Optional

from PySide6.QtWidgets import QApplication, QMainWindow, QFileDialog
from PySide6.QtCore import QTimer
from PySide6.QtGui import QAction, QKeySequence

from vcdviewer import WaveformViewer, WaveformDocument, save_state, load_state

logger = logging.getLogger("vcdviewer")


class VcdViewerMainWindow(QMainWindow):
    """Demo window hosting a single WaveformViewer."""

    def __init__(self, state_file: Optional[str] = None, wave_file: Optional[str] = None,
                 exit_after_load: bool = False) -> None:
        super().__init__()
        self.setWindowTitle("VCD Viewer")
        self.resize(1200, 700)

        self.viewer = WaveformViewer(self)
        self.setCentralWidget(self.viewer)
        self.viewer.documentLoaded.connect(self._on_document_loaded)
        self.viewer.loadProgress.connect(self._on_load_progress)
        self.exit_after_load = exit_after_load

        self._create_actions()
        self.statusBar().showMessage("Ready")

        # Schedule initial load after event loop starts
        if state_file:
            QTimer.singleShot(100, lambda: self.load_state_file(state_file))
        elif wave_file:
            QTimer.singleShot(100, lambda: self.load_file(wave_file))

    def _create_actions(self) -> None:
        open_action = QAction("&Open...", self)
        open_action.setShortcut(QKeySequence.StandardKey.Open)
        open_action.triggered.connect(self.open_file)
        self.addAction(open_action)

        save_action = QAction("&Save View State...", self)
        save_action.setShortcut(QKeySequence.StandardKey.Save)
        save_action.triggered.connect(self.save_state_file)
        self.addAction(save_action)

    def open_file(self) -> None:
        file_path, _ = QFileDialog.getOpenFileName(self, "Open VCD File", "",
                                                   "VCD Files (*.vcd);;All Files (*)")
        if file_path:
            QTimer.singleShot(0, lambda: self.load_file(file_path))

    def load_file(self, file_path: str) -> None:
        try:
            self.viewer.load_file(file_path)
        except OSError as e:
            logger.error("Failed to read %s: %s", file_path, e)
            self.statusBar().showMessage(f"Load failed: {e}")
            if self.exit_after_load:
                QTimer.singleShot(0, lambda: QApplication.exit(1))
            return
        self.statusBar().showMessage(f"Loading {os.path.basename(file_path)}...")

    def load_state_file(self, state_file: str) -> None:
        try:
            state = load_state(state_file)
        except (OSError, ValueError) as e:
            logger.error("Failed to load view state %s: %s", state_file, e)
            self.statusBar().showMessage(f"Load failed: {e}")
            return
        self.viewer.apply_view_state(state)
        if state.wave_file:
            self.load_file(state.wave_file)

    def save_state_file(self) -> None:
        file_path, _ = QFileDialog.getSaveFileName(self, "Save View State", "",
                                                   "YAML Files (*.yaml *.yml);;All Files (*)")
        if not file_path:
            return
        try:
            save_state(self.viewer.view_state(), Path(file_path))
        except OSError as e:
            logger.error("Failed to save view state %s: %s", file_path, e)
            self.statusBar().showMessage(f"Save failed: {e}")
            return
        self.statusBar().showMessage(f"Saved view state: {Path(file_path).name}")

    def _on_load_progress(self, done: int, total: int) -> None:
        self.statusBar().showMessage(f"Parsing... {done}/{total} lines")

    def _on_document_loaded(self, document: WaveformDocument) -> None:
        name = Path(self.viewer.wave_file).name if self.viewer.wave_file else "VCD text"
        timescale = document.timescale
        self.statusBar().showMessage(
            f"Loaded: {name} ({len(document.signals)} signals, "
            f"Timescale: {timescale.factor}{timescale.unit.value})")
        if self.exit_after_load:
            QTimer.singleShot(0, QApplication.quit)


def main() -> int:
    """Run the demo application."""
    parser = argparse.ArgumentParser(description="VCD Waveform Viewer")
    parser.add_argument("--load_state", type=str, help="Load a saved view state (YAML) on startup")
    parser.add_argument("--load_wave", type=str, help="Load a VCD file on startup")
    parser.add_argument("--exit_after_load", action="store_true",
                        help="Exit the application after loading completes (for automation/testing)")
    parser.add_argument("--log_level", type=str, default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging verbosity")
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    app = QApplication(sys.argv)
    window = VcdViewerMainWindow(state_file=args.load_state, wave_file=args.load_wave,
                                 exit_after_load=args.exit_after_load)
    window.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
