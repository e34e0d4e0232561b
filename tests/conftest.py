"""Common test fixtures for VcdViewer tests."""

import os

# Run Qt headless so the suite works without a display server.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtCore import QSettings

from vcdviewer import WaveformDocument, expand_buses, parse_vcd, read_vcd_text
from vcdviewer.settings_manager import SettingsManager
from .test_utils import get_test_input_path, TestFiles


def pytest_configure(config):
    """Keep QSettings written by the tests out of the user's configuration."""
    settings_dir = config.rootpath / ".pytest_cache" / "qsettings"
    for fmt in (QSettings.Format.NativeFormat, QSettings.Format.IniFormat):
        QSettings.setPath(fmt, QSettings.Scope.UserScope, str(settings_dir))


@pytest.fixture(autouse=True)
def clean_settings():
    """Start every test from default viewer settings."""
    manager = SettingsManager()
    manager.get_settings().clear()
    manager.clear_cache()
    yield manager
    manager.get_settings().clear()
    manager.clear_cache()


@pytest.fixture
def counter_path():
    """Path to the counter VCD file."""
    return get_test_input_path(TestFiles.COUNTER_VCD)


@pytest.fixture
def counter_text(counter_path) -> str:
    return read_vcd_text(str(counter_path))


@pytest.fixture
def counter_document(counter_text) -> WaveformDocument:
    """Counter VCD as parsed, before bus expansion."""
    return parse_vcd(counter_text)


@pytest.fixture
def expanded_counter(counter_document) -> WaveformDocument:
    """Counter VCD with per-bit signals inserted after each bus."""
    return expand_buses(counter_document)
