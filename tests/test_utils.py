"""Common test utilities and fixtures for VcdViewer tests."""

from pathlib import Path


def get_repo_root() -> Path:
    """Get the repository root directory.

    Returns the absolute path to the VcdViewer repository root.
    """
    # This file is in tests/, so parent is the repo root
    return Path(__file__).parent.parent.resolve()


def get_test_inputs_dir() -> Path:
    """Get the absolute path to the test_inputs directory."""
    return get_repo_root() / "test_inputs"


def get_test_input_path(filename: str) -> Path:
    """Get the absolute path to a test input file.

    Args:
        filename: Name of the file in test_inputs directory

    Returns:
        Absolute path to the test input file

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    file_path = get_test_inputs_dir() / filename
    if not file_path.exists():
        raise FileNotFoundError(f"Test input file not found: {file_path}")
    return file_path


# Common test file constants
class TestFiles:
    """Constants for the VCD files in test_inputs."""

    # 10 ns timescale, clk/reset, a declared [3:0] bus, an unranged 2-bit bus,
    # an 8-bit bus with x/z values and an aliased clk in a nested scope
    COUNTER_VCD = "counter.vcd"
    # Header only, no variables
    EMPTY_VCD = "empty.vcd"
    # 100 ps timescale, value changes on the timestamp lines
    INLINE_CHANGES_VCD = "inline_changes.vcd"
