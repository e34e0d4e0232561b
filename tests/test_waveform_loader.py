"""Tests for chunked loading driven by the Qt event loop."""

import pytest

from vcdviewer import VcdLoadTask, expand_buses, parse_vcd


def test_load_text_delivers_expanded_document(qtbot, counter_text) -> None:
    task = VcdLoadTask(counter_text, chunk_size=8)
    progress = []
    task.progress.connect(lambda done, total: progress.append((done, total)))

    with qtbot.waitSignal(task.finished, timeout=5000) as blocker:
        task.start()

    document = blocker.args[0]
    assert document == expand_buses(parse_vcd(counter_text))
    assert task.is_finished
    assert task.document is document
    # One progress report per chunk, the last one complete
    total = len(counter_text.splitlines())
    assert len(progress) == -(-total // 8)
    assert progress[-1] == (total, total)


def test_expansion_can_be_disabled(qtbot, counter_text) -> None:
    task = VcdLoadTask(counter_text, expand=False)
    with qtbot.waitSignal(task.finished, timeout=5000) as blocker:
        task.start()

    assert "SW[0]" not in blocker.args[0].signals


def test_from_file(qtbot, counter_path) -> None:
    task = VcdLoadTask.from_file(str(counter_path), chunk_size=100)
    assert task.source == str(counter_path)

    with qtbot.waitSignal(task.finished, timeout=5000) as blocker:
        task.start()

    assert "BinCount[0]" in blocker.args[0].signals


def test_missing_file_raises(tmp_path) -> None:
    with pytest.raises(OSError):
        VcdLoadTask.from_file(str(tmp_path / "missing.vcd"))


def test_not_finished_before_event_loop(qtbot, counter_text) -> None:
    task = VcdLoadTask(counter_text, chunk_size=1)
    task.start()

    # Chunks only run once control returns to the event loop
    assert not task.is_finished
    qtbot.waitUntil(lambda: task.is_finished, timeout=5000)
