"""Tests for grouping signals into tracks and laying out rows."""

import pytest

from vcdviewer import (Signal, SignalLayout, WaveformDocument, expand_buses, group_signals,
                       parse_vcd)
from vcdviewer.signal_layout import composite_signal


@pytest.fixture
def layout(expanded_counter) -> SignalLayout:
    return SignalLayout(expanded_counter)


class TestGrouping:
    def test_groups_by_scope_and_base_name(self, expanded_counter) -> None:
        groups = group_signals(expanded_counter)

        assert [group.key for group in groups] == [
            "top.clk", "top.reset", "top.BinCount", "top.SW", "top.data", "top.sub.clk"]
        assert [len(group.members) for group in groups] == [1, 1, 5, 3, 9, 1]

    def test_bus_is_collapsed_signal(self, expanded_counter) -> None:
        groups = {group.key: group for group in group_signals(expanded_counter)}

        bincount = groups["top.BinCount"]
        assert bincount.is_expandable
        assert bincount.bus is expanded_counter.signals["BinCount[3:0]"]
        assert bincount.collapsed_signal is bincount.bus
        assert not groups["top.clk"].is_expandable

    def test_composite_from_bits(self) -> None:
        """Bits without a declared parent are concatenated msb first."""
        low = Signal(id="2", name="q[0]", wave=((0, "1"), (3, "1"), (8, "0")), bit_range=(0, 0))
        high = Signal(id="1", name="q[1]", wave=((0, "0"), (5, "1")), bit_range=(1, 1))

        composite = composite_signal("q", [low, high])

        assert composite.width == 2
        assert composite.bit_range == (1, 0)
        assert composite.wave == ((0, "01"), (5, "11"), (8, "10"))

    def test_composite_used_when_no_bus(self) -> None:
        document = WaveformDocument(signals={
            "q[1]": Signal(id="1", name="q[1]", wave=((0, "1"),), bit_range=(1, 1)),
            "q[0]": Signal(id="2", name="q[0]", wave=((0, "0"),), bit_range=(0, 0)),
        }, max_time=10)

        group = group_signals(document)[0]

        assert group.bus is None
        assert group.collapsed_signal.name == "q"
        assert group.collapsed_signal.wave == ((0, "10"),)

    def test_same_name_declared_twice_stays_apart(self) -> None:
        text = "$var wire 2 a x $end\n$var wire 2 b x $end\n#0\nb01 a\nb10 b\n"
        document = expand_buses(parse_vcd(text))

        groups = group_signals(document)

        assert [group.key for group in groups] == ["x", "x#b"]
        assert [signal.name for signal in groups[0].members] == ["x", "x[1]", "x[0]"]
        assert [signal.id for signal in groups[1].members] == ["b", "b", "b"]
        assert groups[0].bus.wave == ((0, "01"),)
        assert groups[1].bus.wave == ((0, "10"),)

    def test_same_name_in_one_scope_stays_apart(self) -> None:
        text = ("$scope module top $end\n$var wire 1 a x $end\n$var wire 1 b x $end\n"
                "$upscope $end\n")
        document = parse_vcd(text)

        assert sorted(document.signals) == ["top.x", "x"]
        assert [group.key for group in group_signals(document)] == ["top.x", "top.x#b"]


class TestRows:
    def test_collapsed_rows(self, layout: SignalLayout) -> None:
        rows = layout.rows

        assert [row.label for row in rows] == ["clk", "reset", "BinCount", "SW", "data", "clk"]
        assert [row.top for row in rows] == [0, 30, 60, 90, 120, 150]
        assert [row.depth for row in rows] == [1, 1, 1, 1, 1, 2]
        assert rows[2].is_group_row
        assert rows[2].signal.width == 4
        assert layout.content_height == 180

    def test_toggle_expands_group(self, layout: SignalLayout) -> None:
        assert layout.toggle("top.BinCount") is True

        rows = layout.rows
        assert layout.row_count == 10
        assert [row.label for row in rows[2:7]] == [
            "BinCount[3:0]", "BinCount[3]", "BinCount[2]", "BinCount[1]", "BinCount[0]"]
        assert rows[2].is_group_row and rows[2].depth == 1
        assert not rows[3].is_group_row and rows[3].depth == 2
        assert rows[7].label == "SW"
        assert rows[7].top == 210
        assert layout.expanded_groups == ["top.BinCount"]

    def test_toggle_twice_collapses(self, layout: SignalLayout) -> None:
        layout.toggle("top.BinCount")
        assert layout.toggle("top.BinCount") is False
        assert layout.row_count == 6

    def test_plain_signal_not_toggled(self, layout: SignalLayout) -> None:
        assert layout.toggle("top.clk") is False
        assert layout.toggle("no.such.group") is False
        assert layout.row_count == 6

    def test_expand_and_collapse_all(self, layout: SignalLayout) -> None:
        layout.expand_all()
        assert layout.row_count == 20
        assert layout.expanded_groups == ["top.BinCount", "top.SW", "top.data"]

        layout.collapse_all()
        assert layout.row_count == 6

    def test_set_document_keeps_known_expanded_groups(self, expanded_counter) -> None:
        layout = SignalLayout()
        layout.set_document(expanded_counter, expanded=["top.SW", "top.clk", "gone"])

        assert layout.expanded_groups == ["top.SW"]
        assert layout.row_count == 8

    def test_no_document(self) -> None:
        layout = SignalLayout()
        assert layout.rows == []
        assert layout.content_height == 0
        assert layout.row_at(45) is None


class TestQueries:
    def test_row_at(self, layout: SignalLayout) -> None:
        assert layout.row_at(29) is None
        assert layout.row_at(30).index == 0
        assert layout.row_at(65).index == 1
        assert layout.row_at(209).index == 5
        assert layout.row_at(210) is None

    def test_row_at_scrolled(self, layout: SignalLayout) -> None:
        assert layout.row_at(30, offset_y=30).index == 1
        assert layout.row_at(15, offset_y=30) is None

    def test_visible_rows(self, layout: SignalLayout) -> None:
        assert [row.index for row in layout.visible_rows(30, 60)] == [1, 2]
        assert [row.index for row in layout.visible_rows(0, 1000)] == [0, 1, 2, 3, 4, 5]

    def test_row_y(self, layout: SignalLayout) -> None:
        assert layout.row_y(layout.rows[1], offset_y=10) == 50
