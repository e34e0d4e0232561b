"""Tests for per-bit bus expansion."""

from vcdviewer import Signal, expand_bus, expand_buses, parse_vcd
from vcdviewer.bus_expander import bit_indices


def test_two_bit_switch_expands() -> None:
    switch = Signal(id="$", name="SW", width=2, wave=((0, "10"),))

    bits = expand_bus(switch)

    assert [bit.name for bit in bits] == ["SW[1]", "SW[0]"]
    assert bits[0].wave == ((0, "1"),)
    assert bits[1].wave == ((0, "0"),)
    assert all(bit.width == 1 for bit in bits)


def test_single_bit_not_expanded() -> None:
    assert expand_bus(Signal(id="!", name="clk", wave=((0, "0"),))) == []


def test_ascending_declared_range() -> None:
    """The leftmost value character belongs to the first declared index."""
    bus = Signal(id="#", name="v[0:3]", width=4, wave=((0, "1000"),), bit_range=(0, 3))

    bits = expand_bus(bus)

    assert [bit.name for bit in bits] == ["v[0]", "v[1]", "v[2]", "v[3]"]
    assert bits[0].wave == ((0, "1"),)
    assert bits[3].bit_range == (3, 3)


def test_range_wider_than_value_reads_unknown() -> None:
    bus = Signal(id="#", name="w", width=4, wave=((0, "1010"),), bit_range=(7, 0))

    values = [bit.wave[0][1] for bit in expand_bus(bus)]

    assert values == ["1", "0", "1", "0", "x", "x", "x", "x"]


def test_implicit_ranges_can_be_disabled() -> None:
    bus = Signal(id="$", name="SW", width=2, wave=((0, "10"),))
    assert expand_bus(bus, implicit_ranges=False) == []

    ranged = Signal(id="#", name="q[1:0]", width=2, wave=((0, "10"),))
    assert [bit.name for bit in expand_bus(ranged, implicit_ranges=False)] == ["q[1]", "q[0]"]


def test_bit_indices() -> None:
    assert bit_indices(3, 0) == [3, 2, 1, 0]
    assert bit_indices(0, 2) == [0, 1, 2]
    assert bit_indices(5, 5) == [5]


class TestExpandDocument:
    def test_bits_follow_their_parent(self, counter_document) -> None:
        expanded = expand_buses(counter_document)

        assert list(expanded.signals) == [
            "clk", "reset",
            "BinCount[3:0]", "BinCount[3]", "BinCount[2]", "BinCount[1]", "BinCount[0]",
            "SW", "SW[1]", "SW[0]",
            "data", "data[7]", "data[6]", "data[5]", "data[4]",
            "data[3]", "data[2]", "data[1]", "data[0]",
            "top.sub.clk",
        ]

    def test_bits_keep_parent_timestamps(self, expanded_counter) -> None:
        signals = expanded_counter.signals
        assert signals["BinCount[0]"].wave == ((0, "0"), (10, "1"), (20, "0"), (30, "1"))
        assert signals["BinCount[3]"].times == signals["BinCount[3:0]"].times
        assert signals["SW[1]"].wave == ((0, "0"), (10, "1"), (30, "1"))
        assert signals["SW[0]"].wave == ((0, "0"), (10, "0"), (30, "1"))
        assert signals["data[0]"].wave == ((0, "x"), (10, "1"), (20, "1"))
        assert signals["data[1]"].wave == ((0, "0"), (10, "0"), (20, "z"))

    def test_bits_inherit_scope_and_id(self, expanded_counter) -> None:
        bit = expanded_counter.signals["data[3]"]
        assert bit.hierarchy == ("top",)
        assert bit.id == "%"
        assert bit.bit_range == (3, 3)

    def test_original_document_untouched(self, counter_document) -> None:
        expand_buses(counter_document)
        assert "SW[1]" not in counter_document.signals

    def test_idempotent(self, counter_document) -> None:
        once = expand_buses(counter_document)
        assert expand_buses(once) == once

    def test_scoped_parent_gets_scoped_bits(self) -> None:
        text = ("$scope module a $end\n$var wire 2 ! bus $end\n$upscope $end\n"
                "$scope module b $end\n$var wire 2 \" bus $end\n$upscope $end\n"
                "#0\nb10 !\nb01 \"\n")
        expanded = expand_buses(parse_vcd(text))

        assert list(expanded.signals) == ["bus", "bus[1]", "bus[0]", "b.bus", "b.bus[1]", "b.bus[0]"]
        assert expanded.signals["b.bus[0]"].wave == ((0, "1"),)
        assert expanded.signals["bus[0]"].wave == ((0, "0"),)

    def test_existing_signal_not_overwritten(self) -> None:
        text = "$var wire 1 ! SW[0] $end\n$var wire 2 $ SW $end\n#0\n1!\nb10 $\n"
        expanded = expand_buses(parse_vcd(text))

        # Declared SW[0] keeps its own wave
        assert expanded.signals["SW[0]"].wave == ((0, "1"),)
        assert expanded.signals["SW[1]"].wave == ((0, "1"),)
