"""Tests for VCD parsing: declarations, value changes and normalization."""

import pytest

from vcdviewer import ParserState, Signal, parse_vcd, read_vcd_text
from vcdviewer.vcd_parser import parse_bit_range
from .test_utils import get_test_input_path, TestFiles

CLK_VCD = """$var wire 1 ! clk $end
#0
0!
#5
1!
#10
0!
"""


def test_single_clock_round_trip() -> None:
    document = parse_vcd(CLK_VCD)

    assert list(document.signals) == ["clk"]
    clk = document.signals["clk"]
    assert clk.width == 1
    assert clk.wave == ((0, "0"), (5, "1"), (10, "0"))
    assert clk.hierarchy == ()
    assert document.max_time == 10
    assert document.timescale_exponent == 0


def test_to_dict_shape() -> None:
    data = parse_vcd("$timescale 10 ns $end\n" + CLK_VCD).to_dict()

    assert data["maxCycles"] == 1
    assert data["timescale"] == pytest.approx(1e-8)
    assert data["signals"] == [{"name": "clk", "width": 1, "hierarchy": [],
                                "wave": [[0, "0"], [5, "1"], [10, "0"]]}]


class TestValueWidths:
    """Vector values are fitted to the declared width."""

    def test_short_value_left_padded(self) -> None:
        document = parse_vcd("$var wire 4 # cnt $end\n#0\nb1 #\n")
        assert document.signals["cnt"].wave == ((0, "0001"),)

    def test_long_value_keeps_rightmost_bits(self) -> None:
        document = parse_vcd("$var wire 4 # cnt $end\n#0\nb101011 #\n")
        assert document.signals["cnt"].wave == ((0, "1011"),)

    def test_undefined_values_lowercased(self) -> None:
        document = parse_vcd("$var wire 2 # v $end\n$var wire 1 ! s $end\n#0\nbXZ #\nX!\n")
        assert document.signals["v"].wave == ((0, "xz"),)
        assert document.signals["s"].wave == ((0, "x"),)

    def test_non_numeric_width_is_one(self) -> None:
        document = parse_vcd("$var wire foo ! w $end\n#0\n1!\n")
        assert document.signals["w"].width == 1


class TestWaveNormalization:
    def test_unsorted_times_sorted_last_value_wins(self) -> None:
        text = "$var wire 1 ! a $end\n#10\n1!\n#5\n0!\n#10\n0!\n"
        wave = parse_vcd(text).signals["a"].wave

        assert wave == ((0, "0"), (5, "0"), (10, "0"))

    def test_wave_starts_at_zero(self) -> None:
        document = parse_vcd("$var wire 1 ! a $end\n#7\n1!\n")
        assert document.signals["a"].wave == ((0, "0"), (7, "1"))

    def test_negative_timestamp_ignored(self) -> None:
        document = parse_vcd("$var wire 1 ! a $end\n#-5\n1!\n#0\n0!\n#4\n1!\n")

        assert document.signals["a"].wave == ((0, "0"), (4, "1"))
        assert document.min_time == 0
        assert document.max_time == 4

    def test_signal_without_changes_gets_zero_entry(self) -> None:
        document = parse_vcd("$var wire 4 ! idle $end\n#3\n")
        assert document.signals["idle"].wave == ((0, "0000"),)
        assert document.max_time == 3

    def test_every_wave_sorted_and_unique(self, counter_document) -> None:
        for signal in counter_document.signals.values():
            times = signal.times
            assert times == sorted(set(times))
            assert times[0] == 0
            assert all(len(value) == signal.width for _, value in signal.wave)


class TestDeclarations:
    def test_counter_signals(self, counter_document) -> None:
        assert list(counter_document.signals) == [
            "clk", "reset", "BinCount[3:0]", "SW", "data", "top.sub.clk"]
        assert counter_document.timescale_exponent == -8
        assert counter_document.max_time == 30
        assert counter_document.max_cycles == 1

    def test_scopes_and_ranges(self, counter_document) -> None:
        signals = counter_document.signals
        assert signals["clk"].hierarchy == ("top",)
        assert signals["top.sub.clk"].hierarchy == ("top", "sub")
        assert signals["BinCount[3:0]"].bit_range == (3, 0)
        assert signals["data"].bit_range == (7, 0)
        assert signals["SW"].bit_range is None
        assert signals["data"].var_type == "wire"
        assert signals["BinCount[3:0]"].var_type == "reg"

    def test_bus_values(self, counter_document) -> None:
        signals = counter_document.signals
        assert signals["BinCount[3:0]"].wave == ((0, "0000"), (10, "0001"), (20, "0010"), (30, "0011"))
        assert signals["SW"].wave == ((0, "00"), (10, "10"), (30, "11"))
        assert signals["data"].wave == ((0, "0000000x"), (10, "10100101"), (20, "000000z1"))

    def test_comment_body_is_ignored(self, counter_document) -> None:
        assert counter_document.signals["clk"].wave == (
            (0, "0"), (5, "1"), (10, "0"), (15, "1"), (20, "0"), (25, "1"), (30, "0"))

    def test_metadata(self, counter_document) -> None:
        assert counter_document.metadata["date"] == "Mon Jan 1 00:00:00 2024"
        assert counter_document.metadata["version"] == "Counter testbench 1.0"

    def test_name_collision_without_scope(self) -> None:
        text = "$var wire 1 a x $end\n$var wire 1 b x $end\n#0\n1a\n0b\n"
        document = parse_vcd(text)

        assert list(document.signals) == ["x", "x#b"]
        assert document.signals["x"].wave == ((0, "1"),)
        assert document.signals["x#b"].wave == ((0, "0"),)

    def test_malformed_var_is_skipped(self) -> None:
        state = ParserState()
        state.feed(["$var wire 1 $end", "$var wire 1 ! ok $end"])
        assert list(state.signals) == ["ok"]
        assert state.skipped_lines == 1

    def test_bit_range_parsing(self) -> None:
        assert parse_bit_range("data[7:0]") == (7, 0)
        assert parse_bit_range("[0:7]") == (0, 7)
        assert parse_bit_range("q[3]") == (3, 3)
        assert parse_bit_range("a[ 15 : 8 ]") == (15, 8)
        assert parse_bit_range("plain") is None


class TestAliases:
    """Several declarations sharing one identifier code."""

    def test_alias_shares_changes(self, counter_document) -> None:
        clk = counter_document.signals["clk"]
        alias = counter_document.signals["top.sub.clk"]
        assert alias.id == clk.id == "!"
        assert alias.wave == clk.wave

    def test_alias_fitted_to_its_own_width(self) -> None:
        text = "$var wire 4 # wide $end\n$var wire 2 # narrow $end\n#0\nb1011 #\n"
        document = parse_vcd(text)
        assert document.signals["wide"].wave == ((0, "1011"),)
        assert document.signals["narrow"].wave == ((0, "11"),)


class TestInlineChanges:
    """Value changes written on the timestamp line itself."""

    @pytest.fixture
    def document(self):
        return parse_vcd(read_vcd_text(str(get_test_input_path(TestFiles.INLINE_CHANGES_VCD))))

    def test_values(self, document) -> None:
        assert document.timescale_exponent == -10
        assert document.signals["enable"].wave == ((0, "0"), (4, "1"), (8, "0"))
        assert document.signals["mode"].wave == ((0, "000"), (4, "101"), (8, "111"))
        assert document.signals["ready"].wave == ((0, "0"), (8, "1"))

    def test_bad_lines_are_skipped(self) -> None:
        text = read_vcd_text(str(get_test_input_path(TestFiles.INLINE_CHANGES_VCD)))
        state = ParserState()
        state.feed(text.splitlines())

        # "garbage line" and the vector holding a 'q'
        assert state.skipped_lines == 2
        assert state.max_time == 12


class TestPermissiveInput:
    def test_empty_text(self) -> None:
        document = parse_vcd("")
        assert document.signals == {}
        assert document.max_time == 0
        assert document.is_empty

    def test_header_only_file(self) -> None:
        document = parse_vcd(read_vcd_text(str(get_test_input_path(TestFiles.EMPTY_VCD))))
        assert document.signals == {}
        assert document.timescale_exponent == -9
        assert document.is_empty

    def test_unknown_identifier_ignored(self) -> None:
        document = parse_vcd("$var wire 1 ! a $end\n#0\n1?\nb11 ?\n1!\n")
        assert document.signals["a"].wave == ((0, "1"),)

    def test_malformed_timescale_is_one_second(self) -> None:
        document = parse_vcd("$timescale\n  fast\n$end\n" + CLK_VCD)
        assert document.timescale_exponent == 0

    def test_unknown_directives_ignored(self) -> None:
        text = "$vendor_extension foo $end\n$dumpall\n$end\n" + CLK_VCD
        assert parse_vcd(text).signals["clk"].wave == ((0, "0"), (5, "1"), (10, "0"))

    def test_undecodable_bytes_dropped(self, tmp_path) -> None:
        path = tmp_path / "bad.vcd"
        path.write_bytes(b"$var wire 1 ! clk\xff $end\n#0\n1!\n")

        document = parse_vcd(read_vcd_text(str(path)))

        assert document.signals["clk"] == Signal(id="!", name="clk", width=1, wave=((0, "1"),))
