"""
This module parses VCD (Value Change Dump) text into a WaveformDocument.

The parser is deliberately permissive: unknown directives, malformed lines and
value changes for undeclared identifiers are skipped (and logged at DEBUG
level), never raised. All transient state lives in a ParserState created per
parse, so independent parses never share mutable state.

Large files are parsed cooperatively: ChunkedVcdParse processes a bounded
number of lines per step() so the caller's scheduler (the Qt event loop, or an
asyncio loop) can run between chunks.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .config import PARSER
from .data_model import Signal, Time, WaveEntry, WaveformDocument

logger = logging.getLogger(__name__)

_MAGNITUDE_EXPONENTS = {"1": 0, "10": 1, "100": 2}
_UNIT_EXPONENTS = {"s": 0, "ms": -3, "us": -6, "μs": -6, "ns": -9, "ps": -12, "fs": -15}
_TIMESCALE_RE = re.compile(r"^(\d+)\s*(\w+)$")
_VECTOR_CHANGE_RE = re.compile(r"^[bB](\S+)\s+(\S+)")
_BIT_RANGE_RE = re.compile(r"\[\s*(-?\d+)\s*(?::\s*(-?\d+)\s*)?\]$")
_SCALAR_VALUES = frozenset("01xzXZ")
_VALID_BITS = frozenset("01xz")

# Directives whose body may span several lines up to "$end"
_BLOCK_DIRECTIVES = ("$timescale", "$date", "$version", "$comment")


def parse_timescale(token: str) -> int:
    """Convert a timescale token such as "10 ns" into a base-10 exponent.

    The exponent is the magnitude term (1 -> 0, 10 -> 1, 100 -> 2) plus the unit
    term (s -> 0, ms -> -3, us -> -6, ns -> -9, ps -> -12, fs -> -15). An
    unrecognized magnitude or unit contributes 0; a token that doesn't look like
    "<digits><unit>" yields 0 (one second).
    """
    match = _TIMESCALE_RE.match(token.strip())
    if not match:
        return 0
    magnitude, unit = match.groups()
    return _MAGNITUDE_EXPONENTS.get(magnitude, 0) + _UNIT_EXPONENTS.get(unit, 0)


def parse_bit_range(text: str) -> Optional[Tuple[int, int]]:
    """Extract a trailing bit range: "data[7:0]" -> (7, 0), "q[3]" -> (3, 3)."""
    match = _BIT_RANGE_RE.search(text)
    if not match:
        return None
    first = int(match.group(1))
    last = int(match.group(2)) if match.group(2) is not None else first
    return first, last


def _fit_width(value: str, width: int) -> str:
    """Left-pad with '0' (or keep the rightmost bits) so the value is exactly width chars."""
    if len(value) < width:
        return value.rjust(width, '0')
    if len(value) > width:
        return value[-width:]
    return value


@dataclass
class _SignalBuilder:
    """Mutable signal record used while lines are being consumed."""
    id: str
    name: str
    width: int
    hierarchy: Tuple[str, ...]
    var_type: str
    bit_range: Optional[Tuple[int, int]]
    changes: List[WaveEntry] = field(default_factory=list)

    def build(self) -> Signal:
        return Signal(
            id=self.id,
            name=self.name,
            width=self.width,
            wave=_normalize_wave(self.changes, self.width),
            hierarchy=self.hierarchy,
            var_type=self.var_type,
            bit_range=self.bit_range,
        )


def _normalize_wave(changes: List[WaveEntry], width: int) -> Tuple[WaveEntry, ...]:
    """Sort by time, keep the last value per timestamp and guarantee an entry at time 0."""
    wave: List[WaveEntry] = []
    for time, value in sorted(changes, key=lambda entry: entry[0]):
        if wave and wave[-1][0] == time:
            wave[-1] = (time, value)
        else:
            wave.append((time, value))
    if not wave or wave[0][0] > 0:
        wave.insert(0, (0, '0' * width))
    return tuple(wave)


@dataclass
class ParserState:
    """Transient state of a single parse.

    Created per parse and threaded through every line. Holds the current
    simulation time, the scope stack, the identifier -> signal map and the
    maximum time seen so far.
    """
    current_time: Time = 0
    max_time: Time = 0
    timescale_exponent: int = 0
    scope_stack: List[str] = field(default_factory=list)
    id_map: Dict[str, List[str]] = field(default_factory=dict)  # VCD id -> signal keys (aliases share an id)
    signals: Dict[str, _SignalBuilder] = field(default_factory=dict)
    metadata: Dict[str, str] = field(default_factory=dict)
    skipped_lines: int = 0
    _block: Optional[str] = None
    _block_tokens: List[str] = field(default_factory=list)

    def feed(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.feed_line(line)

    def feed_line(self, raw_line: str) -> None:
        line = raw_line.strip()
        if not line:
            return

        if self._block is not None:
            self._continue_block(line)
            return

        c = line[0]
        if c == '$':
            self._handle_directive(line)
        elif c == '#':
            self._handle_timestamp(line)
        elif c in 'bB':
            self._handle_vector_change(line)
        elif c in _SCALAR_VALUES and len(line) > 1:
            self._apply_change(line[1:], line[0].lower())
        else:
            self._skip(line, "unrecognized line")

    def build(self) -> WaveformDocument:
        """Finish the parse: normalize every wave and freeze the result."""
        if self.skipped_lines:
            logger.debug("Skipped %d unrecognized VCD line(s)", self.skipped_lines)
        signals = {key: builder.build() for key, builder in self.signals.items()}
        return WaveformDocument(
            signals=signals,
            timescale_exponent=self.timescale_exponent,
            max_time=self.max_time,
            metadata=dict(self.metadata),
        )

    # ---- Declarations ----
    def _handle_directive(self, line: str) -> None:
        tokens = line.split()
        directive = tokens[0]
        if directive in _BLOCK_DIRECTIVES:
            self._block = directive
            self._block_tokens = []
            self._continue_block(' '.join(tokens[1:]))
        elif directive == "$scope":
            if len(tokens) >= 3:
                self.scope_stack.append(tokens[2])
            else:
                self._skip(line, "malformed $scope")
        elif directive == "$upscope":
            if self.scope_stack:
                self.scope_stack.pop()
        elif directive == "$var":
            self._declare(tokens, line)
        # $enddefinitions, $dumpvars, $end and vendor directives carry nothing we need

    def _continue_block(self, text: str) -> None:
        for token in text.split():
            if token == "$end":
                self._finish_block()
                return
            self._block_tokens.append(token)

    def _finish_block(self) -> None:
        body = ' '.join(self._block_tokens)
        if self._block == "$timescale":
            self.timescale_exponent = parse_timescale(body)
            if not _TIMESCALE_RE.match(body):
                logger.debug("Malformed timescale %r, assuming 1 s", body)
        elif self._block == "$date":
            self.metadata["date"] = body
        elif self._block == "$version":
            self.metadata["version"] = body
        self._block = None
        self._block_tokens = []

    def _declare(self, tokens: List[str], line: str) -> None:
        # Format: "$var <type> <width> <id> <name> [range] $end"
        if "$end" in tokens:
            tokens = tokens[:tokens.index("$end")]
        if len(tokens) < 5:
            self._skip(line, "malformed $var")
            return
        var_type, width_token, var_id, name = tokens[1:5]
        try:
            width = max(1, int(width_token))
        except ValueError:
            width = 1

        bit_range = None
        if len(tokens) > 5:
            bit_range = parse_bit_range(tokens[5])
        if bit_range is None:
            bit_range = parse_bit_range(name)

        key = self._unique_key(name, var_id)
        self.signals[key] = _SignalBuilder(
            id=var_id,
            name=name,
            width=width,
            hierarchy=tuple(self.scope_stack),
            var_type=var_type,
            bit_range=bit_range,
        )
        self.id_map.setdefault(var_id, []).append(key)

    def _unique_key(self, name: str, var_id: str) -> str:
        candidates = [name, '.'.join(self.scope_stack + [name]), f"{name}#{var_id}"]
        for candidate in candidates:
            if candidate not in self.signals:
                return candidate
        suffix = 2
        while f"{candidates[-1]}.{suffix}" in self.signals:
            suffix += 1
        return f"{candidates[-1]}.{suffix}"

    # ---- Value changes ----
    def _handle_timestamp(self, line: str) -> None:
        tokens = line.split()
        try:
            time = int(tokens[0][1:])
        except ValueError:
            self._skip(line, "malformed timestamp")
            return
        if time < 0:
            self._skip(line, "negative timestamp")
            return
        self.current_time = time
        self.max_time = max(self.max_time, time)

        # Value changes may follow the timestamp on the same line
        rest = tokens[1:]
        i = 0
        while i < len(rest):
            token = rest[i]
            if token[0] in 'bB' and i + 1 < len(rest):
                self._handle_vector_change(f"{token} {rest[i + 1]}")
                i += 2
                continue
            if token[0] in _SCALAR_VALUES and len(token) > 1:
                self._apply_change(token[1:], token[0].lower())
            i += 1

    def _handle_vector_change(self, line: str) -> None:
        match = _VECTOR_CHANGE_RE.match(line)
        if not match:
            self._skip(line, "malformed vector change")
            return
        bits, var_id = match.groups()
        bits = bits.lower()
        if not set(bits) <= _VALID_BITS:
            self._skip(line, "unsupported vector value")
            return
        self._apply_change(var_id, bits)

    def _apply_change(self, var_id: str, value: str) -> None:
        keys = self.id_map.get(var_id)
        if not keys:
            self._skip(var_id, "value change for unknown identifier")
            return
        for key in keys:
            builder = self.signals[key]
            builder.changes.append((self.current_time, _fit_width(value, builder.width)))

    def _skip(self, line: str, reason: str) -> None:
        self.skipped_lines += 1
        logger.debug("%s: %r", reason, line)


class ChunkedVcdParse:
    """Cooperative parse task processing at most ``chunk_size`` lines per step.

    Usage:
        task = ChunkedVcdParse(text)
        while task.step():
            ...  # yield to the scheduler
        document = task.result()

    Chunk k+1 always starts after chunk k's effects are applied, and the
    chunk size never changes the resulting document. There is no
    cancellation; a task simply stops being stepped.
    """

    def __init__(self, text: str, chunk_size: int = PARSER.CHUNK_SIZE) -> None:
        self._lines = text.splitlines()
        self._total_lines = len(self._lines)
        self._chunk_size = max(PARSER.MIN_CHUNK_SIZE, min(PARSER.MAX_CHUNK_SIZE, int(chunk_size)))
        self._position = 0
        self._state = ParserState()
        self._document: Optional[WaveformDocument] = None

    @property
    def total_lines(self) -> int:
        return self._total_lines

    @property
    def lines_done(self) -> int:
        return self._position

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def done(self) -> bool:
        return self._document is not None

    def step(self) -> bool:
        """Process the next chunk. Returns True while more work remains."""
        if self._document is not None:
            return False
        end = min(self._position + self._chunk_size, len(self._lines))
        self._state.feed(self._lines[self._position:end])
        self._position = end
        if self._position >= self._total_lines:
            self._document = self._state.build()
            self._lines = []
            return False
        return True

    def result(self) -> WaveformDocument:
        if self._document is None:
            raise RuntimeError("VCD parse has not finished yet")
        return self._document

    def run(self) -> WaveformDocument:
        while self.step():
            pass
        return self.result()


def parse_vcd(text: str, chunk_size: int = PARSER.CHUNK_SIZE) -> WaveformDocument:
    """Parse VCD text synchronously."""
    return ChunkedVcdParse(text, chunk_size).run()


async def parse_vcd_async(text: str, chunk_size: int = PARSER.CHUNK_SIZE) -> WaveformDocument:
    """Parse VCD text, yielding to the asyncio event loop between chunks."""
    task = ChunkedVcdParse(text, chunk_size)
    while task.step():
        await asyncio.sleep(0)
    return task.result()


def read_vcd_text(path: str) -> str:
    """Read a VCD file as text; undecodable bytes are dropped."""
    with open(path, "rb") as f:
        return f.read().decode("utf-8", errors="ignore")
