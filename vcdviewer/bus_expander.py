"""Per-bit expansion of multi-bit bus signals.

A bus such as ``BinCount[3:0]`` (width 4) is split into four width-1 signals
``BinCount[3]`` .. ``BinCount[0]``. Each synthetic wave keeps the parent's
timestamps; no resampling is done. The leftmost character of a parent value
always belongs to the first declared index, so ``[7:0]`` and ``[0:7]`` buses
both expand correctly.
"""

import logging
from typing import Dict, List, Optional, Tuple

from .data_model import Signal, WaveformDocument
from .vcd_parser import parse_bit_range

logger = logging.getLogger(__name__)


def bit_indices(first: int, last: int) -> List[int]:
    """Indices from the first declared index to the last, inclusive."""
    step = -1 if first >= last else 1
    return list(range(first, last + step, step))


def resolve_bit_range(signal: Signal, implicit_ranges: bool = True) -> Optional[Tuple[int, int]]:
    """Declared range of a bus, or ``[width-1:0]`` when none is declared."""
    if signal.bit_range is not None:
        return signal.bit_range
    bit_range = parse_bit_range(signal.name)
    if bit_range is not None:
        return bit_range
    if implicit_ranges:
        return signal.width - 1, 0
    return None


def expand_bus(signal: Signal, implicit_ranges: bool = True) -> List[Signal]:
    """Split one bus into width-1 signals ordered from the first declared index.

    Returns an empty list for single-bit signals and, when ``implicit_ranges``
    is off, for buses without a declared range.
    """
    if signal.width <= 1:
        return []
    bit_range = resolve_bit_range(signal, implicit_ranges)
    if bit_range is None:
        return []

    base = signal.base_name
    bits = []
    for position, index in enumerate(bit_indices(*bit_range)):
        # Range span may exceed the value width; missing bits are unknown
        wave = tuple(
            (time, value[position] if position < len(value) else 'x')
            for time, value in signal.wave
        )
        bits.append(Signal(
            id=signal.id,
            name=f"{base}[{index}]",
            width=1,
            wave=wave,
            hierarchy=signal.hierarchy,
            var_type=signal.var_type,
            bit_range=(index, index),
        ))
    return bits


def _expansion_key(parent_key: str, parent: Signal, bit: Signal) -> str:
    """Derive a synthetic key the same way the parent's key was derived."""
    if parent_key == parent.name:
        return bit.name
    if parent_key == parent.full_name:
        return bit.full_name
    return f"{bit.name}#{parent.id}"


def expand_buses(document: WaveformDocument, implicit_ranges: bool = True) -> WaveformDocument:
    """Return a new document with per-bit signals inserted after each bus.

    Parents are kept. Existing signals are never overwritten, which also makes
    the expansion idempotent.
    """
    signals: Dict[str, Signal] = {}
    added = 0
    for key, signal in document.signals.items():
        if key not in signals:
            signals[key] = signal
        for bit in expand_bus(signal, implicit_ranges):
            bit_key = _expansion_key(key, signal, bit)
            if bit_key in signals or bit_key in document.signals:
                continue
            signals[bit_key] = bit
            added += 1

    if added:
        logger.debug("Expanded buses into %d single-bit signals", added)
    return document.with_signals(signals)
