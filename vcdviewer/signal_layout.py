"""Vertical layout of signal tracks.

Signals are clustered into groups by their base name (the name before any
``[...]`` suffix) within the same scope. A group with a single member is a
plain track. A group with several members is expandable: collapsed it shows
one row with the composite bus value, expanded it shows one row per member in
declaration order.

Rows are stacked top to bottom at a fixed height below the time ruler. Rows
scrolled out of view are skipped for drawing but still take up layout height.
"""

import logging
from dataclasses import dataclass
from functools import cached_property
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .config import RENDERING
from .data_model import Signal, Time, WaveEntry, WaveformDocument, effective_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignalGroup:
    """Named cluster of signals sharing a base name and scope."""
    key: str                      # Dotted scope + base name, unique per layout
    name: str                     # Base name shown in the sidebar
    members: Tuple[Signal, ...]   # Declaration order
    hierarchy: Tuple[str, ...] = ()

    @property
    def is_expandable(self) -> bool:
        return len(self.members) > 1

    @property
    def bus(self) -> Optional[Signal]:
        """The declared multi-bit parent of the group, if there is one."""
        for member in self.members:
            if member.width > 1:
                return member
        return None

    @cached_property
    def collapsed_signal(self) -> Signal:
        """Signal drawn for the collapsed row."""
        if not self.is_expandable:
            return self.members[0]
        bus = self.bus
        if bus is not None:
            return bus
        return composite_signal(self.name, self.members, self.hierarchy)


def _bit_order(members: Iterable[Signal]) -> List[Signal]:
    """Members ordered most significant first."""
    indexed = list(enumerate(members))
    if all(member.bit_range is not None for _, member in indexed):
        return [member for _, member in sorted(indexed, key=lambda item: -item[1].bit_range[0])]
    return [member for _, member in indexed]


def composite_signal(name: str, members: Iterable[Signal], hierarchy: Tuple[str, ...] = ()) -> Signal:
    """Concatenate per-bit values (msb first) at every time any member changes."""
    ordered = _bit_order(members)
    times: List[Time] = sorted({time for member in ordered for time, _ in member.wave})
    wave: List[WaveEntry] = []
    for time in times:
        value = ''.join(effective_value(member.wave, time, member.width) for member in ordered)
        if not wave or wave[-1][1] != value:
            wave.append((time, value))

    width = sum(member.width for member in ordered)
    bit_range = None
    if ordered and all(member.bit_range is not None for member in ordered):
        bit_range = (ordered[0].bit_range[0], ordered[-1].bit_range[1])
    return Signal(
        id=ordered[0].id if ordered else "",
        name=name,
        width=max(1, width),
        wave=tuple(wave),
        hierarchy=hierarchy,
        bit_range=bit_range,
    )


def _family_key(key: str, signal: Signal) -> str:
    """Document key with the signal's own name reduced to its base name.

    Bits keep the key shape of their parent (`q[1]#b` next to `q#b`), so
    members of one declaration family share this value while two separate
    declarations of the same name do not.
    """
    if key.startswith(signal.name):
        return signal.base_name + key[len(signal.name):]
    if key.endswith(signal.name):
        return key[:len(key) - len(signal.name)] + signal.base_name
    return key


def group_signals(document: WaveformDocument) -> List[SignalGroup]:
    """Cluster document signals by scope and base name, keeping first-seen order."""
    members: Dict[Tuple[Tuple[str, ...], str], List[Signal]] = {}
    for key, signal in document.signals.items():
        members.setdefault((signal.hierarchy, _family_key(key, signal)), []).append(signal)

    groups = []
    used: Set[str] = set()
    for signals in members.values():
        first = signals[0]
        base_key = '.'.join(first.hierarchy + (first.base_name,))
        key = base_key
        if key in used:
            key = f"{base_key}#{first.id}"
        suffix = 2
        while key in used:
            key = f"{base_key}#{first.id}.{suffix}"
            suffix += 1
        used.add(key)
        groups.append(SignalGroup(key=key, name=first.base_name,
                                  members=tuple(signals), hierarchy=first.hierarchy))
    return groups


@dataclass(frozen=True)
class TrackRow:
    """One horizontal track of the waveform view."""
    index: int
    signal: Signal
    group: SignalGroup
    top: int             # Offset from the top of the track area, before scrolling
    height: int
    depth: int           # Indentation level in the sidebar
    label: str
    is_group_row: bool   # First row of an expandable group; carries the expand marker

    @property
    def bottom(self) -> int:
        return self.top + self.height


class SignalLayout:
    """Row model for a document plus the set of expanded groups.

    The layout is recomputed whenever a group is expanded or collapsed.
    """

    def __init__(self, document: Optional[WaveformDocument] = None,
                 row_height: int = RENDERING.ROW_HEIGHT,
                 header_height: int = RENDERING.HEADER_HEIGHT):
        self.row_height = row_height
        self.header_height = header_height
        self._groups: List[SignalGroup] = []
        self._expanded: Set[str] = set()
        self._rows: List[TrackRow] = []
        if document is not None:
            self.set_document(document)

    # ---- Document ----
    def set_document(self, document: Optional[WaveformDocument],
                     expanded: Optional[Iterable[str]] = None) -> None:
        self._groups = group_signals(document) if document is not None else []
        keys = {group.key for group in self._groups if group.is_expandable}
        self._expanded = set(expanded or ()) & keys
        self._rebuild()

    @property
    def groups(self) -> List[SignalGroup]:
        return list(self._groups)

    @property
    def rows(self) -> List[TrackRow]:
        return list(self._rows)

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def content_height(self) -> int:
        return len(self._rows) * self.row_height

    @property
    def expanded_groups(self) -> List[str]:
        return [group.key for group in self._groups if group.key in self._expanded]

    def group(self, key: str) -> Optional[SignalGroup]:
        for group in self._groups:
            if group.key == key:
                return group
        return None

    # ---- Expand / collapse ----
    def is_expanded(self, key: str) -> bool:
        return key in self._expanded

    def set_expanded(self, key: str, expanded: bool) -> None:
        group = self.group(key)
        if group is None or not group.is_expandable:
            return
        if expanded == (key in self._expanded):
            return
        if expanded:
            self._expanded.add(key)
        else:
            self._expanded.discard(key)
        self._rebuild()

    def toggle(self, key: str) -> bool:
        """Flip a group's state; returns the new expanded state."""
        self.set_expanded(key, not self.is_expanded(key))
        return self.is_expanded(key)

    def expand_all(self) -> None:
        self._expanded = {group.key for group in self._groups if group.is_expandable}
        self._rebuild()

    def collapse_all(self) -> None:
        self._expanded.clear()
        self._rebuild()

    # ---- Queries ----
    def row_at(self, y: float, offset_y: float = 0.0) -> Optional[TrackRow]:
        """Row under canvas y coordinate, or None over the ruler or past the last row."""
        if y < self.header_height:
            return None
        index = int((y - self.header_height + offset_y) // self.row_height)
        if 0 <= index < len(self._rows):
            return self._rows[index]
        return None

    def visible_rows(self, offset_y: float, height: float) -> List[TrackRow]:
        """Rows intersecting the scroll window [offset_y, offset_y + height)."""
        bottom = offset_y + height
        return [row for row in self._rows if row.bottom > offset_y and row.top < bottom]

    def row_y(self, row: TrackRow, offset_y: float = 0.0) -> float:
        """Canvas y coordinate of a row's top edge."""
        return self.header_height + row.top - offset_y

    def _rebuild(self) -> None:
        rows: List[TrackRow] = []

        def add(signal: Signal, group: SignalGroup, depth: int, label: str, is_group_row: bool) -> None:
            rows.append(TrackRow(index=len(rows), signal=signal, group=group,
                                 top=len(rows) * self.row_height, height=self.row_height,
                                 depth=depth, label=label, is_group_row=is_group_row))

        for group in self._groups:
            depth = len(group.hierarchy)
            if group.is_expandable and group.key in self._expanded:
                for i, member in enumerate(group.members):
                    add(member, group, depth + (0 if i == 0 else 1), member.name, i == 0)
            elif group.is_expandable:
                add(group.collapsed_signal, group, depth, group.name, True)
            else:
                member = group.members[0]
                add(member, group, depth, member.name, False)
        self._rows = rows
        logger.debug("Layout rebuilt: %d groups, %d rows", len(self._groups), len(rows))
