"""Relocation table: which bytes are halves of 16-bit pointers."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterator


class RelocationType(enum.Enum):
    LOW = "low"
    HIGH = "high"


@dataclass(frozen=True)
class RelocationEntry:
    """The byte at ``address`` is one half of a little-endian pointer to ``target``."""

    address: int
    type: RelocationType
    target: int

    @property
    def is_low(self) -> bool:
        return self.type is RelocationType.LOW


@dataclass(frozen=True)
class FormatterRelocation:
    """Relocation as the data formatter consumes it."""

    target: int
    is_low: bool


class RelocationTable:
    """Mapping address -> RelocationEntry.

    An address holds at most one entry. Re-deriving an address replaces the
    old entry outright; entries are never merged.
    """

    def __init__(self):
        self._entries: dict[int, RelocationEntry] = {}

    def add(self, address: int, type: RelocationType, target: int) -> RelocationEntry:
        entry = RelocationEntry(address, type, target & 0xFFFF)
        self._entries[address] = entry
        return entry

    def add_pair(self, low_address: int, high_address: int, target: int) -> None:
        self.add(low_address, RelocationType.LOW, target)
        self.add(high_address, RelocationType.HIGH, target)

    def get(self, address: int) -> RelocationEntry | None:
        return self._entries.get(address)

    def __contains__(self, address: int) -> bool:
        return address in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[RelocationEntry]:
        for address in sorted(self._entries):
            yield self._entries[address]

    def snapshot(self) -> dict[int, RelocationEntry]:
        """Copy of the current entries, safe to iterate while the table grows."""
        return dict(self._entries)

    def low_entries(self) -> list[RelocationEntry]:
        return [entry for entry in self if entry.is_low]

    def targets(self) -> set[int]:
        return {entry.target for entry in self._entries.values()}

    def formatter_entries(self) -> dict[int, FormatterRelocation]:
        return {
            address: FormatterRelocation(entry.target, entry.is_low)
            for address, entry in sorted(self._entries.items())
        }
