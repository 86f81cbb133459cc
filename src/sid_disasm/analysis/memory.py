"""Per-address classification of the C64 address space."""

from __future__ import annotations

import enum

from sid_disasm.constants import ADDRESS_MASK, ADDRESS_SPACE_SIZE


class MemoryType(enum.IntFlag):
    """Bitset describing what emulation and analysis learned about a byte."""

    UNKNOWN = 0
    CODE = 0x01
    DATA = 0x02
    ACCESSED = 0x04
    JUMP_TARGET = 0x08


class MemoryMap:
    """Classification table covering all 64 KiB.

    Flags accumulate: marking an address never clears what was there, except
    that CODE and DATA are exclusive and the later one wins.
    """

    def __init__(self):
        self._types = bytearray(ADDRESS_SPACE_SIZE)

    def memory_type(self, address: int) -> MemoryType:
        return MemoryType(self._types[address & ADDRESS_MASK])

    def mark(self, address: int, flags: MemoryType) -> None:
        address &= ADDRESS_MASK
        current = self._types[address]
        if flags & MemoryType.CODE:
            current &= 0xFF ^ MemoryType.DATA.value
        elif flags & MemoryType.DATA:
            current &= 0xFF ^ MemoryType.CODE.value
        self._types[address] = current | int(flags)

    def mark_range(self, start: int, end: int, flags: MemoryType) -> None:
        """Mark [start, end) with the given flags."""
        for address in range(start, end):
            self.mark(address, flags)

    def fill_unclassified(self, start: int, end: int, flags: MemoryType) -> int:
        """Give every byte in [start, end) that is neither CODE nor DATA the given flags.

        Returns the number of bytes touched.
        """
        touched = 0
        for address in range(start, end):
            if not self._types[address] & (MemoryType.CODE | MemoryType.DATA):
                self._types[address] |= int(flags)
                touched += 1
        return touched

    def is_code(self, address: int) -> bool:
        return bool(self._types[address & ADDRESS_MASK] & MemoryType.CODE)

    def is_data(self, address: int) -> bool:
        return bool(self._types[address & ADDRESS_MASK] & MemoryType.DATA)

    def is_accessed(self, address: int) -> bool:
        return bool(self._types[address & ADDRESS_MASK] & MemoryType.ACCESSED)

    def accessed_in(self, start: int, end: int) -> list[int]:
        """Ascending list of ACCESSED addresses in [start, end]."""
        return [
            address
            for address in range(start, end + 1)
            if self._types[address] & MemoryType.ACCESSED
        ]

    def types(self) -> memoryview:
        """Read-only view of the whole table, indexed by address."""
        return memoryview(self._types).toreadonly()
