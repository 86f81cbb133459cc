"""Write provenance: where the last value stored at each address came from.

An emulator feeds this while running the tune. When an instruction such as
``LDA $1100,X / STA $FB`` executes, the byte written to $FB is tagged as
coming from memory at $1100+X. Relocation discovery later follows these tags
back from zero-page pointers to the tables that hold the pointer bytes.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from sid_disasm.constants import ADDRESS_MASK


class OriginKind(enum.Enum):
    MEMORY = "memory"
    IMMEDIATE = "immediate"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class WriteSourceInfo:
    """Origin of the value last written to an address."""

    kind: OriginKind = OriginKind.UNKNOWN
    address: int = 0

    @property
    def from_memory(self) -> bool:
        return self.kind is OriginKind.MEMORY


_UNKNOWN = WriteSourceInfo()


class ProvenanceTracker:
    """Last-writer and value-origin bookkeeping for every written address."""

    def __init__(self):
        self._sources: dict[int, WriteSourceInfo] = {}
        self._last_writer: dict[int, int] = {}

    def record_write(
        self,
        address: int,
        pc: int,
        kind: OriginKind = OriginKind.UNKNOWN,
        origin_address: int = 0,
    ) -> None:
        """Note that the instruction at ``pc`` stored a value at ``address``."""
        address &= ADDRESS_MASK
        self._sources[address] = WriteSourceInfo(kind, origin_address & ADDRESS_MASK)
        self._last_writer[address] = pc & ADDRESS_MASK

    def write_source_info(self, address: int) -> WriteSourceInfo:
        return self._sources.get(address & ADDRESS_MASK, _UNKNOWN)

    def last_write_to(self, address: int) -> int:
        """Address of the instruction that last wrote here, 0 if never written."""
        return self._last_writer.get(address & ADDRESS_MASK, 0)

    def __len__(self) -> int:
        return len(self._sources)
