"""Log of pointer dereferences observed while the tune was emulated."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

from sid_disasm.analysis.provenance import ProvenanceTracker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndirectAccessRecord:
    """One ``(zp),Y`` / ``(zp,X)`` dereference whose pointer came from memory.

    ``source_low_address``/``source_high_address`` are where the two pointer
    bytes were loaded from before being stored into zero page.
    """

    instruction_address: int
    zp_low: int
    zp_high: int
    last_write_low: int
    last_write_high: int
    source_low_address: int
    source_high_address: int
    effective_address: int


class IndirectAccessLog:
    """Append-only list of indirect accesses worth turning into relocations."""

    def __init__(self, provenance: ProvenanceTracker):
        self.provenance = provenance
        self.records: list[IndirectAccessRecord] = []

    def record(self, pc: int, zp_address: int, effective_address: int) -> bool:
        """Log a dereference through ``zp_address``/``zp_address+1``.

        Only kept when both pointer bytes were copied from memory; pointers
        built from immediates are already literal in the instruction stream.
        Returns True if the access was logged.
        """
        zp_low = zp_address & 0xFF
        zp_high = (zp_low + 1) & 0xFF
        low_source = self.provenance.write_source_info(zp_low)
        high_source = self.provenance.write_source_info(zp_high)

        if not (low_source.from_memory and high_source.from_memory):
            return False

        self.records.append(
            IndirectAccessRecord(
                instruction_address=pc,
                zp_low=zp_low,
                zp_high=zp_high,
                last_write_low=self.provenance.last_write_to(zp_low),
                last_write_high=self.provenance.last_write_to(zp_high),
                source_low_address=low_source.address,
                source_high_address=high_source.address,
                effective_address=effective_address,
            )
        )
        logger.debug(
            "Recorded indirect access at $%04X through ZP $%02X/$%02X pointing to $%04X",
            pc,
            zp_low,
            zp_high,
            effective_address,
        )
        return True

    def __iter__(self) -> Iterator[IndirectAccessRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)
