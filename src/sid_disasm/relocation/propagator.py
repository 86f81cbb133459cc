"""Transitive closure of relocation entries across pointer-to-pointer chains.

Music players rarely dereference a song table directly. A typical pattern
copies a pointer out of a lo/hi table into a pair of work bytes, and only
later moves those into zero page:

    LDA lo_table,X / STA work_lo
    LDA hi_table,X / STA work_hi
    ...
    LDA work_lo / STA $FB
    LDA work_hi / STA $FC
    LDA ($FB),Y

Seeding only finds ``work_lo``/``work_hi``. Because each of those bytes was
itself loaded from memory, the same pair relationship holds one step back at
``lo_table+X``/``hi_table+X``, and so on. Lo/hi tables are usually split
into two arrays a few bytes apart, so a LOW entry is paired with the first
HIGH entry found within ``pair_window`` bytes after it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sid_disasm.analysis.provenance import ProvenanceTracker
from sid_disasm.relocation.table import RelocationTable, RelocationType
from sid_disasm.sid.loader import SidFile

if TYPE_CHECKING:
    from sid_disasm.output.labels import SymbolSink

logger = logging.getLogger(__name__)

DEFAULT_PAIR_WINDOW = 8
DEFAULT_MAX_PASSES = 10


@dataclass
class PropagationResult:
    """Outcome of one propagation run.

    ``converged`` is False only when the pass limit cut off a closure that
    was still producing new entries.
    """

    passes: int
    added: int
    converged: bool


class RelocationPropagator:
    """Worklist closure over a RelocationTable.

    Each pass processes one generation of LOW entries: the initial table,
    then the entries created by the previous pass. With ``max_passes=None``
    the closure always completes; the address space is finite and every pass
    that continues has inserted at least one new address.
    """

    def __init__(
        self,
        table: RelocationTable,
        provenance: ProvenanceTracker,
        sid: SidFile,
        symbols: SymbolSink,
        pair_window: int = DEFAULT_PAIR_WINDOW,
        max_passes: int | None = DEFAULT_MAX_PASSES,
    ):
        if pair_window < 1:
            raise ValueError(f"pair_window must be at least 1, got {pair_window}")
        if max_passes is not None and max_passes < 1:
            raise ValueError(f"max_passes must be at least 1, got {max_passes}")
        self.table = table
        self.provenance = provenance
        self.sid = sid
        self.symbols = symbols
        self.pair_window = pair_window
        self.max_passes = max_passes

    def propagate(self) -> PropagationResult:
        logger.debug("Propagating relocation sources...")

        frontier = {entry.address for entry in self.table.low_entries()}
        passes = 0
        added = 0

        while frontier:
            if self.max_passes is not None and passes >= self.max_passes:
                break
            passes += 1

            next_frontier: set[int] = set()
            for address in sorted(frontier):
                for new_address in self._link(address):
                    added += 1
                    next_frontier.update(self._requeue_for(new_address))
            frontier = next_frontier

        converged = not frontier
        if not converged:
            logger.warning(
                "Relocation propagation stopped at the %d-pass limit with %d entries unprocessed",
                passes,
                len(frontier),
            )
        logger.debug(
            "Propagation complete after %d pass(es), found %d relocation bytes (%d new)",
            passes,
            len(self.table),
            added,
        )
        return PropagationResult(passes=passes, added=added, converged=converged)

    def _link(self, address: int) -> list[int]:
        """Follow one LOW entry back to where its pointer pair was loaded from.

        Returns the addresses of entries that did not exist before.
        """
        entry = self.table.get(address)
        if entry is None or not entry.is_low:
            return []

        low_source = self.provenance.write_source_info(address)
        if not low_source.from_memory:
            return []
        low_address = low_source.address

        for offset in range(1, self.pair_window + 1):
            partner = self.table.get(address + offset)
            if partner is None or partner.type is not RelocationType.HIGH:
                continue

            high_source = self.provenance.write_source_info(address + offset)
            if not high_source.from_memory:
                continue
            high_address = high_source.address

            if not (self.sid.in_image(low_address) and self.sid.in_image(high_address)):
                continue

            target = self.sid.original_byte(low_address) | (
                self.sid.original_byte(high_address) << 8
            )
            inserted = []
            for new_address, new_type in (
                (low_address, RelocationType.LOW),
                (high_address, RelocationType.HIGH),
            ):
                if new_address in self.table:
                    continue
                self.table.add(new_address, new_type, target)
                self.symbols.flag_pending_subdivision(new_address)
                inserted.append(new_address)
                logger.debug(
                    "Propagated relocation: $%04X (%s) for address $%04X",
                    new_address,
                    "lo" if new_type is RelocationType.LOW else "hi",
                    target,
                )
            return inserted

        return []

    def _requeue_for(self, new_address: int) -> set[int]:
        """LOW entries that need (re)processing because ``new_address`` appeared."""
        entry = self.table.get(new_address)
        if entry is None:
            return set()
        if entry.is_low:
            return {new_address}
        return {
            candidate
            for candidate in range(new_address - self.pair_window, new_address)
            if (low := self.table.get(candidate)) is not None and low.is_low
        }
