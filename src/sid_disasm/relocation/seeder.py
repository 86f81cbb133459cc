"""Turn logged indirect accesses into the first relocation entries."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from sid_disasm.relocation.indirect import IndirectAccessRecord
from sid_disasm.relocation.table import RelocationTable
from sid_disasm.sid.loader import SidFile

if TYPE_CHECKING:
    from sid_disasm.output.labels import SymbolSink

logger = logging.getLogger(__name__)


def seed_from_indirect_accesses(
    records: Iterable[IndirectAccessRecord],
    table: RelocationTable,
    sid: SidFile,
    symbols: SymbolSink,
) -> int:
    """Add a LOW/HIGH entry pair for every usable indirect access.

    Pointer bytes are re-read from the pristine image so that whatever the
    tune did to its own tables while playing does not leak into the result.
    Records whose source bytes lie outside the image are skipped.

    Returns the number of records that produced entries.
    """
    seeded = 0
    for access in records:
        low_address = access.source_low_address
        high_address = access.source_high_address

        if not (sid.in_image(low_address) and sid.in_image(high_address)):
            continue

        target = sid.original_byte(low_address) | (sid.original_byte(high_address) << 8)
        table.add_pair(low_address, high_address, target)
        seeded += 1
        logger.debug(
            "Added relocation: $%04X (lo) and $%04X (hi) for address $%04X",
            low_address,
            high_address,
            target,
        )

        if low_address >= sid.load_address and high_address >= sid.load_address:
            symbols.flag_pending_subdivision(low_address)
            symbols.flag_pending_subdivision(high_address)

    return seeded
