"""Relocation discovery: pointer bytes found through emulation traces."""

from sid_disasm.relocation.indirect import IndirectAccessLog, IndirectAccessRecord
from sid_disasm.relocation.propagator import PropagationResult, RelocationPropagator
from sid_disasm.relocation.seeder import seed_from_indirect_accesses
from sid_disasm.relocation.table import (
    FormatterRelocation,
    RelocationEntry,
    RelocationTable,
    RelocationType,
)

__all__ = [
    "FormatterRelocation",
    "IndirectAccessLog",
    "IndirectAccessRecord",
    "PropagationResult",
    "RelocationEntry",
    "RelocationPropagator",
    "RelocationTable",
    "RelocationType",
    "seed_from_indirect_accesses",
]
