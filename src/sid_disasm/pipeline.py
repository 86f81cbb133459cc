"""End-to-end disassembly of one SID file from a trace."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from sid_disasm.analysis.memory import MemoryMap, MemoryType
from sid_disasm.analysis.provenance import ProvenanceTracker
from sid_disasm.analysis.trace import load_trace, replay_trace
from sid_disasm.config import Settings, get_settings
from sid_disasm.output.labels import SymbolRegistry
from sid_disasm.output.writer import DisassemblyWriter
from sid_disasm.relocation.propagator import PropagationResult
from sid_disasm.sid.loader import SidFile, load_sid

logger = logging.getLogger(__name__)


@dataclass
class DisassemblyReport:
    """Summary of a disassembly run."""

    sid: SidFile
    output_path: Path
    written: bool
    indirect_accesses: int
    relocation_bytes: int
    labels: int
    unused_bytes: int
    propagation: PropagationResult | None


def build_writer(
    sid: SidFile,
    trace_path: Path | None,
    settings: Settings,
    registry: SymbolRegistry,
) -> DisassemblyWriter:
    """Classify memory from the trace (or as plain data without one) and seed relocations."""
    memory = MemoryMap()
    provenance = ProvenanceTracker()
    writer = DisassemblyWriter(sid, memory, provenance, registry, settings=settings)

    if trace_path is not None:
        replay_trace(load_trace(trace_path), memory, provenance, writer)
        memory.fill_unclassified(sid.load_address, sid.end_address, MemoryType.DATA)
    else:
        logger.info("No trace given; treating the whole payload as accessed data")
        memory.fill_unclassified(
            sid.load_address, sid.end_address, MemoryType.DATA | MemoryType.ACCESSED
        )

    writer.process_indirect_accesses()
    return writer


def disassemble_sid(
    sid_path: Path,
    output_path: Path | None = None,
    trace_path: Path | None = None,
    sid_load: int | None = None,
    settings: Settings | None = None,
) -> DisassemblyReport:
    settings = settings or get_settings()
    sid = load_sid(sid_path)
    output_path = output_path or settings.output_path_for(sid_path)
    if settings.propagation_unbounded:
        logger.info("Relocation propagation runs without a pass limit")

    registry = SymbolRegistry()
    writer = build_writer(sid, trace_path, settings, registry)
    label_count = registry.generate_labels(
        writer.memory,
        sid.image,
        sid.image_base,
        sid.load_address,
        sid.end_address,
        writer.relocations.targets(),
    )

    unused = writer.generate_asm_file(output_path, sid_load=sid_load)

    return DisassemblyReport(
        sid=sid,
        output_path=output_path,
        written=writer.last_output == output_path,
        indirect_accesses=len(writer.indirect_accesses),
        relocation_bytes=len(writer.relocations),
        labels=label_count,
        unused_bytes=unused,
        propagation=writer.last_propagation,
    )
