"""Assembly file generation for a disassembled SID tune.

Owns the relocation state of one run: the indirect-access log filled while
the tune is emulated, and the relocation table derived from it. Once
emulation is done, ``generate_asm_file`` closes the table, writes the
constant blocks and walks the payload emitting code and data.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TextIO

from sid_disasm import TOOL_IDENTITY
from sid_disasm.analysis.memory import MemoryMap
from sid_disasm.analysis.provenance import ProvenanceTracker
from sid_disasm.config import Settings, get_settings
from sid_disasm.constants import HEADER_RULE, LOAD_CONSTANT
from sid_disasm.output.defines import emit_hardware_constants, emit_zero_page_defines
from sid_disasm.output.formatter import CodeFormatter, pad_to_column, range_comment
from sid_disasm.output.labels import LabelLookup, SymbolSink
from sid_disasm.relocation.indirect import IndirectAccessLog
from sid_disasm.relocation.propagator import PropagationResult, RelocationPropagator
from sid_disasm.relocation.seeder import seed_from_indirect_accesses
from sid_disasm.relocation.table import RelocationTable, RelocationType
from sid_disasm.sid.loader import SidFile

logger = logging.getLogger(__name__)


class DisassemblyWriter:
    """Relocation discovery plus emission for one SID file.

    Usage:
        writer = DisassemblyWriter(sid, memory, provenance, registry)
        # while emulating:
        writer.add_indirect_access(pc, zp, effective)
        # afterwards:
        writer.process_indirect_accesses()
        unused = writer.generate_asm_file(Path("tune.asm"))

    ``labels`` is only read. Anything that registers symbols writes through
    ``symbol_sink``, which defaults to ``labels`` when that object can take
    writes (a SymbolRegistry can).
    """

    def __init__(
        self,
        sid: SidFile,
        memory: MemoryMap,
        provenance: ProvenanceTracker,
        labels: LabelLookup,
        symbol_sink: SymbolSink | None = None,
        formatter: CodeFormatter | None = None,
        settings: Settings | None = None,
    ):
        self.sid = sid
        self.memory = memory
        self.provenance = provenance
        self.labels = labels
        self.symbol_sink: SymbolSink = symbol_sink if symbol_sink is not None else labels
        self.settings = settings or get_settings()
        self.formatter = formatter or CodeFormatter(
            sid.image,
            sid.image_base,
            labels,
            comment_column=self.settings.comment_column,
            bytes_per_line=self.settings.bytes_per_line,
        )

        self.relocations = RelocationTable()
        self.indirect_accesses = IndirectAccessLog(provenance)
        self.last_propagation: PropagationResult | None = None
        self.last_output: Path | None = None

    # --- Relocation discovery ---

    def add_relocation_byte(self, address: int, type: RelocationType, target: int) -> None:
        self.relocations.add(address, type, target)

    def add_indirect_access(self, pc: int, zp_address: int, effective_address: int) -> None:
        self.indirect_accesses.record(pc, zp_address, effective_address)

    def process_indirect_accesses(self) -> PropagationResult | None:
        """Seed relocations from the access log, then propagate them."""
        if not self.indirect_accesses:
            logger.debug("No indirect accesses to process")
            return None

        logger.debug("Processing %d indirect accesses", len(self.indirect_accesses))
        seed_from_indirect_accesses(
            self.indirect_accesses, self.relocations, self.sid, self.symbol_sink
        )
        return self.propagate_relocation_sources()

    def propagate_relocation_sources(self) -> PropagationResult:
        propagator = RelocationPropagator(
            self.relocations,
            self.provenance,
            self.sid,
            self.symbol_sink,
            pair_window=self.settings.pair_window,
            max_passes=self.settings.pass_limit,
        )
        self.last_propagation = propagator.propagate()
        return self.last_propagation

    # --- Emission ---

    def generate_asm_file(self, path: Path, sid_load: int | None = None) -> int:
        """Write the complete .asm file. Returns the number of unused bytes zeroed.

        Returns 0 without writing anything if the file cannot be opened.
        """
        logger.info("Generating assembly file: %s", path)

        self.propagate_relocation_sources()

        try:
            out = open(path, "w", encoding="utf-8")
        except OSError as e:
            logger.error("Failed to open output file: %s (%s)", path, e)
            return 0

        with out:
            self._write_header(out)
            load = self.sid.load_address if sid_load is None else sid_load
            out.write(f".const {LOAD_CONSTANT} = ${load:04X}\n")

            emit_hardware_constants(out, self.memory, self.symbol_sink)
            emit_zero_page_defines(out, self.memory, self.symbol_sink)

            unused_byte_count = self.disassemble_to_file(out)

            out.write(f"//; {unused_byte_count} unused bytes zeroed out\n\n")

        self.last_output = path

        return unused_byte_count

    def _write_header(self, out: TextIO) -> None:
        out.write(f"{HEADER_RULE}\n")
        out.write(f"//; Generated by {TOOL_IDENTITY}\n")
        out.write("//; \n")
        out.write(f"//; Name: {self.sid.name}\n")
        out.write(f"//; Author: {self.sid.author}\n")
        out.write(f"//; Copyright: {self.sid.copyright}\n")
        out.write(f"{HEADER_RULE}\n\n")

    def disassemble_to_file(self, out: TextIO) -> int:
        pc = self.sid.load_address
        out.write(f"\n* = {LOAD_CONSTANT}\n\n")

        end = self.sid.end_address
        types = self.memory.types()
        relocations = self.relocations.formatter_entries()
        unused_byte_count = 0

        while pc < end:
            label = self.labels.label(pc)
            if label and self.memory.is_code(pc):
                out.write(f"{label}:\n")

            if self.memory.is_code(pc):
                start_pc = pc
                line, pc = self.formatter.format_instruction(pc)
                out.write(pad_to_column(line, self.settings.comment_column))
                out.write(range_comment(start_pc, pc - 1) + "\n")
            elif self.memory.is_data(pc):
                pc, unused = self.formatter.format_data_run(
                    out,
                    pc,
                    self.sid.image,
                    self.sid.image_base,
                    end,
                    relocations,
                    types,
                )
                unused_byte_count += unused
            else:
                pc += 1

        return unused_byte_count
