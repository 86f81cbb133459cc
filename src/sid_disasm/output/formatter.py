"""Instruction and data rendering in KickAssembler syntax."""

from __future__ import annotations

import logging
from typing import Mapping, TextIO

from sid_disasm.analysis.memory import MemoryType
from sid_disasm.constants import COMMENT_PREFIX, INDENT
from sid_disasm.output.labels import LabelLookup
from sid_disasm.output.opcodes import (
    ABS,
    ABX,
    ABY,
    ACC,
    IMM,
    IMP,
    IND,
    IZX,
    IZY,
    REL,
    ZP,
    ZPX,
    ZPY,
    branch_target,
    decode,
    has_zero_page_form,
    operand_value,
)
from sid_disasm.relocation.table import FormatterRelocation

logger = logging.getLogger(__name__)

_CODE = MemoryType.CODE.value
_DATA = MemoryType.DATA.value
_ACCESSED = MemoryType.ACCESSED.value


def pad_to_column(text: str, column: int) -> str:
    return text.ljust(column)


def range_comment(start: int, last: int) -> str:
    return f" {COMMENT_PREFIX} ${start:04X} - ${last:04X}"


class CodeFormatter:
    """Renders single instructions and runs of data bytes.

    Operands are resolved through the symbol registry, so hardware and
    zero-page constants must be registered before the body is formatted.
    """

    def __init__(
        self,
        image: bytes,
        image_base: int,
        symbols: LabelLookup,
        comment_column: int = 96,
        bytes_per_line: int = 16,
    ):
        self.image = image
        self.image_base = image_base
        self.symbols = symbols
        self.comment_column = comment_column
        self.bytes_per_line = bytes_per_line

    # --- Operand expressions ---

    def zero_page_expression(self, value: int) -> str:
        variable = self.symbols.zero_page_variable(value)
        return variable.name if variable else f"${value:02X}"

    def address_expression(self, value: int) -> str:
        """Symbolic form of a 16-bit address, falling back to hex."""
        if value < 0x100:
            variable = self.symbols.zero_page_variable(value)
            if variable:
                return variable.name
        hardware = self.symbols.hardware_base(value)
        if hardware:
            offset = value - hardware.base
            return hardware.name if offset == 0 else f"{hardware.name}+{offset}"
        label = self.symbols.reference(value)
        if label:
            return label
        return f"${value:04X}"

    # --- Code ---

    def format_instruction(self, pc: int) -> tuple[str, int]:
        """Render the instruction at ``pc``. Returns (text, next_pc)."""
        offset = pc - self.image_base
        first = self.image[offset]
        opcode = decode(first)
        if opcode is None or offset + opcode.size > len(self.image):
            return f"{INDENT}.byte ${first:02X}", pc + 1

        value = operand_value(opcode, self.image[offset + 1 : offset + opcode.size])
        mnemonic = opcode.mnemonic.lower()
        mode = opcode.mode

        # Keep absolute encodings of page-zero addresses absolute on reassembly
        if value < 0x100 and has_zero_page_form(opcode):
            mnemonic += ".abs"

        if mode is IMP or mode is ACC:
            operand = ""
        elif mode is IMM:
            operand = f"#${value:02X}"
        elif mode is ZP:
            operand = self.zero_page_expression(value)
        elif mode is ZPX:
            operand = f"{self.zero_page_expression(value)},x"
        elif mode is ZPY:
            operand = f"{self.zero_page_expression(value)},y"
        elif mode is IZX:
            operand = f"({self.zero_page_expression(value)},x)"
        elif mode is IZY:
            operand = f"({self.zero_page_expression(value)}),y"
        elif mode is ABS:
            operand = self.address_expression(value)
        elif mode is ABX:
            operand = f"{self.address_expression(value)},x"
        elif mode is ABY:
            operand = f"{self.address_expression(value)},y"
        elif mode is IND:
            operand = f"({self.address_expression(value)})"
        elif mode is REL:
            operand = self.address_expression(branch_target(pc, value))
        else:
            raise ValueError(f"Unhandled addressing mode {mode}")

        text = f"{INDENT}{mnemonic} {operand}" if operand else f"{INDENT}{mnemonic}"
        return text, pc + opcode.size

    # --- Data ---

    def format_data_run(
        self,
        out: TextIO,
        pc: int,
        image: bytes,
        image_base: int,
        end: int,
        relocations: Mapping[int, FormatterRelocation],
        types: memoryview | bytes | bytearray,
    ) -> tuple[int, int]:
        """Write the data run starting at ``pc``. Returns (next_pc, unused_bytes).

        The run ends at ``end`` or at the first byte that is not plain DATA.
        Lines break at labels, at addresses flagged for subdivision and every
        ``bytes_per_line`` bytes. A LOW relocation directly followed by its
        HIGH half becomes a ``.word``; lone halves become ``<target`` and
        ``>target``. DATA bytes that emulation never touched are written as
        $00 and counted as unused.
        """
        run_end = pc
        while run_end < end and types[run_end] & _DATA and not types[run_end] & _CODE:
            run_end += 1
        if run_end == pc:
            run_end = pc + 1

        unused = 0
        items: list[str] = []
        line_start = pc

        def flush(next_address: int) -> None:
            if items:
                self._write_line(out, ".byte " + ", ".join(items), line_start, next_address - 1)
                items.clear()

        address = pc
        while address < run_end:
            label = self.symbols.label(address)
            if address == pc or label or self.symbols.is_pending_subdivision(address):
                flush(address)
                if label:
                    out.write(f"{label}:\n")
                line_start = address

            relocation = relocations.get(address)
            partner = relocations.get(address + 1)
            if (
                relocation is not None
                and relocation.is_low
                and address + 1 < run_end
                and partner is not None
                and not partner.is_low
                and partner.target == relocation.target
                and not self.symbols.label(address + 1)
            ):
                flush(address)
                self._write_line(
                    out,
                    f".word {self.address_expression(relocation.target)}",
                    address,
                    address + 1,
                )
                address += 2
                line_start = address
                continue

            if relocation is not None:
                prefix = "<" if relocation.is_low else ">"
                expression = self.address_expression(relocation.target)
                if "+" in expression:
                    expression = f"({expression})"
                items.append(f"{prefix}{expression}")
            elif not types[address] & _ACCESSED:
                items.append("$00")
                unused += 1
            else:
                items.append(f"${image[address - image_base]:02X}")
            address += 1

            if len(items) >= self.bytes_per_line:
                flush(address)
                line_start = address

        flush(address)
        return run_end, unused

    def _write_line(self, out: TextIO, body: str, first: int, last: int) -> None:
        out.write(pad_to_column(f"{INDENT}{body}", self.comment_column))
        out.write(range_comment(first, last) + "\n")
