"""Constant blocks for SID chip bases and zero-page variables."""

from __future__ import annotations

import logging
from typing import TextIO

from sid_disasm.analysis.memory import MemoryMap
from sid_disasm.constants import (
    DEFAULT_SID_BASE,
    SID_BLOCK_MASK,
    SID_NAME_PREFIX,
    SID_WINDOW_END,
    SID_WINDOW_START,
    ZERO_PAGE_END,
    ZERO_PAGE_START,
    ZP_BASE_NAME,
    ZP_NAME_PREFIX,
)
from sid_disasm.output.labels import HardwareBase, HardwareType, SymbolSink, ZeroPageVariable

logger = logging.getLogger(__name__)


def find_sid_bases(memory: MemoryMap) -> list[int]:
    """32-byte aligned SID blocks touched by the tune, ascending.

    Always yields at least the default chip so generated source has a SID0.
    """
    bases = {
        address & SID_BLOCK_MASK
        for address in memory.accessed_in(SID_WINDOW_START, SID_WINDOW_END)
    }
    if not bases:
        bases.add(DEFAULT_SID_BASE)
    return sorted(bases)


def emit_hardware_constants(
    out: TextIO, memory: MemoryMap, symbols: SymbolSink
) -> list[HardwareBase]:
    registered = []
    for index, base in enumerate(find_sid_bases(memory)):
        name = f"{SID_NAME_PREFIX}{index}"
        symbols.register_hardware_base(HardwareType.SID, base, index, name)
        out.write(f".const {name} = ${base:04X}\n")
        registered.append(HardwareBase(HardwareType.SID, base, index, name))

    out.write("\n")
    logger.debug("Emitted %d SID base constant(s)", len(registered))
    return registered


def zero_page_base(count: int) -> int:
    """Base that packs ``count`` variables so the last one lands on $FF."""
    return ZERO_PAGE_END - count + 1


def emit_zero_page_defines(
    out: TextIO, memory: MemoryMap, symbols: SymbolSink
) -> list[ZeroPageVariable]:
    """Write ZP_BASE and one ZP_n per accessed zero-page address.

    Writes nothing at all when the tune uses no zero page.
    """
    used = memory.accessed_in(ZERO_PAGE_START, ZERO_PAGE_END)
    if not used:
        return []

    base = zero_page_base(len(used))
    out.write(f".const {ZP_BASE_NAME} = ${base:02X}\n")

    variables = []
    for index, address in enumerate(used):
        name = f"{ZP_NAME_PREFIX}{index}"
        out.write(f".const {name} = {ZP_BASE_NAME} + {index} // ${address:02X}\n")
        symbols.register_zero_page_variable(address, name)
        variables.append(ZeroPageVariable(address, name))

    out.write("\n")
    logger.debug("Packed %d zero-page variable(s) at $%02X-$FF", len(variables), base)
    return variables
