"""Assembly source generation."""

from sid_disasm.output.formatter import CodeFormatter
from sid_disasm.output.labels import (
    HardwareBase,
    HardwareType,
    LabelLookup,
    SymbolRegistry,
    SymbolSink,
    ZeroPageVariable,
)
from sid_disasm.output.writer import DisassemblyWriter

__all__ = [
    "CodeFormatter",
    "DisassemblyWriter",
    "HardwareBase",
    "HardwareType",
    "LabelLookup",
    "SymbolRegistry",
    "SymbolSink",
    "ZeroPageVariable",
]
