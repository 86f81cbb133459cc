"""Relocation-aware disassembler for C64 SID music files."""

__version__ = "0.1.0"

TOOL_NAME = "sid-disasm"
TOOL_IDENTITY = f"{TOOL_NAME} {__version__}"
