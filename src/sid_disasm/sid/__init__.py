"""SID container loading."""

from sid_disasm.sid.loader import SidFile, SidFormatError, SidHeader, load_sid

__all__ = ["SidFile", "SidFormatError", "SidHeader", "load_sid"]
