"""Shared constants for SID disassembly.

Single source of truth for the C64 memory layout the disassembler cares about
and for the names it writes into generated source.
"""

# --- Address space ---

ADDRESS_SPACE_SIZE = 0x10000
ADDRESS_MASK = 0xFFFF

# Zero page: pointer storage for (zp),Y and (zp,X) addressing
ZERO_PAGE_START = 0x00
ZERO_PAGE_END = 0xFF

# SID register window (mirrors up to $D7FF); chips decode in 32-byte blocks
SID_WINDOW_START = 0xD400
SID_WINDOW_END = 0xD7FF
SID_BLOCK_MASK = 0xFFE0
DEFAULT_SID_BASE = 0xD400


# --- Generated source ---

LOAD_CONSTANT = "SIDLoad"
SID_NAME_PREFIX = "SID"
ZP_BASE_NAME = "ZP_BASE"
ZP_NAME_PREFIX = "ZP_"
CODE_LABEL_PREFIX = "Label_"
DATA_LABEL_PREFIX = "DataBlock_"

COMMENT_PREFIX = "//;"
HEADER_RULE = "//; ------------------------------------------"
INDENT = "    "


# --- PSID/RSID container ---

SID_MAGICS = ("PSID", "RSID")
SID_V1_HEADER_SIZE = 0x76
SID_V2_HEADER_SIZE = 0x7C
SID_STRING_SIZE = 32
