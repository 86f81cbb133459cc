"""PSID/RSID container parsing.

Reads the big-endian SID header, resolves the load address and keeps the
C64 payload as an immutable snapshot. Everything downstream reads pointer
bytes from this snapshot rather than from emulated memory, which the tune
may have rewritten while it was playing.

Header layout (offsets in bytes):
    0x00  magic "PSID" / "RSID"
    0x04  version            0x06  data offset
    0x08  load address       0x0A  init address
    0x0C  play address       0x0E  songs
    0x10  start song         0x12  speed (32 bit)
    0x16  name               0x36  author
    0x56  released/copyright (32-byte latin-1 strings)
    v2+:  0x76 flags, 0x78 start page, 0x79 page length,
          0x7A second SID, 0x7B third SID
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from pathlib import Path

from sid_disasm.constants import (
    SID_MAGICS,
    SID_STRING_SIZE,
    SID_V1_HEADER_SIZE,
    SID_V2_HEADER_SIZE,
)

logger = logging.getLogger(__name__)


class SidFormatError(ValueError):
    """Raised when a file is not a usable PSID/RSID container."""


def _decode_string(raw: bytes) -> str:
    return raw.split(b"\x00")[0].decode("latin-1", errors="replace").strip()


@dataclass(frozen=True)
class SidHeader:
    """Parsed SID file header."""

    magic: str
    version: int
    data_offset: int
    load_address: int
    init_address: int
    play_address: int
    songs: int
    start_song: int
    speed: int
    name: str
    author: str
    copyright: str
    flags: int = 0
    start_page: int = 0
    page_length: int = 0
    second_sid_address: int = 0
    third_sid_address: int = 0

    @property
    def clock(self) -> str:
        if self.version < 2:
            return "Unknown"
        return ("Unknown", "PAL", "NTSC", "PAL+NTSC")[(self.flags >> 2) & 0x03]

    @property
    def sid_model(self) -> str:
        if self.version < 2:
            return "Unknown"
        return ("Unknown", "MOS6581", "MOS8580", "6581+8580")[(self.flags >> 4) & 0x03]

    @classmethod
    def parse(cls, data: bytes) -> SidHeader:
        if len(data) < SID_V1_HEADER_SIZE:
            raise SidFormatError(
                f"File too short for a SID header ({len(data)} < {SID_V1_HEADER_SIZE} bytes)"
            )

        magic = data[0:4].decode("ascii", errors="replace")
        if magic not in SID_MAGICS:
            raise SidFormatError(f"Not a valid SID file: magic={magic!r}")

        (
            version,
            data_offset,
            load_address,
            init_address,
            play_address,
            songs,
            start_song,
            speed,
        ) = struct.unpack(">HHHHHHHI", data[4:0x16])

        extra: dict[str, int] = {}
        if version >= 2 and len(data) >= SID_V2_HEADER_SIZE:
            extra = {
                "flags": struct.unpack(">H", data[0x76:0x78])[0],
                "start_page": data[0x78],
                "page_length": data[0x79],
                "second_sid_address": data[0x7A],
                "third_sid_address": data[0x7B],
            }

        return cls(
            magic=magic,
            version=version,
            data_offset=data_offset,
            load_address=load_address,
            init_address=init_address,
            play_address=play_address,
            songs=songs,
            start_song=start_song,
            speed=speed,
            name=_decode_string(data[0x16 : 0x16 + SID_STRING_SIZE]),
            author=_decode_string(data[0x36 : 0x36 + SID_STRING_SIZE]),
            copyright=_decode_string(data[0x56 : 0x56 + SID_STRING_SIZE]),
            **extra,
        )


@dataclass(frozen=True)
class SidFile:
    """A loaded SID tune: header plus the pristine C64 payload.

    Usage:
        sid = load_sid(Path("Commando.sid"))
        sid.image[addr - sid.image_base]
    """

    header: SidHeader
    load_address: int
    image: bytes

    @property
    def image_base(self) -> int:
        """Address of the first byte of the pristine snapshot."""
        return self.load_address

    @property
    def data_size(self) -> int:
        return len(self.image)

    @property
    def end_address(self) -> int:
        """First address past the payload."""
        return self.load_address + len(self.image)

    @property
    def name(self) -> str:
        return self.header.name

    @property
    def author(self) -> str:
        return self.header.author

    @property
    def copyright(self) -> str:
        return self.header.copyright

    def in_image(self, address: int) -> bool:
        """True when the pristine snapshot holds a byte for this address."""
        return self.image_base <= address < self.image_base + len(self.image)

    def original_byte(self, address: int) -> int:
        """Byte at an address as it was in the file, before any emulation."""
        if not self.in_image(address):
            raise IndexError(f"${address:04X} is outside the SID image")
        return self.image[address - self.image_base]

    @classmethod
    def from_bytes(cls, data: bytes) -> SidFile:
        header = SidHeader.parse(data)
        if header.data_offset > len(data):
            raise SidFormatError(
                f"Data offset 0x{header.data_offset:x} exceeds file size ({len(data)})"
            )

        payload = data[header.data_offset :]
        if header.load_address == 0:
            if len(payload) < 2:
                raise SidFormatError("Payload too short to hold an embedded load address")
            load_address = struct.unpack("<H", payload[0:2])[0]
            payload = payload[2:]
        else:
            load_address = header.load_address

        if load_address + len(payload) > 0x10000:
            raise SidFormatError(
                f"Payload of {len(payload)} bytes at ${load_address:04X} "
                f"runs past the end of memory"
            )

        return cls(header=header, load_address=load_address, image=bytes(payload))


def load_sid(path: Path) -> SidFile:
    """Load and parse a SID file from disk."""
    if not path.exists():
        raise FileNotFoundError(f"SID file not found: {path}")

    sid = SidFile.from_bytes(path.read_bytes())
    logger.info(
        "Loaded %s: '%s' by %s, $%04X-$%04X (%d bytes)",
        path.name,
        sid.name,
        sid.author,
        sid.load_address,
        sid.end_address - 1,
        sid.data_size,
    )
    return sid
