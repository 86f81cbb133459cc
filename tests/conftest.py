"""Shared fixtures: synthetic SID files and default settings."""

import struct

import pytest

from sid_disasm.analysis.memory import MemoryMap
from sid_disasm.analysis.provenance import ProvenanceTracker
from sid_disasm.config import Settings
from sid_disasm.output.labels import SymbolRegistry
from sid_disasm.sid.loader import SidFile


def _pad_string(text: str) -> bytes:
    return text.encode("latin-1")[:32].ljust(32, b"\x00")


def build_psid(
    payload: bytes,
    load_address: int = 0x1000,
    *,
    name: str = "Test Tune",
    author: str = "Test Author",
    copyright: str = "2026 Test Group",
    embed_load_address: bool = False,
    magic: bytes = b"PSID",
    version: int = 2,
    flags: int = 0x0014,
) -> bytes:
    """Assemble a PSID file around a C64 payload."""
    data_offset = 0x7C if version >= 2 else 0x76
    header = bytearray()
    header += magic
    header += struct.pack(
        ">HHHHHHHI",
        version,
        data_offset,
        0 if embed_load_address else load_address,
        load_address,
        load_address + 3,
        1,
        1,
        0,
    )
    header += _pad_string(name)
    header += _pad_string(author)
    header += _pad_string(copyright)
    if version >= 2:
        header += struct.pack(">H", flags) + bytes([0, 0, 0, 0])

    body = payload
    if embed_load_address:
        body = struct.pack("<H", load_address) + payload
    return bytes(header) + body


@pytest.fixture
def make_sid():
    """Factory for in-memory SidFile objects."""

    def _make(payload: bytes, load_address: int = 0x1000, **kwargs) -> SidFile:
        return SidFile.from_bytes(build_psid(payload, load_address, **kwargs))

    return _make


@pytest.fixture
def sid_path(tmp_path):
    """A small tune on disk: LDA #$00 / STA $D418 / RTS followed by 8 data bytes."""
    payload = bytes([0xA9, 0x00, 0x8D, 0x18, 0xD4, 0x60]) + bytes(range(1, 9))
    path = tmp_path / "tune.sid"
    path.write_bytes(build_psid(payload))
    return path


@pytest.fixture
def settings():
    return Settings(
        pair_window=8,
        max_propagation_passes=10,
        comment_column=96,
        bytes_per_line=16,
    )


@pytest.fixture
def memory():
    return MemoryMap()


@pytest.fixture
def provenance():
    return ProvenanceTracker()


@pytest.fixture
def registry():
    return SymbolRegistry()
