"""Emulation trace documents.

An emulator run is exchanged as JSON: memory classification regions plus the
ordered stream of writes and indirect accesses it observed. Replaying the
stream in order reproduces the provenance each indirect access saw at the
moment it happened.

Pydantic validates shape (types, required fields, address ranges);
replay_trace applies the validated document.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Literal, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from sid_disasm.analysis.memory import MemoryMap, MemoryType
from sid_disasm.analysis.provenance import OriginKind, ProvenanceTracker

if TYPE_CHECKING:
    from sid_disasm.output.writer import DisassemblyWriter

logger = logging.getLogger(__name__)


class TraceError(ValueError):
    """Raised when a trace document cannot be read or validated."""


def parse_address(value: object, limit: int = 0xFFFF) -> int:
    """Accept 4096, "4096", "$1000" or "0x1000", up to ``limit`` inclusive.

    Only exclusive range ends need ``limit=0x10000``.
    """
    if isinstance(value, bool):
        raise ValueError("address must be a number, not a boolean")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        text = value.strip().lower()
        if text.startswith("$"):
            number = int(text[1:], 16)
        elif text.startswith("0x"):
            number = int(text[2:], 16)
        else:
            number = int(text, 10)
    else:
        raise ValueError(f"unsupported address value: {value!r}")
    if not 0 <= number <= limit:
        raise ValueError(f"address out of range: {value!r}")
    return number


_MEMORY_TYPE_NAMES = {
    "code": MemoryType.CODE,
    "data": MemoryType.DATA,
    "accessed": MemoryType.ACCESSED,
    "jump_target": MemoryType.JUMP_TARGET,
}


class MemoryRegion(BaseModel):
    """Classification for the addresses [start, end)."""

    start: int
    end: int
    types: list[Literal["code", "data", "accessed", "jump_target"]] = Field(min_length=1)

    @field_validator("start", mode="before")
    @classmethod
    def validate_start(cls, v: object) -> int:
        return parse_address(v)

    @field_validator("end", mode="before")
    @classmethod
    def validate_end(cls, v: object) -> int:
        return parse_address(v, limit=0x10000)

    @property
    def flags(self) -> MemoryType:
        flags = MemoryType.UNKNOWN
        for name in self.types:
            flags |= _MEMORY_TYPE_NAMES[name]
        return flags


class WriteEvent(BaseModel):
    """The instruction at ``pc`` stored a byte at ``address``."""

    kind: Literal["write"]
    address: int
    pc: int
    origin: Literal["memory", "immediate", "unknown"] = "unknown"
    origin_address: int = 0

    @field_validator("address", "pc", "origin_address", mode="before")
    @classmethod
    def validate_address(cls, v: object) -> int:
        return parse_address(v)


class IndirectEvent(BaseModel):
    """The instruction at ``pc`` dereferenced the pointer at ``zp``/``zp+1``."""

    kind: Literal["indirect"]
    pc: int
    zp: int = Field(..., description="Zero-page address of the pointer's low byte")
    effective: int

    @field_validator("pc", "zp", "effective", mode="before")
    @classmethod
    def validate_address(cls, v: object) -> int:
        return parse_address(v)

    @field_validator("zp")
    @classmethod
    def validate_zero_page(cls, v: int) -> int:
        if v > 0xFF:
            raise ValueError(f"zp must be a zero-page address, got ${v:04X}")
        return v


TraceEvent = Annotated[Union[WriteEvent, IndirectEvent], Field(discriminator="kind")]


class EmulationTrace(BaseModel):
    regions: list[MemoryRegion] = Field(default_factory=list)
    events: list[TraceEvent] = Field(default_factory=list)


def load_trace(path: Path) -> EmulationTrace:
    """Read and validate a trace document."""
    if not path.exists():
        raise FileNotFoundError(f"Trace file not found: {path}")
    try:
        return EmulationTrace.model_validate(json.loads(path.read_text()))
    except json.JSONDecodeError as e:
        raise TraceError(f"{path}: not valid JSON ({e})") from e
    except ValidationError as e:
        raise TraceError(f"{path}: invalid trace ({e.error_count()} errors)\n{e}") from e


def replay_trace(
    trace: EmulationTrace,
    memory: MemoryMap,
    provenance: ProvenanceTracker,
    writer: DisassemblyWriter,
) -> int:
    """Apply regions, then events in order. Returns the number of indirect events."""
    for region in trace.regions:
        memory.mark_range(region.start, region.end, region.flags)

    indirect = 0
    for event in trace.events:
        if isinstance(event, WriteEvent):
            provenance.record_write(
                event.address, event.pc, OriginKind(event.origin), event.origin_address
            )
        else:
            writer.add_indirect_access(event.pc, event.zp, event.effective)
            indirect += 1

    logger.info(
        "Replayed trace: %d region(s), %d write(s), %d indirect access(es)",
        len(trace.regions),
        len(trace.events) - indirect,
        indirect,
    )
    return indirect
