"""Emulation results: memory classification, write provenance, traces."""

from sid_disasm.analysis.memory import MemoryMap, MemoryType
from sid_disasm.analysis.provenance import OriginKind, ProvenanceTracker, WriteSourceInfo
from sid_disasm.analysis.trace import EmulationTrace, TraceError, load_trace, replay_trace

__all__ = [
    "EmulationTrace",
    "MemoryMap",
    "MemoryType",
    "OriginKind",
    "ProvenanceTracker",
    "TraceError",
    "WriteSourceInfo",
    "load_trace",
    "replay_trace",
]
