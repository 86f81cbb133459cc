"""Symbol registry: labels, hardware bases, zero-page variables.

Readers (the formatter, the emitter) only need ``label()`` and friends.
Everything that adds symbols goes through the ``SymbolSink`` capability,
which the writer hands out explicitly to the seeder, the propagator and the
constant emitters.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Mapping, Protocol

from sid_disasm.analysis.memory import MemoryMap, MemoryType
from sid_disasm.constants import CODE_LABEL_PREFIX, DATA_LABEL_PREFIX, SID_BLOCK_MASK
from sid_disasm.output.opcodes import ABSOLUTE_MODES, REL, branch_target, decode, operand_value

logger = logging.getLogger(__name__)


class HardwareType(enum.Enum):
    SID = "sid"


@dataclass(frozen=True)
class HardwareBase:
    kind: HardwareType
    base: int
    index: int
    name: str


@dataclass(frozen=True)
class ZeroPageVariable:
    address: int
    name: str


class LabelLookup(Protocol):
    def label(self, address: int) -> str | None: ...

    def reference(self, address: int) -> str | None: ...

    def hardware_base(self, address: int) -> HardwareBase | None: ...

    def zero_page_variable(self, address: int) -> ZeroPageVariable | None: ...

    def is_pending_subdivision(self, address: int) -> bool: ...


class SymbolSink(Protocol):
    def register_hardware_base(
        self, kind: HardwareType, base: int, index: int, name: str
    ) -> None: ...

    def register_zero_page_variable(self, address: int, name: str) -> None: ...

    def flag_pending_subdivision(self, address: int) -> None: ...


class SymbolRegistry:
    """Names for addresses, shared by every stage of one disassembly run."""

    def __init__(self):
        self._labels: dict[int, str] = {}
        self._offsets: dict[int, tuple[int, int]] = {}
        self._hardware: dict[int, HardwareBase] = {}
        self._zero_page: dict[int, ZeroPageVariable] = {}
        self._pending_subdivisions: set[int] = set()

    # --- Labels ---

    def label(self, address: int) -> str | None:
        return self._labels.get(address)

    def set_label(self, address: int, name: str) -> None:
        self._labels[address] = name

    @property
    def labels(self) -> dict[int, str]:
        return dict(sorted(self._labels.items()))

    def generate_labels(
        self,
        memory: MemoryMap,
        image: bytes,
        image_base: int,
        start: int,
        end: int,
        relocation_targets: set[int] | frozenset[int] = frozenset(),
    ) -> int:
        """Name every in-range address that code or a relocation refers to.

        Code targets become ``Label_N``, anything else ``DataBlock_N``; each
        kind is numbered in ascending address order. A target that falls
        inside an instruction (self-modified operands, mostly) labels the
        instruction start instead and is referenced as ``Label_N+offset``.
        Targets the emitter never reaches get no label. Addresses that
        already carry a label keep it. Returns the number of labels created.
        """
        definable, owners, references = self._walk(memory, image, image_base, start, end)

        targets = {t for t in relocation_targets if start <= t < end}
        targets.update(
            address
            for address in range(start, end)
            if memory.memory_type(address) & MemoryType.JUMP_TARGET
        )
        targets.update(references)

        anchors: set[int] = set()
        for address in targets:
            if address in definable:
                anchors.add(address)
            elif address in owners:
                owner = owners[address]
                self._offsets[address] = (owner, address - owner)
                anchors.add(owner)
            else:
                logger.debug("$%04X is never emitted; left unlabelled", address)

        created = 0
        counters = {True: 0, False: 0}
        for address in sorted(anchors):
            if address in self._labels:
                continue
            is_code = memory.is_code(address)
            prefix = CODE_LABEL_PREFIX if is_code else DATA_LABEL_PREFIX
            self._labels[address] = f"{prefix}{counters[is_code]}"
            counters[is_code] += 1
            created += 1

        logger.debug("Generated %d labels in $%04X-$%04X", created, start, end - 1)
        return created

    @staticmethod
    def _walk(
        memory: MemoryMap, image: bytes, image_base: int, start: int, end: int
    ) -> tuple[set[int], dict[int, int], set[int]]:
        """Step through [start, end) the way the emitter does.

        Returns the addresses a label line can be written at (instruction
        starts and data bytes), the owning instruction start of every operand
        byte, and the in-range addresses code refers to.
        """
        definable: set[int] = set()
        owners: dict[int, int] = {}
        references: set[int] = set()
        pc = start
        while pc < end:
            if not memory.is_code(pc):
                if memory.is_data(pc):
                    definable.add(pc)
                pc += 1
                continue

            definable.add(pc)
            opcode = decode(image[pc - image_base])
            if opcode is None or pc + opcode.size > end:
                pc += 1
                continue

            value = operand_value(opcode, image[pc - image_base + 1 : pc - image_base + opcode.size])
            if opcode.mode is REL:
                value = branch_target(pc, value)
            if (opcode.mode is REL or opcode.mode in ABSOLUTE_MODES) and start <= value < end:
                references.add(value)
            for operand_address in range(pc + 1, pc + opcode.size):
                owners[operand_address] = pc
            pc += opcode.size
        return definable, owners, references

    def reference(self, address: int) -> str | None:
        """Expression naming ``address``: its label, or the owning label plus offset."""
        name = self._labels.get(address)
        if name:
            return name
        offset = self._offsets.get(address)
        if offset is None:
            return None
        owner, delta = offset
        return f"{self._labels[owner]}+{delta}"

    # --- Hardware ---

    def register_hardware_base(
        self, kind: HardwareType, base: int, index: int, name: str
    ) -> None:
        self._hardware[base] = HardwareBase(kind, base, index, name)

    def hardware_base(self, address: int) -> HardwareBase | None:
        """Registered hardware block containing ``address``, if any."""
        return self._hardware.get(address & SID_BLOCK_MASK)

    @property
    def hardware_bases(self) -> list[HardwareBase]:
        return [self._hardware[base] for base in sorted(self._hardware)]

    # --- Zero page ---

    def register_zero_page_variable(self, address: int, name: str) -> None:
        self._zero_page[address] = ZeroPageVariable(address, name)

    def zero_page_variable(self, address: int) -> ZeroPageVariable | None:
        return self._zero_page.get(address)

    @property
    def zero_page_variables(self) -> Mapping[int, ZeroPageVariable]:
        return dict(sorted(self._zero_page.items()))

    # --- Data subdivision ---

    def flag_pending_subdivision(self, address: int) -> None:
        self._pending_subdivisions.add(address)

    def is_pending_subdivision(self, address: int) -> bool:
        return address in self._pending_subdivisions

    @property
    def pending_subdivisions(self) -> frozenset[int]:
        return frozenset(self._pending_subdivisions)
