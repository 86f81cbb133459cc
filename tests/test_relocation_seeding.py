"""Tests for the relocation table, indirect-access log and seeder."""

import pytest

from sid_disasm.analysis.provenance import OriginKind
from sid_disasm.relocation.indirect import IndirectAccessLog, IndirectAccessRecord
from sid_disasm.relocation.seeder import seed_from_indirect_accesses
from sid_disasm.relocation.table import RelocationTable, RelocationType


def _record(low: int, high: int, pc: int = 0x1000) -> IndirectAccessRecord:
    return IndirectAccessRecord(
        instruction_address=pc,
        zp_low=0xFB,
        zp_high=0xFC,
        last_write_low=pc - 4,
        last_write_high=pc - 2,
        source_low_address=low,
        source_high_address=high,
        effective_address=0,
    )


# ============================================================
# RelocationTable
# ============================================================


class TestRelocationTable:
    def test_add_and_get(self):
        table = RelocationTable()
        table.add(0x1100, RelocationType.LOW, 0x2000)

        entry = table.get(0x1100)
        assert entry.is_low
        assert entry.target == 0x2000
        assert 0x1100 in table
        assert table.get(0x1101) is None

    def test_readding_overwrites(self):
        table = RelocationTable()
        table.add(0x1100, RelocationType.LOW, 0x2000)
        table.add(0x1100, RelocationType.HIGH, 0x3000)

        assert len(table) == 1
        assert table.get(0x1100).type is RelocationType.HIGH
        assert table.get(0x1100).target == 0x3000

    def test_iterates_in_address_order(self):
        table = RelocationTable()
        table.add_pair(0x1208, 0x1200, 0x4000)
        table.add_pair(0x1100, 0x1101, 0x2000)

        assert [entry.address for entry in table] == [0x1100, 0x1101, 0x1200, 0x1208]
        assert [entry.address for entry in table.low_entries()] == [0x1100, 0x1208]
        assert table.targets() == {0x2000, 0x4000}

    def test_formatter_entries(self):
        table = RelocationTable()
        table.add_pair(0x1100, 0x1101, 0x2000)

        entries = table.formatter_entries()
        assert entries[0x1100].is_low and entries[0x1100].target == 0x2000
        assert not entries[0x1101].is_low


# ============================================================
# IndirectAccessLog
# ============================================================


class TestIndirectAccessLog:
    def test_records_when_both_bytes_from_memory(self, provenance):
        provenance.record_write(0xFB, 0x1003, OriginKind.MEMORY, 0x1100)
        provenance.record_write(0xFC, 0x1008, OriginKind.MEMORY, 0x1101)
        log = IndirectAccessLog(provenance)

        assert log.record(0x1010, 0xFB, 0x2000)

        [record] = log.records
        assert record.instruction_address == 0x1010
        assert (record.zp_low, record.zp_high) == (0xFB, 0xFC)
        assert (record.last_write_low, record.last_write_high) == (0x1003, 0x1008)
        assert (record.source_low_address, record.source_high_address) == (0x1100, 0x1101)
        assert record.effective_address == 0x2000

    def test_ignores_immediate_pointer(self, provenance):
        provenance.record_write(0xFB, 0x1003, OriginKind.IMMEDIATE)
        provenance.record_write(0xFC, 0x1008, OriginKind.MEMORY, 0x1101)
        log = IndirectAccessLog(provenance)

        assert not log.record(0x1010, 0xFB, 0x2000)
        assert len(log) == 0

    def test_ignores_unwritten_pointer(self, provenance):
        log = IndirectAccessLog(provenance)
        assert not log.record(0x1010, 0x02, 0x2000)

    def test_high_byte_wraps_in_zero_page(self, provenance):
        provenance.record_write(0xFF, 0x1003, OriginKind.MEMORY, 0x1100)
        provenance.record_write(0x00, 0x1008, OriginKind.MEMORY, 0x1101)
        log = IndirectAccessLog(provenance)

        assert log.record(0x1010, 0xFF, 0x2000)
        assert log.records[0].zp_high == 0x00


# ============================================================
# Seeder
# ============================================================


class TestSeeder:
    def test_scenario_a_pointer_pair(self, make_sid, registry):
        # Pristine bytes $00 $20 at $1100/$1101 -> pointer to $2000
        payload = bytearray(0x200)
        payload[0x100:0x102] = b"\x00\x20"
        sid = make_sid(bytes(payload), 0x1000)
        table = RelocationTable()

        seeded = seed_from_indirect_accesses([_record(0x1100, 0x1101)], table, sid, registry)

        assert seeded == 1
        low, high = table.get(0x1100), table.get(0x1101)
        assert low.type is RelocationType.LOW and low.target == 0x2000
        assert high.type is RelocationType.HIGH and high.target == 0x2000
        assert registry.is_pending_subdivision(0x1100)
        assert registry.is_pending_subdivision(0x1101)

    def test_uses_pristine_bytes(self, make_sid, registry):
        payload = bytearray(0x10)
        payload[4:6] = b"\x34\x12"
        sid = make_sid(bytes(payload), 0x1000)
        table = RelocationTable()

        # The effective address seen during emulation is ignored
        record = _record(0x1004, 0x1005)
        seed_from_indirect_accesses([record], table, sid, registry)

        assert table.get(0x1004).target == 0x1234

    def test_out_of_image_source_skipped(self, make_sid, registry):
        sid = make_sid(bytes(0x10), 0x1000)
        table = RelocationTable()

        seeded = seed_from_indirect_accesses(
            [_record(0x0FFF, 0x1000), _record(0x100F, 0x1010)], table, sid, registry
        )

        assert seeded == 0
        assert len(table) == 0
        assert registry.pending_subdivisions == frozenset()

    def test_split_tables(self, make_sid, registry):
        payload = bytearray(0x20)
        payload[0x00] = 0x80  # lo table
        payload[0x08] = 0x10  # hi table, 8 bytes later
        sid = make_sid(bytes(payload), 0x1000)
        table = RelocationTable()

        seed_from_indirect_accesses([_record(0x1000, 0x1008)], table, sid, registry)

        assert table.get(0x1000).target == 0x1080
        assert table.get(0x1008).type is RelocationType.HIGH

    @pytest.mark.parametrize("count", [1, 3])
    def test_reseeding_is_deterministic(self, make_sid, registry, count):
        payload = bytearray(0x10)
        payload[0:2] = b"\x00\x20"
        sid = make_sid(bytes(payload), 0x1000)

        tables = []
        for _ in range(count + 1):
            table = RelocationTable()
            seed_from_indirect_accesses([_record(0x1000, 0x1001)] * count, table, sid, registry)
            tables.append(table.snapshot())

        assert all(t == tables[0] for t in tables)
