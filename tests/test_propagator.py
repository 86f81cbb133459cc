"""Tests for relocation propagation across pointer-to-pointer chains."""

import pytest

from sid_disasm.analysis.provenance import OriginKind, ProvenanceTracker
from sid_disasm.output.labels import SymbolRegistry
from sid_disasm.relocation.propagator import RelocationPropagator
from sid_disasm.relocation.table import RelocationTable, RelocationType

BASE = 0x1000
SPACING = 0x10


def _link_address(k: int) -> int:
    return BASE + SPACING * k


@pytest.fixture
def chain_sid(make_sid):
    """Payload where link k holds the pointer $20kk at BASE + $10*k."""
    payload = bytearray(0x200)
    for k in range(0x20):
        offset = SPACING * k
        payload[offset] = k
        payload[offset + 1] = 0x20
    return make_sid(bytes(payload), BASE)


def _build_chain(links: int, table: RelocationTable, provenance: ProvenanceTracker) -> None:
    """Seed link 0 and make each link's bytes copies of the next link's bytes."""
    table.add_pair(_link_address(0), _link_address(0) + 1, 0x2000)
    for k in range(links):
        here, there = _link_address(k), _link_address(k + 1)
        provenance.record_write(here, 0x1800, OriginKind.MEMORY, there)
        provenance.record_write(here + 1, 0x1803, OriginKind.MEMORY, there + 1)


def _propagator(table, provenance, sid, registry, **kwargs):
    return RelocationPropagator(table, provenance, sid, registry, **kwargs)


class TestChains:
    def test_three_link_chain_converges(self, chain_sid, provenance, registry):
        table = RelocationTable()
        _build_chain(3, table, provenance)

        result = _propagator(table, provenance, chain_sid, registry).propagate()

        assert result.converged
        assert result.added == 6
        for k in range(1, 4):
            low = table.get(_link_address(k))
            high = table.get(_link_address(k) + 1)
            assert low.type is RelocationType.LOW
            assert high.type is RelocationType.HIGH
            assert low.target == high.target == 0x2000 + k
            assert registry.is_pending_subdivision(_link_address(k))
        assert _link_address(4) not in table

    def test_deep_chain_is_limited_by_pass_cap(self, chain_sid, provenance, registry):
        table = RelocationTable()
        _build_chain(12, table, provenance)

        result = _propagator(table, provenance, chain_sid, registry, max_passes=10).propagate()

        assert not result.converged
        assert result.passes == 10
        assert _link_address(10) in table
        assert _link_address(11) not in table
        assert _link_address(12) not in table

    def test_deep_chain_completes_when_unbounded(self, chain_sid, provenance, registry):
        table = RelocationTable()
        _build_chain(12, table, provenance)

        result = _propagator(table, provenance, chain_sid, registry, max_passes=None).propagate()

        assert result.converged
        assert all(_link_address(k) in table for k in range(13))
        assert len(table) == 26

    def test_second_run_adds_nothing(self, chain_sid, provenance, registry):
        table = RelocationTable()
        _build_chain(3, table, provenance)
        propagator = _propagator(table, provenance, chain_sid, registry)

        propagator.propagate()
        before = table.snapshot()
        again = propagator.propagate()

        assert again.added == 0
        assert again.converged
        assert table.snapshot() == before

    def test_deterministic(self, chain_sid):
        snapshots = []
        for _ in range(2):
            table = RelocationTable()
            provenance = ProvenanceTracker()
            _build_chain(5, table, provenance)
            _propagator(table, provenance, chain_sid, SymbolRegistry()).propagate()
            snapshots.append(table.snapshot())
        assert snapshots[0] == snapshots[1]


class TestPairing:
    def _split_setup(self, make_sid, provenance, gap: int):
        payload = bytearray(0x100)
        payload[0x80] = 0x34
        payload[0x80 + gap] = 0x12
        sid = make_sid(bytes(payload), BASE)
        table = RelocationTable()
        table.add(0x1000, RelocationType.LOW, 0x9999)
        table.add(0x1000 + gap, RelocationType.HIGH, 0x9999)
        provenance.record_write(0x1000, 0x1800, OriginKind.MEMORY, 0x1080)
        provenance.record_write(0x1000 + gap, 0x1803, OriginKind.MEMORY, 0x1080 + gap)
        return sid, table

    def test_split_lo_hi_tables_within_window(self, make_sid, provenance, registry):
        sid, table = self._split_setup(make_sid, provenance, gap=3)

        _propagator(table, provenance, sid, registry).propagate()

        assert table.get(0x1080).target == 0x1234
        assert table.get(0x1083).type is RelocationType.HIGH

    def test_partner_beyond_window_not_paired(self, make_sid, provenance, registry):
        sid, table = self._split_setup(make_sid, provenance, gap=9)

        result = _propagator(table, provenance, sid, registry).propagate()

        assert result.added == 0
        assert 0x1080 not in table

    def test_window_is_configurable(self, make_sid, provenance, registry):
        sid, table = self._split_setup(make_sid, provenance, gap=9)

        _propagator(table, provenance, sid, registry, pair_window=9).propagate()

        assert table.get(0x1080).target == 0x1234

    def test_new_entries_never_more_than_window_apart(self, chain_sid, provenance, registry):
        table = RelocationTable()
        _build_chain(6, table, provenance)
        _propagator(table, provenance, chain_sid, registry).propagate()

        for entry in table.low_entries():
            high = table.get(entry.address + 1)
            assert high is not None and not high.is_low

    def test_low_without_memory_provenance_ignored(self, make_sid, provenance, registry):
        sid, table = self._split_setup(make_sid, provenance, gap=1)
        provenance.record_write(0x1000, 0x1800, OriginKind.IMMEDIATE)

        result = _propagator(table, provenance, sid, registry).propagate()

        assert result.added == 0

    def test_high_without_memory_provenance_skipped(self, make_sid, provenance, registry):
        sid, table = self._split_setup(make_sid, provenance, gap=1)
        provenance.record_write(0x1001, 0x1803, OriginKind.UNKNOWN)

        result = _propagator(table, provenance, sid, registry).propagate()

        assert result.added == 0

    def test_sources_outside_image_skipped(self, make_sid, provenance, registry):
        sid = make_sid(bytes(0x20), BASE)
        table = RelocationTable()
        table.add_pair(0x1000, 0x1001, 0x2000)
        provenance.record_write(0x1000, 0x1800, OriginKind.MEMORY, 0x3000)
        provenance.record_write(0x1001, 0x1803, OriginKind.MEMORY, 0x3001)

        result = _propagator(table, provenance, sid, registry).propagate()

        assert result.added == 0
        assert result.converged

    def test_existing_entries_not_overwritten(self, make_sid, provenance, registry):
        sid, table = self._split_setup(make_sid, provenance, gap=1)
        table.add(0x1080, RelocationType.HIGH, 0x4444)

        _propagator(table, provenance, sid, registry).propagate()

        assert table.get(0x1080).type is RelocationType.HIGH
        assert table.get(0x1080).target == 0x4444
        assert table.get(0x1081).target == 0x1234
        assert not registry.is_pending_subdivision(0x1080)

    def test_new_high_requeues_waiting_low(self, make_sid, provenance, registry):
        payload = bytearray(0x100)
        payload[0x80:0x82] = b"\x00\x30"
        sid = make_sid(bytes(payload), BASE)
        table = RelocationTable()

        # A lone low byte, processed first and still without a partner
        table.add(0x1040, RelocationType.LOW, 0x0000)
        # Seeded pair whose high byte came from $1042, next to the lone low byte
        table.add_pair(0x1060, 0x1061, 0x2000)
        provenance.record_write(0x1060, 0x1800, OriginKind.MEMORY, 0x1050)
        provenance.record_write(0x1061, 0x1803, OriginKind.MEMORY, 0x1042)
        provenance.record_write(0x1040, 0x1806, OriginKind.MEMORY, 0x1080)
        provenance.record_write(0x1042, 0x1809, OriginKind.MEMORY, 0x1081)

        result = _propagator(table, provenance, sid, registry).propagate()

        assert result.converged
        assert table.get(0x1042).type is RelocationType.HIGH
        assert table.get(0x1080).target == 0x3000
        assert table.get(0x1081).type is RelocationType.HIGH


class TestValidation:
    def test_rejects_zero_window(self, chain_sid, provenance, registry):
        with pytest.raises(ValueError, match="pair_window"):
            _propagator(RelocationTable(), provenance, chain_sid, registry, pair_window=0)

    def test_rejects_zero_passes(self, chain_sid, provenance, registry):
        with pytest.raises(ValueError, match="max_passes"):
            _propagator(RelocationTable(), provenance, chain_sid, registry, max_passes=0)

    def test_empty_table(self, chain_sid, provenance, registry):
        result = _propagator(RelocationTable(), provenance, chain_sid, registry).propagate()
        assert result.passes == 0
        assert result.converged
