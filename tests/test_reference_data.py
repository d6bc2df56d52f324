"""
Tests for core/reference_data.py and core/rotation.py.
"""

import pytest

from core.errors import UnknownInstrumentError
from core.reference_data import PV01_PER_UNIT, SECTOR_MEMBERS, all_bonds, make_bond, make_sectors
from core.rotation import RoundRobin, SequenceCounter
from services.risk_service import RiskService


class TestReferenceData:
    """Test the static bond universe."""

    def test_universe(self):
        """Test seven bonds, each with a PV01 entry."""
        bonds = all_bonds()
        assert len(bonds) == 7
        assert {b.product_id for b in bonds} == set(PV01_PER_UNIT)
        assert make_bond("91282CJL6").ticker == "US2Y"

    def test_unknown_cusip(self):
        """Test make_bond raises UnknownInstrumentError, a KeyError."""
        with pytest.raises(UnknownInstrumentError) as exc_info:
            make_bond("BAD")
        assert exc_info.value.product_id == "BAD"
        assert isinstance(exc_info.value, KeyError)

    def test_every_bond_in_exactly_one_sector(self):
        """Test sector buckets partition the universe."""
        members = [pid for ids in SECTOR_MEMBERS.values() for pid in ids]
        assert sorted(members) == sorted(b.product_id for b in all_bonds())
        assert RiskService().bucket_for("912810TV0") == "LongEnd"

    def test_sectors_hold_bonds(self):
        """Test make_sectors resolves member CUSIPs to bonds."""
        sectors = make_sectors()
        assert sectors["Belly"].product_id == "Belly"
        assert [b.ticker for b in sectors["FrontEnd"].products] == ["US2Y", "US3Y"]


class TestRotation:
    """Test RoundRobin and SequenceCounter."""

    def test_round_robin_wraps(self):
        """Test the index wraps modulo the item count."""
        rr = RoundRobin(["a", "b", "c"])
        assert [rr.next() for _ in range(4)] == [(0, "a"), (1, "b"), (2, "c"), (0, "a")]
        assert rr.index == 1
        assert len(rr) == 3

    def test_round_robin_start(self):
        """Test a start offset beyond the length wraps."""
        assert RoundRobin(["a", "b"], start=3).next() == (1, "b")

    def test_round_robin_needs_items(self):
        """Test an empty rotation is refused."""
        with pytest.raises(ValueError):
            RoundRobin([])

    def test_sequence_counter(self):
        """Test advance returns the value before incrementing."""
        counter = SequenceCounter()
        assert counter.advance() == 0
        assert counter.value == 1
        assert SequenceCounter(start=5).advance() == 5
