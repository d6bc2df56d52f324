"""
Tests for services/execution_service.py and services/trade_booking_service.py.
"""

import pytest

from core.models import AlgoExecution, ExecutionOrder, Market, OrderType, PricingSide, Side, Trade
from core.reference_data import make_bond
from core.rotation import RoundRobin
from services.execution_service import ExecutionListener, ExecutionService, build_venue_rotation
from services.keyed_service import ServiceListener
from services.trade_booking_service import (
    TradeBookingListener,
    TradeBookingService,
    build_book_rotation,
    trade_from_execution,
)

CUSIP = "91282CJM4"  # US7Y


def execution(side=PricingSide.OFFER, order_id="US7YALGO0", visible=1_000_000, hidden=3_000_000, price=1.0):
    return ExecutionOrder(
        product=make_bond(CUSIP),
        side=side,
        order_id=order_id,
        order_type=OrderType.MARKET,
        price=price,
        visible_quantity=visible,
        hidden_quantity=hidden,
    )


class Collector(ServiceListener):
    def __init__(self):
        self.adds = []
        self.updates = []

    def on_add(self, data):
        self.adds.append(data)

    def on_update(self, data):
        self.updates.append(data)


class TestExecutionService:
    """Test ExecutionService and venue routing."""

    def test_execute_stores_records_venue_and_notifies_add(self):
        """Test execute stores the order, records the venue and notifies add."""
        collector = Collector()
        service = ExecutionService()
        service.add_listener(collector)
        order = execution()

        service.execute(order, Market.ESPEED)

        assert service.get(CUSIP) is order
        assert service.venue_for(order.order_id) is Market.ESPEED
        assert service.venue_for("unknown") is None
        assert collector.adds == [order]

    def test_listener_rotates_venues(self):
        """Test venues rotate BROKERTEC, ESPEED, CME."""
        service = ExecutionService()
        listener = ExecutionListener(service)

        for n in range(4):
            listener.on_update(AlgoExecution(execution(order_id=f"O{n}")))

        venues = [service.venue_for(f"O{n}") for n in range(4)]
        assert venues == [Market.BROKERTEC, Market.ESPEED, Market.CME, Market.BROKERTEC]

    def test_venue_rotation_from_config(self):
        rotation = build_venue_rotation(["cme", "espeed"])
        assert rotation.next() == (0, Market.CME)
        assert rotation.next() == (1, Market.ESPEED)
        assert rotation.next() == (0, Market.CME)

    def test_unknown_venue_name_rejected(self):
        """Test an unknown venue name is refused."""
        with pytest.raises(ValueError):
            build_venue_rotation(["NYSE"])


class TestTradeBooking:
    """Test TradeBookingService and its listener."""

    def test_offer_execution_books_buy_for_full_size(self):
        """Test an OFFER execution books a BUY for visible + hidden."""
        trade = trade_from_execution(execution(side=PricingSide.OFFER, price=99.5), "TRSY2", 1)

        assert trade.side is Side.BUY
        assert trade.quantity == 4_000_000
        assert trade.price == 99.5
        assert trade.book == "TRSY2"
        assert trade.trade_id == "US7YTRD1"

    def test_bid_execution_books_sell(self):
        assert trade_from_execution(execution(side=PricingSide.BID), "TRSY1", 0).side is Side.SELL

    def test_book_trade_stores_by_trade_id_and_notifies_update(self):
        """Test book_trade stores by trade id and notifies update."""
        collector = Collector()
        service = TradeBookingService()
        service.add_listener(collector)
        trade = Trade(make_bond(CUSIP), "T-1", 100.0, "TRSY1", 5, Side.BUY)

        service.book_trade(trade)

        assert service.get("T-1") is trade
        assert collector.updates == [trade]
        assert collector.adds == []

    def test_ingest_books(self):
        service = TradeBookingService()
        trade = Trade(make_bond(CUSIP), "T-9", 100.0, "TRSY3", 5, Side.SELL)
        service.ingest(trade)
        assert service.lookup("T-9") is trade

    def test_listener_rotates_books(self):
        """Test books rotate TRSY1, TRSY2, TRSY3."""
        service = TradeBookingService()
        listener = TradeBookingListener(service)
        collector = Collector()
        service.add_listener(collector)

        for n in range(4):
            listener.on_add(execution(order_id=f"O{n}"))

        assert [t.book for t in collector.updates] == ["TRSY1", "TRSY2", "TRSY3", "TRSY1"]

    def test_trade_ids_wrap_with_book_rotation(self):
        """Test trade ids repeat with the book rotation."""
        service = TradeBookingService()
        listener = TradeBookingListener(service)
        for n in range(4):
            listener.on_add(execution(order_id=f"O{n}"))

        # the fourth trade reuses the first slot's id and replaces it
        assert sorted(service.keys()) == ["US7YTRD0", "US7YTRD1", "US7YTRD2"]
        assert len(service) == 3

    def test_custom_books(self):
        rotation = build_book_rotation(["A", "B"])
        assert isinstance(rotation, RoundRobin)
        assert [rotation.next()[1] for _ in range(3)] == ["A", "B", "A"]

    def test_execution_chain_feeds_booking(self):
        """Test an algo order reaches trade booking."""
        execution_service = ExecutionService()
        booking = TradeBookingService()
        execution_service.add_listener(TradeBookingListener(booking))

        execution_service.execute(execution(side=PricingSide.BID), Market.CME)

        trade = booking.get("US7YTRD0")
        assert trade.side is Side.SELL
        assert trade.book == "TRSY1"
