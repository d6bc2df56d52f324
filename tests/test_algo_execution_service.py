"""
Tests for services/algo_execution_service.py - spread-crossing execution.
"""

from core.models import Order, OrderBook, OrderType, PricingSide
from core.reference_data import make_bond
from core.rotation import SequenceCounter
from services.algo_execution_service import (
    MARKET_ORDER_PRICE,
    AlgoExecutionListener,
    AlgoExecutionService,
    SpreadCrossingPolicy,
    build_spread_policy,
)
from services.keyed_service import ServiceListener
from services.market_data_service import MarketDataService

CUSIP = "91282CJL6"  # US2Y
TICK_128 = 1.0 / 128


def crossed_book(cross, bid_qty=10_000_000, offer_qty=20_000_000):
    """Best bid sits ``cross`` above best offer."""
    return OrderBook(
        product=make_bond(CUSIP),
        bid_stack=[Order(100.0, 1_000_000, PricingSide.BID), Order(100.0 + cross, bid_qty, PricingSide.BID)],
        offer_stack=[Order(100.0, offer_qty, PricingSide.OFFER), Order(100.5, 1_000_000, PricingSide.OFFER)],
    )


class UpdateCollector(ServiceListener):
    def __init__(self):
        self.updates = []

    def on_update(self, data):
        self.updates.append(data)


class TestSpreadCrossingPolicy:
    """Test SpreadCrossingPolicy."""

    def test_defaults(self):
        """Test default threshold and split."""
        policy = SpreadCrossingPolicy()
        assert policy.min_spread == TICK_128
        assert policy.side_for(0) is PricingSide.BID
        assert policy.side_for(1) is PricingSide.OFFER

    def test_split_is_quarter_visible(self):
        """Test visible is a quarter of the quantity."""
        assert SpreadCrossingPolicy().split(10_000_000) == (2_500_000, 7_500_000)
        assert SpreadCrossingPolicy().split(7) == (1, 6)

    def test_build_from_config_ignores_unknown_keys(self):
        """Test unknown config keys are dropped."""
        policy = build_spread_policy({"min_spread": 0.5, "visible_divisor": 2, "bogus": 1})
        assert policy.min_spread == 0.5
        assert policy.visible_divisor == 2


class TestSendOrder:
    """Test AlgoExecutionService.send_order."""

    def test_fires_when_crossed_by_one_128th(self):
        """Test an order is emitted when bid exceeds offer by 1/128."""
        collector = UpdateCollector()
        service = AlgoExecutionService()
        service.add_listener(collector)

        algo = service.send_order(crossed_book(TICK_128))

        assert algo is not None
        order = algo.execution_order
        assert order.side is PricingSide.BID
        assert order.order_type is OrderType.MARKET
        assert order.price == MARKET_ORDER_PRICE
        assert order.visible_quantity == 2_500_000
        assert order.hidden_quantity == 7_500_000
        assert order.order_id == "US2YALGO0"
        assert not order.is_child_order
        assert collector.updates == [algo]
        assert service.get(CUSIP) is algo
        assert service.counter.value == 1

    def test_below_threshold_is_a_no_op(self):
        """Test no order and no notification below the threshold."""
        collector = UpdateCollector()
        service = AlgoExecutionService()
        service.add_listener(collector)

        assert service.send_order(crossed_book(1.0 / 256)) is None
        assert service.send_order(crossed_book(-TICK_128)) is None

        assert collector.updates == []
        assert service.counter.value == 0
        assert service.lookup(CUSIP) is None

    def test_sides_alternate_and_size_follows_side(self):
        """Test sides alternate BID/OFFER with the matching top size."""
        service = AlgoExecutionService()

        first = service.send_order(crossed_book(TICK_128)).execution_order
        second = service.send_order(crossed_book(TICK_128)).execution_order
        third = service.send_order(crossed_book(TICK_128)).execution_order

        assert [first.side, second.side, third.side] == [PricingSide.BID, PricingSide.OFFER, PricingSide.BID]
        # the offer side's best quantity is 20mm
        assert second.total_quantity == 20_000_000
        assert second.visible_quantity == 5_000_000
        assert second.order_id == "US2YALGO1"

    def test_injected_counter(self):
        service = AlgoExecutionService(counter=SequenceCounter(start=5))
        order = service.send_order(crossed_book(TICK_128)).execution_order
        assert order.side is PricingSide.OFFER
        assert order.order_id == "US2YALGO5"

    def test_one_sided_book_is_skipped(self):
        """Test a book with an empty side emits nothing."""
        book = OrderBook(product=make_bond(CUSIP), bid_stack=[Order(100.0, 1, PricingSide.BID)])
        assert AlgoExecutionService().send_order(book) is None

    def test_listener_reacts_to_market_data(self):
        """Test the listener sends orders for ingested books."""
        market_data = MarketDataService()
        service = AlgoExecutionService()
        market_data.add_listener(AlgoExecutionListener(service))

        market_data.ingest(crossed_book(TICK_128))

        assert service.lookup(CUSIP) is not None
