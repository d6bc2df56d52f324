"""
Market Data Service

Holds one order book per instrument.

Features:
- ingest(book) -> store and notify listeners (algo execution)
- best_bid_offer(product_id) -> top of book
- aggregate_depth(product_id) -> merge same-price orders per side
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from core.event_logging import log_event
from core.models import BidOffer, Bond, Order, OrderBook, PricingSide
from core.reference_data import make_bond
from services.keyed_service import Dispatcher, KeyedService, ServiceEvent

logger = logging.getLogger(__name__)


def _empty_book(product_id: str) -> OrderBook[Bond]:
    return OrderBook(product=make_bond(product_id))


def find_best_order(stack: List[Order], side: PricingSide) -> Order:
    """
    Highest price for bids, lowest for offers. On equal prices the first
    order in stack order wins.
    """
    if not stack:
        raise ValueError(f"Cannot pick a best {side.value} from an empty stack")
    best = stack[0]
    for order in stack[1:]:
        if side is PricingSide.BID and order.price > best.price:
            best = order
        elif side is PricingSide.OFFER and order.price < best.price:
            best = order
    return best


def best_bid_offer_of(book: OrderBook) -> BidOffer:
    return BidOffer(
        bid_order=find_best_order(book.bid_stack, PricingSide.BID),
        offer_order=find_best_order(book.offer_stack, PricingSide.OFFER),
    )


def _merge_stack(stack: List[Order], side: PricingSide) -> List[Order]:
    # dict keeps first-seen price order
    merged: Dict[float, int] = {}
    for order in stack:
        merged[order.price] = merged.get(order.price, 0) + order.quantity
    return [Order(price, quantity, side) for price, quantity in merged.items()]


class MarketDataService(KeyedService[OrderBook[Bond]]):
    """Keyed on product id."""

    def __init__(self, dispatcher: Optional[Dispatcher] = None):
        super().__init__("MarketDataService", default_factory=_empty_book, dispatcher=dispatcher)

    def ingest(self, book: OrderBook[Bond]) -> None:
        self._store(book.product.product_id, book)
        log_event(
            "BOOK",
            "Order book received",
            symbol=book.product.ticker,
            extra={"bids": len(book.bid_stack), "offers": len(book.offer_stack)},
        )
        self.notify(ServiceEvent.ADD, book)

    def best_bid_offer(self, product_id: str) -> BidOffer:
        return best_bid_offer_of(self.get(product_id))

    def aggregate_depth(self, product_id: str) -> OrderBook[Bond]:
        book = self.get(product_id)
        aggregated = OrderBook(
            product=book.product,
            bid_stack=_merge_stack(book.bid_stack, PricingSide.BID),
            offer_stack=_merge_stack(book.offer_stack, PricingSide.OFFER),
        )
        logger.debug(
            "Aggregated %s: bids %d -> %d, offers %d -> %d",
            product_id,
            len(book.bid_stack),
            len(aggregated.bid_stack),
            len(book.offer_stack),
            len(aggregated.offer_stack),
        )
        return self._store(product_id, aggregated)
