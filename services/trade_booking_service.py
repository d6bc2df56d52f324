"""
Trade Booking Service

Books trades keyed on trade id. Trades arrive either from the trade feed
(ingest) or from confirmed executions via the TradeBookingListener, which
assigns books round-robin and books the counterparty side of the fill.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from core.event_logging import log_event
from core.models import Bond, ExecutionOrder, PricingSide, Side, Trade
from core.rotation import RoundRobin
from services.keyed_service import Dispatcher, KeyedService, ServiceEvent, ServiceListener

logger = logging.getLogger(__name__)

DEFAULT_BOOKS = ("TRSY1", "TRSY2", "TRSY3")
TRADE_ID_TAG = "TRD"


class TradeBookingService(KeyedService[Trade[Bond]]):
    """Keyed on trade id."""

    def __init__(self, dispatcher: Optional[Dispatcher] = None):
        super().__init__("TradeBookingService", dispatcher=dispatcher)

    def ingest(self, trade: Trade[Bond]) -> None:
        self.book_trade(trade)

    def book_trade(self, trade: Trade[Bond]) -> None:
        self._store(trade.trade_id, trade)
        log_event(
            "TRADE",
            f"Booked {trade.side.value} {trade.quantity}",
            symbol=trade.product.ticker,
            extra={"trade_id": trade.trade_id, "book": trade.book},
        )
        self.notify(ServiceEvent.UPDATE, trade)


def trade_from_execution(order: ExecutionOrder[Bond], book: str, sequence: int) -> Trade[Bond]:
    """
    The desk books the counterparty's side of the fill: lifting the offer
    is a BUY, hitting the bid is a SELL.
    """
    side = Side.BUY if order.side is PricingSide.OFFER else Side.SELL
    return Trade(
        product=order.product,
        trade_id=f"{order.product.ticker}{TRADE_ID_TAG}{sequence}",
        price=order.price,
        book=book,
        quantity=order.total_quantity,
        side=side,
    )


class TradeBookingListener(ServiceListener[ExecutionOrder[Bond]]):
    """Registered on the ExecutionService; owns the book rotation."""

    def __init__(self, service: TradeBookingService, books: Optional[RoundRobin[str]] = None):
        self.service = service
        self.books = books or RoundRobin(DEFAULT_BOOKS)

    def on_add(self, data: ExecutionOrder[Bond]) -> None:
        index, book = self.books.next()
        self.service.book_trade(trade_from_execution(data, book, index))


def build_book_rotation(names: Optional[Sequence[str]] = None) -> RoundRobin[str]:
    return RoundRobin(list(names) if names else DEFAULT_BOOKS)
