"""
Algo Execution Service

Aggresses the top of the book whenever the book is crossed by at least one
tick (1/128), alternating between the bid and the offer side.

Each emitted order:
- side: BID on even counter values, OFFER on odd ones
- size: full quantity of the best order on that side, split 1:3 visible:hidden
- type: MARKET, so the price field carries a sentinel
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from core.config import build_dataclass_config
from core.event_logging import log_event
from core.models import AlgoExecution, BidOffer, Bond, ExecutionOrder, OrderBook, OrderType, PricingSide
from core.rotation import SequenceCounter
from services.keyed_service import Dispatcher, KeyedService, ServiceEvent, ServiceListener
from services.market_data_service import best_bid_offer_of

logger = logging.getLogger(__name__)

MARKET_ORDER_PRICE = 1.0


@dataclass
class SpreadCrossingPolicy:
    min_spread: float = 1.0 / 128.0
    visible_divisor: int = 4
    order_id_tag: str = "ALGO"

    def should_aggress(self, best: BidOffer) -> bool:
        return best.bid_order.price - best.offer_order.price >= self.min_spread

    def side_for(self, counter: int) -> PricingSide:
        return PricingSide.BID if counter % 2 == 0 else PricingSide.OFFER

    def split(self, quantity: int) -> tuple[int, int]:
        visible = quantity // self.visible_divisor
        return visible, quantity - visible


def build_spread_policy(raw: Optional[Dict[str, Any]]) -> SpreadCrossingPolicy:
    return build_dataclass_config(SpreadCrossingPolicy, raw)


class AlgoExecutionService(KeyedService[AlgoExecution[Bond]]):
    """Keyed on product id."""

    def __init__(
        self,
        policy: Optional[SpreadCrossingPolicy] = None,
        counter: Optional[SequenceCounter] = None,
        dispatcher: Optional[Dispatcher] = None,
    ):
        super().__init__("AlgoExecutionService", dispatcher=dispatcher)
        self.policy = policy or SpreadCrossingPolicy()
        self.counter = counter or SequenceCounter()

    def send_order(self, book: OrderBook[Bond]) -> Optional[AlgoExecution[Bond]]:
        """
        Returns the emitted AlgoExecution, or None when the book is not crossed
        by enough to trade.
        """
        if not book.bid_stack or not book.offer_stack:
            logger.warning("No order for %s: one side of the book is empty", book.product.product_id)
            return None

        best = best_bid_offer_of(book)
        if not self.policy.should_aggress(best):
            logger.debug(
                "No order for %s: bid %.6f / offer %.6f below threshold",
                book.product.product_id,
                best.bid_order.price,
                best.offer_order.price,
            )
            return None

        n = self.counter.value
        side = self.policy.side_for(n)
        top = best.bid_order if side is PricingSide.BID else best.offer_order
        visible, hidden = self.policy.split(top.quantity)
        order = ExecutionOrder(
            product=book.product,
            side=side,
            order_id=f"{book.product.ticker}{self.policy.order_id_tag}{n}",
            order_type=OrderType.MARKET,
            price=MARKET_ORDER_PRICE,
            visible_quantity=visible,
            hidden_quantity=hidden,
            parent_order_id="",
            is_child_order=False,
        )
        algo = AlgoExecution(order)
        self._store(book.product.product_id, algo)

        log_event(
            "ORDER",
            f"Aggressing {side.value} side",
            symbol=book.product.ticker,
            extra={"order_id": order.order_id, "visible": visible, "hidden": hidden},
        )
        self.notify(ServiceEvent.UPDATE, algo)
        self.counter.advance()
        return algo


class AlgoExecutionListener(ServiceListener[OrderBook[Bond]]):
    """Registered on the MarketDataService."""

    def __init__(self, service: AlgoExecutionService):
        self.service = service

    def on_add(self, data: OrderBook[Bond]) -> None:
        self.service.send_order(data)
