"""
Pricing Service

Holds the latest two-way price per instrument and fans every update out to
its listeners (GUI throttle, algo streaming).
"""

from __future__ import annotations

import logging
from typing import Optional

from core.event_logging import log_event
from core.models import Bond, Price
from core.reference_data import make_bond
from services.keyed_service import Dispatcher, KeyedService, ServiceEvent

logger = logging.getLogger(__name__)


def _zero_price(product_id: str) -> Price[Bond]:
    return Price(product=make_bond(product_id), mid=0.0, bid_offer_spread=0.0)


class PricingService(KeyedService[Price[Bond]]):
    """Keyed on product id."""

    def __init__(self, dispatcher: Optional[Dispatcher] = None):
        super().__init__("PricingService", default_factory=_zero_price, dispatcher=dispatcher)

    def ingest(self, price: Price[Bond]) -> None:
        product_id = price.product.product_id
        self._store(product_id, price)
        log_event(
            "PRICE",
            "Price update",
            symbol=price.product.ticker,
            extra={"mid": f"{price.mid:.6f}", "spread": f"{price.bid_offer_spread:.6f}"},
        )
        self.notify(ServiceEvent.ADD, price)
