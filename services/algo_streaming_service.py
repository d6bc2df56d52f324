"""
Algo Streaming Service

Turns each price update into a two-sided PriceStream. Sizing comes from an
AlternatingSizePolicy: visible size flips between two fixed sizes on every
call and hidden size is a fixed multiple of visible.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from core.config import build_dataclass_config
from core.event_logging import log_event
from core.models import AlgoStream, Bond, Price, PriceStream, PriceStreamOrder, PricingSide
from core.rotation import SequenceCounter
from services.keyed_service import Dispatcher, KeyedService, ServiceEvent, ServiceListener

logger = logging.getLogger(__name__)


@dataclass
class AlternatingSizePolicy:
    """
    ``sizes[0]`` is quoted on even counter values, ``sizes[1]`` on odd ones.
    """

    sizes: List[int] = field(default_factory=lambda: [2_000_000, 1_000_000])
    hidden_multiplier: int = 2

    def __post_init__(self) -> None:
        if len(self.sizes) != 2:
            raise ValueError(f"AlternatingSizePolicy needs exactly two sizes, got {self.sizes}")
        self.sizes = [int(s) for s in self.sizes]

    def quantities(self, counter: int) -> Tuple[int, int]:
        visible = self.sizes[counter % 2]
        return visible, self.hidden_multiplier * visible


def build_size_policy(raw: Optional[Dict[str, Any]]) -> AlternatingSizePolicy:
    return build_dataclass_config(AlternatingSizePolicy, raw)


class AlgoStreamingService(KeyedService[AlgoStream[Bond]]):
    """Keyed on product id."""

    def __init__(
        self,
        policy: Optional[AlternatingSizePolicy] = None,
        counter: Optional[SequenceCounter] = None,
        dispatcher: Optional[Dispatcher] = None,
    ):
        super().__init__("AlgoStreamingService", dispatcher=dispatcher)
        self.policy = policy or AlternatingSizePolicy()
        self.counter = counter or SequenceCounter()

    def publish_price(self, price: Price[Bond]) -> AlgoStream[Bond]:
        visible, hidden = self.policy.quantities(self.counter.value)
        bid_order = PriceStreamOrder(price.bid, visible, hidden, PricingSide.BID)
        offer_order = PriceStreamOrder(price.offer, visible, hidden, PricingSide.OFFER)
        stream = AlgoStream(PriceStream(price.product, bid_order, offer_order))
        self._store(price.product.product_id, stream)

        log_event(
            "STREAM",
            "Algo stream built",
            symbol=price.product.ticker,
            extra={"visible": visible, "hidden": hidden, "n": self.counter.value},
        )
        self.notify(ServiceEvent.UPDATE, stream)
        self.counter.advance()
        return stream


class AlgoStreamingListener(ServiceListener[Price[Bond]]):
    """Registered on the PricingService."""

    def __init__(self, service: AlgoStreamingService):
        self.service = service

    def on_add(self, data: Price[Bond]) -> None:
        self.service.publish_price(data)
