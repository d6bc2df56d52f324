"""
GUI Service

Time-gated sink for price updates. The GUIThrottleListener sits on the
PricingService and only forwards a price when the PublicationThrottle allows
it; the service stores the price and hands it straight to its output sink.
"""

from __future__ import annotations

import logging
from typing import Optional

from connectors.base import OutboundSink
from core.event_logging import log_event
from core.models import Bond, Price
from core.throttle import Clock, PublicationThrottle, ThrottleConfig
from services.keyed_service import Dispatcher, KeyedService, ServiceListener

logger = logging.getLogger(__name__)


class GUIService(KeyedService[Price[Bond]]):
    """Keyed on product id."""

    def __init__(
        self,
        config: Optional[ThrottleConfig] = None,
        sink: Optional[OutboundSink[Price[Bond]]] = None,
        dispatcher: Optional[Dispatcher] = None,
    ):
        super().__init__("GUIService", dispatcher=dispatcher)
        self.config = config or ThrottleConfig()
        self.sink = sink

    def set_sink(self, sink: OutboundSink[Price[Bond]]) -> None:
        self.sink = sink

    def add_price(self, price: Price[Bond]) -> None:
        self._store(price.product.product_id, price)
        log_event("GUI", "Publishing price to GUI", symbol=price.product.ticker)
        if self.sink is None:
            logger.debug("GUIService has no sink; price for %s kept in memory only", price.product.product_id)
            return
        self.sink.consume(price)


class GUIThrottleListener(ServiceListener[Price[Bond]]):
    """Registered on the PricingService; drops what the throttle rejects."""

    def __init__(self, service: GUIService, clock: Optional[Clock] = None):
        self.service = service
        self.throttle = PublicationThrottle(config=service.config, clock=clock)

    def on_add(self, data: Price[Bond]) -> None:
        if self.throttle.try_acquire():
            self.service.add_price(data)
