"""
Streaming Service

Republishes algo-built price streams to downstream consumers.
"""

from __future__ import annotations

import logging
from typing import Optional

from core.event_logging import log_event
from core.models import AlgoStream, Bond, PriceStream
from services.keyed_service import Dispatcher, KeyedService, ServiceEvent, ServiceListener

logger = logging.getLogger(__name__)


class StreamingService(KeyedService[PriceStream[Bond]]):
    """Keyed on product id."""

    def __init__(self, dispatcher: Optional[Dispatcher] = None):
        super().__init__("StreamingService", dispatcher=dispatcher)

    def publish_price(self, price_stream: PriceStream[Bond]) -> None:
        self._store(price_stream.product.product_id, price_stream)
        log_event("STREAM", "Publishing price stream", symbol=price_stream.product.ticker)
        self.notify(ServiceEvent.ADD, price_stream)


class StreamingListener(ServiceListener[AlgoStream[Bond]]):
    """Registered on the AlgoStreamingService."""

    def __init__(self, service: StreamingService):
        self.service = service

    def on_update(self, data: AlgoStream[Bond]) -> None:
        self.service.publish_price(data.price_stream)
