"""
Execution Service

Receives algo executions, routes each one to a venue and republishes it as a
confirmed execution order.

Routing is done by the ExecutionListener: venues are taken round-robin from a
fixed list (BROKERTEC, ESPEED, CME) before execute() is called.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence

from core.event_logging import log_event
from core.models import AlgoExecution, Bond, ExecutionOrder, Market
from core.rotation import RoundRobin
from services.keyed_service import Dispatcher, KeyedService, ServiceEvent, ServiceListener

logger = logging.getLogger(__name__)

DEFAULT_VENUES = (Market.BROKERTEC, Market.ESPEED, Market.CME)


class ExecutionService(KeyedService[ExecutionOrder[Bond]]):
    """Keyed on product id."""

    def __init__(self, dispatcher: Optional[Dispatcher] = None):
        super().__init__("ExecutionService", dispatcher=dispatcher)
        self._venues: Dict[str, Market] = {}

    def execute(self, order: ExecutionOrder[Bond], venue: Market) -> None:
        self._store(order.product.product_id, order)
        self._venues[order.order_id] = venue
        log_event(
            "EXECUTION",
            f"Executing {order.side.value} order on {venue.value}",
            symbol=order.product.ticker,
            extra={"order_id": order.order_id, "qty": order.total_quantity},
        )
        self.notify(ServiceEvent.ADD, order)

    def venue_for(self, order_id: str) -> Optional[Market]:
        return self._venues.get(order_id)


class ExecutionListener(ServiceListener[AlgoExecution[Bond]]):
    """Registered on the AlgoExecutionService; owns the venue rotation."""

    def __init__(self, service: ExecutionService, venues: Optional[RoundRobin[Market]] = None):
        self.service = service
        self.venues = venues or RoundRobin(DEFAULT_VENUES)

    def on_update(self, data: AlgoExecution[Bond]) -> None:
        _, venue = self.venues.next()
        self.service.execute(data.execution_order, venue)


def build_venue_rotation(names: Optional[Sequence[str]] = None) -> RoundRobin[Market]:
    if not names:
        return RoundRobin(DEFAULT_VENUES)
    return RoundRobin([Market(str(name).upper()) for name in names])
