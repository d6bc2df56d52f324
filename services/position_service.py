"""
Position Service

Per-instrument, per-book signed quantity ledger. Positions for the whole
reference universe exist (at zero) from construction.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from core.event_logging import log_event
from core.models import Bond, Position, Side, Trade
from core.reference_data import all_bonds, make_bond
from services.keyed_service import Dispatcher, KeyedService, ServiceEvent, ServiceListener

logger = logging.getLogger(__name__)


def _flat_position(product_id: str) -> Position[Bond]:
    return Position(product=make_bond(product_id))


class PositionService(KeyedService[Position[Bond]]):
    """Keyed on product id."""

    def __init__(self, universe: Optional[Iterable[Bond]] = None, dispatcher: Optional[Dispatcher] = None):
        super().__init__("PositionService", default_factory=_flat_position, dispatcher=dispatcher)
        for bond in universe if universe is not None else all_bonds():
            self._store(bond.product_id, Position(product=bond))

    def apply_trade(self, trade: Trade[Bond]) -> Position[Bond]:
        position = self.get(trade.product.product_id)
        signed = -trade.quantity if trade.side is Side.SELL else trade.quantity
        position.add_position(trade.book, signed)

        log_event(
            "POSITION",
            f"Applied {signed:+d} to {trade.book}",
            symbol=trade.product.ticker,
            extra={"aggregate": position.aggregate},
        )
        # risk listens for the update, historical capture for the add
        self.notify_sequence((ServiceEvent.UPDATE, ServiceEvent.ADD), position)
        return position


class PositionListener(ServiceListener[Trade[Bond]]):
    """Registered on the TradeBookingService."""

    def __init__(self, service: PositionService):
        self.service = service

    def on_update(self, data: Trade[Bond]) -> None:
        self.service.apply_trade(data)
