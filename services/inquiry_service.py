"""
Inquiry Service

Client quote requests, keyed on inquiry id.

States:
- RECEIVED (initial)
- QUOTED -> DONE (terminal)
- REJECTED (terminal)

A quote or rejection is handed to the inquiry transport, which drives the
rest of the protocol by re-ingesting the inquiry in its new state.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, FrozenSet, Optional

from connectors.base import OutboundSink
from core.errors import InquiryStateError
from core.event_logging import log_event
from core.models import Bond, Inquiry, InquiryState
from services.keyed_service import Dispatcher, KeyedService, ServiceEvent, ServiceListener

logger = logging.getLogger(__name__)

DEFAULT_QUOTE_PRICE = 100.0

_ALLOWED: Dict[InquiryState, FrozenSet[InquiryState]] = {
    InquiryState.RECEIVED: frozenset({InquiryState.QUOTED, InquiryState.REJECTED, InquiryState.CUSTOMER_REJECTED}),
    InquiryState.QUOTED: frozenset({InquiryState.DONE, InquiryState.CUSTOMER_REJECTED}),
    InquiryState.DONE: frozenset(),
    InquiryState.REJECTED: frozenset(),
    InquiryState.CUSTOMER_REJECTED: frozenset(),
}


def advance_state(inquiry: Inquiry[Bond], new_state: InquiryState) -> Inquiry[Bond]:
    """Return a copy of ``inquiry`` in ``new_state``; backward moves raise InquiryStateError."""
    if new_state not in _ALLOWED[inquiry.state]:
        raise InquiryStateError(
            f"Inquiry {inquiry.inquiry_id} cannot move from {inquiry.state.value} to {new_state.value}",
            details={"inquiry_id": inquiry.inquiry_id},
        )
    return replace(inquiry, state=new_state)


class InquiryService(KeyedService[Inquiry[Bond]]):
    """Keyed on inquiry id."""

    def __init__(
        self,
        transport: Optional[OutboundSink[Inquiry[Bond]]] = None,
        dispatcher: Optional[Dispatcher] = None,
    ):
        super().__init__("InquiryService", dispatcher=dispatcher)
        self.transport = transport

    def set_transport(self, transport: OutboundSink[Inquiry[Bond]]) -> None:
        self.transport = transport

    def ingest(self, inquiry: Inquiry[Bond]) -> None:
        self._store(inquiry.inquiry_id, inquiry)
        log_event(
            "INQUIRY",
            f"Inquiry {inquiry.inquiry_id} {inquiry.state.value}",
            symbol=inquiry.product.ticker,
            extra={"side": inquiry.side.value, "qty": inquiry.quantity},
        )
        # capture gets the add, business logic reacts to the update
        self.notify_sequence((ServiceEvent.ADD, ServiceEvent.UPDATE), inquiry)

    def send_quote(self, inquiry_id: str, price: float) -> Inquiry[Bond]:
        inquiry = replace(self.get(inquiry_id), price=price)
        self._store(inquiry_id, inquiry)
        log_event("INQUIRY", f"Quoting {inquiry_id} at {price}", symbol=inquiry.product.ticker)
        self._send(inquiry)
        return inquiry

    def reject_inquiry(self, inquiry_id: str) -> Inquiry[Bond]:
        inquiry = advance_state(self.get(inquiry_id), InquiryState.REJECTED)
        self._store(inquiry_id, inquiry)
        log_event("INQUIRY", f"Rejecting {inquiry_id}", symbol=inquiry.product.ticker, level=logging.WARNING)
        self._send(inquiry)
        return inquiry

    def _send(self, inquiry: Inquiry[Bond]) -> None:
        if self.transport is None:
            logger.warning("InquiryService has no transport; %s not sent", inquiry.inquiry_id)
            return
        self.transport.consume(inquiry)


class InquiryListener(ServiceListener[Inquiry[Bond]]):
    """Registered on the InquiryService; auto-quotes every new inquiry."""

    def __init__(self, service: InquiryService, quote_price: float = DEFAULT_QUOTE_PRICE):
        self.service = service
        self.quote_price = quote_price

    def on_update(self, data: Inquiry[Bond]) -> None:
        if data.state is InquiryState.RECEIVED:
            self.service.send_quote(data.inquiry_id, self.quote_price)
