"""
Inquiry transport: the client side of the quote protocol.

A quote sent against a RECEIVED inquiry is acknowledged in two steps, each of
which goes back into the InquiryService: QUOTED, then DONE. Anything else
(rejections included) is logged and goes no further.
"""

from __future__ import annotations

import logging
from typing import Optional

from connectors.base import OutboundSink
from core.event_logging import log_event
from core.models import Bond, Inquiry, InquiryState
from services.inquiry_service import InquiryService, advance_state

logger = logging.getLogger(__name__)


class InquiryTransport(OutboundSink[Inquiry[Bond]]):
    def __init__(self, service: Optional[InquiryService] = None):
        self.service = service
        self.sent = 0
        self.rejected = 0

    def bind(self, service: InquiryService) -> None:
        self.service = service
        service.set_transport(self)

    def consume(self, value: Inquiry[Bond]) -> None:
        if self.service is None:
            raise RuntimeError("InquiryTransport is not bound to an InquiryService")

        if value.state is not InquiryState.RECEIVED:
            self.rejected += 1
            log_event(
                "INQUIRY",
                f"Inquiry {value.inquiry_id} rejected in state {value.state.value}",
                symbol=value.product.ticker,
            )
            return

        self.sent += 1
        quoted = advance_state(value, InquiryState.QUOTED)
        self.service.ingest(quoted)
        done = advance_state(quoted, InquiryState.DONE)
        self.service.ingest(done)
