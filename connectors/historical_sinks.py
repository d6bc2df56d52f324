"""
Append-only flat-file output sinks.

Every line starts with a wall-clock timestamp ("2024-03-01 14:05:09.123") in
the configured timezone, followed by comma-separated fields. Prices are
written in fractional notation.

Files:
- gui.txt          ts,cusip,bid,offer
- streaming.txt    ts,cusip,BID,price,visible,hidden  (and the OFFER line)
- executions.txt   ts,cusip,side,orderId,orderType,price,visible,hidden,YES|NO
- positions.txt    ts,cusip,TRSY1,q1,TRSY2,q2,TRSY3,q3,AGGREGATE,total
- risk.txt         ts,cusip,pv01,qty  followed by  ts,sector,pv01,qty
- allinquiries.txt ts,inquiryId,cusip,side,qty,price,state
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Callable, Generic, List, Optional, Sequence, TypeVar

import pytz

from connectors.base import OutboundSink
from core.models import PV01, AlgoStream, Bond, ExecutionOrder, Inquiry, Position, Price, PriceStreamOrder
from core.price_fractions import price_to_fractional
from services.risk_service import RiskService

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEZONE = "UTC"
DEFAULT_BOOKS = ("TRSY1", "TRSY2", "TRSY3")

Now = Callable[[], datetime]


def format_timestamp(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d %H:%M:%S.") + f"{moment.microsecond // 1000:03d}"


def _fmt_number(value: float) -> str:
    return f"{value:.6g}"


class AppendFileSink(OutboundSink[T], Generic[T]):
    """
    Base for the output files. Subclasses turn one value into one or more
    rows of fields; the timestamp column is added here.
    """

    def __init__(self, path: str | Path, *, timezone: str = DEFAULT_TIMEZONE, now: Optional[Now] = None):
        self.path = Path(path)
        self.tz = pytz.timezone(timezone)
        self._now = now or (lambda: datetime.now(self.tz))
        self.written = 0
        self.failed = 0

    def rows(self, value: T) -> List[List[str]]:
        raise NotImplementedError

    def consume(self, value: T) -> None:
        stamp = format_timestamp(self._now())
        lines = [",".join([stamp, *row]) for row in self.rows(value)]
        try:
            parent = self.path.parent
            if str(parent):
                os.makedirs(parent, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                for line in lines:
                    f.write(line + "\n")
        except OSError as exc:
            self.failed += 1
            logger.error("Failed to write %d line(s) to %s: %s", len(lines), self.path, exc)
            return
        self.written += len(lines)


class GUIPriceSink(AppendFileSink[Price[Bond]]):
    def rows(self, value: Price[Bond]) -> List[List[str]]:
        return [[value.product.product_id, price_to_fractional(value.bid), price_to_fractional(value.offer)]]


class StreamingSink(AppendFileSink[AlgoStream[Bond]]):
    """Accepts an AlgoStream or a bare PriceStream; writes the BID line then the OFFER line."""

    def rows(self, value) -> List[List[str]]:
        stream = getattr(value, "price_stream", value)
        product_id = stream.product.product_id
        return [self._side_row(product_id, order) for order in (stream.bid_order, stream.offer_order)]

    @staticmethod
    def _side_row(product_id: str, order: PriceStreamOrder) -> List[str]:
        return [
            product_id,
            order.side.value,
            price_to_fractional(order.price),
            str(order.visible_quantity),
            str(order.hidden_quantity),
        ]


class ExecutionSink(AppendFileSink[ExecutionOrder[Bond]]):
    def rows(self, value: ExecutionOrder[Bond]) -> List[List[str]]:
        return [
            [
                value.product.product_id,
                value.side.value,
                value.order_id,
                value.order_type.value,
                price_to_fractional(value.price),
                str(value.visible_quantity),
                str(value.hidden_quantity),
                "YES" if value.is_child_order else "NO",
            ]
        ]


class PositionSink(AppendFileSink[Position[Bond]]):
    def __init__(self, path: str | Path, *, books: Sequence[str] = DEFAULT_BOOKS, **kwargs):
        super().__init__(path, **kwargs)
        self.books = tuple(books)

    def rows(self, value: Position[Bond]) -> List[List[str]]:
        row = [value.product.product_id]
        for book in self.books:
            row.extend([book, str(value.get_position(book))])
        row.extend(["AGGREGATE", str(value.aggregate)])
        return [row]


class RiskSink(AppendFileSink[PV01[Bond]]):
    """
    Writes the instrument's PV01 row, then asks the RiskService for a fresh
    value of the instrument's sector bucket and writes that too.
    """

    def __init__(self, path: str | Path, risk_service: RiskService, **kwargs):
        super().__init__(path, **kwargs)
        self.risk_service = risk_service

    def rows(self, value: PV01[Bond]) -> List[List[str]]:
        product_id = value.product.product_id
        rows = [[product_id, _fmt_number(value.pv01), str(value.quantity)]]
        sector = self.risk_service.bucket_for(product_id)
        bucket = self.risk_service.recompute_bucket(sector)
        rows.append([sector, _fmt_number(bucket.pv01), str(bucket.quantity)])
        return rows


class InquirySink(AppendFileSink[Inquiry[Bond]]):
    def rows(self, value: Inquiry[Bond]) -> List[List[str]]:
        return [
            [
                value.inquiry_id,
                value.product.product_id,
                value.side.value,
                str(value.quantity),
                price_to_fractional(value.price),
                value.state.value,
            ]
        ]
