"""
Flat-file inbound feeds.

Features:
- One reader per feed file: prices, trades, market data, inquiries
- Comma-separated rows, whitespace trimmed, optional header line
- Prices in fractional notation ("99-16+"); plain decimals also accepted
- Bad rows and unknown CUSIPs are logged with file/line and skipped
- Market data comes in fixed-size runs (5 bids + 5 offers); a run with any
  bad row is discarded whole
"""

from __future__ import annotations

import csv
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Generic, Iterator, List, Optional, Sequence, Tuple, TypeVar

from connectors.base import InboundFeed
from core.errors import MalformedPriceError, MalformedRecordError, UnknownInstrumentError
from core.event_logging import log_event
from core.models import Bond, Inquiry, InquiryState, Order, OrderBook, Price, PricingSide, Side, Trade
from core.price_fractions import price_from_fractional
from core.reference_data import make_bond
from services.keyed_service import KeyedService

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BOOK_DEPTH = 5

Row = Tuple[int, List[str]]


@dataclass
class FeedStats:
    published: int = 0
    skipped: int = 0


def parse_price(text: str) -> float:
    raw = (text or "").strip()
    if "-" in raw:
        return price_from_fractional(raw)
    try:
        value = float(raw)
    except ValueError:
        raise MalformedPriceError(f"Malformed price: {text!r}") from None
    if not math.isfinite(value):
        raise MalformedPriceError(f"Non-finite price: {text!r}")
    return value


def _parse_int(text: str, field_name: str) -> int:
    raw = (text or "").strip()
    try:
        return int(raw)
    except ValueError:
        pass
    # "1e6" style quantities are fine as long as they are whole
    try:
        value = float(raw)
    except ValueError:
        raise MalformedRecordError(f"Bad {field_name}: {text!r}") from None
    if not math.isfinite(value) or not value.is_integer():
        raise MalformedRecordError(f"Bad {field_name}: {text!r}")
    return int(value)


def _parse_enum(enum_cls, text: str, field_name: str):
    try:
        return enum_cls(text.strip().upper())
    except ValueError:
        raise MalformedRecordError(f"Bad {field_name}: {text!r}") from None


class FileFeed(InboundFeed, Generic[T]):
    """
    Base for the flat-file feeds.

    Subclasses define ``columns`` and ``parse_row``; ``records()`` yields the
    parsed objects and ``produce()`` pushes each one into the target service.
    """

    columns: Sequence[str] = ()

    def __init__(self, path: str | Path, service: Optional[KeyedService] = None):
        self.path = Path(path)
        self.service = service
        self.stats = FeedStats()

    def parse_row(self, fields: List[str]) -> T:
        raise NotImplementedError

    def publish(self, record: T) -> None:
        if self.service is None:
            raise RuntimeError(f"{type(self).__name__} has no target service")
        self.service.ingest(record)

    def produce(self) -> int:
        published_before = self.stats.published
        for record in self.records():
            self.publish(record)
            self.stats.published += 1
        count = self.stats.published - published_before
        log_event(
            "INFO",
            f"Replayed {self.path.name}",
            extra={"published": count, "skipped": self.stats.skipped},
        )
        return count

    def records(self) -> Iterator[T]:
        for line_no, fields in self._rows():
            try:
                yield self._parse_checked(fields)
            except (MalformedRecordError, MalformedPriceError, UnknownInstrumentError) as exc:
                self._skip(line_no, exc)

    # ------------------------------------------------------------ helpers
    def _rows(self) -> Iterator[Row]:
        if not self.path.exists():
            logger.warning("Feed file %s does not exist; nothing to replay", self.path)
            return
        with open(self.path, "r", encoding="utf-8", newline="") as f:
            first = True
            for line_no, row in enumerate(csv.reader(f), start=1):
                fields = [cell.strip() for cell in row]
                if not any(fields):
                    continue
                if first:
                    first = False
                    if self._is_header(fields):
                        continue
                yield line_no, fields

    def _is_header(self, fields: List[str]) -> bool:
        if not self.columns:
            return False
        return fields[0].lower() == self.columns[0].lower()

    def _parse_checked(self, fields: List[str]) -> T:
        if len(fields) != len(self.columns):
            raise MalformedRecordError(
                f"Expected {len(self.columns)} fields ({','.join(self.columns)}), got {len(fields)}"
            )
        return self.parse_row(fields)

    def _skip(self, line_no: int, exc: Exception) -> None:
        self.stats.skipped += 1
        logger.warning("Skipping %s:%d: %s", self.path.name, line_no, exc)


class PriceFeed(FileFeed[Price[Bond]]):
    columns = ("cusip", "bid", "ask")

    def parse_row(self, fields: List[str]) -> Price[Bond]:
        bond = make_bond(fields[0])
        bid = parse_price(fields[1])
        ask = parse_price(fields[2])
        return Price(product=bond, mid=(bid + ask) / 2.0, bid_offer_spread=ask - bid)


class TradeFeed(FileFeed[Trade[Bond]]):
    columns = ("cusip", "tradeId", "price", "book", "quantity", "side")

    def parse_row(self, fields: List[str]) -> Trade[Bond]:
        bond = make_bond(fields[0])
        if not fields[1] or not fields[3]:
            raise MalformedRecordError("Trade id and book are required")
        return Trade(
            product=bond,
            trade_id=fields[1],
            price=parse_price(fields[2]),
            book=fields[3],
            quantity=_parse_int(fields[4], "quantity"),
            side=_parse_enum(Side, fields[5], "side"),
        )


class InquiryFeed(FileFeed[Inquiry[Bond]]):
    columns = ("inquiryId", "cusip", "side", "quantity", "price", "state")

    def parse_row(self, fields: List[str]) -> Inquiry[Bond]:
        if not fields[0]:
            raise MalformedRecordError("Inquiry id is required")
        return Inquiry(
            inquiry_id=fields[0],
            product=make_bond(fields[1]),
            side=_parse_enum(Side, fields[2], "side"),
            quantity=_parse_int(fields[3], "quantity"),
            price=parse_price(fields[4]),
            state=_parse_enum(InquiryState, fields[5], "state"),
        )


class MarketDataFeed(FileFeed[OrderBook[Bond]]):
    """
    Each run of ``2 * book_depth`` consecutive rows is one order book snapshot
    for a single CUSIP. Rows keep their file order within each side's stack.
    """

    columns = ("cusip", "price", "quantity", "side")

    def __init__(
        self,
        path: str | Path,
        service: Optional[KeyedService] = None,
        *,
        book_depth: int = DEFAULT_BOOK_DEPTH,
    ):
        super().__init__(path, service)
        if book_depth < 1:
            raise ValueError("book_depth must be >= 1")
        self.run_length = 2 * book_depth

    def parse_row(self, fields: List[str]) -> Tuple[Bond, Order]:  # type: ignore[override]
        bond = make_bond(fields[0])
        order = Order(
            price=parse_price(fields[1]),
            quantity=_parse_int(fields[2], "quantity"),
            side=_parse_enum(PricingSide, fields[3], "side"),
        )
        return bond, order

    def records(self) -> Iterator[OrderBook[Bond]]:
        run: List[Row] = []
        for row in self._rows():
            run.append(row)
            if len(run) == self.run_length:
                book = self._build_book(run)
                if book is not None:
                    yield book
                run = []
        if run:
            self.stats.skipped += len(run)
            logger.warning(
                "Discarding incomplete market data run at %s:%d (%d of %d rows)",
                self.path.name,
                run[0][0],
                len(run),
                self.run_length,
            )

    def _build_book(self, run: List[Row]) -> Optional[OrderBook[Bond]]:
        product: Optional[Bond] = None
        bids: List[Order] = []
        offers: List[Order] = []
        for line_no, fields in run:
            try:
                bond, order = self._parse_checked(fields)
                if product is not None and bond != product:
                    raise MalformedRecordError(
                        f"Run for {product.product_id} contains a row for {bond.product_id}"
                    )
            except (MalformedRecordError, MalformedPriceError, UnknownInstrumentError) as exc:
                self._skip(line_no, exc)
                logger.warning(
                    "Discarding market data run %s:%d-%d",
                    self.path.name,
                    run[0][0],
                    run[-1][0],
                )
                self.stats.skipped += len(run) - 1
                return None
            product = bond
            (bids if order.side is PricingSide.BID else offers).append(order)
        return OrderBook(product=product, bid_stack=bids, offer_stack=offers)
