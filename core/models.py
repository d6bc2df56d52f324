"""
Domain types shared by every service.

Products are immutable; the records services store per key (positions, PV01)
are mutated in place by their owning service only. Inquiries change state by
copy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Generic, List, Tuple, TypeVar


class PricingSide(str, Enum):
    BID = "BID"
    OFFER = "OFFER"


class Side(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderType(str, Enum):
    FOK = "FOK"
    IOC = "IOC"
    MARKET = "MARKET"
    LIMIT = "LIMIT"
    STOP = "STOP"


class Market(str, Enum):
    BROKERTEC = "BROKERTEC"
    ESPEED = "ESPEED"
    CME = "CME"


class InquiryState(str, Enum):
    RECEIVED = "RECEIVED"
    QUOTED = "QUOTED"
    DONE = "DONE"
    REJECTED = "REJECTED"
    CUSTOMER_REJECTED = "CUSTOMER_REJECTED"


# ---------------------------------------------------------------- products
@dataclass(frozen=True)
class Bond:
    product_id: str
    ticker: str
    coupon: float
    maturity: date
    id_type: str = "CUSIP"

    def __str__(self) -> str:
        return f"{self.ticker} {self.coupon:.5f} {self.maturity.isoformat()}"


@dataclass(frozen=True)
class BucketedSector:
    """Named group of bonds used only as a risk-aggregation key."""

    name: str
    products: Tuple[Bond, ...]

    @property
    def product_id(self) -> str:
        return self.name


ProductT = TypeVar("ProductT")


# -------------------------------------------------------------- market data
@dataclass(frozen=True)
class Order:
    price: float
    quantity: int
    side: PricingSide


@dataclass(frozen=True)
class BidOffer:
    bid_order: Order
    offer_order: Order


@dataclass
class OrderBook(Generic[ProductT]):
    product: ProductT
    bid_stack: List[Order] = field(default_factory=list)
    offer_stack: List[Order] = field(default_factory=list)


@dataclass(frozen=True)
class Price(Generic[ProductT]):
    product: ProductT
    mid: float
    bid_offer_spread: float

    @property
    def bid(self) -> float:
        return self.mid - 0.5 * self.bid_offer_spread

    @property
    def offer(self) -> float:
        return self.mid + 0.5 * self.bid_offer_spread


# ---------------------------------------------------------------- streaming
@dataclass(frozen=True)
class PriceStreamOrder:
    price: float
    visible_quantity: int
    hidden_quantity: int
    side: PricingSide


@dataclass(frozen=True)
class PriceStream(Generic[ProductT]):
    product: ProductT
    bid_order: PriceStreamOrder
    offer_order: PriceStreamOrder


@dataclass(frozen=True)
class AlgoStream(Generic[ProductT]):
    price_stream: PriceStream[ProductT]

    @property
    def product(self) -> ProductT:
        return self.price_stream.product


# ---------------------------------------------------------------- execution
@dataclass(frozen=True)
class ExecutionOrder(Generic[ProductT]):
    product: ProductT
    side: PricingSide
    order_id: str
    order_type: OrderType
    price: float
    visible_quantity: int
    hidden_quantity: int
    parent_order_id: str = ""
    is_child_order: bool = False

    @property
    def total_quantity(self) -> int:
        return self.visible_quantity + self.hidden_quantity


@dataclass(frozen=True)
class AlgoExecution(Generic[ProductT]):
    execution_order: ExecutionOrder[ProductT]

    @property
    def product(self) -> ProductT:
        return self.execution_order.product


@dataclass(frozen=True)
class Trade(Generic[ProductT]):
    product: ProductT
    trade_id: str
    price: float
    book: str
    quantity: int
    side: Side


# --------------------------------------------------------- position & risk
@dataclass
class Position(Generic[ProductT]):
    """Signed quantity per book; the aggregate is always derived, never stored."""

    product: ProductT
    positions: Dict[str, int] = field(default_factory=dict)

    def get_position(self, book: str) -> int:
        return self.positions.get(book, 0)

    def add_position(self, book: str, quantity: int) -> None:
        self.positions[book] = self.positions.get(book, 0) + quantity

    @property
    def aggregate(self) -> int:
        return sum(self.positions.values())


@dataclass
class PV01(Generic[ProductT]):
    product: ProductT
    pv01: float
    quantity: int


# ------------------------------------------------------------------ inquiry
@dataclass
class Inquiry(Generic[ProductT]):
    inquiry_id: str
    product: ProductT
    side: Side
    quantity: int
    price: float
    state: InquiryState = InquiryState.RECEIVED
