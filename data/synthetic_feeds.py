"""
Synthetic input feeds for local replays.

Features:
- Seeded numpy RNG, so the same seed always writes the same files
- Every price sits on the 1/256 grid and is written in fractional notation
- Market data books alternate between normal and crossed (bid above offer
  by at least 1/128), so the execution algo fires on a known share of books
- Inquiries all start in RECEIVED state
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np

from core.models import Bond
from core.price_fractions import TICKS_PER_POINT, price_to_fractional
from core.reference_data import all_bonds

logger = logging.getLogger(__name__)

TICK = 1.0 / TICKS_PER_POINT


@dataclass
class FeedCounts:
    prices_per_bond: int = 20
    trades_per_bond: int = 4
    books_per_bond: int = 6
    inquiries_per_bond: int = 2
    book_depth: int = 5
    crossed_every: int = 2


def _mid(rng: np.random.Generator) -> float:
    # 99-00 .. 100-31+, on the tick grid
    ticks = int(rng.integers(99 * TICKS_PER_POINT, 101 * TICKS_PER_POINT))
    return ticks * TICK


def price_lines(rng: np.random.Generator, bonds: Sequence[Bond], count: int) -> List[str]:
    lines = ["cusip,bid,ask"]
    for bond in bonds:
        mid = _mid(rng)
        steps = rng.integers(-2, 3, size=count)
        for i, step in enumerate(steps):
            mid += int(step) * TICK
            # spread alternates between 1/128 and 1/64
            half_spread = (1 if i % 2 == 0 else 2) * TICK
            lines.append(
                f"{bond.product_id},{price_to_fractional(mid - half_spread)},{price_to_fractional(mid + half_spread)}"
            )
    return lines


def trade_lines(rng: np.random.Generator, bonds: Sequence[Bond], count: int) -> List[str]:
    books = ("TRSY1", "TRSY2", "TRSY3")
    lines = ["cusip,tradeId,price,book,quantity,side"]
    n = 0
    for bond in bonds:
        for i in range(count):
            quantity = int(rng.integers(1, 6)) * 1_000_000
            side = "BUY" if i % 2 == 0 else "SELL"
            lines.append(
                f"{bond.product_id},FEED{n:05d},{price_to_fractional(_mid(rng))},{books[n % 3]},{quantity},{side}"
            )
            n += 1
    return lines


def market_data_lines(
    rng: np.random.Generator,
    bonds: Sequence[Bond],
    count: int,
    depth: int,
    crossed_every: int,
) -> List[str]:
    """
    ``depth`` bid rows then ``depth`` offer rows per book. Every
    ``crossed_every``-th book has its whole offer ladder shifted below the bid
    ladder.
    """
    lines = ["cusip,price,quantity,side"]
    for bond in bonds:
        mid = _mid(rng)
        for i in range(count):
            mid += int(rng.integers(-2, 3)) * TICK
            crossed = crossed_every > 0 and i % crossed_every == crossed_every - 1
            for level in range(1, depth + 1):
                quantity = level * 10_000_000
                lines.append(f"{bond.product_id},{price_to_fractional(mid - level * TICK)},{quantity},BID")
            for level in range(1, depth + 1):
                quantity = level * 10_000_000
                offer = mid + level * TICK
                if crossed:
                    offer = mid - (depth + 1 + level) * TICK
                lines.append(f"{bond.product_id},{price_to_fractional(offer)},{quantity},OFFER")
    return lines


def inquiry_lines(rng: np.random.Generator, bonds: Sequence[Bond], count: int) -> List[str]:
    lines = ["inquiryId,cusip,side,quantity,price,state"]
    n = 0
    for bond in bonds:
        for _ in range(count):
            side = "BUY" if rng.random() < 0.5 else "SELL"
            quantity = int(rng.integers(1, 6)) * 1_000_000
            lines.append(f"INQ{n:05d},{bond.product_id},{side},{quantity},{price_to_fractional(_mid(rng))},RECEIVED")
            n += 1
    return lines


def write_feeds(
    directory: str | Path,
    *,
    seed: Optional[int] = None,
    counts: Optional[FeedCounts] = None,
    bonds: Optional[Sequence[Bond]] = None,
) -> Dict[str, Path]:
    """
    Write prices.txt, trades.txt, marketdata.txt and inquiries.txt.

    Returns:
        Feed name -> written path
    """
    counts = counts or FeedCounts()
    bonds = list(bonds) if bonds is not None else all_bonds()
    rng = np.random.default_rng(seed)
    out = Path(directory)
    out.mkdir(parents=True, exist_ok=True)

    files = {
        "prices": ("prices.txt", price_lines(rng, bonds, counts.prices_per_bond)),
        "trades": ("trades.txt", trade_lines(rng, bonds, counts.trades_per_bond)),
        "market_data": (
            "marketdata.txt",
            market_data_lines(rng, bonds, counts.books_per_bond, counts.book_depth, counts.crossed_every),
        ),
        "inquiries": ("inquiries.txt", inquiry_lines(rng, bonds, counts.inquiries_per_bond)),
    }

    written: Dict[str, Path] = {}
    for name, (filename, lines) in files.items():
        path = out / filename
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        written[name] = path
        logger.info("Wrote %d rows to %s", len(lines) - 1, path)
    return written
