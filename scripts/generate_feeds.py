"""
Write synthetic input feeds for a desk replay.

Usage:
    python scripts/generate_feeds.py --out data/feeds --seed 7
"""

from __future__ import annotations

if __name__ == "__main__" and __package__ is None:
    import sys
    from pathlib import Path
    sys.path.append(str(Path(__file__).resolve().parents[1]))

import argparse
import logging

from core.config import DEFAULT_CONFIG_PATH, load_config
from core.logging_utils import setup_logging
from data.synthetic_feeds import FeedCounts, write_feeds

logger = logging.getLogger("scripts.generate_feeds")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Generate synthetic bond desk feeds.")
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="Config used for defaults.")
    parser.add_argument("--out", default=None, help="Output directory (default: feeds.directory).")
    parser.add_argument("--seed", type=int, default=None, help="RNG seed for reproducible files.")
    parser.add_argument("--prices", type=int, default=20, help="Price rows per bond.")
    parser.add_argument("--trades", type=int, default=4, help="Trade rows per bond.")
    parser.add_argument("--books", type=int, default=6, help="Order books per bond.")
    parser.add_argument("--inquiries", type=int, default=2, help="Inquiries per bond.")
    parser.add_argument(
        "--crossed-every",
        type=int,
        default=2,
        help="Make every Nth book crossed (0 disables crossed books).",
    )
    args = parser.parse_args(argv)

    cfg = load_config(args.config)
    setup_logging(cfg.logging)
    feeds_cfg = cfg.feeds

    counts = FeedCounts(
        prices_per_bond=args.prices,
        trades_per_bond=args.trades,
        books_per_bond=args.books,
        inquiries_per_bond=args.inquiries,
        book_depth=int(feeds_cfg.get("book_depth", 5)),
        crossed_every=args.crossed_every,
    )
    out_dir = args.out or feeds_cfg.get("directory", "data/feeds")
    written = write_feeds(out_dir, seed=args.seed, counts=counts)
    for name, path in written.items():
        logger.info("%-12s -> %s", name, path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
