"""
Replay the input feeds through the desk and write the output files.

Usage:
    python scripts/run_desk.py --config configs/desk.yaml
    python scripts/run_desk.py --feeds-dir /tmp/feeds --output-dir /tmp/out --fresh
"""

from __future__ import annotations

if __name__ == "__main__" and __package__ is None:
    import sys
    from pathlib import Path
    sys.path.append(str(Path(__file__).resolve().parents[1]))

import argparse
import logging

from core.config import DEFAULT_CONFIG_PATH, load_config
from core.errors import DeskError
from core.logging_utils import setup_logging
from engine.bootstrap import build_desk, reset_outputs, run_feeds

logger = logging.getLogger("scripts.run_desk")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bond desk feed replay.")
    parser.add_argument(
        "--config",
        default=str(DEFAULT_CONFIG_PATH),
        help="Path to YAML config file (default: configs/desk.yaml).",
    )
    parser.add_argument("--feeds-dir", default=None, help="Directory holding the input feed files.")
    parser.add_argument("--output-dir", default=None, help="Directory for the output files.")
    parser.add_argument("--log-level", default=None, help="Override logging.level (DEBUG, INFO, ...).")
    parser.add_argument(
        "--fresh",
        action="store_true",
        help="Delete existing output files before replaying.",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    cfg = load_config(args.config)
    setup_logging(cfg.logging, level_override=args.log_level)
    logger.info("Desk starting with config=%s", args.config)

    try:
        desk = build_desk(cfg, feeds_dir=args.feeds_dir, output_dir=args.output_dir)
        if args.fresh:
            reset_outputs(desk)
        counts = run_feeds(desk)
    except DeskError as exc:
        logger.error("Desk run failed: %s", exc)
        return 1

    logger.info(
        "Replay finished: prices=%d trades=%d books=%d inquiries=%d",
        counts["prices"],
        counts["trades"],
        counts["market_data"],
        counts["inquiries"],
    )
    for name, sink in desk.sinks.items():
        logger.info("  %-10s %5d lines -> %s", name, sink.written, sink.path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
