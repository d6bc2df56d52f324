"""
Print a summary of a desk run's output files.

Usage:
    python scripts/summarize_history.py --output-dir output
"""

from __future__ import annotations

if __name__ == "__main__" and __package__ is None:
    import sys
    from pathlib import Path
    sys.path.append(str(Path(__file__).resolve().parents[1]))

import argparse
import logging

from analytics.history_report import build_report
from core.config import DEFAULT_CONFIG_PATH, load_config

logger = logging.getLogger("scripts.summarize_history")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Summarize bond desk output files.")
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="Path to YAML config file.")
    parser.add_argument("--output-dir", default=None, help="Directory holding the output files.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    cfg = load_config(args.config)
    output_cfg = cfg.output
    output_dir = args.output_dir or output_cfg.get("directory", "output")
    files = {key: output_cfg[key] for key in ("positions", "risk", "executions", "inquiries") if output_cfg.get(key)}

    report = build_report(output_dir, files)
    print(report.render())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
