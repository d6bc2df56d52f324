"""
Summaries of the desk's output files.

Loads the append-only outputs (positions, risk, executions, inquiries) with
pandas and reduces them to:
- final position per instrument and book
- latest PV01 per instrument and per sector bucket
- execution counts per instrument and side
- inquiry counts per final state
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from core.reference_data import SECTOR_MEMBERS

logger = logging.getLogger(__name__)

RISK_COLUMNS = ["timestamp", "id", "pv01", "quantity"]
EXECUTION_COLUMNS = [
    "timestamp",
    "cusip",
    "side",
    "order_id",
    "order_type",
    "price",
    "visible",
    "hidden",
    "is_child",
]
INQUIRY_COLUMNS = ["timestamp", "inquiry_id", "cusip", "side", "quantity", "price", "state"]

# later protocol states win when an inquiry shows up several times
_STATE_RANK = {"RECEIVED": 0, "QUOTED": 1, "DONE": 2, "REJECTED": 2, "CUSTOMER_REJECTED": 2}


def _read(path: Path, columns: Optional[List[str]] = None) -> pd.DataFrame:
    if not path.exists() or path.stat().st_size == 0:
        return pd.DataFrame(columns=columns or [])
    df = pd.read_csv(path, header=None, dtype=str, skipinitialspace=True)
    if columns is not None:
        if df.shape[1] != len(columns):
            raise ValueError(f"{path.name}: expected {len(columns)} columns, found {df.shape[1]}")
        df.columns = columns
    return df


def load_positions(path: str | Path) -> pd.DataFrame:
    """
    Long format: one row per (line, book) with columns
    timestamp, cusip, book, quantity. The AGGREGATE pair becomes book
    "AGGREGATE".
    """
    raw = _read(Path(path))
    if raw.empty:
        return pd.DataFrame(columns=["timestamp", "cusip", "book", "quantity"])

    frames = []
    for col in range(2, raw.shape[1] - 1, 2):
        frames.append(
            pd.DataFrame(
                {
                    "timestamp": raw[0],
                    "cusip": raw[1],
                    "book": raw[col],
                    "quantity": pd.to_numeric(raw[col + 1]).astype("int64"),
                    "seq": raw.index,
                }
            )
        )
    long = pd.concat(frames, ignore_index=True).sort_values(["seq", "book"], kind="stable")
    return long.drop(columns="seq").reset_index(drop=True)


def final_positions(positions: pd.DataFrame) -> pd.DataFrame:
    """cusip x book table of the last reported quantities."""
    if positions.empty:
        return pd.DataFrame()
    last = positions.groupby(["cusip", "book"], sort=True)["quantity"].last()
    return last.unstack("book").fillna(0).astype("int64")


def load_risk(path: str | Path) -> pd.DataFrame:
    df = _read(Path(path), RISK_COLUMNS)
    if df.empty:
        return df
    df["pv01"] = pd.to_numeric(df["pv01"])
    df["quantity"] = pd.to_numeric(df["quantity"]).astype("int64")
    df["is_bucket"] = df["id"].isin(SECTOR_MEMBERS.keys())
    return df


def latest_risk(risk: pd.DataFrame) -> Dict[str, pd.DataFrame]:
    """Last PV01 row per instrument and per bucket."""
    if risk.empty:
        empty = pd.DataFrame(columns=["pv01", "quantity"])
        return {"instruments": empty, "buckets": empty}
    last = risk.groupby("id", sort=True).last()
    mask = last["is_bucket"].astype(bool)
    instruments = last.loc[~mask, ["pv01", "quantity"]]
    buckets = last.loc[mask, ["pv01", "quantity"]]
    return {"instruments": instruments, "buckets": buckets}


def load_executions(path: str | Path) -> pd.DataFrame:
    df = _read(Path(path), EXECUTION_COLUMNS)
    if df.empty:
        return df
    for col in ("visible", "hidden"):
        df[col] = pd.to_numeric(df[col]).astype("int64")
    return df


def execution_counts(executions: pd.DataFrame) -> pd.DataFrame:
    """cusip x side table of order counts."""
    if executions.empty:
        return pd.DataFrame()
    return executions.groupby(["cusip", "side"]).size().unstack("side").fillna(0).astype("int64")


def load_inquiries(path: str | Path) -> pd.DataFrame:
    return _read(Path(path), INQUIRY_COLUMNS)


def final_inquiry_states(inquiries: pd.DataFrame) -> pd.Series:
    """Most advanced state each inquiry reached."""
    if inquiries.empty:
        return pd.Series(dtype="object")
    ranked = inquiries.assign(rank=inquiries["state"].map(_STATE_RANK).fillna(-1))
    best = ranked.sort_values("rank", kind="stable").groupby("inquiry_id").last()
    return best["state"]


def inquiry_state_counts(inquiries: pd.DataFrame) -> Dict[str, int]:
    states = final_inquiry_states(inquiries)
    return {str(state): int(n) for state, n in states.value_counts().sort_index().items()}


@dataclass
class HistoryReport:
    positions: pd.DataFrame
    risk_instruments: pd.DataFrame
    risk_buckets: pd.DataFrame
    executions: pd.DataFrame
    inquiry_states: Dict[str, int] = field(default_factory=dict)

    def render(self) -> str:
        parts = [
            "== Positions ==",
            self.positions.to_string() if not self.positions.empty else "(none)",
            "",
            "== Risk (instruments) ==",
            self.risk_instruments.to_string() if not self.risk_instruments.empty else "(none)",
            "",
            "== Risk (buckets) ==",
            self.risk_buckets.to_string() if not self.risk_buckets.empty else "(none)",
            "",
            "== Executions ==",
            self.executions.to_string() if not self.executions.empty else "(none)",
            "",
            "== Inquiries ==",
        ]
        if self.inquiry_states:
            parts.extend(f"{state}: {n}" for state, n in self.inquiry_states.items())
        else:
            parts.append("(none)")
        return "\n".join(parts)


def build_report(output_dir: str | Path, files: Optional[Dict[str, str]] = None) -> HistoryReport:
    """
    Args:
        output_dir: Directory holding the desk's output files
        files: Optional overrides for positions/risk/executions/inquiries file names
    """
    names = {
        "positions": "positions.txt",
        "risk": "risk.txt",
        "executions": "executions.txt",
        "inquiries": "allinquiries.txt",
    }
    names.update(files or {})
    base = Path(output_dir)

    risk = latest_risk(load_risk(base / names["risk"]))
    report = HistoryReport(
        positions=final_positions(load_positions(base / names["positions"])),
        risk_instruments=risk["instruments"],
        risk_buckets=risk["buckets"],
        executions=execution_counts(load_executions(base / names["executions"])),
        inquiry_states=inquiry_state_counts(load_inquiries(base / names["inquiries"])),
    )
    logger.info("Built history report from %s", base)
    return report
