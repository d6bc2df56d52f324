"""
Static reference universe: the on-the-run US Treasury curve, the PV01 per
unit of each bond and the sector buckets used for risk aggregation.

Services build their initial state from here at construction time; nothing
in this module changes while the desk runs.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Tuple

from core.errors import UnknownInstrumentError
from core.models import Bond, BucketedSector

_BONDS: Tuple[Bond, ...] = (
    Bond("91282CJL6", "US2Y", 0.04875, date(2025, 11, 30)),
    Bond("91282CJK8", "US3Y", 0.04625, date(2026, 11, 15)),
    Bond("91282CJN2", "US5Y", 0.04375, date(2028, 11, 30)),
    Bond("91282CJM4", "US7Y", 0.04375, date(2030, 11, 30)),
    Bond("91282CJJ1", "US10Y", 0.045, date(2033, 11, 15)),
    Bond("912810TW8", "US20Y", 0.0475, date(2043, 11, 15)),
    Bond("912810TV0", "US30Y", 0.0475, date(2053, 11, 15)),
)

_BONDS_BY_ID: Dict[str, Bond] = {bond.product_id: bond for bond in _BONDS}

PV01_PER_UNIT: Dict[str, float] = {
    "91282CJL6": 0.01,
    "91282CJK8": 0.02,
    "91282CJN2": 0.03,
    "91282CJM4": 0.04,
    "91282CJJ1": 0.05,
    "912810TW8": 0.06,
    "912810TV0": 0.07,
}

# front end: 2Y/3Y, belly: 5Y/7Y/10Y, long end: 20Y/30Y
SECTOR_MEMBERS: Dict[str, List[str]] = {
    "FrontEnd": ["91282CJL6", "91282CJK8"],
    "Belly": ["91282CJN2", "91282CJM4", "91282CJJ1"],
    "LongEnd": ["912810TW8", "912810TV0"],
}


def all_bonds() -> List[Bond]:
    return list(_BONDS)


def make_bond(product_id: str) -> Bond:
    """Look up a bond by CUSIP; unknown ids raise UnknownInstrumentError."""
    key = (product_id or "").strip()
    try:
        return _BONDS_BY_ID[key]
    except KeyError:
        raise UnknownInstrumentError(key) from None


def make_sectors() -> Dict[str, BucketedSector]:
    return {
        name: BucketedSector(name=name, products=tuple(make_bond(pid) for pid in members))
        for name, members in SECTOR_MEMBERS.items()
    }
