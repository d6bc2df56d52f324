"""
Risk Service

PV01 exposure per instrument plus quantity-weighted PV01 per sector bucket.

Bucket records are never updated as a side effect of a position change;
callers pull a fresh value with recompute_bucket() when they need one.
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional

from core.errors import UnknownInstrumentError
from core.event_logging import log_event
from core.models import PV01, Bond, BucketedSector, Position
from core.reference_data import PV01_PER_UNIT, make_bond, make_sectors
from services.keyed_service import Dispatcher, KeyedService, ServiceEvent, ServiceListener

logger = logging.getLogger(__name__)


def _zero_pv01(product_id: str) -> PV01[Bond]:
    return PV01(product=make_bond(product_id), pv01=PV01_PER_UNIT.get(product_id, 0.0), quantity=0)


class RiskService(KeyedService[PV01[Bond]]):
    """Keyed on product id; bucket records are keyed on sector name."""

    def __init__(
        self,
        pv01_table: Optional[Mapping[str, float]] = None,
        sectors: Optional[Mapping[str, BucketedSector]] = None,
        dispatcher: Optional[Dispatcher] = None,
    ):
        super().__init__("RiskService", default_factory=_zero_pv01, dispatcher=dispatcher)
        table = pv01_table if pv01_table is not None else PV01_PER_UNIT
        for product_id, pv01 in table.items():
            self._store(product_id, PV01(product=make_bond(product_id), pv01=pv01, quantity=0))

        self._sectors: Dict[str, BucketedSector] = dict(sectors if sectors is not None else make_sectors())
        self._buckets: Dict[str, PV01[BucketedSector]] = {
            name: PV01(product=sector, pv01=0.0, quantity=0) for name, sector in self._sectors.items()
        }
        self._sector_by_product: Dict[str, str] = {
            bond.product_id: name for name, sector in self._sectors.items() for bond in sector.products
        }

    def apply_position(self, position: Position[Bond]) -> PV01[Bond]:
        """Add the position's aggregate to the instrument's running PV01 quantity."""
        record = self.get(position.product.product_id)
        record.quantity += position.aggregate
        log_event(
            "RISK",
            "PV01 updated",
            symbol=position.product.ticker,
            extra={"qty": record.quantity, "pv01": record.pv01},
        )
        self.notify(ServiceEvent.ADD, record)
        return record

    def recompute_bucket(self, sector_name: str) -> PV01[BucketedSector]:
        sector = self._sectors.get(sector_name)
        if sector is None:
            raise KeyError(f"Unknown sector bucket: {sector_name}")

        total_qty = 0
        weighted = 0.0
        for bond in sector.products:
            record = self.get(bond.product_id)
            total_qty += record.quantity
            weighted += record.pv01 * record.quantity

        pv01 = weighted / total_qty if total_qty != 0 else 0.0
        bucket = PV01(product=sector, pv01=pv01, quantity=total_qty)
        self._buckets[sector_name] = bucket
        logger.debug("Bucket %s recomputed: pv01=%.6f qty=%d", sector_name, pv01, total_qty)
        return bucket

    def bucketed_risk(self, sector_name: str) -> PV01[BucketedSector]:
        try:
            return self._buckets[sector_name]
        except KeyError:
            raise KeyError(f"Unknown sector bucket: {sector_name}") from None

    def bucket_for(self, product_id: str) -> str:
        try:
            return self._sector_by_product[product_id]
        except KeyError:
            raise UnknownInstrumentError(product_id) from None


class RiskListener(ServiceListener[Position[Bond]]):
    """Registered on the PositionService."""

    def __init__(self, service: RiskService):
        self.service = service

    def on_update(self, data: Position[Bond]) -> None:
        self.service.apply_position(data)
