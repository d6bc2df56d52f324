"""
Historical Data Service

Generic capture point: one instance per captured data type (executions,
streams, positions, risk, inquiries). Each persisted record is kept as the
latest value for its key and handed to the output sink.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar

from connectors.base import OutboundSink
from services.keyed_service import Dispatcher, KeyedService, ServiceListener

logger = logging.getLogger(__name__)

T = TypeVar("T")


def product_key(data) -> str:
    return data.product.product_id


class HistoricalDataService(KeyedService[T]):
    """Keyed by ``key_fn(record)``, product id unless told otherwise."""

    def __init__(
        self,
        name: str,
        sink: Optional[OutboundSink[T]] = None,
        *,
        key_fn: Callable[[T], str] = product_key,
        dispatcher: Optional[Dispatcher] = None,
    ):
        super().__init__(name, dispatcher=dispatcher)
        self.sink = sink
        self.key_fn = key_fn
        self.persisted = 0

    def persist(self, key: str, data: T) -> None:
        self._store(key, data)
        self.persisted += 1
        if self.sink is None:
            logger.debug("%s has no sink; %s kept in memory only", self.name, key)
            return
        self.sink.consume(data)

    def key_of(self, data: T) -> str:
        return self.key_fn(data)


class HistoricalDataListener(ServiceListener[T]):
    """Registered on the service being captured; persists every add."""

    def __init__(self, service: HistoricalDataService[T]):
        self.service = service

    def on_add(self, data: T) -> None:
        self.service.persist(self.service.key_of(data), data)
