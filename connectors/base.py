"""
Connector interfaces.

An InboundFeed turns an external source into domain objects and pushes them
into a service; an OutboundSink receives domain objects from a service and
writes them somewhere else.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

T = TypeVar("T")


class InboundFeed(ABC):
    """Abstract base class for feeds that publish into a service."""

    @abstractmethod
    def produce(self) -> int:
        """
        Read the whole source and publish every valid record.

        Returns:
            Number of records published
        """
        pass


class OutboundSink(ABC, Generic[T]):
    """Abstract base class for sinks that receive data from a service."""

    @abstractmethod
    def consume(self, value: T) -> None:
        pass
