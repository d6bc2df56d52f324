"""
Keyed Service framework

Every desk service is a keyed map plus an ordered listener registry.

Features:
- get(key) / lookup(key) / contains(key)
- ingest(value) as the generic inbound entry point
- add_listener(listener) - callbacks fire in registration order
- notify(event, value) - synchronous, depth-first, complete before returning
- All callbacks go through a Dispatcher, which bounds nesting depth
"""

from __future__ import annotations

import logging
from enum import Enum
from threading import RLock
from typing import Callable, Dict, Generic, Iterator, List, Optional, Sequence, Tuple, TypeVar

from core.errors import DispatchDepthError

logger = logging.getLogger(__name__)

V = TypeVar("V")


class ServiceEvent(str, Enum):
    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"


class ServiceListener(Generic[V]):
    """
    Observer of a KeyedService. Override the callbacks you need; the rest are
    no-ops.
    """

    def on_add(self, data: V) -> None:
        pass

    def on_update(self, data: V) -> None:
        pass

    def on_remove(self, data: V) -> None:
        pass


_CALLBACK_NAMES = {
    ServiceEvent.ADD: "on_add",
    ServiceEvent.UPDATE: "on_update",
    ServiceEvent.REMOVE: "on_remove",
}


class Dispatcher:
    """
    Invokes listener callbacks on behalf of services.

    Calls stay synchronous and depth-first, so a notify has finished its whole
    downstream chain when it returns. Nesting deeper than ``max_depth`` raises
    DispatchDepthError instead of running into the interpreter's recursion
    limit.
    """

    def __init__(self, max_depth: int = 64, propagate_errors: bool = False):
        """
        Args:
            max_depth: Maximum nesting of listener callbacks
            propagate_errors: Re-raise listener exceptions instead of logging them
        """
        if max_depth < 1:
            raise ValueError("max_depth must be >= 1")
        self.max_depth = max_depth
        self.propagate_errors = propagate_errors
        self.depth = 0
        self.peak_depth = 0
        self.dispatched = 0

    def dispatch(self, listener: ServiceListener, event: ServiceEvent, data) -> None:
        if self.depth >= self.max_depth:
            raise DispatchDepthError(
                f"Listener chain exceeded max depth {self.max_depth} "
                f"at {type(listener).__name__}.{_CALLBACK_NAMES[event]}",
                details={"max_depth": self.max_depth},
            )
        callback: Callable = getattr(listener, _CALLBACK_NAMES[event])
        self.depth += 1
        self.peak_depth = max(self.peak_depth, self.depth)
        self.dispatched += 1
        try:
            callback(data)
        except DispatchDepthError:
            raise
        except Exception as exc:
            if self.propagate_errors:
                raise
            logger.error(
                "Error in listener %s.%s: %s",
                type(listener).__name__,
                _CALLBACK_NAMES[event],
                exc,
                exc_info=True,
            )
        finally:
            self.depth -= 1


class KeyedService(Generic[V]):
    """
    Base for all desk services: a string-keyed map with listeners.

    ``get`` is permissive: a missing key is filled from ``default_factory``
    when the service has one. Services without a natural zero value raise
    KeyError instead; use ``lookup`` for a read that never creates anything.
    """

    def __init__(
        self,
        name: Optional[str] = None,
        *,
        default_factory: Optional[Callable[[str], V]] = None,
        dispatcher: Optional[Dispatcher] = None,
    ):
        self.name = name or type(self).__name__
        self._data: Dict[str, V] = {}
        self._listeners: List[ServiceListener[V]] = []
        self._default_factory = default_factory
        self._dispatcher = dispatcher or Dispatcher()
        self._lock = RLock()

    # ------------------------------------------------------------------ data
    def get(self, key: str) -> V:
        with self._lock:
            if key not in self._data:
                if self._default_factory is None:
                    raise KeyError(f"{self.name}: no entry for {key!r}")
                self._data[key] = self._default_factory(key)
                logger.debug("%s created default entry for %s", self.name, key)
            return self._data[key]

    def lookup(self, key: str) -> Optional[V]:
        with self._lock:
            return self._data.get(key)

    def contains(self, key: str) -> bool:
        with self._lock:
            return key in self._data

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data.keys())

    def items(self) -> Iterator[Tuple[str, V]]:
        with self._lock:
            snapshot = list(self._data.items())
        return iter(snapshot)

    def _store(self, key: str, value: V) -> V:
        with self._lock:
            self._data[key] = value
        return value

    def __len__(self) -> int:
        return len(self._data)

    # ------------------------------------------------------------- inbound
    def ingest(self, value: V) -> None:
        """Inbound entry point for connectors; meaning varies per service."""
        raise NotImplementedError(f"{self.name} does not accept inbound data")

    # ----------------------------------------------------------- listeners
    def add_listener(self, listener: ServiceListener[V]) -> None:
        with self._lock:
            self._listeners.append(listener)
        logger.debug("%s registered listener %s", self.name, type(listener).__name__)

    @property
    def listeners(self) -> Tuple[ServiceListener[V], ...]:
        with self._lock:
            return tuple(self._listeners)

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    def notify(self, event: ServiceEvent, value) -> None:
        """Deliver ``event`` to every listener, in registration order."""
        self.notify_sequence((event,), value)

    def notify_sequence(self, events: Sequence[ServiceEvent], value) -> None:
        """
        Deliver several events per listener: listener 1 gets all of them, then
        listener 2, and so on.
        """
        for listener in self.listeners:
            for event in events:
                self._dispatcher.dispatch(listener, event, value)
