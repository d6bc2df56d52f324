from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Optional

from core.config import build_dataclass_config

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass
class ThrottleConfig:
    throttle_ms: int = 300
    max_publications: int = 100


def build_throttle_config(raw: Optional[Dict[str, Any]]) -> ThrottleConfig:
    return build_dataclass_config(ThrottleConfig, raw)


class PublicationThrottle:
    """
    Rate gate with a lifetime cap: at most one publication per interval and at
    most ``max_publications`` overall. Rejected updates are dropped, never queued.

    The interval starts counting at construction, so an update arriving
    before the first interval has elapsed is dropped too.
    """

    def __init__(
        self,
        *,
        config: Optional[ThrottleConfig] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.config = config or ThrottleConfig()
        self._clock = clock or time.monotonic
        self._interval_s = self.config.throttle_ms / 1000.0
        self._last_emit = self._clock()
        self.published = 0
        self.dropped = 0
        logger.info("PublicationThrottle initialized: %s", asdict(self.config))

    @property
    def exhausted(self) -> bool:
        return self.published >= self.config.max_publications

    def try_acquire(self) -> bool:
        """Return True and restart the interval if a publication may go out now."""
        now = self._clock()
        if self.exhausted or now - self._last_emit < self._interval_s:
            self.dropped += 1
            return False
        self.published += 1
        self._last_emit = now
        if self.exhausted:
            logger.info("Publication cap of %d reached; further updates are dropped", self.config.max_publications)
        return True

    def snapshot(self) -> Dict[str, Any]:
        return {
            "published": self.published,
            "dropped": self.dropped,
            "throttle_ms": self.config.throttle_ms,
            "max_publications": self.config.max_publications,
        }
