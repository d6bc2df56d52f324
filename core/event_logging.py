from __future__ import annotations

import inspect
import logging
import os
from typing import Any, Dict, Literal, Optional

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

EventKind = Literal[
    "PRICE",
    "STREAM",
    "GUI",
    "BOOK",
    "ORDER",
    "EXECUTION",
    "TRADE",
    "POSITION",
    "RISK",
    "INQUIRY",
    "INFO",
    "WARN",
    "ERROR",
]

_EVENT_COLOR_MAP = {
    "PRICE": "\033[36m",        # cyan
    "STREAM": "\033[36m",
    "GUI": "\033[37m",
    "BOOK": "\033[34m",         # blue
    "ORDER": "\033[35m",        # magenta
    "EXECUTION": "\033[35m",
    "TRADE": "\033[32m",        # green
    "POSITION": "\033[32m",
    "RISK": "\033[33m",         # yellow
    "INQUIRY": "\033[34m",
    "INFO": "\033[37m",
    "WARN": "\033[33m",
    "ERROR": "\033[31m",        # red
}
_COLOR_RESET = "\033[0m"


def _stream_supports_color(stream: Any) -> bool:
    if os.getenv("NO_COLOR"):
        return False
    if os.name == "nt":
        return True  # modern Windows terminals support ANSI sequences
    return hasattr(stream, "isatty") and stream.isatty()


class EventLogFormatter(logging.Formatter):
    def __init__(self, *, use_color: bool = False) -> None:
        super().__init__(fmt=DEFAULT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        kind = getattr(record, "event_kind", None)
        if not (self.use_color and kind):
            return line
        color = _EVENT_COLOR_MAP.get(str(kind).upper())
        if not color:
            return line
        target = f"[KIND:{kind}]"
        if target not in line:
            return line
        return line.replace(target, f"{color}{target}{_COLOR_RESET}", 1)


def build_stream_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(
        EventLogFormatter(use_color=_stream_supports_color(handler.stream))
    )
    return handler


def _resolve_caller_logger_name() -> str:
    frame = inspect.currentframe()
    module_name: Optional[str] = None
    try:
        caller = frame.f_back if frame else None
        while caller:
            module_name = caller.f_globals.get("__name__")
            if module_name and module_name != __name__:
                break
            caller = caller.f_back
    finally:
        del frame
    return module_name or "bond-desk.events"


def log_event(
    kind: EventKind,
    msg: str,
    *,
    symbol: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
    level: Optional[int] = None,
) -> None:
    """
    Tagged log line for desk events: "[KIND:TRADE] msg | sym=US5Y | book=TRSY1".

    Pipeline chatter (prices, streams, books) logs at DEBUG so a full replay
    stays readable at INFO.
    """
    logger = logging.getLogger(_resolve_caller_logger_name())

    tags: list[str] = []
    if symbol:
        tags.append(f"sym={symbol}")
    if extra:
        parts = []
        for key, value in extra.items():
            parts.append(f"{key}={value}")
        if parts:
            tags.append(",".join(parts))

    if level is None:
        if kind == "WARN":
            level = logging.WARNING
        elif kind == "ERROR":
            level = logging.ERROR
        elif kind in {"PRICE", "STREAM", "BOOK", "GUI"}:
            level = logging.DEBUG
        else:
            level = logging.INFO

    if not logger.isEnabledFor(level):
        return

    suffix = f" | {' | '.join(tags)}" if tags else ""
    line = f"[KIND:{kind}] {msg}{suffix}"
    logger.log(
        level,
        line,
        extra={
            "event_kind": kind,
            "event_tags": tags,
        },
    )
