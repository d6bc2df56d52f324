"""
Error hierarchy for the desk simulator.

Feeds catch the row-level errors below, log them and skip the record;
nothing here is retried.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class DeskError(Exception):
    """Base class for every error raised by the desk."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class UnknownInstrumentError(DeskError, KeyError):
    """Raised when a product id is not part of the reference universe."""

    def __init__(self, product_id: str) -> None:
        super().__init__(f"Unknown instrument: {product_id}", details={"product_id": product_id})
        self.product_id = product_id

    def __str__(self) -> str:
        return self.message


class MalformedRecordError(DeskError):
    """Raised when a feed row cannot be turned into a domain object."""

    def __init__(self, message: str, *, source: Optional[str] = None, line_no: Optional[int] = None) -> None:
        super().__init__(message, details={"source": source, "line_no": line_no})
        self.source = source
        self.line_no = line_no


class MalformedPriceError(DeskError, ValueError):
    """Raised when a fractional price string cannot be decoded."""


class DispatchDepthError(DeskError, RuntimeError):
    """Raised when a listener chain nests deeper than the dispatcher allows."""


class InquiryStateError(DeskError, ValueError):
    """Raised on an inquiry state change the quote protocol does not allow."""
