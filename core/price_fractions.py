"""
US Treasury fractional price notation.

    "99-16+"  -> 99 + 16/32 + 4/256 = 99.515625
    "100-075" -> 100 + 7/32 + 5/256

The last character counts 256ths within the 32nd (0..7), with "+" standing
for 4, i.e. half a 32nd.
"""

from __future__ import annotations

import math

from core.errors import MalformedPriceError

TICKS_PER_POINT = 256
EIGHTHS_PER_32ND = 8
HALF_32ND_CHAR = "+"
MIN_TICK = 1.0 / TICKS_PER_POINT

# tolerance when snapping floats onto the 1/256 grid
_GRID_EPSILON = 1e-9


def price_from_fractional(text: str) -> float:
    """Decode a fractional price string into a float."""
    if text is None:
        raise MalformedPriceError("Price string is None")
    raw = text.strip()
    whole_part, sep, frac_part = raw.partition("-")
    if not sep or len(frac_part) != 3 or not whole_part:
        raise MalformedPriceError(f"Malformed fractional price: {text!r}")

    thirty_seconds_str, eighth_str = frac_part[:2], frac_part[2]
    if eighth_str == HALF_32ND_CHAR:
        eighth_str = "4"
    try:
        whole = int(whole_part)
        thirty_seconds = int(thirty_seconds_str)
        eighths = int(eighth_str)
    except ValueError as exc:
        raise MalformedPriceError(f"Malformed fractional price: {text!r}") from exc

    if not 0 <= thirty_seconds < 32 or not 0 <= eighths < EIGHTHS_PER_32ND:
        raise MalformedPriceError(f"Fractional price out of range: {text!r}")

    return whole + thirty_seconds / 32.0 + eighths / float(TICKS_PER_POINT)


def price_to_fractional(price: float) -> str:
    """
    Encode a float price into fractional notation.

    Prices off the 1/256 grid are truncated down to the nearest tick.
    """
    whole = math.floor(price)
    ticks = int(math.floor((price - whole) * TICKS_PER_POINT + _GRID_EPSILON))
    if ticks >= TICKS_PER_POINT:
        whole += 1
        ticks -= TICKS_PER_POINT

    thirty_seconds, eighths = divmod(ticks, EIGHTHS_PER_32ND)
    eighth_char = HALF_32ND_CHAR if eighths == 4 else str(eighths)
    return f"{whole}-{thirty_seconds:02d}{eighth_char}"
