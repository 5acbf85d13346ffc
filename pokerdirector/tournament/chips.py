"""
Chip Denomination Utilities.

Every blind and stack the director announces has to be payable with the
chips on the table, so amounts are snapped to the denominations in play.
"""

import math
from typing import Iterable, List, Sequence

from .models import DEFAULT_CHIPSET


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero.

    Python's round() uses banker's rounding (round(2.5) == 2), which would
    make 62.5 -> 50 instead of 75 in chip math.
    """
    if value >= 0:
        return int(math.floor(value + 0.5))
    return -int(math.floor(-value + 0.5))


def parse_chipset(text: str) -> List[int]:
    """
    Parse a comma separated chipset string.

    Tokens that are not integers or are not positive are dropped.

    Args:
        text: e.g. "25, 100, 500"

    Returns:
        Denominations in the order given; [] when nothing parses.
    """
    values: List[int] = []
    for token in (text or "").split(","):
        token = token.strip()
        try:
            value = int(token)
        except ValueError:
            continue
        if value > 0:
            values.append(value)
    return values


def format_chipset(chipset: Iterable[int]) -> str:
    return ",".join(str(c) for c in chipset)


def normalized_chipset(chipset: Sequence[int]) -> List[int]:
    """Ascending positive denominations, DEFAULT_CHIPSET when none remain."""
    chips = sorted(c for c in chipset if c > 0)
    return chips or list(DEFAULT_CHIPSET)


def round_to_poker_chips(value: float, chipset: Sequence[int] = DEFAULT_CHIPSET) -> int:
    """
    Round an amount to a multiple of the largest denomination not above it.

    Args:
        value: Raw amount (may be fractional or non-positive)
        chipset: Available denominations, any order

    Returns:
        A positive amount; the smallest chip for amounts below it.
    """
    chips = normalized_chipset(chipset)
    smallest = chips[0]
    if value <= 0:
        return smallest

    denomination = None
    for chip in chips:
        if chip <= value:
            denomination = chip
        else:
            break

    if denomination is None:
        return smallest
    return max(smallest, round_half_up(value / denomination) * denomination)
