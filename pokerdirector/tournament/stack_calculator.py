"""
Starting Stack Calculator.

Recommends a starting stack and first-level blinds from the chipset,
the tournament format and the planned duration.

Target stack depth (big blinds) by format:
- Freezeout / Bounty / MTT: ~150 BB
- Rebuy / Sit & Go: ~100 BB
- Deepstack: 250 BB
- Turbo: 75 BB, Hyper-turbo: 50 BB
"""

import math
from typing import Dict, Optional, Sequence, Tuple

from .chips import round_half_up
from .models import StackSizingResult

# 체인 없이 호출될 때의 기본값
FALLBACK_SIZING = StackSizingResult(starting_stack=5000, small_blind=25, big_blind=50)

STACK_TO_BB_RATIOS: Dict[str, int] = {
    "freezeout": 150,
    "rebuy": 100,
    "bounty": 150,
    "deepstack": 250,
    "turbo": 75,
    "hyper-turbo": 50,
    "sit & go": 100,
    "sit&go": 100,
    "mtt": 150,
}
DEFAULT_STACK_TO_BB_RATIO = 100

# 형식별 최소 스택 배수
MINIMUM_STACK_MULTIPLIERS: Dict[str, float] = {
    "deepstack": 2.0,
    "hyper-turbo": 0.6,
}

# 애드온 칩 배수
ADD_ON_MULTIPLIERS: Dict[str, float] = {
    "deepstack": 1.5,
    "turbo": 1.2,
    "rebuy": 2.0,
}


def _format_key(tournament_format: Optional[str]) -> str:
    return (tournament_format or "").strip().lower()


def target_stack_to_bb_ratio(
    tournament_format: Optional[str],
    desired_duration_hours: Optional[float] = None,
) -> int:
    """
    Stack depth in big blinds for a format, adjusted for duration.

    Short events (<= 2h) play shallower, long events (> 5h) deeper.
    """
    ratio = STACK_TO_BB_RATIOS.get(_format_key(tournament_format), DEFAULT_STACK_TO_BB_RATIO)
    if desired_duration_hours:
        if desired_duration_hours <= 2:
            ratio = max(50, math.floor(ratio * 0.7))
        elif desired_duration_hours > 5:
            ratio = math.floor(ratio * 1.3)
    return ratio


def _stack_rounding_factor(denominations: Sequence[int]) -> int:
    smallest = min(denominations)
    largest = max(denominations)
    if largest <= 10:
        return smallest * 20
    if largest <= 50:
        return 25 if 25 in denominations else 20
    if largest <= 500:
        return 100
    return 1000 if largest >= 1000 else 500


def round_stack_to_chipset(stack: float, denominations: Sequence[int]) -> int:
    """Snap a raw stack to a count that is easy to hand out with this chipset."""
    factor = _stack_rounding_factor(denominations)
    return round_half_up(stack / factor) * factor


def minimum_stack(denominations: Sequence[int], tournament_format: Optional[str]) -> int:
    """Smallest sensible stack, measured in units of the smallest chip."""
    smallest = min(denominations)
    largest = max(denominations)
    if largest <= 10:
        base = smallest * 200
    elif largest <= 50:
        base = smallest * 300
    elif largest <= 500:
        base = smallest * 500
    else:
        base = smallest * 1000
    return round_half_up(base * MINIMUM_STACK_MULTIPLIERS.get(_format_key(tournament_format), 1.0))


def calculate_initial_stack(
    denominations: Sequence[int],
    tournament_format: Optional[str],
    desired_duration_hours: Optional[float] = None,
) -> StackSizingResult:
    """
    Recommend a starting stack and opening blinds.

    Args:
        denominations: Chip values in play (any order)
        tournament_format: Free-form format name, e.g. "Freezeout", "Turbo"
        desired_duration_hours: Planned length; None/0 skips the adjustment

    Returns:
        StackSizingResult; FALLBACK_SIZING when no denominations are given.
    """
    chips = [c for c in denominations or () if c > 0]
    if not chips:
        return FALLBACK_SIZING

    smallest = min(chips)
    big_blind = smallest * 2
    small_blind = smallest

    # 짧은 토너먼트 + 작은 칩: 블라인드를 넓힌다
    if desired_duration_hours and desired_duration_hours < 3 and smallest < 5:
        big_blind = max(big_blind, smallest * 5)
        small_blind = big_blind // 2

    ratio = target_stack_to_bb_ratio(tournament_format, desired_duration_hours)
    stack = round_stack_to_chipset(big_blind * ratio, chips)
    stack = max(stack, minimum_stack(chips, tournament_format))

    return StackSizingResult(starting_stack=int(stack), small_blind=small_blind, big_blind=big_blind)


def suggest_chip_topups(starting_stack: int, tournament_format: Optional[str]) -> Tuple[int, int]:
    """
    Rebuy and add-on chip amounts for a starting stack.

    Returns:
        (rebuy_chips, add_on_chips)
    """
    multiplier = ADD_ON_MULTIPLIERS.get(_format_key(tournament_format), 1.0)
    return starting_stack, int(math.floor(starting_stack * multiplier))
