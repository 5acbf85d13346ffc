"""
Dynamic Blind Schedule Generator.

Builds the level-by-level blind structure for a tournament:
- Small blind seeded at 0.5% of the starting stack
- Geometric growth per level, snapped to the chipset
- Breaks occupy a slot in the level sequence without raising blinds
- Antes (10% of the big blind) from a configurable level

The setup flow (plan_blind_structure) wires stack sizing, top-up chips and
generation together the way the tournament setup form does.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pokerdirector.logging_config import get_logger

from .chips import normalized_chipset, parse_chipset, round_half_up, round_to_poker_chips
from .models import (
    ANTE_DISABLED,
    BREAK_DURATION_MINUTES,
    GenerationOptions,
    TournamentFormat,
    TournamentLevel,
)
from .stack_calculator import calculate_initial_stack, suggest_chip_topups

logger = get_logger(__name__)

SEED_SMALL_BLIND_RATIO = 0.005
ANTE_RATIO = 0.1

# 대체 생성기 고정값
FALLBACK_LEVEL_MINUTES = 20
FALLBACK_BREAK_INTERVAL = 4
FALLBACK_GROWTH = 1.5
FALLBACK_BLIND_UNIT = 25


def _is_break(level: int, interval: int) -> bool:
    return interval > 0 and level > 1 and level % interval == 0


def generate_dynamic_blinds(
    player_count: int,
    starting_stack: int,
    target_duration_minutes: float,
    options: Optional[GenerationOptions] = None,
) -> List[TournamentLevel]:
    """
    Generate a blind schedule that fills the target duration.

    Args:
        player_count: Expected field size (must be at least 2)
        starting_stack: Chips each player starts with
        target_duration_minutes: Planned playing time
        options: Generation knobs (defaults: 20-minute levels, standard format)

    Returns:
        Levels numbered 1..floor(target / level duration); [] for degenerate input.
    """
    options = options or GenerationOptions()
    level_minutes = options.level_duration_minutes

    if player_count <= 1 or starting_stack <= 0 or target_duration_minutes <= 0 or level_minutes <= 0:
        logger.warning(
            "blind_generation_invalid_input",
            player_count=player_count,
            starting_stack=starting_stack,
            target_duration_minutes=target_duration_minutes,
            level_duration_minutes=level_minutes,
        )
        return []

    target_levels = int(math.floor(target_duration_minutes / level_minutes))
    if target_levels <= 0:
        return []

    chipset = normalized_chipset(options.chipset)
    factor = options.resolved_increase_factor

    running_small_blind = round_to_poker_chips(starting_stack * SEED_SMALL_BLIND_RATIO, chipset)
    last_small_blind = 0
    levels: List[TournamentLevel] = []

    for level in range(1, target_levels + 1):
        if _is_break(level, options.break_interval_levels):
            levels.append(TournamentLevel.break_level(level, options.break_duration_minutes))
            continue

        # 칩 단위 반올림 후에도 블라인드는 줄어들지 않는다
        small_blind = max(round_to_poker_chips(running_small_blind, chipset), last_small_blind)
        big_blind = small_blind * 2
        ante = 0
        if options.antes_enabled and level >= options.ante_start_level:
            ante = round_to_poker_chips(big_blind * ANTE_RATIO, chipset)

        levels.append(
            TournamentLevel(
                level=level,
                small_blind=small_blind,
                big_blind=big_blind,
                ante=ante,
                duration=level_minutes,
            )
        )
        last_small_blind = small_blind
        running_small_blind = round_half_up(running_small_blind * factor)

    logger.debug(
        "blind_structure_generated",
        levels=len(levels),
        factor=factor,
        format=TournamentFormat.from_value(options.tournament_format).value,
    )
    return levels


def generate_fallback_blinds(starting_stack: int, duration_hours: float) -> List[TournamentLevel]:
    """
    Fixed-ratio schedule used when no chipset is available.

    20-minute levels, 1.5x growth in units of 25, a break every 4th level.
    """
    if starting_stack <= 0 or duration_hours <= 0:
        return []

    total_levels = int(math.floor(duration_hours * 60 / FALLBACK_LEVEL_MINUTES))
    small_blind = max(FALLBACK_BLIND_UNIT, starting_stack // 200 // FALLBACK_BLIND_UNIT * FALLBACK_BLIND_UNIT)
    levels: List[TournamentLevel] = []

    for level in range(1, total_levels + 1):
        if _is_break(level, FALLBACK_BREAK_INTERVAL):
            levels.append(TournamentLevel.break_level(level, BREAK_DURATION_MINUTES))
            continue
        levels.append(
            TournamentLevel(
                level=level,
                small_blind=small_blind,
                big_blind=small_blind * 2,
                duration=FALLBACK_LEVEL_MINUTES,
            )
        )
        grown = math.floor(small_blind * FALLBACK_GROWTH / FALLBACK_BLIND_UNIT) * FALLBACK_BLIND_UNIT
        small_blind = max(grown, small_blind + FALLBACK_BLIND_UNIT)

    return levels


# ─────────────────────────────────────────────────────────────────────────────
# Setup flow
# ─────────────────────────────────────────────────────────────────────────────

_GENERATOR_FORMATS: Dict[str, TournamentFormat] = {
    "freezeout": TournamentFormat.STANDARD,
    "rebuy": TournamentFormat.STANDARD,
    "bounty": TournamentFormat.STANDARD,
    "deepstack": TournamentFormat.DEEPSTACK,
    "turbo": TournamentFormat.TURBO,
    "hyper": TournamentFormat.HYPER,
    "hyperturbo": TournamentFormat.HYPER,
    "hyper-turbo": TournamentFormat.HYPER,
}

PLANNER_LEVEL_MINUTES = 20
PLANNER_BREAK_INTERVAL = 4
PLANNER_ANTE_START_LEVEL = 4


def generator_format_for(tournament_format: str) -> TournamentFormat:
    """Map a setup-form format name to the generator format."""
    return _GENERATOR_FORMATS.get((tournament_format or "").strip().lower(), TournamentFormat.STANDARD)


@dataclass(frozen=True)
class BlindStructureRequest:
    """Inputs of the tournament setup form."""

    player_count: int
    duration_hours: float
    tournament_format: str = "Freezeout"
    chipset: str = "25,100,500,1000,5000"
    allow_rebuy: bool = False
    max_rebuys: int = 0
    include_ante: bool = True
    starting_stack: Optional[int] = None  # 직접 입력한 스택 (없으면 계산)


@dataclass(frozen=True)
class BlindStructurePlan:
    """Result of the setup flow."""

    starting_stack: int
    rebuy_chips: int
    add_on_chips: int
    small_blind: int
    big_blind: int
    levels: Tuple[TournamentLevel, ...] = field(default_factory=tuple)
    used_fallback: bool = False

    @property
    def total_minutes(self) -> int:
        return sum(lv.duration for lv in self.levels)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "starting_stack": self.starting_stack,
            "rebuy_chips": self.rebuy_chips,
            "add_on_chips": self.add_on_chips,
            "small_blind": self.small_blind,
            "big_blind": self.big_blind,
            "levels": [lv.to_dict() for lv in self.levels],
            "used_fallback": self.used_fallback,
        }


def plan_blind_structure(request: BlindStructureRequest) -> BlindStructurePlan:
    """
    Compute stack, top-up chips and the blind schedule for a setup request.

    Uses the fixed-ratio fallback generator when the chipset does not parse.
    """
    chips = parse_chipset(request.chipset)
    sizing = calculate_initial_stack(chips, request.tournament_format, request.duration_hours)
    starting_stack = request.starting_stack or sizing.starting_stack
    rebuy_chips, add_on_chips = suggest_chip_topups(starting_stack, request.tournament_format)

    if request.player_count <= 0 or request.duration_hours <= 0:
        logger.warning(
            "blind_plan_missing_inputs",
            player_count=request.player_count,
            duration_hours=request.duration_hours,
        )
        return BlindStructurePlan(starting_stack, rebuy_chips, add_on_chips, 0, 0)

    if not chips:
        levels = generate_fallback_blinds(starting_stack, request.duration_hours)
        used_fallback = True
    else:
        rebuy_factor = 1 + request.max_rebuys / 2 if request.allow_rebuy else 1.0
        options = GenerationOptions(
            level_duration_minutes=PLANNER_LEVEL_MINUTES,
            tournament_format=generator_format_for(request.tournament_format),
            chipset=tuple(chips),
            ante_start_level=PLANNER_ANTE_START_LEVEL if request.include_ante else ANTE_DISABLED,
            break_interval_levels=PLANNER_BREAK_INTERVAL,
            rebuy_addon_factor=rebuy_factor,
            include_ante=request.include_ante,
        )
        levels = generate_dynamic_blinds(
            request.player_count,
            starting_stack,
            request.duration_hours * 60,
            options,
        )
        used_fallback = False

    first = levels[0] if levels and not levels[0].is_break else None
    logger.info(
        "blind_structure_planned",
        starting_stack=starting_stack,
        levels=len(levels),
        used_fallback=used_fallback,
    )
    return BlindStructurePlan(
        starting_stack=starting_stack,
        rebuy_chips=rebuy_chips,
        add_on_chips=add_on_chips,
        small_blind=first.small_blind if first else 0,
        big_blind=first.big_blind if first else 0,
        levels=tuple(levels),
        used_fallback=used_fallback,
    )
