"""
Poker Tournament Director Core.

This module provides:
- Chip-aware stack sizing and dynamic blind schedule generation
- A pure reducer over immutable tournament state, owned by TournamentStore
- Table assignment, balancing and consolidation
- Prize pool and payout calculation
- An asyncio level timer
- Record store persistence and read-only share links
"""

from .actions import ActionType, TournamentAction
from .balancer import (
    TableBalancer,
    assign_players_to_tables,
    balance_tables,
    consolidate_tables,
)
from .blind_generator import (
    BlindStructurePlan,
    BlindStructureRequest,
    generate_dynamic_blinds,
    generate_fallback_blinds,
    plan_blind_structure,
)
from .chips import parse_chipset, round_to_poker_chips
from .defaults import build_default_settings, initial_state
from .models import (
    DEFAULT_CHIPSET,
    GenerationOptions,
    HouseFeeType,
    PayoutPlace,
    Player,
    StackSizingResult,
    Table,
    TournamentFormat,
    TournamentLevel,
    TournamentSettings,
    TournamentState,
    create_player,
)
from .notifications import LoggingNotifier, Notifier, NullSoundPlayer, SoundPlayer
from .payout import (
    PayoutInput,
    PayoutSummary,
    assign_prizes,
    calculate_prize_pool_and_payouts,
    finishing_positions,
    suggest_payout_structure,
)
from .persistence import (
    InMemoryRecordStore,
    RecordStore,
    RedisRecordStore,
    TournamentRepository,
    TournamentSession,
    create_record_store,
)
from .reducer import calculate_prize_pool, tournament_reducer
from .share import ShareOptions, UrlShortener, build_share_snapshot, decode_share_snapshot
from .stack_calculator import calculate_initial_stack, suggest_chip_topups
from .store import TournamentStore
from .timer import LevelTimer

__all__ = [
    "ActionType",
    "TournamentAction",
    "TableBalancer",
    "assign_players_to_tables",
    "balance_tables",
    "consolidate_tables",
    "BlindStructurePlan",
    "BlindStructureRequest",
    "generate_dynamic_blinds",
    "generate_fallback_blinds",
    "plan_blind_structure",
    "parse_chipset",
    "round_to_poker_chips",
    "build_default_settings",
    "initial_state",
    "DEFAULT_CHIPSET",
    "GenerationOptions",
    "HouseFeeType",
    "PayoutPlace",
    "Player",
    "StackSizingResult",
    "Table",
    "TournamentFormat",
    "TournamentLevel",
    "TournamentSettings",
    "TournamentState",
    "create_player",
    "LoggingNotifier",
    "Notifier",
    "NullSoundPlayer",
    "SoundPlayer",
    "PayoutInput",
    "PayoutSummary",
    "assign_prizes",
    "calculate_prize_pool_and_payouts",
    "finishing_positions",
    "suggest_payout_structure",
    "InMemoryRecordStore",
    "RecordStore",
    "RedisRecordStore",
    "TournamentRepository",
    "TournamentSession",
    "create_record_store",
    "calculate_prize_pool",
    "tournament_reducer",
    "ShareOptions",
    "UrlShortener",
    "build_share_snapshot",
    "decode_share_snapshot",
    "calculate_initial_stack",
    "suggest_chip_topups",
    "TournamentStore",
    "LevelTimer",
]
