"""Default tournament settings and the zero state."""

from typing import Optional

from pokerdirector.config import Settings, get_settings

from .blind_generator import generate_dynamic_blinds
from .chips import parse_chipset
from .models import GenerationOptions, TournamentSettings, TournamentState
from .reducer import level_seconds

DEFAULT_MAX_REBUYS = 2
DEFAULT_MAX_ADD_ONS = 1
DEFAULT_LAST_REBUY_LEVEL = 6
DEFAULT_LAST_ADD_ON_LEVEL = 6


def build_default_settings(config: Optional[Settings] = None) -> TournamentSettings:
    """
    Settings for a new tournament.

    Levels come from the dynamic generator for the configured player count,
    starting stack and duration.
    """
    config = config or get_settings()
    chipset = tuple(parse_chipset(config.default_chipset))
    stack = config.default_starting_chips

    levels = generate_dynamic_blinds(
        config.default_player_count,
        stack,
        config.default_tournament_duration * 60,
        GenerationOptions(chipset=chipset),
    )

    return TournamentSettings(
        buy_in_amount=config.default_buy_in_amount,
        rebuy_amount=config.default_buy_in_amount,
        add_on_amount=config.default_buy_in_amount,
        initial_chips=stack,
        rebuy_chips=stack,
        add_on_chips=stack,
        max_rebuys=DEFAULT_MAX_REBUYS if config.default_allow_rebuy else 0,
        max_add_ons=DEFAULT_MAX_ADD_ONS if config.default_allow_addon else 0,
        last_rebuy_level=DEFAULT_LAST_REBUY_LEVEL,
        last_add_on_level=DEFAULT_LAST_ADD_ON_LEVEL,
        levels=tuple(levels),
    )


def initial_state(config: Optional[Settings] = None) -> TournamentState:
    """Fresh, not-started tournament with default settings."""
    config = config or get_settings()
    settings = build_default_settings(config)
    return TournamentState(
        settings=settings,
        chipset=config.default_chipset,
        time_remaining=level_seconds(settings, 0),
    )
