"""Tournament actions dispatched to the reducer."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union


class ActionType(str, Enum):
    """Every state transition the director can request."""

    # Clock
    START_TOURNAMENT = "START_TOURNAMENT"
    PAUSE_TOURNAMENT = "PAUSE_TOURNAMENT"
    RESUME_TOURNAMENT = "RESUME_TOURNAMENT"
    STOP_TOURNAMENT = "STOP_TOURNAMENT"
    END_TOURNAMENT = "END_TOURNAMENT"
    NEXT_LEVEL = "NEXT_LEVEL"
    PREV_LEVEL = "PREV_LEVEL"
    PREVIOUS_LEVEL = "PREVIOUS_LEVEL"
    SET_TIME = "SET_TIME"
    UPDATE_CURRENT_LEVEL_DURATION = "UPDATE_CURRENT_LEVEL_DURATION"

    # Players
    ADD_PLAYER = "ADD_PLAYER"
    REMOVE_PLAYER = "REMOVE_PLAYER"
    UPDATE_PLAYER = "UPDATE_PLAYER"
    MARK_ELIMINATED = "MARK_ELIMINATED"
    ADD_REBUY = "ADD_REBUY"
    ADD_ADDON = "ADD_ADDON"

    # Tables
    ASSIGN_TABLES = "ASSIGN_TABLES"
    BALANCE_TABLES = "BALANCE_TABLES"
    CONSOLIDATE_TABLES = "CONSOLIDATE_TABLES"
    MANUAL_SEAT_CHANGE = "MANUAL_SEAT_CHANGE"

    # Configuration
    UPDATE_SETTINGS = "UPDATE_SETTINGS"
    UPDATE_PAYOUT_STRUCTURE = "UPDATE_PAYOUT_STRUCTURE"
    UPDATE_HOUSE_FEE = "UPDATE_HOUSE_FEE"
    UPDATE_TOURNAMENT_NAME = "UPDATE_TOURNAMENT_NAME"
    UPDATE_TOURNAMENT_CHIPSET = "UPDATE_TOURNAMENT_CHIPSET"

    # Lifecycle
    CREATE_TOURNAMENT = "CREATE_TOURNAMENT"
    LOAD_TOURNAMENT = "LOAD_TOURNAMENT"
    SET_TOURNAMENT_ID = "SET_TOURNAMENT_ID"
    RESET_TOURNAMENT = "RESET_TOURNAMENT"

    @classmethod
    def lookup(cls, value: Union["ActionType", str]) -> Optional["ActionType"]:
        """Resolve a type name; None for unknown types."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class TournamentAction:
    """
    A requested transition.

    payload depends on the type: a player id for MARK_ELIMINATED, a Player
    for ADD_PLAYER, a partial dict for UPDATE_SETTINGS, and so on.
    """

    type: Union[ActionType, str]
    payload: Any = None
