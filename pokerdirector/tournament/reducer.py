"""
Tournament State Reducer.

Pure transition function: (state, action) -> new state. State objects are
frozen, so every accepted action returns a new TournamentState and every
rejected or no-op action returns the very same object. Rejections are
reported through the notifier, never raised.
"""

import math
import random
from dataclasses import replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from pokerdirector.errors import ErrorCode
from pokerdirector.logging_config import get_logger

from .actions import ActionType, TournamentAction
from .balancer import (
    DEFAULT_MAX_SEATS,
    assign_players_to_tables,
    balance_tables,
    consolidate_tables,
)
from .models import (
    HouseFeeType,
    Player,
    Table,
    TournamentSettings,
    TournamentState,
    coerce_payout_places,
)
from .notifications import Notifier

logger = get_logger(__name__)

Handler = Callable[[TournamentState, Any, Optional[Notifier]], TournamentState]


def calculate_prize_pool(players: Sequence[Player], settings: TournamentSettings) -> int:
    """Buy-ins + rebuys + add-ons paid by every registered player."""
    total = 0
    for player in players:
        if player.buy_in:
            total += settings.buy_in_amount
        total += player.rebuys * settings.rebuy_amount
        total += player.add_ons * settings.add_on_amount
    return total


def level_seconds(settings: TournamentSettings, index: int) -> int:
    """Duration of the level at index in seconds; 0 when there is no such level."""
    if 0 <= index < len(settings.levels):
        return settings.levels[index].duration_seconds
    return 0


def _reject(notifier: Optional[Notifier], code: ErrorCode, message: str, **context: Any) -> None:
    logger.info("action_rejected", code=code.value, reason=message, **context)
    if notifier is not None:
        notifier.error(message)


def _payload_get(payload: Any, key: str, default: Any = None) -> Any:
    if isinstance(payload, Mapping):
        return payload.get(key, default)
    return default


# ─────────────────────────────────────────────────────────────────────────────
# Seating helpers
# ─────────────────────────────────────────────────────────────────────────────


def _sync_tables(players: Sequence[Player], tables: Sequence[Table] = ()) -> Tuple[Table, ...]:
    """
    Rebuild table snapshots from the seats recorded on the canonical player list.

    Existing tables are kept (even when empty) with their seat counts.
    """
    max_seats = {t.id: t.max_seats for t in tables}
    groups: Dict[int, List[Player]] = {t.id: [] for t in tables}
    for player in players:
        if player.eliminated or not player.is_seated:
            continue
        groups.setdefault(player.table_number, []).append(player)

    synced = []
    for table_id in sorted(groups):
        seated = sorted(groups[table_id], key=lambda p: p.seat_number or 0)
        seats = max([max_seats.get(table_id, DEFAULT_MAX_SEATS)] + [p.seat_number for p in seated])
        synced.append(Table(id=table_id, players=tuple(seated), max_seats=seats))
    return tuple(synced)


def _seat_from_tables(players: Sequence[Player], tables: Sequence[Table]) -> Tuple[Player, ...]:
    """Copy each player's seat from the tables; unseat everyone not found."""
    seats: Dict[str, Tuple[int, int]] = {}
    for table in tables:
        for player in table.players:
            if player.seat_number is not None:
                seats[player.id] = (table.id, player.seat_number)

    updated = []
    for player in players:
        seat = None if player.eliminated else seats.get(player.id)
        if seat is None:
            updated.append(player if not player.is_seated else player.unseated())
        elif (player.table_number, player.seat_number) != seat:
            updated.append(player.at_seat(*seat))
        else:
            updated.append(player)
    return tuple(updated)


def _with_seating(state: TournamentState, tables: Sequence[Table]) -> TournamentState:
    players = _seat_from_tables(state.players, tables)
    return replace(state, players=players, tables=_sync_tables(players, tables))


def _with_players(state: TournamentState, players: Sequence[Player]) -> TournamentState:
    """Replace the player list, re-sync tables and recompute the prize pool."""
    players = tuple(players)
    return replace(
        state,
        players=players,
        tables=_sync_tables(players, state.tables),
        total_prize_pool=calculate_prize_pool(players, state.settings),
    )


def _replace_player(players: Sequence[Player], updated: Player) -> Tuple[Player, ...]:
    return tuple(updated if p.id == updated.id else p for p in players)


# ─────────────────────────────────────────────────────────────────────────────
# Clock
# ─────────────────────────────────────────────────────────────────────────────


def _start(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    if state.is_running:
        return state
    return replace(state, is_running=True)


def _pause(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    if not state.is_running:
        return state
    return replace(state, is_running=False)


def _stop(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    return replace(
        state,
        is_running=False,
        current_level=0,
        time_remaining=level_seconds(state.settings, 0),
    )


def _next_level(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    if state.current_level >= len(state.settings.levels) - 1:
        return state
    index = state.current_level + 1
    return replace(state, current_level=index, time_remaining=level_seconds(state.settings, index))


def _prev_level(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    if state.current_level <= 0:
        return state
    index = state.current_level - 1
    return replace(state, current_level=index, time_remaining=level_seconds(state.settings, index))


def _set_time(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    try:
        seconds = max(0, int(payload))
    except (TypeError, ValueError):
        _reject(notifier, ErrorCode.INVALID_REQUEST, "Invalid time value", payload=repr(payload))
        return state
    if seconds == state.time_remaining:
        return state
    return replace(state, time_remaining=seconds)


def _update_level_duration(
    state: TournamentState, payload: Any, notifier: Optional[Notifier]
) -> TournamentState:
    index = _payload_get(payload, "level_index")
    duration = _payload_get(payload, "duration")
    levels = state.settings.levels
    if not isinstance(index, int) or not 0 <= index < len(levels):
        return state
    # 분 단위 정수만
    if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
        _reject(notifier, ErrorCode.INVALID_LEVEL, "Level duration must be positive whole minutes", duration=duration)
        return state

    updated = list(levels)
    updated[index] = updated[index].with_duration(duration)
    settings = replace(state.settings, levels=tuple(updated))
    time_remaining = settings.levels[index].duration_seconds if index == state.current_level else state.time_remaining
    return replace(state, settings=settings, time_remaining=time_remaining)


# ─────────────────────────────────────────────────────────────────────────────
# Players
# ─────────────────────────────────────────────────────────────────────────────


def _add_player(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    if not isinstance(payload, Player):
        _reject(notifier, ErrorCode.INVALID_REQUEST, "Invalid player")
        return state
    if state.find_player(payload.id) is not None:
        _reject(notifier, ErrorCode.INVALID_REQUEST, f"Player {payload.name} is already registered")
        return state

    player = payload
    # 신규 등록 시 칩 미지정이면 시작 스택 지급
    if player.chips == 0 and player.buy_in and not player.eliminated:
        player = replace(player, chips=state.settings.initial_chips)
    logger.info("player_added", player_id=player.id)
    return _with_players(state, state.players + (player,))


def _remove_player(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    if state.find_player(payload) is None:
        return state
    return _with_players(state, tuple(p for p in state.players if p.id != payload))


def _update_player(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    if not isinstance(payload, Player) or state.find_player(payload.id) is None:
        _reject(notifier, ErrorCode.PLAYER_NOT_FOUND, "Player not found")
        return state
    return _with_players(state, _replace_player(state.players, payload))


def _mark_eliminated(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    player = state.find_player(payload)
    if player is None:
        _reject(notifier, ErrorCode.PLAYER_NOT_FOUND, "Player not found", player_id=payload)
        return state

    counter = state.elimination_counter + 1
    eliminated = player.eliminated_at(counter)
    logger.info("player_eliminated", player_id=player.id, position=counter)
    updated = _with_players(state, _replace_player(state.players, eliminated))
    return replace(updated, elimination_counter=counter)


def _add_rebuy(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    settings = state.settings
    if state.current_level > settings.last_rebuy_level:
        _reject(notifier, ErrorCode.REBUY_CLOSED, "Rebuys are no longer allowed at this level")
        return state

    player = state.find_player(payload)
    if player is None:
        _reject(notifier, ErrorCode.PLAYER_NOT_FOUND, "Player not found", player_id=payload)
        return state

    logger.info("player_rebuy", player_id=player.id, rebuys=player.rebuys + 1)
    return _with_players(state, _replace_player(state.players, player.with_rebuy(settings.rebuy_chips)))


def _add_addon(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    settings = state.settings
    if state.current_level > settings.last_add_on_level:
        _reject(notifier, ErrorCode.ADDON_CLOSED, "Add-ons are no longer allowed at this level")
        return state

    player = state.find_player(payload)
    if player is None:
        _reject(notifier, ErrorCode.PLAYER_NOT_FOUND, "Player not found", player_id=payload)
        return state
    if player.add_ons >= settings.max_add_ons:
        _reject(notifier, ErrorCode.ADDON_LIMIT_REACHED, f"Maximum {settings.max_add_ons} add-ons reached")
        return state

    logger.info("player_addon", player_id=player.id, add_ons=player.add_ons + 1)
    return _with_players(state, _replace_player(state.players, player.with_add_on(settings.add_on_chips)))


# ─────────────────────────────────────────────────────────────────────────────
# Tables
# ─────────────────────────────────────────────────────────────────────────────


def _assign_tables(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    max_per_table = _payload_get(payload, "max_players_per_table") or DEFAULT_MAX_SEATS
    seed = _payload_get(payload, "seed")
    active = state.active_players
    num_tables = max(1, math.ceil(len(active) / max_per_table))
    rng = random.Random(seed) if seed is not None else None

    tables = assign_players_to_tables(state.players, num_tables, max_per_table, rng)
    logger.info("tables_assigned", tables=num_tables, players=len(active))
    return _with_seating(state, tables)


def _balance(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    if len(state.tables) <= 1:
        return state
    tables = balance_tables(state.tables)
    if tables == state.tables:
        return state
    return _with_seating(state, tables)


def _consolidate(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    if len(state.tables) <= 1:
        return state
    tables = consolidate_tables(state.tables)
    if tables == state.tables:
        return state
    return _with_seating(state, tables)


def _manual_seat_change(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    player = state.find_player(_payload_get(payload, "player_id"))
    if player is None:
        _reject(notifier, ErrorCode.PLAYER_NOT_FOUND, "Player not found")
        return state

    table_number = _payload_get(payload, "table_number") or 0
    seat_number = _payload_get(payload, "seat_number") or 0
    if table_number > 0 and seat_number > 0:
        for other in state.active_players:
            if other.id != player.id and other.table_number == table_number and other.seat_number == seat_number:
                _reject(notifier, ErrorCode.INVALID_REQUEST, f"Seat {seat_number} at table {table_number} is taken")
                return state
        moved = player.at_seat(table_number, seat_number)
    else:
        moved = player.unseated()

    players = _replace_player(state.players, moved)
    return replace(state, players=players, tables=_sync_tables(players, state.tables))


# ─────────────────────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────────────────────


def _update_settings(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    if isinstance(payload, TournamentSettings):
        settings = payload
    elif isinstance(payload, Mapping):
        settings, ignored = state.settings.merged(payload)
        if ignored:
            logger.warning("settings_keys_ignored", keys=ignored)
    else:
        _reject(notifier, ErrorCode.INVALID_REQUEST, "Invalid settings")
        return state

    current_level = state.current_level
    if not 0 <= current_level < max(1, len(settings.levels)):
        logger.info("current_level_clamped", level=current_level, levels=len(settings.levels))
        current_level = 0
    time_remaining = level_seconds(settings, 0) if current_level == 0 else state.time_remaining
    return replace(
        state,
        settings=settings,
        current_level=current_level,
        total_prize_pool=calculate_prize_pool(state.players, settings),
        time_remaining=time_remaining,
    )


def _update_payout_structure(
    state: TournamentState, payload: Any, notifier: Optional[Notifier]
) -> TournamentState:
    try:
        places = coerce_payout_places(payload or ())
    except (KeyError, TypeError, ValueError):
        _reject(notifier, ErrorCode.INVALID_REQUEST, "Invalid payout structure")
        return state
    return replace(state, settings=replace(state.settings, payout_places=places))


def _update_house_fee(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    fee_type = HouseFeeType.from_value(_payload_get(payload, "type"))
    value = _payload_get(payload, "value", 0) or 0
    settings = replace(state.settings, house_fee_type=fee_type, house_fee_value=value)
    return replace(state, settings=settings)


def _update_name(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    return replace(state, name=str(payload))


def _update_chipset(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    return replace(state, chipset=str(payload))


def _set_tournament_id(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    if payload == state.tournament_id:
        return state
    return replace(state, tournament_id=payload)


# ─────────────────────────────────────────────────────────────────────────────
# Lifecycle
# ─────────────────────────────────────────────────────────────────────────────


def _create_tournament(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    settings = _payload_get(payload, "settings") or state.settings
    if isinstance(settings, Mapping):
        settings = TournamentSettings.from_dict(settings)
    return TournamentState(
        settings=settings,
        tournament_id=_payload_get(payload, "tournament_id"),
        name=_payload_get(payload, "name") or state.name,
        start_date=_payload_get(payload, "start_date"),
        chipset=_payload_get(payload, "chipset") or state.chipset,
        time_remaining=level_seconds(settings, 0),
    )


def _load_tournament(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    if isinstance(payload, TournamentState):
        loaded = payload
        payload = {
            "tournament_id": loaded.tournament_id,
            "name": loaded.name,
            "start_date": loaded.start_date,
            "settings": loaded.settings,
            "players": loaded.players,
            "is_running": loaded.is_running,
            "current_level": loaded.current_level,
            "chipset": loaded.chipset,
        }
    if not isinstance(payload, Mapping):
        _reject(notifier, ErrorCode.INVALID_REQUEST, "Invalid tournament data")
        return state

    settings = payload.get("settings") or state.settings
    if isinstance(settings, Mapping):
        settings = TournamentSettings.from_dict(settings)
    players = tuple(
        p if isinstance(p, Player) else Player.from_dict(p) for p in payload.get("players") or ()
    )

    current_level = int(payload.get("current_level") or 0)
    if not 0 <= current_level < max(1, len(settings.levels)):
        current_level = 0

    positions = [p.elimination_position or 0 for p in players if p.eliminated]
    counter = max([sum(1 for p in players if p.eliminated)] + positions)

    return TournamentState(
        settings=settings,
        tournament_id=payload.get("tournament_id") or state.tournament_id,
        name=payload.get("name") or state.name,
        start_date=payload.get("start_date") or state.start_date,
        chipset=payload.get("chipset") or state.chipset,
        is_running=bool(payload.get("is_running", False)),
        current_level=current_level,
        time_remaining=level_seconds(settings, current_level),
        players=players,
        tables=_sync_tables(players),
        total_prize_pool=calculate_prize_pool(players, settings),
        elimination_counter=counter,
    )


def _reset(state: TournamentState, payload: Any, notifier: Optional[Notifier]) -> TournamentState:
    return replace(
        state,
        is_running=False,
        current_level=0,
        time_remaining=level_seconds(state.settings, 0),
        players=(),
        tables=(),
        total_prize_pool=0,
        elimination_counter=0,
    )


_HANDLERS: Dict[ActionType, Handler] = {
    ActionType.START_TOURNAMENT: _start,
    ActionType.RESUME_TOURNAMENT: _start,
    ActionType.PAUSE_TOURNAMENT: _pause,
    ActionType.STOP_TOURNAMENT: _stop,
    ActionType.END_TOURNAMENT: _stop,
    ActionType.NEXT_LEVEL: _next_level,
    ActionType.PREV_LEVEL: _prev_level,
    ActionType.PREVIOUS_LEVEL: _prev_level,
    ActionType.SET_TIME: _set_time,
    ActionType.UPDATE_CURRENT_LEVEL_DURATION: _update_level_duration,
    ActionType.ADD_PLAYER: _add_player,
    ActionType.REMOVE_PLAYER: _remove_player,
    ActionType.UPDATE_PLAYER: _update_player,
    ActionType.MARK_ELIMINATED: _mark_eliminated,
    ActionType.ADD_REBUY: _add_rebuy,
    ActionType.ADD_ADDON: _add_addon,
    ActionType.ASSIGN_TABLES: _assign_tables,
    ActionType.BALANCE_TABLES: _balance,
    ActionType.CONSOLIDATE_TABLES: _consolidate,
    ActionType.MANUAL_SEAT_CHANGE: _manual_seat_change,
    ActionType.UPDATE_SETTINGS: _update_settings,
    ActionType.UPDATE_PAYOUT_STRUCTURE: _update_payout_structure,
    ActionType.UPDATE_HOUSE_FEE: _update_house_fee,
    ActionType.UPDATE_TOURNAMENT_NAME: _update_name,
    ActionType.UPDATE_TOURNAMENT_CHIPSET: _update_chipset,
    ActionType.CREATE_TOURNAMENT: _create_tournament,
    ActionType.LOAD_TOURNAMENT: _load_tournament,
    ActionType.SET_TOURNAMENT_ID: _set_tournament_id,
    ActionType.RESET_TOURNAMENT: _reset,
}


def tournament_reducer(
    state: TournamentState,
    action: TournamentAction,
    notifier: Optional[Notifier] = None,
) -> TournamentState:
    """
    Apply one action to the tournament state.

    Args:
        state: Current state (never mutated)
        action: Requested transition
        notifier: Receives an error() message for rejected actions

    Returns:
        New state, or the same object when the action is rejected, a no-op
        or of an unknown type.
    """
    action_type = ActionType.lookup(action.type)
    if action_type is None:
        logger.debug("unknown_action_ignored", action_type=str(action.type))
        return state
    return _HANDLERS[action_type](state, action.payload, notifier)
