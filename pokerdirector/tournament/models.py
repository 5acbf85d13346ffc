"""
Tournament Data Models.

Immutable state representations for tournament entities.
All mutations go through the tournament reducer.
"""

from enum import Enum
from dataclasses import dataclass, field, fields, replace
from typing import Optional, List, Dict, Any, Tuple, Mapping, Sequence
from uuid import uuid4


DEFAULT_CHIPSET: Tuple[int, ...] = (25, 100, 500, 1000, 5000)
DEFAULT_CHIPSET_TEXT = "25,100,500,1000,5000"
DEFAULT_TOURNAMENT_NAME = "New Tournament"

# 앤티 비활성화 표식 (도달하지 않는 레벨)
ANTE_DISABLED = 999
BREAK_DURATION_MINUTES = 15


class TournamentFormat(str, Enum):
    """Blind generator formats."""

    STANDARD = "standard"
    DEEPSTACK = "deepstack"
    TURBO = "turbo"
    HYPER = "hyper"

    @classmethod
    def from_value(cls, value: Any) -> "TournamentFormat":
        """Resolve a format name, falling back to STANDARD."""
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().lower().replace("-", "").replace(" ", "")
        if key in ("hyper", "hyperturbo"):
            return cls.HYPER
        for member in cls:
            if member.value == key:
                return member
        return cls.STANDARD

    @property
    def blind_increase_factor(self) -> float:
        return _FORMAT_INCREASE_FACTORS[self]


_FORMAT_INCREASE_FACTORS: Dict[TournamentFormat, float] = {
    TournamentFormat.STANDARD: 1.5,
    TournamentFormat.DEEPSTACK: 1.3,
    TournamentFormat.TURBO: 1.7,
    TournamentFormat.HYPER: 2.0,
}


class HouseFeeType(str, Enum):
    """How the house takes its cut of the gross prize pool."""

    NONE = "none"
    PERCENTAGE = "percentage"
    FIXED = "fixed"

    @classmethod
    def from_value(cls, value: Any) -> "HouseFeeType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.NONE


def _pick(data: Mapping[str, Any], key: str, legacy_key: str, default: Any = None) -> Any:
    """Read a snake_case key, accepting the camelCase spelling of older records."""
    if key in data:
        return data[key]
    return data.get(legacy_key, default)


@dataclass(frozen=True)
class TournamentLevel:
    """One step of the blind schedule (durations in minutes)."""

    level: int
    small_blind: int
    big_blind: int
    ante: int = 0
    duration: int = 20
    is_break: bool = False

    @classmethod
    def break_level(cls, level: int, duration: int = BREAK_DURATION_MINUTES) -> "TournamentLevel":
        return cls(level=level, small_blind=0, big_blind=0, ante=0, duration=duration, is_break=True)

    @property
    def duration_seconds(self) -> int:
        return int(self.duration * 60)

    def with_duration(self, duration: int) -> "TournamentLevel":
        """Return new level with a different duration."""
        return replace(self, duration=duration)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "small_blind": self.small_blind,
            "big_blind": self.big_blind,
            "ante": self.ante,
            "duration": self.duration,
            "is_break": self.is_break,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TournamentLevel":
        return cls(
            level=int(data.get("level", 1)),
            small_blind=int(_pick(data, "small_blind", "smallBlind", 0)),
            big_blind=int(_pick(data, "big_blind", "bigBlind", 0)),
            ante=int(data.get("ante", 0) or 0),
            duration=int(data.get("duration", 20)),
            is_break=bool(_pick(data, "is_break", "isBreak", False)),
        )


@dataclass(frozen=True)
class GenerationOptions:
    """Knobs for the dynamic blind generator."""

    level_duration_minutes: int = 20
    tournament_format: TournamentFormat = TournamentFormat.STANDARD
    chipset: Tuple[int, ...] = DEFAULT_CHIPSET
    ante_start_level: int = 4
    break_interval_levels: int = 4
    blind_increase_factor: Optional[float] = None
    rebuy_addon_factor: float = 1.0  # 기록용, 생성 결과에 영향 없음
    include_ante: bool = True
    break_duration_minutes: int = BREAK_DURATION_MINUTES

    @property
    def resolved_increase_factor(self) -> float:
        """Explicit factor, or the format's default growth rate."""
        if self.blind_increase_factor is not None:
            return self.blind_increase_factor
        return TournamentFormat.from_value(self.tournament_format).blind_increase_factor

    @property
    def antes_enabled(self) -> bool:
        return self.include_ante and self.ante_start_level < ANTE_DISABLED


@dataclass(frozen=True)
class StackSizingResult:
    """Recommended starting stack and first-level blinds."""

    starting_stack: int
    small_blind: int
    big_blind: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "starting_stack": self.starting_stack,
            "small_blind": self.small_blind,
            "big_blind": self.big_blind,
        }


@dataclass(frozen=True)
class PayoutPlace:
    """Share of the net prize pool paid to one finishing position."""

    position: int
    percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {"position": self.position, "percentage": self.percentage}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PayoutPlace":
        return cls(position=int(data["position"]), percentage=float(data["percentage"]))


def _default_payout_places() -> Tuple[PayoutPlace, ...]:
    return (PayoutPlace(1, 50), PayoutPlace(2, 30), PayoutPlace(3, 20))


def coerce_levels(values: Sequence[Any]) -> Tuple[TournamentLevel, ...]:
    """Accept TournamentLevel instances or their dict form."""
    return tuple(
        v if isinstance(v, TournamentLevel) else TournamentLevel.from_dict(v)
        for v in values
    )


def coerce_payout_places(values: Sequence[Any]) -> Tuple[PayoutPlace, ...]:
    return tuple(
        v if isinstance(v, PayoutPlace) else PayoutPlace.from_dict(v)
        for v in values
    )


@dataclass(frozen=True)
class TournamentSettings:
    """
    Money, chip and schedule configuration of a tournament.

    last_rebuy_level / last_add_on_level are 0-based level indices; the
    window stays open while current_level <= the configured index.
    """

    # 바이인 설정
    buy_in_amount: int = 100
    rebuy_amount: int = 100
    add_on_amount: int = 100

    # 칩 설정
    initial_chips: int = 10000
    rebuy_chips: int = 10000
    add_on_chips: int = 10000

    # 리바이/애드온
    max_rebuys: int = 2
    max_add_ons: int = 1
    last_rebuy_level: int = 6
    last_add_on_level: int = 6

    # 하우스 수수료
    house_fee_type: HouseFeeType = HouseFeeType.NONE
    house_fee_value: float = 0

    levels: Tuple[TournamentLevel, ...] = ()
    payout_places: Tuple[PayoutPlace, ...] = field(default_factory=_default_payout_places)

    def merged(self, partial: Mapping[str, Any]) -> Tuple["TournamentSettings", List[str]]:
        """
        Merge a partial update into these settings.

        Returns:
            (new settings, ignored keys) - unknown keys are not applied.
        """
        known = {f.name for f in fields(self)}
        changes: Dict[str, Any] = {}
        ignored: List[str] = []
        for key, value in partial.items():
            if key not in known:
                ignored.append(key)
            elif key == "levels":
                changes[key] = coerce_levels(value)
            elif key == "payout_places":
                changes[key] = coerce_payout_places(value)
            elif key == "house_fee_type":
                changes[key] = HouseFeeType.from_value(value)
            else:
                changes[key] = value
        return replace(self, **changes), ignored

    def to_dict(self) -> Dict[str, Any]:
        return {
            "buy_in_amount": self.buy_in_amount,
            "rebuy_amount": self.rebuy_amount,
            "add_on_amount": self.add_on_amount,
            "initial_chips": self.initial_chips,
            "rebuy_chips": self.rebuy_chips,
            "add_on_chips": self.add_on_chips,
            "max_rebuys": self.max_rebuys,
            "max_add_ons": self.max_add_ons,
            "last_rebuy_level": self.last_rebuy_level,
            "last_add_on_level": self.last_add_on_level,
            "house_fee_type": self.house_fee_type.value,
            "house_fee_value": self.house_fee_value,
            "levels": [lv.to_dict() for lv in self.levels],
            "payout_places": [p.to_dict() for p in self.payout_places],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TournamentSettings":
        settings, _ = cls().merged(data)
        return settings


@dataclass(frozen=True)
class Player:
    """
    Tournament player - immutable.

    Eliminated players hold no seat and no chips.
    """

    id: str
    name: str
    buy_in: bool = True
    rebuys: int = 0
    add_ons: int = 0
    chips: int = 0
    table_number: Optional[int] = None
    seat_number: Optional[int] = None
    eliminated: bool = False
    elimination_position: Optional[int] = None

    @property
    def is_seated(self) -> bool:
        return self.table_number is not None and self.seat_number is not None

    def at_seat(self, table_number: int, seat_number: int) -> "Player":
        """Return new instance seated at table."""
        return replace(self, table_number=table_number, seat_number=seat_number)

    def unseated(self) -> "Player":
        return replace(self, table_number=None, seat_number=None)

    def eliminated_at(self, position: int) -> "Player":
        """Return new instance marked as eliminated."""
        return replace(
            self,
            eliminated=True,
            elimination_position=position,
            chips=0,
            table_number=None,
            seat_number=None,
        )

    def with_rebuy(self, chips: int) -> "Player":
        """Return new instance after a rebuy (back in the game)."""
        return replace(
            self,
            rebuys=self.rebuys + 1,
            chips=self.chips + chips,
            eliminated=False,
            elimination_position=None,
        )

    def with_add_on(self, chips: int) -> "Player":
        return replace(self, add_ons=self.add_ons + 1, chips=self.chips + chips)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "buy_in": self.buy_in,
            "rebuys": self.rebuys,
            "add_ons": self.add_ons,
            "chips": self.chips,
            "table_number": self.table_number,
            "seat_number": self.seat_number,
            "eliminated": self.eliminated,
            "elimination_position": self.elimination_position,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Player":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            buy_in=bool(_pick(data, "buy_in", "buyIn", True)),
            rebuys=int(data.get("rebuys", 0)),
            add_ons=int(_pick(data, "add_ons", "addOns", 0)),
            chips=int(data.get("chips", 0)),
            table_number=_pick(data, "table_number", "tableNumber"),
            seat_number=_pick(data, "seat_number", "seatNumber"),
            eliminated=bool(data.get("eliminated", False)),
            elimination_position=_pick(data, "elimination_position", "eliminationPosition"),
        )


def create_player(name: str, chips: int = 0) -> Player:
    """Register a new player with a fresh id."""
    return Player(id=str(uuid4()), name=name, chips=chips)


@dataclass(frozen=True)
class Table:
    """
    Tournament table - immutable.

    Holds snapshots of its seated players ordered by seat (1-based).
    """

    id: int
    players: Tuple[Player, ...] = ()
    max_seats: int = 9

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def taken_seats(self) -> List[int]:
        return [p.seat_number for p in self.players if p.seat_number is not None]

    def lowest_free_seat(self) -> Optional[int]:
        taken = set(self.taken_seats)
        for seat in range(1, self.max_seats + 1):
            if seat not in taken:
                return seat
        return None

    def with_player(self, player: Player) -> "Table":
        """Return new table with player seated (player already carries its seat)."""
        players = [p for p in self.players if p.id != player.id]
        players.append(player)
        players.sort(key=lambda p: p.seat_number or 0)
        return replace(self, players=tuple(players))

    def without_player(self, player_id: str) -> "Table":
        return replace(self, players=tuple(p for p in self.players if p.id != player_id))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "players": [p.to_dict() for p in self.players],
            "max_seats": self.max_seats,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Table":
        return cls(
            id=int(data["id"]),
            players=tuple(Player.from_dict(p) for p in data.get("players", [])),
            max_seats=int(_pick(data, "max_seats", "maxSeats", 9)),
        )


@dataclass(frozen=True)
class TournamentState:
    """
    Complete tournament state - immutable.

    current_level is a 0-based index into settings.levels and
    time_remaining is in seconds.
    """

    settings: TournamentSettings = field(default_factory=TournamentSettings)
    tournament_id: Optional[str] = None
    name: str = DEFAULT_TOURNAMENT_NAME
    start_date: Optional[str] = None
    chipset: str = DEFAULT_CHIPSET_TEXT

    # 진행 상태
    is_running: bool = False
    current_level: int = 0
    time_remaining: int = 0

    players: Tuple[Player, ...] = ()
    tables: Tuple[Table, ...] = ()
    total_prize_pool: int = 0
    elimination_counter: int = 0

    @property
    def current_blind(self) -> Optional[TournamentLevel]:
        if 0 <= self.current_level < len(self.settings.levels):
            return self.settings.levels[self.current_level]
        return None

    @property
    def active_players(self) -> Tuple[Player, ...]:
        return tuple(p for p in self.players if not p.eliminated)

    @property
    def is_last_level(self) -> bool:
        return self.current_level >= len(self.settings.levels) - 1

    def find_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tournament_id": self.tournament_id,
            "name": self.name,
            "start_date": self.start_date,
            "chipset": self.chipset,
            "is_running": self.is_running,
            "current_level": self.current_level,
            "time_remaining": self.time_remaining,
            "players": [p.to_dict() for p in self.players],
            "tables": [t.to_dict() for t in self.tables],
            "settings": self.settings.to_dict(),
            "total_prize_pool": self.total_prize_pool,
            "elimination_counter": self.elimination_counter,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TournamentState":
        return cls(
            settings=TournamentSettings.from_dict(data.get("settings", {})),
            tournament_id=data.get("tournament_id"),
            name=data.get("name", DEFAULT_TOURNAMENT_NAME),
            start_date=data.get("start_date"),
            chipset=data.get("chipset", DEFAULT_CHIPSET_TEXT),
            is_running=bool(data.get("is_running", False)),
            current_level=int(data.get("current_level", 0)),
            time_remaining=int(data.get("time_remaining", 0)),
            players=tuple(Player.from_dict(p) for p in data.get("players", [])),
            tables=tuple(Table.from_dict(t) for t in data.get("tables", [])),
            total_prize_pool=data.get("total_prize_pool", 0),
            elimination_counter=int(data.get("elimination_counter", 0)),
        )
