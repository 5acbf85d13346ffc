"""
Tournament Persistence.

Mirrors tournament configuration and progress to an external record store.

구성:
- RecordStore: 레코드 저장소 프로토콜 (create / update / get)
- InMemoryRecordStore: 프로세스 내 저장소 (테스트, 오프라인)
- RedisRecordStore: Redis JSON 저장소
- TournamentRepository: TournamentState <-> 레코드 변환
- TournamentSession: 스토어와 저장소 연결, 실패는 notifier로 보고
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol
from uuid import uuid4

import redis.asyncio as redis
from pydantic import ValidationError
from redis.exceptions import RedisError

from pokerdirector.config import Settings, get_settings
from pokerdirector.errors import (
    InvalidRecordError,
    PersistenceError,
    TournamentAccessError,
    TournamentError,
    TournamentNotFoundError,
)
from pokerdirector.logging_config import bind_tournament_context, get_logger

from .actions import ActionType
from .models import Player, TournamentSettings, TournamentState
from .notifications import LoggingNotifier, Notifier
from .schemas import TournamentRecord
from .store import TournamentStore

logger = get_logger(__name__)

DEFAULT_KEY_PREFIX = "tournament:record:"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class RecordStore(Protocol):
    """Key-value store of flat tournament records."""

    async def create(self, record: Dict[str, Any]) -> Dict[str, Any]: ...

    async def update(self, record_id: str, partial: Dict[str, Any]) -> Dict[str, Any]: ...

    async def get(self, record_id: str) -> Optional[Dict[str, Any]]: ...


class InMemoryRecordStore:
    """Record store kept in a dict."""

    def __init__(self) -> None:
        self._records: Dict[str, Dict[str, Any]] = {}

    async def create(self, record: Dict[str, Any]) -> Dict[str, Any]:
        stored = dict(record)
        stored["id"] = stored.get("id") or str(uuid4())
        self._records[stored["id"]] = stored
        return dict(stored)

    async def update(self, record_id: str, partial: Dict[str, Any]) -> Dict[str, Any]:
        if record_id not in self._records:
            raise TournamentNotFoundError(record_id)
        self._records[record_id].update(partial)
        return dict(self._records[record_id])

    async def get(self, record_id: str) -> Optional[Dict[str, Any]]:
        record = self._records.get(record_id)
        return dict(record) if record is not None else None


class RedisRecordStore:
    """
    Record store backed by Redis.

    Each record is one JSON string under "{prefix}{id}".
    """

    def __init__(self, redis_client: redis.Redis, key_prefix: str = DEFAULT_KEY_PREFIX):
        self.redis = redis_client
        self._key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str = DEFAULT_KEY_PREFIX) -> "RedisRecordStore":
        return cls(redis.from_url(url, decode_responses=True), key_prefix)

    def _key(self, record_id: str) -> str:
        return f"{self._key_prefix}{record_id}"

    async def create(self, record: Dict[str, Any]) -> Dict[str, Any]:
        stored = dict(record)
        stored["id"] = stored.get("id") or str(uuid4())
        try:
            await self.redis.set(self._key(stored["id"]), json.dumps(stored))
        except RedisError as e:
            raise PersistenceError("create", str(e)) from e
        return stored

    async def update(self, record_id: str, partial: Dict[str, Any]) -> Dict[str, Any]:
        current = await self.get(record_id)
        if current is None:
            raise TournamentNotFoundError(record_id)
        current.update(partial)
        try:
            await self.redis.set(self._key(record_id), json.dumps(current))
        except RedisError as e:
            raise PersistenceError("update", str(e)) from e
        return current

    async def get(self, record_id: str) -> Optional[Dict[str, Any]]:
        try:
            data = await self.redis.get(self._key(record_id))
        except RedisError as e:
            raise PersistenceError("load", str(e)) from e
        if not data:
            return None
        try:
            return json.loads(data)
        except ValueError as e:
            raise InvalidRecordError(record_id, "stored value is not JSON") from e


def create_record_store(config: Optional[Settings] = None) -> RecordStore:
    """Redis store when REDIS_URL is configured, in-memory otherwise."""
    config = config or get_settings()
    if config.redis_url:
        return RedisRecordStore.from_url(config.redis_url, config.redis_key_prefix)
    return InMemoryRecordStore()


class TournamentRepository:
    """Converts TournamentState to and from store records."""

    def __init__(self, store: RecordStore):
        self._store = store

    @staticmethod
    def record_status(state: TournamentState) -> str:
        if state.is_running:
            return "running"
        if state.current_level > 0:
            return "paused"
        return "not_started"

    @classmethod
    def to_record(cls, state: TournamentState, owner_id: Optional[str] = None) -> Dict[str, Any]:
        settings = state.settings.to_dict()
        levels = settings.pop("levels")
        payouts = settings.pop("payout_places")
        record = {
            "name": state.name,
            "status": cls.record_status(state),
            "start_date": state.start_date,
            "chipset": state.chipset,
            "current_level": state.current_level,
            "is_running": state.is_running,
            "settings": json.dumps(settings),
            "blind_levels": json.dumps(levels),
            "payout_structure": json.dumps(payouts),
            "players": json.dumps([p.to_dict() for p in state.players]),
            "updated_at": _utc_now(),
        }
        if owner_id is not None:
            record["owner_id"] = owner_id
        return record

    @staticmethod
    def from_record(record: TournamentRecord) -> TournamentState:
        """Build the state a LOAD_TOURNAMENT would produce (tables rebuilt by the reducer)."""
        settings, ignored = TournamentSettings().merged(
            {
                **record.decoded_settings(),
                "levels": record.decoded_levels(),
                "payout_places": record.decoded_payout_structure(),
            }
        )
        if ignored:
            logger.debug("record_settings_keys_ignored", tournament_id=record.id, keys=ignored)
        return TournamentState(
            settings=settings,
            tournament_id=record.id,
            name=record.name,
            start_date=record.start_date,
            chipset=record.chipset,
            is_running=record.is_running,
            current_level=record.current_level,
            players=tuple(Player.from_dict(p) for p in record.decoded_players()),
        )

    async def save(self, state: TournamentState, owner_id: Optional[str] = None) -> str:
        """
        Create or update the record for a state.

        Returns:
            The record id (new for unsaved tournaments).

        Raises:
            PersistenceError: When the store fails
        """
        record = self.to_record(state, owner_id)
        try:
            if state.tournament_id:
                await self._store.update(state.tournament_id, record)
                record_id = state.tournament_id
            else:
                record["created_at"] = record["updated_at"]
                created = await self._store.create(record)
                record_id = created["id"]
        except TournamentError:
            raise
        except Exception as e:
            logger.exception("tournament_save_failed", tournament_id=state.tournament_id)
            raise PersistenceError("save", str(e)) from e

        logger.info("tournament_saved", tournament_id=record_id, players=len(state.players))
        return record_id

    async def load(self, tournament_id: str, owner_id: Optional[str] = None) -> TournamentState:
        """
        Load a tournament.

        Raises:
            TournamentNotFoundError: Unknown id
            TournamentAccessError: Record belongs to another owner
            InvalidRecordError: Record fails validation
            PersistenceError: When the store fails
        """
        try:
            data = await self._store.get(tournament_id)
        except TournamentError:
            raise
        except Exception as e:
            logger.exception("tournament_load_failed", tournament_id=tournament_id)
            raise PersistenceError("load", str(e)) from e

        if data is None:
            raise TournamentNotFoundError(tournament_id)

        try:
            record = TournamentRecord.model_validate(data)
        except ValidationError as e:
            raise InvalidRecordError(tournament_id, str(e.errors()[0]["msg"])) from e

        if owner_id is not None and record.owner_id not in (None, owner_id):
            raise TournamentAccessError(tournament_id)

        try:
            state = self.from_record(record)
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidRecordError(tournament_id, str(e)) from e

        logger.info("tournament_loaded", tournament_id=tournament_id, players=len(state.players))
        return state


class TournamentSession:
    """
    Binds a TournamentStore to a repository.

    Failures are reported through the notifier; the in-memory state is never
    rolled back.
    """

    def __init__(
        self,
        store: TournamentStore,
        repository: TournamentRepository,
        notifier: Optional[Notifier] = None,
        owner_id: Optional[str] = None,
    ):
        self._store = store
        self._repository = repository
        self._notifier = notifier or store.notifier or LoggingNotifier()
        self._owner_id = owner_id

    async def save(self) -> bool:
        """Persist the current state; True on success."""
        state = self._store.state
        try:
            tournament_id = await self._repository.save(state, self._owner_id)
        except TournamentError as e:
            logger.warning("session_save_failed", code=e.code, reason=e.message)
            self._notifier.error(e.message)
            return False

        if state.tournament_id != tournament_id:
            self._store.dispatch(ActionType.SET_TOURNAMENT_ID, tournament_id)
            bind_tournament_context(tournament_id)
        self._notifier.success("Tournament saved")
        return True

    async def load(self, tournament_id: str) -> bool:
        """Replace the current state with a stored tournament; True on success."""
        try:
            loaded = await self._repository.load(tournament_id, self._owner_id)
        except TournamentError as e:
            logger.warning("session_load_failed", code=e.code, reason=e.message)
            self._notifier.error(e.message)
            return False

        self._store.dispatch(ActionType.LOAD_TOURNAMENT, loaded)
        bind_tournament_context(tournament_id)
        self._notifier.success(f"Loaded tournament {loaded.name}")
        return True
