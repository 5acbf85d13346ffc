"""
Tournament Persistence Tests.

레코드 저장소 / 저장소 변환 / 세션 저장·불러오기 테스트.

- 저장 후 불러오기 시 설정, 블라인드, 플레이어, 좌석 복원
- 저장 실패 시 notifier 에러, 메모리 상태 유지
- 소유자 불일치 거부
"""

import json
from dataclasses import replace
from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from pokerdirector.config import Settings, get_settings
from pokerdirector.errors import (
    ErrorCode,
    InvalidRecordError,
    PersistenceError,
    TournamentAccessError,
    TournamentNotFoundError,
)
from pokerdirector.tournament.actions import ActionType
from pokerdirector.tournament.models import HouseFeeType
from pokerdirector.tournament.persistence import (
    InMemoryRecordStore,
    RedisRecordStore,
    TournamentRepository,
    TournamentSession,
    create_record_store,
)
from pokerdirector.tournament.schemas import TournamentRecord
from pokerdirector.tournament.store import TournamentStore


class MockRedis:
    """Mock Redis client for record store tests."""

    def __init__(self, fail: bool = False):
        self._data = {}
        self.fail = fail

    async def set(self, key, value, nx=False, px=None, ex=None):
        if self.fail:
            raise RedisConnectionError("connection refused")
        if nx and key in self._data:
            return False
        self._data[key] = value
        return True

    async def get(self, key):
        if self.fail:
            raise RedisConnectionError("connection refused")
        return self._data.get(key)


@pytest.fixture
def record_store():
    return InMemoryRecordStore()


@pytest.fixture
def repository(record_store):
    return TournamentRepository(record_store)


@pytest.fixture
def seated_state(state_with_players):
    """테이블 배정 + 탈락 1명 + 수수료 설정."""
    store = TournamentStore(state_with_players)
    store.dispatch(ActionType.ASSIGN_TABLES, {"max_players_per_table": 6})
    store.dispatch(ActionType.MARK_ELIMINATED, "p4")
    store.dispatch(ActionType.UPDATE_HOUSE_FEE, {"type": "percentage", "value": 10})
    store.dispatch(ActionType.NEXT_LEVEL)
    store.dispatch(ActionType.UPDATE_TOURNAMENT_NAME, "Friday Night")
    return store.state


# =============================================================================
# Record stores
# =============================================================================


class TestInMemoryRecordStore:
    """프로세스 내 저장소."""

    @pytest.mark.asyncio
    async def test_create_assigns_id(self, record_store):
        created = await record_store.create({"name": "A"})
        assert created["id"]
        assert (await record_store.get(created["id"]))["name"] == "A"

    @pytest.mark.asyncio
    async def test_update_merges(self, record_store):
        created = await record_store.create({"name": "A", "current_level": 0})
        updated = await record_store.update(created["id"], {"current_level": 3})
        assert updated == {"id": created["id"], "name": "A", "current_level": 3}

    @pytest.mark.asyncio
    async def test_update_unknown_id(self, record_store):
        with pytest.raises(TournamentNotFoundError):
            await record_store.update("missing", {})

    @pytest.mark.asyncio
    async def test_get_returns_copy(self, record_store):
        created = await record_store.create({"name": "A"})
        fetched = await record_store.get(created["id"])
        fetched["name"] = "changed"
        assert (await record_store.get(created["id"]))["name"] == "A"


class TestRedisRecordStore:
    """Redis JSON 저장소."""

    @pytest.mark.asyncio
    async def test_create_and_get(self):
        redis = MockRedis()
        store = RedisRecordStore(redis, key_prefix="test:")
        created = await store.create({"id": "t1", "name": "A"})

        assert json.loads(redis._data["test:t1"]) == created
        assert await store.get("t1") == {"id": "t1", "name": "A"}
        assert await store.get("missing") is None

    @pytest.mark.asyncio
    async def test_update(self):
        store = RedisRecordStore(MockRedis())
        await store.create({"id": "t1", "name": "A"})
        updated = await store.update("t1", {"name": "B"})
        assert updated["name"] == "B"
        with pytest.raises(TournamentNotFoundError):
            await store.update("t2", {"name": "B"})

    @pytest.mark.asyncio
    async def test_redis_failure_wrapped(self):
        store = RedisRecordStore(MockRedis(fail=True))
        with pytest.raises(PersistenceError) as exc_info:
            await store.create({"name": "A"})
        assert exc_info.value.code == ErrorCode.PERSISTENCE_FAILED.value
        assert exc_info.value.details == {"operation": "create"}

    @pytest.mark.asyncio
    async def test_corrupt_value(self):
        redis = MockRedis()
        redis._data["tournament:record:t1"] = "{not json"
        with pytest.raises(InvalidRecordError):
            await RedisRecordStore(redis).get("t1")

    def test_factory(self, config):
        assert isinstance(create_record_store(config), InMemoryRecordStore)
        redis_config = Settings(_env_file=None, redis_url="redis://localhost:6379/0", redis_key_prefix="td:")
        store = create_record_store(redis_config)
        assert isinstance(store, RedisRecordStore)
        assert store._key("t1") == "td:t1"

    def test_factory_reads_environment(self, monkeypatch):
        monkeypatch.setenv("REDIS_URL", "redis://cache:6379/1")
        get_settings.cache_clear()
        try:
            assert isinstance(create_record_store(), RedisRecordStore)
        finally:
            get_settings.cache_clear()


# =============================================================================
# Repository
# =============================================================================


class TestTournamentRepository:
    """TournamentState <-> 레코드 변환."""

    def test_record_layout(self, seated_state):
        record = TournamentRepository.to_record(seated_state, owner_id="alice")
        assert record["status"] == "paused"
        assert record["owner_id"] == "alice"
        assert record["current_level"] == 1
        assert "levels" not in json.loads(record["settings"])
        assert len(json.loads(record["blind_levels"])) == 5
        assert len(json.loads(record["players"])) == 9

    @pytest.mark.parametrize(
        "is_running,level,expected",
        [(True, 0, "running"), (False, 2, "paused"), (False, 0, "not_started")],
    )
    def test_record_status(self, base_state, is_running, level, expected):
        state = replace(base_state, is_running=is_running, current_level=level)
        assert TournamentRepository.record_status(state) == expected

    @pytest.mark.asyncio
    async def test_round_trip(self, repository, seated_state):
        tournament_id = await repository.save(seated_state)
        loaded = await repository.load(tournament_id)

        assert loaded.tournament_id == tournament_id
        assert loaded.name == "Friday Night"
        assert loaded.current_level == 1
        assert loaded.settings.levels == seated_state.settings.levels
        assert loaded.settings.payout_places == seated_state.settings.payout_places
        assert loaded.settings.house_fee_type is HouseFeeType.PERCENTAGE
        assert loaded.players == seated_state.players

    @pytest.mark.asyncio
    async def test_edited_level_duration_survives_round_trip(self, repository, seated_state, notifier):
        store = TournamentStore(seated_state, notifier=notifier)
        store.dispatch(ActionType.UPDATE_CURRENT_LEVEL_DURATION, {"level_index": 1, "duration": 12.5})
        notifier.error.assert_called_once()
        store.dispatch(ActionType.UPDATE_CURRENT_LEVEL_DURATION, {"level_index": 1, "duration": 13})

        loaded = await repository.load(await repository.save(store.state))
        assert loaded.settings.levels[1].duration == 13
        assert loaded.settings.levels == store.state.settings.levels

    @pytest.mark.asyncio
    async def test_save_existing_updates(self, repository, record_store, seated_state):
        tournament_id = await repository.save(seated_state)
        saved = replace(seated_state, tournament_id=tournament_id, current_level=3)
        assert await repository.save(saved) == tournament_id
        assert (await record_store.get(tournament_id))["current_level"] == 3

    @pytest.mark.asyncio
    async def test_load_missing(self, repository):
        with pytest.raises(TournamentNotFoundError):
            await repository.load("nope")

    @pytest.mark.asyncio
    async def test_load_invalid_record(self, repository, record_store):
        created = await record_store.create({"name": "Broken", "current_level": -1})
        with pytest.raises(InvalidRecordError):
            await repository.load(created["id"])

    @pytest.mark.asyncio
    async def test_load_foreign_record(self, repository, seated_state):
        tournament_id = await repository.save(seated_state, owner_id="alice")
        with pytest.raises(TournamentAccessError):
            await repository.load(tournament_id, owner_id="bob")
        assert (await repository.load(tournament_id, owner_id="alice")).tournament_id == tournament_id

    @pytest.mark.asyncio
    async def test_store_failure_wrapped(self, seated_state):
        store = MagicMock()

        async def broken(*args, **kwargs):
            raise OSError("disk full")

        store.create = broken
        with pytest.raises(PersistenceError) as exc_info:
            await TournamentRepository(store).save(seated_state)
        assert "disk full" in exc_info.value.message


class TestTournamentRecord:
    """레코드 스키마 검증."""

    def test_defaults(self):
        record = TournamentRecord(id="t1")
        assert record.decoded_settings() == {}
        assert record.decoded_levels() == []
        assert record.status == "not_started"

    @pytest.mark.parametrize(
        "field,value",
        [("settings", "[]"), ("blind_levels", "{}"), ("players", "not json")],
    )
    def test_rejects_wrong_json_shape(self, field, value):
        with pytest.raises(ValueError):
            TournamentRecord(id="t1", **{field: value})

    def test_extra_fields_ignored(self):
        record = TournamentRecord.model_validate({"id": "t1", "legacy": True})
        assert not hasattr(record, "legacy")


# =============================================================================
# Session
# =============================================================================


class TestTournamentSession:
    """스토어 + 저장소 연동."""

    @pytest.mark.asyncio
    async def test_save_assigns_id(self, repository, seated_state, notifier):
        store = TournamentStore(seated_state)
        session = TournamentSession(store, repository, notifier)

        assert await session.save()
        assert store.state.tournament_id is not None
        notifier.success.assert_called_once_with("Tournament saved")

        # 두 번째 저장은 같은 레코드 갱신
        first_id = store.state.tournament_id
        assert await session.save()
        assert store.state.tournament_id == first_id

    @pytest.mark.asyncio
    async def test_save_failure_keeps_state(self, seated_state, notifier):
        store = TournamentStore(seated_state)
        session = TournamentSession(
            store,
            TournamentRepository(RedisRecordStore(MockRedis(fail=True))),
            notifier,
        )

        assert not await session.save()
        assert store.state is seated_state
        notifier.error.assert_called_once()
        assert notifier.error.call_args[0][0].startswith("Failed to create tournament")

    @pytest.mark.asyncio
    async def test_load_replaces_state(self, repository, seated_state, base_state, notifier):
        tournament_id = await repository.save(seated_state)
        store = TournamentStore(base_state)
        session = TournamentSession(store, repository, notifier)

        assert await session.load(tournament_id)
        state = store.state
        assert state.tournament_id == tournament_id
        assert len(state.players) == 9
        assert [t.player_count for t in state.tables] == [5, 3]
        assert state.elimination_counter == 1
        assert state.total_prize_pool == 900
        notifier.success.assert_called_once_with("Loaded tournament Friday Night")

    @pytest.mark.asyncio
    async def test_load_missing_reports_error(self, repository, base_state, notifier):
        store = TournamentStore(base_state)
        session = TournamentSession(store, repository, notifier)

        assert not await session.load("missing")
        assert store.state is base_state
        notifier.error.assert_called_once_with("Tournament not found: missing")

    @pytest.mark.asyncio
    async def test_load_other_owner_reports_error(self, repository, seated_state, base_state, notifier):
        tournament_id = await repository.save(seated_state, owner_id="alice")
        session = TournamentSession(TournamentStore(base_state), repository, notifier, owner_id="bob")

        assert not await session.load(tournament_id)
        notifier.error.assert_called_once_with("You do not have access to this tournament")
