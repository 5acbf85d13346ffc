"""
Settings / Logging / Error Tests.
"""

import logging

import pytest
import structlog
from pydantic import ValidationError

from pokerdirector.config import Settings, get_settings
from pokerdirector.errors import (
    ErrorCode,
    PersistenceError,
    TournamentAccessError,
    TournamentError,
    TournamentNotFoundError,
)
from pokerdirector.logging_config import (
    bind_level_context,
    bind_tournament_context,
    clear_context,
    configure_from_settings,
    configure_logging,
    unbind_level_context,
)


class TestSettings:
    """환경 변수 기반 설정."""

    def test_defaults(self, config):
        assert config.app_env == "development"
        assert config.redis_url is None
        assert config.default_player_count == 9
        assert config.default_starting_chips == 10000
        assert config.default_chipset == "25,100,500,1000,5000"
        assert config.countdown_warning_seconds == 5

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_PLAYER_COUNT", "27")
        monkeypatch.setenv("REDIS_URL", "redis://cache:6379/1")
        settings = Settings(_env_file=None)
        assert settings.default_player_count == 27
        assert settings.redis_url == "redis://cache:6379/1"

    def test_log_level_normalized(self):
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="chatty")

    def test_chipset_cleaned(self):
        settings = Settings(_env_file=None, default_chipset=" 25, x, 100 ,0")
        assert settings.default_chipset == "25,100"

    def test_chipset_without_denominations_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, default_chipset="none")

    def test_production_forces_json_logs(self):
        assert Settings(_env_file=None, app_env="production").json_logs is True

    def test_share_base_url_trailing_slash(self):
        assert Settings(_env_file=None, share_base_url="https://a.example/").share_base_url == "https://a.example"

    @pytest.mark.parametrize("field,value", [("default_player_count", 1), ("timer_tick_seconds", 0)])
    def test_bounds(self, field, value):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: value})

    def test_get_settings_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()


class TestLogging:
    """structlog 설정."""

    def test_configure_sets_root_level(self):
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        configure_logging(log_level="WARNING", json_logs=True)
        try:
            assert root.level == logging.WARNING
            assert logging.getLogger("redis").level == logging.WARNING
            assert len(root.handlers) == 1
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
            structlog.reset_defaults()

    def test_tournament_context(self):
        clear_context()
        bind_tournament_context("t-1", level=3)
        try:
            assert structlog.contextvars.get_contextvars() == {"tournament_id": "t-1", "level": 3}
        finally:
            clear_context()
        assert structlog.contextvars.get_contextvars() == {}

    def test_level_context_replaced_and_unbound(self):
        clear_context()
        bind_tournament_context("t-1")
        bind_level_context(4, 100, 200)
        bind_level_context(5, 200, 400)
        try:
            assert structlog.contextvars.get_contextvars() == {
                "tournament_id": "t-1",
                "level": 5,
                "small_blind": 200,
                "big_blind": 400,
            }
            unbind_level_context()
            assert structlog.contextvars.get_contextvars() == {"tournament_id": "t-1"}
        finally:
            clear_context()

    def test_configure_from_settings(self):
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        configure_from_settings(Settings(_env_file=None, log_level="error"))
        try:
            assert root.level == logging.ERROR
            assert logging.getLogger("asyncio").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
            structlog.reset_defaults()


class TestErrors:
    """에러 코드 및 직렬화."""

    def test_base_error(self):
        error = TournamentError(ErrorCode.INTERNAL_ERROR, "boom", {"a": 1})
        assert error.code == "INTERNAL_ERROR"
        assert str(error) == "boom"
        assert error.to_dict() == {"errorCode": "INTERNAL_ERROR", "errorMessage": "boom", "details": {"a": 1}}

    def test_subclasses(self):
        assert PersistenceError("save", "timeout").message == "Failed to save tournament: timeout"
        assert TournamentNotFoundError("t-1").details == {"tournamentId": "t-1"}
        assert TournamentAccessError("t-1").code == ErrorCode.FORBIDDEN.value
        assert isinstance(PersistenceError("load", "x"), TournamentError)
