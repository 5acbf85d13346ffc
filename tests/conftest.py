"""
공통 테스트 Fixture
"""

from typing import List
from unittest.mock import MagicMock

import pytest

from pokerdirector.config import Settings
from pokerdirector.tournament.models import (
    Player,
    TournamentLevel,
    TournamentSettings,
    TournamentState,
)


def make_levels(count: int = 5, duration: int = 20) -> tuple:
    """count개 레벨 (25/50부터 두 배씩)."""
    return tuple(
        TournamentLevel(level=i + 1, small_blind=25 * 2**i, big_blind=50 * 2**i, duration=duration)
        for i in range(count)
    )


def make_players(count: int, chips: int = 10000) -> List[Player]:
    return [Player(id=f"p{i}", name=f"Player {i}", chips=chips) for i in range(1, count + 1)]


@pytest.fixture
def config() -> Settings:
    """.env 영향 없는 기본 설정."""
    return Settings(_env_file=None)


@pytest.fixture
def notifier() -> MagicMock:
    return MagicMock()


@pytest.fixture
def tournament_settings() -> TournamentSettings:
    return TournamentSettings(
        buy_in_amount=100,
        rebuy_amount=100,
        add_on_amount=50,
        initial_chips=10000,
        rebuy_chips=10000,
        add_on_chips=15000,
        max_rebuys=2,
        max_add_ons=1,
        last_rebuy_level=2,
        last_add_on_level=2,
        levels=make_levels(5),
    )


@pytest.fixture
def base_state(tournament_settings: TournamentSettings) -> TournamentState:
    """5레벨, 플레이어 없음."""
    return TournamentState(
        settings=tournament_settings,
        time_remaining=tournament_settings.levels[0].duration_seconds,
    )


@pytest.fixture
def state_with_players(base_state: TournamentState) -> TournamentState:
    """9명 등록 (바이인 완료)."""
    players = tuple(make_players(9))
    return TournamentState(
        settings=base_state.settings,
        time_remaining=base_state.time_remaining,
        players=players,
        total_prize_pool=900,
    )
