"""
Level Timer.

Counts down the current level once per tick and advances the blind level
when the clock runs out.

핵심 설계:
─────────────────────────────────────────────────────────────────────────────────

1. 단일 틱 소스:
   - 타이머당 asyncio 태스크는 최대 하나
   - start()를 여러 번 호출해도 두 번째 태스크는 생기지 않음

2. 드리프트 보정:
   - time.monotonic() 기준 목표 시각으로 슬립
   - 느린 틱이 누적되지 않음

3. 상태는 스토어가 소유:
   - 타이머는 SET_TIME / NEXT_LEVEL / END_TOURNAMENT 만 디스패치
   - 일시정지된 상태에서는 루프 종료

─────────────────────────────────────────────────────────────────────────────────
"""

import asyncio
import time
from typing import Optional

from pokerdirector.config import get_settings
from pokerdirector.logging_config import bind_level_context, get_logger, unbind_level_context

from .actions import ActionType
from .models import TournamentState
from .notifications import NullSoundPlayer, SoundPlayer
from .store import TournamentStore

logger = get_logger(__name__)


class LevelTimer:
    """Countdown driver for one tournament store."""

    def __init__(
        self,
        store: TournamentStore,
        sound: Optional[SoundPlayer] = None,
        tick_seconds: Optional[float] = None,
        countdown_warning_seconds: Optional[int] = None,
    ):
        config = get_settings()
        self._store = store
        self._sound = sound or NullSoundPlayer()
        self._tick_seconds = tick_seconds if tick_seconds is not None else config.timer_tick_seconds
        self._countdown_warning_seconds = (
            countdown_warning_seconds if countdown_warning_seconds is not None else config.countdown_warning_seconds
        )
        self._task: Optional[asyncio.Task] = None

    @property
    def is_ticking(self) -> bool:
        return self._task is not None and not self._task.done()

    def tick(self) -> TournamentState:
        """
        Advance the clock by one second.

        동작 방식:
        1. 일시정지 상태면 아무것도 하지 않음
        2. 마지막 N초 동안 카운트다운 사운드
        3. 0초 도달 시 레벨업 사운드 후 다음 레벨,
           마지막 레벨이면 토너먼트 종료

        Returns:
            State after the tick.
        """
        state = self._store.state
        if not state.is_running:
            return state

        remaining = state.time_remaining
        if remaining > 0:
            if remaining <= self._countdown_warning_seconds:
                self._sound.countdown(remaining)
            remaining -= 1
            state = self._store.dispatch(ActionType.SET_TIME, remaining)
            if remaining > 0:
                return state

        self._sound.level_up()
        if state.is_last_level:
            logger.info("tournament_completed", level=state.current_level)
            unbind_level_context()
            state = self._store.dispatch(ActionType.END_TOURNAMENT)
            notifier = self._store.notifier
            if notifier is not None:
                notifier.success("Tournament Completed!")
            return state

        state = self._store.dispatch(ActionType.NEXT_LEVEL)
        blind = state.current_blind
        if blind is not None:
            bind_level_context(state.current_level, blind.small_blind, blind.big_blind)
        logger.info(
            "level_advanced",
            level=state.current_level,
            small_blind=blind.small_blind if blind else 0,
            big_blind=blind.big_blind if blind else 0,
            is_break=blind.is_break if blind else False,
        )
        return state

    def adjust(self, seconds: int) -> TournamentState:
        """Add (or remove, when negative) time from the running level."""
        return self._store.dispatch(ActionType.SET_TIME, max(0, self._store.state.time_remaining + seconds))

    def start(self) -> asyncio.Task:
        """
        Start ticking (idempotent).

        Must be called from a running event loop.
        """
        if self.is_ticking:
            return self._task

        if not self._store.state.is_running:
            self._store.dispatch(ActionType.START_TOURNAMENT)

        self._task = asyncio.create_task(self._run())
        logger.info("level_timer_started", time_remaining=self._store.state.time_remaining)
        return self._task

    async def stop(self) -> None:
        """Cancel the tick task and pause the tournament."""
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if self._store.state.is_running:
            self._store.dispatch(ActionType.PAUSE_TOURNAMENT)
        logger.info("level_timer_stopped", time_remaining=self._store.state.time_remaining)

    async def _run(self) -> None:
        next_tick = time.monotonic() + self._tick_seconds
        try:
            while self._store.state.is_running:
                await asyncio.sleep(max(0.0, next_tick - time.monotonic()))
                next_tick += self._tick_seconds
                if not self._store.state.is_running:
                    break
                self.tick()
        except asyncio.CancelledError:
            logger.debug("level_timer_cancelled")
            raise
        logger.debug("level_timer_loop_exit")
