"""
Director-facing notification and sound hooks.

The reducer reports rejected actions through a Notifier and the level timer
cues audio through a SoundPlayer. Rendering toasts and synthesizing audio is
the host application's job; the defaults here only log.
"""

from typing import Protocol

from pokerdirector.logging_config import get_logger

logger = get_logger(__name__)


class Notifier(Protocol):
    """Toast-style messages shown to the tournament director."""

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...


class SoundPlayer(Protocol):
    """Audio cues driven by the level timer."""

    def countdown(self, seconds_left: int) -> None: ...

    def level_up(self) -> None: ...


class LoggingNotifier:
    """Notifier that writes every message to the structured log."""

    def success(self, message: str) -> None:
        logger.info("notify_success", message=message)

    def error(self, message: str) -> None:
        logger.warning("notify_error", message=message)

    def info(self, message: str) -> None:
        logger.info("notify_info", message=message)


class NullSoundPlayer:
    """Silent sound player."""

    def countdown(self, seconds_left: int) -> None:
        logger.debug("sound_countdown", seconds_left=seconds_left)

    def level_up(self) -> None:
        logger.debug("sound_level_up")
