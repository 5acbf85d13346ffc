"""Structured logging for the tournament director.

Every module logs through ``get_logger(__name__)`` with an event name and
keyword fields. Context bound per session (tournament id, current level) is
merged into every event, so a level timer log line reads e.g.::

    level_advanced tournament_id=t-1 level=5 small_blind=200 big_blind=400
"""

import logging
import sys
from typing import Any, Optional, Tuple

import structlog
from structlog.types import Processor

from pokerdirector.config import Settings

LEVEL_CONTEXT_KEYS = ("level", "small_blind", "big_blind")

# 드라이버/런타임 로거는 경고 이상만
QUIET_LOGGERS = ("redis", "asyncio")


def _build_processors(use_json: bool) -> Tuple[list, Processor]:
    """Processor chain shared by structlog and stdlib records, plus the renderer."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if use_json:
        processors.append(structlog.processors.format_exc_info)
        return processors, structlog.processors.JSONRenderer(ensure_ascii=False)

    processors.append(structlog.dev.set_exc_info)
    return processors, structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = False,
    app_env: str = "development",
) -> None:
    """Route structlog and stdlib logging through one stdout handler.

    Args:
        log_level: Root level name (DEBUG, INFO, WARNING, ERROR)
        json_logs: Render JSON lines instead of console output
        app_env: "production" always renders JSON
    """
    processors, renderer = _build_processors(json_logs or app_env == "production")

    structlog.configure(
        processors=processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper()))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def configure_from_settings(settings: Optional[Settings] = None) -> None:
    """configure_logging() with values from application settings."""
    if settings is None:
        from pokerdirector.config import get_settings

        settings = get_settings()
    configure_logging(settings.log_level, settings.json_logs, settings.app_env)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger.

    Usage:
        logger = get_logger(__name__)
        logger.info("player_eliminated", player_id="p3", position=7)
    """
    return structlog.get_logger(name)


def bind_tournament_context(tournament_id: str | None, **kwargs: Any) -> None:
    """Attach the active tournament id to every following event."""
    structlog.contextvars.bind_contextvars(tournament_id=tournament_id, **kwargs)


def bind_level_context(level: int, small_blind: int, big_blind: int) -> None:
    """Attach the running blind level (replaced on every level change)."""
    structlog.contextvars.bind_contextvars(level=level, small_blind=small_blind, big_blind=big_blind)


def unbind_level_context() -> None:
    structlog.contextvars.unbind_contextvars(*LEVEL_CONTEXT_KEYS)


def clear_context() -> None:
    """Drop all bound context (end of a director session)."""
    structlog.contextvars.clear_contextvars()
