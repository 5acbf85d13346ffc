"""Director errors.

Validation rejections inside the reducer are reported through the notifier,
never raised; these exceptions cover the persistence boundary.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Codes shared by raised errors and notifier rejections."""

    # General
    INTERNAL_ERROR = "INTERNAL_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Reducer rejections (notifier로만 전달)
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    REBUY_CLOSED = "REBUY_CLOSED"
    ADDON_CLOSED = "ADDON_CLOSED"
    ADDON_LIMIT_REACHED = "ADDON_LIMIT_REACHED"
    INVALID_LEVEL = "INVALID_LEVEL"

    # Persistence
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"
    TOURNAMENT_NOT_FOUND = "TOURNAMENT_NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    INVALID_RECORD = "INVALID_RECORD"


class TournamentError(Exception):
    """Base error. `code` is always the plain string value of an ErrorCode."""

    def __init__(
        self,
        code: ErrorCode | str,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        self.code = code.value if isinstance(code, ErrorCode) else code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Shape used when an error is surfaced to the setup screen."""
        return {
            "errorCode": self.code,
            "errorMessage": self.message,
            "details": self.details,
        }


class PersistenceError(TournamentError):
    """Raised when the record store fails to read or write."""

    def __init__(self, operation: str, reason: str):
        super().__init__(
            code=ErrorCode.PERSISTENCE_FAILED,
            message=f"Failed to {operation} tournament: {reason}",
            details={"operation": operation},
        )


class TournamentNotFoundError(TournamentError):
    """Raised when a tournament record does not exist."""

    def __init__(self, tournament_id: str):
        super().__init__(
            code=ErrorCode.TOURNAMENT_NOT_FOUND,
            message=f"Tournament not found: {tournament_id}",
            details={"tournamentId": tournament_id},
        )


class TournamentAccessError(TournamentError):
    """Raised when a tournament is loaded by someone other than its owner."""

    def __init__(self, tournament_id: str):
        super().__init__(
            code=ErrorCode.FORBIDDEN,
            message="You do not have access to this tournament",
            details={"tournamentId": tournament_id},
        )


class InvalidRecordError(TournamentError):
    """Raised when a stored record cannot be decoded."""

    def __init__(self, tournament_id: str, reason: str):
        super().__init__(
            code=ErrorCode.INVALID_RECORD,
            message=f"Stored tournament record is invalid: {reason}",
            details={"tournamentId": tournament_id},
        )
