"""
Read-only tournament sharing.

A share snapshot is the public subset of the state (clock, blinds, payouts,
optionally players and tables) encoded as URL-safe base64 JSON. Short links
map an id to the long snapshot URL.
"""

import base64
import binascii
import json
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, MutableMapping, Optional, Tuple
from urllib.parse import quote
from uuid import uuid4

from pokerdirector.config import get_settings
from pokerdirector.logging_config import get_logger

from .models import TournamentState

logger = get_logger(__name__)

SHORT_ID_ALPHABET = string.ascii_letters + string.digits
SHORT_URL_FRAGMENT = "#/t/"
VIEW_PATH = "/tournament/view"


@dataclass(frozen=True)
class ShareOptions:
    """What a snapshot reveals beyond clock and blinds."""

    include_players: bool = True
    include_tables: bool = False
    include_payouts: bool = True


def build_share_snapshot(
    state: TournamentState,
    options: Optional[ShareOptions] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Encode the public view of a tournament.

    Returns:
        URL-safe base64 of the snapshot JSON.
    """
    options = options or ShareOptions()
    tournament: Dict[str, Any] = {
        "name": state.name,
        "current_level": state.current_level,
        "is_running": state.is_running,
        "time_remaining": state.time_remaining,
        "active_players": len(state.active_players),
        "total_players": len(state.players),
        "total_prize_pool": state.total_prize_pool,
        "levels": [lv.to_dict() for lv in state.settings.levels],
    }
    if options.include_payouts:
        tournament["payout_structure"] = [p.to_dict() for p in state.settings.payout_places]
    if options.include_players:
        tournament["players"] = [
            {
                "id": p.id,
                "name": p.name,
                "chips": p.chips,
                "eliminated": p.eliminated,
                "elimination_position": p.elimination_position,
            }
            for p in state.players
        ]
    if options.include_tables:
        tournament["tables"] = [t.to_dict() for t in state.tables]

    snapshot = {
        "id": str(uuid4()),
        "timestamp": (now or datetime.now(timezone.utc)).isoformat(),
        "tournament": tournament,
    }
    raw = json.dumps(snapshot, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def decode_share_snapshot(token: str) -> Dict[str, Any]:
    """
    Decode a snapshot produced by build_share_snapshot.

    Raises:
        ValueError: Token is not a valid snapshot
    """
    try:
        padded = token + "=" * (-len(token) % 4)
        data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise ValueError("Invalid share snapshot") from e
    if not isinstance(data, dict) or "tournament" not in data:
        raise ValueError("Invalid share snapshot")
    return data


class UrlShortener:
    """
    Short links for shared snapshots.

    Storage is any mutable mapping (a dict by default) of short id -> long URL.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        id_length: Optional[int] = None,
        storage: Optional[MutableMapping[str, str]] = None,
    ):
        settings = get_settings()
        self._base_url = (base_url if base_url is not None else settings.share_base_url).rstrip("/")
        self._id_length = id_length or settings.share_id_length
        self._storage: MutableMapping[str, str] = storage if storage is not None else {}

    @property
    def base_url(self) -> str:
        return self._base_url

    def _generate_id(self) -> str:
        while True:
            short_id = "".join(secrets.choice(SHORT_ID_ALPHABET) for _ in range(self._id_length))
            if short_id not in self._storage:
                return short_id

    def shorten(self, long_url: str) -> str:
        """Store a long URL and return its short form."""
        short_id = self._generate_id()
        self._storage[short_id] = long_url
        logger.debug("short_url_created", short_id=short_id)
        return f"{self._base_url}/{SHORT_URL_FRAGMENT}{short_id}"

    def expand(self, short_id: str) -> Optional[str]:
        return self._storage.get(short_id)

    def all_urls(self) -> List[Tuple[str, str]]:
        return list(self._storage.items())

    def remove(self, short_id: str) -> None:
        self._storage.pop(short_id, None)

    def snapshot_url(self, state: TournamentState, options: Optional[ShareOptions] = None) -> str:
        """Long URL of the read-only view."""
        token = build_share_snapshot(state, options)
        return f"{self._base_url}{VIEW_PATH}?data={quote(token)}"

    def share(self, state: TournamentState, options: Optional[ShareOptions] = None) -> str:
        """Short link to the read-only view of the current state."""
        return self.shorten(self.snapshot_url(state, options))
