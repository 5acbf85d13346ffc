"""Persisted tournament record schema."""

import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TournamentRecord(BaseModel):
    """
    One row of the tournament record store.

    Blind levels, payout places, settings and players are stored as JSON
    strings so the record stays flat.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    owner_id: Optional[str] = None
    name: str = "New Tournament"
    status: str = Field(default="not_started", description="not_started | running | paused")
    start_date: Optional[str] = None
    chipset: str = "25,100,500,1000,5000"
    current_level: int = Field(default=0, ge=0)
    is_running: bool = False

    settings: str = Field(default="{}", description="JSON object")
    blind_levels: str = Field(default="[]", description="JSON array of levels")
    payout_structure: str = Field(default="[]", description="JSON array of payout places")
    players: str = Field(default="[]", description="JSON array of players")

    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("settings")
    @classmethod
    def validate_settings_json(cls, v: str) -> str:
        if not isinstance(json.loads(v), dict):
            raise ValueError("settings must be a JSON object")
        return v

    @field_validator("blind_levels", "payout_structure", "players")
    @classmethod
    def validate_list_json(cls, v: str) -> str:
        if not isinstance(json.loads(v), list):
            raise ValueError("must be a JSON array")
        return v

    def decoded_settings(self) -> Dict[str, Any]:
        return json.loads(self.settings)

    def decoded_levels(self) -> List[Dict[str, Any]]:
        return json.loads(self.blind_levels)

    def decoded_payout_structure(self) -> List[Dict[str, Any]]:
        return json.loads(self.payout_structure)

    def decoded_players(self) -> List[Dict[str, Any]]:
        return json.loads(self.players)
