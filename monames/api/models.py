"""Request/response models for the HTTP API."""
from __future__ import annotations

from pydantic import BaseModel

from monames.engine import GameState, RoleControl


class ClueRequest(BaseModel):
    clue: str
    count: str | int


class RoleRequest(BaseModel):
    value: str


class NewGameRequest(BaseModel):
    starting_team: str | None = None


class ProgressResponse(BaseModel):
    current: int | None = None
    total: int | None = None
    word: str | None = None
    selected_card_id: str | None = None


class StateResponse(BaseModel):
    status: str
    busy: bool
    can_retry: bool
    role_control: RoleControl
    game: GameState
