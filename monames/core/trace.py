"""Records of AI actor exchanges."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from monames.engine import Role, Source, Team


class ResponseLogEntry(BaseModel):
    """One raw AI response with what was parsed out of it.

    Kept for inspection, including responses that failed to parse.
    """
    id: str = Field(default_factory=lambda: f"ai-response-{uuid.uuid4().hex[:12]}")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    team: Team
    role: Role
    source: Source
    message_text: str
    payload: dict[str, Any] | None = None
    error: str | None = None
    model: str | None = None
    latency_ms: float | None = None


class AIResult(BaseModel):
    """The most recent payload an AI actor produced."""
    team: Team
    role: Role
    source: Source
    payload: dict[str, Any]
