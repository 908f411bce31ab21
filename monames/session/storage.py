"""Snapshot persistence for a session."""
from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from monames.config import ApiConfig
from monames.core.trace import AIResult, ResponseLogEntry
from monames.engine import GameState, Persona, RoleControl, WordPack, restore_game

logger = logging.getLogger(__name__)

DEFAULT_PACK_ID = "monames"


class Snapshot(BaseModel):
    """Everything a session needs to pick up where it left off."""
    theme: str = "light"
    api_config: ApiConfig = Field(default_factory=ApiConfig)
    custom_packs: list[WordPack] = Field(default_factory=list)
    selected_pack_id: str = DEFAULT_PACK_ID
    personas: list[Persona] | None = None  # None: use the built-in personas
    selected_personas: dict[str, str] = Field(default_factory=dict)
    role_control: RoleControl = Field(default_factory=RoleControl)
    game: GameState = Field(default_factory=GameState)
    last_ai_result: AIResult | None = None
    ai_response_log: list[ResponseLogEntry] = Field(default_factory=list)


class SnapshotStore:
    """
    JSON file holding the latest snapshot.

    save() writes immediately; schedule_save() coalesces bursts of changes
    into one write after the debounce interval.
    """

    def __init__(self, path: Path | str, debounce_seconds: float = 0.4):
        self.path = Path(path)
        self.debounce_seconds = debounce_seconds
        self._pending: Snapshot | None = None
        self._timer: asyncio.TimerHandle | None = None

    def load(self) -> Snapshot | None:
        """Read the stored snapshot; None when absent or unreadable."""
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r") as f:
                data: Any = json.load(f)
            if not isinstance(data, dict):
                logger.warning(f"Stored state at {self.path} is not a JSON object")
                return None
            if isinstance(data.get("game"), dict) and data["game"]:
                data["game"] = restore_game(data["game"])
            return Snapshot.model_validate(data)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Failed to parse stored state at {self.path}: {e}")
            return None

    def save(self, snapshot: Snapshot) -> Path:
        """Write the snapshot atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w") as f:
            json.dump(snapshot.model_dump(mode="json"), f, indent=2)
        os.replace(tmp_path, self.path)
        return self.path

    def schedule_save(self, snapshot: Snapshot) -> None:
        """Save after a quiet period; saves at once when no loop is running."""
        self._pending = snapshot
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.flush()
            return

        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(self.debounce_seconds, self.flush)

    def flush(self) -> None:
        """Write any pending snapshot now."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._pending is None:
            return
        snapshot, self._pending = self._pending, None
        self.save(snapshot)
