from .storage import DEFAULT_PACK_ID, Snapshot, SnapshotStore
from .game_session import (
    GAME_OVER_MESSAGE, GameSession, ParseFailure, default_pack, parse_clue_input,
)

__all__ = [
    "DEFAULT_PACK_ID", "Snapshot", "SnapshotStore",
    "GAME_OVER_MESSAGE", "GameSession", "ParseFailure", "default_pack",
    "parse_clue_input",
]
