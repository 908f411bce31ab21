from .models import (
    BOARD_SIZE, HUMAN, Team, CardType, Role, Source, EndReason, Card, LastClue,
    EndState, ClueEntry, GuessEntry, EndTurnEntry, HistoryEntry, NotesEntry,
    GameState, Persona, TeamRoles, RoleControl, AIPayload, WordPack,
)
from .game import (
    load_wordlist, normalize_words, dedupe_words, build_board, create_game,
    ensure_card_ids, guess_limit, append_history, evaluate_end_state,
    record_clue, submit_clue, end_turn, reveal_card, remaining_team_words,
    find_unrevealed_card, get_visible_board, restore_game,
)
from .handle import GameHandle
from .payload import (
    INVALID_COUNT_MESSAGE, RevealRequest, PayloadResult, coerce_positive_int,
    create_notes_entry, apply_payload,
)
from .sequencer import SequenceProgress, RevealSequencer
from .roles import (
    RoleMode, is_human_selection, is_ai_selection, coerce_ai_selection,
    update_role_control, role_mode, is_setup_valid, enforce_role_mode,
    normalize_role_control, repair_selected_personas, resolve_persona,
)

__all__ = [
    "BOARD_SIZE", "HUMAN", "Team", "CardType", "Role", "Source", "EndReason",
    "Card", "LastClue", "EndState", "ClueEntry", "GuessEntry", "EndTurnEntry",
    "HistoryEntry", "NotesEntry", "GameState", "Persona", "TeamRoles",
    "RoleControl", "AIPayload", "WordPack",
    "load_wordlist", "normalize_words", "dedupe_words", "build_board",
    "create_game", "ensure_card_ids", "guess_limit", "append_history",
    "evaluate_end_state", "record_clue", "submit_clue", "end_turn",
    "reveal_card", "remaining_team_words", "find_unrevealed_card",
    "get_visible_board", "restore_game",
    "GameHandle",
    "INVALID_COUNT_MESSAGE", "RevealRequest", "PayloadResult",
    "coerce_positive_int", "create_notes_entry", "apply_payload",
    "SequenceProgress", "RevealSequencer",
    "RoleMode", "is_human_selection", "is_ai_selection", "coerce_ai_selection",
    "update_role_control", "role_mode", "is_setup_valid", "enforce_role_mode",
    "normalize_role_control", "repair_selected_personas", "resolve_persona",
]
