"""Sanitize AI payloads and merge them into the game state."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from .game import record_clue, end_turn, remaining_team_words
from .models import AIPayload, GameState, NotesEntry, Role, Source, Team

logger = logging.getLogger(__name__)

INVALID_COUNT_MESSAGE = "AI response invalid: count must be a positive integer."


@dataclass
class RevealRequest:
    """An AI guess list waiting to be played out by the reveal sequencer."""
    words: list[str]
    team: Team
    role: Role
    source: Source
    end_turn: bool = False


@dataclass
class PayloadResult:
    """Outcome of applying a payload."""
    state: GameState
    status: str | None = None
    reveal_request: RevealRequest | None = None


def coerce_positive_int(value: object) -> int | None:
    """
    Interpret an untrusted count.

    Accepts ints, integral floats and numeric strings; returns None for
    anything that is not a positive integer. Booleans are rejected.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not value.is_integer():
            return None
        number = int(value)
    elif isinstance(value, str):
        text = value.strip()
        try:
            number_f = float(text)
        except ValueError:
            return None
        if not number_f.is_integer():
            return None
        number = int(number_f)
    else:
        return None
    return number if number >= 1 else None


def create_notes_entry(
    payload: AIPayload,
    team: Team,
    role: Role,
    source: Source,
) -> NotesEntry | None:
    """Notes entry for a payload, or None when the notes are blank."""
    notes = (payload.notes or "").strip()
    if not notes:
        return None
    return NotesEntry(
        id=f"ai-note-{uuid.uuid4().hex[:12]}",
        team=team,
        role=role,
        source=source,
        notes=notes,
        clue=payload.clue,
        reveal=payload.reveal,
        end_turn=payload.end_turn,
    )


def apply_payload(
    state: GameState,
    payload: AIPayload,
    team: Team,
    role: Role,
    source: Source = Source.AI,
) -> PayloadResult:
    """
    Merge an AI payload into the game state.

    Order:
    1. A clue is recorded with its count coerced and clamped to the team's
       unrevealed words; an unusable count leaves no guess budget.
    2. endTurn ends the turn now, unless there are reveals to play first.
    3. Non-blank notes go to the notes log.
    4. Reveals are handed back as a RevealRequest; the end-turn flag rides
       along so it is honoured after the guesses.
    """
    if state.end_state is not None:
        return PayloadResult(state=state)

    status: str | None = None
    updated = state
    reveal_words = payload.reveal or []

    clue = (payload.clue or "").strip()
    if clue and updated.current_turn == team:
        count = coerce_positive_int(payload.count)
        if count is None:
            status = INVALID_COUNT_MESSAGE
            logger.warning(f"Rejected AI count {payload.count!r} for {team.value} clue {clue!r}")
        else:
            remaining = remaining_team_words(updated, team)
            if count > remaining and remaining > 0:
                status = (
                    f"AI count exceeded remaining {team.value} words; "
                    f"clamped to {remaining}."
                )
                logger.info(f"Clamped AI count {count} to {remaining} for {team.value}")
                count = remaining

        updated = record_clue(updated, team, clue, count, role, source)

    if payload.end_turn and not reveal_words:
        updated = end_turn(updated, team, role, source)

    notes_entry = create_notes_entry(payload, team, role, source)
    if notes_entry is not None:
        updated = updated.model_copy(deep=True)
        updated.notes_log.append(notes_entry)

    reveal_request = None
    if reveal_words:
        reveal_request = RevealRequest(
            words=list(reveal_words),
            team=team,
            role=role,
            source=source,
            end_turn=bool(payload.end_turn),
        )

    return PayloadResult(state=updated, status=status, reveal_request=reveal_request)
