"""Core game logic for Monames."""

from __future__ import annotations

import random
import re
from pathlib import Path
from typing import Any

from .models import (
    BOARD_SIZE, Card, CardType, ClueEntry, EndReason, EndState, EndTurnEntry,
    GameState, GuessEntry, HistoryEntry, LastClue, Role, Source, Team,
)


def load_wordlist(path: Path | None = None) -> list[str]:
    """Load a newline-separated word list, normalized and deduplicated."""
    if path is None:
        path = Path(__file__).parent.parent / "data" / "wordlist.txt"

    with open(path, "r") as f:
        words = normalize_words(f.read().splitlines())
    unique, _ = dedupe_words(words)
    return unique


def normalize_words(words: list[str]) -> list[str]:
    """Trim words, drop blanks and collapse inner whitespace."""
    return [re.sub(r"\s+", " ", w.strip()) for w in words if w.strip()]


def dedupe_words(words: list[str]) -> tuple[list[str], list[str]]:
    """
    Remove case-insensitive duplicates.

    Returns:
        (unique_words, duplicates) - first spelling wins.
    """
    seen: set[str] = set()
    unique: list[str] = []
    duplicates: list[str] = []
    for word in words:
        key = word.lower()
        if key in seen:
            if word not in duplicates:
                duplicates.append(word)
            continue
        seen.add(key)
        unique.append(word)
    return unique, duplicates


def build_board(
    words: list[str],
    starting_team: Team,
    rng: random.Random | None = None,
) -> list[Card]:
    """
    Build the 25 cards for a new game.

    Words and team assignments are shuffled independently and zipped by
    position. The caller guarantees at least 25 words.
    """
    rng = rng or random.Random()

    shuffled_words = list(words)
    rng.shuffle(shuffled_words)
    shuffled_words = shuffled_words[:BOARD_SIZE]

    other = starting_team.other
    assignments = (
        [CardType(starting_team.value)] * 9 +
        [CardType(other.value)] * 8 +
        [CardType.NEUTRAL] * 7 +
        [CardType.ASSASSIN]
    )
    rng.shuffle(assignments)

    return [
        Card(id=f"{word}-{index}", word=word, team=card_type)
        for index, (word, card_type) in enumerate(zip(shuffled_words, assignments))
    ]


def create_game(
    words: list[str],
    starting_team: Team | None = None,
    rng: random.Random | None = None,
) -> GameState:
    """Create a new game; the starting team is random unless given."""
    rng = rng or random.Random()
    if starting_team is None:
        starting_team = rng.choice([Team.RED, Team.BLUE])

    return GameState(
        cards=build_board(words, starting_team, rng),
        starting_team=starting_team,
        current_turn=starting_team,
    )


def ensure_card_ids(cards: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Fill in missing card ids on persisted boards."""
    return [
        {**card, "id": card.get("id") or f"{card.get('word')}-{index}"}
        if isinstance(card, dict) else card
        for index, card in enumerate(cards)
    ]


def guess_limit(count: int | None) -> int | None:
    """Guess budget for a clue count: count + 1, or None if unusable."""
    if isinstance(count, int) and not isinstance(count, bool) and count > 0:
        return count + 1
    return None


def append_history(state: GameState, entry: HistoryEntry) -> GameState:
    """Append an entry to the history log."""
    new_state = state.model_copy(deep=True)
    new_state.history.append(entry)
    return new_state


def evaluate_end_state(cards: list[Card], active_team: Team) -> EndState | None:
    """
    Decide whether the game is over.

    The assassin always wins over the all-revealed check. The team that
    revealed it loses; when the card carries no revealer the active team is
    blamed.
    """
    for card in cards:
        if card.team == CardType.ASSASSIN and card.revealed:
            loser = card.revealed_by or active_team
            return EndState(winner=loser.other, loser=loser, reason=EndReason.ASSASSIN)

    for team in (Team.RED, Team.BLUE):
        remaining = [
            c for c in cards
            if c.team == CardType(team.value) and not c.revealed
        ]
        if not remaining:
            return EndState(winner=team, loser=team.other, reason=EndReason.ALL_REVEALED)

    return None


def record_clue(
    state: GameState,
    team: Team,
    clue: str,
    count: int | None,
    role: Role,
    source: Source,
) -> GameState:
    new_state = append_history(state, ClueEntry(
        team=team,
        role=role,
        clue=clue,
        count=count,
        source=source,
    ))
    new_state.last_clue = LastClue(clue=clue, count=count, team=team, role=role)
    new_state.remaining_guesses = guess_limit(count)
    return new_state


def submit_clue(
    state: GameState,
    team: Team,
    clue: str,
    count: int,
    role: Role = Role.SPYMASTER,
    source: Source = Source.HUMAN,
) -> GameState:
    """
    Give a clue for the team whose turn it is.

    Sets the guess budget to count + 1. Returns the state unchanged if the
    game is over, it is not this team's turn, or count is not a positive int.
    """
    if state.end_state is not None or team != state.current_turn:
        return state
    if guess_limit(count) is None:
        return state

    return record_clue(state, team, clue, count, role, source)


def end_turn(
    state: GameState,
    team: Team,
    role: Role = Role.GUESSER,
    source: Source = Source.HUMAN,
) -> GameState:
    """End the current turn and switch to the other team."""
    if state.end_state is not None or team != state.current_turn:
        return state

    new_state = append_history(state, EndTurnEntry(team=team, role=role, source=source))
    new_state.current_turn = team.other
    new_state.remaining_guesses = None
    return new_state


def reveal_card(
    state: GameState,
    card_id: str,
    acting_team: Team,
    role: Role = Role.GUESSER,
    source: Source = Source.HUMAN,
) -> GameState:
    """
    Reveal one card for the acting team.

    Every precondition is checked against the state passed in, so a stale
    caller cannot reveal after the game ended, the turn moved on, or the
    budget ran out; such calls return the state unchanged.
    """
    if state.end_state is not None:
        return state
    if acting_team != state.current_turn:
        return state
    if state.remaining_guesses is None or state.remaining_guesses <= 0:
        return state

    card = state.card_by_id(card_id)
    if card is None or card.revealed:
        return state

    new_state = state.model_copy(deep=True)
    for item in new_state.cards:
        if item.id == card_id:
            item.revealed = True
            item.revealed_by = acting_team

    remaining = max(state.remaining_guesses - 1, 0)
    end_state = evaluate_end_state(new_state.cards, acting_team)

    new_state.history.append(GuessEntry(
        team=acting_team,
        role=role,
        word=card.word,
        card_team=card.team,
        source=source,
    ))

    if end_state is not None:
        new_state.end_state = end_state
        new_state.remaining_guesses = None
        return new_state

    wrong_team = card.team != CardType(acting_team.value)
    if wrong_team or card.team == CardType.ASSASSIN or remaining == 0:
        new_state.current_turn = acting_team.other
        new_state.remaining_guesses = None
    else:
        new_state.remaining_guesses = remaining

    return new_state


def remaining_team_words(state: GameState, team: Team) -> int:
    """Count a team's unrevealed cards."""
    return sum(
        1 for c in state.cards
        if c.team == CardType(team.value) and not c.revealed
    )


def find_unrevealed_card(state: GameState, word: str) -> Card | None:
    """First unrevealed card matching the word case-insensitively, in board order."""
    target = str(word).strip().lower()
    for card in state.cards:
        if not card.revealed and card.word.lower() == target:
            return card
    return None


def get_visible_board(state: GameState, role: Role) -> list[dict[str, Any]]:
    """
    Board as one role may see it.

    Spymasters see every card's team; guessers only see revealed ones.
    """
    return [
        {
            "word": card.word,
            "revealed": card.revealed,
            "team": card.team.value if role == Role.SPYMASTER or card.revealed else None,
        }
        for card in state.cards
    ]


def restore_game(data: dict[str, Any]) -> GameState:
    """
    Rebuild a persisted game.

    Missing card ids are filled in, an absent end-state is re-derived from the
    board, and a lost guess budget is restored when the last clue belongs to
    the team whose turn it is.
    """
    data = dict(data)
    cards = data.get("cards") or []
    data["cards"] = ensure_card_ids(cards) if isinstance(cards, list) else cards
    state = GameState.model_validate(data)

    if not state.cards:
        return state

    if state.end_state is None:
        state.end_state = evaluate_end_state(state.cards, state.current_turn)

    if state.end_state is not None:
        state.remaining_guesses = None
    elif (
        state.remaining_guesses is None
        and state.last_clue is not None
        and state.last_clue.team == state.current_turn
    ):
        state.remaining_guesses = guess_limit(state.last_clue.count)

    return state
