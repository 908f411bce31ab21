"""Shared fixtures: a fixed board so tests can name cards."""

import pytest

from monames.engine import Card, CardType, GameState, LastClue, Team, guess_limit

RED_WORDS = ["APPLE", "PEAR", "PLUM", "CHERRY", "GRAPE", "LEMON", "MANGO", "PEACH", "MELON"]
BLUE_WORDS = ["ORANGE", "RIVER", "OCEAN", "LAKE", "POND", "STREAM", "BAY", "DELTA"]
NEUTRAL_WORDS = ["CHAIR", "TABLE", "DESK", "LAMP", "SOFA", "BED", "SHELF"]
ASSASSIN_WORD = "BOMB"

LAYOUT = (
    [(w, CardType.RED) for w in RED_WORDS]
    + [(w, CardType.BLUE) for w in BLUE_WORDS]
    + [(w, CardType.NEUTRAL) for w in NEUTRAL_WORDS]
    + [(ASSASSIN_WORD, CardType.ASSASSIN)]
)


def card_id(word: str) -> str:
    for index, (w, _) in enumerate(LAYOUT):
        if w == word:
            return f"{w}-{index}"
    raise KeyError(word)


def make_state(
    revealed: dict[str, Team] | None = None,
    current_turn: Team = Team.RED,
    clue_count: int | None = None,
) -> GameState:
    """Red-starting 9/8/7/1 board; optionally with an active clue."""
    revealed = revealed or {}
    cards = [
        Card(
            id=f"{word}-{index}",
            word=word,
            team=card_type,
            revealed=word in revealed,
            revealed_by=revealed.get(word),
        )
        for index, (word, card_type) in enumerate(LAYOUT)
    ]
    state = GameState(cards=cards, starting_team=Team.RED, current_turn=current_turn)
    if clue_count is not None:
        state.last_clue = LastClue(clue="FRUIT", count=clue_count, team=current_turn)
        state.remaining_guesses = guess_limit(clue_count)
    return state


@pytest.fixture
def state() -> GameState:
    return make_state()


@pytest.fixture
def clued_state() -> GameState:
    """Red to guess with a budget of 4 (clue count 3)."""
    return make_state(clue_count=3)
