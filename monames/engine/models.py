"""Data models for the Monames game engine."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator


BOARD_SIZE = 25
HUMAN = "human"


class Team(str, Enum):
    """Team enumeration."""
    RED = "red"
    BLUE = "blue"

    @property
    def other(self) -> "Team":
        return Team.BLUE if self == Team.RED else Team.RED


class CardType(str, Enum):
    """Card type enumeration."""
    RED = "red"
    BLUE = "blue"
    NEUTRAL = "neutral"
    ASSASSIN = "assassin"


class Role(str, Enum):
    """Role enumeration."""
    SPYMASTER = "spymaster"
    GUESSER = "guesser"


class Source(str, Enum):
    """Who produced an action."""
    HUMAN = "human"
    AI = "ai"
    MOCK = "mock"


class EndReason(str, Enum):
    ASSASSIN = "assassin"
    ALL_REVEALED = "all-revealed"


class Card(BaseModel):
    """A single board cell."""
    id: str
    word: str
    team: CardType
    revealed: bool = False
    revealed_by: Team | None = None


class LastClue(BaseModel):
    """The clue currently binding a team's guesses."""
    clue: str
    count: int | None  # None when an AI sent an unusable count
    team: Team
    role: Role = Role.SPYMASTER


class EndState(BaseModel):
    """Terminal outcome of a game."""
    winner: Team
    loser: Team
    reason: EndReason


# History entries

class ClueEntry(BaseModel):
    """A clue given by a spymaster."""
    type: Literal["clue"] = "clue"
    team: Team
    role: Role = Role.SPYMASTER
    clue: str
    count: int | None
    source: Source = Source.HUMAN


class GuessEntry(BaseModel):
    """A card revealed by a guesser."""
    type: Literal["guess"] = "guess"
    team: Team
    role: Role = Role.GUESSER
    word: str
    card_team: CardType  # What the card actually was
    source: Source = Source.HUMAN


class EndTurnEntry(BaseModel):
    """Explicit end of a team's turn."""
    type: Literal["end_turn"] = "end_turn"
    team: Team
    role: Role = Role.GUESSER
    source: Source = Source.HUMAN


# Union type for history entries
HistoryEntry = ClueEntry | GuessEntry | EndTurnEntry


class NotesEntry(BaseModel):
    """Rationale an AI actor attached to a response."""
    id: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
    team: Team
    role: Role
    source: Source
    notes: str
    # Echoed from the payload for traceability
    clue: str | None = None
    reveal: list[str] | None = None
    end_turn: bool | None = None


class GameState(BaseModel):
    """The current state of a Monames game."""
    cards: list[Card] = Field(default_factory=list)
    starting_team: Team = Team.RED
    current_turn: Team = Team.RED
    last_clue: LastClue | None = None
    remaining_guesses: int | None = None
    history: list[HistoryEntry] = Field(default_factory=list)
    notes_log: list[NotesEntry] = Field(default_factory=list)
    end_state: EndState | None = None

    @property
    def is_over(self) -> bool:
        return self.end_state is not None

    def card_by_id(self, card_id: str) -> Card | None:
        for card in self.cards:
            if card.id == card_id:
                return card
        return None


class Persona(BaseModel):
    """A named prompt profile an AI actor plays a role with."""
    id: str
    role: Role
    label: str
    prompt: str


class TeamRoles(BaseModel):
    """Selection for each role of one team: "human" or a persona id."""
    spymaster: str = HUMAN
    guesser: str = HUMAN


class RoleControl(BaseModel):
    """Who controls each role slot, for both teams."""
    red: TeamRoles = Field(default_factory=TeamRoles)
    blue: TeamRoles = Field(default_factory=TeamRoles)

    def get(self, team: Team, role: Role) -> str:
        return getattr(getattr(self, team.value), role.value)

    def with_slot(self, team: Team, role: Role, value: str) -> "RoleControl":
        updated = self.model_copy(deep=True)
        setattr(getattr(updated, team.value), role.value, value)
        return updated


class AIPayload(BaseModel):
    """
    Structured response from an AI actor.

    Untrusted: every field is optional, unknown keys are ignored and values of
    the wrong shape are dropped instead of failing validation. The count is
    kept raw; integer coercion happens when the payload is applied.
    """
    model_config = {"populate_by_name": True, "extra": "ignore"}

    clue: str | None = None
    count: Any = None
    reveal: list[str] | None = None
    end_turn: bool | None = Field(default=None, alias="endTurn")
    notes: str | None = None

    @model_validator(mode="before")
    @classmethod
    def sanitize(cls, data: Any) -> Any:
        """Coerce loosely typed fields into something usable."""
        if not isinstance(data, dict):
            return {}
        data = dict(data)

        clue = data.get("clue")
        if clue is not None and not isinstance(clue, str):
            data["clue"] = str(clue) if isinstance(clue, (int, float)) else None

        reveal = data.get("reveal")
        if reveal is not None:
            if isinstance(reveal, list):
                data["reveal"] = [
                    str(item) for item in reveal
                    if isinstance(item, (str, int, float)) and not isinstance(item, bool)
                ]
            else:
                data["reveal"] = None

        for key in ("endTurn", "end_turn"):
            if key in data and not isinstance(data[key], bool):
                data[key] = None

        notes = data.get("notes")
        if notes is not None and not isinstance(notes, str):
            data["notes"] = None

        return data


class WordPack(BaseModel):
    """A named list of board words."""
    id: str
    name: str
    words: list[str]
