"""AI actor that plays a spymaster or guesser slot."""

from __future__ import annotations

import json
import logging
from typing import Any

from monames.core.errors import ConfigurationError
from monames.core.llm import LLMProvider, LLMResponse
from monames.engine import GameState, Persona, Role, Team, get_visible_board

from .prompts import apply_prompt_template

logger = logging.getLogger(__name__)

ROLE_LABELS = {
    Role.SPYMASTER: "Spymaster",
    Role.GUESSER: "Guesser",
}

RESPONSE_SCHEMAS = {
    Role.SPYMASTER: '{"clue":"word","count":2,"notes":""}',
    Role.GUESSER: '{"reveal":["word","word"],"endTurn":false,"notes":""}',
}

GUESSER_INSTRUCTIONS = (
    "For reveal, include multiple guesses in order (up to remainingGuesses). "
    "Stop guessing after the limit, or set endTurn true to stop early."
)


def build_context(state: GameState, team: Team, role: Role) -> dict[str, Any]:
    """
    Game state as the requesting role may see it.

    Spymasters get every card's team, guessers only the revealed ones.
    """
    return {
        "board": get_visible_board(state, role),
        "currentTurn": state.current_turn.value,
        "startingTeam": state.starting_team.value,
        "remainingGuesses": state.remaining_guesses,
        "lastClue": state.last_clue.model_dump(mode="json") if state.last_clue else None,
        "history": [entry.model_dump(mode="json") for entry in state.history],
        "requestingTeam": team.value,
        "requestingRole": role.value,
    }


def build_messages(
    persona: Persona,
    team: Team,
    role: Role,
    state: GameState,
) -> list[dict[str, str]]:
    """System prompt (role intro, persona, schema) plus the state as JSON."""
    base_prompt = apply_prompt_template(
        persona.prompt,
        team=team,
        role=role,
        cards=state.cards,
        history=state.history,
        last_clue=state.last_clue,
        remaining_guesses=state.remaining_guesses,
    )
    role_intro = f"You are the {ROLE_LABELS[role]} for the {team.value} team."
    schema_instruction = f"Respond with JSON only using this schema: {RESPONSE_SCHEMAS[role]}."
    if role == Role.GUESSER:
        schema_instruction = f"{schema_instruction} {GUESSER_INSTRUCTIONS}"

    context = build_context(state, team, role)

    return [
        {"role": "system", "content": f"{role_intro}\n{base_prompt}\n\n{schema_instruction}"},
        {"role": "user", "content": f"Game state JSON:\n{json.dumps(context)}"},
    ]


class AIActor:
    """Sends a role's view of the game to a model and returns its reply."""

    def __init__(self, provider: LLMProvider):
        self.provider = provider

    async def request(
        self,
        persona: Persona | None,
        team: Team,
        role: Role,
        state: GameState,
        temperature: float | None = None,
    ) -> LLMResponse:
        """
        Ask the model for a move.

        Raises:
            ConfigurationError: no persona prompt for the role.
            ProviderError: the provider call failed.
        """
        if persona is None or not persona.prompt.strip():
            raise ConfigurationError(
                f"Configuration error: No {ROLE_LABELS[role]} persona prompt found. "
                "Add one in settings."
            )

        messages = build_messages(persona, team, role, state)
        logger.info(f"Requesting {team.value} {role.value} move from {self.provider.model} ({persona.id})")

        response = await self.provider.complete(messages=messages, temperature=temperature)
        logger.debug(f"Response in {response.latency_ms:.0f}ms: {response.content[:200]!r}")
        return response
