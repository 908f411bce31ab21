"""A local game session: the current game, its players and its settings."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from monames.agents import AIActor, ROLE_LABELS, default_personas, default_selected_personas
from monames.config import ApiConfig, Settings
from monames.core.errors import (
    ConfigurationError, InputValidationError, PayloadParseError, ProviderError,
)
from monames.core.llm import LLMProvider, MockProvider
from monames.core.parsing import parse_ai_payload
from monames.core.trace import AIResult, ResponseLogEntry
from monames.engine import (
    BOARD_SIZE, AIPayload, Card, GameHandle, GameState, Persona, RevealRequest,
    RevealSequencer, Role, Source, Team, WordPack, apply_payload,
    create_game, end_turn, enforce_role_mode, is_ai_selection, is_human_selection,
    load_wordlist, normalize_role_control, repair_selected_personas, resolve_persona,
    reveal_card, submit_clue, update_role_control,
)

from .storage import DEFAULT_PACK_ID, Snapshot, SnapshotStore

logger = logging.getLogger(__name__)

GAME_OVER_MESSAGE = "Game over. Start a new game to continue."
RETRY_TEMPERATURE_FACTOR = 1.2
DEFAULT_TEMPERATURE = 0.2

ProviderFactory = Callable[[ApiConfig], LLMProvider]


def parse_clue_input(word: str, count: str | int) -> tuple[str, int]:
    """
    Validate a human clue.

    Returns:
        (clue, count) ready for submit_clue.

    Raises:
        InputValidationError: blank word, word with spaces, or a count that is
            not a positive integer.
    """
    trimmed = (word or "").strip()
    if not trimmed:
        raise InputValidationError("Enter a clue word.")
    if any(ch.isspace() for ch in trimmed):
        raise InputValidationError("Clue must be a single word with no spaces.")

    if isinstance(count, bool):
        raise InputValidationError("Clue count must be a positive number.")
    try:
        parsed = int(str(count).strip())
    except ValueError:
        raise InputValidationError("Clue count must be a positive number.") from None
    if parsed < 1:
        raise InputValidationError("Clue count must be a positive number.")
    return trimmed, parsed


def default_pack() -> WordPack:
    return WordPack(id=DEFAULT_PACK_ID, name="Monames", words=load_wordlist())


def _default_provider_factory(api_config: ApiConfig) -> LLMProvider:
    return api_config.create_provider()


def _log_sequence_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error(f"Reveal sequence failed: {error}", exc_info=error)


@dataclass
class ParseFailure:
    """An unparseable AI response the player may retry hotter."""
    team: Team
    role: Role
    temperature: float
    message_text: str


class GameSession:
    """
    The single owner of a local game.

    Human input and AI requests come in here. Human actions are only
    accepted for slots the role control marks human, AI requests only for
    slots backed by a persona. Every method reports back with a status
    message instead of raising.
    """

    def __init__(
        self,
        snapshot: Snapshot | None = None,
        settings: Settings | None = None,
        store: SnapshotStore | None = None,
        provider_factory: ProviderFactory | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_reveal: Callable[[Card, bool], None] | None = None,
        rng: random.Random | None = None,
    ):
        snapshot = snapshot or Snapshot()
        self.settings = settings or Settings()
        self.store = store
        self.provider_factory = provider_factory or _default_provider_factory
        self.rng = rng or random.Random()

        self.theme = snapshot.theme
        self.api_config = snapshot.api_config
        self.custom_packs = list(snapshot.custom_packs)
        self.selected_pack_id = snapshot.selected_pack_id
        self.personas = snapshot.personas if snapshot.personas is not None else default_personas()
        self.selected_personas = repair_selected_personas(
            snapshot.selected_personas or default_selected_personas(self.personas),
            self.personas,
        )
        self.role_control = enforce_role_mode(
            normalize_role_control(snapshot.role_control, self.personas, self.selected_personas),
            self.personas,
            self.selected_personas,
        )
        self.last_ai_result = snapshot.last_ai_result
        self.ai_response_log = list(snapshot.ai_response_log)

        self.status_message = ""
        self.busy = False
        self.parse_failure: ParseFailure | None = None
        self.pending_ai_guesser = False

        game = snapshot.game
        if not game.cards:
            pack = self.selected_pack
            if pack is not None and len(pack.words) >= BOARD_SIZE:
                game = create_game(pack.words, rng=self.rng)

        self.handle = GameHandle(game)
        self.sequencer = RevealSequencer(
            self.handle,
            select_delay=self.settings.guess_select_delay,
            reveal_delay=self.settings.guess_reveal_delay,
            sleep=sleep,
            on_reveal=on_reveal,
        )
        self._sequence_task: asyncio.Task | None = None
        self.handle.subscribe(lambda _state: self._changed())

    @classmethod
    def load(cls, store: SnapshotStore, settings: Settings | None = None, **kwargs: Any) -> "GameSession":
        """Start from the stored snapshot, or fresh if there is none."""
        return cls(snapshot=store.load(), settings=settings, store=store, **kwargs)

    # ------------------------------------------------------------------
    # State and persistence
    # ------------------------------------------------------------------

    @property
    def game(self) -> GameState:
        return self.handle.state

    @property
    def packs(self) -> list[WordPack]:
        return [default_pack(), *self.custom_packs]

    @property
    def selected_pack(self) -> WordPack | None:
        packs = self.packs
        for pack in packs:
            if pack.id == self.selected_pack_id:
                return pack
        return packs[0] if packs else None

    def snapshot(self) -> Snapshot:
        return Snapshot(
            theme=self.theme,
            api_config=self.api_config,
            custom_packs=self.custom_packs,
            selected_pack_id=self.selected_pack_id,
            personas=self.personas,
            selected_personas=self.selected_personas,
            role_control=self.role_control,
            game=self.game,
            last_ai_result=self.last_ai_result,
            ai_response_log=self.ai_response_log,
        )

    def _changed(self) -> None:
        if self.store is not None:
            self.store.schedule_save(self.snapshot())

    def _set_status(self, message: str) -> str:
        self.status_message = message
        return message

    # ------------------------------------------------------------------
    # Game lifecycle
    # ------------------------------------------------------------------

    def new_game(self, starting_team: Team | None = None) -> str:
        """Throw away the current game, including any guesses in flight."""
        pack = self.selected_pack
        if pack is None or len(pack.words) < BOARD_SIZE:
            return self._set_status(
                f"Select a word pack with at least {BOARD_SIZE} words to start a game."
            )

        self.sequencer.cancel()
        self.pending_ai_guesser = False
        self.parse_failure = None
        self.last_ai_result = None
        self.handle.replace(create_game(pack.words, starting_team, rng=self.rng))
        logger.info(f"New game, {self.game.starting_team.value} starts")
        return self._set_status("New game started.")

    def select_pack(self, pack_id: str) -> str:
        self.selected_pack_id = pack_id
        self._changed()
        pack = self.selected_pack
        return self._set_status(f"Selected pack \"{pack.name}\"." if pack else "")

    # ------------------------------------------------------------------
    # Human input
    # ------------------------------------------------------------------

    def _slot_is_human(self, team: Team, role: Role) -> bool:
        return is_human_selection(self.role_control.get(team, role))

    def submit_clue(self, word: str, count: str | int) -> str:
        """Human spymaster gives a clue for the team whose turn it is."""
        if self.game.is_over:
            return self._set_status(GAME_OVER_MESSAGE)

        team = self.game.current_turn
        if not self._slot_is_human(team, Role.SPYMASTER):
            return self._set_status(f"The {team.value} spymaster is played by AI.")

        try:
            clue, parsed_count = parse_clue_input(word, count)
        except InputValidationError as e:
            return self._set_status(str(e))

        self.handle.update(lambda s: submit_clue(s, team, clue, parsed_count, Role.SPYMASTER, Source.HUMAN))
        if is_ai_selection(self.role_control.get(team, Role.GUESSER)):
            self.pending_ai_guesser = True
        return self._set_status("Clue submitted.")

    def reveal_card(self, card_id: str) -> str:
        """Human guesser flips a card."""
        game = self.game
        if game.is_over:
            return self._set_status(GAME_OVER_MESSAGE)
        if game.remaining_guesses is None or game.remaining_guesses <= 0:
            return self._set_status("No guesses remaining. End the turn or wait for a clue.")

        def transition(state: GameState) -> GameState:
            if not self._slot_is_human(state.current_turn, Role.GUESSER):
                return state
            return reveal_card(state, card_id, state.current_turn, Role.GUESSER, Source.HUMAN)

        updated = self.handle.update(transition)
        if updated.end_state is not None:
            end = updated.end_state
            return self._set_status(f"Game over: {end.winner.value} wins ({end.reason.value}).")
        return self._set_status("")

    def end_turn_early(self) -> str:
        """Human guesser stops guessing for this turn."""
        if self.game.is_over:
            return self._set_status(GAME_OVER_MESSAGE)
        team = self.game.current_turn
        if not self._slot_is_human(team, Role.GUESSER):
            return self._set_status(f"The {team.value} guesser is played by AI.")

        self.handle.update(lambda s: end_turn(s, team, Role.GUESSER, Source.HUMAN))
        return self._set_status(f"{team.value.capitalize()} ended their turn.")

    # ------------------------------------------------------------------
    # Roles and personas
    # ------------------------------------------------------------------

    def set_role(self, team: Team, role: Role, value: str) -> str:
        self.role_control = update_role_control(
            self.role_control, team, role, value, self.personas, self.selected_personas,
        )
        self._changed()
        return self._set_status("")

    def select_persona(self, role: Role, persona_id: str) -> str:
        self.selected_personas = {**self.selected_personas, role.value: persona_id}
        self._repair_roles()
        return self._set_status("")

    def set_personas(self, personas: list[Persona]) -> None:
        """Replace the persona catalogue and repair references into it."""
        self.personas = list(personas)
        self._repair_roles()

    def save_persona(self, persona: Persona) -> str:
        existing = [p for p in self.personas if p.id != persona.id]
        updated = len(existing) != len(self.personas)
        self.set_personas([*existing, persona])
        verb = "Updated" if updated else "Added"
        return self._set_status(f"{verb} persona \"{persona.label}\".")

    def delete_persona(self, persona_id: str) -> str:
        self.set_personas([p for p in self.personas if p.id != persona_id])
        return self._set_status("Persona deleted.")

    def _repair_roles(self) -> None:
        self.selected_personas = repair_selected_personas(self.selected_personas, self.personas)
        self.role_control = enforce_role_mode(
            normalize_role_control(self.role_control, self.personas, self.selected_personas),
            self.personas,
            self.selected_personas,
        )
        self._changed()

    # ------------------------------------------------------------------
    # AI actors
    # ------------------------------------------------------------------

    def apply_ai_payload(
        self,
        payload: dict[str, Any] | AIPayload,
        team: Team,
        role: Role,
        source: Source = Source.AI,
    ) -> str | None:
        """
        Merge a parsed payload and start any reveals it asked for.

        Must run inside the event loop when the payload carries reveals.
        Returns the status override from validation, if any.
        """
        if not isinstance(payload, AIPayload):
            payload = AIPayload.model_validate(payload)

        result = apply_payload(self.game, payload, team, role, source)
        self.handle.update(lambda _state: result.state)

        if result.reveal_request is not None:
            self._start_reveals(result.reveal_request)
        return result.status

    def _start_reveals(self, request: RevealRequest) -> None:
        loop = asyncio.get_running_loop()
        task = loop.create_task(self.sequencer.run(request))
        task.add_done_callback(_log_sequence_failure)
        self._sequence_task = task

    async def wait_for_reveals(self) -> None:
        """Wait until the reveal sequence started last has finished."""
        if self._sequence_task is not None:
            await self._sequence_task

    async def request_ai(
        self,
        team: Team,
        role: Role,
        api_config_override: ApiConfig | None = None,
    ) -> str:
        """
        Ask the AI actor in a slot for its move and apply it.

        Configuration, provider and parse errors end up in the status
        message; a parse failure also leaves a retry option behind.
        """
        persona = resolve_persona(
            self.role_control, team, role, self.personas, self.selected_personas,
        )
        if persona is None or not persona.prompt.strip():
            return self._set_status(
                f"Configuration error: No {ROLE_LABELS[role]} persona prompt found. "
                "Add one in settings."
            )
        if self.game.is_over:
            return self._set_status(GAME_OVER_MESSAGE)

        api_config = api_config_override or self.api_config
        self.busy = True
        self.parse_failure = None
        self._set_status(f"Contacting your AI for {team.value} {ROLE_LABELS[role]}...")

        message_text = ""
        source = Source.AI
        try:
            provider = self.provider_factory(api_config)
            if isinstance(provider, MockProvider):
                source = Source.MOCK
            response = await AIActor(provider).request(persona, team, role, self.game)
            message_text = response.content

            parsed = parse_ai_payload(message_text)
            if parsed is None:
                raise PayloadParseError("AI response did not include JSON.", raw_text=message_text)

            self.ai_response_log.append(ResponseLogEntry(
                team=team, role=role, source=source, message_text=message_text,
                payload=parsed, model=response.model, latency_ms=response.latency_ms,
            ))
            status = self.apply_ai_payload(parsed, team, role, source)
            self.last_ai_result = AIResult(team=team, role=role, source=source, payload=parsed)
            self._changed()
            return self._set_status(status or "AI response applied.")

        except ConfigurationError as e:
            logger.warning(f"AI request blocked: {e}")
            return self._set_status(str(e))
        except ProviderError as e:
            logger.error(f"AI request failed: {e}")
            self.ai_response_log.append(ResponseLogEntry(
                team=team, role=role, source=source, message_text=message_text, error=str(e),
            ))
            self._changed()
            return self._set_status(e.user_message())
        except PayloadParseError as e:
            logger.warning(f"Unparseable AI response: {e}")
            self.ai_response_log.append(ResponseLogEntry(
                team=team, role=role, source=source, message_text=message_text, error=str(e),
            ))
            self.parse_failure = ParseFailure(
                team=team,
                role=role,
                temperature=api_config.temperature or DEFAULT_TEMPERATURE,
                message_text=e.raw_text or message_text,
            )
            self._changed()
            return self._set_status(f"API Error: Could not parse response. {e}")
        except Exception as e:
            logger.exception(f"AI request failed unexpectedly: {e}")
            self.ai_response_log.append(ResponseLogEntry(
                team=team, role=role, source=source, message_text=message_text, error=str(e),
            ))
            self._changed()
            return self._set_status(f"Request failed: {e}")
        finally:
            self.busy = False

    async def retry_with_higher_temperature(self) -> str:
        """Repeat the request that produced unparseable output, 20% hotter."""
        failure = self.parse_failure
        if failure is None:
            return self._set_status("Nothing to retry.")
        override = self.api_config.model_copy(
            update={"temperature": failure.temperature * RETRY_TEMPERATURE_FACTOR}
        )
        return await self.request_ai(failure.team, failure.role, api_config_override=override)

    async def process_pending(self) -> str | None:
        """
        Dispatch the AI guesser after a human clue, if one is waiting.

        Returns the resulting status, or None when nothing was dispatched.
        """
        if not self.pending_ai_guesser or self.busy:
            return None
        team = self.game.current_turn
        if not is_ai_selection(self.role_control.get(team, Role.GUESSER)):
            self.pending_ai_guesser = False
            return None
        last_clue = self.game.last_clue
        if last_clue is None or last_clue.role != Role.SPYMASTER:
            return None

        self.pending_ai_guesser = False
        return await self.request_ai(team, Role.GUESSER)
