"""Paced, cancelable playback of AI guess lists."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from .game import end_turn, find_unrevealed_card, reveal_card
from .handle import GameHandle
from .models import Card, CardType, GameState, Team
from .payload import RevealRequest

logger = logging.getLogger(__name__)

DEFAULT_SELECT_DELAY = 0.6
DEFAULT_REVEAL_DELAY = 0.8


@dataclass(frozen=True)
class SequenceProgress:
    """Which guess of the list is being played."""
    current: int  # 1-based position in the requested list
    total: int
    word: str


ProgressListener = Callable[[SequenceProgress | None], None]
RevealListener = Callable[[Card, bool], None]


def _can_keep_guessing(state: GameState, team: Team) -> bool:
    if state.end_state is not None or state.current_turn != team:
        return False
    return state.remaining_guesses is not None and state.remaining_guesses > 0


class RevealSequencer:
    """
    Walks an ordered guess list, revealing one card at a time.

    Each run captures a generation number. Anything that should interrupt
    guessing bumps the generation (cancel() or a newer run()); a run checks
    its generation after every sleep and stops mutating once it is stale.
    The game is always re-read from the handle, never from a snapshot taken
    before a sleep.
    """

    def __init__(
        self,
        handle: GameHandle,
        select_delay: float = DEFAULT_SELECT_DELAY,
        reveal_delay: float = DEFAULT_REVEAL_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_progress: ProgressListener | None = None,
        on_reveal: RevealListener | None = None,
    ):
        self.handle = handle
        self.select_delay = select_delay
        self.reveal_delay = reveal_delay
        self._sleep = sleep
        self._on_progress = on_progress
        self._on_reveal = on_reveal

        self._generation = 0
        self._progress_owner: int | None = None
        self.progress: SequenceProgress | None = None
        self.selected_card_id: str | None = None

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, generation: int) -> bool:
        return self._generation == generation

    def cancel(self) -> None:
        """Invalidate every running sequence and clear transient progress."""
        self._generation += 1
        self.selected_card_id = None
        self._set_progress(None, owner=None)

    def _set_progress(self, progress: SequenceProgress | None, owner: int | None) -> None:
        self.progress = progress
        self._progress_owner = owner
        if self._on_progress:
            self._on_progress(progress)

    def _release(self, generation: int) -> None:
        """Clear progress and selection if this run still owns them."""
        if self._progress_owner == generation:
            self.selected_card_id = None
            self._set_progress(None, owner=None)

    async def run(self, request: RevealRequest) -> None:
        """
        Play out a guess list.

        Words that match no unrevealed card are skipped without consuming a
        guess or a delay. The run stops early when the game ends, the turn
        passes, or the guess budget is gone. The request's end-turn flag is
        honoured only after the list has been played, and only if this run
        was not superseded.
        """
        team = request.team

        if not request.words:
            if request.end_turn:
                self.handle.update(
                    lambda s: end_turn(s, team, request.role, request.source)
                )
            return

        self._generation += 1
        generation = self._generation
        total = len(request.words)
        logger.debug(f"Reveal sequence {generation} for {team.value}: {request.words}")

        for index, word in enumerate(request.words):
            if not self.is_current(generation):
                self._release(generation)
                return

            current_state = self.handle.state
            if not _can_keep_guessing(current_state, team):
                break

            match = find_unrevealed_card(current_state, word)
            if match is None:
                logger.debug(f"Skipping unmatched guess {word!r}")
                continue

            self.selected_card_id = match.id
            self._set_progress(
                SequenceProgress(current=index + 1, total=total, word=match.word),
                owner=generation,
            )
            await self._sleep(self.select_delay)

            if not self.is_current(generation):
                self._release(generation)
                return

            correct = match.team == CardType(team.value)
            before = self.handle.state
            after = self.handle.update(
                lambda s: reveal_card(s, match.id, team, request.role, request.source)
            )
            if after is not before and self._on_reveal:
                self._on_reveal(match, correct)

            await self._sleep(self.reveal_delay)

            if not self.is_current(generation):
                self._release(generation)
                return

            self.selected_card_id = None

        self._release(generation)

        if self.is_current(generation) and request.end_turn:
            self.handle.update(
                lambda s: end_turn(s, team, request.role, request.source)
            )
