"""The single shared "current game" reference."""

from __future__ import annotations

from typing import Callable

from .models import GameState

StateListener = Callable[[GameState], None]


class GameHandle:
    """
    Owns the current GameState.

    All writers go through update(), which applies a transition to the
    latest state rather than to a copy captured earlier. Listeners fire only
    when the transition produced a different state.
    """

    def __init__(self, state: GameState | None = None):
        self._state = state or GameState()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> GameState:
        return self._state

    def replace(self, state: GameState) -> None:
        """Swap in a whole new game (reset, new game, restore)."""
        self._state = state
        self._notify()

    def update(self, transition: Callable[[GameState], GameState]) -> GameState:
        new_state = transition(self._state)
        if new_state is not self._state:
            self._state = new_state
            self._notify()
        return self._state

    def subscribe(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self._state)
