"""FastAPI app exposing a local game session."""
from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from monames.config import ApiConfig, load_settings
from monames.engine import Role, Team
from monames.session import GameSession, SnapshotStore

from .models import (
    ClueRequest,
    NewGameRequest,
    ProgressResponse,
    RoleRequest,
    StateResponse,
)

logger = logging.getLogger(__name__)


def _team(value: str) -> Team:
    try:
        return Team(value)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown team: {value}") from None


def _role(value: str) -> Role:
    try:
        return Role(value)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown role: {value}") from None


def create_app(session: GameSession) -> FastAPI:
    app = FastAPI(title="Monames API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _state(status: str | None = None) -> StateResponse:
        return StateResponse(
            status=session.status_message if status is None else status,
            busy=session.busy,
            can_retry=session.parse_failure is not None,
            role_control=session.role_control,
            game=session.game,
        )

    @app.get("/state", response_model=StateResponse)
    async def get_state():
        return _state()

    @app.post("/game/new", response_model=StateResponse)
    async def new_game(request: NewGameRequest | None = None):
        starting = _team(request.starting_team) if request and request.starting_team else None
        return _state(session.new_game(starting))

    @app.post("/clue", response_model=StateResponse)
    async def submit_clue(request: ClueRequest, wait: bool = False):
        status = session.submit_clue(request.clue, request.count)
        ai_status = await session.process_pending()
        if ai_status is not None:
            status = ai_status
            if wait:
                await session.wait_for_reveals()
        return _state(status)

    @app.post("/cards/{card_id}/reveal", response_model=StateResponse)
    async def reveal(card_id: str):
        if session.game.card_by_id(card_id) is None:
            raise HTTPException(status_code=404, detail=f"Card not found: {card_id}")
        return _state(session.reveal_card(card_id))

    @app.post("/turn/end", response_model=StateResponse)
    async def end_turn():
        return _state(session.end_turn_early())

    @app.put("/roles/{team}/{role}", response_model=StateResponse)
    async def set_role(team: str, role: str, request: RoleRequest):
        return _state(session.set_role(_team(team), _role(role), request.value))

    @app.post("/ai/{team}/{role}", response_model=StateResponse)
    async def request_ai(team: str, role: str, wait: bool = False):
        if session.busy:
            raise HTTPException(409, "An AI request is already running")
        status = await session.request_ai(_team(team), _role(role))
        if wait:
            await session.wait_for_reveals()
        return _state(status)

    @app.post("/ai/retry", response_model=StateResponse)
    async def retry(wait: bool = False):
        if session.parse_failure is None:
            raise HTTPException(404, "Nothing to retry")
        status = await session.retry_with_higher_temperature()
        if wait:
            await session.wait_for_reveals()
        return _state(status)

    @app.get("/progress", response_model=ProgressResponse)
    async def progress():
        current = session.sequencer.progress
        if current is None:
            return ProgressResponse(selected_card_id=session.sequencer.selected_card_id)
        return ProgressResponse(
            current=current.current,
            total=current.total,
            word=current.word,
            selected_card_id=session.sequencer.selected_card_id,
        )

    return app


def create_default_app() -> FastAPI:
    """App over the stored session; for `uvicorn --factory`."""
    settings = load_settings()
    store = SnapshotStore(settings.state_path, settings.save_debounce_seconds)
    session = GameSession.load(store, settings=settings)
    if not session.api_config.has_api_key:
        session.api_config = ApiConfig.from_env()
    logger.info(f"Serving game state from {settings.state_path}")
    return create_app(session)
