"""FastAPI endpoints for lobbies, matches and websocket sync."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from .categories import CategoryPool, load_category_pool
from .clock import TurnClock, TurnClockRegistry
from .config import GameSettings, load_settings
from .errors import ConfigurationError
from .observability import configure_logging
from .store import GameStore, InMemoryGameStore

_CLOCK_RESTART_ACTIONS = ("START_TURN", "RESUME", "TOGGLE_PAUSE")


class CreateLobbyRequest(BaseModel):
    min_team_size: int | None = Field(default=None, ge=1)
    max_team_size: int | None = Field(default=None, ge=1)


class ParticipantRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)


class LobbyResponse(BaseModel):
    lobby_id: str
    state: dict[str, Any]


class MatchResponse(BaseModel):
    match_id: str
    state: dict[str, Any]


class MatchStateResponse(BaseModel):
    state: dict[str, Any]
    events: list[dict[str, Any]] = Field(default_factory=list)


class ActionEnvelope(BaseModel):
    action: dict[str, Any]


class CategoryResponse(BaseModel):
    name: str
    group: str
    examples: list[str]


class MatchWebSocketHub:
    def __init__(self) -> None:
        self._connections: dict[str, set[WebSocket]] = defaultdict(set)

    async def connect(self, match_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        self._connections[match_id].add(websocket)

    def disconnect(self, match_id: str, websocket: WebSocket) -> None:
        connections = self._connections.get(match_id)
        if connections is None:
            return
        connections.discard(websocket)
        if not connections:
            self._connections.pop(match_id, None)

    async def send_state(self, websocket: WebSocket, state: dict[str, Any]) -> None:
        await websocket.send_json({"type": "state.full", "state": state})

    async def broadcast_state(self, match_id: str, state: dict[str, Any]) -> None:
        stale_connections: list[WebSocket] = []
        for websocket in list(self._connections.get(match_id, set())):
            try:
                await self.send_state(websocket, state)
            except RuntimeError:
                stale_connections.append(websocket)
        for websocket in stale_connections:
            self.disconnect(match_id=match_id, websocket=websocket)


def _default_store(settings: GameSettings, category_pool: CategoryPool) -> GameStore:
    return InMemoryGameStore(settings=settings, category_pool=category_pool)


def create_app(
    store: GameStore | None = None,
    settings: GameSettings | None = None,
    category_pool: CategoryPool | None = None,
    run_clock: bool = True,
    clock_interval: float = 1.0,
) -> FastAPI:
    """Build the app.

    ``run_clock`` runs a server-side clock while a turn is active, ticking every
    ``clock_interval`` seconds; with it disabled the client is expected to post
    ``TICK`` actions itself.
    """
    game_settings = settings if settings is not None else load_settings()
    configure_logging(game_settings)
    categories = category_pool if category_pool is not None else load_category_pool(game_settings.category_file)
    game_store = store if store is not None else _default_store(game_settings, categories)
    websocket_hub = MatchWebSocketHub()
    clocks = TurnClockRegistry()

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        await clocks.stop_all()

    app = FastAPI(title="Scattergories API", version="0.1.0", lifespan=lifespan)
    app.state.websocket_hub = websocket_hub
    app.state.turn_clocks = clocks

    async def publish_state(match_id: str, state: dict[str, Any]) -> None:
        await websocket_hub.broadcast_state(match_id=match_id, state=state)

    app.state.publish_state = publish_state

    def build_clock(match_id: str, turn_number: int) -> TurnClock:
        action = {"type": "TICK", "turn": turn_number}

        async def tick() -> bool:
            result = await run_in_threadpool(game_store.apply_action, match_id=match_id, action=action)
            if result is None:
                return False
            if result.engine_events:
                await publish_state(match_id=match_id, state=result.state)
            return result.state["turnNumber"] == turn_number and result.state["turn"]["phase"] == "active"

        return TurnClock(tick=tick, interval=clock_interval)

    async def sync_clock(match_id: str, action_type: str, state: dict[str, Any]) -> None:
        if state["turn"]["phase"] != "active":
            await clocks.stop(match_id)
        elif action_type in _CLOCK_RESTART_ACTIONS:
            await clocks.restart(match_id, build_clock(match_id, state["turnNumber"]))
        elif not clocks.is_running(match_id):
            clocks.start(match_id, build_clock(match_id, state["turnNumber"]))

    def get_store() -> GameStore:
        return game_store

    def require_lobby(local_store: GameStore, lobby_id: str) -> None:
        if local_store.get_lobby_state(lobby_id=lobby_id) is None:
            raise HTTPException(status_code=404, detail="Lobby not found")

    @app.get("/api/categories", response_model=list[CategoryResponse])
    def list_categories(letter: str | None = Query(default=None, min_length=1, max_length=1)) -> list[CategoryResponse]:
        return [
            CategoryResponse(
                name=entry.name,
                group=entry.group,
                examples=categories.example_answers(entry.name, letter=letter),
            )
            for entry in categories.entries
        ]

    @app.post("/api/lobbies", response_model=LobbyResponse)
    def create_lobby(
        payload: CreateLobbyRequest,
        local_store: GameStore = Depends(get_store),
    ) -> LobbyResponse:
        try:
            created = local_store.create_lobby(
                min_team_size=payload.min_team_size,
                max_team_size=payload.max_team_size,
            )
        except ConfigurationError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return LobbyResponse(lobby_id=created.lobby_id, state=created.state)

    @app.get("/api/lobbies/{lobby_id}", response_model=LobbyResponse)
    def get_lobby(lobby_id: str, local_store: GameStore = Depends(get_store)) -> LobbyResponse:
        record = local_store.get_lobby_state(lobby_id=lobby_id)
        if record is None:
            raise HTTPException(status_code=404, detail="Lobby not found")
        return LobbyResponse(lobby_id=record.lobby_id, state=record.state)

    @app.post("/api/lobbies/{lobby_id}/participants", response_model=LobbyResponse)
    def add_participant(
        lobby_id: str,
        payload: ParticipantRequest,
        local_store: GameStore = Depends(get_store),
    ) -> LobbyResponse:
        record = local_store.add_participant(lobby_id=lobby_id, name=payload.name)
        if record is None:
            raise HTTPException(status_code=404, detail="Lobby not found")
        return LobbyResponse(lobby_id=record.lobby_id, state=record.state)

    @app.delete("/api/lobbies/{lobby_id}/participants/{index}", response_model=LobbyResponse)
    def remove_participant(
        lobby_id: str,
        index: int,
        local_store: GameStore = Depends(get_store),
    ) -> LobbyResponse:
        record = local_store.remove_participant(lobby_id=lobby_id, index=index)
        if record is None:
            raise HTTPException(status_code=404, detail="Lobby not found")
        return LobbyResponse(lobby_id=record.lobby_id, state=record.state)

    @app.post("/api/lobbies/{lobby_id}/teams", response_model=LobbyResponse)
    def generate_teams(lobby_id: str, local_store: GameStore = Depends(get_store)) -> LobbyResponse:
        require_lobby(local_store, lobby_id)
        record = local_store.generate_teams(lobby_id=lobby_id)
        if record is None:
            raise HTTPException(status_code=409, detail="Teams already generated or not enough participants")
        return LobbyResponse(lobby_id=record.lobby_id, state=record.state)

    @app.delete("/api/lobbies/{lobby_id}/teams", response_model=LobbyResponse)
    def reset_teams(lobby_id: str, local_store: GameStore = Depends(get_store)) -> LobbyResponse:
        record = local_store.reset_teams(lobby_id=lobby_id)
        if record is None:
            raise HTTPException(status_code=404, detail="Lobby not found")
        return LobbyResponse(lobby_id=record.lobby_id, state=record.state)

    @app.post("/api/lobbies/{lobby_id}/match", response_model=MatchResponse)
    def start_match(lobby_id: str, local_store: GameStore = Depends(get_store)) -> MatchResponse:
        require_lobby(local_store, lobby_id)
        record = local_store.start_match(lobby_id=lobby_id)
        if record is None:
            raise HTTPException(status_code=409, detail="Generate teams before starting the match")
        return MatchResponse(match_id=record.match_id, state=record.state)

    @app.get("/api/matches/{match_id}", response_model=MatchStateResponse)
    def get_match(match_id: str, local_store: GameStore = Depends(get_store)) -> MatchStateResponse:
        record = local_store.get_match_state(match_id=match_id)
        if record is None:
            raise HTTPException(status_code=404, detail="Match not found")
        return MatchStateResponse(state=record.state)

    @app.post("/api/matches/{match_id}/actions", response_model=MatchStateResponse)
    async def post_action(
        match_id: str,
        payload: ActionEnvelope,
        local_store: GameStore = Depends(get_store),
    ) -> MatchStateResponse:
        result = await run_in_threadpool(local_store.apply_action, match_id=match_id, action=payload.action)
        if result is None:
            raise HTTPException(status_code=404, detail="Match not found")
        errors = [event for event in result.engine_events if event.get("kind") == "error"]
        if errors:
            raise HTTPException(status_code=409, detail=errors[0]["error"])
        if result.engine_events:
            await publish_state(match_id=match_id, state=result.state)
            if run_clock:
                action_type = str(payload.action.get("type", "")).upper()
                await sync_clock(match_id, action_type, result.state)
        return MatchStateResponse(state=result.state, events=result.engine_events)

    @app.websocket("/ws/matches/{match_id}")
    async def match_ws(
        websocket: WebSocket,
        match_id: str,
        local_store: GameStore = Depends(get_store),
    ) -> None:
        record = await run_in_threadpool(local_store.get_match_state, match_id=match_id)
        if record is None:
            await websocket.close(code=1008)
            return

        await websocket_hub.connect(match_id=match_id, websocket=websocket)
        await websocket_hub.send_state(websocket=websocket, state=record.state)

        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            websocket_hub.disconnect(match_id=match_id, websocket=websocket)

    return app


app = create_app()
