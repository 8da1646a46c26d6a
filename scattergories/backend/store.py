"""In-memory registry of lobbies and matches."""

from __future__ import annotations

import random
import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

import structlog

from .categories import CategoryPool
from .config import GameSettings
from .engine import apply_session_action
from .lobby import Lobby
from .models import ActionResult, LobbyRecord, MatchRecord
from .session import GameSession
from .state import build_lobby_state, build_session_state, utc_now_iso

logger = structlog.get_logger(__name__)


class GameStore(Protocol):
    def create_lobby(self, min_team_size: int | None = None, max_team_size: int | None = None) -> LobbyRecord:
        """Create an empty lobby using configured team bounds unless overridden."""

    def get_lobby_state(self, lobby_id: str) -> LobbyRecord | None:
        """Return lobby state, or None for an unknown id."""

    def add_participant(self, lobby_id: str, name: str) -> LobbyRecord | None:
        """Add a participant; blank names leave the lobby unchanged."""

    def remove_participant(self, lobby_id: str, index: int) -> LobbyRecord | None:
        """Remove the participant at ``index`` if it exists."""

    def generate_teams(self, lobby_id: str) -> LobbyRecord | None:
        """Balance teams; None when the lobby is unknown or refuses."""

    def reset_teams(self, lobby_id: str) -> LobbyRecord | None:
        """Discard generated teams."""

    def start_match(self, lobby_id: str) -> MatchRecord | None:
        """Turn the lobby's teams into a match; None when unknown or refused."""

    def get_match_state(self, match_id: str) -> MatchRecord | None:
        """Return match state, or None for an unknown id."""

    def apply_action(self, match_id: str, action: dict[str, Any]) -> ActionResult | None:
        """Apply an action to a match and return the new state with its events."""


@dataclass
class _MatchEntry:
    session: GameSession
    version: int = 1
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = ""
    last_events: list[dict[str, Any]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.updated_at = self.created_at


@dataclass
class InMemoryGameStore:
    """Lobbies and matches for one process.

    Every mutation runs under one lock, so actions against a match are applied
    strictly one at a time even when ticks and requests overlap.
    """

    settings: GameSettings
    category_pool: CategoryPool
    rng_factory: Callable[[], random.Random] = random.Random

    def __post_init__(self) -> None:
        self._lock = threading.RLock()
        self._lobbies: dict[str, Lobby] = {}
        self._matches: dict[str, _MatchEntry] = {}

    def create_lobby(self, min_team_size: int | None = None, max_team_size: int | None = None) -> LobbyRecord:
        lobby = Lobby(
            min_team_size=min_team_size if min_team_size is not None else self.settings.min_team_size,
            max_team_size=max_team_size if max_team_size is not None else self.settings.max_team_size,
            letter_changes=self.settings.letter_changes,
            rng=self.rng_factory(),
        )
        lobby_id = str(uuid.uuid4())
        with self._lock:
            self._lobbies[lobby_id] = lobby
        logger.info("lobby_created", lobby_id=lobby_id)
        return LobbyRecord(lobby_id=lobby_id, state=build_lobby_state(lobby))

    def get_lobby_state(self, lobby_id: str) -> LobbyRecord | None:
        with self._lock:
            lobby = self._lobbies.get(lobby_id)
            if lobby is None:
                return None
            return LobbyRecord(lobby_id=lobby_id, state=build_lobby_state(lobby))

    def add_participant(self, lobby_id: str, name: str) -> LobbyRecord | None:
        with self._lock:
            lobby = self._lobbies.get(lobby_id)
            if lobby is None:
                return None
            lobby.add_participant(name)
            return LobbyRecord(lobby_id=lobby_id, state=build_lobby_state(lobby))

    def remove_participant(self, lobby_id: str, index: int) -> LobbyRecord | None:
        with self._lock:
            lobby = self._lobbies.get(lobby_id)
            if lobby is None:
                return None
            lobby.remove_participant(index)
            return LobbyRecord(lobby_id=lobby_id, state=build_lobby_state(lobby))

    def generate_teams(self, lobby_id: str) -> LobbyRecord | None:
        with self._lock:
            lobby = self._lobbies.get(lobby_id)
            if lobby is None or lobby.generate_teams() is None:
                return None
            return LobbyRecord(lobby_id=lobby_id, state=build_lobby_state(lobby))

    def reset_teams(self, lobby_id: str) -> LobbyRecord | None:
        with self._lock:
            lobby = self._lobbies.get(lobby_id)
            if lobby is None:
                return None
            lobby.reset_teams()
            return LobbyRecord(lobby_id=lobby_id, state=build_lobby_state(lobby))

    def start_match(self, lobby_id: str) -> MatchRecord | None:
        with self._lock:
            lobby = self._lobbies.get(lobby_id)
            if lobby is None:
                return None
            session = lobby.start_match(
                category_pool=self.category_pool.names,
                round_duration_seconds=self.settings.round_duration_seconds,
                duration_step_seconds=self.settings.duration_step_seconds,
                categories_per_turn=self.settings.categories_per_turn,
            )
            if session is None:
                return None
            match_id = str(uuid.uuid4())
            entry = _MatchEntry(session=session)
            self._matches[match_id] = entry
            state = self._match_state(match_id, entry)
        logger.info("match_created", match_id=match_id, lobby_id=lobby_id, teams=len(session.roster))
        return MatchRecord(match_id=match_id, state=state)

    def get_match_state(self, match_id: str) -> MatchRecord | None:
        with self._lock:
            entry = self._matches.get(match_id)
            if entry is None:
                return None
            return MatchRecord(match_id=match_id, state=self._match_state(match_id, entry))

    def apply_action(self, match_id: str, action: dict[str, Any]) -> ActionResult | None:
        with self._lock:
            entry = self._matches.get(match_id)
            if entry is None:
                return None
            reduced = apply_session_action(entry.session, action)
            if any(event.get("kind") != "error" for event in reduced.engine_events):
                entry.version += 1
                entry.updated_at = utc_now_iso()
                entry.last_events = reduced.engine_events
            return ActionResult(state=self._match_state(match_id, entry), engine_events=reduced.engine_events)

    @staticmethod
    def _match_state(match_id: str, entry: _MatchEntry) -> dict[str, Any]:
        state = build_session_state(entry.session)
        state["id"] = match_id
        state["version"] = entry.version
        state["lastEvents"] = list(entry.last_events)
        state["meta"] = {"createdAt": entry.created_at, "updatedAt": entry.updated_at}
        return state
