"""Backend package for the team word-association game."""

from .balancer import balance_teams
from .categories import CategoryPool, load_category_pool
from .config import GameSettings, load_settings
from .errors import ConfigurationError, InsufficientParticipantsError, ScattergoriesError, TurnStateError
from .lobby import Lobby
from .models import Member, Team, TurnPhase
from .round_engine import RoundEngine
from .session import GameSession
from .store import GameStore, InMemoryGameStore

__all__ = [
    "balance_teams",
    "CategoryPool",
    "ConfigurationError",
    "GameSession",
    "GameSettings",
    "GameStore",
    "InMemoryGameStore",
    "InsufficientParticipantsError",
    "load_category_pool",
    "load_settings",
    "Lobby",
    "Member",
    "RoundEngine",
    "ScattergoriesError",
    "Team",
    "TurnPhase",
    "TurnStateError",
]
