"""Pre-match participant collection and team generation."""

from __future__ import annotations

import random
from collections.abc import Sequence

import structlog

from .balancer import DEFAULT_LETTER_CHANGES, balance_teams
from .errors import ConfigurationError
from .models import Team
from .round_engine import CATEGORIES_PER_TURN
from .session import DEFAULT_DURATION_STEP, DEFAULT_ROUND_DURATION, GameSession

logger = structlog.get_logger(__name__)


class Lobby:
    def __init__(
        self,
        min_team_size: int = 3,
        max_team_size: int = 4,
        letter_changes: int = DEFAULT_LETTER_CHANGES,
        rng: random.Random | None = None,
    ) -> None:
        if min_team_size <= 0 or min_team_size > max_team_size:
            raise ConfigurationError(
                f"team size bounds must satisfy 0 < min <= max, got min={min_team_size} max={max_team_size}"
            )
        self.min_team_size = min_team_size
        self.max_team_size = max_team_size
        self.letter_changes = letter_changes
        self._rng = rng if rng is not None else random.Random()
        self.participants: list[str] = []
        self.teams: list[Team] | None = None

    @property
    def can_generate_teams(self) -> bool:
        return self.teams is None and len(self.participants) >= self.min_team_size

    def add_participant(self, name: str) -> bool:
        cleaned = name.strip()
        if cleaned == "":
            return False
        self.participants.append(cleaned)
        return True

    def remove_participant(self, index: int) -> bool:
        if index < 0 or index >= len(self.participants):
            return False
        del self.participants[index]
        return True

    def generate_teams(self) -> list[Team] | None:
        if not self.can_generate_teams:
            logger.debug("team_generation_refused", participants=len(self.participants), generated=self.teams is not None)
            return None
        self.teams = balance_teams(
            self.participants,
            min_team_size=self.min_team_size,
            max_team_size=self.max_team_size,
            letter_changes=self.letter_changes,
            rng=self._rng,
        )
        return self.teams

    def reset_teams(self) -> None:
        self.teams = None

    def start_match(
        self,
        category_pool: Sequence[str],
        round_duration_seconds: int = DEFAULT_ROUND_DURATION,
        duration_step_seconds: int = DEFAULT_DURATION_STEP,
        categories_per_turn: int = CATEGORIES_PER_TURN,
    ) -> GameSession | None:
        if self.teams is None:
            return None
        return GameSession(
            roster=self.teams,
            category_pool=category_pool,
            round_duration_seconds=round_duration_seconds,
            duration_step_seconds=duration_step_seconds,
            categories_per_turn=categories_per_turn,
            rng=self._rng,
        )
