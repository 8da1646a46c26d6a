"""Match orchestration: roster, scores and turn rotation."""

from __future__ import annotations

import random
from collections.abc import Sequence

import structlog

from .errors import ConfigurationError, TurnStateError
from .models import Team, TurnPhase
from .round_engine import CATEGORIES_PER_TURN, LETTERS, RoundEngine

DEFAULT_ROUND_DURATION = 120
DEFAULT_DURATION_STEP = 10

logger = structlog.get_logger(__name__)


class GameSession:
    """Single writer for a match.

    Owns the roster and at most one live ``RoundEngine``. Team records are only
    mutated here: scores on ``finalize_turn`` and the letter-change allowance
    on ``change_letter``.
    """

    def __init__(
        self,
        roster: Sequence[Team],
        category_pool: Sequence[str],
        round_duration_seconds: int = DEFAULT_ROUND_DURATION,
        duration_step_seconds: int = DEFAULT_DURATION_STEP,
        categories_per_turn: int = CATEGORIES_PER_TURN,
        letters: Sequence[str] = LETTERS,
        rng: random.Random | None = None,
    ) -> None:
        if round_duration_seconds < 0:
            raise ConfigurationError(f"round duration must be >= 0 seconds, got {round_duration_seconds}")
        self.category_pool = list(category_pool)
        if duration_step_seconds <= 0:
            raise ConfigurationError(f"duration step must be > 0 seconds, got {duration_step_seconds}")
        self.round_duration_seconds = round_duration_seconds
        self.duration_step_seconds = duration_step_seconds
        self.categories_per_turn = categories_per_turn
        self.letters = tuple(letters)
        self._rng = rng if rng is not None else random.Random()
        self._roster: list[Team] = []
        self.current_team_index = 0
        self.turns_started = 0
        self._turn: RoundEngine | None = None
        self.new_match(roster)

    @property
    def roster(self) -> tuple[Team, ...]:
        return tuple(self._roster)

    @property
    def current_team(self) -> Team:
        return self._roster[self.current_team_index]

    @property
    def current_turn(self) -> RoundEngine | None:
        return self._turn

    @property
    def turn_phase(self) -> TurnPhase:
        return self._turn.phase if self._turn is not None else TurnPhase.IDLE

    def new_match(self, roster: Sequence[Team]) -> None:
        if not roster:
            raise ConfigurationError("a match needs at least one team")
        if any(not team.members for team in roster):
            raise ConfigurationError("every team needs at least one member")
        self._roster = list(roster)
        for team in self._roster:
            team.reset_scores()
        self.current_team_index = 0
        self._turn = None
        logger.info("match_started", teams=[team.name for team in self._roster])

    def restart(self) -> None:
        self.new_match(self._roster)

    def start_turn(
        self,
        duration_seconds: int | None = None,
        category_pool: Sequence[str] | None = None,
    ) -> RoundEngine:
        if self._turn is not None:
            raise TurnStateError(f"{self.current_team.name} already has a turn in phase {self._turn.phase.value}")
        duration = self.round_duration_seconds if duration_seconds is None else duration_seconds
        pool = self.category_pool if category_pool is None else list(category_pool)

        engine = RoundEngine(team_name=self.current_team.name, rng=self._rng)
        engine.start(
            duration_seconds=duration,
            category_pool=pool,
            letters=self.letters,
            categories_per_turn=self.categories_per_turn,
        )
        self._turn = engine
        self.turns_started += 1
        return engine

    def tick(self) -> bool:
        return self._turn is not None and self._turn.tick()

    def pause(self) -> bool:
        return self._turn is not None and self._turn.pause()

    def resume(self) -> bool:
        return self._turn is not None and self._turn.resume()

    def toggle_pause(self) -> bool:
        return self._turn is not None and self._turn.toggle_pause()

    def change_letter(self) -> bool:
        team = self.current_team
        if self._turn is None or not self._turn.change_letter(team.letter_changes_left):
            return False
        team.letter_changes_left -= 1
        return True

    def set_draft(self, category: str, text: str) -> bool:
        return self._turn is not None and self._turn.set_draft(category, text)

    def submit(self, category: str) -> bool:
        return self._turn is not None and self._turn.submit(category)

    def retract(self, category: str) -> bool:
        return self._turn is not None and self._turn.retract(category)

    def end_turn(self) -> int | None:
        return self._turn.end() if self._turn is not None else None

    def acknowledge_expiry(self) -> int | None:
        return self._turn.acknowledge_expiry() if self._turn is not None else None

    def finalize_turn(self) -> int:
        """Commit the completed turn's score and hand play to the next team."""
        if self._turn is None or self._turn.phase is not TurnPhase.COMPLETED:
            raise TurnStateError(f"no completed turn to finalize (phase {self.turn_phase.value})")
        points = self._turn.final_score or 0
        team = self.current_team
        team.record_round(points)
        logger.info("turn_finalized", team=team.name, points=points, total=team.score)
        self.current_team_index = (self.current_team_index + 1) % len(self._roster)
        self._turn = None
        return points

    def change_round_duration(self, seconds: int) -> None:
        if self._turn is not None:
            raise TurnStateError("round duration cannot change while a turn is in progress")
        if seconds < 0:
            raise ConfigurationError(f"round duration must be >= 0 seconds, got {seconds}")
        self.round_duration_seconds = seconds

    def adjust_round_duration(self, steps: int) -> int:
        """Move the duration by ``steps`` configured steps, never below zero."""
        self.change_round_duration(max(0, self.round_duration_seconds + steps * self.duration_step_seconds))
        return self.round_duration_seconds
