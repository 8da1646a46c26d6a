"""State machine for a single team's timed turn."""

from __future__ import annotations

import random
import string
from collections.abc import Sequence

import structlog

from .errors import ConfigurationError
from .models import TurnPhase

LETTERS: tuple[str, ...] = tuple(string.ascii_uppercase)
CATEGORIES_PER_TURN = 12

logger = structlog.get_logger(__name__)

_EDITABLE_PHASES = (TurnPhase.ACTIVE, TurnPhase.PAUSED)


class RoundEngine:
    """Letter, categories, countdown and answers for one team's turn.

    Transitions: idle -> active -> (paused <-> active) -> expired | completed.
    Calls that arrive in the wrong phase are refused and return ``False`` or
    ``None`` without touching state. The engine never mutates the team roster;
    ``change_letter`` is handed the remaining allowance by its owner.
    """

    def __init__(self, team_name: str, rng: random.Random | None = None) -> None:
        self.team_name = team_name
        self._rng = rng if rng is not None else random.Random()
        self._letters: tuple[str, ...] = LETTERS
        self.phase = TurnPhase.IDLE
        self.letter = ""
        self.active_categories: tuple[str, ...] = ()
        self.draft_answers: dict[str, str] = {}
        self.submitted_answers: dict[str, str] = {}
        self.duration_seconds = 0
        self.time_remaining = 0
        self.final_score: int | None = None
        self._log = logger.bind(team=team_name)

    @property
    def score(self) -> int:
        return sum(1 for answer in self.submitted_answers.values() if answer)

    @property
    def is_live(self) -> bool:
        return self.phase in _EDITABLE_PHASES

    def start(
        self,
        duration_seconds: int,
        category_pool: Sequence[str],
        letters: Sequence[str] = LETTERS,
        categories_per_turn: int = CATEGORIES_PER_TURN,
    ) -> bool:
        if self.phase not in (TurnPhase.IDLE, TurnPhase.COMPLETED):
            self._log.debug("turn_start_refused", phase=self.phase.value)
            return False
        if duration_seconds < 0:
            raise ConfigurationError(f"turn duration must be >= 0 seconds, got {duration_seconds}")
        if not letters:
            raise ConfigurationError("letter pool is empty")
        distinct = list(dict.fromkeys(category_pool))
        if categories_per_turn <= 0 or len(distinct) < categories_per_turn:
            raise ConfigurationError(
                f"category pool has {len(distinct)} distinct entries, a turn needs {categories_per_turn}"
            )

        self._letters = tuple(letters)
        self.letter = self._rng.choice(self._letters)
        self.active_categories = tuple(self._rng.sample(distinct, categories_per_turn))
        self.draft_answers = {}
        self.submitted_answers = {}
        self.duration_seconds = duration_seconds
        self.time_remaining = duration_seconds
        self.final_score = None
        # a zero-length turn has nothing to count down
        self.phase = TurnPhase.ACTIVE if duration_seconds > 0 else TurnPhase.EXPIRED
        self._log.info("turn_started", letter=self.letter, duration=duration_seconds)
        return True

    def tick(self) -> bool:
        if self.phase is not TurnPhase.ACTIVE:
            return False
        self.time_remaining -= 1
        if self.time_remaining <= 0:
            self.time_remaining = 0
            self.phase = TurnPhase.EXPIRED
            self._log.info("turn_expired", score=self.score)
        return True

    def pause(self) -> bool:
        if self.phase is not TurnPhase.ACTIVE:
            return False
        self.phase = TurnPhase.PAUSED
        return True

    def resume(self) -> bool:
        if self.phase is not TurnPhase.PAUSED:
            return False
        self.phase = TurnPhase.ACTIVE
        return True

    def toggle_pause(self) -> bool:
        if self.phase is TurnPhase.PAUSED:
            return self.resume()
        return self.pause()

    def change_letter(self, letter_changes_left: int) -> bool:
        """Redraw the letter; the previous letter may come up again."""
        if self.phase is not TurnPhase.ACTIVE or letter_changes_left <= 0:
            self._log.debug("letter_change_refused", phase=self.phase.value, left=letter_changes_left)
            return False
        previous = self.letter
        self.letter = self._rng.choice(self._letters)
        self._log.info("letter_changed", previous=previous, letter=self.letter)
        return True

    def set_draft(self, category: str, text: str) -> bool:
        if not self.is_live or category not in self.active_categories:
            return False
        self.draft_answers[category] = text
        return True

    def submit(self, category: str) -> bool:
        if not self.is_live or category not in self.active_categories:
            return False
        answer = self.draft_answers.get(category, "").strip()
        if answer == "":
            return False
        self.submitted_answers[category] = answer
        self.draft_answers[category] = ""
        return True

    def retract(self, category: str) -> bool:
        if not self.is_live or category not in self.submitted_answers:
            return False
        del self.submitted_answers[category]
        return True

    def acknowledge_expiry(self) -> int | None:
        if self.phase is not TurnPhase.EXPIRED:
            return None
        return self._complete()

    def end(self) -> int | None:
        if not self.is_live:
            return None
        return self._complete()

    def _complete(self) -> int:
        self.phase = TurnPhase.COMPLETED
        self.final_score = self.score
        self._log.info("turn_completed", score=self.final_score)
        return self.final_score
