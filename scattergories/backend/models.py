"""Domain models for teams, turns and store records."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TurnPhase(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    PAUSED = "paused"
    EXPIRED = "expired"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Member:
    name: str
    is_leader: bool = False


@dataclass
class Team:
    name: str
    members: list[Member]
    letter_changes_left: int
    score: int = 0
    round_scores: list[int] = field(default_factory=list)

    @property
    def leader(self) -> Member:
        return self.members[0]

    def record_round(self, points: int) -> None:
        self.round_scores.append(points)
        self.score += points

    def reset_scores(self) -> None:
        self.score = 0
        self.round_scores = []


@dataclass(frozen=True)
class ActionResult:
    state: dict[str, Any]
    engine_events: list[dict[str, Any]]


@dataclass(frozen=True)
class LobbyRecord:
    lobby_id: str
    state: dict[str, Any]


@dataclass(frozen=True)
class MatchRecord:
    match_id: str
    state: dict[str, Any]
