"""State builders for lobby and match snapshots."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from .lobby import Lobby
from .models import Team
from .round_engine import RoundEngine
from .session import GameSession


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_team_state(team: Team) -> dict[str, Any]:
    return {
        "name": team.name,
        "members": [{"name": member.name, "isLeader": member.is_leader} for member in team.members],
        "leader": team.leader.name,
        "score": team.score,
        "roundScores": list(team.round_scores),
        "letterChangesLeft": team.letter_changes_left,
    }


def build_turn_state(turn: RoundEngine | None) -> dict[str, Any]:
    """Return the turn snapshot; an absent turn reads as idle."""
    if turn is None:
        return {
            "phase": "idle",
            "team": None,
            "letter": None,
            "activeCategories": [],
            "timeRemaining": 0,
            "draftAnswers": {},
            "submittedAnswers": {},
            "score": 0,
        }
    return {
        "phase": turn.phase.value,
        "team": turn.team_name,
        "letter": turn.letter or None,
        "activeCategories": list(turn.active_categories),
        "timeRemaining": turn.time_remaining,
        "draftAnswers": dict(turn.draft_answers),
        "submittedAnswers": dict(turn.submitted_answers),
        "score": turn.score,
    }


def build_session_state(session: GameSession) -> dict[str, Any]:
    return {
        "currentTeamIndex": session.current_team_index,
        "turnNumber": session.turns_started,
        "currentTeam": session.current_team.name,
        "roundDurationSeconds": session.round_duration_seconds,
        "durationStepSeconds": session.duration_step_seconds,
        "roster": [build_team_state(team) for team in session.roster],
        "turn": build_turn_state(session.current_turn),
    }


def build_lobby_state(lobby: Lobby) -> dict[str, Any]:
    return {
        "participants": list(lobby.participants),
        "minTeamSize": lobby.min_team_size,
        "maxTeamSize": lobby.max_team_size,
        "canGenerateTeams": lobby.can_generate_teams,
        "teams": [build_team_state(team) for team in lobby.teams] if lobby.teams is not None else None,
    }
