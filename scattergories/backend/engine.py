"""Reducer translating presentation-layer actions into session calls."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import structlog

from .errors import ConfigurationError, ScattergoriesError
from .models import ActionResult, TurnPhase
from .session import GameSession
from .state import build_session_state

logger = structlog.get_logger(__name__)

Handler = Callable[[GameSession, dict[str, Any]], list[dict[str, Any]]]


def apply_session_action(session: GameSession, action: dict[str, Any]) -> ActionResult:
    """Apply ``action`` to ``session`` and report what changed.

    Refused actions produce no events. Errors from the core are reported as a
    single ``error`` event and leave the session untouched.
    """
    action_type = str(action.get("type", "")).upper()
    handler = _HANDLERS.get(action_type)
    if handler is None:
        return ActionResult(state=build_session_state(session), engine_events=[])
    try:
        events = handler(session, action)
    except ScattergoriesError as exc:
        logger.debug("action_rejected", action=action_type, error=str(exc))
        events = [{"kind": "error", "error": str(exc), "action": action}]
    return ActionResult(state=build_session_state(session), engine_events=events)


def _int_field(action: dict[str, Any], key: str, default: int | None) -> int | None:
    raw = action.get(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from exc


def _category_of(action: dict[str, Any]) -> str | None:
    category = action.get("category")
    if not isinstance(category, str) or category == "":
        return None
    return category


def _apply_start_turn(session: GameSession, action: dict[str, Any]) -> list[dict[str, Any]]:
    turn = session.start_turn(duration_seconds=_int_field(action, "durationSeconds", None))
    events: list[dict[str, Any]] = [
        {
            "kind": "turn_started",
            "team": turn.team_name,
            "letter": turn.letter,
            "durationSeconds": turn.duration_seconds,
            "action": action,
        }
    ]
    if turn.phase is TurnPhase.EXPIRED:
        events.append({"kind": "turn_expired", "team": turn.team_name, "score": turn.score})
    return events


def _apply_tick(session: GameSession, action: dict[str, Any]) -> list[dict[str, Any]]:
    turn_number = _int_field(action, "turn", None)
    if turn_number is not None and turn_number != session.turns_started:
        return []
    turn = session.current_turn
    if turn is None or not session.tick():
        return []
    events: list[dict[str, Any]] = [{"kind": "tick", "timeRemaining": turn.time_remaining}]
    if turn.phase is TurnPhase.EXPIRED:
        events.append({"kind": "turn_expired", "team": turn.team_name, "score": turn.score})
    return events


def _phase_change(changed: bool, session: GameSession, action: dict[str, Any]) -> list[dict[str, Any]]:
    if not changed:
        return []
    return [{"kind": "phase_changed", "phase": session.turn_phase.value, "action": action}]


def _apply_pause(session: GameSession, action: dict[str, Any]) -> list[dict[str, Any]]:
    return _phase_change(session.pause(), session, action)


def _apply_resume(session: GameSession, action: dict[str, Any]) -> list[dict[str, Any]]:
    return _phase_change(session.resume(), session, action)


def _apply_toggle_pause(session: GameSession, action: dict[str, Any]) -> list[dict[str, Any]]:
    return _phase_change(session.toggle_pause(), session, action)


def _apply_change_letter(session: GameSession, action: dict[str, Any]) -> list[dict[str, Any]]:
    turn = session.current_turn
    if turn is None or not session.change_letter():
        return []
    return [
        {
            "kind": "letter_changed",
            "letter": turn.letter,
            "letterChangesLeft": session.current_team.letter_changes_left,
            "action": action,
        }
    ]


def _apply_set_draft(session: GameSession, action: dict[str, Any]) -> list[dict[str, Any]]:
    category = _category_of(action)
    text = action.get("text", "")
    if category is None or not isinstance(text, str) or not session.set_draft(category, text):
        return []
    return [{"kind": "draft_updated", "category": category}]


def _apply_submit(session: GameSession, action: dict[str, Any]) -> list[dict[str, Any]]:
    category = _category_of(action)
    turn = session.current_turn
    if category is None or turn is None or not session.submit(category):
        return []
    return [{"kind": "answer_submitted", "category": category, "answer": turn.submitted_answers[category]}]


def _apply_retract(session: GameSession, action: dict[str, Any]) -> list[dict[str, Any]]:
    category = _category_of(action)
    if category is None or not session.retract(category):
        return []
    return [{"kind": "answer_retracted", "category": category}]


def _finalized(session: GameSession, points: int | None, action: dict[str, Any]) -> list[dict[str, Any]]:
    if points is None:
        return []
    team = session.current_team
    session.finalize_turn()
    return [
        {"kind": "turn_completed", "team": team.name, "score": points, "action": action},
        {"kind": "turn_finalized", "team": team.name, "total": team.score, "nextTeam": session.current_team.name},
    ]


def _apply_end_turn(session: GameSession, action: dict[str, Any]) -> list[dict[str, Any]]:
    return _finalized(session, session.end_turn(), action)


def _apply_acknowledge_expiry(session: GameSession, action: dict[str, Any]) -> list[dict[str, Any]]:
    return _finalized(session, session.acknowledge_expiry(), action)


def _apply_set_round_duration(session: GameSession, action: dict[str, Any]) -> list[dict[str, Any]]:
    session.change_round_duration(_int_field(action, "seconds", session.round_duration_seconds) or 0)
    return [{"kind": "round_duration_changed", "seconds": session.round_duration_seconds, "action": action}]


def _apply_adjust_round_duration(session: GameSession, action: dict[str, Any]) -> list[dict[str, Any]]:
    before = session.round_duration_seconds
    after = session.adjust_round_duration(_int_field(action, "steps", 0) or 0)
    if after == before:
        return []
    return [{"kind": "round_duration_changed", "seconds": after, "action": action}]


def _apply_restart(session: GameSession, action: dict[str, Any]) -> list[dict[str, Any]]:
    session.restart()
    return [{"kind": "match_restarted", "action": action}]


_HANDLERS: dict[str, Handler] = {
    "START_TURN": _apply_start_turn,
    "TICK": _apply_tick,
    "PAUSE": _apply_pause,
    "RESUME": _apply_resume,
    "TOGGLE_PAUSE": _apply_toggle_pause,
    "CHANGE_LETTER": _apply_change_letter,
    "SET_DRAFT": _apply_set_draft,
    "SUBMIT": _apply_submit,
    "RETRACT": _apply_retract,
    "END_TURN": _apply_end_turn,
    "ACKNOWLEDGE_EXPIRY": _apply_acknowledge_expiry,
    "SET_ROUND_DURATION": _apply_set_round_duration,
    "ADJUST_ROUND_DURATION": _apply_adjust_round_duration,
    "RESTART": _apply_restart,
}
