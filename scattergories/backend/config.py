"""Configuration helpers for backend runtime."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class GameSettings:
    host: str
    port: int
    round_duration_seconds: int
    duration_step_seconds: int
    min_team_size: int
    max_team_size: int
    letter_changes: int
    categories_per_turn: int
    category_file: str | None
    log_level: str
    log_format: str


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def load_settings() -> GameSettings:
    return GameSettings(
        host=os.getenv("SCATTERGORIES_HOST", "127.0.0.1"),
        port=_int_env("SCATTERGORIES_PORT", 8000),
        round_duration_seconds=_int_env("SCATTERGORIES_ROUND_SECONDS", 120),
        duration_step_seconds=_int_env("SCATTERGORIES_DURATION_STEP", 10),
        min_team_size=_int_env("SCATTERGORIES_MIN_TEAM_SIZE", 3),
        max_team_size=_int_env("SCATTERGORIES_MAX_TEAM_SIZE", 4),
        letter_changes=_int_env("SCATTERGORIES_LETTER_CHANGES", 3),
        categories_per_turn=_int_env("SCATTERGORIES_CATEGORIES_PER_TURN", 12),
        category_file=os.getenv("SCATTERGORIES_CATEGORY_FILE"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_format=os.getenv("SCATTERGORIES_LOG_FORMAT", "console").lower(),
    )
