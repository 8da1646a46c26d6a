"""Partition a participant pool into near-equal teams."""

from __future__ import annotations

import math
import random
from collections.abc import Sequence

import structlog

from .errors import ConfigurationError, InsufficientParticipantsError
from .models import Member, Team

DEFAULT_LETTER_CHANGES = 3

logger = structlog.get_logger(__name__)


def balance_teams(
    participants: Sequence[str],
    min_team_size: int,
    max_team_size: int,
    letter_changes: int = DEFAULT_LETTER_CHANGES,
    rng: random.Random | None = None,
) -> list[Team]:
    """Shuffle ``participants`` and deal them into ``ceil(n / max_team_size)`` teams.

    The first ``n % k`` teams get one extra member, so sizes never differ by
    more than one. The first member dealt to each team leads it. Duplicate
    names are kept as separate participants.
    """
    if min_team_size <= 0 or max_team_size <= 0 or min_team_size > max_team_size:
        raise ConfigurationError(
            f"team size bounds must satisfy 0 < min <= max, got min={min_team_size} max={max_team_size}"
        )
    if letter_changes < 0:
        raise ConfigurationError(f"letter change allowance must be >= 0, got {letter_changes}")
    if len(participants) < min_team_size:
        raise InsufficientParticipantsError(count=len(participants), minimum=min_team_size)

    source = rng if rng is not None else random.Random()
    shuffled = list(participants)
    source.shuffle(shuffled)

    total = len(shuffled)
    team_count = math.ceil(total / max_team_size)
    base_size, remainder = divmod(total, team_count)

    teams: list[Team] = []
    cursor = 0
    for index in range(team_count):
        size = base_size + 1 if index < remainder else base_size
        chunk = shuffled[cursor : cursor + size]
        cursor += size
        teams.append(
            Team(
                name=f"Team {index + 1}",
                members=[Member(name=name, is_leader=position == 0) for position, name in enumerate(chunk)],
                letter_changes_left=letter_changes,
            )
        )

    logger.info("teams_balanced", participants=total, teams=team_count, sizes=[len(team.members) for team in teams])
    return teams
