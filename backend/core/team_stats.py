"""Immutable per-team statistics snapshots consumed by the margin models.

Any numeric field may be ``None``: an absent stat means *insufficient data*,
never zero.  The margin functions in :mod:`backend.core.probability` apply
the few documented defaults themselves (league-average yards, neutral
rebound/turnover margins); everything else must be present.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Optional


@dataclass(frozen=True)
class BasketballTeamStats:
    """Season snapshot for one basketball team.

    ``field_goal_pct`` is a fraction (0.47, not 47).  Rebound and turnover
    margins are per-game differentials versus opponents.
    """

    team: str
    points_per_game: Optional[float] = None
    points_allowed: Optional[float] = None
    field_goal_pct: Optional[float] = None
    rebound_margin: Optional[float] = None
    turnover_margin: Optional[float] = None


@dataclass(frozen=True)
class FootballTeamStats:
    """Season snapshot for one football team (per-game averages)."""

    team: str
    points_per_game: Optional[float] = None
    points_allowed: Optional[float] = None
    offensive_yards: Optional[float] = None
    defensive_yards: Optional[float] = None
    turnover_diff: Optional[float] = None


@dataclass(frozen=True)
class HockeyTeamStats:
    """Rate stats for one hockey team.

    Attributes:
        xgf60: Expected goals for per 60 minutes.
        xga60: Expected goals against per 60 minutes.
        gsax60: Goalie goals saved above expected per 60 (may be negative).
        hdcf60: High-danger chances for per 60, a pace indicator.
        pp: Power-play percentage, 0–100.
        pk: Penalty-kill percentage, 0–100.
        times_shorthanded_per_game: Average times shorthanded per game.
    """

    team: str
    xgf60: Optional[float] = None
    xga60: Optional[float] = None
    gsax60: Optional[float] = None
    hdcf60: Optional[float] = None
    pp: Optional[float] = None
    pk: Optional[float] = None
    times_shorthanded_per_game: Optional[float] = None


TeamStats = BasketballTeamStats | FootballTeamStats | HockeyTeamStats

#: Fields that must be present for a spread estimate, regardless of sport.
SPREAD_REQUIRED_FIELDS: tuple[str, ...] = ("points_per_game", "points_allowed")


def missing_fields(stats: TeamStats, required: tuple[str, ...] | None = None) -> list[str]:
    """Names of required numeric fields that are ``None`` on ``stats``.

    With ``required=None`` every numeric field of the dataclass is checked.
    """
    if required is None:
        required = tuple(f.name for f in fields(stats) if f.name != "team")
    return [name for name in required if getattr(stats, name) is None]
