"""Margin and cover-probability models.

Pure functions only, no I/O, no logging.  The pipeline per estimate is::

    team stats ──► predicted margin ──► (+/- home advantage)
               ──► z = (margin + spread) / σ ──► Φ(z) ──► cover probability

Spread convention
-----------------
``spread`` is always expressed from the **favourite's** perspective and is
negative: a favourite at −6.5 must win by 7+ to cover.  The favourite
covers when ``margin + spread > 0``, hence ``z = (margin + spread) / σ``.

Margin weights
--------------
Basketball::

    0.35 × net-points diff
  + 0.30 × FG% diff                      (× 1.0 scale)
  + 0.20 × rebound-margin diff × 0.5
  + 0.15 × (underdog TO margin − favourite TO margin)

The turnover term is **inverted** on purpose: a team's turnover margin
already nets opponent takeaways, so the weighting runs underdog-minus-
favourite.  Keep it that way; it is not the football convention.

Football::

    0.40 × net-points diff
  + 0.25 × net-yards diff / 25
  + 0.20 × turnover-diff delta × 4 × 0.5

Hockey totals use a separate expected-goals model with Poisson-like
variance (σ = √projected total); see :func:`hockey_total_probability`.

Run tests with::

    pytest tests/test_probability_model.py -v
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Final, Literal

from backend.core.odds_math import norm_cdf
from backend.core.sport_config import (
    CATEGORY_BASKETBALL,
    CATEGORY_FOOTBALL,
    SportConfig,
)
from backend.core.team_stats import (
    SPREAD_REQUIRED_FIELDS,
    BasketballTeamStats,
    FootballTeamStats,
    HockeyTeamStats,
    TeamStats,
    missing_fields,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

#: Display clamp for cover probabilities, in percent.
MIN_COVER_PCT: Final[float] = 0.1
MAX_COVER_PCT: Final[float] = 99.9

# Basketball weights
_BB_POINTS_WEIGHT: Final[float] = 0.35
_BB_FG_SCALE: Final[float] = 1.0
_BB_FG_WEIGHT: Final[float] = 0.3
_BB_REB_SCALE: Final[float] = 0.5
_BB_REB_WEIGHT: Final[float] = 0.2
_BB_TO_SCALE: Final[float] = 1.0
_BB_TO_WEIGHT: Final[float] = 0.15

#: Defaults for optional basketball inputs (league-neutral values).
DEFAULT_FG_PCT: Final[float] = 0.45
DEFAULT_REBOUND_MARGIN: Final[float] = 0.0
DEFAULT_TURNOVER_MARGIN: Final[float] = 0.0

# Football weights
_FB_POINTS_WEIGHT: Final[float] = 0.4
_FB_YARDS_DIVISOR: Final[float] = 25.0
_FB_YARDS_WEIGHT: Final[float] = 0.25
_FB_TO_POINTS: Final[float] = 4.0
_FB_TO_SCALE: Final[float] = 0.5
_FB_TO_WEIGHT: Final[float] = 0.2

#: League-average yards per game, used for *all four* yardage inputs when
#: any of them is missing so the yards term contributes exactly zero.
LEAGUE_AVG_YARDS: Final[float] = 350.0
DEFAULT_TURNOVER_DIFF: Final[float] = 0.0

# Hockey adjustments
_PACE_HDCF_THRESHOLD: Final[float] = 25.0
_PACE_BONUS: Final[float] = 0.25
_SPECIAL_TEAMS_THRESHOLD: Final[float] = 150.0
_SPECIAL_TEAMS_BONUS: Final[float] = 0.35

#: Probability tiers (percent) for interpretation text, strongest first.
PROBABILITY_TIERS: Final[tuple[tuple[float, str], ...]] = (
    (65.0, "strong"),
    (55.0, "favorable"),
    (45.0, "coin_flip"),
    (35.0, "unfavorable"),
)

Venue = Literal["home", "away", "neutral"]


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProbabilityResult:
    """Cover probabilities for a favourite/underdog pair.

    Probabilities are fractions clamped to ``[0.001, 0.999]`` and sum to
    1.0 by construction (the underdog value is ``1 − favourite``).
    """

    favorite_cover_probability: float
    underdog_cover_probability: float
    predicted_margin: float
    sigma: float
    home_advantage: float = 0.0

    def rounded(self) -> tuple[float, float]:
        """Two-decimal pair that sums to exactly 1.00.

        The second value is derived as ``1.00 − first`` rather than rounded
        independently, which would allow 0.01 of drift.
        """
        favorite = round(self.favorite_cover_probability, 2)
        return favorite, round(1.0 - favorite, 2)


@dataclass(frozen=True)
class HockeyTotalResult:
    """Projected total and over/under probabilities for an NHL game."""

    home_expected_goals: float
    away_expected_goals: float
    projected_total: float
    pace_adjustment: float
    special_teams_adjustment: float
    standard_deviation: float
    z_score: float
    over_probability: float
    under_probability: float
    line: float
    bet_type: str

    @property
    def probability(self) -> float:
        """Probability (percent) of the selected ``bet_type``."""
        return self.over_probability if self.bet_type == "over" else self.under_probability


# ---------------------------------------------------------------------------
# Predicted margin
# ---------------------------------------------------------------------------


def _require(stats: TeamStats, required: tuple[str, ...]) -> None:
    absent = missing_fields(stats, required)
    if absent:
        raise ValueError(
            f"Insufficient data for {stats.team!r}: missing {', '.join(absent)}."
        )


def _or_default(value: float | None, default: float) -> float:
    return default if value is None else value


def predicted_margin_basketball(
    favorite: BasketballTeamStats, underdog: BasketballTeamStats
) -> float:
    """Favourite's expected scoring margin over the underdog (points).

    Raises:
        ValueError: If either team lacks points for/against.
    """
    _require(favorite, SPREAD_REQUIRED_FIELDS)
    _require(underdog, SPREAD_REQUIRED_FIELDS)

    net_favorite = favorite.points_per_game - favorite.points_allowed
    net_underdog = underdog.points_per_game - underdog.points_allowed
    points_component = (net_favorite - net_underdog) * _BB_POINTS_WEIGHT

    fg_diff = _or_default(favorite.field_goal_pct, DEFAULT_FG_PCT) - _or_default(
        underdog.field_goal_pct, DEFAULT_FG_PCT
    )
    fg_component = fg_diff * _BB_FG_SCALE * _BB_FG_WEIGHT

    reb_diff = _or_default(favorite.rebound_margin, DEFAULT_REBOUND_MARGIN) - _or_default(
        underdog.rebound_margin, DEFAULT_REBOUND_MARGIN
    )
    reb_component = reb_diff * _BB_REB_SCALE * _BB_REB_WEIGHT

    # Inverted: underdog minus favourite.
    to_diff = _or_default(underdog.turnover_margin, DEFAULT_TURNOVER_MARGIN) - _or_default(
        favorite.turnover_margin, DEFAULT_TURNOVER_MARGIN
    )
    to_component = to_diff * _BB_TO_SCALE * _BB_TO_WEIGHT

    return points_component + fg_component + reb_component + to_component


def predicted_margin_football(
    favorite: FootballTeamStats, underdog: FootballTeamStats
) -> float:
    """Favourite's expected scoring margin over the underdog (points).

    Raises:
        ValueError: If either team lacks points for/against.
    """
    _require(favorite, SPREAD_REQUIRED_FIELDS)
    _require(underdog, SPREAD_REQUIRED_FIELDS)

    net_favorite = favorite.points_per_game - favorite.points_allowed
    net_underdog = underdog.points_per_game - underdog.points_allowed
    points_component = (net_favorite - net_underdog) * _FB_POINTS_WEIGHT

    yards = (
        favorite.offensive_yards,
        favorite.defensive_yards,
        underdog.offensive_yards,
        underdog.defensive_yards,
    )
    if any(value is None for value in yards):
        fav_off = fav_def = dog_off = dog_def = LEAGUE_AVG_YARDS
    else:
        fav_off, fav_def, dog_off, dog_def = yards
    yards_diff = (fav_off - fav_def) - (dog_off - dog_def)
    yards_component = yards_diff / _FB_YARDS_DIVISOR * _FB_YARDS_WEIGHT

    to_diff = _or_default(favorite.turnover_diff, DEFAULT_TURNOVER_DIFF) - _or_default(
        underdog.turnover_diff, DEFAULT_TURNOVER_DIFF
    )
    to_component = to_diff * _FB_TO_POINTS * _FB_TO_SCALE * _FB_TO_WEIGHT

    return points_component + yards_component + to_component


def predicted_margin(
    sport: str | SportConfig, favorite: TeamStats, underdog: TeamStats
) -> float:
    """Dispatch to the margin formula for ``sport``'s category.

    Raises:
        ValueError: For hockey (a totals model, not a margin model), for a
            stats type that does not match the sport, or missing data.
    """
    config = sport if isinstance(sport, SportConfig) else SportConfig.for_sport(sport)
    if config.category == CATEGORY_BASKETBALL:
        if not (
            isinstance(favorite, BasketballTeamStats)
            and isinstance(underdog, BasketballTeamStats)
        ):
            raise ValueError(f"{config.sport_name} margin requires BasketballTeamStats.")
        return predicted_margin_basketball(favorite, underdog)
    if config.category == CATEGORY_FOOTBALL:
        if not (
            isinstance(favorite, FootballTeamStats) and isinstance(underdog, FootballTeamStats)
        ):
            raise ValueError(f"{config.sport_name} margin requires FootballTeamStats.")
        return predicted_margin_football(favorite, underdog)
    raise ValueError(
        f"{config.sport_name} has no spread margin model; use hockey_total_probability."
    )


# ---------------------------------------------------------------------------
# Cover probability
# ---------------------------------------------------------------------------


def cover_probability(predicted_margin: float, spread: float, sigma: float) -> float:
    """Probability (percent) that the favourite covers ``spread``.

    Args:
        predicted_margin: Favourite's expected margin, in points.
        spread: Favourite's spread (negative).
        sigma: Standard deviation of the game margin, > 0.

    Returns:
        ``Φ((margin + spread)/σ) × 100`` clamped to ``[0.1, 99.9]``.

    Raises:
        ValueError: If ``sigma <= 0``.

    Examples::

        cover_probability(10.0, -7.0, 13.5)  →  58.79
        cover_probability(0.0, 0.0, 12.0)    →  50.0
    """
    if not sigma > 0:
        raise ValueError(f"sigma must be positive, got {sigma!r}.")
    z = (predicted_margin + spread) / sigma
    probability = norm_cdf(z) * 100.0
    return max(MIN_COVER_PCT, min(MAX_COVER_PCT, probability))


def venue_adjustment(config: SportConfig, venue: str) -> float:
    """Points added to the favourite's margin for ``venue``.

    ``venue`` is relative to the favourite: ``"home"`` adds the sport's home
    advantage, ``"away"`` subtracts it, ``"neutral"`` adds nothing.

    Raises:
        ValueError: For any other venue string.
    """
    if venue == "home":
        return config.home_advantage_pts
    if venue == "away":
        return -config.home_advantage_pts
    if venue == "neutral":
        return 0.0
    raise ValueError(f"venue must be 'home', 'away' or 'neutral', got {venue!r}.")


def spread_probability(
    margin: float,
    spread: float,
    config: SportConfig,
    venue: str = "neutral",
) -> ProbabilityResult:
    """Favourite/underdog cover probabilities for a stats-derived margin.

    Args:
        margin: Neutral-site predicted margin for the favourite.
        spread: Favourite's spread (negative).
        config: Sport configuration supplying σ and home advantage.
        venue: Venue relative to the favourite.

    Returns:
        A :class:`ProbabilityResult` with fractional probabilities.
    """
    adjustment = venue_adjustment(config, venue)
    adjusted_margin = margin + adjustment
    favorite_pct = cover_probability(adjusted_margin, spread, config.margin_sigma)
    favorite = favorite_pct / 100.0
    return ProbabilityResult(
        favorite_cover_probability=favorite,
        underdog_cover_probability=1.0 - favorite,
        predicted_margin=adjusted_margin,
        sigma=config.margin_sigma,
        home_advantage=adjustment,
    )


def probability_tier(probability: float) -> str:
    """Bucket a percentage into ``strong``/``favorable``/``coin_flip``/
    ``unfavorable``/``poor``."""
    for threshold, tier in PROBABILITY_TIERS:
        if probability >= threshold:
            return tier
    return "poor"


# ---------------------------------------------------------------------------
# Hockey totals
# ---------------------------------------------------------------------------


def hockey_total_probability(
    home: HockeyTeamStats,
    away: HockeyTeamStats,
    line: float,
    bet_type: str = "over",
) -> HockeyTotalResult:
    """Project an NHL game total and the over/under probability for ``line``.

    Steps:

    A. Expected goals per side:
       ``(own xGF60 + opponent xGA60) / 2 − opponent GSAx60``.
    B. Pace: +0.25 when combined HDCF60 exceeds 25.
    C. Special teams: +0.35 for each side whose
       ``(own PP + (100 − opponent PK)) × opponent times shorthanded``
       exceeds 150.  Both sides may trigger.
    D. ``σ = √total``, ``z = (total − line)/σ``,
       ``over = Φ(z) × 100``, ``under = 100 − over``.  A projected total
       above the line therefore favours the over.

    Raises:
        ValueError: On missing stats, an unknown ``bet_type`` or a
            non-positive projected total.
    """
    if bet_type not in ("over", "under"):
        raise ValueError(f"bet_type must be 'over' or 'under', got {bet_type!r}.")
    _require(home, tuple(_hockey_fields()))
    _require(away, tuple(_hockey_fields()))

    home_goals = (home.xgf60 + away.xga60) / 2.0 - away.gsax60
    away_goals = (away.xgf60 + home.xga60) / 2.0 - home.gsax60

    pace = _PACE_BONUS if home.hdcf60 + away.hdcf60 > _PACE_HDCF_THRESHOLD else 0.0

    special_teams = 0.0
    if (home.pp + (100.0 - away.pk)) * away.times_shorthanded_per_game > _SPECIAL_TEAMS_THRESHOLD:
        special_teams += _SPECIAL_TEAMS_BONUS
    if (away.pp + (100.0 - home.pk)) * home.times_shorthanded_per_game > _SPECIAL_TEAMS_THRESHOLD:
        special_teams += _SPECIAL_TEAMS_BONUS

    total = home_goals + away_goals + pace + special_teams
    if total <= 0:
        raise ValueError(f"Projected total must be positive, got {total:.3f}.")

    sd = math.sqrt(total)
    z = (total - line) / sd
    over = norm_cdf(z) * 100.0
    under = 100.0 - over

    return HockeyTotalResult(
        home_expected_goals=round(home_goals, 2),
        away_expected_goals=round(away_goals, 2),
        projected_total=round(total, 2),
        pace_adjustment=pace,
        special_teams_adjustment=round(special_teams, 2),
        standard_deviation=round(sd, 3),
        z_score=round(z, 3),
        over_probability=round(over, 2),
        under_probability=round(under, 2),
        line=line,
        bet_type=bet_type,
    )


def _hockey_fields() -> list[str]:
    return ["xgf60", "xga60", "gsax60", "hdcf60", "pp", "pk", "times_shorthanded_per_game"]
