"""
Estimation pipeline: raw tool arguments or free text in, cover probability
and stake recommendation out.

    raw args / text
        -> arg_normalizer / matchup_parser
        -> team_mapping (canonical teams, sport)
        -> StatsRepository.lookup
        -> core.probability (margin, cover probability)
        -> core.kelly (optional stake)

Caller-correctable problems come back as :class:`ToolError` values; the
result dicts are JSON-ready.  Nothing here turns an error into a default
probability or stake.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict, Optional, Protocol, Tuple, Union

from backend.core.kelly import calculate_kelly_stake
from backend.core.probability import (
    ProbabilityResult,
    hockey_total_probability,
    predicted_margin,
    spread_probability,
)
from backend.core.sport_config import (
    AMBIGUOUS_SPORT_DEFAULT,
    CATEGORY_HOCKEY,
    MAX_SPREAD,
    MIN_SPREAD,
    SportConfig,
)
from backend.core.team_stats import (
    SPREAD_REQUIRED_FIELDS,
    HockeyTeamStats,
    TeamStats,
    missing_fields,
)
from backend.services.arg_normalizer import normalize_probability_args, normalize_sport
from backend.services.errors import (
    ToolError,
    insufficient_data,
    invalid_input,
    parse_failure,
)
from backend.services.matchup_parser import (
    DEFAULT_AMERICAN_ODDS,
    VENUE_AWAY,
    VENUE_HOME,
    VENUE_NEUTRAL,
    parse_matchup_request,
)
from backend.services.messages import (
    DEFAULT_LOCALE,
    format_points,
    interpret_spread,
    interpret_total,
    t,
)
from backend.services.team_mapping import (
    UNHINTED_PARTITIONS,
    ResolvedTeam,
    fallback_suggestion,
    resolve_matchup_teams,
)

logger = logging.getLogger(__name__)

VENUES = (VENUE_HOME, VENUE_AWAY, VENUE_NEUTRAL)

_FLIPPED_VENUE = {VENUE_HOME: VENUE_AWAY, VENUE_AWAY: VENUE_HOME, VENUE_NEUTRAL: VENUE_NEUTRAL}

EstimateResult = Union[Dict[str, Any], ToolError]


class StatsLookup(Protocol):
    def lookup(self, name_or_alias: str, sport: str) -> Optional[TeamStats]:
        ...


def _league_label(sport: Optional[str]) -> str:
    if sport:
        return SportConfig.for_sport(sport).sport_name
    return "/".join(p.upper() for p in UNHINTED_PARTITIONS)


def estimate_cover_probability(
    raw_args: Any,
    stats: StatsLookup,
    *,
    sport: Optional[str] = None,
    venue: str = VENUE_NEUTRAL,
    locale: str = DEFAULT_LOCALE,
    default_sport: str = AMBIGUOUS_SPORT_DEFAULT,
) -> EstimateResult:
    """
    Probability that the favorite covers, from loosely-shaped arguments.

    ``raw_args`` is anything :func:`normalize_probability_args` accepts.
    ``sport`` (any name :func:`normalize_sport` knows) overrides a
    ``sport``/``league`` key in the arguments.  ``venue`` is relative to
    the favorite.
    """
    estimate = _estimate_spread(
        raw_args, stats, sport=sport, venue=venue, locale=locale, default_sport=default_sport
    )
    if isinstance(estimate, ToolError):
        return estimate
    return estimate[0]


def _estimate_spread(
    raw_args: Any,
    stats: StatsLookup,
    *,
    sport: Optional[str],
    venue: str,
    locale: str,
    default_sport: str,
) -> Union[Tuple[Dict[str, Any], ProbabilityResult], ToolError]:
    # Returns the display dict plus the unrounded probabilities for staking.
    result = normalize_probability_args(raw_args)
    if not result.ok:
        return invalid_input(
            t("error_missing_fields", locale, fields="; ".join(result.missing_fields)),
            missing_fields=result.missing_fields,
        )
    args = result.normalized
    favorite_text, underdog_text = args["team_favorite"], args["team_underdog"]
    spread = args["spread"]

    if spread >= 0:
        return invalid_input(
            t("error_spread_sign", locale, spread=format_points(spread)),
            hint=t(
                "hint_spread_sign", locale,
                magnitude=format_points(abs(spread)), underdog=underdog_text,
            ),
        )
    if not MIN_SPREAD <= spread <= MAX_SPREAD:
        return invalid_input(t("error_spread_range", locale, spread=format_points(spread)))
    if venue not in VENUES:
        return invalid_input(f"venue must be one of {', '.join(VENUES)}, got {venue!r}.")

    sport_hint = normalize_sport(sport) if sport else args["sport"]
    if sport and sport_hint is None:
        return invalid_input(f"Unknown sport {sport!r}.")
    if sport_hint and SportConfig.for_sport(sport_hint).category == CATEGORY_HOCKEY:
        return invalid_input(
            t("error_no_spread_model", locale, league=_league_label(sport_hint))
        )

    favorite_res, underdog_res = resolve_matchup_teams(
        favorite_text, underdog_text, sport_hint, default_sport=default_sport
    )
    for resolution in (favorite_res, underdog_res):
        if not isinstance(resolution, ResolvedTeam):
            return invalid_input(
                t("error_unknown_team", locale, league=_league_label(sport_hint), team=resolution.query),
                team_searched=resolution.query,
                suggestions=resolution.suggestions or (fallback_suggestion(sport_hint),),
            )
    if favorite_res.sport != underdog_res.sport:
        return invalid_input(
            t("parse_sport_conflict", locale),
            hint=t("clarify_sport", locale),
        )

    resolved_sport = favorite_res.sport
    config = SportConfig.for_sport(resolved_sport)
    favorite, underdog = favorite_res.team, underdog_res.team
    teams = {"favorite": favorite.full_name, "underdog": underdog.full_name}

    favorite_stats = stats.lookup(favorite.full_name, resolved_sport)
    underdog_stats = stats.lookup(underdog.full_name, resolved_sport)
    absent = []
    for team, row in ((favorite, favorite_stats), (underdog, underdog_stats)):
        if row is None:
            absent.extend(f"{team.full_name}.{name}" for name in SPREAD_REQUIRED_FIELDS)
        else:
            absent.extend(
                f"{team.full_name}.{name}" for name in missing_fields(row, SPREAD_REQUIRED_FIELDS)
            )
    if absent:
        logger.info("Insufficient stats for %s vs %s: %s", teams["favorite"], teams["underdog"], absent)
        return insufficient_data(t("error_insufficient_data", locale), teams, absent)

    margin = predicted_margin(config, favorite_stats, underdog_stats)
    probability = spread_probability(margin, spread, config, venue)
    favorite_pct, underdog_pct = probability.rounded()

    logger.debug(
        "%s %s %s vs %s: margin %.2f, cover %.4f",
        resolved_sport, format_points(spread), favorite.abbreviation,
        underdog.abbreviation, probability.predicted_margin,
        probability.favorite_cover_probability,
    )
    return ({
        "success": True,
        "sport": resolved_sport,
        "league": config.sport_name,
        "favorite_cover_probability": favorite_pct,
        "underdog_cover_probability": underdog_pct,
        "predicted_margin": round(probability.predicted_margin, 2),
        "sigma": probability.sigma,
        "home_advantage": probability.home_advantage,
        "venue": venue,
        "inputs": {
            "team_favorite": favorite_text,
            "team_underdog": underdog_text,
            "spread": spread,
        },
        "normalized": {
            "team_favorite": favorite.full_name,
            "team_underdog": underdog.full_name,
        },
        "interpretation": interpret_spread(
            round(probability.favorite_cover_probability * 100.0, 1),
            favorite.full_name,
            spread,
            locale,
        ),
    }, probability)


def analyze_matchup_text(
    text: str,
    stats: StatsLookup,
    *,
    bankroll: Optional[float] = None,
    kelly_fraction: float = 0.5,
    default_odds: int = DEFAULT_AMERICAN_ODDS,
    locale: str = DEFAULT_LOCALE,
    default_sport: str = AMBIGUOUS_SPORT_DEFAULT,
) -> EstimateResult:
    """
    Parse a free-text request, estimate the pick's cover probability and,
    when ``bankroll`` is given, size the bet with Kelly.
    """
    parsing = parse_matchup_request(
        text, locale, default_sport=default_sport, default_odds=default_odds
    )
    if not parsing.success:
        return parse_failure(
            parsing.error,
            parsing.error_code,
            parsing.clarification_needed,
            hint=" ".join(t(f"clarify_{fact}", locale) for fact in parsing.clarification_needed),
        )
    parsed = parsing.parsed

    # The model works from the favorite's side.
    pick_is_favorite = parsed.spread < 0
    if pick_is_favorite:
        favorite, underdog = parsed.team_a, parsed.team_b
        venue = parsed.venue
    else:
        favorite, underdog = parsed.team_b, parsed.team_a
        venue = _FLIPPED_VENUE[parsed.venue]

    outcome = _estimate_spread(
        {
            "team_favorite": favorite.full_name,
            "team_underdog": underdog.full_name,
            "spread": -abs(parsed.spread),
        },
        stats,
        sport=parsed.sport,
        venue=venue,
        locale=locale,
        default_sport=default_sport,
    )
    if isinstance(outcome, ToolError):
        return outcome
    estimate, probability = outcome

    key = "favorite_cover_probability" if pick_is_favorite else "underdog_cover_probability"
    # Kelly gets the unrounded value; only the response is rounded.
    pick_pct = getattr(probability, key) * 100.0
    american_odds = parsed.american_odds if parsed.american_odds is not None else default_odds

    result: Dict[str, Any] = {
        "success": True,
        "parsed": parsed.to_dict(),
        "estimate": estimate,
        "pick": {
            "team": parsed.team_a.full_name,
            "spread": parsed.spread,
            "venue": parsed.venue,
            "cover_probability": estimate[key],
            "interpretation": interpret_spread(
                round(pick_pct, 1), parsed.team_a.full_name, parsed.spread, locale
            ),
        },
        "american_odds": american_odds,
        "odds_assumed": parsed.american_odds is None,
    }

    if bankroll is not None:
        kelly = calculate_kelly_stake(bankroll, pick_pct, american_odds, kelly_fraction)
        if kelly.has_value:
            recommendation = t(
                "kelly_stake_text", locale,
                stake=kelly.recommended_stake, percentage=kelly.stake_percentage,
            )
        else:
            recommendation = t("kelly_no_value", locale)
        result["kelly"] = {
            **asdict(kelly),
            "bankroll": bankroll,
            "kelly_multiplier": kelly_fraction,
            "recommendation": recommendation,
        }
    return result


def estimate_hockey_total(
    home: HockeyTeamStats,
    away: HockeyTeamStats,
    line: float,
    bet_type: str = "over",
    locale: str = DEFAULT_LOCALE,
) -> EstimateResult:
    """Over/under probability for an NHL total, with interpretation text."""
    if bet_type not in ("over", "under"):
        return invalid_input(f"bet_type must be 'over' or 'under', got {bet_type!r}.")
    if not line > 0:
        return invalid_input(f"line must be positive, got {line!r}.")

    absent = [f"home.{name}" for name in missing_fields(home)]
    absent += [f"away.{name}" for name in missing_fields(away)]
    if absent:
        teams = {"home": home.team, "away": away.team}
        logger.info("Insufficient hockey stats for %s at %s: %s", teams["away"], teams["home"], absent)
        return insufficient_data(t("error_insufficient_data", locale), teams, absent)

    try:
        total = hockey_total_probability(home, away, line, bet_type)
    except ValueError as exc:
        return invalid_input(str(exc))

    return {
        "success": True,
        "teams": {"home": home.team, "away": away.team},
        **asdict(total),
        "probability": total.probability,
        "interpretation": interpret_total(
            total.probability, bet_type, line, total.projected_total, locale
        ),
    }
