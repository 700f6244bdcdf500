"""
Argument normalization for the probability and matchup tools.

Callers (HTTP clients, agent tool calls) send the same facts under many key
names and in several envelopes: a plain dict, a JSON string, or a dict
nested under ``arguments`` / ``params.arguments``.  Each canonical field is
described by an ordered alias tuple below; :func:`pick_first` takes the
first alias that yields a usable value.  Adding an alias is a one-line
change to the relevant tuple.

No semantic validation happens here (spread sign and range are checked by
the estimator).
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from backend.core.sport_config import (
    SPORT_ID_NBA,
    SPORT_ID_NCAAB,
    SPORT_ID_NCAAF,
    SPORT_ID_NFL,
    SPORT_ID_NHL,
)

logger = logging.getLogger(__name__)

FAVORITE_ALIASES = (
    "team_favorite", "favorite_team", "favorite", "fav",
    "team1", "team_1", "teamA", "team_a",
    "home_team", "home", "homeTeam", "first_team", "firstTeam",
)

UNDERDOG_ALIASES = (
    "team_underdog", "underdog_team", "underdog", "dog",
    "team2", "team_2", "teamB", "team_b",
    "away_team", "away", "awayTeam", "second_team", "secondTeam",
)

SPREAD_ALIASES = ("spread", "point_spread", "pointSpread", "line", "points")

TEAM_A_ALIASES = (
    "teamA", "team_a", "team1", "team_1",
    "home_team", "home", "homeTeam", "first_team", "firstTeam",
    "team_favorite", "favorite_team", "favorite", "fav",
)

TEAM_B_ALIASES = (
    "teamB", "team_b", "team2", "team_2",
    "away_team", "away", "awayTeam", "second_team", "secondTeam",
    "team_underdog", "underdog_team", "underdog", "dog",
)

SPORT_ALIASES = ("sport", "league")

# Free-form sport names accepted from callers.
SPORT_NAMES: Dict[str, str] = {
    "nfl": SPORT_ID_NFL,
    "football": SPORT_ID_NFL,
    "nba": SPORT_ID_NBA,
    "basketball": SPORT_ID_NBA,
    "ncaaf": SPORT_ID_NCAAF,
    "cfb": SPORT_ID_NCAAF,
    "college football": SPORT_ID_NCAAF,
    "ncaab": SPORT_ID_NCAAB,
    "cbb": SPORT_ID_NCAAB,
    "college basketball": SPORT_ID_NCAAB,
    "nhl": SPORT_ID_NHL,
    "hockey": SPORT_ID_NHL,
}

_WRAPPER_KEY = "arguments"


@dataclass
class NormalizationResult:
    normalized: Dict[str, Any]
    missing_fields: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing_fields


def _parse_json_object(value: str) -> Optional[Dict[str, Any]]:
    try:
        parsed = json.loads(value)
    except (TypeError, ValueError):
        return None
    return parsed if isinstance(parsed, dict) else None


def extract_args(raw: Any) -> Dict[str, Any]:
    """
    Unwrap ``raw`` into a plain argument dict.

    JSON strings are parsed; a string that is not a JSON object yields ``{}``.
    A ``params.arguments`` or ``arguments`` wrapper is unwrapped once, and
    its value may itself be a JSON string.
    """
    args = raw
    if isinstance(args, str):
        args = _parse_json_object(args)

    if isinstance(args, Mapping):
        params = args.get("params")
        nested = params.get(_WRAPPER_KEY) if isinstance(params, Mapping) else None
        if nested is None:
            nested = args.get(_WRAPPER_KEY)
        if nested is not None:
            args = _parse_json_object(nested) if isinstance(nested, str) else nested

    if not isinstance(args, Mapping):
        if raw is not None:
            logger.debug("Ignoring non-object arguments of type %s", type(raw).__name__)
        return {}
    return dict(args)


def coerce_string(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def coerce_number(value: Any) -> Optional[float]:
    """Numbers and numeric strings; bools, NaN and infinities are absent."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def pick_first(args: Mapping[str, Any], keys: Sequence[str], kind: str = "string") -> Any:
    """
    First usable value among ``keys``, in order.

    ``kind`` is ``"string"`` (trimmed, empty is absent) or ``"number"``.
    A key whose value is unusable does not stop the scan.
    """
    coerce = coerce_number if kind == "number" else coerce_string
    for key in keys:
        if key in args:
            value = coerce(args[key])
            if value is not None:
                return value
    return None


def alias_label(canonical: str, aliases: Sequence[str]) -> str:
    return f"{canonical} (aliases: {', '.join(aliases)})"


def missing_fields_message(missing: Sequence[str]) -> str:
    """Actionable error text listing every missing field with its aliases."""
    return "Missing required fields: " + "; ".join(missing) + "."


def normalize_sport(value: Any) -> Optional[str]:
    """Map a free-form sport name to a sport id, or None if unrecognized."""
    text = coerce_string(value)
    if text is None:
        return None
    return SPORT_NAMES.get(" ".join(text.lower().split()))


def normalize_probability_args(raw: Any) -> NormalizationResult:
    """
    Canonical ``{team_favorite, team_underdog, spread, sport}`` record.

    ``sport`` is None when the caller gave no recognizable sport; it is not
    reported as missing.
    """
    args = extract_args(raw)
    favorite = pick_first(args, FAVORITE_ALIASES)
    underdog = pick_first(args, UNDERDOG_ALIASES)
    spread = pick_first(args, SPREAD_ALIASES, kind="number")

    missing = []
    if favorite is None:
        missing.append(alias_label("team_favorite", FAVORITE_ALIASES))
    if underdog is None:
        missing.append(alias_label("team_underdog", UNDERDOG_ALIASES))
    if spread is None:
        missing.append(alias_label("spread", SPREAD_ALIASES))

    normalized = {
        "team_favorite": favorite,
        "team_underdog": underdog,
        "spread": spread,
        "sport": normalize_sport(pick_first(args, SPORT_ALIASES)),
    }
    return NormalizationResult(normalized, missing)


def normalize_matchup_args(raw: Any, default_sport: str = SPORT_ID_NBA) -> NormalizationResult:
    """Canonical ``{teamA, teamB, sport}`` record; unknown sports get ``default_sport``."""
    args = extract_args(raw)
    team_a = pick_first(args, TEAM_A_ALIASES)
    team_b = pick_first(args, TEAM_B_ALIASES)
    sport = normalize_sport(pick_first(args, SPORT_ALIASES)) or default_sport

    missing = []
    if team_a is None:
        missing.append(alias_label("teamA", TEAM_A_ALIASES))
    if team_b is None:
        missing.append(alias_label("teamB", TEAM_B_ALIASES))

    return NormalizationResult({"teamA": team_a, "teamB": team_b, "sport": sport}, missing)
