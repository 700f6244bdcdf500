"""
Odds conversion, vig and implied-probability tools.

Thin presentation layer over ``backend.core.odds_math``: rounding for
display plus the plain-language descriptions.  Invalid input raises
``ValueError``; the HTTP layer maps it to a 422.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from backend.core.odds_math import (
    american_to_decimal,
    calculate_vig,
    decimal_to_american,
    decimal_to_fractional,
    fair_probabilities,
    fractional_to_decimal,
    implied_probability,
)
from backend.services.messages import DEFAULT_LOCALE, t

ODDS_FORMATS = ("american", "decimal", "fractional")

# (upper bound in vig points, catalogue key), checked in order
VIG_BANDS = (
    (2.0, "vig_very_low"),
    (4.0, "vig_low"),
    (5.0, "vig_standard"),
    (7.0, "vig_above_average"),
)


def convert_odds(
    odds: float,
    from_format: str,
    denominator: Optional[float] = None,
    to_format: str = "all",
) -> Dict[str, Any]:
    """
    Convert ``odds`` into every format.

    For fractional input ``odds`` is the numerator and ``denominator`` is
    required.  When ``to_format`` names a single format, the result also
    carries that value under ``converted``.
    """
    if from_format == "american":
        decimal_odds = american_to_decimal(odds)
    elif from_format == "decimal":
        decimal_odds = float(odds)
    elif from_format == "fractional":
        if not denominator:
            raise ValueError("Denominator is required for fractional odds")
        decimal_odds = fractional_to_decimal(odds, denominator)
    else:
        raise ValueError(f"Unknown odds format {from_format!r}; expected one of {ODDS_FORMATS}")

    if not decimal_odds > 1.0:
        raise ValueError("Invalid odds: decimal odds must be greater than 1")

    american = decimal_to_american(decimal_odds)
    numerator, denom = decimal_to_fractional(decimal_odds)
    conversions = {
        "american": american,
        "decimal": round(decimal_odds, 3),
        "fractional": f"{numerator}/{denom}",
        "implied_probability": round(implied_probability(american), 2),
    }

    result: Dict[str, Any] = {
        "input": {"odds": odds, "format": from_format, "denominator": denominator},
        "conversions": conversions,
    }
    if to_format != "all":
        if to_format not in ODDS_FORMATS:
            raise ValueError(f"Unknown target format {to_format!r}")
        result["converted"] = conversions[to_format]
    return result


def vig_description(vig: float, locale: str = DEFAULT_LOCALE) -> str:
    for upper, key in VIG_BANDS:
        if vig <= upper:
            return t(key, locale)
    return t("vig_high", locale)


def describe_vig(odds1: float, odds2: float, locale: str = DEFAULT_LOCALE) -> Dict[str, Any]:
    """Vig of a two-way market with implied and no-vig fair probabilities."""
    vig = calculate_vig(odds1, odds2)
    prob1 = implied_probability(odds1)
    prob2 = implied_probability(odds2)
    fair1, fair2 = fair_probabilities(odds1, odds2)
    return {
        "odds": {"side1": odds1, "side2": odds2},
        "vig": {"percentage": round(vig, 2), "description": vig_description(vig, locale)},
        "implied_probabilities": {
            "side1": round(prob1, 2),
            "side2": round(prob2, 2),
            "total": round(prob1 + prob2, 2),
        },
        "fair_probabilities": {"side1": round(fair1, 2), "side2": round(fair2, 2)},
    }


def describe_implied_probability(american_odds: float, locale: str = DEFAULT_LOCALE) -> Dict[str, Any]:
    probability = implied_probability(american_odds)
    key = "implied_underdog" if american_odds > 0 else "implied_favorite"
    return {
        "american_odds": american_odds,
        "implied_probability": round(probability, 2),
        "decimal_odds": round(american_to_decimal(american_odds), 3),
        "break_even_win_rate": round(probability, 2),
        "interpretation": t(key, locale, odds=f"{abs(american_odds):g}", probability=probability),
    }
