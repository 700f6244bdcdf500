"""Fundamental odds mathematics: the single source of truth.

Every function here is **pure**: no I/O, no logging, no side effects.
Import from this module; never reimplement locally in services or routes.

The three pillars exposed are:

1. **Odds conversion**: American ↔ decimal ↔ fractional.
2. **Market probability**: implied probability, vig, and no-vig fair split.
3. **Normal CDF**: the deterministic approximation every probability in
   the estimation pipeline is built on.

Design decisions
----------------
* Implied probabilities are returned as **percentages** in ``(0, 100)``.
  Callers in the staking and probability layers work in percent, and
  converting once here avoids a mix of 0.55 and 55.0 leaking into results.
* Fractional odds are reduced at a fixed precision of 1/1000 so that
  decimal odds such as 1.909 render as ``909/1000`` rather than an
  irrational-looking ratio from float noise.
* :func:`norm_cdf` uses the Abramowitz & Stegun 7.1.26 rational
  approximation of ``erf`` (max CDF error ≈ 7.5e-8).  It is implemented by
  hand rather than via SciPy so that results are bit-identical across
  platforms and library versions; ``tests/test_odds_math.py`` checks it
  against :func:`scipy.stats.norm.cdf`.

Run tests with::

    pytest tests/test_odds_math.py -v
"""

from __future__ import annotations

import math
from typing import Final

# ---------------------------------------------------------------------------
# Module-level constants
# ---------------------------------------------------------------------------

#: American-odds magnitude floor.  Values with ``|odds| < 100`` are not
#: representable American odds and indicate an input error.
MIN_ODDS_MAGNITUDE: Final[int] = 100

#: Fixed denominator used before GCD reduction of fractional odds.
_FRACTIONAL_PRECISION: Final[int] = 1000

# Abramowitz & Stegun 7.1.26 coefficients for erf(x).
_AS_A1: Final[float] = 0.254829592
_AS_A2: Final[float] = -0.284496736
_AS_A3: Final[float] = 1.421413741
_AS_A4: Final[float] = -1.453152027
_AS_A5: Final[float] = 1.061405429
_AS_P: Final[float] = 0.3275911


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_american_odds(american: int | float) -> None:
    """Raise :class:`ValueError` unless ``american`` is valid American odds.

    Args:
        american: Candidate American odds.

    Raises:
        ValueError: If the value is not finite or ``|american| < 100``.
    """
    if isinstance(american, bool) or not math.isfinite(american):
        raise ValueError(f"Invalid American odds {american!r}: must be a finite number.")
    if abs(american) < MIN_ODDS_MAGNITUDE:
        raise ValueError(
            f"Invalid American odds {american!r}: magnitude must be ≥ 100 "
            "(e.g. -110 or +150)."
        )


# ---------------------------------------------------------------------------
# Odds conversion
# ---------------------------------------------------------------------------


def american_to_decimal(american: int | float) -> float:
    """Convert American odds to decimal (European) format.

    Decimal odds represent the total payout per unit staked, **including**
    the return of the stake itself.  Examples::

        american_to_decimal(-110) → 1.9091   (risk 110 to win 100)
        american_to_decimal(+150) → 2.5000   (risk 100 to win 150)

    Args:
        american: American odds.  Negative = favourite (risk more than you
            win), positive = underdog (win more than you risk).

    Returns:
        Decimal odds, strictly greater than 1.0.

    Raises:
        ValueError: If ``|american| < 100``.
    """
    validate_american_odds(american)
    if american > 0:
        return american / 100.0 + 1.0
    return 100.0 / abs(american) + 1.0


def decimal_to_american(decimal_odds: float) -> int:
    """Convert decimal odds to the nearest American integer.

    Inverse of :func:`american_to_decimal` up to rounding (±1).

    Args:
        decimal_odds: Decimal odds, strictly greater than 1.0.

    Returns:
        American odds.  ``decimal_odds >= 2.0`` maps to positive (underdog)
        odds, anything below to negative (favourite) odds.

    Raises:
        ValueError: If ``decimal_odds <= 1.0``.

    Examples::

        decimal_to_american(2.50)  → 150
        decimal_to_american(1.909) → -110
    """
    if not math.isfinite(decimal_odds) or decimal_odds <= 1.0:
        raise ValueError(
            f"Invalid decimal odds {decimal_odds!r}: must be greater than 1.0."
        )
    if decimal_odds >= 2.0:
        return round((decimal_odds - 1.0) * 100)
    return round(-100.0 / (decimal_odds - 1.0))


def fractional_to_decimal(numerator: float, denominator: float) -> float:
    """Convert fractional odds ``numerator/denominator`` to decimal odds.

    ``5/2`` → 3.5, ``10/11`` → 1.909.

    Raises:
        ValueError: If ``denominator <= 0`` or ``numerator < 0``.
    """
    if denominator <= 0:
        raise ValueError(f"Fractional denominator must be positive, got {denominator!r}.")
    if numerator < 0:
        raise ValueError(f"Fractional numerator cannot be negative, got {numerator!r}.")
    return numerator / denominator + 1.0


def decimal_to_fractional(decimal_odds: float) -> tuple[int, int]:
    """Convert decimal odds to a reduced ``(numerator, denominator)`` pair.

    The profit portion ``decimal_odds - 1`` is scaled to thousandths and
    reduced by the greatest common divisor::

        decimal_to_fractional(2.5)   → (3, 2)
        decimal_to_fractional(1.909) → (909, 1000)

    Raises:
        ValueError: If ``decimal_odds <= 1.0``.
    """
    if not math.isfinite(decimal_odds) or decimal_odds <= 1.0:
        raise ValueError(
            f"Invalid decimal odds {decimal_odds!r}: must be greater than 1.0."
        )
    numerator = round((decimal_odds - 1.0) * _FRACTIONAL_PRECISION)
    denominator = _FRACTIONAL_PRECISION
    divisor = math.gcd(numerator, denominator) or 1
    return numerator // divisor, denominator // divisor


# ---------------------------------------------------------------------------
# Market probability
# ---------------------------------------------------------------------------


def implied_probability(american: int | float) -> float:
    """Raw implied probability (vig-inclusive) as a percentage.

    Args:
        american: American odds.

    Returns:
        Implied probability in ``(0, 100)``.

    Raises:
        ValueError: If ``|american| < 100``.

    Examples::

        implied_probability(-110) → 52.38
        implied_probability(+150) → 40.00
    """
    validate_american_odds(american)
    if american > 0:
        return 100.0 / (american + 100.0) * 100.0
    magnitude = abs(american)
    return magnitude / (magnitude + 100.0) * 100.0


def calculate_vig(odds_side1: int | float, odds_side2: int | float) -> float:
    """Bookmaker margin of a two-way market, in percentage points.

    The sum of both sides' implied probabilities minus 100.  A standard
    -110/-110 market carries ≈ 4.76 points of vig.

    Raises:
        ValueError: If either side is not valid American odds.
    """
    return implied_probability(odds_side1) + implied_probability(odds_side2) - 100.0


def fair_probabilities(
    odds_side1: int | float, odds_side2: int | float
) -> tuple[float, float]:
    """No-vig probabilities for a two-way market by proportional normalisation.

    Returns:
        ``(fair_side1, fair_side2)`` as percentages summing to 100.
    """
    prob1 = implied_probability(odds_side1)
    prob2 = implied_probability(odds_side2)
    total = prob1 + prob2
    return prob1 / total * 100.0, prob2 / total * 100.0


# ---------------------------------------------------------------------------
# Normal distribution
# ---------------------------------------------------------------------------


def norm_cdf(x: float) -> float:
    """Standard normal cumulative distribution function.

    Uses the Abramowitz & Stegun 7.1.26 approximation of ``erf`` with
    ``Φ(x) = ½(1 + erf(x/√2))``.  The approximation is odd in its argument,
    so ``norm_cdf(x) + norm_cdf(-x) == 1`` exactly.

    Args:
        x: Standard score.

    Returns:
        ``P(Z ≤ x)`` in ``[0, 1]``.
    """
    sign = -1.0 if x < 0 else 1.0
    x = abs(x) / math.sqrt(2.0)

    t = 1.0 / (1.0 + _AS_P * x)
    poly = ((((_AS_A5 * t + _AS_A4) * t + _AS_A3) * t + _AS_A2) * t + _AS_A1) * t
    y = 1.0 - poly * math.exp(-x * x)

    return 0.5 * (1.0 + sign * y)
