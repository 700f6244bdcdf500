"""Kelly criterion sizing: the single source of truth for bet sizing math.

All functions here are **pure**: no I/O, no database, no logging.
Import from this module; never reimplement Kelly locally in services.

Two sizing methods are exposed:

1. :func:`calculate_kelly_stake`: Kelly criterion stake for a win/loss bet
   given a bankroll, an estimated win probability (percent) and American
   odds, scaled by a caller-supplied Kelly multiplier.
2. :func:`calculate_unit_stake`: flat unit betting, the simpler
   alternative where one unit is a fixed percentage of bankroll.

Design decisions
----------------
* **Never bet negative.**  The raw Kelly fraction is clamped at zero.  A
  stake is only produced when the estimated probability beats the
  bookmaker's implied probability *and* the Kelly fraction is positive, so
  a caller passing ``fraction > 0`` cannot force a stake on a non-positive
  edge.
* **The multiplier is not an enum here.**  Quarter, half and full Kelly
  (0.25 / 0.5 / 1) are the conventional choices, but validation of that
  set belongs to the request schema.  The calculator accepts any positive
  multiplier.
* **Round at the boundary only.**  Internal arithmetic uses full float
  precision; :class:`KellyResult` fields are rounded once when the result
  is built (2 dp for money and percentages, 4 dp for raw fractions).

Run tests with::

    pytest tests/test_kelly.py -v
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from backend.core.odds_math import american_to_decimal, implied_probability

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

#: Conventional Kelly multipliers (quarter, half, full).  Informational;
#: enforced by the API schema, not by :func:`calculate_kelly_stake`.
STANDARD_KELLY_MULTIPLIERS: Final[tuple[float, ...]] = (0.25, 0.5, 1.0)

#: Upper bound on a single unit, as a percentage of bankroll.
MAX_UNIT_SIZE_PCT: Final[float] = 5.0


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KellyResult:
    """Outcome of a Kelly staking calculation.

    Attributes:
        recommended_stake: Dollars to risk; 0.0 whenever ``has_value`` is False.
        stake_percentage: Applied Kelly fraction as a percentage of bankroll.
        kelly_fraction: Full (unscaled) Kelly fraction, never negative.
        adjusted_kelly_fraction: ``kelly_fraction × fraction``.
        edge: Estimated probability minus implied probability, in points.
        implied_probability: Bookmaker's vig-inclusive probability (percent).
        has_value: True iff ``edge > 0`` and ``kelly_fraction > 0``.
        decimal_odds: Decimal odds for the American price.
        potential_win: Profit if the recommended stake wins.
        potential_payout: Stake plus profit if the recommended stake wins.
    """

    recommended_stake: float
    stake_percentage: float
    kelly_fraction: float
    adjusted_kelly_fraction: float
    edge: float
    implied_probability: float
    has_value: bool
    decimal_odds: float
    potential_win: float
    potential_payout: float


@dataclass(frozen=True)
class UnitStake:
    """Outcome of a flat unit-betting calculation."""

    unit_value: float
    recommended_stake: float
    stake_percentage: float
    remaining_bankroll: float


# ---------------------------------------------------------------------------
# Kelly criterion
# ---------------------------------------------------------------------------


def kelly_fraction(win_prob: float, decimal_odds: float) -> float:
    """Full Kelly fraction for a simple win/loss outcome.

    Solves ``max_f E[log(1 + f·X)]`` for a bet paying ``b = decimal_odds − 1``
    per unit with probability ``p``::

        f*  =  (p · b − q) / b        with  q = 1 − p

    and clamps the result at zero.

    Args:
        win_prob: Estimated probability of winning, in ``[0, 1]``.
        decimal_odds: Decimal odds, strictly greater than 1.0.

    Returns:
        Kelly fraction in ``[0, 1]``.

    Raises:
        ValueError: If ``win_prob`` is outside ``[0, 1]`` or
            ``decimal_odds <= 1.0``.

    Examples::

        kelly_fraction(0.55, 1.909)  →  0.055
        kelly_fraction(0.45, 1.909)  →  0.0    (negative EV → 0)
    """
    if not (0.0 <= win_prob <= 1.0):
        raise ValueError(f"win_prob must be in [0, 1], got {win_prob!r}.")
    if decimal_odds <= 1.0:
        raise ValueError(f"decimal_odds must be > 1.0, got {decimal_odds!r}.")

    b = decimal_odds - 1.0
    q = 1.0 - win_prob
    return max(0.0, (b * win_prob - q) / b)


def calculate_kelly_stake(
    bankroll: float,
    probability: float,
    american_odds: int | float,
    fraction: float = 1.0,
) -> KellyResult:
    """Recommended stake for a bet using the Kelly criterion.

    Args:
        bankroll: Available bankroll in dollars, > 0.
        probability: Estimated win probability as a percentage, ``[0, 100]``.
        american_odds: Price offered, as American odds.
        fraction: Kelly multiplier applied to the full fraction, > 0.
            Conventionally 0.25, 0.5 or 1.

    Returns:
        A :class:`KellyResult`.  ``kelly_fraction`` is never negative and
        ``recommended_stake`` is 0.0 whenever ``edge <= 0``.

    Raises:
        ValueError: On a non-positive bankroll or fraction, a probability
            outside ``[0, 100]``, or invalid American odds.

    Examples::

        r = calculate_kelly_stake(1000, 55, -110, 1.0)
        r.has_value          → True
        r.recommended_stake  → 55.0
    """
    if bankroll <= 0:
        raise ValueError(f"bankroll must be positive, got {bankroll!r}.")
    if not (0.0 <= probability <= 100.0):
        raise ValueError(f"probability must be in [0, 100], got {probability!r}.")
    if fraction <= 0:
        raise ValueError(f"fraction must be positive, got {fraction!r}.")

    decimal_odds = american_to_decimal(american_odds)
    full_kelly = kelly_fraction(probability / 100.0, decimal_odds)

    implied = implied_probability(american_odds)
    edge = probability - implied
    has_value = edge > 0 and full_kelly > 0

    adjusted = full_kelly * fraction
    stake = bankroll * adjusted if has_value else 0.0
    potential_win = stake * (decimal_odds - 1.0)

    return KellyResult(
        recommended_stake=round(stake, 2),
        stake_percentage=round(adjusted * 100.0 if has_value else 0.0, 2),
        kelly_fraction=round(full_kelly, 4),
        adjusted_kelly_fraction=round(adjusted, 4),
        edge=round(edge, 2),
        implied_probability=round(implied, 2),
        has_value=has_value,
        decimal_odds=round(decimal_odds, 3),
        potential_win=round(potential_win, 2),
        potential_payout=round(stake + potential_win, 2),
    )


# ---------------------------------------------------------------------------
# Unit betting
# ---------------------------------------------------------------------------


def calculate_unit_stake(
    bankroll: float, unit_size_pct: float, units: float
) -> UnitStake:
    """Flat unit-betting stake.

    ``unit_value = bankroll × unit_size_pct / 100`` and the stake is
    ``unit_value × units``.

    Raises:
        ValueError: If ``bankroll <= 0``, ``unit_size_pct`` is outside
            ``[0, 5]`` or ``units <= 0``.
    """
    if bankroll <= 0:
        raise ValueError(f"bankroll must be positive, got {bankroll!r}.")
    if not (0.0 <= unit_size_pct <= MAX_UNIT_SIZE_PCT):
        raise ValueError(
            f"unit_size_pct must be in [0, {MAX_UNIT_SIZE_PCT}], got {unit_size_pct!r}."
        )
    if units <= 0:
        raise ValueError(f"units must be positive, got {units!r}.")

    unit_value = bankroll * unit_size_pct / 100.0
    stake = unit_value * units
    return UnitStake(
        unit_value=round(unit_value, 2),
        recommended_stake=round(stake, 2),
        stake_percentage=round(stake / bankroll * 100.0, 2),
        remaining_bankroll=round(bankroll - stake, 2),
    )
