"""
Pydantic request/response schemas for the Edge Estimator API.

Using explicit schemas instead of raw dicts prevents mass-assignment
vulnerabilities on ORM models and generates accurate OpenAPI docs.

The probability endpoint is the exception: it accepts an arbitrary JSON
body because the argument normalizer owns the many accepted key names.
"""

from __future__ import annotations

from typing import List, Literal, Optional
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from backend.core.team_stats import HockeyTeamStats


def _check_american_odds(v: float) -> float:
    if -100 < v < 100:
        raise ValueError(
            f"{v} is not valid American odds. Must be >= +100 or <= -100."
        )
    return v


# ---------------------------------------------------------------------------
# Odds tools
# ---------------------------------------------------------------------------

class OddsConvertRequest(BaseModel):
    """Payload for POST /api/odds/convert."""

    odds: float = Field(..., description="American or decimal odds, or the fractional numerator")
    from_format: Literal["american", "decimal", "fractional"] = Field(...)
    denominator: Optional[float] = Field(None, gt=0, description="Required for fractional odds")
    to_format: Literal["american", "decimal", "fractional", "all"] = Field("all")

    model_config = {
        "json_schema_extra": {
            "example": {"odds": -110, "from_format": "american", "to_format": "all"}
        }
    }


class VigRequest(BaseModel):
    """Payload for POST /api/odds/vig (both sides of a two-way market)."""

    odds1: float
    odds2: float

    @field_validator("odds1", "odds2")
    @classmethod
    def validate_odds(cls, v: float) -> float:
        return _check_american_odds(v)

    model_config = {"json_schema_extra": {"example": {"odds1": -110, "odds2": -110}}}


class ImpliedProbabilityRequest(BaseModel):
    american_odds: float

    @field_validator("american_odds")
    @classmethod
    def validate_odds(cls, v: float) -> float:
        return _check_american_odds(v)


# ---------------------------------------------------------------------------
# Staking
# ---------------------------------------------------------------------------

class KellyRequest(BaseModel):
    """
    Payload for POST /api/kelly.

    ``fraction`` is restricted to quarter, half and full Kelly here; the
    calculator itself accepts any positive multiplier.
    """

    bankroll: float = Field(..., gt=0)
    probability: float = Field(..., ge=0, le=100, description="Estimated win probability, percent")
    american_odds: float = Field(...)
    fraction: Literal[0.25, 0.5, 1.0] = Field(0.5, description="Kelly multiplier")

    @field_validator("american_odds")
    @classmethod
    def validate_odds(cls, v: float) -> float:
        return _check_american_odds(v)

    model_config = {
        "json_schema_extra": {
            "example": {"bankroll": 1000, "probability": 55, "american_odds": -110, "fraction": 1}
        }
    }


class UnitRequest(BaseModel):
    """Payload for POST /api/units."""

    bankroll: float = Field(..., gt=0)
    unit_size_pct: float = Field(1.0, ge=0, le=5, description="One unit as % of bankroll")
    units: float = Field(1.0, gt=0)


# ---------------------------------------------------------------------------
# Estimation
# ---------------------------------------------------------------------------

class HockeyTeamInput(BaseModel):
    team: str = Field(..., min_length=1, max_length=80)
    xgf60: float = Field(..., description="Expected goals for per 60")
    xga60: float = Field(..., description="Expected goals against per 60")
    gsax60: float = Field(..., description="Goalie goals saved above expected per 60")
    hdcf60: float = Field(..., description="High-danger chances for per 60")
    pp: float = Field(..., ge=0, le=100, description="Power play %")
    pk: float = Field(..., ge=0, le=100, description="Penalty kill %")
    times_shorthanded_per_game: float = Field(..., ge=0)

    def to_stats(self) -> HockeyTeamStats:
        return HockeyTeamStats(**self.model_dump())


class HockeyTotalRequest(BaseModel):
    """Payload for POST /api/probability/hockey."""

    home: HockeyTeamInput
    away: HockeyTeamInput
    line: float = Field(..., gt=0, description="Posted game total, e.g. 6.5")
    bet_type: Literal["over", "under"] = Field("over")


class MatchupTextRequest(BaseModel):
    """Payload for POST /api/matchup/parse and /api/matchup/analyze."""

    text: str = Field(..., min_length=3, max_length=500)
    bankroll: Optional[float] = Field(None, gt=0, description="Set to get a Kelly stake")
    kelly_fraction: Literal[0.25, 0.5, 1.0] = Field(0.5)

    model_config = {
        "json_schema_extra": {
            "example": {
                "text": "Lakers -5.5 at Celtics, I'm taking the Celtics",
                "bankroll": 1000,
                "kelly_fraction": 0.5,
            }
        }
    }


# ---------------------------------------------------------------------------
# Bet logging
# ---------------------------------------------------------------------------

class BetLogCreate(BaseModel):
    """
    Payload for POST /api/bets/log.

    Result and payout are written separately via PUT /api/bets/{bet_id}/outcome.
    """

    sport: Literal["nfl", "nba", "ncaaf", "ncaab", "nhl"]
    team_a: str = Field(..., min_length=2, max_length=80, description="Team bet on")
    team_b: str = Field(..., min_length=2, max_length=80)
    venue: Literal["home", "away", "neutral"] = Field("neutral")
    spread: Optional[float] = Field(None, ge=-50, le=50)

    bankroll: float = Field(..., gt=0)
    american_odds: int = Field(...)
    actual_wager: float = Field(..., gt=0)
    kelly_multiplier: Optional[Literal[0.25, 0.5, 1.0]] = None
    recommended_stake: Optional[float] = Field(None, ge=0)
    stake_percentage: Optional[float] = Field(None, ge=0, le=100)

    calculated_probability: Optional[float] = Field(None, ge=0, le=100)
    expected_margin: Optional[float] = None
    implied_probability: Optional[float] = Field(None, ge=0, le=100)
    edge: Optional[float] = None

    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("american_odds")
    @classmethod
    def validate_odds(cls, v: int) -> int:
        return int(_check_american_odds(v))

    model_config = {
        "json_schema_extra": {
            "example": {
                "sport": "nba",
                "team_a": "Boston Celtics",
                "team_b": "Los Angeles Lakers",
                "venue": "home",
                "spread": 5.5,
                "bankroll": 1000.0,
                "american_odds": -110,
                "actual_wager": 25.0,
                "kelly_multiplier": 0.5,
                "calculated_probability": 56.2,
            }
        }
    }


class BetLogResponse(BaseModel):
    """Response schema for a logged or settled bet."""

    id: int
    sport: str
    team_a: str
    team_b: str
    venue: Optional[str] = None
    spread: Optional[float] = None
    american_odds: int
    actual_wager: float
    result: str
    payout: Optional[float] = None
    calculated_probability: Optional[float] = None
    created_at: Optional[datetime] = None
    settled_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class OutcomeUpdate(BaseModel):
    """
    Payload for PUT /api/bets/{bet_id}/outcome.

    ``payout`` overrides the computed win payout (stake included).
    """

    result: Literal["win", "loss", "push", "cancelled"]
    payout: Optional[float] = Field(None, ge=0)


class BetListResponse(BaseModel):
    bets: List[BetLogResponse]
    count: int


class TransactionCreate(BaseModel):
    """Payload for POST /api/bankroll/transactions."""

    kind: Literal["deposit", "withdrawal"]
    amount: float = Field(..., gt=0)


class TransactionResponse(BaseModel):
    id: int
    kind: str
    amount: float
    bet_id: Optional[int] = None
    created_at: Optional[datetime] = None
    balance: float
