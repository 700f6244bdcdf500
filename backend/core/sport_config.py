"""Sport-level configuration: all sport-specific constants in one place.

This module is the **registry** for every constant that differs between
sports.  Nowhere else in the codebase should margin standard deviations,
home-advantage figures, or sport identifiers be hard-coded.

Architecture
------------
:class:`SportConfig` is a frozen dataclass carrying all per-sport constants.
Named constructors (:meth:`SportConfig.nfl`, :meth:`SportConfig.nba`, ...)
return pre-populated instances and :meth:`SportConfig.for_sport` looks one
up by identifier.  To add a sport:

1. Add a ``SPORT_ID_*`` constant and a ``@classmethod`` constructor here.
2. Register it in ``_CONSTRUCTORS``.
3. Give it a margin formula in :mod:`backend.core.probability` (or reuse the
   football/basketball one via ``category``).

Typical usage::

    from backend.core.sport_config import SportConfig

    cfg = SportConfig.for_sport("nfl")
    sigma = cfg.margin_sigma            # 13.5

    # Override a single constant for a calibration experiment:
    from dataclasses import replace
    custom_cfg = replace(cfg, home_advantage_pts=2.0)

Open calibration question
-------------------------
Two historical call sites used different NBA margin standard deviations
(11.5 and 12.0).  The registry carries **12.0** as the canonical value; it
is the one the probability tools have always used.  Whoever owns statistical
calibration should re-fit it; do not add a second constant.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Final, Literal

# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------

#: Sport identifier strings used in API routes, parser output and DB records.
SPORT_ID_NFL: Final[str] = "nfl"
SPORT_ID_NBA: Final[str] = "nba"
SPORT_ID_NCAAF: Final[str] = "ncaaf"
SPORT_ID_NCAAB: Final[str] = "ncaab"
SPORT_ID_NHL: Final[str] = "nhl"

CATEGORY_FOOTBALL: Final[str] = "football"
CATEGORY_BASKETBALL: Final[str] = "basketball"
CATEGORY_HOCKEY: Final[str] = "hockey"

#: Sport chosen when a team reference is equally good in several leagues
#: and the caller gave no hint (e.g. bare "hawks": Atlanta Hawks vs. the
#: Seattle Seahawks' nickname).  Basketball has historically been the
#: dominant use of the bare-nickname queries; override via
#: ``AMBIGUOUS_SPORT_DEFAULT`` in the environment (see ``backend.config``).
AMBIGUOUS_SPORT_DEFAULT: Final[str] = SPORT_ID_NBA

# ---------------------------------------------------------------------------
# Spread validation (favourite's perspective)
# ---------------------------------------------------------------------------

#: Largest favourite spread the model accepts.
MIN_SPREAD: Final[float] = -50.0

#: Smallest favourite spread the model accepts (a pick'em is not a spread).
MAX_SPREAD: Final[float] = -0.5


@dataclass(frozen=True)
class SportConfig:
    """Immutable configuration bundle for a single sport.

    Attributes:
        sport_id: Short identifier (``"nfl"``, ``"nba"``, ...).
        sport_name: Human-readable name for logging and display.
        category: ``"football"``, ``"basketball"`` or ``"hockey"``; selects
            the margin formula and the team table.
        team_table: Identifier of the team table used for name resolution.
            College sports reuse the professional table of their category.
        margin_sigma: Standard deviation of the final scoring margin, in
            points.  Fixed per sport, never re-fitted at runtime.  Zero for
            sports using the Poisson variance model.
        home_advantage_pts: Expected margin boost for the home side.
            Neutral-site games use :meth:`neutral_site`.
        variance_model: ``"normal"`` (fixed ``margin_sigma``) or
            ``"poisson"`` (σ = √projected total, hockey).
    """

    sport_id: str
    sport_name: str
    category: str
    team_table: str
    margin_sigma: float
    home_advantage_pts: float
    variance_model: Literal["normal", "poisson"] = "normal"

    # ------------------------------------------------------------------ #
    #  Named constructors                                                  #
    # ------------------------------------------------------------------ #

    @classmethod
    def nfl(cls) -> SportConfig:
        """NFL: 13.5-point margin SD, 2.5-point home field."""
        return cls(
            sport_id=SPORT_ID_NFL,
            sport_name="NFL",
            category=CATEGORY_FOOTBALL,
            team_table=SPORT_ID_NFL,
            margin_sigma=13.5,
            home_advantage_pts=2.5,
        )

    @classmethod
    def nba(cls) -> SportConfig:
        """NBA: 12.0-point margin SD (canonical, see module notes), 3.0 home court."""
        return cls(
            sport_id=SPORT_ID_NBA,
            sport_name="NBA",
            category=CATEGORY_BASKETBALL,
            team_table=SPORT_ID_NBA,
            margin_sigma=12.0,
            home_advantage_pts=3.0,
        )

    @classmethod
    def ncaa_football(cls) -> SportConfig:
        """College football: wider margins (16.0 SD) and 3.0-point home field."""
        return cls(
            sport_id=SPORT_ID_NCAAF,
            sport_name="College Football",
            category=CATEGORY_FOOTBALL,
            team_table=SPORT_ID_NFL,
            margin_sigma=16.0,
            home_advantage_pts=3.0,
        )

    @classmethod
    def ncaa_basketball(cls) -> SportConfig:
        """College basketball: 10.5-point margin SD, 3.5-point home court."""
        return cls(
            sport_id=SPORT_ID_NCAAB,
            sport_name="College Basketball",
            category=CATEGORY_BASKETBALL,
            team_table=SPORT_ID_NBA,
            margin_sigma=10.5,
            home_advantage_pts=3.5,
        )

    @classmethod
    def nhl(cls) -> SportConfig:
        """NHL totals model.  Variance is Poisson-like, so no fixed sigma."""
        return cls(
            sport_id=SPORT_ID_NHL,
            sport_name="NHL",
            category=CATEGORY_HOCKEY,
            team_table=SPORT_ID_NHL,
            margin_sigma=0.0,
            home_advantage_pts=0.0,
            variance_model="poisson",
        )

    @classmethod
    def for_sport(cls, sport_id: str) -> SportConfig:
        """Look up the configuration for ``sport_id`` (case-insensitive).

        Raises:
            ValueError: If the sport is not registered.
        """
        key = (sport_id or "").strip().lower()
        constructor = _CONSTRUCTORS.get(key)
        if constructor is None:
            raise ValueError(
                f"Unknown sport {sport_id!r}; expected one of {sorted(_CONSTRUCTORS)}."
            )
        return constructor()

    # ------------------------------------------------------------------ #
    #  Convenience accessors                                               #
    # ------------------------------------------------------------------ #

    def is_basketball(self) -> bool:
        """Return True if this config represents a basketball sport."""
        return self.category == CATEGORY_BASKETBALL

    def is_football(self) -> bool:
        """Return True if this config represents a football sport."""
        return self.category == CATEGORY_FOOTBALL

    def neutral_site(self) -> SportConfig:
        """Return a copy of this config with home advantage zeroed out.

        Examples::

            cfg = SportConfig.nfl().neutral_site()
            assert cfg.home_advantage_pts == 0.0
        """
        return replace(self, home_advantage_pts=0.0)

    def __repr__(self) -> str:
        return (
            f"SportConfig(sport_id={self.sport_id!r}, "
            f"sigma={self.margin_sigma}, "
            f"home_adv={self.home_advantage_pts})"
        )


_CONSTRUCTORS = {
    SPORT_ID_NFL: SportConfig.nfl,
    SPORT_ID_NBA: SportConfig.nba,
    SPORT_ID_NCAAF: SportConfig.ncaa_football,
    SPORT_ID_NCAAB: SportConfig.ncaa_basketball,
    SPORT_ID_NHL: SportConfig.nhl,
}

#: Every registered sport identifier.
ALL_SPORT_IDS: Final[tuple[str, ...]] = tuple(_CONSTRUCTORS)


def sport_category(sport_id: str) -> str:
    """Return the category (``football``/``basketball``/``hockey``) of a sport."""
    return SportConfig.for_sport(sport_id).category
