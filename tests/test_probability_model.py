"""
Tests for backend.core.probability and backend.core.sport_config
Run with: pytest tests/test_probability_model.py -v
"""

import math

import pytest
from scipy.stats import norm

from backend.core.probability import (
    MAX_COVER_PCT,
    MIN_COVER_PCT,
    cover_probability,
    hockey_total_probability,
    predicted_margin,
    probability_tier,
    spread_probability,
    venue_adjustment,
)
from backend.core.sport_config import (
    ALL_SPORT_IDS,
    CATEGORY_BASKETBALL,
    CATEGORY_FOOTBALL,
    CATEGORY_HOCKEY,
    SportConfig,
    sport_category,
)
from backend.core.team_stats import (
    SPREAD_REQUIRED_FIELDS,
    BasketballTeamStats,
    FootballTeamStats,
    HockeyTeamStats,
    missing_fields,
)


ROCKETS = BasketballTeamStats("Houston Rockets", 114.3, 109.8, 0.454, 5.2, 0.9)
LAKERS = BasketballTeamStats("Los Angeles Lakers", 113.4, 112.2, 0.481, -1.2, 0.0)
COWBOYS = FootballTeamStats("Dallas Cowboys", 20.6, 27.5, 323.9, 344.4, -0.2)
GIANTS = FootballTeamStats("New York Giants", 16.1, 21.9, 309.9, 339.3, -0.8)


def _hockey(team, **overrides):
    values = dict(
        xgf60=3.0, xga60=3.0, gsax60=0.0, hdcf60=11.0,
        pp=20.0, pk=80.0, times_shorthanded_per_game=3.0,
    )
    values.update(overrides)
    return HockeyTeamStats(team, **values)


# ---------------------------------------------------------------------------
# Sport configuration
# ---------------------------------------------------------------------------

class TestSportConfig:
    """Per-sport constants"""

    @pytest.mark.parametrize("sport, sigma, home", [
        ("nfl", 13.5, 2.5),
        ("nba", 12.0, 3.0),
        ("ncaaf", 16.0, 3.0),
        ("ncaab", 10.5, 3.5),
    ])
    def test_constants(self, sport, sigma, home):
        config = SportConfig.for_sport(sport)
        assert config.margin_sigma == sigma
        assert config.home_advantage_pts == home

    def test_lookup_is_case_insensitive(self):
        assert SportConfig.for_sport(" NBA ").sport_id == "nba"

    def test_unknown_sport(self):
        with pytest.raises(ValueError):
            SportConfig.for_sport("cricket")

    def test_college_reuses_pro_team_table(self):
        assert SportConfig.for_sport("ncaab").team_table == "nba"
        assert SportConfig.for_sport("ncaaf").team_table == "nfl"

    def test_categories(self):
        assert sport_category("nba") == CATEGORY_BASKETBALL
        assert sport_category("ncaaf") == CATEGORY_FOOTBALL
        assert sport_category("nhl") == CATEGORY_HOCKEY
        assert set(ALL_SPORT_IDS) == {"nfl", "nba", "ncaaf", "ncaab", "nhl"}

    def test_neutral_site_copy(self):
        config = SportConfig.nfl().neutral_site()
        assert config.home_advantage_pts == 0.0
        assert SportConfig.nfl().home_advantage_pts == 2.5


class TestMissingFields:
    def test_absent_stat_is_reported(self):
        stats = BasketballTeamStats("Thin Data", points_per_game=100.0)
        assert missing_fields(stats, SPREAD_REQUIRED_FIELDS) == ["points_allowed"]

    def test_all_fields_checked_by_default(self):
        stats = HockeyTeamStats("Half", xgf60=3.0, xga60=2.5)
        assert "gsax60" in missing_fields(stats)
        assert "xgf60" not in missing_fields(stats)


# ---------------------------------------------------------------------------
# Margin formulas
# ---------------------------------------------------------------------------

class TestPredictedMargin:
    """Weighted stat differentials"""

    def test_basketball_margin(self):
        # 0.35*3.3 + 0.3*(-0.027) + 0.2*6.4*0.5 + 0.15*(0.0 - 0.9)
        assert predicted_margin("nba", ROCKETS, LAKERS) == pytest.approx(1.6519, abs=1e-4)

    def test_basketball_turnover_term_runs_underdog_minus_favorite(self):
        base = dict(points_per_game=110.0, points_allowed=110.0, field_goal_pct=0.46, rebound_margin=0.0)
        favorite = BasketballTeamStats("A", turnover_margin=2.0, **base)
        underdog = BasketballTeamStats("B", turnover_margin=0.0, **base)
        assert predicted_margin("nba", favorite, underdog) == pytest.approx(-0.3)

    def test_basketball_optional_defaults(self):
        favorite = BasketballTeamStats("A", 110.0, 100.0)
        underdog = BasketballTeamStats("B", 100.0, 100.0)
        assert predicted_margin("ncaab", favorite, underdog) == pytest.approx(3.5)

    def test_football_margin(self):
        # 0.4*(-1.1) + 8.9/25*0.25 + 0.6*4*0.5*0.2
        assert predicted_margin("nfl", COWBOYS, GIANTS) == pytest.approx(-0.111, abs=1e-6)

    def test_football_missing_yards_use_league_average(self):
        favorite = FootballTeamStats("A", 24.0, 20.0, offensive_yards=400.0, defensive_yards=300.0)
        underdog = FootballTeamStats("B", 20.0, 20.0)
        # all four yardage inputs fall back, so only the points term is left
        assert predicted_margin("nfl", favorite, underdog) == pytest.approx(1.6)

    def test_missing_points_raise(self):
        with pytest.raises(ValueError, match="points_allowed"):
            predicted_margin("nba", BasketballTeamStats("A", 110.0), LAKERS)

    def test_wrong_stats_type(self):
        with pytest.raises(ValueError):
            predicted_margin("nfl", ROCKETS, LAKERS)

    def test_hockey_has_no_margin_model(self):
        with pytest.raises(ValueError):
            predicted_margin("nhl", _hockey("A"), _hockey("B"))


# ---------------------------------------------------------------------------
# Cover probability
# ---------------------------------------------------------------------------

class TestCoverProbability:
    """Normal model around the predicted margin"""

    def test_matches_normal_cdf(self):
        expected = norm.cdf((10.0 - 7.0) / 13.5) * 100
        assert cover_probability(10.0, -7.0, 13.5) == pytest.approx(expected, abs=1e-4)

    def test_pickem(self):
        assert cover_probability(0.0, 0.0, 12.0) == pytest.approx(50.0)

    def test_clamped(self):
        assert cover_probability(200.0, -0.5, 12.0) == MAX_COVER_PCT
        assert cover_probability(-200.0, -0.5, 12.0) == MIN_COVER_PCT

    @pytest.mark.parametrize("margin", [-20.0, -6.3, -1.0, 0.0, 2.5, 7.75, 30.0])
    @pytest.mark.parametrize("spread", [-0.5, -3.5, -7.0, -14.5, -50.0])
    @pytest.mark.parametrize("sigma", [10.5, 12.0, 13.5])
    def test_complementary_sides(self, margin, spread, sigma):
        favorite = cover_probability(margin, spread, sigma)
        underdog = cover_probability(-margin, -spread, sigma)
        assert favorite + underdog == pytest.approx(100.0)

    def test_sigma_must_be_positive(self):
        with pytest.raises(ValueError):
            cover_probability(3.0, -3.0, 0.0)

    def test_probabilities_sum_to_one(self):
        result = spread_probability(1.6519, -3.5, SportConfig.nba())
        assert result.favorite_cover_probability + result.underdog_cover_probability == pytest.approx(1.0)
        favorite, underdog = result.rounded()
        assert favorite + underdog == pytest.approx(1.0)
        assert 0 < favorite < 1

    def test_home_advantage(self):
        config = SportConfig.nba()
        neutral = spread_probability(2.0, -3.5, config, "neutral")
        home = spread_probability(2.0, -3.5, config, "home")
        away = spread_probability(2.0, -3.5, config, "away")

        assert home.home_advantage == 3.0
        assert home.predicted_margin == pytest.approx(5.0)
        assert away.predicted_margin == pytest.approx(-1.0)
        assert away.favorite_cover_probability < neutral.favorite_cover_probability < home.favorite_cover_probability

    def test_unknown_venue(self):
        with pytest.raises(ValueError):
            venue_adjustment(SportConfig.nfl(), "moon")

    @pytest.mark.parametrize("probability, tier", [
        (70.0, "strong"),
        (65.0, "strong"),
        (58.0, "favorable"),
        (50.0, "coin_flip"),
        (40.0, "unfavorable"),
        (20.0, "poor"),
    ])
    def test_tiers(self, probability, tier):
        assert probability_tier(probability) == tier


# ---------------------------------------------------------------------------
# Hockey totals
# ---------------------------------------------------------------------------

class TestHockeyTotals:
    """Expected-goals totals with Poisson-like variance"""

    def test_projection(self):
        home = _hockey("Home", xgf60=3.2, xga60=2.8, gsax60=0.1, hdcf60=12.0, pp=22.0, pk=80.0)
        away = _hockey("Away", gsax60=-0.2, pk=78.0, times_shorthanded_per_game=3.5)

        result = hockey_total_probability(home, away, 6.5, "over")

        assert result.home_expected_goals == pytest.approx(3.3)
        assert result.away_expected_goals == pytest.approx(2.8)
        assert result.pace_adjustment == 0.0
        # (22 + 22) * 3.5 = 154 > 150 for the home side only
        assert result.special_teams_adjustment == pytest.approx(0.35)
        assert result.projected_total == pytest.approx(6.45)

        z = (6.45 - 6.5) / math.sqrt(6.45)
        assert result.over_probability == pytest.approx(norm.cdf(z) * 100, abs=0.01)
        assert result.over_probability + result.under_probability == pytest.approx(100.0)
        assert result.probability == result.over_probability

    def test_pace_bonus(self):
        result = hockey_total_probability(_hockey("A", hdcf60=14.0), _hockey("B", hdcf60=12.0), 6.0)
        assert result.pace_adjustment == 0.25
        assert result.projected_total == pytest.approx(6.25)

    def test_under_selects_under_probability(self):
        result = hockey_total_probability(_hockey("A"), _hockey("B"), 5.5, "under")
        assert result.probability == result.under_probability
        # projected 6.0 against a 5.5 line leans over
        assert result.under_probability < 50.0 < result.over_probability

    def test_missing_stat(self):
        with pytest.raises(ValueError, match="gsax60"):
            hockey_total_probability(HockeyTeamStats("A", xgf60=3.0), _hockey("B"), 6.0)

    def test_bad_bet_type(self):
        with pytest.raises(ValueError):
            hockey_total_probability(_hockey("A"), _hockey("B"), 6.0, "sideways")
