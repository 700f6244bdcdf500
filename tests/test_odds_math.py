"""
Tests for backend.core.odds_math
Run with: pytest tests/test_odds_math.py -v
"""

import numpy as np
import pytest
from scipy.stats import norm

from backend.core.odds_math import (
    american_to_decimal,
    calculate_vig,
    decimal_to_american,
    decimal_to_fractional,
    fair_probabilities,
    fractional_to_decimal,
    implied_probability,
    norm_cdf,
    validate_american_odds,
)


class TestAmericanOdds:
    """American <-> decimal conversion"""

    @pytest.mark.parametrize("american, expected", [
        (-110, 1.9091),
        (+150, 2.5),
        (+100, 2.0),
        (-100, 2.0),
        (-200, 1.5),
        (+300, 4.0),
    ])
    def test_american_to_decimal(self, american, expected):
        assert american_to_decimal(american) == pytest.approx(expected, abs=1e-4)

    @pytest.mark.parametrize("decimal_odds, expected", [
        (2.5, 150),
        (1.909, -110),
        (2.0, 100),
        (1.5, -200),
    ])
    def test_decimal_to_american(self, decimal_odds, expected):
        assert decimal_to_american(decimal_odds) == expected

    @pytest.mark.parametrize(
        "american",
        list(range(-2000, -100, 37)) + list(range(101, 2000, 37)) + [-10000, -101, 101, 10000],
    )
    def test_round_trip_within_one(self, american):
        assert abs(decimal_to_american(american_to_decimal(american)) - american) <= 1

    def test_even_money_is_plus_100(self):
        # -100 and +100 are the same price; decimal 2.0 always comes back positive
        assert decimal_to_american(american_to_decimal(-100)) == 100
        assert decimal_to_american(american_to_decimal(100)) == 100

    @pytest.mark.parametrize("bad", [0, 50, -99, 99.5, float("nan"), float("inf")])
    def test_invalid_american_odds_rejected(self, bad):
        with pytest.raises(ValueError):
            validate_american_odds(bad)
        with pytest.raises(ValueError):
            american_to_decimal(bad)

    @pytest.mark.parametrize("bad", [1.0, 0.5, -2.0])
    def test_invalid_decimal_odds_rejected(self, bad):
        with pytest.raises(ValueError):
            decimal_to_american(bad)


class TestFractionalOdds:
    """Fractional odds reduced at 1/1000 precision"""

    def test_fractional_to_decimal(self):
        assert fractional_to_decimal(5, 2) == pytest.approx(3.5)
        assert fractional_to_decimal(10, 11) == pytest.approx(1.909, abs=1e-3)

    def test_decimal_to_fractional_reduces(self):
        assert decimal_to_fractional(2.5) == (3, 2)
        assert decimal_to_fractional(3.0) == (2, 1)
        assert decimal_to_fractional(1.909) == (909, 1000)

    def test_bad_fraction(self):
        with pytest.raises(ValueError):
            fractional_to_decimal(5, 0)
        with pytest.raises(ValueError):
            fractional_to_decimal(-1, 2)


class TestMarketProbability:
    """Implied probability, vig and the no-vig split"""

    def test_implied_probability_is_percent(self):
        assert implied_probability(-110) == pytest.approx(52.38, abs=0.01)
        assert implied_probability(+150) == pytest.approx(40.0)
        assert implied_probability(-200) == pytest.approx(66.67, abs=0.01)

    def test_standard_market_vig(self):
        assert calculate_vig(-110, -110) == pytest.approx(4.76, abs=0.01)

    def test_fair_probabilities_sum_to_100(self):
        fair1, fair2 = fair_probabilities(-150, +130)
        assert fair1 + fair2 == pytest.approx(100.0)
        assert fair1 > fair2

    def test_even_market_splits_evenly(self):
        assert fair_probabilities(-110, -110) == pytest.approx((50.0, 50.0))


class TestNormCdf:
    """The hand-rolled CDF against scipy"""

    def test_matches_scipy(self):
        xs = np.linspace(-4.0, 4.0, 81)
        ours = np.array([norm_cdf(x) for x in xs])
        np.testing.assert_allclose(ours, norm.cdf(xs), atol=1e-6)

    def test_symmetry(self):
        for x in (0.1, 0.5, 1.0, 2.3):
            assert norm_cdf(x) + norm_cdf(-x) == pytest.approx(1.0)

    def test_center(self):
        assert norm_cdf(0.0) == pytest.approx(0.5)
