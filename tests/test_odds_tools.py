"""
Tests for backend.services.odds_tools
Run with: pytest tests/test_odds_tools.py -v
"""

import pytest

from backend.services.odds_tools import (
    convert_odds,
    describe_implied_probability,
    describe_vig,
    vig_description,
)


class TestConvertOdds:
    """Conversion into every format"""

    def test_american(self):
        result = convert_odds(-110, "american")
        assert result["conversions"] == {
            "american": -110,
            "decimal": 1.909,
            "fractional": "909/1000",
            "implied_probability": 52.38,
        }
        assert "converted" not in result

    def test_fractional_to_decimal(self):
        result = convert_odds(5, "fractional", denominator=2, to_format="decimal")
        assert result["converted"] == pytest.approx(3.5)
        assert result["conversions"]["american"] == 250
        assert result["conversions"]["fractional"] == "5/2"

    def test_decimal_to_american(self):
        assert convert_odds(2.5, "decimal", to_format="american")["converted"] == 150

    @pytest.mark.parametrize("kwargs", [
        {"odds": 1.0, "from_format": "decimal"},
        {"odds": 5, "from_format": "fractional"},
        {"odds": -110, "from_format": "moneyline"},
        {"odds": -110, "from_format": "american", "to_format": "hex"},
        {"odds": -50, "from_format": "american"},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            convert_odds(**kwargs)


class TestVig:
    def test_standard_market(self):
        result = describe_vig(-110, -110)
        assert result["vig"]["percentage"] == pytest.approx(4.76)
        assert result["vig"]["description"] == "Standard vig - typical sportsbook margin"
        assert result["implied_probabilities"]["total"] == pytest.approx(104.76)
        assert result["fair_probabilities"] == {"side1": 50.0, "side2": 50.0}

    def test_reduced_juice(self):
        assert describe_vig(-105, -105)["vig"]["description"] == "Low vig - good for bettors"

    @pytest.mark.parametrize("vig, key_word", [
        (1.5, "Very low"),
        (6.0, "Above average"),
        (9.0, "High"),
    ])
    def test_bands(self, vig, key_word):
        assert vig_description(vig).startswith(key_word)

    def test_spanish(self):
        assert describe_vig(-110, -110, locale="es")["vig"]["description"].startswith("Vig estándar")


class TestImpliedProbability:
    def test_underdog(self):
        result = describe_implied_probability(150)
        assert result["implied_probability"] == pytest.approx(40.0)
        assert result["decimal_odds"] == pytest.approx(2.5)
        assert result["break_even_win_rate"] == result["implied_probability"]
        assert "A $100 bet would win $150" in result["interpretation"]
        assert "40.0%" in result["interpretation"]

    def test_favorite(self):
        result = describe_implied_probability(-200)
        assert result["implied_probability"] == pytest.approx(66.67)
        assert "You need to bet $200 to win $100" in result["interpretation"]
