"""
Tests for backend.services.messages
Run with: pytest tests/test_messages.py -v
"""

import pytest

from backend.services.messages import (
    CATALOGUES,
    format_points,
    interpret_spread,
    interpret_total,
    negotiate_locale,
    t,
)


@pytest.mark.parametrize("requested, expected", [
    ("es-MX", "es"),
    ("es-ES", "es-ES"),
    ("en_GB", "en-GB"),
    ("fr", "en"),
    ("", "en"),
    (None, "en"),
])
def test_negotiate_locale(requested, expected):
    assert negotiate_locale(requested) == expected


def test_catalogues_have_the_same_keys():
    assert set(CATALOGUES["es"]) == set(CATALOGUES["en"])


class TestTranslate:
    def test_spanish(self):
        assert t("clarify_teams", "es") == "¿Qué dos equipos juegan?"

    def test_regional_locale_uses_language(self):
        assert t("clarify_teams", "es-419") == t("clarify_teams", "es")

    def test_unknown_locale_falls_back_to_english(self):
        assert t("note_venue_assumed", "fr") == "Venue assumed as neutral (not explicitly stated)"

    def test_unknown_key_returns_key(self):
        assert t("no_such_key", "es") == "no_such_key"

    def test_parameters(self):
        assert t("note_odds_default", odds="-110") == "Odds not provided - will default to -110"


@pytest.mark.parametrize("value, text", [(7.0, "7"), (3.5, "3.5"), (-3.5, "-3.5"), (0.0, "0")])
def test_format_points(value, text):
    assert format_points(value) == text


# ---------------------------------------------------------------------------
# Interpretation
# ---------------------------------------------------------------------------

class TestInterpretSpread:
    def test_strong_favorite(self):
        assert interpret_spread(70.0, "Boston Celtics", -5.5) == (
            "STRONG COVER: 70.0% probability. "
            "Boston Celtics as 5.5-point favorites looks like good value."
        )

    def test_underdog_in_spanish(self):
        assert interpret_spread(40.0, "Miami Heat", 7.0, "es") == (
            "DESFAVORABLE: 40.0% de probabilidad. "
            "Miami Heat como no favoritos por 7 puntos es arriesgado."
        )

    @pytest.mark.parametrize("probability, prefix", [
        (58.0, "FAVORABLE"),
        (50.0, "COIN FLIP"),
        (20.0, "POOR VALUE"),
    ])
    def test_tiers(self, probability, prefix):
        assert interpret_spread(probability, "X", -3.0).startswith(prefix)


class TestInterpretTotal:
    def test_strong_over(self):
        assert interpret_total(70.0, "over", 5.5, 6.5) == (
            "STRONG OVER: 70.0% probability. "
            "Projected total (6.5) is 1.0 goals above the line. Good value bet."
        )

    def test_favorable_under_in_spanish(self):
        assert interpret_total(60.0, "under", 6.5, 6.0, "es") == (
            "MENOS FAVORABLE: 60.0% de probabilidad. "
            "El total proyectado sugiere una ligera ventaja en el menos."
        )

    def test_poor(self):
        assert interpret_total(30.0, "over", 6.5, 5.5) == (
            "POOR VALUE: 30.0% probability. The over 6.5 is not recommended."
        )
