"""
Tests for backend.services.matchup_parser
Run with: pytest tests/test_matchup_parser.py -v
"""

import pytest

from backend.services.errors import (
    REASON_SAME_TEAM_TWICE,
    REASON_SPORT_UNDETERMINED,
    REASON_SPREAD_UNPARSEABLE,
    REASON_TEAMS_NOT_IDENTIFIED,
)
from backend.services.matchup_parser import (
    extract_matchup_tokens,
    find_spread_team,
    format_american,
    parse_matchup_request,
    parse_odds,
    parse_spread,
    parse_user_pick,
    parse_venue,
    team_aliases,
)
from backend.services.team_mapping import NBA_TEAMS, NFL_TEAMS


def _nba(abbreviation):
    return next(t for t in NBA_TEAMS if t.abbreviation == abbreviation)


def _nfl(abbreviation):
    return next(t for t in NFL_TEAMS if t.abbreviation == abbreviation)


def _parse(text, **kwargs):
    result = parse_matchup_request(text, **kwargs)
    assert result.success, result.error
    return result.parsed


# ---------------------------------------------------------------------------
# Full requests
# ---------------------------------------------------------------------------

class TestParseMatchupRequest:
    """End-to-end parsing of free-text betting requests"""

    def test_pick_against_the_quoted_spread(self):
        parsed = _parse("Lakers -5.5 at Celtics, I'm taking the Celtics")

        assert parsed.sport == "nba"
        assert parsed.sport_category == "basketball"
        assert parsed.team_a.full_name == "Boston Celtics"
        assert parsed.team_b.full_name == "Los Angeles Lakers"
        # -5.5 was written against the Lakers, so the Celtics get +5.5
        assert parsed.spread == 5.5
        # "Lakers at Celtics": the game is in Boston
        assert parsed.venue == "home"
        assert parsed.venue_assumed is False
        assert parsed.american_odds is None
        assert "Sport inferred as NBA from team names" in parsed.parsing_notes
        assert "Spread adjusted to 5.5 from Celtics's perspective" in parsed.parsing_notes
        assert "Odds not provided - will default to -110" in parsed.parsing_notes

    def test_explicit_league_and_pick(self):
        parsed = _parse("NBA: Heat vs Hawks, Hawks -3.5, I'm taking Heat")

        assert parsed.sport == "nba"
        assert parsed.team_a.name == "Heat"
        assert parsed.team_b.name == "Hawks"
        assert parsed.spread == 3.5
        assert parsed.venue == "neutral"
        assert parsed.venue_assumed is True
        assert not any(n.startswith("Sport inferred") for n in parsed.parsing_notes)
        assert "Venue assumed as neutral (not explicitly stated)" in parsed.parsing_notes

    def test_pick_defaults_to_spread_team(self):
        parsed = _parse("NBA: Heat vs Hawks, Hawks -3.5, game in Atlanta")

        assert parsed.team_a.name == "Hawks"
        assert parsed.spread == -3.5
        assert parsed.venue == "home"
        assert "Pick assumed to be Hawks (team mentioned with spread)" in parsed.parsing_notes

    def test_game_in_opponent_city_is_away(self):
        parsed = _parse("NBA: Heat vs Hawks, Hawks -3.5, game in Miami")
        assert parsed.team_a.name == "Hawks"
        assert parsed.venue == "away"

    def test_neutral_site(self):
        parsed = _parse("NFL: Cowboys -7 vs Giants on a neutral site")

        assert parsed.sport == "nfl"
        assert parsed.team_a.name == "Cowboys"
        assert parsed.spread == -7.0
        assert parsed.venue == "neutral"
        assert parsed.venue_assumed is False

    def test_betting_on_city_alias(self):
        parsed = _parse("NFL: Cowboys vs Giants, betting on Dallas -7")
        assert parsed.team_a.full_name == "Dallas Cowboys"
        assert parsed.spread == -7.0

    def test_my_pick_is(self):
        parsed = _parse("Celtics vs Knicks, my pick is Boston -5.5")
        assert parsed.team_a.full_name == "Boston Celtics"
        assert parsed.team_b.full_name == "New York Knicks"
        assert parsed.spread == -5.5

    def test_first_team_is_last_resort_pick(self):
        parsed = _parse("Celtics vs Knicks, spread 4.5")
        assert parsed.team_a.name == "Celtics"
        assert parsed.spread == 4.5
        assert "Pick assumed to be Celtics (first team mentioned)" in parsed.parsing_notes

    def test_odds_in_text(self):
        parsed = _parse("Lakers -5.5 at Celtics odds -120, I'm taking the Lakers")
        assert parsed.american_odds == -120
        assert parsed.team_a.name == "Lakers"
        assert parsed.spread == -5.5
        assert parsed.venue == "away"

    def test_configurable_default_odds_note(self):
        parsed = _parse("Celtics vs Knicks -2", default_odds=-105)
        assert "Odds not provided - will default to -105" in parsed.parsing_notes

    def test_spanish_notes(self):
        parsed = _parse("Lakers -5.5 at Celtics, I'm taking the Celtics", locale="es")
        assert "Deporte inferido como NBA a partir de los nombres de los equipos" in parsed.parsing_notes

    def test_to_dict(self):
        result = parse_matchup_request("Lakers -5.5 at Celtics, I'm taking the Celtics")
        payload = result.to_dict()
        assert payload["success"] is True
        assert payload["parsed"]["team_a"] == {
            "name": "Celtics",
            "city": "Boston",
            "abbreviation": "BOS",
            "full_name": "Boston Celtics",
        }
        assert payload["parsed"]["spread"] == 5.5


class TestParseFailures:
    """Failures come back with a reason and what to clarify"""

    def test_no_teams(self):
        result = parse_matchup_request("What a game last night")
        assert result.success is False
        assert result.error_code == REASON_TEAMS_NOT_IDENTIFIED
        assert result.clarification_needed == ["teams", "sport"]

    def test_same_team_twice(self):
        result = parse_matchup_request("Lakers vs Lakers -3")
        assert result.error_code == REASON_SAME_TEAM_TWICE
        assert result.clarification_needed == ["teams"]

    def test_leagues_conflict(self):
        result = parse_matchup_request("Lakers vs Cowboys -3")
        assert result.error_code == REASON_SPORT_UNDETERMINED
        assert result.clarification_needed == ["sport"]

    def test_no_spread(self):
        result = parse_matchup_request("Lakers vs Celtics")
        assert result.error_code == REASON_SPREAD_UNPARSEABLE
        assert result.clarification_needed == ["spread"]
        assert result.to_dict()["success"] is False


# ---------------------------------------------------------------------------
# Individual passes
# ---------------------------------------------------------------------------

class TestExtractMatchupTokens:
    def test_explicit_patterns_first(self):
        candidates = extract_matchup_tokens("Lakers -5.5 at Celtics, I'm taking the Celtics")
        assert candidates[0] == ("Lakers", "Celtics")

    def test_league_prefix_stripped(self):
        candidates = extract_matchup_tokens("NBA: Heat vs Hawks, Hawks -3.5", "nba")
        assert candidates[0] == ("Heat", "Hawks")

    def test_mentions_by_position(self):
        candidates = extract_matchup_tokens("Thinking Knicks and then Celtics cover", "nba")
        assert candidates == [("knicks", "celtics")]


class TestParseSpread:
    @pytest.mark.parametrize("text, expected", [
        ("Hawks -3.5", -3.5),
        ("Hawks +7 points", 7.0),
        ("Cowboys favored by 7", -7.0),
        ("Chiefs are 3.5 point favorites", -3.5),
        ("Giants are 6.5 point underdogs", 6.5),
        ("Bills minus three and a half", -3.5),
        ("Bills plus seven", 7.0),
        ("Bills minus 3.5", -3.5),
        ("Bills minus 3.5.", -3.5),
        ("Bills plus 10", 10.0),
        ("2024 opener, Bucks 4.5", 4.5),
    ])
    def test_spread_forms(self, text, expected):
        assert parse_spread(text).value == expected

    @pytest.mark.parametrize("text", ["Heat -110", "Lakers vs Celtics", "won 112 to 104"])
    def test_no_plausible_spread(self, text):
        assert parse_spread(text) is None

    def test_spread_team_before_number(self):
        text = "Heat vs Hawks, Hawks -3.5"
        assert find_spread_team(text, parse_spread(text), _nba("MIA"), _nba("ATL")).name == "Hawks"

    def test_spread_team_in_parentheses(self):
        text = "Celtics (-4) vs Knicks"
        assert find_spread_team(text, parse_spread(text), _nba("BOS"), _nba("NYK")).name == "Celtics"

    def test_spread_team_after_number(self):
        text = "-6 Knicks over the Celtics"
        assert find_spread_team(text, parse_spread(text), _nba("BOS"), _nba("NYK")).name == "Knicks"

    def test_unattributed_spread(self):
        text = "Celtics and Knicks, spread is -2"
        assert find_spread_team(text, parse_spread(text), _nba("BOS"), _nba("NYK")) is None


class TestPickVenueOdds:
    @pytest.mark.parametrize("text", [
        "I'm taking the Celtics",
        "my pick is Boston",
        "going with the Celtics",
        "backing Boston tonight",
        "I like the Celtics here",
    ])
    def test_pick_phrases(self, text):
        assert parse_user_pick(text, _nba("NYK"), _nba("BOS")).name == "Celtics"

    def test_no_pick(self):
        assert parse_user_pick("Celtics vs Knicks", _nba("BOS"), _nba("NYK")) is None

    def test_home_keyword_near_pick(self):
        venue = parse_venue("Celtics are at home against the Knicks", _nba("BOS"), _nba("NYK"))
        assert venue == ("home", False)

    def test_road_keyword_near_pick(self):
        venue = parse_venue("Celtics on the road vs Knicks", _nba("BOS"), _nba("NYK"))
        assert venue == ("away", False)

    def test_keyword_belonging_to_opponent_ignored(self):
        # "home" sits beside the Knicks, not the Celtics
        venue = parse_venue("Celtics play the Knicks at home", _nba("BOS"), _nba("NYK"))
        assert venue == ("neutral", True)

    def test_venue_by_arena(self):
        venue = parse_venue("Cowboys vs Giants at MetLife", _nfl("DAL"), _nfl("NYG"))
        assert venue == ("away", False)

    @pytest.mark.parametrize("text, odds", [
        ("Celtics -3.5 odds -120", -120),
        ("Celtics -3.5 at +105", 105),
        ("Hawks +150", 150),
        ("Hawks -3.5", None),
    ])
    def test_odds(self, text, odds):
        assert parse_odds(text) == odds

    def test_format_american(self):
        assert format_american(150) == "+150"
        assert format_american(-110) == "-110"


def test_team_aliases_skip_everyday_words():
    aliases = team_aliases(_nfl("DAL"))
    assert "boys" not in aliases
    assert aliases[0] == "dallas cowboys"
