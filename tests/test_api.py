"""
Tests for the FastAPI surface in backend.main
Run with: pytest tests/test_api.py -v
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend.auth import reset_api_keys
from backend.config import DEFAULT_DATA_DIR
from backend.main import _reload_stats_job, app
from backend.models import Base, get_db
from backend.services.stats_loader import StatsRepository

USER1_KEY = "test-key-user1"
USER2_KEY = "test-key-user2"

HOCKEY_TEAM = {
    "xgf60": 3.1, "xga60": 2.9, "gsax60": 0.0, "hdcf60": 11.5,
    "pp": 21.0, "pk": 80.0, "times_shorthanded_per_game": 3.0,
}

BET = {
    "sport": "nba",
    "team_a": "Boston Celtics",
    "team_b": "Los Angeles Lakers",
    "venue": "home",
    "spread": 5.5,
    "bankroll": 1000.0,
    "american_odds": -110,
    "actual_wager": 25.0,
    "kelly_multiplier": 0.5,
}


@pytest.fixture
def client(monkeypatch):
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    monkeypatch.setenv("API_KEY_USER1", USER1_KEY)
    monkeypatch.setenv("API_KEY_USER2", USER2_KEY)
    reset_api_keys()
    app.dependency_overrides[get_db] = override_get_db
    app.state.stats = StatsRepository.from_csv_dir(DEFAULT_DATA_DIR)

    yield TestClient(app)

    app.dependency_overrides.clear()
    reset_api_keys()
    engine.dispose()


def _auth(key=USER1_KEY):
    return {"X-API-Key": key}


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

def test_root(client):
    body = client.get("/").json()
    assert body["status"] == "operational"


def test_health(client):
    body = client.get("/health").json()
    assert body["status"] == "healthy"
    assert body["database"] == "connected"
    assert body["stats_teams"] == {"nba": 30, "nfl": 32}


# ---------------------------------------------------------------------------
# Odds and staking
# ---------------------------------------------------------------------------

class TestOddsAndStaking:
    """Stateless calculators"""

    def test_convert(self, client):
        response = client.post("/api/odds/convert", json={"odds": -110, "from_format": "american"})
        assert response.status_code == 200
        assert response.json()["conversions"]["fractional"] == "909/1000"

    def test_convert_value_error_is_422(self, client):
        response = client.post("/api/odds/convert", json={"odds": 1.0, "from_format": "decimal"})
        assert response.status_code == 422
        assert "greater than 1" in response.json()["detail"]

    def test_vig(self, client):
        response = client.post("/api/odds/vig", json={"odds1": -110, "odds2": -110})
        assert response.json()["vig"]["percentage"] == pytest.approx(4.76)

    def test_implied_in_spanish(self, client):
        response = client.post(
            "/api/odds/implied",
            json={"american_odds": 150},
            headers={"Accept-Language": "es-MX,es;q=0.9"},
        )
        assert response.json()["interpretation"].startswith("Estas son cuotas de no favorito")

    def test_kelly(self, client):
        response = client.post(
            "/api/kelly",
            json={"bankroll": 1000, "probability": 55, "american_odds": -110, "fraction": 1.0},
        )
        body = response.json()
        assert response.status_code == 200
        assert body["recommended_stake"] == pytest.approx(55.0)
        assert body["recommendation"].startswith("Kelly Criterion recommends staking $55.00")

    def test_kelly_rejects_bad_odds(self, client):
        response = client.post(
            "/api/kelly", json={"bankroll": 1000, "probability": 55, "american_odds": 50}
        )
        assert response.status_code == 422

    def test_units(self, client):
        response = client.post("/api/units", json={"bankroll": 1000, "unit_size_pct": 2, "units": 1.5})
        assert response.json()["recommended_stake"] == pytest.approx(30.0)


# ---------------------------------------------------------------------------
# Estimation
# ---------------------------------------------------------------------------

class TestEstimation:
    """Probability, matchup and team endpoints"""

    def test_probability_with_aliases(self, client):
        response = client.post("/api/probability", json={"fav": "HOU", "dog": "LAL", "spread": -3.5})
        body = response.json()
        assert response.status_code == 200
        assert body["sport"] == "nba"
        assert body["favorite_cover_probability"] + body["underdog_cover_probability"] == pytest.approx(1.0)

    def test_probability_wrapped_arguments(self, client):
        response = client.post(
            "/api/probability",
            json={"arguments": {"team1": "Dallas Cowboys", "team2": "New York Giants", "line": -6.5}},
            params={"venue": "home"},
        )
        body = response.json()
        assert body["sport"] == "nfl"
        assert body["home_advantage"] == 2.5

    def test_probability_unknown_team(self, client):
        response = client.post(
            "/api/probability", json={"fav": "InvalidTeamXYZ", "dog": "Lakers", "spread": -3.5}
        )
        body = response.json()
        assert response.status_code == 422
        assert body["error"] == "invalid_input"
        assert body["team_searched"] == "InvalidTeamXYZ"
        assert body["suggestions"]

    def test_probability_missing_fields(self, client):
        response = client.post("/api/probability", json={"fav": "HOU"})
        assert response.status_code == 422
        assert len(response.json()["missing_fields"]) == 2

    def test_hockey(self, client):
        response = client.post(
            "/api/probability/hockey",
            json={
                "home": {"team": "Home", **HOCKEY_TEAM},
                "away": {"team": "Away", **HOCKEY_TEAM},
                "line": 5.5,
                "bet_type": "under",
            },
        )
        body = response.json()
        assert response.status_code == 200
        assert body["projected_total"] == pytest.approx(6.0)
        assert body["probability"] == body["under_probability"]

    def test_matchup_parse(self, client):
        response = client.post(
            "/api/matchup/parse", json={"text": "Lakers -5.5 at Celtics, I'm taking the Celtics"}
        )
        body = response.json()
        assert body["success"] is True
        assert body["parsed"]["team_a"]["full_name"] == "Boston Celtics"
        assert body["parsed"]["spread"] == 5.5

    def test_matchup_parse_failure(self, client):
        response = client.post("/api/matchup/parse", json={"text": "Lakers vs Celtics"})
        body = response.json()
        assert response.status_code == 422
        assert body["error"] == "parse_failure"
        assert body["reason"] == "spread-unparseable"
        assert body["clarification_needed"] == ["spread"]

    def test_matchup_analyze(self, client):
        response = client.post(
            "/api/matchup/analyze",
            json={"text": "Lakers -5.5 at Celtics, I'm taking the Celtics", "bankroll": 1000},
        )
        body = response.json()
        assert response.status_code == 200
        assert body["pick"]["team"] == "Boston Celtics"
        assert body["kelly"]["kelly_multiplier"] == 0.5

    def test_resolve_team(self, client):
        body = client.get("/api/teams/resolve", params={"name": "sixers"}).json()
        assert body["team"] == "Philadelphia 76ers"
        assert body["abbreviation"] == "PHI"
        assert body["match_type"] == "exact"

    def test_resolve_unknown_team(self, client):
        response = client.get("/api/teams/resolve", params={"name": "InvalidTeamXYZ", "sport": "nfl"})
        body = response.json()
        assert response.status_code == 404
        assert body["error"] == "team_not_found"
        assert body["suggestions"]


# ---------------------------------------------------------------------------
# Bet ledger
# ---------------------------------------------------------------------------

class TestBetLedger:
    """Authenticated ledger endpoints"""

    def test_requires_key(self, client):
        assert client.get("/api/bets").status_code == 401
        assert client.get("/api/bets", headers=_auth("wrong")).status_code == 401

    def test_log_settle_and_stats(self, client):
        deposit = client.post(
            "/api/bankroll/transactions", json={"kind": "deposit", "amount": 1000}, headers=_auth()
        )
        assert deposit.json()["balance"] == pytest.approx(1000.0)

        logged = client.post("/api/bets/log", json=BET, headers=_auth())
        assert logged.status_code == 200
        bet = logged.json()
        assert bet["result"] == "pending"

        settled = client.put(f"/api/bets/{bet['id']}/outcome", json={"result": "win"}, headers=_auth())
        assert settled.status_code == 200
        assert settled.json()["payout"] == pytest.approx(47.73)

        again = client.put(f"/api/bets/{bet['id']}/outcome", json={"result": "loss"}, headers=_auth())
        assert again.status_code == 409

        listing = client.get("/api/bets", headers=_auth()).json()
        assert listing["count"] == 1

        stats = client.get("/api/bets/stats", headers=_auth()).json()
        assert stats["wins"] == 1
        assert stats["bankroll_balance"] == pytest.approx(1022.73)

    def test_bets_are_per_user(self, client):
        bet = client.post("/api/bets/log", json=BET, headers=_auth()).json()

        response = client.put(
            f"/api/bets/{bet['id']}/outcome", json={"result": "win"}, headers=_auth(USER2_KEY)
        )
        assert response.status_code == 404
        assert client.get("/api/bets", headers=_auth(USER2_KEY)).json()["count"] == 0

    def test_unknown_bet(self, client):
        response = client.put("/api/bets/999/outcome", json={"result": "win"}, headers=_auth())
        assert response.status_code == 404

    def test_invalid_bet_payload(self, client):
        response = client.post("/api/bets/log", json={**BET, "american_odds": 50}, headers=_auth())
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------

def test_reload_stats_admin_only(client):
    assert client.post("/admin/reload-stats", headers=_auth(USER2_KEY)).status_code == 403

    response = client.post("/admin/reload-stats", headers=_auth())
    assert response.status_code == 200
    assert response.json()["teams"] == {"nba": 30, "nfl": 32}


def test_reload_job_keeps_running_on_bad_data():
    stats = MagicMock()
    stats.reload.side_effect = ValueError("nba_team_stats.csv: missing columns ['ppg']")

    _reload_stats_job(stats)

    stats.reload.assert_called_once()
