"""
FastAPI application for the Edge Estimator
Odds, probability and staking tools, the bet ledger, and the stats reload job
"""

from fastapi import Body, FastAPI, Depends, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime
from typing import Any, Optional
import logging

from backend.config import get_settings
from backend.models import get_db, init_db
from backend.auth import verify_api_key, verify_admin_api_key
from backend.core.kelly import calculate_kelly_stake, calculate_unit_stake
from backend.services import bet_ledger
from backend.services.bet_ledger import BetAlreadySettledError, BetNotFoundError
from backend.services.errors import TEAM_NOT_FOUND, ToolError, parse_failure, team_not_found
from backend.services.estimator import (
    analyze_matchup_text,
    estimate_cover_probability,
    estimate_hockey_total,
)
from backend.services.matchup_parser import parse_matchup_request
from backend.services.messages import negotiate_locale, t
from backend.services.odds_tools import (
    convert_odds,
    describe_implied_probability,
    describe_vig,
)
from backend.services.stats_loader import StatsRepository
from backend.services.team_mapping import ResolvedTeam, fallback_suggestion, resolve_team
from backend.schemas import (
    BetListResponse,
    BetLogCreate,
    BetLogResponse,
    HockeyTotalRequest,
    ImpliedProbabilityRequest,
    KellyRequest,
    MatchupTextRequest,
    OddsConvertRequest,
    OutcomeUpdate,
    TransactionCreate,
    TransactionResponse,
    UnitRequest,
    VigRequest,
)

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

APP_NAME = "Edge Estimator"
APP_VERSION = "1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    settings = get_settings()
    logger.info("Starting %s (%s)", APP_NAME, settings.environment)

    init_db()
    app.state.stats = StatsRepository.from_csv_dir(settings.stats_data_dir)

    scheduler = BackgroundScheduler()
    app.state.scheduler = scheduler
    if settings.stats_reload_minutes > 0:
        scheduler.add_job(
            _reload_stats_job,
            IntervalTrigger(minutes=settings.stats_reload_minutes),
            args=[app.state.stats],
            id="reload_stats",
            name="Reload Team Stats CSVs",
            replace_existing=True,
        )
        scheduler.start()
        logger.info("Scheduler started: stats reload every %d min", settings.stats_reload_minutes)
    else:
        logger.info("Stats reload job disabled (STATS_RELOAD_MINUTES=0)")

    yield

    # Shutdown
    logger.info("Shutting down %s", APP_NAME)
    if scheduler.running:
        scheduler.shutdown()


app = FastAPI(
    title=APP_NAME,
    description="Cover probability, odds and Kelly staking tools for NFL, NBA, college and NHL games",
    version=APP_VERSION,
    lifespan=lifespan,
)

# CORS (adjust origins via CORS_ORIGINS)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_settings().cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# SCHEDULED JOB
# ============================================================================

def _reload_stats_job(stats: StatsRepository):
    """Re-read the stats CSVs; readers keep the old snapshot on failure."""
    try:
        counts = stats.reload()
        logger.info("Stats reload: %s", counts)
    except Exception as exc:
        logger.error("Stats reload job failed: %s", exc, exc_info=True)


# ============================================================================
# DEPENDENCIES & HELPERS
# ============================================================================

def get_stats(request: Request) -> StatsRepository:
    stats = getattr(request.app.state, "stats", None)
    if stats is None:
        raise HTTPException(status_code=503, detail="Team stats are not loaded yet")
    return stats


def get_locale(
    request: Request,
    locale: Optional[str] = Query(None, description="e.g. en, es, es-419"),
) -> str:
    return negotiate_locale(locale or request.headers.get("accept-language", "").split(",")[0])


def tool_response(result: Any):
    """Successful tool results pass through; ToolError becomes a 4xx body."""
    if isinstance(result, ToolError):
        status_code = 404 if result.error == TEAM_NOT_FOUND else 422
        return JSONResponse(status_code=status_code, content=result.to_dict())
    return result


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    """Health check"""
    return {
        "app": APP_NAME,
        "version": APP_VERSION,
        "status": "operational",
        "timestamp": datetime.utcnow().isoformat(),
    }


@app.get("/health")
async def health_check(request: Request, db: Session = Depends(get_db)):
    """Health check endpoint"""
    health = {"status": "healthy", "database": "connected", "scheduler": "running"}

    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Health check database error: %s", e)
        health["status"] = "degraded"
        health["database"] = f"error: {e}"

    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None or not scheduler.running:
        health["scheduler"] = "stopped"

    stats = getattr(request.app.state, "stats", None)
    health["stats_teams"] = {
        sport: len(stats.teams(sport)) for sport in ("nba", "nfl")
    } if stats is not None else {}

    return health


# ---------------------------------------------------------------------------
# Odds tools
# ---------------------------------------------------------------------------

@app.post("/api/odds/convert")
async def odds_convert(payload: OddsConvertRequest):
    return convert_odds(payload.odds, payload.from_format, payload.denominator, payload.to_format)


@app.post("/api/odds/vig")
async def odds_vig(payload: VigRequest, locale: str = Depends(get_locale)):
    return describe_vig(payload.odds1, payload.odds2, locale)


@app.post("/api/odds/implied")
async def odds_implied(payload: ImpliedProbabilityRequest, locale: str = Depends(get_locale)):
    return describe_implied_probability(payload.american_odds, locale)


# ---------------------------------------------------------------------------
# Staking
# ---------------------------------------------------------------------------

@app.post("/api/kelly")
async def kelly(payload: KellyRequest, locale: str = Depends(get_locale)):
    """Kelly stake for an estimated probability (percent) at American odds."""
    result = calculate_kelly_stake(
        payload.bankroll, payload.probability, payload.american_odds, payload.fraction
    )
    if result.has_value:
        recommendation = t(
            "kelly_stake_text", locale,
            stake=result.recommended_stake, percentage=result.stake_percentage,
        )
    else:
        recommendation = t("kelly_no_value", locale)
    return {**asdict(result), "fraction": payload.fraction, "recommendation": recommendation}


@app.post("/api/units")
async def units(payload: UnitRequest):
    return asdict(calculate_unit_stake(payload.bankroll, payload.unit_size_pct, payload.units))


# ---------------------------------------------------------------------------
# Estimation
# ---------------------------------------------------------------------------

@app.post("/api/probability")
async def probability(
    raw: Any = Body(None),
    sport: Optional[str] = Query(None),
    venue: str = Query("neutral", description="Relative to the favorite"),
    locale: str = Depends(get_locale),
    stats: StatsRepository = Depends(get_stats),
):
    """
    Favorite/underdog cover probabilities.

    The body is free-form: team and spread keys are matched against the
    accepted aliases (team_favorite/favorite/fav/team1/..., spread/line/...).
    """
    result = estimate_cover_probability(
        raw,
        stats,
        sport=sport,
        venue=venue,
        locale=locale,
        default_sport=get_settings().ambiguous_sport_default,
    )
    return tool_response(result)


@app.post("/api/probability/hockey")
async def hockey_total(payload: HockeyTotalRequest, locale: str = Depends(get_locale)):
    result = estimate_hockey_total(
        payload.home.to_stats(), payload.away.to_stats(), payload.line, payload.bet_type, locale
    )
    return tool_response(result)


@app.post("/api/matchup/parse")
async def matchup_parse(payload: MatchupTextRequest, locale: str = Depends(get_locale)):
    settings = get_settings()
    parsing = parse_matchup_request(
        payload.text,
        locale,
        default_sport=settings.ambiguous_sport_default,
        default_odds=settings.default_american_odds,
    )
    if not parsing.success:
        return tool_response(
            parse_failure(parsing.error, parsing.error_code, parsing.clarification_needed)
        )
    return parsing.to_dict()


@app.post("/api/matchup/analyze")
async def matchup_analyze(
    payload: MatchupTextRequest,
    locale: str = Depends(get_locale),
    stats: StatsRepository = Depends(get_stats),
):
    settings = get_settings()
    result = analyze_matchup_text(
        payload.text,
        stats,
        bankroll=payload.bankroll,
        kelly_fraction=payload.kelly_fraction,
        default_odds=settings.default_american_odds,
        locale=locale,
        default_sport=settings.ambiguous_sport_default,
    )
    return tool_response(result)


@app.get("/api/teams/resolve")
async def teams_resolve(
    name: str = Query(..., min_length=1, max_length=80),
    sport: Optional[str] = Query(None),
):
    resolution = resolve_team(name, sport, default_sport=get_settings().ambiguous_sport_default)
    if not isinstance(resolution, ResolvedTeam):
        return tool_response(
            team_not_found(
                resolution.reason,
                resolution.query,
                resolution.suggestions or (fallback_suggestion(sport),),
            )
        )
    return {
        "success": True,
        "query": name,
        "team": resolution.name,
        "abbreviation": resolution.team.abbreviation,
        "sport": resolution.sport,
        "matched_alias": resolution.matched_alias,
        "match_type": resolution.match_type,
        "confidence": resolution.confidence,
    }


# ============================================================================
# AUTHENTICATED ENDPOINTS - BET LEDGER
# ============================================================================

@app.post("/api/bets/log", response_model=BetLogResponse)
async def log_bet(
    bet_data: BetLogCreate,
    user: str = Depends(verify_api_key),
    db: Session = Depends(get_db),
):
    """Log a bet; the wager is debited from the bankroll."""
    bet = bet_ledger.log_bet(db, user, **bet_data.model_dump())
    return bet


@app.put("/api/bets/{bet_id}/outcome", response_model=BetLogResponse)
async def update_bet_outcome(
    bet_id: int,
    payload: OutcomeUpdate,
    user: str = Depends(verify_api_key),
    db: Session = Depends(get_db),
):
    """Settle a pending bet exactly once."""
    return bet_ledger.settle_bet(db, bet_id, user, payload.result, payload.payout)


@app.get("/api/bets", response_model=BetListResponse)
async def list_bets(
    result: Optional[str] = Query(None, description="pending | win | loss | push | cancelled"),
    limit: int = Query(default=100, ge=1, le=500),
    user: str = Depends(verify_api_key),
    db: Session = Depends(get_db),
):
    bets = bet_ledger.list_bets(db, user, result=result, limit=limit)
    return {"bets": bets, "count": len(bets)}


@app.get("/api/bets/stats")
async def bet_stats(user: str = Depends(verify_api_key), db: Session = Depends(get_db)):
    return bet_ledger.user_bet_stats(db, user)


@app.post("/api/bankroll/transactions", response_model=TransactionResponse)
async def add_transaction(
    payload: TransactionCreate,
    user: str = Depends(verify_api_key),
    db: Session = Depends(get_db),
):
    tx = bet_ledger.record_transaction(db, user, payload.kind, payload.amount)
    return {
        "id": tx.id,
        "kind": tx.kind,
        "amount": tx.amount,
        "bet_id": tx.bet_id,
        "created_at": tx.created_at,
        "balance": bet_ledger.bankroll_balance(db, user),
    }


# ============================================================================
# ADMIN ENDPOINTS
# ============================================================================

@app.post("/admin/reload-stats")
async def reload_stats(
    user: str = Depends(verify_admin_api_key),
    stats: StatsRepository = Depends(get_stats),
):
    """Re-read the team stats CSVs now."""
    counts = stats.reload()
    logger.info("Stats reloaded by %s: %s", user, counts)
    return {"message": "Team stats reloaded", "teams": counts}


# ============================================================================
# ERROR HANDLERS
# ============================================================================

@app.exception_handler(BetNotFoundError)
async def bet_not_found_handler(request, exc):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(BetAlreadySettledError)
async def bet_settled_handler(request, exc):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(ValueError)
async def value_error_handler(request, exc):
    """Invalid numeric input from the core math (bad odds, bankroll, ...)"""
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Catch-all exception handler"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": type(exc).__name__}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
