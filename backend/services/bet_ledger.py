"""
Bet ledger: log bets, settle them once, and summarise a user's record.

All public functions receive a SQLAlchemy Session and commit their own
writes, so they can be called from FastAPI endpoints or scripts alike.

Money conventions:
  wager   - the amount risked, debited when the bet is logged
  payout  - the total returned at settlement, stake included
  profit  - payout minus wager for a win, minus the wager for a loss,
            zero for a push or a cancelled bet
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from backend.core.odds_math import american_to_decimal, validate_american_odds
from backend.models import (
    RESULT_CANCELLED,
    RESULT_LOSS,
    RESULT_PENDING,
    RESULT_PUSH,
    RESULT_WIN,
    SETTLED_RESULTS,
    TRANSACTION_KINDS,
    TX_DEPOSIT,
    TX_PAYOUT,
    TX_WAGER,
    TX_WITHDRAWAL,
    BankrollTransaction,
    BetLog,
)

logger = logging.getLogger(__name__)

# Signed contribution of each transaction kind to the balance.
_TX_SIGN = {TX_DEPOSIT: 1.0, TX_PAYOUT: 1.0, TX_WITHDRAWAL: -1.0, TX_WAGER: -1.0}


class BetAlreadySettledError(ValueError):
    """Raised when settling a bet whose result is no longer pending."""


class BetNotFoundError(LookupError):
    pass


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def potential_payout(wager: float, american_odds: int) -> float:
    """Total return if ``wager`` wins at ``american_odds`` (stake included)."""
    return round(wager * american_to_decimal(american_odds), 2)


def bet_profit(bet: BetLog) -> float:
    """Realised profit of a settled bet; 0.0 while pending."""
    if bet.result == RESULT_WIN:
        return round((bet.payout or 0.0) - bet.actual_wager, 2)
    if bet.result == RESULT_LOSS:
        return round(-bet.actual_wager, 2)
    return 0.0


def _pct(numerator: float, denominator: float) -> float:
    return round(numerator / denominator * 100.0, 2) if denominator > 0 else 0.0


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def record_transaction(
    db: Session,
    user_id: str,
    kind: str,
    amount: float,
    bet_id: Optional[int] = None,
    commit: bool = True,
) -> BankrollTransaction:
    if kind not in TRANSACTION_KINDS:
        raise ValueError(f"kind must be one of {TRANSACTION_KINDS}, got {kind!r}")
    if amount <= 0:
        raise ValueError(f"amount must be positive, got {amount!r}")

    tx = BankrollTransaction(user_id=user_id, kind=kind, amount=round(amount, 2), bet_id=bet_id)
    db.add(tx)
    if commit:
        db.commit()
        db.refresh(tx)
    return tx


def log_bet(
    db: Session,
    user_id: str,
    *,
    sport: str,
    team_a: str,
    team_b: str,
    bankroll: float,
    american_odds: int,
    actual_wager: float,
    venue: str = "neutral",
    spread: Optional[float] = None,
    calculated_probability: Optional[float] = None,
    expected_margin: Optional[float] = None,
    implied_probability: Optional[float] = None,
    edge: Optional[float] = None,
    kelly_multiplier: Optional[float] = None,
    recommended_stake: Optional[float] = None,
    stake_percentage: Optional[float] = None,
    notes: Optional[str] = None,
) -> BetLog:
    """Create a pending bet and debit its wager from the bankroll."""
    validate_american_odds(american_odds)
    if actual_wager <= 0:
        raise ValueError(f"actual_wager must be positive, got {actual_wager!r}")
    if bankroll <= 0:
        raise ValueError(f"bankroll must be positive, got {bankroll!r}")

    bet = BetLog(
        user_id=user_id,
        sport=sport,
        team_a=team_a,
        team_b=team_b,
        venue=venue,
        spread=spread,
        calculated_probability=calculated_probability,
        expected_margin=expected_margin,
        implied_probability=implied_probability,
        edge=edge,
        bankroll=bankroll,
        american_odds=int(american_odds),
        kelly_multiplier=kelly_multiplier,
        recommended_stake=recommended_stake,
        stake_percentage=stake_percentage,
        actual_wager=round(actual_wager, 2),
        result=RESULT_PENDING,
        notes=notes,
    )
    db.add(bet)
    db.flush()  # assigns bet.id for the wager transaction
    record_transaction(db, user_id, TX_WAGER, actual_wager, bet_id=bet.id, commit=False)
    db.commit()
    db.refresh(bet)

    logger.info(
        "Logged bet %s for %s: %s vs %s, $%.2f at %+d",
        bet.id, user_id, team_a, team_b, bet.actual_wager, bet.american_odds,
    )
    return bet


def get_bet(db: Session, bet_id: int, user_id: str) -> BetLog:
    bet = db.query(BetLog).filter(BetLog.id == bet_id, BetLog.user_id == user_id).first()
    if bet is None:
        raise BetNotFoundError(f"Bet {bet_id} not found")
    return bet


def settle_bet(
    db: Session,
    bet_id: int,
    user_id: str,
    result: str,
    payout: Optional[float] = None,
) -> BetLog:
    """
    Move a pending bet to win/loss/push/cancelled.

    A win pays ``wager x decimal odds`` unless ``payout`` is given; a push or
    a cancelled bet refunds the wager; a loss pays nothing.  Any positive
    payout is credited to the bankroll.

    Raises:
        BetNotFoundError: No such bet for this user.
        BetAlreadySettledError: The bet was settled before.
        ValueError: Unknown result or negative payout.
    """
    if result not in SETTLED_RESULTS:
        raise ValueError(f"result must be one of {SETTLED_RESULTS}, got {result!r}")
    if payout is not None and payout < 0:
        raise ValueError(f"payout cannot be negative, got {payout!r}")

    bet = get_bet(db, bet_id, user_id)
    if bet.result != RESULT_PENDING:
        raise BetAlreadySettledError(f"Bet {bet_id} is already settled as {bet.result}")

    if result == RESULT_WIN:
        amount = payout if payout is not None else potential_payout(bet.actual_wager, bet.american_odds)
    elif result in (RESULT_PUSH, RESULT_CANCELLED):
        amount = bet.actual_wager
    else:
        amount = 0.0

    bet.result = result
    bet.payout = round(amount, 2)
    bet.settled_at = datetime.utcnow()
    if amount > 0:
        record_transaction(db, user_id, TX_PAYOUT, amount, bet_id=bet.id, commit=False)
    db.commit()
    db.refresh(bet)

    logger.info("Settled bet %s as %s (payout $%.2f)", bet.id, result, bet.payout)
    return bet


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def list_bets(
    db: Session, user_id: str, result: Optional[str] = None, limit: int = 100
) -> List[BetLog]:
    q = db.query(BetLog).filter(BetLog.user_id == user_id)
    if result:
        q = q.filter(BetLog.result == result)
    return q.order_by(BetLog.created_at.desc(), BetLog.id.desc()).limit(limit).all()


def bankroll_balance(db: Session, user_id: str) -> float:
    """Net of every transaction: deposits and payouts in, withdrawals and wagers out."""
    txs = db.query(BankrollTransaction).filter(BankrollTransaction.user_id == user_id).all()
    return round(sum(_TX_SIGN[tx.kind] * tx.amount for tx in txs), 2)


def user_bet_stats(db: Session, user_id: str) -> Dict:
    """
    Record summary for a user.

    ``win_rate`` is wins over decided bets (wins + losses).  ``roi`` is net
    profit over the amount wagered on settled, non-cancelled bets.  Both
    are percentages.
    """
    bets = db.query(BetLog).filter(BetLog.user_id == user_id).all()

    counts = {r: 0 for r in (RESULT_PENDING,) + SETTLED_RESULTS}
    for bet in bets:
        counts[bet.result] = counts.get(bet.result, 0) + 1

    decided = [b for b in bets if b.result in (RESULT_WIN, RESULT_LOSS, RESULT_PUSH)]
    wagered = sum(b.actual_wager for b in decided)
    total_payout = sum(b.payout or 0.0 for b in decided)
    net_profit = sum(bet_profit(b) for b in decided)

    return {
        "total_bets": len(bets),
        "pending": counts[RESULT_PENDING],
        "wins": counts[RESULT_WIN],
        "losses": counts[RESULT_LOSS],
        "pushes": counts[RESULT_PUSH],
        "cancelled": counts[RESULT_CANCELLED],
        "win_rate": _pct(counts[RESULT_WIN], counts[RESULT_WIN] + counts[RESULT_LOSS]),
        "total_wagered": round(wagered, 2),
        "total_payout": round(total_payout, 2),
        "net_profit": round(net_profit, 2),
        "roi": _pct(net_profit, wagered),
        "bankroll_balance": bankroll_balance(db, user_id),
    }
