"""
Database models for the Edge Estimator bet ledger
SQLAlchemy ORM, SQLite by default (set DATABASE_URL for PostgreSQL)
"""

from sqlalchemy import (
    create_engine,
    Column,
    Integer,
    String,
    Float,
    DateTime,
    Text,
    ForeignKey,
)
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker, relationship
from datetime import datetime
import logging

from backend.config import get_settings

logger = logging.getLogger(__name__)

DATABASE_URL = get_settings().database_url


def make_engine(url: str):
    """Engine for ``url``; SQLite connections are shared across request threads."""
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False}, echo=False)
    # pool_pre_ping keeps long-lived server connections healthy
    return create_engine(url, pool_pre_ping=True, echo=False)


engine = make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# Bet results
RESULT_PENDING = "pending"
RESULT_WIN = "win"
RESULT_LOSS = "loss"
RESULT_PUSH = "push"
RESULT_CANCELLED = "cancelled"
SETTLED_RESULTS = (RESULT_WIN, RESULT_LOSS, RESULT_PUSH, RESULT_CANCELLED)

# Bankroll transaction kinds
TX_DEPOSIT = "deposit"
TX_WITHDRAWAL = "withdrawal"
TX_WAGER = "wager"
TX_PAYOUT = "payout"
TRANSACTION_KINDS = (TX_DEPOSIT, TX_WITHDRAWAL, TX_WAGER, TX_PAYOUT)


class BetLog(Base):
    """A logged bet with the model inputs that produced the recommendation"""

    __tablename__ = "bet_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)

    # Matchup
    sport = Column(String, nullable=False)  # nfl | nba | ncaaf | ncaab | nhl
    team_a = Column(String, nullable=False)  # the team bet on
    team_b = Column(String, nullable=False)
    venue = Column(String, default="neutral")  # relative to team_a
    spread = Column(Float)  # team_a's perspective

    # Model output at bet time
    calculated_probability = Column(Float)  # percent
    expected_margin = Column(Float)
    implied_probability = Column(Float)  # percent
    edge = Column(Float)  # percentage points

    # Sizing
    bankroll = Column(Float, nullable=False)
    american_odds = Column(Integer, nullable=False)
    kelly_multiplier = Column(Float)  # 0.25 | 0.5 | 1.0
    recommended_stake = Column(Float)
    stake_percentage = Column(Float)
    actual_wager = Column(Float, nullable=False)

    # Settlement
    result = Column(String, default=RESULT_PENDING, nullable=False, index=True)
    payout = Column(Float)  # total returned, stake included
    settled_at = Column(DateTime)

    notes = Column(Text)

    transactions = relationship("BankrollTransaction", back_populates="bet")

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class BankrollTransaction(Base):
    """Money in or out of a user's bankroll"""

    __tablename__ = "bankroll_transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    kind = Column(String(20), nullable=False)  # deposit | withdrawal | wager | payout
    amount = Column(Float, nullable=False)  # always positive; kind gives the direction
    bet_id = Column(Integer, ForeignKey("bet_logs.id"), index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    bet = relationship("BetLog", back_populates="transactions")


# Create all tables
def init_db(bind=None):
    """Initialize database tables"""
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables created")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
