#!/usr/bin/env python3
"""
Database initialization script
Creates the ledger tables and optionally seeds a development bankroll
"""

import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from backend.models import Base, engine, SessionLocal, TX_DEPOSIT
from backend.services.bet_ledger import bankroll_balance, record_transaction
import logging
from sqlalchemy import text, inspect
from sqlalchemy.exc import SQLAlchemyError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEV_USER = "dev_user"


def init_database(drop_existing: bool = False):
    """
    Initialize database tables

    Args:
        drop_existing: If True, drops all tables first (DANGER: data loss!)
    """
    logger.info("Initializing Edge Estimator database at %s", engine.url)

    if drop_existing:
        logger.warning("Dropping all existing tables!")
        response = input("Are you sure? This will delete all data. Type 'yes' to confirm: ")
        if response.lower() != 'yes':
            logger.info("Aborted.")
            return False

        Base.metadata.drop_all(bind=engine)
        logger.info("Existing tables dropped")

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")

    inspector = inspect(engine)
    logger.info("Tables: %s", ", ".join(inspector.get_table_names()))
    return True


def seed_test_data(user_id: str = DEV_USER, amount: float = 1000.0):
    """Give a development user a starting bankroll"""
    logger.info("Seeding a $%.2f bankroll for %s", amount, user_id)

    db = SessionLocal()
    try:
        record_transaction(db, user_id, TX_DEPOSIT, amount)
        logger.info("Balance for %s: $%.2f", user_id, bankroll_balance(db, user_id))
    except SQLAlchemyError as e:
        logger.error("Error seeding data: %s", e)
        db.rollback()
    finally:
        db.close()


def check_connection():
    """Test database connection"""
    try:
        db = SessionLocal()
        db.execute(text("SELECT 1"))
        db.close()
        logger.info("Database connection successful")
        return True
    except SQLAlchemyError as e:
        logger.error("Database connection failed: %s", e)
        return False


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Initialize Edge Estimator database")
    parser.add_argument("--drop", action="store_true", help="Drop existing tables (DANGER!)")
    parser.add_argument("--seed", action="store_true", help="Seed a development bankroll")
    parser.add_argument("--check", action="store_true", help="Only check connection")

    args = parser.parse_args()

    if args.check:
        check_connection()
    else:
        if check_connection():
            if init_database(drop_existing=args.drop) and args.seed:
                seed_test_data()
            logger.info("Database initialization complete")
        else:
            logger.error("Cannot initialize database - connection failed")
            sys.exit(1)
