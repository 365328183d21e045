# journal/database.py

import os
import time
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool
from logger import logger

# Database URL from environment variable
DATABASE_URL = os.getenv("DATABASE_URL")

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set. Please set it in your environment.")

# Correct PostgreSQL URL if necessary
if DATABASE_URL.startswith('postgres://'):
    DATABASE_URL = DATABASE_URL.replace('postgres://', 'postgresql://', 1)


def engine_options(url: str) -> dict:
    """
    Returns create_engine keyword arguments suited to the database backend.

    SQLite (used for local runs and tests) shares a single connection across
    threads; every other backend gets a sized connection pool.
    """
    if url.startswith("sqlite"):
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {"pool_size": 10, "max_overflow": 20}


# SQLAlchemy setup
Base = declarative_base()
engine = create_engine(DATABASE_URL, **engine_options(DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Retry logic to wait for the database to be ready
MAX_RETRIES = 5
RETRY_INTERVAL = 5  # seconds


def init_db() -> None:
    """Creates all tables, retrying while the database is still starting."""
    # Models must be registered on Base.metadata before create_all
    from journal import models  # noqa: F401

    for attempt in range(MAX_RETRIES):
        try:
            Base.metadata.create_all(bind=engine)
            logger.info("Database connected and tables created successfully.")
            break
        except OperationalError as oe:
            if attempt < MAX_RETRIES - 1:
                logger.warning(
                    f"Database connection failed on attempt {attempt + 1}. Retrying in {RETRY_INTERVAL} seconds..."
                )
                time.sleep(RETRY_INTERVAL)
            else:
                logger.error("Max retries reached. Exiting.")
                raise oe


# Dependency to get database session
def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
