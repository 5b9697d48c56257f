# horizonfit/database.py
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import get_settings

logger = logging.getLogger(__name__)

engine = create_engine(get_settings().database_url, **get_settings().engine_options())

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Request-scoped session. Services commit through run_in_transaction or crud helpers."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None):
    """Create every table. Models are imported here so they are registered on Base.metadata."""
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables created.")


def drop_tables(bind=None):
    Base.metadata.drop_all(bind=bind or engine)
    logger.info("Database tables dropped.")
