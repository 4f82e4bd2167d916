import logging
from functools import lru_cache
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from paperbank.core.config import settings

logger = logging.getLogger(__name__)


@lru_cache()
def get_engine() -> Engine:
    """Create the process-wide engine on first use."""
    return create_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
        pool_pre_ping=settings.DATABASE_POOL_PRE_PING,
        future=True,
    )


@lru_cache()
def get_sessionmaker() -> sessionmaker:
    return sessionmaker(bind=get_engine(), autocommit=False, autoflush=False, future=True)


def get_db() -> Iterator[Session]:
    db = get_sessionmaker()()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create tables if they don't exist."""
    from paperbank.models.orm import Base

    # In production, use migrations instead
    Base.metadata.create_all(bind=get_engine())
    logger.info("Database schema ensured")


def close_db() -> None:
    """Close database connections."""
    if get_engine.cache_info().currsize:
        get_engine().dispose()
