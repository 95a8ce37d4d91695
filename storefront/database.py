"""
Database engine, session factory and declarative base
"""
import logging
from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from storefront.config import settings

logger = logging.getLogger(__name__)

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


class Base(DeclarativeBase):
    pass


def get_db() -> Generator[Session, None, None]:
    """Yield a session scoped to one request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@retry(
    stop=stop_after_attempt(settings.DB_CONNECT_RETRIES),
    wait=wait_exponential(multiplier=settings.DB_CONNECT_RETRY_DELAY, min=1, max=10),
    retry=retry_if_exception_type(OperationalError),
    reraise=True
)
def init_db() -> None:
    """
    Wait for the database and create tables

    The database container may still be starting when the service boots,
    so connection errors are retried with exponential backoff.
    """
    # Import models so they register on Base.metadata
    from storefront.models import order  # noqa: F401

    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    Base.metadata.create_all(bind=engine)
    logger.info("Database initialized")
