import logging
import os
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .config import settings

logger = logging.getLogger(__name__)

# Prefer public DB URL when set (so a local shell can reach the hosted Postgres)
_database_url = os.environ.get("DATABASE_PUBLIC_URL") or settings.DATABASE_URL

_engine_kw: dict = {}
if "sqlite" in _database_url:
    # Writers queue on the database lock instead of failing immediately
    _engine_kw = {"connect_args": {"check_same_thread": False, "timeout": 30}}
else:
    _engine_kw = {"pool_pre_ping": True, "pool_size": 10, "max_overflow": 20}
engine = create_engine(_database_url, **_engine_kw)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """FastAPI dependency that yields a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """Commit everything written inside the block, or nothing.

    Any exception rolls the session back and is re-raised unchanged.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        logger.debug("Unit of work rolled back")
        raise


class Base(DeclarativeBase):
    pass
