"""
SQLAlchemy engine and session handling.

One Database object per process, built by the application factory from
Settings.database_url (SQLite by default, any SQLAlchemy URL via DATABASE_URL).
Stores (session keys, referrals) receive it by injection.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from backend_alpacalotto.lotto_logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()


def _redact(url: str) -> str:
    """Strip credentials and query string for logging."""
    return url.split("?")[0].split("@")[-1].split("//")[-1]


class Database:
    """Engine + session factory. Call init_db() once at startup; dispose() on shutdown."""

    def __init__(self, url: str) -> None:
        self.url = url
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self._engine: Engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        logger.info("database_engine", url=_redact(url))

    @property
    def engine(self) -> Engine:
        return self._engine

    def init_db(self) -> None:
        """
        Create tables if they do not exist. Safe to call on every startup.
        Model modules must be imported first so their tables are registered on Base.
        """
        # Register models on Base.metadata
        from backend_alpacalotto.referrals import store as _referral_store  # noqa: F401
        from backend_alpacalotto.session_keys import store as _session_store  # noqa: F401

        try:
            Base.metadata.create_all(bind=self._engine)
            logger.info("database_init_db", url=_redact(self.url))
        except Exception as e:
            logger.exception("database_init_db_failed", error=str(e))
            raise

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Context manager for a single session. Commits on success, rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self._engine.dispose()
