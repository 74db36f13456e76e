"""
SQLAlchemy-backed session key records.

Server-side mirror of the keys held by the front-end. Read-modify-write
sequences for one owner (revoke vs. is_active) run under a per-owner lock;
different owners never contend.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import Iterator

from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.exc import SQLAlchemyError

from backend_alpacalotto.core.exceptions import UpstreamFailure
from backend_alpacalotto.database import Base, Database
from backend_alpacalotto.lotto_logging import get_logger
from backend_alpacalotto.session_keys.models import SessionKey

logger = get_logger(__name__)


class SessionKeyRow(Base):
    """One row per issued session key. Addresses stored lowercased for lookups."""

    __tablename__ = "session_keys"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner = Column(String(42), nullable=False, index=True)
    owner_checksum = Column(String(42), nullable=False)
    key_address = Column(String(42), nullable=True, index=True)
    key_address_checksum = Column(String(42), nullable=True)
    created_at = Column(Integer, nullable=False, index=True)  # Unix seconds
    duration_seconds = Column(Integer, nullable=False)
    expires_at = Column(Integer, nullable=False)
    revoked = Column(Boolean, nullable=False, default=False)
    revoked_at = Column(Integer, nullable=True)

    def to_model(self) -> SessionKey:
        return SessionKey(
            id=self.id,
            owner=self.owner_checksum,
            key_address=self.key_address_checksum,
            created_at=self.created_at,
            duration_seconds=self.duration_seconds,
            expires_at=self.expires_at,
            revoked=bool(self.revoked),
            revoked_at=self.revoked_at,
        )


class SessionKeyStore:
    """Persistence for SessionKey records, with per-owner serialization."""

    def __init__(self, db: Database) -> None:
        self._db = db
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def owner_lock(self, owner: str) -> Iterator[None]:
        """Serialize read-modify-write sequences for one owner."""
        key = owner.strip().lower()
        with self._locks_guard:
            lock = self._locks.setdefault(key, threading.Lock())
        with lock:
            yield

    def save(self, key: SessionKey) -> SessionKey:
        """Insert a new record (id None) or update the revoked fields of an existing one."""
        try:
            with self._db.session_scope() as session:
                if key.id is None:
                    row = SessionKeyRow(
                        owner=key.owner.lower(),
                        owner_checksum=key.owner,
                        key_address=key.key_address.lower() if key.key_address else None,
                        key_address_checksum=key.key_address,
                        created_at=key.created_at,
                        duration_seconds=key.duration_seconds,
                        expires_at=key.expires_at,
                        revoked=key.revoked,
                        revoked_at=key.revoked_at,
                    )
                    session.add(row)
                    session.flush()
                    return replace(key, id=row.id)
                session.query(SessionKeyRow).filter(SessionKeyRow.id == key.id).update(
                    {"revoked": key.revoked, "revoked_at": key.revoked_at}
                )
                return key
        except SQLAlchemyError as e:
            logger.exception("session_key_save_failed", owner=key.owner, error=str(e))
            raise UpstreamFailure("Failed to store session key") from e

    def latest_for_owner(self, owner: str) -> SessionKey | None:
        """Most recently created key for owner, or None."""
        try:
            with self._db.session_scope() as session:
                row = (
                    session.query(SessionKeyRow)
                    .filter(SessionKeyRow.owner == owner.strip().lower())
                    .order_by(SessionKeyRow.created_at.desc(), SessionKeyRow.id.desc())
                    .first()
                )
                return row.to_model() if row else None
        except SQLAlchemyError as e:
            logger.exception("session_key_lookup_failed", owner=owner, error=str(e))
            raise UpstreamFailure("Failed to read session key") from e

    def find(self, owner: str, key_address: str) -> SessionKey | None:
        """Most recent key for owner with the given session-key address."""
        try:
            with self._db.session_scope() as session:
                row = (
                    session.query(SessionKeyRow)
                    .filter(
                        SessionKeyRow.owner == owner.strip().lower(),
                        SessionKeyRow.key_address == key_address.strip().lower(),
                    )
                    .order_by(SessionKeyRow.created_at.desc(), SessionKeyRow.id.desc())
                    .first()
                )
                return row.to_model() if row else None
        except SQLAlchemyError as e:
            logger.exception("session_key_lookup_failed", owner=owner, error=str(e))
            raise UpstreamFailure("Failed to read session key") from e

    def list_for_owner(self, owner: str, *, limit: int = 20) -> list[SessionKey]:
        try:
            with self._db.session_scope() as session:
                rows = (
                    session.query(SessionKeyRow)
                    .filter(SessionKeyRow.owner == owner.strip().lower())
                    .order_by(SessionKeyRow.created_at.desc(), SessionKeyRow.id.desc())
                    .limit(limit)
                    .all()
                )
                return [r.to_model() for r in rows]
        except SQLAlchemyError as e:
            logger.exception("session_key_list_failed", owner=owner, error=str(e))
            raise UpstreamFailure("Failed to read session keys") from e
