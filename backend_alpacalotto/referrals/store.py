"""
Referral records (SQLAlchemy).

A referral is claimed (pending) before any reward is minted, moves to
partial once the referee is paid and to processed once the referrer is
paid. Failed attempts are stored too. A referee holds at most one
non-failed row; only processed rows count for the leaderboard.
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterator

from sqlalchemy import Column, Index, Integer, Numeric, String, func, or_, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from backend_alpacalotto.core.exceptions import UpstreamFailure
from backend_alpacalotto.database import Base, Database
from backend_alpacalotto.lotto_logging import get_logger

logger = get_logger(__name__)

STATUS_PENDING = "pending"
STATUS_PARTIAL = "partial"
STATUS_PROCESSED = "processed"
STATUS_FAILED = "failed"

_OPEN_ROW = text(f"status != '{STATUS_FAILED}'")


class ReferralRow(Base):
    __tablename__ = "referrals"
    __table_args__ = (
        Index(
            "uq_referrals_referee_open",
            "referee",
            unique=True,
            sqlite_where=_OPEN_ROW,
            postgresql_where=_OPEN_ROW,
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    referee = Column(String(42), nullable=False, index=True)  # lowercased
    referrer = Column(String(42), nullable=False, index=True)  # lowercased
    referee_reward = Column(Numeric(36, 18), nullable=True)
    referrer_reward = Column(Numeric(36, 18), nullable=True)
    referee_tx_hash = Column(String(66), nullable=True)
    referrer_tx_hash = Column(String(66), nullable=True)
    status = Column(String(16), nullable=False, index=True)
    reason = Column(String(512), nullable=True)
    created_at = Column(Integer, nullable=False)


@dataclass(frozen=True)
class OpenReferral:
    """A claimed referral whose rewards are not fully paid yet."""

    id: int
    referee: str
    referrer: str
    status: str
    referee_tx_hash: str | None


@dataclass(frozen=True)
class LeaderboardEntry:
    referrer: str
    referrals: int
    total_rewards: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "referrer": self.referrer,
            "referrals": self.referrals,
            "totalRewards": format(self.total_rewards.normalize(), "f"),
        }


class ReferralStore:
    def __init__(self, db: Database) -> None:
        self._db = db
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def referee_lock(self, referee: str) -> Iterator[None]:
        """Serialize the check-mint-record sequence for one referee."""
        key = referee.strip().lower()
        with self._locks_guard:
            lock = self._locks.setdefault(key, threading.Lock())
        with lock:
            yield

    def has_participated(self, address: str) -> bool:
        """True if address holds a non-failed referral as referee, or referred someone successfully."""
        addr = address.lower()
        try:
            with self._db.session_scope() as session:
                row = (
                    session.query(ReferralRow.id)
                    .filter(
                        or_(
                            (ReferralRow.referee == addr) & (ReferralRow.status != STATUS_FAILED),
                            (ReferralRow.referrer == addr) & (ReferralRow.status == STATUS_PROCESSED),
                        )
                    )
                    .first()
                )
                return row is not None
        except SQLAlchemyError as e:
            logger.exception("referral_lookup_failed", address=address, error=str(e))
            raise UpstreamFailure("Failed to read referrals") from e

    def open_referral(self, referee: str) -> OpenReferral | None:
        """The referee's pending or partial referral, if any."""
        try:
            with self._db.session_scope() as session:
                row = (
                    session.query(ReferralRow)
                    .filter(
                        ReferralRow.referee == referee.lower(),
                        ReferralRow.status.in_((STATUS_PENDING, STATUS_PARTIAL)),
                    )
                    .first()
                )
                if row is None:
                    return None
                return OpenReferral(row.id, row.referee, row.referrer, row.status, row.referee_tx_hash)
        except SQLAlchemyError as e:
            logger.exception("referral_lookup_failed", address=referee, error=str(e))
            raise UpstreamFailure("Failed to read referrals") from e

    def claim(
        self,
        referee: str,
        referrer: str,
        referee_reward: Decimal,
        referrer_reward: Decimal,
    ) -> int | None:
        """Insert a pending referral; None if the referee already holds a non-failed one."""
        row = ReferralRow(
            referee=referee.lower(),
            referrer=referrer.lower(),
            referee_reward=referee_reward,
            referrer_reward=referrer_reward,
            status=STATUS_PENDING,
            created_at=int(time.time()),
        )
        try:
            with self._db.session_scope() as session:
                session.add(row)
                session.flush()
                referral_id = row.id
        except IntegrityError:
            logger.info("referral_claim_conflict", referee=referee, referrer=referrer)
            return None
        except SQLAlchemyError as e:
            logger.exception("referral_record_failed", error=str(e))
            raise UpstreamFailure("Failed to record referral") from e
        logger.info("referral_claimed", referral_id=referral_id, referee=referee, referrer=referrer)
        return referral_id

    def mark_referee_paid(self, referral_id: int, tx_hash: str | None) -> None:
        self._update(referral_id, status=STATUS_PARTIAL, referee_tx_hash=tx_hash)

    def mark_processed(self, referral_id: int, tx_hash: str | None) -> None:
        self._update(referral_id, status=STATUS_PROCESSED, referrer_tx_hash=tx_hash, reason=None)
        logger.info("referral_processed", referral_id=referral_id)

    def mark_failed(self, referral_id: int, reason: str) -> None:
        """Release a claim on which nothing was paid."""
        self._update(referral_id, status=STATUS_FAILED, reason=reason[:512])
        logger.info("referral_failed", referral_id=referral_id, reason=reason)

    def note_partial_failure(self, referral_id: int, reason: str) -> None:
        """Referee paid, referrer mint failed; the row stays partial for a retry."""
        self._update(referral_id, reason=reason[:512])
        logger.warning("referral_partial", referral_id=referral_id, reason=reason)

    def record_failure(self, referee: str, referrer: str, reason: str) -> None:
        self._insert(
            ReferralRow(
                referee=referee.lower(),
                referrer=referrer.lower(),
                status=STATUS_FAILED,
                reason=reason[:512],
                created_at=int(time.time()),
            )
        )
        logger.info("referral_failed", referee=referee, referrer=referrer, reason=reason)

    def _insert(self, row: ReferralRow) -> None:
        try:
            with self._db.session_scope() as session:
                session.add(row)
        except SQLAlchemyError as e:
            logger.exception("referral_record_failed", error=str(e))
            raise UpstreamFailure("Failed to record referral") from e

    def _update(self, referral_id: int, **fields: Any) -> None:
        try:
            with self._db.session_scope() as session:
                session.query(ReferralRow).filter(ReferralRow.id == referral_id).update(fields)
        except SQLAlchemyError as e:
            logger.exception("referral_record_failed", referral_id=referral_id, error=str(e))
            raise UpstreamFailure("Failed to record referral") from e

    def top_referrers(self, limit: int = 10) -> list[LeaderboardEntry]:
        """Referrers ordered by processed referral count, then total referrer rewards."""
        try:
            with self._db.session_scope() as session:
                count = func.count(ReferralRow.id)
                total = func.coalesce(func.sum(ReferralRow.referrer_reward), 0)
                rows = (
                    session.query(ReferralRow.referrer, count, total)
                    .filter(ReferralRow.status == STATUS_PROCESSED)
                    .group_by(ReferralRow.referrer)
                    .order_by(count.desc(), total.desc(), ReferralRow.referrer)
                    .limit(limit)
                    .all()
                )
                return [
                    LeaderboardEntry(referrer=r[0], referrals=int(r[1]), total_rewards=Decimal(str(r[2])))
                    for r in rows
                ]
        except SQLAlchemyError as e:
            logger.exception("referral_leaderboard_failed", error=str(e))
            raise UpstreamFailure("Failed to read referral leaderboard") from e
