"""
Session key lifecycle: create, observe expiry, revoke.

States: active -> expiring_soon (observed against a caller-supplied window),
active/expiring_soon -> expired (time passes), active/expiring_soon -> revoked
(explicit revoke). Expired and revoked are terminal. Signature checks happen
before create/revoke are called, not here.
"""

from __future__ import annotations

import time
from dataclasses import replace
from typing import Any, Callable

from backend_alpacalotto.core.addresses import checksum
from backend_alpacalotto.core.exceptions import InvalidDuration
from backend_alpacalotto.lotto_logging import get_logger
from backend_alpacalotto.session_keys.models import SessionKey, SessionKeyState

logger = get_logger(__name__)


def _system_clock() -> int:
    return int(time.time())


def validate_duration(duration_seconds: Any) -> int:
    """Return duration_seconds if it is a positive int (bool excluded); else raise InvalidDuration."""
    if isinstance(duration_seconds, bool) or not isinstance(duration_seconds, int) or duration_seconds <= 0:
        raise InvalidDuration("Duration must be a positive integer number of seconds")
    return duration_seconds


class SessionKeyManager:
    """Pure lifecycle rules over SessionKey records; clock injected for tests."""

    def __init__(self, clock: Callable[[], int] = _system_clock) -> None:
        self._clock = clock

    def now(self) -> int:
        return int(self._clock())

    def create(
        self,
        owner_address: str,
        duration_seconds: Any,
        *,
        key_address: str | None = None,
    ) -> SessionKey:
        """
        New session key valid for duration_seconds from now.

        Raises:
            InvalidDuration: duration is not a positive integer.
            InvalidInput: owner or key address is not an EVM address.
        """
        duration_seconds = validate_duration(duration_seconds)
        owner = checksum(owner_address, "owner address")
        key_addr = checksum(key_address, "session key address") if key_address else None
        created = self.now()
        key = SessionKey(
            owner=owner,
            created_at=created,
            duration_seconds=duration_seconds,
            expires_at=created + duration_seconds,
            key_address=key_addr,
        )
        logger.info("session_key_created", owner=owner, duration=duration_seconds, expires_at=key.expires_at)
        return key

    def is_active(self, key: SessionKey) -> bool:
        return not key.revoked and self.now() < key.expires_at

    def time_remaining(self, key: SessionKey) -> int:
        """Seconds until expiry; 0 once expired. Ignores the revoked flag."""
        return max(0, key.expires_at - self.now())

    def is_expiring_within(self, key: SessionKey, window_seconds: int) -> bool:
        return self.is_active(key) and self.time_remaining(key) <= window_seconds

    def revoke(self, key: SessionKey) -> SessionKey:
        """Idempotent: an already revoked key is returned unchanged."""
        if key.revoked:
            return key
        revoked = replace(key, revoked=True, revoked_at=self.now())
        logger.info("session_key_revoked", owner=key.owner, key_id=key.id)
        return revoked

    def state(self, key: SessionKey, window_seconds: int = 0) -> SessionKeyState:
        if key.revoked:
            return SessionKeyState.REVOKED
        if not self.is_active(key):
            return SessionKeyState.EXPIRED
        if window_seconds > 0 and self.is_expiring_within(key, window_seconds):
            return SessionKeyState.EXPIRING_SOON
        return SessionKeyState.ACTIVE

    def describe(self, key: SessionKey, window_seconds: int = 0) -> dict[str, Any]:
        """Record plus derived fields for API responses."""
        out = key.to_dict()
        out["active"] = self.is_active(key)
        out["state"] = self.state(key, window_seconds).value
        out["timeRemaining"] = self.time_remaining(key)
        return out
