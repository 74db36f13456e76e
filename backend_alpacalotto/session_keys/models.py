"""
Data models for session keys.

A session key is a time-bounded authorization letting a wallet transact
without signing each action. The server record is the authority for expiry.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class SessionKeyState(str, Enum):
    """Observed state; only `revoked` is stored, the rest derive from the clock."""

    ACTIVE = "active"
    EXPIRING_SOON = "expiring_soon"
    EXPIRED = "expired"
    REVOKED = "revoked"


@dataclass(frozen=True)
class SessionKey:
    """
    Immutable record. expires_at = created_at + duration_seconds, always.
    key_address is the public address of the client-generated key (optional).
    id is assigned by the store on first save.
    """

    owner: str
    created_at: int
    duration_seconds: int
    expires_at: int
    revoked: bool = False
    revoked_at: int | None = None
    key_address: str | None = None
    id: int | None = None

    def __post_init__(self) -> None:
        if self.duration_seconds <= 0:
            raise ValueError("duration_seconds must be > 0")
        if self.expires_at != self.created_at + self.duration_seconds:
            raise ValueError("expires_at must equal created_at + duration_seconds")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "owner": self.owner,
            "sessionKeyAddress": self.key_address,
            "createdAt": self.created_at,
            "duration": self.duration_seconds,
            "expiresAt": self.expires_at,
            "revoked": self.revoked,
            "revokedAt": self.revoked_at,
        }
