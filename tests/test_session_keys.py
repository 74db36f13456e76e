"""
Tests for the session key lifecycle under a fixed clock.
"""

from __future__ import annotations

import pytest

from backend_alpacalotto.core.exceptions import InvalidDuration, InvalidInput
from backend_alpacalotto.session_keys import SessionKey, SessionKeyManager, SessionKeyState
from tests.conftest import NOW, FixedClock

OWNER = "0x71c7656ec7ab88b098defb751b7401b5f6d8976f"


@pytest.fixture
def manager(clock):
    return SessionKeyManager(clock=clock)


def test_create_sets_expiry_from_now(manager):
    key = manager.create(OWNER, 3600)
    assert key.created_at == NOW
    assert key.expires_at == NOW + 3600
    assert key.owner == "0x71C7656EC7ab88b098defB751B7401B5f6d8976F"
    assert manager.is_active(key)
    assert manager.time_remaining(key) == 3600


@pytest.mark.parametrize("duration", [0, -5, 1.5, "60", None, True])
def test_create_rejects_bad_duration(manager, duration):
    with pytest.raises(InvalidDuration):
        manager.create(OWNER, duration)


def test_invalid_duration_is_invalid_input(manager):
    with pytest.raises(InvalidInput):
        manager.create(OWNER, 0)


def test_create_rejects_bad_owner(manager):
    with pytest.raises(InvalidInput, match="owner address"):
        manager.create("not-an-address", 60)


def test_expires_exactly_at_expiry(clock, manager):
    key = manager.create(OWNER, 60)
    clock.advance(59)
    assert manager.is_active(key)
    assert manager.time_remaining(key) == 1
    clock.advance(1)
    assert not manager.is_active(key)
    assert manager.time_remaining(key) == 0
    clock.advance(1000)
    assert manager.time_remaining(key) == 0


def test_revoke_is_idempotent_and_wins_over_remaining_time(clock, manager):
    key = manager.create(OWNER, 3600)
    revoked = manager.revoke(key)
    assert revoked.revoked is True
    assert revoked.revoked_at == NOW
    assert not manager.is_active(revoked)
    assert manager.time_remaining(revoked) == 3600
    clock.advance(10)
    again = manager.revoke(revoked)
    assert again == revoked
    assert key.revoked is False


def test_expiring_within_window(clock, manager):
    key = manager.create(OWNER, 600)
    assert not manager.is_expiring_within(key, 300)
    clock.advance(300)
    assert manager.is_expiring_within(key, 300)
    clock.advance(300)
    assert not manager.is_expiring_within(key, 300)


def test_state_transitions(clock, manager):
    key = manager.create(OWNER, 600)
    assert manager.state(key, 60) is SessionKeyState.ACTIVE
    clock.advance(550)
    assert manager.state(key, 60) is SessionKeyState.EXPIRING_SOON
    assert manager.state(key) is SessionKeyState.ACTIVE
    clock.advance(50)
    assert manager.state(key, 60) is SessionKeyState.EXPIRED


def test_revoked_takes_precedence_over_expired(clock, manager):
    key = manager.revoke(manager.create(OWNER, 60))
    clock.advance(120)
    assert manager.state(key) is SessionKeyState.REVOKED


def test_describe_adds_derived_fields():
    clock = FixedClock()
    manager = SessionKeyManager(clock=clock)
    key = manager.create(OWNER, 100, key_address="0x2222222222222222222222222222222222222222")
    clock.advance(40)
    out = manager.describe(key, 90)
    assert out["active"] is True
    assert out["state"] == "expiring_soon"
    assert out["timeRemaining"] == 60
    assert out["expiresAt"] == NOW + 100
    assert out["sessionKeyAddress"] == "0x2222222222222222222222222222222222222222"


def test_record_invariants_enforced():
    with pytest.raises(ValueError):
        SessionKey(owner=OWNER, created_at=NOW, duration_seconds=0, expires_at=NOW)
    with pytest.raises(ValueError):
        SessionKey(owner=OWNER, created_at=NOW, duration_seconds=10, expires_at=NOW + 5)


def test_five_minute_key_window_scenario(manager):
    """300 s key: expiring within 300 s right away, not within 60 s."""
    key = manager.create(OWNER, 300)
    assert manager.time_remaining(key) == 300
    assert manager.is_expiring_within(key, 300) is True
    assert manager.is_expiring_within(key, 60) is False
