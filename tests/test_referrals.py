"""
Tests for referral rules, reward minting and the leaderboard (temporary SQLite DB).
"""

from __future__ import annotations

import threading
from decimal import Decimal

import pytest

from backend_alpacalotto.core.exceptions import InvalidInput, UpstreamFailure
from backend_alpacalotto.referrals import ReferralService
from backend_alpacalotto.referrals.chain import from_base_units, to_base_units
from backend_alpacalotto.referrals.store import ReferralRow, ReferralStore

REFEREE = "0x71C7656EC7ab88b098defB751B7401B5f6d8976F"
REFERRER = "0xAb5801a7D398351b8bE11C439e05C5B3259aeC9B"
OTHER = "0x1111111111111111111111111111111111111111"


@pytest.fixture
def store(db):
    return ReferralStore(db)


@pytest.fixture
def service(store, fake_chain):
    fake_chain.cumulative_usdc[REFERRER.lower()] = Decimal("25")
    fake_chain.cumulative_usdc[OTHER.lower()] = Decimal("10")
    return ReferralService(store, fake_chain)


def _rows(db):
    with db.session_scope() as session:
        return [(r.referee, r.status, r.reason) for r in session.query(ReferralRow).order_by(ReferralRow.id)]


def test_successful_referral_mints_both_sides(service, fake_chain, db):
    outcome = service.refer(REFEREE.lower(), REFERRER)
    assert fake_chain.minted == [(REFEREE, Decimal("50")), (REFERRER, Decimal("100"))]
    assert outcome.to_dict()["currentUserAAReward"] == "50"
    assert outcome.referee_tx_hash and outcome.referrer_tx_hash
    assert _rows(db) == [(REFEREE.lower(), "processed", None)]


def test_self_referral_rejected(service):
    with pytest.raises(InvalidInput, match="yourself"):
        service.refer(REFEREE, REFEREE.lower())


def test_invalid_address_rejected(service):
    with pytest.raises(InvalidInput, match="Invalid currentUserAA"):
        service.refer("0x123", REFERRER)
    with pytest.raises(InvalidInput, match="required"):
        service.refer("", REFERRER)


def test_repeat_referral_rejected_and_recorded(service, db):
    service.refer(REFEREE, REFERRER)
    with pytest.raises(InvalidInput, match="already been referred"):
        service.refer(REFEREE, OTHER)
    # a referrer cannot later be referred either
    with pytest.raises(InvalidInput, match="already been referred"):
        service.refer(REFERRER, OTHER)
    assert [r[1] for r in _rows(db)] == ["processed", "failed", "failed"]


def test_failed_attempt_does_not_block_later_referral(service, fake_chain):
    fake_chain.cumulative_usdc[REFERRER.lower()] = Decimal("1")
    with pytest.raises(InvalidInput):
        service.refer(REFEREE, REFERRER)
    fake_chain.cumulative_usdc[REFERRER.lower()] = Decimal("10")
    service.refer(REFEREE, REFERRER)


def test_referee_who_purchased_is_ineligible(service, fake_chain, db):
    fake_chain.purchased.add(REFEREE.lower())
    with pytest.raises(InvalidInput, match="already made a purchase"):
        service.refer(REFEREE, REFERRER)
    assert _rows(db)[0][2] == "User has already made a purchase"
    assert fake_chain.minted == []


def test_unqualified_referrer_rejected(service, fake_chain, db):
    fake_chain.cumulative_usdc[REFERRER.lower()] = Decimal("9.99")
    with pytest.raises(InvalidInput, match="threshold of 10 USDC"):
        service.refer(REFEREE, REFERRER)
    assert "Actual: 9.99 USDC" in _rows(db)[0][2]


def test_mint_failure_is_upstream_failure(service, fake_chain, db):
    fake_chain.fail_mint = True
    with pytest.raises(UpstreamFailure, match="reward distribution"):
        service.refer(REFEREE, REFERRER)
    assert _rows(db)[0][1] == "failed"


def test_leaderboard_orders_by_referral_count(service, fake_chain):
    fake_chain.cumulative_usdc[REFEREE.lower()] = Decimal("100")
    service.refer("0x3333333333333333333333333333333333333333", OTHER)
    service.refer("0x4444444444444444444444444444444444444444", REFERRER)
    service.refer("0x5555555555555555555555555555555555555555", REFERRER)
    board = service.leaderboard()
    assert [(e.referrer, e.referrals) for e in board] == [(REFERRER.lower(), 2), (OTHER.lower(), 1)]
    assert board[0].total_rewards == Decimal("200")
    assert board[0].to_dict()["totalRewards"] == "200"


def test_leaderboard_limit_validated(service):
    with pytest.raises(InvalidInput):
        service.leaderboard(0)


def test_unit_conversion():
    assert to_base_units(Decimal("50"), 18) == 50 * 10**18
    assert from_base_units(10 * 10**6, 6) == Decimal("10")


def test_referrer_mint_failure_retry_pays_only_referrer(service, fake_chain, db):
    fake_chain.fail_mint_to.add(REFERRER.lower())
    with pytest.raises(UpstreamFailure, match="reward distribution"):
        service.refer(REFEREE, REFERRER)
    assert fake_chain.minted == [(REFEREE, Decimal("50"))]
    assert _rows(db)[0][1] == "partial"

    fake_chain.fail_mint_to.clear()
    outcome = service.refer(REFEREE, REFERRER)
    assert fake_chain.minted == [(REFEREE, Decimal("50")), (REFERRER, Decimal("100"))]
    assert outcome.referee_tx_hash == "0x" + f"{1:064x}"
    assert [r[1] for r in _rows(db)] == ["processed"]
    assert [(e.referrer, e.referrals) for e in service.leaderboard()] == [(REFERRER.lower(), 1)]


def test_partially_paid_referee_cannot_switch_referrer(service, fake_chain, db):
    fake_chain.fail_mint_to.add(REFERRER.lower())
    with pytest.raises(UpstreamFailure):
        service.refer(REFEREE, REFERRER)
    with pytest.raises(InvalidInput, match="already been referred"):
        service.refer(REFEREE, OTHER)
    assert [to for to, _ in fake_chain.minted] == [REFEREE]


def test_store_allows_one_open_claim_per_referee(store):
    assert store.claim(REFEREE, REFERRER, Decimal("50"), Decimal("100")) is not None
    assert store.claim(REFEREE.lower(), OTHER, Decimal("50"), Decimal("100")) is None
    assert store.has_participated(REFEREE)


def test_concurrent_referrals_for_one_referee_mint_once(service, fake_chain):
    fake_chain.check_delay = 0.3
    results: list[str] = []

    def attempt() -> None:
        try:
            service.refer(REFEREE, REFERRER)
            results.append("ok")
        except InvalidInput:
            results.append("rejected")

    threads = [threading.Thread(target=attempt) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)
    assert sorted(results) == ["ok", "rejected"]
    assert fake_chain.minted == [(REFEREE, Decimal("50")), (REFERRER, Decimal("100"))]
