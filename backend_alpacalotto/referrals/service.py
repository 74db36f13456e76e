"""
One-time referral rewards.

Checks, in order: address format, self-referral, prior participation,
referee purchase history, referrer purchase threshold. Every rejection is
recorded as a failed attempt before InvalidInput is raised. An eligible
referral is claimed in the store before the referee is paid, so a referee
is rewarded at most once; if the referrer mint fails the same pair can
retry and only the referrer is paid. Requests for one referee are serialized.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from backend_alpacalotto.core.addresses import checksum, same_address
from backend_alpacalotto.core.exceptions import InvalidInput, UpstreamFailure
from backend_alpacalotto.lotto_logging import get_logger
from backend_alpacalotto.referrals.chain import RewardsChain
from backend_alpacalotto.referrals.store import STATUS_PARTIAL, LeaderboardEntry, ReferralStore

logger = get_logger(__name__)

ALREADY_REFERRED = "This user has already been referred. Each user can only be referred once."
REWARD_FAILED = "Referral processing error: reward distribution failed"


@dataclass(frozen=True)
class ReferralOutcome:
    referee_reward: Decimal
    referrer_reward: Decimal
    referee_tx_hash: str | None
    referrer_tx_hash: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentUserAAReward": str(self.referee_reward),
            "referrerAAReward": str(self.referrer_reward),
            "refereeTxHash": self.referee_tx_hash,
            "referrerTxHash": self.referrer_tx_hash,
        }


class ReferralService:
    def __init__(
        self,
        store: ReferralStore,
        chain: RewardsChain,
        *,
        referee_reward: Decimal = Decimal("50"),
        referrer_reward: Decimal = Decimal("100"),
        threshold_usdc: Decimal = Decimal("10"),
    ) -> None:
        self._store = store
        self._chain = chain
        self.referee_reward = referee_reward
        self.referrer_reward = referrer_reward
        self.threshold_usdc = threshold_usdc

    def _reject(self, referee: str, referrer: str, reason: str, message: str) -> InvalidInput:
        self._store.record_failure(referee, referrer, reason)
        return InvalidInput(message)

    def refer(self, current_user: str, referrer: str) -> ReferralOutcome:
        if not current_user or not referrer:
            raise InvalidInput("currentUserAA and referrerAA are required")
        referee = checksum(current_user, "currentUserAA")
        referrer = checksum(referrer, "referrerAA")
        if same_address(referee, referrer):
            raise InvalidInput("You cannot refer yourself")

        with self._store.referee_lock(referee):
            pending = self._store.open_referral(referee)
            if pending is not None and pending.status == STATUS_PARTIAL and same_address(pending.referrer, referrer):
                return self._pay_referrer(pending.id, referee, referrer, pending.referee_tx_hash)
            if pending is not None or self._store.has_participated(referee):
                raise self._reject(referee, referrer, "User has already been referred", ALREADY_REFERRED)
            if self._chain.has_made_first_purchase(referee):
                raise self._reject(
                    referee, referrer, "User has already made a purchase",
                    "Referral failed: you are not eligible because you have already made a purchase.",
                )
            purchased = self._chain.cumulative_purchases_usdc(referrer)
            if purchased < self.threshold_usdc:
                raise self._reject(
                    referee, referrer,
                    f"Referrer not qualified. Required: {self.threshold_usdc} USDC, Actual: {purchased} USDC.",
                    f"Referral failed: the referrer has not yet met the purchase threshold of {self.threshold_usdc} USDC.",
                )

            referral_id = self._store.claim(referee, referrer, self.referee_reward, self.referrer_reward)
            if referral_id is None:
                raise self._reject(referee, referrer, "User has already been referred", ALREADY_REFERRED)
            try:
                referee_tx = self._chain.mint_plt(referee, self.referee_reward) if self.referee_reward > 0 else None
            except UpstreamFailure as e:
                self._store.mark_failed(referral_id, e.message)
                raise UpstreamFailure(REWARD_FAILED) from e
            self._store.mark_referee_paid(referral_id, referee_tx)
            return self._pay_referrer(referral_id, referee, referrer, referee_tx)

    def _pay_referrer(self, referral_id: int, referee: str, referrer: str, referee_tx: str | None) -> ReferralOutcome:
        """Second half of a referral; a failure leaves it partial so a retry only pays the referrer."""
        try:
            referrer_tx = self._chain.mint_plt(referrer, self.referrer_reward) if self.referrer_reward > 0 else None
        except UpstreamFailure as e:
            self._store.note_partial_failure(referral_id, e.message)
            raise UpstreamFailure(REWARD_FAILED) from e
        self._store.mark_processed(referral_id, referrer_tx)
        logger.info("referral_rewarded", referee=referee, referrer=referrer, referral_id=referral_id)
        return ReferralOutcome(self.referee_reward, self.referrer_reward, referee_tx, referrer_tx)

    def leaderboard(self, limit: int = 10) -> list[LeaderboardEntry]:
        if limit <= 0 or limit > 100:
            raise InvalidInput("limit must be between 1 and 100")
        return self._store.top_referrers(limit)
