"""
Referral rewards and the referral leaderboard.
"""

from backend_alpacalotto.referrals.service import ReferralOutcome, ReferralService

__all__ = ["ReferralOutcome", "ReferralService"]
