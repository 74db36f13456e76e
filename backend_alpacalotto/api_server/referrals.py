"""
Referral rewards and the referral leaderboard.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from backend_alpacalotto.api_server.dependencies import get_referral_service
from backend_alpacalotto.api_server.schemas import ReferralRequest
from backend_alpacalotto.referrals import ReferralService

router = APIRouter(prefix="/api", tags=["referrals"])


@router.post("/referral")
def handle_referral(body: ReferralRequest, referrals: ReferralService = Depends(get_referral_service)) -> dict[str, Any]:
    outcome = referrals.refer(body.current_user_aa or "", body.referrer_aa or "")
    return {
        "success": True,
        "message": "Referral recorded successfully! Rewards have been sent.",
        "data": outcome.to_dict(),
    }


@router.get("/leaderboard/referrals")
def referral_leaderboard(
    limit: int = Query(10, ge=1, le=100),
    referrals: ReferralService = Depends(get_referral_service),
) -> dict[str, Any]:
    return {"success": True, "leaderboard": [e.to_dict() for e in referrals.leaderboard(limit)]}
