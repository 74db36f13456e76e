"""
Request bodies. Field aliases match the camelCase JSON the front-end sends.

Required fields are Optional here so the routes can answer missing ones with
the envelope's own messages instead of pydantic's.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class OptimizeTokenRequest(_Body):
    tokens: Any = None
    user_preferences: Any = Field(None, alias="userPreferences")


class PurchaseTicketsRequest(_Body):
    lottery_id: Any = Field(None, alias="lotteryId")
    token_address: str | None = Field(None, alias="tokenAddress")
    quantity: Any = None
    user_address: str | None = Field(None, alias="userAddress")
    signature: str | None = None


class ClaimPrizeRequest(_Body):
    lottery_id: Any = Field(None, alias="lotteryId")
    user_address: str | None = Field(None, alias="userAddress")
    signature: str | None = None


class CreateSessionKeyRequest(_Body):
    owner_address: str | None = Field(None, alias="ownerAddress")
    duration: Any = None
    session_key_address: str | None = Field(None, alias="sessionKeyAddress")
    signature: str | None = None


class RevokeSessionKeyRequest(_Body):
    owner_address: str | None = Field(None, alias="ownerAddress")
    session_key_address: str | None = Field(None, alias="sessionKeyAddress")
    signature: str | None = None


class ReferralRequest(_Body):
    current_user_aa: str | None = Field(None, alias="currentUserAA")
    referrer_aa: str | None = Field(None, alias="referrerAA")
