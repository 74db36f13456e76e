"""
Chain reads and PLT mints used by the referral flow.
"""

from __future__ import annotations

from decimal import Decimal

from web3 import Web3

from backend_alpacalotto.core.exceptions import UpstreamFailure
from backend_alpacalotto.core.web3_client import Web3Client
from backend_alpacalotto.lottery.contract import LotteryContract

PLT_DECIMALS = 18


def to_base_units(amount: Decimal, decimals: int) -> int:
    return int(amount.scaleb(decimals).to_integral_value())


def from_base_units(amount: int, decimals: int) -> Decimal:
    return Decimal(amount).scaleb(-decimals)


class PacaLuckToken(Web3Client):
    """PLT reward token; mint() is signed with the minter key."""

    def __init__(self, rpc_url: str, contract_address: str, *, minter_private_key: str = "", timeout_sec: float = 10.0) -> None:
        super().__init__(
            rpc_url,
            contract_address,
            "paca_luck_token",
            private_key=minter_private_key,
            timeout_sec=timeout_sec,
        )

    def mint(self, to: str, amount_wei: int) -> str:
        return self._transact(
            "mint",
            lambda: self._contract.functions.mint(Web3.to_checksum_address(to), amount_wei),
        )


class RewardsChain:
    """Purchase history from the lottery contract plus reward minting."""

    def __init__(self, lottery: LotteryContract | None, token: PacaLuckToken | None, *, usdc_decimals: int = 18) -> None:
        self._lottery = lottery
        self._token = token
        self._usdc_decimals = usdc_decimals

    def _require_lottery(self) -> LotteryContract:
        if self._lottery is None:
            raise UpstreamFailure("Lottery contract not configured")
        return self._lottery

    def has_made_first_purchase(self, user: str) -> bool:
        return self._require_lottery().has_made_first_purchase(user)

    def cumulative_purchases_usdc(self, user: str) -> Decimal:
        raw = self._require_lottery().cumulative_tickets_purchased(user)
        return from_base_units(raw, self._usdc_decimals)

    def mint_plt(self, to: str, amount: Decimal) -> str:
        if self._token is None:
            raise UpstreamFailure("PacaLuckToken contract not initialized for minting")
        return self._token.mint(to, to_base_units(amount, PLT_DECIMALS))
