"""
Lottery Service Adapter.

Translates API reads into LotteryContract calls. The fetch_* methods raise
UpstreamFailure / NotFound; the public read methods used by the API catch
UpstreamFailure, serve the deterministic mock set and tag the result with
source="mock". Writes are relayed and fail closed.
"""

from __future__ import annotations

import time
from typing import Callable

from backend_alpacalotto.core.cache import TTLCache
from backend_alpacalotto.core.exceptions import InvalidInput, NotFound, UpstreamFailure
from backend_alpacalotto.lottery import mock_data
from backend_alpacalotto.lottery.contract import LotteryContractClient
from backend_alpacalotto.lottery.models import SOURCE_CONTRACT, SOURCE_MOCK, Lottery, Sourced, Ticket
from backend_alpacalotto.lotto_logging import get_logger

logger = get_logger(__name__)

_LOTTERIES_KEY = "lotteries"


def _system_clock() -> int:
    return int(time.time())


class LotteryService:
    def __init__(
        self,
        contract: LotteryContractClient | None,
        *,
        cache_ttl_sec: float = 60.0,
        clock: Callable[[], int] = _system_clock,
    ) -> None:
        self._contract = contract
        self._clock = clock
        self._cache = TTLCache(cache_ttl_sec)

    def now(self) -> int:
        return int(self._clock())

    def _require_contract(self) -> LotteryContractClient:
        if self._contract is None:
            raise UpstreamFailure("Lottery contract not configured")
        return self._contract

    # -- strict reads -------------------------------------------------------

    def fetch_lotteries(self) -> list[Lottery]:
        cached = self._cache.get(_LOTTERIES_KEY)
        if cached is not None:
            return cached
        contract = self._require_contract()
        now = self.now()
        lotteries = []
        for lottery_id in range(1, contract.lottery_counter() + 1):
            raw = contract.get_lottery(lottery_id)
            if int(raw[0]) == 0:
                continue
            lotteries.append(Lottery.from_contract(raw, now))
        self._cache.set(_LOTTERIES_KEY, lotteries)
        logger.info("lotteries_fetched", count=len(lotteries))
        return lotteries

    def fetch_lottery(self, lottery_id: int) -> Lottery:
        raw = self._require_contract().get_lottery(lottery_id)
        if int(raw[0]) == 0:
            raise NotFound("Lottery not found")
        return Lottery.from_contract(raw, self.now())

    def fetch_user_tickets(self, user: str, lottery_id: int) -> list[Ticket]:
        contract = self._require_contract()
        return [
            Ticket.from_contract(contract.get_ticket(lottery_id, number), number)
            for number in contract.get_user_tickets(user, lottery_id)
        ]

    def fetch_is_winner(self, user: str, lottery_id: int) -> bool:
        return self._require_contract().is_winner(user, lottery_id)

    # -- degrading reads (API) ---------------------------------------------

    def list_lotteries(self) -> Sourced:
        try:
            return Sourced(self.fetch_lotteries(), SOURCE_CONTRACT)
        except UpstreamFailure as e:
            logger.warning("lottery_fallback_mock", op="list_lotteries", error=e.message)
            return Sourced(mock_data.mock_lotteries(self.now()), SOURCE_MOCK)

    def list_active(self) -> Sourced:
        result = self.list_lotteries()
        now = self.now()
        active = [l for l in result.value if l.is_active(now)]
        return Sourced(active, result.source)

    def get_lottery(self, lottery_id: int) -> Sourced:
        """Raises NotFound when neither the contract nor the mock set has lottery_id."""
        try:
            return Sourced(self.fetch_lottery(lottery_id), SOURCE_CONTRACT)
        except UpstreamFailure as e:
            logger.warning("lottery_fallback_mock", op="get_lottery", lottery_id=lottery_id, error=e.message)
        lottery = mock_data.mock_lottery(lottery_id, self.now())
        if lottery is None:
            raise NotFound("Lottery not found")
        return Sourced(lottery, SOURCE_MOCK)

    def user_tickets(self, user: str, lottery_id: int) -> Sourced:
        try:
            return Sourced(self.fetch_user_tickets(user, lottery_id), SOURCE_CONTRACT)
        except UpstreamFailure as e:
            logger.warning("lottery_fallback_mock", op="user_tickets", lottery_id=lottery_id, error=e.message)
            return Sourced(mock_data.mock_tickets(lottery_id, user), SOURCE_MOCK)

    def is_winner(self, user: str, lottery_id: int) -> Sourced:
        try:
            return Sourced(self.fetch_is_winner(user, lottery_id), SOURCE_CONTRACT)
        except UpstreamFailure as e:
            logger.warning("lottery_fallback_mock", op="is_winner", lottery_id=lottery_id, error=e.message)
            return Sourced(mock_data.mock_is_winner(lottery_id, user), SOURCE_MOCK)

    # -- writes ------------------------------------------------------------

    def purchase_tickets(self, user: str, lottery_id: int, token_address: str, quantity: int) -> str:
        if quantity <= 0:
            raise InvalidInput("Quantity must be a positive integer")
        tx_hash = self._require_contract().purchase_tickets_for(user, lottery_id, token_address, quantity)
        self._cache.clear()
        logger.info("tickets_purchased", lottery_id=lottery_id, user=user, quantity=quantity, tx_hash=tx_hash)
        return tx_hash

    def claim_prize(self, user: str, lottery_id: int) -> str:
        tx_hash = self._require_contract().claim_prize_for(user, lottery_id)
        self._cache.clear()
        logger.info("prize_claimed", lottery_id=lottery_id, user=user, tx_hash=tx_hash)
        return tx_hash
