"""
AlpacaLotto contract client (web3.py).

Reads are plain eth_call; purchaseTicketsFor / claimPrizeFor are relayed
with the relayer key. Every failure surfaces as UpstreamFailure.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence

from web3 import Web3

from backend_alpacalotto.core.web3_client import Web3Client


class LotteryContractClient(Protocol):
    """Interface LotteryService depends on; tests provide an in-memory fake."""

    def lottery_counter(self) -> int: ...

    def get_lottery(self, lottery_id: int) -> Sequence[Any]: ...

    def get_user_tickets(self, user: str, lottery_id: int) -> list[int]: ...

    def get_ticket(self, lottery_id: int, ticket_number: int) -> Sequence[Any]: ...

    def is_winner(self, user: str, lottery_id: int) -> bool: ...

    def purchase_tickets_for(self, user: str, lottery_id: int, token_address: str, quantity: int) -> str: ...

    def claim_prize_for(self, user: str, lottery_id: int) -> str: ...


class LotteryContract(Web3Client):
    def __init__(self, rpc_url: str, contract_address: str, *, relayer_private_key: str = "", timeout_sec: float = 10.0) -> None:
        super().__init__(
            rpc_url,
            contract_address,
            "alpaca_lotto",
            private_key=relayer_private_key,
            timeout_sec=timeout_sec,
        )

    def lottery_counter(self) -> int:
        return int(self._call("lotteryCounter", lambda: self._contract.functions.lotteryCounter()))

    def get_lottery(self, lottery_id: int) -> Sequence[Any]:
        return self._call("getLottery", lambda: self._contract.functions.getLottery(lottery_id))

    def get_user_tickets(self, user: str, lottery_id: int) -> list[int]:
        numbers = self._call(
            "getUserTickets",
            lambda: self._contract.functions.getUserTickets(Web3.to_checksum_address(user), lottery_id),
        )
        return [int(n) for n in numbers]

    def get_ticket(self, lottery_id: int, ticket_number: int) -> Sequence[Any]:
        return self._call("tickets", lambda: self._contract.functions.tickets(lottery_id, ticket_number))

    def is_winner(self, user: str, lottery_id: int) -> bool:
        return bool(
            self._call(
                "isWinner",
                lambda: self._contract.functions.isWinner(Web3.to_checksum_address(user), lottery_id),
            )
        )

    def has_made_first_purchase(self, user: str) -> bool:
        return bool(
            self._call(
                "hasMadeFirstPurchase",
                lambda: self._contract.functions.hasMadeFirstPurchase(Web3.to_checksum_address(user)),
            )
        )

    def cumulative_tickets_purchased(self, user: str) -> int:
        return int(
            self._call(
                "cumulativeTicketsPurchased",
                lambda: self._contract.functions.cumulativeTicketsPurchased(Web3.to_checksum_address(user)),
            )
        )

    def purchase_tickets_for(self, user: str, lottery_id: int, token_address: str, quantity: int) -> str:
        return self._transact(
            "purchaseTicketsFor",
            lambda: self._contract.functions.purchaseTicketsFor(
                Web3.to_checksum_address(user),
                lottery_id,
                Web3.to_checksum_address(token_address),
                quantity,
            ),
        )

    def claim_prize_for(self, user: str, lottery_id: int) -> str:
        return self._transact(
            "claimPrizeFor",
            lambda: self._contract.functions.claimPrizeFor(Web3.to_checksum_address(user), lottery_id),
        )
