"""
Data models for lotteries and tickets relayed from the AlpacaLotto contract.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence

SOURCE_CONTRACT = "contract"
SOURCE_MOCK = "mock"


class LotteryStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"
    DRAWN = "drawn"


def lottery_status(start_time: int, end_time: int, drawn: bool, now: int) -> LotteryStatus:
    """drawn wins; active while start <= now < end; anything else is closed."""
    if drawn:
        return LotteryStatus.DRAWN
    if start_time <= now < end_time:
        return LotteryStatus.ACTIVE
    return LotteryStatus.CLOSED


@dataclass(frozen=True)
class Lottery:
    id: int
    name: str
    ticket_price: int
    start_time: int
    end_time: int
    draw_time: int
    supported_tokens: list[str]
    total_tickets: int
    prize_pool: int
    drawn: bool
    status: LotteryStatus
    winners: list[str] = field(default_factory=list)
    winning_tickets: list[int] = field(default_factory=list)

    def is_active(self, now: int) -> bool:
        return self.start_time <= now < self.end_time

    @classmethod
    def from_contract(cls, raw: Sequence[Any], now: int) -> Lottery:
        """Build from the getLottery struct tuple (ABI component order)."""
        (lid, name, ticket_price, start, end, draw, tokens, total, pool, drawn, winners, winning) = raw
        return cls(
            id=int(lid),
            name=str(name),
            ticket_price=int(ticket_price),
            start_time=int(start),
            end_time=int(end),
            draw_time=int(draw),
            supported_tokens=[str(t) for t in tokens],
            total_tickets=int(total),
            prize_pool=int(pool),
            drawn=bool(drawn),
            status=lottery_status(int(start), int(end), bool(drawn), now),
            winners=[str(w) for w in (winners or [])],
            winning_tickets=[int(t) for t in (winning or [])],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "ticketPrice": self.ticket_price,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "drawTime": self.draw_time,
            "supportedTokens": self.supported_tokens,
            "totalTickets": self.total_tickets,
            "prizePool": self.prize_pool,
            "poolSize": self.prize_pool,
            "drawn": self.drawn,
            "winners": self.winners,
            "winningTickets": self.winning_tickets,
        }


@dataclass(frozen=True)
class Ticket:
    lottery_id: int
    ticket_number: int
    user: str
    payment_token: str
    amount_paid: int

    @classmethod
    def from_contract(cls, raw: Sequence[Any], ticket_number: int) -> Ticket:
        lottery_id, user, payment_token, amount_paid = raw
        return cls(
            lottery_id=int(lottery_id),
            ticket_number=int(ticket_number),
            user=str(user),
            payment_token=str(payment_token),
            amount_paid=int(amount_paid),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "lotteryId": self.lottery_id,
            "ticketNumber": self.ticket_number,
            "user": self.user,
            "paymentToken": self.payment_token,
            # string: uint256 amounts exceed JS number precision
            "amountPaid": str(self.amount_paid),
        }


@dataclass(frozen=True)
class Sourced:
    """A read result plus where it came from (contract or mock fallback)."""

    value: Any
    source: str = SOURCE_CONTRACT
