"""
Deterministic stand-in lotteries and tickets served when the contract is unreachable.

Times are relative to the supplied clock so the set always contains running,
short-lived and finished lotteries.
"""

from __future__ import annotations

from backend_alpacalotto.lottery.models import Lottery, Ticket, lottery_status
from backend_alpacalotto.optimizer.price_source import DAI, USDC, USDT

MOCK_TOKENS = [DAI, USDC, USDT]
MOCK_WINNER = "0x1234567890123456789012345678901234567890"

DAY = 86400
HOUR = 3600

# (id, name, price, start, end, draw offsets, total tickets, pool, drawn)
_MOCK_ROWS = [
    (1, "Weekly Jackpot", 10, -DAY, 6 * DAY, 7 * DAY, 120, 1200, False),
    (2, "Daily Draw", 5, -HOUR, 23 * HOUR, DAY, 75, 375, False),
    (3, "Flash Lottery", 2, -1800, 1800, HOUR, 30, 60, False),
    (4, "Past Lottery", 5, -2 * DAY, -DAY, -23 * HOUR, 100, 500, True),
]


def mock_lotteries(now: int) -> list[Lottery]:
    out = []
    for lid, name, price, start, end, draw, total, pool, drawn in _MOCK_ROWS:
        out.append(
            Lottery(
                id=lid,
                name=name,
                ticket_price=price,
                start_time=now + start,
                end_time=now + end,
                draw_time=now + draw,
                supported_tokens=list(MOCK_TOKENS),
                total_tickets=total,
                prize_pool=pool,
                drawn=drawn,
                status=lottery_status(now + start, now + end, drawn, now),
                winners=[MOCK_WINNER] if drawn else [],
                winning_tickets=[42] if drawn else [],
            )
        )
    return out


def mock_lottery(lottery_id: int, now: int) -> Lottery | None:
    return next((l for l in mock_lotteries(now) if l.id == lottery_id), None)


def mock_tickets(lottery_id: int, user: str) -> list[Ticket]:
    """Three tickets for known mock lotteries, none otherwise."""
    lottery = mock_lottery(lottery_id, 0)
    if lottery is None:
        return []
    base = lottery_id * 1000
    return [
        Ticket(
            lottery_id=lottery_id,
            ticket_number=base + i,
            user=user,
            payment_token=MOCK_TOKENS[i % len(MOCK_TOKENS)],
            amount_paid=lottery.ticket_price,
        )
        for i in range(1, 4)
    ]


def mock_is_winner(lottery_id: int, user: str) -> bool:
    lottery = mock_lottery(lottery_id, 0)
    return lottery is not None and any(w.lower() == user.lower() for w in lottery.winners)
