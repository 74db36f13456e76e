"""
Lottery Service Adapter: contract reads with mock fallback, relayed writes.
"""

from backend_alpacalotto.lottery.contract import LotteryContract, LotteryContractClient
from backend_alpacalotto.lottery.models import Lottery, LotteryStatus, Sourced, Ticket
from backend_alpacalotto.lottery.service import LotteryService

__all__ = [
    "Lottery",
    "LotteryContract",
    "LotteryContractClient",
    "LotteryService",
    "LotteryStatus",
    "Sourced",
    "Ticket",
]
