"""
Pytest fixtures for AlpacaLotto tests. Uses a temporary SQLite DB, a fixed
clock and in-memory fakes for the lottery contract and reward chain.
"""

from __future__ import annotations

import time
from decimal import Decimal

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from web3 import Web3

from backend_alpacalotto.core.exceptions import UpstreamFailure

NOW = 1_700_000_000
DAI = "0x6b175474e89094c44da98b954eedeac495271d0f"
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
USDT = "0xdac17f958d2ee523a2206206994597c13d831ec7"


class FixedClock:
    """Callable clock returning integer Unix seconds; advance() moves it forward."""

    def __init__(self, now: int = NOW) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


def lottery_tuple(lottery_id, name="Weekly Jackpot", start=NOW - 3600, end=NOW + 3600, drawn=False, winners=()):
    """getLottery struct in ABI order."""
    return (
        lottery_id,
        name,
        10 * 10**18,
        start,
        end,
        end + 3600,
        [USDC, DAI],
        12,
        120 * 10**18,
        drawn,
        list(winners),
        [7] if winners else [],
    )


class FakeLotteryContract:
    """In-memory AlpacaLotto contract. Set fail=True to simulate an unreachable node."""

    def __init__(self) -> None:
        self.lotteries: dict[int, tuple] = {}
        self.tickets: dict[tuple[str, int], list[int]] = {}
        self.ticket_rows: dict[tuple[int, int], tuple] = {}
        self.winners: set[tuple[str, int]] = set()
        self.first_purchase: set[str] = set()
        self.cumulative: dict[str, int] = {}
        self.purchases: list[tuple] = []
        self.claims: list[tuple] = []
        self.fail = False
        self.fail_writes = False
        self.calls = 0

    def _check(self) -> None:
        self.calls += 1
        if self.fail:
            raise UpstreamFailure("Contract call failed")

    def lottery_counter(self) -> int:
        self._check()
        return max(self.lotteries, default=0)

    def get_lottery(self, lottery_id: int) -> tuple:
        self._check()
        return self.lotteries.get(lottery_id) or lottery_tuple(0, name="")

    def get_user_tickets(self, user: str, lottery_id: int) -> list[int]:
        self._check()
        return list(self.tickets.get((user.lower(), lottery_id), []))

    def get_ticket(self, lottery_id: int, ticket_number: int) -> tuple:
        self._check()
        return self.ticket_rows[(lottery_id, ticket_number)]

    def is_winner(self, user: str, lottery_id: int) -> bool:
        self._check()
        return (user.lower(), lottery_id) in self.winners

    def has_made_first_purchase(self, user: str) -> bool:
        self._check()
        return user.lower() in self.first_purchase

    def cumulative_tickets_purchased(self, user: str) -> int:
        self._check()
        return self.cumulative.get(user.lower(), 0)

    def purchase_tickets_for(self, user, lottery_id, token_address, quantity) -> str:
        self._check()
        if self.fail_writes:
            raise UpstreamFailure("Transaction purchaseTicketsFor reverted")
        self.purchases.append((user, lottery_id, token_address, quantity))
        return "0x" + "ab" * 32

    def claim_prize_for(self, user, lottery_id) -> str:
        self._check()
        if self.fail_writes:
            raise UpstreamFailure("Transaction claimPrizeFor reverted")
        self.claims.append((user, lottery_id))
        return "0x" + "cd" * 32


class FakeRewardsChain:
    """Purchase history and PLT mints for the referral flow."""

    def __init__(self) -> None:
        self.purchased: set[str] = set()
        self.cumulative_usdc: dict[str, Decimal] = {}
        self.minted: list[tuple[str, Decimal]] = []
        self.fail_mint = False
        self.fail_mint_to: set[str] = set()
        self.check_delay = 0.0

    def has_made_first_purchase(self, user: str) -> bool:
        if self.check_delay:
            time.sleep(self.check_delay)
        return user.lower() in self.purchased

    def cumulative_purchases_usdc(self, user: str) -> Decimal:
        return self.cumulative_usdc.get(user.lower(), Decimal("0"))

    def mint_plt(self, to: str, amount: Decimal) -> str:
        if self.fail_mint or to.lower() in self.fail_mint_to:
            raise UpstreamFailure("PacaLuckToken contract not initialized for minting")
        self.minted.append((to, amount))
        return "0x" + f"{len(self.minted):064x}"


def sign(account, message: str) -> str:
    """0x-hex personal-sign signature of message by account."""
    return Web3.to_hex(account.sign_message(encode_defunct(text=message)).signature)


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Fresh SQLite database with all tables created. Unset DATABASE_URL so we use SQLite."""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    from backend_alpacalotto.database import Database

    database = Database(f"sqlite:///{tmp_path / 'alpaca_lotto.db'}")
    database.init_db()
    yield database
    database.dispose()


@pytest.fixture
def fake_contract():
    contract = FakeLotteryContract()
    contract.lotteries[1] = lottery_tuple(1, "Weekly Jackpot")
    contract.lotteries[2] = lottery_tuple(2, "Next Week", start=NOW + 3600, end=NOW + 7200)
    return contract


@pytest.fixture
def fake_chain():
    return FakeRewardsChain()


@pytest.fixture
def owner():
    return Account.create()


@pytest.fixture
def services(db, clock, fake_contract, fake_chain):
    from backend_alpacalotto.api_server.dependencies import Services
    from backend_alpacalotto.auth import SignatureVerifier
    from backend_alpacalotto.config import Settings
    from backend_alpacalotto.lottery import LotteryService
    from backend_alpacalotto.optimizer import StaticPriceSource, TokenOptimizer
    from backend_alpacalotto.referrals import ReferralService
    from backend_alpacalotto.referrals.store import ReferralStore
    from backend_alpacalotto.session_keys import SessionKeyManager
    from backend_alpacalotto.session_keys.store import SessionKeyStore

    return Services(
        settings=Settings(database_url=db.url),
        db=db,
        optimizer=TokenOptimizer(StaticPriceSource()),
        session_keys=SessionKeyManager(clock=clock),
        session_store=SessionKeyStore(db),
        verifier=SignatureVerifier(),
        lottery=LotteryService(fake_contract, cache_ttl_sec=60, clock=clock),
        referrals=ReferralService(ReferralStore(db), fake_chain),
    )


@pytest.fixture
def client(services):
    """FastAPI TestClient over the injected services; unhandled errors become 500 responses."""
    from fastapi.testclient import TestClient

    from backend_alpacalotto.api_server.server import create_app

    return TestClient(create_app(services=services), raise_server_exceptions=False)
