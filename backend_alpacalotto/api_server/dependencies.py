"""
Service container and FastAPI dependencies.

build_services() wires every collaborator from Settings once per process;
create_app() stores the container on app.state and routes pull the pieces
they need through Depends.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from backend_alpacalotto.auth import SignatureVerifier
from backend_alpacalotto.config import Settings
from backend_alpacalotto.database import Database
from backend_alpacalotto.lottery import LotteryContract, LotteryService
from backend_alpacalotto.lotto_logging import get_logger
from backend_alpacalotto.optimizer import TokenOptimizer, build_price_source
from backend_alpacalotto.referrals import ReferralService
from backend_alpacalotto.referrals.chain import PacaLuckToken, RewardsChain
from backend_alpacalotto.referrals.store import ReferralStore
from backend_alpacalotto.session_keys import SessionKeyManager
from backend_alpacalotto.session_keys.store import SessionKeyStore

logger = get_logger(__name__)


@dataclass
class Services:
    settings: Settings
    db: Database
    optimizer: TokenOptimizer
    session_keys: SessionKeyManager
    session_store: SessionKeyStore
    verifier: SignatureVerifier
    lottery: LotteryService
    referrals: ReferralService


def build_services(settings: Settings) -> Services:
    """Construct the production object graph. Creates tables if missing."""
    db = Database(settings.database_url)
    db.init_db()

    contract = LotteryContract(
        settings.rpc_url,
        settings.lottery_contract_address,
        relayer_private_key=settings.relayer_private_key,
        timeout_sec=settings.rpc_timeout_sec,
    )
    token = None
    if settings.plt_token_address:
        token = PacaLuckToken(
            settings.rpc_url,
            settings.plt_token_address,
            minter_private_key=settings.minter_private_key,
            timeout_sec=settings.rpc_timeout_sec,
        )

    services = Services(
        settings=settings,
        db=db,
        optimizer=TokenOptimizer(build_price_source(settings), reference_gas_usd=settings.reference_gas_usd),
        session_keys=SessionKeyManager(),
        session_store=SessionKeyStore(db),
        verifier=SignatureVerifier(allow_unsigned=settings.allow_unsigned_requests),
        lottery=LotteryService(contract, cache_ttl_sec=settings.lottery_cache_ttl_sec),
        referrals=ReferralService(
            ReferralStore(db),
            RewardsChain(contract, token, usdc_decimals=settings.usdc_decimals),
            referee_reward=settings.referee_reward_plt,
            referrer_reward=settings.referrer_reward_plt,
            threshold_usdc=settings.referrer_threshold_usdc,
        ),
    )
    logger.info("services_built", price_source=settings.price_source, environment=settings.environment)
    return services


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_optimizer(request: Request) -> TokenOptimizer:
    return get_services(request).optimizer


def get_lottery_service(request: Request) -> LotteryService:
    return get_services(request).lottery


def get_referral_service(request: Request) -> ReferralService:
    return get_services(request).referrals
