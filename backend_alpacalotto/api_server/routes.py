"""
Lottery, optimizer and transaction routes under /api.

Reads degrade to mock data (tagged source="mock") when the contract is
unreachable. Purchase and claim require a wallet signature and fail closed.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends

from backend_alpacalotto.api_server.dependencies import (
    Services,
    get_lottery_service,
    get_optimizer,
    get_services,
)
from backend_alpacalotto.api_server.schemas import (
    ClaimPrizeRequest,
    OptimizeTokenRequest,
    PurchaseTicketsRequest,
)
from backend_alpacalotto.auth.signatures import claim_message, purchase_message
from backend_alpacalotto.core.addresses import checksum
from backend_alpacalotto.core.exceptions import InvalidInput
from backend_alpacalotto.lottery import LotteryService
from backend_alpacalotto.lotto_logging import bind_owner, get_logger
from backend_alpacalotto.optimizer import TokenOptimizer
from backend_alpacalotto.optimizer.price_source import SUPPORTED_TOKENS

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["lottery"])

_DIGITS = re.compile(r"[0-9]+")
UINT256_MAX = 2**256 - 1


def parse_lottery_id(raw: Any) -> int:
    """Non-negative integer id (uint256) from a path segment or JSON value."""
    if isinstance(raw, bool):
        raise InvalidInput("Invalid lottery ID")
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and _DIGITS.fullmatch(raw.strip()):
        value = int(raw.strip())
    else:
        raise InvalidInput("Invalid lottery ID")
    if value < 0 or value > UINT256_MAX:
        raise InvalidInput("Invalid lottery ID")
    return value


def parse_quantity(raw: Any) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int) or raw <= 0 or raw > UINT256_MAX:
        raise InvalidInput("Quantity must be a positive integer")
    return raw


def health_payload() -> dict[str, Any]:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/health")
def api_health() -> dict[str, Any]:
    return health_payload()


@router.get("/supported-tokens")
def supported_tokens() -> dict[str, Any]:
    return {"success": True, "tokens": SUPPORTED_TOKENS}


@router.get("/lotteries")
def list_lotteries(lottery: LotteryService = Depends(get_lottery_service)) -> dict[str, Any]:
    result = lottery.list_lotteries()
    return {"success": True, "lotteries": [l.to_dict() for l in result.value], "source": result.source}


@router.get("/lotteries/active")
def list_active_lotteries(lottery: LotteryService = Depends(get_lottery_service)) -> dict[str, Any]:
    result = lottery.list_active()
    return {"success": True, "lotteries": [l.to_dict() for l in result.value], "source": result.source}


@router.get("/lottery/{lottery_id}")
def get_lottery(lottery_id: str, lottery: LotteryService = Depends(get_lottery_service)) -> dict[str, Any]:
    result = lottery.get_lottery(parse_lottery_id(lottery_id))
    return {"success": True, "lottery": result.value.to_dict(), "source": result.source}


@router.get("/lottery/{lottery_id}/tickets/{address}")
def get_user_tickets(
    lottery_id: str,
    address: str,
    lottery: LotteryService = Depends(get_lottery_service),
) -> dict[str, Any]:
    lid = parse_lottery_id(lottery_id)
    user = checksum(address, "address")
    result = lottery.user_tickets(user, lid)
    return {"success": True, "tickets": [t.to_dict() for t in result.value], "source": result.source}


@router.get("/lottery/{lottery_id}/winner/{address}")
def check_winner(
    lottery_id: str,
    address: str,
    lottery: LotteryService = Depends(get_lottery_service),
) -> dict[str, Any]:
    lid = parse_lottery_id(lottery_id)
    user = checksum(address, "address")
    result = lottery.is_winner(user, lid)
    return {"success": True, "isWinner": result.value, "source": result.source}


@router.post("/optimize-token")
def optimize_token(
    body: OptimizeTokenRequest,
    optimizer: TokenOptimizer = Depends(get_optimizer),
) -> dict[str, Any]:
    result = optimizer.find_optimal_token(body.tokens, body.user_preferences)
    if result.chosen is None:
        logger.info("optimize_token_no_choice", reason=result.reason, tokens=len(body.tokens))
    return {"success": True, **result.to_dict()}


def _session_key_signers(services: Services, owner: str) -> list[str]:
    """Addresses of the owner's active session keys."""
    keys = services.session_store.list_for_owner(owner)
    return [k.key_address for k in keys if k.key_address and services.session_keys.is_active(k)]


@router.post("/purchase-tickets")
def purchase_tickets(body: PurchaseTicketsRequest, services: Services = Depends(get_services)) -> dict[str, Any]:
    if body.lottery_id is None or not body.token_address or body.quantity is None or not body.user_address:
        raise InvalidInput("Please provide all required fields")
    lottery_id = parse_lottery_id(body.lottery_id)
    quantity = parse_quantity(body.quantity)
    token = checksum(body.token_address, "tokenAddress")
    user = checksum(body.user_address, "userAddress")
    log = bind_owner(user)
    log.info("purchase_requested", lottery_id=lottery_id, token=token, quantity=quantity)

    message = purchase_message(lottery_id, token, quantity)
    services.verifier.verify(message, body.signature, user, *_session_key_signers(services, user))
    tx_hash = services.lottery.purchase_tickets(user, lottery_id, token, quantity)
    return {"success": True, "message": "Ticket purchase submitted", "txHash": tx_hash}


@router.post("/claim-prize")
def claim_prize(body: ClaimPrizeRequest, services: Services = Depends(get_services)) -> dict[str, Any]:
    if body.lottery_id is None or not body.user_address:
        raise InvalidInput("Please provide all required fields")
    lottery_id = parse_lottery_id(body.lottery_id)
    user = checksum(body.user_address, "userAddress")
    log = bind_owner(user)
    log.info("claim_requested", lottery_id=lottery_id)

    services.verifier.verify(claim_message(lottery_id), body.signature, user)
    tx_hash = services.lottery.claim_prize(user, lottery_id)
    return {"success": True, "message": "Prize claim submitted", "txHash": tx_hash}
