"""
Environment variable loading for AlpacaLotto.

- NERO_RPC_URL: NERO Chain RPC endpoint (default: testnet)
- LOTTERY_CONTRACT_ADDRESS: deployed AlpacaLotto contract
- PACALUCKTOKEN_CONTRACT_ADDRESS: PLT reward token
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is backend_alpacalotto/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

NERO_TESTNET_RPC_URL = "https://rpc-testnet.nerochain.io"
# Placeholder contract used when LOTTERY_CONTRACT_ADDRESS is unset; reads fail and fall back to mock data
DUMMY_CONTRACT_ADDRESS = "0x1234567890123456789012345678901234567890"

_TRUTHY = ("1", "true", "yes", "on")


def load_lotto_env() -> None:
    """Load .env from project root. Safe to call multiple times; existing env wins."""
    load_dotenv(_ENV_PATH, override=False)


def env_str(name: str, default: str = "") -> str:
    load_lotto_env()
    return (os.getenv(name) or "").strip() or default


def env_float(name: str, default: float) -> float:
    raw = env_str(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def env_int(name: str, default: int) -> int:
    raw = env_str(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def env_bool(name: str, default: bool = False) -> bool:
    raw = env_str(name).lower()
    if not raw:
        return default
    return raw in _TRUTHY


def get_nero_rpc_url() -> str:
    """Resolve RPC URL. Order: NERO_RPC_URL > RPC_URL > NERO testnet."""
    return env_str("NERO_RPC_URL") or env_str("RPC_URL") or NERO_TESTNET_RPC_URL


def get_lottery_contract_address() -> str:
    """LOTTERY_CONTRACT_ADDRESS (or legacy ALPACALOTTO_CONTRACT_ADDRESS), else the placeholder."""
    return (
        env_str("LOTTERY_CONTRACT_ADDRESS")
        or env_str("ALPACALOTTO_CONTRACT_ADDRESS")
        or DUMMY_CONTRACT_ADDRESS
    )


def get_default_sqlite_path() -> Path:
    return _ROOT / "alpaca_lotto.db"
