"""
Application settings and environment configuration.

- Load configuration from environment variables and the project .env file.
- Validate numeric settings and provide defaults for optional ones.
- Expose a typed Settings object (RPC URL, contract addresses, database URL,
  cache TTLs, referral rewards, ...) for the API server and services.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from backend_alpacalotto.config.env import (
    DUMMY_CONTRACT_ADDRESS,
    env_bool,
    env_float,
    env_int,
    env_str,
    get_default_sqlite_path,
    get_lottery_contract_address,
    get_nero_rpc_url,
)

DEFAULT_CORS_ORIGINS = (
    "http://localhost:3000",
    "http://localhost:3001",
    "https://alpaca-lotto.vercel.app",
)

DEFAULT_PRICE_API_URL = "https://api.coingecko.com/api/v3"


@dataclass(frozen=True)
class Settings:
    """Typed runtime configuration. Build with get_settings(); override fields in tests."""

    rpc_url: str = "https://rpc-testnet.nerochain.io"
    lottery_contract_address: str = DUMMY_CONTRACT_ADDRESS
    plt_token_address: str = ""
    relayer_private_key: str = ""
    minter_private_key: str = ""
    rpc_timeout_sec: float = 10.0

    database_url: str = "sqlite:///alpaca_lotto.db"

    price_source: str = "mock"  # mock | coingecko
    price_api_url: str = DEFAULT_PRICE_API_URL
    price_api_key: str = ""
    price_cache_ttl_sec: float = 300.0
    lottery_cache_ttl_sec: float = 60.0
    reference_gas_usd: Decimal = Decimal("0.50")

    referee_reward_plt: Decimal = Decimal("50")
    referrer_reward_plt: Decimal = Decimal("100")
    referrer_threshold_usdc: Decimal = Decimal("10")
    usdc_decimals: int = 18

    allow_unsigned_requests: bool = False
    cors_origins: tuple[str, ...] = field(default=DEFAULT_CORS_ORIGINS)
    api_host: str = "0.0.0.0"
    api_port: int = 3001
    environment: str = "development"

    def missing(self) -> list[str]:
        """Names of settings a production deployment is expected to set."""
        out: list[str] = []
        if self.lottery_contract_address == DUMMY_CONTRACT_ADDRESS:
            out.append("LOTTERY_CONTRACT_ADDRESS")
        if not self.relayer_private_key:
            out.append("RELAYER_PRIVATE_KEY")
        if not self.plt_token_address:
            out.append("PACALUCKTOKEN_CONTRACT_ADDRESS")
        if not self.minter_private_key:
            out.append("MINTER_PRIVATE_KEY")
        return out


def _env_decimal(name: str, default: str) -> Decimal:
    raw = env_str(name, default)
    try:
        return Decimal(raw)
    except InvalidOperation:
        raise ValueError(f"{name} must be a decimal number, got {raw!r}") from None


def _database_url() -> str:
    url = env_str("DATABASE_URL")
    if url:
        return url
    path = env_str("DB_PATH") or str(get_default_sqlite_path())
    return f"sqlite:///{path}"


def _cors_origins() -> tuple[str, ...]:
    origins = list(DEFAULT_CORS_ORIGINS)
    frontend = env_str("FRONTEND_URL")
    if frontend:
        origins.append(frontend)
    return tuple(origins)


def get_settings() -> Settings:
    """
    Return the current application settings read from the environment.

    Raises:
        ValueError: if a numeric setting cannot be parsed.
    """
    return Settings(
        rpc_url=get_nero_rpc_url(),
        lottery_contract_address=get_lottery_contract_address(),
        plt_token_address=env_str("PACALUCKTOKEN_CONTRACT_ADDRESS"),
        relayer_private_key=env_str("RELAYER_PRIVATE_KEY"),
        minter_private_key=env_str("MINTER_PRIVATE_KEY"),
        rpc_timeout_sec=env_float("RPC_TIMEOUT_SEC", 10.0),
        database_url=_database_url(),
        price_source=env_str("PRICE_SOURCE", "mock").lower(),
        price_api_url=env_str("PRICE_API_URL", DEFAULT_PRICE_API_URL),
        price_api_key=env_str("PRICE_API_KEY"),
        price_cache_ttl_sec=env_float("PRICE_CACHE_TTL_SEC", 300.0),
        lottery_cache_ttl_sec=env_float("LOTTERY_CACHE_TTL_SEC", 60.0),
        reference_gas_usd=_env_decimal("REFERENCE_GAS_USD", "0.50"),
        referee_reward_plt=_env_decimal("REFEREE_REWARD_PLT", "50"),
        referrer_reward_plt=_env_decimal("REFERRER_REWARD_PLT", "100"),
        referrer_threshold_usdc=_env_decimal("REFERRER_QUALIFICATION_USDC_THRESHOLD", "10"),
        usdc_decimals=env_int("USDC_DECIMALS", 18),
        allow_unsigned_requests=env_bool("ALLOW_UNSIGNED_REQUESTS", False),
        cors_origins=_cors_origins(),
        api_host=env_str("API_HOST", "0.0.0.0"),
        api_port=env_int("PORT", 3001),
        environment=env_str("APP_ENV", "development"),
    )
