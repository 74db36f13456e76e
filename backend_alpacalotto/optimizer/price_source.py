"""
Token price / liquidity source for the gas optimizer.

StaticPriceSource serves a fixed table of well-known ERC-20s (demo and tests).
CoinGeckoPriceSource fetches USD prices over HTTP and takes liquidity
(slippage) and volatility from the static table. CachedPriceSource wraps either
with a per-address TTL cache. Unknown tokens get no price and are excluded by
the optimizer rather than priced at random.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Protocol

import requests

from backend_alpacalotto.config import Settings
from backend_alpacalotto.core.cache import TTLCache
from backend_alpacalotto.lotto_logging import get_logger

logger = get_logger(__name__)

# Slippage (%) assumed for tokens with no liquidity data: worst case of the known range
DEFAULT_SLIPPAGE_PCT = Decimal("5")

DAI = "0x6b175474e89094c44da98b954eedeac495271d0f"
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
USDT = "0xdac17f958d2ee523a2206206994597c13d831ec7"
WBTC = "0x2260fac5e5542a773aa44fbcfedf7c193bc2c599"
WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
UNI = "0x1f9840a85d5af5bf1d1762f925bdaddc4201f984"
AAVE = "0x7fc66500c84a76ad7e9c93437bfc5ac33e2ddae9"
YFI = "0x0bc529c00c6401aef6d220be8c6ea1667f6ad93e"


@dataclass(frozen=True)
class PriceQuote:
    """USD price per whole token, expected swap slippage (%) and 24h volatility (%)."""

    price_usd: Decimal
    slippage_pct: Decimal = DEFAULT_SLIPPAGE_PCT
    volatility_pct: Decimal | None = None


# address -> (price, slippage %, 24h volatility %)
STATIC_QUOTES: dict[str, PriceQuote] = {
    DAI: PriceQuote(Decimal("1.0"), Decimal("0.1"), Decimal("0.2")),
    USDC: PriceQuote(Decimal("1.0"), Decimal("0.05"), Decimal("0.1")),
    USDT: PriceQuote(Decimal("1.0"), Decimal("0.08"), Decimal("0.15")),
    WBTC: PriceQuote(Decimal("42000"), Decimal("0.3"), Decimal("3.5")),
    WETH: PriceQuote(Decimal("2800"), Decimal("0.2"), Decimal("4.2")),
    UNI: PriceQuote(Decimal("8.5"), Decimal("1.2"), Decimal("8.7")),
    AAVE: PriceQuote(Decimal("120"), Decimal("1.8"), Decimal("9.3")),
    YFI: PriceQuote(Decimal("15000"), Decimal("3.5"), Decimal("12.5")),
}


class PriceSource(Protocol):
    def quotes(self, addresses: Iterable[str]) -> dict[str, PriceQuote]:
        """Return quotes keyed by lowercased address; unknown addresses are omitted."""
        ...


class StaticPriceSource:
    """Fixed quote table. Extra entries (tests, local chains) can be passed in."""

    def __init__(self, extra: dict[str, PriceQuote] | None = None) -> None:
        self._table = dict(STATIC_QUOTES)
        for addr, quote in (extra or {}).items():
            self._table[addr.lower()] = quote

    def quotes(self, addresses: Iterable[str]) -> dict[str, PriceQuote]:
        out: dict[str, PriceQuote] = {}
        for addr in addresses:
            quote = self._table.get(addr.lower())
            if quote is not None:
                out[addr.lower()] = quote
        return out


class CoinGeckoPriceSource:
    """USD prices from CoinGecko simple/token_price; liquidity data from the static table."""

    def __init__(
        self,
        api_url: str,
        api_key: str = "",
        *,
        platform: str = "ethereum",
        timeout_sec: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._api_key = api_key
        self._platform = platform
        self._timeout = timeout_sec
        self._session = session or requests.Session()

    def quotes(self, addresses: Iterable[str]) -> dict[str, PriceQuote]:
        wanted = sorted({a.lower() for a in addresses})
        if not wanted:
            return {}
        params = {"contract_addresses": ",".join(wanted), "vs_currencies": "usd"}
        if self._api_key:
            params["x_cg_api_key"] = self._api_key
        try:
            resp = self._session.get(
                f"{self._api_url}/simple/token_price/{self._platform}",
                params=params,
                timeout=self._timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("price_fetch_failed", tokens=len(wanted), error=str(e))
            return {}

        out: dict[str, PriceQuote] = {}
        for addr in wanted:
            entry = payload.get(addr) if isinstance(payload, dict) else None
            if not isinstance(entry, dict) or entry.get("usd") is None:
                continue
            try:
                price = Decimal(str(entry["usd"]))
            except InvalidOperation:
                continue
            known = STATIC_QUOTES.get(addr)
            out[addr] = PriceQuote(
                price_usd=price,
                slippage_pct=known.slippage_pct if known else DEFAULT_SLIPPAGE_PCT,
                volatility_pct=known.volatility_pct if known else None,
            )
        return out


class CachedPriceSource:
    """Per-address TTL cache in front of another source. Only hits are cached."""

    def __init__(self, inner: PriceSource, ttl_sec: float) -> None:
        self._inner = inner
        self._cache = TTLCache(ttl_sec)

    def quotes(self, addresses: Iterable[str]) -> dict[str, PriceQuote]:
        out: dict[str, PriceQuote] = {}
        to_fetch: list[str] = []
        for addr in {a.lower() for a in addresses}:
            cached = self._cache.get(addr)
            if cached is not None:
                out[addr] = cached
            else:
                to_fetch.append(addr)
        if to_fetch:
            fetched = self._inner.quotes(to_fetch)
            for addr, quote in fetched.items():
                self._cache.set(addr, quote)
            out.update(fetched)
            logger.debug("price_cache_refresh", requested=len(to_fetch), fetched=len(fetched))
        return out


def build_price_source(settings: Settings) -> PriceSource:
    """PRICE_SOURCE=coingecko for live prices; anything else uses the static table."""
    if settings.price_source == "coingecko":
        inner: PriceSource = CoinGeckoPriceSource(
            settings.price_api_url,
            settings.price_api_key,
            timeout_sec=settings.rpc_timeout_sec,
        )
    else:
        inner = StaticPriceSource()
    return CachedPriceSource(inner, settings.price_cache_ttl_sec)


# Tokens the paymaster accepts for gas (type 1 = ERC-20 paymaster payment)
SUPPORTED_TOKENS: list[dict[str, Any]] = [
    {"address": DAI, "symbol": "DAI", "name": "Dai Stablecoin", "decimals": 18, "type": 1},
    {"address": USDC, "symbol": "USDC", "name": "USD Coin", "decimals": 6, "type": 1},
    {"address": USDT, "symbol": "USDT", "name": "Tether USD", "decimals": 6, "type": 1},
    {"address": WBTC, "symbol": "WBTC", "name": "Wrapped Bitcoin", "decimals": 8, "type": 1},
    {"address": WETH, "symbol": "WETH", "name": "Wrapped Ether", "decimals": 18, "type": 1},
]
