"""
Data models for gas-token optimization.

Token is the immutable per-request snapshot sent by the client; TokenQuote is
one scored candidate; OptimizationResult is what find_optimal_token returns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from backend_alpacalotto.core.addresses import is_address
from backend_alpacalotto.core.exceptions import InvalidInput

MAX_DECIMALS = 18

REASON_INSUFFICIENT_BALANCE = "insufficient_balance"
REASON_PRICE_UNAVAILABLE = "price_unavailable"

EXCLUDED_ZERO_BALANCE = "zero_balance"
EXCLUDED_NO_PRICE = "no_price"


def _pick(data: dict[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in data and data[k] is not None:
            return data[k]
    return None


def _to_decimal(value: Any, field_name: str) -> Decimal | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise InvalidInput(f"{field_name} must be a number")
    try:
        out = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidInput(f"{field_name} must be a number") from None
    if not out.is_finite():
        raise InvalidInput(f"{field_name} must be finite")
    return out


def _to_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or value is None:
        raise InvalidInput(f"{field_name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise InvalidInput(f"{field_name} must be an integer")
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            raise InvalidInput(f"{field_name} must be an integer") from None
    raise InvalidInput(f"{field_name} must be an integer")


@dataclass(frozen=True)
class Token:
    """
    ERC-20 holding offered as a gas-payment candidate.

    balance is in base units (wei-style integer); decimals converts it to whole tokens.
    price is USD per whole token; None means "look it up in the price source".
    gas_cost_estimate is a token-specific USD gas estimate (paymaster quote) if known.
    """

    address: str
    symbol: str
    decimals: int
    balance: int
    price: Decimal | None = None
    gas_cost_estimate: Decimal | None = None
    name: str = ""

    def __post_init__(self) -> None:
        if not is_address(self.address):
            raise InvalidInput(f"Invalid token address: {self.address!r}")
        if not isinstance(self.decimals, int) or isinstance(self.decimals, bool):
            raise InvalidInput("decimals must be an integer")
        if self.decimals <= 0 or self.decimals > MAX_DECIMALS:
            raise InvalidInput(f"decimals must be between 1 and {MAX_DECIMALS} (got {self.decimals})")
        if self.balance < 0:
            raise InvalidInput(f"balance must be non-negative for {self.symbol or self.address}")
        if self.price is not None and self.price < 0:
            raise InvalidInput(f"price must be non-negative for {self.symbol or self.address}")
        if self.gas_cost_estimate is not None and self.gas_cost_estimate <= 0:
            raise InvalidInput(f"gasCostEstimate must be positive for {self.symbol or self.address}")

    @property
    def key(self) -> str:
        """Lowercased address; price source and ranking key."""
        return self.address.lower()

    @property
    def balance_units(self) -> Decimal:
        """Balance in whole tokens."""
        return Decimal(self.balance).scaleb(-self.decimals)

    @classmethod
    def from_dict(cls, data: Any) -> Token:
        """Parse one token from a JSON body (camelCase or snake_case keys)."""
        if not isinstance(data, dict):
            raise InvalidInput("Each token must be an object")
        address = _pick(data, "address")
        if not isinstance(address, str):
            raise InvalidInput("Token address is required")
        decimals = _to_int(_pick(data, "decimals"), "decimals")
        balance = _to_int(_pick(data, "balance"), "balance")
        return cls(
            address=address.strip(),
            symbol=str(_pick(data, "symbol") or "").strip(),
            decimals=decimals,
            balance=balance,
            price=_to_decimal(_pick(data, "price", "usdPrice", "usd_price"), "price"),
            gas_cost_estimate=_to_decimal(
                _pick(data, "gasCostEstimate", "gas_cost_estimate"), "gasCostEstimate"
            ),
            name=str(_pick(data, "name") or "").strip(),
        )


@dataclass(frozen=True)
class UserPreferences:
    """
    preferred_symbol breaks cost ties; preference_weight in [0, 1] lets the preferred
    token win while its cost is within (1 + weight) of the cheapest. 0 = pure cost.
    """

    preferred_symbol: str | None = None
    preference_weight: Decimal = Decimal("0")
    gas_estimate_usd: Decimal | None = None

    def __post_init__(self) -> None:
        if self.preference_weight < 0 or self.preference_weight > 1:
            raise InvalidInput("preferenceWeight must be between 0 and 1")
        if self.gas_estimate_usd is not None and self.gas_estimate_usd <= 0:
            raise InvalidInput("gasEstimateUsd must be positive")

    @classmethod
    def from_dict(cls, data: Any) -> UserPreferences:
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise InvalidInput("userPreferences must be an object")
        symbol = str(_pick(data, "preferredSymbol", "preferred_symbol") or "").strip()
        weight = _to_decimal(_pick(data, "preferenceWeight", "preference_weight"), "preferenceWeight")
        return cls(
            preferred_symbol=symbol or None,
            preference_weight=weight if weight is not None else Decimal("0"),
            gas_estimate_usd=_to_decimal(_pick(data, "gasEstimateUsd", "gas_estimate_usd"), "gasEstimateUsd"),
        )

    def prefers(self, token: Token) -> bool:
        if not self.preferred_symbol:
            return False
        return token.symbol.upper() == self.preferred_symbol.upper()


@dataclass(frozen=True)
class TokenQuote:
    """One ranked candidate: price, liquidity and the gas cost it implies."""

    token: Token
    price_usd: Decimal
    slippage_pct: Decimal
    volatility_pct: Decimal | None
    cost_usd: Decimal
    cost_tokens: Decimal
    sufficient: bool
    reasons: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.token.address,
            "symbol": self.token.symbol,
            "name": self.token.name,
            "decimals": self.token.decimals,
            "balance": str(self.token.balance),
            "usdPrice": float(self.price_usd),
            "usdBalance": float(self.token.balance_units * self.price_usd),
            "slippage": float(self.slippage_pct),
            "volatility": float(self.volatility_pct) if self.volatility_pct is not None else None,
            "estimatedCostUsd": float(self.cost_usd),
            "estimatedCostTokens": str(self.cost_tokens),
            "sufficientBalance": self.sufficient,
            "reasons": list(self.reasons),
        }


@dataclass(frozen=True)
class ExcludedToken:
    address: str
    symbol: str
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"address": self.address, "symbol": self.symbol, "reason": self.reason}


@dataclass(frozen=True)
class OptimizationResult:
    """
    chosen is None when no candidate can pay; reason then says why
    (insufficient_balance or price_unavailable). Callers must check chosen.
    """

    chosen: TokenQuote | None
    alternatives: list[TokenQuote] = field(default_factory=list)
    ranked: list[TokenQuote] = field(default_factory=list)
    excluded: list[ExcludedToken] = field(default_factory=list)
    reason: str | None = None

    @property
    def estimated_cost_usd(self) -> Decimal | None:
        return self.chosen.cost_usd if self.chosen else None

    def to_dict(self) -> dict[str, Any]:
        chosen = self.chosen.to_dict() if self.chosen else None
        out: dict[str, Any] = {
            "chosen": chosen,
            # recommendedToken keeps the name the front-end already reads
            "recommendedToken": chosen,
            "estimatedCostUsd": float(self.estimated_cost_usd) if self.chosen else None,
            "estimatedCostTokens": str(self.chosen.cost_tokens) if self.chosen else None,
            "alternatives": [q.to_dict() for q in self.alternatives],
            "allScores": [q.to_dict() for q in self.ranked],
            "excluded": [e.to_dict() for e in self.excluded],
        }
        if self.reason:
            out["reason"] = self.reason
        return out
