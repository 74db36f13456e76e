"""
Gas-token optimizer: pick the ERC-20 a user should pay transaction gas with.

For every funded token the reference USD gas estimate is scaled by the token's
swap slippage (paymaster conversion cost) and converted to token units through
its USD price. Candidates are ranked by ascending USD cost; ties go to the
preferred symbol, then symbol, then address, so results are reproducible.
The chosen token is the top-ranked one whose balance covers its cost.
Pure over its inputs plus the (cached) price source.
"""

from __future__ import annotations

from decimal import ROUND_UP, Decimal, localcontext
from typing import Any, Sequence

from backend_alpacalotto.core.exceptions import InvalidInput
from backend_alpacalotto.lotto_logging import get_logger
from backend_alpacalotto.optimizer.models import (
    EXCLUDED_NO_PRICE,
    EXCLUDED_ZERO_BALANCE,
    REASON_INSUFFICIENT_BALANCE,
    REASON_PRICE_UNAVAILABLE,
    ExcludedToken,
    OptimizationResult,
    Token,
    TokenQuote,
    UserPreferences,
)
from backend_alpacalotto.optimizer.price_source import DEFAULT_SLIPPAGE_PCT, PriceQuote, PriceSource

logger = get_logger(__name__)

DEFAULT_REFERENCE_GAS_USD = Decimal("0.50")
_HUNDRED = Decimal("100")


def parse_tokens(raw: Any) -> list[Token]:
    """Validate the request token list. Raises InvalidInput on any malformed entry."""
    if not isinstance(raw, (list, tuple)) or len(raw) == 0:
        raise InvalidInput("Token list is required")
    return [t if isinstance(t, Token) else Token.from_dict(t) for t in raw]


def _describe(quote_usd_balance: Decimal, volatility: Decimal | None, slippage: Decimal) -> list[str]:
    """Human-readable reasons (balance, price stability, liquidity)."""
    reasons: list[str] = []
    if quote_usd_balance >= 100:
        reasons.append(f"Large balance (${quote_usd_balance:.2f}) leaves plenty of headroom")
    elif quote_usd_balance >= 20:
        reasons.append(f"Moderate balance (${quote_usd_balance:.2f})")
    else:
        reasons.append(f"Limited balance (${quote_usd_balance:.2f}) but usable")

    if volatility is not None:
        if volatility < 1:
            reasons.append(f"Very stable price ({volatility:.2f}% 24h change)")
        elif volatility < 3:
            reasons.append(f"Stable price ({volatility:.2f}% 24h change)")
        elif volatility < 7:
            reasons.append(f"Moderate price stability ({volatility:.2f}% 24h change)")
        else:
            reasons.append(f"Volatile price ({volatility:.2f}% 24h change)")

    if slippage < Decimal("0.5"):
        reasons.append(f"Excellent liquidity, minimal slippage ({slippage:.2f}%)")
    elif slippage < Decimal("1.5"):
        reasons.append(f"Good liquidity, low slippage ({slippage:.2f}%)")
    elif slippage < 3:
        reasons.append(f"Fair liquidity, moderate slippage ({slippage:.2f}%)")
    else:
        reasons.append(f"Thin liquidity, high slippage ({slippage:.2f}%)")
    return reasons


class TokenOptimizer:
    """Stateless apart from its collaborators; one instance per process is enough."""

    def __init__(
        self,
        price_source: PriceSource,
        reference_gas_usd: Decimal = DEFAULT_REFERENCE_GAS_USD,
    ) -> None:
        if reference_gas_usd <= 0:
            raise ValueError("reference_gas_usd must be > 0")
        self._price_source = price_source
        self._reference_gas_usd = reference_gas_usd

    def _quote(self, token: Token, market: PriceQuote | None, gas_usd: Decimal) -> TokenQuote | None:
        price = token.price if token.price is not None else (market.price_usd if market else None)
        if price is None or price <= 0:
            return None
        slippage = market.slippage_pct if market else DEFAULT_SLIPPAGE_PCT
        volatility = market.volatility_pct if market else None
        base_usd = token.gas_cost_estimate if token.gas_cost_estimate is not None else gas_usd
        cost_usd = base_usd * (1 + slippage / _HUNDRED)
        # Round up to the token's smallest unit: never under-quote what the paymaster debits
        with localcontext() as ctx:
            ctx.prec = 80
            cost_tokens = (cost_usd / price).quantize(Decimal(1).scaleb(-token.decimals), rounding=ROUND_UP)
        sufficient = token.balance_units >= cost_tokens
        reasons = _describe(token.balance_units * price, volatility, slippage)
        if not sufficient:
            reasons.append(f"Balance does not cover the estimated gas ({cost_tokens} {token.symbol})")
        return TokenQuote(
            token=token,
            price_usd=price,
            slippage_pct=slippage,
            volatility_pct=volatility,
            cost_usd=cost_usd,
            cost_tokens=cost_tokens,
            sufficient=sufficient,
            reasons=tuple(reasons),
        )

    def find_optimal_token(
        self,
        tokens: Sequence[Token | dict[str, Any]],
        preferences: UserPreferences | dict[str, Any] | None = None,
    ) -> OptimizationResult:
        """
        Select the token to pay gas with.

        Raises:
            InvalidInput: empty list or a malformed token / preference.
        Returns:
            OptimizationResult; chosen is None with reason "insufficient_balance" when
            no token can cover the cost, or "price_unavailable" when no funded token has a price.
        """
        parsed = parse_tokens(tokens)
        prefs = preferences if isinstance(preferences, UserPreferences) else UserPreferences.from_dict(preferences)
        gas_usd = prefs.gas_estimate_usd or self._reference_gas_usd

        excluded: list[ExcludedToken] = []
        funded: list[Token] = []
        for t in parsed:
            if t.balance > 0:
                funded.append(t)
            else:
                excluded.append(ExcludedToken(t.address, t.symbol, EXCLUDED_ZERO_BALANCE))

        if not funded:
            logger.info("token_optimizer_no_balance", tokens=len(parsed))
            return OptimizationResult(chosen=None, excluded=excluded, reason=REASON_INSUFFICIENT_BALANCE)

        market = self._price_source.quotes(t.key for t in funded)
        ranked: list[TokenQuote] = []
        for t in funded:
            quote = self._quote(t, market.get(t.key), gas_usd)
            if quote is None:
                excluded.append(ExcludedToken(t.address, t.symbol, EXCLUDED_NO_PRICE))
            else:
                ranked.append(quote)

        if not ranked:
            logger.info("token_optimizer_no_price", tokens=len(parsed))
            return OptimizationResult(chosen=None, excluded=excluded, reason=REASON_PRICE_UNAVAILABLE)

        ranked.sort(
            key=lambda q: (
                q.cost_usd,
                0 if prefs.prefers(q.token) else 1,
                q.token.symbol.upper(),
                q.token.key,
            )
        )
        payable = [q for q in ranked if q.sufficient]
        if not payable:
            logger.info("token_optimizer_insufficient", candidates=len(ranked))
            return OptimizationResult(
                chosen=None,
                ranked=ranked,
                excluded=excluded,
                reason=REASON_INSUFFICIENT_BALANCE,
            )

        chosen = payable[0]
        if prefs.preference_weight > 0:
            limit = chosen.cost_usd * (1 + prefs.preference_weight)
            preferred = next((q for q in payable if prefs.prefers(q.token)), None)
            if preferred is not None and preferred.cost_usd <= limit:
                chosen = preferred

        alternatives = [q for q in payable if q is not chosen]
        logger.info(
            "token_optimized",
            chosen=chosen.token.symbol or chosen.token.key,
            cost_usd=str(chosen.cost_usd),
            candidates=len(ranked),
            payable=len(payable),
        )
        return OptimizationResult(
            chosen=chosen,
            alternatives=alternatives,
            ranked=ranked,
            excluded=excluded,
        )
