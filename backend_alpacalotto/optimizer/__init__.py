"""
Gas-payment token optimization.
"""

from backend_alpacalotto.optimizer.models import OptimizationResult, Token, TokenQuote, UserPreferences
from backend_alpacalotto.optimizer.price_source import (
    CachedPriceSource,
    PriceQuote,
    PriceSource,
    StaticPriceSource,
    build_price_source,
)
from backend_alpacalotto.optimizer.token_optimizer import TokenOptimizer, parse_tokens

__all__ = [
    "CachedPriceSource",
    "OptimizationResult",
    "PriceQuote",
    "PriceSource",
    "StaticPriceSource",
    "Token",
    "TokenOptimizer",
    "TokenQuote",
    "UserPreferences",
    "build_price_source",
    "parse_tokens",
]
