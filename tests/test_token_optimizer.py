"""
Tests for the gas-token optimizer: ranking, tie-breaks, edge reasons and input validation.

Uses the static price table (USDC slippage 0.05%, USDT 0.08%, DAI 0.1%) and the
default $0.50 reference gas estimate.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from backend_alpacalotto.core.exceptions import InvalidInput
from backend_alpacalotto.optimizer import PriceQuote, StaticPriceSource, TokenOptimizer
from tests.conftest import DAI, USDC, USDT

UNKNOWN_A = "0x1111111111111111111111111111111111111111"
UNKNOWN_B = "0x2222222222222222222222222222222222222222"


def _token(address, symbol, decimals, balance, **extra):
    return {"address": address, "symbol": symbol, "decimals": decimals, "balance": balance, **extra}


@pytest.fixture
def optimizer():
    return TokenOptimizer(StaticPriceSource())


@pytest.fixture
def stablecoins():
    return [
        _token(DAI, "DAI", 18, 10 * 10**18),
        _token(USDC, "USDC", 6, 10 * 10**6),
        _token(USDT, "USDT", 6, 10 * 10**6),
    ]


def test_picks_cheapest_funded_token(optimizer, stablecoins):
    """Lowest effective USD cost wins; alternatives follow in rank order."""
    result = optimizer.find_optimal_token(stablecoins, {})
    assert result.chosen is not None
    assert result.chosen.token.symbol == "USDC"
    assert result.chosen.cost_usd == Decimal("0.50") * Decimal("1.0005")
    assert result.chosen.cost_tokens == Decimal("0.500250")
    assert [q.token.symbol for q in result.alternatives] == ["USDT", "DAI"]
    assert result.reason is None


def test_chosen_is_covered_and_cheapest_among_payable(optimizer, stablecoins):
    result = optimizer.find_optimal_token(stablecoins, None)
    chosen = result.chosen
    assert chosen.token.balance_units >= chosen.cost_tokens
    for alt in result.alternatives:
        assert alt.cost_usd >= chosen.cost_usd


def test_underfunded_cheapest_token_is_skipped(optimizer):
    """USDC is cheapest but only holds 0.0001; the next payable token is chosen."""
    tokens = [_token(USDC, "USDC", 6, 100), _token(DAI, "DAI", 18, 5 * 10**18)]
    result = optimizer.find_optimal_token(tokens)
    assert result.chosen.token.symbol == "DAI"
    assert result.alternatives == []
    assert [q.token.symbol for q in result.ranked] == ["USDC", "DAI"]
    assert result.ranked[0].sufficient is False


def test_all_zero_balances_is_insufficient_balance(optimizer):
    tokens = [_token(USDC, "USDC", 6, 0), _token(DAI, "DAI", 18, 0)]
    result = optimizer.find_optimal_token(tokens)
    assert result.chosen is None
    assert result.reason == "insufficient_balance"
    assert {e.reason for e in result.excluded} == {"zero_balance"}


def test_nothing_covers_gas_is_insufficient_balance(optimizer):
    result = optimizer.find_optimal_token([_token(USDC, "USDC", 6, 1000)])
    assert result.chosen is None
    assert result.reason == "insufficient_balance"
    assert len(result.ranked) == 1


def test_funded_but_unpriced_is_price_unavailable(optimizer):
    """Unknown tokens get no price (never a random one) and are excluded."""
    result = optimizer.find_optimal_token([_token(UNKNOWN_A, "XYZ", 18, 10**21)])
    assert result.chosen is None
    assert result.reason == "price_unavailable"
    assert result.excluded[0].reason == "no_price"
    assert result.to_dict()["reason"] == "price_unavailable"


def test_zero_price_is_excluded(optimizer):
    tokens = [_token(UNKNOWN_A, "ZERO", 18, 10**21, price="0"), _token(USDC, "USDC", 6, 10**7)]
    result = optimizer.find_optimal_token(tokens)
    assert result.chosen.token.symbol == "USDC"
    assert [e.symbol for e in result.excluded] == ["ZERO"]


def test_tie_breaks_by_symbol_then_preference(optimizer):
    """Equal costs rank alphabetically by symbol unless a preferred symbol is given."""
    tokens = [
        _token(UNKNOWN_B, "BBB", 18, 10**21, price="1"),
        _token(UNKNOWN_A, "AAA", 18, 10**21, price="1"),
    ]
    assert optimizer.find_optimal_token(tokens).chosen.token.symbol == "AAA"
    preferred = optimizer.find_optimal_token(tokens, {"preferredSymbol": "bbb"})
    assert preferred.chosen.token.symbol == "BBB"


def test_result_is_deterministic(optimizer, stablecoins):
    first = optimizer.find_optimal_token(stablecoins).to_dict()
    second = optimizer.find_optimal_token(list(reversed(stablecoins))).to_dict()
    assert first == second


def test_preference_weight_tolerates_small_premium(optimizer, stablecoins):
    """DAI costs 0.05% more than USDC: weight 0 keeps USDC, weight 0.01 picks DAI."""
    assert optimizer.find_optimal_token(stablecoins, {"preferredSymbol": "DAI"}).chosen.token.symbol == "USDC"
    weighted = optimizer.find_optimal_token(stablecoins, {"preferredSymbol": "DAI", "preferenceWeight": 0.01})
    assert weighted.chosen.token.symbol == "DAI"
    assert "USDC" in [q.token.symbol for q in weighted.alternatives]


def test_cost_in_tokens_rounds_up_to_smallest_unit(optimizer):
    """1.00 USD * 1.05 / 9 = 0.11666..; 2 decimals round up to 0.12."""
    tokens = [_token(UNKNOWN_A, "NINE", 2, 100, price="9")]
    result = optimizer.find_optimal_token(tokens, {"gasEstimateUsd": "1.00"})
    assert result.chosen.cost_usd == Decimal("1.05")
    assert result.chosen.cost_tokens == Decimal("0.12")


def test_token_gas_estimate_overrides_reference(optimizer):
    tokens = [_token(USDC, "USDC", 6, 10**7, gasCostEstimate="2")]
    result = optimizer.find_optimal_token(tokens, {"gasEstimateUsd": "1"})
    assert result.chosen.cost_usd == Decimal("2") * Decimal("1.0005")


def test_custom_price_source_quote_is_used():
    source = StaticPriceSource({UNKNOWN_A: PriceQuote(Decimal("2"), Decimal("1"))})
    result = TokenOptimizer(source).find_optimal_token([_token(UNKNOWN_A, "TWO", 18, 10**18)])
    assert result.chosen.cost_usd == Decimal("0.505")
    assert result.chosen.cost_tokens == Decimal("0.2525")


def test_to_dict_uses_camel_case(optimizer, stablecoins):
    out = optimizer.find_optimal_token(stablecoins).to_dict()
    assert out["recommendedToken"]["symbol"] == "USDC"
    assert out["chosen"] == out["recommendedToken"]
    assert out["estimatedCostTokens"] == "0.500250"
    result = optimizer.find_optimal_token(stablecoins)
    assert out["estimatedCostUsd"] == float(result.estimated_cost_usd)
    assert result.estimated_cost_usd == result.chosen.cost_usd
    assert len(out["allScores"]) == 3
    assert "reason" not in out


@pytest.mark.parametrize(
    "tokens, match",
    [
        ([], "Token list is required"),
        (None, "Token list is required"),
        ("USDC", "Token list is required"),
        ([_token(USDC, "USDC", 0, 1)], "decimals"),
        ([_token(USDC, "USDC", 19, 1)], "decimals"),
        ([_token(USDC, "USDC", 6, -1)], "balance"),
        ([_token("0x1234", "BAD", 6, 1)], "Invalid token address"),
        ([_token(USDC, "USDC", 6, "lots")], "balance"),
        (["USDC"], "object"),
    ],
)
def test_invalid_input_is_rejected(optimizer, tokens, match):
    with pytest.raises(InvalidInput, match=match):
        optimizer.find_optimal_token(tokens)


def test_invalid_preference_weight_is_rejected(optimizer, stablecoins):
    with pytest.raises(InvalidInput, match="preferenceWeight"):
        optimizer.find_optimal_token(stablecoins, {"preferenceWeight": 2})
