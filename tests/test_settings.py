"""
Tests for environment-driven settings.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from backend_alpacalotto.config import Settings, get_settings
from backend_alpacalotto.config.env import DUMMY_CONTRACT_ADDRESS


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "NERO_RPC_URL",
        "RPC_URL",
        "LOTTERY_CONTRACT_ADDRESS",
        "ALPACALOTTO_CONTRACT_ADDRESS",
        "DATABASE_URL",
        "DB_PATH",
        "PORT",
        "ALLOW_UNSIGNED_REQUESTS",
        "REFERRER_QUALIFICATION_USDC_THRESHOLD",
        "FRONTEND_URL",
        "PRICE_SOURCE",
    ):
        monkeypatch.setenv(name, "")
    return monkeypatch


def test_defaults(clean_env, tmp_path):
    clean_env.setenv("DB_PATH", str(tmp_path / "x.db"))
    settings = get_settings()
    assert settings.rpc_url == "https://rpc-testnet.nerochain.io"
    assert settings.lottery_contract_address == DUMMY_CONTRACT_ADDRESS
    assert settings.database_url == f"sqlite:///{tmp_path / 'x.db'}"
    assert settings.api_port == 3001
    assert settings.allow_unsigned_requests is False
    assert settings.price_source == "mock"


def test_overrides(clean_env):
    clean_env.setenv("RPC_URL", "http://fallback")
    clean_env.setenv("NERO_RPC_URL", "http://nero")
    clean_env.setenv("DATABASE_URL", "postgresql://u:p@db/lotto")
    clean_env.setenv("PORT", "8080")
    clean_env.setenv("ALLOW_UNSIGNED_REQUESTS", "true")
    clean_env.setenv("REFERRER_QUALIFICATION_USDC_THRESHOLD", "2.5")
    clean_env.setenv("FRONTEND_URL", "https://lotto.example")
    settings = get_settings()
    assert settings.rpc_url == "http://nero"
    assert settings.database_url == "postgresql://u:p@db/lotto"
    assert settings.api_port == 8080
    assert settings.allow_unsigned_requests is True
    assert settings.referrer_threshold_usdc == Decimal("2.5")
    assert "https://lotto.example" in settings.cors_origins


def test_malformed_number_raises(clean_env):
    clean_env.setenv("REFERRER_QUALIFICATION_USDC_THRESHOLD", "ten")
    with pytest.raises(ValueError, match="REFERRER_QUALIFICATION_USDC_THRESHOLD"):
        get_settings()


def test_missing_lists_production_settings():
    assert "RELAYER_PRIVATE_KEY" in Settings().missing()
    assert "LOTTERY_CONTRACT_ADDRESS" in Settings().missing()
