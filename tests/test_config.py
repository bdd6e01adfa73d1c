from __future__ import annotations

from decimal import Decimal

import pytest

from marginengine.config import (
    Settings,
    clamp_leverage,
    leverage_options,
    max_leverage_for_pool,
    normalize_pool,
)
from marginengine.errors import ConfigError

ENV_KEYS = [
    "POOL",
    "MARGIN_MANAGER_ID",
    "BALANCE_MANAGER_ID",
    "MIN_ORDER_QUANTITY",
    "QTY_PRECISION",
    "MAX_LEVERAGE",
    "REWARD_TOKEN_SYMBOL",
    "RISK_WARNING_RATIO",
    "DATA_DIR",
    "EVENTS_DIR",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("marginengine.config.load_dotenv", lambda *args, **kwargs: None)
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_env() -> None:
    settings = Settings.from_env()

    assert settings.pool == "SUI_USDC"
    assert settings.min_order_quantity == Decimal("1")
    assert settings.qty_precision == 6
    assert settings.reward_token_symbol == "DEEP"
    assert settings.risk_warning_ratio == Decimal("1.1")
    assert settings.effective_max_leverage() == 5


def test_env_values_are_parsed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("POOL", "wal/usdc")
    monkeypatch.setenv("MARGIN_MANAGER_ID", " 0xabc ")
    monkeypatch.setenv("BALANCE_MANAGER_ID", "0xbm")
    monkeypatch.setenv("MIN_ORDER_QUANTITY", "0.5")
    monkeypatch.setenv("QTY_PRECISION", "4")
    monkeypatch.setenv("REWARD_TOKEN_SYMBOL", "deep")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.pool == "WAL_USDC"
    assert settings.margin_manager_id == "0xabc"
    assert settings.balance_manager_id == "0xbm"
    assert settings.min_order_quantity == Decimal("0.5")
    assert settings.log_level == "DEBUG"
    limits = settings.trading_limits()
    assert limits.max_leverage == 3
    assert limits.qty_precision == 4
    assert limits.min_order_quantity == Decimal("0.5")


def test_max_leverage_env_overrides_pool_table(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MAX_LEVERAGE", "2")

    assert Settings.from_env().effective_max_leverage() == 2


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("MIN_ORDER_QUANTITY", "lots"),
        ("MIN_ORDER_QUANTITY", "0"),
        ("MIN_ORDER_QUANTITY", "NaN"),
        ("QTY_PRECISION", "six"),
        ("MAX_LEVERAGE", "0"),
        ("RISK_WARNING_RATIO", "-1"),
    ],
)
def test_invalid_env_values_raise_config_error(
    monkeypatch: pytest.MonkeyPatch, key: str, value: str
) -> None:
    monkeypatch.setenv(key, value)

    with pytest.raises(ConfigError):
        Settings.from_env()


def test_pool_table_and_default() -> None:
    assert max_leverage_for_pool("SUI_USDC") == 5
    assert max_leverage_for_pool("deep-usdc") == 3
    assert max_leverage_for_pool("NEW_USDC") == 3
    assert normalize_pool("  ") == "SUI_USDC"


def test_leverage_options_and_clamp() -> None:
    assert leverage_options(5) == [1, 2, 3, 4, 5]
    assert leverage_options(0) == [1]
    assert clamp_leverage(5, 3) == 3
    assert clamp_leverage(0, 3) == 1
    assert clamp_leverage(2, 3) == 2


def test_with_overrides_normalizes_pool() -> None:
    settings = Settings().with_overrides(pool="deep/usdc")

    assert settings.pool == "DEEP_USDC"
    assert settings.effective_max_leverage() == 3
