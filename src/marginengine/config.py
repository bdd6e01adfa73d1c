"""Environment and CLI runtime configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Self

from dotenv import load_dotenv

from marginengine.domain.models import TradingLimits
from marginengine.errors import ConfigError
from marginengine.execution.sizing import clamp_int
from marginengine.numeric import optional_decimal

DEFAULT_POOL = "SUI_USDC"
DEFAULT_MAX_LEVERAGE = 3
POOL_MAX_LEVERAGE = {
    "SUI_USDC": 5,
    "DEEP_USDC": 3,
    "WAL_USDC": 3,
}


def normalize_pool(value: str | None, default: str = DEFAULT_POOL) -> str:
    """Normalize pool names such as ``sui/usdc`` to ``SUI_USDC``."""
    if value is None or not value.strip():
        return default
    return value.strip().upper().replace("/", "_").replace("-", "_")


def max_leverage_for_pool(pool: str) -> int:
    """Maximum leverage the venue allows for a pool."""
    return POOL_MAX_LEVERAGE.get(normalize_pool(pool), DEFAULT_MAX_LEVERAGE)


def leverage_options(max_leverage: int) -> list[int]:
    """Selectable whole-number leverage values."""
    return list(range(1, max(1, max_leverage) + 1))


def clamp_leverage(leverage: int, max_leverage: int) -> int:
    """Bring a previously selected leverage back into the pool's range."""
    return clamp_int(leverage, 1, max(1, max_leverage))


def parse_decimal(value: str | None, default: str, *, field_name: str) -> Decimal:
    """Parse a decimal env value."""
    try:
        parsed = optional_decimal(value)
    except ValueError as exc:
        raise ConfigError(f"{field_name} must be a number") from exc
    if parsed is None:
        return Decimal(default)
    if not parsed.is_finite():
        raise ConfigError(f"{field_name} must be a number")
    return parsed


def parse_int(value: str | None, default: int, *, field_name: str) -> int:
    """Parse an integer env value."""
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError as exc:
        raise ConfigError(f"{field_name} must be an integer") from exc


def parse_optional_positive_int(value: str | None, *, field_name: str) -> int | None:
    """Parse optional positive integer values from env strings."""
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    try:
        parsed = int(text)
    except ValueError as exc:
        raise ConfigError(f"{field_name} must be an integer") from exc
    if parsed <= 0:
        raise ConfigError(f"{field_name} must be positive")
    return parsed


@dataclass(frozen=True)
class Settings:
    """Immutable runtime settings."""

    pool: str = DEFAULT_POOL
    margin_manager_id: str = ""
    balance_manager_id: str = ""
    min_order_quantity: Decimal = Decimal("1")
    qty_precision: int = 6
    max_leverage: int | None = None
    reward_token_symbol: str = "DEEP"
    risk_warning_ratio: Decimal = Decimal("1.1")
    data_dir: str = "margin_data"
    events_dir: str = "runs"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Self:
        """Create settings from environment variables."""
        load_dotenv()
        raw = cls(
            pool=normalize_pool(os.getenv("POOL")),
            margin_manager_id=str(os.getenv("MARGIN_MANAGER_ID", "")).strip(),
            balance_manager_id=str(os.getenv("BALANCE_MANAGER_ID", "")).strip(),
            min_order_quantity=parse_decimal(
                os.getenv("MIN_ORDER_QUANTITY"), "1", field_name="min_order_quantity"
            ),
            qty_precision=parse_int(os.getenv("QTY_PRECISION"), 6, field_name="qty_precision"),
            max_leverage=parse_optional_positive_int(
                os.getenv("MAX_LEVERAGE"),
                field_name="max_leverage",
            ),
            reward_token_symbol=str(os.getenv("REWARD_TOKEN_SYMBOL", "DEEP")).strip().upper(),
            risk_warning_ratio=parse_decimal(
                os.getenv("RISK_WARNING_RATIO"), "1.1", field_name="risk_warning_ratio"
            ),
            data_dir=str(os.getenv("DATA_DIR", "margin_data")).strip(),
            events_dir=str(os.getenv("EVENTS_DIR", "runs")).strip(),
            log_level=str(os.getenv("LOG_LEVEL", "INFO")).strip().upper(),
        )
        return raw.validate()

    def with_overrides(self, **kwargs: object) -> Self:
        """Return a new settings object with updated values."""
        overrides = dict(kwargs)
        pool_override = overrides.get("pool")
        if isinstance(pool_override, str):
            overrides["pool"] = normalize_pool(pool_override, default=self.pool)
        updated = replace(self, **overrides)
        return updated.validate()

    def effective_max_leverage(self) -> int:
        """Explicit override, else the pool table."""
        if self.max_leverage is not None:
            return self.max_leverage
        return max_leverage_for_pool(self.pool)

    def trading_limits(self) -> TradingLimits:
        return TradingLimits(
            min_order_quantity=self.min_order_quantity,
            max_leverage=self.effective_max_leverage(),
            qty_precision=self.qty_precision,
        )

    def validate(self) -> Self:
        """Validate settings fields."""
        if not self.pool:
            raise ConfigError("pool must not be empty")
        if self.min_order_quantity <= 0:
            raise ConfigError("min_order_quantity must be positive")
        if self.qty_precision < 0 or self.qty_precision > 12:
            raise ConfigError("qty_precision must be between 0 and 12")
        if self.max_leverage is not None and self.max_leverage < 1:
            raise ConfigError("max_leverage must be at least 1")
        if self.risk_warning_ratio <= 0:
            raise ConfigError("risk_warning_ratio must be positive")
        if not self.reward_token_symbol:
            raise ConfigError("reward_token_symbol must not be empty")
        return self
