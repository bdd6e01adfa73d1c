"""Core margin-account domain models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum
from typing import Any, Self

from marginengine.numeric import ZERO, optional_decimal, to_decimal


class OrderSide(StrEnum):
    """Supported order directions."""

    BUY = "buy"
    SELL = "sell"

    def opposite(self) -> OrderSide:
        return OrderSide.SELL if self is OrderSide.BUY else OrderSide.BUY


class PositionSide(StrEnum):
    """Direction of the net position held by a margin manager."""

    LONG = "long"
    SHORT = "short"
    NONE = "none"


class OrderType(StrEnum):
    LIMIT = "limit"
    MARKET = "market"


class PayWith(StrEnum):
    """Asset used to pay trading fees."""

    BASE = "base"
    QUOTE = "quote"
    REWARD_TOKEN = "reward_token"


class RiskBand(StrEnum):
    """Coarse health band derived from the protocol risk ratio."""

    NO_DEBT = "no_debt"
    HEALTHY = "healthy"
    WARNING = "warning"
    UNKNOWN = "unknown"


class CloseBranch(StrEnum):
    """Which rule produced a close quantity."""

    SHORT_FROM_FILL = "short_from_fill"
    SHORT_FROM_QUOTE = "short_from_quote"
    LONG_FROM_FILL = "long_from_fill"
    LONG_FROM_FILL_BASE = "long_from_fill_base"
    LONG_FROM_BASE = "long_from_base"
    FILL_QUOTE = "fill_quote"
    FILL_BASE = "fill_base"
    POSITION_SIZE = "position_size"


class CollateralEventType(StrEnum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


@dataclass(frozen=True)
class Fill:
    """Single matched execution seen from the margin manager's side."""

    timestamp: int
    our_side: OrderSide
    base_volume: Decimal
    quote_volume: Decimal | None = None
    price: Decimal | None = None

    @classmethod
    def from_trade(cls, record: Mapping[str, Any], balance_manager_id: str | None = None) -> Self:
        """Build a fill from a venue trade record.

        The record's ``type`` is the taker's direction. When the account was the
        maker of the trade its own side is the opposite one.
        """
        explicit_side = record.get("our_side")
        if explicit_side:
            our_side = OrderSide(str(explicit_side).strip().lower())
        else:
            our_side = OrderSide(str(record["type"]).strip().lower())
            maker_id = str(record.get("maker_balance_manager_id") or "")
            taker_id = str(record.get("taker_balance_manager_id") or "")
            if balance_manager_id and maker_id == balance_manager_id != taker_id:
                our_side = our_side.opposite()
        return cls(
            timestamp=int(record.get("timestamp") or 0),
            our_side=our_side,
            base_volume=to_decimal(record.get("base_volume")),
            quote_volume=optional_decimal(record.get("quote_volume")),
            price=optional_decimal(record.get("price")),
        )


@dataclass(frozen=True)
class MarginSnapshot:
    """Point-in-time balances, debts and oracle prices of a margin manager."""

    base_asset: Decimal = ZERO
    quote_asset: Decimal = ZERO
    base_debt: Decimal = ZERO
    quote_debt: Decimal = ZERO
    base_pyth_price: Decimal | None = None
    base_pyth_decimals: int = 0
    quote_pyth_price: Decimal | None = None
    quote_pyth_decimals: int = 0
    risk_ratio: Decimal | None = None

    @property
    def net_base(self) -> Decimal:
        return self.base_asset - self.base_debt

    @property
    def has_debt(self) -> bool:
        return self.base_debt > 0 or self.quote_debt > 0

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Self:
        """Parse an indexer margin-manager state record."""
        return cls(
            base_asset=to_decimal(record.get("base_asset")),
            quote_asset=to_decimal(record.get("quote_asset")),
            base_debt=to_decimal(record.get("base_debt")),
            quote_debt=to_decimal(record.get("quote_debt")),
            base_pyth_price=optional_decimal(record.get("base_pyth_price")),
            base_pyth_decimals=int(record.get("base_pyth_decimals") or 0),
            quote_pyth_price=optional_decimal(record.get("quote_pyth_price")),
            quote_pyth_decimals=int(record.get("quote_pyth_decimals") or 0),
            risk_ratio=optional_decimal(record.get("risk_ratio")),
        )


@dataclass(frozen=True)
class Position:
    """Authoritative current-position view."""

    side: PositionSide
    size: Decimal
    entry_price: Decimal
    has_known_entry: bool
    realized_pnl: Decimal
    unrealized_pnl: Decimal
    net_base: Decimal = ZERO
    has_debt: bool = False
    mark_price: Decimal | None = None

    @property
    def has_position(self) -> bool:
        return self.size > 0

    @property
    def total_pnl(self) -> Decimal:
        return self.realized_pnl + self.unrealized_pnl


@dataclass(frozen=True)
class Valuation:
    """USD collateral, debt and equity picture of a margin manager."""

    collateral_usd: Decimal
    debt_usd: Decimal
    equity_usd: Decimal
    risk_ratio: Decimal | None = None
    missing_prices: tuple[str, ...] = ()

    @property
    def is_degraded(self) -> bool:
        return bool(self.missing_prices)


@dataclass(frozen=True)
class TradingLimits:
    """Pool-level order constraints threaded explicitly into sizing and closing."""

    min_order_quantity: Decimal = Decimal("1")
    max_leverage: int = 3
    qty_precision: int = 6


@dataclass(frozen=True)
class OrderRequest:
    """Trader-entered order parameters; margin is in human base units."""

    side: OrderSide
    margin: Decimal
    leverage: int
    order_type: OrderType = OrderType.MARKET
    limit_price: Decimal | None = None
    pay_with: PayWith = PayWith.QUOTE


@dataclass(frozen=True)
class OrderPlan:
    """Validated order ready for the submission layer."""

    side: OrderSide
    order_type: OrderType
    quantity: Decimal
    pay_with: PayWith
    margin: Decimal
    leverage: int
    notional: Decimal
    price: Decimal | None = None


@dataclass(frozen=True)
class BorrowPlan:
    """Amounts to borrow so a leveraged order is funded."""

    borrow_base: Decimal | None = None
    borrow_quote: Decimal | None = None

    @property
    def is_empty(self) -> bool:
        return self.borrow_base is None and self.borrow_quote is None


@dataclass(frozen=True)
class ClosePlan:
    """Opposing market order (and optional repay) that flattens a position."""

    close_quantity: Decimal
    can_place_close_order: bool
    needs_repay: bool
    order_side: OrderSide
    branch: CloseBranch
    repay_base: Decimal | None = None
    repay_quote: Decimal | None = None


@dataclass(frozen=True)
class NothingToDo:
    """Close outcome when neither an order nor a repay is required."""

    close_quantity: Decimal
    reason: str


@dataclass(frozen=True)
class RepayPlan:
    """Debt repayment sized from a snapshot taken after the close settled."""

    repay_base: Decimal | None = None
    repay_quote: Decimal | None = None


@dataclass(frozen=True)
class CollateralEvent:
    """Deposit or withdrawal of one asset into a margin manager."""

    event_type: CollateralEventType
    asset_symbol: str
    amount: Decimal
    decimals: int
    timestamp: int = 0


@dataclass(frozen=True)
class CollateralBalances:
    """Human-unit balances derived from collateral events."""

    base: Decimal = ZERO
    quote: Decimal = ZERO
    reward_token: Decimal = ZERO
    by_symbol: dict[str, Decimal] = field(default_factory=dict)
