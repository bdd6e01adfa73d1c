"""Order sizing and capital-adequacy validation."""

from __future__ import annotations

from decimal import Decimal

from marginengine.domain.models import (
    OrderPlan,
    OrderRequest,
    OrderType,
    TradingLimits,
    Valuation,
)
from marginengine.errors import ValidationError, ValidationReason
from marginengine.numeric import quantize


def clamp_int(value: int, low: int, high: int) -> int:
    """Clamp an integer within inclusive bounds."""
    return max(low, min(high, value))


def validate_leverage(leverage: object, max_leverage: int) -> int:
    """Return leverage when it is an integer in ``[1, max_leverage]``."""
    if isinstance(leverage, bool) or not isinstance(leverage, int):
        raise ValidationError(
            ValidationReason.LEVERAGE_OUT_OF_RANGE,
            f"Leverage must be a whole number, got {leverage!r}",
        )
    if leverage < 1 or leverage > max_leverage:
        raise ValidationError(
            ValidationReason.LEVERAGE_OUT_OF_RANGE,
            f"Leverage {leverage}x is outside 1x..{max_leverage}x for this pool",
        )
    return leverage


def reference_price_for(request: OrderRequest, mark_price: Decimal | None) -> Decimal | None:
    """Limit price for limit orders, live mark otherwise."""
    if request.order_type is OrderType.LIMIT:
        return request.limit_price
    return mark_price


def size_order(
    request: OrderRequest,
    valuation: Valuation,
    reference_price: Decimal | None,
    limits: TradingLimits,
) -> OrderPlan:
    """Turn margin and leverage into a validated order quantity.

    ``reference_price`` is the live mark; a limit order's own price takes
    precedence. The notional check holds even though the borrow step lets the
    order exceed the trader's raw margin.
    """
    margin = request.margin
    if not margin.is_finite() or margin <= 0:
        raise ValidationError(
            ValidationReason.INVALID_AMOUNT,
            "Enter a valid margin (your capital)",
        )
    leverage = validate_leverage(request.leverage, limits.max_leverage)

    if request.order_type is OrderType.LIMIT:
        if request.limit_price is None:
            raise ValidationError(
                ValidationReason.MISSING_LIMIT_PRICE,
                "Enter price and margin for limit order",
            )
        if not request.limit_price.is_finite() or request.limit_price <= 0:
            raise ValidationError(ValidationReason.INVALID_PRICE, "Enter a valid price")

    quantity = quantize(margin * leverage, limits.qty_precision)
    if quantity < limits.min_order_quantity:
        min_margin = quantize(limits.min_order_quantity / leverage, 2)
        raise ValidationError(
            ValidationReason.BELOW_MIN_QUANTITY,
            f"Position (margin x {leverage}x) must be at least {limits.min_order_quantity}. "
            f"Use margin >= {min_margin}",
        )

    price = reference_price_for(request, reference_price)
    if price is None or price <= 0:
        raise ValidationError(
            ValidationReason.PRICE_UNAVAILABLE,
            "No reference price available to check margin",
        )
    notional = quantity * price
    max_notional = valuation.equity_usd * leverage
    if notional > max_notional:
        raise ValidationError(
            ValidationReason.NOTIONAL_EXCEEDS_EQUITY,
            f"Not enough margin for this size at {leverage}x: "
            f"notional ${quantize(notional, 2)} exceeds max ${quantize(max_notional, 2)}",
        )

    return OrderPlan(
        side=request.side,
        order_type=request.order_type,
        quantity=quantity,
        pay_with=request.pay_with,
        margin=margin,
        leverage=leverage,
        notional=notional,
        price=request.limit_price if request.order_type is OrderType.LIMIT else None,
    )


def max_margin_base(valuation: Valuation, mark_price: Decimal | None) -> Decimal | None:
    """Largest margin in base units the trader's equity supports."""
    if mark_price is None or mark_price <= 0:
        return None
    return valuation.equity_usd / mark_price
