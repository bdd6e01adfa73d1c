"""Borrow amounts that fund a leveraged order."""

from __future__ import annotations

from decimal import Decimal

from marginengine.domain.models import BorrowPlan, OrderSide
from marginengine.numeric import quantize


def compute_borrow(
    side: OrderSide,
    margin: Decimal,
    leverage: int,
    mark_price: Decimal | None,
    precision: int = 6,
) -> BorrowPlan:
    """Borrow ``(leverage - 1)`` times the margin on the side the order spends.

    Shorts borrow base to sell; longs borrow quote to buy, which needs a mark
    price. Without one the long borrow is omitted and the order must not go out.
    """
    if leverage <= 1:
        return BorrowPlan()
    extra = leverage - 1
    if side is OrderSide.SELL:
        return BorrowPlan(borrow_base=quantize(margin * extra, precision))
    if mark_price is None or mark_price <= 0:
        return BorrowPlan()
    return BorrowPlan(borrow_quote=quantize(margin * mark_price * extra, precision))
