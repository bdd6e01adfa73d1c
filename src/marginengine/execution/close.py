"""Close quantity and repay planning for an open margin position."""

from __future__ import annotations

from decimal import Decimal

from marginengine.domain.models import (
    CloseBranch,
    ClosePlan,
    Fill,
    MarginSnapshot,
    NothingToDo,
    OrderSide,
    Position,
    PositionSide,
    RepayPlan,
    TradingLimits,
)
from marginengine.numeric import ZERO, quantize


def _fill_notional(latest: Fill | None) -> tuple[Decimal, Decimal] | None:
    """Quote size and entry price of the latest fill when both are usable."""
    if latest is None or latest.quote_volume is None or latest.price is None:
        return None
    if latest.price <= 0:
        return None
    return latest.quote_volume, latest.price


def _or(value: Decimal, fallback: Decimal) -> Decimal:
    return value if value != 0 else fallback


def raw_close_quantity(
    position: Position,
    snapshot: MarginSnapshot | None,
    latest: Fill | None,
    mark_price: Decimal | None,
) -> tuple[Decimal, CloseBranch]:
    """Unrounded quantity that flattens the position plus its unrealized PnL.

    The latest fill stands in for the trade that opened the position, so only
    that trade's size is unwound and unrelated collateral is left alone. Branch
    order and clamps follow the venue client and must stay as they are.
    """
    mark = mark_price if mark_price is not None else ZERO
    base_asset = snapshot.base_asset if snapshot is not None else ZERO
    quote_asset = snapshot.quote_asset if snapshot is not None else ZERO
    size = position.size
    side = position.side
    trade = _fill_notional(latest)

    if side is PositionSide.NONE:
        return size, CloseBranch.POSITION_SIZE

    if side is PositionSide.SHORT and trade is not None and mark > 0:
        size_in_quote, entry = trade
        unrealized_in_quote = size_in_quote * (entry - mark) / entry
        quantity = (size_in_quote + unrealized_in_quote) / mark
        if quote_asset > 0:
            quantity = min(quantity, quote_asset / mark)
        return quantity, CloseBranch.SHORT_FROM_FILL

    if side is PositionSide.SHORT and quote_asset > 0 and mark > 0:
        return quote_asset / mark, CloseBranch.SHORT_FROM_QUOTE

    if side is PositionSide.LONG and base_asset > 0:
        if trade is not None and mark > 0:
            size_in_quote, entry = trade
            unrealized_in_quote = size_in_quote * (mark - entry) / entry
            from_trade = (size_in_quote + unrealized_in_quote) / mark
            return min(from_trade, base_asset, _or(size, from_trade)), CloseBranch.LONG_FROM_FILL
        if latest is not None:
            return min(latest.base_volume, base_asset), CloseBranch.LONG_FROM_FILL_BASE
        return min(base_asset, _or(size, base_asset)), CloseBranch.LONG_FROM_BASE

    if trade is not None and mark > 0:
        size_in_quote, entry = trade
        if side is PositionSide.LONG:
            unrealized_in_quote = size_in_quote * (mark - entry) / entry
        else:
            unrealized_in_quote = size_in_quote * (entry - mark) / entry
        quantity = (size_in_quote + unrealized_in_quote) / mark
        return min(quantity, _or(size, quantity)), CloseBranch.FILL_QUOTE

    if latest is not None:
        return min(latest.base_volume, _or(size, latest.base_volume)), CloseBranch.FILL_BASE

    return size, CloseBranch.POSITION_SIZE


def solve_close(
    position: Position,
    snapshot: MarginSnapshot | None,
    latest: Fill | None,
    mark_price: Decimal | None,
    limits: TradingLimits,
) -> ClosePlan | NothingToDo:
    """Size the opposing market order and flag whether debt must be repaid.

    Repay amounts on the returned plan preview the sizing snapshot's debts; the
    actual repay step must be built with :func:`plan_repay` from a snapshot
    fetched after the close order settled.
    """
    quantity, branch = raw_close_quantity(position, snapshot, latest, mark_price)
    close_quantity = quantize(max(ZERO, quantity), limits.qty_precision)
    can_place = close_quantity >= limits.min_order_quantity
    needs_repay = snapshot is not None and snapshot.has_debt

    if not can_place and not needs_repay:
        return NothingToDo(
            close_quantity=close_quantity,
            reason=(
                f"Position size ({close_quantity}) is below minimum order "
                f"{limits.min_order_quantity}. Nothing to repay."
            ),
        )

    repay = plan_repay(snapshot) if needs_repay else None
    return ClosePlan(
        close_quantity=close_quantity,
        can_place_close_order=can_place,
        needs_repay=needs_repay,
        order_side=OrderSide.BUY if position.side is PositionSide.SHORT else OrderSide.SELL,
        branch=branch,
        repay_base=repay.repay_base if repay is not None else None,
        repay_quote=repay.repay_quote if repay is not None else None,
    )


def plan_repay(fresh_snapshot: MarginSnapshot | None) -> RepayPlan | None:
    """Full outstanding debts; the protocol caps what is actually taken."""
    if fresh_snapshot is None or not fresh_snapshot.has_debt:
        return None
    return RepayPlan(
        repay_base=fresh_snapshot.base_debt if fresh_snapshot.base_debt > 0 else None,
        repay_quote=fresh_snapshot.quote_debt if fresh_snapshot.quote_debt > 0 else None,
    )
