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
from marginengine.execution.close import plan_repay, solve_close

LIMITS = TradingLimits(min_order_quantity=Decimal("1"), max_leverage=3, qty_precision=6)


def _position(side: PositionSide, size: str) -> Position:
    return Position(
        side=side,
        size=Decimal(size),
        entry_price=Decimal("0"),
        has_known_entry=False,
        realized_pnl=Decimal("0"),
        unrealized_pnl=Decimal("0"),
    )


def _latest(side: OrderSide, base: str, quote: str | None, price: str | None) -> Fill:
    return Fill(
        timestamp=10,
        our_side=side,
        base_volume=Decimal(base),
        quote_volume=Decimal(quote) if quote is not None else None,
        price=Decimal(price) if price is not None else None,
    )


def _close(
    position: Position,
    snapshot: MarginSnapshot | None,
    latest: Fill | None,
    mark: str | None,
) -> ClosePlan | NothingToDo:
    return solve_close(
        position,
        snapshot,
        latest,
        Decimal(mark) if mark is not None else None,
        LIMITS,
    )


def test_short_close_buys_back_fill_notional_plus_unrealized() -> None:
    snapshot = MarginSnapshot(
        base_asset=Decimal("0"),
        quote_asset=Decimal("120"),
        base_debt=Decimal("50"),
    )

    plan = _close(
        _position(PositionSide.SHORT, "50"),
        snapshot,
        _latest(OrderSide.SELL, "50", "100", "2"),
        "1.8",
    )

    assert isinstance(plan, ClosePlan)
    assert plan.close_quantity == Decimal("61.111111")
    assert plan.branch is CloseBranch.SHORT_FROM_FILL
    assert plan.order_side is OrderSide.BUY
    assert plan.can_place_close_order
    assert plan.needs_repay
    assert plan.repay_base == Decimal("50")
    assert plan.repay_quote is None


def test_short_close_is_capped_by_available_quote() -> None:
    snapshot = MarginSnapshot(quote_asset=Decimal("60"), base_debt=Decimal("50"))

    plan = _close(
        _position(PositionSide.SHORT, "50"),
        snapshot,
        _latest(OrderSide.SELL, "50", "100", "2"),
        "1.8",
    )

    assert isinstance(plan, ClosePlan)
    assert plan.close_quantity == Decimal("33.333333")


def test_short_without_usable_fill_spends_quote_balance() -> None:
    snapshot = MarginSnapshot(quote_asset=Decimal("90"), base_debt=Decimal("60"))

    plan = _close(_position(PositionSide.SHORT, "60"), snapshot, None, "1.8")

    assert isinstance(plan, ClosePlan)
    assert plan.close_quantity == Decimal("50")
    assert plan.branch is CloseBranch.SHORT_FROM_QUOTE


def test_long_close_from_fill_notional() -> None:
    snapshot = MarginSnapshot(base_asset=Decimal("20"), quote_debt=Decimal("10"))

    plan = _close(
        _position(PositionSide.LONG, "15"),
        snapshot,
        _latest(OrderSide.BUY, "10", "20", "2"),
        "2.5",
    )

    assert isinstance(plan, ClosePlan)
    assert plan.close_quantity == Decimal("10")
    assert plan.branch is CloseBranch.LONG_FROM_FILL
    assert plan.order_side is OrderSide.SELL
    assert plan.repay_quote == Decimal("10")


def test_long_close_never_exceeds_position_size() -> None:
    snapshot = MarginSnapshot(base_asset=Decimal("20"))

    plan = _close(
        _position(PositionSide.LONG, "15"),
        snapshot,
        _latest(OrderSide.BUY, "20", "40", "2"),
        "2.5",
    )

    assert isinstance(plan, ClosePlan)
    assert plan.close_quantity == Decimal("15")
    assert not plan.needs_repay


def test_long_close_falls_back_to_fill_base_volume() -> None:
    snapshot = MarginSnapshot(base_asset=Decimal("10"))

    plan = _close(
        _position(PositionSide.LONG, "10"),
        snapshot,
        _latest(OrderSide.BUY, "5", None, None),
        "2",
    )

    assert isinstance(plan, ClosePlan)
    assert plan.close_quantity == Decimal("5")
    assert plan.branch is CloseBranch.LONG_FROM_FILL_BASE


def test_long_close_without_history_sells_base_balance() -> None:
    snapshot = MarginSnapshot(base_asset=Decimal("10"))

    plan = _close(_position(PositionSide.LONG, "10"), snapshot, None, None)

    assert isinstance(plan, ClosePlan)
    assert plan.close_quantity == Decimal("10")
    assert plan.branch is CloseBranch.LONG_FROM_BASE


def test_long_without_base_uses_fill_quote_clamped_to_size() -> None:
    snapshot = MarginSnapshot(base_asset=Decimal("0"))

    plan = _close(
        _position(PositionSide.LONG, "4"),
        snapshot,
        _latest(OrderSide.BUY, "10", "20", "2"),
        "2",
    )

    assert isinstance(plan, ClosePlan)
    assert plan.close_quantity == Decimal("4")
    assert plan.branch is CloseBranch.FILL_QUOTE


def test_short_without_quote_or_price_uses_fill_base() -> None:
    snapshot = MarginSnapshot(quote_asset=Decimal("0"), base_debt=Decimal("9"))

    plan = _close(
        _position(PositionSide.SHORT, "9"),
        snapshot,
        _latest(OrderSide.SELL, "7", None, None),
        None,
    )

    assert isinstance(plan, ClosePlan)
    assert plan.close_quantity == Decimal("7")
    assert plan.branch is CloseBranch.FILL_BASE


def test_flat_account_without_debt_has_nothing_to_do() -> None:
    outcome = _close(_position(PositionSide.NONE, "0"), MarginSnapshot(), None, "2")

    assert isinstance(outcome, NothingToDo)
    assert outcome.close_quantity == 0
    assert "Nothing to repay" in outcome.reason


def test_dust_position_with_debt_only_repays() -> None:
    snapshot = MarginSnapshot(base_debt=Decimal("0.5"))

    plan = _close(_position(PositionSide.SHORT, "0.5"), snapshot, None, "2")

    assert isinstance(plan, ClosePlan)
    assert plan.close_quantity == Decimal("0.5")
    assert plan.branch is CloseBranch.POSITION_SIZE
    assert not plan.can_place_close_order
    assert plan.needs_repay
    assert plan.repay_base == Decimal("0.5")


def test_repay_uses_the_snapshot_it_is_given() -> None:
    stale = MarginSnapshot(base_debt=Decimal("50"), quote_debt=Decimal("3"))
    fresh = MarginSnapshot(quote_debt=Decimal("12"))

    assert plan_repay(stale) == RepayPlan(repay_base=Decimal("50"), repay_quote=Decimal("3"))
    assert plan_repay(fresh) == RepayPlan(repay_base=None, repay_quote=Decimal("12"))
    assert plan_repay(MarginSnapshot()) is None
    assert plan_repay(None) is None
