"""Resolve the current position from ledger output and a live snapshot."""

from __future__ import annotations

from decimal import Decimal

from marginengine.accounting.ledger import LedgerState
from marginengine.domain.models import Fill, MarginSnapshot, OrderSide, Position, PositionSide
from marginengine.numeric import ZERO


def resolve_side(net_base: Decimal, latest: Fill | None) -> PositionSide:
    """Direction of a non-flat position.

    The latest fill wins because the snapshot carries size but not direction;
    the sign of net base is only a fallback for missing or lagging history.
    """
    if net_base == 0:
        return PositionSide.NONE
    if latest is not None:
        return PositionSide.SHORT if latest.our_side is OrderSide.SELL else PositionSide.LONG
    return PositionSide.LONG if net_base > 0 else PositionSide.SHORT


def resolve_position(
    ledger: LedgerState,
    snapshot: MarginSnapshot | None,
    latest: Fill | None,
    mark_price: Decimal | None,
) -> Position:
    """Combine inventory and balances into the authoritative position view."""
    net_base = snapshot.net_base if snapshot is not None else ZERO
    size = abs(net_base)
    side = resolve_side(net_base, latest)

    if side is PositionSide.LONG:
        entry = ledger.avg_entry_long
    elif side is PositionSide.SHORT:
        entry = ledger.avg_entry_short
    else:
        entry = ZERO
    has_known_entry = entry > 0

    unrealized = ZERO
    if has_known_entry and mark_price is not None and mark_price > 0 and size > 0:
        if side is PositionSide.LONG:
            unrealized = size * (mark_price - entry)
        else:
            unrealized = size * (entry - mark_price)

    return Position(
        side=side,
        size=size,
        entry_price=entry,
        has_known_entry=has_known_entry,
        realized_pnl=ledger.realized_pnl,
        unrealized_pnl=unrealized,
        net_base=net_base,
        has_debt=snapshot.has_debt if snapshot is not None else False,
        mark_price=mark_price,
    )
