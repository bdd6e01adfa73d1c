"""Average-cost trade ledger over a chronological fill history."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from marginengine.domain.models import Fill, OrderSide
from marginengine.errors import DomainInvariantViolation
from marginengine.numeric import ZERO, safe_div


@dataclass(frozen=True)
class Realization:
    """PnL realized by one closing fill."""

    timestamp: int
    quantity: Decimal
    pnl: Decimal


@dataclass(frozen=True)
class LedgerState:
    """Running long/short inventory after replaying fills."""

    realized_pnl: Decimal = ZERO
    long_base: Decimal = ZERO
    long_cost: Decimal = ZERO
    short_base: Decimal = ZERO
    short_proceeds: Decimal = ZERO
    realizations: tuple[Realization, ...] = ()

    @property
    def avg_entry_long(self) -> Decimal:
        return safe_div(self.long_cost, self.long_base)

    @property
    def avg_entry_short(self) -> Decimal:
        return safe_div(self.short_proceeds, self.short_base)


def chronological(fills: Iterable[Fill]) -> list[Fill]:
    """Return a timestamp-ordered working copy; ties keep caller order."""
    return sorted(fills, key=lambda fill: fill.timestamp)


def latest_fill(fills: Iterable[Fill]) -> Fill | None:
    """Most recent fill, or None for an empty history."""
    ordered = chronological(fills)
    return ordered[-1] if ordered else None


def reduce_fills(fills: Iterable[Fill]) -> LedgerState:
    """Fold fills into inventory and realized PnL.

    A buy first closes open short inventory, realizing the proportional short
    proceeds minus the buy-back cost, and any remainder opens or extends long
    inventory at the fill price. A sell mirrors this against long inventory.
    """
    long_base = ZERO
    long_cost = ZERO
    short_base = ZERO
    short_proceeds = ZERO
    realized = ZERO
    realizations: list[Realization] = []

    for fill in chronological(fills):
        base = fill.base_volume
        if base < 0:
            raise DomainInvariantViolation(f"fill at {fill.timestamp} has negative base volume")
        price = fill.price if fill.price is not None else ZERO

        if fill.our_side is OrderSide.BUY:
            close_qty = min(base, short_base)
            if close_qty > 0:
                proceeds_for_close = close_qty / short_base * short_proceeds
                pnl = proceeds_for_close - price * close_qty
                realized += pnl
                realizations.append(Realization(fill.timestamp, close_qty, pnl))
                short_base -= close_qty
                short_proceeds -= proceeds_for_close
            remainder = base - close_qty
            if remainder > 0:
                long_base += remainder
                long_cost += price * remainder
        else:
            close_qty = min(base, long_base)
            if close_qty > 0:
                cost_for_close = close_qty / long_base * long_cost
                pnl = price * close_qty - cost_for_close
                realized += pnl
                realizations.append(Realization(fill.timestamp, close_qty, pnl))
                long_base -= close_qty
                long_cost -= cost_for_close
            remainder = base - close_qty
            if remainder > 0:
                short_base += remainder
                short_proceeds += price * remainder

        _check_inventory(fill, long_base, short_base)

    return LedgerState(
        realized_pnl=realized,
        long_base=long_base,
        long_cost=long_cost,
        short_base=short_base,
        short_proceeds=short_proceeds,
        realizations=tuple(realizations),
    )


def _check_inventory(fill: Fill, long_base: Decimal, short_base: Decimal) -> None:
    if long_base < 0 or short_base < 0:
        raise DomainInvariantViolation(
            f"negative inventory after fill at {fill.timestamp}: "
            f"long={long_base} short={short_base}"
        )
