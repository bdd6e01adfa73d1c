"""Engine entry points consumed by the transaction-submission layer."""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from marginengine.accounting.ledger import latest_fill, reduce_fills
from marginengine.accounting.position import resolve_position
from marginengine.accounting.valuation import compute_valuation as _compute_valuation
from marginengine.domain.models import (
    BorrowPlan,
    ClosePlan,
    Fill,
    MarginSnapshot,
    NothingToDo,
    OrderPlan,
    OrderRequest,
    OrderSide,
    Position,
    RepayPlan,
    TradingLimits,
    Valuation,
)
from marginengine.execution import borrow, close, sizing
from marginengine.numeric import Number, optional_decimal, to_decimal

T = TypeVar("T")
CacheKey = tuple[Any, ...]


def compute_position(
    snapshot: MarginSnapshot | None,
    fills: Iterable[Fill],
    mark_price: Number | None,
) -> Position:
    """Replay fills and resolve them against the live snapshot."""
    history = list(fills)
    return resolve_position(
        ledger=reduce_fills(history),
        snapshot=snapshot,
        latest=latest_fill(history),
        mark_price=optional_decimal(mark_price),
    )


def compute_valuation(
    snapshot: MarginSnapshot | None,
    aux_price: Number | None,
    aux_amount: Number | None = None,
) -> Valuation:
    """USD collateral/debt/equity including the reward-token term."""
    return _compute_valuation(
        snapshot,
        aux_price=optional_decimal(aux_price),
        aux_amount=to_decimal(aux_amount),
    )


def size_order(
    request: OrderRequest,
    valuation: Valuation,
    reference_price: Number | None,
    limits: TradingLimits,
) -> OrderPlan:
    """Validated order plan; raises ValidationError with a specific reason."""
    return sizing.size_order(request, valuation, optional_decimal(reference_price), limits)


def compute_borrow(
    side: OrderSide,
    margin: Number,
    leverage: int,
    mark_price: Number | None,
    precision: int = 6,
) -> BorrowPlan:
    return borrow.compute_borrow(
        side,
        to_decimal(margin),
        leverage,
        optional_decimal(mark_price),
        precision=precision,
    )


def solve_close(
    position: Position,
    snapshot: MarginSnapshot | None,
    latest: Fill | None,
    mark_price: Number | None,
    limits: TradingLimits,
) -> ClosePlan | NothingToDo:
    return close.solve_close(position, snapshot, latest, optional_decimal(mark_price), limits)


def plan_repay(fresh_snapshot: MarginSnapshot | None) -> RepayPlan | None:
    return close.plan_repay(fresh_snapshot)


class RecomputeCache:
    """Memoize engine results by a caller-supplied version tuple.

    Callers bump ``(snapshot_version, fills_version, input_version)`` whenever
    an input changes; identical keys reuse the previous result.
    """

    def __init__(self, maxsize: int = 32) -> None:
        if maxsize <= 0:
            raise ValueError("maxsize must be positive")
        self.maxsize = maxsize
        self._entries: OrderedDict[tuple[str, CacheKey], Any] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get_or_compute(self, name: str, key: CacheKey, compute: Callable[[], T]) -> T:
        cache_key = (name, key)
        if cache_key in self._entries:
            self._entries.move_to_end(cache_key)
            self.hits += 1
            return self._entries[cache_key]
        self.misses += 1
        value = compute()
        self._entries[cache_key] = value
        if len(self._entries) > self.maxsize:
            self._entries.popitem(last=False)
        return value

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
