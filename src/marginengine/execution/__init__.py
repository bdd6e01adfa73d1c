"""Order sizing, borrow and close planning."""

from .engine import (
    RecomputeCache,
    compute_borrow,
    compute_position,
    compute_valuation,
    plan_repay,
    size_order,
    solve_close,
)

__all__ = [
    "RecomputeCache",
    "compute_borrow",
    "compute_position",
    "compute_valuation",
    "plan_repay",
    "size_order",
    "solve_close",
]
