"""Domain models and event types."""

from .events import EngineEvent
from .models import (
    BorrowPlan,
    CloseBranch,
    ClosePlan,
    CollateralBalances,
    CollateralEvent,
    CollateralEventType,
    Fill,
    MarginSnapshot,
    NothingToDo,
    OrderPlan,
    OrderRequest,
    OrderSide,
    OrderType,
    PayWith,
    Position,
    PositionSide,
    RepayPlan,
    RiskBand,
    TradingLimits,
    Valuation,
)

__all__ = [
    "BorrowPlan",
    "CloseBranch",
    "ClosePlan",
    "CollateralBalances",
    "CollateralEvent",
    "CollateralEventType",
    "EngineEvent",
    "Fill",
    "MarginSnapshot",
    "NothingToDo",
    "OrderPlan",
    "OrderRequest",
    "OrderSide",
    "OrderType",
    "PayWith",
    "Position",
    "PositionSide",
    "RepayPlan",
    "RiskBand",
    "TradingLimits",
    "Valuation",
]
