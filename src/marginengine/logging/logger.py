"""Concise human-readable engine logger."""

from __future__ import annotations

import logging
from decimal import Decimal

from marginengine.domain.models import (
    BorrowPlan,
    ClosePlan,
    NothingToDo,
    OrderPlan,
    Position,
    PositionSide,
    RepayPlan,
    RiskBand,
    Valuation,
)


class HumanLogger:
    """Console logger with fixed line types.

    Display rounding happens here and nowhere else.
    """

    def __init__(self, level: str = "INFO") -> None:
        self._logger = logging.getLogger("marginengine")
        self._logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        self._logger.propagate = False
        if not self._logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter("%(asctime)s | %(message)s", "%Y-%m-%d %H:%M:%S")
            handler.setFormatter(formatter)
            self._logger.addHandler(handler)

    def position(self, pool: str, position: Position) -> None:
        if position.side is PositionSide.NONE:
            self._logger.info(
                "position | %s | flat | realized %s",
                pool,
                self._format_usd(position.realized_pnl, signed=True),
            )
            return
        parts = [
            f"position | {pool} | {position.side.value} {self._format_qty(position.size)}",
        ]
        if position.has_known_entry:
            parts.append(f"entry {self._format_price(position.entry_price)}")
            parts.append(f"upl {self._format_usd(position.unrealized_pnl, signed=True)}")
        else:
            parts.append("entry unknown")
        if position.mark_price is None:
            parts.append("price unavailable")
        else:
            parts.append(f"mark {self._format_price(position.mark_price)}")
        parts.append(f"realized {self._format_usd(position.realized_pnl, signed=True)}")
        self._logger.info(" | ".join(parts))

    def valuation(self, valuation: Valuation, band: RiskBand) -> None:
        parts = [
            f"valuation | collateral {self._format_usd(valuation.collateral_usd)}",
            f"debt {self._format_usd(valuation.debt_usd)}",
            f"equity {self._format_usd(valuation.equity_usd)}",
        ]
        if band is RiskBand.NO_DEBT:
            parts.append("risk no debt")
        elif valuation.risk_ratio is not None:
            parts.append(f"risk {valuation.risk_ratio:.2f}x ({band.value})")
        if valuation.missing_prices:
            parts.append(f"price unavailable: {', '.join(valuation.missing_prices)}")
        self._logger.info(" | ".join(parts))

    def order(self, plan: OrderPlan, borrow: BorrowPlan) -> None:
        parts = [
            f"order | {plan.order_type.value} {plan.side.value} {self._format_qty(plan.quantity)}",
            f"margin {self._format_qty(plan.margin)} x{plan.leverage}",
            f"notional {self._format_usd(plan.notional)}",
        ]
        if plan.price is not None:
            parts.append(f"limit {self._format_price(plan.price)}")
        if borrow.borrow_base is not None:
            parts.append(f"borrow_base {self._format_qty(borrow.borrow_base)}")
        if borrow.borrow_quote is not None:
            parts.append(f"borrow_quote {self._format_qty(borrow.borrow_quote)}")
        parts.append(f"fees {plan.pay_with.value}")
        self._logger.info(" | ".join(parts))

    def close(self, plan: ClosePlan | NothingToDo) -> None:
        if isinstance(plan, NothingToDo):
            self._logger.info("close | nothing to do | %s", plan.reason)
            return
        parts = [f"close | {plan.branch.value}"]
        if plan.can_place_close_order:
            parts.append(f"market {plan.order_side.value} {self._format_qty(plan.close_quantity)}")
        else:
            parts.append(f"below minimum ({self._format_qty(plan.close_quantity)}), no order")
        if plan.needs_repay:
            parts.append("repay after settle")
        self._logger.info(" | ".join(parts))

    def repay(self, plan: RepayPlan | None) -> None:
        if plan is None:
            self._logger.info("repay | no debt")
            return
        parts = ["repay"]
        if plan.repay_base is not None:
            parts.append(f"base {self._format_qty(plan.repay_base)}")
        if plan.repay_quote is not None:
            parts.append(f"quote {self._format_qty(plan.repay_quote)}")
        self._logger.info(" | ".join(parts))

    def error(self, message: str) -> None:
        self._logger.error("error | %s", message)

    @staticmethod
    def _format_qty(value: Decimal, precision: int = 6) -> str:
        text = f"{value:.{max(0, precision)}f}".rstrip("0").rstrip(".")
        if text in {"", "-0"}:
            return "0"
        return text

    @staticmethod
    def _format_price(value: Decimal) -> str:
        return f"${value:,.4f}"

    @staticmethod
    def _format_usd(value: Decimal, signed: bool = False) -> str:
        if signed:
            return f"{value:+,.2f}"
        return f"${value:,.2f}"
