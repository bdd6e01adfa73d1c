"""Runtime wiring: load inputs, recompute engine outputs, log and record them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from uuid import uuid4

from marginengine.accounting.collateral import sum_collateral_events
from marginengine.accounting.ledger import LedgerState, latest_fill, reduce_fills
from marginengine.accounting.position import resolve_position
from marginengine.accounting.valuation import compute_valuation, risk_band
from marginengine.config import Settings
from marginengine.data.base import MarginDataSource
from marginengine.data.file_data import FileMarginDataSource
from marginengine.domain.events import EngineEvent
from marginengine.domain.models import (
    ClosePlan,
    Fill,
    MarginSnapshot,
    OrderRequest,
    Position,
    Valuation,
)
from marginengine.errors import DataGapError, ValidationError
from marginengine.execution.borrow import compute_borrow
from marginengine.execution.close import plan_repay, solve_close
from marginengine.execution.sizing import size_order
from marginengine.logging.event_sink import JsonlEventSink, generate_pnl_report, to_payload
from marginengine.logging.logger import HumanLogger


class Action(StrEnum):
    POSITION = "position"
    VALUATION = "valuation"
    SIZE_ORDER = "size-order"
    CLOSE = "close"


@dataclass(frozen=True)
class AccountView:
    """Inputs and derived state for one margin manager at one moment."""

    snapshot: MarginSnapshot | None
    fills: list[Fill]
    ledger: LedgerState
    position: Position
    valuation: Valuation


def pool_symbols(pool: str) -> tuple[str, str]:
    """Split ``SUI_USDC`` into its base and quote symbols."""
    base, _, quote = pool.partition("_")
    return base or pool, quote or "USDC"


def build_data_source(settings: Settings) -> MarginDataSource:
    return FileMarginDataSource(
        settings.data_dir,
        balance_manager_id=settings.balance_manager_id or None,
        pool_id=settings.pool,
    )


def load_account(settings: Settings, source: MarginDataSource) -> AccountView:
    """Fetch every input once and derive position and valuation from them."""
    manager_id = settings.margin_manager_id
    snapshot = source.get_margin_snapshot(manager_id, settings.pool)
    fills = source.get_fill_history(manager_id, settings.pool)
    mark_price = source.get_mark_price(settings.pool)
    aux_price = source.get_auxiliary_asset_price(settings.reward_token_symbol)
    base_symbol, quote_symbol = pool_symbols(settings.pool)
    balances = sum_collateral_events(
        source.get_collateral_events(manager_id, settings.pool),
        base_symbol=base_symbol,
        quote_symbol=quote_symbol,
        reward_symbol=settings.reward_token_symbol,
    )
    ledger = reduce_fills(fills)
    position = resolve_position(
        ledger=ledger,
        snapshot=snapshot,
        latest=latest_fill(fills),
        mark_price=mark_price,
    )
    valuation = compute_valuation(
        snapshot,
        aux_price=aux_price,
        aux_amount=balances.reward_token,
        aux_symbol=settings.reward_token_symbol,
    )
    return AccountView(
        snapshot=snapshot,
        fills=fills,
        ledger=ledger,
        position=position,
        valuation=valuation,
    )


def run(settings: Settings, action: Action, request: OrderRequest | None = None) -> int:
    """Recompute engine outputs for one action and return a process exit code."""
    run_id = uuid4().hex
    run_directory = Path(settings.events_dir) / run_id
    run_directory.mkdir(parents=True, exist_ok=True)
    event_sink = JsonlEventSink(str(run_directory / "events.jsonl"))
    human_logger = HumanLogger(level=settings.log_level)

    def emit(event_type: str, payload: object) -> None:
        event_sink.emit(
            EngineEvent(
                run_id=run_id,
                pool=settings.pool,
                event_type=event_type,
                payload=to_payload(payload),
            )
        )

    source = build_data_source(settings)
    try:
        view = load_account(settings, source)
    except DataGapError as exc:
        human_logger.error(str(exc))
        emit("error", {"message": str(exc)})
        return 1

    human_logger.position(settings.pool, view.position)
    emit("position", view.position)
    limits = settings.trading_limits()

    if action is Action.VALUATION:
        band = risk_band(view.snapshot, settings.risk_warning_ratio)
        human_logger.valuation(view.valuation, band)
        emit("valuation", {"valuation": view.valuation, "risk_band": band})
    elif action is Action.SIZE_ORDER:
        if request is None:
            raise ValueError("size-order requires an order request")
        mark_price = view.position.mark_price
        try:
            plan = size_order(request, view.valuation, mark_price, limits)
        except ValidationError as exc:
            human_logger.error(str(exc))
            emit("validation_error", {"reason": exc.reason, "message": str(exc)})
            return 3
        borrow = compute_borrow(
            plan.side, plan.margin, plan.leverage, mark_price, precision=limits.qty_precision
        )
        if plan.leverage > 1 and borrow.is_empty:
            human_logger.error("price unavailable; leveraged order cannot be funded")
            emit("validation_error", {"reason": "price_unavailable"})
            return 3
        human_logger.order(plan, borrow)
        emit("order_plan", {"order": plan, "borrow": borrow})
    elif action is Action.CLOSE:
        outcome = solve_close(
            view.position,
            view.snapshot,
            latest_fill(view.fills),
            view.position.mark_price,
            limits,
        )
        human_logger.close(outcome)
        emit("close_plan", outcome)
        if isinstance(outcome, ClosePlan) and outcome.needs_repay:
            # No order is submitted, so the loaded snapshot is the freshest one.
            repay = plan_repay(view.snapshot)
            human_logger.repay(repay)
            emit("repay_plan", repay)

    generate_pnl_report(
        view.ledger.realizations,
        str(run_directory / "report.html"),
        title=f"{settings.pool} realized PnL",
    )
    return 0
