from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from marginengine.accounting.ledger import Realization
from marginengine.domain.events import EngineEvent
from marginengine.domain.models import BorrowPlan, OrderSide, PositionSide
from marginengine.logging.event_sink import (
    JsonlEventSink,
    generate_pnl_report,
    load_events,
    realizations_frame,
    to_payload,
)


def test_payload_keeps_decimal_precision_as_strings() -> None:
    payload = to_payload(
        {
            "borrow": BorrowPlan(borrow_quote=Decimal("30.000001")),
            "side": PositionSide.SHORT,
            "sides": (OrderSide.BUY, OrderSide.SELL),
        }
    )

    assert payload == {
        "borrow": {"borrow_base": None, "borrow_quote": "30.000001"},
        "side": "short",
        "sides": ["buy", "sell"],
    }


def test_sink_appends_jsonl_records(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "events.jsonl"
    sink = JsonlEventSink(str(path))

    sink.emit(EngineEvent(run_id="r1", pool="SUI_USDC", event_type="position", payload={"a": 1}))
    sink.emit(
        EngineEvent(
            run_id="r1",
            pool="SUI_USDC",
            event_type="valuation",
            payload={"equity_usd": Decimal("88.5")},
        )
    )

    records = load_events(path)
    assert [record["event_type"] for record in records] == ["position", "valuation"]
    assert records[1]["payload"] == {"equity_usd": "88.5"}
    assert records[0]["run_id"] == "r1"


def test_load_events_missing_file_is_empty(tmp_path: Path) -> None:
    assert load_events(tmp_path / "missing.jsonl") == []


def test_realizations_frame_accumulates_pnl() -> None:
    frame = realizations_frame(
        [
            Realization(timestamp=1_700_000_000_000, quantity=Decimal("2"), pnl=Decimal("3")),
            Realization(timestamp=1_700_000_060_000, quantity=Decimal("1"), pnl=Decimal("-1")),
        ]
    )

    assert list(frame["cumulative_pnl"]) == [3.0, 2.0]
    assert str(frame["ts"].dt.tz) == "UTC"


def test_report_is_written_with_and_without_history(tmp_path: Path) -> None:
    empty_path = tmp_path / "empty.html"
    full_path = tmp_path / "full.html"

    generate_pnl_report([], str(empty_path))
    generate_pnl_report(
        (Realization(timestamp=1_700_000_000_000, quantity=Decimal("1"), pnl=Decimal("2")),),
        str(full_path),
        title="SUI_USDC realized PnL",
    )

    assert "plotly" in empty_path.read_text(encoding="utf-8").lower()
    full = full_path.read_text(encoding="utf-8")
    assert "SUI_USDC realized PnL" in full
    assert "PnL per closing fill" in full
