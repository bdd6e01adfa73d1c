"""JSONL event sink and per-run Plotly PnL report."""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

import pandas as pd
import plotly.express as px

from marginengine.accounting.ledger import Realization
from marginengine.domain.events import EngineEvent


def to_payload(value: Any) -> Any:
    """Convert engine results into JSON-safe values; Decimals become strings."""
    if is_dataclass(value) and not isinstance(value, type):
        return {key: to_payload(item) for key, item in asdict(value).items()}
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(key): to_payload(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_payload(item) for item in value]
    return value


class JsonlEventSink:
    """Append-only JSONL writer."""

    def __init__(self, path: str) -> None:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.path = output_path

    def emit(self, event: EngineEvent) -> None:
        record = to_payload(event.to_record())
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, sort_keys=True))
            handle.write("\n")


def load_events(path: str | Path) -> list[dict[str, Any]]:
    """Load JSONL records from disk."""
    records: list[dict[str, Any]] = []
    input_path = Path(path)
    if not input_path.exists():
        return records
    with input_path.open("r", encoding="utf-8") as handle:
        for line in handle:
            text = line.strip()
            if not text:
                continue
            records.append(json.loads(text))
    return records


def realizations_frame(realizations: tuple[Realization, ...] | list[Realization]) -> pd.DataFrame:
    """Tabulate closing events with a running realized-PnL column."""
    frame = pd.DataFrame(
        {
            "timestamp": [item.timestamp for item in realizations],
            "quantity": [float(item.quantity) for item in realizations],
            "pnl": [float(item.pnl) for item in realizations],
        }
    )
    frame["ts"] = pd.to_datetime(frame["timestamp"], unit="ms", utc=True)
    frame["cumulative_pnl"] = frame["pnl"].cumsum()
    return frame


def generate_pnl_report(
    realizations: tuple[Realization, ...] | list[Realization],
    output_html_path: str,
    title: str = "Realized PnL",
) -> None:
    """Render cumulative realized PnL over closing fills."""
    output = Path(output_html_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    if not realizations:
        empty_df = pd.DataFrame({"event": ["no closing fills"], "count": [0]})
        figure = px.bar(empty_df, x="event", y="count", title=title)
        figure.write_html(str(output), include_plotlyjs="cdn")
        return

    frame = realizations_frame(realizations)
    curve = px.line(frame, x="ts", y="cumulative_pnl", markers=True, title=title)
    bars = px.bar(frame, x="ts", y="pnl", hover_data=["quantity"], title="PnL per closing fill")
    html_parts = [
        "<html><head><meta charset='utf-8'><title>marginengine pnl report</title></head><body>",
        curve.to_html(full_html=False, include_plotlyjs="cdn"),
        bars.to_html(full_html=False, include_plotlyjs=False),
        "</body></html>",
    ]
    output.write_text("".join(html_parts), encoding="utf-8")
