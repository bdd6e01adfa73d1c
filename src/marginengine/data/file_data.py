"""File-backed margin data source: fills/events CSV plus snapshot and price JSON."""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Any

import pandas as pd

from marginengine.accounting.collateral import symbol_from_asset_type
from marginengine.domain.models import (
    CollateralEvent,
    CollateralEventType,
    Fill,
    MarginSnapshot,
)
from marginengine.errors import DataGapError
from marginengine.numeric import optional_decimal, to_decimal


class FileMarginDataSource:
    """Load engine inputs from a per-pool directory.

    Layout, first match wins::

        <data_dir>/<POOL>/<margin_manager_id>/fills.csv
        <data_dir>/<POOL>/fills.csv

    alongside ``snapshot.json``, ``prices.json`` and ``collateral_events.csv``.
    Missing files are data gaps and degrade to empty values; unreadable files
    raise DataGapError.
    """

    fill_required_columns = ("timestamp", "base_volume")
    event_required_columns = ("event_type", "amount")

    def __init__(
        self,
        data_dir: str,
        balance_manager_id: str | None = None,
        pool_id: str = "",
    ) -> None:
        self.data_dir = Path(data_dir)
        self.balance_manager_id = balance_manager_id
        self.pool_id = pool_id

    def get_margin_snapshot(self, margin_manager_id: str, pool_id: str) -> MarginSnapshot | None:
        path = self._resolve_path(pool_id, margin_manager_id, "snapshot.json")
        if path is None:
            return None
        record = self._read_json(path)
        if not record:
            return None
        try:
            return MarginSnapshot.from_record(record)
        except (TypeError, ValueError) as exc:
            raise DataGapError(f"{path}: invalid margin snapshot: {exc}") from exc

    def get_fill_history(self, margin_manager_id: str, pool_id: str) -> list[Fill]:
        path = self._resolve_path(pool_id, margin_manager_id, "fills.csv")
        if path is None:
            return []
        frame = self._read_csv(path, self.fill_required_columns)
        if "our_side" not in frame.columns and "type" not in frame.columns:
            raise DataGapError(f"{path}: CSV needs an 'our_side' or 'type' column")
        fills: list[Fill] = []
        for record in frame.to_dict(orient="records"):
            try:
                fills.append(Fill.from_trade(_blank_to_none(record), self.balance_manager_id))
            except (KeyError, ValueError) as exc:
                raise DataGapError(f"{path}: invalid fill row {record}: {exc}") from exc
        return fills

    def get_mark_price(self, pool_id: str) -> Decimal | None:
        prices = self._load_prices(pool_id)
        return optional_decimal(prices.get("mark_price"))

    def get_auxiliary_asset_price(self, symbol: str, pool_id: str = "") -> Decimal | None:
        prices = self._load_prices(pool_id or self.pool_id)
        aux = prices.get("aux_prices") or {}
        return optional_decimal(aux.get(symbol.upper()))

    def get_collateral_events(self, margin_manager_id: str, pool_id: str) -> list[CollateralEvent]:
        path = self._resolve_path(pool_id, margin_manager_id, "collateral_events.csv")
        if path is None:
            return []
        frame = self._read_csv(path, self.event_required_columns)
        events: list[CollateralEvent] = []
        for record in frame.to_dict(orient="records"):
            row = _blank_to_none(record)
            symbol = row.get("asset_symbol")
            if not symbol:
                symbol = symbol_from_asset_type(str(row.get("asset_type") or ""))
            try:
                events.append(
                    CollateralEvent(
                        event_type=CollateralEventType(str(row["event_type"]).strip().lower()),
                        asset_symbol=str(symbol).upper(),
                        amount=to_decimal(row.get("amount")),
                        decimals=int(row.get("decimals") or 0),
                        timestamp=int(row.get("timestamp") or 0),
                    )
                )
            except ValueError as exc:
                raise DataGapError(f"{path}: invalid collateral event {record}: {exc}") from exc
        return events

    def _load_prices(self, pool_id: str) -> dict[str, Any]:
        candidates = []
        if pool_id:
            candidates.append(self.data_dir / pool_id.upper() / "prices.json")
        candidates.append(self.data_dir / "prices.json")
        for candidate in candidates:
            if candidate.exists():
                return self._read_json(candidate)
        return {}

    def _resolve_path(self, pool_id: str, margin_manager_id: str, filename: str) -> Path | None:
        pool_dir = self.data_dir / pool_id.upper()
        candidates: list[Path] = []
        if margin_manager_id:
            candidates.append(pool_dir / margin_manager_id / filename)
        candidates.append(pool_dir / filename)
        for candidate in candidates:
            if candidate.exists():
                return candidate
        return None

    @staticmethod
    def _read_json(path: Path) -> dict[str, Any]:
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise DataGapError(f"{path}: unreadable JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise DataGapError(f"{path}: expected a JSON object")
        return payload

    @staticmethod
    def _read_csv(path: Path, required: tuple[str, ...]) -> pd.DataFrame:
        # Read as text so amounts reach Decimal without a float round trip.
        try:
            frame = pd.read_csv(path, dtype=str, keep_default_na=False)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
            raise DataGapError(f"{path}: unreadable CSV: {exc}") from exc
        frame = frame.rename(columns={column: column.strip().lower() for column in frame.columns})
        for name in required:
            if name not in frame.columns:
                raise DataGapError(f"{path}: CSV missing required column '{name}'")
        return frame


def _blank_to_none(record: dict[Any, Any]) -> dict[str, Any]:
    return {
        str(key): (None if isinstance(value, str) and not value.strip() else value)
        for key, value in record.items()
    }
