"""Ledger, valuation and position accounting."""

from .collateral import sum_collateral_events, symbol_from_asset_type
from .ledger import LedgerState, Realization, chronological, latest_fill, reduce_fills
from .position import resolve_position, resolve_side
from .valuation import compute_valuation, risk_band

__all__ = [
    "LedgerState",
    "Realization",
    "chronological",
    "compute_valuation",
    "latest_fill",
    "reduce_fills",
    "resolve_position",
    "resolve_side",
    "risk_band",
    "sum_collateral_events",
    "symbol_from_asset_type",
]
