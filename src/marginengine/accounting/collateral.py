"""Available balances derived from deposit and withdraw events."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from marginengine.domain.models import CollateralBalances, CollateralEvent, CollateralEventType
from marginengine.numeric import ZERO, scale_down

KNOWN_SYMBOLS = ("USDC", "SUI", "DEEP", "WAL")


def symbol_from_asset_type(asset_type: str) -> str:
    """Display symbol for a fully-qualified coin type such as ``0x2::sui::SUI``."""
    lower = asset_type.lower()
    for symbol in KNOWN_SYMBOLS:
        if symbol.lower() in lower:
            return symbol
    tail = asset_type.split("::")[-1].strip()
    return tail.upper() or "?"


def sum_collateral_events(
    events: Iterable[CollateralEvent],
    base_symbol: str,
    quote_symbol: str,
    reward_symbol: str = "DEEP",
) -> CollateralBalances:
    """Net deposits minus withdrawals per asset, in human units."""
    by_symbol: dict[str, Decimal] = {}
    for event in events:
        symbol = event.asset_symbol.upper()
        amount = scale_down(event.amount, event.decimals)
        if event.event_type is CollateralEventType.WITHDRAW:
            amount = -amount
        by_symbol[symbol] = by_symbol.get(symbol, ZERO) + amount
    return CollateralBalances(
        base=by_symbol.get(base_symbol.upper(), ZERO),
        quote=by_symbol.get(quote_symbol.upper(), ZERO),
        reward_token=by_symbol.get(reward_symbol.upper(), ZERO),
        by_symbol=by_symbol,
    )
