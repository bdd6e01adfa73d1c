"""Collaborator contract for engine inputs."""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from marginengine.domain.models import CollateralEvent, Fill, MarginSnapshot


class MarginDataSource(Protocol):
    """Supplies snapshots, fills and prices as plain data."""

    def get_margin_snapshot(self, margin_manager_id: str, pool_id: str) -> MarginSnapshot | None:
        """Return the latest margin-manager state, or None when unavailable."""

    def get_fill_history(self, margin_manager_id: str, pool_id: str) -> list[Fill]:
        """Return fills for the manager in the pool, any order."""

    def get_mark_price(self, pool_id: str) -> Decimal | None:
        """Return the live pool price, or None when unavailable."""

    def get_auxiliary_asset_price(self, symbol: str) -> Decimal | None:
        """Return the USD price of a third settlement asset."""

    def get_collateral_events(self, margin_manager_id: str, pool_id: str) -> list[CollateralEvent]:
        """Return deposit and withdraw events for the manager."""
