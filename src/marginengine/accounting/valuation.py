"""USD collateral, debt and equity from a margin snapshot."""

from __future__ import annotations

from decimal import Decimal

from marginengine.domain.models import MarginSnapshot, RiskBand, Valuation
from marginengine.numeric import ZERO, scale_down

DEFAULT_RISK_WARNING_RATIO = Decimal("1.1")


def leg_usd(amount: Decimal, pyth_price: Decimal | None, pyth_decimals: int) -> Decimal | None:
    """USD value of one asset leg, or None when the oracle price is missing."""
    if pyth_price is None:
        return None
    return scale_down(amount, pyth_decimals) * scale_down(pyth_price, pyth_decimals)


def compute_valuation(
    snapshot: MarginSnapshot | None,
    aux_price: Decimal | None = None,
    aux_amount: Decimal = ZERO,
    aux_symbol: str = "reward_token",
) -> Valuation:
    """Convert snapshot balances and debts into a USD picture.

    Missing prices drop their term and are listed on the result; nothing here
    raises for absent data.
    """
    missing: list[str] = []
    collateral = ZERO
    debt = ZERO

    if snapshot is not None:
        for name, asset, owed, price, decimals in _legs(snapshot):
            asset_usd = leg_usd(asset, price, decimals)
            if asset_usd is None:
                if asset or owed:
                    missing.append(name)
                continue
            collateral += asset_usd
            debt += leg_usd(owed, price, decimals) or ZERO

    if aux_amount:
        if aux_price is None:
            missing.append(aux_symbol)
        else:
            collateral += aux_amount * aux_price

    return Valuation(
        collateral_usd=collateral,
        debt_usd=debt,
        equity_usd=max(ZERO, collateral - debt),
        risk_ratio=snapshot.risk_ratio if snapshot is not None else None,
        missing_prices=tuple(missing),
    )


def _legs(
    snapshot: MarginSnapshot,
) -> list[tuple[str, Decimal, Decimal, Decimal | None, int]]:
    return [
        (
            "base",
            snapshot.base_asset,
            snapshot.base_debt,
            snapshot.base_pyth_price,
            snapshot.base_pyth_decimals,
        ),
        (
            "quote",
            snapshot.quote_asset,
            snapshot.quote_debt,
            snapshot.quote_pyth_price,
            snapshot.quote_pyth_decimals,
        ),
    ]


def risk_band(
    snapshot: MarginSnapshot | None,
    warning_ratio: Decimal = DEFAULT_RISK_WARNING_RATIO,
) -> RiskBand:
    """Classify account health for display."""
    if snapshot is None:
        return RiskBand.UNKNOWN
    if not snapshot.has_debt:
        return RiskBand.NO_DEBT
    if snapshot.risk_ratio is None:
        return RiskBand.UNKNOWN
    if snapshot.risk_ratio < warning_ratio:
        return RiskBand.WARNING
    return RiskBand.HEALTHY
