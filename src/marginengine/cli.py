"""Command-line interface for the margin engine."""

from __future__ import annotations

import argparse
import sys

from marginengine.config import Settings
from marginengine.domain.models import OrderRequest, OrderSide, OrderType, PayWith
from marginengine.errors import ConfigError
from marginengine.numeric import optional_decimal, to_decimal
from marginengine.runtime import Action, run


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(
        description="Recompute margin position, valuation, order and close plans"
    )
    parser.add_argument("--pool", type=str, help="Pool name, e.g. SUI_USDC")
    parser.add_argument("--margin-manager", type=str, help="Margin manager id")
    parser.add_argument(
        "--balance-manager", type=str, help="Balance manager id that appears on trades"
    )
    parser.add_argument("--data-dir", type=str, help="Directory holding snapshot/fills files")
    parser.add_argument("--events-dir", type=str, help="Run outputs directory")
    parser.add_argument("--min-order-quantity", type=str, help="Minimum order size in base")

    actions = parser.add_mutually_exclusive_group()
    actions.add_argument("--position", action="store_true", help="Show current position (default)")
    actions.add_argument("--valuation", action="store_true", help="Show USD collateral and debt")
    actions.add_argument("--size-order", action="store_true", help="Plan a leveraged order")
    actions.add_argument("--close", action="store_true", help="Plan a full position close")

    parser.add_argument("--side", choices=[side.value for side in OrderSide], default="buy")
    parser.add_argument(
        "--order-type", choices=[kind.value for kind in OrderType], default="market"
    )
    parser.add_argument("--margin", type=str, help="Your capital in base units")
    parser.add_argument("--leverage", type=int, default=1, help="Whole-number leverage")
    parser.add_argument("--limit-price", type=str, help="Limit price for limit orders")
    parser.add_argument(
        "--pay-with", choices=[asset.value for asset in PayWith], default="quote"
    )
    return parser


def apply_cli_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Apply CLI values onto environment-derived settings."""
    overrides: dict[str, object] = {}
    if args.pool:
        overrides["pool"] = args.pool
    if args.margin_manager:
        overrides["margin_manager_id"] = args.margin_manager.strip()
    if args.balance_manager:
        overrides["balance_manager_id"] = args.balance_manager.strip()
    if args.data_dir:
        overrides["data_dir"] = args.data_dir
    if args.events_dir:
        overrides["events_dir"] = args.events_dir
    if args.min_order_quantity is not None:
        try:
            min_quantity = optional_decimal(args.min_order_quantity)
        except ValueError as exc:
            raise ConfigError("--min-order-quantity must be a number") from exc
        if min_quantity is None or not min_quantity.is_finite():
            raise ConfigError("--min-order-quantity must be a number")
        overrides["min_order_quantity"] = min_quantity
    return settings.with_overrides(**overrides)


def selected_action(args: argparse.Namespace) -> Action:
    if args.valuation:
        return Action.VALUATION
    if args.size_order:
        return Action.SIZE_ORDER
    if args.close:
        return Action.CLOSE
    return Action.POSITION


def build_order_request(args: argparse.Namespace) -> OrderRequest:
    """Translate order flags into a request; range checks happen in sizing."""
    if not args.margin or not args.margin.strip():
        raise ConfigError("--size-order requires --margin")
    try:
        margin = to_decimal(args.margin)
        limit_price = optional_decimal(args.limit_price)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc
    return OrderRequest(
        side=OrderSide(args.side),
        margin=margin,
        leverage=args.leverage,
        order_type=OrderType(args.order_type),
        limit_price=limit_price,
        pay_with=PayWith(args.pay_with),
    )


def main() -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args()
    try:
        settings = apply_cli_overrides(Settings.from_env(), args)
        action = selected_action(args)
        request = build_order_request(args) if action is Action.SIZE_ORDER else None
    except ConfigError as exc:
        print(f"Configuration error: {exc}")
        return 2
    return run(settings, action, request)


if __name__ == "__main__":
    sys.exit(main())
