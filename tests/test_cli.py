from __future__ import annotations

from decimal import Decimal

import pytest

from marginengine.cli import (
    apply_cli_overrides,
    build_order_request,
    build_parser,
    selected_action,
)
from marginengine.config import Settings
from marginengine.domain.models import OrderSide, OrderType, PayWith
from marginengine.errors import ConfigError
from marginengine.runtime import Action


def test_cli_overrides_produce_expected_settings() -> None:
    parser = build_parser()
    args = parser.parse_args(
        [
            "--pool",
            "deep_usdc",
            "--margin-manager",
            "0xmm",
            "--balance-manager",
            " 0xbm ",
            "--data-dir",
            "fixtures",
            "--events-dir",
            "runs/test",
            "--min-order-quantity",
            "0.1",
        ]
    )
    settings = apply_cli_overrides(Settings(), args)

    assert settings.pool == "DEEP_USDC"
    assert settings.margin_manager_id == "0xmm"
    assert settings.balance_manager_id == "0xbm"
    assert settings.data_dir == "fixtures"
    assert settings.events_dir == "runs/test"
    assert settings.min_order_quantity == Decimal("0.1")


@pytest.mark.parametrize("value", ["abc", " ", "", "NaN"])
def test_cli_rejects_bad_min_order_quantity(value: str) -> None:
    args = build_parser().parse_args(["--min-order-quantity", value])

    with pytest.raises(ConfigError):
        apply_cli_overrides(Settings(), args)


def test_position_is_the_default_action() -> None:
    assert selected_action(build_parser().parse_args([])) is Action.POSITION
    assert selected_action(build_parser().parse_args(["--close"])) is Action.CLOSE


def test_actions_are_mutually_exclusive() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--close", "--valuation"])


def test_order_flags_build_a_request() -> None:
    args = build_parser().parse_args(
        [
            "--size-order",
            "--side",
            "sell",
            "--order-type",
            "limit",
            "--margin",
            "12.5",
            "--leverage",
            "2",
            "--limit-price",
            "1.75",
            "--pay-with",
            "reward_token",
        ]
    )

    request = build_order_request(args)

    assert selected_action(args) is Action.SIZE_ORDER
    assert request.side is OrderSide.SELL
    assert request.order_type is OrderType.LIMIT
    assert request.margin == Decimal("12.5")
    assert request.leverage == 2
    assert request.limit_price == Decimal("1.75")
    assert request.pay_with is PayWith.REWARD_TOKEN


def test_size_order_requires_margin() -> None:
    args = build_parser().parse_args(["--size-order"])

    with pytest.raises(ConfigError):
        build_order_request(args)


def test_leverage_must_be_an_integer() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--size-order", "--margin", "1", "--leverage", "2.5"])
