"""Exception hierarchy for the margin engine."""

from __future__ import annotations

from enum import StrEnum


class MarginEngineError(Exception):
    """Base exception for all engine-specific errors."""


class ConfigError(MarginEngineError, ValueError):
    """Raised when environment or CLI configuration is invalid."""


class ValidationReason(StrEnum):
    """Enumerable reasons a trader request can be rejected."""

    INVALID_AMOUNT = "invalid_amount"
    LEVERAGE_OUT_OF_RANGE = "leverage_out_of_range"
    BELOW_MIN_QUANTITY = "below_min_quantity"
    NOTIONAL_EXCEEDS_EQUITY = "notional_exceeds_equity"
    MISSING_LIMIT_PRICE = "missing_limit_price"
    INVALID_PRICE = "invalid_price"
    PRICE_UNAVAILABLE = "price_unavailable"


class ValidationError(MarginEngineError, ValueError):
    """Raised when caller input cannot produce an order plan."""

    def __init__(self, reason: ValidationReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason


class DataGapError(MarginEngineError):
    """Raised by file-backed collaborators when a required input cannot be read."""


class DomainInvariantViolation(MarginEngineError, AssertionError):
    """Raised when well-formed inputs would produce an impossible state."""
