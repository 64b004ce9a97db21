from __future__ import annotations
from decimal import Decimal, InvalidOperation
from typing import Any, Union

from .config import DEFAULT_REPORTING_CURRENCY
from .errors import ConfigurationError

Number = Union[Decimal, float, int, str]


def to_decimal(value: Number) -> Decimal:
    # str() first so 0.1 becomes Decimal("0.1"), not its binary expansion
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def validate_rate(rate: Any) -> Decimal:
    """Return ``rate`` as a Decimal or raise ConfigurationError.

    The rate is the single global conversion factor such that
    ``foreign / rate == reporting``; it must be a positive finite number.
    """
    if rate is None or isinstance(rate, bool):
        raise ConfigurationError("Exchange rate is missing")
    try:
        value = to_decimal(rate)
    except (InvalidOperation, TypeError, ValueError):
        raise ConfigurationError(f"Exchange rate {rate!r} is not a number") from None
    if not value.is_finite() or value <= 0:
        raise ConfigurationError(f"Exchange rate must be a positive finite number, got {rate!r}")
    return value


def to_reporting_currency(amount: Number, currency: str, rate: Number,
                          reporting_currency: str = DEFAULT_REPORTING_CURRENCY) -> Decimal:
    """Convert ``amount`` in ``currency`` into the reporting currency. No rounding."""
    amount = to_decimal(amount)
    if (currency or reporting_currency).upper() == reporting_currency.upper():
        return amount
    return amount / to_decimal(rate)
