"""Input validation utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from config.constants import MIN_COMMISSION_RATE, MAX_COMMISSION_RATE, MONEY_QUANTUM
from core.errors import ValidationError

Number = Union[Decimal, int, str, float]


def to_decimal(value: Number) -> Decimal:
    """
    Convert input to Decimal.

    Floats go through str() so 0.1 stays 0.1 instead of its binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    try:
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid number: {value!r}")


def quantize_money(amount: Decimal) -> Decimal:
    """Round to cents, half up."""
    return amount.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def validate_amount(value: Number) -> Decimal:
    """
    Validate a money amount.

    Returns:
        Amount rounded to cents

    Raises:
        ValidationError: not a finite number or not positive after rounding
    """
    amount = to_decimal(value)
    if not amount.is_finite():
        raise ValidationError("Amount must be a finite number")

    amount = quantize_money(amount)
    if amount <= 0:
        raise ValidationError("Amount must be positive")
    return amount


def validate_rate(value: Number, field: str = "rate") -> Decimal:
    """
    Validate a commission rate percentage.

    Raises:
        ValidationError: outside [0, 20]
    """
    rate = to_decimal(value)
    if not rate.is_finite() or rate < MIN_COMMISSION_RATE or rate > MAX_COMMISSION_RATE:
        raise ValidationError(
            f"{field} must be between {MIN_COMMISSION_RATE} and {MAX_COMMISSION_RATE}"
        )
    return rate


def validate_reason(reason: str) -> str:
    """Require a non-blank reason (rejections, manual adjustments)."""
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A reason is required")
    return reason
