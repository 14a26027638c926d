"""Formatting utilities for notification and log messages."""

from decimal import Decimal
from typing import Optional

from config.constants import DEFAULT_CRYPTO_TYPE


def format_amount(amount: Decimal, currency: Optional[str] = None) -> str:
    """Format a money amount with thousands separators (e.g. "$10,000.00" or "500.00 USDT")."""
    if currency:
        return f"{amount:,.2f} {currency}"
    return f"${amount:,.2f}"


def format_crypto_amount(amount: Decimal, crypto_type: Optional[str]) -> str:
    """Format an amount in a wallet transaction's currency."""
    return format_amount(amount, crypto_type or DEFAULT_CRYPTO_TYPE)


def format_rate(rate: Decimal) -> str:
    """Format a percent rate without trailing zeros (e.g. "5%" or "2.5%")."""
    normalized = rate.normalize()
    if normalized == normalized.to_integral():
        normalized = normalized.quantize(Decimal("1"))
    return f"{normalized}%"


def format_tx_hash(tx_hash: str) -> str:
    """Format transaction hash (shortened)."""
    if len(tx_hash) <= 16:
        return tx_hash
    return f"{tx_hash[:10]}...{tx_hash[-6:]}"
