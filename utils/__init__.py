from .formatters import format_amount, format_crypto_amount, format_rate, format_tx_hash
from .validators import to_decimal, quantize_money, validate_amount, validate_rate, validate_reason
from .serializers import to_json_data

__all__ = [
    "format_amount",
    "format_crypto_amount",
    "format_rate",
    "format_tx_hash",
    "to_decimal",
    "quantize_money",
    "validate_amount",
    "validate_rate",
    "validate_reason",
    "to_json_data",
]
