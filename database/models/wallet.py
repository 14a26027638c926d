"""Wallet and wallet transaction models."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class TransactionType(str, Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    INVESTMENT = "INVESTMENT"
    PURCHASE = "PURCHASE"
    RETURN = "RETURN"
    COMMISSION = "COMMISSION"

    @property
    def is_credit(self) -> bool:
        """Whether a completed transaction of this type adds to the balance."""
        return self in CREDIT_TYPES


class TransactionStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


CREDIT_TYPES = frozenset({
    TransactionType.DEPOSIT,
    TransactionType.RETURN,
    TransactionType.COMMISSION,
})


@dataclass
class Wallet:
    """Wallet data model."""

    id: int
    user_id: int
    balance: Decimal
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row) -> "Wallet":
        """Create Wallet from database row."""
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            balance=Decimal(row["balance"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


@dataclass
class WalletTransaction:
    """Wallet transaction data model."""

    id: int
    wallet_id: int
    type: TransactionType
    amount: Decimal
    status: TransactionStatus
    crypto_type: Optional[str]
    tx_hash: Optional[str]
    description: Optional[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row) -> "WalletTransaction":
        """Create WalletTransaction from database row."""
        return cls(
            id=row["id"],
            wallet_id=row["wallet_id"],
            type=TransactionType(row["type"]),
            amount=Decimal(row["amount"]),
            status=TransactionStatus(row["status"]),
            crypto_type=row["crypto_type"],
            tx_hash=row["tx_hash"],
            description=row["description"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @property
    def signed_amount(self) -> Decimal:
        """Amount with sign applied: credits positive, debits negative."""
        return self.amount if self.type.is_credit else -self.amount
