"""Referral and commission models."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from database.models.referral_settings import RateCategory


class ReferralStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


class CommissionStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PAID = "PAID"


class SourceKind(str, Enum):
    """Kind of transaction or investment a commission was earned on."""

    PROPERTY = "PROPERTY"
    EQUIPMENT = "EQUIPMENT"
    MARKET = "MARKET"
    REAL_ESTATE = "REAL_ESTATE"
    GREEN_ENERGY = "GREEN_ENERGY"

    @property
    def rate_category(self) -> RateCategory:
        """Rate bucket used to price a commission of this kind."""
        return _RATE_CATEGORIES[self]

    @property
    def label(self) -> str:
        """Human readable label (e.g. 'green energy investment')."""
        return _LABELS[self]


_RATE_CATEGORIES = {
    SourceKind.PROPERTY: RateCategory.PROPERTY,
    SourceKind.REAL_ESTATE: RateCategory.PROPERTY,
    SourceKind.EQUIPMENT: RateCategory.EQUIPMENT,
    SourceKind.MARKET: RateCategory.MARKET,
    SourceKind.GREEN_ENERGY: RateCategory.GREEN_ENERGY,
}

_LABELS = {
    SourceKind.PROPERTY: "property purchase",
    SourceKind.REAL_ESTATE: "real estate investment",
    SourceKind.EQUIPMENT: "equipment purchase",
    SourceKind.MARKET: "market investment",
    SourceKind.GREEN_ENERGY: "green energy investment",
}


@dataclass(frozen=True)
class CommissionSource:
    """Reference to exactly one originating transaction or investment."""

    kind: SourceKind
    source_id: str

    def __post_init__(self):
        if not self.source_id:
            raise ValueError("source_id is required")


@dataclass
class Referral:
    """Referral relationship data model."""

    id: int
    referrer_id: int
    referred_id: int
    status: ReferralStatus
    commission_paid: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row) -> "Referral":
        """Create Referral from database row."""
        return cls(
            id=row["id"],
            referrer_id=row["referrer_id"],
            referred_id=row["referred_id"],
            status=ReferralStatus(row["status"]),
            commission_paid=bool(row["commission_paid"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


@dataclass
class Commission:
    """Referral commission data model."""

    id: int
    referral_id: int
    user_id: int  # referrer who earns the commission
    referred_user_id: int
    amount: Decimal
    rate_applied: Decimal
    status: CommissionStatus
    source: CommissionSource
    rejection_reason: Optional[str]
    created_at: datetime
    updated_at: datetime
    approved_at: Optional[datetime]
    paid_at: Optional[datetime]

    @classmethod
    def from_row(cls, row) -> "Commission":
        """Create Commission from database row."""
        return cls(
            id=row["id"],
            referral_id=row["referral_id"],
            user_id=row["user_id"],
            referred_user_id=row["referred_user_id"],
            amount=Decimal(row["amount"]),
            rate_applied=Decimal(row["rate_applied"]),
            status=CommissionStatus(row["status"]),
            source=CommissionSource(
                kind=SourceKind(row["source_kind"]),
                source_id=row["source_id"],
            ),
            rejection_reason=row["rejection_reason"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            approved_at=row["approved_at"],
            paid_at=row["paid_at"],
        )

    @property
    def is_pending(self) -> bool:
        return self.status == CommissionStatus.PENDING
