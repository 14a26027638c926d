"""Referral settings model."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class RateCategory(str, Enum):
    """Commission rate buckets configured by admins."""

    PROPERTY = "PROPERTY"
    EQUIPMENT = "EQUIPMENT"
    MARKET = "MARKET"
    GREEN_ENERGY = "GREEN_ENERGY"

    @property
    def field_name(self) -> str:
        return f"{self.value.lower()}_commission_rate"


@dataclass
class ReferralSettings:
    """Current commission rate table (percent values, 0-20)."""

    property_commission_rate: Decimal
    equipment_commission_rate: Decimal
    market_commission_rate: Decimal
    green_energy_commission_rate: Decimal
    updated_by: Optional[int]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def from_row(cls, row) -> "ReferralSettings":
        """Create ReferralSettings from database row."""
        return cls(
            property_commission_rate=Decimal(row["property_commission_rate"]),
            equipment_commission_rate=Decimal(row["equipment_commission_rate"]),
            market_commission_rate=Decimal(row["market_commission_rate"]),
            green_energy_commission_rate=Decimal(row["green_energy_commission_rate"]),
            updated_by=row["updated_by"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def rate_for(self, category: RateCategory) -> Decimal:
        """Return the percent rate for a category."""
        return getattr(self, category.field_name)

    def rates(self) -> dict:
        """Return the four rates keyed by column name."""
        return {category.field_name: self.rate_for(category) for category in RateCategory}


@dataclass
class ReferralSettingsChange:
    """One entry of the rate change audit log."""

    id: int
    property_commission_rate: Decimal
    equipment_commission_rate: Decimal
    market_commission_rate: Decimal
    green_energy_commission_rate: Decimal
    updated_by: Optional[int]
    created_at: datetime

    @classmethod
    def from_row(cls, row) -> "ReferralSettingsChange":
        return cls(
            id=row["id"],
            property_commission_rate=Decimal(row["property_commission_rate"]),
            equipment_commission_rate=Decimal(row["equipment_commission_rate"]),
            market_commission_rate=Decimal(row["market_commission_rate"]),
            green_energy_commission_rate=Decimal(row["green_energy_commission_rate"]),
            updated_by=row["updated_by"],
            created_at=row["created_at"],
        )
