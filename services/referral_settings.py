"""Referral settings service: the platform's per-category commission rates."""

import logging
from decimal import Decimal
from typing import Optional, List, Dict

from core.errors import ValidationError
from database.connection import Database
from database.models import ReferralSettings, ReferralSettingsChange, RateCategory
from database.repositories import SettingsRepository
from utils import validate_rate

logger = logging.getLogger(__name__)

RATE_FIELDS = tuple(category.field_name for category in RateCategory)


def zero_rate_settings() -> ReferralSettings:
    """First-run rate table: referrals earn nothing until an admin sets rates."""
    return ReferralSettings(
        **{field: Decimal("0") for field in RATE_FIELDS},
        updated_by=None,
        created_at=None,
        updated_at=None,
    )


class ReferralSettingsService:
    """Read and update the single current-value rate table."""

    def __init__(self, db: Database):
        self.db = db
        self.settings_repo = SettingsRepository(db)

    async def get(self) -> ReferralSettings:
        """
        Get the current rates.

        The row is seeded with zero rates when the schema is created; if it
        is missing anyway the zero-rate table is returned.
        """
        current = await self.settings_repo.get()
        if not current:
            return zero_rate_settings()
        return current

    async def update(self, rates: Dict[str, Decimal], admin_id: Optional[int] = None) -> ReferralSettings:
        """
        Update any subset of the four rates.

        Omitted rates keep their current value. The change is appended to the
        history table in the same transaction.

        Args:
            rates: Mapping of *_commission_rate field name to percent (0-20)
            admin_id: Admin making the change

        Raises:
            ValidationError: unknown field or rate outside [0, 20]
        """
        unknown = set(rates) - set(RATE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown rate fields: {', '.join(sorted(unknown))}")

        validated = {
            field: validate_rate(value, field)
            for field, value in rates.items()
            if value is not None
        }

        async with self.db.transaction() as conn:
            current = await self.settings_repo.get(conn=conn)
            merged = current.rates() if current else {field: Decimal("0") for field in RATE_FIELDS}
            merged.update(validated)

            updated = await self.settings_repo.update(merged, updated_by=admin_id, conn=conn)
            await self.settings_repo.add_history(updated, conn=conn)

        logger.info(f"Referral settings updated by admin {admin_id}: {validated}")
        return updated

    async def history(self, limit: int = 20) -> List[ReferralSettingsChange]:
        """Get recent rate changes, newest first."""
        return await self.settings_repo.get_history(limit)
