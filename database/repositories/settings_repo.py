"""Referral settings repository for database operations."""

from decimal import Decimal
from typing import Optional, List, Dict

import asyncpg

from database.connection import Database
from database.models import ReferralSettings, ReferralSettingsChange


class SettingsRepository:
    """Repository for the single-row referral rate table and its audit log."""

    def __init__(self, db: Database):
        self.db = db

    async def get(self, conn: Optional[asyncpg.Connection] = None) -> Optional[ReferralSettings]:
        """Get the current referral settings."""
        async with self.db.acquire(conn) as c:
            row = await c.fetchrow("SELECT * FROM referral_settings WHERE id = 1")
            if row:
                return ReferralSettings.from_row(row)
            return None

    async def update(
        self,
        rates: Dict[str, Decimal],
        updated_by: Optional[int],
        conn: Optional[asyncpg.Connection] = None,
    ) -> ReferralSettings:
        """
        Overwrite the current rates.

        rates must contain all four *_commission_rate columns.
        """
        async with self.db.acquire(conn) as c:
            row = await c.fetchrow(
                """
                INSERT INTO referral_settings
                (id, property_commission_rate, equipment_commission_rate,
                 market_commission_rate, green_energy_commission_rate, updated_by)
                VALUES (1, $1, $2, $3, $4, $5)
                ON CONFLICT (id) DO UPDATE SET
                    property_commission_rate = EXCLUDED.property_commission_rate,
                    equipment_commission_rate = EXCLUDED.equipment_commission_rate,
                    market_commission_rate = EXCLUDED.market_commission_rate,
                    green_energy_commission_rate = EXCLUDED.green_energy_commission_rate,
                    updated_by = EXCLUDED.updated_by,
                    updated_at = NOW()
                RETURNING *
                """,
                rates["property_commission_rate"],
                rates["equipment_commission_rate"],
                rates["market_commission_rate"],
                rates["green_energy_commission_rate"],
                updated_by,
            )
            return ReferralSettings.from_row(row)

    async def add_history(self, settings: ReferralSettings, conn: Optional[asyncpg.Connection] = None) -> None:
        """Append a snapshot of the given settings to the audit log."""
        async with self.db.acquire(conn) as c:
            await c.execute(
                """
                INSERT INTO referral_settings_history
                (property_commission_rate, equipment_commission_rate,
                 market_commission_rate, green_energy_commission_rate, updated_by)
                VALUES ($1, $2, $3, $4, $5)
                """,
                settings.property_commission_rate,
                settings.equipment_commission_rate,
                settings.market_commission_rate,
                settings.green_energy_commission_rate,
                settings.updated_by,
            )

    async def get_history(self, limit: int = 20) -> List[ReferralSettingsChange]:
        """Get the most recent rate changes, newest first."""
        async with self.db.acquire() as c:
            rows = await c.fetch(
                "SELECT * FROM referral_settings_history ORDER BY created_at DESC, id DESC LIMIT $1",
                limit,
            )
            return [ReferralSettingsChange.from_row(row) for row in rows]
