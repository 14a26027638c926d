"""Referral repository for database operations."""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Dict, Any

import asyncpg

from database.connection import Database
from database.models import (
    Referral,
    ReferralStatus,
    Commission,
    CommissionStatus,
    CommissionSource,
)


class ReferralRepository:
    """Repository for the referral graph and the commissions it earns."""

    def __init__(self, db: Database):
        self.db = db

    # ==================== REFERRALS ====================

    async def create_referral(
        self,
        referrer_id: int,
        referred_id: int,
        status: ReferralStatus = ReferralStatus.PENDING,
        conn: Optional[asyncpg.Connection] = None,
    ) -> Referral:
        """Record that referrer_id brought in referred_id."""
        async with self.db.acquire(conn) as c:
            row = await c.fetchrow(
                """
                INSERT INTO referrals (referrer_id, referred_id, status)
                VALUES ($1, $2, $3)
                RETURNING *
                """,
                referrer_id, referred_id, status.value,
            )
            return Referral.from_row(row)

    async def get_completed_referral(
        self,
        referred_id: int,
        conn: Optional[asyncpg.Connection] = None,
    ) -> Optional[Referral]:
        """Get the COMPLETED referral whose referred user is referred_id."""
        async with self.db.acquire(conn) as c:
            row = await c.fetchrow(
                "SELECT * FROM referrals WHERE referred_id = $1 AND status = 'COMPLETED'",
                referred_id,
            )
            if row:
                return Referral.from_row(row)
            return None

    async def mark_commission_paid(self, referral_id: int, conn: Optional[asyncpg.Connection] = None) -> None:
        """Flag that every commission on this referral has been settled."""
        async with self.db.acquire(conn) as c:
            await c.execute(
                "UPDATE referrals SET commission_paid = TRUE, updated_at = NOW() WHERE id = $1",
                referral_id,
            )

    # ==================== COMMISSIONS ====================

    async def create_commission(
        self,
        referral_id: int,
        user_id: int,
        referred_user_id: int,
        amount: Decimal,
        rate_applied: Decimal,
        source: CommissionSource,
        conn: Optional[asyncpg.Connection] = None,
    ) -> Optional[Commission]:
        """
        Insert a PENDING commission.

        Returns None when a commission for the same source already exists.
        """
        async with self.db.acquire(conn) as c:
            row = await c.fetchrow(
                """
                INSERT INTO commissions
                (referral_id, user_id, referred_user_id, amount, rate_applied, source_kind, source_id)
                VALUES ($1, $2, $3, $4, $5, $6, $7)
                ON CONFLICT (source_kind, source_id) DO NOTHING
                RETURNING *
                """,
                referral_id, user_id, referred_user_id, amount, rate_applied,
                source.kind.value, source.source_id,
            )
            if row:
                return Commission.from_row(row)
            return None

    async def get_commission(self, commission_id: int, conn: Optional[asyncpg.Connection] = None) -> Optional[Commission]:
        """Get commission by ID."""
        async with self.db.acquire(conn) as c:
            row = await c.fetchrow("SELECT * FROM commissions WHERE id = $1", commission_id)
            if row:
                return Commission.from_row(row)
            return None

    async def get_commission_by_source(
        self,
        source: CommissionSource,
        conn: Optional[asyncpg.Connection] = None,
    ) -> Optional[Commission]:
        """Get the commission generated by a given source transaction."""
        async with self.db.acquire(conn) as c:
            row = await c.fetchrow(
                "SELECT * FROM commissions WHERE source_kind = $1 AND source_id = $2",
                source.kind.value, source.source_id,
            )
            if row:
                return Commission.from_row(row)
            return None

    async def lock_commission(self, commission_id: int, conn: asyncpg.Connection) -> Optional[Commission]:
        """Select a commission FOR UPDATE. Must run inside a transaction."""
        row = await conn.fetchrow(
            "SELECT * FROM commissions WHERE id = $1 FOR UPDATE",
            commission_id,
        )
        if row:
            return Commission.from_row(row)
        return None

    async def update_commission_status(
        self,
        commission_id: int,
        status: CommissionStatus,
        conn: Optional[asyncpg.Connection] = None,
        approved_at: Optional[datetime] = None,
        paid_at: Optional[datetime] = None,
        rejection_reason: Optional[str] = None,
    ) -> Commission:
        """Move a commission to a new status. Timestamps are only ever set, never cleared."""
        async with self.db.acquire(conn) as c:
            row = await c.fetchrow(
                """
                UPDATE commissions
                SET status = $1,
                    approved_at = COALESCE($2, approved_at),
                    paid_at = COALESCE($3, paid_at),
                    rejection_reason = COALESCE($4, rejection_reason),
                    updated_at = NOW()
                WHERE id = $5
                RETURNING *
                """,
                status.value, approved_at, paid_at, rejection_reason, commission_id,
            )
            return Commission.from_row(row)

    async def count_pending_for_referral(self, referral_id: int, conn: Optional[asyncpg.Connection] = None) -> int:
        """Count PENDING commissions remaining on a referral."""
        async with self.db.acquire(conn) as c:
            return await c.fetchval(
                "SELECT COUNT(*) FROM commissions WHERE referral_id = $1 AND status = 'PENDING'",
                referral_id,
            )

    async def list_commissions(
        self,
        status: Optional[CommissionStatus] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Commission]:
        """List commissions newest first, optionally filtered by status."""
        async with self.db.acquire() as c:
            rows = await c.fetch(
                """
                SELECT * FROM commissions
                WHERE ($1::text IS NULL OR status = $1)
                ORDER BY created_at DESC, id DESC
                LIMIT $2 OFFSET $3
                """,
                status.value if status else None, limit, offset,
            )
            return [Commission.from_row(row) for row in rows]

    async def get_user_commissions(self, user_id: int, limit: int = 50) -> List[Commission]:
        """Get recent commissions earned by a referrer."""
        async with self.db.acquire() as c:
            rows = await c.fetch(
                """
                SELECT * FROM commissions
                WHERE user_id = $1
                ORDER BY created_at DESC, id DESC
                LIMIT $2
                """,
                user_id, limit,
            )
            return [Commission.from_row(row) for row in rows]

    async def get_commission_stats(self, user_id: Optional[int] = None) -> Dict[str, Any]:
        """
        Get commission counts and totals grouped by status.

        Scoped to one referrer when user_id is given, otherwise platform-wide.
        """
        async with self.db.acquire() as c:
            rows = await c.fetch(
                """
                SELECT status, COUNT(*) AS count, COALESCE(SUM(amount), 0) AS total
                FROM commissions
                WHERE ($1::integer IS NULL OR user_id = $1)
                GROUP BY status
                """,
                user_id,
            )

        stats = {
            status: {"count": 0, "total": Decimal("0")}
            for status in CommissionStatus
        }
        for row in rows:
            stats[CommissionStatus(row["status"])] = {
                "count": row["count"],
                "total": Decimal(row["total"]),
            }
        return stats
