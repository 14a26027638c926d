"""Notification repository for database operations."""

from datetime import datetime
from typing import Optional, List
import json

import asyncpg

from database.connection import Database
from database.models import (
    Notification,
    NotificationType,
    NotificationPreferences,
    PushSubscription,
)


def _affected_rows(status: str) -> int:
    """Parse the row count out of an asyncpg command status ("UPDATE 3")."""
    try:
        return int(status.split()[-1])
    except (AttributeError, ValueError, IndexError):
        return 0


class NotificationRepository:
    """Repository for in-app notifications, delivery preferences and push subscriptions."""

    def __init__(self, db: Database):
        self.db = db

    # ==================== NOTIFICATIONS ====================

    async def create(
        self,
        user_id: int,
        title: str,
        message: str,
        notification_type: NotificationType,
        action_url: Optional[str] = None,
        conn: Optional[asyncpg.Connection] = None,
    ) -> Notification:
        """Persist a new unread notification."""
        async with self.db.acquire(conn) as c:
            row = await c.fetchrow(
                """
                INSERT INTO notifications (user_id, title, message, type, action_url)
                VALUES ($1, $2, $3, $4, $5)
                RETURNING *
                """,
                user_id, title, message, notification_type.value, action_url,
            )
            return Notification.from_row(row)

    async def get_by_id(self, notification_id: int) -> Optional[Notification]:
        """Get notification by ID."""
        async with self.db.acquire() as c:
            row = await c.fetchrow("SELECT * FROM notifications WHERE id = $1", notification_id)
            if row:
                return Notification.from_row(row)
            return None

    async def list_for_user(
        self,
        user_id: int,
        limit: int,
        offset: int = 0,
        unread_only: bool = False,
    ) -> List[Notification]:
        """Get a page of a user's notifications, newest first."""
        async with self.db.acquire() as c:
            rows = await c.fetch(
                """
                SELECT * FROM notifications
                WHERE user_id = $1 AND ($2 = FALSE OR read = FALSE)
                ORDER BY created_at DESC, id DESC
                LIMIT $3 OFFSET $4
                """,
                user_id, unread_only, limit, offset,
            )
            return [Notification.from_row(row) for row in rows]

    async def count_for_user(self, user_id: int, unread_only: bool = False) -> int:
        """Count a user's notifications."""
        async with self.db.acquire() as c:
            return await c.fetchval(
                "SELECT COUNT(*) FROM notifications WHERE user_id = $1 AND ($2 = FALSE OR read = FALSE)",
                user_id, unread_only,
            )

    async def mark_read(self, notification_id: int, user_id: int) -> bool:
        """Mark one of the user's notifications as read. False if it is not theirs."""
        async with self.db.acquire() as c:
            status = await c.execute(
                "UPDATE notifications SET read = TRUE WHERE id = $1 AND user_id = $2",
                notification_id, user_id,
            )
            return _affected_rows(status) > 0

    async def mark_all_read(self, user_id: int) -> int:
        """Mark every unread notification of a user as read."""
        async with self.db.acquire() as c:
            status = await c.execute(
                "UPDATE notifications SET read = TRUE WHERE user_id = $1 AND read = FALSE",
                user_id,
            )
            return _affected_rows(status)

    async def delete_read_before(self, user_id: int, cutoff: datetime) -> int:
        """Delete a user's read notifications created before cutoff."""
        async with self.db.acquire() as c:
            status = await c.execute(
                "DELETE FROM notifications WHERE user_id = $1 AND read = TRUE AND created_at < $2",
                user_id, cutoff,
            )
            return _affected_rows(status)

    # ==================== PREFERENCES ====================

    async def get_preferences(self, user_id: int) -> NotificationPreferences:
        """Get a user's delivery preferences, defaulting to everything enabled."""
        async with self.db.acquire() as c:
            row = await c.fetchrow(
                "SELECT * FROM notification_preferences WHERE user_id = $1",
                user_id,
            )
            if row:
                return NotificationPreferences.from_row(row)
            return NotificationPreferences(user_id=user_id)

    async def save_preferences(self, prefs: NotificationPreferences) -> None:
        """Insert or overwrite a user's delivery preferences."""
        async with self.db.acquire() as c:
            await c.execute(
                """
                INSERT INTO notification_preferences
                (user_id, email_enabled, investment_notifications, payment_notifications,
                 kyc_notifications, referral_notifications, wallet_notifications,
                 commission_notifications, system_notifications, security_notifications)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
                ON CONFLICT (user_id) DO UPDATE SET
                    email_enabled = EXCLUDED.email_enabled,
                    investment_notifications = EXCLUDED.investment_notifications,
                    payment_notifications = EXCLUDED.payment_notifications,
                    kyc_notifications = EXCLUDED.kyc_notifications,
                    referral_notifications = EXCLUDED.referral_notifications,
                    wallet_notifications = EXCLUDED.wallet_notifications,
                    commission_notifications = EXCLUDED.commission_notifications,
                    system_notifications = EXCLUDED.system_notifications,
                    security_notifications = EXCLUDED.security_notifications,
                    updated_at = NOW()
                """,
                prefs.user_id, prefs.email_enabled, prefs.investment_notifications,
                prefs.payment_notifications, prefs.kyc_notifications, prefs.referral_notifications,
                prefs.wallet_notifications, prefs.commission_notifications,
                prefs.system_notifications, prefs.security_notifications,
            )

    # ==================== PUSH SUBSCRIPTIONS ====================

    async def get_push_subscription(self, user_id: int) -> Optional[PushSubscription]:
        """Get the user's browser push subscription, if any."""
        async with self.db.acquire() as c:
            row = await c.fetchrow(
                "SELECT * FROM push_subscriptions WHERE user_id = $1",
                user_id,
            )
            if row:
                return PushSubscription.from_row(row)
            return None

    async def save_push_subscription(self, user_id: int, subscription: dict) -> None:
        """Store (or replace) the user's browser push subscription."""
        async with self.db.acquire() as c:
            await c.execute(
                """
                INSERT INTO push_subscriptions (user_id, subscription)
                VALUES ($1, $2)
                ON CONFLICT (user_id) DO UPDATE SET
                    subscription = EXCLUDED.subscription,
                    updated_at = NOW()
                """,
                user_id, json.dumps(subscription),
            )

    async def delete_push_subscription(self, user_id: int) -> None:
        """Forget a user's push subscription (e.g. the endpoint returned 410)."""
        async with self.db.acquire() as c:
            await c.execute("DELETE FROM push_subscriptions WHERE user_id = $1", user_id)
