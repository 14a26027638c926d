"""Notification service: persisted in-app notifications plus email and push fan-out."""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, List, Dict

import asyncpg

from config import settings
from config.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, NOTIFICATION_RETENTION_DAYS
from core.errors import NotFoundError
from core.notifications import (
    DeliveryQueue,
    SmtpEmailGateway,
    WebPushGateway,
    SubscriptionExpired,
    render_notification_email,
    render_notification_text,
)
from database.connection import Database
from database.models import Notification, NotificationType, NotificationPreferences
from database.repositories import NotificationRepository, UserRepository

logger = logging.getLogger(__name__)


@dataclass
class NotificationPage:
    """One page of a user's notifications."""
    notifications: List[Notification]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


class NotificationService:
    """
    Creates notifications and hands email/push delivery to the DeliveryQueue.

    Callers that write inside a database transaction use create() with their
    connection and call dispatch() once the transaction has committed, so a
    rolled back operation never reaches a user's inbox or phone.
    """

    def __init__(
        self,
        db: Database,
        delivery: DeliveryQueue,
        email_gateway: Optional[SmtpEmailGateway] = None,
        push_gateway: Optional[WebPushGateway] = None,
    ):
        self.db = db
        self.notification_repo = NotificationRepository(db)
        self.user_repo = UserRepository(db)
        self.delivery = delivery
        self.email_gateway = email_gateway
        self.push_gateway = push_gateway

    # ==================== CREATE / DISPATCH ====================

    async def create(
        self,
        user_id: int,
        title: str,
        message: str,
        notification_type: NotificationType,
        action_url: Optional[str] = None,
        conn: Optional[asyncpg.Connection] = None,
    ) -> Notification:
        """Persist a notification without delivering it."""
        return await self.notification_repo.create(
            user_id=user_id,
            title=title,
            message=message,
            notification_type=notification_type,
            action_url=action_url,
            conn=conn,
        )

    def dispatch(self, notification: Notification) -> None:
        """Queue email and push delivery for an already persisted notification."""
        if self.email_gateway:
            self.delivery.submit(
                "email",
                self._send_email(notification),
                description=f"Email for notification {notification.id}",
            )
        if self.push_gateway:
            self.delivery.submit(
                "push",
                self._send_push(notification),
                description=f"Push for notification {notification.id}",
            )

    async def notify(
        self,
        user_id: int,
        title: str,
        message: str,
        notification_type: NotificationType,
        action_url: Optional[str] = None,
    ) -> Notification:
        """Persist a notification and dispatch it immediately."""
        notification = await self.create(user_id, title, message, notification_type, action_url)
        self.dispatch(notification)
        return notification

    async def notify_many(
        self,
        user_ids: List[int],
        title: str,
        message: str,
        notification_type: NotificationType,
        action_url: Optional[str] = None,
    ) -> Dict[str, int]:
        """
        Notify several users independently.

        Returns:
            Dict with total, successful and failed counts
        """
        successful = 0
        failed = 0
        for user_id in user_ids:
            try:
                await self.notify(user_id, title, message, notification_type, action_url)
                successful += 1
            except (asyncpg.PostgresError, NotFoundError) as e:
                logger.error(f"Failed to notify user {user_id}: {e}")
                failed += 1

        return {"total": len(user_ids), "successful": successful, "failed": failed}

    async def _send_email(self, notification: Notification) -> bool:
        user = await self.user_repo.get_by_id(notification.user_id)
        if not user:
            logger.warning(f"[EMAIL_NOTIFICATION] Unknown user {notification.user_id}, skipping email")
            return False

        prefs = await self.notification_repo.get_preferences(user.id)
        if not prefs.allows_email(notification.type):
            logger.info(
                f"[EMAIL_NOTIFICATION] User {user.id} opted out of {notification.type.value} emails"
            )
            return False

        html = render_notification_email(
            notification.type,
            notification.title,
            notification.message,
            base_url=settings.app_base_url,
            action_url=notification.action_url,
            user_name=user.display_name if user.first_name else None,
        )
        text = render_notification_text(notification.message, settings.app_base_url, notification.action_url)
        await self.email_gateway.send(user.email, notification.title, html, text)
        return True

    async def _send_push(self, notification: Notification) -> bool:
        subscription = await self.notification_repo.get_push_subscription(notification.user_id)
        if not subscription:
            return False

        try:
            await self.push_gateway.send(
                subscription,
                notification.title,
                notification.message,
                url=notification.action_url,
            )
        except SubscriptionExpired:
            await self.notification_repo.delete_push_subscription(notification.user_id)
            raise
        return True

    # ==================== INBOX ====================

    async def list_for_user(
        self,
        user_id: int,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        include_read: bool = True,
    ) -> NotificationPage:
        """Get a page of a user's notifications, newest first."""
        page = max(1, page)
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        unread_only = not include_read

        notifications = await self.notification_repo.list_for_user(
            user_id,
            limit=limit,
            offset=(page - 1) * limit,
            unread_only=unread_only,
        )
        total = await self.notification_repo.count_for_user(user_id, unread_only=unread_only)
        return NotificationPage(notifications=notifications, total=total, page=page, limit=limit)

    async def unread_count(self, user_id: int) -> int:
        return await self.notification_repo.count_for_user(user_id, unread_only=True)

    async def mark_read(self, user_id: int, notification_id: int) -> None:
        """
        Mark one notification as read.

        Raises:
            NotFoundError: notification does not exist or belongs to another user
        """
        if not await self.notification_repo.mark_read(notification_id, user_id):
            raise NotFoundError("Notification not found")

    async def mark_all_read(self, user_id: int) -> int:
        return await self.notification_repo.mark_all_read(user_id)

    async def delete_old(self, user_id: int, older_than_days: int = NOTIFICATION_RETENTION_DAYS) -> int:
        """Delete read notifications older than the given number of days."""
        cutoff = datetime.now(timezone.utc) - timedelta(days=older_than_days)
        deleted = await self.notification_repo.delete_read_before(user_id, cutoff)
        if deleted:
            logger.info(f"Deleted {deleted} old notifications for user {user_id}")
        return deleted

    # ==================== PREFERENCES / PUSH ====================

    async def get_preferences(self, user_id: int) -> NotificationPreferences:
        return await self.notification_repo.get_preferences(user_id)

    async def update_preferences(self, prefs: NotificationPreferences) -> NotificationPreferences:
        await self.notification_repo.save_preferences(prefs)
        return prefs

    async def subscribe_push(self, user_id: int, subscription: dict) -> None:
        """Store a browser push subscription ({endpoint, keys})."""
        await self.notification_repo.save_push_subscription(user_id, subscription)
