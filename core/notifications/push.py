"""Browser web push gateway (VAPID)."""

import asyncio
import json
import logging
import time
from typing import Optional

from pywebpush import webpush, WebPushException

from config import settings
from config.constants import PUSH_ICON
from core.errors import DeliveryError
from database.models import PushSubscription

logger = logging.getLogger(__name__)


class SubscriptionExpired(DeliveryError):
    """Push endpoint is gone (404/410); the subscription should be dropped."""


class WebPushGateway:
    """Sends web push notifications with pywebpush. One attempt, no retry."""

    def __init__(self, vapid_private_key: str, vapid_contact_email: str, ttl: int = 86400):
        self.vapid_private_key = vapid_private_key
        self.vapid_claims = {"sub": f"mailto:{vapid_contact_email}"}
        self.ttl = ttl

    @classmethod
    def from_settings(cls) -> Optional["WebPushGateway"]:
        """Build a gateway from application settings, or None if VAPID keys are unset."""
        if not settings.push_enabled:
            return None
        return cls(settings.vapid_private_key, settings.vapid_contact_email)

    @staticmethod
    def build_payload(title: str, body: str, url: Optional[str] = None, icon: str = PUSH_ICON) -> str:
        return json.dumps({
            "title": title,
            "body": body,
            "icon": icon,
            "data": {"url": url} if url else {},
            "timestamp": int(time.time() * 1000),
        })

    def _send_sync(self, subscription: PushSubscription, payload: str) -> None:
        webpush(
            subscription_info=subscription.to_webpush_info(),
            data=payload,
            vapid_private_key=self.vapid_private_key,
            vapid_claims=dict(self.vapid_claims),
            ttl=self.ttl,
        )

    async def send(self, subscription: PushSubscription, title: str, body: str, url: Optional[str] = None) -> None:
        """
        Push one notification to a browser subscription.

        Raises:
            SubscriptionExpired: endpoint no longer exists
            DeliveryError: any other push service failure
        """
        payload = self.build_payload(title, body, url)
        try:
            await asyncio.to_thread(self._send_sync, subscription, payload)
        except WebPushException as e:
            status = e.response.status_code if e.response is not None else None
            if status in (404, 410):
                raise SubscriptionExpired(f"Push subscription for user {subscription.user_id} expired") from e
            raise DeliveryError(f"Push to user {subscription.user_id} failed: {e}") from e
        logger.info(f"Push notification sent to user {subscription.user_id}")
