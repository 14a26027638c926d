"""Notification models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional
import json


class NotificationType(str, Enum):
    ADMIN_ALERT = "ADMIN_ALERT"
    COMMISSION_EARNED = "COMMISSION_EARNED"
    COMMISSION_PAID = "COMMISSION_PAID"
    INVESTMENT_MATURED = "INVESTMENT_MATURED"
    KYC_STATUS = "KYC_STATUS"
    PASSWORD_CHANGED = "PASSWORD_CHANGED"
    PAYMENT_DUE = "PAYMENT_DUE"
    PROFILE_UPDATED = "PROFILE_UPDATED"
    REFERRAL_COMPLETED = "REFERRAL_COMPLETED"
    SECURITY_ALERT = "SECURITY_ALERT"
    SYSTEM_UPDATE = "SYSTEM_UPDATE"
    WALLET_UPDATED = "WALLET_UPDATED"


# Preference flag that gates email for each notification type.
# Types not listed here are always emailed when email is enabled.
PREFERENCE_FLAGS = {
    NotificationType.INVESTMENT_MATURED: "investment_notifications",
    NotificationType.PAYMENT_DUE: "payment_notifications",
    NotificationType.KYC_STATUS: "kyc_notifications",
    NotificationType.REFERRAL_COMPLETED: "referral_notifications",
    NotificationType.WALLET_UPDATED: "wallet_notifications",
    NotificationType.COMMISSION_EARNED: "commission_notifications",
    NotificationType.COMMISSION_PAID: "commission_notifications",
    NotificationType.SYSTEM_UPDATE: "system_notifications",
    NotificationType.PASSWORD_CHANGED: "security_notifications",
    NotificationType.PROFILE_UPDATED: "security_notifications",
    NotificationType.SECURITY_ALERT: "security_notifications",
}


@dataclass
class Notification:
    """In-app notification data model."""

    id: int
    user_id: int
    title: str
    message: str
    type: NotificationType
    read: bool
    action_url: Optional[str]
    created_at: datetime

    @classmethod
    def from_row(cls, row) -> "Notification":
        """Create Notification from database row."""
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            message=row["message"],
            type=NotificationType(row["type"]),
            read=bool(row["read"]),
            action_url=row["action_url"],
            created_at=row["created_at"],
        )


@dataclass
class NotificationPreferences:
    """Per-user delivery preferences. Missing row means everything enabled."""

    user_id: int
    email_enabled: bool = True
    investment_notifications: bool = True
    payment_notifications: bool = True
    kyc_notifications: bool = True
    referral_notifications: bool = True
    wallet_notifications: bool = True
    commission_notifications: bool = True
    system_notifications: bool = True
    security_notifications: bool = True

    @classmethod
    def from_row(cls, row) -> "NotificationPreferences":
        return cls(
            user_id=row["user_id"],
            email_enabled=bool(row["email_enabled"]),
            investment_notifications=bool(row["investment_notifications"]),
            payment_notifications=bool(row["payment_notifications"]),
            kyc_notifications=bool(row["kyc_notifications"]),
            referral_notifications=bool(row["referral_notifications"]),
            wallet_notifications=bool(row["wallet_notifications"]),
            commission_notifications=bool(row["commission_notifications"]),
            system_notifications=bool(row["system_notifications"]),
            security_notifications=bool(row["security_notifications"]),
        )

    def allows_email(self, notification_type: NotificationType) -> bool:
        """Check the global email switch, then the category flag."""
        if not self.email_enabled:
            return False
        flag = PREFERENCE_FLAGS.get(notification_type)
        if flag is None:
            return True
        return bool(getattr(self, flag))


@dataclass
class PushSubscription:
    """Browser push subscription (endpoint + keys) for a user."""

    user_id: int
    endpoint: str
    keys: dict

    @classmethod
    def from_row(cls, row) -> "PushSubscription":
        data = json.loads(row["subscription"])
        return cls(
            user_id=row["user_id"],
            endpoint=data["endpoint"],
            keys=data.get("keys", {}),
        )

    def to_webpush_info(self) -> dict:
        """Subscription dict in the shape pywebpush expects."""
        return {"endpoint": self.endpoint, "keys": self.keys}
