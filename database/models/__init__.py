from .user import User, UserRole, KycStatus
from .wallet import (
    Wallet,
    WalletTransaction,
    TransactionType,
    TransactionStatus,
    CREDIT_TYPES,
)
from .referral_settings import ReferralSettings, ReferralSettingsChange, RateCategory
from .referral import (
    Referral,
    ReferralStatus,
    Commission,
    CommissionStatus,
    CommissionSource,
    SourceKind,
)
from .notification import (
    Notification,
    NotificationType,
    NotificationPreferences,
    PushSubscription,
)

__all__ = [
    "User",
    "UserRole",
    "KycStatus",
    "Wallet",
    "WalletTransaction",
    "TransactionType",
    "TransactionStatus",
    "CREDIT_TYPES",
    "ReferralSettings",
    "ReferralSettingsChange",
    "RateCategory",
    "Referral",
    "ReferralStatus",
    "Commission",
    "CommissionStatus",
    "CommissionSource",
    "SourceKind",
    "Notification",
    "NotificationType",
    "NotificationPreferences",
    "PushSubscription",
]
