from .user_repo import UserRepository
from .wallet_repo import WalletRepository
from .referral_repo import ReferralRepository
from .settings_repo import SettingsRepository
from .notification_repo import NotificationRepository

__all__ = [
    "UserRepository",
    "WalletRepository",
    "ReferralRepository",
    "SettingsRepository",
    "NotificationRepository",
]
