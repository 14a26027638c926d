"""Admin services."""

from admin.services.commission_admin import CommissionAdminService
from admin.services.settings_admin import SettingsAdminService
from admin.services.wallet_admin import WalletAdminService

__all__ = [
    "CommissionAdminService",
    "SettingsAdminService",
    "WalletAdminService",
]
