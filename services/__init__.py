from .notification_service import NotificationService
from .wallet_ledger import WalletLedger
from .referral_settings import ReferralSettingsService
from .commission_engine import CommissionEngine, QualifyingTransaction
from .commission_workflow import CommissionWorkflow

__all__ = [
    "NotificationService",
    "WalletLedger",
    "ReferralSettingsService",
    "CommissionEngine",
    "QualifyingTransaction",
    "CommissionWorkflow",
]
