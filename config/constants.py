"""Application constants."""

from decimal import Decimal

# Commission rate bounds (percent)
MIN_COMMISSION_RATE = Decimal("0")
MAX_COMMISSION_RATE = Decimal("20")

# Money is stored with two decimal places
MONEY_QUANTUM = Decimal("0.01")

# Default currency label for wallet transactions
DEFAULT_CRYPTO_TYPE = "USDT"

# Pagination
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
RECENT_TRANSACTIONS_LIMIT = 10

# Notifications older than this (and already read) may be purged
NOTIFICATION_RETENTION_DAYS = 30

# Dashboard routes used as notification action links
REFERRALS_URL = "/profile/referrals"
WALLET_URL = "/wallet"
ADMIN_COMMISSIONS_VIEW = "/admin/users/commissions"
ADMIN_REFERRAL_SETTINGS_VIEW = "/admin/settings/referrals"
ADMIN_WALLETS_VIEW = "/admin/users/wallets"

# Push payload icon
PUSH_ICON = "/logo.png"
