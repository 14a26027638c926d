"""Admin procedures for commissions, referral settings and wallets."""
