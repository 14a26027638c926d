"""Admin procedures for deposits, withdrawals and manual wallet adjustments."""

import logging
from decimal import Decimal

from admin.utils import ActionResult, admin_action
from config.constants import ADMIN_WALLETS_VIEW
from core.views import ViewVersions
from database.models import TransactionType
from services.wallet_ledger import WalletLedger

logger = logging.getLogger(__name__)


class WalletAdminService:
    """Wallet review actions. Every successful mutation refreshes the admin wallets view."""

    def __init__(self, ledger: WalletLedger, views: ViewVersions):
        self.ledger = ledger
        self.views = views

    def _done(self, session, action: str, transaction) -> ActionResult:
        self.views.bump(ADMIN_WALLETS_VIEW)
        logger.info(f"[{action}] Admin {session.user_id} -> transaction {transaction.id}")
        return ActionResult.ok(transaction)

    @admin_action("Failed to approve deposit", "APPROVE_DEPOSIT")
    async def approve_deposit(self, session, transaction_id: int) -> ActionResult:
        transaction = await self.ledger.approve_deposit(transaction_id)
        return self._done(session, "APPROVE_DEPOSIT", transaction)

    @admin_action("Failed to reject deposit", "REJECT_DEPOSIT")
    async def reject_deposit(self, session, transaction_id: int, reason: str) -> ActionResult:
        transaction = await self.ledger.reject_deposit(transaction_id, reason)
        return self._done(session, "REJECT_DEPOSIT", transaction)

    @admin_action("Failed to approve withdrawal", "APPROVE_WITHDRAWAL")
    async def approve_withdrawal(self, session, transaction_id: int) -> ActionResult:
        transaction = await self.ledger.approve_withdrawal(transaction_id)
        return self._done(session, "APPROVE_WITHDRAWAL", transaction)

    @admin_action("Failed to reject withdrawal", "REJECT_WITHDRAWAL")
    async def reject_withdrawal(self, session, transaction_id: int, reason: str) -> ActionResult:
        transaction = await self.ledger.reject_withdrawal(transaction_id, reason)
        return self._done(session, "REJECT_WITHDRAWAL", transaction)

    @admin_action("Failed to fund wallet", "FUND_WALLET")
    async def fund_user_wallet(self, session, user_id: int, amount: Decimal, reason: str) -> ActionResult:
        transaction = await self.ledger.fund_wallet(user_id, amount, reason)
        return self._done(session, "FUND_WALLET", transaction)

    @admin_action("Failed to deduct from wallet", "DEDUCT_WALLET")
    async def deduct_from_user_wallet(
        self,
        session,
        user_id: int,
        amount: Decimal,
        reason: str,
        tx_type: TransactionType = TransactionType.WITHDRAWAL,
    ) -> ActionResult:
        transaction = await self.ledger.deduct_from_wallet(user_id, amount, reason, tx_type)
        return self._done(session, "DEDUCT_WALLET", transaction)
