"""Admin approval workflow for referral commissions."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, List, Dict

import asyncpg

from config.constants import ADMIN_COMMISSIONS_VIEW, DEFAULT_CRYPTO_TYPE, REFERRALS_URL
from core.errors import LedgerError, NotFoundError, InvalidStateError
from core.views import ViewVersions
from database.connection import Database
from database.models import (
    Commission,
    CommissionStatus,
    NotificationType,
    TransactionType,
    Wallet,
    WalletTransaction,
)
from database.repositories import ReferralRepository, WalletRepository
from services.notification_service import NotificationService
from services.wallet_ledger import WalletLedger
from utils import format_amount, validate_reason

logger = logging.getLogger(__name__)


@dataclass
class Settlement:
    """Result of approving a commission."""
    commission: Commission
    transaction: WalletTransaction
    wallet: Wallet


@dataclass
class ApprovalOutcome:
    """Per-commission result of a bulk approval."""
    commission_id: int
    success: bool
    error: Optional[str] = None


@dataclass
class BulkApprovalResult:
    """Result of bulk approval. Each id is settled independently."""
    outcomes: List[ApprovalOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.success)


@dataclass
class CommissionStats:
    """Commission counts and totals per status."""
    by_status: Dict[CommissionStatus, Dict]

    def count(self, status: CommissionStatus) -> int:
        return self.by_status[status]["count"]

    def total(self, status: CommissionStatus) -> Decimal:
        return self.by_status[status]["total"]

    @property
    def total_earned(self) -> Decimal:
        return self.total(CommissionStatus.PAID)

    @property
    def pending_amount(self) -> Decimal:
        return self.total(CommissionStatus.PENDING)


def _source_description(commission: Commission) -> str:
    return commission.source.kind.value.replace("_", " ").lower()


class CommissionWorkflow:
    """
    PENDING -> APPROVED -> PAID, or PENDING -> REJECTED.

    Approval settles the commission into the referrer's wallet in one
    database transaction: status changes, the wallet credit and the
    notification row either all commit or none do.
    """

    def __init__(
        self,
        db: Database,
        ledger: WalletLedger,
        notifications: NotificationService,
        views: ViewVersions,
    ):
        self.db = db
        self.referral_repo = ReferralRepository(db)
        self.wallet_repo = WalletRepository(db)
        self.ledger = ledger
        self.notifications = notifications
        self.views = views

    async def _lock_pending(self, commission_id: int, conn: asyncpg.Connection) -> Commission:
        commission = await self.referral_repo.lock_commission(commission_id, conn)
        if not commission:
            raise NotFoundError("Commission not found")
        if commission.status != CommissionStatus.PENDING:
            raise InvalidStateError("Commission is not in pending status")
        return commission

    async def approve(self, commission_id: int) -> Settlement:
        """
        Approve a commission and pay it into the referrer's wallet.

        Raises:
            NotFoundError: commission or referrer wallet missing
            InvalidStateError: commission is not PENDING
        """
        async with self.db.transaction() as conn:
            commission = await self._lock_pending(commission_id, conn)

            wallet = await self.wallet_repo.get_by_user_id(commission.user_id, conn=conn)
            if not wallet:
                raise NotFoundError("User wallet not found")

            now = datetime.now(timezone.utc)
            await self.referral_repo.update_commission_status(
                commission_id, CommissionStatus.APPROVED, conn=conn, approved_at=now
            )
            transaction = await self.ledger.credit(
                wallet.id,
                commission.amount,
                TransactionType.COMMISSION,
                description=f"Referral commission for {_source_description(commission)}",
                conn=conn,
            )
            commission = await self.referral_repo.update_commission_status(
                commission_id, CommissionStatus.PAID, conn=conn, paid_at=now
            )

            notification = await self.notifications.create(
                commission.user_id,
                "Commission Approved",
                f"Your referral commission of {format_amount(commission.amount, DEFAULT_CRYPTO_TYPE)} "
                f"has been approved and transferred to your wallet.",
                NotificationType.COMMISSION_PAID,
                REFERRALS_URL,
                conn=conn,
            )

            remaining = await self.referral_repo.count_pending_for_referral(commission.referral_id, conn=conn)
            if remaining == 0:
                await self.referral_repo.mark_commission_paid(commission.referral_id, conn=conn)

            wallet = await self.wallet_repo.get_by_id(wallet.id, conn=conn)

        self.notifications.dispatch(notification)
        self.views.bump(ADMIN_COMMISSIONS_VIEW)
        logger.info(
            f"[APPROVE_COMMISSION] Commission {commission_id} paid: {commission.amount} "
            f"to user {commission.user_id}"
        )
        return Settlement(commission=commission, transaction=transaction, wallet=wallet)

    async def reject(self, commission_id: int, reason: str) -> Commission:
        """
        Reject a pending commission. The wallet is not touched.

        Raises:
            ValidationError: blank reason
            NotFoundError: commission missing
            InvalidStateError: commission is not PENDING
        """
        reason = validate_reason(reason)

        async with self.db.transaction() as conn:
            await self._lock_pending(commission_id, conn)
            commission = await self.referral_repo.update_commission_status(
                commission_id,
                CommissionStatus.REJECTED,
                conn=conn,
                rejection_reason=reason,
            )
            notification = await self.notifications.create(
                commission.user_id,
                "Commission Rejected",
                f"Your referral commission of {format_amount(commission.amount, DEFAULT_CRYPTO_TYPE)} "
                f"has been rejected. Reason: {reason}",
                NotificationType.COMMISSION_EARNED,
                REFERRALS_URL,
                conn=conn,
            )

        self.notifications.dispatch(notification)
        self.views.bump(ADMIN_COMMISSIONS_VIEW)
        logger.info(f"[REJECT_COMMISSION] Commission {commission_id} rejected: {reason}")
        return commission

    async def bulk_approve(self, commission_ids: List[int]) -> BulkApprovalResult:
        """
        Approve each id independently.

        A failure is recorded in the outcome list and does not roll back
        commissions that were already approved.
        """
        result = BulkApprovalResult()
        for commission_id in commission_ids:
            try:
                await self.approve(commission_id)
                result.outcomes.append(ApprovalOutcome(commission_id=commission_id, success=True))
            except LedgerError as e:
                result.outcomes.append(
                    ApprovalOutcome(commission_id=commission_id, success=False, error=e.message)
                )
            except Exception as e:
                logger.error(f"[BULK_APPROVE] Commission {commission_id} failed: {e}", exc_info=True)
                result.outcomes.append(
                    ApprovalOutcome(commission_id=commission_id, success=False, error="Failed to approve commission")
                )

        logger.info(
            f"[BULK_APPROVE] {result.succeeded} approved, {result.failed} failed "
            f"of {len(commission_ids)}"
        )
        return result

    # ==================== READS ====================

    async def list_commissions(
        self,
        status: Optional[CommissionStatus] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Commission]:
        return await self.referral_repo.list_commissions(status=status, limit=limit, offset=offset)

    async def list_user_commissions(self, user_id: int, limit: int = 50) -> List[Commission]:
        return await self.referral_repo.get_user_commissions(user_id, limit=limit)

    async def get_stats(self, user_id: Optional[int] = None) -> CommissionStats:
        """Totals by status for one referrer, or platform-wide when user_id is None."""
        return CommissionStats(by_status=await self.referral_repo.get_commission_stats(user_id))
