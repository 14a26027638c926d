"""Tests for the commission approval workflow."""

import asyncio
from decimal import Decimal

import asyncpg
import pytest
import pytest_asyncio

from config.constants import ADMIN_COMMISSIONS_VIEW
from core.errors import InvalidStateError, NotFoundError, ValidationError
from database.models import (
    CommissionSource,
    CommissionStatus,
    NotificationType,
    SourceKind,
    TransactionStatus,
    TransactionType,
)
from services.commission_engine import QualifyingTransaction


async def _earn(engine, user_id, amount, source_id, kind=SourceKind.PROPERTY):
    return await engine.process(
        QualifyingTransaction(
            user_id=user_id,
            amount=Decimal(amount),
            source=CommissionSource(kind=kind, source_id=source_id),
        )
    )


@pytest_asyncio.fixture
async def pending_commission(commission_engine, referral, referred, property_rate_5):
    """$500.00 commission from a $10,000 property purchase."""
    return await _earn(commission_engine, referred.id, "10000", "purchase-1")


class TestApproveCommission:
    """Tests for approving a single commission."""

    @pytest.mark.asyncio
    async def test_approve_pays_referrer(
        self, commission_workflow, store, wallet_repo, referrer, pending_commission
    ):
        """Test approval credits exactly the commission amount and marks it PAID."""
        settlement = await commission_workflow.approve(pending_commission.id)

        assert settlement.commission.status == CommissionStatus.PAID
        assert settlement.commission.approved_at is not None
        assert settlement.commission.paid_at is not None
        assert settlement.wallet.balance == Decimal("500.00")

        wallet = await wallet_repo.get_by_user_id(referrer.id)
        assert wallet.balance == Decimal("500.00")

        transactions = await wallet_repo.get_transactions(wallet.id)
        assert len(transactions) == 1
        assert transactions[0].type == TransactionType.COMMISSION
        assert transactions[0].status == TransactionStatus.COMPLETED
        assert transactions[0].amount == Decimal("500.00")
        assert transactions[0].description == "Referral commission for property"
        assert settlement.transaction.id == transactions[0].id

    @pytest.mark.asyncio
    async def test_approve_notifies_once(self, commission_workflow, store, referrer, pending_commission):
        """Test approval adds exactly one COMMISSION_PAID notification."""
        before = len(store.notifications)
        await commission_workflow.approve(pending_commission.id)

        new = [n for n in store.notifications.values() if n.type == NotificationType.COMMISSION_PAID]
        assert len(store.notifications) == before + 1
        assert len(new) == 1
        assert new[0].user_id == referrer.id
        assert new[0].title == "Commission Approved"
        assert "500.00 USDT" in new[0].message

    @pytest.mark.asyncio
    async def test_ledger_stays_consistent(self, commission_workflow, wallet_ledger, wallet_repo, referrer, pending_commission):
        """Test the stored balance equals the ledger sum after approval."""
        await commission_workflow.approve(pending_commission.id)

        wallet = await wallet_repo.get_by_user_id(referrer.id)
        check = await wallet_ledger.verify_balance(wallet.id)
        assert check.consistent

    @pytest.mark.asyncio
    async def test_double_approve_credits_once(self, commission_workflow, wallet_repo, referrer, pending_commission):
        """Test a second approval fails and the wallet is credited once."""
        await commission_workflow.approve(pending_commission.id)

        with pytest.raises(InvalidStateError):
            await commission_workflow.approve(pending_commission.id)

        wallet = await wallet_repo.get_by_user_id(referrer.id)
        assert wallet.balance == Decimal("500.00")
        assert len(await wallet_repo.get_transactions(wallet.id)) == 1

    @pytest.mark.asyncio
    async def test_approve_missing_commission(self, commission_workflow):
        """Test approving an unknown id raises NotFoundError."""
        with pytest.raises(NotFoundError, match="Commission not found"):
            await commission_workflow.approve(999)

    @pytest.mark.asyncio
    async def test_approve_without_wallet(self, commission_workflow, store, wallet_repo, referrer, pending_commission):
        """Test a referrer without a wallet is reported and nothing changes."""
        wallet = await wallet_repo.get_by_user_id(referrer.id)
        del store.wallets[wallet.id]

        with pytest.raises(NotFoundError, match="User wallet not found"):
            await commission_workflow.approve(pending_commission.id)

        assert store.commissions[pending_commission.id].status == CommissionStatus.PENDING

    @pytest.mark.asyncio
    async def test_notification_failure_rolls_back(
        self, commission_workflow, store, wallet_repo, referrer, pending_commission
    ):
        """Test a failure writing the notification undoes the credit and status change."""
        async def broken_create(*args, **kwargs):
            raise asyncpg.PostgresError("notifications table unavailable")

        commission_workflow.notifications.notification_repo.create = broken_create

        with pytest.raises(asyncpg.PostgresError):
            await commission_workflow.approve(pending_commission.id)

        assert store.commissions[pending_commission.id].status == CommissionStatus.PENDING
        wallet = await wallet_repo.get_by_user_id(referrer.id)
        assert wallet.balance == Decimal("0.00")
        assert await wallet_repo.get_transactions(wallet.id) == []

    @pytest.mark.asyncio
    async def test_last_pending_marks_referral_paid(
        self, commission_workflow, commission_engine, store, referral, referred, pending_commission
    ):
        """Test the referral is flagged paid once no commission is pending."""
        second = await _earn(commission_engine, referred.id, "1000", "purchase-2")

        await commission_workflow.approve(pending_commission.id)
        assert store.referrals[referral.id].commission_paid is False

        await commission_workflow.approve(second.id)
        assert store.referrals[referral.id].commission_paid is True

    @pytest.mark.asyncio
    async def test_approve_bumps_admin_view(self, commission_workflow, views, pending_commission):
        """Test approval invalidates the admin commissions view."""
        etag = views.etag(ADMIN_COMMISSIONS_VIEW)
        version = views.version(ADMIN_COMMISSIONS_VIEW)
        await commission_workflow.approve(pending_commission.id)

        assert views.version(ADMIN_COMMISSIONS_VIEW) == version + 1
        assert views.etag(ADMIN_COMMISSIONS_VIEW) != etag


class TestRejectCommission:
    """Tests for rejecting a commission."""

    @pytest.mark.asyncio
    async def test_reject_records_reason(self, commission_workflow, store, wallet_repo, referrer, pending_commission):
        """Test rejection stores the reason and leaves the wallet alone."""
        commission = await commission_workflow.reject(pending_commission.id, "Purchase refunded")

        assert commission.status == CommissionStatus.REJECTED
        assert commission.rejection_reason == "Purchase refunded"

        wallet = await wallet_repo.get_by_user_id(referrer.id)
        assert wallet.balance == Decimal("0.00")
        assert await wallet_repo.get_transactions(wallet.id) == []

        titles = [n.title for n in store.notifications.values()]
        assert "Commission Rejected" in titles

    @pytest.mark.asyncio
    async def test_reject_requires_reason(self, commission_workflow, pending_commission):
        """Test a blank reason is invalid."""
        with pytest.raises(ValidationError):
            await commission_workflow.reject(pending_commission.id, "   ")

    @pytest.mark.asyncio
    async def test_cannot_reject_paid(self, commission_workflow, pending_commission):
        """Test a PAID commission cannot be rejected."""
        await commission_workflow.approve(pending_commission.id)

        with pytest.raises(InvalidStateError):
            await commission_workflow.reject(pending_commission.id, "Too late")

    @pytest.mark.asyncio
    async def test_cannot_approve_rejected(self, commission_workflow, pending_commission):
        """Test REJECTED is terminal."""
        await commission_workflow.reject(pending_commission.id, "Fraud")

        with pytest.raises(InvalidStateError):
            await commission_workflow.approve(pending_commission.id)


class TestBulkApprove:
    """Tests for bulk approval."""

    @pytest.mark.asyncio
    async def test_mixed_batch(self, commission_workflow, commission_engine, wallet_repo, referrer, referred, pending_commission):
        """Test one pending and one already approved id give one success and one failure."""
        other = await _earn(commission_engine, referred.id, "1000", "purchase-2")
        await commission_workflow.approve(other.id)

        result = await commission_workflow.bulk_approve([pending_commission.id, other.id])

        assert result.succeeded == 1
        assert result.failed == 1
        failure = next(o for o in result.outcomes if not o.success)
        assert failure.commission_id == other.id
        assert failure.error == "Commission is not in pending status"

        wallet = await wallet_repo.get_by_user_id(referrer.id)
        assert wallet.balance == Decimal("550.00")

    @pytest.mark.asyncio
    async def test_unknown_id_does_not_stop_batch(self, commission_workflow, pending_commission):
        """Test a missing id is reported and the rest still settle."""
        result = await commission_workflow.bulk_approve([999, pending_commission.id])

        assert [o.success for o in result.outcomes] == [False, True]
        assert result.outcomes[0].error == "Commission not found"

    @pytest.mark.asyncio
    async def test_database_error_is_reported(self, commission_workflow, pending_commission):
        """Test an unexpected database error becomes a generic failure outcome."""
        async def broken_lock(commission_id, conn):
            raise asyncpg.PostgresError("deadlock detected")

        commission_workflow.referral_repo.lock_commission = broken_lock
        result = await commission_workflow.bulk_approve([pending_commission.id])

        assert result.failed == 1
        assert result.outcomes[0].error == "Failed to approve commission"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [asyncio.TimeoutError(), OSError("connection reset")])
    async def test_non_database_error_does_not_stop_batch(
        self, commission_workflow, commission_engine, wallet_repo, referrer, referred, pending_commission, error
    ):
        """Test a timeout or socket error on one id is reported and later ids still settle."""
        second = await _earn(commission_engine, referred.id, "1000", "purchase-2")
        original_lock = commission_workflow.referral_repo.lock_commission

        async def flaky_lock(commission_id, conn):
            if commission_id == pending_commission.id:
                raise error
            return await original_lock(commission_id, conn)

        commission_workflow.referral_repo.lock_commission = flaky_lock
        result = await commission_workflow.bulk_approve([pending_commission.id, second.id])

        assert [o.success for o in result.outcomes] == [False, True]
        assert result.outcomes[0].error == "Failed to approve commission"
        wallet = await wallet_repo.get_by_user_id(referrer.id)
        assert wallet.balance == Decimal("50.00")


class TestCommissionStats:
    """Tests for commission reads."""

    @pytest.mark.asyncio
    async def test_stats_by_status(self, commission_workflow, commission_engine, referrer, referred, pending_commission):
        """Test totals per status for a referrer."""
        other = await _earn(commission_engine, referred.id, "1000", "purchase-2")
        await commission_workflow.approve(other.id)

        stats = await commission_workflow.get_stats(referrer.id)

        assert stats.count(CommissionStatus.PENDING) == 1
        assert stats.pending_amount == Decimal("500.00")
        assert stats.count(CommissionStatus.PAID) == 1
        assert stats.total_earned == Decimal("50.00")
        assert stats.count(CommissionStatus.REJECTED) == 0

    @pytest.mark.asyncio
    async def test_list_by_status(self, commission_workflow, commission_engine, referred, pending_commission):
        """Test filtering the admin list by status."""
        other = await _earn(commission_engine, referred.id, "1000", "purchase-2")
        await commission_workflow.reject(other.id, "Duplicate")

        pending = await commission_workflow.list_commissions(status=CommissionStatus.PENDING)
        everything = await commission_workflow.list_commissions()

        assert [c.id for c in pending] == [pending_commission.id]
        assert {c.id for c in everything} == {pending_commission.id, other.id}
