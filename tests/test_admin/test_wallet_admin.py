"""Tests for wallet admin procedures."""

from decimal import Decimal

import pytest

from config.constants import ADMIN_WALLETS_VIEW
from database.models import TransactionStatus, TransactionType


class TestWalletAdmin:
    """Tests for deposit/withdrawal review and manual adjustments."""

    @pytest.mark.asyncio
    async def test_approve_deposit(self, wallet_admin, wallet_ledger, admin_session, referrer, views):
        pending = await wallet_ledger.request_deposit(referrer.id, Decimal("20"))

        result = await wallet_admin.approve_deposit(admin_session, pending.id)

        assert result.success
        assert result.data.status == TransactionStatus.COMPLETED
        assert views.version(ADMIN_WALLETS_VIEW) == 1

    @pytest.mark.asyncio
    async def test_reject_withdrawal(self, wallet_admin, wallet_ledger, wallet_repo, admin_session, referrer):
        await wallet_ledger.fund_wallet(referrer.id, Decimal("50"), "Bonus")
        pending = await wallet_ledger.request_withdrawal(referrer.id, Decimal("20"))

        result = await wallet_admin.reject_withdrawal(admin_session, pending.id, "Address mismatch")

        assert result.data.status == TransactionStatus.FAILED
        assert (await wallet_repo.get_by_user_id(referrer.id)).balance == Decimal("50.00")

    @pytest.mark.asyncio
    async def test_fund_and_deduct(self, wallet_admin, wallet_repo, admin_session, referrer):
        await wallet_admin.fund_user_wallet(admin_session, referrer.id, Decimal("100"), "Bonus")
        result = await wallet_admin.deduct_from_user_wallet(
            admin_session, referrer.id, Decimal("40"), "Wind turbine share", TransactionType.INVESTMENT
        )

        assert result.data.type == TransactionType.INVESTMENT
        assert (await wallet_repo.get_by_user_id(referrer.id)).balance == Decimal("60.00")

    @pytest.mark.asyncio
    async def test_overdraft_reported(self, wallet_admin, admin_session, referrer, views):
        result = await wallet_admin.deduct_from_user_wallet(admin_session, referrer.id, Decimal("1"), "Fee")

        assert result.error == "Insufficient wallet balance"
        assert result.status == 422
        assert views.version(ADMIN_WALLETS_VIEW) == 0

    @pytest.mark.asyncio
    async def test_user_cannot_fund(self, wallet_admin, wallet_repo, user_session, referrer):
        result = await wallet_admin.fund_user_wallet(user_session, referrer.id, Decimal("1000000"), "Free money")

        assert result.status == 401
        assert (await wallet_repo.get_by_user_id(referrer.id)).balance == Decimal("0.00")
