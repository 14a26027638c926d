"""Fixtures for admin procedure tests."""

import pytest

from admin.services import CommissionAdminService, SettingsAdminService, WalletAdminService
from core.auth import Session
from database.models import UserRole


@pytest.fixture
def admin_session(admin_user) -> Session:
    return Session(user_id=admin_user.id, role=UserRole.ADMIN, email_verified=True)


@pytest.fixture
def user_session(referrer) -> Session:
    return Session(user_id=referrer.id, role=UserRole.USER, email_verified=True)


@pytest.fixture
def commission_admin(commission_workflow) -> CommissionAdminService:
    return CommissionAdminService(commission_workflow)


@pytest.fixture
def settings_admin(settings_service, views) -> SettingsAdminService:
    return SettingsAdminService(settings_service, views)


@pytest.fixture
def wallet_admin(wallet_ledger, views) -> WalletAdminService:
    return WalletAdminService(wallet_ledger, views)
