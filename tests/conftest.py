"""Shared pytest fixtures for ledger tests.

Services are built exactly as in production and then pointed at the
in-memory repositories from tests/fakes.py, so the business rules run
unchanged without a PostgreSQL server.
"""

import os
import sys
from decimal import Decimal
from pathlib import Path

import pytest
import pytest_asyncio

# Settings need a session secret before anything imports config
os.environ.setdefault("SESSION_SECRET", "test-session-secret")
os.environ.setdefault("SMTP_HOST", "")

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.notifications import DeliveryQueue
from core.views import ViewVersions
from database.models import (
    CommissionSource,
    ReferralStatus,
    SourceKind,
    UserRole,
)
from services import (
    CommissionEngine,
    CommissionWorkflow,
    NotificationService,
    ReferralSettingsService,
    WalletLedger,
)
from tests.fakes import (
    FakeDatabase,
    FakeNotificationRepository,
    FakeReferralRepository,
    FakeSettingsRepository,
    FakeUserRepository,
    FakeWalletRepository,
    InMemoryStore,
)


@pytest.fixture
def store() -> InMemoryStore:
    """Empty in-memory tables (referral settings seeded at zero)."""
    return InMemoryStore()


@pytest.fixture
def db(store: InMemoryStore) -> FakeDatabase:
    return FakeDatabase(store)


@pytest.fixture
def user_repo(store: InMemoryStore) -> FakeUserRepository:
    return FakeUserRepository(store)


@pytest.fixture
def wallet_repo(store: InMemoryStore) -> FakeWalletRepository:
    return FakeWalletRepository(store)


@pytest.fixture
def referral_repo(store: InMemoryStore) -> FakeReferralRepository:
    return FakeReferralRepository(store)


@pytest.fixture
def settings_repo(store: InMemoryStore) -> FakeSettingsRepository:
    return FakeSettingsRepository(store)


@pytest.fixture
def notification_repo(store: InMemoryStore) -> FakeNotificationRepository:
    return FakeNotificationRepository(store)


@pytest.fixture
def views() -> ViewVersions:
    return ViewVersions()


@pytest_asyncio.fixture
async def delivery():
    """Delivery queue drained at teardown so no task outlives the loop."""
    queue = DeliveryQueue()
    yield queue
    await queue.drain()


@pytest.fixture
def notification_service(db, delivery, notification_repo, user_repo) -> NotificationService:
    service = NotificationService(db, delivery)
    service.notification_repo = notification_repo
    service.user_repo = user_repo
    return service


@pytest.fixture
def wallet_ledger(db, notification_service, wallet_repo) -> WalletLedger:
    ledger = WalletLedger(db, notification_service)
    ledger.wallet_repo = wallet_repo
    return ledger


@pytest.fixture
def settings_service(db, settings_repo) -> ReferralSettingsService:
    service = ReferralSettingsService(db)
    service.settings_repo = settings_repo
    return service


@pytest.fixture
def commission_engine(db, notification_service, views, referral_repo, settings_repo) -> CommissionEngine:
    engine = CommissionEngine(db, notification_service, views)
    engine.referral_repo = referral_repo
    engine.settings_repo = settings_repo
    return engine


@pytest.fixture
def commission_workflow(db, wallet_ledger, notification_service, views, referral_repo, wallet_repo) -> CommissionWorkflow:
    workflow = CommissionWorkflow(db, wallet_ledger, notification_service, views)
    workflow.referral_repo = referral_repo
    workflow.wallet_repo = wallet_repo
    return workflow


@pytest_asyncio.fixture
async def referrer(user_repo, wallet_repo):
    """Referrer with an empty wallet."""
    user = await user_repo.create("referrer@example.com", "Ada", "Lovelace")
    await wallet_repo.create(user.id)
    return user


@pytest_asyncio.fixture
async def referred(user_repo, wallet_repo):
    """Referred user with an empty wallet."""
    user = await user_repo.create("referred@example.com", "Grace", "Hopper")
    await wallet_repo.create(user.id)
    return user


@pytest_asyncio.fixture
async def admin_user(user_repo):
    return await user_repo.create("admin@example.com", "Root", None, role=UserRole.ADMIN)


@pytest_asyncio.fixture
async def referral(referral_repo, referrer, referred):
    """Completed referral of `referred` by `referrer`."""
    return await referral_repo.create_referral(
        referrer.id, referred.id, status=ReferralStatus.COMPLETED
    )


@pytest_asyncio.fixture
async def property_rate_5(settings_repo):
    """Rate table with property purchases at 5%."""
    return await settings_repo.update(
        {
            "property_commission_rate": Decimal("5"),
            "equipment_commission_rate": Decimal("3"),
            "market_commission_rate": Decimal("2.5"),
            "green_energy_commission_rate": Decimal("0"),
        },
        updated_by=None,
    )


@pytest.fixture
def property_source() -> CommissionSource:
    return CommissionSource(kind=SourceKind.PROPERTY, source_id="purchase-1")
