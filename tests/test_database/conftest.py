"""PostgreSQL fixtures. Tests here are skipped unless TEST_DATABASE_URL is set."""

import os

import pytest
import pytest_asyncio

from database.connection import Database

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")

TABLES = [
    "push_subscriptions",
    "notification_preferences",
    "notifications",
    "commissions",
    "referral_settings_history",
    "referral_settings",
    "wallet_transactions",
    "wallets",
    "referrals",
    "users",
]


@pytest_asyncio.fixture
async def pg_db():
    """Real Database with empty tables and the zero-rate settings row."""
    if not TEST_DATABASE_URL:
        pytest.skip("TEST_DATABASE_URL not set")

    db = Database(TEST_DATABASE_URL, min_size=1, max_size=5)
    await db.initialize()
    try:
        await db.execute(f"TRUNCATE {', '.join(TABLES)} RESTART IDENTITY CASCADE")
        await db.execute("INSERT INTO referral_settings (id) VALUES (1)")
        yield db
    finally:
        await db.close()
