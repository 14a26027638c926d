"""PostgreSQL database connection and initialization using asyncpg."""

import asyncpg
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
import logging

logger = logging.getLogger(__name__)


class Database:
    """Async PostgreSQL database manager using connection pool."""

    def __init__(self, database_url: str, min_size: int = 2, max_size: int = 10):
        self.database_url = database_url
        self.min_size = min_size
        self.max_size = max_size
        self._pool: Optional[asyncpg.Pool] = None

    async def get_connection(self) -> asyncpg.Connection:
        """Get a connection from the pool."""
        if self._pool is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return await self._pool.acquire()

    async def release_connection(self, conn: asyncpg.Connection) -> None:
        """Release a connection back to the pool."""
        if self._pool:
            await self._pool.release(conn)

    @asynccontextmanager
    async def acquire(self, conn: Optional[asyncpg.Connection] = None) -> AsyncIterator[asyncpg.Connection]:
        """
        Borrow a connection for the duration of the block.

        If the caller already holds a connection it is reused as-is, so
        repository calls made inside a service transaction stay in it.
        """
        if conn is not None:
            yield conn
            return

        conn = await self.get_connection()
        try:
            yield conn
        finally:
            await self.release_connection(conn)

    @asynccontextmanager
    async def transaction(self, conn: Optional[asyncpg.Connection] = None) -> AsyncIterator[asyncpg.Connection]:
        """
        Run the block inside a database transaction.

        Passing an existing connection joins the caller's transaction instead
        of opening a new one. Any exception rolls back every write made on
        the yielded connection.
        """
        if conn is not None:
            yield conn
            return

        async with self.acquire() as conn:
            async with conn.transaction():
                yield conn

    async def close(self) -> None:
        """Close the connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None

    async def initialize(self) -> None:
        """Create connection pool and initialize database tables."""
        self._pool = await asyncpg.create_pool(
            self.database_url,
            min_size=self.min_size,
            max_size=self.max_size,
        )
        logger.info("Database connection pool created")

        await self._create_tables()
        logger.info("Database tables initialized")

    async def _create_tables(self) -> None:
        """Create database tables if they don't exist."""
        async with self.acquire() as conn:
            # Users table (registration and login live elsewhere)
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id SERIAL PRIMARY KEY,
                    email TEXT UNIQUE NOT NULL,
                    first_name TEXT,
                    last_name TEXT,
                    role TEXT NOT NULL DEFAULT 'USER' CHECK(role IN ('USER', 'ADMIN')),
                    email_verified BOOLEAN NOT NULL DEFAULT FALSE,
                    kyc_status TEXT NOT NULL DEFAULT 'NOT_SUBMITTED'
                        CHECK(kyc_status IN ('NOT_SUBMITTED', 'PENDING', 'APPROVED', 'REJECTED')),
                    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                )
            """)

            # Referral graph: one referrer per referred user
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS referrals (
                    id SERIAL PRIMARY KEY,
                    referrer_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    referred_id INTEGER NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
                    status TEXT NOT NULL DEFAULT 'PENDING' CHECK(status IN ('PENDING', 'COMPLETED')),
                    commission_paid BOOLEAN NOT NULL DEFAULT FALSE,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    CHECK(referrer_id <> referred_id)
                )
            """)

            # Wallets table
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS wallets (
                    id SERIAL PRIMARY KEY,
                    user_id INTEGER NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
                    balance NUMERIC(18, 2) NOT NULL DEFAULT 0 CHECK(balance >= 0),
                    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                )
            """)

            # Wallet transaction log (append-only; only status and description change)
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS wallet_transactions (
                    id SERIAL PRIMARY KEY,
                    wallet_id INTEGER NOT NULL REFERENCES wallets(id) ON DELETE CASCADE,
                    type TEXT NOT NULL CHECK(type IN ('DEPOSIT', 'WITHDRAWAL', 'INVESTMENT', 'PURCHASE', 'RETURN', 'COMMISSION')),
                    amount NUMERIC(18, 2) NOT NULL CHECK(amount > 0),
                    status TEXT NOT NULL DEFAULT 'PENDING' CHECK(status IN ('PENDING', 'COMPLETED', 'FAILED')),
                    crypto_type TEXT,
                    tx_hash TEXT,
                    description TEXT,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                )
            """)

            # Referral settings: exactly one current-value row
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS referral_settings (
                    id INTEGER PRIMARY KEY DEFAULT 1 CHECK(id = 1),
                    property_commission_rate NUMERIC(5, 2) NOT NULL DEFAULT 0
                        CHECK(property_commission_rate BETWEEN 0 AND 20),
                    equipment_commission_rate NUMERIC(5, 2) NOT NULL DEFAULT 0
                        CHECK(equipment_commission_rate BETWEEN 0 AND 20),
                    market_commission_rate NUMERIC(5, 2) NOT NULL DEFAULT 0
                        CHECK(market_commission_rate BETWEEN 0 AND 20),
                    green_energy_commission_rate NUMERIC(5, 2) NOT NULL DEFAULT 0
                        CHECK(green_energy_commission_rate BETWEEN 0 AND 20),
                    updated_by INTEGER REFERENCES users(id) ON DELETE SET NULL,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                )
            """)
            await conn.execute(
                "INSERT INTO referral_settings (id) VALUES (1) ON CONFLICT (id) DO NOTHING"
            )

            # Append-only audit log of rate changes
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS referral_settings_history (
                    id SERIAL PRIMARY KEY,
                    property_commission_rate NUMERIC(5, 2) NOT NULL,
                    equipment_commission_rate NUMERIC(5, 2) NOT NULL,
                    market_commission_rate NUMERIC(5, 2) NOT NULL,
                    green_energy_commission_rate NUMERIC(5, 2) NOT NULL,
                    updated_by INTEGER REFERENCES users(id) ON DELETE SET NULL,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                )
            """)

            # Referral commissions
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS commissions (
                    id SERIAL PRIMARY KEY,
                    referral_id INTEGER NOT NULL REFERENCES referrals(id) ON DELETE CASCADE,
                    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    referred_user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    amount NUMERIC(18, 2) NOT NULL CHECK(amount > 0),
                    rate_applied NUMERIC(5, 2) NOT NULL,
                    status TEXT NOT NULL DEFAULT 'PENDING' CHECK(status IN ('PENDING', 'APPROVED', 'REJECTED', 'PAID')),
                    source_kind TEXT NOT NULL CHECK(source_kind IN ('PROPERTY', 'EQUIPMENT', 'MARKET', 'REAL_ESTATE', 'GREEN_ENERGY')),
                    source_id TEXT NOT NULL,
                    rejection_reason TEXT,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    approved_at TIMESTAMPTZ,
                    paid_at TIMESTAMPTZ,
                    UNIQUE(source_kind, source_id)
                )
            """)

            # In-app notifications
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS notifications (
                    id SERIAL PRIMARY KEY,
                    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    title TEXT NOT NULL,
                    message TEXT NOT NULL,
                    type TEXT NOT NULL,
                    read BOOLEAN NOT NULL DEFAULT FALSE,
                    action_url TEXT,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                )
            """)

            # Per-user delivery preferences
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS notification_preferences (
                    user_id INTEGER PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
                    email_enabled BOOLEAN NOT NULL DEFAULT TRUE,
                    investment_notifications BOOLEAN NOT NULL DEFAULT TRUE,
                    payment_notifications BOOLEAN NOT NULL DEFAULT TRUE,
                    kyc_notifications BOOLEAN NOT NULL DEFAULT TRUE,
                    referral_notifications BOOLEAN NOT NULL DEFAULT TRUE,
                    wallet_notifications BOOLEAN NOT NULL DEFAULT TRUE,
                    commission_notifications BOOLEAN NOT NULL DEFAULT TRUE,
                    system_notifications BOOLEAN NOT NULL DEFAULT TRUE,
                    security_notifications BOOLEAN NOT NULL DEFAULT TRUE,
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                )
            """)

            # Web push subscriptions (one browser endpoint per user)
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS push_subscriptions (
                    id SERIAL PRIMARY KEY,
                    user_id INTEGER NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
                    subscription TEXT NOT NULL,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                )
            """)

            # Create indexes
            await conn.execute("CREATE INDEX IF NOT EXISTS idx_referrals_referrer_id ON referrals(referrer_id)")
            await conn.execute("CREATE INDEX IF NOT EXISTS idx_wallet_transactions_wallet_id ON wallet_transactions(wallet_id)")
            await conn.execute("CREATE INDEX IF NOT EXISTS idx_wallet_transactions_status ON wallet_transactions(status)")
            await conn.execute("CREATE INDEX IF NOT EXISTS idx_commissions_user_id ON commissions(user_id)")
            await conn.execute("CREATE INDEX IF NOT EXISTS idx_commissions_status ON commissions(status)")
            await conn.execute("CREATE INDEX IF NOT EXISTS idx_commissions_referral_id ON commissions(referral_id)")
            await conn.execute("CREATE INDEX IF NOT EXISTS idx_notifications_user_id ON notifications(user_id)")
            await conn.execute("CREATE INDEX IF NOT EXISTS idx_notifications_unread ON notifications(user_id, read)")

    async def execute(self, query: str, *args):
        """Execute a query and return the result."""
        async with self.acquire() as conn:
            return await conn.execute(query, *args)

    async def fetch(self, query: str, *args):
        """Execute a query and fetch all rows."""
        async with self.acquire() as conn:
            return await conn.fetch(query, *args)

    async def fetchrow(self, query: str, *args):
        """Execute a query and fetch a single row."""
        async with self.acquire() as conn:
            return await conn.fetchrow(query, *args)

    async def fetchval(self, query: str, *args):
        """Execute a query and fetch a single value."""
        async with self.acquire() as conn:
            return await conn.fetchval(query, *args)
