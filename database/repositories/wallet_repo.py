"""Wallet repository for database operations."""

from decimal import Decimal
from typing import Optional, List

import asyncpg

from database.connection import Database
from database.models import (
    Wallet,
    WalletTransaction,
    TransactionType,
    TransactionStatus,
    CREDIT_TYPES,
)


class WalletRepository:
    """Repository for wallet balances and the wallet transaction log."""

    def __init__(self, db: Database):
        self.db = db

    # ==================== WALLETS ====================

    async def create(self, user_id: int, conn: Optional[asyncpg.Connection] = None) -> Wallet:
        """Create a wallet for a user, or return the existing one."""
        async with self.db.acquire(conn) as c:
            await c.execute(
                """
                INSERT INTO wallets (user_id)
                VALUES ($1)
                ON CONFLICT (user_id) DO NOTHING
                """,
                user_id,
            )
            row = await c.fetchrow("SELECT * FROM wallets WHERE user_id = $1", user_id)
            return Wallet.from_row(row)

    async def get_by_id(self, wallet_id: int, conn: Optional[asyncpg.Connection] = None) -> Optional[Wallet]:
        """Get wallet by ID."""
        async with self.db.acquire(conn) as c:
            row = await c.fetchrow("SELECT * FROM wallets WHERE id = $1", wallet_id)
            if row:
                return Wallet.from_row(row)
            return None

    async def get_by_user_id(self, user_id: int, conn: Optional[asyncpg.Connection] = None) -> Optional[Wallet]:
        """Get wallet by user ID."""
        async with self.db.acquire(conn) as c:
            row = await c.fetchrow("SELECT * FROM wallets WHERE user_id = $1", user_id)
            if row:
                return Wallet.from_row(row)
            return None

    async def lock(self, wallet_id: int, conn: asyncpg.Connection) -> Optional[Wallet]:
        """Select a wallet FOR UPDATE. Must run inside a transaction."""
        row = await conn.fetchrow(
            "SELECT * FROM wallets WHERE id = $1 FOR UPDATE",
            wallet_id,
        )
        if row:
            return Wallet.from_row(row)
        return None

    async def adjust_balance(self, wallet_id: int, delta: Decimal, conn: asyncpg.Connection) -> Wallet:
        """Add a signed delta to the wallet balance and return the new state."""
        row = await conn.fetchrow(
            """
            UPDATE wallets
            SET balance = balance + $1,
                updated_at = NOW()
            WHERE id = $2
            RETURNING *
            """,
            delta, wallet_id,
        )
        return Wallet.from_row(row)

    # ==================== TRANSACTIONS ====================

    async def create_transaction(
        self,
        wallet_id: int,
        tx_type: TransactionType,
        amount: Decimal,
        status: TransactionStatus,
        description: Optional[str] = None,
        crypto_type: Optional[str] = None,
        tx_hash: Optional[str] = None,
        conn: Optional[asyncpg.Connection] = None,
    ) -> WalletTransaction:
        """Append a row to the wallet transaction log."""
        async with self.db.acquire(conn) as c:
            row = await c.fetchrow(
                """
                INSERT INTO wallet_transactions
                (wallet_id, type, amount, status, description, crypto_type, tx_hash)
                VALUES ($1, $2, $3, $4, $5, $6, $7)
                RETURNING *
                """,
                wallet_id, tx_type.value, amount, status.value, description, crypto_type, tx_hash,
            )
            return WalletTransaction.from_row(row)

    async def get_transaction(
        self,
        transaction_id: int,
        conn: Optional[asyncpg.Connection] = None,
    ) -> Optional[WalletTransaction]:
        """Get a wallet transaction by ID."""
        async with self.db.acquire(conn) as c:
            row = await c.fetchrow(
                "SELECT * FROM wallet_transactions WHERE id = $1",
                transaction_id,
            )
            if row:
                return WalletTransaction.from_row(row)
            return None

    async def lock_transaction(self, transaction_id: int, conn: asyncpg.Connection) -> Optional[WalletTransaction]:
        """Select a wallet transaction FOR UPDATE. Must run inside a transaction."""
        row = await conn.fetchrow(
            "SELECT * FROM wallet_transactions WHERE id = $1 FOR UPDATE",
            transaction_id,
        )
        if row:
            return WalletTransaction.from_row(row)
        return None

    async def update_transaction_status(
        self,
        transaction_id: int,
        status: TransactionStatus,
        description: Optional[str] = None,
        conn: Optional[asyncpg.Connection] = None,
    ) -> WalletTransaction:
        """Move a transaction to a new status, optionally rewriting its description."""
        async with self.db.acquire(conn) as c:
            row = await c.fetchrow(
                """
                UPDATE wallet_transactions
                SET status = $1,
                    description = COALESCE($2, description),
                    updated_at = NOW()
                WHERE id = $3
                RETURNING *
                """,
                status.value, description, transaction_id,
            )
            return WalletTransaction.from_row(row)

    async def get_transactions(
        self,
        wallet_id: int,
        limit: Optional[int] = None,
        conn: Optional[asyncpg.Connection] = None,
    ) -> List[WalletTransaction]:
        """Get wallet transactions, newest first."""
        async with self.db.acquire(conn) as c:
            rows = await c.fetch(
                """
                SELECT * FROM wallet_transactions
                WHERE wallet_id = $1
                ORDER BY created_at DESC, id DESC
                LIMIT $2
                """,
                wallet_id, limit,
            )
            return [WalletTransaction.from_row(row) for row in rows]

    async def get_ledger_total(self, wallet_id: int, conn: Optional[asyncpg.Connection] = None) -> Decimal:
        """Sum of COMPLETED transactions, credits positive and debits negative."""
        credit_types = [t.value for t in CREDIT_TYPES]
        async with self.db.acquire(conn) as c:
            total = await c.fetchval(
                """
                SELECT COALESCE(SUM(CASE WHEN type = ANY($2::text[]) THEN amount ELSE -amount END), 0)
                FROM wallet_transactions
                WHERE wallet_id = $1 AND status = 'COMPLETED'
                """,
                wallet_id, credit_types,
            )
            return Decimal(total)
