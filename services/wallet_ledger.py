"""Wallet ledger: balances plus the append-only transaction log behind them."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, List

import asyncpg

from config.constants import DEFAULT_CRYPTO_TYPE, RECENT_TRANSACTIONS_LIMIT, WALLET_URL
from core.errors import (
    NotFoundError,
    InvalidStateError,
    InsufficientBalanceError,
    ValidationError,
)
from database.connection import Database
from database.models import (
    Wallet,
    WalletTransaction,
    TransactionType,
    TransactionStatus,
    NotificationType,
)
from database.repositories import WalletRepository
from services.notification_service import NotificationService
from utils import format_crypto_amount, format_tx_hash, validate_amount, validate_reason

logger = logging.getLogger(__name__)


@dataclass
class BalanceCheck:
    """Stored balance compared with the sum of COMPLETED transactions."""
    wallet_id: int
    balance: Decimal
    ledger_total: Decimal

    @property
    def consistent(self) -> bool:
        return self.balance == self.ledger_total


class WalletLedger:
    """
    Service for every wallet balance change.

    Balance changes only happen through credit() and debit(), each of which
    locks the wallet row and appends a COMPLETED transaction in the same
    database transaction, so balance always equals the signed sum of
    completed transactions.
    """

    def __init__(self, db: Database, notifications: NotificationService):
        self.db = db
        self.wallet_repo = WalletRepository(db)
        self.notifications = notifications

    # ==================== READS ====================

    async def open_wallet(self, user_id: int) -> Wallet:
        """Create the user's wallet if it doesn't exist yet."""
        return await self.wallet_repo.create(user_id)

    async def get_wallet(self, user_id: int) -> Optional[Wallet]:
        return await self.wallet_repo.get_by_user_id(user_id)

    async def get_transactions(
        self,
        wallet_id: int,
        limit: Optional[int] = RECENT_TRANSACTIONS_LIMIT,
    ) -> List[WalletTransaction]:
        """Get a wallet's transactions, newest first."""
        return await self.wallet_repo.get_transactions(wallet_id, limit=limit)

    async def verify_balance(self, wallet_id: int) -> BalanceCheck:
        """Recompute the ledger sum and compare it with the stored balance."""
        wallet = await self.wallet_repo.get_by_id(wallet_id)
        if not wallet:
            raise NotFoundError("Wallet not found")

        ledger_total = await self.wallet_repo.get_ledger_total(wallet_id)
        check = BalanceCheck(wallet_id=wallet_id, balance=wallet.balance, ledger_total=ledger_total)
        if not check.consistent:
            logger.error(
                f"Wallet {wallet_id} balance {wallet.balance} does not match ledger total {ledger_total}"
            )
        return check

    # ==================== PRIMITIVES ====================

    async def credit(
        self,
        wallet_id: int,
        amount: Decimal,
        tx_type: TransactionType,
        description: str,
        crypto_type: Optional[str] = DEFAULT_CRYPTO_TYPE,
        conn: Optional[asyncpg.Connection] = None,
    ) -> WalletTransaction:
        """
        Add funds to a wallet and record a COMPLETED transaction.

        Pass conn to make the credit part of a larger transaction.

        Raises:
            ValidationError: non-positive amount or a debit type
            NotFoundError: wallet does not exist
        """
        amount = validate_amount(amount)
        if not tx_type.is_credit:
            raise ValidationError(f"{tx_type.value} is not a credit transaction type")

        async with self.db.transaction(conn) as c:
            wallet = await self.wallet_repo.lock(wallet_id, c)
            if not wallet:
                raise NotFoundError("Wallet not found")

            updated = await self.wallet_repo.adjust_balance(wallet_id, amount, c)
            transaction = await self.wallet_repo.create_transaction(
                wallet_id=wallet_id,
                tx_type=tx_type,
                amount=amount,
                status=TransactionStatus.COMPLETED,
                description=description,
                crypto_type=crypto_type,
                conn=c,
            )

        logger.info(
            f"Credited {amount} to wallet {wallet_id} ({tx_type.value}), balance {updated.balance}"
        )
        return transaction

    async def debit(
        self,
        wallet_id: int,
        amount: Decimal,
        tx_type: TransactionType,
        description: str,
        crypto_type: Optional[str] = DEFAULT_CRYPTO_TYPE,
        conn: Optional[asyncpg.Connection] = None,
    ) -> WalletTransaction:
        """
        Remove funds from a wallet and record a COMPLETED transaction.

        Raises:
            ValidationError: non-positive amount or a credit type
            NotFoundError: wallet does not exist
            InsufficientBalanceError: amount exceeds balance (nothing is written)
        """
        amount = validate_amount(amount)
        if tx_type.is_credit:
            raise ValidationError(f"{tx_type.value} is not a debit transaction type")

        async with self.db.transaction(conn) as c:
            wallet = await self.wallet_repo.lock(wallet_id, c)
            if not wallet:
                raise NotFoundError("Wallet not found")
            if wallet.balance < amount:
                raise InsufficientBalanceError(balance=wallet.balance, requested=amount)

            updated = await self.wallet_repo.adjust_balance(wallet_id, -amount, c)
            transaction = await self.wallet_repo.create_transaction(
                wallet_id=wallet_id,
                tx_type=tx_type,
                amount=amount,
                status=TransactionStatus.COMPLETED,
                description=description,
                crypto_type=crypto_type,
                conn=c,
            )

        logger.info(
            f"Debited {amount} from wallet {wallet_id} ({tx_type.value}), balance {updated.balance}"
        )
        return transaction

    # ==================== DEPOSITS ====================

    async def _get_user_wallet(self, user_id: int, conn: Optional[asyncpg.Connection] = None) -> Wallet:
        wallet = await self.wallet_repo.get_by_user_id(user_id, conn=conn)
        if not wallet:
            raise NotFoundError("Wallet not found")
        return wallet

    async def _lock_pending(
        self,
        transaction_id: int,
        expected_type: TransactionType,
        conn: asyncpg.Connection,
    ) -> WalletTransaction:
        transaction = await self.wallet_repo.lock_transaction(transaction_id, conn)
        if not transaction or transaction.type != expected_type:
            raise NotFoundError("Transaction not found")
        if transaction.status != TransactionStatus.PENDING:
            raise InvalidStateError("Transaction is not pending")
        return transaction

    async def request_deposit(
        self,
        user_id: int,
        amount: Decimal,
        crypto_type: str = DEFAULT_CRYPTO_TYPE,
        tx_hash: Optional[str] = None,
    ) -> WalletTransaction:
        """Record a user-submitted deposit awaiting admin review. Balance is unchanged."""
        amount = validate_amount(amount)
        wallet = await self._get_user_wallet(user_id)

        transaction = await self.wallet_repo.create_transaction(
            wallet_id=wallet.id,
            tx_type=TransactionType.DEPOSIT,
            amount=amount,
            status=TransactionStatus.PENDING,
            description=f"Deposit of {format_crypto_amount(amount, crypto_type)}",
            crypto_type=crypto_type,
            tx_hash=tx_hash,
        )
        logger.info(
            f"Deposit {transaction.id} of {amount} {crypto_type} pending for user {user_id}"
            + (f" (tx {format_tx_hash(tx_hash)})" if tx_hash else "")
        )

        await self.notifications.notify(
            user_id,
            "Deposit Pending",
            f"Your deposit of {format_crypto_amount(amount, crypto_type)} has been received and is awaiting confirmation.",
            NotificationType.WALLET_UPDATED,
            WALLET_URL,
        )
        return transaction

    async def approve_deposit(self, transaction_id: int) -> WalletTransaction:
        """Complete a pending deposit and add it to the wallet balance."""
        async with self.db.transaction() as conn:
            transaction = await self._lock_pending(transaction_id, TransactionType.DEPOSIT, conn)
            wallet = await self.wallet_repo.lock(transaction.wallet_id, conn)

            await self.wallet_repo.adjust_balance(wallet.id, transaction.amount, conn)
            transaction = await self.wallet_repo.update_transaction_status(
                transaction_id, TransactionStatus.COMPLETED, conn=conn
            )
            notification = await self.notifications.create(
                wallet.user_id,
                "Deposit Approved",
                f"Your deposit of {format_crypto_amount(transaction.amount, transaction.crypto_type)} has been approved.",
                NotificationType.WALLET_UPDATED,
                WALLET_URL,
                conn=conn,
            )

        self.notifications.dispatch(notification)
        logger.info(f"Deposit {transaction_id} approved for wallet {wallet.id}")
        return transaction

    async def reject_deposit(self, transaction_id: int, reason: str) -> WalletTransaction:
        """Fail a pending deposit. Balance is unchanged."""
        reason = validate_reason(reason)
        async with self.db.transaction() as conn:
            transaction = await self._lock_pending(transaction_id, TransactionType.DEPOSIT, conn)
            wallet = await self.wallet_repo.get_by_id(transaction.wallet_id, conn=conn)

            transaction = await self.wallet_repo.update_transaction_status(
                transaction_id,
                TransactionStatus.FAILED,
                description=f"{transaction.description or 'Deposit'} (Rejected: {reason})",
                conn=conn,
            )
            notification = await self.notifications.create(
                wallet.user_id,
                "Deposit Rejected",
                f"Your deposit of {format_crypto_amount(transaction.amount, transaction.crypto_type)} "
                f"has been rejected. Reason: {reason}",
                NotificationType.WALLET_UPDATED,
                WALLET_URL,
                conn=conn,
            )

        self.notifications.dispatch(notification)
        logger.info(f"Deposit {transaction_id} rejected: {reason}")
        return transaction

    # ==================== WITHDRAWALS ====================

    async def request_withdrawal(
        self,
        user_id: int,
        amount: Decimal,
        crypto_type: str = DEFAULT_CRYPTO_TYPE,
    ) -> WalletTransaction:
        """
        Record a withdrawal awaiting admin review.

        The balance is only debited on approval, so a pending withdrawal has
        no effect on the ledger.
        """
        amount = validate_amount(amount)
        wallet = await self._get_user_wallet(user_id)
        if wallet.balance < amount:
            raise InsufficientBalanceError(balance=wallet.balance, requested=amount)

        transaction = await self.wallet_repo.create_transaction(
            wallet_id=wallet.id,
            tx_type=TransactionType.WITHDRAWAL,
            amount=amount,
            status=TransactionStatus.PENDING,
            description=f"Withdrawal of {format_crypto_amount(amount, crypto_type)}",
            crypto_type=crypto_type,
        )
        logger.info(f"Withdrawal {transaction.id} of {amount} {crypto_type} pending for user {user_id}")

        await self.notifications.notify(
            user_id,
            "Withdrawal Pending",
            f"Your withdrawal request of {format_crypto_amount(amount, crypto_type)} has been submitted and is awaiting approval.",
            NotificationType.WALLET_UPDATED,
            WALLET_URL,
        )
        return transaction

    async def approve_withdrawal(self, transaction_id: int) -> WalletTransaction:
        """
        Complete a pending withdrawal and debit the wallet.

        Raises:
            InsufficientBalanceError: balance dropped below the amount since the request
        """
        async with self.db.transaction() as conn:
            transaction = await self._lock_pending(transaction_id, TransactionType.WITHDRAWAL, conn)
            wallet = await self.wallet_repo.lock(transaction.wallet_id, conn)
            if wallet.balance < transaction.amount:
                raise InsufficientBalanceError(balance=wallet.balance, requested=transaction.amount)

            await self.wallet_repo.adjust_balance(wallet.id, -transaction.amount, conn)
            transaction = await self.wallet_repo.update_transaction_status(
                transaction_id, TransactionStatus.COMPLETED, conn=conn
            )
            notification = await self.notifications.create(
                wallet.user_id,
                "Withdrawal Approved",
                f"Your withdrawal of {format_crypto_amount(transaction.amount, transaction.crypto_type)} has been approved.",
                NotificationType.WALLET_UPDATED,
                WALLET_URL,
                conn=conn,
            )

        self.notifications.dispatch(notification)
        logger.info(f"Withdrawal {transaction_id} approved for wallet {wallet.id}")
        return transaction

    async def reject_withdrawal(self, transaction_id: int, reason: str) -> WalletTransaction:
        """Fail a pending withdrawal. Nothing was debited, so nothing is refunded."""
        reason = validate_reason(reason)
        async with self.db.transaction() as conn:
            transaction = await self._lock_pending(transaction_id, TransactionType.WITHDRAWAL, conn)
            wallet = await self.wallet_repo.get_by_id(transaction.wallet_id, conn=conn)

            transaction = await self.wallet_repo.update_transaction_status(
                transaction_id,
                TransactionStatus.FAILED,
                description=f"{transaction.description or 'Withdrawal'} (Rejected: {reason})",
                conn=conn,
            )
            notification = await self.notifications.create(
                wallet.user_id,
                "Withdrawal Rejected",
                f"Your withdrawal of {format_crypto_amount(transaction.amount, transaction.crypto_type)} "
                f"has been rejected. Reason: {reason}",
                NotificationType.WALLET_UPDATED,
                WALLET_URL,
                conn=conn,
            )

        self.notifications.dispatch(notification)
        logger.info(f"Withdrawal {transaction_id} rejected: {reason}")
        return transaction

    # ==================== MANUAL ADJUSTMENTS ====================

    async def fund_wallet(self, user_id: int, amount: Decimal, reason: str) -> WalletTransaction:
        """Admin credit to a user's wallet."""
        amount = validate_amount(amount)
        reason = validate_reason(reason)

        async with self.db.transaction() as conn:
            wallet = await self._get_user_wallet(user_id, conn=conn)
            transaction = await self.credit(
                wallet.id,
                amount,
                TransactionType.DEPOSIT,
                description=f"Admin funding: {reason}",
                conn=conn,
            )
            notification = await self.notifications.create(
                user_id,
                "Wallet Funded",
                f"Your wallet has been funded with {format_crypto_amount(amount, DEFAULT_CRYPTO_TYPE)} "
                f"by admin. Reason: {reason}",
                NotificationType.WALLET_UPDATED,
                WALLET_URL,
                conn=conn,
            )

        self.notifications.dispatch(notification)
        return transaction

    async def deduct_from_wallet(
        self,
        user_id: int,
        amount: Decimal,
        reason: str,
        tx_type: TransactionType = TransactionType.WITHDRAWAL,
    ) -> WalletTransaction:
        """
        Admin debit from a user's wallet.

        tx_type is WITHDRAWAL for plain deductions or PURCHASE/INVESTMENT when
        the debit pays for something on the platform.
        """
        amount = validate_amount(amount)
        reason = validate_reason(reason)
        is_purchase = tx_type != TransactionType.WITHDRAWAL

        async with self.db.transaction() as conn:
            wallet = await self._get_user_wallet(user_id, conn=conn)
            transaction = await self.debit(
                wallet.id,
                amount,
                tx_type,
                description=f"Purchase of {reason}" if is_purchase else f"Admin deduction: {reason}",
                conn=conn,
            )
            formatted = format_crypto_amount(amount, DEFAULT_CRYPTO_TYPE)
            notification = await self.notifications.create(
                user_id,
                "Purchase Completed" if is_purchase else "Wallet Deduction",
                f"{formatted} has been deducted from your wallet for {reason}"
                if is_purchase
                else f"{formatted} has been deducted from your wallet by admin. Reason: {reason}",
                NotificationType.WALLET_UPDATED,
                WALLET_URL,
                conn=conn,
            )

        self.notifications.dispatch(notification)
        return transaction
