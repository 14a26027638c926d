"""Commission engine: turns a referred user's qualifying transaction into a pending commission."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from config.constants import ADMIN_COMMISSIONS_VIEW, REFERRALS_URL
from core.views import ViewVersions
from database.connection import Database
from database.models import Commission, CommissionSource, NotificationType
from database.repositories import ReferralRepository, SettingsRepository
from services.notification_service import NotificationService
from utils import format_amount, format_rate, quantize_money, validate_amount

logger = logging.getLogger(__name__)


@dataclass
class QualifyingTransaction:
    """A purchase or investment made by a (possibly referred) user."""
    user_id: int
    amount: Decimal
    source: CommissionSource


def calculate_commission(amount: Decimal, rate: Decimal) -> Decimal:
    """Commission for a transaction at a percent rate, rounded to cents."""
    return quantize_money(amount * rate / Decimal("100"))


class CommissionEngine:
    """Creates PENDING commissions for referrers at the current category rate."""

    def __init__(self, db: Database, notifications: NotificationService, views: ViewVersions):
        self.db = db
        self.referral_repo = ReferralRepository(db)
        self.settings_repo = SettingsRepository(db)
        self.notifications = notifications
        self.views = views

    async def process(self, event: QualifyingTransaction) -> Optional[Commission]:
        """
        Create a commission for the referrer of event.user_id.

        Returns:
            The new commission, the existing one when this source was already
            processed, or None when no commission is due (no completed
            referral, zero rate, or an amount that rounds to zero).
        """
        amount = validate_amount(event.amount)

        existing = await self.referral_repo.get_commission_by_source(event.source)
        if existing:
            logger.info(
                f"Commission {existing.id} already exists for "
                f"{event.source.kind.value}:{event.source.source_id}"
            )
            return existing

        referral = await self.referral_repo.get_completed_referral(event.user_id)
        if not referral:
            return None

        settings = await self.settings_repo.get()
        if not settings:
            return None

        rate = settings.rate_for(event.source.kind.rate_category)
        commission_amount = calculate_commission(amount, rate)
        if commission_amount <= 0:
            logger.info(
                f"No commission for {event.source.kind.value}:{event.source.source_id} "
                f"(rate {format_rate(rate)})"
            )
            return None

        async with self.db.transaction() as conn:
            commission = await self.referral_repo.create_commission(
                referral_id=referral.id,
                user_id=referral.referrer_id,
                referred_user_id=event.user_id,
                amount=commission_amount,
                rate_applied=rate,
                source=event.source,
                conn=conn,
            )
            if commission is None:
                # Lost a race with a concurrent delivery of the same event
                notification = None
            else:
                notification = await self.notifications.create(
                    referral.referrer_id,
                    "New Referral Commission",
                    f"You earned a commission of {format_amount(commission_amount)} from a referral's "
                    f"{event.source.kind.label} of {format_amount(amount)}.",
                    NotificationType.COMMISSION_EARNED,
                    REFERRALS_URL,
                    conn=conn,
                )

        if notification is None:
            return await self.referral_repo.get_commission_by_source(event.source)

        self.notifications.dispatch(notification)
        self.views.bump(ADMIN_COMMISSIONS_VIEW)
        logger.info(
            f"Commission {commission.id} of {commission_amount} ({format_rate(rate)}) created for "
            f"referrer {referral.referrer_id} from user {event.user_id}"
        )
        return commission
