"""Admin procedures for the referral commission rate table."""

import logging
from decimal import Decimal
from typing import Dict

from admin.utils import ActionResult, admin_action
from config.constants import ADMIN_REFERRAL_SETTINGS_VIEW
from core.views import ViewVersions
from services.referral_settings import ReferralSettingsService

logger = logging.getLogger(__name__)


class SettingsAdminService:
    """Read and update referral settings on behalf of an admin session."""

    def __init__(self, settings_service: ReferralSettingsService, views: ViewVersions):
        self.settings_service = settings_service
        self.views = views

    @admin_action("Failed to fetch referral settings", "GET_REFERRAL_SETTINGS")
    async def get_referral_settings(self, session) -> ActionResult:
        return ActionResult.ok(await self.settings_service.get())

    @admin_action("Failed to update referral settings", "UPDATE_REFERRAL_SETTINGS")
    async def update_referral_settings(self, session, rates: Dict[str, Decimal]) -> ActionResult:
        updated = await self.settings_service.update(rates, admin_id=session.user_id)
        self.views.bump(ADMIN_REFERRAL_SETTINGS_VIEW)
        return ActionResult.ok(updated)

    @admin_action("Failed to fetch settings history", "REFERRAL_SETTINGS_HISTORY")
    async def get_settings_history(self, session, limit: int = 20) -> ActionResult:
        return ActionResult.ok(await self.settings_service.history(limit))
