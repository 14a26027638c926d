"""Admin procedures for reviewing referral commissions."""

import logging
from typing import List, Optional

from admin.config import COMMISSIONS_PAGE_SIZE, MAX_BULK_APPROVE
from admin.utils import ActionResult, admin_action
from core.errors import ValidationError
from database.models import CommissionStatus
from services.commission_workflow import CommissionWorkflow

logger = logging.getLogger(__name__)


class CommissionAdminService:
    """approve / reject / bulk approve / list, each returning an ActionResult."""

    def __init__(self, workflow: CommissionWorkflow):
        self.workflow = workflow

    @admin_action("Failed to approve commission", "APPROVE_COMMISSION")
    async def approve_commission(self, session, commission_id: int) -> ActionResult:
        settlement = await self.workflow.approve(commission_id)
        logger.info(f"[APPROVE_COMMISSION] Admin {session.user_id} approved commission {commission_id}")
        return ActionResult.ok({
            "commission": settlement.commission,
            "transaction": settlement.transaction,
            "balance": settlement.wallet.balance,
        })

    @admin_action("Failed to reject commission", "REJECT_COMMISSION")
    async def reject_commission(self, session, commission_id: int, reason: str) -> ActionResult:
        commission = await self.workflow.reject(commission_id, reason)
        logger.info(f"[REJECT_COMMISSION] Admin {session.user_id} rejected commission {commission_id}")
        return ActionResult.ok({"commission": commission})

    @admin_action("Failed to process bulk approval", "BULK_APPROVE")
    async def bulk_approve_commissions(self, session, commission_ids: List[int]) -> ActionResult:
        if not commission_ids:
            raise ValidationError("No commissions selected")
        if len(commission_ids) > MAX_BULK_APPROVE:
            raise ValidationError(f"At most {MAX_BULK_APPROVE} commissions can be approved at once")

        result = await self.workflow.bulk_approve(commission_ids)
        logger.info(
            f"[BULK_APPROVE] Admin {session.user_id}: {result.succeeded} approved, {result.failed} failed"
        )
        return ActionResult.ok({
            "succeeded": result.succeeded,
            "failed": result.failed,
            "results": result.outcomes,
        })

    @admin_action("Failed to fetch commissions", "GET_COMMISSIONS")
    async def get_all_commissions(
        self,
        session,
        status: Optional[CommissionStatus] = None,
        limit: int = COMMISSIONS_PAGE_SIZE,
        offset: int = 0,
    ) -> ActionResult:
        commissions = await self.workflow.list_commissions(
            status=status,
            limit=min(limit, COMMISSIONS_PAGE_SIZE),
            offset=offset,
        )
        return ActionResult.ok(commissions)

    @admin_action("Failed to fetch pending commissions", "GET_PENDING_COMMISSIONS")
    async def get_pending_commissions(self, session) -> ActionResult:
        commissions = await self.workflow.list_commissions(status=CommissionStatus.PENDING)
        return ActionResult.ok(commissions)

    @admin_action("Failed to fetch commission stats", "COMMISSION_STATS")
    async def get_commission_stats(self, session) -> ActionResult:
        stats = await self.workflow.get_stats()
        return ActionResult.ok(stats.by_status)
