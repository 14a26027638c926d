"""aiohttp application for the admin UI and the user dashboard."""

import logging
from typing import Optional

import pydantic
from aiohttp import web

from admin.config import is_admin
from admin.services import CommissionAdminService, SettingsAdminService, WalletAdminService
from admin.utils import ActionResult
from config.constants import ADMIN_COMMISSIONS_VIEW, DEFAULT_PAGE_SIZE
from core.api.schemas import (
    BulkApproveRequest,
    DepositRequest,
    ReferralSettingsUpdate,
    RejectRequest,
    WalletAdjustmentRequest,
    WithdrawalRequest,
)
from core.auth import Session, SessionResolver
from core.errors import LedgerError, NotFoundError, UnauthorizedError, ValidationError
from core.views import ViewVersions
from database.models import CommissionStatus
from services.commission_workflow import CommissionWorkflow
from services.notification_service import NotificationService
from services.wallet_ledger import WalletLedger
from utils import to_json_data

logger = logging.getLogger(__name__)

SESSION_KEY = "session"


def json_response(data, status: int = 200, headers: Optional[dict] = None) -> web.Response:
    return web.json_response(to_json_data(data), status=status, headers=headers)


def action_response(result: ActionResult, key: Optional[str] = None, message: Optional[str] = None) -> web.Response:
    """Render an admin ActionResult, optionally wrapping data under key."""
    if not result.success:
        return json_response({"error": result.error}, status=result.status)
    if key is None:
        return json_response(result.to_dict())

    body = {key: result.data}
    if message:
        body["message"] = message
    return json_response(body)


async def parse_body(request: web.Request, model: type[pydantic.BaseModel]):
    """Validate a JSON body against a pydantic model (400 on failure)."""
    return model.model_validate_json(await request.text())


def _query_int(request: web.Request, name: str, default: int) -> int:
    """Read a non-negative integer query parameter."""
    value = request.query.get(name)
    if value is None:
        return default
    try:
        number = int(value)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")
    if number < 0:
        raise ValidationError(f"{name} must not be negative")
    return number


def get_session(request: web.Request) -> Session:
    session = request.get(SESSION_KEY)
    if session is None:
        raise UnauthorizedError("Unauthorized")
    return session


@web.middleware
async def error_middleware(request: web.Request, handler):
    """Map domain and validation errors onto HTTP statuses."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except LedgerError as e:
        return json_response({"error": e.message}, status=e.status_code)
    except pydantic.ValidationError as e:
        return json_response(
            {"error": "Invalid request", "details": e.errors(include_url=False, include_context=False)},
            status=400,
        )
    except Exception as e:
        logger.error(f"Unhandled API error on {request.method} {request.path}: {e}", exc_info=True)
        return json_response({"error": "Internal error"}, status=500)


def session_middleware(resolver: SessionResolver):
    """Attach the caller's Session (or None) to every request."""

    @web.middleware
    async def middleware(request: web.Request, handler):
        token = None
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[len("Bearer "):].strip()
        request[SESSION_KEY] = await resolver.resolve(token) if token else None
        return await handler(request)

    return middleware


class ApiHandlers:
    """Route handlers. Admin routes go through the admin procedures."""

    def __init__(
        self,
        settings_admin: SettingsAdminService,
        commission_admin: CommissionAdminService,
        wallet_admin: WalletAdminService,
        workflow: CommissionWorkflow,
        ledger: WalletLedger,
        notifications: NotificationService,
        views: ViewVersions,
    ):
        self.settings_admin = settings_admin
        self.commission_admin = commission_admin
        self.wallet_admin = wallet_admin
        self.workflow = workflow
        self.ledger = ledger
        self.notifications = notifications
        self.views = views

    async def health(self, request: web.Request) -> web.Response:
        return web.Response(text="OK")

    # ==================== ADMIN: REFERRAL SETTINGS ====================

    async def get_referral_settings(self, request: web.Request) -> web.Response:
        result = await self.settings_admin.get_referral_settings(request[SESSION_KEY])
        return action_response(result, key="settings")

    async def update_referral_settings(self, request: web.Request) -> web.Response:
        session = request[SESSION_KEY]
        if not is_admin(session):
            return json_response({"error": "Unauthorized"}, status=401)

        body = await parse_body(request, ReferralSettingsUpdate)
        result = await self.settings_admin.update_referral_settings(session, body.rates())
        return action_response(result, key="settings", message="Referral settings updated successfully")

    # ==================== ADMIN: COMMISSIONS ====================

    async def list_commissions(self, request: web.Request) -> web.Response:
        session = request[SESSION_KEY]
        etag = self.views.etag(ADMIN_COMMISSIONS_VIEW)
        if is_admin(session) and request.headers.get("If-None-Match") == etag:
            return web.Response(status=304, headers={"ETag": etag})

        status = None
        status_param = request.query.get("status")
        if status_param:
            try:
                status = CommissionStatus(status_param.upper())
            except ValueError:
                raise ValidationError(f"Unknown commission status: {status_param}")

        result = await self.commission_admin.get_all_commissions(
            session,
            status=status,
            limit=_query_int(request, "limit", 100),
            offset=_query_int(request, "offset", 0),
        )
        if not result.success:
            return action_response(result)
        return json_response({"commissions": result.data}, headers={"ETag": etag})

    async def approve_commission(self, request: web.Request) -> web.Response:
        commission_id = int(request.match_info["id"])
        result = await self.commission_admin.approve_commission(request[SESSION_KEY], commission_id)
        return action_response(result)

    async def reject_commission(self, request: web.Request) -> web.Response:
        session = request[SESSION_KEY]
        if not is_admin(session):
            return json_response({"error": "Unauthorized"}, status=401)

        body = await parse_body(request, RejectRequest)
        commission_id = int(request.match_info["id"])
        result = await self.commission_admin.reject_commission(session, commission_id, body.reason)
        return action_response(result)

    async def bulk_approve(self, request: web.Request) -> web.Response:
        session = request[SESSION_KEY]
        if not is_admin(session):
            return json_response({"error": "Unauthorized"}, status=401)

        body = await parse_body(request, BulkApproveRequest)
        result = await self.commission_admin.bulk_approve_commissions(session, body.ids)
        return action_response(result)

    # ==================== ADMIN: WALLETS ====================

    async def review_transaction(self, request: web.Request) -> web.Response:
        """POST /api/admin/{deposits|withdrawals}/{id}/{approve|reject}"""
        session = request[SESSION_KEY]
        if not is_admin(session):
            return json_response({"error": "Unauthorized"}, status=401)

        kind = request.match_info["kind"]
        decision = request.match_info["decision"]
        transaction_id = int(request.match_info["id"])

        if decision == "approve":
            procedure = self.wallet_admin.approve_deposit if kind == "deposits" else self.wallet_admin.approve_withdrawal
            result = await procedure(session, transaction_id)
        else:
            body = await parse_body(request, RejectRequest)
            procedure = self.wallet_admin.reject_deposit if kind == "deposits" else self.wallet_admin.reject_withdrawal
            result = await procedure(session, transaction_id, body.reason)
        return action_response(result)

    async def adjust_wallet(self, request: web.Request) -> web.Response:
        """POST /api/admin/wallets/{user_id}/{fund|deduct}"""
        session = request[SESSION_KEY]
        if not is_admin(session):
            return json_response({"error": "Unauthorized"}, status=401)

        body = await parse_body(request, WalletAdjustmentRequest)
        user_id = int(request.match_info["user_id"])
        if request.match_info["action"] == "fund":
            result = await self.wallet_admin.fund_user_wallet(session, user_id, body.amount, body.reason)
        else:
            result = await self.wallet_admin.deduct_from_user_wallet(
                session, user_id, body.amount, body.reason, body.type
            )
        return action_response(result)

    # ==================== USER: WALLET ====================

    async def get_wallet(self, request: web.Request) -> web.Response:
        session = get_session(request)
        wallet = await self.ledger.get_wallet(session.user_id)
        if not wallet:
            raise NotFoundError("Wallet not found")

        transactions = await self.ledger.get_transactions(wallet.id)
        return json_response({"wallet": wallet, "transactions": transactions})

    async def request_deposit(self, request: web.Request) -> web.Response:
        session = get_session(request)
        body = await parse_body(request, DepositRequest)
        transaction = await self.ledger.request_deposit(
            session.user_id, body.amount, body.crypto_type, body.tx_hash
        )
        return json_response({"transaction": transaction}, status=201)

    async def request_withdrawal(self, request: web.Request) -> web.Response:
        session = get_session(request)
        body = await parse_body(request, WithdrawalRequest)
        transaction = await self.ledger.request_withdrawal(session.user_id, body.amount, body.crypto_type)
        return json_response({"transaction": transaction}, status=201)

    # ==================== USER: REFERRALS ====================

    async def get_my_commissions(self, request: web.Request) -> web.Response:
        session = get_session(request)
        commissions = await self.workflow.list_user_commissions(session.user_id)
        stats = await self.workflow.get_stats(session.user_id)
        return json_response({
            "commissions": commissions,
            "totalEarned": stats.total_earned,
            "pendingAmount": stats.pending_amount,
        })

    # ==================== USER: NOTIFICATIONS ====================

    async def list_notifications(self, request: web.Request) -> web.Response:
        session = get_session(request)
        page = await self.notifications.list_for_user(
            session.user_id,
            page=_query_int(request, "page", 1),
            limit=_query_int(request, "limit", DEFAULT_PAGE_SIZE),
            include_read=request.query.get("unread") != "true",
        )
        unread = await self.notifications.unread_count(session.user_id)
        return json_response({
            "notifications": page.notifications,
            "pagination": {
                "total": page.total,
                "page": page.page,
                "limit": page.limit,
                "pages": page.pages,
            },
            "unreadCount": unread,
        })

    async def mark_notification_read(self, request: web.Request) -> web.Response:
        session = get_session(request)
        await self.notifications.mark_read(session.user_id, int(request.match_info["id"]))
        return json_response({"success": True})

    async def mark_all_notifications_read(self, request: web.Request) -> web.Response:
        session = get_session(request)
        count = await self.notifications.mark_all_read(session.user_id)
        return json_response({"success": True, "count": count})


def create_api_app(handlers: ApiHandlers, resolver: SessionResolver) -> web.Application:
    """
    Create aiohttp application for the API.

    Args:
        handlers: ApiHandlers instance
        resolver: SessionResolver used to authenticate bearer tokens

    Returns:
        aiohttp Application
    """
    app = web.Application(middlewares=[error_middleware, session_middleware(resolver)])

    app.router.add_get("/health", handlers.health)

    app.router.add_get("/api/admin/referral-settings", handlers.get_referral_settings)
    app.router.add_put("/api/admin/referral-settings", handlers.update_referral_settings)

    app.router.add_get("/api/admin/commissions", handlers.list_commissions)
    app.router.add_post("/api/admin/commissions/bulk-approve", handlers.bulk_approve)
    app.router.add_post(r"/api/admin/commissions/{id:\d+}/approve", handlers.approve_commission)
    app.router.add_post(r"/api/admin/commissions/{id:\d+}/reject", handlers.reject_commission)

    app.router.add_post(
        r"/api/admin/{kind:deposits|withdrawals}/{id:\d+}/{decision:approve|reject}",
        handlers.review_transaction,
    )
    app.router.add_post(r"/api/admin/wallets/{user_id:\d+}/{action:fund|deduct}", handlers.adjust_wallet)

    app.router.add_get("/api/wallet", handlers.get_wallet)
    app.router.add_post("/api/wallet/deposits", handlers.request_deposit)
    app.router.add_post("/api/wallet/withdrawals", handlers.request_withdrawal)

    app.router.add_get("/api/referrals/commissions", handlers.get_my_commissions)

    app.router.add_get("/api/notifications", handlers.list_notifications)
    app.router.add_post(r"/api/notifications/{id:\d+}/read", handlers.mark_notification_read)
    app.router.add_post("/api/notifications/read-all", handlers.mark_all_notifications_read)

    return app
