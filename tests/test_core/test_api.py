"""Tests for the HTTP API."""

from decimal import Decimal

import pytest
import pytest_asyncio
from aiohttp import test_utils

from admin.services import CommissionAdminService, SettingsAdminService, WalletAdminService
from core.api import ApiHandlers, create_api_app
from core.auth import SessionResolver, sign_session_token
from database.models import CommissionSource, SourceKind
from services.commission_engine import QualifyingTransaction

SECRET = "api-test-secret"


@pytest_asyncio.fixture
async def client(
    db, user_repo, views, commission_workflow, wallet_ledger, settings_service, notification_service
):
    resolver = SessionResolver(db, SECRET)
    resolver.user_repo = user_repo
    handlers = ApiHandlers(
        settings_admin=SettingsAdminService(settings_service, views),
        commission_admin=CommissionAdminService(commission_workflow),
        wallet_admin=WalletAdminService(wallet_ledger, views),
        workflow=commission_workflow,
        ledger=wallet_ledger,
        notifications=notification_service,
        views=views,
    )
    client = test_utils.TestClient(test_utils.TestServer(create_api_app(handlers, resolver)))
    await client.start_server()
    yield client
    await client.close()


def auth(user) -> dict:
    return {"Authorization": f"Bearer {sign_session_token(SECRET, user.id)}"}


@pytest_asyncio.fixture
async def commission(commission_engine, referral, referred, property_rate_5):
    return await commission_engine.process(
        QualifyingTransaction(
            user_id=referred.id,
            amount=Decimal("10000"),
            source=CommissionSource(kind=SourceKind.PROPERTY, source_id="purchase-1"),
        )
    )


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status == 200
        assert await resp.text() == "OK"


class TestReferralSettingsApi:
    """Tests for /api/admin/referral-settings."""

    @pytest.mark.asyncio
    async def test_get_as_admin(self, client, admin_user):
        resp = await client.get("/api/admin/referral-settings", headers=auth(admin_user))

        assert resp.status == 200
        body = await resp.json()
        assert body["settings"]["property_commission_rate"] == "0"

    @pytest.mark.asyncio
    async def test_get_anonymous(self, client):
        resp = await client.get("/api/admin/referral-settings")

        assert resp.status == 401
        assert await resp.json() == {"error": "Unauthorized"}

    @pytest.mark.asyncio
    async def test_forged_token(self, client, admin_user):
        resp = await client.get(
            "/api/admin/referral-settings",
            headers={"Authorization": f"Bearer {admin_user.id}.deadbeef"},
        )
        assert resp.status == 401

    @pytest.mark.asyncio
    async def test_update(self, client, admin_user, store):
        resp = await client.put(
            "/api/admin/referral-settings",
            json={"propertyCommissionRate": 5, "marketCommissionRate": "2.5"},
            headers=auth(admin_user),
        )

        assert resp.status == 200
        body = await resp.json()
        assert body["message"] == "Referral settings updated successfully"
        assert Decimal(body["settings"]["property_commission_rate"]) == Decimal("5")
        assert store.settings.market_commission_rate == Decimal("2.5")

    @pytest.mark.asyncio
    async def test_update_out_of_range(self, client, admin_user, store):
        resp = await client.put(
            "/api/admin/referral-settings",
            json={"propertyCommissionRate": 25},
            headers=auth(admin_user),
        )

        assert resp.status == 400
        assert store.settings.property_commission_rate == Decimal("0")

    @pytest.mark.asyncio
    async def test_update_unknown_field(self, client, admin_user):
        resp = await client.put(
            "/api/admin/referral-settings",
            json={"cryptoCommissionRate": 5},
            headers=auth(admin_user),
        )
        assert resp.status == 400

    @pytest.mark.asyncio
    async def test_update_as_user(self, client, referrer):
        resp = await client.put(
            "/api/admin/referral-settings",
            json={"propertyCommissionRate": 5},
            headers=auth(referrer),
        )
        assert resp.status == 401


class TestCommissionsApi:
    """Tests for /api/admin/commissions."""

    @pytest.mark.asyncio
    async def test_list_with_etag(self, client, admin_user, commission):
        resp = await client.get("/api/admin/commissions", headers=auth(admin_user))

        assert resp.status == 200
        etag = resp.headers["ETag"]
        body = await resp.json()
        assert [c["id"] for c in body["commissions"]] == [commission.id]
        assert body["commissions"][0]["amount"] == "500.00"

        cached = await client.get(
            "/api/admin/commissions",
            headers={**auth(admin_user), "If-None-Match": etag},
        )
        assert cached.status == 304

    @pytest.mark.asyncio
    async def test_etag_changes_after_approval(self, client, admin_user, commission):
        first = await client.get("/api/admin/commissions", headers=auth(admin_user))
        etag = first.headers["ETag"]

        await client.post(f"/api/admin/commissions/{commission.id}/approve", headers=auth(admin_user))
        second = await client.get(
            "/api/admin/commissions",
            headers={**auth(admin_user), "If-None-Match": etag},
        )

        assert second.status == 200
        assert second.headers["ETag"] != etag

    @pytest.mark.asyncio
    async def test_etag_changes_after_new_commission(
        self, client, admin_user, commission_engine, referred, commission
    ):
        """Test a newly earned commission makes a cached list stale."""
        first = await client.get("/api/admin/commissions", headers=auth(admin_user))
        etag = first.headers["ETag"]

        await commission_engine.process(
            QualifyingTransaction(
                user_id=referred.id,
                amount=Decimal("1000"),
                source=CommissionSource(kind=SourceKind.PROPERTY, source_id="purchase-2"),
            )
        )
        second = await client.get(
            "/api/admin/commissions",
            headers={**auth(admin_user), "If-None-Match": etag},
        )

        assert second.status == 200
        assert len((await second.json())["commissions"]) == 2

    @pytest.mark.asyncio
    async def test_filter_by_status(self, client, admin_user, commission):
        resp = await client.get("/api/admin/commissions?status=paid", headers=auth(admin_user))

        assert resp.status == 200
        assert (await resp.json())["commissions"] == []

    @pytest.mark.asyncio
    async def test_bad_status(self, client, admin_user):
        resp = await client.get("/api/admin/commissions?status=bogus", headers=auth(admin_user))
        assert resp.status == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["limit=-1", "offset=-5", "limit=ten"])
    async def test_bad_paging(self, client, admin_user, query):
        resp = await client.get(f"/api/admin/commissions?{query}", headers=auth(admin_user))

        assert resp.status == 400
        error = (await resp.json())["error"]
        assert error.startswith(query.split("=")[0])

    @pytest.mark.asyncio
    async def test_approve(self, client, admin_user, referrer, wallet_repo, commission):
        resp = await client.post(f"/api/admin/commissions/{commission.id}/approve", headers=auth(admin_user))

        assert resp.status == 200
        body = await resp.json()
        assert body["success"] is True
        assert body["data"]["commission"]["status"] == "PAID"
        assert body["data"]["balance"] == "500.00"
        assert (await wallet_repo.get_by_user_id(referrer.id)).balance == Decimal("500.00")

    @pytest.mark.asyncio
    async def test_approve_twice_conflicts(self, client, admin_user, commission):
        await client.post(f"/api/admin/commissions/{commission.id}/approve", headers=auth(admin_user))
        resp = await client.post(f"/api/admin/commissions/{commission.id}/approve", headers=auth(admin_user))

        assert resp.status == 409
        assert (await resp.json())["error"] == "Commission is not in pending status"

    @pytest.mark.asyncio
    async def test_approve_as_user(self, client, referrer, commission):
        resp = await client.post(f"/api/admin/commissions/{commission.id}/approve", headers=auth(referrer))
        assert resp.status == 401

    @pytest.mark.asyncio
    async def test_reject_requires_reason(self, client, admin_user, commission):
        resp = await client.post(
            f"/api/admin/commissions/{commission.id}/reject",
            json={"reason": ""},
            headers=auth(admin_user),
        )
        assert resp.status == 400

    @pytest.mark.asyncio
    async def test_reject(self, client, admin_user, commission):
        resp = await client.post(
            f"/api/admin/commissions/{commission.id}/reject",
            json={"reason": "Purchase cancelled"},
            headers=auth(admin_user),
        )

        assert resp.status == 200
        assert (await resp.json())["data"]["commission"]["status"] == "REJECTED"

    @pytest.mark.asyncio
    async def test_bulk_approve(self, client, admin_user, commission):
        resp = await client.post(
            "/api/admin/commissions/bulk-approve",
            json={"ids": [commission.id, 999]},
            headers=auth(admin_user),
        )

        assert resp.status == 200
        data = (await resp.json())["data"]
        assert data["succeeded"] == 1
        assert data["failed"] == 1
        assert data["results"][1] == {"commission_id": 999, "success": False, "error": "Commission not found"}

    @pytest.mark.asyncio
    async def test_bulk_approve_empty(self, client, admin_user):
        resp = await client.post(
            "/api/admin/commissions/bulk-approve",
            json={"ids": []},
            headers=auth(admin_user),
        )
        assert resp.status == 400


class TestWalletApi:
    """Tests for user wallet routes and admin wallet review."""

    @pytest.mark.asyncio
    async def test_get_wallet(self, client, referrer):
        resp = await client.get("/api/wallet", headers=auth(referrer))

        assert resp.status == 200
        body = await resp.json()
        assert body["wallet"]["balance"] == "0.00"
        assert body["transactions"] == []

    @pytest.mark.asyncio
    async def test_get_wallet_anonymous(self, client):
        resp = await client.get("/api/wallet")
        assert resp.status == 401

    @pytest.mark.asyncio
    async def test_deposit_flow(self, client, referrer, admin_user):
        resp = await client.post(
            "/api/wallet/deposits",
            json={"amount": "150", "cryptoType": "USDT", "txHash": "0xfeed"},
            headers=auth(referrer),
        )
        assert resp.status == 201
        transaction = (await resp.json())["transaction"]
        assert transaction["status"] == "PENDING"

        resp = await client.post(f"/api/admin/deposits/{transaction['id']}/approve", headers=auth(admin_user))
        assert resp.status == 200

        wallet = await (await client.get("/api/wallet", headers=auth(referrer))).json()
        assert wallet["wallet"]["balance"] == "150.00"

    @pytest.mark.asyncio
    async def test_withdrawal_over_balance(self, client, referrer):
        resp = await client.post("/api/wallet/withdrawals", json={"amount": 10}, headers=auth(referrer))

        assert resp.status == 422
        assert (await resp.json())["error"] == "Insufficient wallet balance"

    @pytest.mark.asyncio
    async def test_reject_withdrawal(self, client, referrer, admin_user, wallet_ledger):
        await wallet_ledger.fund_wallet(referrer.id, Decimal("30"), "Bonus")
        resp = await client.post("/api/wallet/withdrawals", json={"amount": 10}, headers=auth(referrer))
        transaction_id = (await resp.json())["transaction"]["id"]

        resp = await client.post(
            f"/api/admin/withdrawals/{transaction_id}/reject",
            json={"reason": "Suspicious address"},
            headers=auth(admin_user),
        )

        assert resp.status == 200
        assert (await resp.json())["data"]["status"] == "FAILED"

    @pytest.mark.asyncio
    async def test_admin_fund_and_deduct(self, client, referrer, admin_user):
        resp = await client.post(
            f"/api/admin/wallets/{referrer.id}/fund",
            json={"amount": "80", "reason": "Bonus"},
            headers=auth(admin_user),
        )
        assert resp.status == 200

        resp = await client.post(
            f"/api/admin/wallets/{referrer.id}/deduct",
            json={"amount": "30", "reason": "Equipment lease", "type": "PURCHASE"},
            headers=auth(admin_user),
        )
        assert resp.status == 200
        assert (await resp.json())["data"]["type"] == "PURCHASE"

        wallet = await (await client.get("/api/wallet", headers=auth(referrer))).json()
        assert wallet["wallet"]["balance"] == "50.00"


class TestUserApi:
    """Tests for referral commissions and notifications routes."""

    @pytest.mark.asyncio
    async def test_my_commissions(self, client, referrer, commission):
        resp = await client.get("/api/referrals/commissions", headers=auth(referrer))

        body = await resp.json()
        assert [c["id"] for c in body["commissions"]] == [commission.id]
        assert body["pendingAmount"] == "500.00"
        assert body["totalEarned"] == "0"

    @pytest.mark.asyncio
    async def test_notifications(self, client, referrer, commission):
        resp = await client.get("/api/notifications", headers=auth(referrer))

        body = await resp.json()
        assert body["unreadCount"] == 1
        assert body["pagination"] == {"total": 1, "page": 1, "limit": 10, "pages": 1}
        notification_id = body["notifications"][0]["id"]

        resp = await client.post(f"/api/notifications/{notification_id}/read", headers=auth(referrer))
        assert resp.status == 200

        body = await (await client.get("/api/notifications?unread=true", headers=auth(referrer))).json()
        assert body["notifications"] == []
        assert body["unreadCount"] == 0

    @pytest.mark.asyncio
    async def test_mark_someone_elses_notification(self, client, referred, referrer, commission):
        body = await (await client.get("/api/notifications", headers=auth(referrer))).json()
        notification_id = body["notifications"][0]["id"]

        resp = await client.post(f"/api/notifications/{notification_id}/read", headers=auth(referred))
        assert resp.status == 404

    @pytest.mark.asyncio
    async def test_mark_all_read(self, client, referrer, commission):
        resp = await client.post("/api/notifications/read-all", headers=auth(referrer))

        assert await resp.json() == {"success": True, "count": 1}
