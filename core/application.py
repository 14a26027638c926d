"""Wiring of services, admin procedures and the API application."""

from dataclasses import dataclass

from aiohttp import web

from admin.services import CommissionAdminService, SettingsAdminService, WalletAdminService
from config import settings
from core.api import ApiHandlers, create_api_app
from core.auth import SessionResolver
from core.notifications import DeliveryQueue, SmtpEmailGateway, WebPushGateway
from core.views import ViewVersions
from database.connection import Database
from services import (
    CommissionEngine,
    CommissionWorkflow,
    NotificationService,
    ReferralSettingsService,
    WalletLedger,
)


@dataclass
class Services:
    delivery: DeliveryQueue
    views: ViewVersions
    notifications: NotificationService
    ledger: WalletLedger
    referral_settings: ReferralSettingsService
    engine: CommissionEngine
    workflow: CommissionWorkflow
    commission_admin: CommissionAdminService
    settings_admin: SettingsAdminService
    wallet_admin: WalletAdminService


def build_services(db: Database) -> Services:
    """Create every service against one database, with gateways from settings."""
    delivery = DeliveryQueue()
    views = ViewVersions()

    notifications = NotificationService(
        db,
        delivery,
        email_gateway=SmtpEmailGateway.from_settings(),
        push_gateway=WebPushGateway.from_settings(),
    )
    ledger = WalletLedger(db, notifications)
    referral_settings = ReferralSettingsService(db)
    engine = CommissionEngine(db, notifications, views)
    workflow = CommissionWorkflow(db, ledger, notifications, views)

    return Services(
        delivery=delivery,
        views=views,
        notifications=notifications,
        ledger=ledger,
        referral_settings=referral_settings,
        engine=engine,
        workflow=workflow,
        commission_admin=CommissionAdminService(workflow),
        settings_admin=SettingsAdminService(referral_settings, views),
        wallet_admin=WalletAdminService(ledger, views),
    )


def create_application(db: Database, services: Services) -> web.Application:
    """Create the aiohttp application serving the API."""
    handlers = ApiHandlers(
        settings_admin=services.settings_admin,
        commission_admin=services.commission_admin,
        wallet_admin=services.wallet_admin,
        workflow=services.workflow,
        ledger=services.ledger,
        notifications=services.notifications,
        views=services.views,
    )
    return create_api_app(handlers, SessionResolver(db, settings.session_secret))
