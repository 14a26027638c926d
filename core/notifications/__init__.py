from .delivery import DeliveryQueue, DeliveryStats
from .email import SmtpEmailGateway
from .push import WebPushGateway, SubscriptionExpired
from .templates import render_notification_email, render_notification_text

__all__ = [
    "DeliveryQueue",
    "DeliveryStats",
    "SmtpEmailGateway",
    "WebPushGateway",
    "SubscriptionExpired",
    "render_notification_email",
    "render_notification_text",
]
