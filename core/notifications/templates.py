"""HTML email templates for notification emails."""

from datetime import datetime
from html import escape
from typing import Optional

from database.models import NotificationType

BRAND_NAME = "Stratwealth Capital"

# (alert style, lead sentence, closing line) per notification type
_TYPE_CONTENT = {
    NotificationType.INVESTMENT_MATURED: (
        "success",
        "Great news! One of your investments has matured.",
        "You can now withdraw your funds to your wallet or reinvest to earn more.",
    ),
    NotificationType.PAYMENT_DUE: (
        "warning",
        "This is a reminder that your payment is due soon.",
        "Please ensure you have enough funds in your wallet to cover the upcoming payment.",
    ),
    NotificationType.KYC_STATUS: (
        "info",
        "There has been an update to your KYC verification status.",
        "If you have any questions, please contact our support team.",
    ),
    NotificationType.REFERRAL_COMPLETED: (
        "success",
        "Congratulations! One of your referrals has completed sign up.",
        "Keep sharing your referral link to earn more commissions!",
    ),
    NotificationType.WALLET_UPDATED: (
        "info",
        "Your wallet has been updated.",
        "If you didn't make this transaction, please contact our support team immediately.",
    ),
    NotificationType.COMMISSION_EARNED: (
        "success",
        "Congratulations! You've earned a commission.",
        "Thank you for being a valuable partner.",
    ),
    NotificationType.COMMISSION_PAID: (
        "info",
        "A commission payment has been processed.",
        f"Thank you for your business with {BRAND_NAME}.",
    ),
    NotificationType.PASSWORD_CHANGED: (
        "info",
        "Your password was recently changed.",
        "If you didn't make this change, please contact our support team immediately.",
    ),
    NotificationType.PROFILE_UPDATED: (
        "info",
        "Your profile information has been updated.",
        "If you didn't make these changes, please contact our support team immediately.",
    ),
    NotificationType.SECURITY_ALERT: (
        "warning",
        "We noticed activity on your account that needs your attention.",
        "If this wasn't you, please contact our support team immediately.",
    ),
}

_ALERT_COLORS = {
    "info": ("#e8f4fd", "#0056b3"),
    "success": ("#eafaef", "#28a745"),
    "warning": ("#fff8e6", "#ffc107"),
}


def absolute_url(action_url: Optional[str], base_url: str) -> Optional[str]:
    """Turn a dashboard path into a link usable from an email client."""
    if not action_url:
        return None
    if action_url.startswith(("http://", "https://")):
        return action_url
    return f"{base_url.rstrip('/')}/{action_url.lstrip('/')}"


def render_notification_email(
    notification_type: NotificationType,
    title: str,
    message: str,
    base_url: str,
    action_url: Optional[str] = None,
    action_text: str = "View Details",
    user_name: Optional[str] = None,
) -> str:
    """
    Render the HTML body of a notification email.

    All user-supplied text is HTML-escaped.
    """
    greeting = f"<p>Hello {escape(user_name)},</p>" if user_name else "<p>Hello,</p>"

    link = absolute_url(action_url, base_url)
    button = ""
    if link:
        button = (
            f'<a href="{escape(link, quote=True)}" '
            f'style="display:inline-block;padding:10px 20px;color:#ffffff;'
            f'background-color:#0056b3;border-radius:4px;text-decoration:none;">'
            f"{escape(action_text)}</a>"
        )

    content = _TYPE_CONTENT.get(notification_type)
    if content:
        style, lead, closing = content
        background, border = _ALERT_COLORS[style]
        body = (
            f"{greeting}"
            f'<div style="padding:15px;margin:20px 0;background-color:{background};'
            f'border-left:4px solid {border};"><p>{escape(lead)}</p></div>'
            f"<p>{escape(message)}</p>"
            f"{button}"
            f"<p>{escape(closing)}</p>"
        )
    else:
        body = f"{greeting}<p>{escape(message)}</p>{button}<p>Thank you for using {BRAND_NAME}.</p>"

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{escape(title)}</title>
</head>
<body style="font-family:'Segoe UI',Tahoma,Geneva,Verdana,sans-serif;line-height:1.6;color:#333;background-color:#f9f9f9;">
  <div style="max-width:600px;margin:0 auto;padding:20px;background-color:#ffffff;">
    <h2 style="color:#0056b3;">{escape(title)}</h2>
    {body}
    <p style="font-size:12px;color:#777;">&copy; {datetime.now().year} {BRAND_NAME}. All rights reserved.</p>
  </div>
</body>
</html>
"""


def render_notification_text(message: str, base_url: str, action_url: Optional[str] = None) -> str:
    """Plain-text alternative for clients that don't render HTML."""
    link = absolute_url(action_url, base_url)
    if link:
        return f"{message}\n\n{link}\n"
    return f"{message}\n"
