"""Admin utilities."""

from admin.utils.result import ActionResult
from admin.utils.decorators import admin_only, admin_action

__all__ = ["ActionResult", "admin_only", "admin_action"]
