"""Admin authorization and error mapping decorators."""

import logging
from functools import wraps

from admin.config import is_admin
from admin.utils.result import ActionResult
from core.errors import LedgerError

logger = logging.getLogger(__name__)


def admin_only(func):
    """
    Restrict an admin procedure to ADMIN sessions.

    The wrapped method takes the caller's Session as its first argument after
    self. Anyone else gets ActionResult(success=False, error="Unauthorized").
    """

    @wraps(func)
    async def wrapper(self, session, *args, **kwargs):
        if not is_admin(session):
            user_id = session.user_id if session else None
            logger.warning(f"Unauthorized admin access attempt by user {user_id} ({func.__name__})")
            return ActionResult.fail("Unauthorized", status=401)

        return await func(self, session, *args, **kwargs)

    return wrapper


def admin_action(failure_message: str, tag: str):
    """
    Admin-only procedure whose exceptions become a failed ActionResult.

    Domain errors keep their own message. Anything else is logged with its
    traceback and reported as failure_message.
    """

    def decorator(func):
        @wraps(func)
        async def handler(self, session, *args, **kwargs):
            try:
                return await func(self, session, *args, **kwargs)
            except LedgerError as e:
                logger.info(f"[{tag}] {e.message}")
                return ActionResult.fail(e.message, status=e.status_code)
            except Exception as e:
                logger.error(f"[{tag}] Error: {e}", exc_info=True)
                return ActionResult.fail(failure_message, status=500)

        return admin_only(handler)

    return decorator
