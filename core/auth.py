"""Session tokens and session resolution.

Registration and login live in the web frontend; it hands the API a token of
the form "<user_id>.<hex hmac-sha256(session_secret, user_id)>".
"""

import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Optional

from database.connection import Database
from database.models import KycStatus, UserRole
from database.repositories import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    """Authenticated caller."""
    user_id: int
    role: UserRole
    email_verified: bool = False
    kyc_status: KycStatus = KycStatus.NOT_SUBMITTED

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def _signature(secret: str, user_id: int) -> str:
    return hmac.new(secret.encode(), str(user_id).encode(), hashlib.sha256).hexdigest()


def sign_session_token(secret: str, user_id: int) -> str:
    """Issue a session token for a user."""
    return f"{user_id}.{_signature(secret, user_id)}"


def verify_session_token(secret: str, token: str) -> Optional[int]:
    """
    Verify a session token.

    Returns:
        The user ID, or None if the token is malformed or forged
    """
    user_part, _, signature = (token or "").partition(".")
    if not user_part.isdigit() or not signature:
        return None

    user_id = int(user_part)
    if not hmac.compare_digest(_signature(secret, user_id), signature):
        return None
    return user_id


class SessionResolver:
    """Turns a bearer token into a Session backed by the current user row."""

    def __init__(self, db: Database, secret: str):
        self.user_repo = UserRepository(db)
        self.secret = secret

    async def resolve(self, token: Optional[str]) -> Optional[Session]:
        user_id = verify_session_token(self.secret, token or "")
        if user_id is None:
            return None

        user = await self.user_repo.get_by_id(user_id)
        if not user:
            logger.warning(f"Valid token for missing user {user_id}")
            return None

        return Session(
            user_id=user.id,
            role=user.role,
            email_verified=user.email_verified,
            kyc_status=user.kyc_status,
        )
