"""Admin procedure configuration."""

from typing import Optional

from core.auth import Session

# Largest page returned by the commission list procedures
COMMISSIONS_PAGE_SIZE = 100

# Upper bound on ids accepted by one bulk approval
MAX_BULK_APPROVE = 100


def is_admin(session: Optional[Session]) -> bool:
    """Check if a session belongs to an admin."""
    return session is not None and session.is_admin
