"""User model."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class KycStatus(str, Enum):
    NOT_SUBMITTED = "NOT_SUBMITTED"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


@dataclass
class User:
    """User data model."""

    id: int
    email: str
    first_name: Optional[str]
    last_name: Optional[str]
    role: UserRole
    email_verified: bool
    kyc_status: KycStatus
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row) -> "User":
        """Create User from database row."""
        return cls(
            id=row["id"],
            email=row["email"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            role=UserRole(row["role"]),
            email_verified=bool(row["email_verified"]),
            kyc_status=KycStatus(row["kyc_status"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def display_name(self) -> str:
        """Get user display name."""
        if self.first_name:
            name = self.first_name
            if self.last_name:
                name += f" {self.last_name}"
            return name
        return self.email
