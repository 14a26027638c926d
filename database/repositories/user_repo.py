"""User repository for database operations."""

from typing import Optional

import asyncpg

from database.connection import Database
from database.models import User, UserRole


class UserRepository:
    """Repository for user operations."""

    def __init__(self, db: Database):
        self.db = db

    async def create(
        self,
        email: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        role: UserRole = UserRole.USER,
        conn: Optional[asyncpg.Connection] = None,
    ) -> User:
        """Create a new user."""
        async with self.db.acquire(conn) as c:
            row = await c.fetchrow(
                """
                INSERT INTO users (email, first_name, last_name, role)
                VALUES ($1, $2, $3, $4)
                RETURNING *
                """,
                email, first_name, last_name, role.value,
            )
            return User.from_row(row)

    async def get_by_id(self, user_id: int, conn: Optional[asyncpg.Connection] = None) -> Optional[User]:
        """Get user by ID."""
        async with self.db.acquire(conn) as c:
            row = await c.fetchrow("SELECT * FROM users WHERE id = $1", user_id)
            if row:
                return User.from_row(row)
            return None

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email (case-insensitive)."""
        async with self.db.acquire() as c:
            row = await c.fetchrow(
                "SELECT * FROM users WHERE LOWER(email) = LOWER($1)",
                email,
            )
            if row:
                return User.from_row(row)
            return None

    async def set_role(self, user_id: int, role: UserRole) -> None:
        """Change a user's role."""
        async with self.db.acquire() as c:
            await c.execute(
                "UPDATE users SET role = $1, updated_at = NOW() WHERE id = $2",
                role.value, user_id,
            )
