"""Tests for session tokens and session resolution."""

import pytest

from core.auth import Session, SessionResolver, sign_session_token, verify_session_token
from database.models import UserRole

SECRET = "unit-test-secret"


class TestSessionTokens:
    """Tests for HMAC-signed session tokens."""

    def test_round_trip(self):
        """Test a signed token verifies to its user id."""
        token = sign_session_token(SECRET, 42)
        assert token.startswith("42.")
        assert verify_session_token(SECRET, token) == 42

    def test_wrong_secret(self):
        """Test a token signed with another key is rejected."""
        token = sign_session_token("other-secret", 42)
        assert verify_session_token(SECRET, token) is None

    def test_tampered_user_id(self):
        """Test swapping the user id invalidates the signature."""
        signature = sign_session_token(SECRET, 42).split(".", 1)[1]
        assert verify_session_token(SECRET, f"1.{signature}") is None

    @pytest.mark.parametrize("token", ["", "42", "42.", "abc.def", ".deadbeef", None])
    def test_malformed(self, token):
        """Test malformed tokens are rejected."""
        assert verify_session_token(SECRET, token) is None


class TestSessionResolver:
    """Tests for turning tokens into sessions."""

    @pytest.fixture
    def resolver(self, db, user_repo):
        resolver = SessionResolver(db, SECRET)
        resolver.user_repo = user_repo
        return resolver

    @pytest.mark.asyncio
    async def test_resolves_user(self, resolver, referrer):
        """Test a valid token yields the user's session."""
        session = await resolver.resolve(sign_session_token(SECRET, referrer.id))

        assert session == Session(
            user_id=referrer.id,
            role=UserRole.USER,
            email_verified=True,
            kyc_status=referrer.kyc_status,
        )
        assert not session.is_admin

    @pytest.mark.asyncio
    async def test_admin_session(self, resolver, admin_user):
        """Test admins resolve to admin sessions."""
        session = await resolver.resolve(sign_session_token(SECRET, admin_user.id))
        assert session.is_admin

    @pytest.mark.asyncio
    async def test_deleted_user(self, resolver):
        """Test a valid token for a missing user resolves to None."""
        assert await resolver.resolve(sign_session_token(SECRET, 999)) is None

    @pytest.mark.asyncio
    async def test_no_token(self, resolver):
        """Test a missing token resolves to None."""
        assert await resolver.resolve(None) is None
