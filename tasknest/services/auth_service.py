"""
Authentication business logic.

Handles signup, login, logout and user lookup.
All business logic lives here; routers only handle HTTP concerns.
"""

from __future__ import annotations

import logging
from typing import Any, Callable
from uuid import UUID

import redis.asyncio as aioredis

from tasknest.core.config import settings
from tasknest.core.exceptions import (
    InvalidCredentialsError,
    InviteCodeGenerationFailedError,
    PasswordTooShortError,
    UserNotFoundError,
    UsernameRequiredError,
    UsernameTakenError,
)
from tasknest.core.security import (
    blacklist_redis_key,
    create_access_token,
    generate_invite_code,
    hash_password,
    token_ttl_seconds,
    verify_password,
)
from tasknest.models.organization import Organization
from tasknest.models.user import User
from tasknest.repositories.base import UserRepository

logger = logging.getLogger(__name__)


def personal_organization_name(username: str) -> str:
    return f"{username}'s organization"


class AuthService:
    """Handles all authentication operations."""

    def __init__(
        self,
        users: UserRepository,
        invite_code_factory: Callable[[], str] = generate_invite_code,
    ) -> None:
        self.users = users
        self.invite_code_factory = invite_code_factory

    # -----------------------------------------------------------------------
    # Signup
    # -----------------------------------------------------------------------

    async def signup(self, username: str, password: str) -> User:
        """
        Register a new user together with a personal organization.

        - Validates username and password length
        - Checks username uniqueness
        - Creates user, organization and owner membership in one transaction
        """
        username = (username or "").strip()
        if not username:
            raise UsernameRequiredError()
        if len(password) < settings.MIN_PASSWORD_LENGTH:
            raise PasswordTooShortError(
                f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters"
            )

        if await self.users.find_by_username(username) is not None:
            raise UsernameTakenError()

        try:
            invite_code = self.invite_code_factory()
        except OSError as e:
            raise InviteCodeGenerationFailedError() from e

        user = User(username=username, password_hash=hash_password(password))
        organization = Organization(
            name=personal_organization_name(username),
            invite_code=invite_code,
        )
        await self.users.create_with_personal_organization(user, organization)

        logger.info("User %s signed up with organization %s", user.id, organization.id)
        return user

    # -----------------------------------------------------------------------
    # Login
    # -----------------------------------------------------------------------

    async def login(self, username: str, password: str) -> User:
        """Never reveals whether the username or the password was wrong."""
        user = await self.users.find_by_username(username.strip())
        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()
        return user

    def issue_token(self, user: User) -> str:
        return create_access_token(str(user.id))

    # -----------------------------------------------------------------------
    # Logout
    # -----------------------------------------------------------------------

    async def logout(self, redis: aioredis.Redis, token_payload: dict[str, Any]) -> None:
        """Blacklist the token's JTI until it would have expired anyway."""
        jti = token_payload.get("jti")
        if not jti:
            return
        await redis.set(blacklist_redis_key(jti), "1", ex=token_ttl_seconds(token_payload))

    # -----------------------------------------------------------------------
    # Users
    # -----------------------------------------------------------------------

    async def get_user(self, user_id: UUID) -> User:
        user = await self.users.find_by_id(user_id)
        if user is None:
            raise UserNotFoundError()
        return user
