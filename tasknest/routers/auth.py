"""
Authentication endpoints.

Signup, login, logout, me.
"""

from __future__ import annotations

from typing import Any

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tasknest.core.config import settings
from tasknest.core.database import get_db
from tasknest.core.dependencies import get_current_user, get_redis, get_token_payload
from tasknest.models.user import User
from tasknest.repositories.user_repository import SQLAlchemyUserRepository
from tasknest.schemas.auth import (
    LoginRequest,
    MeResponse,
    SignupRequest,
    TokenResponse,
    UserSummaryResponse,
)
from tasknest.services.auth_service import AuthService

router = APIRouter()


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    """Dependency that constructs AuthService."""
    return AuthService(users=SQLAlchemyUserRepository(db))


def _token_response(service: AuthService, user: User) -> TokenResponse:
    return TokenResponse(
        access_token=service.issue_token(user),
        expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserSummaryResponse.model_validate(user),
    )


# ---------------------------------------------------------------------------
# Signup
# ---------------------------------------------------------------------------

@router.post(
    "/signup",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account and its personal organization",
)
async def signup(
    data: SignupRequest,
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """
    Create a new user account.

    - Username must be unique
    - Password must be at least MIN_PASSWORD_LENGTH characters
    - A personal organization owned by the new user is created alongside
    """
    user = await service.signup(data.username, data.password)
    return _token_response(service, user)


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login with username and password",
)
async def login(
    data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    user = await service.login(data.username, data.password)
    return _token_response(service, user)


# ---------------------------------------------------------------------------
# Logout
# ---------------------------------------------------------------------------

@router.post(
    "/logout",
    status_code=status.HTTP_200_OK,
    summary="Revoke the current access token",
)
async def logout(
    payload: dict[str, Any] = Depends(get_token_payload),
    redis: aioredis.Redis = Depends(get_redis),
    service: AuthService = Depends(get_auth_service),
) -> dict:
    await service.logout(redis, payload)
    return {}


# ---------------------------------------------------------------------------
# Me
# ---------------------------------------------------------------------------

@router.get(
    "/me",
    response_model=MeResponse,
    summary="Get the current user",
)
async def me(current_user: User = Depends(get_current_user)) -> MeResponse:
    return MeResponse.model_validate(current_user)
