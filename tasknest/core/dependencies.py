"""
FastAPI dependency injection functions.

Provides Redis connections, the current user, the AI extractor, and the
organization/task access gates.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

import redis.asyncio as aioredis
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from tasknest.core.config import settings
from tasknest.core.database import get_db
from tasknest.core.exceptions import UserNotFoundError
from tasknest.core.security import blacklist_redis_key, decode_access_token
from tasknest.models.member import OrganizationMember, OrgRole
from tasknest.models.organization import Organization
from tasknest.models.task import Task
from tasknest.models.user import User
from tasknest.repositories.organization_repository import SQLAlchemyOrganizationRepository
from tasknest.repositories.task_repository import SQLAlchemyTaskRepository
from tasknest.repositories.user_repository import SQLAlchemyUserRepository
from tasknest.services.ai_service import OpenAITaskExtractor, TaskExtractor
from tasknest.services.auth_service import AuthService

# ---------------------------------------------------------------------------
# HTTP Bearer scheme (auto_error=False so we can return custom 401)
# ---------------------------------------------------------------------------

bearer_scheme = HTTPBearer(auto_error=False)

# ---------------------------------------------------------------------------
# Redis
# ---------------------------------------------------------------------------

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """
    Return a shared async Redis client.

    Uses a module-level pool so connections are reused across requests.
    """
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            str(settings.REDIS_URL),
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_pool


# ---------------------------------------------------------------------------
# AI extractor
# ---------------------------------------------------------------------------

_task_extractor: TaskExtractor | None = None


def get_task_extractor() -> TaskExtractor | None:
    """Shared OpenAI extractor, or None when no API key is configured."""
    global _task_extractor
    if _task_extractor is None and settings.OPENAI_API_KEY:
        _task_extractor = OpenAITaskExtractor(
            api_key=settings.OPENAI_API_KEY,
            model=settings.OPENAI_MODEL,
            timeout=settings.AI_REQUEST_TIMEOUT_SECONDS,
        )
    return _task_extractor


# ---------------------------------------------------------------------------
# Current user
# ---------------------------------------------------------------------------

async def get_token_payload(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    redis: aioredis.Redis = Depends(get_redis),
) -> dict[str, Any]:
    """
    Validate the Bearer JWT and return its payload.

    Raises 401 if no token is provided, the token is invalid or expired,
    or its JTI is blacklisted.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "MISSING_TOKEN", "message": "Authorization header required"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "INVALID_TOKEN", "message": "Token is invalid or expired"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    if await redis.exists(blacklist_redis_key(payload.get("jti", ""))):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "TOKEN_REVOKED", "message": "Token has been revoked"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    return payload


async def get_current_user(
    payload: dict[str, Any] = Depends(get_token_payload),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Return the authenticated User. Raises 401 if the account no longer exists."""
    service = AuthService(users=SQLAlchemyUserRepository(db))
    try:
        return await service.get_user(UUID(str(payload.get("sub", ""))))
    except (ValueError, UserNotFoundError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "USER_NOT_FOUND", "message": "User not found"},
            headers={"WWW-Authenticate": "Bearer"},
        )


# ---------------------------------------------------------------------------
# Organization membership + role enforcement
# ---------------------------------------------------------------------------

async def get_org_member(
    organization_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> tuple[Organization, OrganizationMember]:
    """
    Resolve the organization and verify the current user is a member.

    Returns (organization, member). Raises 404 both when the organization is
    missing and when the user is not a member, so existence is not leaked.
    """
    repo = SQLAlchemyOrganizationRepository(db)
    org = await repo.find_by_id(organization_id)
    member = await repo.find_member(organization_id, current_user.id) if org else None

    if org is None or member is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "ORGANIZATION_NOT_FOUND", "message": "Organization not found"},
        )

    return org, member


def require_role(*roles: OrgRole):
    """
    Dependency factory that enforces a role within the organization.

    Usage:
        @router.put("/{organization_id}")
        async def endpoint(
            org_and_member: tuple = Depends(require_role(OrgRole.owner)),
        ):
            org, member = org_and_member
    """
    async def role_checker(
        org_and_member: tuple[Organization, OrganizationMember] = Depends(get_org_member),
    ) -> tuple[Organization, OrganizationMember]:
        _, member = org_and_member
        if member.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "code": "INSUFFICIENT_ROLE",
                    "message": f"Required role: {[r.value for r in roles]}",
                },
            )
        return org_and_member

    return role_checker


# ---------------------------------------------------------------------------
# Task access
# ---------------------------------------------------------------------------

async def get_accessible_task(
    task_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Task:
    """
    Load the task and verify the current user belongs to its organization.

    Raises 404 for missing tasks and for tasks in other organizations.
    """
    task = await SQLAlchemyTaskRepository(db).find_by_id(task_id)
    member = None
    if task is not None:
        member = await SQLAlchemyOrganizationRepository(db).find_member(
            task.organization_id, current_user.id
        )

    if task is None or member is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "TASK_NOT_FOUND", "message": "Task not found"},
        )
    return task
