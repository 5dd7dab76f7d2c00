"""
SQLAlchemy user repository.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tasknest.core.exceptions import SignupFailedError
from tasknest.models.member import OrganizationMember, OrgRole
from tasknest.models.organization import Organization
from tasknest.models.user import User
from tasknest.repositories.base import UserRepository

logger = logging.getLogger(__name__)


class SQLAlchemyUserRepository(UserRepository):
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_by_id(self, user_id: UUID) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def find_by_username(self, username: str) -> User | None:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def create_with_personal_organization(
        self, user: User, organization: Organization
    ) -> User:
        step = "user"
        try:
            async with self.db.begin_nested():
                self.db.add(user)
                await self.db.flush()

                step = "organization"
                self.db.add(organization)
                await self.db.flush()

                step = "membership"
                self.db.add(
                    OrganizationMember(
                        organization_id=organization.id,
                        user_id=user.id,
                        role=OrgRole.owner,
                    )
                )
                await self.db.flush()
        except SQLAlchemyError as exc:
            logger.warning("Signup rolled back at %s step: %s", step, exc)
            raise SignupFailedError(step) from exc
        return user
