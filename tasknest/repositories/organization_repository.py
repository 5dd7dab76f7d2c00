"""
SQLAlchemy organization repository.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tasknest.models.member import OrganizationMember
from tasknest.models.organization import Organization
from tasknest.models.task import Task
from tasknest.models.task_assignment import TaskAssignment
from tasknest.models.user import User
from tasknest.repositories.base import OrganizationRepository


class SQLAlchemyOrganizationRepository(OrganizationRepository):
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -----------------------------------------------------------------------
    # Organizations
    # -----------------------------------------------------------------------

    async def create(self, organization: Organization) -> Organization:
        self.db.add(organization)
        await self.db.flush()
        return organization

    async def find_by_id(self, organization_id: UUID) -> Organization | None:
        result = await self.db.execute(
            select(Organization).where(Organization.id == organization_id)
        )
        return result.scalar_one_or_none()

    async def find_by_invite_code(self, invite_code: str) -> Organization | None:
        result = await self.db.execute(
            select(Organization).where(Organization.invite_code == invite_code)
        )
        return result.scalar_one_or_none()

    async def save(self, organization: Organization) -> Organization:
        await self.db.flush()
        return organization

    async def delete(self, organization_id: UUID) -> None:
        task_ids = select(Task.id).where(Task.organization_id == organization_id)
        await self.db.execute(
            delete(TaskAssignment).where(TaskAssignment.task_id.in_(task_ids))
        )
        await self.db.execute(delete(Task).where(Task.organization_id == organization_id))
        await self.db.execute(
            delete(OrganizationMember).where(
                OrganizationMember.organization_id == organization_id
            )
        )
        await self.db.execute(delete(Organization).where(Organization.id == organization_id))
        await self.db.flush()

    # -----------------------------------------------------------------------
    # Memberships
    # -----------------------------------------------------------------------

    async def add_member(self, member: OrganizationMember) -> OrganizationMember:
        self.db.add(member)
        await self.db.flush()
        return member

    async def find_member(
        self, organization_id: UUID, user_id: UUID
    ) -> OrganizationMember | None:
        result = await self.db.execute(
            select(OrganizationMember).where(
                OrganizationMember.organization_id == organization_id,
                OrganizationMember.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def remove_member(self, organization_id: UUID, user_id: UUID) -> None:
        await self.db.execute(
            delete(OrganizationMember).where(
                OrganizationMember.organization_id == organization_id,
                OrganizationMember.user_id == user_id,
            )
        )

    async def list_members(self, organization_id: UUID) -> list[OrganizationMember]:
        result = await self.db.execute(
            select(OrganizationMember)
            .where(OrganizationMember.organization_id == organization_id)
            .options(selectinload(OrganizationMember.user))
            .order_by(OrganizationMember.joined_at)
        )
        return list(result.scalars().all())

    async def list_memberships_for_user(self, user_id: UUID) -> list[OrganizationMember]:
        result = await self.db.execute(
            select(OrganizationMember)
            .where(OrganizationMember.user_id == user_id)
            .options(selectinload(OrganizationMember.organization))
            .order_by(OrganizationMember.joined_at)
        )
        return list(result.scalars().all())

    async def list_organization_ids_for_user(self, user_id: UUID) -> list[UUID]:
        result = await self.db.execute(
            select(OrganizationMember.organization_id).where(
                OrganizationMember.user_id == user_id
            )
        )
        return list(result.scalars().all())

    async def count_members(self, organization_id: UUID, user_ids: list[UUID]) -> int:
        if not user_ids:
            return 0
        result = await self.db.execute(
            select(func.count(User.id))
            .join(OrganizationMember, OrganizationMember.user_id == User.id)
            .where(
                User.id.in_(user_ids),
                OrganizationMember.organization_id == organization_id,
            )
        )
        return result.scalar_one()
