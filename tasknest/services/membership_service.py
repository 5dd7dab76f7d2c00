"""
Membership resolution.

Decides which organizations a user may act in. Evaluated against current
persisted state on every call.
"""

from __future__ import annotations

from uuid import UUID

from tasknest.core.exceptions import NotOrganizationMemberError
from tasknest.models.member import OrganizationMember
from tasknest.repositories.base import OrganizationRepository


class MembershipResolver:
    def __init__(self, organizations: OrganizationRepository) -> None:
        self.organizations = organizations

    async def resolve_accessible_organizations(
        self,
        user_id: UUID,
        organization_id: UUID | None = None,
    ) -> list[UUID]:
        """
        Organization ids the user may read tasks from.

        With an explicit organization the user must be a member of it and the
        result is that single id. Without one, every current membership counts;
        an empty list is a valid answer.
        """
        if organization_id is not None:
            await self.ensure_member(organization_id, user_id)
            return [organization_id]
        return await self.organizations.list_organization_ids_for_user(user_id)

    async def ensure_member(self, organization_id: UUID, user_id: UUID) -> OrganizationMember:
        """Return the membership row or raise NotOrganizationMemberError."""
        member = await self.organizations.find_member(organization_id, user_id)
        if member is None:
            raise NotOrganizationMemberError()
        return member
