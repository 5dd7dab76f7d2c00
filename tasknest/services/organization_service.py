"""
Organization business logic.

Handles organization CRUD, invite codes, joining and member removal.
Role checks (owner-only operations) are enforced by the HTTP gates.
"""

from __future__ import annotations

import logging
from typing import Callable
from uuid import UUID

from tasknest.core.exceptions import (
    AlreadyOrganizationMemberError,
    CannotRemoveYourselfError,
    InvalidInviteCodeError,
    InvalidOrganizationNameError,
    InviteCodeGenerationFailedError,
    OrganizationMemberNotFoundError,
    OrganizationNotFoundError,
)
from tasknest.core.security import generate_invite_code
from tasknest.models.member import OrganizationMember, OrgRole
from tasknest.models.organization import Organization
from tasknest.repositories.base import OrganizationRepository

logger = logging.getLogger(__name__)


class OrganizationService:
    """Handles all organization operations."""

    def __init__(
        self,
        organizations: OrganizationRepository,
        invite_code_factory: Callable[[], str] = generate_invite_code,
    ) -> None:
        self.organizations = organizations
        self.invite_code_factory = invite_code_factory

    # -----------------------------------------------------------------------
    # Create Organization
    # -----------------------------------------------------------------------

    async def create_organization(self, name: str, owner_id: UUID) -> Organization:
        """Create an organization and make ``owner_id`` its owner."""
        name = _clean_name(name)

        organization = Organization(name=name, invite_code=self._new_invite_code())
        await self.organizations.create(organization)
        await self.organizations.add_member(
            OrganizationMember(
                organization_id=organization.id,
                user_id=owner_id,
                role=OrgRole.owner,
            )
        )

        logger.info("Organization %s created by %s", organization.id, owner_id)
        return organization

    # -----------------------------------------------------------------------
    # Read
    # -----------------------------------------------------------------------

    async def list_organizations_for_user(self, user_id: UUID) -> list[OrganizationMember]:
        return await self.organizations.list_memberships_for_user(user_id)

    async def get_organization_with_members(
        self, organization_id: UUID
    ) -> tuple[Organization, list[OrganizationMember]]:
        organization = await self._get_organization(organization_id)
        members = await self.organizations.list_members(organization_id)
        return organization, members

    # -----------------------------------------------------------------------
    # Update / Delete
    # -----------------------------------------------------------------------

    async def update_organization_name(self, organization_id: UUID, name: str) -> Organization:
        name = _clean_name(name)
        organization = await self._get_organization(organization_id)
        organization.name = name
        return await self.organizations.save(organization)

    async def delete_organization(self, organization_id: UUID) -> None:
        """Delete the organization along with its tasks and memberships."""
        await self._get_organization(organization_id)
        await self.organizations.delete(organization_id)
        logger.info("Organization %s deleted", organization_id)

    # -----------------------------------------------------------------------
    # Invites
    # -----------------------------------------------------------------------

    async def join_organization_by_invite(
        self, user_id: UUID, invite_code: str
    ) -> tuple[Organization, OrganizationMember]:
        organization = await self.organizations.find_by_invite_code(invite_code.strip())
        if organization is None:
            raise InvalidInviteCodeError()

        existing = await self.organizations.find_member(organization.id, user_id)
        if existing is not None:
            raise AlreadyOrganizationMemberError()

        member = await self.organizations.add_member(
            OrganizationMember(
                organization_id=organization.id,
                user_id=user_id,
                role=OrgRole.member,
            )
        )
        logger.info("User %s joined organization %s", user_id, organization.id)
        return organization, member

    async def regenerate_invite_code(self, organization_id: UUID) -> Organization:
        """Replace the invite code. The previous code stops working immediately."""
        organization = await self._get_organization(organization_id)
        organization.invite_code = self._new_invite_code()
        await self.organizations.save(organization)
        logger.info("Invite code rotated for organization %s", organization_id)
        return organization

    # -----------------------------------------------------------------------
    # Members
    # -----------------------------------------------------------------------

    async def remove_member(
        self, organization_id: UUID, actor_id: UUID, target_id: UUID
    ) -> None:
        """
        Remove ``target_id`` from the organization.

        Removing the last owner is not prevented.
        """
        if actor_id == target_id:
            raise CannotRemoveYourselfError()

        member = await self.organizations.find_member(organization_id, target_id)
        if member is None:
            raise OrganizationMemberNotFoundError()

        await self.organizations.remove_member(organization_id, target_id)
        logger.info(
            "User %s removed from organization %s by %s", target_id, organization_id, actor_id
        )

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    async def _get_organization(self, organization_id: UUID) -> Organization:
        organization = await self.organizations.find_by_id(organization_id)
        if organization is None:
            raise OrganizationNotFoundError()
        return organization

    def _new_invite_code(self) -> str:
        try:
            return self.invite_code_factory()
        except OSError as e:
            logger.warning("Invite code generation failed: %s", e)
            raise InviteCodeGenerationFailedError() from e


def _clean_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise InvalidOrganizationNameError()
    return name
