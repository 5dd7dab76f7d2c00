"""
Organization endpoints.

CRUD, invite-code join and rotation, member removal.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tasknest.core.database import get_db
from tasknest.core.dependencies import get_current_user, get_org_member, require_role
from tasknest.models.member import OrganizationMember, OrgRole
from tasknest.models.organization import Organization
from tasknest.models.user import User
from tasknest.repositories.organization_repository import SQLAlchemyOrganizationRepository
from tasknest.schemas.organization import (
    InviteCodeResponse,
    JoinOrganizationRequest,
    MemberResponse,
    MembershipResponse,
    OrganizationCreateRequest,
    OrganizationDetailResponse,
    OrganizationResponse,
    OrganizationSummaryResponse,
    OrganizationUpdateRequest,
)
from tasknest.services.organization_service import OrganizationService

router = APIRouter()


def get_org_service(db: AsyncSession = Depends(get_db)) -> OrganizationService:
    return OrganizationService(organizations=SQLAlchemyOrganizationRepository(db))


# ---------------------------------------------------------------------------
# Create / List
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=OrganizationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an organization",
)
async def create_organization(
    data: OrganizationCreateRequest,
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_org_service),
) -> OrganizationResponse:
    """Create an organization. The caller becomes its owner."""
    org = await service.create_organization(data.name, current_user.id)
    return OrganizationResponse.model_validate(org)


@router.get(
    "",
    response_model=list[MembershipResponse],
    summary="List organizations the current user belongs to",
)
async def list_organizations(
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_org_service),
) -> list[MembershipResponse]:
    memberships = await service.list_organizations_for_user(current_user.id)
    return [MembershipResponse.model_validate(m) for m in memberships]


# ---------------------------------------------------------------------------
# Join
# ---------------------------------------------------------------------------

@router.post(
    "/join",
    response_model=MembershipResponse,
    summary="Join an organization with an invite code",
)
async def join_organization(
    data: JoinOrganizationRequest,
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_org_service),
) -> MembershipResponse:
    org, member = await service.join_organization_by_invite(current_user.id, data.invite_code)
    return MembershipResponse(
        organization=OrganizationSummaryResponse.model_validate(org),
        role=member.role,
        joined_at=member.joined_at,
    )


# ---------------------------------------------------------------------------
# Detail / Update / Delete
# ---------------------------------------------------------------------------

@router.get(
    "/{organization_id}",
    response_model=OrganizationDetailResponse,
    summary="Get organization detail with members",
)
async def get_organization(
    org_and_member: tuple[Organization, OrganizationMember] = Depends(get_org_member),
    service: OrganizationService = Depends(get_org_service),
) -> OrganizationDetailResponse:
    org, _ = org_and_member
    org, members = await service.get_organization_with_members(org.id)
    return OrganizationDetailResponse(
        **OrganizationResponse.model_validate(org).model_dump(),
        members=[MemberResponse.model_validate(m) for m in members],
    )


@router.put(
    "/{organization_id}",
    response_model=OrganizationResponse,
    summary="Rename an organization",
)
async def update_organization(
    data: OrganizationUpdateRequest,
    org_and_member: tuple[Organization, OrganizationMember] = Depends(
        require_role(OrgRole.owner)
    ),
    service: OrganizationService = Depends(get_org_service),
) -> OrganizationResponse:
    """Rename the organization. Requires Owner role."""
    org, _ = org_and_member
    org = await service.update_organization_name(org.id, data.name)
    return OrganizationResponse.model_validate(org)


@router.delete(
    "/{organization_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete an organization and all its tasks",
)
async def delete_organization(
    org_and_member: tuple[Organization, OrganizationMember] = Depends(
        require_role(OrgRole.owner)
    ),
    service: OrganizationService = Depends(get_org_service),
) -> dict:
    """Delete the organization, its tasks and memberships. Requires Owner role."""
    org, _ = org_and_member
    await service.delete_organization(org.id)
    return {}


# ---------------------------------------------------------------------------
# Invite Code
# ---------------------------------------------------------------------------

@router.post(
    "/{organization_id}/regenerate-code",
    response_model=InviteCodeResponse,
    summary="Rotate the invite code",
)
async def regenerate_invite_code(
    org_and_member: tuple[Organization, OrganizationMember] = Depends(
        require_role(OrgRole.owner)
    ),
    service: OrganizationService = Depends(get_org_service),
) -> InviteCodeResponse:
    """Issue a new invite code. The old code stops working immediately."""
    org, _ = org_and_member
    org = await service.regenerate_invite_code(org.id)
    return InviteCodeResponse(invite_code=org.invite_code)


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

@router.delete(
    "/{organization_id}/members/{user_id}",
    status_code=status.HTTP_200_OK,
    summary="Remove a member from the organization",
)
async def remove_member(
    user_id: UUID,
    org_and_member: tuple[Organization, OrganizationMember] = Depends(
        require_role(OrgRole.owner)
    ),
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_org_service),
) -> dict:
    """Remove a member. Requires Owner role; owners cannot remove themselves."""
    org, _ = org_and_member
    await service.remove_member(org.id, current_user.id, user_id)
    return {}
