"""
Organization schemas.

Request/response models for organization and member management endpoints.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from tasknest.models.member import OrgRole
from tasknest.schemas.auth import UserSummaryResponse


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class OrganizationCreateRequest(BaseModel):
    """Request body for POST /organizations. Blank names are rejected by the service."""

    name: str = Field(max_length=255)


class OrganizationUpdateRequest(BaseModel):
    """Request body for PUT /organizations/{organization_id}."""

    name: str = Field(max_length=255)


class JoinOrganizationRequest(BaseModel):
    """Request body for POST /organizations/join."""

    invite_code: str = Field(min_length=1, max_length=32)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class OrganizationSummaryResponse(BaseModel):
    id: UUID
    name: str

    model_config = {"from_attributes": True}


class OrganizationResponse(BaseModel):
    """Organization including its invite code. Only shown to members."""

    id: UUID
    name: str
    invite_code: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MemberResponse(BaseModel):
    user: UserSummaryResponse
    role: OrgRole
    joined_at: datetime

    model_config = {"from_attributes": True}


class OrganizationDetailResponse(OrganizationResponse):
    members: list[MemberResponse]


class MembershipResponse(BaseModel):
    """One entry of GET /organizations: the organization and the caller's role."""

    organization: OrganizationSummaryResponse
    role: OrgRole
    joined_at: datetime

    model_config = {"from_attributes": True}


class InviteCodeResponse(BaseModel):
    invite_code: str
