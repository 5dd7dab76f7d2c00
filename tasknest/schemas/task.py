"""
Task schemas.

Request/response models for task endpoints, including AI generation.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from tasknest.models.task import TaskStatus
from tasknest.schemas.auth import UserSummaryResponse
from tasknest.schemas.organization import OrganizationSummaryResponse
from tasknest.services.ai_service import GeneratedTask


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class TaskCreateRequest(BaseModel):
    """Request body for POST /tasks."""

    organization_id: UUID
    title: str = Field(default="", max_length=500)
    description: str = ""
    status: TaskStatus | None = None
    due_date: datetime | None = None


class TaskUpdateRequest(BaseModel):
    """
    Request body for PATCH /tasks/{task_id}.

    Only fields present in the body are applied. The due date has three states:
    omitted (untouched), ``null`` or ``clear_due_date=true`` (cleared), or a
    datetime (set). Clearing wins when both a date and the flag are sent.
    """

    title: str | None = Field(default=None, max_length=500)
    description: str | None = None
    status: TaskStatus | None = None
    due_date: datetime | None = None
    clear_due_date: bool = False


class TaskAssignRequest(BaseModel):
    """Request body for POST /tasks/{task_id}/assign and /unassign."""

    user_ids: list[UUID]


class GenerateTasksRequest(BaseModel):
    """Request body for POST /tasks/generate."""

    text: str = Field(min_length=1, max_length=20000)
    organization_id: UUID | None = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class TaskAssignmentResponse(BaseModel):
    user: UserSummaryResponse
    created_at: datetime

    model_config = {"from_attributes": True}


class TaskResponse(BaseModel):
    """Full task detail with creator, organization and assignees."""

    id: UUID
    title: str
    description: str
    status: TaskStatus
    due_date: datetime | None
    creator_id: UUID
    organization_id: UUID
    created_at: datetime
    updated_at: datetime
    creator: UserSummaryResponse | None = None
    organization: OrganizationSummaryResponse | None = None
    assignments: list[TaskAssignmentResponse] = []

    model_config = {"from_attributes": True}


class TaskListItem(BaseModel):
    """Lightweight task for list views."""

    id: UUID
    title: str
    description: str
    status: TaskStatus
    due_date: datetime | None
    creator_id: UUID
    organization_id: UUID
    creator: UserSummaryResponse | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class TaskListResponse(BaseModel):
    tasks: list[TaskListItem]
    page: int
    page_size: int
    total_count: int
    total_pages: int


class GenerateTasksResponse(BaseModel):
    """Suggestions only; nothing is saved until the client creates them."""

    tasks: list[GeneratedTask]
