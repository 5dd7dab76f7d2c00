"""
Task management endpoints.

CRUD, assignment, status toggling and AI task generation.
"""

from __future__ import annotations

import math
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tasknest.core.config import settings
from tasknest.core.database import get_db
from tasknest.core.dependencies import get_accessible_task, get_current_user, get_task_extractor
from tasknest.models.task import Task, TaskStatus
from tasknest.models.user import User
from tasknest.repositories.organization_repository import SQLAlchemyOrganizationRepository
from tasknest.repositories.task_repository import SQLAlchemyTaskRepository
from tasknest.schemas.task import (
    GenerateTasksRequest,
    GenerateTasksResponse,
    TaskAssignRequest,
    TaskCreateRequest,
    TaskListItem,
    TaskListResponse,
    TaskResponse,
    TaskUpdateRequest,
)
from tasknest.services.ai_service import TaskExtractor
from tasknest.services.task_service import TaskService

router = APIRouter()


def get_task_service(
    db: AsyncSession = Depends(get_db),
    extractor: TaskExtractor | None = Depends(get_task_extractor),
) -> TaskService:
    return TaskService(
        tasks=SQLAlchemyTaskRepository(db),
        organizations=SQLAlchemyOrganizationRepository(db),
        extractor=extractor,
    )


# ---------------------------------------------------------------------------
# List Tasks
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=TaskListResponse,
    summary="List tasks visible to the current user",
)
async def list_tasks(
    organization_id: UUID | None = Query(default=None),
    assigned_to_me: bool = Query(default=False),
    due_today: bool = Query(default=False),
    status_filter: TaskStatus | None = Query(default=None, alias="status"),
    sort_by_due_date: bool = Query(default=False),
    page: int = Query(default=1, description="0 or less returns every task"),
    page_size: int = Query(default=settings.DEFAULT_PAGE_SIZE, le=settings.MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskListResponse:
    """
    Tasks from one organization or from every organization the caller belongs to.

    Sorted by due date (nulls last) when ``sort_by_due_date`` is set,
    newest first otherwise.
    """
    tasks, total = await service.list_tasks(
        user_id=current_user.id,
        organization_id=organization_id,
        assigned_to_me=assigned_to_me,
        due_today=due_today,
        status=status_filter,
        sort_by_due_date=sort_by_due_date,
        page=page,
        page_size=page_size,
    )

    if page > 0 and page_size > 0:
        total_pages = math.ceil(total / page_size)
    else:
        total_pages = 1 if total else 0

    return TaskListResponse(
        tasks=[TaskListItem.model_validate(t) for t in tasks],
        page=page,
        page_size=page_size,
        total_count=total,
        total_pages=total_pages,
    )


# ---------------------------------------------------------------------------
# Create Task
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new task",
)
async def create_task(
    data: TaskCreateRequest,
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    """Create a task in an organization the caller belongs to. The caller is auto-assigned."""
    task = await service.create_task(
        creator_id=current_user.id,
        organization_id=data.organization_id,
        title=data.title,
        description=data.description,
        status=data.status,
        due_date=data.due_date,
    )
    return TaskResponse.model_validate(task)


# ---------------------------------------------------------------------------
# Generate Tasks
# ---------------------------------------------------------------------------

@router.post(
    "/generate",
    response_model=GenerateTasksResponse,
    summary="Suggest tasks from free text",
)
async def generate_tasks(
    data: GenerateTasksRequest,
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> GenerateTasksResponse:
    """Extract task suggestions with the language model. Nothing is saved."""
    tasks = await service.generate_tasks(
        text=data.text,
        actor_id=current_user.id,
        organization_id=data.organization_id,
    )
    return GenerateTasksResponse(tasks=tasks)


# ---------------------------------------------------------------------------
# Get / Update / Delete Task
# ---------------------------------------------------------------------------

@router.get(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Get task detail",
)
async def get_task(task: Task = Depends(get_accessible_task)) -> TaskResponse:
    return TaskResponse.model_validate(task)


@router.patch(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Update task fields",
)
async def update_task(
    data: TaskUpdateRequest,
    task: Task = Depends(get_accessible_task),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    """Partial update. Any member of the task's organization may edit it."""
    task = await service.update_task(task.id, data)
    return TaskResponse.model_validate(task)


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete a task",
)
async def delete_task(
    task: Task = Depends(get_accessible_task),
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> dict:
    """Delete a task and its assignments. Creator only."""
    await service.delete_task(task.id, current_user.id)
    return {}


# ---------------------------------------------------------------------------
# Assignments
# ---------------------------------------------------------------------------

@router.post(
    "/{task_id}/assign",
    response_model=TaskResponse,
    summary="Assign users to a task",
)
async def assign_users(
    data: TaskAssignRequest,
    task: Task = Depends(get_accessible_task),
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    """Creator only. Every user must be a member of the task's organization."""
    task = await service.assign_users(task.id, current_user.id, data.user_ids)
    return TaskResponse.model_validate(task)


@router.post(
    "/{task_id}/unassign",
    response_model=TaskResponse,
    summary="Unassign users from a task",
)
async def unassign_users(
    data: TaskAssignRequest,
    task: Task = Depends(get_accessible_task),
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    task = await service.unassign_users(task.id, current_user.id, data.user_ids)
    return TaskResponse.model_validate(task)


# ---------------------------------------------------------------------------
# Toggle Status
# ---------------------------------------------------------------------------

@router.post(
    "/{task_id}/toggle-status",
    response_model=TaskResponse,
    summary="Toggle a task between TODO and DONE",
)
async def toggle_task_status(
    task: Task = Depends(get_accessible_task),
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    """Allowed for the creator and any assignee."""
    task = await service.toggle_task_status(task.id, current_user.id)
    return TaskResponse.model_validate(task)
