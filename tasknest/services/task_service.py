"""
Task business logic.

Handles task CRUD, assignment, status toggling and AI task generation.
Every organization-scoped operation re-checks membership, so the service is
safe to call without the HTTP access gates in front of it.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable
from uuid import UUID

from tasknest.core.config import settings
from tasknest.core.exceptions import (
    AINoTasksGeneratedError,
    AINoValidTasksError,
    AIServiceNotConfiguredError,
    AITooManyTasksError,
    InvalidTaskAssigneeError,
    NoUserIDsProvidedError,
    NotTaskCreatorError,
    TaskGenerationError,
    TaskNotFoundError,
    TaskPermissionDeniedError,
    TitleEmptyError,
    TitleRequiredError,
)
from tasknest.models.task import Task, TaskStatus
from tasknest.repositories.base import OrganizationRepository, TaskFilter, TaskRepository
from tasknest.schemas.task import TaskUpdateRequest
from tasknest.services.ai_service import GeneratedTask, TaskExtractionError, TaskExtractor
from tasknest.services.membership_service import MembershipResolver

logger = logging.getLogger(__name__)

STALE_DUE_DATE_WINDOW = timedelta(hours=24)


def local_now() -> datetime:
    """Current time as an aware datetime in the server's local timezone."""
    return datetime.now().astimezone()


def local_day_window(now: datetime) -> tuple[datetime, datetime]:
    """
    Half-open ``[start, end)`` covering the local calendar day containing ``now``.

    ``start`` is local midnight with midnight's own UTC offset, which differs
    from ``now``'s on a DST-change day. ``end`` is exactly 24 hours later, in UTC.
    """
    midnight = now.replace(tzinfo=None, hour=0, minute=0, second=0, microsecond=0)
    if isinstance(now.tzinfo, timezone) and now.utcoffset() == now.astimezone().utcoffset():
        # Fixed offset snapshot of the system zone (what local_now returns).
        start = midnight.astimezone()
    else:
        start = midnight.replace(tzinfo=now.tzinfo)
    return start, start.astimezone(timezone.utc) + timedelta(hours=24)


class TaskService:
    """Handles all task operations."""

    def __init__(
        self,
        tasks: TaskRepository,
        organizations: OrganizationRepository,
        extractor: TaskExtractor | None = None,
        *,
        clock: Callable[[], datetime] = local_now,
        ai_timeout: float | None = None,
        max_generated_tasks: int | None = None,
    ) -> None:
        self.tasks = tasks
        self.organizations = organizations
        self.membership = MembershipResolver(organizations)
        self.extractor = extractor
        self.clock = clock
        self.ai_timeout = ai_timeout if ai_timeout is not None else settings.AI_REQUEST_TIMEOUT_SECONDS
        self.max_generated_tasks = (
            max_generated_tasks
            if max_generated_tasks is not None
            else settings.AI_MAX_GENERATED_TASKS
        )

    # -----------------------------------------------------------------------
    # List Tasks
    # -----------------------------------------------------------------------

    async def list_tasks(
        self,
        user_id: UUID,
        organization_id: UUID | None = None,
        assigned_to_me: bool = False,
        due_today: bool = False,
        status: TaskStatus | None = None,
        sort_by_due_date: bool = False,
        page: int = 0,
        page_size: int = 0,
    ) -> tuple[list[Task], int]:
        """
        List tasks visible to ``user_id``.

        Scoped to one organization (membership required) or to every
        organization the user belongs to. Returns ``(page, total)`` where the
        total ignores pagination.
        """
        organization_ids = await self.membership.resolve_accessible_organizations(
            user_id, organization_id
        )
        if not organization_ids:
            return [], 0

        criteria = TaskFilter(
            organization_ids=organization_ids,
            assigned_to=user_id if assigned_to_me else None,
            status=status,
            sort_by_due_date=sort_by_due_date,
            page=page,
            page_size=page_size,
        )
        if due_today:
            criteria.due_from, criteria.due_until = local_day_window(self.clock())

        return await self.tasks.list_tasks(criteria)

    # -----------------------------------------------------------------------
    # Get Task
    # -----------------------------------------------------------------------

    async def get_task(self, task_id: UUID) -> Task:
        task = await self.tasks.find_by_id(task_id)
        if task is None:
            raise TaskNotFoundError()
        return task

    # -----------------------------------------------------------------------
    # Create Task
    # -----------------------------------------------------------------------

    async def create_task(
        self,
        creator_id: UUID,
        organization_id: UUID,
        title: str,
        description: str = "",
        status: TaskStatus | None = None,
        due_date: datetime | None = None,
    ) -> Task:
        """Create a task and assign it to its creator."""
        if not title or not title.strip():
            raise TitleRequiredError()

        await self.membership.ensure_member(organization_id, creator_id)

        task = Task(
            organization_id=organization_id,
            creator_id=creator_id,
            title=title.strip(),
            description=description or "",
            status=status or TaskStatus.TODO,
            due_date=due_date,
        )
        await self.tasks.create(task)
        await self.tasks.assign(task.id, [creator_id])

        logger.info(
            "Task %s created in organization %s by %s", task.id, organization_id, creator_id
        )
        return await self.get_task(task.id)

    # -----------------------------------------------------------------------
    # Update Task
    # -----------------------------------------------------------------------

    async def update_task(self, task_id: UUID, data: TaskUpdateRequest) -> Task:
        """
        Apply a partial update.

        Any member who can reach the task may edit it; there is no creator
        or assignee restriction here.
        """
        task = await self.get_task(task_id)
        fields = data.model_fields_set

        if "title" in fields and data.title is not None:
            if not data.title.strip():
                raise TitleEmptyError()
            task.title = data.title.strip()

        if "description" in fields and data.description is not None:
            task.description = data.description

        if "status" in fields and data.status is not None:
            task.status = data.status

        if data.clear_due_date or ("due_date" in fields and data.due_date is None):
            task.due_date = None
        elif "due_date" in fields:
            task.due_date = data.due_date

        await self.tasks.save(task)
        return await self.get_task(task_id)

    # -----------------------------------------------------------------------
    # Delete Task
    # -----------------------------------------------------------------------

    async def delete_task(self, task_id: UUID, actor_id: UUID) -> None:
        task = await self._get_task_as_creator(task_id, actor_id)
        await self.tasks.delete(task.id)
        logger.info("Task %s deleted by %s", task_id, actor_id)

    # -----------------------------------------------------------------------
    # Assignments
    # -----------------------------------------------------------------------

    async def assign_users(self, task_id: UUID, actor_id: UUID, user_ids: list[UUID]) -> Task:
        """
        Assign users to a task. Creator only.

        Every target must be an existing user and a current member of the
        task's organization. Already-assigned users are left as they are.
        """
        if not user_ids:
            raise NoUserIDsProvidedError()

        task = await self._get_task_as_creator(task_id, actor_id)
        unique_ids = list(dict.fromkeys(user_ids))

        valid_count = await self.organizations.count_members(task.organization_id, unique_ids)
        if valid_count != len(unique_ids):
            raise InvalidTaskAssigneeError()

        await self.tasks.assign(task.id, unique_ids)
        return await self.get_task(task.id)

    async def unassign_users(self, task_id: UUID, actor_id: UUID, user_ids: list[UUID]) -> Task:
        """Remove assignments. Creator only; targets need not be members any more."""
        if not user_ids:
            raise NoUserIDsProvidedError()

        task = await self._get_task_as_creator(task_id, actor_id)
        await self.tasks.unassign(task.id, list(dict.fromkeys(user_ids)))
        return await self.get_task(task.id)

    # -----------------------------------------------------------------------
    # Toggle Status
    # -----------------------------------------------------------------------

    async def toggle_task_status(self, task_id: UUID, actor_id: UUID) -> Task:
        """Flip TODO <-> DONE. Allowed for the creator and any assignee."""
        task = await self.get_task(task_id)
        if task.creator_id != actor_id and not await self.tasks.is_assigned(task.id, actor_id):
            raise TaskPermissionDeniedError()

        task.status = task.status.toggled()
        await self.tasks.save(task)
        return await self.get_task(task.id)

    # -----------------------------------------------------------------------
    # AI Generation
    # -----------------------------------------------------------------------

    async def generate_tasks(
        self,
        text: str,
        actor_id: UUID,
        organization_id: UUID | None = None,
    ) -> list[GeneratedTask]:
        """
        Turn free text into sanitized task suggestions. Nothing is persisted.

        Candidates with a blank title are dropped. A due date more than 24
        hours in the past is treated as a hallucination and cleared.
        """
        if self.extractor is None:
            raise AIServiceNotConfiguredError()

        if organization_id is not None:
            await self.membership.ensure_member(organization_id, actor_id)

        now = self.clock()
        try:
            candidates = await asyncio.wait_for(
                self.extractor.extract_tasks(text, now), timeout=self.ai_timeout
            )
        except TimeoutError as e:
            logger.warning("Task extraction timed out after %.1fs", self.ai_timeout)
            raise TaskGenerationError("task extraction timed out") from e
        except TaskExtractionError as e:
            logger.warning("Task extraction failed: %s", e)
            raise TaskGenerationError(f"task extraction failed: {e}") from e
        except Exception as e:
            logger.warning("Task extractor raised %s", type(e).__name__, exc_info=True)
            raise TaskGenerationError("task extraction failed") from e

        if not candidates:
            raise AINoTasksGeneratedError()
        if len(candidates) > self.max_generated_tasks:
            raise AITooManyTasksError(
                f"Generated {len(candidates)} tasks, the limit is {self.max_generated_tasks}"
            )

        cutoff = now - STALE_DUE_DATE_WINDOW
        valid: list[GeneratedTask] = []
        for candidate in candidates:
            if not candidate.title.strip():
                continue
            due_date = candidate.due_date
            if due_date is not None:
                if due_date.tzinfo is None:
                    due_date = due_date.replace(tzinfo=now.tzinfo)
                if due_date < cutoff:
                    due_date = None
            valid.append(candidate.model_copy(update={"due_date": due_date}))

        if not valid:
            raise AINoValidTasksError()
        return valid

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    async def _get_task_as_creator(self, task_id: UUID, actor_id: UUID) -> Task:
        task = await self.get_task(task_id)
        if task.creator_id != actor_id:
            raise NotTaskCreatorError()
        return task
