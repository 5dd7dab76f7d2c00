"""
Repository ports.

One abstract interface per entity family. Services depend on these, never on
a session directly; the SQLAlchemy implementations live next to this module
and tests substitute in-memory fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from tasknest.models.member import OrganizationMember
from tasknest.models.organization import Organization
from tasknest.models.task import Task, TaskStatus
from tasknest.models.user import User


@dataclass
class TaskFilter:
    """
    Criteria for listing tasks.

    ``due_from``/``due_until`` bound a half-open window ``[from, until)``.
    Pagination applies only when both ``page`` and ``page_size`` are positive.
    """

    organization_ids: list[UUID] = field(default_factory=list)
    assigned_to: UUID | None = None
    due_from: datetime | None = None
    due_until: datetime | None = None
    status: TaskStatus | None = None
    sort_by_due_date: bool = False
    page: int = 0
    page_size: int = 0

    @property
    def paginated(self) -> bool:
        return self.page > 0 and self.page_size > 0

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class TaskRepository(ABC):
    """Persistence for tasks and their assignment rows."""

    @abstractmethod
    async def create(self, task: Task) -> Task:
        """Persist a new task."""

    @abstractmethod
    async def find_by_id(self, task_id: UUID) -> Task | None:
        """Load a task with creator, organization and assignments (with users)."""

    @abstractmethod
    async def list_tasks(self, criteria: TaskFilter) -> tuple[list[Task], int]:
        """Return the requested page and the total count ignoring pagination."""

    @abstractmethod
    async def save(self, task: Task) -> Task:
        """Write pending field changes of an existing task."""

    @abstractmethod
    async def delete(self, task_id: UUID) -> None:
        """Delete the task's assignments, then the task."""

    @abstractmethod
    async def is_assigned(self, task_id: UUID, user_id: UUID) -> bool:
        ...

    @abstractmethod
    async def assign(self, task_id: UUID, user_ids: list[UUID]) -> None:
        """Insert assignment rows, ignoring pairs that already exist."""

    @abstractmethod
    async def unassign(self, task_id: UUID, user_ids: list[UUID]) -> None:
        """Delete assignment rows. Missing rows are ignored."""


class OrganizationRepository(ABC):
    """Persistence for organizations and membership rows."""

    @abstractmethod
    async def create(self, organization: Organization) -> Organization:
        ...

    @abstractmethod
    async def find_by_id(self, organization_id: UUID) -> Organization | None:
        ...

    @abstractmethod
    async def find_by_invite_code(self, invite_code: str) -> Organization | None:
        ...

    @abstractmethod
    async def save(self, organization: Organization) -> Organization:
        ...

    @abstractmethod
    async def delete(self, organization_id: UUID) -> None:
        """Delete the organization's task assignments, tasks, memberships, then itself."""

    @abstractmethod
    async def add_member(self, member: OrganizationMember) -> OrganizationMember:
        ...

    @abstractmethod
    async def find_member(
        self, organization_id: UUID, user_id: UUID
    ) -> OrganizationMember | None:
        ...

    @abstractmethod
    async def remove_member(self, organization_id: UUID, user_id: UUID) -> None:
        ...

    @abstractmethod
    async def list_members(self, organization_id: UUID) -> list[OrganizationMember]:
        """Membership rows of an organization with ``user`` loaded."""

    @abstractmethod
    async def list_memberships_for_user(self, user_id: UUID) -> list[OrganizationMember]:
        """Membership rows of a user with ``organization`` loaded."""

    @abstractmethod
    async def list_organization_ids_for_user(self, user_id: UUID) -> list[UUID]:
        ...

    @abstractmethod
    async def count_members(self, organization_id: UUID, user_ids: list[UUID]) -> int:
        """How many of ``user_ids`` are existing users with a membership row."""


class UserRepository(ABC):
    """Persistence for user accounts."""

    @abstractmethod
    async def find_by_id(self, user_id: UUID) -> User | None:
        ...

    @abstractmethod
    async def find_by_username(self, username: str) -> User | None:
        ...

    @abstractmethod
    async def create_with_personal_organization(
        self, user: User, organization: Organization
    ) -> User:
        """
        Create the user, the organization and an owner membership atomically.

        Raises:
            SignupFailedError: naming the step that failed; nothing is persisted.
        """
