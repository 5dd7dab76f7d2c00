"""
SQLAlchemy ORM models.

All models imported here to ensure they are registered with Base.metadata.
Import order matters: base models before dependent models.
"""

from tasknest.models.base import Base, TimestampMixin, UUIDMixin
from tasknest.models.member import OrganizationMember, OrgRole
from tasknest.models.organization import Organization
from tasknest.models.user import User
from tasknest.models.task import Task, TaskStatus
from tasknest.models.task_assignment import TaskAssignment

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "Organization",
    "User",
    "OrganizationMember",
    "OrgRole",
    "Task",
    "TaskStatus",
    "TaskAssignment",
]
