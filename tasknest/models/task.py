"""
Task ORM model.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tasknest.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from tasknest.models.organization import Organization
    from tasknest.models.task_assignment import TaskAssignment
    from tasknest.models.user import User


class TaskStatus(str, enum.Enum):
    TODO = "TODO"
    DONE = "DONE"

    def toggled(self) -> TaskStatus:
        return TaskStatus.DONE if self is TaskStatus.TODO else TaskStatus.TODO


class Task(Base, UUIDMixin, TimestampMixin):
    """A unit of work inside one organization."""

    __tablename__ = "tasks"

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    creator_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[TaskStatus] = mapped_column(
        Enum(TaskStatus, name="task_status", native_enum=False, length=16),
        nullable=False,
        default=TaskStatus.TODO,
        index=True,
    )
    due_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )

    # Relationships
    creator: Mapped[User] = relationship("User", foreign_keys=[creator_id])
    organization: Mapped[Organization] = relationship(
        "Organization", back_populates="tasks"
    )
    assignments: Mapped[list[TaskAssignment]] = relationship(
        "TaskAssignment", back_populates="task", order_by="TaskAssignment.created_at"
    )

    def __repr__(self) -> str:
        return f"<Task id={self.id} organization_id={self.organization_id} status={self.status}>"
