"""
TaskAssignment ORM model.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tasknest.models.base import Base, utcnow

if TYPE_CHECKING:
    from tasknest.models.task import Task
    from tasknest.models.user import User


class TaskAssignment(Base):
    """Links a user to a task. At most one row per (task, user)."""

    __tablename__ = "task_assignments"

    task_id: Mapped[UUID] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    # Relationships
    task: Mapped[Task] = relationship("Task", back_populates="assignments")
    user: Mapped[User] = relationship("User")

    def __repr__(self) -> str:
        return f"<TaskAssignment task_id={self.task_id} user_id={self.user_id}>"
