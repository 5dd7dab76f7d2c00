"""
Organization ORM model.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tasknest.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from tasknest.models.member import OrganizationMember
    from tasknest.models.task import Task


class Organization(Base, UUIDMixin, TimestampMixin):
    """A tenant. Tasks and memberships belong to exactly one organization."""

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    invite_code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)

    # Relationships
    members: Mapped[list[OrganizationMember]] = relationship(
        "OrganizationMember", back_populates="organization"
    )
    tasks: Mapped[list[Task]] = relationship("Task", back_populates="organization")

    def __repr__(self) -> str:
        return f"<Organization id={self.id} name={self.name!r}>"
