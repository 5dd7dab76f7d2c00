"""
OrganizationMember ORM model.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, Enum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tasknest.models.base import Base, utcnow

if TYPE_CHECKING:
    from tasknest.models.organization import Organization
    from tasknest.models.user import User


class OrgRole(str, enum.Enum):
    """Organization member role enumeration."""

    owner = "owner"
    member = "member"


class OrganizationMember(Base):
    """Join table linking users to organizations with a role. One row per pair."""

    __tablename__ = "organization_members"

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    role: Mapped[OrgRole] = mapped_column(
        Enum(OrgRole, name="org_role", native_enum=False, length=16),
        nullable=False,
        default=OrgRole.member,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    # Relationships
    organization: Mapped[Organization] = relationship(
        "Organization", back_populates="members"
    )
    user: Mapped[User] = relationship("User", back_populates="memberships")

    def __repr__(self) -> str:
        return (
            f"<OrganizationMember organization_id={self.organization_id} "
            f"user_id={self.user_id} role={self.role}>"
        )
