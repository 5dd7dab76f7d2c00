"""
User ORM model.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tasknest.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from tasknest.models.member import OrganizationMember


class User(Base, UUIDMixin, TimestampMixin):
    """An account identified by a unique username."""

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Relationships
    memberships: Mapped[list[OrganizationMember]] = relationship(
        "OrganizationMember", back_populates="user"
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r}>"
