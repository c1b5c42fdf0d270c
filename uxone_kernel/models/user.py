"""
Module: uxone_kernel.models.user
Responsibility: Minimal user directory used to find department heads and
    to build ``Actor`` objects.  Department and role are stored as their
    canonical codes (see ``domain/org.py``).
"""

from __future__ import annotations

from sqlalchemy import Boolean, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from uxone_kernel.db.base import TrackedBase
from uxone_kernel.domain.org import Actor, Department, Role


class UserModel(TrackedBase):
    """A UXOne user."""

    __tablename__ = "users"

    __table_args__ = (
        Index("ix_users_department_role", "department", "role"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    department: Mapped[str | None] = mapped_column(String(20), nullable=True)
    role: Mapped[str] = mapped_column(String(50), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<User {self.name} {self.department}/{self.role}>"

    def to_actor(self) -> Actor:
        return Actor(
            user_id=self.id,
            department=Department(self.department) if self.department else None,
            role=Role(self.role),
            name=self.name,
        )
