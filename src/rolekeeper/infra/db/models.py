"""Tables backing the SQL store adapters."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


def generate_id() -> str:
    return uuid4().hex


def utc_now() -> datetime:
    return datetime.now(UTC)


class RoleRecord(Base):
    """Persisted role; ``short_name`` is unique."""

    __tablename__ = "roles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    short_name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    display_name: Mapped[str] = mapped_column(String(150), nullable=False)
    extends: Mapped[str | None] = mapped_column(String(100), nullable=True)
    scopes: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    def document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "short_name": self.short_name,
            "display_name": self.display_name,
            "extends": self.extends,
            "scopes": list(self.scopes or []),
        }


class PrincipalRecord(Base):
    """Principal with the ids of the roles it holds."""

    __tablename__ = "principals"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    auth_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    roles: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    def document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "auth_type": self.auth_type,
            "roles": list(self.roles or []),
        }


class AuthSessionRecord(Base):
    """Issued session token; deleting the row revokes the session."""

    __tablename__ = "auth_sessions"

    token: Mapped[str] = mapped_column(String(64), primary_key=True)
    principal_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )


__all__ = ["AuthSessionRecord", "PrincipalRecord", "RoleRecord", "generate_id"]
