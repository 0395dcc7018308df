"""SQLAlchemy implementations of the role, principal and session stores.

Every operation opens its own ``AsyncSession`` from the sessionmaker, so
concurrent lookups issued through ``asyncio.gather`` never share a session.
"""

from __future__ import annotations

import secrets
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from rolekeeper.core.errors import StoreConflictError, StoreError
from rolekeeper.core.types import Principal, Role, RoleDefinition
from rolekeeper.infra.memory import matches_filter

from .database import SessionFactory
from .models import AuthSessionRecord, PrincipalRecord, RoleRecord, generate_id

__all__ = ["SqlPrincipalStore", "SqlRoleStore", "SqlSessionStore"]


def _split_filter(
    model: type[RoleRecord] | type[PrincipalRecord],
    filter: Mapping[str, Any] | None,
) -> tuple[list[Any], dict[str, Any]] | None:
    """Split ``filter`` into SQL clauses and a remainder matched in Python.

    Scalar values become ``column == value`` clauses; list values (JSON
    columns) are compared after the fetch. Returns ``None`` when the filter
    names a field the table does not have.
    """

    clauses: list[Any] = []
    remainder: dict[str, Any] = {}
    columns = model.__table__.columns
    for key, value in (filter or {}).items():
        if key not in columns:
            return None
        if isinstance(value, (list, tuple)):
            remainder[key] = value
        elif key == "id":
            clauses.append(columns[key] == str(value))
        else:
            clauses.append(columns[key] == value)
    return clauses, remainder


class SqlRoleStore:
    """Role store backed by the ``roles`` table."""

    def __init__(self, sessionmaker: SessionFactory) -> None:
        self._sessionmaker = sessionmaker

    async def find(
        self,
        filter: Mapping[str, Any] | None = None,
        *,
        limit: int | None = None,
    ) -> list[Role]:
        split = _split_filter(RoleRecord, filter)
        if split is None:
            return []
        clauses, remainder = split

        stmt = select(RoleRecord).where(*clauses)
        if limit is not None and not remainder:
            stmt = stmt.limit(limit)
        async with self._sessionmaker() as session:
            result = await session.execute(stmt)
            documents = [record.document() for record in result.scalars().all()]

        roles = [
            Role.model_validate(document)
            for document in documents
            if matches_filter(document, remainder)
        ]
        return roles if limit is None else roles[:limit]

    async def insert(self, role: RoleDefinition) -> Role:
        record = RoleRecord(
            id=generate_id(),
            short_name=role.short_name,
            display_name=role.display_name,
            extends=role.extends,
            scopes=list(role.scopes),
        )
        try:
            async with self._sessionmaker() as session, session.begin():
                session.add(record)
        except IntegrityError as exc:
            raise StoreConflictError(f"Duplicate short_name '{role.short_name}'") from exc
        return Role.model_validate(record.document())

    async def replace(self, role_id: str, role: RoleDefinition) -> None:
        try:
            async with self._sessionmaker() as session, session.begin():
                record = await session.get(RoleRecord, str(role_id))
                if record is None:
                    raise StoreError(f"Role '{role_id}' does not exist")
                record.short_name = role.short_name
                record.display_name = role.display_name
                record.extends = role.extends
                record.scopes = list(role.scopes)
        except IntegrityError as exc:
            raise StoreConflictError(f"Duplicate short_name '{role.short_name}'") from exc


class SqlPrincipalStore:
    """Principal store backed by the ``principals`` table."""

    def __init__(self, sessionmaker: SessionFactory) -> None:
        self._sessionmaker = sessionmaker

    async def find(
        self,
        filter: Mapping[str, Any],
        *,
        projection: Sequence[str] | None = None,
    ) -> list[Principal]:
        split = _split_filter(PrincipalRecord, filter)
        if split is None:
            return []
        clauses, remainder = split

        async with self._sessionmaker() as session:
            result = await session.execute(select(PrincipalRecord).where(*clauses))
            documents = [record.document() for record in result.scalars().all()]

        found: list[Principal] = []
        for document in documents:
            if not matches_filter(document, remainder):
                continue
            if projection is not None:
                document = {
                    key: value
                    for key, value in document.items()
                    if key == "id" or key in projection
                }
            found.append(Principal.model_validate(document))
        return found

    async def insert(self, data: Mapping[str, Any]) -> Principal:
        principal = Principal.model_validate({"id": generate_id(), **data})
        record = PrincipalRecord(
            id=principal.id,
            auth_type=principal.auth_type,
            roles=list(principal.roles),
        )
        try:
            async with self._sessionmaker() as session, session.begin():
                session.add(record)
        except IntegrityError as exc:
            raise StoreConflictError(f"Duplicate principal id '{principal.id}'") from exc
        return principal


class SqlSessionStore:
    """Session tokens backed by the ``auth_sessions`` table."""

    def __init__(self, sessionmaker: SessionFactory) -> None:
        self._sessionmaker = sessionmaker

    async def issue(self, principal_id: str) -> str:
        token = secrets.token_urlsafe(24)
        async with self._sessionmaker() as session, session.begin():
            session.add(AuthSessionRecord(token=token, principal_id=str(principal_id)))
        return token

    async def active_tokens(self, principal_id: str) -> set[str]:
        stmt = select(AuthSessionRecord.token).where(
            AuthSessionRecord.principal_id == str(principal_id)
        )
        async with self._sessionmaker() as session:
            result = await session.execute(stmt)
            return set(result.scalars().all())

    async def disavow(self, principal_id: str) -> None:
        stmt = delete(AuthSessionRecord).where(
            AuthSessionRecord.principal_id == str(principal_id)
        )
        async with self._sessionmaker() as session, session.begin():
            await session.execute(stmt)
