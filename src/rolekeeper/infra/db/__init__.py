"""SQLAlchemy persistence for roles, principals and auth sessions."""

from .base import NAMING_CONVENTION, Base, metadata
from .database import Database, DatabaseConfig, SessionFactory, build_async_url
from .models import AuthSessionRecord, PrincipalRecord, RoleRecord
from .stores import SqlPrincipalStore, SqlRoleStore, SqlSessionStore

__all__ = [
    "AuthSessionRecord",
    "Base",
    "Database",
    "DatabaseConfig",
    "NAMING_CONVENTION",
    "PrincipalRecord",
    "RoleRecord",
    "SessionFactory",
    "SqlPrincipalStore",
    "SqlRoleStore",
    "SqlSessionStore",
    "build_async_url",
    "metadata",
]
