"""Rolekeeper FastAPI application entry point."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .common.logging import log_context, setup_logging
from .features.principals import PrincipalService, RequestHooks
from .features.roles import RolesModule
from .infra.db import Database, DatabaseConfig, SqlPrincipalStore, SqlRoleStore, SqlSessionStore
from .settings import Settings, get_settings
from .web import register_exception_handlers, register_middleware, router

logger = logging.getLogger(__name__)


def create_application_lifespan(settings: Settings):
    """Lifespan that opens the database and boots the roles module."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        database = Database()
        database.init(DatabaseConfig.from_settings(settings))
        await database.create_schema()

        roles = SqlRoleStore(database.sessionmaker)
        principals = SqlPrincipalStore(database.sessionmaker)
        sessions = SqlSessionStore(database.sessionmaker)
        principal_service = PrincipalService(store=principals)
        principal_hooks = RequestHooks("principals")

        roles_module = RolesModule(
            settings=settings,
            roles=roles,
            principals=principals,
            sessions=sessions,
            principal_pipeline=principal_service,
            request_pipelines=[principal_hooks],
        )
        await roles_module.init()

        app.state.database = database
        app.state.role_store = roles
        app.state.principal_store = principals
        app.state.session_store = sessions
        app.state.principal_service = principal_service
        app.state.principal_hooks = principal_hooks
        app.state.roles_module = roles_module
        logger.info("app.startup", extra=log_context(app_version=settings.app_version))
        try:
            yield
        finally:
            await database.dispose()
            logger.info("app.shutdown")

    return lifespan


def create_app(settings: Settings | None = None) -> FastAPI:
    """Return a configured FastAPI application."""

    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=create_application_lifespan(settings),
    )
    app.state.settings = settings

    register_middleware(app)
    register_exception_handlers(app)
    app.include_router(router)
    return app


__all__ = ["create_app", "create_application_lifespan"]
