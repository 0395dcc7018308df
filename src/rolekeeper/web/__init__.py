"""FastAPI integration: routes, middleware and exception handlers."""

from .errors import register_exception_handlers
from .middleware import register_middleware
from .routes import router

__all__ = ["register_exception_handlers", "register_middleware", "router"]
