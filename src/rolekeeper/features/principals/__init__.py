"""Principal creation and request pipelines consumed by the roles module."""

from .pipeline import RequestHooks
from .service import PrincipalService

__all__ = ["PrincipalService", "RequestHooks"]
