"""HTTP transport for the auth flows."""

from .error_handling import register_exception_handlers
from .routes import router

__all__ = ["register_exception_handlers", "router"]
