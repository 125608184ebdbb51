"""
==============================================================================
Core Package
==============================================================================

Core utilities and infrastructure for the application.

Modules:
--------
- exceptions: AppException class and error factory functions
- security: SecurityManager for anonymous session tokens
- dependencies: FastAPI dependency injection functions

Usage:
------
    from app.core import AppException, get_security_manager

    from app.core import exceptions
    raise exceptions.token_invalid()

==============================================================================
"""

from .exceptions import (
    AppException,
    register_exception_handlers,
)
from .security import SecurityManager, get_security_manager

__all__ = [
    "AppException",
    "register_exception_handlers",
    "SecurityManager",
    "get_security_manager",
]
