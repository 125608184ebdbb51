"""
==============================================================================
FastAPI Dependencies Module
==============================================================================

Dependency injection for session lookup.

Dependency Hierarchy:
--------------------
            ┌──────────────────────┐
            │ get_session_registry │
            └──────────┬───────────┘
                       │
         ┌─────────────┴─────────────┐
         │                           │
┌────────▼────────┐        ┌─────────▼──────────┐
│ get_session     │        │ WebSocket handlers │
│ (Bearer header) │        │ (?token= query)    │
└────────┬────────┘        └────────────────────┘
         │
┌────────▼────────┐
│ get_controller  │
└─────────────────┘

Usage Examples:
--------------
    @router.get("/session")
    async def state(entry: SessionEntry = Depends(get_session)):
        return entry.controller.snapshot()

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.db.database import get_db
from app.services.session_service import (
    SessionEntry,
    SessionRegistry,
    get_session_registry,
)
from app.workflow.controller import WorkflowController


# Module logger
logger = logging.getLogger(__name__)

# HTTP Bearer security scheme for Swagger UI
security_scheme = HTTPBearer(auto_error=False)


async def get_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    registry: SessionRegistry = Depends(get_session_registry)
) -> SessionEntry:
    """
    Resolve the session named by the Authorization header.

    Raises:
        AppException: TOKEN_MISSING, TOKEN_INVALID or SESSION_NOT_FOUND
    """
    token = credentials.credentials if credentials else None
    return registry.resolve_token(token)


async def get_controller(
    entry: SessionEntry = Depends(get_session)
) -> WorkflowController:
    """Shortcut to the workflow controller of the current session."""
    return entry.controller


__all__ = [
    "get_db",
    "get_session",
    "get_controller",
    "get_session_registry",
    "security_scheme",
]
