"""
==============================================================================
Main API Router
==============================================================================

Combines all v1 API routes under /api/v1 prefix.

==============================================================================
"""

from fastapi import APIRouter

from app.api.v1 import health, sessions


class MainAPIRouter:
    """
    Main API router combining all versioned routes.

    Provides a single entry point for all REST endpoints; the WebSocket
    routes are mounted separately in app.main.
    """

    def __init__(self):
        self._router = APIRouter(prefix="/api/v1")
        self._include_routers()

    def _include_routers(self) -> None:
        """Include all v1 routers."""
        self._router.include_router(health.router)
        self._router.include_router(sessions.router)

    @property
    def router(self) -> APIRouter:
        return self._router


# Create main API router instance
api_router = MainAPIRouter().router
