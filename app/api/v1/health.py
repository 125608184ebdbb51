"""
==============================================================================
Health Check Endpoints
==============================================================================

System health status endpoints for monitoring and orchestration.

==============================================================================
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text

from app.config import get_settings
from app.db.database import get_db
from app.services.session_service import SessionRegistry, get_session_registry


router = APIRouter(prefix="/health", tags=["Health"])


class HealthController:
    """Controller for health check operations."""

    def __init__(self, db: Session, registry: SessionRegistry):
        self._db = db
        self._registry = registry

    def check_database(self) -> str:
        """Check database connectivity."""
        try:
            self._db.execute(text("SELECT 1"))
            return "healthy"
        except Exception:
            return "unhealthy"

    def get_health(self) -> dict:
        """Get full health status."""
        db_status = self.check_database()
        overall = "healthy" if db_status == "healthy" else "degraded"

        return {
            "status": overall,
            "components": {
                "api": "healthy",
                "database": db_status,
            },
            "details": {
                "namespace": get_settings().app_namespace,
                "live_sessions": len(self._registry),
            }
        }


@router.get("")
async def health_check(
    db: Session = Depends(get_db),
    registry: SessionRegistry = Depends(get_session_registry)
):
    """
    Health check endpoint.

    Returns system status including API, database and live session count.
    """
    controller = HealthController(db, registry)
    return controller.get_health()


@router.get("/ready")
async def readiness_check():
    """Readiness probe for container orchestration."""
    return {"ready": True}


@router.get("/live")
async def liveness_check():
    """Liveness probe for container orchestration."""
    return {"alive": True}
