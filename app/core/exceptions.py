"""
Application Exception Handling

Single AppException class for protocol-level errors with FastAPI integration.

Workflow input, decode and connectivity problems are reported to the user
as notifications instead; see app.workflow.notifications.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class AppException(Exception):
    """
    Unified application exception for all error scenarios.

    Usage:
        raise AppException("Session not found", "SESSION_NOT_FOUND", 404)
        raise AppException("Cannot go to cart", "INVALID_TRANSITION", 409,
                           {"from": "welcome", "to": "cart"})

    Error Codes:
        Session:
            - TOKEN_MISSING (401)
            - TOKEN_INVALID (401)
            - SESSION_NOT_FOUND (404)

        Workflow:
            - INVALID_TRANSITION (409)
            - INVALID_ROLE (400)
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize application exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (e.g., "SESSION_NOT_FOUND")
            status_code: HTTP status code (default: 400)
            details: Additional error context (optional)
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        error_dict = {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "timestamp": self.timestamp
            }
        }

        if self.details:
            error_dict["error"]["details"] = self.details

        return error_dict


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Convert AppException to consistent JSON error response."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)


# ============================================
# CONVENIENCE FACTORY FUNCTIONS
# ============================================

def token_missing() -> AppException:
    """Create missing session token exception."""
    return AppException("Session token required", "TOKEN_MISSING", 401)


def token_invalid() -> AppException:
    """Create invalid token exception."""
    return AppException("Invalid or expired session token", "TOKEN_INVALID", 401)


def session_not_found(session_uid: Optional[str] = None) -> AppException:
    """Create session not found exception."""
    details = {"session_uid": session_uid} if session_uid else {}
    return AppException("Session not found or expired", "SESSION_NOT_FOUND", 404, details)


def invalid_transition(current: str, requested: str) -> AppException:
    """Create invalid view transition exception."""
    return AppException(
        f"Cannot move from '{current}' to '{requested}'",
        "INVALID_TRANSITION",
        409,
        {"current_view": current, "requested_view": requested}
    )


def invalid_role(role: str) -> AppException:
    """Create invalid role exception."""
    return AppException(
        f"Unknown role: {role}",
        "INVALID_ROLE",
        400,
        {"role": role}
    )
