"""
==============================================================================
WebSocket Package
==============================================================================

Real-time WebSocket handlers.

Handlers:
---------
- scanner: Camera frames → QR decode → cart
- admin: Live feed of submitted records

==============================================================================
"""

from .scanner import router as scanner_router
from .admin import router as admin_router

__all__ = ["scanner_router", "admin_router"]
