"""
==============================================================================
API v1 Endpoints
==============================================================================

Version 1 of the REST API.

Routers:
--------
- health: Health check endpoints
- sessions: Scan → cart → submit workflow and admin view

==============================================================================
"""

from . import health, sessions

__all__ = ["health", "sessions"]
