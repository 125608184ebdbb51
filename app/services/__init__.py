"""
==============================================================================
Services Package - Session and Record Store Layer
==============================================================================

Service classes behind the workflow controller.

This package provides:
- SqlSubmissionGateway: Shared record store with a change feed
- AnonymousIdentity: Session identity used to tag submitted records
- SessionRegistry: Live workflow sessions keyed by session uid
- SessionSweeper: Background expiry of idle sessions

session_service depends on the workflow controller, which itself uses the
gateway and identity interfaces; import it as app.services.session_service.

Architecture:
-------------
    ┌─────────────────┐
    │  API / WebSocket│
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │ SessionRegistry │  ← one WorkflowController per session
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │ SubmissionGateway│ ← shared by every session
    └─────────────────┘

Usage:
------
    from app.services.session_service import get_session_registry

    uid, token, entry = get_session_registry().create()
    entry.controller.select_role("applicator")

==============================================================================
"""

from .identity_service import AnonymousIdentity, IdentityError, IdentityProvider
from .submission_gateway import SqlSubmissionGateway, SubmissionGateway

__all__ = [
    "AnonymousIdentity",
    "IdentityError",
    "IdentityProvider",
    "SqlSubmissionGateway",
    "SubmissionGateway",
]
