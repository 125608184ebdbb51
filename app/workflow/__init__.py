"""
==============================================================================
Workflow Package
==============================================================================

Session-level scan → cart → submit workflow.

Modules:
--------
- state: View enum, transition table, SessionFormState
- notifications: Notification values and NotificationQueue
- cart: CartStore
- controller: WorkflowController (import directly from app.workflow.controller)

==============================================================================
"""

from .state import ALLOWED_TRANSITIONS, SessionFormState, View, can_transition
from .notifications import Notification, NotificationQueue, Severity
from .cart import CartStore

__all__ = [
    "ALLOWED_TRANSITIONS",
    "SessionFormState",
    "View",
    "can_transition",
    "Notification",
    "NotificationQueue",
    "Severity",
    "CartStore",
]
