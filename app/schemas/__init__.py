"""
==============================================================================
Schemas Package - Pydantic Models
==============================================================================

Request and response schemas using Pydantic for validation.

This package provides:
- Common: Shared response schemas
- Scan: Decoded items and scan requests
- Record: Submitted records going into and out of the record store
- Session: Workflow session state and requests

==============================================================================
"""

from .common import MessageResponse
from .scan import ScannedItem, ScanTextRequest, CameraErrorRequest
from .record import RecordCreate, RecordOut, RecordListResponse
from .session import (
    RoleSelectRequest,
    MemberFormUpdate,
    NotificationOut,
    SessionState,
    SessionStateResponse,
    SessionCreatedResponse,
    SubmitResponse,
)

__all__ = [
    # Common
    "MessageResponse",
    # Scan
    "ScannedItem",
    "ScanTextRequest",
    "CameraErrorRequest",
    # Record
    "RecordCreate",
    "RecordOut",
    "RecordListResponse",
    # Session
    "RoleSelectRequest",
    "MemberFormUpdate",
    "NotificationOut",
    "SessionState",
    "SessionStateResponse",
    "SessionCreatedResponse",
    "SubmitResponse",
]
