"""
==============================================================================
Session Schemas Module
==============================================================================

Request and response bodies for the workflow session endpoints.

==============================================================================
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from app.db.models import MemberRole
from app.schemas.scan import ScannedItem
from app.workflow.state import View


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class RoleSelectRequest(BaseModel):
    """Role chosen on the welcome screen."""
    role: MemberRole


class MemberFormUpdate(BaseModel):
    """Member identifiers typed on the cart screen. Omitted fields are kept."""
    member_name: Optional[str] = Field(default=None, max_length=255)
    member_id: Optional[str] = Field(default=None, max_length=100)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class NotificationOut(BaseModel):
    """Pending user-facing notification."""
    id: int
    message: str
    severity: str


class SessionState(BaseModel):
    """Everything a client needs to render the current screen."""
    view: View
    role: Optional[MemberRole] = None
    member_name: str = ""
    member_id: str = ""
    cart: List[ScannedItem] = Field(default_factory=list)
    cart_count: int = Field(default=0, ge=0)
    submitting: bool = False
    notifications: List[NotificationOut] = Field(default_factory=list)


class SessionStateResponse(BaseModel):
    """Single session state response."""
    success: bool = Field(default=True)
    state: SessionState


class SessionCreatedResponse(BaseModel):
    """New anonymous session."""
    success: bool = Field(default=True)
    token: str
    token_type: str = Field(default="bearer")
    expires_in: int
    state: SessionState


class SubmitResponse(BaseModel):
    """Outcome of a submission attempt."""
    success: bool
    submitted: int = Field(default=0, ge=0)
    state: SessionState

