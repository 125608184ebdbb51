"""
==============================================================================
Workflow State Module
==============================================================================

View enumeration, allowed transitions and the session form.

View Machine:
-------------
    WELCOME  --select_role()-->                 SCANNER
    SCANNER  --handle_decode() | view_cart()--> CART
    SCANNER  --cancel_scan()-->                 WELCOME if cart empty, else CART
    CART     --scan_another()-->                SCANNER
    CART     --submit() succeeded-->            WELCOME
    any      --toggle_admin()-->                ADMIN
    ADMIN    --toggle_admin()-->                view it was entered from

Leaving ADMIN never moves a session past its cart: a cart only reaches
WELCOME through a successful submit.

==============================================================================
"""

from __future__ import annotations

import enum
from typing import Dict, FrozenSet, Optional, Tuple

from app.db.models import MemberRole


class View(str, enum.Enum):
    """Screens a session can be on."""

    WELCOME = "welcome"
    SCANNER = "scanner"
    CART = "cart"
    ADMIN = "admin"

    def __str__(self) -> str:
        return self.value


ALLOWED_TRANSITIONS: Dict[View, FrozenSet[View]] = {
    View.WELCOME: frozenset({View.SCANNER, View.ADMIN}),
    View.SCANNER: frozenset({View.CART, View.WELCOME, View.ADMIN}),
    View.CART: frozenset({View.SCANNER, View.WELCOME, View.ADMIN}),
    View.ADMIN: frozenset({View.WELCOME, View.SCANNER, View.CART}),
}


def can_transition(current: View, target: View) -> bool:
    """Check the transition table."""
    return target in ALLOWED_TRANSITIONS[current]


class SessionFormState:
    """
    Role and member identifiers for the current session.

    Example:
        >>> form = SessionFormState()
        >>> form.update(" Ravi ", " m-001 ")
        >>> form.normalized()
        ('Ravi', 'M-001')
    """

    def __init__(self) -> None:
        self.role: Optional[MemberRole] = None
        self.member_name: str = ""
        self.member_id: str = ""

    def update(
        self,
        member_name: Optional[str] = None,
        member_id: Optional[str] = None
    ) -> None:
        """Set raw field values. None leaves a field unchanged."""
        if member_name is not None:
            self.member_name = member_name
        if member_id is not None:
            self.member_id = member_id

    def normalized(self) -> Tuple[str, str]:
        """Trimmed name and trimmed, uppercased member ID."""
        return self.member_name.strip(), self.member_id.strip().upper()

    def is_complete(self) -> bool:
        name, member_id = self.normalized()
        return bool(name) and bool(member_id)

    def reset(self) -> None:
        self.role = None
        self.member_name = ""
        self.member_id = ""

    def to_dict(self) -> Dict:
        return {
            "role": self.role.value if self.role else None,
            "member_name": self.member_name,
            "member_id": self.member_id,
        }
