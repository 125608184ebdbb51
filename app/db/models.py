"""
==============================================================================
SQLAlchemy ORM Models Module
==============================================================================

ORM model for submitted scan records.

This module defines:
- MemberRole: Enum for the submitting member's role
- SubmittedRecord: One persisted cart item

Database Schema:
---------------

    ┌─────────────────────────────────────────────────────────────────┐
    │                       submitted_records                          │
    ├─────────────────────────────────────────────────────────────────┤
    │ id (INTEGER, PK, AUTO INCREMENT)                                │
    │ namespace (VARCHAR, NOT NULL, INDEX)                            │
    │ product_name (VARCHAR, NOT NULL)                                │
    │ batch_number (VARCHAR, NOT NULL)                                │
    │ bag_number (VARCHAR, NOT NULL)                                  │
    │ product_id (VARCHAR, NOT NULL)                                  │
    │ quantity (VARCHAR, NOT NULL)                                    │
    │ member_name (VARCHAR, NOT NULL)                                 │
    │ member_id (VARCHAR, NOT NULL, uppercase)                        │
    │ role (ENUM: applicator, customer)                               │
    │ timestamp (BIGINT, NOT NULL, INDEX, epoch ms, monotonic)        │
    │ session_uid (VARCHAR, NOT NULL)                                 │
    └─────────────────────────────────────────────────────────────────┘

Records are append-only: nothing in the service updates or deletes them.

=============================================================================
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import BigInteger, Column, Enum, Integer, String

from app.db.database import Base


# =============================================================================
# ENUMS
# =============================================================================

class MemberRole(str, enum.Enum):
    """
    Role chosen on the welcome screen.

    - APPLICATOR: contractor submitting scans on a customer's behalf
    - CUSTOMER: end customer submitting their own scans
    """

    APPLICATOR = "applicator"
    CUSTOMER = "customer"

    def __str__(self) -> str:
        return self.value


# =============================================================================
# SUBMITTED RECORD MODEL
# =============================================================================

class SubmittedRecord(Base):
    """
    One submitted cart item.

    Example:
        >>> record = SubmittedRecord(
        ...     namespace="scantrak",
        ...     product_name="UltraSeal",
        ...     batch_number="B1",
        ...     bag_number="BG1",
        ...     product_id="P1",
        ...     quantity="5KG",
        ...     member_name="Ravi",
        ...     member_id="M-001",
        ...     role=MemberRole.APPLICATOR,
        ...     timestamp=1700000000000,
        ...     session_uid="4f1c...",
        ... )
    """

    __tablename__ = "submitted_records"

    # =========================================================================
    # COLUMNS
    # =========================================================================

    id: int = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        doc="Surrogate key"
    )

    namespace: str = Column(
        String(64),
        nullable=False,
        index=True,
        doc="Application-scoped partition"
    )

    product_name: str = Column(String(255), nullable=False, default="")
    batch_number: str = Column(String(100), nullable=False, default="")
    bag_number: str = Column(String(100), nullable=False, default="")
    product_id: str = Column(String(255), nullable=False, default="")
    quantity: str = Column(String(50), nullable=False, default="")

    member_name: str = Column(
        String(255),
        nullable=False,
        doc="Member name as entered (trimmed)"
    )

    member_id: str = Column(
        String(100),
        nullable=False,
        doc="Member ID, uppercase"
    )

    role: MemberRole = Column(
        Enum(MemberRole),
        nullable=False,
        doc="Submitting member's role"
    )

    timestamp: int = Column(
        BigInteger,
        nullable=False,
        index=True,
        doc="Server-assigned epoch milliseconds, strictly increasing"
    )

    session_uid: str = Column(
        String(64),
        nullable=False,
        doc="Anonymous identity of the submitting session"
    )

    # =========================================================================
    # METHODS
    # =========================================================================

    @property
    def submitted_at(self) -> datetime:
        """Timestamp as an aware UTC datetime."""
        return datetime.fromtimestamp(self.timestamp / 1000, tz=timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Plain representation handed to feed subscribers."""
        return {
            "id": self.id,
            "product_name": self.product_name,
            "batch_number": self.batch_number,
            "bag_number": self.bag_number,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "member_name": self.member_name,
            "member_id": self.member_id,
            "role": self.role.value,
            "timestamp": self.timestamp,
            "session_uid": self.session_uid,
        }

    def __repr__(self) -> str:
        return (
            f"SubmittedRecord(id={self.id!r}, "
            f"product_id={self.product_id!r}, "
            f"member_id={self.member_id!r}, "
            f"timestamp={self.timestamp})"
        )
