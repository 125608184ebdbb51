"""
==============================================================================
Record Schemas Module
==============================================================================

Shapes of submitted records going into and coming out of the gateway.

==============================================================================
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from app.db.models import MemberRole


class RecordCreate(BaseModel):
    """One cart item ready to be persisted."""
    model_config = ConfigDict(frozen=True)

    product_name: str
    batch_number: str
    bag_number: str
    product_id: str
    quantity: str
    member_name: str = Field(..., min_length=1)
    member_id: str = Field(..., min_length=1)
    role: MemberRole
    session_uid: str = Field(..., min_length=1)


class RecordOut(BaseModel):
    """A persisted record as delivered to the admin feed."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_name: str
    batch_number: str
    bag_number: str
    product_id: str
    quantity: str
    member_name: str
    member_id: str
    role: MemberRole
    timestamp: int
    session_uid: str

    @classmethod
    def from_model(cls, record) -> "RecordOut":
        return cls.model_validate(record)


class RecordListResponse(BaseModel):
    """Admin listing, newest first."""
    success: bool = Field(default=True)
    records: List[RecordOut]
    total: int
