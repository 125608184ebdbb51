"""
==============================================================================
Scan Schemas Module
==============================================================================

Scanned item model plus request bodies for scan-related endpoints.

==============================================================================
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ScannedItem(BaseModel):
    """
    One decoded product scan.

    `temp_id` is assigned by the cart and is never persisted.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    batch: str
    bag: str
    id: str
    qty: str
    temp_id: Optional[str] = None


class ScanTextRequest(BaseModel):
    """Text decoded client-side from a QR code."""
    text: str = Field(..., max_length=4096)


class CameraErrorRequest(BaseModel):
    """Camera failure reported by the browser (e.g. NotAllowedError)."""
    name: str = Field(default="Error", max_length=100)
    message: Optional[str] = Field(default=None, max_length=500)
