"""
Pydantic models for rentable phone numbers.

A number moves through the rental lifecycle described by
``NumberStatus``.  ``buyer_id`` and ``seller_id`` are plain lookup
references; a number does not own the buyer or seller it points at.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class NumberStatus(str, Enum):
    """Rental lifecycle status of a number."""

    AVAILABLE = "available"
    RENTED = "rented"
    ACCEPTED = "accepted"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RETURNED_TO_QUEUE = "returned_to_queue"


class NumberBase(BaseModel):
    phone_number: str = Field(..., min_length=1, description="Phone number in international format")
    country: str = Field(..., min_length=1, description="Country code, e.g. US")
    type: str = Field(..., min_length=1, description="Free-form number type tag, e.g. SMS")
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, description="Rental price")


class NumberCreate(NumberBase):
    """Schema for adding a number to the inventory."""

    status: NumberStatus = NumberStatus.AVAILABLE
    seller_id: Optional[int] = Field(None, description="Seller who supplied the number")


class NumberStatusUpdate(BaseModel):
    """Requested lifecycle status.  Any status may follow any other."""

    status: NumberStatus


class NumberFilter(BaseModel):
    """Search criteria for numbers.

    Every field is optional and all supplied fields are combined with
    AND.  ``phone_number`` is a case-insensitive substring match; the
    other fields must match exactly.
    """

    country: Optional[str] = None
    type: Optional[str] = None
    status: Optional[NumberStatus] = None
    buyer_id: Optional[int] = None
    seller_id: Optional[int] = None
    phone_number: Optional[str] = None


class NumberRead(NumberBase):
    """Schema for reading a number."""

    id: int
    status: NumberStatus
    buyer_id: Optional[int] = None
    seller_id: Optional[int] = None
    rented_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True,
    }
