"""
Pydantic models for buyers.

Buyers rent numbers through a chat integration, which is why every
buyer carries a unique ``chat_id``.  The ban flag is managed through
dedicated operations (ban, unban, stopwork) rather than the generic
update schema.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class BuyerBase(BaseModel):
    name: str = Field(..., min_length=1, description="Display name")
    mode: str = Field(..., description="Operating mode tag, e.g. auto or manual")
    max_numbers_per_branch: int = Field(10, gt=0, description="Rental cap per branch")


class BuyerCreate(BuyerBase):
    """Schema for registering a buyer."""

    chat_id: str = Field(..., min_length=1, description="Chat identifier in the messenger")


class BuyerUpdate(BaseModel):
    """Schema for updating a buyer.  Omitted fields keep their value."""

    name: Optional[str] = Field(None, min_length=1)
    mode: Optional[str] = None
    max_numbers_per_branch: Optional[int] = Field(None, gt=0)


class BuyerBan(BaseModel):
    # May be empty: an explicit ban with an empty reason is allowed.
    ban_reason: str = Field(..., description="Reason shown to administrators")


class BuyerRead(BuyerBase):
    """Schema for reading a buyer."""

    id: int
    chat_id: str
    is_banned: bool = False
    ban_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True,
    }


class StopworkResult(BaseModel):
    """Outcome of a stopwork request.

    A refused stopwork (unknown or already banned buyer) is reported
    with ``success=False`` rather than raised.
    """

    success: bool
    message: str
    reclaimed_numbers: int = 0
