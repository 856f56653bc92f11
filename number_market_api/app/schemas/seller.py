"""
Pydantic models for sellers.

Sellers supply numbers to the marketplace.  They are identified by
their Telegram id and carry a rounding bonus balance that is kept as a
two-place decimal.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field


class SellerStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    BANNED = "banned"


class SellerCreate(BaseModel):
    """Schema for registering a seller.

    A seller cannot be created already banned; use the ban operation.
    """

    telegram_id: str = Field(..., min_length=1)
    status: Literal["active", "inactive"] = "active"
    status_comment: Optional[str] = None
    permanent_rounding_bonus: Decimal = Field(Decimal("0"), max_digits=10, decimal_places=2)


class SellerUpdate(BaseModel):
    status: Optional[SellerStatus] = None
    status_comment: Optional[str] = None
    permanent_rounding_bonus: Optional[Decimal] = Field(None, max_digits=10, decimal_places=2)


class SellerBan(BaseModel):
    status_comment: Optional[str] = None


class SellerRead(BaseModel):
    id: int
    telegram_id: str
    status: SellerStatus
    status_comment: Optional[str] = None
    permanent_rounding_bonus: Decimal
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True,
    }
