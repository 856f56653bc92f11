"""
Pydantic models for billing.

``BillingRecordRead`` mirrors the append-only ``billing_records``
table.  ``DailyInvoice`` is never stored: it is recomputed from number
rentals every time it is requested.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class BillingRecordCreate(BaseModel):
    buyer_id: int
    amount: Decimal = Field(..., max_digits=10, decimal_places=2)
    description: str = Field(..., min_length=1)
    billing_date: datetime


class BillingRecordRead(BillingRecordCreate):
    id: int
    created_at: datetime

    model_config = {
        "from_attributes": True,
    }


class InvoiceNumber(BaseModel):
    """A number line on a daily invoice."""

    id: int
    phone_number: str
    country: str
    type: str
    price: Decimal
    rented_at: datetime
    completed_at: Optional[datetime] = None


class DailyInvoice(BaseModel):
    buyer_id: int
    buyer_name: str
    date: str = Field(..., description="Calendar day, YYYY-MM-DD")
    total_numbers_rented: int
    total_amount: Decimal
    numbers: List[InvoiceNumber] = Field(default_factory=list)
