"""
Billing endpoints for API v1.

The daily invoice is computed on request from rental timestamps and
is not stored.  Billing records are append-only.
"""

from typing import List

from fastapi import APIRouter, HTTPException, Query, status

from number_market_api.app.core.exceptions import NotFoundError
from number_market_api.app.schemas.billing import (
    BillingRecordCreate,
    BillingRecordRead,
    DailyInvoice,
)
from number_market_api.app.services.billing_service import BillingService

router = APIRouter()


@router.get("/invoice", response_model=DailyInvoice)
async def generate_daily_invoice(
    buyer_id: int = Query(..., description="ID покупателя"),
    date: str = Query(..., description="День в формате YYYY-MM-DD"),
) -> DailyInvoice:
    """Сформировать счёт покупателя за календарный день.

    В счёт попадают все номера покупателя, у которых ``rented_at``
    приходится на указанный день, независимо от текущего статуса.
    """
    try:
        return await BillingService.generate_daily_invoice(buyer_id, date)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/history/{buyer_id}", response_model=List[BillingRecordRead])
async def get_payment_history(
    buyer_id: int,
    limit: int = Query(50, gt=0),
    offset: int = Query(0, ge=0),
) -> List[BillingRecordRead]:
    return await BillingService.get_payment_history(buyer_id, limit=limit, offset=offset)


@router.post("/records", response_model=BillingRecordRead, status_code=status.HTTP_201_CREATED)
async def create_billing_record(record: BillingRecordCreate) -> BillingRecordRead:
    try:
        return await BillingService.create_billing_record(record)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
