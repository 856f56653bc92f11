"""
Buyer endpoints for API v1.

Registration, lookup and update of buyers, plus the moderation
actions: ban, unban and stopwork.  A refused stopwork is a normal
outcome and is returned with ``success: false`` and status 200.
"""

import sqlite3
from typing import List

from fastapi import APIRouter, HTTPException, Path, status

from number_market_api.app.core.exceptions import NotFoundError
from number_market_api.app.schemas.buyer import (
    BuyerBan,
    BuyerCreate,
    BuyerRead,
    BuyerUpdate,
    StopworkResult,
)
from number_market_api.app.services.buyer_service import BuyerService

router = APIRouter()


@router.post("/", response_model=BuyerRead, status_code=status.HTTP_201_CREATED)
async def create_buyer(buyer: BuyerCreate) -> BuyerRead:
    """Зарегистрировать нового покупателя."""
    try:
        return await BuyerService.create_buyer(buyer)
    except sqlite3.IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Buyer with chat_id {buyer.chat_id} already exists",
        )


@router.get("/", response_model=List[BuyerRead])
async def list_buyers() -> List[BuyerRead]:
    return await BuyerService.list_buyers()


@router.get("/{buyer_id}", response_model=BuyerRead)
async def get_buyer(buyer_id: int = Path(..., description="ID покупателя")) -> BuyerRead:
    buyer = await BuyerService.get_buyer(buyer_id)
    if buyer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Buyer {buyer_id} not found")
    return buyer


@router.patch("/{buyer_id}", response_model=BuyerRead)
async def update_buyer(
    updates: BuyerUpdate,
    buyer_id: int = Path(..., description="ID покупателя"),
) -> BuyerRead:
    try:
        return await BuyerService.update_buyer(buyer_id, updates)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/{buyer_id}/ban", response_model=BuyerRead)
async def ban_buyer(
    payload: BuyerBan,
    buyer_id: int = Path(..., description="ID покупателя"),
) -> BuyerRead:
    try:
        return await BuyerService.ban_buyer(buyer_id, payload.ban_reason)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/{buyer_id}/unban", response_model=BuyerRead)
async def unban_buyer(buyer_id: int = Path(..., description="ID покупателя")) -> BuyerRead:
    try:
        return await BuyerService.unban_buyer(buyer_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/{buyer_id}/stopwork", response_model=StopworkResult)
async def stopwork_buyer(buyer_id: int = Path(..., description="ID покупателя")) -> StopworkResult:
    """Применить stopwork: вернуть принятые номера в очередь и заблокировать покупателя.

    Обе части выполняются в одной транзакции.  Если покупатель не
    найден или уже заблокирован, возвращается ``success: false`` и
    ничего не изменяется.
    """
    return await BuyerService.stopwork(buyer_id)
