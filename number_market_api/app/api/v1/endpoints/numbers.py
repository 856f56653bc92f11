"""
Number endpoints for API v1.

Expose the inventory: registration, lookup, search and lifecycle
status changes.  Status changes are permissive; see
``NumberService.update_status`` for the fields derived from each
status.
"""

import sqlite3
from typing import List

from fastapi import APIRouter, HTTPException, Path, status

from number_market_api.app.core.exceptions import NotFoundError
from number_market_api.app.schemas.number import (
    NumberCreate,
    NumberFilter,
    NumberRead,
    NumberStatusUpdate,
)
from number_market_api.app.services.number_service import NumberService

router = APIRouter()


@router.post("/", response_model=NumberRead, status_code=status.HTTP_201_CREATED)
async def create_number(number: NumberCreate) -> NumberRead:
    """Добавить номер в инвентарь."""
    try:
        return await NumberService.create_number(number)
    except sqlite3.IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Number {number.phone_number} already exists",
        )


@router.get("/", response_model=List[NumberRead])
async def list_numbers() -> List[NumberRead]:
    return await NumberService.list_numbers()


@router.post("/filter", response_model=List[NumberRead])
async def filter_numbers(criteria: NumberFilter) -> List[NumberRead]:
    """Найти номера по набору необязательных критериев.

    Все переданные критерии объединяются через AND; пустой запрос
    возвращает весь инвентарь.
    """
    return await NumberService.filter_numbers(criteria)


@router.get("/{number_id}", response_model=NumberRead)
async def get_number(number_id: int = Path(..., description="ID номера")) -> NumberRead:
    number = await NumberService.get_number(number_id)
    if number is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Number {number_id} not found")
    return number


@router.patch("/{number_id}/status", response_model=NumberRead)
async def update_number_status(
    payload: NumberStatusUpdate,
    number_id: int = Path(..., description="ID номера"),
) -> NumberRead:
    """Изменить статус номера.

    ``completed`` проставляет ``completed_at``; ``cancelled`` и
    ``returned_to_queue`` освобождают номер (сбрасывают покупателя и
    время аренды).
    """
    try:
        return await NumberService.update_status(number_id, payload.status)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
