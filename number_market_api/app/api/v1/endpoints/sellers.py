"""
Seller endpoints for API v1.
"""

import sqlite3
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Path, status

from number_market_api.app.core.exceptions import NotFoundError
from number_market_api.app.schemas.seller import SellerBan, SellerCreate, SellerRead, SellerUpdate
from number_market_api.app.services.seller_service import SellerService

router = APIRouter()


@router.post("/", response_model=SellerRead, status_code=status.HTTP_201_CREATED)
async def create_seller(seller: SellerCreate) -> SellerRead:
    try:
        return await SellerService.create_seller(seller)
    except sqlite3.IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Seller with telegram_id {seller.telegram_id} already exists",
        )


@router.get("/", response_model=List[SellerRead])
async def list_sellers() -> List[SellerRead]:
    return await SellerService.list_sellers()


@router.get("/{seller_id}", response_model=SellerRead)
async def get_seller(seller_id: int = Path(..., description="ID продавца")) -> SellerRead:
    seller = await SellerService.get_seller(seller_id)
    if seller is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Seller {seller_id} not found")
    return seller


@router.patch("/{seller_id}", response_model=SellerRead)
async def update_seller(
    updates: SellerUpdate,
    seller_id: int = Path(..., description="ID продавца"),
) -> SellerRead:
    try:
        return await SellerService.update_seller(seller_id, updates)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/{seller_id}/ban", response_model=SellerRead)
async def ban_seller(
    seller_id: int = Path(..., description="ID продавца"),
    payload: Optional[SellerBan] = None,
) -> SellerRead:
    """Заблокировать продавца.  Комментарий по умолчанию: «Banned by administrator»."""
    try:
        return await SellerService.ban_seller(seller_id, payload.status_comment if payload else None)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
