"""
Top-level router for version 1 of the API.

This router aggregates the domain routers (buyers, sellers, numbers,
billing) under a unified prefix.  When new domains are introduced,
update this file to include their routers.
"""

from fastapi import APIRouter

from .endpoints import billing, buyers, health, numbers, sellers

router = APIRouter()

router.include_router(buyers.router, prefix="/buyers", tags=["buyers"])
router.include_router(sellers.router, prefix="/sellers", tags=["sellers"])
router.include_router(numbers.router, prefix="/numbers", tags=["numbers"])
router.include_router(billing.router, prefix="/billing", tags=["billing"])
router.include_router(health.router, prefix="/health", tags=["health"])
