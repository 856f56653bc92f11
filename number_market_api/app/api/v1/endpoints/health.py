"""
Health endpoint for API v1.

Returns a static status together with the server time so that
monitoring can tell a live process from a stale response.
"""

from typing import Dict

from fastapi import APIRouter

from number_market_api.app.core.fields import utcnow

router = APIRouter()


@router.get("/", response_model=Dict[str, str])
async def healthcheck() -> Dict[str, str]:
    return {"status": "ok", "timestamp": utcnow().isoformat() + "Z"}
