"""Shared pytest fixtures for testing."""

from datetime import datetime
from decimal import Decimal
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from number_market_api.app.core import db
from number_market_api.app.core.config import settings
from number_market_api.app.core.fields import timestamp_to_db
from number_market_api.app.schemas.buyer import BuyerCreate, BuyerRead
from number_market_api.app.schemas.number import NumberCreate, NumberRead, NumberStatus
from number_market_api.app.schemas.seller import SellerCreate, SellerRead
from number_market_api.app.services.buyer_service import BuyerService
from number_market_api.app.services.number_service import NumberService
from number_market_api.app.services.seller_service import SellerService


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch):
    """Point the service at a fresh SQLite file for every test."""
    monkeypatch.setattr(settings, "database_url", str(tmp_path / "test.db"))
    db.init_db()
    yield


def _fetch_row(table: str, object_id: int):
    conn = db.get_connection()
    try:
        return db.get_by_id(conn.cursor(), table, object_id)
    finally:
        conn.close()


def _assign_number(
    number_id: int,
    buyer_id: Optional[int],
    rented_at: Optional[datetime],
    status: Optional[NumberStatus] = None,
    completed_at: Optional[datetime] = None,
) -> None:
    """Write ownership fields directly, as the rental flow would."""
    fields = {
        "buyer_id": buyer_id,
        "rented_at": timestamp_to_db(rented_at),
        "completed_at": timestamp_to_db(completed_at),
    }
    if status is not None:
        fields["status"] = NumberStatus(status).value
    with db.transaction() as cursor:
        db.update_by_id(cursor, "numbers", number_id, fields)


@pytest.fixture
def fetch_row():
    return _fetch_row


@pytest.fixture
def assign_number():
    return _assign_number


# =============================================================================
# Record Factories
# =============================================================================


@pytest_asyncio.fixture
async def make_buyer():
    counter = {"n": 0}

    async def _make(name: str = "Test Buyer", mode: str = "auto", **kwargs) -> BuyerRead:
        counter["n"] += 1
        chat_id = kwargs.pop("chat_id", f"chat_{counter['n']}")
        return await BuyerService.create_buyer(
            BuyerCreate(name=name, mode=mode, chat_id=chat_id, **kwargs)
        )

    return _make


@pytest_asyncio.fixture
async def make_seller():
    counter = {"n": 0}

    async def _make(**kwargs) -> SellerRead:
        counter["n"] += 1
        telegram_id = kwargs.pop("telegram_id", f"seller_{counter['n']}")
        return await SellerService.create_seller(SellerCreate(telegram_id=telegram_id, **kwargs))

    return _make


@pytest_asyncio.fixture
async def make_number():
    counter = {"n": 0}

    async def _make(
        phone_number: Optional[str] = None,
        country: str = "US",
        type: str = "SMS",
        price: str = "5.99",
        status: NumberStatus = NumberStatus.AVAILABLE,
        seller_id: Optional[int] = None,
        buyer_id: Optional[int] = None,
        rented_at: Optional[datetime] = None,
    ) -> NumberRead:
        counter["n"] += 1
        number = await NumberService.create_number(
            NumberCreate(
                phone_number=phone_number or f"+1555000{counter['n']:04d}",
                country=country,
                type=type,
                price=Decimal(price),
                status=status,
                seller_id=seller_id,
            )
        )
        if buyer_id is not None or rented_at is not None:
            _assign_number(number.id, buyer_id, rented_at)
            number = await NumberService.get_number(number.id)
        return number

    return _make


# =============================================================================
# API Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the application without a network socket."""
    from number_market_api.app.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
