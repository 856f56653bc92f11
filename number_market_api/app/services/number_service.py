"""
Business logic for numbers.

The ``NumberService`` owns the rental lifecycle of a number and the
search over the inventory.  Status changes are deliberately
permissive: any status may follow any other, and the service only
derives the dependent fields (``completed_at``, ``buyer_id``,
``rented_at``) from the target status.  Populating ``buyer_id`` and
``rented_at`` when a number is rented out is the job of the rental
assignment flow, not of ``update_status``.
"""

import logging
import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional

from number_market_api.app.core import db
from number_market_api.app.core.exceptions import NotFoundError
from number_market_api.app.core.fields import (
    money_from_db,
    money_to_db,
    timestamp_from_db,
    timestamp_to_db,
    utcnow,
)
from number_market_api.app.schemas.number import (
    NumberCreate,
    NumberFilter,
    NumberRead,
    NumberStatus,
)

logger = logging.getLogger(__name__)

# Statuses that release a number back to the pool.
RELEASING_STATUSES = frozenset({NumberStatus.RETURNED_TO_QUEUE, NumberStatus.CANCELLED})


def transition_fields(status: NumberStatus, now: datetime) -> Dict[str, Any]:
    """Return the column values written together with ``status``.

    * ``completed`` stamps ``completed_at``; every other status clears it.
    * ``returned_to_queue`` and ``cancelled`` clear ``buyer_id`` and
      ``rented_at``; other statuses leave the ownership fields alone.
    * ``updated_at`` is always refreshed.
    """
    status = NumberStatus(status)
    fields: Dict[str, Any] = {
        "status": status.value,
        "completed_at": timestamp_to_db(now) if status is NumberStatus.COMPLETED else None,
        "updated_at": timestamp_to_db(now),
    }
    if status in RELEASING_STATUSES:
        fields["buyer_id"] = None
        fields["rented_at"] = None
    return fields


def row_to_number(row: sqlite3.Row) -> NumberRead:
    return NumberRead(
        id=row["id"],
        phone_number=row["phone_number"],
        country=row["country"],
        type=row["type"],
        status=row["status"],
        buyer_id=row["buyer_id"],
        seller_id=row["seller_id"],
        rented_at=timestamp_from_db(row["rented_at"]),
        completed_at=timestamp_from_db(row["completed_at"]),
        price=money_from_db(row["price"]),
        created_at=timestamp_from_db(row["created_at"]),
        updated_at=timestamp_from_db(row["updated_at"]),
    )


def _escape_like(fragment: str) -> str:
    return fragment.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class NumberService:
    """Сервис для работы с номерами.

    Управляет жизненным циклом номера (статусы и связанные поля) и
    поиском по инвентарю.
    """

    @classmethod
    async def create_number(cls, data: NumberCreate) -> NumberRead:
        """Add a number to the inventory.

        Raises ``sqlite3.IntegrityError`` if the phone number is
        already registered.
        """
        now = timestamp_to_db(utcnow())
        with db.transaction() as cursor:
            number_id = db.insert(
                cursor,
                "numbers",
                {
                    "phone_number": data.phone_number,
                    "country": data.country,
                    "type": data.type,
                    "status": NumberStatus(data.status).value,
                    "seller_id": data.seller_id,
                    "price": money_to_db(data.price),
                    "created_at": now,
                    "updated_at": now,
                },
            )
            row = db.get_by_id(cursor, "numbers", number_id)
        logger.info("Registered number %s as id %s", data.phone_number, number_id)
        return row_to_number(row)

    @classmethod
    async def get_number(cls, number_id: int) -> Optional[NumberRead]:
        """Retrieve a number by ID."""
        conn = db.get_connection()
        try:
            row = db.get_by_id(conn.cursor(), "numbers", number_id)
            return row_to_number(row) if row else None
        finally:
            conn.close()

    @classmethod
    async def list_numbers(cls) -> List[NumberRead]:
        """Return every number in the inventory."""
        return await cls.filter_numbers(NumberFilter())

    @classmethod
    async def update_status(cls, number_id: int, status: NumberStatus) -> NumberRead:
        """Move a number to ``status`` and return the updated record.

        The status and the fields derived from it by
        ``transition_fields`` are written in a single UPDATE.  Raises
        ``NotFoundError`` if no number has the given id.
        """
        status = NumberStatus(status)
        fields = transition_fields(status, utcnow())
        with db.transaction() as cursor:
            row = db.update_by_id(cursor, "numbers", number_id, fields)
        if row is None:
            raise NotFoundError("Number", number_id)
        logger.info("Number %s moved to %s", number_id, status.value)
        return row_to_number(row)

    @classmethod
    async def filter_numbers(cls, criteria: NumberFilter) -> List[NumberRead]:
        """Return numbers matching every supplied criterion.

        - ``country``, ``type``, ``status`` – exact match.
        - ``buyer_id``, ``seller_id`` – exact match.
        - ``phone_number`` – case-insensitive substring; ``%`` and
          ``_`` are matched literally.

        Omitted (``None``) or empty-string criteria impose no
        constraint, so an empty filter returns the whole inventory.
        Results are ordered by id.
        """
        where: List[str] = []
        params: List[Any] = []
        if criteria.country:
            where.append("country = ?")
            params.append(criteria.country)
        if criteria.type:
            where.append("type = ?")
            params.append(criteria.type)
        if criteria.status is not None:
            where.append("status = ?")
            params.append(NumberStatus(criteria.status).value)
        if criteria.buyer_id is not None:
            where.append("buyer_id = ?")
            params.append(criteria.buyer_id)
        if criteria.seller_id is not None:
            where.append("seller_id = ?")
            params.append(criteria.seller_id)
        if criteria.phone_number:
            where.append("LOWER(phone_number) LIKE ? ESCAPE '\\'")
            params.append(f"%{_escape_like(criteria.phone_number.lower())}%")

        conn = db.get_connection()
        try:
            rows = db.scan(conn.cursor(), "numbers", where, params)
            return [row_to_number(row) for row in rows]
        finally:
            conn.close()
