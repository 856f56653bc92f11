"""
Business logic for sellers.

Sellers are referenced by numbers for lookup only, so nothing here
touches the ``numbers`` table: banning a seller does not change the
numbers they supplied.
"""

import logging
import sqlite3
from typing import List, Optional

from number_market_api.app.core import db
from number_market_api.app.core.exceptions import NotFoundError
from number_market_api.app.core.fields import (
    money_from_db,
    money_to_db,
    timestamp_from_db,
    timestamp_to_db,
    utcnow,
)
from number_market_api.app.schemas.seller import SellerCreate, SellerRead, SellerStatus, SellerUpdate

logger = logging.getLogger(__name__)

DEFAULT_BAN_COMMENT = "Banned by administrator"


def row_to_seller(row: sqlite3.Row) -> SellerRead:
    return SellerRead(
        id=row["id"],
        telegram_id=row["telegram_id"],
        status=row["status"],
        status_comment=row["status_comment"],
        permanent_rounding_bonus=money_from_db(row["permanent_rounding_bonus"]),
        created_at=timestamp_from_db(row["created_at"]),
        updated_at=timestamp_from_db(row["updated_at"]),
    )


class SellerService:
    """Сервис для работы с продавцами."""

    @classmethod
    async def create_seller(cls, data: SellerCreate) -> SellerRead:
        """Register a seller.

        Raises ``sqlite3.IntegrityError`` if the ``telegram_id`` is
        already registered.
        """
        now = timestamp_to_db(utcnow())
        with db.transaction() as cursor:
            seller_id = db.insert(
                cursor,
                "sellers",
                {
                    "telegram_id": data.telegram_id,
                    "status": data.status,
                    "status_comment": data.status_comment,
                    "permanent_rounding_bonus": money_to_db(data.permanent_rounding_bonus),
                    "created_at": now,
                    "updated_at": now,
                },
            )
            row = db.get_by_id(cursor, "sellers", seller_id)
        logger.info("Registered seller %s (telegram %s)", seller_id, data.telegram_id)
        return row_to_seller(row)

    @classmethod
    async def list_sellers(cls) -> List[SellerRead]:
        conn = db.get_connection()
        try:
            return [row_to_seller(row) for row in db.scan(conn.cursor(), "sellers")]
        finally:
            conn.close()

    @classmethod
    async def get_seller(cls, seller_id: int) -> Optional[SellerRead]:
        conn = db.get_connection()
        try:
            row = db.get_by_id(conn.cursor(), "sellers", seller_id)
            return row_to_seller(row) if row else None
        finally:
            conn.close()

    @classmethod
    async def update_seller(cls, seller_id: int, data: SellerUpdate) -> SellerRead:
        """Update the supplied fields of a seller.

        ``status_comment`` may be cleared by sending an explicit
        ``null``; the other fields ignore ``None``.
        """
        fields = {}
        if data.status is not None:
            fields["status"] = SellerStatus(data.status).value
        if "status_comment" in data.model_fields_set:
            fields["status_comment"] = data.status_comment
        if data.permanent_rounding_bonus is not None:
            fields["permanent_rounding_bonus"] = money_to_db(data.permanent_rounding_bonus)
        fields["updated_at"] = timestamp_to_db(utcnow())
        return await cls._update(seller_id, fields)

    @classmethod
    async def ban_seller(cls, seller_id: int, status_comment: Optional[str] = None) -> SellerRead:
        seller = await cls._update(
            seller_id,
            {
                "status": SellerStatus.BANNED.value,
                "status_comment": status_comment or DEFAULT_BAN_COMMENT,
                "updated_at": timestamp_to_db(utcnow()),
            },
        )
        logger.info("Seller %s banned", seller_id)
        return seller

    @classmethod
    async def _update(cls, seller_id: int, fields: dict) -> SellerRead:
        with db.transaction() as cursor:
            row = db.update_by_id(cursor, "sellers", seller_id, fields)
        if row is None:
            raise NotFoundError("Seller", seller_id)
        return row_to_seller(row)
