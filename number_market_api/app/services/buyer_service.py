"""
Business logic for buyers.

Besides plain record maintenance, this module implements *stopwork*:
banning a buyer and returning every number the buyer holds in status
``accepted`` to the queue.  Both halves run inside one
``BEGIN IMMEDIATE`` transaction, so the buyer is never left banned with
accepted numbers still assigned, and the "already banned" check is
made under the same write lock as the writes it guards.
"""

import logging
import sqlite3
from typing import List, Optional

from number_market_api.app.core import db
from number_market_api.app.core.exceptions import NotFoundError
from number_market_api.app.core.fields import timestamp_from_db, timestamp_to_db, utcnow
from number_market_api.app.schemas.buyer import (
    BuyerCreate,
    BuyerRead,
    BuyerUpdate,
    StopworkResult,
)
from number_market_api.app.schemas.number import NumberStatus
from number_market_api.app.services.number_service import transition_fields

logger = logging.getLogger(__name__)

STOPWORK_BAN_REASON = "Stopwork applied - automatic ban to prevent future rentals"


def row_to_buyer(row: sqlite3.Row) -> BuyerRead:
    return BuyerRead(
        id=row["id"],
        name=row["name"],
        is_banned=bool(row["is_banned"]),
        ban_reason=row["ban_reason"],
        mode=row["mode"],
        chat_id=row["chat_id"],
        max_numbers_per_branch=row["max_numbers_per_branch"],
        created_at=timestamp_from_db(row["created_at"]),
        updated_at=timestamp_from_db(row["updated_at"]),
    )


class BuyerService:
    """Сервис для работы с покупателями.

    Создание, обновление, блокировка и разблокировка покупателей, а
    также операция stopwork (блокировка с возвратом принятых номеров в
    очередь).
    """

    @classmethod
    async def create_buyer(cls, data: BuyerCreate) -> BuyerRead:
        """Register a buyer.

        New buyers start unbanned.  Raises ``sqlite3.IntegrityError``
        if the ``chat_id`` is already taken.
        """
        now = timestamp_to_db(utcnow())
        with db.transaction() as cursor:
            buyer_id = db.insert(
                cursor,
                "buyers",
                {
                    "name": data.name,
                    "mode": data.mode,
                    "chat_id": data.chat_id,
                    "max_numbers_per_branch": data.max_numbers_per_branch,
                    "is_banned": 0,
                    "ban_reason": None,
                    "created_at": now,
                    "updated_at": now,
                },
            )
            row = db.get_by_id(cursor, "buyers", buyer_id)
        logger.info("Registered buyer %s (chat %s)", buyer_id, data.chat_id)
        return row_to_buyer(row)

    @classmethod
    async def list_buyers(cls) -> List[BuyerRead]:
        conn = db.get_connection()
        try:
            return [row_to_buyer(row) for row in db.scan(conn.cursor(), "buyers")]
        finally:
            conn.close()

    @classmethod
    async def get_buyer(cls, buyer_id: int) -> Optional[BuyerRead]:
        """Retrieve a buyer by ID."""
        conn = db.get_connection()
        try:
            row = db.get_by_id(conn.cursor(), "buyers", buyer_id)
            return row_to_buyer(row) if row else None
        finally:
            conn.close()

    @classmethod
    async def update_buyer(cls, buyer_id: int, data: BuyerUpdate) -> BuyerRead:
        """Update the supplied fields of a buyer.

        Fields left as ``None`` keep their stored value.  Raises
        ``NotFoundError`` if the buyer does not exist.
        """
        fields = data.model_dump(exclude_none=True)
        fields["updated_at"] = timestamp_to_db(utcnow())
        return await cls._update(buyer_id, fields)

    @classmethod
    async def ban_buyer(cls, buyer_id: int, ban_reason: str) -> BuyerRead:
        """Ban a buyer with the given reason.

        An already banned buyer is banned again with the new reason.
        The reason is stored verbatim, including an empty string.
        """
        buyer = await cls._update(
            buyer_id,
            {
                "is_banned": 1,
                "ban_reason": ban_reason,
                "updated_at": timestamp_to_db(utcnow()),
            },
        )
        logger.info("Buyer %s banned: %s", buyer_id, ban_reason)
        return buyer

    @classmethod
    async def unban_buyer(cls, buyer_id: int) -> BuyerRead:
        buyer = await cls._update(
            buyer_id,
            {
                "is_banned": 0,
                "ban_reason": None,
                "updated_at": timestamp_to_db(utcnow()),
            },
        )
        logger.info("Buyer %s unbanned", buyer_id)
        return buyer

    @classmethod
    async def stopwork(cls, buyer_id: int) -> StopworkResult:
        """Ban a buyer and return their accepted numbers to the queue.

        Steps, all inside one immediate transaction:

        1. The buyer must exist, otherwise a failed result is returned.
        2. The buyer must not already be banned, otherwise a failed
           result is returned.  Nothing is written in either case.
        3. Every number owned by the buyer with status ``accepted`` is
           moved to ``returned_to_queue`` with the same field changes a
           regular status update to that status makes (``buyer_id``,
           ``rented_at`` and ``completed_at`` cleared).  Numbers in any
           other status are left alone.
        4. The buyer is banned with ``STOPWORK_BAN_REASON``.

        Having no accepted numbers does not prevent the ban.  Storage
        errors roll the whole operation back and propagate.
        """
        now = utcnow()
        with db.transaction(immediate=True) as cursor:
            buyer = db.get_by_id(cursor, "buyers", buyer_id)
            if buyer is None:
                logger.warning("Stopwork refused: buyer %s not found", buyer_id)
                return StopworkResult(
                    success=False,
                    message=f"Buyer with ID {buyer_id} not found.",
                )
            if buyer["is_banned"]:
                logger.warning("Stopwork refused: buyer %s is already banned", buyer_id)
                return StopworkResult(
                    success=False,
                    message=f"Buyer {buyer_id} is already banned and cannot have stopwork applied.",
                )

            reclaimed = db.update_where(
                cursor,
                "numbers",
                ["buyer_id = ?", "status = ?"],
                [buyer_id, NumberStatus.ACCEPTED.value],
                transition_fields(NumberStatus.RETURNED_TO_QUEUE, now),
            )

            db.update_by_id(
                cursor,
                "buyers",
                buyer_id,
                {
                    "is_banned": 1,
                    "ban_reason": STOPWORK_BAN_REASON,
                    "updated_at": timestamp_to_db(now),
                },
            )

        logger.info("Stopwork applied to buyer %s, %s numbers returned to queue", buyer_id, reclaimed)
        if reclaimed:
            message = (
                f"Stopwork completed for buyer {buyer_id}. "
                f"{reclaimed} accepted numbers moved to queue and buyer banned."
            )
        else:
            message = (
                f"Stopwork completed for buyer {buyer_id}. "
                "No accepted numbers found, buyer banned to prevent future rentals."
            )
        return StopworkResult(success=True, message=message, reclaimed_numbers=reclaimed)

    @classmethod
    async def _update(cls, buyer_id: int, fields: dict) -> BuyerRead:
        with db.transaction() as cursor:
            row = db.update_by_id(cursor, "buyers", buyer_id, fields)
        if row is None:
            raise NotFoundError("Buyer", buyer_id)
        return row_to_buyer(row)
