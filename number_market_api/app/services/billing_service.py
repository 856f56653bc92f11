"""
Service layer for billing.

The daily invoice is derived, never stored: it is rebuilt on demand
from the numbers whose ``rented_at`` falls on the requested day.
Billing records themselves are append-only; this module inserts and
lists them but never edits or deletes one.

Amounts are summed as ``Decimal`` values so totals are exact
(``1.99 + 2.01 + 0.50 == 4.50``).
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from decimal import Decimal
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
from number_market_api.app.schemas.billing import (
    BillingRecordCreate,
    BillingRecordRead,
    DailyInvoice,
    InvoiceNumber,
)

logger = logging.getLogger(__name__)

INVOICE_DATE_FORMAT = "%Y-%m-%d"


def day_bounds(date: str) -> tuple[datetime, Optional[datetime]]:
    """Return the half-open interval ``[start, end)`` covering ``date``.

    ``date`` must be ``YYYY-MM-DD``; anything else raises
    ``ValueError``.  The end is the start plus one day, or ``None`` for
    the last representable day (``9999-12-31``), whose interval has no
    upper bound.
    """
    try:
        start = datetime.strptime(date, INVOICE_DATE_FORMAT)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid date {date!r}, expected YYYY-MM-DD") from None
    # strptime accepts single-digit months and days; the stored format does not
    if start.date().isoformat() != date:
        raise ValueError(f"Invalid date {date!r}, expected YYYY-MM-DD")
    try:
        end = start + timedelta(days=1)
    except OverflowError:
        end = None
    return start, end


class BillingService:
    """Service for invoices and billing history."""

    @classmethod
    async def generate_daily_invoice(cls, buyer_id: int, date: str) -> DailyInvoice:
        """Rebuild a buyer's invoice for one calendar day.

        Every number assigned to the buyer whose ``rented_at`` is on or
        after ``date 00:00:00`` and strictly before the next day's
        midnight is included, whatever its current status.  A day
        without rentals yields an invoice with zero totals.

        Raises
        ------
        NotFoundError
            If the buyer does not exist.
        ValueError
            If ``date`` is not a ``YYYY-MM-DD`` string.
        """
        start, end = day_bounds(date)
        where = ["buyer_id = ?", "rented_at >= ?"]
        params = [buyer_id, timestamp_to_db(start)]
        if end is not None:
            where.append("rented_at < ?")
            params.append(timestamp_to_db(end))
        conn = db.get_connection()
        try:
            cursor = conn.cursor()
            buyer = db.get_by_id(cursor, "buyers", buyer_id)
            if buyer is None:
                raise NotFoundError("Buyer", buyer_id)
            rows = db.scan(cursor, "numbers", where, params)
        finally:
            conn.close()

        numbers: List[InvoiceNumber] = []
        total_amount = Decimal("0.00")
        for row in rows:
            price = money_from_db(row["price"])
            total_amount += price
            numbers.append(
                InvoiceNumber(
                    id=row["id"],
                    phone_number=row["phone_number"],
                    country=row["country"],
                    type=row["type"],
                    price=price,
                    rented_at=timestamp_from_db(row["rented_at"]),
                    completed_at=timestamp_from_db(row["completed_at"]),
                )
            )
        logger.debug("Invoice for buyer %s on %s: %s numbers", buyer_id, date, len(numbers))
        return DailyInvoice(
            buyer_id=buyer_id,
            buyer_name=buyer["name"],
            date=date,
            total_numbers_rented=len(numbers),
            total_amount=total_amount,
            numbers=numbers,
        )

    @classmethod
    async def create_billing_record(cls, data: BillingRecordCreate) -> BillingRecordRead:
        """Append a billing record for an existing buyer."""
        with db.transaction() as cursor:
            if db.get_by_id(cursor, "buyers", data.buyer_id) is None:
                raise NotFoundError("Buyer", data.buyer_id)
            record_id = db.insert(
                cursor,
                "billing_records",
                {
                    "buyer_id": data.buyer_id,
                    "amount": money_to_db(data.amount),
                    "description": data.description,
                    "billing_date": timestamp_to_db(data.billing_date),
                    "created_at": timestamp_to_db(utcnow()),
                },
            )
            row = db.get_by_id(cursor, "billing_records", record_id)
        logger.info("Billing record %s added for buyer %s", record_id, data.buyer_id)
        return cls._row_to_record(row)

    @classmethod
    async def get_payment_history(
        cls,
        buyer_id: int,
        limit: int = 50,
        offset: int = 0,
    ) -> List[BillingRecordRead]:
        """List a buyer's billing records, newest ``billing_date`` first.

        An unknown buyer simply has no records.
        """
        conn = db.get_connection()
        try:
            rows = db.scan(
                conn.cursor(),
                "billing_records",
                ["buyer_id = ?"],
                [buyer_id],
                order_by="billing_date DESC, id DESC",
                limit=limit,
                offset=offset,
            )
            return [cls._row_to_record(row) for row in rows]
        finally:
            conn.close()

    @staticmethod
    def _row_to_record(row) -> BillingRecordRead:
        return BillingRecordRead(
            id=row["id"],
            buyer_id=row["buyer_id"],
            amount=money_from_db(row["amount"]),
            description=row["description"],
            billing_date=timestamp_from_db(row["billing_date"]),
            created_at=timestamp_from_db(row["created_at"]),
        )
