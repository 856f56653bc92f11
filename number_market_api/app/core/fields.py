"""
Conversions between Python values and their stored representation.

Monetary amounts are kept in ``TEXT`` columns as fixed-point decimals
with exactly two fractional digits (``"5.99"``) so that no value ever
passes through a binary float.  Timestamps are stored as naive UTC ISO
strings (``2024-01-15 23:59:59``); with a fixed layout the lexical
order of the column equals chronological order, which is what the
range queries in the billing service rely on.
"""

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

CENT = Decimal("0.01")

MoneyLike = Union[Decimal, int, float, str]


def to_money(value: MoneyLike) -> Decimal:
    """Return ``value`` as a ``Decimal`` quantized to two places.

    Floats are converted through ``str`` so that ``1.1`` becomes
    ``Decimal("1.10")`` rather than its binary expansion.
    """
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def money_to_db(value: MoneyLike) -> str:
    return format(to_money(value), "f")


def money_from_db(value: Union[str, int, float, None]) -> Optional[Decimal]:
    if value is None:
        return None
    return to_money(str(value))


def utcnow() -> datetime:
    """Current UTC time as a naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def timestamp_to_db(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return to_naive_utc(value).isoformat(sep=" ")


def timestamp_from_db(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    # ``CURRENT_TIMESTAMP`` defaults and values written by
    # ``timestamp_to_db`` both parse here; a trailing ``Z`` may come
    # from rows inserted by other tools.
    return to_naive_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
