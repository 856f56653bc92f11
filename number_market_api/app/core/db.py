"""
SQLite database integration and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``), a transactional cursor (``transaction``), the
small set of row primitives the services are written against
(``insert``, ``get_by_id``, ``update_by_id``, ``update_where``,
``scan``) and the migration runner applied on application start (``init_db``).

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence

from .config import settings

logger = logging.getLogger(__name__)

# Tables the row primitives are allowed to touch.  Table and column
# names are interpolated into SQL, values never are.
TABLES = frozenset({"buyers", "sellers", "numbers", "billing_records"})


def get_database_path() -> str:
    """Compute the path to the SQLite database file.

    If ``settings.database_url`` is an absolute path, use it directly.
    Otherwise resolve it relative to the project root.
    """
    db_url = settings.database_url
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent  # number_market_api/
    return str((base_dir / db_url).resolve())


def get_connection() -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    Rows are returned as ``sqlite3.Row`` objects keyed by column name.
    No type detection is enabled; timestamps and money come back as the
    text they were stored as and are converted by ``core.fields``.
    """
    conn = sqlite3.connect(get_database_path(), timeout=30)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def transaction(immediate: bool = False) -> Iterator[sqlite3.Cursor]:
    """Yield a cursor inside an explicit transaction.

    The transaction commits when the block exits normally and rolls
    back on any exception, which is then re-raised.  With
    ``immediate=True`` the write lock is taken by ``BEGIN IMMEDIATE``
    before the first statement runs, so reads made inside the block
    cannot be invalidated by a concurrent writer before the block's own
    writes land.
    """
    conn = get_connection()
    # Manage BEGIN/COMMIT ourselves instead of relying on the
    # module's implicit transactions.
    conn.isolation_level = None
    cursor = conn.cursor()
    try:
        cursor.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
        yield cursor
        cursor.execute("COMMIT")
    except BaseException:
        if conn.in_transaction:
            logger.debug("Rolling back transaction")
            cursor.execute("ROLLBACK")
        raise
    finally:
        conn.close()


def _check_table(table: str) -> None:
    if table not in TABLES:
        raise ValueError(f"Unknown table {table!r}")


def insert(cursor: sqlite3.Cursor, table: str, row: Dict[str, Any]) -> int:
    """Insert ``row`` into ``table`` and return the new primary key."""
    _check_table(table)
    columns = ", ".join(row)
    placeholders = ", ".join("?" for _ in row)
    cursor.execute(
        f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
        tuple(row.values()),
    )
    return cursor.lastrowid


def get_by_id(cursor: sqlite3.Cursor, table: str, object_id: int) -> Optional[sqlite3.Row]:
    """Return the row with the given id or ``None``."""
    _check_table(table)
    return cursor.execute(f"SELECT * FROM {table} WHERE id = ?", (object_id,)).fetchone()


def update_by_id(
    cursor: sqlite3.Cursor,
    table: str,
    object_id: int,
    fields: Dict[str, Any],
) -> Optional[sqlite3.Row]:
    """Apply a partial update and return the updated row.

    Returns ``None`` when no row has the given id.  An empty ``fields``
    mapping degrades to a plain lookup.
    """
    _check_table(table)
    if fields:
        assignments = ", ".join(f"{key} = ?" for key in fields)
        cursor.execute(
            f"UPDATE {table} SET {assignments} WHERE id = ?",
            (*fields.values(), object_id),
        )
        if cursor.rowcount == 0:
            return None
    return get_by_id(cursor, table, object_id)


def update_where(
    cursor: sqlite3.Cursor,
    table: str,
    where: Sequence[str],
    params: Sequence[Any],
    fields: Dict[str, Any],
) -> int:
    """Apply ``fields`` to every row matching all of ``where``.

    ``where`` and ``params`` follow the same convention as ``scan``.
    Returns the number of rows changed.
    """
    _check_table(table)
    if not where:
        raise ValueError("update_where requires at least one condition")
    if not fields:
        return 0
    assignments = ", ".join(f"{key} = ?" for key in fields)
    cursor.execute(
        f"UPDATE {table} SET {assignments} WHERE " + " AND ".join(where),
        (*fields.values(), *params),
    )
    return cursor.rowcount


def scan(
    cursor: sqlite3.Cursor,
    table: str,
    where: Optional[Sequence[str]] = None,
    params: Sequence[Any] = (),
    order_by: str = "id",
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> List[sqlite3.Row]:
    """Return rows of ``table`` matching every clause in ``where``.

    ``where`` is a list of SQL fragments with ``?`` placeholders that
    are joined with ``AND``; ``params`` supplies their values in order.
    """
    _check_table(table)
    query = f"SELECT * FROM {table}"
    values: List[Any] = list(params)
    if where:
        query += " WHERE " + " AND ".join(where)
    query += f" ORDER BY {order_by}"
    if limit is not None:
        query += " LIMIT ?"
        values.append(limit)
        if offset is not None:
            query += " OFFSET ?"
            values.append(offset)
    return cursor.execute(query, tuple(values)).fetchall()


def init_db() -> None:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any new migrations defined in
    the ``migrations`` list.  If you add a new migration, append it
    with an incremented version number.
    """
    migrations: list[tuple[int, str]] = [
        # Migration 1: Initial schema
        (
            1,
            """
            CREATE TABLE IF NOT EXISTS buyers (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                is_banned INTEGER NOT NULL DEFAULT 0,
                ban_reason TEXT,
                mode TEXT NOT NULL,
                chat_id TEXT NOT NULL UNIQUE,
                max_numbers_per_branch INTEGER NOT NULL DEFAULT 10,
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS sellers (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                telegram_id TEXT NOT NULL UNIQUE,
                status TEXT NOT NULL DEFAULT 'active'
                    CHECK (status IN ('active', 'inactive', 'banned')),
                status_comment TEXT,
                permanent_rounding_bonus TEXT NOT NULL DEFAULT '0.00',
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
            );

            -- buyer_id and seller_id are lookup references only: no
            -- FOREIGN KEY clause, so no cascade semantics.
            CREATE TABLE IF NOT EXISTS numbers (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                phone_number TEXT NOT NULL UNIQUE,
                country TEXT NOT NULL,
                type TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'available'
                    CHECK (status IN ('available', 'rented', 'accepted', 'completed', 'cancelled', 'returned_to_queue')),
                buyer_id INTEGER,
                seller_id INTEGER,
                rented_at TIMESTAMP,
                completed_at TIMESTAMP,
                price TEXT NOT NULL,
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS billing_records (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                buyer_id INTEGER NOT NULL,
                amount TEXT NOT NULL,
                description TEXT NOT NULL,
                billing_date TIMESTAMP NOT NULL,
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
            );
            """,
        ),
        # Migration 2: indices for the stopwork, filter and invoice lookups
        (
            2,
            """
            CREATE INDEX IF NOT EXISTS idx_numbers_buyer_status ON numbers(buyer_id, status);
            CREATE INDEX IF NOT EXISTS idx_numbers_buyer_rented_at ON numbers(buyer_id, rented_at);
            CREATE INDEX IF NOT EXISTS idx_billing_records_buyer_date ON billing_records(buyer_id, billing_date);
            """,
        ),
    ]

    conn = get_connection()
    try:
        cursor = conn.cursor()
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) as version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in migrations:
            if version > current_version:
                logger.info("Applying migration %s", version)
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                current_version = version
        conn.commit()
    finally:
        conn.close()
