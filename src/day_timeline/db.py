"""SQLite database layer for time slots."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterator, Optional, Union

from .models import Category, TimeSlot, start_of_day


DATETIME_FMT = "%Y-%m-%d %H:%M:%S.%f"

_UNSET = object()


def open_database(
    path: Union[Path, str], *, check_same_thread: bool = True
) -> sqlite3.Connection:
    """Open (and initialize) the SQLite database."""
    conn = sqlite3.connect(
        path,
        isolation_level=None,
        check_same_thread=check_same_thread,
    )
    conn.row_factory = sqlite3.Row
    initialize_schema(conn)
    return conn


@contextmanager
def database_connection(
    path: Union[Path, str], *, check_same_thread: bool = True
) -> Iterator[sqlite3.Connection]:
    conn = open_database(path, check_same_thread=check_same_thread)
    try:
        yield conn
    finally:
        conn.close()


def initialize_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS time_slots (
            id INTEGER PRIMARY KEY,
            start_time TEXT NOT NULL,
            end_time TEXT,
            category TEXT NOT NULL DEFAULT 'unknown',
            category_was_set_by_user INTEGER NOT NULL DEFAULT 0
        );

        CREATE INDEX IF NOT EXISTS idx_time_slots_start_time
            ON time_slots(start_time);
        """
    )


def _format(value: Optional[datetime]) -> Optional[str]:
    return value.strftime(DATETIME_FMT) if value is not None else None


def _parse(value: Optional[str]) -> Optional[datetime]:
    return datetime.strptime(value, DATETIME_FMT) if value else None


def row_to_time_slot(row: sqlite3.Row) -> TimeSlot:
    return TimeSlot(
        id=row["id"],
        start_time=datetime.strptime(row["start_time"], DATETIME_FMT),
        end_time=_parse(row["end_time"]),
        category=Category(row["category"]),
        category_was_set_by_user=bool(row["category_was_set_by_user"]),
    )


def insert_time_slot(conn: sqlite3.Connection, time_slot: TimeSlot) -> int:
    """Persist a new slot and return its row id."""
    cur = conn.execute(
        """
        INSERT INTO time_slots (
            start_time,
            end_time,
            category,
            category_was_set_by_user
        ) VALUES (?, ?, ?, ?)
        """,
        (
            _format(time_slot.start_time),
            _format(time_slot.end_time),
            time_slot.category.value,
            1 if time_slot.category_was_set_by_user else 0,
        ),
    )
    return int(cur.lastrowid)


def fetch_time_slots_for_day(
    conn: sqlite3.Connection, day: datetime
) -> list[TimeSlot]:
    """Fetch the slots that started on the provided day, oldest first."""
    start = start_of_day(day)
    end = start + timedelta(days=1)
    rows = conn.execute(
        """
        SELECT
            id,
            start_time,
            end_time,
            category,
            category_was_set_by_user
        FROM time_slots
        WHERE start_time >= ? AND start_time < ?
        ORDER BY start_time, id;
        """,
        (_format(start), _format(end)),
    )
    return [row_to_time_slot(row) for row in rows]


def fetch_time_slot(conn: sqlite3.Connection, slot_id: int) -> Optional[TimeSlot]:
    row = conn.execute(
        """
        SELECT id, start_time, end_time, category, category_was_set_by_user
        FROM time_slots
        WHERE id = ?
        """,
        (slot_id,),
    ).fetchone()
    return row_to_time_slot(row) if row is not None else None


def fetch_last_time_slot(conn: sqlite3.Connection) -> Optional[TimeSlot]:
    row = conn.execute(
        """
        SELECT id, start_time, end_time, category, category_was_set_by_user
        FROM time_slots
        ORDER BY start_time DESC, id DESC
        LIMIT 1
        """
    ).fetchone()
    return row_to_time_slot(row) if row is not None else None


def update_time_slot(
    conn: sqlite3.Connection,
    slot_id: int,
    *,
    end_time: object = _UNSET,
    category: Optional[Category] = None,
    category_was_set_by_user: Optional[bool] = None,
) -> None:
    """Update a single slot record."""
    fields: list[str] = []
    params: list[object] = []

    if end_time is not _UNSET:
        fields.append("end_time = ?")
        params.append(_format(end_time))  # type: ignore[arg-type]
    if category is not None:
        fields.append("category = ?")
        params.append(Category(category).value)
    if category_was_set_by_user is not None:
        fields.append("category_was_set_by_user = ?")
        params.append(1 if category_was_set_by_user else 0)

    if not fields:
        return

    params.append(slot_id)
    cur = conn.execute(
        f"UPDATE time_slots SET {', '.join(fields)} WHERE id = ?",
        params,
    )
    if cur.rowcount == 0:
        raise ValueError(f"No time slot found for id={slot_id}")
