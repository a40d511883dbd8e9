"""Time slot store backed by SQLite, with created/updated notifications."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Optional

from .db import (
    fetch_last_time_slot,
    fetch_time_slot,
    fetch_time_slots_for_day,
    insert_time_slot,
    update_time_slot,
)
from .models import Category, TimeSlot
from .services import TimeService
from .streams import EventSource

logger = logging.getLogger(__name__)


class TimeSlotService:
    """Append-mostly log of time slots.

    ``time_slot_created`` and ``time_slot_updated`` emit the affected slot
    after it has been written.
    """

    def __init__(self, conn: sqlite3.Connection, time_service: TimeService) -> None:
        self._conn = conn
        self._time_service = time_service
        self.time_slot_created: EventSource[TimeSlot] = EventSource()
        self.time_slot_updated: EventSource[TimeSlot] = EventSource()
        self._seen: dict[int, tuple[Category, bool]] = {}

    def get_time_slots(self, day: datetime) -> list[TimeSlot]:
        time_slots = fetch_time_slots_for_day(self._conn, day)
        for time_slot in time_slots:
            self._remember(time_slot)
        return time_slots

    def get_last_time_slot(self) -> Optional[TimeSlot]:
        return fetch_last_time_slot(self._conn)

    def get_time_slot(self, slot_id: int) -> TimeSlot:
        time_slot = fetch_time_slot(self._conn, slot_id)
        if time_slot is None:
            raise ValueError(f"No time slot found for id={slot_id}")
        return time_slot

    def add_time_slot(
        self,
        start_time: datetime,
        category: Category,
        category_was_set_by_user: bool,
        try_using_latest_location: bool = False,
    ) -> TimeSlot:
        """Start a new open slot, closing the previous one at ``start_time``."""
        if try_using_latest_location:
            logger.debug("No location source configured; ignoring location hint.")

        previous = self.get_last_time_slot()
        if previous is not None and previous.is_open and previous.start_time <= start_time:
            update_time_slot(self._conn, previous.id, end_time=start_time)

        time_slot = TimeSlot(
            start_time=start_time,
            category=Category(category),
            category_was_set_by_user=category_was_set_by_user,
        )
        time_slot.id = insert_time_slot(self._conn, time_slot)
        self._remember(time_slot)
        logger.info(
            "Time slot %s started at %s (%s).",
            time_slot.id,
            start_time.isoformat(timespec="seconds"),
            time_slot.category.value,
        )
        self.time_slot_created.emit(time_slot)
        return time_slot

    def update_time_slot(
        self,
        time_slot: TimeSlot,
        category: Category,
        set_by_user: bool = True,
    ) -> TimeSlot:
        if time_slot.id is None:
            raise ValueError("Cannot update a time slot that was never stored.")
        category = Category(category)
        update_time_slot(
            self._conn,
            time_slot.id,
            category=category,
            category_was_set_by_user=set_by_user,
        )
        time_slot.category = category
        time_slot.category_was_set_by_user = set_by_user
        self._remember(time_slot)
        logger.info("Time slot %s categorized as %s.", time_slot.id, category.value)
        self.time_slot_updated.emit(time_slot)
        return time_slot

    def calculate_duration(self, time_slot: TimeSlot) -> float:
        """Elapsed seconds; an open slot runs until now."""
        end_time = time_slot.end_time or self._time_service.now
        return (end_time - time_slot.start_time).total_seconds()

    def sync(self, day: datetime) -> int:
        """Notify about slots of ``day`` written through another connection.

        Unseen slots are reported on ``time_slot_created``, in start order;
        slots whose category changed are reported on ``time_slot_updated``.
        Returns the number of notifications sent.
        """
        notified = 0
        for time_slot in fetch_time_slots_for_day(self._conn, day):
            known = self._seen.get(time_slot.id)
            current = (time_slot.category, time_slot.category_was_set_by_user)
            if known == current:
                continue
            self._remember(time_slot)
            notified += 1
            if known is None:
                logger.debug("Picked up new time slot %s.", time_slot.id)
                self.time_slot_created.emit(time_slot)
            else:
                logger.debug("Picked up change to time slot %s.", time_slot.id)
                self.time_slot_updated.emit(time_slot)
        return notified

    def _remember(self, time_slot: TimeSlot) -> None:
        if time_slot.id is not None:
            self._seen[time_slot.id] = (time_slot.category, time_slot.category_was_set_by_user)
