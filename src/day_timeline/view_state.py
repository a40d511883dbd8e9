"""Cached timeline items for a single day."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from .aggregation import derive_timeline_items, extend_timeline_items
from .models import Category, TimelineItem, TimeSlot, start_of_day
from .services import TimeService
from .store import TimeSlotService

logger = logging.getLogger(__name__)


class TimelineState:
    """Lazily built item list, replaced wholesale or extended by one slot.

    Reading ``items`` never recomputes a list that is already cached; only
    ``rebuild`` and ``append`` replace it.
    """

    def __init__(
        self,
        day: datetime,
        *,
        is_current_day: bool,
        time_slot_service: TimeSlotService,
        time_service: TimeService,
        use_latest_location: bool = False,
    ) -> None:
        self.day = start_of_day(day)
        self.is_current_day = is_current_day
        self._time_slot_service = time_slot_service
        self._time_service = time_service
        self._use_latest_location = use_latest_location
        self._items: Optional[list[TimelineItem]] = None

    @property
    def is_built(self) -> bool:
        return self._items is not None

    @property
    def items(self) -> list[TimelineItem]:
        if self._items is not None:
            return self._items
        return self._build()

    def invalidate(self) -> None:
        self._items = None

    def rebuild(self) -> list[TimelineItem]:
        """Re-read the store and replace the cached items."""
        time_slots = self._time_slot_service.get_time_slots(self.day)
        self._items = self._derive(time_slots)
        logger.debug(
            "Rebuilt timeline for %s: %d slots.",
            self.day.strftime("%Y-%m-%d"),
            len(time_slots),
        )
        return self._items

    def append(self, time_slot: TimeSlot) -> int:
        """Close the running slot, add ``time_slot`` and return its index."""
        if self._items is None:
            # Not built yet: the store already holds the new slot.
            return len(self.rebuild()) - 1

        items, index = extend_timeline_items(
            self.items,
            time_slot,
            closed_at=self._time_service.now,
            is_current_day=self.is_current_day,
            calculate_duration=self._time_slot_service.calculate_duration,
        )
        self._items = items
        return index

    def _derive(self, time_slots: list[TimeSlot]) -> list[TimelineItem]:
        return derive_timeline_items(
            time_slots,
            is_current_day=self.is_current_day,
            calculate_duration=self._time_slot_service.calculate_duration,
        )

    def _build(self) -> list[TimelineItem]:
        items = self.rebuild()
        if not self.is_current_day or items:
            return items

        logger.debug("No time slots for today yet; starting an unknown slot.")
        self._time_slot_service.add_time_slot(
            self._time_service.now,
            Category.UNKNOWN,
            False,
            self._use_latest_location,
        )
        # A live created-subscriber may already have appended the new slot.
        if self._items:
            return self._items
        return self.rebuild()
