"""Domain models for time slots and the timeline items derived from them."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import NamedTuple, Optional


class Category(str, Enum):
    COMMUTE = "commute"
    FOOD = "food"
    FRIENDS = "friends"
    WORK = "work"
    LEISURE = "leisure"
    UNKNOWN = "unknown"


class AppState(str, Enum):
    BACKGROUND = "background"
    ACTIVE = "active"
    ACTIVE_FROM_NOTIFICATION = "active_from_notification"


class Point(NamedTuple):
    x: float
    y: float


def start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


@dataclass(slots=True, eq=False)
class TimeSlot:
    """A contiguous block of time spent in a single category.

    ``end_time`` is ``None`` while the slot is still running.
    """

    start_time: datetime
    category: Category = Category.UNKNOWN
    end_time: Optional[datetime] = None
    category_was_set_by_user: bool = False
    id: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    def belongs_to(self, day: datetime) -> bool:
        return start_of_day(self.start_time) == start_of_day(day)


@dataclass(frozen=True, slots=True)
class TimelineItem:
    """A display block made of one or more consecutive time slots."""

    time_slot: TimeSlot
    durations: tuple[float, ...]
    is_last_in_past_day: bool = False
    should_display_category_name: bool = True

    @property
    def category(self) -> Category:
        return self.time_slot.category

    @property
    def total_duration(self) -> float:
        return sum(self.durations)

    def without_durations(self) -> "TimelineItem":
        return replace(self, durations=())
