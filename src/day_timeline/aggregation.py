"""Fold a day's time slots into display-ready timeline items.

Consecutive slots of the same known category form one merge group. Every
slot still yields exactly one item, but only the most recent item of a group
(its head) carries the group's durations and only the first one shows the
category name. Unknown slots never join a group.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence

from .models import Category, TimelineItem, TimeSlot

logger = logging.getLogger(__name__)

DurationCalculator = Callable[[TimeSlot], float]


@dataclass(slots=True)
class _MergeGroup:
    category: Category
    head_index: int
    durations: list[float] = field(default_factory=list)

    def accepts(self, time_slot: TimeSlot) -> bool:
        return time_slot.category != Category.UNKNOWN and time_slot.category == self.category


def derive_timeline_items(
    time_slots: Iterable[TimeSlot],
    *,
    is_current_day: bool,
    calculate_duration: DurationCalculator,
) -> list[TimelineItem]:
    """Return one item per slot, in input order."""
    time_slots = list(time_slots)
    count = len(time_slots)
    items: list[TimelineItem] = []
    group: Optional[_MergeGroup] = None

    for index, time_slot in enumerate(time_slots):
        is_last_in_past_day = not is_current_day and index == count - 1
        duration = calculate_duration(time_slot)

        if group is not None and group.accepts(time_slot):
            # The previous head only loses its durations; its other fields,
            # including should_display_category_name, are kept as they were.
            # Left this way pending product clarification.
            items[group.head_index] = items[group.head_index].without_durations()
            group.durations.append(duration)
            group.head_index = len(items)
            items.append(
                TimelineItem(
                    time_slot=time_slot,
                    durations=tuple(group.durations),
                    is_last_in_past_day=is_last_in_past_day,
                    should_display_category_name=False,
                )
            )
            continue

        group = _MergeGroup(time_slot.category, len(items), [duration])
        items.append(
            TimelineItem(
                time_slot=time_slot,
                durations=(duration,),
                is_last_in_past_day=is_last_in_past_day,
                should_display_category_name=True,
            )
        )

    return items


def extend_timeline_items(
    items: Sequence[TimelineItem],
    time_slot: TimeSlot,
    *,
    closed_at: datetime,
    is_current_day: bool,
    calculate_duration: DurationCalculator,
) -> tuple[list[TimelineItem], int]:
    """Append a freshly created slot and return the new items plus its index.

    The representative slot of the current last item is closed at
    ``closed_at`` first; this is the only write made to raw slot data.
    """
    if items:
        items[-1].time_slot.end_time = closed_at

    time_slots = [item.time_slot for item in items]
    time_slots.append(time_slot)
    extended = derive_timeline_items(
        time_slots,
        is_current_day=is_current_day,
        calculate_duration=calculate_duration,
    )
    logger.debug("Timeline extended to %d items.", len(extended))
    return extended, len(extended) - 1


def merged_blocks(items: Iterable[TimelineItem]) -> list[TimelineItem]:
    """The items that carry durations, i.e. one per visual block."""
    return [item for item in items if item.durations]
