"""Simple reporting utilities for CLI output."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from .aggregation import DurationCalculator, merged_blocks
from .models import Category, TimelineItem


class TimelinePrinter:
    """Render a day's timeline items in the console.

    With a ``calculate_duration`` the running slot is measured again on every
    print instead of using the duration cached when the items were derived.
    """

    def __init__(
        self, day: datetime, calculate_duration: Optional[DurationCalculator] = None
    ) -> None:
        self.day = day
        self.calculate_duration = calculate_duration

    def print_timeline(self, items: Iterable[TimelineItem]) -> None:
        items = list(items)
        if not items:
            print("No time slots recorded for the selected day.")
            return

        print(f"Timeline for {self.day.strftime('%Y-%m-%d')}")
        print("-" * 40)
        for index, item in enumerate(items):
            print(format_timeline_item(index, item, self.calculate_duration))

        totals = aggregate_by_category(items, self.calculate_duration)
        if totals:
            print()
            print("Totals:")
            for category, seconds in totals:
                print(f"  {category.value:<12} {format_duration(seconds)}")


def block_duration(
    item: TimelineItem, calculate_duration: Optional[DurationCalculator] = None
) -> float:
    """Total seconds of the block headed by ``item``."""
    if calculate_duration is None or not item.durations or not item.time_slot.is_open:
        return item.total_duration
    # The head's own duration is the last entry; only an open head keeps growing.
    return sum(item.durations[:-1]) + calculate_duration(item.time_slot)


def format_timeline_item(
    index: int,
    item: TimelineItem,
    calculate_duration: Optional[DurationCalculator] = None,
) -> str:
    slot = item.time_slot
    start = slot.start_time.strftime("%H:%M")
    end = slot.end_time.strftime("%H:%M") if slot.end_time else "now"
    label = item.category.value if item.should_display_category_name else ""
    block = format_duration(block_duration(item, calculate_duration)) if item.durations else ""
    marker = " (end of day)" if item.is_last_in_past_day else ""
    return f"{index:>3}  {start}-{end:<5}  {label:<10} {block:>8}{marker}".rstrip()


def aggregate_by_category(
    items: Iterable[TimelineItem],
    calculate_duration: Optional[DurationCalculator] = None,
) -> list[tuple[Category, float]]:
    totals: dict[Category, float] = {}
    for item in merged_blocks(items):
        totals[item.category] = totals.get(item.category, 0.0) + block_duration(
            item, calculate_duration
        )
    return sorted(totals.items(), key=lambda entry: entry[1], reverse=True)


def format_duration(seconds: float) -> str:
    total_seconds = int(round(seconds))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
