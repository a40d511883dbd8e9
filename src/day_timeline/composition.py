"""Derived notification streams of a day's timeline.

Each function only combines streams; none of them subscribes to anything, so
they can be driven by recorded sequences (``EventStream.from_iterable``) as
well as by live sources.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from .models import AppState, TimeSlot
from .streams import EventStream


def compose_created_stream(
    day: datetime,
    created_events: EventStream[TimeSlot],
    append: Callable[[TimeSlot], int],
) -> EventStream[int]:
    """Index of each new slot of ``day`` once it has been appended."""
    return created_events.filter(lambda time_slot: time_slot.belongs_to(day)).map(append)


def compose_refresh_stream(
    day: datetime,
    *,
    is_current_day: bool,
    update_events: EventStream[TimeSlot],
    app_state_events: EventStream[AppState],
    refresh: Callable[[], object],
) -> EventStream[None]:
    """Rebuild-and-notify triggers for the screen.

    Today only changes through the store, so app state is ignored there. A
    past day also refreshes whenever the app becomes active again.
    """

    def trigger(_: object) -> None:
        refresh()

    updates = update_events.filter(lambda time_slot: time_slot.belongs_to(day)).map(trigger)
    if is_current_day:
        return updates

    resumes = app_state_events.filter(lambda state: state == AppState.ACTIVE).map(trigger)
    return EventStream.merge(resumes, updates)


def compose_edit_view_stream(
    *,
    is_current_day: bool,
    app_state_events: EventStream[AppState],
    last_index: Callable[[], int],
) -> EventStream[int]:
    """Index of the item to edit when the app is opened from a notification."""
    if not is_current_day:
        return EventStream.empty()

    return (
        app_state_events.filter(lambda state: state == AppState.ACTIVE_FROM_NOTIFICATION)
        .map(lambda _: last_index())
        .distinct_until_changed()
    )


def compose_time_stream(*, is_current_day: bool, ticks: EventStream[int]) -> EventStream[int]:
    """Periodic ticks that let today's open slot re-render its duration."""
    if not is_current_day:
        return EventStream.empty()
    return ticks
