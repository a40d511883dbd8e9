"""Tests for the derived timeline streams, driven by recorded event sequences."""

from __future__ import annotations

from conftest import TODAY, YESTERDAY, at
from day_timeline.composition import (
    compose_created_stream,
    compose_edit_view_stream,
    compose_refresh_stream,
    compose_time_stream,
)
from day_timeline.models import AppState, Category, TimeSlot
from day_timeline.streams import EventStream

ACTIVE = AppState.ACTIVE
BACKGROUND = AppState.BACKGROUND
FROM_NOTIFICATION = AppState.ACTIVE_FROM_NOTIFICATION


def slot_on(day, hour: int) -> TimeSlot:
    return TimeSlot(start_time=at(day, hour), category=Category.WORK)


def collect(stream: EventStream) -> list:
    seen: list = []
    stream.subscribe(seen.append)
    return seen


class TestRefreshStream:
    def test_current_day_ignores_app_state(self) -> None:
        refreshes: list[int] = []

        seen = collect(
            compose_refresh_stream(
                TODAY,
                is_current_day=True,
                update_events=EventStream.from_iterable([slot_on(TODAY, 9)]),
                app_state_events=EventStream.from_iterable([BACKGROUND, ACTIVE, ACTIVE]),
                refresh=lambda: refreshes.append(1),
            )
        )

        assert seen == [None]
        assert len(refreshes) == 1

    def test_past_day_also_refreshes_when_app_becomes_active(self) -> None:
        refreshes: list[int] = []

        seen = collect(
            compose_refresh_stream(
                YESTERDAY,
                is_current_day=False,
                update_events=EventStream.from_iterable([slot_on(YESTERDAY, 9)]),
                app_state_events=EventStream.from_iterable(
                    [BACKGROUND, ACTIVE, FROM_NOTIFICATION, ACTIVE]
                ),
                refresh=lambda: refreshes.append(1),
            )
        )

        assert seen == [None, None, None]
        assert len(refreshes) == 3

    def test_updates_for_other_days_are_dropped(self) -> None:
        refreshes: list[int] = []

        seen = collect(
            compose_refresh_stream(
                YESTERDAY,
                is_current_day=False,
                update_events=EventStream.from_iterable([slot_on(TODAY, 9), slot_on(TODAY, 10)]),
                app_state_events=EventStream.empty(),
                refresh=lambda: refreshes.append(1),
            )
        )

        assert seen == []
        assert refreshes == []


class TestCreatedStream:
    def test_maps_slots_of_the_day_to_their_index(self) -> None:
        appended: list[TimeSlot] = []

        def append(time_slot: TimeSlot) -> int:
            appended.append(time_slot)
            return len(appended) - 1

        mine = [slot_on(TODAY, 9), slot_on(TODAY, 11)]
        seen = collect(
            compose_created_stream(
                TODAY,
                EventStream.from_iterable([mine[0], slot_on(YESTERDAY, 10), mine[1]]),
                append,
            )
        )

        assert seen == [0, 1]
        assert appended == mine


class TestEditViewStream:
    def test_emits_last_index_without_consecutive_duplicates(self) -> None:
        indexes = iter([3, 3, 4, 4])

        seen = collect(
            compose_edit_view_stream(
                is_current_day=True,
                app_state_events=EventStream.from_iterable(
                    [FROM_NOTIFICATION, ACTIVE, FROM_NOTIFICATION, FROM_NOTIFICATION, BACKGROUND, FROM_NOTIFICATION]
                ),
                last_index=lambda: next(indexes),
            )
        )

        assert seen == [3, 4]

    def test_past_day_never_jumps_to_edit(self) -> None:
        seen = collect(
            compose_edit_view_stream(
                is_current_day=False,
                app_state_events=EventStream.from_iterable([FROM_NOTIFICATION]),
                last_index=lambda: 0,
            )
        )

        assert seen == []


class TestTimeStream:
    def test_current_day_forwards_ticks(self) -> None:
        seen = collect(
            compose_time_stream(is_current_day=True, ticks=EventStream.from_iterable([0, 1]))
        )

        assert seen == [0, 1]

    def test_past_day_does_not_tick(self) -> None:
        seen = collect(
            compose_time_stream(is_current_day=False, ticks=EventStream.from_iterable([0, 1]))
        )

        assert seen == []
