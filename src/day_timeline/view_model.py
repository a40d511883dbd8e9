"""View model behind the timeline of a single day."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from functools import cached_property
from typing import Callable, Optional, TypeVar

from .composition import (
    compose_created_stream,
    compose_edit_view_stream,
    compose_refresh_stream,
    compose_time_stream,
)
from .config import TimelineSettings
from .models import Point, TimelineItem, TimeSlot, start_of_day
from .services import AppStateService, EditStateService, TimeService
from .store import TimeSlotService
from .streams import EventStream, Subscription, SubscriptionScope, Ticker
from .view_state import TimelineState

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TimelineViewModel:
    """Exposes a day's timeline items and the events that change them.

    Subscriptions made through ``bind`` live as long as the view model and are
    released by ``close``.
    """

    def __init__(
        self,
        date: datetime,
        *,
        time_service: TimeService,
        app_state_service: AppStateService,
        time_slot_service: TimeSlotService,
        edit_state_service: EditStateService,
        settings: Optional[TimelineSettings] = None,
    ) -> None:
        self._time_service = time_service
        self._app_state_service = app_state_service
        self._time_slot_service = time_slot_service
        self._edit_state_service = edit_state_service
        self._settings = settings or TimelineSettings()
        self._scope = SubscriptionScope()

        self.date = start_of_day(date)
        self.is_current_day = start_of_day(time_service.now) == self.date
        self._state = TimelineState(
            self.date,
            is_current_day=self.is_current_day,
            time_slot_service=time_slot_service,
            time_service=time_service,
            use_latest_location=self._settings.use_latest_location,
        )
        self._ticker = Ticker(self._settings.tick_interval)
        self.time_stream: EventStream[int] = compose_time_stream(
            is_current_day=self.is_current_day,
            ticks=self._ticker,
        )

    def __enter__(self) -> "TimelineViewModel":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def current_day(self) -> datetime:
        return self._time_service.now

    @property
    def is_editing_stream(self) -> EventStream[bool]:
        return self._edit_state_service.is_editing_stream

    @property
    def timeline_items(self) -> list[TimelineItem]:
        return self._state.items

    @cached_property
    def time_slot_created_stream(self) -> EventStream[int]:
        return compose_created_stream(
            self.date,
            self._time_slot_service.time_slot_created,
            self._state.append,
        )

    @cached_property
    def refresh_screen_stream(self) -> EventStream[None]:
        return compose_refresh_stream(
            self.date,
            is_current_day=self.is_current_day,
            update_events=self._time_slot_service.time_slot_updated,
            app_state_events=self._app_state_service.app_state_stream,
            refresh=self._state.rebuild,
        )

    @cached_property
    def edit_view_stream(self) -> EventStream[int]:
        return compose_edit_view_stream(
            is_current_day=self.is_current_day,
            app_state_events=self._app_state_service.app_state_stream,
            last_index=lambda: len(self.timeline_items) - 1,
        )

    def calculate_duration(self, time_slot: TimeSlot) -> float:
        return self._time_slot_service.calculate_duration(time_slot)

    def notify_editing_began(self, point: Point, index: int) -> None:
        items = self.timeline_items
        if not 0 <= index < len(items):
            raise IndexError(
                f"Timeline item index {index} out of range for {len(items)} items"
            )
        self._edit_state_service.notify_editing_began(point, items[index].time_slot)

    def run_until_stopped(self, stop_event: threading.Event) -> None:
        """Drive the ticker on the calling thread until ``stop_event`` is set.

        Past days never tick; the call then just waits for the stop.
        """
        if not self.is_current_day:
            stop_event.wait()
            return
        self._ticker.run_until_stopped(stop_event)

    def bind(self, stream: EventStream[T], handler: Callable[[T], None]) -> Subscription:
        return self._scope.add(stream.subscribe(handler))

    def close(self) -> None:
        if self._scope.closed:
            return
        logger.debug(
            "Releasing %d subscriptions for %s.",
            len(self._scope),
            self.date.strftime("%Y-%m-%d"),
        )
        self._scope.close()
