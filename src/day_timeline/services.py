"""Clock, app lifecycle and edit-state collaborators of the timeline view."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from .models import AppState, Point, TimeSlot
from .streams import EventSource

logger = logging.getLogger(__name__)


class TimeService:
    """Source of the current instant."""

    @property
    def now(self) -> datetime:
        return datetime.now()


class AppStateService:
    """Tracks whether the app is in the foreground and how it got there."""

    def __init__(self, initial_state: AppState = AppState.ACTIVE) -> None:
        self._app_state = initial_state
        self.app_state_stream: EventSource[AppState] = EventSource()

    @property
    def app_state(self) -> AppState:
        return self._app_state

    def set_app_state(self, app_state: AppState) -> None:
        app_state = AppState(app_state)
        if app_state == self._app_state:
            return
        logger.debug("App state changed: %s -> %s", self._app_state.value, app_state.value)
        self._app_state = app_state
        self.app_state_stream.emit(app_state)


class EditStateService:
    """Remembers which slot the user is editing, if any."""

    def __init__(self) -> None:
        self.is_editing_stream: EventSource[bool] = EventSource()
        self.editing_time_slot: Optional[TimeSlot] = None
        self.editing_point: Optional[Point] = None

    @property
    def is_editing(self) -> bool:
        return self.editing_time_slot is not None

    def notify_editing_began(self, point: Point, time_slot: TimeSlot) -> None:
        self.editing_point = point
        self.editing_time_slot = time_slot
        self.is_editing_stream.emit(True)

    def notify_editing_ended(self) -> None:
        self.editing_point = None
        self.editing_time_slot = None
        self.is_editing_stream.emit(False)
