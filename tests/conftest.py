"""Shared pytest fixtures for the day timeline tests.

Fixtures included:
- Clock: frozen_clock (a TimeService whose ``now`` only moves when told to)
- Storage: conn (in-memory SQLite), store (TimeSlotService)
- Collaborators: app_state_service, edit_state_service
- Factories: make_slot, make_view_model, duration_at
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Iterator, Optional

import pytest

from day_timeline.db import open_database
from day_timeline.models import Category, TimeSlot
from day_timeline.services import AppStateService, EditStateService, TimeService
from day_timeline.store import TimeSlotService
from day_timeline.view_model import TimelineViewModel

TODAY = datetime(2024, 5, 6)
YESTERDAY = TODAY - timedelta(days=1)
NOON = TODAY.replace(hour=12)


class FrozenClock(TimeService):
    """A clock for tests; ``now`` changes only through ``advance``/``set``."""

    def __init__(self, now: datetime) -> None:
        self._now = now

    @property
    def now(self) -> datetime:
        return self._now

    def set(self, value: datetime) -> None:
        self._now = value

    def advance(self, **kwargs: float) -> None:
        self._now += timedelta(**kwargs)


def at(day: datetime, hour: int, minute: int = 0) -> datetime:
    return day.replace(hour=hour, minute=minute, second=0, microsecond=0)


# =============================================================================
# Core fixtures
# =============================================================================


@pytest.fixture
def frozen_clock() -> FrozenClock:
    return FrozenClock(NOON)


@pytest.fixture
def conn() -> Iterator:
    connection = open_database(":memory:")
    try:
        yield connection
    finally:
        connection.close()


@pytest.fixture
def store(conn, frozen_clock: FrozenClock) -> TimeSlotService:
    return TimeSlotService(conn, frozen_clock)


@pytest.fixture
def app_state_service() -> AppStateService:
    return AppStateService()


@pytest.fixture
def edit_state_service() -> EditStateService:
    return EditStateService()


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_slot() -> Callable[..., TimeSlot]:
    """Build a slot on TODAY (or ``day``) from hour/minute pairs."""

    def factory(
        category: Category,
        start: tuple[int, int],
        end: Optional[tuple[int, int]] = None,
        day: datetime = TODAY,
    ) -> TimeSlot:
        return TimeSlot(
            start_time=at(day, *start),
            end_time=at(day, *end) if end else None,
            category=category,
        )

    return factory


@pytest.fixture
def duration_at(frozen_clock: FrozenClock) -> Callable[[TimeSlot], float]:
    """Duration calculator that treats open slots as running until the clock."""

    def calculate(time_slot: TimeSlot) -> float:
        end_time = time_slot.end_time or frozen_clock.now
        return (end_time - time_slot.start_time).total_seconds()

    return calculate


@pytest.fixture
def make_view_model(
    frozen_clock: FrozenClock,
    app_state_service: AppStateService,
    store: TimeSlotService,
    edit_state_service: EditStateService,
) -> Iterator[Callable[[datetime], TimelineViewModel]]:
    created: list[TimelineViewModel] = []

    def factory(date: datetime) -> TimelineViewModel:
        view_model = TimelineViewModel(
            date,
            time_service=frozen_clock,
            app_state_service=app_state_service,
            time_slot_service=store,
            edit_state_service=edit_state_service,
        )
        created.append(view_model)
        return view_model

    yield factory
    for view_model in created:
        view_model.close()
