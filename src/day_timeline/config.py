"""Configuration models and helpers for the timeline view."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta


@dataclass(slots=True)
class TimelineSettings:
    """Runtime configuration for a day's timeline view."""

    tick_interval: timedelta = timedelta(seconds=10)
    use_latest_location: bool = False

    @classmethod
    def from_intervals(
        cls,
        tick_seconds: float,
        use_latest_location: bool = False,
    ) -> "TimelineSettings":
        return cls(
            tick_interval=timedelta(seconds=max(tick_seconds, 0.1)),
            use_latest_location=use_latest_location,
        )
