"""Minimal push-based event streams.

Streams are synchronous: handlers run on whatever context calls
``EventSource.emit`` and exceptions raised by a handler propagate back to the
emitter. Derived streams are cold; every subscription re-subscribes upstream,
so per-subscription operator state (``distinct_until_changed``) is never
shared.
"""

from __future__ import annotations

import logging
import threading
from datetime import timedelta
from typing import Callable, Generic, Iterable, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

Handler = Callable[[T], None]

_MISSING = object()


class Subscription:
    """Handle returned by ``subscribe``; releases the handler exactly once."""

    def __init__(self, dispose: Optional[Callable[[], None]] = None) -> None:
        self._dispose = dispose
        self._lock = threading.Lock()
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            dispose, self._dispose = self._dispose, None
        if dispose is not None:
            dispose()


class SubscriptionScope:
    """Owns a group of subscriptions that share one lifetime."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._closed = False

    def __len__(self) -> int:
        return len(self._subscriptions)

    @property
    def closed(self) -> bool:
        return self._closed

    def add(self, subscription: Subscription) -> Subscription:
        if self._closed:
            subscription.dispose()
            return subscription
        self._subscriptions.append(subscription)
        return subscription

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription.dispose()


class EventStream(Generic[T]):
    """A stream defined by what happens when somebody subscribes to it."""

    def __init__(self, on_subscribe: Callable[[Handler], Subscription]) -> None:
        self._on_subscribe = on_subscribe

    def subscribe(self, handler: Handler) -> Subscription:
        return self._on_subscribe(handler)

    def map(self, transform: Callable[[T], R]) -> "EventStream[R]":
        def on_subscribe(handler: Handler) -> Subscription:
            return self.subscribe(lambda value: handler(transform(value)))

        return EventStream(on_subscribe)

    def filter(self, predicate: Callable[[T], bool]) -> "EventStream[T]":
        def on_subscribe(handler: Handler) -> Subscription:
            def forward(value: T) -> None:
                if predicate(value):
                    handler(value)

            return self.subscribe(forward)

        return EventStream(on_subscribe)

    def distinct_until_changed(self) -> "EventStream[T]":
        """Suppress a value equal to the one emitted just before it."""

        def on_subscribe(handler: Handler) -> Subscription:
            last: list[object] = [_MISSING]

            def forward(value: T) -> None:
                if last[0] is not _MISSING and last[0] == value:
                    return
                last[0] = value
                handler(value)

            return self.subscribe(forward)

        return EventStream(on_subscribe)

    @staticmethod
    def merge(*streams: "EventStream[T]") -> "EventStream[T]":
        def on_subscribe(handler: Handler) -> Subscription:
            subscriptions = [stream.subscribe(handler) for stream in streams]

            def dispose() -> None:
                for subscription in subscriptions:
                    subscription.dispose()

            return Subscription(dispose)

        return EventStream(on_subscribe)

    @staticmethod
    def empty() -> "EventStream[T]":
        return EventStream(lambda handler: Subscription())

    @staticmethod
    def from_iterable(values: Iterable[T]) -> "EventStream[T]":
        """Replay a finite, recorded sequence to every new subscriber."""
        recorded = list(values)

        def on_subscribe(handler: Handler) -> Subscription:
            subscription = Subscription()
            for value in recorded:
                if subscription.disposed:
                    break
                handler(value)
            return subscription

        return EventStream(on_subscribe)


class EventSource(EventStream[T]):
    """A hot stream that pushes every emitted value to current subscribers."""

    def __init__(self) -> None:
        super().__init__(self._add_handler)
        self._handlers: list[Handler] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    def emit(self, value: T) -> None:
        # Snapshot: handlers may subscribe or dispose while being notified.
        for handler in list(self._handlers):
            handler(value)

    def _add_handler(self, handler: Handler) -> Subscription:
        entry = _HandlerEntry(handler)
        self._handlers.append(entry)

        def remove() -> None:
            self._handlers.remove(entry)

        return Subscription(remove)


class _HandlerEntry:
    """Wraps a handler so identical callables can be subscribed twice."""

    __slots__ = ("handler",)

    def __init__(self, handler: Handler) -> None:
        self.handler = handler

    def __call__(self, value: object) -> None:
        self.handler(value)


class Ticker(EventSource[int]):
    """Emits 0, 1, 2, ... once every ``period`` while a caller drives it.

    Ticks are delivered on the thread that calls ``run_until_stopped``; the
    ticker never starts a thread of its own.
    """

    def __init__(self, period: Union[timedelta, float]) -> None:
        super().__init__()
        self.period = period.total_seconds() if isinstance(period, timedelta) else float(period)

    def run_until_stopped(self, stop_event: threading.Event) -> int:
        """Tick immediately, then every period, until ``stop_event`` is set."""
        tick = 0
        while not stop_event.is_set():
            self.emit(tick)
            tick += 1
            # Sleep in an interruptible manner.
            stop_event.wait(self.period)
        logger.debug("Ticker stopped after %d ticks.", tick)
        return tick
