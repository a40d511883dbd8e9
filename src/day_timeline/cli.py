"""Command-line interface for the day timeline."""

from __future__ import annotations

import logging
import threading
import webbrowser
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional, Tuple

import typer
import uvicorn

from .config import TimelineSettings
from .db import database_connection
from .models import Category, start_of_day
from .paths import get_db_path
from .reporting import TimelinePrinter, format_timeline_item
from .services import AppStateService, EditStateService, TimeService
from .store import TimeSlotService
from .view_model import TimelineViewModel
from .webapp import create_app

logger = logging.getLogger(__name__)

app = typer.Typer(help="Compact daily timeline of categorized time slots.")


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@contextmanager
def _view_model(
    db_path: Path,
    day: datetime,
    settings: Optional[TimelineSettings] = None,
) -> Iterator[Tuple[TimelineViewModel, TimeSlotService]]:
    time_service = TimeService()
    with database_connection(db_path) as conn:
        time_slot_service = TimeSlotService(conn, time_service)
        with TimelineViewModel(
            day,
            time_service=time_service,
            app_state_service=AppStateService(),
            time_slot_service=time_slot_service,
            edit_state_service=EditStateService(),
            settings=settings,
        ) as view_model:
            yield view_model, time_slot_service


def _parse_day(value: Optional[str]) -> datetime:
    if not value:
        return start_of_day(datetime.now())
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError as exc:
        raise typer.BadParameter("Expected a date in YYYY-MM-DD format.") from exc


@app.command()
def show(
    date: Optional[str] = typer.Option(
        None,
        "--date",
        help="Date (YYYY-MM-DD) to show. Defaults to today.",
    ),
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        path_type=Path,
        help="Location of the timeline SQLite database.",
    ),
) -> None:
    """Print the timeline items for a specific day."""
    day = _parse_day(date)
    with _view_model(db_path or get_db_path(), day) as (view_model, _):
        TimelinePrinter(view_model.date).print_timeline(view_model.timeline_items)


@app.command()
def add(
    category: Category = typer.Argument(..., help="Category of the new time slot."),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the timeline SQLite database."
    ),
) -> None:
    """Start a new time slot now, ending the running one."""
    time_service = TimeService()
    with database_connection(db_path or get_db_path()) as conn:
        time_slot = TimeSlotService(conn, time_service).add_time_slot(
            time_service.now,
            category,
            category != Category.UNKNOWN,
        )
    typer.echo(f"Started time slot {time_slot.id} ({time_slot.category.value}).")


@app.command()
def categorize(
    slot_id: int = typer.Argument(..., help="Identifier of the time slot."),
    category: Category = typer.Argument(..., help="New category."),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the timeline SQLite database."
    ),
) -> None:
    """Change the category of an existing time slot."""
    with database_connection(db_path or get_db_path()) as conn:
        service = TimeSlotService(conn, TimeService())
        try:
            time_slot = service.get_time_slot(slot_id)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="SLOT_ID") from exc
        service.update_time_slot(time_slot, category)
    typer.echo(f"Time slot {slot_id} is now {category.value}.")


@app.command()
def watch(
    tick_seconds: float = typer.Option(
        10.0,
        "--interval",
        min=1.0,
        help="Seconds between re-renders of the running slot.",
    ),
    count: Optional[int] = typer.Option(
        None, "--count", min=1, help="Stop after this many renders."
    ),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the timeline SQLite database."
    ),
) -> None:
    """Keep today's timeline on screen until interrupted.

    Slots added or categorized by other commands show up on the next tick.
    """
    settings = TimelineSettings.from_intervals(tick_seconds=tick_seconds)
    stop_event = threading.Event()
    renders = 0
    with _view_model(db_path or get_db_path(), datetime.now(), settings) as (
        view_model,
        time_slot_service,
    ):
        printer = TimelinePrinter(view_model.date, view_model.calculate_duration)
        # Build first so only slots written after this point count as new.
        view_model.timeline_items

        def reveal(index: int) -> None:
            typer.echo(f"New: {format_timeline_item(index, view_model.timeline_items[index])}")

        def on_tick(_: int) -> None:
            nonlocal renders
            time_slot_service.sync(view_model.date)
            printer.print_timeline(view_model.timeline_items)
            renders += 1
            if count is not None and renders >= count:
                stop_event.set()

        view_model.bind(view_model.time_slot_created_stream, reveal)
        view_model.bind(
            view_model.refresh_screen_stream,
            lambda _: logger.debug("Timeline rebuilt after a category change."),
        )
        view_model.bind(view_model.time_stream, on_tick)
        try:
            view_model.run_until_stopped(stop_event)
        except KeyboardInterrupt:
            logger.info("Watch interrupted.")


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the API."),
    port: int = typer.Option(
        8765, "--port", min=1, max=65535, help="TCP port for the API."
    ),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the timeline SQLite database."
    ),
    tick_seconds: float = typer.Option(
        10.0,
        "--interval",
        min=1.0,
        help="Seconds between timeline ticks for today.",
    ),
    open_browser: bool = typer.Option(
        True,
        "--open-browser/--no-open-browser",
        help="Automatically open today's timeline in your default browser.",
    ),
) -> None:
    """Start the local timeline API."""
    api = create_app(
        db_path=db_path or get_db_path(),
        settings=TimelineSettings.from_intervals(tick_seconds=tick_seconds),
    )
    if open_browser:
        # Give uvicorn a moment to bind before the page is requested.
        timer = threading.Timer(1.0, webbrowser.open, args=(f"http://{host}:{port}/api/timeline",))
        timer.daemon = True
        timer.start()
    uvicorn.run(api, host=host, port=port, log_level="info")
