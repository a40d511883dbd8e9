"""FastAPI application that exposes a local JSON API for the day timeline."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict

from .config import TimelineSettings
from .db import database_connection
from .models import Category, TimelineItem, TimeSlot, start_of_day
from .paths import get_db_path
from .services import AppStateService, EditStateService, TimeService
from .store import TimeSlotService
from .view_model import TimelineViewModel

logger = logging.getLogger(__name__)


class SlotCreate(BaseModel):
    category: Category = Category.UNKNOWN

    model_config = ConfigDict(extra="forbid")


class SlotUpdate(BaseModel):
    category: Category

    model_config = ConfigDict(extra="forbid")


def create_app(
    *,
    db_path: Optional[Path] = None,
    settings: Optional[TimelineSettings] = None,
    time_service: Optional[TimeService] = None,
) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_db_path = Path(db_path or get_db_path())
    resolved_settings = settings or TimelineSettings()
    resolved_time_service = time_service or TimeService()

    app = FastAPI(title="Day Timeline", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.db_path = resolved_db_path

    @contextmanager
    def slot_service(request: Request) -> Iterator[TimeSlotService]:
        with database_connection(request.app.state.db_path) as conn:
            yield TimeSlotService(conn, resolved_time_service)

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        return {
            "database_path": str(request.app.state.db_path),
            "tick_seconds": resolved_settings.tick_interval.total_seconds(),
            "now": resolved_time_service.now.isoformat(),
        }

    @app.get("/api/timeline")
    def timeline(
        request: Request,
        date: Optional[str] = Query(
            default=None,
            description="Target date in YYYY-MM-DD format.",
        ),
    ) -> Dict[str, Any]:
        target_day = _parse_date(date, resolved_time_service)
        with slot_service(request) as time_slot_service:
            with TimelineViewModel(
                target_day,
                time_service=resolved_time_service,
                app_state_service=AppStateService(),
                time_slot_service=time_slot_service,
                edit_state_service=EditStateService(),
                settings=resolved_settings,
            ) as view_model:
                items = view_model.timeline_items
                return {
                    "date": view_model.date.strftime("%Y-%m-%d"),
                    "is_current_day": view_model.is_current_day,
                    "items": [_item_to_payload(item) for item in items],
                }

    @app.post("/api/slots")
    def create_slot(payload: SlotCreate, request: Request) -> Dict[str, Any]:
        with slot_service(request) as time_slot_service:
            time_slot = time_slot_service.add_time_slot(
                resolved_time_service.now,
                payload.category,
                payload.category != Category.UNKNOWN,
                resolved_settings.use_latest_location,
            )
        return _slot_to_payload(time_slot)

    @app.patch("/api/slots/{slot_id}")
    def update_slot(slot_id: int, payload: SlotUpdate, request: Request) -> Dict[str, Any]:
        with slot_service(request) as time_slot_service:
            try:
                time_slot = time_slot_service.get_time_slot(slot_id)
            except ValueError as exc:
                logger.warning("Rejected update of unknown time slot %s.", slot_id)
                raise HTTPException(status_code=404, detail="Time slot not found") from exc
            time_slot_service.update_time_slot(time_slot, payload.category)
        return _slot_to_payload(time_slot)

    return app


def _parse_date(value: Optional[str], time_service: TimeService) -> datetime:
    if not value:
        return start_of_day(time_service.now)
    try:
        parsed = datetime.strptime(value, "%Y-%m-%d")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid date format") from exc
    return start_of_day(parsed)


def _slot_to_payload(time_slot: TimeSlot) -> Dict[str, Any]:
    return {
        "id": time_slot.id,
        "start_time": time_slot.start_time.isoformat(),
        "end_time": time_slot.end_time.isoformat() if time_slot.end_time else None,
        "category": time_slot.category.value,
        "category_was_set_by_user": time_slot.category_was_set_by_user,
    }


def _item_to_payload(item: TimelineItem) -> Dict[str, Any]:
    return {
        "time_slot": _slot_to_payload(item.time_slot),
        "durations": list(item.durations),
        "is_last_in_past_day": item.is_last_in_past_day,
        "should_display_category_name": item.should_display_category_name,
    }
