from datetime import date
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from courtdesk.config import COURT_COUNT
from courtdesk.services.calendar_views import build_day_view, build_week_view
from courtdesk.services.event_layout import compute_event_layout

router = APIRouter()


class LayoutRequest(BaseModel):
    events: List[Dict[str, Any]]


class DayViewRequest(BaseModel):
    events: List[Dict[str, Any]]
    selected_date: date
    court_count: int = COURT_COUNT


class WeekViewRequest(BaseModel):
    events: List[Dict[str, Any]]
    selected_date: date


@router.post("/calendar/layout")
def event_layout(payload: LayoutRequest) -> Dict[str, Any]:
    """Column/width for each event, keyed by event id (or start-court when unsaved)"""
    layout = compute_event_layout(payload.events)
    return {"layout": {key: info.to_dict() for key, info in layout.items()}}


@router.post("/calendar/day")
def day_view(payload: DayViewRequest) -> Dict[str, Any]:
    """Events for one day, laid out per court"""
    if payload.court_count < 1:
        raise HTTPException(status_code=422, detail="court_count must be >= 1")
    return build_day_view(payload.events, payload.selected_date, court_count=payload.court_count)


@router.post("/calendar/week")
def week_view(payload: WeekViewRequest) -> Dict[str, Any]:
    """Sunday-based week around selected_date, laid out per day"""
    return build_week_view(payload.events, payload.selected_date)
