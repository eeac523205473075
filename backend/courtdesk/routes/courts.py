"""
Court status endpoints for the admin grid and the kiosk.

The caller posts the current board (courts, blocks, wet set) with its own
"now"; nothing is stored server-side.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from courtdesk.services.court_availability import compute_playable_courts, compute_registration_court_selection
from courtdesk.services.court_status import (
    OCCUPIED,
    OVERTIME,
    StatusContext,
    format_time_remaining,
    player_display_names,
    resolve_board_statuses,
)

router = APIRouter()


# ============================================================================
# Request / Response Models
# ============================================================================


class CourtStatusRequest(BaseModel):
    courts: List[Optional[Dict[str, Any]]]
    blocks: List[Dict[str, Any]] = []
    wet_courts: List[int] = []
    selected_date: Optional[date] = None
    now: datetime


class CourtStatusItem(BaseModel):
    court_number: int
    status: str
    info: Optional[Dict[str, Any]] = None
    time_remaining: Optional[str] = None
    player_names: Optional[str] = None


class PlayableCourtsRequest(BaseModel):
    courts: List[Optional[Dict[str, Any]]]
    blocks: List[Dict[str, Any]] = []
    now: datetime


class EligibilityItem(BaseModel):
    eligible: bool
    reason: Optional[str] = None


class PlayableCourtsResponse(BaseModel):
    playable_court_numbers: List[int]
    eligibility_by_court_number: Dict[int, EligibilityItem]
    registration_primary_court_numbers: List[int]
    registration_fallback_court_numbers: List[int]
    showing_overtime_courts: bool


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/courts/status", response_model=List[CourtStatusItem])
def court_statuses(payload: CourtStatusRequest):
    """Display status for every court on the board (list index = court number - 1)"""
    context = StatusContext.build(
        now=payload.now,
        wet_courts=payload.wet_courts,
        blocks=payload.blocks,
        selected_date=payload.selected_date,
    )
    items = []
    for index, status in enumerate(resolve_board_statuses(payload.courts, context)):
        item = CourtStatusItem(court_number=index + 1, status=status.status, info=status.info)
        if status.status in (OCCUPIED, OVERTIME):
            item.time_remaining = format_time_remaining(status.info.get("end_time"), context.now)
            item.player_names = player_display_names(status.info.get("players"))
        items.append(item)
    return items


@router.post("/courts/playable", response_model=PlayableCourtsResponse)
def playable_courts(payload: PlayableCourtsRequest):
    """Courts that can take a new game now, plus the kiosk's primary/overtime choices"""
    playable = compute_playable_courts(payload.courts, payload.blocks, payload.now)
    registration = compute_registration_court_selection(payload.courts)
    return PlayableCourtsResponse(
        playable_court_numbers=playable.playable_court_numbers,
        eligibility_by_court_number={
            n: EligibilityItem(**e.to_dict()) for n, e in playable.eligibility_by_court_number.items()
        },
        registration_primary_court_numbers=registration.primary_court_numbers,
        registration_fallback_court_numbers=registration.fallback_court_numbers,
        showing_overtime_courts=registration.showing_overtime_courts,
    )
