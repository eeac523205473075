"""
Block endpoints: conflict warnings, recurring block expansion,
wet-court activation/clearing and soft cancels.

These return block records for the caller to submit to the reservation
backend; conflicts are warnings and never stop a request.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional, Union

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, field_validator, model_validator

from courtdesk.config import COURT_COUNT, WET_COURT_DURATION_MINUTES
from courtdesk.services.block_builder import (
    BlockRequest,
    BlockValidationError,
    build_block_requests,
    build_wet_court_blocks,
    clear_wet_blocks,
    truncate_block,
)
from courtdesk.services.block_conflicts import (
    BlockProposal,
    ConflictContext,
    detect_conflicts,
    detect_conflicts_for_blocks,
    sessions_from_board,
)
from courtdesk.services.recurrence import InvalidRecurrenceError, RecurrenceSpec

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Request Models
# ============================================================================


class RecurrenceModel(BaseModel):
    pattern: Literal["daily", "weekly", "monthly"]
    frequency: int = 1
    end_type: Literal["after", "date"] = "after"
    occurrences: Optional[int] = None
    end_date: Optional[date] = None

    @field_validator("frequency")
    @classmethod
    def validate_frequency(cls, v):
        if v <= 0:
            raise ValueError("frequency must be a positive integer")
        return v

    @model_validator(mode="after")
    def validate_end(self):
        if self.end_type == "after" and (self.occurrences is None or self.occurrences < 1):
            raise ValueError("occurrences must be >= 1 when end_type is 'after'")
        if self.end_type == "date" and self.end_date is None:
            raise ValueError("end_date is required when end_type is 'date'")
        return self

    def to_spec(self) -> RecurrenceSpec:
        return RecurrenceSpec(
            pattern=self.pattern,
            frequency=self.frequency,
            end_type=self.end_type,
            occurrences=self.occurrences,
            end_date=self.end_date,
        )


class BoardData(BaseModel):
    """Current reservation data the checks run against"""

    existing_blocks: List[Dict[str, Any]] = []
    court_sessions: List[Dict[str, Any]] = []
    board_courts: List[Optional[Dict[str, Any]]] = []
    now: datetime

    def conflict_context(self, editing_block_id: Optional[Union[int, str]] = None) -> ConflictContext:
        return ConflictContext(
            now=self.now,
            existing_blocks=self.existing_blocks,
            court_sessions=self.court_sessions + sessions_from_board(self.board_courts),
            editing_block_id=editing_block_id,
        )


class ConflictCheckRequest(BoardData):
    courts: List[int]
    start_time: str
    end_time: str
    selected_date: date
    editing_block_id: Optional[Union[int, str]] = None


class BlockExpandRequest(BoardData):
    title: str
    reason: str
    courts: List[int]
    start_time: str
    end_time: str
    selected_date: date
    recurrence: Optional[RecurrenceModel] = None


class WetCourtRequest(BaseModel):
    court_numbers: Optional[List[int]] = None  # None = every court
    duration_minutes: int = WET_COURT_DURATION_MINUTES
    now: datetime


class WetClearRequest(BaseModel):
    blocks: List[Dict[str, Any]]
    court_numbers: Optional[List[int]] = None  # None = every court


class BlockCancelRequest(BaseModel):
    block: Dict[str, Any]
    now: datetime


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/blocks/conflicts")
def check_block_conflicts(payload: ConflictCheckRequest) -> Dict[str, Any]:
    """Existing blocks and sessions a proposed block would collide with"""
    proposal = BlockProposal(
        courts=payload.courts,
        start_time=payload.start_time,
        end_time=payload.end_time,
        selected_date=payload.selected_date,
    )
    conflicts = detect_conflicts(proposal, payload.conflict_context(payload.editing_block_id))
    return {
        "has_conflicts": bool(conflicts),
        "conflicts": [c.to_dict() for c in conflicts],
    }


@router.post("/blocks/expand")
def expand_blocks(payload: BlockExpandRequest) -> Dict[str, Any]:
    """Concrete block records for a (possibly recurring) block request, with their conflicts"""
    context = payload.conflict_context()
    request = BlockRequest(
        title=payload.title,
        reason=payload.reason,
        courts=payload.courts,
        start_time=payload.start_time,
        end_time=payload.end_time,
        selected_date=payload.selected_date,
        recurrence=payload.recurrence.to_spec() if payload.recurrence else None,
    )
    try:
        drafts = build_block_requests(request, context.now)
    except (BlockValidationError, InvalidRecurrenceError) as e:
        raise HTTPException(status_code=422, detail=str(e))

    conflicts = detect_conflicts_for_blocks([d.to_dict() for d in drafts], context)
    return {
        "block_count": len(drafts),
        "blocks": [d.to_dict() for d in drafts],
        "conflicts": [c.to_dict() for c in conflicts],
    }


@router.post("/blocks/wet")
def activate_wet_courts(payload: WetCourtRequest) -> Dict[str, Any]:
    """Wet blocks starting now for the given courts (default: all courts)"""
    court_numbers = payload.court_numbers or list(range(1, COURT_COUNT + 1))
    try:
        drafts = build_wet_court_blocks(court_numbers, payload.now, payload.duration_minutes)
    except BlockValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    logger.info("Marked %d court(s) wet for %d minutes", len(drafts), payload.duration_minutes)
    return {
        "courts_marked": len(drafts),
        "court_numbers": [d.court_number for d in drafts],
        "ends_at": drafts[0].end_time.isoformat() if drafts else None,
        "blocks": [d.to_dict() for d in drafts],
    }


@router.post("/blocks/wet/clear")
def clear_wet_courts(payload: WetClearRequest) -> Dict[str, Any]:
    """Split the posted blocks into kept and cleared wet blocks"""
    kept, cleared = clear_wet_blocks(payload.blocks, payload.court_numbers)
    logger.info("Cleared %d wet block(s)", len(cleared))
    return {"blocks_cleared": len(cleared), "cleared": cleared, "blocks": kept}


@router.post("/blocks/cancel")
def cancel_block(payload: BlockCancelRequest) -> Dict[str, Any]:
    """Cut a running block short at now; a block that has not started is deleted instead"""
    updated = truncate_block(payload.block, payload.now)
    if updated is None:
        logger.info("Block %r has not started, delete it", payload.block.get("id"))
        return {"action": "delete", "block": None}
    if updated == payload.block:
        return {"action": "none", "block": updated}
    logger.info("Truncated block %r at %s", payload.block.get("id"), payload.now)
    return {"action": "truncate", "block": updated}
