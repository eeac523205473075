"""
Court availability - which courts can take a new game right now.

A court is playable when:
  - no session occupies it, or its session has run past the scheduled end (overtime)
  - no block (wet, maintenance, lesson, ...) covers "now"

Two consumers with different rules:
  - compute_playable_courts(): courtboard view, evaluated from raw sessions/blocks
  - compute_registration_court_selection(): kiosk, evaluated from the board's
    precomputed is_available / is_overtime / is_blocked flags, offering overtime
    courts only when nothing is free
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from courtdesk.utils.courts import court_number_of, parse_court_number
from courtdesk.utils.records import COURT_NUMBER_FIELDS, END_FIELDS, START_FIELDS, get_field
from courtdesk.utils.time_ranges import is_active_interval, parse_instant


@dataclass
class Eligibility:
    eligible: bool
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"eligible": self.eligible, "reason": self.reason}


@dataclass
class PlayableCourts:
    playable_courts: List[Any] = field(default_factory=list)
    playable_court_numbers: List[int] = field(default_factory=list)
    eligibility_by_court_number: Dict[int, Eligibility] = field(default_factory=dict)


@dataclass
class RegistrationSelection:
    primary_courts: List[Any] = field(default_factory=list)
    fallback_overtime_courts: List[Any] = field(default_factory=list)
    primary_court_numbers: List[int] = field(default_factory=list)
    fallback_court_numbers: List[int] = field(default_factory=list)
    showing_overtime_courts: bool = False
    eligibility_by_court_number: Dict[int, Eligibility] = field(default_factory=dict)


def is_occupied_now(court: Any, now: Any) -> bool:
    """Session on court that has not passed its scheduled end. Overtime courts count as free."""
    session = get_field(court, "session")
    if session is None:
        return False
    if get_field(court, "is_overtime", "isOvertime") is True:
        return False
    end = parse_instant(get_field(session, "scheduled_end_at", "scheduledEndAt", *END_FIELDS))
    now_dt = parse_instant(now)
    if end is not None and now_dt is not None and now_dt > end:
        return False
    return True


def _block_covers(block: Any, court_number: int, now: Any) -> bool:
    if parse_court_number(get_field(block, *COURT_NUMBER_FIELDS)) != court_number:
        return False
    start = get_field(block, *START_FIELDS)
    end = get_field(block, *END_FIELDS)
    if start is not None and end is not None:
        return is_active_interval(now, start, end)
    # Blocks without times are only sent while active
    return True


def is_blocked_now(court_number: int, blocks: Optional[List[Any]], now: Any) -> bool:
    return any(_block_covers(block, court_number, now) for block in blocks or [])


def is_wet_now(court_number: int, blocks: Optional[List[Any]], now: Any) -> bool:
    return any(
        get_field(block, "is_wet_court", "isWetCourt") and _block_covers(block, court_number, now)
        for block in blocks or []
    )


def is_playable_now(court: Any, court_number: int, blocks: Optional[List[Any]], now: Any) -> bool:
    # wet courts are blocks, so is_blocked_now covers them
    if is_occupied_now(court, now):
        return False
    if is_blocked_now(court_number, blocks, now):
        return False
    return True


def compute_playable_courts(courts: Optional[List[Any]], blocks: Optional[List[Any]], now: Any) -> PlayableCourts:
    """Courtboard playable set. Null court entries are skipped."""
    result = PlayableCourts()
    for index, court in enumerate(courts or []):
        if court is None:
            continue
        court_number = court_number_of(court, index)
        if is_playable_now(court, court_number, blocks, now):
            result.playable_courts.append(court)
            result.playable_court_numbers.append(court_number)
            result.eligibility_by_court_number[court_number] = Eligibility(eligible=True)
        else:
            reason = "blocked" if is_blocked_now(court_number, blocks, now) else "occupied"
            result.eligibility_by_court_number[court_number] = Eligibility(eligible=False, reason=reason)
    return result


def count_playable_courts(courts: Optional[List[Any]], blocks: Optional[List[Any]], now: Any) -> int:
    return len(compute_playable_courts(courts, blocks, now).playable_court_numbers)


def list_playable_courts(courts: Optional[List[Any]], blocks: Optional[List[Any]], now: Any) -> List[int]:
    return compute_playable_courts(courts, blocks, now).playable_court_numbers


def compute_registration_court_selection(courts: Optional[List[Any]]) -> RegistrationSelection:
    """
    Kiosk court choices from board flags.

    primary:  is_available and not is_blocked
    fallback: is_overtime and not is_blocked and not is_tournament
    Fallback courts are eligible only when there is no primary court.
    """
    result = RegistrationSelection()
    entries = [(court_number_of(c, i), c) for i, c in enumerate(courts or []) if c is not None]

    def flag(court: Any, *names: str) -> bool:
        return bool(get_field(court, *names))

    primary_numbers = set()
    fallback_numbers = set()
    for number, court in entries:
        if flag(court, "is_blocked", "isBlocked"):
            continue
        if flag(court, "is_available", "isAvailable"):
            result.primary_courts.append(court)
            result.primary_court_numbers.append(number)
            primary_numbers.add(number)
        if flag(court, "is_overtime", "isOvertime") and not flag(court, "is_tournament", "isTournament"):
            result.fallback_overtime_courts.append(court)
            result.fallback_court_numbers.append(number)
            fallback_numbers.add(number)

    result.showing_overtime_courts = not result.primary_courts and bool(result.fallback_overtime_courts)

    for number, _ in entries:
        is_primary = number in primary_numbers
        is_fallback = number in fallback_numbers
        result.eligibility_by_court_number[number] = Eligibility(
            eligible=is_primary or (result.showing_overtime_courts and is_fallback),
            reason=None if is_primary or is_fallback else "not_available",
        )
    return result
