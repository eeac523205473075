"""
Court Status Resolver - display status of one court on the admin grid.

Status is a projection of three signals (wet set, blocks, session) plus the
caller's "now"; it is recomputed on every refresh and never stored.

Rules are evaluated in order, first match wins:
  1. wet       - court's attached block mentions "wet", or court is in the wet set
  2. blocked   - a non-wet block on this court falls on the selected date
                 (today: only blocks active at "now"; other dates: any block that day)
  3. occupied  - players on court (legacy top-level list or session.group.players);
     overtime    reported as overtime once now > scheduled end
  4. available - default
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Set

from courtdesk.utils.courts import parse_court_number, parse_court_numbers
from courtdesk.utils.records import (
    COURT_NUMBER_FIELDS,
    END_FIELDS,
    START_FIELDS,
    as_list,
    get_field,
    get_path,
)
from courtdesk.utils.time_ranges import day_window, intervals_overlap, parse_day, parse_instant

logger = logging.getLogger(__name__)

AVAILABLE = "available"
OCCUPIED = "occupied"
OVERTIME = "overtime"
BLOCKED = "blocked"
WET = "wet"

COURT_STATUSES = (AVAILABLE, OCCUPIED, OVERTIME, BLOCKED, WET)


@dataclass
class CourtStatus:
    status: str
    info: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status, "info": self.info}


@dataclass
class StatusContext:
    """Everything the resolver needs besides the court itself. Passed in, never read globally."""

    now: datetime
    wet_courts: Set[int] = field(default_factory=set)
    blocks: List[Any] = field(default_factory=list)
    selected_date: Optional[date] = None

    @classmethod
    def build(
        cls,
        now: Any,
        wet_courts: Optional[Iterable[Any]] = None,
        blocks: Optional[Iterable[Any]] = None,
        selected_date: Any = None,
    ) -> "StatusContext":
        now_dt = parse_instant(now)
        if now_dt is None:
            raise ValueError(f"now must be a timestamp, got {now!r}")
        return cls(
            now=now_dt,
            wet_courts=set(parse_court_numbers(list(wet_courts or []))),
            blocks=list(blocks or []),
            selected_date=parse_day(selected_date) if selected_date is not None else None,
        )

    @property
    def day(self) -> date:
        return self.selected_date or self.now.date()

    @property
    def is_today(self) -> bool:
        return self.day == self.now.date()


class StatusRule(NamedTuple):
    """match() returns the signal that triggered the rule (or None); build() turns it into a CourtStatus."""

    name: str
    match: Callable[[Any, int, StatusContext], Any]
    build: Callable[[Any, int, StatusContext, Any], CourtStatus]


# ============================================================================
# Rule 1: wet
# ============================================================================


def _match_wet(court: Any, court_number: int, ctx: StatusContext) -> Any:
    block = get_field(court, "block")
    reason = get_field(block, "reason")
    if isinstance(reason, str) and "wet" in reason.lower():
        return block
    if court_number in ctx.wet_courts:
        # non-None marker so the builder still runs without an attached block
        return block if block is not None else {}
    return None


def _build_wet(court: Any, court_number: int, ctx: StatusContext, block: Any) -> CourtStatus:
    return CourtStatus(
        status=WET,
        info={
            "id": get_field(block, "id"),
            "reason": get_field(block, "reason") or "WET COURT",
            "type": "wet",
            "court_number": court_number,
        },
    )


# ============================================================================
# Rule 2: blocked
# ============================================================================


def block_applies_on(block: Any, court_number: int, ctx: StatusContext) -> bool:
    """Non-wet block on this court that intersects the selected day (and is active now, when that day is today)."""
    if parse_court_number(get_field(block, *COURT_NUMBER_FIELDS)) != court_number:
        return False
    if get_field(block, "is_wet_court", "isWetCourt"):
        return False
    start = parse_instant(get_field(block, *START_FIELDS))
    end = parse_instant(get_field(block, *END_FIELDS))
    if start is None or end is None:
        return False

    day_start, day_end = day_window(ctx.day)
    if not intervals_overlap(start, end, day_start, day_end):
        return False

    if ctx.is_today:
        return start <= ctx.now < end
    return True


def _match_blocked(court: Any, court_number: int, ctx: StatusContext) -> Any:
    for block in ctx.blocks:
        if block_applies_on(block, court_number, ctx):
            return block
    return None


def _build_blocked(court: Any, court_number: int, ctx: StatusContext, block: Any) -> CourtStatus:
    return CourtStatus(
        status=BLOCKED,
        info={
            "id": get_field(block, "id"),
            "reason": get_field(block, "reason"),
            "start_time": get_field(block, *START_FIELDS),
            "end_time": get_field(block, *END_FIELDS),
            "type": "block",
            "court_number": court_number,
        },
    )


# ============================================================================
# Rule 3: occupied / overtime
# ============================================================================


def active_game(court: Any) -> Optional[Dict[str, Any]]:
    """
    Normalized game on court, or None.

    Legacy boards put players/endTime on the court itself; the domain shape
    nests them under court.session.group.players / court.session.scheduledEndAt.
    """
    players = as_list(get_field(court, "players"))
    if players:
        return {
            "session_id": get_field(court, "session_id", "sessionId", "id"),
            "players": players,
            "start_time": get_field(court, "start_time", "startTime"),
            "end_time": get_field(court, "end_time", "endTime"),
            "duration": get_field(court, "duration"),
        }

    session = get_field(court, "session")
    players = as_list(get_path(session, "group", "players"))
    if players:
        return {
            "session_id": get_field(session, "id"),
            "players": players,
            "start_time": get_field(session, "started_at", "startedAt"),
            "end_time": get_field(session, "scheduled_end_at", "scheduledEndAt"),
            "duration": get_field(session, "duration"),
        }
    return None


def _match_game(court: Any, court_number: int, ctx: StatusContext) -> Any:
    return active_game(court)


def _build_game(court: Any, court_number: int, ctx: StatusContext, game: Dict[str, Any]) -> CourtStatus:
    end = parse_instant(game["end_time"])
    is_overtime = end is not None and ctx.now > end
    info = dict(game)
    info["type"] = "game"
    info["court_number"] = court_number
    return CourtStatus(status=OVERTIME if is_overtime else OCCUPIED, info=info)


STATUS_RULES: List[StatusRule] = [
    StatusRule(WET, _match_wet, _build_wet),
    StatusRule(BLOCKED, _match_blocked, _build_blocked),
    StatusRule(OCCUPIED, _match_game, _build_game),
]


def resolve_court_status(
    court: Any,
    court_number: int,
    context: StatusContext,
    rules: Optional[List[StatusRule]] = None,
) -> CourtStatus:
    """
    Resolve one court's display status.

    Args:
        court: Court record (dict/object, may be None for an empty court)
        court_number: 1-based court number
        context: now, wet set, blocks and selected date
        rules: Override the rule order (defaults to STATUS_RULES)

    Returns:
        CourtStatus for the first rule that matches, else available
    """
    for rule in rules if rules is not None else STATUS_RULES:
        matched = rule.match(court, court_number, context)
        if matched is not None:
            return rule.build(court, court_number, context, matched)
    return CourtStatus(status=AVAILABLE, info=None)


def resolve_board_statuses(courts: List[Any], context: StatusContext) -> List[CourtStatus]:
    """Statuses for a whole board; list index = court number - 1."""
    statuses = [resolve_court_status(court, index + 1, context) for index, court in enumerate(courts)]
    logger.debug(
        "Resolved %d court statuses for %s: %s",
        len(statuses),
        context.day.isoformat(),
        {s: sum(1 for cs in statuses if cs.status == s) for s in COURT_STATUSES},
    )
    return statuses


# ============================================================================
# Display helpers
# ============================================================================


def format_time_remaining(end_time: Any, now: Any) -> str:
    """'25m left', '1h 5m left', '3m over', '1h over', '1h 10m over'. Empty when unparseable."""
    end = parse_instant(end_time)
    now_dt = parse_instant(now)
    if end is None or now_dt is None:
        return ""
    minutes = math.floor((end - now_dt).total_seconds() / 60)

    if minutes < 0:
        over = abs(minutes)
        if over >= 60:
            hours, mins = divmod(over, 60)
            return f"{hours}h {mins}m over" if mins > 0 else f"{hours}h over"
        return f"{over}m over"
    if minutes < 60:
        return f"{minutes}m left"
    return f"{minutes // 60}h {minutes % 60}m left"


def player_display_names(players: Any) -> str:
    """Last names joined by ' & ' ('No players' when empty)."""
    players = as_list(players)
    if not players:
        return "No players"
    names = []
    for p in players:
        name = get_field(p, "display_name", "displayName", "name", "player_name", "playerName")
        if not isinstance(name, str) or not name.strip():
            name = "Unknown"
        names.append(name.split()[-1])
    return " & ".join(names)
