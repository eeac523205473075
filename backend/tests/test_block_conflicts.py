"""
Block conflict detection: half-open overlap, per-block reporting,
one booking conflict per court, "now" starts and midnight rollover.
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from courtdesk.services.block_conflicts import (
    BlockProposal,
    ConflictContext,
    detect_conflicts,
    detect_conflicts_for_blocks,
    proposed_range,
    sessions_from_board,
)
from tests.helpers import NOW, block

DAY = date(2025, 1, 1)


def t(hour, minute=0, day=1):
    return datetime(2025, 1, day, hour, minute).isoformat()


def context(blocks=(), sessions=(), editing_block_id=None, now=NOW):
    return ConflictContext(
        now=now,
        existing_blocks=list(blocks),
        court_sessions=list(sessions),
        editing_block_id=editing_block_id,
    )


def check(courts, start, end, day, ctx):
    return detect_conflicts(BlockProposal(courts, start, end, day), ctx)


def session(court, start, end, names=("Ann Smith", "Bob Jones")):
    return {"courtNumber": court, "players": [{"name": n} for n in names], "startedAt": start, "scheduledEndAt": end}


class TestBlockConflicts:
    def test_one_conflict_per_overlapping_block(self):
        blocks = [block(1, 1, t(9), t(10)), block(2, 1, t(9, 30), t(10, 30))]
        conflicts = check([1], "09:45", "10:15", DAY, context(blocks))
        assert len(conflicts) == 2
        assert [c.block_id for c in conflicts] == [1, 2]
        assert all(c.type == "block" for c in conflicts)
        assert conflicts[0].time == "09:00 - 10:00"

    def test_touching_boundary_is_not_a_conflict(self):
        blocks = [block(1, 1, t(9), t(10))]
        assert check([1], "10:00", "11:00", DAY, context(blocks)) == []
        assert check([1], "08:00", "09:00", DAY, context(blocks)) == []

    def test_containing_range_conflicts(self):
        blocks = [block(1, 1, t(9, 15), t(9, 45))]
        assert len(check([1], "09:00", "10:00", DAY, context(blocks))) == 1

    def test_other_courts_ignored(self):
        blocks = [block(1, 2, t(9), t(10))]
        assert check([1], "09:00", "10:00", DAY, context(blocks)) == []

    def test_block_being_edited_is_excluded(self):
        blocks = [block(1, 1, t(9), t(10)), block(2, 1, t(9), t(10))]
        conflicts = check([1], "09:00", "10:00", DAY, context(blocks, editing_block_id=1))
        assert [c.block_id for c in conflicts] == [2]

    def test_order_follows_courts_then_blocks(self):
        blocks = [block(1, 1, t(9), t(10)), block(2, 2, t(9), t(10)), block(3, 2, t(9), t(11))]
        conflicts = check([2, 1], "09:30", "10:30", DAY, context(blocks))
        assert [(c.court_number, c.block_id) for c in conflicts] == [(2, 2), (2, 3), (1, 1)]

    def test_malformed_existing_block_is_skipped(self):
        blocks = [block(1, 1, "bad", t(10)), block(2, 1, t(9), None)]
        assert check([1], "09:00", "10:00", DAY, context(blocks)) == []

    def test_incomplete_proposal_returns_nothing(self):
        blocks = [block(1, 1, t(9), t(10))]
        assert check([], "09:00", "10:00", DAY, context(blocks)) == []
        assert check([1], "", "10:00", DAY, context(blocks)) == []
        assert check([1], "09:00", "10:00", None, context(blocks)) == []

    def test_court_selection_string(self):
        blocks = [block(1, 3, t(9), t(10))]
        assert len(check("1,3", "09:00", "10:00", DAY, context(blocks))) == 1


class TestProposedRange:
    def test_now_start_uses_supplied_clock(self):
        now = datetime(2025, 1, 1, 9, 30)
        start, end = proposed_range("now", "10:00", DAY, now)
        assert start == now
        assert end == datetime(2025, 1, 1, 10, 0)

    def test_now_start_conflicts_with_running_block(self):
        now = datetime(2025, 1, 1, 9, 30)
        blocks = [block(1, 1, t(9), t(9, 45))]
        assert len(check([1], "now", "10:00", DAY, context(blocks, now=now))) == 1

    @pytest.mark.parametrize(
        "now",
        [
            "2025-01-01T09:30:00",
            datetime(2025, 1, 1, 9, 30, tzinfo=timezone.utc),
            datetime(2025, 1, 1, 9, 30, tzinfo=timezone(timedelta(hours=-5))),
            "2025-01-01T09:30:00-05:00",
        ],
    )
    def test_now_as_string_or_aware_datetime(self, now):
        ctx = context([block(1, 1, t(9), t(9, 45))], now=now)
        assert ctx.now == datetime(2025, 1, 1, 9, 30)
        conflicts = check([1], "now", "10:00", DAY, ctx)
        assert [c.block_id for c in conflicts] == [1]

    def test_unparseable_now_resolves_to_no_conflicts(self):
        ctx = context([block(1, 1, t(9), t(9, 45))], now="whenever")
        assert ctx.now is None
        assert check([1], "now", "10:00", DAY, ctx) == []

    def test_end_before_start_rolls_to_next_day(self):
        start, end = proposed_range("23:00", "01:00", DAY, NOW)
        assert start == datetime(2025, 1, 1, 23, 0)
        assert end == datetime(2025, 1, 2, 1, 0)

    def test_overnight_block_conflicts_after_midnight(self):
        blocks = [block(1, 1, t(0, 30, day=2), t(1, 30, day=2))]
        assert len(check([1], "23:00", "01:00", DAY, context(blocks))) == 1

    def test_full_timestamps_accepted(self):
        start, end = proposed_range(t(9), t(10), None, NOW)
        assert (start, end) == (datetime(2025, 1, 1, 9), datetime(2025, 1, 1, 10))

    def test_unresolvable(self):
        assert proposed_range("soon", "10:00", DAY, NOW) is None


class TestBookingConflicts:
    def test_session_overlap_reports_players(self):
        sessions = [session(1, t(9), t(10))]
        conflicts = check([1], "09:30", "11:00", DAY, context(sessions=sessions))
        assert len(conflicts) == 1
        assert conflicts[0].type == "booking"
        assert conflicts[0].players == ["Ann Smith", "Bob Jones"]
        assert "Booked by Ann Smith, Bob Jones" in conflicts[0].message()

    def test_at_most_one_booking_per_court(self):
        sessions = [session(1, t(9), t(10)), session(1, t(9), t(11))]
        conflicts = check([1], "09:30", "11:00", DAY, context(sessions=sessions))
        assert len(conflicts) == 1

    def test_blocks_reported_before_booking(self):
        blocks = [block(1, 1, t(9), t(10))]
        sessions = [session(1, t(9), t(10))]
        conflicts = check([1], "09:30", "11:00", DAY, context(blocks, sessions))
        assert [c.type for c in conflicts] == ["block", "booking"]

    def test_session_ending_at_block_start_is_fine(self):
        sessions = [session(1, t(8), t(9))]
        assert check([1], "09:00", "10:00", DAY, context(sessions=sessions)) == []

    def test_sessions_from_board_domain_shape(self):
        board = [
            None,
            {"session": {"group": {"players": [{"name": "Cy"}]}, "startedAt": t(9), "scheduledEndAt": t(10)}},
        ]
        sessions = sessions_from_board(board)
        assert len(sessions) == 1
        assert sessions[0]["court_number"] == 2
        conflicts = check([2], "09:30", "10:30", DAY, context(sessions=sessions))
        assert conflicts[0].players == ["Cy"]

    def test_session_without_players_still_conflicts(self):
        sessions = [{"courtNumber": 1, "startedAt": t(9), "scheduledEndAt": t(10)}]
        conflicts = check([1], "09:30", "10:30", DAY, context(sessions=sessions))
        assert conflicts[0].players == []


def test_conflicts_for_concrete_blocks():
    existing = [block(1, 1, t(9), t(10))]
    candidates = [
        {"court_number": 1, "start_time": t(9, 30), "end_time": t(10, 30)},
        {"court_number": 1, "start_time": t(9, 30, day=8), "end_time": t(10, 30, day=8)},
        {"court_number": 1, "start_time": "bad", "end_time": t(10)},
    ]
    conflicts = detect_conflicts_for_blocks(candidates, context(existing))
    assert len(conflicts) == 1
    assert conflicts[0].to_dict()["time"] == "09:00 - 10:00"
