"""
Calendar event layout: sort/tie-break, envelope grouping, first-fit columns,
equal widths per group.
"""
from copy import deepcopy
from datetime import datetime, timedelta

from courtdesk.services.event_layout import compute_event_layout, event_key
from courtdesk.utils.time_ranges import intervals_overlap, parse_instant


def ev(event_id, start_hour, end_hour, court=1, day=1):
    start = datetime(2025, 1, day) + timedelta(hours=start_hour)
    end = datetime(2025, 1, day) + timedelta(hours=end_hour)
    return {"id": event_id, "startTime": start.isoformat(), "endTime": end.isoformat(), "courtNumbers": [court]}


def columns(layout):
    return {key: (info.column, info.total_columns) for key, info in layout.items()}


class TestLayout:
    def test_single_event(self):
        assert columns(compute_event_layout([ev("a", 9, 10)])) == {"a": (0, 1)}

    def test_non_overlapping_events_get_own_groups(self):
        layout = compute_event_layout([ev("a", 9, 10), ev("b", 10, 11), ev("c", 13, 14)])
        assert columns(layout) == {"a": (0, 1), "b": (0, 1), "c": (0, 1)}
        assert len({info.group for info in layout.values()}) == 3

    def test_longer_event_wins_column_zero_on_equal_start(self):
        layout = compute_event_layout([ev("short", 9, 10), ev("long", 9, 12)])
        assert columns(layout) == {"long": (0, 2), "short": (1, 2)}

    def test_first_fit_reuses_freed_column(self):
        layout = compute_event_layout([ev("a", 9, 11), ev("b", 9, 10), ev("c", 10, 11)])
        assert columns(layout) == {"a": (0, 2), "b": (1, 2), "c": (1, 2)}

    def test_three_way_overlap(self):
        layout = compute_event_layout([ev("a", 9, 12), ev("b", 9.5, 11), ev("c", 10, 10.5)])
        assert columns(layout) == {"a": (0, 3), "b": (1, 3), "c": (2, 3)}

    def test_envelope_groups_events_that_do_not_pairwise_overlap(self):
        # p and r never overlap, but r touches the p+q envelope
        layout = compute_event_layout([ev("p", 9, 10), ev("q", 9.5, 11), ev("r", 10.5, 11.5)])
        assert layout["p"].group == layout["r"].group
        assert columns(layout) == {"p": (0, 2), "q": (1, 2), "r": (0, 2)}

    def test_fallback_key_without_id(self):
        event = {"startTime": "2025-01-01T09:00:00", "endTime": "2025-01-01T10:00:00", "courtNumbers": [3, 4]}
        assert event_key(event) == "2025-01-01T09:00:00-3"
        assert "2025-01-01T09:00:00-3" in compute_event_layout([event])

    def test_fallback_key_single_court(self):
        event = {"startTime": "2025-01-01T09:00:00", "endTime": "2025-01-01T10:00:00", "courtNumber": 7}
        assert event_key(event) == "2025-01-01T09:00:00-7"

    def test_unparseable_events_are_left_out(self):
        layout = compute_event_layout([ev("a", 9, 10), {"id": "bad", "startTime": "x", "endTime": None}])
        assert set(layout) == {"a"}

    def test_inputs_not_mutated(self):
        events = [ev("b", 10, 11), ev("a", 9, 12), ev("c", 9, 10)]
        snapshot = deepcopy(events)
        compute_event_layout(events)
        assert events == snapshot

    def test_empty(self):
        assert compute_event_layout([]) == {}


class TestLayoutProperties:
    def _events(self):
        # deterministic spread of short/long, overlapping/touching events
        events = []
        for i in range(40):
            start = (i * 7) % 24 / 2 + 6
            length = 0.5 + (i * 5) % 6 / 2
            events.append(ev(f"e{i}", start, start + length, day=1 + i % 2))
        return events

    def test_same_column_never_overlaps(self):
        events = self._events()
        layout = compute_event_layout(events)
        by_key = {e["id"]: (parse_instant(e["startTime"]), parse_instant(e["endTime"])) for e in events}
        keys = list(layout)
        for i, a in enumerate(keys):
            for b in keys[i + 1:]:
                same_slot = layout[a].group == layout[b].group and layout[a].column == layout[b].column
                if same_slot:
                    assert not intervals_overlap(*by_key[a], *by_key[b])

    def test_group_members_share_total_columns(self):
        layout = compute_event_layout(self._events())
        totals = {}
        for info in layout.values():
            totals.setdefault(info.group, set()).add(info.total_columns)
            assert 0 <= info.column < info.total_columns
        assert all(len(t) == 1 for t in totals.values())
