from datetime import datetime

# Fixed clock for every test: Tuesday 2025-06-10 12:00 (naive, board-local)
NOW = datetime(2025, 6, 10, 12, 0)


def at(hour: int, minute: int = 0, day: int = 10, month: int = 6, year: int = 2025) -> str:
    """ISO timestamp on the test day (or another day)"""
    return datetime(year, month, day, hour, minute).isoformat()


def block(block_id, court, start, end, reason="Maintenance", is_wet_court=False):
    return {
        "id": block_id,
        "courtNumber": court,
        "startTime": start,
        "endTime": end,
        "reason": reason,
        "isWetCourt": is_wet_court,
    }


def session_court(started_at, scheduled_end_at, names=("Ann Smith", "Bob Jones"), session_id=1):
    """Court record in the domain shape: court.session.group.players"""
    return {
        "session": {
            "id": session_id,
            "group": {"players": [{"name": n} for n in names]},
            "startedAt": started_at,
            "scheduledEndAt": scheduled_end_at,
        }
    }
