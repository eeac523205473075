"""
Field access for plain-data records.

Board data arrives as JSON-decoded dicts from the upstream API, sometimes
in camelCase (courtNumber, startsAt) and sometimes already snake_case, and
occasionally as attribute objects in tests or callers. get_field() reads
the first present, non-None name from either shape.
"""

from collections.abc import Iterable, Mapping
from typing import Any, List


def get_field(record: Any, *names: str, default: Any = None) -> Any:
    if record is None:
        return default
    for name in names:
        if isinstance(record, Mapping):
            value = record.get(name)
        else:
            value = getattr(record, name, None)
        if value is not None:
            return value
    return default


def get_path(record: Any, *path: str, default: Any = None) -> Any:
    """Walk nested fields, e.g. get_path(court, "session", "group", "players")."""
    current = record
    for name in path:
        current = get_field(current, name)
        if current is None:
            return default
    return current


def as_list(value: Any) -> List[Any]:
    """Coerce a list-like field to a list; anything else (None, str, numbers) is empty."""
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, Iterable) and not isinstance(value, (str, bytes, Mapping)):
        return list(value)
    return []


# Common aliases for block / session timestamps
START_FIELDS = ("start_time", "startTime", "starts_at", "startsAt", "start")
END_FIELDS = ("end_time", "endTime", "ends_at", "endsAt", "end")
COURT_NUMBER_FIELDS = ("court_number", "courtNumber", "number")
