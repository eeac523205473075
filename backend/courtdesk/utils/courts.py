"""
Canonical parsers for court numbers.

Handles both string ("1,5,6") and list ([1, "5", 6]) inputs so a selection
never silently turns into character lists (list("1,5") -> ['1', ',', '5']).
"""
from typing import Any, List, Optional, Union

from courtdesk.utils.records import COURT_NUMBER_FIELDS, get_field


def parse_court_number(value: Any) -> Optional[int]:
    """int(value) for ints and digit strings, None otherwise (bools excluded)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def parse_court_numbers(courts: Optional[Union[str, List[Any]]]) -> List[int]:
    """
    Normalize a court selection to a list of ints, preserving order.

    - None or "" -> []
    - String (e.g. "1,5,6") -> split on commas, strip, drop non-numeric -> [1, 5, 6]
    - List (e.g. ["1", 5]) -> coerce each, drop non-numeric -> [1, 5]
    """
    if courts is None:
        return []
    if isinstance(courts, str):
        parts = courts.split(",")
    elif isinstance(courts, (list, tuple)):
        parts = list(courts)
    else:
        parts = [courts]
    numbers = []
    for part in parts:
        number = parse_court_number(part)
        if number is not None:
            numbers.append(number)
    return numbers


def court_number_of(court: Any, index: int) -> int:
    """Court number from the record, falling back to 1-based list position."""
    number = parse_court_number(get_field(court, *COURT_NUMBER_FIELDS))
    return number if number is not None else index + 1


def event_court_numbers(event: Any) -> List[int]:
    """Courts an event/block covers: courtNumbers list, else the single courtNumber."""
    numbers = parse_court_numbers(get_field(event, "court_numbers", "courtNumbers"))
    if numbers:
        return numbers
    single = parse_court_number(get_field(event, *COURT_NUMBER_FIELDS))
    return [single] if single is not None else []
