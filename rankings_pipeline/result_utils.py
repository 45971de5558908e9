"""
Helpers for classifying events and comparing marks
"""
import math
from typing import Optional

from rankings_pipeline.config import (
    TRACK_EVENTS, EVENT_NAMES, INVALID_RESULTS, RELAY_EVENT_NAMES
)


def is_track_event(event_code: str) -> bool:
    """Timed (running) event"""
    return event_code in TRACK_EVENTS


def is_field_event(event_code: str) -> bool:
    """Measured (jump/throw) event"""
    return not is_track_event(event_code)


def get_event_name(event_code: str) -> str:
    """Display name for an event code, falls back to the code itself"""
    return EVENT_NAMES.get(event_code, event_code)


def is_relay_event(event_code: str) -> bool:
    """Relay event (4x100, 4x400, DMRS, ...)"""
    return event_code in RELAY_EVENT_NAMES


def get_relay_event_name(event_code: str) -> str:
    return RELAY_EVENT_NAMES.get(event_code, f"{event_code} Relay")


def is_valid_result(result: Optional[str]) -> bool:
    """Check a mark is not DNS, DNF, NH, FOUL, etc."""
    if result is None:
        return False
    text = str(result).strip()
    if not text or text.lower() == 'nan':
        return False
    return text.upper() not in INVALID_RESULTS


def time_to_seconds(time_str: str) -> float:
    """
    Convert a time to seconds

    Formats: "9.55", "29.55", "2:09.55", "6:29.55"
    Invalid or unparseable times return +inf so they sort last.
    """
    if not is_valid_result(time_str):
        return math.inf

    parts = str(time_str).strip().split(':')
    try:
        if len(parts) == 1:
            return float(parts[0])
        if len(parts) == 2:
            return int(parts[0]) * 60 + float(parts[1])
    except ValueError:
        return math.inf
    return math.inf


def measure_to_inches(measure_str: str) -> float:
    """
    Convert a distance/height to inches

    Formats: "12-03.00", "81-06.00", "3-10.00"
    Invalid or unparseable marks return -inf so they sort last.
    """
    if not is_valid_result(measure_str):
        return -math.inf

    parts = str(measure_str).strip().split('-')
    if len(parts) != 2:
        return -math.inf
    try:
        return int(parts[0]) * 12 + float(parts[1])
    except ValueError:
        return -math.inf


def result_sort_key(result: str, event_code: str) -> float:
    """
    Ascending sort key where smaller is better for every event

    Track times are used as-is, field marks are negated.
    """
    if is_track_event(event_code):
        return time_to_seconds(result)
    return -measure_to_inches(result)


def compare_results(result1: str, result2: str, event_code: str) -> int:
    """
    Compare two marks

    Returns:
        -1 if result1 is better, 1 if result2 is better, 0 if equal
    """
    key1 = result_sort_key(result1, event_code)
    key2 = result_sort_key(result2, event_code)
    if key1 < key2:
        return -1
    if key1 > key2:
        return 1
    return 0


def parse_place(value) -> Optional[int]:
    """Finishing place as an int, None when missing or unparseable"""
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() == 'nan':
        return None
    try:
        return int(float(text))
    except (ValueError, OverflowError):
        return None
