"""
Weekly availability and booking-conflict arithmetic

Times are handled as minutes since midnight. Intervals are half-open
[start, end), so back-to-back sessions that touch do not overlap.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Iterable, NamedTuple, Optional

from ...models import DAYS_OF_WEEK

SLOT_STEP_MINUTES = 30
MIN_DURATION_HOURS = Decimal("0.5")
MAX_DURATION_HOURS = Decimal("8")
MINUTES_PER_DAY = 24 * 60


class WeeklySlot(NamedTuple):
    day_of_week: str
    start: int
    end: int


def parse_hhmm(value: str) -> int:
    """Parse "HH:MM" (seconds are tolerated and must be zero) into minutes since midnight"""
    if not isinstance(value, str):
        raise ValueError("Time must be a string in HH:MM format")
    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    hours, minutes = int(parts[0]), int(parts[1])
    if len(parts) == 3 and int(parts[2]) != 0:
        raise ValueError(f"Invalid time '{value}', seconds are not supported")
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid time '{value}'")
    return hours * 60 + minutes


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_day(day: str) -> str:
    """Return the canonical weekday name ("monday" -> "Monday")"""
    candidate = (day or "").strip().capitalize()
    if candidate not in DAYS_OF_WEEK:
        raise ValueError(f"Invalid day of week '{day}'")
    return candidate


def weekday_name(value: date) -> str:
    return DAYS_OF_WEEK[value.weekday()]


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    return a_start < b_end and b_start < a_end


def build_slot(day_of_week: str, start_time: str, end_time: str) -> WeeklySlot:
    """Validate a single weekly slot"""
    start = parse_hhmm(start_time)
    end = parse_hhmm(end_time)
    if start >= end:
        raise ValueError(f"Start time must be before end time ({start_time} - {end_time})")
    return WeeklySlot(normalize_day(day_of_week), start, end)


def validate_weekly_slots(slots: Iterable[tuple[str, str, str]]) -> list[WeeklySlot]:
    """
    Validate a full weekly schedule.

    Raises:
        ValueError: on a malformed slot or two slots overlapping on the same day
    """
    built = [build_slot(day, start, end) for day, start, end in slots]
    ordered = sorted(built, key=lambda s: (DAYS_OF_WEEK.index(s.day_of_week), s.start))
    for previous, current in zip(ordered, ordered[1:]):
        if previous.day_of_week == current.day_of_week and intervals_overlap(
            previous.start, previous.end, current.start, current.end
        ):
            raise ValueError(
                f"Overlapping availability on {current.day_of_week}: "
                f"{format_minutes(previous.start)}-{format_minutes(previous.end)} and "
                f"{format_minutes(current.start)}-{format_minutes(current.end)}"
            )
    return ordered


def parse_duration(duration) -> Decimal:
    """Validate a session duration in hours (0.5 step, 0.5 to 8)"""
    try:
        hours = Decimal(str(duration))
    except (InvalidOperation, ValueError) as e:
        raise ValueError("Duration must be a number of hours") from e
    if hours < MIN_DURATION_HOURS or hours > MAX_DURATION_HOURS:
        raise ValueError(f"Duration must be between {MIN_DURATION_HOURS} and {MAX_DURATION_HOURS} hours")
    if (hours * 2) % 1 != 0:
        raise ValueError("Duration must be in 30-minute increments")
    return hours


def booking_interval(start_time: str, duration) -> tuple[int, int]:
    """
    Minutes interval covered by a booking that starts at start_time.

    Raises:
        ValueError: off-grid start, bad duration, or a session running past midnight
    """
    start = parse_hhmm(start_time)
    if start % SLOT_STEP_MINUTES != 0:
        raise ValueError(f"Start time must be on a {SLOT_STEP_MINUTES}-minute boundary")
    end = start + int(parse_duration(duration) * 60)
    if end > MINUTES_PER_DAY:
        raise ValueError("Session cannot run past midnight")
    return start, end


def fits_availability(start: int, end: int, day_slots: Iterable[WeeklySlot]) -> bool:
    """True when [start, end) lies entirely inside one availability slot"""
    return any(slot.start <= start and end <= slot.end for slot in day_slots)


def find_conflict(start: int, end: int, existing: Iterable[tuple[int, int, int]]) -> Optional[int]:
    """
    Return the id of the first existing booking overlapping [start, end).

    Args:
        existing: (start_minutes, end_minutes, booking_id) tuples
    """
    for other_start, other_end, booking_id in existing:
        if intervals_overlap(start, end, other_start, other_end):
            return booking_id
    return None


def open_start_times(day_slots: Iterable[WeeklySlot], duration, booked: Iterable[tuple[int, int]]) -> list[str]:
    """Start times (every 30 minutes) where a session of the given duration still fits"""
    length = int(parse_duration(duration) * 60)
    booked = list(booked)
    starts = []
    for slot in day_slots:
        cursor = slot.start + (-slot.start % SLOT_STEP_MINUTES)
        while cursor + length <= slot.end:
            if not any(intervals_overlap(cursor, cursor + length, b_start, b_end) for b_start, b_end in booked):
                starts.append(format_minutes(cursor))
            cursor += SLOT_STEP_MINUTES
    return starts
