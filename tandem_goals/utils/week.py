"""ISO-8601 week identifier utilities.

Week ids look like ``2026-W01``: four-digit ISO year, a literal ``-W`` and a
two-digit, zero-padded ISO week number. Weeks start on Monday and week 1 is
the week holding the year's first Thursday, so the ISO year of a date near
New Year can differ from its calendar year, and a year has 52 or 53 weeks.
"""
import re
from datetime import date, timedelta
from typing import Optional

from tandem_goals.exceptions import GoalValidationError, InvalidWeekId
from tandem_goals.utils.clock import Clock, SystemClock

WEEK_ID_PATTERN = re.compile(r"([0-9]{4})-W([0-9]{2})")


def format_week_id(year: int, week: int) -> str:
    """Format an ISO (year, week) pair as a zero-padded week id."""
    return f"{year:04d}-W{week:02d}"


def weeks_in_year(year: int) -> int:
    """
    Number of ISO weeks in an ISO year (52 or 53).

    December 28th always falls in the last ISO week of its year.
    """
    return date(year, 12, 28).isocalendar()[1]


def parse_week_id(week_id: str) -> tuple[int, int]:
    """
    Parse a week id into an ISO (year, week) pair.

    Args:
        week_id: Week id such as "2026-W09"

    Returns:
        Tuple of (year, week)

    Raises:
        InvalidWeekId: If the id is malformed or the year has no such week
    """
    match = WEEK_ID_PATTERN.fullmatch(week_id) if isinstance(week_id, str) else None
    if not match:
        raise InvalidWeekId(week_id)

    year, week = int(match.group(1)), int(match.group(2))
    if year < 1 or week < 1 or week > 53:
        raise InvalidWeekId(week_id)
    if week > weeks_in_year(year):
        raise InvalidWeekId(week_id)

    return year, week


def validate_week_id(week_id: str) -> str:
    """Return the week id unchanged if valid, raise InvalidWeekId otherwise."""
    parse_week_id(week_id)
    return week_id


def week_id_of(day: date) -> str:
    """
    Get the ISO week id containing a date.

    Examples:
        >>> week_id_of(date(2026, 1, 1))
        '2026-W01'
        >>> week_id_of(date(2027, 1, 1))
        '2026-W53'
    """
    year, week, _ = day.isocalendar()
    return format_week_id(year, week)


def week_start(week_id: str) -> date:
    """Monday of the given week."""
    year, week = parse_week_id(week_id)
    return date.fromisocalendar(year, week, 1)


def offset_week_id(week_id: str, weeks: int) -> str:
    """
    Move a week id forward (or backward, for negative offsets) by whole weeks.

    Rolls across 52- and 53-week years by stepping through calendar dates.
    """
    return week_id_of(week_start(week_id) + timedelta(weeks=weeks))


def compare_week_ids(a: str, b: str) -> int:
    """
    Compare two week ids on (year, week).

    Returns:
        -1 if a is earlier, 0 if equal, 1 if a is later
    """
    key_a = parse_week_id(a)
    key_b = parse_week_id(b)
    return (key_a > key_b) - (key_a < key_b)


def is_after(a: str, b: str) -> bool:
    """True when week a is strictly later than week b."""
    return compare_week_ids(a, b) > 0


def weeks_between(start: str, end: str) -> int:
    """Whole weeks from start to end (negative when end is earlier)."""
    return (week_start(end) - week_start(start)).days // 7


def end_week_id(start_week_id: str, duration_weeks: int) -> str:
    """
    Last week inside a goal window of ``duration_weeks`` starting at start_week_id.

    A 4-week window starting 2026-W01 ends 2026-W04.
    """
    if duration_weeks < 1:
        raise GoalValidationError("Duration must be at least one week")
    return offset_week_id(start_week_id, duration_weeks - 1)


def current_week_id(clock: Optional[Clock] = None) -> str:
    """Week id for the clock's today."""
    clock = clock or SystemClock()
    return week_id_of(clock.today())
