"""
ISO-8601 week numbering — the only week calculator in the codebase.

Weekly report submission and the stage-close reconciler both key weekly
performance records through week_key(), so they always land on the same row.
Weeks start on Monday; the year is the ISO year (2024-12-30 is week 1 of 2025).
"""
from datetime import date, datetime, timedelta
from typing import List, Tuple


def _as_date(moment) -> date:
    if isinstance(moment, datetime):
        return moment.date()
    return moment


def week_key(moment) -> Tuple[int, int]:
    """Return (week_number, year) for a date or datetime."""
    iso_year, iso_week, _ = _as_date(moment).isocalendar()
    return iso_week, iso_year


def week_start(moment) -> datetime:
    """Midnight of the Monday that starts the ISO week containing moment."""
    d = _as_date(moment)
    monday = d - timedelta(days=d.weekday())
    return datetime(monday.year, monday.month, monday.day)


def week_start_for(year: int, week_number: int) -> datetime:
    """Inverse of week_key(): Monday midnight of ISO week week_number/year."""
    monday = date.fromisocalendar(year, week_number, 1)
    return datetime(monday.year, monday.month, monday.day)


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    """[start, end) datetimes of a calendar month."""
    start = datetime(year, month, 1)
    if month == 12:
        end = datetime(year + 1, 1, 1)
    else:
        end = datetime(year, month + 1, 1)
    return start, end


def weeks_in_month(year: int, month: int) -> List[Tuple[int, int]]:
    """(week_number, year) keys of every ISO week whose Monday falls in the month."""
    start, end = month_bounds(year, month)
    monday = week_start(start)
    if monday < start:
        monday += timedelta(days=7)
    keys = []
    while monday < end:
        keys.append(week_key(monday))
        monday += timedelta(days=7)
    return keys
