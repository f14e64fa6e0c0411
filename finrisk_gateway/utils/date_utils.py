"""Date manipulation utilities"""

from datetime import date
from typing import Optional


def parse_iso_date(value: str) -> Optional[date]:
    """Parse YYYY-MM-DD, returning None when the value is not a valid date"""
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        return None


def years_between(earlier: date, later: date) -> int:
    """Whole years elapsed from earlier to later (birthday-aware)"""
    years = later.year - earlier.year
    if (later.month, later.day) < (earlier.month, earlier.day):
        years -= 1
    return years
