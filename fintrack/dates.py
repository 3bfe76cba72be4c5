from __future__ import annotations

from calendar import monthrange
from datetime import date, datetime
from typing import Optional


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    if not value or not value.strip():
        return None
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        return None


def add_months(start_date: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's end."""
    total_month = start_date.month - 1 + months
    year = start_date.year + total_month // 12
    month = total_month % 12 + 1
    last_day = monthrange(year, month)[1]
    day = min(start_date.day, last_day)
    return date(year, month, day)


def days_in_month(value: date) -> int:
    return monthrange(value.year, value.month)[1]
