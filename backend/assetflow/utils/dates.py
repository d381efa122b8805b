from __future__ import annotations
from datetime import date, datetime
from typing import Any, Optional


def parse_date(value: Any) -> Optional[date]:
    """Parse an ISO date or datetime (``2025-03-01``, ``2025-03-01T10:00:00Z``).

    Returns None when the value cannot be read as a date.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    raw = value.strip()
    try:
        return datetime.fromisoformat(raw.replace('Z', '+00:00')).date()
    except ValueError:
        pass
    for fmt in ('%Y-%m-%d', '%d-%m-%Y', '%Y/%m/%d'):
        try:
            return datetime.strptime(raw[:10], fmt).date()
        except ValueError:
            continue
    return None


def display_date(value: Any) -> str:
    """Short locale date (``M/D/YYYY``) as shown in the review screen."""
    d = parse_date(value)
    if d is None:
        return 'Invalid Date'
    return f'{d.month}/{d.day}/{d.year}'


def iso(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat().replace('+00:00', 'Z')
    if isinstance(value, date):
        return value.isoformat()
    return str(value)

__all__ = ['parse_date', 'display_date', 'iso']
