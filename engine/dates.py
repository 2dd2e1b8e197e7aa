"""
Date handling utilities with consistent normalization.

All engine dates are naive calendar dates; day counts are whole calendar
days and year fractions use a 365-day basis.
"""
import re
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Union
import pandas as pd

from .errors import InvalidDateError

_ISO_DATE = re.compile(r'^(\d{4})-(\d{2})-(\d{2})$')

DateLike = Union[str, date, datetime, pd.Timestamp]


def parse_iso_date(value: DateLike, field: str = "date") -> date:
    """
    Parse a strict YYYY-MM-DD string (or pass a date through).

    Impossible dates such as 2025-02-30 are rejected rather than rolled over.

    Args:
        value: ISO date string or date-like object
        field: Field name for the error message

    Returns:
        datetime.date

    Raises:
        InvalidDateError: if the value is not a valid calendar date
    """
    if value is pd.NaT:
        raise InvalidDateError(f"{field} is missing", field=field)
    if isinstance(value, (datetime, pd.Timestamp)):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDateError(f"{field} must be YYYY-MM-DD, got {value!r}", field=field)

    m = _ISO_DATE.match(value.strip())
    if not m:
        raise InvalidDateError(f"{field} must be YYYY-MM-DD, got {value!r}", field=field)
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        raise InvalidDateError(f"{field} is not a calendar date: {value!r}", field=field)


def normalize_date(d: Union[DateLike, None]) -> Optional[date]:
    """
    Convert any date-like object to datetime.date.

    Lenient counterpart of parse_iso_date for provider data (timestamps,
    numpy datetimes, loosely formatted strings).

    Args:
        d: Date in various formats

    Returns:
        datetime.date object or None if input is None/NaT/unparseable
    """
    if d is None or d is pd.NaT:
        return None
    if isinstance(d, datetime):
        return d.date()
    if isinstance(d, date):
        return d
    if pd.isna(d):
        return None
    ts = pd.to_datetime(d, errors='coerce')
    if pd.isna(ts):
        return None
    return ts.date()


def parse_date_list(values: Union[str, Iterable, None], field: str = "dates") -> List[date]:
    """
    Parse a list of ISO dates or a comma-delimited string of them.

    Empty entries are skipped; malformed entries raise InvalidDateError.
    """
    if values is None:
        return []
    if isinstance(values, str):
        values = [v.strip() for v in values.split(',')]
    elif isinstance(values, (date, datetime, pd.Timestamp)):
        values = [values]
    return [parse_iso_date(v, field=field) for v in values if v not in ('', None)]


def days_between(start: date, end: date) -> int:
    """Whole calendar days from start to end (negative if end is earlier)."""
    return (end - start).days


def add_days(d: date, days: int) -> date:
    """Calendar date `days` after d."""
    return d + timedelta(days=int(days))


def dte_to_years(dte: float, year_basis: float = 365.0) -> float:
    """
    Convert calendar days to a year fraction for Black-Scholes.

    Args:
        dte: Calendar days
        year_basis: Days per year (calendar basis)

    Returns:
        Time in years, floored at 0
    """
    if dte <= 0:
        return 0.0
    return dte / year_basis
