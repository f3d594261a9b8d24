"""
Shared utilities: date normalisation, numeric coercion, calendar windows.
"""

import calendar
import logging
import math
import numbers
import re
from datetime import date, datetime
from typing import Any

import numpy as np
import pandas as pd

from .config import EXCEL_EPOCH

logger = logging.getLogger(__name__)

_DAY_FIRST = re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$")


def normalise_date(val: Any) -> pd.Timestamp | None:
    """Convert a date-like value to a tz-naive pd.Timestamp at midnight.

    Accepts Timestamps, datetime/date objects, Excel serial numbers,
    'DD/MM/YYYY' strings and ISO strings. Timezone-aware values keep their
    wall-clock date. Returns None for missing or unparseable values.
    """
    if val is None or val is pd.NaT:
        return None
    if isinstance(val, bool):
        return None
    if isinstance(val, (pd.Timestamp, datetime, date, np.datetime64)):
        ts = pd.Timestamp(val)
    elif isinstance(val, numbers.Real):
        if not math.isfinite(val):
            return None
        try:
            ts = pd.Timestamp(EXCEL_EPOCH) + pd.Timedelta(days=int(val))
        except (ValueError, OverflowError):
            logger.warning("Could not convert serial number %s to date", val)
            return None
    elif isinstance(val, str):
        text = val.strip()
        if not text:
            return None
        try:
            if _DAY_FIRST.match(text):
                ts = pd.Timestamp(datetime.strptime(text, "%d/%m/%Y"))
            else:
                ts = pd.Timestamp(text)
        except (ValueError, TypeError):
            logger.warning("Could not parse date value: %s", val)
            return None
    else:
        return None

    if ts is pd.NaT:
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts.normalize()


def safe_float(val: Any) -> float | None:
    """Coerce a value to float, returning None for non-numeric values."""
    if val is None:
        return None
    if isinstance(val, str):
        val = val.strip().replace(",", "")
        if not val:
            return None
        try:
            result = float(val)
        except ValueError:
            return None
    else:
        try:
            result = float(val)
        except (ValueError, TypeError):
            return None
    if not math.isfinite(result):
        return None
    return result


def month_start(val: Any) -> pd.Timestamp | None:
    """First day of the month containing `val` (None if unparseable)."""
    day = normalise_date(val)
    if day is None:
        return None
    return day.replace(day=1)


def month_key(val: Any) -> str | None:
    """Return 'YYYY-MM' for a date-like value."""
    day = normalise_date(val)
    return day.strftime("%Y-%m") if day is not None else None


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def days_remaining_in_month(today: Any) -> int:
    """Days left in the month of `today`, counting today itself."""
    day = normalise_date(today)
    if day is None:
        return 0
    return max(0, days_in_month(day.year, day.month) - day.day + 1)


def mtd_window(today: Any) -> tuple[pd.Timestamp, pd.Timestamp]:
    """Month-to-date window: first of the month through today, inclusive."""
    day = normalise_date(today)
    if day is None:
        raise ValueError(f"Invalid reference date: {today!r}")
    return day.replace(day=1), day


def ytd_window(today: Any) -> tuple[pd.Timestamp, pd.Timestamp]:
    """Year-to-date window: 1 January through today, inclusive."""
    day = normalise_date(today)
    if day is None:
        raise ValueError(f"Invalid reference date: {today!r}")
    return day.replace(month=1, day=1), day


def normalise_date_series(values: pd.Series) -> pd.Series:
    """Vectorised normalise_date: datetime64 at midnight, NaT when invalid."""
    if pd.api.types.is_datetime64_any_dtype(values):
        if values.dt.tz is not None:
            values = values.dt.tz_localize(None)
        return values.dt.normalize()
    return pd.to_datetime(values.map(normalise_date), errors="coerce")
