"""
Record filters: inclusive date windows plus single-date, product, kind and
scope refinements. Each filter returns a new DataFrame; inputs are never
modified.
"""

import logging
from typing import Any

import pandas as pd

from .aggregation import PERIOD_KEYS
from .models import Scope
from .utils import normalise_date, normalise_date_series

logger = logging.getLogger(__name__)


def _bound(val: Any, name: str) -> pd.Timestamp | None:
    if val is None or (isinstance(val, str) and not val.strip()):
        return None
    bound = normalise_date(val)
    if bound is None:
        logger.warning("Ignoring unparseable %s bound: %r", name, val)
    return bound


def filter_by_date_range(
    records: pd.DataFrame,
    start: Any = None,
    end: Any = None,
) -> pd.DataFrame:
    """Keep records whose day lies in [start, end]; either bound may be None.

    Record dates and bounds are normalised to midnight before comparison.
    Records with a missing or unparseable date are always excluded.
    """
    if records.empty:
        return records.copy()

    dates = normalise_date_series(records["date"])
    start_day = _bound(start, "start")
    end_day = _bound(end, "end")

    mask = dates.notna()
    if start_day is not None:
        mask &= dates >= start_day
    if end_day is not None:
        mask &= dates <= end_day
    return records[mask].copy()


def filter_by_date(records: pd.DataFrame, day: Any) -> pd.DataFrame:
    """Single-date refinement (equality on the normalised day)."""
    target = normalise_date(day)
    if target is None or records.empty:
        return records.iloc[0:0].copy()
    dates = normalise_date_series(records["date"])
    return records[dates == target].copy()


def _entry_keys(records: pd.DataFrame) -> pd.Series:
    keys = [c for c in PERIOD_KEYS if c in records.columns]
    frame = records[keys].assign(date=normalise_date_series(records["date"]))
    return frame.astype(str).agg("|".join, axis=1)


def filter_by_product(records: pd.DataFrame, product: str) -> pd.DataFrame:
    """Keep every record of the entries that hold a positive value for the product.

    An entry (owner, day and submitted row) qualifies when any of its metric
    names starts with the product prefix and carries a positive value; all of
    its records are kept, so its totals and grand totals survive.
    """
    if records.empty or not product:
        return records.iloc[0:0].copy()
    values = pd.to_numeric(records["value"], errors="coerce")
    metric = records["metric"].astype(str)
    hits = metric.str.startswith(product) & (values > 0)

    entries = _entry_keys(records)
    return records[entries.isin(set(entries[hits]))].copy()


def filter_by_kind(records: pd.DataFrame, kind: str) -> pd.DataFrame:
    return records[records["kind"] == kind].copy()


def filter_to_scope(records: pd.DataFrame, scope: Scope) -> pd.DataFrame:
    """Keep records owned by an in-scope employee code OR an in-scope branch."""
    if records.empty:
        return records.copy()
    by_staff = records["employee_code"].isin(list(scope.employee_codes))
    by_branch = records["branch_name"].isin(list(scope.branch_names))
    return records[by_staff | by_branch].copy()


def apply_filters(
    records: pd.DataFrame,
    start: Any = None,
    end: Any = None,
    on_date: Any = None,
    product: str | None = None,
) -> pd.DataFrame:
    """Date range, then the optional single-date and product refinements."""
    df = filter_by_date_range(records, start, end)
    if on_date is not None:
        df = filter_by_date(df, on_date)
    if product:
        df = filter_by_product(df, product)
    return df
