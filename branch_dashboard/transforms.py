"""
Data transforms: turn typed records or a parsed wide upload into the long
record fact table consumed by filters and aggregators.
"""

import logging
from typing import Iterable

import pandas as pd

from .aggregation import aggregate_grand_total
from .config import (
    UPLOAD_BRANCH_COLUMN,
    UPLOAD_DATE_COLUMNS,
    UPLOAD_DERIVED_COLUMNS,
    UPLOAD_META_COLUMNS,
    UPLOAD_STAFF_COLUMN,
)
from .models import Record, StaffMember
from .utils import normalise_date_series, safe_float

logger = logging.getLogger(__name__)

RECORD_COLUMNS = [
    "kind", "date", "employee_code", "branch_name", "metric", "value", "due_date",
    "entry_id",
]

_OPTIONAL_TEXT_COLUMNS = ("employee_code", "branch_name", "entry_id")


def _blank_to_none(val) -> str | None:
    if val is None or (not isinstance(val, str) and pd.isna(val)):
        return None
    text = str(val).strip()
    return text or None


def empty_fact_table() -> pd.DataFrame:
    """Return an empty record fact table with the correct schema."""
    df = pd.DataFrame(columns=RECORD_COLUMNS)
    return normalise_fact_table(df)


def normalise_fact_table(df: pd.DataFrame) -> pd.DataFrame:
    """Coerce fact-table columns to their canonical types.

    - date, due_date: datetime64 at midnight (NaT when unparseable)
    - value: float (NaN when non-numeric)
    - employee_code, branch_name, entry_id: stripped strings or None
    """
    result = df.copy()
    for col in RECORD_COLUMNS:
        if col not in result.columns:
            result[col] = None

    for col in ("date", "due_date"):
        result[col] = normalise_date_series(result[col])
    result["value"] = pd.to_numeric(result["value"].map(safe_float), errors="coerce")
    for col in _OPTIONAL_TEXT_COLUMNS:
        result[col] = pd.Series(
            [_blank_to_none(v) for v in result[col]], index=result.index, dtype=object
        )

    return result[RECORD_COLUMNS].reset_index(drop=True)


def build_fact_records(records: Iterable[Record]) -> pd.DataFrame:
    """Build the record fact table from typed Record snapshots.

    Returns
    -------
    DataFrame with columns:
        kind, date, employee_code, branch_name, metric, value, due_date, entry_id
    """
    rows = [
        {
            "kind": r.kind,
            "date": r.date,
            "employee_code": r.employee_code,
            "branch_name": r.branch_name,
            "metric": r.metric,
            "value": r.value,
            "due_date": r.due_date,
            "entry_id": r.entry_id,
        }
        for r in records
    ]
    if not rows:
        return empty_fact_table()

    df = normalise_fact_table(pd.DataFrame(rows, columns=RECORD_COLUMNS))
    logger.info("Built record fact table with %d rows", len(df))
    return df


def _staff_lookup(staff: Iterable[StaffMember] | None) -> tuple[dict[str, str], set[str]]:
    by_name: dict[str, str] = {}
    codes: set[str] = set()
    for member in staff or ():
        if not member.employee_code:
            continue
        codes.add(member.employee_code)
        if member.name:
            by_name.setdefault(member.name.strip().upper(), member.employee_code)
    return by_name, codes


def build_fact_achievement(
    wide_df: pd.DataFrame,
    staff: Iterable[StaffMember] | None = None,
    kind: str = "achievement",
) -> pd.DataFrame:
    """Melt a parsed wide upload into the long record fact table.

    Parameters
    ----------
    wide_df : One row per staff/day with DATE, STAFF NAME, BRANCH NAME and
              one column per metric (e.g. 'DDS AMT', 'GRAND TOTAL AC').
    staff : Directory used to resolve STAFF NAME to an employee code, by
            name (case-insensitive) or by the code itself. Unresolved rows
            keep a None employee_code and still match by branch.
    kind : Record kind to stamp on every row.

    Returns
    -------
    Record fact table. Derived summary columns (TOTAL AMOUNTS,
    TOTAL ACCOUNTS) are dropped; grand totals are kept as explicit records.
    Every record carries the entry_id of its upload row, so two rows for
    the same owner and day are totalled separately.
    """
    if wide_df is None or wide_df.empty:
        logger.warning("Empty upload — returning empty fact table")
        return empty_fact_table()

    date_col = next((c for c in UPLOAD_DATE_COLUMNS if c in wide_df.columns), None)
    if date_col is None:
        logger.warning("Upload has no DATE column — returning empty fact table")
        return empty_fact_table()

    metric_cols = [
        c for c in wide_df.columns
        if c not in UPLOAD_META_COLUMNS and c not in UPLOAD_DERIVED_COLUMNS
    ]
    by_name, codes = _staff_lookup(staff)

    rows = []
    unresolved = 0
    for position, (_, row) in enumerate(wide_df.iterrows(), start=1):
        entry_id = f"{kind}-{position}"
        staff_label = _blank_to_none(row.get(UPLOAD_STAFF_COLUMN))
        employee_code = None
        if staff_label is not None:
            employee_code = by_name.get(staff_label.upper())
            if employee_code is None and staff_label in codes:
                employee_code = staff_label
            if employee_code is None:
                unresolved += 1

        branch_name = _blank_to_none(row.get(UPLOAD_BRANCH_COLUMN))
        for metric in metric_cols:
            rows.append({
                "kind": kind,
                "date": row.get(date_col),
                "employee_code": employee_code,
                "branch_name": branch_name,
                "metric": metric,
                "value": row.get(metric),
                "due_date": None,
                "entry_id": entry_id,
            })

    if unresolved:
        logger.warning("%d upload rows have a staff name not in the directory", unresolved)

    if not rows:
        return empty_fact_table()

    df = normalise_fact_table(pd.DataFrame(rows, columns=RECORD_COLUMNS))
    logger.info(
        "Built fact table with %d rows from %d upload rows", len(df), len(wide_df)
    )
    return df


def summarise_upload(fact: pd.DataFrame, catalog=None) -> dict:
    """Headline summary of a record fact table for the upload banner.

    Returns
    -------
    Dict with keys: staff_count, branch_count, start_date, end_date,
    total_amount, total_accounts. Dates are None when no row has a date.
    """
    if fact.empty:
        return {
            "staff_count": 0,
            "branch_count": 0,
            "start_date": None,
            "end_date": None,
            "total_amount": 0.0,
            "total_accounts": 0.0,
        }

    dates = fact["date"].dropna()
    totals = aggregate_grand_total(fact, catalog)
    return {
        "staff_count": int(fact["employee_code"].dropna().nunique()),
        "branch_count": int(fact["branch_name"].dropna().nunique()),
        "start_date": dates.min() if not dates.empty else None,
        "end_date": dates.max() if not dates.empty else None,
        "total_amount": totals["amount_total"],
        "total_accounts": totals["account_total"],
    }
