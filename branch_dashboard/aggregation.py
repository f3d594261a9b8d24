"""
Metric aggregation over the record fact table.

One contract serves the dashboard, report and analytics totals: group the
records by a dimension and sum, with explicit grand-total records taking
precedence over the sum of their constituent metrics.

Rules
-----
- Only strictly positive values count. Zero or negative entries, and
  explicit grand totals <= 0, are treated as absent.
- Rows without a date, metric or numeric value are excluded.
- An explicit GRAND TOTAL AMT / GRAND TOTAL AC record for an owner/period
  replaces the constituent sum for that owner/period; it is never added to it.
  An owner/period is one submitted entry: rows uploaded separately for the
  same owner and day keep distinct entry ids and are totalled separately.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable

import pandas as pd

from .config import (
    ACCOUNT_EXCEPTION_METRIC,
    ACCOUNT_SUFFIX,
    AMOUNT_SUFFIX,
    GRAND_TOTAL_ACCOUNT,
    GRAND_TOTAL_AMOUNT,
    GRAND_TOTAL_METRICS,
    METRIC_REGISTRY,
)
from .models import ProductMetric
from .utils import normalise_date_series, safe_float

logger = logging.getLogger(__name__)

# Owner/period grain at which the grand-total override applies; entry_id
# separates rows submitted for the same owner and day
PERIOD_KEYS = ["kind", "employee_code", "branch_name", "date", "entry_id"]

_TEXT_KEYS = ("kind", "employee_code", "branch_name", "entry_id")

GROUP_BY_DIMENSIONS = ("date", "staff", "branch", "product", "metric")
MEASURES = ("amount", "account")

_OWNER_COLUMNS = {"date": "date", "staff": "employee_code", "branch": "branch_name"}

_PRODUCT_SUFFIX = re.compile(
    rf"^(?P<product>.+?)[\s-]+(?:{AMOUNT_SUFFIX}|{ACCOUNT_SUFFIX})$"
)


@dataclass(frozen=True)
class MetricGroups:
    """Constituent metric names feeding each synthetic grand total."""

    amount: frozenset[str]
    account: frozenset[str]


def default_catalog() -> list[ProductMetric]:
    """Product metric catalog built from config.METRIC_REGISTRY."""
    return [
        ProductMetric(
            name=name,
            category=entry["category"],
            unit=entry.get("unit", ""),
            contributes_to_overall_goals=entry.get("contributes_to_overall_goals", True),
        )
        for name, entry in METRIC_REGISTRY.items()
    ]


def metric_groups(catalog: Iterable[ProductMetric] | None = None) -> MetricGroups:
    """Split the catalog into amount and account grand-total constituents.

    The synthetic grand totals and metrics that do not contribute to
    overall goals are left out. ACCOUNT_EXCEPTION_METRIC counts as an
    account constituent whatever its category.
    """
    if catalog is None:
        catalog = default_catalog()

    amount: set[str] = set()
    account: set[str] = set()
    for metric in catalog:
        if metric.name in GRAND_TOTAL_METRICS or not metric.contributes_to_overall_goals:
            continue
        if metric.name == ACCOUNT_EXCEPTION_METRIC:
            account.add(metric.name)
        elif metric.category == "Amount":
            amount.add(metric.name)
        elif metric.category == "Account":
            account.add(metric.name)
    return MetricGroups(amount=frozenset(amount), account=frozenset(account))


def product_label(metric: str) -> str | None:
    """Strip the amount/account suffix from a metric name.

    'DDS AMT' -> 'DDS', 'CUR-GOLD-AC' -> 'CUR-GOLD'. Grand totals and
    metrics without a recognised suffix return None.
    """
    if not isinstance(metric, str) or metric in GRAND_TOTAL_METRICS:
        return None
    match = _PRODUCT_SUFFIX.match(metric.strip())
    if match is None:
        return None
    return match.group("product").strip()


def clean_records(records: pd.DataFrame) -> pd.DataFrame:
    """Normalise dates/values and drop rows that cannot be aggregated."""
    if records.empty:
        return records.copy()

    df = records.assign(
        date=normalise_date_series(records["date"]),
        value=pd.to_numeric(records["value"].map(safe_float), errors="coerce"),
    )
    if "entry_id" not in df.columns:
        df = df.assign(entry_id=None)
    mask = df["date"].notna() & df["value"].notna() & df["metric"].notna()
    dropped = int((~mask).sum())
    if dropped:
        logger.warning("Excluded %d malformed records from aggregation", dropped)
    return df[mask]


def _positive_records(records: pd.DataFrame) -> pd.DataFrame:
    df = clean_records(records)
    return df[df["value"] > 0] if not df.empty else df


def reconcile_totals(
    records: pd.DataFrame,
    catalog: Iterable[ProductMetric] | None = None,
) -> pd.DataFrame:
    """Amount and account totals per owner/period with grand-total override.

    Parameters
    ----------
    records : Record fact table.
    catalog : Product metric catalog (defaults to the registry).

    Returns
    -------
    DataFrame with columns:
        kind, employee_code, branch_name, date, entry_id, amount_total, account_total
    in first-appearance order of each owner/period.
    """
    columns = PERIOD_KEYS + ["amount_total", "account_total"]
    positive = _positive_records(records)
    if positive.empty:
        return pd.DataFrame(columns=columns)

    groups = metric_groups(catalog)
    work = positive[PERIOD_KEYS + ["metric", "value"]].copy()
    for col in _TEXT_KEYS:
        work[col] = work[col].fillna("")

    metric = work["metric"]
    work["amount_sum"] = work["value"].where(metric.isin(list(groups.amount)), 0.0)
    work["account_sum"] = work["value"].where(metric.isin(list(groups.account)), 0.0)
    work["amount_explicit"] = work["value"].where(metric == GRAND_TOTAL_AMOUNT)
    work["account_explicit"] = work["value"].where(metric == GRAND_TOTAL_ACCOUNT)

    grouped = work.groupby(PERIOD_KEYS, sort=False).agg(
        amount_sum=("amount_sum", "sum"),
        account_sum=("account_sum", "sum"),
        amount_explicit=("amount_explicit", "first"),
        account_explicit=("account_explicit", "first"),
    )
    grouped["amount_total"] = grouped["amount_explicit"].fillna(grouped["amount_sum"])
    grouped["account_total"] = grouped["account_explicit"].fillna(grouped["account_sum"])

    overridden = int(grouped["amount_explicit"].notna().sum() + grouped["account_explicit"].notna().sum())
    logger.debug(
        "Reconciled %d owner/periods (%d explicit grand totals)", len(grouped), overridden
    )

    result = grouped.reset_index()[columns]
    for col in _TEXT_KEYS:
        result[col] = pd.Series(
            [value or None for value in result[col]], index=result.index, dtype=object
        )
    return result


def aggregate(
    records: pd.DataFrame,
    by: str,
    catalog: Iterable[ProductMetric] | None = None,
    measure: str = "amount",
) -> dict:
    """Group records by a dimension and sum their positive values.

    Parameters
    ----------
    records : Record fact table (already scoped and filtered).
    by : 'date', 'staff', 'branch', 'product' or 'metric'.
    catalog : Product metric catalog (defaults to the registry).
    measure : 'amount' or 'account'; used by the date/staff/branch groupings.

    Returns
    -------
    Insertion-ordered dict of dimension key -> positive total.
    - date: reconciled totals per calendar day, chronological
    - staff / branch: reconciled totals per employee code / branch name
    - product: amount and account values merged per product label
    - metric: totals per raw metric name
    """
    if by not in GROUP_BY_DIMENSIONS:
        raise ValueError(f"Unknown group-by dimension: {by!r}")
    if measure not in MEASURES:
        raise ValueError(f"Unknown measure: {measure!r}")

    if by == "product":
        return _aggregate_by_product(records)
    if by == "metric":
        return _aggregate_by_metric(records)

    totals = reconcile_totals(records, catalog)
    if totals.empty:
        return {}

    key = _OWNER_COLUMNS[by]
    column = f"{measure}_total"
    keyed = totals.dropna(subset=[key])
    series = keyed.groupby(key, sort=(by == "date"))[column].sum()
    series = series[series > 0]
    return {k: float(v) for k, v in series.items()}


def _aggregate_by_product(records: pd.DataFrame) -> dict:
    positive = _positive_records(records)
    if positive.empty:
        return {}
    positive = positive.assign(product=positive["metric"].map(product_label))
    positive = positive.dropna(subset=["product"])
    if positive.empty:
        return {}
    series = positive.groupby("product", sort=False)["value"].sum()
    return {k: float(v) for k, v in series.items()}


def _aggregate_by_metric(records: pd.DataFrame) -> dict:
    positive = _positive_records(records)
    if positive.empty:
        return {}
    series = positive.groupby("metric", sort=False)["value"].sum()
    return {k: float(v) for k, v in series.items()}


def aggregate_grand_total(
    records: pd.DataFrame,
    catalog: Iterable[ProductMetric] | None = None,
) -> dict:
    """Return {'amount_total': ..., 'account_total': ...} across all owners."""
    totals = reconcile_totals(records, catalog)
    if totals.empty:
        return {"amount_total": 0.0, "account_total": 0.0}
    return {
        "amount_total": float(totals["amount_total"].sum()),
        "account_total": float(totals["account_total"].sum()),
    }
