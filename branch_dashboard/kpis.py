"""
KPI computation functions — pure functions with no side effects.

Derives display KPIs (averages, peaks, top product, contribution shares,
run rates, target progress) from aggregator outputs.
"""

import logging
from typing import Any, Iterable

import pandas as pd

from .aggregation import (
    aggregate,
    default_catalog,
    metric_groups,
    product_label,
    reconcile_totals,
)
from .config import (
    DUE_SOON_DAYS,
    GRAND_TOTAL_PRODUCT,
    NO_DATA,
    PROGRESS_BANDS,
)
from .models import ProductMetric
from .utils import days_in_month, days_remaining_in_month, normalise_date

logger = logging.getLogger(__name__)


def calc_variance(actual: float, target: float) -> tuple[float, float | None]:
    """Return (absolute_variance, pct_variance).

    pct_variance is None if target == 0.
    """
    absolute = actual - target
    if target == 0:
        return absolute, None
    pct = (absolute / target) * 100
    return absolute, pct


def average_daily_amount(daily_totals: dict) -> float:
    """Total amount divided by the number of days with a recorded total."""
    if not daily_totals:
        return 0.0
    return sum(daily_totals.values()) / len(daily_totals)


def highest_day(daily_totals: dict) -> dict:
    """Day with the largest total; ties go to the first day in iteration order.

    Returns {"date": <key>, "amount": float}, or {"date": "N/A", "amount": 0.0}
    when no day has a positive total.
    """
    best = {"date": NO_DATA, "amount": 0.0}
    for day, amount in daily_totals.items():
        if amount > best["amount"]:
            best = {"date": day, "amount": float(amount)}
    return best


def top_product(product_totals: dict) -> str:
    """Product label with the largest positive total, or 'N/A'."""
    best_label = NO_DATA
    best_value = 0.0
    for label, value in product_totals.items():
        if value > best_value:
            best_label, best_value = label, value
    return best_label


def contribution_pct(product_totals: dict) -> dict:
    """Each product's share (percent) of the sum of positive product totals."""
    total = sum(v for v in product_totals.values() if v > 0)
    if total == 0:
        return {label: 0.0 for label in product_totals}
    return {
        label: (value / total * 100) if value > 0 else 0.0
        for label, value in product_totals.items()
    }


def product_contributions(product_totals: dict) -> pd.DataFrame:
    """Pie-chart data: positive products sorted by value, with shares.

    Returns
    -------
    DataFrame with columns: product, value, pct
    """
    shares = contribution_pct(product_totals)
    rows = [
        {"product": label, "value": float(value), "pct": shares[label]}
        for label, value in product_totals.items()
        if value > 0
    ]
    if not rows:
        return pd.DataFrame(columns=["product", "value", "pct"])
    df = pd.DataFrame(rows)
    return df.sort_values("value", ascending=False, kind="stable").reset_index(drop=True)


def achievement_pct(achieved: float, target: float) -> float:
    """Percent of target achieved.

    With no target, anything achieved counts as 100% and nothing as 0%.
    """
    if target > 0:
        return achieved / target * 100
    return 100.0 if achieved > 0 else 0.0


def classify_progress(pct: float | None) -> str:
    """Return 'green', 'amber', 'orange', 'red' or 'grey' for a progress percent.

    Logic
    -----
    green  if pct >= 100
    amber  if pct >= 75
    orange if pct >= 50
    red    otherwise
    grey   if pct is missing
    """
    if pct is None or pd.isna(pct):
        return "grey"
    for band, lower in PROGRESS_BANDS:
        if pct >= lower:
            return band
    return "red"


def daily_run_rate(
    target_amount: float,
    target_account: float,
    mtd_amount: float,
    mtd_account: float,
    today: Any,
) -> dict:
    """Daily rate needed over the rest of the month to hit the monthly target.

    Remaining targets are floored at zero; days remaining counts today.
    """
    day = normalise_date(today)
    if day is None:
        raise ValueError(f"Invalid reference date: {today!r}")

    remaining_days = days_remaining_in_month(day)
    remaining_amount = max(0.0, target_amount - mtd_amount)
    remaining_account = max(0.0, target_account - mtd_account)

    return {
        "month": day.strftime("%Y-%m"),
        "monthly_target_amount": target_amount,
        "monthly_target_account": target_account,
        "mtd_achievement_amount": mtd_amount,
        "mtd_achievement_account": mtd_account,
        "remaining_target_amount": remaining_amount,
        "remaining_target_account": remaining_account,
        "days_in_month": days_in_month(day.year, day.month),
        "days_remaining_in_month": remaining_days,
        "daily_run_rate_amount": remaining_amount / remaining_days if remaining_days else 0.0,
        "daily_run_rate_account": remaining_account / remaining_days if remaining_days else 0.0,
    }


def target_due_status(due_date: Any, today: Any) -> dict:
    """Classify a target's due date relative to today.

    Returns {"status": ..., "days_remaining": int | None} where status is
    'no_due_date', 'overdue', 'due_today', 'due_soon' (within
    DUE_SOON_DAYS) or 'on_track'.
    """
    due = normalise_date(due_date)
    day = normalise_date(today)
    if due is None or day is None:
        return {"status": "no_due_date", "days_remaining": None}

    days = (due - day).days
    if days < 0:
        status = "overdue"
    elif days == 0:
        status = "due_today"
    elif days <= DUE_SOON_DAYS:
        status = "due_soon"
    else:
        status = "on_track"
    return {"status": status, "days_remaining": days}


def product_target_vs_achievement(
    targets: pd.DataFrame,
    achievements: pd.DataFrame,
    catalog: Iterable[ProductMetric] | None = None,
) -> pd.DataFrame:
    """Per-product amount/account targets against achievements.

    Products are the catalog metric names with their suffix stripped; the
    grand-total row uses reconciled totals so an explicit grand total is
    preferred over the constituent sum.

    Returns
    -------
    DataFrame with columns:
        product, amount_target, amount_achieved, amount_pct,
        account_target, account_achieved, account_pct
    Grand-total row first, then products alphabetically; products with no
    target and no achievement are dropped.
    """
    metrics = list(catalog) if catalog is not None else default_catalog()
    groups = metric_groups(metrics)
    target_by_metric = aggregate(targets, "metric", metrics)
    achieved_by_metric = aggregate(achievements, "metric", metrics)

    table: dict[str, dict] = {}
    for metric in metrics:
        label = product_label(metric.name)
        if metric.name in groups.account and label is None:
            label = metric.name
        if label is None:
            continue
        row = table.setdefault(label, {
            "amount_target": 0.0, "amount_achieved": 0.0,
            "account_target": 0.0, "account_achieved": 0.0,
        })
        side = "amount" if metric.category == "Amount" else "account"
        row[f"{side}_target"] += target_by_metric.get(metric.name, 0.0)
        row[f"{side}_achieved"] += achieved_by_metric.get(metric.name, 0.0)

    target_totals = reconcile_totals(targets, metrics)
    achieved_totals = reconcile_totals(achievements, metrics)
    grand = {
        "amount_target": float(target_totals["amount_total"].sum()) if not target_totals.empty else 0.0,
        "amount_achieved": float(achieved_totals["amount_total"].sum()) if not achieved_totals.empty else 0.0,
        "account_target": float(target_totals["account_total"].sum()) if not target_totals.empty else 0.0,
        "account_achieved": float(achieved_totals["account_total"].sum()) if not achieved_totals.empty else 0.0,
    }

    rows = []
    for label, values in [(GRAND_TOTAL_PRODUCT, grand)] + sorted(table.items()):
        if not any(values.values()):
            continue
        rows.append({
            "product": label,
            "amount_target": values["amount_target"],
            "amount_achieved": values["amount_achieved"],
            "amount_pct": achievement_pct(values["amount_achieved"], values["amount_target"]),
            "account_target": values["account_target"],
            "account_achieved": values["account_achieved"],
            "account_pct": achievement_pct(values["account_achieved"], values["account_target"]),
        })

    columns = [
        "product", "amount_target", "amount_achieved", "amount_pct",
        "account_target", "account_achieved", "account_pct",
    ]
    return pd.DataFrame(rows, columns=columns)
