"""
Dashboard-ready output functions.

These are the primary entry points for a front end. Each function resolves
the caller's scope fresh from the supplied directory snapshot, filters and
aggregates the record fact table, and returns plain dicts or DataFrames
suitable for rendering cards, charts, and tables.
"""

import logging
from typing import Any, Iterable

import pandas as pd

from .aggregation import aggregate, aggregate_grand_total, reconcile_totals
from .config import ROLE_ADMIN, ROLE_MANAGER, ROLE_USER
from .filters import (
    apply_filters,
    filter_by_date_range,
    filter_by_kind,
    filter_to_scope,
)
from .kpis import (
    achievement_pct,
    average_daily_amount,
    calc_variance,
    classify_progress,
    daily_run_rate,
    highest_day,
    product_contributions,
    product_target_vs_achievement,
    top_product,
)
from .models import Branch, ProductMetric, Scope, StaffMember
from .scope import resolve_scope
from .utils import (
    month_key,
    month_start,
    mtd_window,
    normalise_date,
    normalise_date_series,
    ytd_window,
)

logger = logging.getLogger(__name__)


def get_scoped_records(
    user: StaffMember,
    all_staff: Iterable[StaffMember],
    all_branches: Iterable[Branch],
    records: pd.DataFrame,
) -> pd.DataFrame:
    """Records the user may see (employee code OR branch in scope)."""
    scope = resolve_scope(user, all_staff, all_branches)
    return filter_to_scope(records, scope)


def get_analytics_summary(
    records: pd.DataFrame,
    catalog: Iterable[ProductMetric] | None = None,
    start: Any = None,
    end: Any = None,
    on_date: Any = None,
    product: str | None = None,
) -> dict:
    """Analytics page KPIs for already-scoped achievement records.

    Returns
    -------
    Dict with keys: total_amount, total_accounts, average_daily_amount,
    highest_day, total_transactions, top_product, product_contributions
    (DataFrame), daily_performance (DataFrame: date, amount).
    """
    catalog = list(catalog) if catalog is not None else None
    filtered = apply_filters(records, start, end, on_date, product)

    daily = aggregate(filtered, "date", catalog)
    products = aggregate(filtered, "product", catalog)
    totals = aggregate_grand_total(filtered, catalog)
    entries = reconcile_totals(filtered, catalog)

    if not daily:
        logger.warning("No achievement data in the selected window")

    return {
        "total_amount": totals["amount_total"],
        "total_accounts": totals["account_total"],
        "average_daily_amount": average_daily_amount(daily),
        "highest_day": highest_day(daily),
        "total_transactions": len(entries),
        "top_product": top_product(products),
        "product_contributions": product_contributions(products),
        "daily_performance": pd.DataFrame(
            {"date": list(daily.keys()), "amount": list(daily.values())},
            columns=["date", "amount"],
        ),
    }


def get_period_achievements(
    records: pd.DataFrame,
    today: Any,
    catalog: Iterable[ProductMetric] | None = None,
) -> dict:
    """Month-to-date and year-to-date reconciled amount/account totals."""
    catalog = list(catalog) if catalog is not None else None
    mtd = filter_by_date_range(records, *mtd_window(today))
    ytd = filter_by_date_range(records, *ytd_window(today))
    return {
        "mtd": aggregate_grand_total(mtd, catalog),
        "ytd": aggregate_grand_total(ytd, catalog),
    }


def _is_multi_unit(user: StaffMember) -> bool:
    return bool(user.managed_zones or user.managed_branches)


def _select_monthly_targets(
    user: StaffMember,
    scope: Scope,
    targets: pd.DataFrame,
    month: Any,
    catalog: list[ProductMetric] | None = None,
) -> tuple[pd.DataFrame, dict]:
    """Target rows and reconciled totals counted for a user's month.

    - admin: branch targets
    - manager: staff targets across the scope; a manager of zones or
      branches takes, per measure, the larger of the staff and branch sums
    - user: own staff targets

    Returns (rows, {"amount_total", "account_total"}). For a multi-unit
    manager the rows are whichever side has the larger amount total.
    """
    empty = targets.iloc[0:0]
    period = month_start(month)
    if targets.empty or period is None:
        return empty, aggregate_grand_total(empty, catalog)

    monthly = targets[
        (targets["kind"] == "target")
        & (normalise_date_series(targets["date"]) == period)
    ]
    staff_rows = monthly[monthly["employee_code"].isin(list(scope.employee_codes))]
    branch_rows = monthly[
        monthly["employee_code"].isna()
        & monthly["branch_name"].isin(list(scope.branch_names))
    ]

    if user.role == ROLE_ADMIN:
        return branch_rows, aggregate_grand_total(branch_rows, catalog)
    if user.role == ROLE_USER or (user.role == ROLE_MANAGER and not _is_multi_unit(user)):
        return staff_rows, aggregate_grand_total(staff_rows, catalog)
    if user.role != ROLE_MANAGER:
        return empty, aggregate_grand_total(empty, catalog)

    staff_totals = aggregate_grand_total(staff_rows, catalog)
    branch_totals = aggregate_grand_total(branch_rows, catalog)
    totals = {key: max(staff_totals[key], branch_totals[key]) for key in staff_totals}
    rows = branch_rows if branch_totals["amount_total"] > staff_totals["amount_total"] else staff_rows
    return rows, totals


def get_scoped_monthly_targets(
    user: StaffMember,
    all_staff: Iterable[StaffMember],
    all_branches: Iterable[Branch],
    targets: pd.DataFrame,
    month: Any,
    catalog: Iterable[ProductMetric] | None = None,
) -> dict:
    """Reconciled monthly amount/account targets across the user's scope.

    Each owner's explicit grand-total target, when present, replaces the sum
    of that owner's constituent targets.
    """
    catalog = list(catalog) if catalog is not None else None
    scope = resolve_scope(user, all_staff, all_branches)
    _, totals = _select_monthly_targets(user, scope, targets, month, catalog)
    return totals


def get_run_rate(
    user: StaffMember,
    all_staff: Iterable[StaffMember],
    all_branches: Iterable[Branch],
    achievements: pd.DataFrame,
    targets: pd.DataFrame,
    today: Any,
    catalog: Iterable[ProductMetric] | None = None,
) -> dict:
    """Daily run rate needed for the user's scope to meet this month's target."""
    catalog = list(catalog) if catalog is not None else None
    staff = list(all_staff)
    branches = list(all_branches)
    scope = resolve_scope(user, staff, branches)

    _, target_totals = _select_monthly_targets(user, scope, targets, today, catalog)
    mtd_records = filter_by_date_range(filter_to_scope(achievements, scope), *mtd_window(today))
    mtd_totals = aggregate_grand_total(mtd_records, catalog)

    return daily_run_rate(
        target_totals["amount_total"],
        target_totals["account_total"],
        mtd_totals["amount_total"],
        mtd_totals["account_total"],
        today,
    )


def get_projection_summary(
    projections: pd.DataFrame,
    catalog: Iterable[ProductMetric] | None = None,
    start: Any = None,
    end: Any = None,
) -> dict:
    """Projection report totals for already-scoped projection records.

    Returns
    -------
    Dict with keys: total_projected_amount, total_projected_accounts,
    average_daily_projection_amount, total_entries.
    """
    catalog = list(catalog) if catalog is not None else None
    filtered = filter_by_date_range(projections, start, end)
    daily = aggregate(filtered, "date", catalog)
    totals = aggregate_grand_total(filtered, catalog)
    return {
        "total_projected_amount": totals["amount_total"],
        "total_projected_accounts": totals["account_total"],
        "average_daily_projection_amount": average_daily_amount(daily),
        "total_entries": len(filtered),
    }


def get_available_months(records: pd.DataFrame) -> list[str]:
    """Return sorted 'YYYY-MM' strings present in the records, for UI dropdowns."""
    if records.empty:
        return []
    dates = normalise_date_series(records["date"]).dropna()
    return sorted({month_key(d) for d in dates})


def _progress(achieved: float, target: float) -> dict:
    variance, variance_pct = calc_variance(achieved, target)
    pct = achievement_pct(achieved, target)
    return {
        "achieved": achieved,
        "target": target,
        "variance": variance,
        "variance_pct": variance_pct,
        "pct": pct,
        "rag": classify_progress(pct),
    }


def get_dashboard_overview(
    user: StaffMember,
    all_staff: Iterable[StaffMember],
    all_branches: Iterable[Branch],
    records: pd.DataFrame,
    today: Any,
    catalog: Iterable[ProductMetric] | None = None,
) -> dict:
    """Single entry point a front end would call to populate the home page.

    Parameters
    ----------
    user : The signed-in staff member.
    all_staff, all_branches : Current directory snapshot.
    records : Record fact table holding achievements, targets and projections.
    today : Reference date for MTD/YTD windows and the run rate.

    Returns
    -------
    Dict with structure:
    {
        "month": "2024-01",
        "scope": {"employee_codes": 12, "branch_names": 3},
        "achievements": {"mtd": {...}, "ytd": {...}},
        "targets": {"amount_total": ..., "account_total": ...},
        "progress": {"amount": {..., "rag": "amber"}, "account": {...}},
        "run_rate": {...},
        "analytics": {...},
        "projections": {...},
        "product_progress": DataFrame,
    }
    """
    day = normalise_date(today)
    if day is None:
        raise ValueError(f"Invalid reference date: {today!r}")

    catalog = list(catalog) if catalog is not None else None
    staff = list(all_staff)
    branches = list(all_branches)
    scope = resolve_scope(user, staff, branches)
    scoped = filter_to_scope(records, scope)

    achievements = filter_by_kind(scoped, "achievement")
    projections = filter_by_kind(scoped, "projection")
    monthly_targets, target_totals = _select_monthly_targets(user, scope, records, day, catalog)

    period_totals = get_period_achievements(achievements, day, catalog)
    mtd = period_totals["mtd"]
    mtd_start, mtd_end = mtd_window(day)

    overview = {
        "month": month_key(day),
        "scope": {
            "employee_codes": len(scope.employee_codes),
            "branch_names": len(scope.branch_names),
        },
        "achievements": period_totals,
        "targets": target_totals,
        "progress": {
            "amount": _progress(mtd["amount_total"], target_totals["amount_total"]),
            "account": _progress(mtd["account_total"], target_totals["account_total"]),
        },
        "run_rate": daily_run_rate(
            target_totals["amount_total"],
            target_totals["account_total"],
            mtd["amount_total"],
            mtd["account_total"],
            day,
        ),
        "analytics": get_analytics_summary(achievements, catalog, mtd_start, mtd_end),
        "projections": get_projection_summary(projections, catalog, mtd_start, mtd_end),
        "product_progress": product_target_vs_achievement(
            monthly_targets,
            filter_by_date_range(achievements, mtd_start, mtd_end),
            catalog,
        ),
    }
    logger.info(
        "Built overview for %s (%s): %d scoped records",
        user.employee_code, user.role, len(scoped),
    )
    return overview
