"""
Branch Dashboard — End-to-end analytics pipeline.

Runs the full pipeline over simulated data, from a wide daily upload to
dashboard-ready outputs, and prints smoke-test summaries.

Usage:
    python main.py
"""

import logging
import sys
from pathlib import Path

import pandas as pd

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent))

from branch_dashboard.aggregation import aggregate, default_catalog
from branch_dashboard.config import ROLE_ADMIN, ROLE_MANAGER, ROLE_USER
from branch_dashboard.dashboard import (
    get_analytics_summary,
    get_available_months,
    get_dashboard_overview,
    get_run_rate,
    get_scoped_records,
)
from branch_dashboard.kpis import target_due_status
from branch_dashboard.scope import resolve_scope
from branch_dashboard.simulator import (
    InMemoryTargetStore,
    generate_daily_achievements,
    generate_directory,
    generate_projections,
    generate_targets,
)
from branch_dashboard.targets import submit_bulk_targets
from branch_dashboard.transforms import (
    build_fact_achievement,
    build_fact_records,
    summarise_upload,
)

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

TODAY = "2024-01-20"


def main() -> None:
    """Run the full analytics pipeline and print smoke-test outputs."""

    print("=" * 70)
    print("  BRANCH DASHBOARD — Scope-Aware Metrics Aggregation")
    print("  Analytics Pipeline Smoke Test")
    print("=" * 70)
    print()

    # ------------------------------------------------------------------
    # 1. Simulate source data
    # ------------------------------------------------------------------
    print("[ 1 ] SIMULATING SOURCE DATA")
    print("-" * 40)

    catalog = default_catalog()
    staff, branches = generate_directory()
    print(f"\nDirectory: {len(staff)} staff, {len(branches)} branches")

    upload = generate_daily_achievements(staff, start_date="2024-01-01", n_days=20)
    print(f"Daily upload: {len(upload)} rows x {len(upload.columns)} columns")
    print(upload.iloc[:3, :6].to_string(index=False))

    target_records = generate_targets(staff, branches, month="2024-01-01")
    projection_records = generate_projections(staff, start_date="2024-01-15")
    print(f"\nTargets: {len(target_records)} records")
    print(f"Projections: {len(projection_records)} records")

    # ------------------------------------------------------------------
    # 2. Build the record fact table
    # ------------------------------------------------------------------
    print("\n")
    print("[ 2 ] BUILDING RECORD FACT TABLE")
    print("-" * 40)

    achievements = build_fact_achievement(upload, staff)
    records = pd.concat(
        [achievements, build_fact_records(target_records + projection_records)],
        ignore_index=True,
    )
    print(f"\nfact_records: {len(records)} rows")
    print(records.head(8).to_string(index=False))

    summary = summarise_upload(achievements, catalog)
    print("\nUpload summary:")
    for key, value in summary.items():
        print(f"  {key:16s} | {value}")
    print(f"\nAvailable months: {get_available_months(records)}")

    # ------------------------------------------------------------------
    # 3. Scope resolution
    # ------------------------------------------------------------------
    print("\n")
    print("[ 3 ] SCOPE RESOLUTION")
    print("-" * 40)

    admin = next(s for s in staff if s.role == ROLE_ADMIN)
    zonal = next(s for s in staff if s.role == ROLE_MANAGER and s.managed_zones)
    branch_manager = next(s for s in staff if s.role == ROLE_MANAGER and s.reports_to)
    officer = next(s for s in staff if s.role == ROLE_USER)

    for user in (admin, zonal, branch_manager, officer):
        scope = resolve_scope(user, staff, branches)
        visible = get_scoped_records(user, staff, branches, achievements)
        print(
            f"  {user.name:28s} | {user.role:8s} | "
            f"{len(scope.employee_codes):3d} staff | {len(scope.branch_names):2d} branches | "
            f"{len(visible):5d} records"
        )

    # ------------------------------------------------------------------
    # 4. Analytics
    # ------------------------------------------------------------------
    print("\n")
    print("[ 4 ] ANALYTICS")
    print("-" * 40)

    zonal_records = get_scoped_records(zonal, staff, branches, achievements)
    analytics = get_analytics_summary(zonal_records, catalog, "2024-01-01", TODAY)
    print(f"\nAnalytics for {zonal.name}:")
    for key in ("total_amount", "total_accounts", "average_daily_amount",
                "highest_day", "total_transactions", "top_product"):
        print(f"  {key:22s} | {analytics[key]}")
    print("\nProduct contributions:")
    print(analytics["product_contributions"].to_string(index=False))

    by_branch = aggregate(zonal_records, "branch", catalog)
    print("\nAmount by branch:")
    for branch, amount in by_branch.items():
        print(f"  {branch:12s} | {amount:,.0f}")

    # ------------------------------------------------------------------
    # 5. Targets
    # ------------------------------------------------------------------
    print("\n")
    print("[ 5 ] TARGETS")
    print("-" * 40)

    run_rate = get_run_rate(branch_manager, staff, branches, achievements, records, TODAY, catalog)
    print(f"\nRun rate for {branch_manager.name}:")
    for key, value in run_rate.items():
        print(f"  {key:26s} | {value}")

    store = InMemoryTargetStore(target_records)
    inputs = {"DDS AMT": "1,200,000", "FD AMT": 2_500_000, "DDS AC": 40, "RD AMT": 0}
    results = submit_bulk_targets(
        inputs,
        store.all_targets(),
        store,
        catalog,
        employee_code=officer.employee_code,
        month=TODAY,
        due_date="2024-01-31",
    )
    print(f"\nBulk submit for {officer.name}:")
    for result in results:
        print(f"  {result.action:6s} {result.metric:16s} ok={result.ok}")
    print(f"  Due status: {target_due_status('2024-01-31', TODAY)}")

    # ------------------------------------------------------------------
    # 6. Dashboard overview
    # ------------------------------------------------------------------
    print("\n")
    print("[ 6 ] DASHBOARD OVERVIEW")
    print("-" * 40)

    records = pd.concat(
        [achievements, build_fact_records(store.all_targets() + projection_records)],
        ignore_index=True,
    )
    overview = get_dashboard_overview(zonal, staff, branches, records, TODAY, catalog)
    print(f"\nOverview for {zonal.name} — {overview['month']}:")
    for section in ("scope", "achievements", "targets", "progress"):
        print(f"  {section:14s} | {overview[section]}")
    print("\nProduct progress:")
    print(overview["product_progress"].to_string(index=False))

    # ------------------------------------------------------------------
    # 7. Acceptance checks
    # ------------------------------------------------------------------
    print("\n")
    print("[ 7 ] ACCEPTANCE CHECKS")
    print("-" * 40)

    admin_total = aggregate(achievements, "date", catalog)
    check1 = abs(sum(admin_total.values()) - summary["total_amount"]) < 1e-6
    print(f"\n  [{'PASS' if check1 else 'FAIL'}] Daily totals sum to the upload grand total")

    officer_scope = resolve_scope(officer, staff, branches)
    check2 = officer_scope.employee_codes == frozenset({officer.employee_code})
    print(f"  [{'PASS' if check2 else 'FAIL'}] User scope holds only their own code")

    check3 = all(r.ok for r in results)
    print(f"  [{'PASS' if check3 else 'FAIL'}] All {len(results)} target changes applied")

    print("\n" + "=" * 70)
    print("  Pipeline complete.")
    print("=" * 70)


if __name__ == "__main__":
    main()
