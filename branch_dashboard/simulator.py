"""
Simulated data generator for the branch performance dashboard.

Generates a small organisation (zones, branches, a reporting hierarchy),
a daily achievement upload in the wide sheet layout, monthly targets and
projections. All values are synthetic.
"""

import numpy as np
import pandas as pd

from .config import (
    ACCOUNT_EXCEPTION_METRIC,
    GRAND_TOTAL_ACCOUNT,
    GRAND_TOTAL_AMOUNT,
    ROLE_ADMIN,
    ROLE_MANAGER,
    ROLE_USER,
    UPLOAD_BRANCH_COLUMN,
    UPLOAD_STAFF_COLUMN,
)
from .models import Branch, Record, StaffMember
from .utils import month_key

# ---------------------------------------------------------------------------
# Typical daily volumes per staff member (mean, std)
# ---------------------------------------------------------------------------
_DAILY_AMOUNTS = {
    "DDS AMT": (40_000, 12_000),
    "FD AMT": (90_000, 40_000),
    "RD AMT": (15_000, 6_000),
    "SAVS-AMT": (8_000, 3_000),
    "CUR-GOLD-AMT": (25_000, 15_000),
}
_DAILY_ACCOUNTS = {
    "DDS AC": (2, 1),
    "FD AC": (1, 1),
    "RD AC": (1, 1),
    "SAVS-AC": (1, 1),
    ACCOUNT_EXCEPTION_METRIC: (0.3, 0.5),
}

_BRANCH_NAMES = [
    "NAGPUR", "WARDHA", "AKOLA", "AMRAVATI", "YAVATMAL", "GONDIA",
    "BHANDARA", "CHANDRAPUR", "WASHIM",
]
_FIRST_NAMES = ["ASHA", "RAVI", "MEERA", "KIRAN", "SUNIL", "POOJA", "ANIL", "NEHA"]


def generate_directory(
    n_zones: int = 2,
    branches_per_zone: int = 3,
    staff_per_branch: int = 3,
) -> tuple[list[StaffMember], list[Branch]]:
    """Generate a staff and branch directory.

    Hierarchy: one admin; per zone a zonal manager (managing the zone);
    per branch a branch manager reporting to the zonal manager; branch
    staff reporting to their branch manager.
    """
    staff = [StaffMember(
        employee_code="0",
        name="ADMINISTRATOR",
        role=ROLE_ADMIN,
        designation="ADMINISTRATOR",
    )]
    branches = []
    code = 100
    branch_idx = 0

    for z in range(1, n_zones + 1):
        zone = f"Zone-{z}"
        zonal_code = str(code)
        code += 1
        first_branch = _BRANCH_NAMES[branch_idx % len(_BRANCH_NAMES)]
        staff.append(StaffMember(
            employee_code=zonal_code,
            name=f"ZONAL MANAGER {z}",
            role=ROLE_MANAGER,
            branch_name=first_branch,
            managed_zones=(zone,),
            designation="ZONAL MANAGER",
            zone=zone,
        ))

        for _ in range(branches_per_zone):
            branch_name = _BRANCH_NAMES[branch_idx % len(_BRANCH_NAMES)]
            if branch_idx >= len(_BRANCH_NAMES):
                branch_name = f"{branch_name} {branch_idx // len(_BRANCH_NAMES) + 1}"
            branch_idx += 1

            manager_code = str(code)
            code += 1
            branches.append(Branch(name=branch_name, zone=zone, manager_code=manager_code))
            staff.append(StaffMember(
                employee_code=manager_code,
                name=f"{branch_name} BRANCH MANAGER",
                role=ROLE_MANAGER,
                branch_name=branch_name,
                reports_to=zonal_code,
                designation="BRANCH MANAGER",
                zone=zone,
            ))

            for s in range(staff_per_branch):
                staff.append(StaffMember(
                    employee_code=str(code),
                    name=f"{_FIRST_NAMES[(code + s) % len(_FIRST_NAMES)]} {code}",
                    role=ROLE_USER,
                    branch_name=branch_name,
                    reports_to=manager_code,
                    designation="BUSINESS DEVELOPMENT OFFICER",
                    zone=zone,
                ))
                code += 1

    return staff, branches


def generate_daily_achievements(
    staff: list[StaffMember],
    start_date: str = "2024-01-01",
    n_days: int = 20,
    seed: int = 42,
) -> pd.DataFrame:
    """Generate a wide daily achievement upload (one row per staff per day).

    Dates are written DD/MM/YYYY as in the uploaded sheets. GRAND TOTAL AMT
    equals the row's amount sum except for the occasional manual adjustment.
    """
    rng = np.random.default_rng(seed)
    days = pd.date_range(start_date, periods=n_days, freq="D")
    field_staff = [s for s in staff if s.role == ROLE_USER]
    rows = []

    for day in days:
        for member in field_staff:
            row = {
                "DATE": day.strftime("%d/%m/%Y"),
                UPLOAD_STAFF_COLUMN: member.name,
                UPLOAD_BRANCH_COLUMN: member.branch_name,
            }
            for metric, (mean, std) in _DAILY_AMOUNTS.items():
                row[metric] = max(0.0, round(float(rng.normal(mean, std)), -2))
            for metric, (mean, std) in _DAILY_ACCOUNTS.items():
                row[metric] = max(0, int(round(rng.normal(mean, std))))

            amount_sum = sum(row[m] for m in _DAILY_AMOUNTS)
            account_sum = sum(row[m] for m in _DAILY_ACCOUNTS)
            row["TOTAL AMOUNTS"] = amount_sum
            row["TOTAL ACCOUNTS"] = account_sum
            adjustment = 0.95 if rng.random() < 0.05 else 1.0
            row[GRAND_TOTAL_AMOUNT] = round(amount_sum * adjustment, -2)
            row[GRAND_TOTAL_ACCOUNT] = account_sum
            rows.append(row)

    return pd.DataFrame(rows)


def generate_targets(
    staff: list[StaffMember],
    branches: list[Branch],
    month: str = "2024-01-01",
    seed: int = 42,
) -> list[Record]:
    """Generate monthly staff targets and branch targets.

    Staff targets are constituent-only; every other branch also carries an
    explicit GRAND TOTAL AMT so the override path is exercised.
    """
    rng = np.random.default_rng(seed)
    period = pd.Timestamp(month).replace(day=1)
    due = period + pd.offsets.MonthEnd(0)
    records = []

    for member in staff:
        if member.role != ROLE_USER:
            continue
        for metric, (mean, _) in _DAILY_AMOUNTS.items():
            records.append(Record(
                kind="target", date=period, metric=metric,
                value=round(mean * 22 * float(rng.uniform(0.9, 1.2)), -3),
                employee_code=member.employee_code, due_date=due,
            ))
        for metric, (mean, _) in _DAILY_ACCOUNTS.items():
            records.append(Record(
                kind="target", date=period, metric=metric,
                value=max(1, int(round(mean * 22))),
                employee_code=member.employee_code, due_date=due,
            ))

    for i, branch in enumerate(branches):
        branch_staff = sum(1 for s in staff if s.branch_name == branch.name and s.role == ROLE_USER)
        amount_total = 0.0
        for metric, (mean, _) in _DAILY_AMOUNTS.items():
            value = round(mean * 22 * branch_staff * float(rng.uniform(0.9, 1.1)), -3)
            amount_total += value
            records.append(Record(
                kind="target", date=period, metric=metric, value=value,
                branch_name=branch.name, due_date=due,
            ))
        if i % 2 == 0:
            records.append(Record(
                kind="target", date=period, metric=GRAND_TOTAL_AMOUNT,
                value=round(amount_total * 0.9, -3),
                branch_name=branch.name, due_date=due,
            ))

    return records


def generate_projections(
    staff: list[StaffMember],
    start_date: str = "2024-01-01",
    n_days: int = 10,
    seed: int = 7,
) -> list[Record]:
    """Generate daily staff projections for amount and account metrics."""
    rng = np.random.default_rng(seed)
    days = pd.date_range(start_date, periods=n_days, freq="D")
    records = []
    for day in days:
        for member in staff:
            if member.role != ROLE_USER:
                continue
            for metric, (mean, std) in _DAILY_AMOUNTS.items():
                records.append(Record(
                    kind="projection", date=day, metric=metric,
                    value=max(0.0, round(float(rng.normal(mean, std)), -2)),
                    employee_code=member.employee_code,
                    branch_name=member.branch_name,
                ))
            records.append(Record(
                kind="projection", date=day, metric="DDS AC",
                value=max(0, int(round(rng.normal(2, 1)))),
                employee_code=member.employee_code,
                branch_name=member.branch_name,
            ))
    return records


class InMemoryTargetStore:
    """Dict-backed TargetStore keyed by (owner, month, metric)."""

    def __init__(self, records: list[Record] | None = None):
        self._targets: dict[tuple, Record] = {}
        for record in records or ():
            self.upsert_target(record)

    @staticmethod
    def _key(record: Record) -> tuple:
        return (record.employee_code, record.branch_name, month_key(record.date), record.metric)

    def upsert_target(self, record: Record) -> None:
        self._targets[self._key(record)] = record

    def delete_target(self, record: Record) -> None:
        key = self._key(record)
        if key not in self._targets:
            raise KeyError(f"No stored target for {record.metric}")
        del self._targets[key]

    def all_targets(self) -> list[Record]:
        return list(self._targets.values())
