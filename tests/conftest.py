"""
Pytest fixtures shared across the engine tests.

The directory is a small two-zone organisation plus a pair of managers
that report to each other, so cycle handling is exercised wherever the
directory is used.
"""

import pandas as pd
import pytest

from branch_dashboard.aggregation import default_catalog
from branch_dashboard.config import ROLE_ADMIN, ROLE_MANAGER, ROLE_USER
from branch_dashboard.models import Branch, Record, StaffMember
from branch_dashboard.transforms import build_fact_records


@pytest.fixture
def branches():
    return [
        Branch(name="B1", zone="North", manager_code="M1"),
        Branch(name="B2", zone="North", manager_code="M2"),
        Branch(name="B3", zone="South"),
        Branch(name="B8", zone="South", manager_code="C2"),
        Branch(name="B9", zone="South", manager_code="C1"),
    ]


@pytest.fixture
def staff():
    return [
        StaffMember("A0", "ADMIN", ROLE_ADMIN),
        StaffMember("Z1", "ZONAL NORTH", ROLE_MANAGER, branch_name="N/A", managed_zones=("North",)),
        StaffMember("M1", "MANAGER ONE", ROLE_MANAGER, branch_name="B1", reports_to="Z1"),
        StaffMember("M2", "MANAGER TWO", ROLE_MANAGER, branch_name="B2", reports_to="Z1"),
        StaffMember("S1", "ASHA PATIL", ROLE_USER, branch_name="B1", reports_to="M1"),
        StaffMember("S2", "RAVI JOSHI", ROLE_USER, branch_name="B1", reports_to="M1"),
        StaffMember("S3", "MEERA RAO", ROLE_USER, branch_name="B3"),
        # Reporting cycle: C1 -> C2 -> C1
        StaffMember("C1", "CYCLE ONE", ROLE_MANAGER, branch_name="B9", reports_to="C2"),
        StaffMember("C2", "CYCLE TWO", ROLE_MANAGER, branch_name="B8", reports_to="C1"),
    ]


@pytest.fixture
def by_code(staff):
    return {member.employee_code: member for member in staff}


@pytest.fixture
def catalog():
    return default_catalog()


@pytest.fixture
def make_fact():
    """Build a fact table from (date, employee_code, branch_name, metric, value[, kind[, entry_id]]) tuples."""

    def _make(rows):
        records = []
        for row in rows:
            date, code, branch, metric, value = row[:5]
            kind = row[5] if len(row) > 5 else "achievement"
            entry_id = row[6] if len(row) > 6 else None
            records.append(Record(
                kind=kind, date=date, metric=metric, value=value,
                employee_code=code, branch_name=branch, entry_id=entry_id,
            ))
        return build_fact_records(records)

    return _make


@pytest.fixture
def achievements(make_fact):
    """Two days at branch B1: 200 on the 2nd (S1), 300 on the 3rd (S2)."""
    return make_fact([
        ("2024-01-02", "S1", "B1", "DDS AMT", 100),
        ("2024-01-02", "S1", "B1", "FD AMT", 100),
        ("2024-01-02", "S1", "B1", "DDS AC", 2),
        ("2024-01-03", "S2", "B1", "DDS AMT", 300),
        ("2024-01-03", "S1", "B1", "FD AMT", 0),
        ("2024-01-03", "S3", "B3", "RD AMT", 700),
    ])


@pytest.fixture
def targets(make_fact):
    """January targets: one staff target, two branch targets (B2 with an explicit grand total)."""
    return make_fact([
        ("2024-01-01", "S1", None, "DDS AMT", 1000, "target"),
        ("2024-01-01", None, "B1", "DDS AMT", 5000, "target"),
        ("2024-01-01", None, "B2", "DDS AMT", 100, "target"),
        ("2024-01-01", None, "B2", "GRAND TOTAL AMT", 7000, "target"),
        ("2024-02-01", "S1", None, "DDS AMT", 9999, "target"),
    ])


@pytest.fixture
def empty_records():
    return build_fact_records([])


@pytest.fixture
def wide_upload():
    return pd.DataFrame([
        {
            "DATE": "05/01/2024", "STAFF NAME": "asha patil", "BRANCH NAME": "B1",
            "DDS AMT": 100, "FD AMT": 200, "DDS AC": 1,
            "TOTAL AMOUNTS": 300, "TOTAL ACCOUNTS": 1,
            "GRAND TOTAL AMT": 300, "GRAND TOTAL AC": 1,
        },
        {
            "DATE": "06/01/2024", "STAFF NAME": "S2", "BRANCH NAME": "B1",
            "DDS AMT": 50, "FD AMT": None, "DDS AC": 0,
            "TOTAL AMOUNTS": 50, "TOTAL ACCOUNTS": 0,
            "GRAND TOTAL AMT": 60, "GRAND TOTAL AC": 0,
        },
    ])
