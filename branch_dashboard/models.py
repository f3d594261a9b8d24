"""
Record model: immutable snapshots of directory entities and metric records.

Entities arrive already validated from an external store; the engine only
reads them and derives new collections.
"""

from dataclasses import dataclass, field
from typing import Any

from .config import ROLE_USER, UNASSIGNED_BRANCH


@dataclass(frozen=True)
class StaffMember:
    employee_code: str
    name: str = ""
    role: str = ROLE_USER
    branch_name: str | None = None
    managed_branches: tuple[str, ...] = ()
    managed_zones: tuple[str, ...] = ()
    reports_to: str | None = None
    designation: str = ""
    zone: str = ""
    region: str = ""
    district: str = ""

    @property
    def home_branch(self) -> str | None:
        """Home branch name, or None for the 'N/A' placeholder."""
        if not self.branch_name or self.branch_name == UNASSIGNED_BRANCH:
            return None
        return self.branch_name


@dataclass(frozen=True)
class Branch:
    name: str
    zone: str = ""
    manager_code: str | None = None
    region: str = ""
    district: str = ""


@dataclass(frozen=True)
class ProductMetric:
    name: str
    category: str  # "Amount", "Account" or "Other"
    unit: str = ""
    contributes_to_overall_goals: bool = True


@dataclass(frozen=True)
class Record:
    """One achievement, target or projection value.

    `date` may be any date-like value; it is normalised when the record
    enters a fact table. Staff-owned records carry `employee_code`,
    branch-level targets carry only `branch_name`. Records sharing an
    `entry_id` came from the same submitted row; the grand-total override
    is applied per entry.
    """

    kind: str
    date: Any
    metric: str
    value: Any
    employee_code: str | None = None
    branch_name: str | None = None
    due_date: Any = None
    entry_id: str | None = None


@dataclass(frozen=True)
class Scope:
    employee_codes: frozenset[str] = field(default_factory=frozenset)
    branch_names: frozenset[str] = field(default_factory=frozenset)

    def contains(self, employee_code: str | None, branch_name: str | None) -> bool:
        """Inclusive OR: a matching staff code or a matching branch suffices."""
        return (
            (employee_code is not None and employee_code in self.employee_codes)
            or (branch_name is not None and branch_name in self.branch_names)
        )

    def is_empty(self) -> bool:
        return not self.employee_codes and not self.branch_names
