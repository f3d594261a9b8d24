"""
Scope resolution: which employee codes and branch names a user may see.

Managers see their own code and branches, branches in their managed zones,
and everyone below them in the reporting hierarchy. The hierarchy walk is
an explicit worklist over a code -> direct-reports index with a visited
set, so a reporting cycle (A -> B -> A) stops at the repeated node instead
of looping.
"""

import logging
from collections import defaultdict, deque
from typing import Iterable

from .config import ROLE_ADMIN, ROLE_MANAGER, ROLE_USER, UNASSIGNED_BRANCH
from .models import Branch, Scope, StaffMember

logger = logging.getLogger(__name__)


def build_reports_index(all_staff: Iterable[StaffMember]) -> dict[str, list[StaffMember]]:
    """Map each manager employee code to its direct reports, in directory order.

    A code listed more than once is indexed on its first entry only.
    """
    index: dict[str, list[StaffMember]] = defaultdict(list)
    seen: set[str] = set()
    for member in all_staff:
        if not member.employee_code:
            continue
        if member.employee_code in seen:
            logger.warning("Duplicate employee code %s in directory; keeping first entry", member.employee_code)
            continue
        seen.add(member.employee_code)
        if member.reports_to:
            index[member.reports_to].append(member)
    return dict(index)


def collect_subordinates(
    root_code: str,
    reports_index: dict[str, list[StaffMember]],
) -> tuple[list[str], list[str]]:
    """Walk the reporting hierarchy below `root_code`.

    Returns (employee_codes, home_branches) of every direct and indirect
    report, in breadth-first order without duplicates. The root itself is
    not included unless a cycle leads back to it. Each code is expanded at
    most once.
    """
    visited = {root_code}
    codes: list[str] = []
    branches: list[str] = []
    seen_branches: set[str] = set()
    worklist = deque([root_code])

    while worklist:
        manager_code = worklist.popleft()
        for report in reports_index.get(manager_code, ()):
            code = report.employee_code
            if code in visited:
                logger.warning(
                    "%s (reports to %s) already visited, likely a reporting cycle; not expanding again",
                    code, manager_code,
                )
                continue
            visited.add(code)
            codes.append(code)
            branch = report.home_branch
            if branch and branch not in seen_branches:
                seen_branches.add(branch)
                branches.append(branch)
            worklist.append(code)

    return codes, branches


def _manager_scope(
    user: StaffMember,
    all_staff: list[StaffMember],
    all_branches: list[Branch],
) -> Scope:
    codes: set[str] = set()
    branches: set[str] = set()

    if user.employee_code:
        codes.add(user.employee_code)
    if user.home_branch:
        branches.add(user.home_branch)
    branches.update(
        b for b in user.managed_branches if b and b != UNASSIGNED_BRANCH
    )
    if user.managed_zones:
        zones = set(user.managed_zones)
        branches.update(b.name for b in all_branches if b.zone in zones)

    if user.employee_code:
        sub_codes, sub_branches = collect_subordinates(
            user.employee_code, build_reports_index(all_staff)
        )
        codes.update(sub_codes)
        branches.update(sub_branches)

    # Staff based at any in-scope branch (not expanded further)
    codes.update(
        s.employee_code for s in all_staff
        if s.employee_code and s.home_branch in branches
    )
    return Scope(frozenset(codes), frozenset(branches))


def resolve_scope(
    user: StaffMember,
    all_staff: Iterable[StaffMember],
    all_branches: Iterable[Branch],
) -> Scope:
    """Compute the Scope a user may view.

    - admin: every employee code and every branch name
    - manager: self, own/managed branches, managed-zone branches, the full
      subordinate tree with their home branches, and staff at those branches
    - user: own employee code and own home branch
    - any other role: empty scope
    """
    staff = list(all_staff)
    branches = list(all_branches)

    if user.role == ROLE_ADMIN:
        return Scope(
            frozenset(s.employee_code for s in staff if s.employee_code),
            frozenset(b.name for b in branches if b.name),
        )

    if user.role == ROLE_MANAGER:
        return _manager_scope(user, staff, branches)

    if user.role == ROLE_USER:
        return Scope(
            frozenset({user.employee_code} if user.employee_code else ()),
            frozenset({user.home_branch} if user.home_branch else ()),
        )

    logger.warning("Unknown role %r for %s — returning empty scope", user.role, user.employee_code)
    return Scope()


def accessible_staff(scope: Scope, all_staff: Iterable[StaffMember]) -> list[StaffMember]:
    """Directory entries whose employee code is in scope, in directory order."""
    return [s for s in all_staff if s.employee_code in scope.employee_codes]
