"""
Bulk target submission (outbound path).

Grand totals are computed from the constituent inputs and stored as
derived values, overwriting any previously stored explicit grand total.
This is the reverse of aggregation.reconcile_totals, which prefers an
explicit stored grand total when reading; the two paths stay separate.

Persistence belongs to an injected TargetStore. Each change is applied
independently and its outcome reported, so one failed write does not hide
the others.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Protocol

from .aggregation import default_catalog, metric_groups
from .config import ACCOUNT_EXCEPTION_METRIC, GRAND_TOTAL_ACCOUNT, GRAND_TOTAL_AMOUNT
from .models import ProductMetric, Record
from .utils import month_start, normalise_date, safe_float

logger = logging.getLogger(__name__)


class TargetStore(Protocol):
    def upsert_target(self, record: Record) -> None: ...

    def delete_target(self, record: Record) -> None: ...


@dataclass(frozen=True)
class TargetChange:
    action: str  # "upsert" or "delete"
    record: Record


@dataclass(frozen=True)
class SubmissionResult:
    metric: str
    action: str
    ok: bool
    error: str | None = None


def compute_grand_totals(
    inputs: Mapping[str, Any],
    catalog: Iterable[ProductMetric] | None = None,
) -> dict[str, float]:
    """Sum positive constituent inputs into the two grand-total metrics.

    ACCOUNT_EXCEPTION_METRIC is stored as its own target but left out of the
    computed GRAND TOTAL AC.
    """
    groups = metric_groups(catalog)
    amount = 0.0
    account = 0.0
    for name, raw in inputs.items():
        value = safe_float(raw)
        if value is None or value <= 0 or name == ACCOUNT_EXCEPTION_METRIC:
            continue
        if name in groups.amount:
            amount += value
        elif name in groups.account:
            account += value
    return {GRAND_TOTAL_AMOUNT: amount, GRAND_TOTAL_ACCOUNT: account}


def _same_owner_period(
    record: Record,
    employee_code: str | None,
    branch_name: str | None,
    period: Any,
) -> bool:
    if record.kind != "target":
        return False
    if employee_code is not None:
        if record.employee_code != employee_code:
            return False
    elif record.employee_code is not None or record.branch_name != branch_name:
        return False
    return month_start(record.date) == period


def plan_bulk_targets(
    inputs: Mapping[str, Any],
    existing: Iterable[Record],
    catalog: Iterable[ProductMetric] | None = None,
    *,
    employee_code: str | None = None,
    branch_name: str | None = None,
    month: Any,
    due_date: Any = None,
) -> list[TargetChange]:
    """Work out the upserts and deletes for one owner's monthly targets.

    Parameters
    ----------
    inputs : metric name -> entered value (numbers or strings).
    existing : Stored target records; only those for this owner and month
               are considered.
    catalog : Product metrics to iterate (defaults to the registry).
    employee_code / branch_name : The owner; exactly one must be given.
    month : Any date within the target month.
    due_date : Optional due date stamped on every upserted target.

    Returns
    -------
    Changes in catalog order:
    - value > 0 -> upsert (grand totals use the computed sum)
    - value <= 0, blank or invalid with a stored target -> delete
    """
    if (employee_code is None) == (branch_name is None):
        raise ValueError("Exactly one of employee_code or branch_name is required")
    period = month_start(month)
    if period is None:
        raise ValueError(f"Invalid target month: {month!r}")

    metrics = list(catalog) if catalog is not None else default_catalog()
    grand_totals = compute_grand_totals(inputs, metrics)
    due = normalise_date(due_date)

    stored: dict[str, Record] = {}
    for record in existing:
        if _same_owner_period(record, employee_code, branch_name, period):
            stored.setdefault(record.metric, record)

    catalog_names = {m.name for m in metrics}
    unknown = sorted(set(inputs) - catalog_names)
    if unknown:
        logger.warning("Ignoring inputs for metrics not in the catalog: %s", unknown)

    changes: list[TargetChange] = []
    for metric in metrics:
        if metric.name in grand_totals:
            value = grand_totals[metric.name]
        else:
            value = safe_float(inputs.get(metric.name)) or 0.0

        previous = stored.get(metric.name)
        if value > 0:
            changes.append(TargetChange("upsert", Record(
                kind="target",
                date=period,
                metric=metric.name,
                value=value,
                employee_code=employee_code,
                branch_name=branch_name if employee_code is None else None,
                due_date=due,
            )))
        elif previous is not None:
            changes.append(TargetChange("delete", previous))

    logger.info(
        "Planned %d target changes for %s %s",
        len(changes), employee_code or branch_name, period.strftime("%Y-%m"),
    )
    return changes


def apply_target_changes(
    changes: Iterable[TargetChange],
    store: TargetStore,
) -> list[SubmissionResult]:
    """Apply each change to the store, reporting success or failure per record."""
    results = []
    for change in changes:
        try:
            if change.action == "upsert":
                store.upsert_target(change.record)
            elif change.action == "delete":
                store.delete_target(change.record)
            else:
                raise ValueError(f"Unknown target change action: {change.action!r}")
        except Exception as exc:
            logger.exception(
                "Failed to %s target %s", change.action, change.record.metric
            )
            results.append(SubmissionResult(change.record.metric, change.action, False, str(exc)))
        else:
            results.append(SubmissionResult(change.record.metric, change.action, True))

    failed = sum(1 for r in results if not r.ok)
    if failed:
        logger.warning("%d of %d target changes failed", failed, len(results))
    return results


def submit_bulk_targets(
    inputs: Mapping[str, Any],
    existing: Iterable[Record],
    store: TargetStore,
    catalog: Iterable[ProductMetric] | None = None,
    **owner_period,
) -> list[SubmissionResult]:
    """plan_bulk_targets followed by apply_target_changes."""
    changes = plan_bulk_targets(inputs, existing, catalog, **owner_period)
    return apply_target_changes(changes, store)
