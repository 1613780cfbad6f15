from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
from typing import Any, Iterable

from govguard.core.errors import CatalogDefinitionError
from govguard.services.security.controls import (
    CONTROL_CATALOG,
    CONTROL_CATEGORIES,
    CONTROL_RESULTS,
    RESULT_ERROR,
    RESULT_FAIL,
    RESULT_NOT_APPLICABLE,
    RESULT_PASS,
    RESULT_WARNING,
    ControlDefinition,
    ControlVerdict,
)
from govguard.services.security.identity import control_check_id
from govguard.services.security.snapshots import SecurityCheckInput


logger = logging.getLogger(__name__)

CONTROL_RUN_EVENT_TYPE = "control_check_run"


@dataclass(frozen=True)
class ControlCheck:
    id: str
    project_id: str
    control_id: str
    control_name: str
    category: str
    description: str
    result: str
    evidence_details: str
    remediation: str | None
    checked_at: datetime
    created_at: datetime
    updated_at: datetime
    # Populated by the persistence layer, never by the engine.
    organization_id: str = ""
    evidence_link: str | None = None
    checked_by: str | None = None
    next_check_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.result not in CONTROL_RESULTS:
            raise CatalogDefinitionError(f"Unknown control result {self.result!r} for {self.control_id}")


@dataclass(frozen=True)
class CategoryBreakdown:
    total: int = 0
    passed: int = 0
    failed: int = 0


@dataclass(frozen=True)
class SecurityControlStatus:
    total_controls: int
    passed: int
    failed: int
    warnings: int
    not_applicable: int
    pass_rate: int
    by_category: dict[str, CategoryBreakdown]
    last_run_at: datetime | None
    checks: list[ControlCheck] = field(default_factory=list)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _pass_rate(passed: int, total: int) -> int:
    # Integer round-half-up of passed / total * 100.
    if total <= 0:
        return 0
    return (passed * 200 + total) // (2 * total)


def _run_check(definition: ControlDefinition, snapshot: SecurityCheckInput) -> ControlVerdict:
    try:
        return definition.check(snapshot)
    except Exception as exc:  # noqa: BLE001 - a broken control must not abort the whole run.
        logger.exception(
            "security_control_check_error control_id=%s project_id=%s",
            definition.control_id,
            snapshot.project_id,
        )
        return ControlVerdict(
            RESULT_ERROR,
            f"Control check could not complete: {type(exc).__name__}: {exc}",
            f"Investigate the evaluation failure for {definition.control_id} and re-run the control checks.",
        )


def execute_control(definition: ControlDefinition, snapshot: SecurityCheckInput, now: datetime) -> ControlCheck:
    verdict = _run_check(definition, snapshot)
    return ControlCheck(
        id=control_check_id(definition.control_id, snapshot.project_id),
        project_id=snapshot.project_id,
        control_id=definition.control_id,
        control_name=definition.control_name,
        category=definition.category,
        description=definition.description,
        result=verdict.result,
        evidence_details=verdict.evidence_details,
        remediation=verdict.remediation,
        checked_at=now,
        created_at=now,
        updated_at=now,
    )


def _aggregate(
    checks: list[ControlCheck],
    *,
    categories: Iterable[str],
    last_run_at: datetime | None,
) -> SecurityControlStatus:
    counts = {RESULT_PASS: 0, RESULT_FAIL: 0, RESULT_WARNING: 0, RESULT_NOT_APPLICABLE: 0}
    tallies: dict[str, dict[str, int]] = {
        category: {"total": 0, "passed": 0, "failed": 0} for category in categories
    }
    for check in checks:
        tally = tallies.setdefault(check.category, {"total": 0, "passed": 0, "failed": 0})
        tally["total"] += 1
        if check.result == RESULT_PASS:
            counts[RESULT_PASS] += 1
            tally["passed"] += 1
        elif check.result in {RESULT_FAIL, RESULT_ERROR}:
            # An error verdict is folded into failed, both globally and per category.
            counts[RESULT_FAIL] += 1
            tally["failed"] += 1
        elif check.result == RESULT_WARNING:
            # Warnings count toward the category total only.
            counts[RESULT_WARNING] += 1
        else:
            counts[RESULT_NOT_APPLICABLE] += 1

    total = len(checks)
    return SecurityControlStatus(
        total_controls=total,
        passed=counts[RESULT_PASS],
        failed=counts[RESULT_FAIL],
        warnings=counts[RESULT_WARNING],
        not_applicable=counts[RESULT_NOT_APPLICABLE],
        pass_rate=_pass_rate(counts[RESULT_PASS], total),
        by_category={category: CategoryBreakdown(**tally) for category, tally in tallies.items()},
        last_run_at=last_run_at,
        checks=checks,
    )


def evaluate_security_controls(
    snapshot: SecurityCheckInput,
    *,
    catalog: tuple[ControlDefinition, ...] = CONTROL_CATALOG,
) -> SecurityControlStatus:
    """Evaluate every catalog control against one configuration snapshot.

    Pure apart from reading the clock: all checks in a call share one timestamp,
    are emitted in catalog order, and carry identifiers derived from the project
    and control ids so repeated runs can be diffed or upserted.
    """
    now = _utc_now()
    checks = [execute_control(definition, snapshot, now) for definition in catalog]
    status = _aggregate(checks, categories=CONTROL_CATEGORIES, last_run_at=now)
    logger.info(
        "security_controls_evaluated project_id=%s total=%s passed=%s failed=%s warnings=%s pass_rate=%s",
        snapshot.project_id,
        status.total_controls,
        status.passed,
        status.failed,
        status.warnings,
        status.pass_rate,
    )
    return status


def summarize_control_checks(checks: Iterable[ControlCheck]) -> SecurityControlStatus:
    # Rebuild a status from stored checks, newest first; categories appear as they are seen.
    rows = list(checks)
    last_run_at = rows[0].checked_at if rows else None
    return _aggregate(rows, categories=(), last_run_at=last_run_at)


def describe_control_run(status: SecurityControlStatus, *, project_id: str) -> dict[str, Any]:
    # Audit payload recorded by callers after an on-demand run.
    return {
        "event_type": CONTROL_RUN_EVENT_TYPE,
        "description": (
            f"Security control checks executed: {status.passed} passed, {status.failed} failed, "
            f"{status.warnings} warnings out of {status.total_controls} total controls. "
            f"Pass rate: {status.pass_rate}%."
        ),
        "metadata": {
            "project_id": project_id,
            "total_controls": status.total_controls,
            "passed": status.passed,
            "failed": status.failed,
            "warnings": status.warnings,
            "pass_rate": status.pass_rate,
        },
    }
