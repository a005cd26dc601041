# reports_core/workflows/executor.py

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from reports_core.models import Report, ReportStatusHistory
from reports_core.tasks import send_status_notification
from reports_core.workflows.concurrency import (
    assert_current_version,
    coerce_version,
    compare_and_swap,
)
from reports_core.workflows.errors import (
    IllegalTransition,
    Unauthorized,
    WorkflowTerminal,
)
from reports_core.workflows.esign import (
    check_esign,
    override_requires_esign,
    require_esign_fields,
    verify_esign,
)
from reports_core.workflows.graphs import (
    is_known_status,
    is_terminal,
    tester_role,
    validate_transition_with_role,
)
from reports_core.workflows.numbering import department_prefix, next_report_number
from reports_core.workflows.roles import OVERRIDE_ROLES, role_for_user
from reports_core.workflows.statuses import TESTING_START_STATUS, normalize_status

logger = logging.getLogger(__name__)

LOCKED = "LOCKED"


def require_role(user) -> str:
    role = role_for_user(user)
    if not role:
        raise Unauthorized("Your account has no report workflow role.")
    return role


# ===============================================================
# Commit helpers (call inside transaction.atomic)
# ===============================================================

def _status_side_effects(report: Report, target: str) -> Dict[str, Any]:
    changes: Dict[str, Any] = {}

    if target == TESTING_START_STATUS[report.family] and not report.report_number:
        changes["report_number"] = next_report_number(report.report_type)
        changes["prefix"] = department_prefix(report.report_type)

    if target == LOCKED and report.locked_at is None:
        changes["locked_at"] = timezone.now()

    return changes


def _enqueue_status_notification(report_id: int, from_status: str, to_status: str) -> None:
    """
    Fire-and-forget: a broker or transport failure is logged and never
    reaches the committed transition.
    """
    try:
        send_status_notification.delay(report_id, from_status, to_status)
    except Exception:
        logger.exception(
            "Could not enqueue status notification for report %s (%s -> %s)",
            report_id,
            from_status,
            to_status,
        )


def commit_status_change(
    report: Report,
    *,
    user,
    role: str,
    target: str,
    expected_version: int,
    reason: Optional[str] = None,
    esigned: bool = False,
    forced: bool = False,
    notify: bool = True,
) -> ReportStatusHistory:
    """
    Guarded status write + history row. The caller owns the transaction.
    """
    current = normalize_status(report.status)
    changes = _status_side_effects(report, target)

    new_version = compare_and_swap(
        report,
        expected_version,
        status=target,
        updated_by=user,
        **changes,
    )

    history = ReportStatusHistory.objects.create(
        report=report,
        from_status=current,
        to_status=target,
        performed_by=user,
        role=role,
        reason=(reason or "").strip(),
        esigned=esigned,
        forced=forced,
        version=new_version,
    )

    logger.info(
        "Report %s %s -> %s by %s (%s) v%s%s",
        report.pk,
        current,
        target,
        getattr(user, "pk", None),
        role,
        new_version,
        " [forced]" if forced else "",
    )

    if notify and getattr(settings, "WORKFLOW_EMAIL_NOTIFICATIONS", True):
        transaction.on_commit(
            lambda: _enqueue_status_notification(report.pk, current, target)
        )

    return history


# ===============================================================
# Public entry points
# ===============================================================

def execute_transition(
    *,
    report: Report,
    user,
    new_status: str,
    expected_version,
    reason: Optional[str] = None,
    esign_credential: Optional[str] = None,
) -> Report:
    """
    Move a report along one edge of its workflow graph.

    Order: stale read -> graph legality + trigger authority -> e-sign ->
    guarded write at commit -> notification after commit.
    """
    role = require_role(user)
    expected = coerce_version(expected_version)
    current = normalize_status(report.status)
    target = normalize_status(new_status)

    assert_current_version(report, expected)

    validate_transition_with_role(report.report_type, current, target, role)

    esigned = check_esign(
        report.report_type,
        role,
        target,
        user=user,
        reason=reason,
        credential=esign_credential,
    )

    with transaction.atomic():
        commit_status_change(
            report,
            user=user,
            role=role,
            target=target,
            expected_version=expected,
            reason=reason,
            esigned=esigned,
        )

    return report


def force_status(
    *,
    report: Report,
    user,
    new_status: str,
    reason: Optional[str],
    expected_version,
    esign_credential: Optional[str] = None,
) -> Report:
    """
    Administrative status override. Skips the graph but not the version
    guard; always needs a reason and, outside the exempt targets, an
    e-signature. Sends no notification.
    """
    role = require_role(user)
    allowed = set(OVERRIDE_ROLES) | {tester_role(report.report_type)}
    if role not in allowed:
        raise Unauthorized("Only admins, QA or the testing department can override a report status.")

    expected = coerce_version(expected_version)
    current = normalize_status(report.status)
    target = normalize_status(new_status)

    if not (reason or "").strip():
        raise ValidationError({"reason": "A reason is required for a status override."})

    assert_current_version(report, expected)

    if not is_known_status(report.report_type, target):
        raise IllegalTransition(f"Unknown target status: {target}", current=current, target=target)

    if current == LOCKED or (is_terminal(report.report_type, current) and target != LOCKED):
        raise WorkflowTerminal(current=current)

    if current == target:
        raise IllegalTransition(f"Report is already in {target}.", current=current, target=target)

    esigned = False
    if override_requires_esign(report.report_type, target):
        require_esign_fields(reason, esign_credential)
        verify_esign(user, esign_credential)
        esigned = True

    with transaction.atomic():
        commit_status_change(
            report,
            user=user,
            role=role,
            target=target,
            expected_version=expected,
            reason=reason,
            esigned=esigned,
            forced=True,
            notify=False,
        )

    return report


__all__ = [
    "require_role",
    "commit_status_change",
    "execute_transition",
    "force_status",
]
