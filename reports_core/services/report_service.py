# reports_core/services/report_service.py
"""
Report drafts and field saves.

Status never changes here; it only moves through
``reports_core.workflows.executor``. Field saves go through the same version
guard as transitions.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from django.db import transaction
from rest_framework.exceptions import ValidationError

from reports_core.models import AuditLog, Report
from reports_core.workflows.concurrency import (
    assert_current_version,
    coerce_version,
    compare_and_swap,
)
from reports_core.workflows.errors import Unauthorized
from reports_core.workflows.executor import require_role
from reports_core.workflows.field_permissions import critical_fields_in, disallowed_fields
from reports_core.workflows.numbering import department_prefix, next_form_number
from reports_core.workflows.roles import Role, client_code_for_user
from reports_core.workflows.statuses import normalize_report_type

logger = logging.getLogger(__name__)

DRAFT_CREATOR_ROLES = {Role.CLIENT, Role.ADMIN, Role.SYSTEMADMIN}

# Columns owned by the workflow engine, never accepted as form fields.
RESERVED_FIELDS = {"status", "version", "reportNumber", "formNumber", "clientCode"}


# ===============================================================
# Draft creation
# ===============================================================

def create_draft(*, user, report_type, client_code: Optional[str] = None, fields: Optional[Dict[str, Any]] = None) -> Report:
    role = require_role(user)
    if role not in DRAFT_CREATOR_ROLES:
        raise Unauthorized(f"Role {role} cannot create reports.")

    try:
        rtype = normalize_report_type(report_type)
    except ValueError as exc:
        raise ValidationError({"reportType": str(exc)})

    code = (client_code or "").strip().upper()
    if role == Role.CLIENT:
        own = client_code_for_user(user)
        if not own:
            raise Unauthorized("Your account is not linked to a client code.")
        if code and code != own:
            raise Unauthorized("Clients can only create reports for their own account.")
        code = own

    if not code:
        raise ValidationError({"clientCode": "Client code is required."})

    payload = dict(fields or {})
    reserved = sorted(RESERVED_FIELDS.intersection(payload))
    if reserved:
        raise ValidationError({"fields": f"Reserved keys cannot be set: {', '.join(reserved)}."})

    with transaction.atomic():
        report = Report.objects.create(
            report_type=rtype,
            client_code=code,
            form_number=next_form_number(code),
            prefix=department_prefix(rtype),
            fields=payload,
            created_by=user,
            updated_by=user,
        )

    logger.info("Report %s (%s) drafted for %s by %s", report.pk, rtype, code, role)
    return report


# ===============================================================
# Field save
# ===============================================================

def save_fields(
    *,
    report: Report,
    user,
    fields: Dict[str, Any],
    expected_version,
    reason: Optional[str] = None,
) -> Report:
    """
    Merge ``fields`` into the report's form data.

    Every key must be editable by the caller's role in the current status.
    Changing a critical (sign-off/result) field needs a reason.
    """
    role = require_role(user)
    expected = coerce_version(expected_version)

    if not isinstance(fields, dict) or not fields:
        raise ValidationError({"fields": "Provide at least one field to update."})

    reserved = sorted(RESERVED_FIELDS.intersection(fields))
    if reserved:
        raise ValidationError(
            {"fields": f"{', '.join(reserved)} cannot be edited here; status changes use the status endpoint."}
        )

    assert_current_version(report, expected)

    blocked = disallowed_fields(role, report.report_type, report.status, fields.keys())
    if blocked:
        raise Unauthorized(
            f"Role {role} cannot edit {', '.join(sorted(blocked))} while the report is {report.status}.",
            fields=sorted(blocked),
        )

    current = dict(report.fields or {})
    changed = {k: v for k, v in fields.items() if current.get(k) != v}
    critical = critical_fields_in(report.report_type, changed.keys())
    if critical and not (reason or "").strip():
        raise ValidationError(
            {"reason": f"A reason is required to change {', '.join(critical)}."}
        )

    if not changed:
        return report

    merged = {**current, **changed}

    with transaction.atomic():
        new_version = compare_and_swap(report, expected, fields=merged, updated_by=user)

        AuditLog.objects.create(
            user=user,
            report=report,
            action=f"REPORT {report.pk} FIELDS UPDATED",
            details={
                "fields": sorted(changed),
                "critical": critical,
                "reason": (reason or "").strip(),
                "role": role,
                "status": report.status,
                "version": new_version,
            },
        )

    return report
