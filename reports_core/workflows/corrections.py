# reports_core/workflows/corrections.py
"""
Per-field correction ledger.

A "needs correction" request is one unit of work: the version guard, the
status change and the OPEN items commit together or not at all. Items are
then resolved individually (or per field) by whoever may edit that field in
the report's current status.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone
from rest_framework.exceptions import NotFound

from reports_core.models import CorrectionItem, Report
from reports_core.workflows.concurrency import (
    assert_current_version,
    coerce_version,
    compare_and_swap,
)
from reports_core.workflows.errors import InvalidCorrection, Unauthorized
from reports_core.workflows.esign import check_esign
from reports_core.workflows.executor import commit_status_change, require_role
from reports_core.workflows.field_permissions import can_edit_field
from reports_core.workflows.graphs import is_correction_status, validate_transition_with_role
from reports_core.workflows.statuses import normalize_status

logger = logging.getLogger(__name__)

DEFAULT_CORRECTION_REASON = "Corrections requested"


def _clean_items(items: Iterable[Dict[str, Any]]) -> List[Dict[str, str]]:
    cleaned: List[Dict[str, str]] = []
    for idx, raw in enumerate(items or []):
        raw = raw or {}
        field_key = str(raw.get("fieldKey") or raw.get("field_key") or "").strip()
        message = str(raw.get("message") or "").strip()
        if not field_key:
            raise InvalidCorrection(f"Correction #{idx + 1} is missing fieldKey.")
        if not message:
            raise InvalidCorrection(f"Correction #{idx + 1} ({field_key}) is missing a message.")
        cleaned.append({"field_key": field_key, "message": message})

    if not cleaned:
        raise InvalidCorrection("At least one correction item is required.")
    return cleaned


# ===============================================================
# Create
# ===============================================================

def request_corrections(
    *,
    report: Report,
    user,
    items: Iterable[Dict[str, Any]],
    target_status: str,
    expected_version,
    reason: Optional[str] = None,
    esign_credential: Optional[str] = None,
) -> List[CorrectionItem]:
    role = require_role(user)
    expected = coerce_version(expected_version)
    cleaned = _clean_items(items)

    current = normalize_status(report.status)
    target = normalize_status(target_status)

    assert_current_version(report, expected)

    if not is_correction_status(report.report_type, target):
        raise InvalidCorrection(f"{target} is not a needs-correction status.")

    validate_transition_with_role(report.report_type, current, target, role)

    esigned = check_esign(
        report.report_type,
        role,
        target,
        user=user,
        reason=reason,
        credential=esign_credential,
    )

    snapshot = dict(report.fields or {})

    with transaction.atomic():
        commit_status_change(
            report,
            user=user,
            role=role,
            target=target,
            expected_version=expected,
            reason=(reason or "").strip() or DEFAULT_CORRECTION_REASON,
            esigned=esigned,
        )

        created = [
            CorrectionItem.objects.create(
                report=report,
                field_key=entry["field_key"],
                message=entry["message"],
                old_value=snapshot.get(entry["field_key"]),
                requested_by_role=role,
                requested_by=user,
                requested_at_status=current,
            )
            for entry in cleaned
        ]

    logger.info(
        "Report %s: %d correction(s) opened by %s moving %s -> %s",
        report.pk,
        len(created),
        role,
        current,
        target,
    )
    return created


# ===============================================================
# Resolve
# ===============================================================

def _check_can_resolve(report: Report, role: str, field_key: str) -> None:
    if not can_edit_field(role, report.report_type, report.status, field_key):
        raise Unauthorized(
            f"Role {role} cannot edit '{field_key}' while the report is {report.status}."
        )


def _resolution_values(*, user, role: str, note: Optional[str]) -> Dict[str, Any]:
    return {
        "status": CorrectionItem.Status.RESOLVED,
        "resolved_at": timezone.now(),
        "resolved_by_role": role,
        "resolved_by": user,
        "resolution_note": (note or "").strip(),
    }


def resolve_correction(
    *,
    report: Report,
    correction_id,
    user,
    note: Optional[str] = None,
    expected_version=None,
) -> CorrectionItem:
    """
    Resolve one item. Re-resolving a RESOLVED item returns it unchanged.
    """
    role = require_role(user)
    expected = coerce_version(expected_version, required=False)

    item = CorrectionItem.objects.filter(report=report, pk=correction_id).first()
    if item is None:
        raise NotFound("Correction not found for this report.")

    if not item.is_open:
        return item

    _check_can_resolve(report, role, item.field_key)

    if expected is None:
        expected = report.version
    else:
        assert_current_version(report, expected)

    with transaction.atomic():
        values = _resolution_values(user=user, role=role, note=note)
        claimed = CorrectionItem.objects.filter(
            pk=item.pk,
            status=CorrectionItem.Status.OPEN,
        ).update(**values)

        if claimed:
            compare_and_swap(report, expected, updated_by=user)

    item.refresh_from_db()
    if claimed:
        logger.info(
            "Report %s: correction %s (%s) resolved by %s",
            report.pk,
            item.pk,
            item.field_key,
            role,
        )
    return item


def resolve_field_corrections(
    *,
    report: Report,
    field_key: str,
    user,
    note: Optional[str] = None,
    expected_version=None,
) -> List[CorrectionItem]:
    """
    Resolve every OPEN item for one field in a single guarded write.
    Returns the items resolved by this call (empty when nothing was open).
    """
    role = require_role(user)
    expected = coerce_version(expected_version, required=False)
    field_key = (field_key or "").strip()
    if not field_key:
        raise InvalidCorrection("fieldKey is required.")

    pending = list(open_corrections(report).filter(field_key=field_key).values_list("pk", flat=True))
    if not pending:
        return []

    _check_can_resolve(report, role, field_key)

    if expected is None:
        expected = report.version
    else:
        assert_current_version(report, expected)

    with transaction.atomic():
        values = _resolution_values(user=user, role=role, note=note)
        claimed = CorrectionItem.objects.filter(
            pk__in=pending,
            status=CorrectionItem.Status.OPEN,
        ).update(**values)

        if claimed:
            compare_and_swap(report, expected, updated_by=user)

    return list(
        CorrectionItem.objects.filter(pk__in=pending, resolved_by=user, status=CorrectionItem.Status.RESOLVED)
    )


# ===============================================================
# Queries
# ===============================================================

def list_corrections(report: Report, status: Optional[str] = None) -> QuerySet:
    qs = CorrectionItem.objects.filter(report=report).select_related("requested_by", "resolved_by")
    if status:
        qs = qs.filter(status=normalize_status(status))
    return qs.order_by("created_at", "field_key")


def open_corrections(report: Report) -> QuerySet:
    return list_corrections(report, CorrectionItem.Status.OPEN)


def open_fields(report: Report) -> List[str]:
    return sorted(set(open_corrections(report).values_list("field_key", flat=True)))


__all__ = [
    "request_corrections",
    "resolve_correction",
    "resolve_field_corrections",
    "list_corrections",
    "open_corrections",
    "open_fields",
]
