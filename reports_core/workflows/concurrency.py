# reports_core/workflows/concurrency.py
"""
Optimistic concurrency for report mutations.

Every mutation carries the version the caller last read. The authoritative
check is the guarded UPDATE in ``compare_and_swap``: it only matches the row
while ``version`` still equals the expected value, and bumps it by one in the
same statement. Zero matched rows means someone else committed first.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from django.db.models import F
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from reports_core.workflows.errors import VersionConflict

logger = logging.getLogger(__name__)


def coerce_version(value: Any, *, required: bool = True) -> Optional[int]:
    if value is None or value == "":
        if required:
            raise ValidationError({"expectedVersion": "This field is required."})
        return None

    if isinstance(value, bool):
        raise ValidationError({"expectedVersion": "Must be a positive integer."})

    try:
        version = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError({"expectedVersion": "Must be a positive integer."})

    if version < 1:
        raise ValidationError({"expectedVersion": "Must be a positive integer."})
    return version


def assert_current_version(report, expected_version: int) -> None:
    """
    Fail fast on a stale read. Not a substitute for compare_and_swap.
    """
    if report.version != expected_version:
        raise VersionConflict(
            expected_version=expected_version,
            current_version=report.version,
        )


def compare_and_swap(report, expected_version: int, **changes: Any) -> int:
    """
    UPDATE report SET version = version + 1, <changes>
    WHERE id = <pk> AND version = <expected_version>

    Must run inside the caller's transaction so the rest of the unit of work
    rolls back with it. Returns the new version and mirrors the written
    values onto ``report``.
    """
    model = report.__class__
    now = timezone.now()

    updated = model.objects.filter(pk=report.pk, version=expected_version).update(
        version=F("version") + 1,
        updated_at=now,
        **changes,
    )

    if updated != 1:
        current = model.objects.filter(pk=report.pk).values_list("version", flat=True).first()
        logger.info(
            "Version conflict on report %s: expected v%s, stored v%s",
            report.pk,
            expected_version,
            current,
        )
        raise VersionConflict(
            expected_version=expected_version,
            current_version=current,
        )

    new_version = expected_version + 1
    report.version = new_version
    report.updated_at = now
    for name, value in changes.items():
        setattr(report, name, value)
    return new_version


__all__ = [
    "coerce_version",
    "assert_current_version",
    "compare_and_swap",
]
