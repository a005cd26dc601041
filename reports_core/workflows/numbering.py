# reports_core/workflows/numbering.py
from __future__ import annotations

import logging

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from reports_core.models import ClientSequence, LabReportSequence
from reports_core.workflows.statuses import FAMILY_PREFIX, family_for

logger = logging.getLogger(__name__)


def _year() -> int:
    return timezone.localdate().year


def _claim_next(model, **lookup) -> int:
    """
    Bump the counter row matching ``lookup`` and return the new value.

    The row is created on first use. A concurrent first use can lose the
    INSERT; the savepoint absorbs the IntegrityError and the winner's row is
    locked and bumped instead.
    """
    with transaction.atomic():
        try:
            with transaction.atomic():
                model.objects.get_or_create(**lookup)
        except IntegrityError:
            logger.info("%s %s created concurrently; reusing it", model.__name__, lookup)

        seq = model.objects.select_for_update().get(**lookup)
        model.objects.filter(pk=seq.pk).update(last_number=F("last_number") + 1)
        seq.refresh_from_db(fields=["last_number"])
    return seq.last_number


def next_form_number(client_code: str) -> str:
    """
    {CLIENT}-{YYYY}{NNNN}, one running sequence per client.
    """
    code = (client_code or "").strip().upper()
    number = _claim_next(ClientSequence, client_code=code)
    return f"{code}-{_year()}{number:04d}"


def next_report_number(report_type) -> str:
    """
    {DEPT}-{YYYY}{NNNN}, one running sequence per department and year.
    """
    dept = FAMILY_PREFIX[family_for(report_type)]
    year = _year()
    number = _claim_next(LabReportSequence, department=dept, year=year)
    return f"{dept}-{year}{number:04d}"


def department_prefix(report_type) -> str:
    return FAMILY_PREFIX[family_for(report_type)]
