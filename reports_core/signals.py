# reports_core/signals.py
from __future__ import annotations

from django.db.models.signals import post_save
from django.dispatch import receiver

from reports_core.models import AuditLog, CorrectionItem, ReportStatusHistory


# ===============================================================
# Status history -> audit log
# ===============================================================
@receiver(post_save, sender=ReportStatusHistory)
def audit_status_change(sender, instance: ReportStatusHistory, created: bool, **kwargs):
    """
    Runs inside the executor's transaction, so the audit row commits (or
    rolls back) with the status change itself.
    """
    if not created:
        return

    AuditLog.objects.create(
        user=instance.performed_by,
        report=instance.report,
        action=(
            f"REPORT {instance.report_id} STATUS "
            f"{instance.from_status} -> {instance.to_status}"
            f"{' (OVERRIDE)' if instance.forced else ''}"
        ),
        details={
            "from": instance.from_status,
            "to": instance.to_status,
            "role": instance.role,
            "reason": instance.reason,
            "esigned": instance.esigned,
            "forced": instance.forced,
            "version": instance.version,
        },
    )


# ===============================================================
# Correction ledger -> audit log
# ===============================================================
@receiver(post_save, sender=CorrectionItem)
def audit_correction_requested(sender, instance: CorrectionItem, created: bool, **kwargs):
    if not created:
        return

    AuditLog.objects.create(
        user=instance.requested_by,
        report=instance.report,
        action=f"REPORT {instance.report_id} CORRECTION REQUESTED {instance.field_key}",
        details={
            "correction_id": str(instance.pk),
            "field": instance.field_key,
            "message": instance.message,
            "role": instance.requested_by_role,
            "status": instance.requested_at_status,
        },
    )
