# reports_core/models/workflow_event.py
from django.conf import settings
from django.db import models


class ReportStatusHistory(models.Model):
    """
    Immutable audit row for every committed status change.
    """

    report = models.ForeignKey(
        "reports_core.Report",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    from_status = models.CharField(max_length=64)
    to_status = models.CharField(max_length=64)

    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="report_status_changes",
    )
    role = models.CharField(max_length=20)
    reason = models.TextField(blank=True)
    esigned = models.BooleanField(default=False)
    forced = models.BooleanField(default=False)
    version = models.PositiveIntegerField()

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["report", "created_at"], name="status_history_report_idx"),
        ]

    def __str__(self):
        return (
            f"report:{self.report_id} "
            f"{self.from_status} -> {self.to_status} (v{self.version})"
        )


class AuditLog(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    report = models.ForeignKey(
        "reports_core.Report",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_logs",
    )
    action = models.CharField(max_length=255)
    details = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return self.action
