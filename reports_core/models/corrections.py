# reports_core/models/corrections.py
import uuid

from django.conf import settings
from django.db import models

from reports_core.workflows.roles import Role


class CorrectionItem(models.Model):
    """
    One correction note against one field of one report.

    Opened in bulk by a "needs correction" transition, resolved one at a
    time (or per field) by a role that may edit the field.
    """

    class Status(models.TextChoices):
        OPEN = "OPEN", "Open"
        RESOLVED = "RESOLVED", "Resolved"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    report = models.ForeignKey(
        "reports_core.Report",
        on_delete=models.CASCADE,
        related_name="corrections",
    )

    field_key = models.CharField(max_length=128)
    message = models.TextField()
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.OPEN)

    # Field value at the time the correction was requested.
    old_value = models.JSONField(null=True, blank=True)

    requested_by_role = models.CharField(max_length=20, choices=Role.choices)
    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="requested_corrections",
    )
    requested_at_status = models.CharField(max_length=64, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    resolved_at = models.DateTimeField(null=True, blank=True)
    resolved_by_role = models.CharField(max_length=20, choices=Role.choices, blank=True)
    resolved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="resolved_corrections",
    )
    resolution_note = models.TextField(blank=True)

    class Meta:
        ordering = ["created_at", "field_key"]
        indexes = [
            models.Index(fields=["report", "status"], name="correction_report_status_idx"),
            models.Index(fields=["report", "field_key"], name="correction_report_field_idx"),
        ]

    @property
    def is_open(self) -> bool:
        return self.status == self.Status.OPEN

    def __str__(self):
        return f"{self.report_id}:{self.field_key} [{self.status}]"
