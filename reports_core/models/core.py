# reports_core/models/core.py

from django.conf import settings
from django.db import models

from reports_core.workflows.guards import ReportWriteGuardMixin
from reports_core.workflows.roles import Role
from reports_core.workflows.statuses import (
    FAMILY_COLLECTION,
    REPORT_TYPE_SLUG,
    ReportType,
    family_for,
)


# ============================================================
# Base
# ============================================================
class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


# ============================================================
# User profile (workflow role + client binding)
# ============================================================
class UserProfile(TimeStampedModel):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="report_profile",
    )
    role = models.CharField(max_length=20, choices=Role.choices)
    client_code = models.CharField(
        max_length=32,
        blank=True,
        db_index=True,
        help_text="Client account this user belongs to (CLIENT role only).",
    )

    def __str__(self):
        suffix = f" [{self.client_code}]" if self.client_code else ""
        return f"{self.user} ({self.role}){suffix}"


# ============================================================
# Report
# ============================================================
class Report(ReportWriteGuardMixin, TimeStampedModel):
    report_type = models.CharField(max_length=32, choices=ReportType.choices)
    client_code = models.CharField(max_length=32, db_index=True)

    status = models.CharField(max_length=64, default="DRAFT", db_index=True)
    version = models.PositiveIntegerField(default=1)

    form_number = models.CharField(max_length=64, unique=True, null=True, blank=True)
    report_number = models.CharField(max_length=64, unique=True, null=True, blank=True)
    prefix = models.CharField(max_length=4, blank=True)

    fields = models.JSONField(default=dict, blank=True)

    locked_at = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_reports",
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="updated_reports",
    )

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["report_type", "status"], name="report_type_status_idx"),
        ]

    @property
    def family(self) -> str:
        return family_for(self.report_type)

    @property
    def collection(self) -> str:
        return FAMILY_COLLECTION[self.family]

    @property
    def slug(self) -> str:
        return REPORT_TYPE_SLUG[self.report_type]

    def __str__(self):
        return f"{self.form_number or self.pk} {self.report_type} [{self.status}] v{self.version}"


# ============================================================
# Numbering sequences
# ============================================================
class ClientSequence(models.Model):
    client_code = models.CharField(max_length=32, unique=True)
    last_number = models.PositiveIntegerField(default=0)

    def __str__(self):
        return f"{self.client_code}: {self.last_number}"


class LabReportSequence(models.Model):
    department = models.CharField(max_length=4)
    year = models.PositiveIntegerField()
    last_number = models.PositiveIntegerField(default=0)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["department", "year"], name="uniq_lab_report_sequence"),
        ]

    def __str__(self):
        return f"{self.department}-{self.year}: {self.last_number}"
