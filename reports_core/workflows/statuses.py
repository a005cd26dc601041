# reports_core/workflows/statuses.py
from __future__ import annotations

from typing import Dict, Type

from django.db import models


class ReportType(models.TextChoices):
    MICRO_MIX = "MICRO_MIX", "Micro mix"
    MICRO_MIX_WATER = "MICRO_MIX_WATER", "Micro mix (water)"
    STERILITY = "STERILITY", "Sterility"
    CHEMISTRY_MIX = "CHEMISTRY_MIX", "Chemistry mix"
    COA = "COA", "Certificate of analysis"


class WorkflowFamily(models.TextChoices):
    MICRO = "micro", "Microbiology"
    CHEMISTRY = "chemistry", "Chemistry"


class MicroReportStatus(models.TextChoices):
    DRAFT = "DRAFT"
    SUBMITTED_BY_CLIENT = "SUBMITTED_BY_CLIENT"
    UNDER_CLIENT_PRELIMINARY_REVIEW = "UNDER_CLIENT_PRELIMINARY_REVIEW"
    CLIENT_NEEDS_PRELIMINARY_CORRECTION = "CLIENT_NEEDS_PRELIMINARY_CORRECTION"
    UNDER_CLIENT_PRELIMINARY_CORRECTION = "UNDER_CLIENT_PRELIMINARY_CORRECTION"
    PRELIMINARY_RESUBMISSION_BY_CLIENT = "PRELIMINARY_RESUBMISSION_BY_CLIENT"
    PRELIMINARY_APPROVED = "PRELIMINARY_APPROVED"
    UNDER_CLIENT_FINAL_REVIEW = "UNDER_CLIENT_FINAL_REVIEW"
    CLIENT_NEEDS_FINAL_CORRECTION = "CLIENT_NEEDS_FINAL_CORRECTION"
    UNDER_CLIENT_FINAL_CORRECTION = "UNDER_CLIENT_FINAL_CORRECTION"
    FINAL_RESUBMISSION_BY_CLIENT = "FINAL_RESUBMISSION_BY_CLIENT"
    RECEIVED_BY_FRONTDESK = "RECEIVED_BY_FRONTDESK"
    FRONTDESK_ON_HOLD = "FRONTDESK_ON_HOLD"
    FRONTDESK_NEEDS_CORRECTION = "FRONTDESK_NEEDS_CORRECTION"
    UNDER_PRELIMINARY_TESTING_REVIEW = "UNDER_PRELIMINARY_TESTING_REVIEW"
    PRELIMINARY_TESTING_ON_HOLD = "PRELIMINARY_TESTING_ON_HOLD"
    PRELIMINARY_TESTING_NEEDS_CORRECTION = "PRELIMINARY_TESTING_NEEDS_CORRECTION"
    UNDER_PRELIMINARY_RESUBMISSION_TESTING_REVIEW = "UNDER_PRELIMINARY_RESUBMISSION_TESTING_REVIEW"
    PRELIMINARY_RESUBMISSION_BY_TESTING = "PRELIMINARY_RESUBMISSION_BY_TESTING"
    UNDER_QA_PRELIMINARY_REVIEW = "UNDER_QA_PRELIMINARY_REVIEW"
    QA_NEEDS_PRELIMINARY_CORRECTION = "QA_NEEDS_PRELIMINARY_CORRECTION"
    UNDER_FINAL_TESTING_REVIEW = "UNDER_FINAL_TESTING_REVIEW"
    FINAL_TESTING_ON_HOLD = "FINAL_TESTING_ON_HOLD"
    FINAL_TESTING_NEEDS_CORRECTION = "FINAL_TESTING_NEEDS_CORRECTION"
    UNDER_FINAL_RESUBMISSION_TESTING_REVIEW = "UNDER_FINAL_RESUBMISSION_TESTING_REVIEW"
    FINAL_RESUBMISSION_BY_TESTING = "FINAL_RESUBMISSION_BY_TESTING"
    UNDER_QA_FINAL_REVIEW = "UNDER_QA_FINAL_REVIEW"
    QA_NEEDS_FINAL_CORRECTION = "QA_NEEDS_FINAL_CORRECTION"
    UNDER_FINAL_RESUBMISSION_QA_REVIEW = "UNDER_FINAL_RESUBMISSION_QA_REVIEW"
    UNDER_ADMIN_REVIEW = "UNDER_ADMIN_REVIEW"
    ADMIN_NEEDS_CORRECTION = "ADMIN_NEEDS_CORRECTION"
    ADMIN_REJECTED = "ADMIN_REJECTED"
    UNDER_FINAL_RESUBMISSION_ADMIN_REVIEW = "UNDER_FINAL_RESUBMISSION_ADMIN_REVIEW"
    FINAL_APPROVED = "FINAL_APPROVED"
    LOCKED = "LOCKED"


class ChemistryReportStatus(models.TextChoices):
    DRAFT = "DRAFT"
    SUBMITTED_BY_CLIENT = "SUBMITTED_BY_CLIENT"
    UNDER_CLIENT_REVIEW = "UNDER_CLIENT_REVIEW"
    CLIENT_NEEDS_CORRECTION = "CLIENT_NEEDS_CORRECTION"
    UNDER_CLIENT_CORRECTION = "UNDER_CLIENT_CORRECTION"
    RESUBMISSION_BY_CLIENT = "RESUBMISSION_BY_CLIENT"
    RECEIVED_BY_FRONTDESK = "RECEIVED_BY_FRONTDESK"
    FRONTDESK_ON_HOLD = "FRONTDESK_ON_HOLD"
    FRONTDESK_NEEDS_CORRECTION = "FRONTDESK_NEEDS_CORRECTION"
    UNDER_TESTING_REVIEW = "UNDER_TESTING_REVIEW"
    TESTING_ON_HOLD = "TESTING_ON_HOLD"
    TESTING_NEEDS_CORRECTION = "TESTING_NEEDS_CORRECTION"
    UNDER_RESUBMISSION_TESTING_REVIEW = "UNDER_RESUBMISSION_TESTING_REVIEW"
    RESUBMISSION_BY_TESTING = "RESUBMISSION_BY_TESTING"
    UNDER_QA_REVIEW = "UNDER_QA_REVIEW"
    QA_NEEDS_CORRECTION = "QA_NEEDS_CORRECTION"
    UNDER_ADMIN_REVIEW = "UNDER_ADMIN_REVIEW"
    ADMIN_NEEDS_CORRECTION = "ADMIN_NEEDS_CORRECTION"
    ADMIN_REJECTED = "ADMIN_REJECTED"
    UNDER_RESUBMISSION_ADMIN_REVIEW = "UNDER_RESUBMISSION_ADMIN_REVIEW"
    APPROVED = "APPROVED"
    LOCKED = "LOCKED"


# ===============================================================
# Report type registry
# ===============================================================

REPORT_TYPE_FAMILY: Dict[str, str] = {
    ReportType.MICRO_MIX: WorkflowFamily.MICRO,
    ReportType.MICRO_MIX_WATER: WorkflowFamily.MICRO,
    ReportType.STERILITY: WorkflowFamily.MICRO,
    ReportType.CHEMISTRY_MIX: WorkflowFamily.CHEMISTRY,
    ReportType.COA: WorkflowFamily.CHEMISTRY,
}

FAMILY_STATUSES: Dict[str, Type[models.TextChoices]] = {
    WorkflowFamily.MICRO: MicroReportStatus,
    WorkflowFamily.CHEMISTRY: ChemistryReportStatus,
}

# Department letters used in report numbers.
FAMILY_PREFIX: Dict[str, str] = {
    WorkflowFamily.MICRO: "OM",
    WorkflowFamily.CHEMISTRY: "BC",
}

# URL collection the UI serves each family under.
FAMILY_COLLECTION: Dict[str, str] = {
    WorkflowFamily.MICRO: "reports",
    WorkflowFamily.CHEMISTRY: "chemistry-reports",
}

REPORT_TYPE_SLUG: Dict[str, str] = {
    ReportType.MICRO_MIX: "micro-mix",
    ReportType.MICRO_MIX_WATER: "micro-mix-water",
    ReportType.STERILITY: "sterility",
    ReportType.CHEMISTRY_MIX: "chemistry-mix",
    ReportType.COA: "coa",
}

# Status that starts lab testing; the report number is assigned on entry.
TESTING_START_STATUS: Dict[str, str] = {
    WorkflowFamily.MICRO: MicroReportStatus.UNDER_PRELIMINARY_TESTING_REVIEW,
    WorkflowFamily.CHEMISTRY: ChemistryReportStatus.UNDER_TESTING_REVIEW,
}


def normalize_report_type(value) -> str:
    raw = str(value or "").strip().upper().replace("-", "_")
    if raw not in ReportType.values:
        raise ValueError(f"Unknown report type: {value}")
    return raw


def family_for(report_type) -> str:
    return str(REPORT_TYPE_FAMILY[normalize_report_type(report_type)])


def statuses_for(report_type) -> Type[models.TextChoices]:
    return FAMILY_STATUSES[family_for(report_type)]


def normalize_status(value) -> str:
    return str(value or "").strip().upper()


def humanize_status(value) -> str:
    return normalize_status(value).replace("_", " ")
