# reports_core/notifications/routing.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from django.conf import settings
from django.db import models

from reports_core.notifications.recipients import dedupe_emails, resolve_client_recipients
from reports_core.workflows.statuses import (
    ChemistryReportStatus as C,
    MicroReportStatus as M,
    ReportType,
    WorkflowFamily,
    family_for,
    normalize_report_type,
    normalize_status,
)

logger = logging.getLogger(__name__)


class Direction(models.TextChoices):
    CLIENT_TO_LAB = "CLIENT_TO_LAB", "Client to lab"
    LAB_TO_CLIENT = "LAB_TO_CLIENT", "Lab to client"


@dataclass(frozen=True)
class RouteRule:
    direction: str
    title: str
    tag: str


@dataclass(frozen=True)
class RoutingDecision:
    report_type: str
    from_status: str
    to_status: str
    direction: str
    title: str
    tag: str

    @property
    def to_lab(self) -> bool:
        return self.direction == Direction.CLIENT_TO_LAB


def _lab(title: str, tag: str) -> RouteRule:
    return RouteRule(Direction.CLIENT_TO_LAB, title, tag)


def _client(title: str, tag: str) -> RouteRule:
    return RouteRule(Direction.LAB_TO_CLIENT, title, tag)


# ===============================================================
# Routing table: (family, new status) -> rule
# Statuses not listed here send nothing.
# ===============================================================

ROUTING_TABLE: Mapping[str, Mapping[str, RouteRule]] = {
    WorkflowFamily.MICRO: {
        M.SUBMITTED_BY_CLIENT: _lab("New Submission from Client", "client-to-lab-submitted"),
        M.CLIENT_NEEDS_PRELIMINARY_CORRECTION: _lab(
            "Client Raised Preliminary Correction",
            "client-to-lab-prelim-correction",
        ),
        M.CLIENT_NEEDS_FINAL_CORRECTION: _lab(
            "Client Raised Final Correction",
            "client-to-lab-final-correction",
        ),
        M.PRELIMINARY_RESUBMISSION_BY_CLIENT: _lab(
            "Preliminary Resubmission by Client",
            "client-to-lab-prelim-resubmission",
        ),
        M.FINAL_RESUBMISSION_BY_CLIENT: _lab(
            "Final Resubmission by Client",
            "client-to-lab-final-resubmission",
        ),
        M.FINAL_APPROVED: _lab("Final Approved (Client Action)", "client-to-lab-final-approved"),
        M.UNDER_CLIENT_PRELIMINARY_REVIEW: _client(
            "Client Preliminary Review Required",
            "lab-to-client-under-client-preliminary-review",
        ),
        M.UNDER_CLIENT_FINAL_REVIEW: _client(
            "Client Final Review Required",
            "lab-to-client-under-client-final-review",
        ),
        M.PRELIMINARY_TESTING_NEEDS_CORRECTION: _client(
            "Preliminary Testing Needs Correction",
            "lab-to-client-prelim-testing-needs-correction",
        ),
        M.PRELIMINARY_RESUBMISSION_BY_TESTING: _client(
            "Preliminary Resubmission Completed by Lab",
            "lab-to-client-prelim-resubmission-by-testing",
        ),
        M.FINAL_TESTING_NEEDS_CORRECTION: _client(
            "Final Testing Needs Correction",
            "lab-to-client-final-testing-needs-correction",
        ),
        M.FINAL_RESUBMISSION_BY_TESTING: _client(
            "Final Resubmission Completed by Lab",
            "lab-to-client-final-resubmission-by-testing",
        ),
    },
    WorkflowFamily.CHEMISTRY: {
        C.SUBMITTED_BY_CLIENT: _lab("New Chemistry Submission from Client", "chem-client-to-lab-submitted"),
        C.CLIENT_NEEDS_CORRECTION: _client(
            "Chemistry: Corrections Required",
            "chem-lab-to-client-needs-correction",
        ),
        C.RESUBMISSION_BY_CLIENT: _lab(
            "Chemistry: Resubmitted by Client",
            "chem-client-to-lab-resubmission-by-client",
        ),
        C.UNDER_CLIENT_REVIEW: _client(
            "Chemistry: Under Client Review",
            "chem-lab-to-client-under-client-review",
        ),
        C.TESTING_NEEDS_CORRECTION: _client(
            "Chemistry: Testing Needs Correction",
            "chem-lab-to-client-testing-needs-correction",
        ),
        C.RESUBMISSION_BY_TESTING: _client(
            "Chemistry: Resubmitted by Lab",
            "chem-lab-to-client-resubmission-by-testing",
        ),
        C.APPROVED: _client("Chemistry Report Approved", "chem-lab-to-client-approved"),
    },
}


# ===============================================================
# Decisions
# ===============================================================

def route(report_type, from_status, to_status) -> Optional[RoutingDecision]:
    """
    Pure lookup. None means the transition is intentionally silent.
    """
    tgt = normalize_status(to_status)
    rule = ROUTING_TABLE[family_for(report_type)].get(tgt)
    if rule is None:
        return None

    return RoutingDecision(
        report_type=str(report_type),
        from_status=normalize_status(from_status),
        to_status=tgt,
        direction=str(rule.direction),
        title=rule.title,
        tag=rule.tag,
    )


def _split(value) -> List[str]:
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [part for part in str(value).split(",")]


# Report types missing here (STERILITY) go straight to LAB_NOTIFY_TO.
DEPARTMENT_MAILBOX_SETTINGS: Dict[str, str] = {
    ReportType.MICRO_MIX: "MICRO_NOTIFY_TO",
    ReportType.MICRO_MIX_WATER: "MICRO_NOTIFY_TO",
    ReportType.CHEMISTRY_MIX: "CHEMISTRY_NOTIFY_TO",
    ReportType.COA: "CHEMISTRY_NOTIFY_TO",
}


def department_mailbox(report_type) -> List[str]:
    """
    Department address for lab-bound notices, falling back to the lab-wide
    LAB_NOTIFY_TO when the department one is unset.
    """
    setting_name = DEPARTMENT_MAILBOX_SETTINGS.get(normalize_report_type(report_type))
    if setting_name:
        emails = dedupe_emails(_split(getattr(settings, setting_name, "")))
        if emails:
            return emails
    return dedupe_emails(_split(getattr(settings, "LAB_NOTIFY_TO", "")))


def recipients_for(decision: RoutingDecision, client_code: Optional[str]) -> List[str]:
    if decision.to_lab:
        recipients = department_mailbox(decision.report_type)
        if not recipients:
            logger.warning(
                "No department mailbox configured for %s (%s)",
                decision.report_type,
                decision.tag,
            )
        return recipients

    if not client_code:
        logger.warning(
            "Report has no client code; skipping client notification %s",
            decision.tag,
        )
        return []
    return resolve_client_recipients(client_code)


__all__ = [
    "Direction",
    "RouteRule",
    "RoutingDecision",
    "ROUTING_TABLE",
    "route",
    "department_mailbox",
    "recipients_for",
]
