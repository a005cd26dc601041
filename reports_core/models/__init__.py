# reports_core/models/__init__.py
from reports_core.models.core import (
    ClientSequence,
    LabReportSequence,
    Report,
    TimeStampedModel,
    UserProfile,
)
from reports_core.models.corrections import CorrectionItem
from reports_core.models.notifications import (
    DEFAULT_NOTIFY_MODE,
    ClientNotificationConfig,
    ClientNotificationEmail,
    NotifyMode,
)
from reports_core.models.workflow_event import AuditLog, ReportStatusHistory

__all__ = [
    "TimeStampedModel",
    "UserProfile",
    "Report",
    "ClientSequence",
    "LabReportSequence",
    "CorrectionItem",
    "NotifyMode",
    "DEFAULT_NOTIFY_MODE",
    "ClientNotificationConfig",
    "ClientNotificationEmail",
    "ReportStatusHistory",
    "AuditLog",
]
