# reports_core/notifications/dispatch.py
from __future__ import annotations

import logging
from typing import Optional

from reports_core.models import Report
from reports_core.notifications.mailer import (
    NotificationPayload,
    build_status_payload,
    send_notification,
)
from reports_core.notifications.routing import recipients_for, route

logger = logging.getLogger(__name__)


def notify_status_change(report_id, from_status: str, to_status: str) -> Optional[NotificationPayload]:
    """
    Route one committed status change and send it.

    Returns the payload that was sent, or None when the change is silent,
    the report is gone, or nobody is configured to receive it.
    """
    report = Report.objects.filter(pk=report_id).first()
    if report is None:
        logger.warning("Report %s vanished before its notification was sent", report_id)
        return None

    decision = route(report.report_type, from_status, to_status)
    if decision is None:
        logger.debug(
            "No notification for report %s %s -> %s",
            report.pk,
            from_status,
            to_status,
        )
        return None

    recipients = recipients_for(decision, report.client_code)
    if not recipients:
        logger.warning(
            "Skipping notification %s for report %s: no recipients",
            decision.tag,
            report.pk,
        )
        return None

    payload = build_status_payload(report, decision, recipients)
    send_notification(payload)
    return payload
