# reports_core/tasks.py
from __future__ import annotations

import logging

from celery import shared_task

from reports_core.notifications.dispatch import notify_status_change

logger = logging.getLogger(__name__)


@shared_task(ignore_result=True)
def send_status_notification(report_id: int, from_status: str, to_status: str) -> bool:
    """
    Best-effort delivery of one status-change notification.
    Failures are logged and swallowed; they are never retried.
    """
    try:
        payload = notify_status_change(report_id, from_status, to_status)
    except Exception:
        logger.exception(
            "Status notification failed for report %s (%s -> %s)",
            report_id,
            from_status,
            to_status,
        )
        return False
    return payload is not None
