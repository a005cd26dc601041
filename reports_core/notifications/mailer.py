# reports_core/notifications/mailer.py
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.core.mail import EmailMessage

from reports_core.workflows.statuses import humanize_status

logger = logging.getLogger(__name__)

BRAND = "Omega LIMS"

METADATA_HEADERS = {
    "reportId": "X-Report-Id",
    "formNumber": "X-Report-Form-Number",
    "status": "X-Report-Status",
}


@dataclass
class NotificationPayload:
    to: List[str]
    subject: str
    title: str
    lines: List[str]
    tag: str
    action_url: Optional[str] = None
    action_label: str = "Open report"
    metadata: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ===============================================================
# Payload building
# ===============================================================

def report_action_url(report) -> str:
    base = str(getattr(settings, "APP_URL", "") or "").rstrip("/")
    return f"{base}/{report.collection}/{report.slug}/{report.pk}"


def build_status_payload(report, decision, recipients: List[str]) -> NotificationPayload:
    form_number = report.form_number or f"#{report.pk}"
    client = (report.fields or {}).get("client") or report.client_code

    lines = [
        f"Form #: {form_number}",
        f"Client: {client} ({report.client_code})",
        f"Form Type: {report.get_report_type_display()}",
        f"Status: {humanize_status(decision.to_status)}",
    ]
    if report.report_number:
        lines.insert(1, f"Report #: {report.report_number}")

    return NotificationPayload(
        to=list(recipients),
        subject=f"{BRAND} - {decision.title} ({form_number})",
        title=decision.title,
        lines=lines,
        tag=decision.tag,
        action_url=report_action_url(report),
        metadata={
            "reportId": str(report.pk),
            "formNumber": report.form_number or "",
            "formType": report.report_type,
            "status": decision.to_status,
            "fromStatus": decision.from_status,
            "clientCode": report.client_code,
            "direction": decision.direction,
        },
    )


def render_text(payload: NotificationPayload) -> str:
    parts = [payload.title, ""]
    parts.extend(payload.lines)
    if payload.action_url:
        parts.extend(["", f"{payload.action_label}: {payload.action_url}"])
    parts.extend(["", f"- {BRAND}"])
    return "\n".join(parts)


# ===============================================================
# Transport
# ===============================================================

def send_notification(payload: NotificationPayload) -> int:
    """
    Hand the payload to Django's configured email backend.
    Returns the number of messages sent (0 when there is nobody to send to).
    """
    if not payload.to:
        logger.warning("Notification %s has no recipients; not sent", payload.tag)
        return 0

    headers = {"X-Notification-Tag": payload.tag}
    for key, header in METADATA_HEADERS.items():
        value = payload.metadata.get(key)
        if value:
            headers[header] = str(value)

    reply_to = getattr(settings, "MAIL_REPLY_TO", "") or None

    message = EmailMessage(
        subject=payload.subject,
        body=render_text(payload),
        from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
        to=payload.to,
        reply_to=[reply_to] if reply_to else None,
        headers=headers,
    )
    sent = message.send(fail_silently=False)

    logger.info(
        "Sent notification %s to %d recipient(s)",
        payload.tag,
        len(payload.to),
    )
    return sent


__all__ = [
    "NotificationPayload",
    "report_action_url",
    "build_status_payload",
    "render_text",
    "send_notification",
]
