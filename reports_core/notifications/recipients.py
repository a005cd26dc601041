# reports_core/notifications/recipients.py
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from django.contrib.auth import get_user_model

from reports_core.models import (
    DEFAULT_NOTIFY_MODE,
    ClientNotificationConfig,
    ClientNotificationEmail,
    NotifyMode,
)
from reports_core.workflows.roles import Role

logger = logging.getLogger(__name__)


def normalize_client_code(value) -> str:
    return str(value or "").strip().upper()


def normalize_email(value) -> Optional[str]:
    email = str(value or "").strip().lower()
    if not email or "@" not in email:
        return None
    return email


def dedupe_emails(emails: Iterable) -> List[str]:
    """
    Normalize and drop duplicates, keeping first-seen order.
    """
    seen = set()
    out: List[str] = []
    for raw in emails:
        email = normalize_email(raw)
        if email and email not in seen:
            seen.add(email)
            out.append(email)
    return out


def get_notify_mode(client_code) -> str:
    code = normalize_client_code(client_code)
    mode = (
        ClientNotificationConfig.objects.filter(client_code=code)
        .values_list("mode", flat=True)
        .first()
    )
    return mode or str(DEFAULT_NOTIFY_MODE)


def portal_user_emails(client_code) -> List[str]:
    """
    Active CLIENT-role portal users bound to the client code.
    """
    User = get_user_model()
    code = normalize_client_code(client_code)
    qs = (
        User.objects.filter(
            is_active=True,
            report_profile__role=Role.CLIENT,
            report_profile__client_code__iexact=code,
        )
        .exclude(email="")
        .order_by("id")
        .values_list("email", flat=True)
    )
    return dedupe_emails(qs)


def custom_emails(client_code) -> List[str]:
    code = normalize_client_code(client_code)
    qs = (
        ClientNotificationEmail.objects.filter(client_code=code, active=True)
        .order_by("created_at", "id")
        .values_list("email", flat=True)
    )
    return dedupe_emails(qs)


def resolve_client_recipients(client_code) -> List[str]:
    """
    Client-side notification addresses for ``client_code``.

    Mode decides the sources (portal users, custom list, or both); the
    result is normalized and de-duplicated case-insensitively. An empty list
    is a valid answer and never raises.
    """
    code = normalize_client_code(client_code)
    if not code:
        logger.warning("No client code given; no client recipients resolved")
        return []

    mode = get_notify_mode(code)

    candidates: List[str] = []
    if mode != NotifyMode.CUSTOM_ONLY:
        candidates.extend(portal_user_emails(code))
    if mode != NotifyMode.USERS_ONLY:
        candidates.extend(custom_emails(code))

    recipients = dedupe_emails(candidates)
    if not recipients:
        logger.warning(
            "No notification recipients for client %s (mode=%s)",
            code,
            mode,
        )
    return recipients


__all__ = [
    "normalize_client_code",
    "normalize_email",
    "dedupe_emails",
    "get_notify_mode",
    "portal_user_emails",
    "custom_emails",
    "resolve_client_recipients",
]
