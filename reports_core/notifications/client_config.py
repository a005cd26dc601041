# reports_core/notifications/client_config.py
"""
Admin-side management of per-client notification settings.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from django.db import transaction
from rest_framework.exceptions import NotFound, ValidationError

from reports_core.models import (
    DEFAULT_NOTIFY_MODE,
    ClientNotificationConfig,
    ClientNotificationEmail,
    ClientSequence,
    NotifyMode,
    UserProfile,
)
from reports_core.notifications.recipients import normalize_client_code, normalize_email

logger = logging.getLogger(__name__)


def _require_code(client_code) -> str:
    code = normalize_client_code(client_code)
    if not code:
        raise ValidationError({"clientCode": "Client code is required."})
    return code


def get_config(client_code) -> ClientNotificationConfig:
    """
    Config row for the client, created with the default mode on first use.
    """
    code = _require_code(client_code)
    config, _ = ClientNotificationConfig.objects.get_or_create(
        client_code=code,
        defaults={"mode": DEFAULT_NOTIFY_MODE},
    )
    return config


def list_emails(client_code) -> List[ClientNotificationEmail]:
    code = _require_code(client_code)
    return list(ClientNotificationEmail.objects.filter(client_code=code))


def set_mode(client_code, mode) -> ClientNotificationConfig:
    value = str(mode or "").strip().upper()
    if value not in NotifyMode.values:
        raise ValidationError({"mode": f"Invalid mode. Use one of: {', '.join(NotifyMode.values)}."})

    config = get_config(client_code)
    if config.mode != value:
        config.mode = value
        config.save(update_fields=["mode", "updated_at"])
        logger.info("Client %s notify mode set to %s", config.client_code, value)
    return config


def add_email(client_code, email, label: Optional[str] = None) -> ClientNotificationEmail:
    """
    Add (or reactivate) a custom address for the client.
    """
    code = _require_code(client_code)
    normalized = normalize_email(email)
    if not normalized:
        raise ValidationError({"email": "Enter a valid email address."})

    with transaction.atomic():
        get_config(code)
        row, created = ClientNotificationEmail.objects.get_or_create(
            client_code=code,
            email=normalized,
            defaults={"label": (label or "").strip(), "active": True},
        )
        if not created:
            row.active = True
            if label is not None:
                row.label = label.strip()
            row.save(update_fields=["active", "label", "updated_at"])

    return row


def _get_email(client_code, email_id) -> ClientNotificationEmail:
    code = _require_code(client_code)
    row = ClientNotificationEmail.objects.filter(client_code=code, pk=email_id).first()
    if row is None:
        raise NotFound("Notification email not found for this client.")
    return row


def toggle_email(client_code, email_id, active: bool) -> ClientNotificationEmail:
    row = _get_email(client_code, email_id)
    if row.active != bool(active):
        row.active = bool(active)
        row.save(update_fields=["active", "updated_at"])
    return row


def remove_email(client_code, email_id) -> None:
    row = _get_email(client_code, email_id)
    row.delete()


def known_client_codes() -> List[str]:
    codes = set(ClientSequence.objects.values_list("client_code", flat=True))
    codes |= set(ClientNotificationConfig.objects.values_list("client_code", flat=True))
    codes |= {
        normalize_client_code(c)
        for c in UserProfile.objects.exclude(client_code="").values_list("client_code", flat=True)
    }
    return sorted(c for c in codes if c)


def list_configs() -> List[Dict[str, Any]]:
    """
    Every known client with its mode and custom addresses; clients without a
    config row report the default mode.
    """
    modes = dict(ClientNotificationConfig.objects.values_list("client_code", "mode"))
    emails: Dict[str, List[ClientNotificationEmail]] = {}
    for row in ClientNotificationEmail.objects.all():
        emails.setdefault(row.client_code, []).append(row)

    return [
        {
            "client_code": code,
            "mode": modes.get(code, str(DEFAULT_NOTIFY_MODE)),
            "emails": emails.get(code, []),
        }
        for code in known_client_codes()
    ]
