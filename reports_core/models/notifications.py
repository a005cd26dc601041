# reports_core/models/notifications.py
from django.db import models


class NotifyMode(models.TextChoices):
    USERS_ONLY = "USERS_ONLY", "Portal users only"
    CUSTOM_ONLY = "CUSTOM_ONLY", "Custom addresses only"
    USERS_PLUS_CUSTOM = "USERS_PLUS_CUSTOM", "Portal users and custom addresses"


DEFAULT_NOTIFY_MODE = NotifyMode.USERS_PLUS_CUSTOM


class ClientNotificationConfig(models.Model):
    client_code = models.CharField(max_length=32, unique=True)
    mode = models.CharField(
        max_length=32,
        choices=NotifyMode.choices,
        default=DEFAULT_NOTIFY_MODE,
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["client_code"]

    def __str__(self):
        return f"{self.client_code}: {self.mode}"


class ClientNotificationEmail(models.Model):
    client_code = models.CharField(max_length=32, db_index=True)
    email = models.CharField(max_length=254)
    label = models.CharField(max_length=128, blank=True)
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["client_code", "created_at", "id"]
        constraints = [
            models.UniqueConstraint(fields=["client_code", "email"], name="uniq_client_notification_email"),
        ]

    def __str__(self):
        state = "" if self.active else " (inactive)"
        return f"{self.client_code}: {self.email}{state}"
