# reports_core/migrations/0001_initial.py

import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


ROLE_CHOICES = [
    ("SYSTEMADMIN", "System admin"),
    ("ADMIN", "Admin"),
    ("FRONTDESK", "Front desk"),
    ("MICRO", "Microbiology"),
    ("CHEMISTRY", "Chemistry"),
    ("QA", "Quality assurance"),
    ("CLIENT", "Client"),
]

REPORT_TYPE_CHOICES = [
    ("MICRO_MIX", "Micro mix"),
    ("MICRO_MIX_WATER", "Micro mix (water)"),
    ("STERILITY", "Sterility"),
    ("CHEMISTRY_MIX", "Chemistry mix"),
    ("COA", "Certificate of analysis"),
]

NOTIFY_MODE_CHOICES = [
    ("USERS_ONLY", "Portal users only"),
    ("CUSTOM_ONLY", "Custom addresses only"),
    ("USERS_PLUS_CUSTOM", "Portal users and custom addresses"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ClientNotificationConfig",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("client_code", models.CharField(max_length=32, unique=True)),
                ("mode", models.CharField(choices=NOTIFY_MODE_CHOICES, default="USERS_PLUS_CUSTOM", max_length=32)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["client_code"],
            },
        ),
        migrations.CreateModel(
            name="ClientNotificationEmail",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("client_code", models.CharField(db_index=True, max_length=32)),
                ("email", models.CharField(max_length=254)),
                ("label", models.CharField(blank=True, max_length=128)),
                ("active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["client_code", "created_at", "id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("client_code", "email"),
                        name="uniq_client_notification_email",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ClientSequence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("client_code", models.CharField(max_length=32, unique=True)),
                ("last_number", models.PositiveIntegerField(default=0)),
            ],
        ),
        migrations.CreateModel(
            name="LabReportSequence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("department", models.CharField(max_length=4)),
                ("year", models.PositiveIntegerField()),
                ("last_number", models.PositiveIntegerField(default=0)),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(
                        fields=("department", "year"),
                        name="uniq_lab_report_sequence",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="UserProfile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("role", models.CharField(choices=ROLE_CHOICES, max_length=20)),
                (
                    "client_code",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text="Client account this user belongs to (CLIENT role only).",
                        max_length=32,
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="report_profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="Report",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("report_type", models.CharField(choices=REPORT_TYPE_CHOICES, max_length=32)),
                ("client_code", models.CharField(db_index=True, max_length=32)),
                ("status", models.CharField(db_index=True, default="DRAFT", max_length=64)),
                ("version", models.PositiveIntegerField(default=1)),
                ("form_number", models.CharField(blank=True, max_length=64, null=True, unique=True)),
                ("report_number", models.CharField(blank=True, max_length=64, null=True, unique=True)),
                ("prefix", models.CharField(blank=True, max_length=4)),
                ("fields", models.JSONField(blank=True, default=dict)),
                ("locked_at", models.DateTimeField(blank=True, null=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_reports",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "updated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="updated_reports",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["report_type", "status"], name="report_type_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CorrectionItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("field_key", models.CharField(max_length=128)),
                ("message", models.TextField()),
                (
                    "status",
                    models.CharField(
                        choices=[("OPEN", "Open"), ("RESOLVED", "Resolved")],
                        default="OPEN",
                        max_length=16,
                    ),
                ),
                ("old_value", models.JSONField(blank=True, null=True)),
                ("requested_by_role", models.CharField(choices=ROLE_CHOICES, max_length=20)),
                ("requested_at_status", models.CharField(blank=True, max_length=64)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("resolved_at", models.DateTimeField(blank=True, null=True)),
                ("resolved_by_role", models.CharField(blank=True, choices=ROLE_CHOICES, max_length=20)),
                ("resolution_note", models.TextField(blank=True)),
                (
                    "report",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="corrections",
                        to="reports_core.report",
                    ),
                ),
                (
                    "requested_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="requested_corrections",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "resolved_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="resolved_corrections",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "field_key"],
                "indexes": [
                    models.Index(fields=["report", "status"], name="correction_report_status_idx"),
                    models.Index(fields=["report", "field_key"], name="correction_report_field_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReportStatusHistory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("from_status", models.CharField(max_length=64)),
                ("to_status", models.CharField(max_length=64)),
                ("role", models.CharField(max_length=20)),
                ("reason", models.TextField(blank=True)),
                ("esigned", models.BooleanField(default=False)),
                ("forced", models.BooleanField(default=False)),
                ("version", models.PositiveIntegerField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "performed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="report_status_changes",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "report",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="status_history",
                        to="reports_core.report",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["report", "created_at"], name="status_history_report_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=255)),
                ("details", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "report",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="audit_logs",
                        to="reports_core.report",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
