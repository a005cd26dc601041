# reports_core/serializers.py
from __future__ import annotations

from rest_framework import serializers

from reports_core.models import (
    ClientNotificationEmail,
    CorrectionItem,
    NotifyMode,
    Report,
    ReportStatusHistory,
)
from reports_core.workflows.statuses import ReportType


def _username(user) -> str | None:
    return user.get_username() if user else None


# ===============================================================
# Reports
# ===============================================================

class ReportSerializer(serializers.ModelSerializer):
    reportType = serializers.CharField(source="report_type", read_only=True)
    clientCode = serializers.CharField(source="client_code", read_only=True)
    formNumber = serializers.CharField(source="form_number", read_only=True)
    reportNumber = serializers.CharField(source="report_number", read_only=True)
    lockedAt = serializers.DateTimeField(source="locked_at", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Report
        fields = [
            "id",
            "reportType",
            "clientCode",
            "status",
            "version",
            "formNumber",
            "reportNumber",
            "prefix",
            "fields",
            "lockedAt",
            "createdAt",
            "updatedAt",
        ]
        read_only_fields = fields


class ReportCreateSerializer(serializers.Serializer):
    reportType = serializers.ChoiceField(choices=ReportType.choices)
    clientCode = serializers.CharField(required=False, allow_blank=True)
    fields = serializers.DictField(required=False, default=dict)


class FieldSaveSerializer(serializers.Serializer):
    fields = serializers.DictField()
    expectedVersion = serializers.IntegerField(min_value=1)
    reason = serializers.CharField(required=False, allow_blank=True, default="")


# ===============================================================
# Status
# ===============================================================

class StatusChangeSerializer(serializers.Serializer):
    status = serializers.CharField()
    reason = serializers.CharField(required=False, allow_blank=True, default="")
    expectedVersion = serializers.IntegerField(min_value=1)
    eSignCredential = serializers.CharField(
        required=False,
        allow_blank=True,
        write_only=True,
        trim_whitespace=False,
        default="",
    )

    def validate_status(self, value: str) -> str:
        return value.strip().upper()


class StatusOverrideSerializer(StatusChangeSerializer):
    reason = serializers.CharField()


class StatusHistorySerializer(serializers.ModelSerializer):
    performedBy = serializers.SerializerMethodField()
    fromStatus = serializers.CharField(source="from_status")
    toStatus = serializers.CharField(source="to_status")
    createdAt = serializers.DateTimeField(source="created_at")

    class Meta:
        model = ReportStatusHistory
        fields = [
            "id",
            "fromStatus",
            "toStatus",
            "role",
            "reason",
            "esigned",
            "forced",
            "version",
            "performedBy",
            "createdAt",
        ]

    def get_performedBy(self, obj):
        return _username(obj.performed_by)


# ===============================================================
# Corrections
# ===============================================================

class CorrectionInputSerializer(serializers.Serializer):
    fieldKey = serializers.CharField()
    message = serializers.CharField()


class CorrectionCreateSerializer(serializers.Serializer):
    items = CorrectionInputSerializer(many=True, allow_empty=True)
    targetStatus = serializers.CharField()
    reason = serializers.CharField(required=False, allow_blank=True, default="")
    expectedVersion = serializers.IntegerField(min_value=1)
    eSignCredential = serializers.CharField(
        required=False,
        allow_blank=True,
        write_only=True,
        trim_whitespace=False,
        default="",
    )


class CorrectionResolveSerializer(serializers.Serializer):
    resolutionNote = serializers.CharField(required=False, allow_blank=True, default="")
    expectedVersion = serializers.IntegerField(min_value=1, required=False, allow_null=True, default=None)


class FieldCorrectionResolveSerializer(CorrectionResolveSerializer):
    fieldKey = serializers.CharField()


class CorrectionItemSerializer(serializers.ModelSerializer):
    fieldKey = serializers.CharField(source="field_key")
    oldValue = serializers.JSONField(source="old_value")
    requestedByRole = serializers.CharField(source="requested_by_role")
    requestedBy = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source="created_at")
    resolvedAt = serializers.DateTimeField(source="resolved_at")
    resolvedByRole = serializers.CharField(source="resolved_by_role")
    resolvedBy = serializers.SerializerMethodField()
    resolutionNote = serializers.CharField(source="resolution_note")

    class Meta:
        model = CorrectionItem
        fields = [
            "id",
            "fieldKey",
            "message",
            "status",
            "oldValue",
            "requestedByRole",
            "requestedBy",
            "createdAt",
            "resolvedAt",
            "resolvedByRole",
            "resolvedBy",
            "resolutionNote",
        ]
        read_only_fields = fields

    def get_requestedBy(self, obj):
        return _username(obj.requested_by)

    def get_resolvedBy(self, obj):
        return _username(obj.resolved_by)


# ===============================================================
# Client notification settings
# ===============================================================

class ClientNotificationEmailSerializer(serializers.ModelSerializer):
    clientCode = serializers.CharField(source="client_code", read_only=True)

    class Meta:
        model = ClientNotificationEmail
        fields = ["id", "clientCode", "email", "label", "active"]
        read_only_fields = fields


class ClientNotificationConfigSerializer(serializers.Serializer):
    clientCode = serializers.CharField(source="client_code")
    mode = serializers.CharField()
    emails = ClientNotificationEmailSerializer(many=True)


class NotifyModeSerializer(serializers.Serializer):
    mode = serializers.ChoiceField(choices=NotifyMode.choices)


class NotificationEmailCreateSerializer(serializers.Serializer):
    email = serializers.CharField()
    label = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)


class NotificationEmailToggleSerializer(serializers.Serializer):
    active = serializers.BooleanField()
