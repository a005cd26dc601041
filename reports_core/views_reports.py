# reports_core/views_reports.py

from __future__ import annotations

from typing import Any, Dict

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import generics, status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from reports_core.filters import ReportFilter
from reports_core.models import Report
from reports_core.permissions import (
    HasWorkflowRole,
    get_report_for,
    report_types_for_collection,
    reports_for,
)
from reports_core.serializers import (
    FieldSaveSerializer,
    ReportCreateSerializer,
    ReportSerializer,
    StatusChangeSerializer,
    StatusHistorySerializer,
    StatusOverrideSerializer,
)
from reports_core.services.report_service import create_draft, save_fields
from reports_core.workflows.corrections import open_fields
from reports_core.workflows.executor import execute_transition, force_status
from reports_core.workflows.field_permissions import editable_fields
from reports_core.workflows.graphs import allowed_transitions, workflow_definition
from reports_core.workflows.roles import role_for_user
from reports_core.workflows.statuses import normalize_report_type


# =============================================================
# Helpers
# =============================================================

def _detail_payload(report: Report, user) -> Dict[str, Any]:
    """
    Report body plus what the caller may do with it right now.
    """
    role = role_for_user(user)
    data = dict(ReportSerializer(report).data)
    data["allowedTransitions"] = allowed_transitions(report.report_type, report.status, role)
    data["editableFields"] = editable_fields(role, report.report_type, report.status) if role else []
    data["openFields"] = open_fields(report)
    return data


def _status_payload(report: Report) -> Dict[str, Any]:
    return {
        "status": report.status,
        "reportNumber": report.report_number,
        "version": report.version,
    }


# =============================================================
# Collection
# =============================================================

class ReportListCreateView(generics.ListCreateAPIView):
    """
    GET  /lims/<collection>/
    POST /lims/<collection>/

    Body (POST):
    {
      "reportType": "MICRO_MIX",
      "clientCode": "ACME",        # ignored for clients (own code)
      "fields": {...}
    }
    """

    permission_classes = [HasWorkflowRole]
    serializer_class = ReportSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = ReportFilter

    def get_queryset(self):
        return reports_for(self.request.user, self.kwargs["collection"])

    def create(self, request, *args, **kwargs):
        collection = self.kwargs["collection"]
        ser = ReportCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        report_type = normalize_report_type(ser.validated_data["reportType"])
        if report_type not in report_types_for_collection(collection):
            raise ValidationError({"reportType": f"{report_type} reports are not served from /{collection}/."})

        report = create_draft(
            user=request.user,
            report_type=report_type,
            client_code=ser.validated_data.get("clientCode"),
            fields=ser.validated_data.get("fields"),
        )
        return Response(_detail_payload(report, request.user), status=status.HTTP_201_CREATED)


# =============================================================
# Single report
# =============================================================

class ReportDetailView(APIView):
    """
    GET   /lims/<collection>/<id>/
    PATCH /lims/<collection>/<id>/

    Body (PATCH):
    {
      "fields": {"tbc_result": "<10"},
      "expectedVersion": 3,
      "reason": "optional; required for critical fields"
    }
    """

    permission_classes = [HasWorkflowRole]

    def get(self, request, collection: str, pk: int):
        report = get_report_for(request.user, collection, pk)
        return Response(_detail_payload(report, request.user))

    def patch(self, request, collection: str, pk: int):
        report = get_report_for(request.user, collection, pk)
        ser = FieldSaveSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        save_fields(
            report=report,
            user=request.user,
            fields=ser.validated_data["fields"],
            expected_version=ser.validated_data["expectedVersion"],
            reason=ser.validated_data.get("reason"),
        )
        report.refresh_from_db()
        return Response(_detail_payload(report, request.user))


class ReportStatusView(APIView):
    """
    PATCH /lims/<collection>/<id>/status/

    Body:
    {
      "status": "UNDER_CLIENT_REVIEW",
      "expectedVersion": 4,
      "reason": "...",
      "eSignCredential": "..."      # when the target is e-sign gated
    }
    """

    permission_classes = [HasWorkflowRole]

    def patch(self, request, collection: str, pk: int):
        report = get_report_for(request.user, collection, pk)
        ser = StatusChangeSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        execute_transition(
            report=report,
            user=request.user,
            new_status=ser.validated_data["status"],
            expected_version=ser.validated_data["expectedVersion"],
            reason=ser.validated_data.get("reason"),
            esign_credential=ser.validated_data.get("eSignCredential"),
        )
        report.refresh_from_db()
        return Response(_status_payload(report))


class ReportStatusOverrideView(APIView):
    """
    POST /lims/<collection>/<id>/change-status/

    Administrative override; same body as the status endpoint but the
    reason is mandatory.
    """

    permission_classes = [HasWorkflowRole]

    def post(self, request, collection: str, pk: int):
        report = get_report_for(request.user, collection, pk)
        ser = StatusOverrideSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        force_status(
            report=report,
            user=request.user,
            new_status=ser.validated_data["status"],
            reason=ser.validated_data["reason"],
            expected_version=ser.validated_data["expectedVersion"],
            esign_credential=ser.validated_data.get("eSignCredential"),
        )
        report.refresh_from_db()
        return Response(_status_payload(report))


class ReportHistoryView(APIView):
    """
    GET /lims/<collection>/<id>/history/
    """

    permission_classes = [HasWorkflowRole]

    def get(self, request, collection: str, pk: int):
        report = get_report_for(request.user, collection, pk)
        rows = report.status_history.select_related("performed_by").order_by("created_at", "id")
        return Response(
            {
                "reportId": report.pk,
                "status": report.status,
                "version": report.version,
                "history": StatusHistorySerializer(rows, many=True).data,
            }
        )


# =============================================================
# Workflow definitions (static)
# =============================================================

class WorkflowDefinitionView(APIView):
    """
    GET /lims/workflows/<report_type>/
    """

    permission_classes = [HasWorkflowRole]

    def get(self, request, report_type: str):
        try:
            definition = workflow_definition(report_type)
        except ValueError as exc:
            raise ValidationError({"reportType": str(exc)})
        return Response(definition)
