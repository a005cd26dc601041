# reports_core/views_corrections.py

from __future__ import annotations

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from reports_core.permissions import HasWorkflowRole, get_report_for
from reports_core.serializers import (
    CorrectionCreateSerializer,
    CorrectionItemSerializer,
    CorrectionResolveSerializer,
    FieldCorrectionResolveSerializer,
)
from reports_core.workflows.corrections import (
    list_corrections,
    request_corrections,
    resolve_correction,
    resolve_field_corrections,
)


class ReportCorrectionsView(APIView):
    """
    GET  /lims/<collection>/<id>/corrections/?status=OPEN
    POST /lims/<collection>/<id>/corrections/

    Body (POST):
    {
      "items": [{"fieldKey": "tbc_result", "message": "..."}],
      "targetStatus": "TESTING_NEEDS_CORRECTION",
      "expectedVersion": 3,
      "reason": "...",
      "eSignCredential": "..."
    }
    """

    permission_classes = [HasWorkflowRole]

    def get(self, request, collection: str, pk: int):
        report = get_report_for(request.user, collection, pk)
        items = list_corrections(report, request.query_params.get("status"))
        return Response(CorrectionItemSerializer(items, many=True).data)

    def post(self, request, collection: str, pk: int):
        report = get_report_for(request.user, collection, pk)
        ser = CorrectionCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        created = request_corrections(
            report=report,
            user=request.user,
            items=data["items"],
            target_status=data["targetStatus"],
            expected_version=data["expectedVersion"],
            reason=data.get("reason"),
            esign_credential=data.get("eSignCredential"),
        )
        report.refresh_from_db()

        return Response(
            {
                "items": CorrectionItemSerializer(created, many=True).data,
                "status": report.status,
                "version": report.version,
            },
            status=status.HTTP_201_CREATED,
        )


class CorrectionResolveView(APIView):
    """
    PATCH /lims/<collection>/<id>/corrections/<correction_id>/

    Body: {"resolutionNote": "...", "expectedVersion": 5}
    """

    permission_classes = [HasWorkflowRole]

    def patch(self, request, collection: str, pk: int, correction_id):
        report = get_report_for(request.user, collection, pk)
        ser = CorrectionResolveSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        item = resolve_correction(
            report=report,
            correction_id=correction_id,
            user=request.user,
            note=ser.validated_data.get("resolutionNote"),
            expected_version=ser.validated_data.get("expectedVersion"),
        )
        report.refresh_from_db()

        data = dict(CorrectionItemSerializer(item).data)
        data["version"] = report.version
        return Response(data)


class FieldCorrectionResolveView(APIView):
    """
    POST /lims/<collection>/<id>/corrections/resolve-field/

    Body: {"fieldKey": "tbc_result", "resolutionNote": "...", "expectedVersion": 5}
    """

    permission_classes = [HasWorkflowRole]

    def post(self, request, collection: str, pk: int):
        report = get_report_for(request.user, collection, pk)
        ser = FieldCorrectionResolveSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        resolved = resolve_field_corrections(
            report=report,
            field_key=ser.validated_data["fieldKey"],
            user=request.user,
            note=ser.validated_data.get("resolutionNote"),
            expected_version=ser.validated_data.get("expectedVersion"),
        )
        report.refresh_from_db()

        return Response(
            {
                "resolved": CorrectionItemSerializer(resolved, many=True).data,
                "version": report.version,
            }
        )
