# reports_core/views_client_notifications.py

from __future__ import annotations

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from reports_core.notifications import client_config
from reports_core.permissions import IsReportAdmin
from reports_core.serializers import (
    ClientNotificationConfigSerializer,
    ClientNotificationEmailSerializer,
    NotificationEmailCreateSerializer,
    NotificationEmailToggleSerializer,
    NotifyModeSerializer,
)


def _config_payload(client_code: str):
    config = client_config.get_config(client_code)
    return ClientNotificationConfigSerializer(
        {
            "client_code": config.client_code,
            "mode": config.mode,
            "emails": client_config.list_emails(config.client_code),
        }
    ).data


class ClientNotificationListView(APIView):
    """
    GET /lims/client-notifications/
    """

    permission_classes = [IsReportAdmin]

    def get(self, request):
        rows = client_config.list_configs()
        return Response(ClientNotificationConfigSerializer(rows, many=True).data)


class ClientNotificationDetailView(APIView):
    """
    GET   /lims/client-notifications/<code>/
    PATCH /lims/client-notifications/<code>/   {"mode": "USERS_ONLY"}
    """

    permission_classes = [IsReportAdmin]

    def get(self, request, client_code: str):
        return Response(_config_payload(client_code))

    def patch(self, request, client_code: str):
        ser = NotifyModeSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        config = client_config.set_mode(client_code, ser.validated_data["mode"])
        return Response(_config_payload(config.client_code))


class ClientNotificationEmailCreateView(APIView):
    """
    POST /lims/client-notifications/<code>/emails/   {"email": "...", "label": "..."}
    """

    permission_classes = [IsReportAdmin]

    def post(self, request, client_code: str):
        ser = NotificationEmailCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        row = client_config.add_email(
            client_code,
            ser.validated_data["email"],
            label=ser.validated_data.get("label"),
        )
        return Response(ClientNotificationEmailSerializer(row).data, status=status.HTTP_201_CREATED)


class ClientNotificationEmailDetailView(APIView):
    """
    PATCH  /lims/client-notifications/<code>/emails/<id>/   {"active": false}
    DELETE /lims/client-notifications/<code>/emails/<id>/
    """

    permission_classes = [IsReportAdmin]

    def patch(self, request, client_code: str, email_id: int):
        ser = NotificationEmailToggleSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        row = client_config.toggle_email(client_code, email_id, ser.validated_data["active"])
        return Response(ClientNotificationEmailSerializer(row).data)

    def delete(self, request, client_code: str, email_id: int):
        client_config.remove_email(client_code, email_id)
        return Response(status=status.HTTP_204_NO_CONTENT)
