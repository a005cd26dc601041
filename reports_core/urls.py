# reports_core/urls.py

from django.urls import path

# -------------------------------------------------
# Reports and status workflow
# -------------------------------------------------
from .views_reports import (
    ReportDetailView,
    ReportHistoryView,
    ReportListCreateView,
    ReportStatusOverrideView,
    ReportStatusView,
    WorkflowDefinitionView,
)

# -------------------------------------------------
# Correction ledger
# -------------------------------------------------
from .views_corrections import (
    CorrectionResolveView,
    FieldCorrectionResolveView,
    ReportCorrectionsView,
)

# -------------------------------------------------
# Client notification settings (admin)
# -------------------------------------------------
from .views_client_notifications import (
    ClientNotificationDetailView,
    ClientNotificationEmailCreateView,
    ClientNotificationEmailDetailView,
    ClientNotificationListView,
)

COLLECTIONS = ("reports", "chemistry-reports")


def _collection_patterns(collection: str):
    kw = {"collection": collection}
    name = collection.replace("-", "_")
    return [
        path(f"{collection}/", ReportListCreateView.as_view(), kw, name=f"{name}-list"),
        path(f"{collection}/<int:pk>/", ReportDetailView.as_view(), kw, name=f"{name}-detail"),
        path(f"{collection}/<int:pk>/status/", ReportStatusView.as_view(), kw, name=f"{name}-status"),
        path(
            f"{collection}/<int:pk>/change-status/",
            ReportStatusOverrideView.as_view(),
            kw,
            name=f"{name}-change-status",
        ),
        path(f"{collection}/<int:pk>/history/", ReportHistoryView.as_view(), kw, name=f"{name}-history"),
        path(
            f"{collection}/<int:pk>/corrections/",
            ReportCorrectionsView.as_view(),
            kw,
            name=f"{name}-corrections",
        ),
        path(
            f"{collection}/<int:pk>/corrections/resolve-field/",
            FieldCorrectionResolveView.as_view(),
            kw,
            name=f"{name}-corrections-resolve-field",
        ),
        path(
            f"{collection}/<int:pk>/corrections/<uuid:correction_id>/",
            CorrectionResolveView.as_view(),
            kw,
            name=f"{name}-correction-resolve",
        ),
    ]


urlpatterns = [
    path(
        "workflows/<str:report_type>/",
        WorkflowDefinitionView.as_view(),
        name="workflow-definition",
    ),
    path(
        "client-notifications/",
        ClientNotificationListView.as_view(),
        name="client-notifications",
    ),
    path(
        "client-notifications/<str:client_code>/",
        ClientNotificationDetailView.as_view(),
        name="client-notification-detail",
    ),
    path(
        "client-notifications/<str:client_code>/emails/",
        ClientNotificationEmailCreateView.as_view(),
        name="client-notification-emails",
    ),
    path(
        "client-notifications/<str:client_code>/emails/<int:email_id>/",
        ClientNotificationEmailDetailView.as_view(),
        name="client-notification-email-detail",
    ),
]

for _collection in COLLECTIONS:
    urlpatterns += _collection_patterns(_collection)
