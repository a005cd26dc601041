# reports_core/filters.py
import django_filters as df

from .models import Report


class ReportFilter(df.FilterSet):
    reportType = df.CharFilter(field_name="report_type", lookup_expr="iexact")
    status = df.CharFilter(field_name="status", lookup_expr="iexact")
    clientCode = df.CharFilter(field_name="client_code", lookup_expr="iexact")
    formNumber = df.CharFilter(field_name="form_number", lookup_expr="icontains")
    reportNumber = df.CharFilter(field_name="report_number", lookup_expr="icontains")
    created = df.DateFromToRangeFilter(field_name="created_at")

    class Meta:
        model = Report
        fields = ["reportType", "status", "clientCode", "formNumber", "reportNumber", "created"]
