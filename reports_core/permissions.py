# reports_core/permissions.py
from __future__ import annotations

from typing import Optional

from django.db.models import QuerySet
from django.http import Http404
from django.shortcuts import get_object_or_404
from rest_framework.permissions import BasePermission

from reports_core.models import Report
from reports_core.workflows.roles import Role, client_code_for_user, role_for_user
from reports_core.workflows.statuses import (
    FAMILY_COLLECTION,
    REPORT_TYPE_FAMILY,
)


# ------------------------------------------------------------------
# Role definitions
# ------------------------------------------------------------------
ADMIN_ROLES = {Role.ADMIN, Role.SYSTEMADMIN}


# ------------------------------------------------------------------
# Collections
# ------------------------------------------------------------------
COLLECTION_FAMILY = {collection: family for family, collection in FAMILY_COLLECTION.items()}


def report_types_for_collection(collection: str) -> list[str]:
    family = COLLECTION_FAMILY.get(collection)
    if family is None:
        raise Http404("Unknown report collection.")
    return sorted(str(rt) for rt, fam in REPORT_TYPE_FAMILY.items() if fam == family)


# ------------------------------------------------------------------
# Scoping
# ------------------------------------------------------------------
def scope_reports(queryset: QuerySet, user) -> QuerySet:
    """
    Clients only ever see their own client code; lab staff see everything.
    """
    role = role_for_user(user)
    if role is None:
        return queryset.none()
    if role == Role.CLIENT:
        code = client_code_for_user(user)
        if not code:
            return queryset.none()
        return queryset.filter(client_code=code)
    return queryset


def reports_for(user, collection: str) -> QuerySet:
    qs = Report.objects.filter(report_type__in=report_types_for_collection(collection))
    return scope_reports(qs, user)


def get_report_for(user, collection: str, pk: int) -> Report:
    """
    404 (not 403) for reports outside the caller's scope or collection.
    """
    return get_object_or_404(reports_for(user, collection), pk=pk)


# ------------------------------------------------------------------
# Permission classes
# ------------------------------------------------------------------
class HasWorkflowRole(BasePermission):
    """
    Authenticated and mapped to a report workflow role.
    """

    message = "Your account has no report workflow role."

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False
        return role_for_user(user) is not None


class IsReportAdmin(BasePermission):
    message = "Only administrators can manage client notification settings."

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False
        role: Optional[str] = role_for_user(user)
        return role in ADMIN_ROLES
