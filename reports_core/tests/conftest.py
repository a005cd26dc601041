# reports_core/tests/conftest.py

from __future__ import annotations

import uuid
from typing import Any, Callable, Dict, Optional

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from reports_core.models import Report, UserProfile

PASSWORD = "pass123"
CLIENT_CODE = "ACME"


def _rand(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def user_factory(db) -> Callable[..., Any]:
    """
    Users bound to a workflow role through UserProfile.
    """
    User = get_user_model()

    def _factory(
        role: Optional[str],
        *,
        username: Optional[str] = None,
        email: Optional[str] = None,
        client_code: str = "",
        is_active: bool = True,
    ):
        name = username or _rand((role or "norole").lower())
        user = User.objects.create_user(
            username=name,
            email=email if email is not None else f"{name}@example.com",
            password=PASSWORD,
            is_active=is_active,
        )
        if role:
            UserProfile.objects.create(user=user, role=role, client_code=client_code)
        return user

    return _factory


@pytest.fixture
def client_user(user_factory):
    return user_factory("CLIENT", username="acme-portal", email="portal@acme.test", client_code=CLIENT_CODE)


@pytest.fixture
def other_client_user(user_factory):
    return user_factory("CLIENT", username="globex-portal", email="portal@globex.test", client_code="GLOBEX")


@pytest.fixture
def micro_user(user_factory):
    return user_factory("MICRO", username="micro-tech")


@pytest.fixture
def chemistry_user(user_factory):
    return user_factory("CHEMISTRY", username="chem-tech")


@pytest.fixture
def qa_user(user_factory):
    return user_factory("QA", username="qa-reviewer")


@pytest.fixture
def frontdesk_user(user_factory):
    return user_factory("FRONTDESK", username="frontdesk")


@pytest.fixture
def admin_user(user_factory):
    return user_factory("ADMIN", username="lab-admin")


@pytest.fixture
def report_factory(db) -> Callable[..., Report]:
    """
    Reports placed directly in any status/version, bypassing the workflow.
    """

    def _factory(
        *,
        report_type: str = "MICRO_MIX",
        status: str = "DRAFT",
        version: int = 1,
        client_code: str = CLIENT_CODE,
        fields: Optional[Dict[str, Any]] = None,
        **extra: Any,
    ) -> Report:
        extra.setdefault("form_number", _rand(client_code))
        report = Report.objects.create(
            report_type=report_type,
            client_code=client_code,
            status=status,
            fields=fields or {},
            **extra,
        )
        if version != 1:
            Report.objects.filter(pk=report.pk).update(version=version)
            report.refresh_from_db()
        return report

    return _factory
