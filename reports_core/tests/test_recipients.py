# reports_core/tests/test_recipients.py

import pytest

from reports_core.models import ClientNotificationConfig, ClientNotificationEmail
from reports_core.notifications.recipients import (
    dedupe_emails,
    get_notify_mode,
    resolve_client_recipients,
)


@pytest.fixture
def acme_recipients(user_factory):
    user_factory("CLIENT", username="acme-1", email="A@x.com", client_code="ACME")
    user_factory("CLIENT", username="acme-2", email="qa@acme.test", client_code="acme")
    # Not counted: other client, inactive user, lab staff with a client code.
    user_factory("CLIENT", username="globex-1", email="ops@globex.test", client_code="GLOBEX")
    user_factory("CLIENT", username="acme-old", email="old@acme.test", client_code="ACME", is_active=False)
    user_factory("MICRO", username="tech", email="tech@acme.test", client_code="ACME")

    ClientNotificationEmail.objects.create(client_code="ACME", email="a@x.com")
    ClientNotificationEmail.objects.create(client_code="ACME", email="billing@acme.test")
    ClientNotificationEmail.objects.create(client_code="ACME", email="gone@acme.test", active=False)


def _set_mode(mode):
    ClientNotificationConfig.objects.update_or_create(client_code="ACME", defaults={"mode": mode})


def test_dedupe_is_case_insensitive_and_ordered():
    assert dedupe_emails(["A@x.com", " a@x.com ", "b@x.com", "", None, "not-an-email"]) == ["a@x.com", "b@x.com"]


@pytest.mark.django_db
def test_default_mode_is_users_plus_custom():
    assert get_notify_mode("ACME") == "USERS_PLUS_CUSTOM"


@pytest.mark.django_db
def test_users_plus_custom(acme_recipients):
    assert resolve_client_recipients("acme") == ["a@x.com", "qa@acme.test", "billing@acme.test"]


@pytest.mark.django_db
def test_users_only(acme_recipients):
    _set_mode("USERS_ONLY")
    assert resolve_client_recipients("ACME") == ["a@x.com", "qa@acme.test"]


@pytest.mark.django_db
def test_custom_only(acme_recipients):
    _set_mode("CUSTOM_ONLY")
    assert resolve_client_recipients("ACME") == ["a@x.com", "billing@acme.test"]


@pytest.mark.django_db
def test_unknown_client_resolves_to_empty_list(acme_recipients, caplog):
    assert resolve_client_recipients("INITECH") == []
    assert "No notification recipients for client INITECH" in caplog.text


@pytest.mark.django_db
def test_blank_client_code():
    assert resolve_client_recipients("  ") == []
