# reports_core/tests/test_client_notifications.py

import pytest
from rest_framework.exceptions import ValidationError

from reports_core.models import ClientNotificationEmail
from reports_core.notifications.client_config import add_email, known_client_codes, set_mode


@pytest.mark.django_db
def test_add_email_normalizes_and_reactivates():
    row = add_email("acme", "  Billing@Acme.TEST ", label="Billing")
    assert (row.client_code, row.email, row.label, row.active) == ("ACME", "billing@acme.test", "Billing", True)

    row.active = False
    row.save()

    again = add_email("ACME", "billing@acme.test")
    assert again.pk == row.pk
    assert again.active is True
    assert again.label == "Billing"
    assert ClientNotificationEmail.objects.count() == 1


@pytest.mark.django_db
def test_invalid_inputs():
    with pytest.raises(ValidationError):
        add_email("ACME", "not-an-email")
    with pytest.raises(ValidationError):
        set_mode("ACME", "EVERYONE")
    with pytest.raises(ValidationError):
        set_mode("", "USERS_ONLY")


@pytest.mark.django_db
def test_known_client_codes(client_user, other_client_user):
    set_mode("initech", "CUSTOM_ONLY")
    assert known_client_codes() == ["ACME", "GLOBEX", "INITECH"]


@pytest.mark.django_db
def test_admin_manages_client_notifications(api_client, admin_user, client_user):
    api_client.force_authenticate(user=admin_user)
    base = "/lims/client-notifications/"

    listing = api_client.get(base)
    assert listing.status_code == 200
    assert listing.json() == [{"clientCode": "ACME", "mode": "USERS_PLUS_CUSTOM", "emails": []}]

    resp = api_client.patch(f"{base}acme/", {"mode": "CUSTOM_ONLY"}, format="json")
    assert resp.status_code == 200
    assert resp.json()["mode"] == "CUSTOM_ONLY"

    created = api_client.post(f"{base}ACME/emails/", {"email": "QA@acme.test", "label": "QA"}, format="json")
    assert created.status_code == 201
    email_id = created.json()["id"]
    assert created.json()["email"] == "qa@acme.test"

    toggled = api_client.patch(f"{base}ACME/emails/{email_id}/", {"active": False}, format="json")
    assert toggled.status_code == 200
    assert toggled.json()["active"] is False

    detail = api_client.get(f"{base}ACME/").json()
    assert detail["mode"] == "CUSTOM_ONLY"
    assert [e["email"] for e in detail["emails"]] == ["qa@acme.test"]

    assert api_client.delete(f"{base}ACME/emails/{email_id}/").status_code == 204
    assert api_client.delete(f"{base}ACME/emails/{email_id}/").status_code == 404


@pytest.mark.django_db
def test_notification_settings_are_admin_only(api_client, client_user, qa_user):
    for user in (client_user, qa_user):
        api_client.force_authenticate(user=user)
        assert api_client.get("/lims/client-notifications/").status_code == 403
        assert api_client.patch("/lims/client-notifications/ACME/", {"mode": "USERS_ONLY"}, format="json").status_code == 403
