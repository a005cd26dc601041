# reports_core/tests/test_status_transitions.py

import pytest
from django.core.exceptions import PermissionDenied
from rest_framework.exceptions import ValidationError

from reports_core.models import AuditLog, Report, ReportStatusHistory
from reports_core.workflows.errors import (
    ESignRejected,
    IllegalTransition,
    MissingESignCredential,
    Unauthorized,
    VersionConflict,
    WorkflowTerminal,
)
from reports_core.workflows.executor import execute_transition, force_status

PASSWORD = "pass123"


def _history(report):
    return list(ReportStatusHistory.objects.filter(report=report).order_by("id"))


# =============================================================
# Graph transitions
# =============================================================

@pytest.mark.django_db
def test_client_submits_draft(client_user, report_factory):
    report = report_factory(report_type="MICRO_MIX")

    execute_transition(
        report=report,
        user=client_user,
        new_status="SUBMITTED_BY_CLIENT",
        expected_version=1,
    )

    report.refresh_from_db()
    assert report.status == "SUBMITTED_BY_CLIENT"
    assert report.version == 2
    assert report.updated_by == client_user

    [row] = _history(report)
    assert (row.from_status, row.to_status, row.role, row.version) == ("DRAFT", "SUBMITTED_BY_CLIENT", "CLIENT", 2)
    assert row.esigned is False
    assert row.forced is False

    assert AuditLog.objects.filter(report=report, action__contains="DRAFT -> SUBMITTED_BY_CLIENT").exists()


@pytest.mark.django_db
def test_testing_start_assigns_report_number(micro_user, chemistry_user, report_factory):
    micro = report_factory(report_type="STERILITY", status="SUBMITTED_BY_CLIENT")
    chem = report_factory(report_type="COA", status="SUBMITTED_BY_CLIENT")

    execute_transition(report=micro, user=micro_user, new_status="UNDER_PRELIMINARY_TESTING_REVIEW", expected_version=1)
    execute_transition(report=chem, user=chemistry_user, new_status="UNDER_TESTING_REVIEW", expected_version=1)

    micro.refresh_from_db()
    chem.refresh_from_db()
    assert micro.report_number.startswith("OM-")
    assert micro.prefix == "OM"
    assert chem.report_number.startswith("BC-")
    assert chem.prefix == "BC"


@pytest.mark.django_db
def test_existing_report_number_is_kept(micro_user, report_factory):
    report = report_factory(status="PRELIMINARY_RESUBMISSION_BY_CLIENT", report_number="OM-20250007")

    execute_transition(report=report, user=micro_user, new_status="UNDER_PRELIMINARY_TESTING_REVIEW", expected_version=1)

    report.refresh_from_db()
    assert report.report_number == "OM-20250007"


@pytest.mark.django_db
def test_wrong_role_is_rejected_without_side_effects(micro_user, report_factory):
    report = report_factory(status="DRAFT")

    with pytest.raises(Unauthorized):
        execute_transition(report=report, user=micro_user, new_status="SUBMITTED_BY_CLIENT", expected_version=1)

    report.refresh_from_db()
    assert report.status == "DRAFT"
    assert report.version == 1
    assert _history(report) == []


@pytest.mark.django_db
def test_user_without_role_is_rejected(user_factory, report_factory):
    nobody = user_factory(None)
    report = report_factory()

    with pytest.raises(Unauthorized):
        execute_transition(report=report, user=nobody, new_status="SUBMITTED_BY_CLIENT", expected_version=1)


@pytest.mark.django_db
def test_illegal_edge(client_user, report_factory):
    report = report_factory(status="DRAFT")

    with pytest.raises(IllegalTransition):
        execute_transition(report=report, user=client_user, new_status="FINAL_APPROVED", expected_version=1)


@pytest.mark.django_db
def test_terminal_report_cannot_move(client_user, report_factory):
    report = report_factory(report_type="CHEMISTRY_MIX", status="APPROVED")

    with pytest.raises(WorkflowTerminal):
        execute_transition(report=report, user=client_user, new_status="UNDER_CLIENT_REVIEW", expected_version=1)


@pytest.mark.django_db
def test_stale_version_is_a_conflict(client_user, report_factory):
    report = report_factory(status="DRAFT", version=5)

    with pytest.raises(VersionConflict) as exc:
        execute_transition(report=report, user=client_user, new_status="SUBMITTED_BY_CLIENT", expected_version=4)

    assert exc.value.status_code == 409
    assert exc.value.extra == {"expectedVersion": 4, "currentVersion": 5}


@pytest.mark.django_db
def test_missing_expected_version_is_a_validation_error(client_user, report_factory):
    report = report_factory()

    with pytest.raises(ValidationError):
        execute_transition(report=report, user=client_user, new_status="SUBMITTED_BY_CLIENT", expected_version=None)


@pytest.mark.django_db
def test_racing_writers_single_winner(client_user, report_factory):
    report = report_factory(status="DRAFT")
    first = Report.objects.get(pk=report.pk)
    second = Report.objects.get(pk=report.pk)

    execute_transition(report=first, user=client_user, new_status="SUBMITTED_BY_CLIENT", expected_version=1)

    # The second copy still believes it is at version 1; the guarded write catches it.
    with pytest.raises(VersionConflict) as exc:
        execute_transition(report=second, user=client_user, new_status="SUBMITTED_BY_CLIENT", expected_version=1)
    assert exc.value.current_version == 2

    report.refresh_from_db()
    assert report.version == 2
    assert len(_history(report)) == 1


# =============================================================
# E-signature gate
# =============================================================

@pytest.mark.django_db
def test_gated_transition_without_credential(frontdesk_user, report_factory):
    report = report_factory(report_type="CHEMISTRY_MIX", status="RECEIVED_BY_FRONTDESK", version=7)

    with pytest.raises(MissingESignCredential) as exc:
        execute_transition(
            report=report,
            user=frontdesk_user,
            new_status="UNDER_CLIENT_REVIEW",
            expected_version=7,
        )
    assert exc.value.extra["missing"] == ["reason", "eSignCredential"]

    report.refresh_from_db()
    assert report.status == "RECEIVED_BY_FRONTDESK"
    assert report.version == 7
    assert _history(report) == []


@pytest.mark.django_db
def test_gated_transition_with_wrong_password(frontdesk_user, report_factory):
    report = report_factory(status="RECEIVED_BY_FRONTDESK")

    with pytest.raises(ESignRejected):
        execute_transition(
            report=report,
            user=frontdesk_user,
            new_status="UNDER_CLIENT_FINAL_REVIEW",
            expected_version=1,
            reason="Results released",
            esign_credential="wrong",
        )

    report.refresh_from_db()
    assert report.version == 1


@pytest.mark.django_db
def test_gated_transition_with_signature(frontdesk_user, report_factory):
    report = report_factory(status="RECEIVED_BY_FRONTDESK")

    execute_transition(
        report=report,
        user=frontdesk_user,
        new_status="UNDER_CLIENT_FINAL_REVIEW",
        expected_version=1,
        reason="Results released",
        esign_credential=PASSWORD,
    )

    [row] = _history(report)
    assert row.esigned is True
    assert row.reason == "Results released"


@pytest.mark.django_db
def test_password_check_can_be_disabled(settings, frontdesk_user, report_factory):
    settings.ESIGN_VERIFY_PASSWORD = False
    report = report_factory(status="RECEIVED_BY_FRONTDESK")

    execute_transition(
        report=report,
        user=frontdesk_user,
        new_status="UNDER_CLIENT_FINAL_REVIEW",
        expected_version=1,
        reason="Released",
        esign_credential="anything",
    )
    report.refresh_from_db()
    assert report.status == "UNDER_CLIENT_FINAL_REVIEW"


# =============================================================
# Administrative override
# =============================================================

@pytest.mark.django_db
def test_final_lock_without_credential_is_refused(admin_user, report_factory):
    report = report_factory(status="FINAL_APPROVED", version=9)

    with pytest.raises(MissingESignCredential):
        force_status(
            report=report,
            user=admin_user,
            new_status="LOCKED",
            reason="Archive",
            expected_version=9,
        )

    report.refresh_from_db()
    assert report.status == "FINAL_APPROVED"
    assert report.version == 9
    assert report.locked_at is None


@pytest.mark.django_db
def test_final_lock_with_signature(admin_user, report_factory):
    report = report_factory(status="FINAL_APPROVED")

    force_status(
        report=report,
        user=admin_user,
        new_status="LOCKED",
        reason="Archive",
        expected_version=1,
        esign_credential=PASSWORD,
    )

    report.refresh_from_db()
    assert report.status == "LOCKED"
    assert report.locked_at is not None

    [row] = _history(report)
    assert row.forced is True
    assert row.esigned is True


@pytest.mark.django_db
def test_locked_report_cannot_be_overridden(admin_user, report_factory):
    report = report_factory(status="LOCKED")

    with pytest.raises(WorkflowTerminal):
        force_status(
            report=report,
            user=admin_user,
            new_status="UNDER_FINAL_TESTING_REVIEW",
            reason="Reopen",
            expected_version=1,
        )


@pytest.mark.django_db
def test_override_into_exempt_status_needs_no_signature(qa_user, report_factory):
    report = report_factory(status="QA_NEEDS_FINAL_CORRECTION")

    force_status(
        report=report,
        user=qa_user,
        new_status="UNDER_FINAL_TESTING_REVIEW",
        reason="Back to testing",
        expected_version=1,
    )

    report.refresh_from_db()
    assert report.status == "UNDER_FINAL_TESTING_REVIEW"


@pytest.mark.django_db
def test_override_requires_reason_and_authority(client_user, admin_user, report_factory):
    report = report_factory(status="UNDER_QA_FINAL_REVIEW")

    with pytest.raises(Unauthorized):
        force_status(report=report, user=client_user, new_status="UNDER_FINAL_TESTING_REVIEW", reason="x", expected_version=1)

    with pytest.raises(ValidationError):
        force_status(report=report, user=admin_user, new_status="UNDER_FINAL_TESTING_REVIEW", reason="  ", expected_version=1)


@pytest.mark.django_db
def test_override_to_same_status_is_illegal(admin_user, report_factory):
    report = report_factory(status="UNDER_QA_FINAL_REVIEW")

    with pytest.raises(IllegalTransition):
        force_status(
            report=report,
            user=admin_user,
            new_status="UNDER_QA_FINAL_REVIEW",
            reason="noop",
            expected_version=1,
            esign_credential=PASSWORD,
        )


# =============================================================
# Write guard
# =============================================================

@pytest.mark.django_db
def test_direct_status_save_is_blocked(report_factory):
    report = report_factory(status="DRAFT")
    report.status = "FINAL_APPROVED"

    with pytest.raises(PermissionDenied):
        report.save()

    report.save(_workflow_bypass=True)
    report.refresh_from_db()
    assert report.status == "FINAL_APPROVED"


@pytest.mark.django_db
def test_non_workflow_columns_still_save(report_factory):
    report = report_factory()
    report.fields = {"client": "Acme Labs"}
    report.save()

    report.refresh_from_db()
    assert report.fields == {"client": "Acme Labs"}
