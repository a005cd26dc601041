# reports_core/tests/test_corrections.py

import pytest
from rest_framework.exceptions import NotFound

from reports_core.models import AuditLog, CorrectionItem, Report, ReportStatusHistory
from reports_core.workflows.corrections import (
    list_corrections,
    open_fields,
    request_corrections,
    resolve_correction,
    resolve_field_corrections,
)
from reports_core.workflows.errors import (
    IllegalTransition,
    InvalidCorrection,
    Unauthorized,
    VersionConflict,
)

ITEMS = [
    {"fieldKey": "sampleDescription", "message": "Description does not match the label."},
    {"fieldKey": "lotBatchNo", "message": "Lot number is missing a digit."},
]


@pytest.fixture
def chem_report(report_factory):
    return report_factory(
        report_type="CHEMISTRY_MIX",
        status="UNDER_TESTING_REVIEW",
        version=3,
        fields={"sampleDescription": "White powder", "lotBatchNo": "L-12"},
    )


@pytest.fixture
def under_client_correction(report_factory):
    report = report_factory(
        report_type="CHEMISTRY_MIX",
        status="UNDER_CLIENT_CORRECTION",
        fields={"sampleDescription": "White powder", "lotBatchNo": "L-12"},
    )
    for item in ITEMS:
        CorrectionItem.objects.create(
            report=report,
            field_key=item["fieldKey"],
            message=item["message"],
            requested_by_role="CHEMISTRY",
            requested_at_status="UNDER_TESTING_REVIEW",
        )
    return report


# =============================================================
# Request
# =============================================================

@pytest.mark.django_db
def test_request_opens_items_and_moves_status(chemistry_user, chem_report):
    created = request_corrections(
        report=chem_report,
        user=chemistry_user,
        items=ITEMS,
        target_status="TESTING_NEEDS_CORRECTION",
        expected_version=3,
    )

    chem_report.refresh_from_db()
    assert chem_report.status == "TESTING_NEEDS_CORRECTION"
    assert chem_report.version == 4

    assert [c.field_key for c in created] == ["sampleDescription", "lotBatchNo"]
    assert all(c.status == CorrectionItem.Status.OPEN for c in created)
    assert created[0].old_value == "White powder"
    assert created[0].requested_by_role == "CHEMISTRY"
    assert created[0].requested_at_status == "UNDER_TESTING_REVIEW"

    history = ReportStatusHistory.objects.get(report=chem_report)
    assert history.reason == "Corrections requested"
    assert history.version == 4

    assert AuditLog.objects.filter(report=chem_report, action__contains="CORRECTION REQUESTED").count() == 2


@pytest.mark.django_db
def test_request_is_atomic_on_version_conflict(chemistry_user, chem_report):
    stale = Report.objects.get(pk=chem_report.pk)
    Report.objects.filter(pk=chem_report.pk).update(version=4)

    with pytest.raises(VersionConflict):
        request_corrections(
            report=stale,
            user=chemistry_user,
            items=ITEMS,
            target_status="TESTING_NEEDS_CORRECTION",
            expected_version=3,
        )

    chem_report.refresh_from_db()
    assert chem_report.status == "UNDER_TESTING_REVIEW"
    assert CorrectionItem.objects.filter(report=chem_report).count() == 0
    assert not ReportStatusHistory.objects.filter(report=chem_report).exists()


@pytest.mark.django_db
def test_request_rejects_non_correction_target(chemistry_user, chem_report):
    with pytest.raises(InvalidCorrection):
        request_corrections(
            report=chem_report,
            user=chemistry_user,
            items=ITEMS,
            target_status="UNDER_ADMIN_REVIEW",
            expected_version=3,
        )


@pytest.mark.django_db
def test_request_rejects_illegal_correction_edge(chemistry_user, chem_report):
    with pytest.raises(IllegalTransition):
        request_corrections(
            report=chem_report,
            user=chemistry_user,
            items=ITEMS,
            target_status="QA_NEEDS_CORRECTION",
            expected_version=3,
        )


@pytest.mark.django_db
def test_request_needs_trigger_authority(client_user, chem_report):
    with pytest.raises(Unauthorized):
        request_corrections(
            report=chem_report,
            user=client_user,
            items=ITEMS,
            target_status="TESTING_NEEDS_CORRECTION",
            expected_version=3,
        )
    assert CorrectionItem.objects.count() == 0


@pytest.mark.django_db
@pytest.mark.parametrize(
    "items",
    [
        [],
        [{"fieldKey": "", "message": "x"}],
        [{"fieldKey": "lotBatchNo", "message": "  "}],
    ],
)
def test_request_validates_items(chemistry_user, chem_report, items):
    with pytest.raises(InvalidCorrection):
        request_corrections(
            report=chem_report,
            user=chemistry_user,
            items=items,
            target_status="TESTING_NEEDS_CORRECTION",
            expected_version=3,
        )
    chem_report.refresh_from_db()
    assert chem_report.version == 3


# =============================================================
# Resolve
# =============================================================

@pytest.mark.django_db
def test_resolve_is_idempotent(client_user, under_client_correction):
    report = under_client_correction
    item = CorrectionItem.objects.get(report=report, field_key="lotBatchNo")

    resolved = resolve_correction(
        report=report,
        correction_id=item.pk,
        user=client_user,
        note="Fixed",
        expected_version=1,
    )
    assert resolved.status == CorrectionItem.Status.RESOLVED
    assert resolved.resolved_by == client_user
    assert resolved.resolved_by_role == "CLIENT"
    assert resolved.resolution_note == "Fixed"
    first_resolved_at = resolved.resolved_at

    report.refresh_from_db()
    assert report.version == 2

    again = resolve_correction(report=report, correction_id=item.pk, user=client_user, note="Again")
    assert again.status == CorrectionItem.Status.RESOLVED
    assert again.resolved_at == first_resolved_at
    assert again.resolution_note == "Fixed"

    report.refresh_from_db()
    assert report.version == 2


@pytest.mark.django_db
def test_resolving_last_item_keeps_status(client_user, under_client_correction):
    report = under_client_correction
    items = list(CorrectionItem.objects.filter(report=report).order_by("field_key"))

    for version, item in enumerate(items, start=1):
        resolve_correction(report=report, correction_id=item.pk, user=client_user, expected_version=version)
        report.refresh_from_db()

    assert open_fields(report) == []
    assert report.status == "UNDER_CLIENT_CORRECTION"
    assert report.version == 3
    assert not ReportStatusHistory.objects.filter(report=report).exists()


@pytest.mark.django_db
def test_resolve_requires_field_edit_rights(chemistry_user, under_client_correction):
    item = CorrectionItem.objects.filter(report=under_client_correction).first()

    with pytest.raises(Unauthorized):
        resolve_correction(report=under_client_correction, correction_id=item.pk, user=chemistry_user)

    item.refresh_from_db()
    assert item.is_open


@pytest.mark.django_db
def test_resolve_unknown_item(client_user, under_client_correction, report_factory):
    other = report_factory(report_type="CHEMISTRY_MIX", status="UNDER_CLIENT_CORRECTION")
    foreign = CorrectionItem.objects.create(
        report=other,
        field_key="lotBatchNo",
        message="x",
        requested_by_role="CHEMISTRY",
    )

    with pytest.raises(NotFound):
        resolve_correction(report=under_client_correction, correction_id=foreign.pk, user=client_user)


@pytest.mark.django_db
def test_resolve_with_stale_version(client_user, under_client_correction):
    item = CorrectionItem.objects.filter(report=under_client_correction).first()

    with pytest.raises(VersionConflict):
        resolve_correction(
            report=under_client_correction,
            correction_id=item.pk,
            user=client_user,
            expected_version=7,
        )

    item.refresh_from_db()
    assert item.is_open


@pytest.mark.django_db
def test_resolve_field_closes_every_open_item_for_the_field(client_user, under_client_correction):
    report = under_client_correction
    CorrectionItem.objects.create(
        report=report,
        field_key="lotBatchNo",
        message="Also check the expiry.",
        requested_by_role="CHEMISTRY",
    )

    resolved = resolve_field_corrections(report=report, field_key="lotBatchNo", user=client_user, note="Updated")
    assert len(resolved) == 2
    assert open_fields(report) == ["sampleDescription"]

    report.refresh_from_db()
    assert report.version == 2

    assert resolve_field_corrections(report=report, field_key="lotBatchNo", user=client_user) == []
    report.refresh_from_db()
    assert report.version == 2


@pytest.mark.django_db
def test_list_corrections_filters_by_status(client_user, under_client_correction):
    report = under_client_correction
    item = CorrectionItem.objects.get(report=report, field_key="sampleDescription")
    resolve_correction(report=report, correction_id=item.pk, user=client_user)

    assert list_corrections(report).count() == 2
    assert [c.field_key for c in list_corrections(report, "open")] == ["lotBatchNo"]
    assert [c.field_key for c in list_corrections(report, "RESOLVED")] == ["sampleDescription"]
