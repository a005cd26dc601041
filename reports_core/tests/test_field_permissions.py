# reports_core/tests/test_field_permissions.py

import pytest

from reports_core.workflows.field_permissions import (
    WILDCARD,
    can_edit_field,
    can_show_advance_action,
    critical_fields_in,
    disallowed_fields,
    editable_fields,
    permission_matrix,
)
from reports_core.workflows.graphs import FAMILY_GRAPHS, can_trigger
from reports_core.workflows.roles import Role
from reports_core.workflows.statuses import REPORT_TYPE_FAMILY


def test_client_edits_everything_in_draft():
    assert editable_fields("CLIENT", "MICRO_MIX", "DRAFT") == [WILDCARD]
    assert can_edit_field("CLIENT", "MICRO_MIX", "DRAFT", "anything")


def test_tester_edits_results_but_not_sample_info():
    assert can_edit_field("MICRO", "MICRO_MIX", "UNDER_PRELIMINARY_TESTING_REVIEW", "tbc_result")
    assert not can_edit_field("MICRO", "MICRO_MIX", "UNDER_PRELIMINARY_TESTING_REVIEW", "lotNo")


def test_role_must_be_editor_of_status():
    # Results are on MICRO's allow-list, but nobody edits while the client reviews.
    assert editable_fields("MICRO", "MICRO_MIX", "UNDER_CLIENT_FINAL_REVIEW") == []
    assert not can_edit_field("MICRO", "MICRO_MIX", "UNDER_CLIENT_FINAL_REVIEW", "tbc_result")


def test_admin_wildcard_needs_editor_status():
    assert editable_fields("ADMIN", "CHEMISTRY_MIX", "UNDER_ADMIN_REVIEW") == [WILDCARD]
    assert editable_fields("ADMIN", "CHEMISTRY_MIX", "TESTING_ON_HOLD") == []


def test_systemadmin_has_no_field_rights():
    assert editable_fields("SYSTEMADMIN", "MICRO_MIX", "UNDER_ADMIN_REVIEW") == []


def test_disallowed_fields_lists_only_blocked_keys():
    blocked = disallowed_fields(
        "CHEMISTRY",
        "CHEMISTRY_MIX",
        "UNDER_TESTING_REVIEW",
        ["results", "formulaContent"],
    )
    assert blocked == ["formulaContent"]


def test_critical_fields_per_type():
    assert critical_fields_in("MICRO_MIX", ["tbc_result", "comments", "reviewedBy"]) == ["reviewedBy", "tbc_result"]
    assert critical_fields_in("STERILITY", ["ftm_result"]) == ["ftm_result"]
    assert critical_fields_in("COA", ["coaRows"]) == []


@pytest.mark.parametrize("report_type", sorted(REPORT_TYPE_FAMILY))
def test_advance_action_requires_trigger_authority(report_type):
    graph = FAMILY_GRAPHS[REPORT_TYPE_FAMILY[report_type]]
    for status in graph:
        for role in Role.values:
            if can_show_advance_action(role, report_type, status):
                assert can_trigger(report_type, status, role), (report_type, status, role)


def test_advance_action_needs_an_editable_field_on_screen():
    assert can_show_advance_action("CHEMISTRY", "CHEMISTRY_MIX", "UNDER_TESTING_REVIEW", ["results"])
    assert not can_show_advance_action("CHEMISTRY", "CHEMISTRY_MIX", "UNDER_TESTING_REVIEW", ["formulaContent"])
    # QA and ADMIN may edit here but cannot move the report on.
    assert not can_show_advance_action("QA", "MICRO_MIX", "UNDER_PRELIMINARY_TESTING_REVIEW", ["tbc_result"])
    assert not can_show_advance_action("ADMIN", "MICRO_MIX", "UNDER_PRELIMINARY_TESTING_REVIEW")


def test_permission_matrix_lists_editors_only():
    matrix = permission_matrix("CHEMISTRY_MIX")
    assert set(matrix["UNDER_TESTING_REVIEW"]) == {"CHEMISTRY", "ADMIN"}
    assert matrix["APPROVED"] == {}
