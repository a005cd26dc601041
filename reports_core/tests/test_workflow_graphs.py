# reports_core/tests/test_workflow_graphs.py

import pytest

from reports_core.workflows.errors import (
    IllegalTransition,
    Unauthorized,
    UnknownStatusError,
    WorkflowTerminal,
)
from reports_core.workflows.graphs import (
    CORRECTION_STATUSES,
    FAMILY_GRAPHS,
    allowed_transitions,
    can_trigger,
    get_rule,
    is_terminal,
    required_roles,
    validate_graphs,
    validate_transition,
    validate_transition_with_role,
    workflow_definition,
)
from reports_core.workflows.roles import Role
from reports_core.workflows.statuses import FAMILY_STATUSES


@pytest.mark.parametrize("family", sorted(FAMILY_GRAPHS))
def test_no_dangling_transitions(family):
    graph = FAMILY_GRAPHS[family]
    for status, rule in graph.items():
        for nxt in rule.next_states:
            assert nxt in graph, f"{status} -> {nxt} has no rule"


@pytest.mark.parametrize("family", sorted(FAMILY_GRAPHS))
def test_every_status_has_a_rule(family):
    assert set(FAMILY_STATUSES[family].values) == set(FAMILY_GRAPHS[family])


@pytest.mark.parametrize("family", sorted(FAMILY_GRAPHS))
def test_correction_statuses_are_graph_members(family):
    assert CORRECTION_STATUSES[family] <= set(FAMILY_GRAPHS[family])


def test_validate_graphs_reports_no_problems():
    assert validate_graphs() == {"micro": [], "chemistry": []}


def test_terminal_statuses_have_no_exits():
    assert is_terminal("MICRO_MIX", "FINAL_APPROVED")
    assert is_terminal("MICRO_MIX", "LOCKED")
    assert is_terminal("CHEMISTRY_MIX", "APPROVED")
    assert is_terminal("COA", "LOCKED")
    assert not is_terminal("MICRO_MIX", "DRAFT")


def test_transition_out_of_terminal_raises_workflow_terminal():
    with pytest.raises(WorkflowTerminal) as exc:
        validate_transition("CHEMISTRY_MIX", "LOCKED", "DRAFT")
    assert exc.value.default_code == "workflow_terminal"
    assert "LOCKED" in str(exc.value.detail)


def test_unlisted_edge_is_illegal():
    with pytest.raises(IllegalTransition) as exc:
        validate_transition("MICRO_MIX", "DRAFT", "UNDER_QA_FINAL_REVIEW")
    assert exc.value.extra["currentStatus"] == "DRAFT"
    assert exc.value.extra["targetStatus"] == "UNDER_QA_FINAL_REVIEW"


def test_unknown_target_is_illegal():
    with pytest.raises(IllegalTransition):
        validate_transition("MICRO_MIX", "DRAFT", "NOT_A_STATUS")


def test_unknown_current_status_is_a_programming_error():
    with pytest.raises(UnknownStatusError):
        get_rule("MICRO_MIX", "UNDER_CLIENT_REVIEW")


def test_role_must_be_able_to_trigger():
    validate_transition_with_role("CHEMISTRY_MIX", "UNDER_TESTING_REVIEW", "TESTING_NEEDS_CORRECTION", "CHEMISTRY")

    with pytest.raises(Unauthorized):
        validate_transition_with_role(
            "CHEMISTRY_MIX",
            "UNDER_TESTING_REVIEW",
            "TESTING_NEEDS_CORRECTION",
            "CLIENT",
        )


def test_role_aliases_are_normalized():
    assert can_trigger("MICRO_MIX", "RECEIVED_BY_FRONTDESK", "front-desk")
    assert can_trigger("MICRO_MIX", "UNDER_QA_PRELIMINARY_REVIEW", "Quality Assurance")
    assert not can_trigger("MICRO_MIX", "DRAFT", "nobody")


def test_allowed_transitions_depend_on_role():
    assert allowed_transitions("MICRO_MIX", "DRAFT", Role.CLIENT) == ["SUBMITTED_BY_CLIENT"]
    assert allowed_transitions("MICRO_MIX", "DRAFT", Role.MICRO) == []
    assert allowed_transitions("MICRO_MIX", "FINAL_APPROVED") == []


def test_required_roles_for_edge():
    assert required_roles("MICRO_MIX", "CLIENT_NEEDS_FINAL_CORRECTION", "UNDER_FINAL_RESUBMISSION_TESTING_REVIEW") == [
        "ADMIN",
        "MICRO",
        "QA",
    ]
    with pytest.raises(IllegalTransition):
        required_roles("MICRO_MIX", "DRAFT", "LOCKED")


def test_chemistry_resubmission_by_testing_returns_to_client_review():
    rule = get_rule("COA", "RESUBMISSION_BY_TESTING")
    assert rule.next_states == {"UNDER_CLIENT_REVIEW"}


def test_workflow_definition_shape():
    definition = workflow_definition("chemistry-mix")

    assert definition["family"] == "chemistry"
    assert definition["initial"] == "DRAFT"

    states = definition["states"]
    assert states["APPROVED"]["terminal"] is True
    assert states["TESTING_NEEDS_CORRECTION"]["needs_correction"] is True
    assert states["UNDER_CLIENT_REVIEW"]["requires_esign"] is True
    assert states["UNDER_TESTING_REVIEW"]["next"] == [
        "TESTING_NEEDS_CORRECTION",
        "TESTING_ON_HOLD",
        "UNDER_ADMIN_REVIEW",
    ]


def test_workflow_definition_rejects_unknown_type():
    with pytest.raises(ValueError):
        workflow_definition("PLATE_COUNT")
