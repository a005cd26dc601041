# reports_core/workflows/graphs.py
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional

from reports_core.workflows.errors import (
    IllegalTransition,
    Unauthorized,
    UnknownStatusError,
    WorkflowTerminal,
)
from reports_core.workflows.esign import requires_esign
from reports_core.workflows.roles import Role, normalize_role
from reports_core.workflows.statuses import (
    ChemistryReportStatus as C,
    FAMILY_STATUSES,
    MicroReportStatus as M,
    WorkflowFamily,
    family_for,
    normalize_status,
)


@dataclass(frozen=True)
class TransitionRule:
    can_trigger: FrozenSet[str]
    next_states: FrozenSet[str]
    editable_by: FrozenSet[str]

    @property
    def is_terminal(self) -> bool:
        return not self.next_states


def _rule(can_trigger: Iterable[str], next_states: Iterable[str], editable_by: Iterable[str] = ()) -> TransitionRule:
    return TransitionRule(
        can_trigger=frozenset(str(r) for r in can_trigger),
        next_states=frozenset(str(s) for s in next_states),
        editable_by=frozenset(str(r) for r in editable_by),
    )


ADMIN, SYSTEMADMIN, FRONTDESK, MICRO, CHEMISTRY, QA, CLIENT = (
    Role.ADMIN,
    Role.SYSTEMADMIN,
    Role.FRONTDESK,
    Role.MICRO,
    Role.CHEMISTRY,
    Role.QA,
    Role.CLIENT,
)


# ===============================================================
# Micro family (two-phase: preliminary + final)
# ===============================================================

MICRO_GRAPH: Mapping[str, TransitionRule] = MappingProxyType({
    M.DRAFT: _rule([CLIENT], [M.SUBMITTED_BY_CLIENT], [CLIENT]),
    M.SUBMITTED_BY_CLIENT: _rule([MICRO], [M.UNDER_PRELIMINARY_TESTING_REVIEW]),
    M.UNDER_CLIENT_PRELIMINARY_REVIEW: _rule(
        [CLIENT],
        [M.CLIENT_NEEDS_PRELIMINARY_CORRECTION, M.PRELIMINARY_APPROVED],
    ),
    M.CLIENT_NEEDS_PRELIMINARY_CORRECTION: _rule(
        [MICRO],
        [M.UNDER_PRELIMINARY_RESUBMISSION_TESTING_REVIEW],
    ),
    M.UNDER_CLIENT_PRELIMINARY_CORRECTION: _rule(
        [CLIENT],
        [M.PRELIMINARY_RESUBMISSION_BY_CLIENT],
        [CLIENT],
    ),
    M.UNDER_CLIENT_FINAL_CORRECTION: _rule(
        [CLIENT],
        [M.FINAL_RESUBMISSION_BY_CLIENT],
        [CLIENT],
    ),
    M.UNDER_CLIENT_FINAL_REVIEW: _rule(
        [CLIENT],
        [M.FINAL_APPROVED, M.CLIENT_NEEDS_FINAL_CORRECTION],
    ),
    M.PRELIMINARY_RESUBMISSION_BY_CLIENT: _rule([MICRO], [M.UNDER_PRELIMINARY_TESTING_REVIEW]),
    M.CLIENT_NEEDS_FINAL_CORRECTION: _rule(
        [ADMIN, QA, MICRO],
        [M.UNDER_FINAL_RESUBMISSION_TESTING_REVIEW],
    ),
    M.FINAL_RESUBMISSION_BY_CLIENT: _rule([CLIENT], [M.UNDER_FINAL_TESTING_REVIEW]),
    M.PRELIMINARY_APPROVED: _rule([MICRO], [M.UNDER_FINAL_TESTING_REVIEW]),
    M.RECEIVED_BY_FRONTDESK: _rule(
        [FRONTDESK],
        [M.UNDER_CLIENT_FINAL_REVIEW, M.FRONTDESK_ON_HOLD],
    ),
    M.FRONTDESK_ON_HOLD: _rule([FRONTDESK], [M.RECEIVED_BY_FRONTDESK]),
    M.FRONTDESK_NEEDS_CORRECTION: _rule([FRONTDESK, ADMIN, QA], [M.SUBMITTED_BY_CLIENT]),
    M.UNDER_PRELIMINARY_TESTING_REVIEW: _rule(
        [MICRO],
        [
            M.PRELIMINARY_TESTING_ON_HOLD,
            M.PRELIMINARY_TESTING_NEEDS_CORRECTION,
            M.UNDER_QA_PRELIMINARY_REVIEW,
        ],
        [MICRO, ADMIN, QA],
    ),
    M.PRELIMINARY_TESTING_ON_HOLD: _rule([MICRO], [M.UNDER_PRELIMINARY_TESTING_REVIEW]),
    M.PRELIMINARY_TESTING_NEEDS_CORRECTION: _rule([CLIENT], [M.UNDER_CLIENT_PRELIMINARY_CORRECTION]),
    M.UNDER_QA_PRELIMINARY_REVIEW: _rule(
        [QA],
        [M.QA_NEEDS_PRELIMINARY_CORRECTION, M.UNDER_CLIENT_PRELIMINARY_REVIEW],
        [QA],
    ),
    M.QA_NEEDS_PRELIMINARY_CORRECTION: _rule([QA], [M.UNDER_PRELIMINARY_TESTING_REVIEW]),
    M.UNDER_PRELIMINARY_RESUBMISSION_TESTING_REVIEW: _rule(
        [MICRO],
        [M.UNDER_QA_PRELIMINARY_REVIEW],
        [MICRO, ADMIN, QA],
    ),
    M.PRELIMINARY_RESUBMISSION_BY_TESTING: _rule([QA], [M.UNDER_QA_PRELIMINARY_REVIEW]),
    M.UNDER_FINAL_TESTING_REVIEW: _rule(
        [MICRO],
        [M.FINAL_TESTING_ON_HOLD, M.FINAL_TESTING_NEEDS_CORRECTION, M.UNDER_QA_FINAL_REVIEW],
        [MICRO],
    ),
    M.FINAL_TESTING_ON_HOLD: _rule(
        [MICRO],
        [M.FINAL_TESTING_NEEDS_CORRECTION, M.UNDER_FINAL_TESTING_REVIEW],
    ),
    M.FINAL_TESTING_NEEDS_CORRECTION: _rule([MICRO, ADMIN, QA], [M.UNDER_CLIENT_FINAL_CORRECTION]),
    M.UNDER_FINAL_RESUBMISSION_TESTING_REVIEW: _rule(
        [MICRO, ADMIN, QA],
        [M.UNDER_FINAL_RESUBMISSION_QA_REVIEW],
        [MICRO, ADMIN, QA],
    ),
    M.FINAL_RESUBMISSION_BY_TESTING: _rule([MICRO, ADMIN, QA], [M.UNDER_QA_FINAL_REVIEW]),
    M.UNDER_QA_FINAL_REVIEW: _rule(
        [MICRO, QA],
        [M.QA_NEEDS_FINAL_CORRECTION, M.RECEIVED_BY_FRONTDESK],
        [QA],
    ),
    M.QA_NEEDS_FINAL_CORRECTION: _rule([QA], [M.UNDER_FINAL_TESTING_REVIEW]),
    M.UNDER_FINAL_RESUBMISSION_QA_REVIEW: _rule([QA], [M.RECEIVED_BY_FRONTDESK], [ADMIN, QA]),
    M.UNDER_ADMIN_REVIEW: _rule(
        [ADMIN, SYSTEMADMIN],
        [M.ADMIN_NEEDS_CORRECTION, M.ADMIN_REJECTED, M.RECEIVED_BY_FRONTDESK],
        [ADMIN],
    ),
    M.ADMIN_NEEDS_CORRECTION: _rule([ADMIN, SYSTEMADMIN], [M.UNDER_QA_FINAL_REVIEW], [ADMIN]),
    M.ADMIN_REJECTED: _rule([ADMIN, SYSTEMADMIN], [M.UNDER_QA_FINAL_REVIEW]),
    M.UNDER_FINAL_RESUBMISSION_ADMIN_REVIEW: _rule([ADMIN], [M.RECEIVED_BY_FRONTDESK], [ADMIN]),
    M.FINAL_APPROVED: _rule([], []),
    M.LOCKED: _rule([CLIENT, ADMIN, SYSTEMADMIN], []),
})


# ===============================================================
# Chemistry family (single phase)
# ===============================================================

CHEMISTRY_GRAPH: Mapping[str, TransitionRule] = MappingProxyType({
    C.DRAFT: _rule([CLIENT], [C.SUBMITTED_BY_CLIENT], [CLIENT]),
    C.SUBMITTED_BY_CLIENT: _rule([CHEMISTRY], [C.UNDER_TESTING_REVIEW]),
    C.UNDER_CLIENT_REVIEW: _rule([CLIENT], [C.CLIENT_NEEDS_CORRECTION, C.APPROVED]),
    C.CLIENT_NEEDS_CORRECTION: _rule([CHEMISTRY], [C.UNDER_RESUBMISSION_TESTING_REVIEW]),
    C.UNDER_CLIENT_CORRECTION: _rule([CLIENT], [C.RESUBMISSION_BY_CLIENT], [CLIENT]),
    C.RESUBMISSION_BY_CLIENT: _rule([CHEMISTRY], [C.UNDER_TESTING_REVIEW]),
    C.RECEIVED_BY_FRONTDESK: _rule([FRONTDESK], [C.UNDER_CLIENT_REVIEW, C.FRONTDESK_ON_HOLD]),
    C.FRONTDESK_ON_HOLD: _rule([FRONTDESK], [C.RECEIVED_BY_FRONTDESK]),
    C.FRONTDESK_NEEDS_CORRECTION: _rule([FRONTDESK, ADMIN], [C.SUBMITTED_BY_CLIENT]),
    C.UNDER_TESTING_REVIEW: _rule(
        [CHEMISTRY],
        [C.TESTING_ON_HOLD, C.TESTING_NEEDS_CORRECTION, C.UNDER_ADMIN_REVIEW],
        [CHEMISTRY, ADMIN],
    ),
    C.TESTING_ON_HOLD: _rule([CHEMISTRY], [C.UNDER_TESTING_REVIEW]),
    C.TESTING_NEEDS_CORRECTION: _rule([CLIENT], [C.UNDER_CLIENT_CORRECTION]),
    C.UNDER_RESUBMISSION_TESTING_REVIEW: _rule(
        [CHEMISTRY],
        [C.RESUBMISSION_BY_TESTING],
        [CHEMISTRY, ADMIN],
    ),
    C.RESUBMISSION_BY_TESTING: _rule([CLIENT], [C.UNDER_CLIENT_REVIEW]),
    C.UNDER_QA_REVIEW: _rule([CHEMISTRY], [C.QA_NEEDS_CORRECTION, C.UNDER_ADMIN_REVIEW], [QA]),
    C.QA_NEEDS_CORRECTION: _rule([QA], [C.UNDER_TESTING_REVIEW]),
    C.UNDER_ADMIN_REVIEW: _rule(
        [ADMIN, SYSTEMADMIN],
        [C.ADMIN_NEEDS_CORRECTION, C.ADMIN_REJECTED, C.RECEIVED_BY_FRONTDESK],
        [ADMIN],
    ),
    C.ADMIN_NEEDS_CORRECTION: _rule([ADMIN, SYSTEMADMIN], [C.UNDER_QA_REVIEW], [ADMIN]),
    C.ADMIN_REJECTED: _rule([ADMIN, SYSTEMADMIN], [C.UNDER_QA_REVIEW]),
    C.UNDER_RESUBMISSION_ADMIN_REVIEW: _rule([ADMIN], [C.RECEIVED_BY_FRONTDESK], [ADMIN]),
    C.APPROVED: _rule([], []),
    C.LOCKED: _rule([CLIENT, ADMIN, SYSTEMADMIN], []),
})


FAMILY_GRAPHS: Mapping[str, Mapping[str, TransitionRule]] = MappingProxyType({
    WorkflowFamily.MICRO: MICRO_GRAPH,
    WorkflowFamily.CHEMISTRY: CHEMISTRY_GRAPH,
})

# Department tester role per family.
TESTER_ROLES: Mapping[str, str] = MappingProxyType({
    WorkflowFamily.MICRO: Role.MICRO.value,
    WorkflowFamily.CHEMISTRY: Role.CHEMISTRY.value,
})


# "Needs correction" targets; entering one of these opens correction items.
CORRECTION_STATUSES: Mapping[str, FrozenSet[str]] = MappingProxyType({
    WorkflowFamily.MICRO: frozenset({
        M.CLIENT_NEEDS_PRELIMINARY_CORRECTION,
        M.CLIENT_NEEDS_FINAL_CORRECTION,
        M.FRONTDESK_NEEDS_CORRECTION,
        M.PRELIMINARY_TESTING_NEEDS_CORRECTION,
        M.QA_NEEDS_PRELIMINARY_CORRECTION,
        M.FINAL_TESTING_NEEDS_CORRECTION,
        M.QA_NEEDS_FINAL_CORRECTION,
        M.ADMIN_NEEDS_CORRECTION,
    }),
    WorkflowFamily.CHEMISTRY: frozenset({
        C.CLIENT_NEEDS_CORRECTION,
        C.FRONTDESK_NEEDS_CORRECTION,
        C.TESTING_NEEDS_CORRECTION,
        C.QA_NEEDS_CORRECTION,
        C.ADMIN_NEEDS_CORRECTION,
    }),
})


# ===============================================================
# Lookups
# ===============================================================

def graph_for(report_type) -> Mapping[str, TransitionRule]:
    return FAMILY_GRAPHS[family_for(report_type)]


def tester_role(report_type) -> str:
    return TESTER_ROLES[family_for(report_type)]


def get_rule(report_type, status) -> TransitionRule:
    """
    Rule for ``status`` within the report type's graph.

    Raises UnknownStatusError: a stored status outside the graph means the
    data or the enum is wrong, not the caller's input.
    """
    st = normalize_status(status)
    rule = graph_for(report_type).get(st)
    if rule is None:
        raise UnknownStatusError(f"Unknown status '{st}' for report type {report_type}")
    return rule


def is_known_status(report_type, status) -> bool:
    return normalize_status(status) in graph_for(report_type)


def is_legal_transition(report_type, from_status, to_status) -> bool:
    return normalize_status(to_status) in get_rule(report_type, from_status).next_states


def can_trigger(report_type, from_status, role) -> bool:
    r = normalize_role(role)
    return bool(r) and r in get_rule(report_type, from_status).can_trigger


def is_terminal(report_type, status) -> bool:
    return get_rule(report_type, status).is_terminal


def is_correction_status(report_type, status) -> bool:
    return normalize_status(status) in CORRECTION_STATUSES[family_for(report_type)]


def allowed_next_states(report_type, current) -> List[str]:
    """
    Structural next states only, independent of role.
    """
    return sorted(get_rule(report_type, current).next_states)


def allowed_transitions(report_type, current, role: Optional[str] = None) -> List[str]:
    """
    Next states the role may move the report to. Without a role this is the
    structural list.
    """
    nxt = allowed_next_states(report_type, current)
    if role is None:
        return nxt
    if not can_trigger(report_type, current, role):
        return []
    return nxt


def required_roles(report_type, current, target) -> List[str]:
    """
    Roles that can perform current -> target.
    """
    if not is_legal_transition(report_type, current, target):
        raise IllegalTransition(current=normalize_status(current), target=normalize_status(target))
    return sorted(get_rule(report_type, current).can_trigger)


def validate_transition(report_type, current, target) -> None:
    """
    Raises WorkflowTerminal / IllegalTransition if current -> target is not an
    edge of the graph.
    """
    cur = normalize_status(current)
    tgt = normalize_status(target)
    rule = get_rule(report_type, cur)

    if rule.is_terminal:
        raise WorkflowTerminal(current=cur)

    if not is_known_status(report_type, tgt):
        raise IllegalTransition(f"Unknown target status: {tgt}", current=cur, target=tgt)

    if tgt not in rule.next_states:
        raise IllegalTransition(current=cur, target=tgt)


def validate_transition_with_role(report_type, current, target, role) -> None:
    """
    Raises if the transition is illegal OR the role may not trigger it.
    """
    validate_transition(report_type, current, target)

    if not can_trigger(report_type, current, role):
        cur = normalize_status(current)
        raise Unauthorized(
            f"Role {normalize_role(role) or 'UNKNOWN'} cannot move a report out of {cur}."
        )


# ===============================================================
# Introspection / startup validation
# ===============================================================

def validate_graph(family: str) -> List[str]:
    """
    Structural problems with one family's graph (empty list when sound):
    enum statuses without a rule, rules for unknown statuses, dangling
    next states, states reachable from DRAFT without a rule.
    """
    problems: List[str] = []
    graph = FAMILY_GRAPHS[family]
    enum_values = set(FAMILY_STATUSES[family].values)

    for st in sorted(enum_values - set(graph)):
        problems.append(f"{family}: status {st} has no transition rule")
    for st in sorted(set(graph) - enum_values):
        problems.append(f"{family}: rule for unknown status {st}")

    for st, rule in sorted(graph.items()):
        for nxt in sorted(rule.next_states - set(graph)):
            problems.append(f"{family}: {st} -> {nxt} points at a status with no rule")
        for role in sorted(rule.can_trigger | rule.editable_by):
            if role not in Role.values:
                problems.append(f"{family}: {st} references unknown role {role}")

    seen = set()
    stack = ["DRAFT"]
    while stack:
        st = stack.pop()
        if st in seen:
            continue
        seen.add(st)
        rule = graph.get(st)
        if rule is None:
            problems.append(f"{family}: reachable status {st} has no transition rule")
            continue
        stack.extend(rule.next_states)

    for st in sorted(CORRECTION_STATUSES[family] - set(graph)):
        problems.append(f"{family}: correction status {st} has no transition rule")

    return problems


def validate_graphs() -> Dict[str, List[str]]:
    return {str(family): validate_graph(family) for family in FAMILY_GRAPHS}


def workflow_definition(report_type) -> Dict[str, Any]:
    """
    Stable JSON-serializable definition for UI.
    """
    family = family_for(report_type)
    graph = FAMILY_GRAPHS[family]

    states: Dict[str, Any] = {}
    for st, rule in graph.items():
        states[str(st)] = {
            "next": sorted(rule.next_states),
            "can_trigger": sorted(rule.can_trigger),
            "editable_by": sorted(rule.editable_by),
            "terminal": rule.is_terminal,
            "needs_correction": st in CORRECTION_STATUSES[family],
            "requires_esign": requires_esign(report_type, None, st),
        }

    return {
        "report_type": str(report_type),
        "family": family,
        "initial": "DRAFT",
        "states": states,
    }


__all__ = [
    "TransitionRule",
    "MICRO_GRAPH",
    "CHEMISTRY_GRAPH",
    "FAMILY_GRAPHS",
    "CORRECTION_STATUSES",
    "TESTER_ROLES",
    "tester_role",
    "graph_for",
    "get_rule",
    "is_known_status",
    "is_legal_transition",
    "can_trigger",
    "is_terminal",
    "is_correction_status",
    "allowed_next_states",
    "allowed_transitions",
    "required_roles",
    "validate_transition",
    "validate_transition_with_role",
    "validate_graph",
    "validate_graphs",
    "workflow_definition",
]
