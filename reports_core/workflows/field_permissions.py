# reports_core/workflows/field_permissions.py
from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Union

from reports_core.workflows.graphs import can_trigger, get_rule, graph_for
from reports_core.workflows.roles import Role, normalize_role
from reports_core.workflows.statuses import ReportType, normalize_report_type, normalize_status

WILDCARD = "*"

AllowList = Union[FrozenSet[str], str]


def _fields(*names: str) -> FrozenSet[str]:
    return frozenset(names)


# ===============================================================
# Field groups per form
# ===============================================================

_MICRO_SAMPLE_INFO = _fields(
    "client",
    "dateSent",
    "typeOfTest",
    "sampleType",
    "formulaNo",
    "idNo",
    "description",
    "lotNo",
    "manufactureDate",
    "samplingDate",
)

_MICRO_RESULTS = _fields(
    "testSopNo",
    "tbc_dilution",
    "tbc_gram",
    "tbc_result",
    "tmy_dilution",
    "tmy_gram",
    "tmy_result",
    "pathogens",
    "dateTested",
    "preliminaryResults",
    "preliminaryResultsDate",
    "comments",
)

_STERILITY_SAMPLE_INFO = _fields(
    "client",
    "dateSent",
    "sampleType",
    "typeOfTest",
    "formulaNo",
    "description",
    "lotNo",
    "manufactureDate",
)

_STERILITY_RESULTS = _fields(
    "testSopNo",
    "dateTested",
    "ftm_turbidity",
    "ftm_observation",
    "ftm_result",
    "scdb_turbidity",
    "scdb_observation",
    "scdb_result",
    "comments",
)

_TESTER_SIGNOFF = _fields("testedBy", "testedDate")
_REVIEW_SIGNOFF = _fields("dateCompleted", "reviewedBy", "reviewedDate")


# ===============================================================
# Role -> editable fields, per report type
# ===============================================================

_MICRO_MIX_FIELDS: Mapping[str, AllowList] = {
    Role.SYSTEMADMIN: frozenset(),
    Role.ADMIN: WILDCARD,
    Role.FRONTDESK: _MICRO_SAMPLE_INFO,
    Role.MICRO: _MICRO_RESULTS | _TESTER_SIGNOFF,
    Role.CHEMISTRY: frozenset(),
    Role.QA: _MICRO_RESULTS | _REVIEW_SIGNOFF,
    Role.CLIENT: _MICRO_SAMPLE_INFO | _fields("tbc_spec", "tmy_spec", "pathogens"),
}

_STERILITY_FIELDS: Mapping[str, AllowList] = {
    Role.SYSTEMADMIN: frozenset(),
    Role.ADMIN: WILDCARD,
    Role.FRONTDESK: _STERILITY_SAMPLE_INFO,
    Role.MICRO: _STERILITY_RESULTS | _TESTER_SIGNOFF,
    Role.CHEMISTRY: frozenset(),
    Role.QA: _STERILITY_RESULTS | _REVIEW_SIGNOFF,
    Role.CLIENT: _STERILITY_SAMPLE_INFO,
}

_CHEMISTRY_MIX_FIELDS: Mapping[str, AllowList] = {
    Role.SYSTEMADMIN: frozenset(),
    Role.ADMIN: WILDCARD,
    Role.FRONTDESK: frozenset(),
    Role.MICRO: frozenset(),
    Role.CHEMISTRY: _fields(
        "dateReceived",
        "sop",
        "results",
        "dateTested",
        "initial",
        "comments",
        "actives",
    ) | _TESTER_SIGNOFF,
    Role.QA: _REVIEW_SIGNOFF,
    Role.CLIENT: _fields(
        "client",
        "dateSent",
        "sampleDescription",
        "testTypes",
        "sampleCollected",
        "lotBatchNo",
        "manufactureDate",
        "formulaId",
        "sampleSize",
        "numberOfActives",
        "sampleTypes",
        "comments",
        "actives",
        "formulaContent",
    ),
}

_COA_FIELDS: Mapping[str, AllowList] = {
    Role.SYSTEMADMIN: frozenset(),
    Role.ADMIN: WILDCARD,
    Role.FRONTDESK: frozenset(),
    Role.MICRO: frozenset(),
    Role.CHEMISTRY: _fields("dateReceived", "coaRows", "coaVerification", "comments") | _TESTER_SIGNOFF,
    Role.QA: _fields("reviewedBy", "reviewedDate"),
    Role.CLIENT: _fields(
        "client",
        "dateSent",
        "sampleDescription",
        "lotBatchNo",
        "manufactureDate",
        "formulaId",
        "sampleSize",
        "comments",
    ),
}

FIELD_PERMISSIONS: Mapping[str, Mapping[str, AllowList]] = {
    ReportType.MICRO_MIX: _MICRO_MIX_FIELDS,
    ReportType.MICRO_MIX_WATER: _MICRO_MIX_FIELDS,
    ReportType.STERILITY: _STERILITY_FIELDS,
    ReportType.CHEMISTRY_MIX: _CHEMISTRY_MIX_FIELDS,
    ReportType.COA: _COA_FIELDS,
}


# Changing one of these needs a recorded reason.
_BASE_CRITICAL = _REVIEW_SIGNOFF | _TESTER_SIGNOFF

CRITICAL_FIELDS: Mapping[str, FrozenSet[str]] = {
    ReportType.MICRO_MIX: _BASE_CRITICAL | _fields("tbc_result", "tmy_result"),
    ReportType.MICRO_MIX_WATER: _BASE_CRITICAL | _fields("tbc_result", "tmy_result"),
    ReportType.STERILITY: _BASE_CRITICAL | _fields("ftm_result", "scdb_result"),
    ReportType.CHEMISTRY_MIX: _BASE_CRITICAL,
    ReportType.COA: _BASE_CRITICAL,
}

# (role, status) pairs where the role may edit every field.
FULL_EDIT_STATUSES: Mapping[str, FrozenSet[str]] = {
    Role.CLIENT: frozenset({"DRAFT"}),
}


# ===============================================================
# Resolver
# ===============================================================

def field_allow_list(report_type, role) -> AllowList:
    r = normalize_role(role)
    if not r:
        return frozenset()
    return FIELD_PERMISSIONS[normalize_report_type(report_type)].get(r, frozenset())


def _full_edit(role: str, status: str) -> bool:
    return status in FULL_EDIT_STATUSES.get(role, frozenset())


def role_can_edit_in_status(role, report_type, status) -> bool:
    r = normalize_role(role)
    return bool(r) and r in get_rule(report_type, status).editable_by


def can_edit_field(role, report_type, status, field: str) -> bool:
    """
    Role must be an editor of the current status AND hold the field in its
    allow-list (or the wildcard).
    """
    if not role_can_edit_in_status(role, report_type, status):
        return False

    r = normalize_role(role)
    if _full_edit(r, normalize_status(status)):
        return True

    allowed = field_allow_list(report_type, r)
    return allowed == WILDCARD or field in allowed


def editable_fields(role, report_type, status) -> List[str]:
    """
    Fields the role may edit right now; ``["*"]`` means all of them.
    """
    if not role_can_edit_in_status(role, report_type, status):
        return []

    r = normalize_role(role)
    if _full_edit(r, normalize_status(status)):
        return [WILDCARD]

    allowed = field_allow_list(report_type, r)
    if allowed == WILDCARD:
        return [WILDCARD]
    return sorted(allowed)


def disallowed_fields(role, report_type, status, fields: Iterable[str]) -> List[str]:
    return [f for f in fields if not can_edit_field(role, report_type, status, f)]


def can_show_advance_action(
    role,
    report_type,
    status,
    fields_on_screen: Optional[Iterable[str]] = None,
) -> bool:
    """
    Offer the "update/advance" action only when the role may trigger a
    transition out of ``status`` and has at least one field it can legally
    change. Without ``fields_on_screen`` the role's whole allow-list counts.
    """
    if not can_trigger(report_type, status, role):
        return False

    if fields_on_screen is None:
        return bool(editable_fields(role, report_type, status))

    return any(can_edit_field(role, report_type, status, f) for f in fields_on_screen)


def critical_fields(report_type) -> FrozenSet[str]:
    return CRITICAL_FIELDS[normalize_report_type(report_type)]


def critical_fields_in(report_type, fields: Iterable[str]) -> List[str]:
    crit = critical_fields(report_type)
    return sorted(f for f in fields if f in crit)


def permission_matrix(report_type) -> Dict[str, Dict[str, List[str]]]:
    """
    status -> role -> editable fields, for every status of the report type.
    """
    out: Dict[str, Dict[str, List[str]]] = {}
    for st in graph_for(report_type):
        out[str(st)] = {
            str(role): editable_fields(role, report_type, st)
            for role in Role.values
            if editable_fields(role, report_type, st)
        }
    return out


__all__ = [
    "WILDCARD",
    "FIELD_PERMISSIONS",
    "CRITICAL_FIELDS",
    "field_allow_list",
    "role_can_edit_in_status",
    "can_edit_field",
    "editable_fields",
    "disallowed_fields",
    "can_show_advance_action",
    "critical_fields",
    "critical_fields_in",
    "permission_matrix",
]
