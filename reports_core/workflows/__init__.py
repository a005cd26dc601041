# reports_core/workflows/__init__.py
"""
Report workflow engine: graphs, role/field permissions, e-sign gate and the
error taxonomy.

Only table-driven, model-free modules are re-exported here so the models can
import from this package. The stateful operations live in
``workflows.executor`` (transitions), ``workflows.corrections`` (ledger) and
``workflows.concurrency`` (version guard).
"""
from __future__ import annotations

from reports_core.workflows.errors import (
    ESignRejected,
    IllegalTransition,
    InvalidCorrection,
    MissingESignCredential,
    Unauthorized,
    UnknownStatusError,
    VersionConflict,
    WorkflowError,
    WorkflowTerminal,
)
from reports_core.workflows.esign import requires_esign
from reports_core.workflows.field_permissions import (
    can_edit_field,
    can_show_advance_action,
    editable_fields,
)
from reports_core.workflows.graphs import (
    allowed_next_states,
    allowed_transitions,
    can_trigger,
    is_correction_status,
    is_legal_transition,
    is_terminal,
    required_roles,
    validate_graphs,
    validate_transition,
    validate_transition_with_role,
    workflow_definition,
)
from reports_core.workflows.roles import Role, normalize_role, role_for_user
from reports_core.workflows.statuses import (
    ChemistryReportStatus,
    MicroReportStatus,
    ReportType,
    WorkflowFamily,
    family_for,
)

__all__ = [
    "Role",
    "ReportType",
    "WorkflowFamily",
    "MicroReportStatus",
    "ChemistryReportStatus",
    "family_for",
    "normalize_role",
    "role_for_user",
    "is_legal_transition",
    "can_trigger",
    "is_terminal",
    "is_correction_status",
    "allowed_next_states",
    "allowed_transitions",
    "required_roles",
    "validate_transition",
    "validate_transition_with_role",
    "validate_graphs",
    "workflow_definition",
    "can_edit_field",
    "can_show_advance_action",
    "editable_fields",
    "requires_esign",
    "WorkflowError",
    "IllegalTransition",
    "WorkflowTerminal",
    "Unauthorized",
    "VersionConflict",
    "MissingESignCredential",
    "ESignRejected",
    "InvalidCorrection",
    "UnknownStatusError",
]
