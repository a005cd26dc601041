# reports_core/workflows/errors.py
"""
Workflow error taxonomy.

Every user-facing failure is a DRF ``APIException`` with a stable ``default_code``
so callers can tell "fix your input" from "reload and retry" from
"not allowed". ``reports_core.exceptions.workflow_exception_handler`` adds the
code (and any ``extra`` payload) to the response body.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from rest_framework import status
from rest_framework.exceptions import APIException


class WorkflowError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Workflow operation rejected."
    default_code = "workflow_error"

    def __init__(self, detail=None, code=None, **extra: Any):
        super().__init__(detail=detail, code=code)
        self.extra: Dict[str, Any] = extra


class IllegalTransition(WorkflowError):
    default_detail = "This status change is not allowed from the current status."
    default_code = "illegal_transition"

    def __init__(self, detail=None, *, current: Optional[str] = None, target: Optional[str] = None, **extra):
        if detail is None and current and target:
            detail = f"Invalid transition: {current} -> {target}"
        if current:
            extra.setdefault("currentStatus", current)
        if target:
            extra.setdefault("targetStatus", target)
        super().__init__(detail, **extra)


class WorkflowTerminal(IllegalTransition):
    default_detail = "The report workflow is terminal and cannot be changed."
    default_code = "workflow_terminal"

    def __init__(self, detail=None, *, current: Optional[str] = None, **extra):
        if detail is None and current:
            detail = f"Report is in terminal state '{current}' and cannot be modified."
        super().__init__(detail, current=current, **extra)


class Unauthorized(WorkflowError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You are not allowed to perform this action."
    default_code = "unauthorized"


class VersionConflict(WorkflowError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "This report was updated by someone else. Please reload and try again."
    default_code = "version_conflict"

    def __init__(self, detail=None, *, expected_version: Optional[int] = None, current_version: Optional[int] = None):
        super().__init__(
            detail,
            expectedVersion=expected_version,
            currentVersion=current_version,
        )
        self.expected_version = expected_version
        self.current_version = current_version


class MissingESignCredential(WorkflowError):
    default_detail = "Electronic signature required: provide a reason and your password."
    default_code = "missing_esign_credential"


class ESignRejected(WorkflowError):
    default_detail = "Electronic signature failed."
    default_code = "esign_rejected"


class InvalidCorrection(WorkflowError):
    default_detail = "Invalid correction request."
    default_code = "invalid_correction"


class UnknownStatusError(RuntimeError):
    """
    A status that is not part of the report type's graph reached the engine.
    This is a programming error (bad data or a stale enum), never user input.
    """


__all__ = [
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
