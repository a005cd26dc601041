# reports_core/workflows/esign.py
from __future__ import annotations

import logging
from typing import FrozenSet, Mapping, Optional

from django.conf import settings

from reports_core.workflows.errors import ESignRejected, MissingESignCredential
from reports_core.workflows.roles import normalize_role
from reports_core.workflows.statuses import (
    ChemistryReportStatus,
    MicroReportStatus,
    WorkflowFamily,
    family_for,
    normalize_status,
)

logger = logging.getLogger(__name__)

ANY_ROLE = None


# ===============================================================
# Gated transitions
# ===============================================================

# target status -> roles that must sign (ANY_ROLE = everyone)
ESIGN_TARGETS: Mapping[str, Mapping[str, Optional[FrozenSet[str]]]] = {
    WorkflowFamily.MICRO: {
        MicroReportStatus.UNDER_CLIENT_FINAL_REVIEW: ANY_ROLE,
        MicroReportStatus.LOCKED: ANY_ROLE,
    },
    WorkflowFamily.CHEMISTRY: {
        ChemistryReportStatus.UNDER_CLIENT_REVIEW: ANY_ROLE,
        ChemistryReportStatus.LOCKED: ANY_ROLE,
    },
}

# Admin overrides into these statuses may skip the signature.
OVERRIDE_ESIGN_EXEMPT: Mapping[str, FrozenSet[str]] = {
    WorkflowFamily.MICRO: frozenset({MicroReportStatus.UNDER_FINAL_TESTING_REVIEW}),
    WorkflowFamily.CHEMISTRY: frozenset(),
}


def requires_esign(report_type, role, to_status) -> bool:
    targets = ESIGN_TARGETS[family_for(report_type)]
    tgt = normalize_status(to_status)
    if tgt not in targets:
        return False
    roles = targets[tgt]
    if roles is ANY_ROLE or role is None:
        return True
    return normalize_role(role) in roles


def override_requires_esign(report_type, to_status) -> bool:
    return normalize_status(to_status) not in OVERRIDE_ESIGN_EXEMPT[family_for(report_type)]


def require_esign_fields(reason: Optional[str], credential: Optional[str]) -> None:
    """
    Presence check only. Runs before any write.
    """
    missing = []
    if not (reason or "").strip():
        missing.append("reason")
    if not credential:
        missing.append("eSignCredential")
    if missing:
        raise MissingESignCredential(
            "Electronic signature required: " + " and ".join(missing) + " must be provided.",
            missing=missing,
        )


def verify_esign(user, credential: str) -> None:
    """
    Re-authenticate the acting user against their password.
    """
    if not getattr(settings, "ESIGN_VERIFY_PASSWORD", True):
        return

    if not user or not user.check_password(credential):
        logger.warning(
            "E-signature rejected for user %s",
            getattr(user, "pk", None),
        )
        raise ESignRejected()


def check_esign(report_type, role, to_status, *, user, reason, credential) -> bool:
    """
    Enforce the gate for a graph transition. Returns True when the
    transition was gated (and signed).
    """
    if not requires_esign(report_type, role, to_status):
        return False
    require_esign_fields(reason, credential)
    verify_esign(user, credential)
    return True


__all__ = [
    "ESIGN_TARGETS",
    "OVERRIDE_ESIGN_EXEMPT",
    "requires_esign",
    "override_requires_esign",
    "require_esign_fields",
    "verify_esign",
    "check_esign",
]
