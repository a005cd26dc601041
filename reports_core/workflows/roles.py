# reports_core/workflows/roles.py
from __future__ import annotations

from typing import Dict, Optional

from django.db import models


class Role(models.TextChoices):
    SYSTEMADMIN = "SYSTEMADMIN", "System admin"
    ADMIN = "ADMIN", "Admin"
    FRONTDESK = "FRONTDESK", "Front desk"
    MICRO = "MICRO", "Microbiology"
    CHEMISTRY = "CHEMISTRY", "Chemistry"
    QA = "QA", "Quality assurance"
    CLIENT = "CLIENT", "Client"


ALL_ROLES = frozenset(Role.values)

# Lab staff who may hold the admin status override.
OVERRIDE_ROLES = frozenset({Role.ADMIN, Role.SYSTEMADMIN, Role.QA})


# ===============================================================
# Role normalization
# ===============================================================

ROLE_ALIASES: Dict[str, str] = {
    "SYSTEMADMIN": Role.SYSTEMADMIN,
    "SYSTEM_ADMIN": Role.SYSTEMADMIN,
    "SYSADMIN": Role.SYSTEMADMIN,
    "ADMIN": Role.ADMIN,
    "ADMINISTRATOR": Role.ADMIN,
    "SUPERUSER": Role.ADMIN,
    "FRONTDESK": Role.FRONTDESK,
    "FRONT_DESK": Role.FRONTDESK,
    "RECEPTION": Role.FRONTDESK,
    "MICRO": Role.MICRO,
    "MICROBIOLOGY": Role.MICRO,
    "CHEMISTRY": Role.CHEMISTRY,
    "CHEM": Role.CHEMISTRY,
    "QA": Role.QA,
    "QUALITY_ASSURANCE": Role.QA,
    "CLIENT": Role.CLIENT,
    "CUSTOMER": Role.CLIENT,
}


def normalize_role(value) -> Optional[str]:
    """
    Map free-form role strings ("front-desk", "Quality Assurance") onto a Role.
    Returns None for anything that is not a known role.
    """
    raw = str(value or "").strip().upper().replace("-", "_").replace(" ", "_")
    if not raw:
        return None
    role = ROLE_ALIASES.get(raw)
    return str(role) if role else None


def role_for_user(user) -> Optional[str]:
    """
    Workflow role of an authenticated user.

    Profile role wins; a superuser without a profile acts as ADMIN.
    """
    if not user or not getattr(user, "is_authenticated", False):
        return None

    profile = getattr(user, "report_profile", None)
    role = normalize_role(getattr(profile, "role", None)) if profile else None
    if role:
        return role

    if getattr(user, "is_superuser", False):
        return Role.ADMIN.value
    return None


def client_code_for_user(user) -> Optional[str]:
    profile = getattr(user, "report_profile", None)
    code = (getattr(profile, "client_code", "") or "").strip().upper()
    return code or None
