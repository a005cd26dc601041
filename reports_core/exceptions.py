"""
reports_core.exceptions: DRF exception handler for workflow errors.

Register in ``settings.py``::

    REST_FRAMEWORK = {
        ...
        "EXCEPTION_HANDLER": "reports_core.exceptions.workflow_exception_handler",
    }

Workflow errors keep DRF's ``{"detail": ...}`` body and gain a stable
``code`` plus whatever context the error carries (``currentVersion``,
``missing``, ``fields``...).
"""

from __future__ import annotations

import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_default_handler

from reports_core.workflows.errors import WorkflowError

logger = logging.getLogger(__name__)


def workflow_exception_handler(exc: Exception, context: dict) -> Response | None:
    response = drf_default_handler(exc, context)
    if response is None or not isinstance(exc, WorkflowError):
        return response

    logger.warning(
        "Workflow error [%s] in %s: %s",
        exc.default_code,
        context.get("view", "unknown"),
        exc.detail,
    )

    codes = exc.get_codes()
    data = dict(response.data) if isinstance(response.data, dict) else {"detail": response.data}
    data["code"] = codes if isinstance(codes, str) else exc.default_code
    for key, value in exc.extra.items():
        if value is not None:
            data.setdefault(key, value)

    response.data = data
    return response
