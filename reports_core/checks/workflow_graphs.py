# reports_core/checks/workflow_graphs.py

from django.core.checks import Error, register

from reports_core.workflows.graphs import validate_graphs


@register()
def check_workflow_graphs(app_configs, **kwargs):
    """
    Django system check: every workflow graph must be closed and reachable.
    """
    errors = []

    for family, problems in sorted(validate_graphs().items()):
        for problem in problems:
            errors.append(
                Error(
                    f"Workflow graph '{family}' is invalid",
                    hint=problem,
                    id="reports_core.E001",
                )
            )

    return errors
