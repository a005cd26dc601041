# reports_core/apps.py

from django.apps import AppConfig


class ReportsCoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "reports_core"
    verbose_name = "Lab reports"

    def ready(self):
        from . import signals  # noqa
        from .checks import workflow_graphs  # noqa
