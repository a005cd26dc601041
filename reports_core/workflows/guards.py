# reports_core/workflows/guards.py

from django.core.exceptions import PermissionDenied
from django.db import models


class ReportWriteGuardMixin(models.Model):
    """
    Block direct .save() changes to workflow-owned columns.

    Status and version only move through the workflow executor, which writes
    them with a guarded UPDATE. A plain save() that would change either one
    raises PermissionDenied.

    Escape hatch (fixtures, data repair):
      - pass _workflow_bypass=True to save(), OR
      - set instance._workflow_bypass = True
    """

    WORKFLOW_FIELDS = ("status", "version")
    WORKFLOW_BYPASS_KWARG = "_workflow_bypass"

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        bypass = bool(
            kwargs.pop(self.WORKFLOW_BYPASS_KWARG, False)
            or getattr(self, "_workflow_bypass", False)
        )

        if not bypass and self.pk is not None and self.WORKFLOW_FIELDS:
            stored = (
                self.__class__.objects.filter(pk=self.pk)
                .values(*self.WORKFLOW_FIELDS)
                .first()
            )
            if stored is not None:
                changed = [
                    name for name in self.WORKFLOW_FIELDS
                    if stored[name] != getattr(self, name, None)
                ]
                if changed:
                    raise PermissionDenied(
                        f"Direct modification of {', '.join(changed)} is forbidden. "
                        "Use workflow transition APIs."
                    )

        return super().save(*args, **kwargs)
