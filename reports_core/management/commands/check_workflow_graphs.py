# reports_core/management/commands/check_workflow_graphs.py

from django.core.management.base import BaseCommand, CommandError

from reports_core.workflows.graphs import FAMILY_GRAPHS, validate_graph


class Command(BaseCommand):
    help = "Validate the report workflow graphs (closure, roles, reachability)"

    def handle(self, *args, **options):
        self.stdout.write("Checking report workflow graphs…\n")

        errors_found = False

        for family in sorted(FAMILY_GRAPHS):
            problems = validate_graph(family)
            if problems:
                self.stderr.write(f"[ERROR] family='{family}'")
                for problem in problems:
                    self.stderr.write(f"        {problem}")
                errors_found = True
            else:
                self.stdout.write(
                    f"[OK] family='{family}' → {len(FAMILY_GRAPHS[family])} statuses"
                )

        if errors_found:
            self.stderr.write("\nWorkflow graph validation FAILED.")
            raise CommandError("One or more workflow graphs are invalid.")

        self.stdout.write("\nAll workflow graphs validated successfully.")
