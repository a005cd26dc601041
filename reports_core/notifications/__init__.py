# reports_core/notifications/__init__.py
