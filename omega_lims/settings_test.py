# omega_lims/settings_test.py
from .settings import *  # noqa: F401,F403

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = False
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

APP_URL = "https://lims.test"
LAB_NOTIFY_TO = "lab@omega.test"
MICRO_NOTIFY_TO = ""
CHEMISTRY_NOTIFY_TO = "chemistry@omega.test"

WORKFLOW_EMAIL_NOTIFICATIONS = True
ESIGN_VERIFY_PASSWORD = True

# Let pytest's caplog see workflow logs.
LOGGING["loggers"]["reports_core"]["propagate"] = True  # noqa: F405
