import pytest


@pytest.fixture(autouse=True)
def _disable_security_redirects(settings):
    # Prevent SecurityMiddleware from forcing https://testserver/...
    settings.SECURE_SSL_REDIRECT = False

    # Prevent “secure cookie” behavior from interfering with session auth in tests
    settings.SESSION_COOKIE_SECURE = False
    settings.CSRF_COOKIE_SECURE = False

    settings.SECURE_HSTS_SECONDS = 0


@pytest.fixture(autouse=True)
def _workflow_defaults(settings):
    # Feature flags start from their production defaults in every test.
    settings.WORKFLOW_EMAIL_NOTIFICATIONS = True
    settings.ESIGN_VERIFY_PASSWORD = True
