"""
Project-wide pytest configuration.

This module configures Django settings for tests and auto-marks tests by
filename. App-specific fixtures are defined in each app's tests/conftest.py.
"""

import os

import django
import pytest

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")


def pytest_configure():
    """Configure Django settings before tests run."""
    django.setup()

    from django.conf import settings

    # Disable throttling during tests to prevent rate limit failures.
    # Rates are nulled in place: views read this dict for their own scopes.
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []
    for scope in settings.REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"]:
        settings.REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"][scope] = None

    # Test client speaks plain HTTP; DEBUG is off without a .env file
    settings.SECURE_SSL_REDIRECT = False

    # No Redis in the test run
    settings.CACHES = {
        "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}
    }

    # Use fast password hasher for tests (PBKDF2 is too slow with 870K iterations)
    settings.PASSWORD_HASHERS = [
        "django.contrib.auth.hashers.MD5PasswordHasher",
    ]

    # New freelancers start at zero; bonus tests opt in via the settings fixture
    settings.CREDITS_SIGNUP_BONUS = 0


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_integration.py → e2e (full user journey workflows)
    - test_views.py, test_services.py, test_tasks.py, etc. → integration
    - test_models.py, test_serializers.py, test_policy.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    e2e_patterns = ["test_integration.py"]

    integration_patterns = [
        "test_views.py",
        "test_admin_views.py",
        "test_services.py",
        "test_tasks.py",
        "test_webhooks.py",
        "test_ledger.py",
        "test_purchase_service.py",
        "test_payment_service.py",
        "test_refund_service.py",
        "test_admin_service.py",
        "test_history_service.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_serializers.py",
        "test_managers.py",
        "test_signals.py",
        "test_adapters.py",
        "test_policy.py",
        "test_packages.py",
        "test_pagination.py",
        "test_state_transitions.py",
    ]

    for item in items:
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration", "e2e"}:
            continue

        filename = str(item.fspath).split("/")[-1]

        if any(pattern in filename for pattern in e2e_patterns):
            item.add_marker(pytest.mark.e2e)
        elif any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)
