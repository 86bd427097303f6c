"""
Root pytest configuration.

Points pytest-django at the project settings; test settings overrides and
shared fixtures live in app/conftest.py and each app's tests/conftest.py.
"""

import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
