"""
Celery configuration for the credits backend.

Redis is both the message broker and result backend. Tasks are
auto-discovered from every installed app's tasks.py; periodic schedules
live in the database (django-celery-beat) and are seeded by data
migrations, e.g. credits/migrations/0002_add_stale_order_expiry_schedule.py.

Usage:
    from credits.tasks import expire_stale_orders

    expire_stale_orders.delay()

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
