"""
Credits app configuration.

This app owns the freelancer credit economy:
- Per-user credit accounts and the immutable transaction ledger
- Credit package catalog and Stripe-backed purchases
- Refunds of credits spent on project applications
- Admin adjustments, sweeps, history and analytics
"""

from django.apps import AppConfig


class CreditsConfig(AppConfig):
    """Configuration for the credits application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "credits"
    verbose_name = "Credits"

    def ready(self):
        # Connect the signup bonus receiver
        from credits import signals  # noqa: F401
