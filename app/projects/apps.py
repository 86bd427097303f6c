"""
Projects app configuration.

Clients post projects; freelancers spend credits to apply to them.
"""

from django.apps import AppConfig


class ProjectsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "projects"
    verbose_name = "Projects"
