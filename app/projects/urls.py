"""
URL configuration for the projects API.

Mounted at /api/v1/projects/ in config/urls.py.
"""

from django.urls import path

from projects import views

app_name = "projects"

urlpatterns = [
    path("<int:project_id>/apply/", views.ApplyToProjectView.as_view(), name="apply"),
    path(
        "applications/<int:application_id>/withdraw/",
        views.WithdrawApplicationView.as_view(),
        name="withdraw",
    ),
]
