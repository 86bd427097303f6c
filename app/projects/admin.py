from django.contrib import admin

from projects.models import Application, Project


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ["id", "title", "client", "status", "credits_required", "created_at"]
    list_filter = ["status"]
    search_fields = ["title", "client__email"]


@admin.register(Application)
class ApplicationAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "project",
        "freelancer",
        "status",
        "credits_spent",
        "refunded",
        "created_at",
    ]
    list_filter = ["status", "refunded"]
    search_fields = ["freelancer__email", "project__title"]
    readonly_fields = ["refund_amount", "refund_reason", "refunded_at"]
