"""
DRF serializers for the projects API.
"""

from __future__ import annotations

from rest_framework import serializers

from projects.models import Application


class ApplySerializer(serializers.Serializer):
    cover_letter = serializers.CharField(required=False, allow_blank=True, default="")


class ApplicationSerializer(serializers.ModelSerializer):
    project_title = serializers.CharField(source="project.title", read_only=True)

    class Meta:
        model = Application
        fields = [
            "id",
            "project",
            "project_title",
            "status",
            "cover_letter",
            "credits_spent",
            "refunded",
            "refund_amount",
            "refund_reason",
            "refunded_at",
            "created_at",
        ]
        read_only_fields = fields
