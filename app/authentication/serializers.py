"""
Serializers for the authentication app.

- UserSerializer: read-only user representation (also embedded by credits)
- TokenObtainSerializer: simplejwt pair serializer with role claims
"""

from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from authentication.models import User


class UserSerializer(serializers.ModelSerializer):
    """Serializer for User model (read operations)."""

    full_name = serializers.CharField(source="get_full_name", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "full_name",
            "role",
            "email_verified",
            "date_joined",
        ]
        read_only_fields = fields


class TokenObtainSerializer(TokenObtainPairSerializer):
    """Issue access/refresh tokens carrying the user's role as a claim."""

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token["role"] = user.role
        return token
