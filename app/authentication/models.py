"""
Authentication models.

This module defines the User model used across the platform. Identity and
role assignment are owned by this app; the credits app only reads `role`.

Related files:
    - managers.py: Custom user manager for email-based creation
    - credits/policy.py: Role-based access table for credits endpoints
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models

from authentication.managers import UserManager


class UserRole(models.TextChoices):
    """
    Marketplace roles.

    Freelancer roles (videographer, video editor) spend credits to apply
    to projects. Clients post projects. Admin roles manage the platform.
    """

    VIDEOGRAPHER = "videographer", "Videographer"
    VIDEO_EDITOR = "video_editor", "Video Editor"
    CLIENT = "client", "Client"
    ADMIN = "admin", "Admin"
    SUPER_ADMIN = "super_admin", "Super Admin"


FREELANCER_ROLES = frozenset([UserRole.VIDEOGRAPHER, UserRole.VIDEO_EDITOR])
ADMIN_ROLES = frozenset([UserRole.ADMIN, UserRole.SUPER_ADMIN])


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Fields:
        email: Primary identifier, unique, used for login
        first_name / last_name: Display name
        role: Marketplace role, drives access to credits endpoints
        email_verified: Whether the user's email has been verified
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created
        updated_at: When the user record was last modified

    Usage:
        user = User.objects.create_user(
            email="editor@example.com",
            password="securepassword",
            role=UserRole.VIDEO_EDITOR,
        )
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )
    first_name = models.CharField(max_length=150, blank=True)
    last_name = models.CharField(max_length=150, blank=True)
    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.CLIENT,
        db_index=True,
        help_text="Marketplace role assigned at registration",
    )

    email_verified = models.BooleanField(
        default=False,
        help_text="Whether the user's email has been verified",
    )
    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    def get_full_name(self):
        """Return "first last", falling back to the email address."""
        full_name = f"{self.first_name} {self.last_name}".strip()
        return full_name or self.email

    def get_short_name(self):
        return self.first_name or self.email.split("@")[0]

    @property
    def is_freelancer(self) -> bool:
        return self.role in FREELANCER_ROLES

    @property
    def is_platform_admin(self) -> bool:
        return self.role in ADMIN_ROLES
