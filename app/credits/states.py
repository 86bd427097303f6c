"""
Choice enums for credits models.

CreditOrder States:
    initiated → completed (payment confirmed, credits added once)
    initiated → failed (gateway failure, payment failure or expiry)

Both terminal states are final.
"""

from django.db import models


class CreditOrderStatus(models.TextChoices):
    """States for the CreditOrder lifecycle (django-fsm)."""

    INITIATED = "initiated", "Initiated"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"


class TransactionKind(models.TextChoices):
    """
    Kinds of ledger transaction.

    Positive deltas: PURCHASE, REFUND, SIGNUP_BONUS
    Negative deltas: USAGE
    Either sign: ADMIN_ADJUSTMENT
    """

    PURCHASE = "purchase", "Purchase"
    USAGE = "usage", "Usage"
    REFUND = "refund", "Refund"
    ADMIN_ADJUSTMENT = "admin_adjustment", "Admin Adjustment"
    SIGNUP_BONUS = "signup_bonus", "Signup Bonus"


class ReferenceType(models.TextChoices):
    """What a transaction's reference_id points at."""

    ORDER = "order", "Order"
    APPLICATION = "application", "Application"
    ADMIN = "admin", "Admin"
    SIGNUP = "signup", "Signup"


class RefundReason(models.TextChoices):
    """
    Why credits spent on an application are returned.

    WITHDRAWAL is time-windowed; every other reason refunds in full.
    """

    WITHDRAWAL = "withdrawal", "Withdrawal"
    PROJECT_CANCELLED = "project_cancelled", "Project Cancelled"
    PROJECT_EXPIRED = "project_expired", "Project Expired"
    APPLICATION_REJECTED = "application_rejected", "Application Rejected"
    TECHNICAL_ERROR = "technical_error", "Technical Error"
    ADMIN_REFUND = "admin_refund", "Admin Refund"
    DUPLICATE = "duplicate", "Duplicate"
