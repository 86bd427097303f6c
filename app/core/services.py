"""
Base service layer patterns for business logic encapsulation.

This module provides foundational patterns for the service layer:
- ServiceResult: Result wrapper for operations whose failures are expected
  and should be collected rather than raised (bulk sweeps, best-effort steps)
- BaseService: Base class with logging and transaction helpers

Pattern Comparison:
    - ServiceResult: per-item outcomes that the caller aggregates
    - Exceptions (core.exceptions): request-level failures rendered by the
      API exception handler

Usage:
    from core.services import BaseService, ServiceResult

    class RefundService(BaseService):
        @classmethod
        def try_refund(cls, application) -> ServiceResult[CreditTransaction]:
            try:
                with cls.atomic():
                    txn = cls.issue_refund(application)
            except BaseApplicationError as exc:
                return cls.handle_exception(exc, "refund sweep", logging.WARNING)
            return ServiceResult.success(txn)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

from core.exceptions import BaseApplicationError

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code for client handling
        errors: Field-level errors for validation failures
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    @classmethod
    def from_exception(cls, exc: Exception, error_code: str | None = None) -> ServiceResult[T]:
        """
        Create a failed result from an exception.

        Application errors keep their own error code; other exceptions
        fall back to the upper-cased class name.
        """
        if isinstance(exc, BaseApplicationError):
            return cls(
                success=False,
                error=exc.message,
                error_code=error_code or exc.error_code,
            )
        return cls(
            success=False,
            error=str(exc),
            error_code=error_code or exc.__class__.__name__.upper(),
        )

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Design Notes:
        - Use @staticmethod or @classmethod (no instance state)
        - Raise core.exceptions for request-level failures
        - Use ServiceResult where the caller aggregates outcomes
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Logger named after the concrete service class."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        Thin wrapper around Django's transaction.atomic() that makes the
        transaction boundary explicit in service code.
        """
        with transaction.atomic():
            yield

    @classmethod
    def handle_exception(
        cls,
        exc: Exception,
        context: str = "",
        log_level: int = logging.ERROR,
    ) -> ServiceResult:
        """Log an exception and convert it to a failed ServiceResult."""
        message = f"{context}: {exc}" if context else str(exc)
        cls.get_logger().log(
            log_level,
            message,
            exc_info=log_level >= logging.ERROR,
        )
        return ServiceResult.from_exception(exc)

    @classmethod
    def validate_required(cls, **kwargs) -> ServiceResult | None:
        """
        Return a failure result when any given field is None or blank.

        Example:
            validation = cls.validate_required(reason=reason)
            if validation is not None:
                raise ValidationError(validation.error, details=validation.errors)
        """
        errors: dict[str, list[str]] = {}
        for field_name, value in kwargs.items():
            if value is None or (isinstance(value, str) and not value.strip()):
                errors[field_name] = ["This field is required."]
        if errors:
            return ServiceResult.failure(
                "Missing required fields",
                error_code="VALIDATION_ERROR",
                errors=errors,
            )
        return None
