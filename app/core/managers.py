"""
Custom managers and querysets shared by domain models.

Classes:
    BaseQuerySet: QuerySet with time-range helpers
    SoftDeleteQuerySet: QuerySet aware of soft-deleted rows
    SoftDeleteManager: Manager that hides soft-deleted rows by default

Usage:
    class Application(SoftDeleteMixin, BaseModel):
        objects = SoftDeleteManager()
        all_objects = models.Manager()

    Application.objects.all()            # excludes deleted
    Application.objects.with_deleted()   # everything
"""

from __future__ import annotations

from datetime import date, datetime, time

from django.db import models
from django.utils import timezone


class BaseQuerySet(models.QuerySet):
    """QuerySet with helpers for created_at range filtering."""

    def created_between(
        self,
        start: datetime | date | None = None,
        end: datetime | date | None = None,
    ) -> BaseQuerySet:
        """
        Filter rows created within [start, end].

        Plain dates are widened to whole days: start at 00:00, end at 23:59:59.
        Either bound may be omitted.
        """
        qs = self
        if start is not None:
            if not isinstance(start, datetime):
                start = timezone.make_aware(datetime.combine(start, time.min))
            qs = qs.filter(created_at__gte=start)
        if end is not None:
            if not isinstance(end, datetime):
                end = timezone.make_aware(datetime.combine(end, time.max))
            qs = qs.filter(created_at__lte=end)
        return qs


class SoftDeleteQuerySet(BaseQuerySet):
    """QuerySet with soft delete operations."""

    def delete(self) -> int:
        """Soft delete every row in the queryset."""
        return self.update(is_deleted=True, deleted_at=timezone.now())

    def deleted(self) -> SoftDeleteQuerySet:
        return self.filter(is_deleted=True)

    def active(self) -> SoftDeleteQuerySet:
        return self.filter(is_deleted=False)


class SoftDeleteManager(models.Manager.from_queryset(SoftDeleteQuerySet)):
    """Default manager excluding soft-deleted rows. Proxies SoftDeleteQuerySet methods."""

    def get_queryset(self) -> SoftDeleteQuerySet:
        return SoftDeleteQuerySet(self.model, using=self._db).filter(is_deleted=False)

    def with_deleted(self) -> SoftDeleteQuerySet:
        return SoftDeleteQuerySet(self.model, using=self._db)
