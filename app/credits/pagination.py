"""
Pagination classes for credits history endpoints.

Both classes answer with:

    {
        "transactions": [...],
        "pagination": {"total": 42, "page": 1, "limit": 20, "totalPages": 3}
    }

Query parameters:
    limit: Page size (clamped to max_page_size; invalid values fall back)
    page: 1-based page number
    offset: Row offset (user history only; takes precedence over page)

Design Decisions:
    - Out-of-range pages return an empty list instead of 404
    - An empty history is a normal page with total 0
"""

from __future__ import annotations

from collections import OrderedDict

from django.core.paginator import InvalidPage, Page
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


def _positive_int(value, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


class LedgerPagination(PageNumberPagination):
    """
    Page-number pagination for the user's own history, with a row offset.

    Default: 20 rows per page
    Maximum: 50 rows per page
    """

    page_size = 20
    max_page_size = 50
    page_size_query_param = "limit"
    offset_query_param = "offset"
    allow_offset = True
    results_key = "transactions"

    def get_offset(self, request) -> int | None:
        if not self.allow_offset:
            return None
        offset = request.query_params.get(self.offset_query_param)
        if offset is None:
            return None
        try:
            return max(int(offset), 0)
        except ValueError:
            return 0

    def get_page_number(self, request, paginator):
        return _positive_int(request.query_params.get(self.page_query_param), 1)

    def paginate_queryset(self, queryset, request, view=None):
        self.request = request
        page_size = self.get_page_size(request)
        paginator = self.django_paginator_class(queryset, page_size)

        offset = self.get_offset(request)
        if offset is not None:
            self.page = Page(
                list(queryset[offset : offset + page_size]),
                offset // page_size + 1,
                paginator,
            )
            return self.page.object_list

        page_number = self.get_page_number(request, paginator)
        try:
            self.page = paginator.page(page_number)
        except InvalidPage:
            # Past the last page
            self.page = Page([], page_number, paginator)
        return list(self.page)

    def get_pagination_data(self) -> dict:
        paginator = self.page.paginator
        return {
            "total": paginator.count,
            "page": self.page.number,
            "limit": paginator.per_page,
            "totalPages": paginator.num_pages if paginator.count else 0,
        }

    def get_paginated_response(self, data):
        return Response(
            OrderedDict(
                [
                    (self.results_key, data),
                    ("pagination", self.get_pagination_data()),
                ]
            )
        )

    def get_paginated_response_schema(self, schema):
        return {
            "type": "object",
            "properties": {
                self.results_key: schema,
                "pagination": {
                    "type": "object",
                    "properties": {
                        "total": {"type": "integer", "example": 42},
                        "page": {"type": "integer", "example": 1},
                        "limit": {"type": "integer", "example": self.page_size},
                        "totalPages": {"type": "integer", "example": 3},
                    },
                },
            },
        }


class AdminTransactionPagination(LedgerPagination):
    """
    Page-number pagination for the admin transaction list.

    Default: 50 rows per page
    Maximum: 100 rows per page
    """

    page_size = 50
    max_page_size = 100
    allow_offset = False
