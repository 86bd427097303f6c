"""
DRF exception handler producing a consistent error envelope.

Domain errors (core.exceptions.BaseApplicationError) are rendered with their
own status code; DRF's built-in exceptions (authentication, permissions,
serializer validation, throttling) are reshaped into the same envelope:

    {"error": "...", "error_code": "...", "details": {...}}

Anything else is left to Django so it surfaces as a logged 500.

Configured in settings:
    REST_FRAMEWORK = {"EXCEPTION_HANDLER": "core.exception_handler.api_exception_handler"}
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from core.exceptions import BaseApplicationError

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


def api_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """Render application and DRF exceptions as the standard error envelope."""
    if isinstance(exc, BaseApplicationError):
        view = context.get("view")
        logger.info(
            "Request failed with application error",
            extra={
                "error_code": exc.error_code,
                "status": exc.http_status,
                "view": view.__class__.__name__ if view else None,
            },
        )
        return Response(exc.to_dict(), status=exc.http_status)

    response = drf_exception_handler(exc, context)
    if response is None:
        return None

    code = getattr(exc, "default_code", "error")
    if isinstance(response.data, dict) and set(response.data) == {"detail"}:
        message = str(response.data["detail"])
        details: Any = {}
    else:
        message = "Invalid request"
        details = response.data

    body: dict[str, Any] = {"error": message, "error_code": str(code).upper()}
    if details:
        body["details"] = details
    response.data = body
    return response
