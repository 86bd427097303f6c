"""
Helper functions for common infrastructure operations.

These utilities have no knowledge of domain concepts.

Usage:
    from core.helpers import generate_token, get_client_ip, request_audit_context

    order_id = f"order_{generate_token(12)}"
    ip = get_client_ip(request)
"""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from django.http import HttpRequest


def generate_token(length: int = 32) -> str:
    """
    Generate a cryptographically secure random hex token.

    Args:
        length: Number of bytes (resulting string is 2x length in hex)
    """
    return secrets.token_hex(length)


def get_client_ip(request: HttpRequest) -> str:
    """Extract client IP from request, honouring X-Forwarded-For."""
    x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if x_forwarded_for:
        # First IP in the chain is the original client
        return x_forwarded_for.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR", "")


def request_audit_context(request: HttpRequest | None) -> dict[str, str]:
    """
    Build the audit fields stored alongside ledger writes.

    Returns an empty dict when there is no request (tasks, signals).
    """
    if request is None:
        return {}
    return {
        "ip_address": get_client_ip(request),
        "user_agent": request.META.get("HTTP_USER_AGENT", "")[:255],
    }
