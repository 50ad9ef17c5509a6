"""Request and response helpers shared by API views."""

from __future__ import annotations

from django.utils.translation import get_language_from_request  # type: ignore
from rest_framework.response import Response  # type: ignore

LOOPBACK = "127.0.0.1"


def get_client_ip(request) -> str:
    """Best-effort client address, normalised to IPv4 for the payment gateway."""

    x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if x_forwarded_for:
        ip = x_forwarded_for.split(",")[0].strip()
    else:
        ip = request.META.get("REMOTE_ADDR", "")

    if not ip or ip == "::1":
        return LOOPBACK
    if ip.startswith("::ffff:"):
        # IPv4-mapped IPv6 address
        mapped = ip[len("::ffff:"):]
        return mapped if "." in mapped else LOOPBACK
    return ip


def get_request_locale(request) -> str:
    return get_language_from_request(request) or "vi"


def api_response(status: str, message: str, *, data=None, code: str | None = None, http_status: int = 200):
    """``{status, message, code?, data}`` envelope used by every endpoint."""
    body = {"status": status, "message": message}
    if code:
        body["code"] = code
    body["data"] = data
    return Response(body, status=http_status)


def first_error_code(detail, default: str = "VALIDATION_ERROR") -> str:
    """First application error code (upper-case) found in DRF error details."""
    if isinstance(detail, dict):
        values = list(detail.values())
    elif isinstance(detail, (list, tuple)):
        values = list(detail)
    else:
        code = getattr(detail, "code", "")
        return code if code and code.isupper() else default

    for value in values:
        code = first_error_code(value, default="")
        if code:
            return code
    return default
