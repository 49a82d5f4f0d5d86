"""
tenancy_sdk.tier0_core.http
─────────────────────────────
HTTP primitives shared by the fetcher and the middleware: status codes,
wire header names, and the backend response envelope.

The tenant backend wraps payloads as ``{"data": ...}``. Single-tenant
resolution also tolerates a bare object; bulk listing accepts a wrapped
list or a bare list and nothing else.
"""
from __future__ import annotations

from typing import Any


# ── Status code constants ──────────────────────────────────────────────────

class HTTP:
    """HTTP status codes used by the tenancy pipeline."""

    OK = 200

    MOVED_PERMANENTLY = 301
    FOUND = 302
    SEE_OTHER = 303
    TEMPORARY_REDIRECT = 307
    PERMANENT_REDIRECT = 308

    NOT_FOUND = 404

    INTERNAL_SERVER_ERROR = 500
    BAD_GATEWAY = 502


# ── Wire headers ───────────────────────────────────────────────────────────

TENANT_OVERRIDE_HEADER = "X-Tenant-Override"
FORWARDED_HOST_HEADER = "x-forwarded-host"
HOST_HEADER = "host"


# ── Response envelope ─────────────────────────────────────────────────────

def unwrap_data(body: Any) -> Any:
    """
    Return ``body["data"]`` for an enveloped response, else the body itself.

    ``{"data": None}`` unwraps to ``None`` (the backend's "no such tenant").
    """
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


def unwrap_list(body: Any) -> list[Any] | None:
    """
    Return the list carried by ``{"data": [...]}`` or a bare list.
    Returns None for any other shape so the caller can reject it.
    """
    if isinstance(body, list):
        return body
    if isinstance(body, dict) and isinstance(body.get("data"), list):
        return body["data"]
    return None


__all__ = [
    "HTTP", "TENANT_OVERRIDE_HEADER", "FORWARDED_HOST_HEADER", "HOST_HEADER",
    "unwrap_data", "unwrap_list",
]
