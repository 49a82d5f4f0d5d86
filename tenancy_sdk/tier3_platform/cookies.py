"""
tenancy_sdk.tier3_platform.cookies
────────────────────────────────────
Cookie names per tenant, matching the backend's conventions.

Priority: name declared in tenant config → ``tenant_{id}_…`` → global default.
"""
from __future__ import annotations

from typing import Any

from tenancy_sdk.tier3_platform.multi_tenancy import Tenant

DEFAULT_SESSION_COOKIE = "laravel_session"
DEFAULT_XSRF_COOKIE = "XSRF-TOKEN"


def _custom_name(tenant: Tenant | None, section: str) -> str | None:
    if tenant is None:
        return None
    block: Any = tenant.config.get(section)
    if isinstance(block, dict) and block.get("name"):
        return str(block["name"])
    return None


def session_cookie_name(tenant: Tenant | None) -> str:
    custom = _custom_name(tenant, "session")
    if custom:
        return custom
    if tenant is not None and tenant.id:
        return f"tenant_{tenant.id}_session"
    return DEFAULT_SESSION_COOKIE


def xsrf_cookie_name(tenant: Tenant | None) -> str:
    custom = _custom_name(tenant, "xsrf")
    if custom:
        return custom
    if tenant is not None and tenant.id:
        return f"tenant_{tenant.id}_xsrf"
    return DEFAULT_XSRF_COOKIE


__all__ = ["session_cookie_name", "xsrf_cookie_name"]
