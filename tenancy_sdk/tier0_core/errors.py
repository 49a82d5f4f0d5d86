"""
tenancy_sdk.tier0_core.errors
───────────────────────────────
Error taxonomy for tenant resolution. Every error carries a stable code,
a user-safe message and an HTTP status so the host runtime can translate
it into a response without inspecting internals.

Only three of these ever cross the render pipeline boundary:
  - TenantNotFoundError / TenantRedirect: the not-found disposition
  - VisibilityMissingError: a configuration defect, never suppressed
ResolutionTransportError is returned by the fetcher, not raised.

Optional capture: TENANCY_ERROR_BACKEND=sentry|none
"""
from __future__ import annotations

import os
from typing import Any


# ── Base error ────────────────────────────────────────────────────────────────

class TenancyError(Exception):
    """
    Base class for all tenancy errors. Every error has:
    - code: stable machine-readable string (snake_case)
    - user_message: safe to surface to end users
    - detail: internal context, never shown to users
    - status_code: HTTP status code the host should answer with
    """

    status_code: int = 500
    code: str = "tenancy_error"

    def __init__(
        self,
        code: str | None = None,
        user_message: str = "An unexpected error occurred.",
        detail: str | None = None,
        **metadata: Any,
    ) -> None:
        self.code = code or self.__class__.code
        self.user_message = user_message
        self.detail = detail or user_message
        self.metadata = metadata
        super().__init__(self.detail)
        _capture(self)

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.user_message,
            }
        }


# ── Typed error classes ───────────────────────────────────────────────────────

class ConfigurationError(TenancyError):
    """Misconfiguration detected at startup. Aborts boot."""
    status_code = 500
    code = "configuration_error"


class ValidationError(TenancyError):
    """Backend payload failed schema validation."""
    status_code = 422
    code = "validation_error"

    def __init__(
        self,
        code: str | None = None,
        user_message: str = "Validation failed.",
        fields: dict | None = None,
        **metadata: Any,
    ) -> None:
        self.fields = fields or {}
        super().__init__(code, user_message, **metadata)

    def to_dict(self) -> dict:
        d = super().to_dict()
        if self.fields:
            d["error"]["fields"] = self.fields
        return d


class ResolutionTransportError(TenancyError):
    """Network or protocol failure while calling the tenant backend."""
    status_code = 502
    code = "tenant_resolution_failed"


class TenantNotFoundError(TenancyError):
    """No tenant could be resolved for the request."""
    status_code = 404
    code = "tenant_not_found"

    def __init__(
        self,
        code: str | None = None,
        user_message: str = "Tenant not found",
        detail: str | None = None,
        **metadata: Any,
    ) -> None:
        super().__init__(code, user_message, detail, **metadata)


class TenantRedirect(TenancyError):
    """Signals the host to redirect a request whose tenant is unknown."""
    status_code = 302
    code = "tenant_redirect"

    def __init__(
        self,
        url: str,
        status_code: int = 302,
        user_message: str = "Redirecting to tenant not found page",
        **metadata: Any,
    ) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(None, user_message, **metadata)

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["error"]["location"] = self.url
        return d


class VisibilityMissingError(TenancyError):
    """Public filtering attempted without a visibility annotation tree."""
    status_code = 500
    code = "visibility_missing"

    def __init__(
        self,
        code: str | None = None,
        user_message: str = "Visibility metadata required to filter public fields",
        detail: str | None = None,
        **metadata: Any,
    ) -> None:
        super().__init__(code, user_message, detail, **metadata)


# ── Error capture backend ─────────────────────────────────────────────────────

def _capture(error: TenancyError) -> None:
    """Send error to configured backend. Called automatically by TenancyError.__init__."""
    backend = os.getenv("TENANCY_ERROR_BACKEND", "none").lower()
    if backend == "sentry":
        _capture_sentry(error)


def _capture_sentry(error: TenancyError) -> None:
    # Not-found and redirect are control flow, not faults.
    if error.status_code < 500:
        return
    try:
        import sentry_sdk
    except ImportError:
        return
    sentry_sdk.capture_exception(error)


def configure_sentry(dsn: str, **kwargs: Any) -> None:
    """Initialize Sentry — call once at application startup."""
    import sentry_sdk
    sentry_sdk.init(dsn=dsn, **kwargs)
    os.environ["TENANCY_ERROR_BACKEND"] = "sentry"


__all__ = [
    "TenancyError", "ConfigurationError", "ValidationError",
    "ResolutionTransportError", "TenantNotFoundError", "TenantRedirect",
    "VisibilityMissingError", "configure_sentry",
]
