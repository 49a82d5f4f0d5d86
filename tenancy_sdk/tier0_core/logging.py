"""
tenancy_sdk.tier0_core.logging
────────────────────────────────
Structured logs for the resolution pipeline: dotted event names
(``tenant.cache_hit``, ``tenant.not_found``) with keyword fields, request
context merged in from contextvars, cookie values and credentials redacted.

Output goes straight to stdout through structlog's own logger; the stdlib
root logger is left alone so host applications keep their handlers.

Configure via: TENANCY_LOG_LEVEL, TENANCY_LOG_FORMAT=json|console
"""
from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog


# ── Redaction processor ───────────────────────────────────────────────────────

# Cookie *names* (session_cookie, xsrf_cookie) are fine to log; raw cookie
# headers and credentials are not.
_REDACT_KEYS = frozenset({
    "authorization", "cookie", "set-cookie", "x-xsrf-token",
    "password", "secret", "token", "api_key", "access_token", "client_secret",
})

_REDACTED = "[REDACTED]"


def _redact_processor(
    logger: Any, method: str, event_dict: dict
) -> dict:
    """Mask sensitive fields before rendering."""
    for key in list(event_dict.keys()):
        if key.lower() in _REDACT_KEYS:
            event_dict[key] = _REDACTED
    return event_dict


# ── Configuration ─────────────────────────────────────────────────────────────

_configured = False


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """
    (Re)configure structlog. Arguments override TENANCY_LOG_LEVEL and
    TENANCY_LOG_FORMAT; get_logger() calls this once with neither.
    """
    global _configured
    level_name = (level or os.getenv("TENANCY_LOG_LEVEL", "INFO")).upper()
    log_format = (fmt or os.getenv("TENANCY_LOG_FORMAT", "json")).lower()

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _redact_processor,
    ]
    if log_format == "console":
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level_name, logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stdout),
        cache_logger_on_first_use=True,
    )
    _configured = True


# ── Public API ────────────────────────────────────────────────────────────────

def get_logger(name: str | None = None) -> Any:
    """
    Return a structured logger tagged with *name*.

    Usage:
        log = get_logger(__name__)
        log.info("tenant.resolved", identifier="acme.example.com", tenant_id="t_1")
    """
    if not _configured:
        configure_logging()
    return structlog.get_logger().bind(logger=name or __name__)


def bind_context(**kwargs: Any) -> None:
    """Attach fields to every log line in the current request (e.g. tenant_id)."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


__all__ = ["get_logger", "configure_logging", "bind_context", "clear_context"]
