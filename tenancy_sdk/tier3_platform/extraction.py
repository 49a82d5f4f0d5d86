"""
tenancy_sdk.tier3_platform.extraction
───────────────────────────────────────
Derive a tenant identifier from a request.

Strategies:
  - domain:    full host (x-forwarded-host → host → resolved hostname), port stripped
  - subdomain: host label at a given level, only when the host has a subdomain
  - path:      non-empty path segment at a given index
  - header:    value of a named header

Pure functions: no I/O, no mutation. ``None`` means no identifier could be
derived, which is a normal outcome, not an error.
"""
from __future__ import annotations

from tenancy_sdk.tier0_core.config import (
    DomainStrategy,
    HeaderStrategy,
    PathStrategy,
    SubdomainStrategy,
    TenantStrategy,
)
from tenancy_sdk.tier0_core.http import FORWARDED_HOST_HEADER, HOST_HEADER
from tenancy_sdk.tier1_runtime.context import SSRRequest


def extract_identifier(request: SSRRequest, strategy: TenantStrategy) -> str | None:
    """Return the tenant identifier for *request* under *strategy*, or None."""
    if isinstance(strategy, DomainStrategy):
        return extract_domain(request) or None
    if isinstance(strategy, SubdomainStrategy):
        return extract_subdomain(request, strategy.level)
    if isinstance(strategy, PathStrategy):
        return extract_path_segment(request, strategy.index)
    if isinstance(strategy, HeaderStrategy):
        return extract_header(request, strategy.name)
    return None


def extract_domain(request: SSRRequest) -> str:
    forwarded = request.header(FORWARDED_HOST_HEADER)
    if forwarded:
        # Proxies may append hops: "client.example.com, proxy.internal"
        return _strip_port(forwarded.split(",")[0].strip())

    host = request.header(HOST_HEADER)
    if host:
        return _strip_port(host)

    return request.hostname


def extract_subdomain(request: SSRRequest, level: int) -> str | None:
    labels = extract_domain(request).split(".")

    # "app.com" has no subdomain to speak of
    if len(labels) <= 2:
        return None

    if 0 <= level < len(labels) - 2:
        return labels[level] or None
    return None


def extract_path_segment(request: SSRRequest, index: int) -> str | None:
    segments = [s for s in request.path.split("?")[0].split("/") if s]
    if 0 <= index < len(segments):
        return segments[index]
    return None


def extract_header(request: SSRRequest, name: str) -> str | None:
    return request.header(name) or None


def _strip_port(host: str) -> str:
    return host.split(":")[0]


__all__ = [
    "extract_identifier", "extract_domain", "extract_subdomain",
    "extract_path_segment", "extract_header",
]
