"""
tenancy_sdk.tier3_platform.resolver
─────────────────────────────────────
Per-request tenant resolution: extract → cache → fetch → populate.

    start → extracting → (cache hit | fetching) → resolved | not_found | error

The only suspend point is the backend call; extraction and cache access are
synchronous. Failed lookups are never cached, so the next request for the
same identifier tries again. resolve() never raises: every failure becomes
``None`` and a log line.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from tenancy_sdk.tier0_core.config import TenancyConfig, TenantStrategy
from tenancy_sdk.tier0_core.logging import get_logger
from tenancy_sdk.tier1_runtime.clock import now, timestamp_ms
from tenancy_sdk.tier1_runtime.context import SSRRequest
from tenancy_sdk.tier2_reliability.cache import TenantCache
from tenancy_sdk.tier3_platform.api_client import TenantFetcher
from tenancy_sdk.tier3_platform.extraction import extract_identifier
from tenancy_sdk.tier3_platform.multi_tenancy import VISIBILITY_KEY, Tenant

log = get_logger(__name__)

RESOLVED = "resolved"
NOT_FOUND = "not_found"
ERROR = "error"


@dataclass
class TenantResolution:
    """Detailed outcome of resolving one request."""
    tenant: Tenant | None
    outcome: str
    identifier: str | None = None
    from_cache: bool = False
    resolution_time_ms: int = 0


class TenantResolver:
    """
    Composes extraction, the cache and the backend fetcher.

    Usage::

        resolver = TenantResolver(strategy, fetcher, cache, client)
        tenant = await resolver.resolve(request)   # Tenant | None
    """

    def __init__(
        self,
        strategy: TenantStrategy,
        fetcher: TenantFetcher,
        cache: TenantCache,
        client: httpx.AsyncClient,
    ) -> None:
        self.strategy = strategy
        self.fetcher = fetcher
        self.cache = cache
        self.client = client

    async def resolve(self, request: SSRRequest) -> Tenant | None:
        return (await self.resolve_with_details(request)).tenant

    async def resolve_with_details(self, request: SSRRequest) -> TenantResolution:
        started = timestamp_ms()
        identifier: str | None = None
        try:
            identifier = extract_identifier(request, self.strategy)
            if not identifier:
                log.warning("tenant.identifier_missing", strategy=self.strategy.kind)
                return TenantResolution(tenant=None, outcome=NOT_FOUND)

            cached = self.cache.get(identifier)
            if cached is not None:
                log.debug("tenant.cache_hit", identifier=identifier, tenant_id=cached.id)
                return TenantResolution(
                    tenant=cached,
                    outcome=RESOLVED,
                    identifier=identifier,
                    from_cache=True,
                    resolution_time_ms=timestamp_ms() - started,
                )

            result = await self.fetcher.resolve_by_identifier(identifier, self.client)
            elapsed = timestamp_ms() - started

            if result.error is not None:
                log.error(
                    "tenant.resolution_failed",
                    identifier=identifier,
                    url=result.url,
                    error=result.error.detail,
                )
                return TenantResolution(
                    tenant=None, outcome=ERROR, identifier=identifier, resolution_time_ms=elapsed
                )

            if result.tenant is None:
                log.warning("tenant.not_found", identifier=identifier)
                return TenantResolution(
                    tenant=None, outcome=NOT_FOUND, identifier=identifier, resolution_time_ms=elapsed
                )

            self.cache.set(identifier, result.tenant)
            log.info(
                "tenant.resolved",
                identifier=identifier,
                tenant_id=result.tenant.id,
                resolution_time_ms=elapsed,
            )
            return TenantResolution(
                tenant=result.tenant,
                outcome=RESOLVED,
                identifier=identifier,
                resolution_time_ms=elapsed,
            )
        except Exception as exc:
            log.error(
                "tenant.resolution_crashed",
                identifier=identifier,
                error=str(exc),
                exc_info=True,
            )
            return TenantResolution(
                tenant=None,
                outcome=NOT_FOUND,
                identifier=identifier,
                resolution_time_ms=timestamp_ms() - started,
            )


def tenant_from_settings(config: TenancyConfig) -> Tenant | None:
    """
    Static single-tenant record built from TENANCY_TENANT_* settings.
    Returns None unless both tenant id and name are configured.
    """
    if not config.tenant_id or not config.tenant_name:
        return None

    stamp = now().isoformat()
    data: dict[str, Any] = {
        "id": config.tenant_id,
        "name": config.tenant_name,
        "identifier": "localhost",
        "parent_id": None,
        "is_active": True,
        "is_internal": False,
        "config": {
            "app": {"name": config.tenant_name, "url": config.api_url},
            "frontend": {"url": config.app_url},
            VISIBILITY_KEY: {
                "app": {"name": "public", "url": "public"},
                "frontend": {"url": "public"},
            },
        },
        "created_at": stamp,
        "updated_at": stamp,
        "parent": None,
    }
    return Tenant.model_validate(data)


__all__ = ["TenantResolver", "TenantResolution", "tenant_from_settings"]
