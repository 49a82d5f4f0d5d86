"""
tenancy_sdk.tier3_platform.api_client
────────────────────────────────────────
Tenant backend client. Resolves one identifier to a tenant record, or
lists every tenant for cache preloading.

Resolution modes:
  - gateway: relative ``/{prefix}/protected`` on the injected client's base_url
  - direct:  ``https://api.{identifier}/{prefix}/protected``

The identifier always travels in ``X-Tenant-Override`` so a gateway can
route on it even though its URL does not name the tenant.

Backed by: httpx (async HTTP). The client is injected and owned by the
caller; this module never opens or closes it.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from tenancy_sdk.tier0_core.errors import (
    ConfigurationError,
    ResolutionTransportError,
    TenancyError,
    ValidationError,
)
from tenancy_sdk.tier0_core.http import HTTP, TENANT_OVERRIDE_HEADER, unwrap_data, unwrap_list
from tenancy_sdk.tier0_core.logging import get_logger
from tenancy_sdk.tier1_runtime.validate import validate_payload
from tenancy_sdk.tier3_platform.multi_tenancy import Tenant

log = get_logger(__name__)


@dataclass
class ResolutionResult:
    """Outcome of one backend lookup. ``error`` set means transport/protocol failure."""
    tenant: Tenant | None = None
    error: ResolutionTransportError | None = None
    url: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class TenantFetcher:
    """
    Async client for the tenant backend.

    Usage::

        fetcher = TenantFetcher(resolution_mode="gateway", endpoint_prefix="tenant-info")
        async with httpx.AsyncClient(base_url="http://api.internal") as client:
            result = await fetcher.resolve_by_identifier("acme.example.com", client)
    """

    def __init__(
        self,
        resolution_mode: str = "gateway",
        endpoint_prefix: str = "tenant-info",
    ) -> None:
        self._mode = resolution_mode
        self._prefix = endpoint_prefix.strip("/")

    @property
    def resolution_mode(self) -> str:
        return self._mode

    def resolution_url(self, identifier: str) -> str:
        if self._mode == "gateway":
            return f"/{self._prefix}/protected"
        return f"https://api.{identifier}/{self._prefix}/protected"

    def bulk_url(self) -> str:
        return f"/{self._prefix}/cache"

    async def resolve_by_identifier(
        self, identifier: str, client: httpx.AsyncClient
    ) -> ResolutionResult:
        """
        Look up *identifier*. Never raises: failures come back in ``error``.
        A 404 or ``{"data": null}`` is an affirmative "no tenant" (no error).
        """
        url = self.resolution_url(identifier)
        try:
            response = await client.get(url, headers={TENANT_OVERRIDE_HEADER: identifier})
            if response.status_code == HTTP.NOT_FOUND:
                return ResolutionResult(tenant=None, url=url)
            response.raise_for_status()
            payload = unwrap_data(response.json())
            if payload is None:
                return ResolutionResult(tenant=None, url=url)
            tenant = validate_payload(Tenant, payload)
            return ResolutionResult(tenant=tenant, url=url)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError, TenancyError) as exc:
            return ResolutionResult(
                tenant=None,
                error=ResolutionTransportError(
                    user_message="Tenant API resolution failed.",
                    detail=f"GET {url} failed: {exc}",
                    identifier=identifier,
                    url=url,
                ),
                url=url,
            )

    async def bulk_fetch(self, client: httpx.AsyncClient) -> list[Tenant]:
        """
        List all tenants for preloading. Gateway mode only.
        Raises ResolutionTransportError on transport failure or an unexpected
        response shape. Records that fail validation are logged and skipped.
        """
        if self._mode != "gateway":
            raise ConfigurationError(
                user_message="Tenant preloading requires gateway resolution mode.",
                resolution_mode=self._mode,
            )

        url = self.bulk_url()
        try:
            response = await client.get(url)
            response.raise_for_status()
            body: Any = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ResolutionTransportError(
                user_message="Tenant preload request failed.",
                detail=f"GET {url} failed: {exc}",
                url=url,
            ) from exc

        items = unwrap_list(body)
        if items is None:
            raise ResolutionTransportError(
                user_message="Tenant preload response has an unexpected shape.",
                detail=f"GET {url} returned {type(body).__name__}, expected a list of tenants",
                url=url,
            )
        tenants: list[Tenant] = []
        for index, item in enumerate(items):
            try:
                tenants.append(validate_payload(Tenant, item))
            except ValidationError as exc:
                # Invalid records are skipped; valid ones still load.
                log.warning(
                    "tenant.preload_record_invalid",
                    index=index,
                    fields=exc.fields,
                )
        return tenants


__all__ = ["TenantFetcher", "ResolutionResult"]
