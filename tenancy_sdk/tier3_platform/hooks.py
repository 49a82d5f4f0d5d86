"""
tenancy_sdk.tier3_platform.hooks
──────────────────────────────────
Wires resolution and merging into the host's render pipeline.

TenantRequestHooks owns the tenant cache (and its sweep task) and exposes
an explicit start()/stop() lifecycle; the host calls on_pre_render() once
per server-rendered request.

Usage::

    hooks = create_tenancy_hooks(on_tenant_not_found=Redirect("/missing"))
    await hooks.start()
    ...
    await hooks.on_pre_render(request, bag)
    ...
    await hooks.stop()
"""
from __future__ import annotations

from collections.abc import MutableMapping
from functools import partial
from typing import Any

import httpx

from tenancy_sdk.tier0_core.config import TenancyConfig, load_config
from tenancy_sdk.tier0_core.errors import ConfigurationError
from tenancy_sdk.tier0_core.logging import get_logger
from tenancy_sdk.tier1_runtime.context import SSRRequest
from tenancy_sdk.tier2_reliability.cache import TenantCache
from tenancy_sdk.tier3_platform.api_client import TenantFetcher
from tenancy_sdk.tier3_platform.merge import ConfigMergeStage, MergeHandler, NotFoundPolicy
from tenancy_sdk.tier3_platform.multi_tenancy import Tenant
from tenancy_sdk.tier3_platform.resolver import TenantResolver, tenant_from_settings

log = get_logger(__name__)


class TenantRequestHooks:
    """Tenant resolution for every server-rendered request."""

    def __init__(
        self,
        config: TenancyConfig,
        client: httpx.AsyncClient,
        *,
        on_tenant_not_found: NotFoundPolicy | None = None,
        merge_tenant_config: MergeHandler | None = None,
        cache: TenantCache | None = None,
        owns_client: bool = False,
    ) -> None:
        self.config = config
        self.client = client
        self.fetcher = TenantFetcher(config.resolution_mode, config.endpoint_prefix)
        self.cache = cache if cache is not None else TenantCache(
            config.cache_mode, config.cache_ttl
        )
        self.resolver = TenantResolver(config.strategy, self.fetcher, self.cache, client)
        self.merger = ConfigMergeStage(on_tenant_not_found, merge_tenant_config)
        self.static_tenant: Tenant | None = tenant_from_settings(config)
        self._owns_client = owns_client
        self._started = False
        self._stopped = False

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def start(self) -> None:
        """
        Validate configuration and warm the cache. Raises ConfigurationError.
        Only a start that completes counts; a failed one may be retried.
        """
        if self._started:
            return

        if not self.config.enabled:
            self._started = True
            log.info("tenancy.disabled", static_tenant=bool(self.static_tenant))
            return

        self.validate()

        if self.cache.mode != "disabled":
            await self.cache.initialize(partial(self.fetcher.bulk_fetch, self.client))

        self._started = True

        log.info(
            "tenancy.started",
            resolution_mode=self.config.resolution_mode,
            strategy=self.config.strategy.kind,
            cache_mode=self.cache.mode,
        )

    def validate(self) -> None:
        if self.config.is_gateway and not str(self.client.base_url):
            raise ConfigurationError(
                user_message=(
                    "Gateway resolution mode requires TENANCY_INTERNAL_API_URL "
                    "(the HTTP client's base_url) to be configured."
                ),
            )
        if self.cache.mode == "preload" and not self.config.is_gateway:
            raise ConfigurationError(
                user_message="Preload cache mode requires gateway resolution mode.",
                resolution_mode=self.config.resolution_mode,
            )

    async def stop(self) -> None:
        """Stop the cache sweep and release owned resources. Idempotent."""
        if self._stopped:
            return
        self._stopped = True
        await self.cache.aclose()
        if self._owns_client:
            await self.client.aclose()
        log.info("tenancy.stopped")

    async def __aenter__(self) -> "TenantRequestHooks":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    # ── Render pipeline ───────────────────────────────────────────────────────

    async def on_pre_render(self, request: SSRRequest, bag: MutableMapping[str, Any]) -> None:
        """
        Resolve the request's tenant and merge it into both config views.
        May raise TenantNotFoundError or TenantRedirect per the not-found policy.
        """
        if not self.config.enabled:
            if self.static_tenant is not None:
                await self.merger.apply(request, self.static_tenant, bag)
            return

        tenant = await self.resolver.resolve(request)
        await self.merger.apply(request, tenant, bag)


def create_tenancy_hooks(
    client: httpx.AsyncClient | None = None,
    *,
    on_tenant_not_found: NotFoundPolicy | None = None,
    merge_tenant_config: MergeHandler | None = None,
    **overrides: Any,
) -> TenantRequestHooks:
    """
    Build hooks from TENANCY_* environment settings; keyword overrides win.

    Without *client*, an httpx.AsyncClient is created against
    TENANCY_INTERNAL_API_URL and closed again by stop().
    """
    config = load_config(**overrides)
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(
            base_url=config.internal_api_url or "",
            timeout=config.http_timeout,
        )
    return TenantRequestHooks(
        config,
        client,
        on_tenant_not_found=on_tenant_not_found,
        merge_tenant_config=merge_tenant_config,
        owns_client=owns_client,
    )


__all__ = ["TenantRequestHooks", "create_tenancy_hooks"]
