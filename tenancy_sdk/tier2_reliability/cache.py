"""
tenancy_sdk.tier2_reliability.cache
───────────────────────────────────────
In-process tenant cache keyed by the extracted identifier (not tenant id).

Modes:
  - preload:  bulk-load every tenant at startup, entries never expire
  - lazy:     cache on resolution with a TTL, plus a periodic sweep
  - disabled: every operation is a no-op / miss

A lazy entry is stale from the instant ``now >= expires_at``: an entry set
with a 300 s TTL is already gone when read exactly 300 s later.

Each process owns its own cache; there is no cross-process coherence.
Entries are immutable Tenant snapshots, so a sweep racing a request's
get/set can at worst drop or re-add a whole entry.

Configure via: TENANCY_CACHE_MODE, TENANCY_CACHE_TTL
"""
from __future__ import annotations

import asyncio
import contextlib
import math
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from tenancy_sdk.tier0_core.errors import ConfigurationError, TenancyError
from tenancy_sdk.tier0_core.logging import get_logger
from tenancy_sdk.tier1_runtime.clock import Clock, get_clock

if TYPE_CHECKING:
    from tenancy_sdk.tier3_platform.multi_tenancy import Tenant

SWEEP_INTERVAL_SECONDS = 60.0

# Async callable returning every tenant, e.g. partial(fetcher.bulk_fetch, client)
BulkLoader = Callable[[], Awaitable["list[Tenant]"]]

log = get_logger(__name__)


class TenantCache:
    """
    Identifier → Tenant store with a mode-selected expiry policy.

    Usage::

        cache = TenantCache("preload")
        await cache.initialize(partial(fetcher.bulk_fetch, client))
        cache.set("acme.example.com", tenant)
        cache.get("acme.example.com")
        cache.destroy()                    # on shutdown
    """

    def __init__(
        self,
        mode: str = "lazy",
        ttl_seconds: int = 300,
        *,
        clock: Clock | None = None,
        sweep_interval: float = SWEEP_INTERVAL_SECONDS,
    ) -> None:
        self._mode = mode
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._store: dict[str, tuple[Tenant, float]] = {}  # key → (tenant, expires_at)
        self._sweeper: asyncio.Task | None = None

    @property
    def mode(self) -> str:
        return self._mode

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def _now(self) -> float:
        return (self._clock or get_clock()).time()

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def initialize(self, loader: BulkLoader | None = None) -> None:
        """
        Preload tenants through *loader* or start the expiry sweep, depending
        on mode. Preload mode requires a loader; the other modes ignore it.
        """
        if self._mode == "preload":
            if loader is None:
                raise ConfigurationError(
                    user_message="Preload cache mode requires a bulk tenant loader.",
                )
            await self._preload(loader)
        elif self._mode == "lazy":
            self._start_sweeper()

    async def _preload(self, loader: BulkLoader) -> None:
        try:
            tenants = await loader()
        except TenancyError as exc:
            # Startup continues with an empty cache; lookups fall through to the API.
            log.error("tenant.preload_failed", error=exc.detail)
            return

        for tenant in tenants:
            self._store[tenant.cache_key] = (tenant, math.inf)

        log.info("tenant.preloaded", count=len(tenants), mode=self._mode)

    def _start_sweeper(self) -> None:
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.get_running_loop().create_task(
                self._sweep_forever(), name="tenant-cache-sweep"
            )

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            self.sweep()

    def destroy(self) -> None:
        """Stop the sweep and drop every entry. Safe to call repeatedly."""
        if self._sweeper is not None:
            self._sweeper.cancel()
            self._sweeper = None
        self._store.clear()

    async def aclose(self) -> None:
        """Like destroy(), but waits for the sweep task to finish cancelling."""
        sweeper = self._sweeper
        self.destroy()
        if sweeper is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper

    @property
    def sweeping(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    # ── Operations ────────────────────────────────────────────────────────────

    def get(self, key: str) -> Tenant | None:
        if self._mode == "disabled":
            return None

        entry = self._store.get(key)
        if entry is None:
            return None

        tenant, expires_at = entry
        if self._mode == "lazy" and self._now() >= expires_at:
            self._store.pop(key, None)
            return None
        return tenant

    def set(self, key: str, tenant: Tenant) -> None:
        if self._mode == "disabled":
            return
        expires_at = math.inf if self._mode == "preload" else self._now() + self._ttl
        self._store[key] = (tenant, expires_at)

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()

    def sweep(self) -> int:
        """Remove every entry with ``now >= expires_at``. Returns how many were removed."""
        now = self._now()
        expired = [key for key, (_, expires_at) in list(self._store.items()) if now >= expires_at]
        for key in expired:
            self._store.pop(key, None)

        if expired:
            log.debug(
                "tenant.cache_swept",
                removed=len(expired),
                remaining=len(self._store),
            )
        return len(expired)


__all__ = ["TenantCache", "BulkLoader", "SWEEP_INTERVAL_SECONDS"]
