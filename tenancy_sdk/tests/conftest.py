"""
tenancy_sdk test configuration.

All tests run against in-process fakes; no tenant backend required.
HTTP is served by httpx.MockTransport and time by a FrozenClock.
"""
from __future__ import annotations

import os
from typing import Any, Callable

import httpx
import pytest

# ── Force test defaults ────────────────────────────────────────────────────
# These must be set before any tenancy_sdk modules read configuration.

os.environ.setdefault("TENANCY_LOG_LEVEL", "DEBUG")
os.environ.setdefault("TENANCY_LOG_FORMAT", "console")
os.environ.setdefault("TENANCY_ERROR_BACKEND", "none")

GATEWAY_URL = "http://gateway.internal"


# ── Fixtures ───────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def reset_module_singletons():
    """
    Reset cached singletons between tests so no state bleeds across them:
    config cache, global clock, current tenant.
    """
    import tenancy_sdk.tier1_runtime.clock as _clock
    from tenancy_sdk.tier0_core.config import _reset_config
    from tenancy_sdk.tier3_platform.multi_tenancy import set_tenant

    orig_clock = _clock.get_clock()
    _reset_config()

    yield

    _clock.set_clock(orig_clock)
    _reset_config()
    set_tenant(None)


@pytest.fixture
def frozen_clock():
    from tenancy_sdk.tier1_runtime.clock import FrozenClock, set_clock
    clock = FrozenClock(1_700_000_000.0)
    set_clock(clock)
    return clock


def tenant_payload(**overrides: Any) -> dict[str, Any]:
    """Backend-shaped tenant record with public app/frontend fields."""
    data: dict[str, Any] = {
        "id": "t_acme",
        "identifier": "acme.example.com",
        "name": "Acme",
        "parent_id": None,
        "is_active": True,
        "is_internal": False,
        "config": {
            "app": {"name": "Acme", "url": "https://api.acme.example.com", "key": "s3cr3t"},
            "frontend": {"url": "https://acme.example.com"},
            "__visibility": {
                "app": {"name": "public", "url": "public", "key": "private"},
                "frontend": {"url": "public"},
            },
        },
        "created_at": "2025-01-01T00:00:00Z",
        "updated_at": "2025-01-01T00:00:00Z",
        "parent": None,
    }
    data.update(overrides)
    return data


@pytest.fixture
def tenant_data():
    """Factory for raw backend tenant dicts."""
    return tenant_payload


@pytest.fixture
def make_tenant():
    from tenancy_sdk.tier3_platform.multi_tenancy import Tenant

    def _make(**overrides: Any) -> Tenant:
        return Tenant.model_validate(tenant_payload(**overrides))
    return _make


@pytest.fixture
def mock_client():
    """
    Factory for an httpx.AsyncClient whose requests are answered by *handler*.
    Every request seen is appended to ``client.seen``.
    """
    def _make(
        handler: Callable[[httpx.Request], httpx.Response],
        base_url: str = GATEWAY_URL,
    ) -> httpx.AsyncClient:
        seen: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(_record), base_url=base_url)
        client.seen = seen  # type: ignore[attr-defined]
        return client
    return _make
