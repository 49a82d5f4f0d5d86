"""
tenancy_sdk.tier1_runtime.context
────────────────────────────────────
Per-request render state.

SSRRequest is the boundary view of an inbound request (host headers, path)
that the host runtime hands to the render pipeline. Its RenderContext is
created lazily on first need and lives exactly as long as the request; it
holds the resolved tenant and the server-side application config.

The client payload ("window bag") is a separate mapping serialized into
the page. Its ``__APP_CONFIG__`` entry is the only part this package
touches.
"""
from __future__ import annotations

import uuid
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from tenancy_sdk.tier1_runtime.clock import timestamp_ms

if TYPE_CHECKING:
    from tenancy_sdk.tier3_platform.multi_tenancy import Tenant

APP_CONFIG_KEY = "__APP_CONFIG__"


# ── Domain model ─────────────────────────────────────────────────────────────

@dataclass
class RenderContext:
    """Everything the render pipeline learns about one request."""
    start_time: int = field(default_factory=timestamp_ms)
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    tenant: Tenant | None = None
    app_config: dict[str, Any] = field(default_factory=dict)


@dataclass
class SSRRequest:
    """Framework-agnostic request as seen by tenant extraction."""
    path: str = "/"
    headers: Mapping[str, str] = field(default_factory=dict)
    hostname: str = ""
    render_context: RenderContext | None = None

    def __post_init__(self) -> None:
        self.headers = {k.lower(): v for k, v in self.headers.items()}

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower())

    @classmethod
    def from_scope(cls, scope: Mapping[str, Any]) -> "SSRRequest":
        """Build a request from an ASGI HTTP scope."""
        headers = {
            k.decode("latin-1"): v.decode("latin-1")
            for k, v in scope.get("headers", [])
        }
        server = scope.get("server") or ("", None)
        return cls(
            path=scope.get("path") or "/",
            headers=headers,
            hostname=server[0] or "",
        )


# ── Accessors ────────────────────────────────────────────────────────────────

def ensure_render_context(request: SSRRequest) -> RenderContext:
    """Return the request's RenderContext, creating it on first use."""
    if request.render_context is None:
        request.render_context = RenderContext()
    return request.render_context


def get_app_config(bag: MutableMapping[str, Any]) -> dict[str, Any]:
    """Return the client payload's app config, creating an empty one if absent."""
    config = bag.get(APP_CONFIG_KEY)
    if not isinstance(config, dict):
        config = {}
    return config


def set_app_config(bag: MutableMapping[str, Any], config: dict[str, Any]) -> None:
    bag[APP_CONFIG_KEY] = config


__all__ = [
    "APP_CONFIG_KEY", "RenderContext", "SSRRequest",
    "ensure_render_context", "get_app_config", "set_app_config",
]
