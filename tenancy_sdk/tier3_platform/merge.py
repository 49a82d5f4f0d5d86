"""
tenancy_sdk.tier3_platform.merge
──────────────────────────────────
Merge a resolved tenant into the two configuration views of a request:

  - the server-side RenderContext (full tenant, cookie names, app config)
  - the client payload's ``__APP_CONFIG__`` (public fields only)

Only fields the backend annotated ``public`` are merged, and the client
payload never receives the raw session cookie name, the visibility tree,
or any non-public config.

When no tenant was resolved, the configured not-found policy decides:
  - NotFound404:        raise TenantNotFoundError (host answers 404)
  - Redirect(url, code): raise TenantRedirect (host answers with a redirect)
  - Render:             continue rendering with ``tenant = None``
  - Custom(handler):    call handler(request, None), then continue
"""
from __future__ import annotations

import copy
import inspect
from collections.abc import Callable, MutableMapping
from dataclasses import dataclass
from typing import Any, ClassVar, Union

from tenancy_sdk.tier0_core.errors import TenantNotFoundError, TenantRedirect
from tenancy_sdk.tier0_core.http import HTTP
from tenancy_sdk.tier0_core.logging import bind_context, get_logger
from tenancy_sdk.tier1_runtime.context import (
    SSRRequest,
    ensure_render_context,
    get_app_config,
    set_app_config,
)
from tenancy_sdk.tier3_platform.cookies import session_cookie_name, xsrf_cookie_name
from tenancy_sdk.tier3_platform.multi_tenancy import Tenant, set_tenant
from tenancy_sdk.tier3_platform.visibility import filter_public_config

log = get_logger(__name__)

MergeHandler = Callable[[dict[str, Any], dict[str, Any]], None]

APP_FIELDS = ("name", "url", "env", "debug", "timezone", "locale", "fallback_locale")
FRONTEND_FIELDS = ("url", "custom_scheme")


# ── Not-found policies ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class NotFound404:
    kind: ClassVar[str] = "404"


@dataclass(frozen=True)
class Redirect:
    url: str
    code: int = HTTP.FOUND
    kind: ClassVar[str] = "redirect"


@dataclass(frozen=True)
class Render:
    kind: ClassVar[str] = "render"


@dataclass(frozen=True)
class Custom:
    handler: Callable[[SSRRequest, Tenant | None], Any]
    kind: ClassVar[str] = "custom"


NotFoundPolicy = Union[NotFound404, Redirect, Render, Custom]


# ── Default merge handler ─────────────────────────────────────────────────────

def default_merge_tenant_config(base: dict[str, Any], tenant_config: dict[str, Any]) -> None:
    """
    Copy known ``app`` and ``frontend`` fields from *tenant_config* onto *base*.
    A field is copied only when present in the source; other keys are ignored.
    """
    app = tenant_config.get("app")
    if isinstance(app, dict):
        if not isinstance(base.get("app"), dict):
            base["app"] = {"name": "", "url": ""}
        for name in APP_FIELDS:
            if name in app:
                base["app"][name] = app[name]

    frontend = tenant_config.get("frontend")
    if isinstance(frontend, dict):
        if not isinstance(base.get("frontend"), dict):
            base["frontend"] = {"url": ""}
        for name in FRONTEND_FIELDS:
            if name in frontend:
                base["frontend"][name] = frontend[name]


# ── Merge stage ───────────────────────────────────────────────────────────────

class ConfigMergeStage:
    """Apply a resolution outcome to a request's render context and client payload."""

    def __init__(
        self,
        on_tenant_not_found: NotFoundPolicy | None = None,
        merge_tenant_config: MergeHandler | None = None,
    ) -> None:
        self.on_tenant_not_found: NotFoundPolicy = on_tenant_not_found or NotFound404()
        self.merge_tenant_config: MergeHandler = merge_tenant_config or default_merge_tenant_config

    async def apply(
        self,
        request: SSRRequest,
        tenant: Tenant | None,
        bag: MutableMapping[str, Any],
    ) -> None:
        if tenant is None:
            await self.handle_not_found(request)
            return

        public_config = self.extract_public_config(tenant)
        self.build_render_context(request, tenant, public_config)
        self.build_public_config(request, tenant, public_config, bag)

    def extract_public_config(self, tenant: Tenant) -> dict[str, Any]:
        visibility = tenant.visibility
        if not visibility:
            log.warning("tenant.visibility_missing", tenant_id=tenant.id)
            return {}
        return filter_public_config(tenant.config_without_visibility(), visibility)

    def build_render_context(
        self,
        request: SSRRequest,
        tenant: Tenant,
        public_config: dict[str, Any],
    ) -> None:
        ctx = ensure_render_context(request)
        ctx.tenant = tenant
        set_tenant(tenant)
        bind_context(tenant_id=tenant.id)

        if not isinstance(ctx.app_config, dict):
            ctx.app_config = {}
        app_config = ctx.app_config

        self.merge_tenant_config(app_config, copy.deepcopy(public_config))

        if not isinstance(app_config.get("session"), dict):
            app_config["session"] = {}
        app_config["session"]["cookie"] = session_cookie_name(tenant)
        app_config["session"]["xsrf_cookie"] = xsrf_cookie_name(tenant)

        if isinstance(app_config.get("trace"), dict):
            app_config["trace"]["tenant"] = tenant.id

    def build_public_config(
        self,
        request: SSRRequest,
        tenant: Tenant,
        public_config: dict[str, Any],
        bag: MutableMapping[str, Any],
    ) -> None:
        config = get_app_config(bag)

        ctx_session = request.render_context.app_config.get("session") if request.render_context else None
        if isinstance(ctx_session, dict) and ctx_session.get("xsrf_cookie"):
            if not isinstance(config.get("session"), dict):
                config["session"] = {}
            config["session"]["xsrf_cookie"] = ctx_session["xsrf_cookie"]

        self.merge_tenant_config(config, copy.deepcopy(public_config))

        config["tenant"] = tenant.public_summary(copy.deepcopy(public_config))

        if isinstance(config.get("trace"), dict):
            config["trace"]["tenant"] = tenant.id

        # The session cookie name is server-only; the XSRF name must reach the browser.
        session = config.get("session")
        if isinstance(session, dict) and "cookie" in session:
            config["session"] = {k: v for k, v in session.items() if k != "cookie"}

        set_app_config(bag, config)

    async def handle_not_found(self, request: SSRRequest) -> None:
        policy = self.on_tenant_not_found

        if isinstance(policy, Redirect):
            raise TenantRedirect(policy.url, status_code=policy.code)

        if isinstance(policy, Render):
            ensure_render_context(request).tenant = None
            set_tenant(None)
            return

        if isinstance(policy, Custom):
            result = policy.handler(request, None)
            if inspect.isawaitable(result):
                await result
            return

        raise TenantNotFoundError()


__all__ = [
    "ConfigMergeStage", "default_merge_tenant_config", "MergeHandler",
    "NotFoundPolicy", "NotFound404", "Redirect", "Render", "Custom",
]
