"""
tenancy_sdk.tier1_runtime.middleware
───────────────────────────────────────
ASGI middleware that runs tenant resolution before the app renders.

For every HTTP request it builds an SSRRequest and an empty client payload
("window bag"), exposes both on ``scope["state"]`` for the renderer, and
runs the pre-render hook. Not-found signals raised by the hook become
HTTP responses here: TenantNotFoundError → 404 JSON, TenantRedirect →
redirect with a Location header.

Supports: FastAPI / Starlette or any ASGI 3 app.
"""
from __future__ import annotations

import json
import time
from typing import TYPE_CHECKING, Any

from tenancy_sdk.tier0_core.errors import TenantNotFoundError, TenantRedirect
from tenancy_sdk.tier0_core.logging import bind_context, clear_context, get_logger
from tenancy_sdk.tier1_runtime.context import SSRRequest

if TYPE_CHECKING:
    from tenancy_sdk.tier3_platform.hooks import TenantRequestHooks

log = get_logger(__name__)

STATE_REQUEST_KEY = "ssr_request"
STATE_BAG_KEY = "window_bag"


class TenancyASGIMiddleware:
    """
    Usage (FastAPI / Starlette)::

        hooks = create_tenancy_hooks()
        app.add_middleware(TenancyASGIMiddleware, hooks=hooks)

        @app.get("/{path:path}")
        async def render(request: Request):
            bag = request.state.window_bag
            ...
    """

    def __init__(self, app: Any, hooks: TenantRequestHooks) -> None:
        self.app = app
        self.hooks = hooks

    async def __call__(self, scope: dict, receive: Any, send: Any) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = SSRRequest.from_scope(scope)
        bag: dict[str, Any] = {}
        state = scope.setdefault("state", {})
        state[STATE_REQUEST_KEY] = request
        state[STATE_BAG_KEY] = bag

        bind_context(path=scope.get("path", ""))
        start = time.perf_counter()
        status = "rendered"
        try:
            try:
                await self.hooks.on_pre_render(request, bag)
            except TenantRedirect as exc:
                status = "redirected"
                await _send(
                    send,
                    exc.status_code,
                    b"",
                    [(b"location", exc.url.encode("latin-1"))],
                )
                return
            except TenantNotFoundError as exc:
                status = "tenant_not_found"
                await _send(
                    send,
                    exc.status_code,
                    json.dumps(exc.to_dict()).encode(),
                    [(b"content-type", b"application/json")],
                )
                return

            await self.app(scope, receive, send)
        finally:
            ctx = request.render_context
            log.info(
                "request_completed",
                outcome=status,
                tenant_id=ctx.tenant.id if ctx and ctx.tenant else None,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
                method=scope.get("method", ""),
            )
            clear_context()


async def _send(send: Any, status: int, body: bytes, headers: list[tuple[bytes, bytes]]) -> None:
    await send({
        "type": "http.response.start",
        "status": status,
        "headers": headers + [(b"content-length", str(len(body)).encode())],
    })
    await send({"type": "http.response.body", "body": body})


__all__ = ["TenancyASGIMiddleware", "STATE_REQUEST_KEY", "STATE_BAG_KEY"]
