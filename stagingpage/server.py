"""
HTTP surface for the staging store.

Routes:
    GET    /test-mode?resource=...&id=...&limit=...&initialize=...&force=...
    POST   /test-mode?resource=...
    PATCH  /test-mode?resource=...&id=...
    DELETE /test-mode?resource=...&id=...
    GET    /demo/cleanup   (POST too, for manual triggers)
    GET    /health
"""

from __future__ import annotations

import hmac
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from aiohttp import web

from stagingpage.errors import InvalidResourceError, NotFoundError, UpstreamError
from stagingpage.live_client import StatuspageClient
from stagingpage.models import StagingSettings
from stagingpage.router import ResourceRouter
from stagingpage.sweep import run_sweep

logger = logging.getLogger(__name__)

ROUTER_KEY = web.AppKey("router", ResourceRouter)
SETTINGS_KEY = web.AppKey("settings", StagingSettings)
LIVE_CLIENT_KEY = web.AppKey("live_client", object)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def _error(message: str, status: int) -> web.Response:
    return web.json_response({"error": message}, status=status)


def _flag(value: Optional[str]) -> bool:
    return (value or "").lower() == "true"


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Map staging exceptions onto JSON error responses."""
    try:
        return await handler(request)
    except NotFoundError as exc:
        return _error(str(exc), 404)
    except InvalidResourceError as exc:
        return _error(str(exc), 400)
    except UpstreamError as exc:
        logger.error("Live page call failed: %s", exc)
        return _error(str(exc), 502)


async def _json_body(request: web.Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except json.JSONDecodeError:
        raise web.HTTPBadRequest(
            text=json.dumps({"error": "Invalid JSON body"}),
            content_type="application/json",
        )
    if not isinstance(body, dict):
        raise web.HTTPBadRequest(
            text=json.dumps({"error": "JSON body must be an object"}),
            content_type="application/json",
        )
    return body


async def handle_get(request: web.Request) -> web.Response:
    router = request.app[ROUTER_KEY]
    settings = request.app[SETTINGS_KEY]
    live: Optional[StatuspageClient] = request.app[LIVE_CLIENT_KEY]
    resource = request.query.get("resource")
    item_id = request.query.get("id")

    if resource == "components" and live is not None:
        if _flag(request.query.get("initialize")):
            await router.seed_components(live, force=_flag(request.query.get("force")))
        elif settings.auto_seed and not item_id:
            await router.seed_components(live)

    if item_id:
        return web.json_response(router.get(resource, item_id))
    return web.json_response(router.list(resource, request.query))


async def handle_post(request: web.Request) -> web.Response:
    router = request.app[ROUTER_KEY]
    body = await _json_body(request)
    return web.json_response(router.create(request.query.get("resource"), body))


async def handle_patch(request: web.Request) -> web.Response:
    router = request.app[ROUTER_KEY]
    resource = request.query.get("resource")
    body = await _json_body(request)

    # Silent component status change: the id travels in the body
    if resource == "components" and body.get("componentId"):
        return web.json_response(
            router.update("components", body["componentId"], {"status": body.get("status")})
        )

    item_id = request.query.get("id")
    if not item_id:
        return _error("ID required", 400)
    return web.json_response(router.update(resource, item_id, body))


async def handle_delete(request: web.Request) -> web.Response:
    router = request.app[ROUTER_KEY]
    item_id = request.query.get("id")
    if not item_id:
        return _error("ID required", 400)
    router.delete(request.query.get("resource"), item_id)
    return web.json_response({"success": True})


async def handle_cleanup(request: web.Request) -> web.Response:
    settings = request.app[SETTINGS_KEY]
    if not settings.demo_mode:
        return _error("Demo mode not enabled", 403)

    if settings.cron_secret:
        expected = f"Bearer {settings.cron_secret}"
        if not hmac.compare_digest(request.headers.get("Authorization", ""), expected):
            return _error("Unauthorized", 401)

    live = request.app[LIVE_CLIENT_KEY]
    if live is None:
        return _error("Server configuration error", 500)

    report = await run_sweep(request.app[ROUTER_KEY].tracker, live)
    return web.json_response(report.to_dict())


async def handle_health(request: web.Request) -> web.Response:
    return web.json_response({"status": "healthy"})


def create_app(
    router: ResourceRouter,
    settings: StagingSettings,
    live_client: Optional[Any] = None,
) -> web.Application:
    """
    Build the aiohttp application.

    Args:
        router: Resource dispatcher backed by the staging store.
        settings: Demo flag, cron secret and seeding options.
        live_client: Client for the live page; None disables seeding and the
            cleanup endpoint.
    """
    app = web.Application(middlewares=[error_middleware])
    app[ROUTER_KEY] = router
    app[SETTINGS_KEY] = settings
    app[LIVE_CLIENT_KEY] = live_client

    app.router.add_get("/test-mode", handle_get)
    app.router.add_post("/test-mode", handle_post)
    app.router.add_patch("/test-mode", handle_patch)
    app.router.add_delete("/test-mode", handle_delete)
    app.router.add_get("/demo/cleanup", handle_cleanup)
    app.router.add_post("/demo/cleanup", handle_cleanup)
    app.router.add_get("/health", handle_health)
    return app
