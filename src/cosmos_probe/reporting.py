"""HTTP reporting interface exposing probe counters, health and readiness.

`/health` follows the probe outcome and latches; `/ready` only says the
reporting path itself is up, so an instance whose probe failed stays
scrapable. The two are deliberately not unified.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from aiohttp import web

from cosmos_probe.errors import ListenerError
from cosmos_probe.observability.logging import correlation_scope_from_headers
from cosmos_probe.service import ProbeService

logger = logging.getLogger(__name__)

SERVICE_KEY: web.AppKey[ProbeService] = web.AppKey("probe_service", ProbeService)

AiohttpHandler = Callable[[web.Request], Awaitable[web.StreamResponse]]


@web.middleware
async def correlation_middleware(
    request: web.Request,
    handler: AiohttpHandler,
) -> web.StreamResponse:
    """Bind request correlation ids into the logging context."""
    with correlation_scope_from_headers(dict(request.headers)) as correlation:
        response = await handler(request)
        logger.debug(
            "Served %s %s",
            request.method,
            request.path,
            extra={"status": response.status},
        )
    if correlation.request_id is not None and "x-request-id" not in response.headers:
        response.headers["x-request-id"] = correlation.request_id
    return response


async def metrics(request: web.Request) -> web.Response:
    registry = request.app[SERVICE_KEY].metrics
    return web.Response(
        body=registry.render(),
        headers={"Content-Type": registry.content_type},
    )


async def health(request: web.Request) -> web.Response:
    if request.app[SERVICE_KEY].is_healthy():
        return web.Response(text="healthy")
    return web.Response(status=503, text="unhealthy")


async def ready(_: web.Request) -> web.Response:
    return web.Response(text="ready")


def build_app(service: ProbeService) -> web.Application:
    app = web.Application(middlewares=[correlation_middleware])
    app[SERVICE_KEY] = service
    app.router.add_get("/metrics", metrics)
    app.router.add_get("/health", health)
    app.router.add_get("/ready", ready)
    return app


@dataclass(slots=True)
class ReportingServer:
    """Handle for the background reporting site."""

    runner: web.AppRunner
    site: web.TCPSite
    host: str
    port: int

    async def stop(self) -> None:
        await self.runner.cleanup()


async def start_reporting_server(
    service: ProbeService,
    *,
    host: str = "0.0.0.0",
    port: int = 8080,
) -> ReportingServer:
    """Start serving on the running event loop.

    Raises:
        ListenerError: If the listening socket cannot be bound.
    """
    if not (0 <= port <= 65535):
        raise ValueError("port must be between 0 and 65535")

    runner = web.AppRunner(build_app(service), access_log=None)
    await runner.setup()
    site = web.TCPSite(runner, host=host, port=port)
    try:
        await site.start()
    except OSError as exc:
        await runner.cleanup()
        raise ListenerError(host, port, str(exc)) from exc

    bound_port = port
    addresses = runner.addresses
    if addresses:
        bound_port = int(addresses[0][1])
    logger.info("Reporting server listening", extra={"host": host, "port": bound_port})
    return ReportingServer(runner=runner, site=site, host=host, port=bound_port)
