from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from starlette.responses import Response

from nyaarr.infrastructure.config import AppConfig
from nyaarr.interfaces.app_state import AppState
from nyaarr.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def build_app(config: AppConfig) -> FastAPI:
    """Build the FastAPI app: configuration only, no resource initialization.

    Resources (HTTP client, cache, use cases) are created in lifespan().
    """
    app = FastAPI(
        title="Nyaarr",
        description="Stremio addon for anime torrents from Nyaa with RealDebrid",
        version=config.stremio.addon_version,
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    from nyaarr.interfaces.api.stremio.router import router as stremio_router

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/")
    async def index() -> dict[str, str]:
        return {
            "status": "ok",
            "name": config.stremio.addon_name,
            "version": config.stremio.addon_version,
        }

    # Registered after the fixed paths so /{account_key}/... cannot shadow them.
    app.include_router(stremio_router)

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ):
        start = time.perf_counter()
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            status_code = getattr(locals().get("response", None), "status_code", 500)

            # Paths embed the debrid key; log only the route shape.
            route = request.scope.get("route")
            log.info(
                "http_request",
                method=request.method,
                path=getattr(route, "path", request.url.path),
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app
