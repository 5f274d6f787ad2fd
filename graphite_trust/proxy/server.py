"""Local CORS proxy for the Graphite explorer API.

Browsers refuse cross-origin calls to the explorer during local development.
This app listens locally, forwards everything under ``/api`` to the upstream
origin with the path and query string unchanged, and overwrites
``Access-Control-Allow-Origin`` on the way back.
"""

import time
from contextlib import asynccontextmanager
from typing import Optional
from urllib.parse import urlsplit

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response

from graphite_trust.config.settings import GraphiteSettings
from graphite_trust.utils.logging import setup_logging

logger = structlog.get_logger(__name__)

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"]

# Connection-level headers are not forwarded; httpx already decoded the body
# so its original encoding and length no longer apply either.
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
    "content-encoding",
    "content-length",
}


def _forward_request_headers(request: Request) -> dict:
    # Host is dropped so httpx sets the upstream host (change-origin)
    return {
        name: value
        for name, value in request.headers.items()
        if name.lower() not in HOP_BY_HOP_HEADERS and name.lower() != "host"
    }


def _relay_response_headers(upstream: httpx.Response) -> dict:
    headers = {
        name.lower(): value
        for name, value in upstream.headers.items()
        if name.lower() not in HOP_BY_HOP_HEADERS
    }
    headers["access-control-allow-origin"] = "*"
    return headers


def create_app(settings: Optional[GraphiteSettings] = None,
               transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """
    Create the proxy application.

    ``transport`` replaces the network transport of the upstream client,
    which lets tests stand in for the explorer.
    """
    settings = settings or GraphiteSettings()
    upstream_host = urlsplit(settings.upstream_url).netloc

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.upstream = httpx.AsyncClient(base_url=settings.upstream_url, transport=transport)
        logger.info("Proxy server started",
                    upstream=settings.upstream_url,
                    url=f"http://{settings.proxy_host}:{settings.proxy_port}")
        try:
            yield
        finally:
            await app.state.upstream.aclose()
            logger.info("Proxy server shutdown complete")

    app = FastAPI(
        title="GraphiteTrust proxy",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Request logging middleware."""
        start_time = time.time()
        response = await call_next(request)

        # Outermost, so it wins over CORSMiddleware echoing the origin
        response.headers["access-control-allow-origin"] = "*"

        if settings.access_log:
            logger.info("Request proxied",
                        method=request.method,
                        path=request.url.path,
                        status_code=response.status_code,
                        process_time=time.time() - start_time)
        return response

    async def forward(request: Request) -> Response:
        upstream: httpx.AsyncClient = request.app.state.upstream
        path = request.url.path
        target = f"{path}?{request.url.query}" if request.url.query else path

        try:
            proxied = await upstream.request(
                request.method,
                target,
                headers=_forward_request_headers(request),
                content=await request.body()
            )
        except (httpx.ConnectError, httpx.TimeoutException) as e:
            logger.error("Upstream unreachable", method=request.method, path=path, error=str(e))
            return PlainTextResponse(
                f"Error occurred while trying to proxy: {upstream_host}{path}",
                status_code=504
            )
        except httpx.HTTPError as e:
            logger.error("Proxy request failed", method=request.method, path=path, error=str(e))
            return PlainTextResponse(
                f"Error occurred while trying to proxy: {upstream_host}{path}",
                status_code=500
            )

        return Response(
            content=proxied.content,
            status_code=proxied.status_code,
            headers=_relay_response_headers(proxied)
        )

    app.add_api_route("/api", forward, methods=PROXY_METHODS, include_in_schema=False)
    app.add_api_route("/api/{path:path}", forward, methods=PROXY_METHODS, include_in_schema=False)

    return app


def main() -> None:
    """Run the proxy with uvicorn."""
    import uvicorn

    settings = GraphiteSettings()
    setup_logging(settings)

    uvicorn.run(
        create_app(settings),
        host=settings.proxy_host,
        port=settings.proxy_port,
        access_log=False,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    main()
