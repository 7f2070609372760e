"""FastAPI application factory."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request

from api.handlers import RequestEndpoint, handle_forward, handle_health
from auth import GoogleIdTokenProvider
from core.config import Config
from core.headers import HeaderBuilder
from core.protocols import CredentialProvider, RequestLogger
from services.forwarding import ForwardingService
from services.upstream import UpstreamClient


def create_app(
    config: Config,
    logger: RequestLogger,
    provider: CredentialProvider | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = httpx.AsyncClient(
            timeout=config.upstream.timeout,
            follow_redirects=config.upstream.follow_redirects,
            transport=transport,
        )
        # Only send Accept-Encoding when the caller did; bodies are relayed raw
        del client.headers["accept-encoding"]
        owned_provider = None if provider else GoogleIdTokenProvider()
        app.state.forwarding_service = ForwardingService(
            config=config,
            logger=logger,
            provider=provider or owned_provider,
            upstream=UpstreamClient(client),
            header_builder=HeaderBuilder(),
        )
        try:
            yield
        finally:
            await client.aclose()
            if owned_provider is not None:
                owned_provider.close()

    # No docs/openapi routes: every other path belongs to the forwarder
    app = FastAPI(
        title="Identity Proxy",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    async def forward(request: Request):
        return await handle_forward(request, config)

    # ASGI endpoints with methods=None accept every HTTP method
    app.add_route(config.proxy.health_path, RequestEndpoint(handle_health), methods=None, include_in_schema=False)
    app.add_route("/{path:path}", RequestEndpoint(forward), methods=None, include_in_schema=False)

    return app
