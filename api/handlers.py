"""FastAPI route handlers."""

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse
from starlette.types import Receive, Scope, Send

from core.config import Config
from ui.log_utils import write_incoming_log


class RequestEndpoint:
    """ASGI wrapper around a request handler.

    Starlette restricts plain function endpoints to GET when no methods are
    given; an ASGI endpoint stays open to every method.
    """

    def __init__(self, handler: Callable[[Request], Awaitable[Response]]) -> None:
        self._handler = handler

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive, send)
        response = await self._handler(request)
        await response(scope, receive, send)


async def handle_forward(request: Request, config: Config) -> Response:
    """Forward any request to the destination encoded in its path."""
    forwarding_service = request.app.state.forwarding_service
    if config.logging.request_logs:
        write_incoming_log(
            request.method,
            request.url.path,
            dict(request.headers),
            forwarding_service.destination_for(request),
        )
    return await forwarding_service.forward(request)


async def handle_health(_request: Request) -> Response:
    """Liveness check; never authenticates or forwards."""
    return PlainTextResponse(f"ok:{datetime.now(UTC).isoformat()}")
