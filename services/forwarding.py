"""Forwarding pipeline: derive destination, acquire credential, execute, relay."""

from collections.abc import AsyncIterator
from http import HTTPStatus

import httpx
from fastapi import Request, Response
from fastapi.responses import PlainTextResponse, StreamingResponse
from starlette.background import BackgroundTask

from core.config import Config
from core.destination import derive_destination, inbound_path, is_absolute_url
from core.exceptions import CredentialAcquisitionError, ProxyError, RelayError
from core.headers import HeaderBuilder
from core.protocols import CredentialProvider, RequestLogger
from services.upstream import UpstreamClient


class ForwardingService:
    """Forward one inbound request to the destination named by its path.

    Holds no per-request state; every call acquires its own credential and
    owns its own upstream response.
    """

    def __init__(
        self,
        config: Config,
        logger: RequestLogger,
        provider: CredentialProvider,
        upstream: UpstreamClient,
        header_builder: HeaderBuilder,
    ) -> None:
        self._config = config
        self._logger = logger
        self._provider = provider
        self._upstream = upstream
        self._headers = header_builder

    def destination_for(self, request: Request) -> str:
        """Destination URL for an inbound request."""
        return derive_destination(inbound_path(request.scope), self._config.upstream.scheme)

    async def forward(self, request: Request) -> Response:
        """Forward request and return the relayed or failure response."""
        destination = self.destination_for(request)
        self._logger.log_request(request.method, request.url.path, destination)
        try:
            return await self._forward(request, destination)
        except ProxyError as e:
            self._logger.log_error(destination, e.status_code, str(e))
            return self.failure_response(e.status_code)

    def failure_response(self, status_code: int) -> Response:
        """Generic plain-text failure; never carries upstream or provider text."""
        if self._config.upstream.legacy_error_text:
            phrase = HTTPStatus.UNAUTHORIZED.phrase
        else:
            phrase = HTTPStatus(status_code).phrase
        return PlainTextResponse(
            f"{phrase}\n",
            status_code=status_code,
            headers={"X-Content-Type-Options": "nosniff"},
        )

    async def _forward(self, request: Request, destination: str) -> Response:
        auth = await self._acquire(destination)
        outbound = self._upstream.build_request(
            request.method,
            destination,
            self._headers.build_outbound_headers(request.headers.items()),
            request.stream() if _has_body(request) else None,
        )
        response = await self._upstream.send(outbound, auth)
        return await self._relay(response, destination)

    async def _acquire(self, destination: str) -> httpx.Auth:
        if not is_absolute_url(destination):
            raise CredentialAcquisitionError(
                f"malformed audience {destination!r}", audience=destination
            )
        try:
            return await self._provider.acquire(destination)
        except CredentialAcquisitionError:
            raise
        except Exception as e:
            # Any provider failure is a credential failure: 401, no forward
            raise CredentialAcquisitionError(
                f"{type(e).__name__}: {e}", audience=destination
            ) from e

    async def _relay(self, response: httpx.Response, destination: str) -> Response:
        """Hand the open upstream response to a StreamingResponse.

        The first chunk is read up front so a broken body can still be
        reported as 500 before any status line reaches the caller.
        """
        handed_off = False
        try:
            chunks = response.aiter_raw()
            first = await anext(chunks, b"")
            headers = None
            if self._config.upstream.relay_response_headers:
                headers = self._headers.build_relay_headers(response.headers.multi_items())
            relayed = StreamingResponse(
                self._stream(response, first, chunks, destination),
                status_code=response.status_code,
                headers=headers,
                background=BackgroundTask(response.aclose),
            )
            handed_off = True
        except httpx.HTTPError as e:
            raise RelayError(f"{type(e).__name__}: {e}") from e
        finally:
            if not handed_off:
                await response.aclose()

        self._logger.log_forward(destination, response.status_code)
        return relayed

    async def _stream(
        self,
        response: httpx.Response,
        first: bytes,
        chunks: AsyncIterator[bytes],
        destination: str,
    ) -> AsyncIterator[bytes]:
        try:
            if first:
                yield first
            async for chunk in chunks:
                yield chunk
        except httpx.HTTPError as e:
            # Status line is already sent; abort the connection instead of
            # ending a truncated body cleanly.
            self._logger.log_error(destination, 500, f"relay interrupted: {type(e).__name__}: {e}")
            raise RelayError(str(e)) from e
        finally:
            await response.aclose()


def _has_body(request: Request) -> bool:
    """Whether the inbound request framing announces a body."""
    return "content-length" in request.headers or "transfer-encoding" in request.headers
