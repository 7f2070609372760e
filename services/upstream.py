"""HTTP client wrapper for outbound requests to destinations."""

from collections.abc import AsyncIterable, Sequence

import httpx

from core.exceptions import RequestConstructionError, UpstreamExecutionError


class UpstreamClient:
    """Build and send authenticated requests over a shared connection pool."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    def build_request(
        self,
        method: str,
        url: str,
        headers: Sequence[tuple[str, str]],
        content: AsyncIterable[bytes] | None,
    ) -> httpx.Request:
        """Build the outbound request; the body is streamed, never buffered."""
        try:
            return self._client.build_request(method, url, headers=headers, content=content)
        except (httpx.InvalidURL, ValueError, TypeError) as e:
            raise RequestConstructionError(str(e)) from e

    async def send(self, request: httpx.Request, auth: httpx.Auth) -> httpx.Response:
        """Send with auth attached and return an open, unread response.

        The caller owns the response and must close it.
        """
        try:
            return await self._client.send(request, auth=auth, stream=True)
        except (httpx.RequestError, httpx.StreamError) as e:
            raise UpstreamExecutionError(f"{type(e).__name__}: {e}", destination=str(request.url)) from e
