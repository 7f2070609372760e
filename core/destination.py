"""Destination derivation - the request path names the target host and path."""

from typing import Any

import httpx


def inbound_path(scope: dict[str, Any]) -> str:
    """Return the request path exactly as the client sent it, without query."""
    raw_path = scope.get("raw_path")
    if raw_path:
        return raw_path.split(b"?", 1)[0].decode("latin-1")
    return scope.get("path", "/")


def derive_destination(path: str, scheme: str = "https") -> str:
    """Build the destination URL from an inbound path.

    ``/svc.example.com/v1/items`` becomes ``https://svc.example.com/v1/items``.
    The path is not normalized or re-escaped.
    """
    if path.startswith("/"):
        return f"{scheme}:/{path}"
    return f"{scheme}://{path}"


def is_absolute_url(url: str) -> bool:
    """True when url parses with a scheme and a non-empty host."""
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL:
        return False
    return bool(parsed.scheme) and bool(parsed.host)
