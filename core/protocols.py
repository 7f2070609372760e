"""Shared protocol definitions."""

from typing import Protocol

import httpx


class RequestLogger(Protocol):
    """Protocol for request logging (console lines or Dashboard)."""

    def log_request(self, method: str, path: str, destination: str) -> None: ...
    def log_forward(self, destination: str, status: int) -> None: ...
    def log_error(self, destination: str, status: int, message: str) -> None: ...


class CredentialProvider(Protocol):
    """Mints an authenticated transport capability for one audience.

    Implementations raise CredentialAcquisitionError on any failure.
    """

    async def acquire(self, audience: str) -> httpx.Auth: ...
