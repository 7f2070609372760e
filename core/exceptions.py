"""Custom exception hierarchy for the identity proxy."""


class ProxyError(Exception):
    """Base exception for all proxy errors.

    Attributes:
        status_code: HTTP status reported to the caller
    """

    status_code = 500


class CredentialAcquisitionError(ProxyError):
    """Raised when no identity token can be minted for an audience.

    Attributes:
        message: Underlying provider error
        audience: Audience URL the token was requested for
    """

    status_code = 401

    def __init__(self, message: str, audience: str | None = None) -> None:
        super().__init__(message)
        self.audience = audience


class RequestConstructionError(ProxyError):
    """Raised when the outbound request cannot be built."""


class UpstreamExecutionError(ProxyError):
    """Raised when the destination cannot be reached.

    Attributes:
        message: Error message
        destination: Destination URL (optional)
    """

    def __init__(self, message: str, destination: str | None = None) -> None:
        super().__init__(message)
        self.destination = destination


class RelayError(ProxyError):
    """Raised when the destination body cannot be streamed to the caller."""
