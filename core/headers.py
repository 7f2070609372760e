"""Header handling for outbound requests and relayed responses."""

from collections.abc import Iterable

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)


class HeaderBuilder:
    """Build header lists for the destination and for the caller."""

    def build_outbound_headers(
        self, headers: Iterable[tuple[str, str]]
    ) -> list[tuple[str, str]]:
        """Copy inbound headers verbatim, except Host.

        Host addresses the proxy itself; httpx derives it from the destination.
        Repeated headers keep their order.
        """
        return [(key, value) for key, value in headers if key.lower() != "host"]

    def build_relay_headers(self, headers: Iterable[tuple[str, str]]) -> dict[str, str]:
        """Destination response headers that are safe to hand back to the caller."""
        relayed: dict[str, str] = {}
        for key, value in headers:
            key_lower = key.lower()
            if key_lower in HOP_BY_HOP_HEADERS or key_lower == "content-length":
                continue
            relayed[key] = value
        return relayed
