"""Identity token credentials - Google-signed ID tokens scoped to an audience."""

import sys
import time
from collections.abc import Generator

import httpx
from google.auth import jwt
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import id_token
from rich.console import Console
from starlette.concurrency import run_in_threadpool

from core.exceptions import CredentialAcquisitionError

console = Console()


class IdTokenAuth(httpx.Auth):
    """Attach a bearer identity token to every request sent with it."""

    def __init__(self, token: str) -> None:
        self.token = token

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        # Replaces any Authorization header copied from the inbound request
        request.headers["Authorization"] = f"Bearer {self.token}"
        yield request


class GoogleIdTokenProvider:
    """Mint ID tokens using Application Default Credentials.

    Works with a service account key (GOOGLE_APPLICATION_CREDENTIALS) locally
    and with the metadata server on Cloud Run, GKE or GCE. Tokens are fetched
    fresh for every call over one shared HTTP session.
    """

    def __init__(self, auth_request: GoogleAuthRequest | None = None) -> None:
        self._auth_request = auth_request or GoogleAuthRequest()

    async def acquire(self, audience: str) -> IdTokenAuth:
        """Return an auth capability bound to audience."""
        token = await run_in_threadpool(self.fetch_token, audience)
        return IdTokenAuth(token)

    def fetch_token(self, audience: str) -> str:
        """Fetch a signed ID token (blocking)."""
        try:
            return id_token.fetch_id_token(self._auth_request, audience)
        except (GoogleAuthError, ValueError, OSError) as e:
            raise CredentialAcquisitionError(str(e), audience=audience) from e

    def close(self) -> None:
        """Close the HTTP session used to reach the token endpoint."""
        session = getattr(self._auth_request, "session", None)
        if session is not None:
            session.close()


def check_credentials(audience: str, provider: GoogleIdTokenProvider | None = None) -> bool:
    """Check whether an ID token can be minted for audience."""
    owned = provider is None
    provider = provider or GoogleIdTokenProvider()
    try:
        token = provider.fetch_token(audience)
    except CredentialAcquisitionError as e:
        console.print(f"[red]Cannot mint ID token[/red] for {audience}: {e}")
        console.print("\n[dim]Make sure Application Default Credentials are available:[/dim]")
        console.print("  gcloud auth application-default login")
        console.print("  [dim]or set[/dim] GOOGLE_APPLICATION_CREDENTIALS")
        return False
    finally:
        if owned:
            provider.close()

    claims = jwt.decode(token, verify=False)
    subject = claims.get("email") or claims.get("sub", "unknown")
    expires = time.ctime(claims["exp"]) if "exp" in claims else "unknown"
    console.print(f"[green]Authenticated[/green] as {subject} for {audience} (expires {expires})")
    return True


def main():
    """CLI entry point for credential check."""
    if len(sys.argv) < 2:
        console.print("Usage: python auth.py AUDIENCE")
        sys.exit(2)
    sys.exit(0 if check_credentials(sys.argv[1]) else 1)


if __name__ == "__main__":
    main()
