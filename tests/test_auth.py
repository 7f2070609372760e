import base64
import json

import httpx
import pytest
from google.auth.exceptions import DefaultCredentialsError, TransportError
from google.oauth2 import id_token

from auth import GoogleIdTokenProvider, IdTokenAuth, check_credentials
from core.exceptions import CredentialAcquisitionError


def _unsigned_jwt(claims: dict) -> str:
    def segment(data: dict) -> str:
        return base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()

    return f"{segment({'alg': 'RS256', 'typ': 'JWT'})}.{segment(claims)}.c2ln"


@pytest.fixture
def provider():
    return GoogleIdTokenProvider(auth_request="auth-request")


def test_id_token_auth_replaces_authorization_header():
    request = httpx.Request("GET", "https://svc.example.com", headers={"Authorization": "Bearer caller"})

    flow = IdTokenAuth("minted").auth_flow(request)
    sent = next(flow)

    assert sent.headers["authorization"] == "Bearer minted"


@pytest.mark.asyncio
async def test_acquire_mints_token_for_audience(monkeypatch, provider):
    calls = []

    def fake_fetch(request, audience):
        calls.append((request, audience))
        return "signed-token"

    monkeypatch.setattr(id_token, "fetch_id_token", fake_fetch)

    auth = await provider.acquire("https://svc.example.com/v1/items")

    assert isinstance(auth, IdTokenAuth)
    assert auth.token == "signed-token"
    assert calls == [("auth-request", "https://svc.example.com/v1/items")]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        DefaultCredentialsError("no ADC"),
        TransportError("metadata server unreachable"),
        ValueError("bad audience"),
        ConnectionError("network down"),
    ],
)
async def test_provider_errors_become_credential_failures(monkeypatch, provider, error):
    def fake_fetch(request, audience):
        raise error

    monkeypatch.setattr(id_token, "fetch_id_token", fake_fetch)

    with pytest.raises(CredentialAcquisitionError) as exc_info:
        await provider.acquire("https://svc.example.com")

    assert exc_info.value.audience == "https://svc.example.com"
    assert exc_info.value.status_code == 401
    assert exc_info.value.__cause__ is error


def test_check_credentials_reports_subject(monkeypatch, provider):
    token = _unsigned_jwt({"email": "proxy@project.iam.gserviceaccount.com", "exp": 2000000000})
    monkeypatch.setattr(id_token, "fetch_id_token", lambda request, audience: token)

    assert check_credentials("https://svc.example.com", provider) is True


def test_check_credentials_reports_failure(monkeypatch, provider):
    def fake_fetch(request, audience):
        raise DefaultCredentialsError("no ADC")

    monkeypatch.setattr(id_token, "fetch_id_token", fake_fetch)

    assert check_credentials("https://svc.example.com", provider) is False


class _RecordingSession:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class _AuthRequest:
    def __init__(self):
        self.session = _RecordingSession()


def test_provider_reuses_one_session_and_closes_it(monkeypatch):
    auth_request = _AuthRequest()
    seen = []
    monkeypatch.setattr(id_token, "fetch_id_token", lambda request, audience: seen.append(request) or "t")
    provider = GoogleIdTokenProvider(auth_request=auth_request)

    provider.fetch_token("https://a.example.com")
    provider.fetch_token("https://b.example.com")
    provider.close()

    assert seen == [auth_request, auth_request]
    assert auth_request.session.closed
