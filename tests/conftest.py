import base64
import json
import time

import pytest

from graphoauth.core.client import HttpClient
from graphoauth.identity.app_config import AppConfig


class StubResponse:
    def __init__(self, json_payload=None, status_code=200, text=""):
        self._json_payload = json_payload
        self.status_code = status_code
        self.text = text
        self.ok = status_code < 400
        if json_payload is None or isinstance(json_payload, Exception):
            self.content = text.encode("utf-8")
        else:
            self.content = json.dumps(json_payload).encode("utf-8")

    def json(self):
        if isinstance(self._json_payload, Exception):
            raise self._json_payload
        if self._json_payload is None:
            raise ValueError("No JSON body")
        return self._json_payload


class StubSession:
    """Records every request and answers from a queue of responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def stub_client(*responses):
    session = StubSession(*responses)
    return HttpClient(session=session, retry_delay=0), session


def token_payload(access_token="access-token", expires_in=3600, **extra):
    payload = {
        "access_token": access_token,
        "token_type": "Bearer",
        "expires_in": expires_in,
        "scope": "User.Read Files.ReadWrite",
    }
    payload.update(extra)
    return payload


def unsigned_jwt(claims, header=None):
    def encode(part):
        raw = json.dumps(part).encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")

    return f"{encode(header or {'alg': 'none', 'typ': 'JWT'})}.{encode(claims)}.signature"


@pytest.fixture
def app_config():
    return AppConfig(
        client_id="11111111-2222-3333-4444-555555555555",
        tenant_id="contoso-tenant",
        scope=["User.Read"],
        redirect_uri="http://localhost:8000/redirect",
    )


@pytest.fixture
def id_token_claims():
    now = int(time.time())
    return {
        "iss": "https://login.microsoftonline.com/contoso-tenant/v2.0",
        "aud": "11111111-2222-3333-4444-555555555555",
        "exp": now + 3600,
        "iat": now,
        "nbf": now,
        "nonce": "nonce-value",
        "sub": "user-subject",
    }
