"""
Shared fixtures: a fake Adobe Sign API served through httpx.MockTransport.
"""
import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from esign_adobe import AdobeSignEnvelopeAdapter
from resilience import ResilienceConfig, Retry
from settings import Settings

BASE_URL = "https://api.example"
AGREEMENTS_PATH = "/api/rest/v6/agreements"


class FakeClock:
    """Settable clock returning timezone-aware datetimes."""

    def __init__(self, now=None):
        self.now = now or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


class FakeAdobeSign:
    """In-memory stand-in for the Adobe Sign token and agreements endpoints."""

    def __init__(self):
        self.requests = []
        self.token_status = 200
        self.token_body = {"access_token": "token-1", "expires_in": 3600}
        self.agreement_status = 200
        self.next_agreement_id = "AG-1"
        self.agreements = {}
        self.rejected_tokens = set()

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/oauth/token":
            return httpx.Response(self.token_status, json=self.token_body)

        if path.startswith(AGREEMENTS_PATH):
            token = request.headers.get("Authorization", "").removeprefix("Bearer ")
            if token in self.rejected_tokens:
                return httpx.Response(401, json={"code": "INVALID_ACCESS_TOKEN", "message": "Access token is invalid"})
            if self.agreement_status >= 400:
                return httpx.Response(self.agreement_status, json={"code": "MISC_SERVER_ERROR", "message": "boom"})
            if request.method == "POST" and path == AGREEMENTS_PATH:
                body = json.loads(request.content)
                agreement_id = self.next_agreement_id
                self.agreements[agreement_id] = {"id": agreement_id, "name": body.get("name"), "status": "AUTHORING"}
                return httpx.Response(201, json={"id": agreement_id})
            if request.method == "GET":
                agreement_id = path.rsplit("/", 1)[-1]
                if agreement_id not in self.agreements:
                    return httpx.Response(404, json={"code": "INVALID_AGREEMENT_ID", "message": "Not found"})
                return httpx.Response(200, json=self.agreements[agreement_id])

        return httpx.Response(404, json={"code": "NOT_FOUND", "message": "No such endpoint"})

    def token_requests(self):
        return [r for r in self.requests if r.url.path == "/oauth/token"]

    def agreement_requests(self):
        return [r for r in self.requests if r.url.path.startswith(AGREEMENTS_PATH)]


@pytest.fixture
def adobe_settings():
    return Settings(client_id="id", client_secret="sec", refresh_token="rt", base_url=BASE_URL)


@pytest.fixture
def fake_adobe():
    return FakeAdobeSign()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def http_client(fake_adobe):
    return httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(fake_adobe.handler))


@pytest.fixture
def adapter(adobe_settings, http_client, clock):
    retry = Retry("adobeSign", ResilienceConfig(max_attempts=adobe_settings.max_retries, wait_duration=0))
    return AdobeSignEnvelopeAdapter(adobe_settings, http_client=http_client, retry=retry, clock=clock)
