"""Shared test fixtures for the onboarding gateway test suite."""

from collections.abc import AsyncGenerator
from typing import Any
from urllib.parse import parse_qsl

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from onboarding_gateway.core.config import settings
from onboarding_gateway.core.http import get_http_client
from onboarding_gateway.main import app
from onboarding_gateway.modules.onboarding.stripe_client import StripeConnectClient

PUBLIC_KEY = "pk_test_public"
SECRET_KEY = "sk_test_secret"
BUBBLE_TEST_KEY = "bubble_test_key"
BUBBLE_LIVE_KEY = "bubble_live_key"

ID_DOCUMENT_URL = "https://storage.tally.so/private/id-card.pdf"
LOGO_URL = "https://storage.tally.so/private/logo.png"
ID_DOCUMENT_BYTES = b"%PDF-1.4 fake identity document"

ACCOUNT_ID = "acct_1TestAccount"


# ── Form submissions ──────────────────────────────────────────────────────────

SAMPLE_ANSWERS: dict[str, Any] = {
    "question_ja2KXR": "Les Amis du Quartier",
    "question_2E52zp": "12 rue des Lilas",
    "question_xXBGEG": "Lyon",
    "question_ZjyxX0": "69001",
    "question_QKyGpg": "12345678900012",
    "question_A75kYB": "+33612345678",
    "question_9q5eYG": "FR12345678901",
    "question_QoR0X7": "Neighbourhood food bank",
    "question_Qo7eZX": "https://amis-quartier.example.org",
    "question_9N79k5": "FR7630006000011234567890189",
    "question_q5GPpG": [{"url": LOGO_URL, "name": "logo.png", "mimeType": "image/png", "size": 2048}],
    "question_5Xx8yZ": "Together against hunger",
    "question_9NZlaQ": [],
    "question_dbdK5d": "Photo: C. Martin",
    "question_YjapLW": "Feed 500 families",
    "question_DqzAlN": "Buying fresh produce",
    "question_eqPbGq": "Camille",
    "question_WOd46J": "Martin",
    "question_aQoW19": "1990-05-20",
    "question_b5GaMe": "camille@amis-quartier.example.org",
    "question_685qYe": [
        {"url": ID_DOCUMENT_URL, "name": "id-card.pdf", "mimeType": "application/pdf", "size": 4096}
    ],
}


def sample_fields(
    overrides: dict[str, Any] | None = None,
    without: tuple[str, ...] = (),
) -> list[dict[str, Any]]:
    """Fields as the forms provider posts them, label and type included."""
    answers = {**SAMPLE_ANSWERS, **(overrides or {})}
    return [
        {"key": key, "label": key, "type": "INPUT_TEXT", "value": value}
        for key, value in answers.items()
        if key not in without
    ]


def submission_payload(fields: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "eventId": "evt_123",
        "eventType": "FORM_RESPONSE",
        "createdAt": "2024-05-02T10:00:00.000Z",
        "data": {"responseId": "resp_1", "formId": "form_1", "fields": fields},
    }


# ── Fake Stripe ───────────────────────────────────────────────────────────────


def form_body(request: httpx.Request) -> dict[str, str]:
    return dict(parse_qsl(request.content.decode(), keep_blank_values=True))


def json_response(payload: dict[str, Any], status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json=payload)


def stripe_error(message: str, status_code: int = 400) -> httpx.Response:
    return json_response(
        {"error": {"type": "invalid_request_error", "message": message}}, status_code
    )


class FakeStripe:
    """MockTransport handler answering like Stripe and recording every request."""

    def __init__(self) -> None:
        self.requests: list[tuple[str, httpx.Request]] = []
        self.overrides: dict[str, httpx.Response | Exception] = {}

    def respond(self, step: str, response: httpx.Response | Exception) -> None:
        self.overrides[step] = response

    def calls(self, step: str) -> list[httpx.Request]:
        return [request for name, request in self.requests if name == step]

    @property
    def steps(self) -> list[str]:
        return [name for name, _ in self.requests]

    @staticmethod
    def step_of(request: httpx.Request) -> str:
        path = request.url.path
        if request.url.host == "storage.tally.so":
            return "download_document"
        if path == "/v1/tokens":
            if b"directors_provided" in request.content:
                return "generate_update_token"
            return "tokenize_company"
        if path == "/v1/accounts":
            return "create_account"
        if path == "/v1/files":
            return "upload_id_document"
        if path.endswith("/persons"):
            return "attach_person"
        if path.endswith("/external_accounts"):
            return "add_bank_account"
        if path.startswith("/v1/accounts/"):
            return "update_account"
        return "unknown"

    def default(self, step: str) -> httpx.Response:
        if step == "download_document":
            return httpx.Response(200, content=ID_DOCUMENT_BYTES)
        payloads = {
            "tokenize_company": {"id": "ct_company", "object": "token"},
            "generate_update_token": {"id": "ct_update", "object": "token"},
            "create_account": {
                "id": ACCOUNT_ID,
                "object": "account",
                "type": "custom",
                "country": "FR",
                "payouts_enabled": False,
                "settings": {"payouts": {"schedule": {"interval": "manual"}}},
            },
            "upload_id_document": {"id": "file_123", "object": "file", "purpose": "identity_document"},
            "attach_person": {"id": "person_123", "object": "person"},
            "update_account": {"id": ACCOUNT_ID, "object": "account"},
            "add_bank_account": {"id": "ba_123", "object": "bank_account"},
        }
        if step in payloads:
            return json_response(payloads[step])
        return json_response({"error": {"message": f"Unrecognized request: {step}"}}, 404)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        step = self.step_of(request)
        self.requests.append((step, request))
        override = self.overrides.get(step)
        if isinstance(override, Exception):
            raise override
        if override is not None:
            return override
        return self.default(step)


class FakeBubble:
    """MockTransport handler for the Bubble Data API."""

    def __init__(self, response: httpx.Response | Exception | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self.response = response

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        if self.response is not None:
            return self.response
        return httpx.Response(201, json={"status": "success", "id": "1716370000000x123"})


# ── Fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture
def fake_stripe() -> FakeStripe:
    return FakeStripe()


@pytest.fixture
async def http_client(fake_stripe: FakeStripe) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_stripe)) as client:
        yield client


@pytest.fixture
def stripe_client(http_client: httpx.AsyncClient) -> StripeConnectClient:
    return StripeConnectClient(http_client, public_key=PUBLIC_KEY, secret_key=SECRET_KEY)


@pytest.fixture
def outbound(fake_stripe: FakeStripe) -> FakeStripe:
    """Handler behind the app's outbound HTTP client; tests may swap it per call."""
    return fake_stripe


@pytest.fixture
async def client(
    outbound: FakeStripe, monkeypatch: pytest.MonkeyPatch
) -> AsyncGenerator[AsyncClient, None]:
    monkeypatch.setattr(settings, "STRIPE_PUBLIC_KEY", PUBLIC_KEY)
    monkeypatch.setattr(settings, "STRIPE_SECRET_KEY", SECRET_KEY)
    monkeypatch.setattr(settings, "BUBBLE_TEST_KEY", BUBBLE_TEST_KEY)
    monkeypatch.setattr(settings, "BUBBLE_LIVE_KEY", BUBBLE_LIVE_KEY)

    async def _outbound_client() -> AsyncGenerator[httpx.AsyncClient, None]:
        async with httpx.AsyncClient(transport=httpx.MockTransport(outbound)) as http:
            yield http

    app.dependency_overrides[get_http_client] = _outbound_client
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.pop(get_http_client, None)
