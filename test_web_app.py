"""API tests for the FastAPI app (webhook, registration, stats).

Collaborators are replaced through app.dependency_overrides, so no Supabase,
Twilio, Gemini or translation credentials are needed.
"""

from __future__ import annotations

from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from ingestion.subscriber_repo import Subscriber
from pipeline.message_handler import MessageHandler
from pipeline.resolver import APOLOGY_MESSAGE, QueryResolver
from pipeline.translator import PassthroughTranslator
import web.app as web_app
from web.app import app, get_gateway, get_message_handler, get_repo


# -------------------------
# Fakes
# -------------------------


class FakeRepo:
    def __init__(self, subscribers: Optional[List[Subscriber]] = None, broken: bool = False):
        self.subscribers: Dict[str, Subscriber] = {s.phone: s for s in (subscribers or [])}
        self.broken = broken
        self.created: List[Subscriber] = []

    def find_by_phone(self, phone: str) -> Optional[Subscriber]:
        if self.broken:
            raise ConnectionError("database unreachable")
        return self.subscribers.get(phone)

    def create(self, subscriber: Subscriber) -> Subscriber:
        stored = Subscriber(**{**subscriber.to_row(), "id": f"id-{len(self.created) + 1}"})
        self.created.append(stored)
        self.subscribers[stored.phone] = stored
        return stored

    def count(self, subscription: Optional[str] = None) -> int:
        if self.broken:
            raise ConnectionError("database unreachable")
        return len([
            s for s in self.subscribers.values()
            if subscription is None or s.subscription == subscription
        ])


class FakeGateway:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[tuple] = []

    async def send(self, to: str, body: str) -> str:
        self.sent.append((to, body))
        if self.fail:
            raise RuntimeError("twilio down")
        return "SM1"


class StubAI:
    def __init__(self, answer: str):
        self.answer = answer

    async def generate(self, prompt: str) -> str:
        return self.answer


class ExplodingHandler:
    async def handle(self, text: str):
        raise RuntimeError("boom")


@pytest.fixture
def repo():
    return FakeRepo([Subscriber(name="Ravi", phone="+911111", subscription="weekly")])


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(repo, gateway):
    handler = MessageHandler(
        QueryResolver(ai_client=StubAI("Stay hydrated.")),
        PassthroughTranslator(),
        chunk_limit=1500,
    )
    app.dependency_overrides[get_repo] = lambda: repo
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_message_handler] = lambda: handler
    yield TestClient(app)
    app.dependency_overrides.clear()


# -------------------------
# Registration
# -------------------------


def test_register_creates_subscriber_and_sends_welcome(client, repo, gateway):
    resp = client.post("/api/register", json={"name": "Asha", "phone": "+919999", "region": "Kerala"})

    assert resp.status_code == 200
    assert resp.json() == {"message": "Registration successful!"}
    assert repo.created[0].subscription == "daily"
    assert repo.created[0].region == "Kerala"
    assert gateway.sent == [("+919999", "👋 Hi Asha! You are subscribed for daily health alerts.")]


def test_register_accepts_state_and_frequency_aliases(client, repo):
    resp = client.post(
        "/api/register",
        json={"name": "Asha", "phone": "+919999", "state": "Goa", "subscriptionFrequency": "weekly"},
    )

    assert resp.status_code == 200
    assert repo.created[0].region == "Goa"
    assert repo.created[0].subscription == "weekly"


@pytest.mark.parametrize("payload", [
    {"phone": "+919999"},
    {"name": "Asha"},
    {"name": "  ", "phone": "+919999"},
    {},
])
def test_register_requires_name_and_phone(client, repo, gateway, payload):
    resp = client.post("/api/register", json=payload)

    assert resp.status_code == 400
    assert resp.json() == {"error": "Name and phone are required"}
    assert repo.created == []
    assert gateway.sent == []


def test_register_accepts_form_body(client, repo):
    resp = client.post(
        "/api/register",
        data={"name": "Asha", "phone": "+919999", "state": "Goa", "subscriptionFrequency": "weekly"},
    )

    assert resp.status_code == 200
    assert repo.created[0].phone == "+919999"
    assert repo.created[0].region == "Goa"
    assert repo.created[0].subscription == "weekly"


def test_register_coerces_numeric_phone(client, repo, gateway):
    resp = client.post("/api/register", json={"name": "A", "phone": 919999999999})

    assert resp.status_code == 200
    assert repo.created[0].phone == "919999999999"
    assert gateway.sent[0][0] == "919999999999"


@pytest.mark.parametrize("content", ["{not json", "[1, 2]"])
def test_register_malformed_json_is_bad_request(client, repo, content):
    resp = client.post(
        "/api/register",
        content=content,
        headers={"content-type": "application/json"},
    )

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid registration body"}
    assert repo.created == []


def test_register_rejects_unknown_subscription(client, repo):
    resp = client.post("/api/register", json={"name": "A", "phone": "+91", "subscription": "hourly"})

    assert resp.status_code == 400
    assert repo.created == []


def test_register_duplicate_phone_is_conflict(client, repo, gateway):
    resp = client.post("/api/register", json={"name": "Someone", "phone": "+911111"})

    assert resp.status_code == 409
    assert resp.json() == {"error": "User already exists"}
    assert repo.created == []
    assert gateway.sent == []


def test_register_persistence_failure_is_server_error(client, gateway):
    app.dependency_overrides[get_repo] = lambda: FakeRepo(broken=True)

    resp = client.post("/api/register", json={"name": "Asha", "phone": "+919999"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Server error"}
    assert gateway.sent == []


def test_register_succeeds_when_welcome_fails(client, repo):
    app.dependency_overrides[get_gateway] = lambda: FakeGateway(fail=True)

    resp = client.post("/api/register", json={"name": "Asha", "phone": "+919999"})

    assert resp.status_code == 200
    assert len(repo.created) == 1


# -------------------------
# Stats
# -------------------------


def test_stats_counts_subscribers(client):
    client.post("/api/register", json={"name": "Asha", "phone": "+919999"})

    resp = client.get("/api/stats")

    assert resp.status_code == 200
    assert resp.json() == {"total": 2, "daily": 1, "weekly": 1}


def test_stats_store_failure(client):
    app.dependency_overrides[get_repo] = lambda: FakeRepo(broken=True)
    assert client.get("/api/stats").status_code == 500


# -------------------------
# Webhook
# -------------------------


def test_whatsapp_webhook_returns_twiml(client):
    resp = client.post("/whatsapp", data={"Body": "emergency helpline Telangana", "From": "whatsapp:+91"})

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/xml")
    assert "<Message>☎️ Telangana Health Helpline: 104</Message>" in resp.text


def test_whatsapp_webhook_ai_answer(client):
    resp = client.post("/whatsapp", data={"Body": "how to stay fit", "From": "whatsapp:+91"})
    assert "<Message>Stay hydrated.</Message>" in resp.text


def test_whatsapp_webhook_never_fails(client):
    app.dependency_overrides[get_message_handler] = lambda: ExplodingHandler()

    resp = client.post("/whatsapp", data={"Body": "hi", "From": "whatsapp:+91"})

    assert resp.status_code == 200
    assert APOLOGY_MESSAGE in resp.text


def test_whatsapp_webhook_without_gemini_key(client, monkeypatch):
    app.dependency_overrides.pop(get_message_handler)
    monkeypatch.setattr(web_app, "_handler", None)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    resp = client.post("/whatsapp", data={"Body": "hi", "From": "whatsapp:+91"})

    assert resp.status_code == 200
    assert APOLOGY_MESSAGE in resp.text
    assert web_app._handler is None


def test_health_check(client):
    assert client.get("/health").json() == {"status": "healthy", "service": "health-alert-bot"}
