import asyncio
import hashlib
import hmac
import json
import time

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from failure_monitor.config import Settings, get_settings
from failure_monitor.middleware.request_id import RequestIDMiddleware
from failure_monitor.ring_log import RingLog
from failure_monitor.routers import diagnostics, webhooks
from failure_monitor.schemas.payment import FailedPayment
from failure_monitor.services.alert_sink import GmailAlertSink
from failure_monitor.services.dispatcher import SinkOutcome
from failure_monitor.services.record_sink import AirtableRecordSink

WEBHOOK_SECRET = "whsec_test_secret_for_hmac"


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Build a Stripe-Signature header value the way Stripe does."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.".encode() + payload
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def make_event(
    event_type: str = "payment_intent.payment_failed",
    intent: dict | None = None,
    created: int = 1700000000,
    event_id: str = "evt_test_001",
) -> bytes:
    if intent is None:
        intent = {
            "id": "pi_test_001",
            "object": "payment_intent",
            "amount": 5000,
            "currency": "usd",
            "receipt_email": "customer@example.com",
            "last_payment_error": {
                "code": "card_declined",
                "message": "Your card was declined.",
            },
        }
    envelope = {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "created": created,
        "livemode": False,
        "data": {"object": intent},
    }
    return json.dumps(envelope).encode()


class FakeTransport:
    """In-memory stand-in for GmailTransport."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.sent: list[tuple[str, str, str]] = []

    async def send(self, recipient: str, subject: str, body: str) -> str:
        await asyncio.sleep(0)
        self.sent.append((recipient, subject, body))
        if self.error is not None:
            raise self.error
        return f"msg_{len(self.sent)}"


class FakeStore:
    """In-memory stand-in for AirtableClient."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.created: list[tuple[str, dict]] = []

    async def create_record(self, table: str, fields: dict) -> str:
        await asyncio.sleep(0)
        self.created.append((table, fields))
        if self.error is not None:
            raise self.error
        return f"rec{len(self.created):03d}"


class CountingSink:
    """Sink double that counts deliveries and can raise instead of returning."""

    def __init__(self, name: str, error: Exception | None = None):
        self.name = name
        self.error = error
        self.delivered: list[FailedPayment] = []

    async def deliver(self, payment: FailedPayment):
        await asyncio.sleep(0)
        self.delivered.append(payment)
        if self.error is not None:
            raise self.error
        return SinkOutcome(sink=self.name, success=True)


@pytest.fixture
def webhook_secret():
    return WEBHOOK_SECRET


@pytest.fixture
def ring_log():
    return RingLog()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def alert_sink(transport, ring_log):
    return GmailAlertSink(transport, ring_log, recipient="ops@example.com")


@pytest.fixture
def record_sink(store, ring_log):
    return AirtableRecordSink(store, ring_log)


@pytest.fixture
def payment():
    return FailedPayment(
        payment_id="pi_test_001",
        customer_email="customer@example.com",
        amount_minor_units=5000,
        currency="usd",
        failure_code="card_declined",
        failure_message="Your card was declined.",
        failed_at="2023-11-14T22:13:20.000Z",
    )


@pytest.fixture
def build_app(ring_log):
    """Build a FastAPI app wired with the given sinks, without the production lifespan."""

    def _build(alert, record) -> FastAPI:
        app = FastAPI()
        app.add_middleware(RequestIDMiddleware)
        app.include_router(diagnostics.router)
        app.include_router(webhooks.router, prefix="/webhook")
        app.state.ring_log = ring_log
        app.state.alert_sink = alert
        app.state.record_sink = record
        app.dependency_overrides[get_settings] = lambda: Settings(
            stripe_webhook_secret=WEBHOOK_SECRET
        )
        return app

    return _build


@pytest.fixture
def app(build_app, alert_sink, record_sink):
    return build_app(alert_sink, record_sink)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def sign():
    return sign_payload


@pytest.fixture
def event_factory():
    return make_event


@pytest.fixture
def counting_sinks():
    return CountingSink("alert"), CountingSink("record")


@pytest.fixture
def counting_client(build_app, counting_sinks):
    alert, record = counting_sinks
    return TestClient(build_app(alert, record))
