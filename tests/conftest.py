import asyncio
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from trok.db import mongo
from trok.db.indexes import create_indexes
from trok.main import app
from trok.services.plaid_service import PlaidService, get_plaid_service
from trok.services.stripe_service import StripeService, get_stripe_service
from tests.fakes import FakeDatabase


@pytest.fixture
def db(monkeypatch):
    database = FakeDatabase()
    monkeypatch.setattr(mongo, "_database", database)
    asyncio.run(create_indexes())
    return database


@pytest.fixture
def client(db):
    yield TestClient(app)
    app.dependency_overrides.clear()


class PlaidStub:
    """Records Plaid calls and answers them with canned bodies."""

    def __init__(self):
        self.calls = []
        self.responses = {
            "/link/token/create": {
                "link_token": "link-sandbox-123",
                "expiration": "2026-10-19T16:00:00Z",
            },
            "/item/public_token/exchange": {
                "access_token": "access-sandbox-abc",
                "item_id": "item-1",
            },
            "/payment_initiation/recipient/create": {"recipient_id": "recipient-1"},
            "/payment_initiation/payment/create": {
                "payment_id": "payment-1",
                "status": "PAYMENT_STATUS_INPUT_NEEDED",
            },
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.calls.append((request.url.path, body))
        if request.url.path not in self.responses:
            return httpx.Response(400, json={"error_code": "UNKNOWN", "error_message": "unknown path"})
        status, payload = 200, self.responses[request.url.path]
        if isinstance(payload, tuple):
            status, payload = payload
        return httpx.Response(status, json=payload)

    def service(self) -> PlaidService:
        return PlaidService(
            client_id="client-id",
            secret="secret",
            base_url="https://sandbox.plaid.com",
            transport=httpx.MockTransport(self.handler),
        )


class StripeStub:
    def __init__(self):
        self.calls = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append((request.method, request.url.path, request.content.decode()))
        path = request.url.path
        if path == "/v1/accounts" and request.method == "POST":
            return httpx.Response(200, json={"id": "acct_123", "object": "account"})
        if path.endswith("/persons"):
            return httpx.Response(200, json={"id": "person_456", "object": "person"})
        if path.startswith("/v1/accounts/"):
            return httpx.Response(200, json={"id": path.rsplit("/", 1)[-1], "object": "account"})
        return httpx.Response(404, json={"error": {"message": "No such route", "type": "invalid_request_error"}})

    def service(self) -> StripeService:
        return StripeService(
            api_key="sk_test_123",
            base_url="https://api.stripe.com/v1",
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def plaid_stub():
    stub = PlaidStub()
    app.dependency_overrides[get_plaid_service] = stub.service
    yield stub
    app.dependency_overrides.pop(get_plaid_service, None)


@pytest.fixture
def stripe_stub():
    stub = StripeStub()
    app.dependency_overrides[get_stripe_service] = stub.service
    yield stub
    app.dependency_overrides.pop(get_stripe_service, None)
