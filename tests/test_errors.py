from fastapi.testclient import TestClient
from pydantic import BaseModel

from trok.core.exceptions import ConflictError, ExternalServiceError, ResourceNotFoundError
from trok.main import app

client = TestClient(app, raise_server_exceptions=False)


class Item(BaseModel):
    name: str
    price: int


@app.post("/test-validation")
def create_test_item(item: Item):
    return item


@app.get("/test-custom-error")
def trigger_custom_error():
    raise ResourceNotFoundError(message="Item not found")


@app.get("/test-conflict")
def trigger_conflict():
    raise ConflictError("Invoice number has already been used", details={"invoice_number": "INV-1"})


@app.get("/test-upstream")
def trigger_upstream():
    raise ExternalServiceError("Stripe is taking too long to respond. Please try again.")


@app.get("/test-crash")
def trigger_crash():
    raise RuntimeError("boom")


def test_404_not_found():
    response = client.get("/non-existent-route")
    assert response.status_code == 404
    data = response.json()
    assert "error" in data
    assert "code" in data
    assert data["code"] == "HTTP_ERROR"


def test_validation_error_structure():
    response = client.post("/test-validation", json={"name": "foo", "price": "invalid"})
    assert response.status_code == 422
    data = response.json()
    assert data["code"] == "VALIDATION_ERROR"
    assert "details" in data
    assert len(data["details"]) > 0


def test_custom_exception():
    response = client.get("/test-custom-error")
    assert response.status_code == 404
    data = response.json()
    assert data["code"] == "NOT_FOUND"
    assert data["error"] == "Item not found"


def test_conflict_carries_details():
    response = client.get("/test-conflict")
    assert response.status_code == 409
    data = response.json()
    assert data["code"] == "CONFLICT"
    assert data["details"] == {"invoice_number": "INV-1"}


def test_external_service_error_is_bad_gateway():
    response = client.get("/test-upstream")
    assert response.status_code == 502
    assert response.json()["code"] == "EXTERNAL_SERVICE_ERROR"


def test_unhandled_exception_is_500():
    response = client.get("/test-crash")
    assert response.status_code == 500
    assert response.json()["code"] == "INTERNAL_ERROR"
