from datetime import datetime, timezone

from trok.models.invoice import calculate_totals
from tests.fakes import rpc_mutation, rpc_query

DAY = 24 * 60 * 60
INVOICE_DATE = int(datetime(2026, 10, 1, tzinfo=timezone.utc).timestamp())


def invoice_payload(**overrides):
    payload = {
        "userId": "user_1",
        "invoice_number": "INV-0001",
        "customer": "cus_1",
        "invoice_date": INVOICE_DATE,
        "due_date": INVOICE_DATE + 30 * DAY,
        "line_items": [
            {"name": "Haulage", "quantity": 2, "price": 10000},
            {"name": "Fuel surcharge", "quantity": 1, "price": 2500},
        ],
        "tax_rate": {"name": "VAT", "percentage": 20, "calculation": "exclusive"},
        "subtotal": 1,
        "total": 1,
    }
    payload.update(overrides)
    return payload


def test_totals_without_tax():
    assert calculate_totals([{"quantity": 3, "price": 1000}]) == (3000, 3000)


def test_totals_exclusive_tax():
    assert calculate_totals(
        [{"quantity": 1, "price": 10000}],
        {"percentage": 20, "calculation": "exclusive"}
    ) == (10000, 12000)


def test_totals_inclusive_tax():
    assert calculate_totals(
        [{"quantity": 1, "price": 12000}],
        {"percentage": 20, "calculation": "inclusive"}
    ) == (9600, 12000)


def test_create_invoice_recomputes_totals(client, db):
    response = rpc_mutation(client, "invoice.createInvoice", invoice_payload())

    assert response.status_code == 200
    invoice = response.json()["result"]["data"]
    assert invoice["subtotal"] == 22500
    assert invoice["total"] == 27000
    assert invoice["status"] == "draft"
    assert invoice["paid_status"] == "unpaid"
    assert invoice["invoice_id"].startswith("inv_")
    assert "_id" not in invoice


def test_flat_alias_creates_invoice(client, db):
    response = rpc_mutation(client, "createInvoice", invoice_payload())

    assert response.status_code == 200
    assert len(db["invoices"].documents) == 1


def test_duplicate_invoice_number_conflicts(client, db):
    rpc_mutation(client, "createInvoice", invoice_payload())

    response = rpc_mutation(client, "createInvoice", invoice_payload())

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"


def test_same_number_for_another_user_is_allowed(client, db):
    rpc_mutation(client, "createInvoice", invoice_payload())

    response = rpc_mutation(client, "createInvoice", invoice_payload(userId="user_2"))

    assert response.status_code == 200


def test_due_date_must_be_three_days_out(client, db):
    response = rpc_mutation(client, "createInvoice", invoice_payload(due_date=INVOICE_DATE + 2 * DAY))

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "BAD_REQUEST"
    assert db["invoices"].documents == []


def test_get_invoices_is_scoped_to_user(client, db):
    rpc_mutation(client, "createInvoice", invoice_payload())
    rpc_mutation(client, "createInvoice", invoice_payload(userId="user_2", invoice_number="INV-9"))

    response = rpc_query(client, "invoice.getInvoices", {"userId": "user_1"})

    invoices = response.json()["result"]["data"]
    assert [invoice["invoice_number"] for invoice in invoices] == ["INV-0001"]


def test_request_approval_then_mark_paid(client, db):
    created = rpc_mutation(client, "createInvoice", invoice_payload()).json()["result"]["data"]

    response = rpc_mutation(client, "invoice.updateInvoice", {
        "userId": "user_1",
        "invoice_id": created["invoice_id"],
        "status": "processing",
        "pod": "12345678/POD/delivery.pdf",
    })
    invoice = response.json()["result"]["data"]
    assert invoice["status"] == "processing"
    assert invoice["approval_requested"] is True
    assert invoice["pod"] == "12345678/POD/delivery.pdf"

    response = rpc_mutation(client, "invoice.updateInvoice", {
        "userId": "user_1",
        "invoice_id": created["invoice_id"],
        "status": "paid",
    })
    assert response.json()["result"]["data"]["paid_status"] == "paid"


def test_update_unknown_invoice(client, db):
    response = rpc_mutation(client, "invoice.updateInvoice", {
        "userId": "user_1",
        "invoice_id": "inv_missing",
        "status": "processing",
    })

    assert response.status_code == 404
    assert response.json()["error"]["data"]["path"] == "invoice.updateInvoice"


def test_customers_items_and_tax_rates(client, db):
    customer = rpc_mutation(client, "createCustomer", {
        "userId": "user_1",
        "display_name": "Tesco Distribution",
        "email": "ap@tesco.example",
    }).json()["result"]["data"]
    assert customer["id"].startswith("cus_")

    rpc_mutation(client, "createItem", {"userId": "user_1", "name": "Pallet", "price": 4500})
    rpc_mutation(client, "createTaxRate", {
        "userId": "user_1", "name": "VAT", "percentage": 20, "calculation": "exclusive"
    })

    customers = rpc_query(client, "getCustomers", {"userId": "user_1"}).json()["result"]["data"]
    items = rpc_query(client, "getItems", {"userId": "user_1"}).json()["result"]["data"]
    tax_rates = rpc_query(client, "getTaxRates", {"userId": "user_1"}).json()["result"]["data"]

    assert [c["display_name"] for c in customers] == ["Tesco Distribution"]
    assert items[0]["price"] == 4500
    assert tax_rates[0]["calculation"] == "exclusive"
    assert rpc_query(client, "getItems", {"userId": "user_2"}).json()["result"]["data"] == []


def test_float_prices_round_to_pence(client, db):
    payload = invoice_payload(
        line_items=[{"name": "Diesel", "quantity": 1, "price": 19.99 * 100}],
        tax_rate=None
    )

    response = rpc_mutation(client, "createInvoice", payload)

    assert response.status_code == 200
    invoice = response.json()["result"]["data"]
    assert invoice["line_items"][0]["price"] == 1999
    assert invoice["subtotal"] == 1999
    assert invoice["total"] == 1999


def test_create_item_rounds_float_price(client, db):
    response = rpc_mutation(client, "createItem", {"userId": "user_1", "name": "Toll", "price": 0.29 * 100})

    assert response.status_code == 200
    items = rpc_query(client, "getItems", {"userId": "user_1"}).json()["result"]["data"]
    assert items[0]["price"] == 29


def test_tax_rate_percentage_must_be_in_range(client, db):
    for percentage in (150, -1):
        response = rpc_mutation(client, "createTaxRate", {
            "userId": "user_1", "name": "VAT", "percentage": percentage, "calculation": "exclusive"
        })

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "BAD_REQUEST"

    assert db["tax_rates"].documents == []


def test_invoice_tax_rate_percentage_must_be_in_range(client, db):
    payload = invoice_payload(tax_rate={"name": "VAT", "percentage": 150, "calculation": "exclusive"})

    response = rpc_mutation(client, "createInvoice", payload)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "BAD_REQUEST"
    assert db["invoices"].documents == []
