"""
trok/services/invoice_service.py

Purpose: Invoicing records

- Customers, reusable line items and tax rates per user
- Invoice creation with server-side totals and unique invoice numbers
- Invoice updates (approval requests, proof of delivery, paid status)
"""

import uuid
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

from trok.db.mongo import (
    get_customers_collection,
    get_invoices_collection,
    get_items_collection,
    get_tax_rates_collection,
)
from trok.core.exceptions import ConflictError, ResourceNotFoundError
from trok.core.logging import get_logger, LogContext
from trok.models.invoice import InvoiceStatus, PaidStatus, calculate_totals
from trok.schemas.invoice import (
    CustomerCreate,
    InvoiceCreate,
    InvoiceUpdate,
    ItemCreate,
    TaxRateCreate,
)
from trok.utils.constants import INVOICE_ID_PREFIX
from trok.utils.time_utils import utcnow

logger = get_logger(__name__)

LIST_LIMIT = 500


def generate_invoice_id() -> str:
    return f"{INVOICE_ID_PREFIX}{uuid.uuid4().hex[:24]}"


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


def _strip_mongo_id(document: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if document is not None:
        document.pop("_id", None)
    return document


async def _list_for_user(collection, user_id: str) -> List[Dict[str, Any]]:
    cursor = collection.find({"user_id": user_id}).sort("created_at", DESCENDING)
    documents = await cursor.to_list(length=LIST_LIMIT)
    return [_strip_mongo_id(document) for document in documents]


async def _insert(collection, document: Dict[str, Any]) -> Dict[str, Any]:
    await collection.insert_one(document)
    return _strip_mongo_id(document)


# ============================================================
# CUSTOMERS / ITEMS / TAX RATES
# ============================================================

async def get_customers(user_id: str) -> List[Dict[str, Any]]:
    return await _list_for_user(get_customers_collection(), user_id)


async def create_customer(data: CustomerCreate) -> Dict[str, Any]:
    customer = {
        "id": _new_id("cus"),
        **data.model_dump(mode="json"),
        "created_at": utcnow(),
    }
    customer = await _insert(get_customers_collection(), customer)
    logger.info(f"Customer {customer['id']} created", extra={"user_id": data.user_id})
    return customer


async def get_items(user_id: str) -> List[Dict[str, Any]]:
    return await _list_for_user(get_items_collection(), user_id)


async def create_item(data: ItemCreate) -> Dict[str, Any]:
    item = {
        "id": _new_id("item"),
        **data.model_dump(mode="json"),
        "created_at": utcnow(),
    }
    item = await _insert(get_items_collection(), item)
    logger.info(f"Line item {item['id']} created", extra={"user_id": data.user_id})
    return item


async def get_tax_rates(user_id: str) -> List[Dict[str, Any]]:
    return await _list_for_user(get_tax_rates_collection(), user_id)


async def create_tax_rate(data: TaxRateCreate) -> Dict[str, Any]:
    tax_rate = {
        **data.model_dump(mode="json"),
        "id": data.id or _new_id("txr"),
        "created_at": utcnow(),
    }
    tax_rate = await _insert(get_tax_rates_collection(), tax_rate)
    logger.info(f"Tax rate {tax_rate['id']} created", extra={"user_id": data.user_id})
    return tax_rate


# ============================================================
# INVOICES
# ============================================================

async def get_invoices(user_id: str) -> List[Dict[str, Any]]:
    return await _list_for_user(get_invoices_collection(), user_id)


async def get_invoice(user_id: str, invoice_id: str) -> Dict[str, Any]:
    invoices = get_invoices_collection()
    invoice = await invoices.find_one({"user_id": user_id, "invoice_id": invoice_id})
    if not invoice:
        raise ResourceNotFoundError(f"Invoice {invoice_id} not found")
    return _strip_mongo_id(invoice)


async def create_invoice(data: InvoiceCreate) -> Dict[str, Any]:
    """
    Saves a new invoice as a draft.

    Subtotal and total are recomputed from the line items and tax rate;
    values sent by the client are ignored.

    Raises:
        ConflictError: If the invoice number was already used by this user
    """
    with LogContext(user_id=data.user_id):
        invoices = get_invoices_collection()

        existing = await invoices.find_one({
            "user_id": data.user_id,
            "invoice_number": data.invoice_number
        })
        if existing:
            raise ConflictError("Invoice number has already been used")

        line_items = [item.model_dump(mode="json") for item in data.line_items]
        tax_rate = data.tax_rate.model_dump(mode="json") if data.tax_rate else None
        subtotal, total = calculate_totals(line_items, tax_rate)

        now = utcnow()
        invoice = {
            "invoice_id": data.invoice_id or generate_invoice_id(),
            "user_id": data.user_id,
            "invoice_number": data.invoice_number,
            "customer": data.customer,
            "invoice_date": data.invoice_date,
            "due_date": data.due_date,
            "line_items": line_items,
            "tax_rate": tax_rate,
            "subtotal": subtotal,
            "total": total,
            "notes": data.notes,
            "status": InvoiceStatus.DRAFT.value,
            "paid_status": PaidStatus.UNPAID.value,
            "approved": False,
            "approval_requested": False,
            "pod": None,
            "invoice_document": None,
            "created_at": now,
            "updated_at": now,
        }

        try:
            invoice = await _insert(invoices, invoice)
        except DuplicateKeyError:
            raise ConflictError("Invoice number has already been used")

        logger.info(
            f"Invoice {invoice['invoice_id']} ({data.invoice_number}) saved as draft, total={total}",
            extra={"user_id": data.user_id}
        )
        return invoice


async def update_invoice(data: InvoiceUpdate) -> Dict[str, Any]:
    """
    Applies the supplied changes to an invoice.

    Requesting approval (status -> processing) flags the invoice as awaiting
    review; marking it paid also sets paid_status.
    """
    with LogContext(user_id=data.user_id):
        invoices = get_invoices_collection()
        changes = data.changes()

        status = changes.get("status")
        if status == InvoiceStatus.PROCESSING.value:
            changes["approval_requested"] = True
        elif status == InvoiceStatus.APPROVED.value:
            changes["approved"] = True
        elif status == InvoiceStatus.PAID.value:
            changes["paid_status"] = PaidStatus.PAID.value

        changes["updated_at"] = utcnow()

        result = await invoices.update_one(
            {"user_id": data.user_id, "invoice_id": data.invoice_id},
            {"$set": changes}
        )
        if result.matched_count == 0:
            raise ResourceNotFoundError(f"Invoice {data.invoice_id} not found")

        logger.info(
            f"Invoice {data.invoice_id} updated: {sorted(k for k in changes if k != 'updated_at')}",
            extra={"user_id": data.user_id}
        )
        return await get_invoice(data.user_id, data.invoice_id)
