"""
trok/rpc/handlers/invoices.py

Invoicing procedures. The flat names predate the `invoice.` namespace
and are kept for older dashboard builds.
"""

from trok.rpc.dispatcher import RpcContext, procedure
from trok.schemas.invoice import (
    CustomerCreate,
    InvoiceCreate,
    InvoiceUpdate,
    ItemCreate,
    TaxRateCreate,
    UserScoped,
)
from trok.services import invoice_service


@procedure("query", "getCustomers", input_type=UserScoped)
async def get_customers(ctx: RpcContext, data: UserScoped):
    return await invoice_service.get_customers(data.user_id)


@procedure("mutation", "createCustomer", input_type=CustomerCreate)
async def create_customer(ctx: RpcContext, data: CustomerCreate):
    return await invoice_service.create_customer(data)


@procedure("query", "getItems", input_type=UserScoped)
async def get_items(ctx: RpcContext, data: UserScoped):
    return await invoice_service.get_items(data.user_id)


@procedure("mutation", "createItem", input_type=ItemCreate)
async def create_item(ctx: RpcContext, data: ItemCreate):
    return await invoice_service.create_item(data)


@procedure("query", "getTaxRates", input_type=UserScoped)
async def get_tax_rates(ctx: RpcContext, data: UserScoped):
    return await invoice_service.get_tax_rates(data.user_id)


@procedure("mutation", "createTaxRate", input_type=TaxRateCreate)
async def create_tax_rate(ctx: RpcContext, data: TaxRateCreate):
    return await invoice_service.create_tax_rate(data)


@procedure("mutation", "createInvoice", "invoice.createInvoice", input_type=InvoiceCreate)
async def create_invoice(ctx: RpcContext, data: InvoiceCreate):
    return await invoice_service.create_invoice(data)


@procedure("query", "getInvoices", "invoice.getInvoices", input_type=UserScoped)
async def get_invoices(ctx: RpcContext, data: UserScoped):
    return await invoice_service.get_invoices(data.user_id)


@procedure("mutation", "invoice.updateInvoice", input_type=InvoiceUpdate)
async def update_invoice(ctx: RpcContext, data: InvoiceUpdate):
    return await invoice_service.update_invoice(data)
