"""
trok/schemas/invoice.py

Pydantic models for the invoicing procedures (customers, line items,
tax rates, invoices). Money values are integers in minor units (pence).
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, Dict, List, Optional

from trok.models.invoice import InvoiceStatus, PaidStatus, TaxCalculation
from trok.utils.constants import MIN_INVOICE_TERM_DAYS
from trok.utils.time_utils import days_between


def _round_pence(v: Any) -> Any:
    """Dashboard prices arrive as float pounds x 100 (e.g. 1998.9999999999998)."""
    if isinstance(v, float):
        return round(v)
    return v


class UserScoped(BaseModel):
    """Every dashboard procedure is scoped to the signed-in user."""

    user_id: str = Field(..., alias="userId", min_length=1)

    class Config:
        populate_by_name = True


class LineItem(BaseModel):
    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    quantity: int = Field(default=1, ge=1)
    price: int = Field(default=0, ge=0, description="Unit price in pence")
    description: Optional[str] = None

    @field_validator("price", mode="before")
    @classmethod
    def price_to_pence(cls, v: Any) -> Any:
        return _round_pence(v)

    class Config:
        extra = "ignore"


class TaxRate(BaseModel):
    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    percentage: float = Field(..., ge=0, le=100)
    calculation: TaxCalculation = TaxCalculation.INCLUSIVE
    description: Optional[str] = None

    class Config:
        extra = "ignore"


class CustomerCreate(UserScoped):
    display_name: str = Field(..., min_length=1)
    primary_contact: Optional[str] = None
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    billing_address: Optional[Dict[str, Any]] = None


class ItemCreate(UserScoped):
    name: str = Field(..., min_length=1)
    price: int = Field(default=0, ge=0, description="Unit price in pence")
    description: Optional[str] = None

    @field_validator("price", mode="before")
    @classmethod
    def price_to_pence(cls, v: Any) -> Any:
        return _round_pence(v)


class TaxRateCreate(UserScoped, TaxRate):
    pass


class InvoiceCreate(UserScoped):
    invoice_id: Optional[str] = None
    invoice_number: str = Field(..., min_length=1)
    customer: str = Field(..., min_length=1, description="Customer id")
    invoice_date: int = Field(..., description="Unix seconds")
    due_date: int = Field(..., description="Unix seconds")
    line_items: List[LineItem] = Field(..., min_length=1)
    tax_rate: Optional[TaxRate] = None
    notes: Optional[str] = None
    # Sent by the dashboard; recomputed server-side
    subtotal: Optional[float] = None
    total: Optional[float] = None

    @field_validator("invoice_number")
    @classmethod
    def strip_number(cls, v: str) -> str:
        return v.strip()

    @model_validator(mode="after")
    def check_due_date(self) -> "InvoiceCreate":
        if days_between(self.invoice_date, self.due_date) < MIN_INVOICE_TERM_DAYS:
            raise ValueError(
                f"Due date must be at least {MIN_INVOICE_TERM_DAYS} days after the invoice date"
            )
        return self


class InvoiceUpdate(UserScoped):
    invoice_id: str = Field(..., min_length=1)
    status: Optional[InvoiceStatus] = None
    paid_status: Optional[PaidStatus] = None
    pod: Optional[str] = Field(default=None, description="Proof of delivery object path")
    invoice_document: Optional[str] = None
    notes: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        """Fields the caller actually supplied, excluding the lookup keys."""
        return self.model_dump(
            exclude_none=True,
            exclude={"user_id", "invoice_id"},
            mode="json"
        )
