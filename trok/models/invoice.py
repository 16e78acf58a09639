"""
trok/models/invoice.py

Purpose: Invoice document model

- Invoice lifecycle status (draft -> processing -> approved -> paid)
- Paid status and tax calculation modes
- Total and subtotal calculation in minor units
"""

from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple


class InvoiceStatus(str, Enum):
    """Lifecycle of an invoice submitted for factoring."""

    DRAFT = "draft"
    PROCESSING = "processing"
    APPROVED = "approved"
    PAID = "paid"


class PaidStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"


class TaxCalculation(str, Enum):
    INCLUSIVE = "inclusive"
    EXCLUSIVE = "exclusive"


def calculate_totals(
    line_items: Iterable[Dict[str, Any]],
    tax_rate: Optional[Dict[str, Any]] = None
) -> Tuple[int, int]:
    """
    Calculates (subtotal, total) for a set of line items.

    Prices are in minor units (pence). Exclusive tax is added on top of the
    sum; inclusive tax is already part of the sum and is taken out of the
    subtotal.

    Args:
        line_items: Dicts with quantity and price
        tax_rate: Optional dict with percentage and calculation

    Returns:
        (subtotal, total) rounded to whole pence
    """
    amount = sum(item.get("quantity", 1) * item.get("price", 0) for item in line_items)

    subtotal = amount
    total = amount

    if tax_rate:
        tax = amount * tax_rate.get("percentage", 0) / 100
        calculation = tax_rate.get("calculation")
        if calculation == TaxCalculation.EXCLUSIVE.value:
            total = amount + tax
        elif calculation == TaxCalculation.INCLUSIVE.value:
            subtotal = amount - tax

    return round(subtotal), round(total)
