"""
trok/models/payment.py

Purpose: Payment and statement document models

- Payment status for bank transfers started through Plaid
- Statement status used by the past-due job
"""

from enum import Enum


class PaymentStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    FAILED = "failed"


class PaymentType(str, Enum):
    BANK_TRANSFER = "bank_transfer"
    TOP_UP = "top_up"


class StatementStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    PAST_DUE = "past_due"
