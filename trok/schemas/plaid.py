"""
trok/schemas/plaid.py

Pydantic models for bank-linking and payment initiation requests.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional

from trok.utils.constants import PAYMENT_REFERENCE_MAX_LENGTH
from trok.utils.validation_utils import (
    clean_sort_code,
    normalize_email,
    validate_account_number,
    validate_payment_reference,
    validate_sort_code,
)


class SetAccessTokenRequest(BaseModel):
    public_token: str = Field(..., min_length=1, description="Public token returned by Plaid Link")
    email: Optional[str] = Field(default=None, description="Account the bank connection belongs to")

    @field_validator("email")
    @classmethod
    def clean_email(cls, v: Optional[str]) -> Optional[str]:
        return normalize_email(v) if v else None


class PaymentLinkTokenRequest(BaseModel):
    """Top-up payment started from the payments dashboard."""

    user_id: str = Field(..., min_length=1)
    stripe_account_id: Optional[str] = None
    amount: float = Field(..., gt=0, description="Amount in pounds")
    reference: str = Field(..., min_length=1, max_length=PAYMENT_REFERENCE_MAX_LENGTH)
    account_holder_name: Optional[str] = None
    account_number: Optional[str] = None
    sort_code: Optional[str] = None

    @field_validator("reference")
    @classmethod
    def validate_reference(cls, v: str) -> str:
        if not validate_payment_reference(v):
            raise ValueError("Reference must not contain special characters")
        return v

    @model_validator(mode="after")
    def check_bank_details(self) -> "PaymentLinkTokenRequest":
        """Bank details are all-or-nothing."""
        supplied = [self.account_holder_name, self.account_number, self.sort_code]
        if any(supplied) and not all(supplied):
            raise ValueError("account_holder_name, account_number and sort_code must be supplied together")
        if self.sort_code:
            if not validate_sort_code(self.sort_code):
                raise ValueError("Sort code must be 6 digits")
            self.sort_code = clean_sort_code(self.sort_code)
        if self.account_number and not validate_account_number(self.account_number):
            raise ValueError("Account number must be 8 digits")
        return self

    @property
    def has_bank_details(self) -> bool:
        return bool(self.account_number)
