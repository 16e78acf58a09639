"""
trok/schemas/auth.py

Pydantic models for signup, onboarding, registration and login payloads.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, Optional

from trok.utils.validation_utils import normalize_email, normalize_uk_phone, validate_email


def _clean_email(v: str) -> str:
    v = normalize_email(v)
    if not validate_email(v):
        raise ValueError("Invalid email address")
    return v


class SignupInfo(BaseModel):
    """First step of the signup wizard."""

    firstname: str = Field(..., min_length=1, description="First name")
    lastname: str = Field(..., min_length=1, description="Last name")
    full_name: Optional[str] = Field(default=None, description="Display name, derived when absent")
    email: str = Field(..., description="Login email, also the staging key")
    password: str = Field(..., min_length=1, description="Account password")
    phone: str = Field(..., description="Contact phone number")
    referral_code: Optional[str] = Field(default=None, description="Optional referral code")

    @field_validator("email")
    @classmethod
    def clean_email(cls, v: str) -> str:
        return _clean_email(v)

    @field_validator("phone")
    @classmethod
    def format_phone(cls, v: str) -> str:
        """Convert UK numbers to E.164; keep anything else as typed."""
        return normalize_uk_phone(v) or v.strip()

    class Config:
        json_schema_extra = {
            "example": {
                "firstname": "Chisom",
                "lastname": "Oguibe",
                "email": "chisom@fleetco.co.uk",
                "password": "s3cret",
                "phone": "07523958055",
                "referral_code": None
            }
        }


class TokenRef(BaseModel):
    """A Stripe.js token object; only the id is needed server-side."""

    id: str = Field(..., min_length=1)

    class Config:
        extra = "allow"


class CompleteRegistrationRequest(BaseModel):
    accountToken: TokenRef = Field(..., description="Stripe account token")
    personToken: TokenRef = Field(..., description="Stripe person token")
    business_profile: Dict[str, Any] = Field(default_factory=dict)
    data: Dict[str, Any] = Field(default_factory=dict)


class LoginRequest(BaseModel):
    email: str = Field(..., description="Login email")
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def clean_email(cls, v: str) -> str:
        return normalize_email(v)


class EmailRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def clean_email(cls, v: str) -> str:
        return _clean_email(v)
