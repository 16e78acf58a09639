"""
trok/utils/validation_utils.py

Purpose: Input validation

- Email normalization and format checks
- UK phone, sort code and account number checks
- Payment reference sanitization
- Object path segments for uploads
"""

import re
from typing import Optional

from trok.utils.constants import PAYMENT_REFERENCE_MAX_LENGTH


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
REFERENCE_PATTERN = re.compile(r"^[a-zA-Z0-9 ]+$")
PATH_SEGMENT_PATTERN = re.compile(r"^[A-Za-z0-9 ._()-]+$")


def normalize_email(email: str) -> str:
    """
    Trims and lower-cases an email so it can be used as a lookup key.
    """
    return (email or "").strip().lower()


def validate_email(email: str) -> bool:
    """
    Validates basic email shape (local@domain.tld).

    Args:
        email: Email string to validate

    Returns:
        True if valid, False otherwise
    """
    if not email:
        return False
    return bool(EMAIL_PATTERN.match(email.strip()))


def normalize_uk_phone(phone: str) -> Optional[str]:
    """
    Converts a UK phone number to E.164 format.

    Accepts 07xxx, 447xxx and +447xxx forms with spaces or dashes.
    Returns None when the number is not a recognisable UK number.

    Examples:
        "07523 958055"  -> "+447523958055"
        "+44 7523 958055" -> "+447523958055"
    """
    if not phone:
        return None

    digits = re.sub(r"[\s\-()]", "", phone)

    if digits.startswith("+44"):
        national = digits[3:]
    elif digits.startswith("0044"):
        national = digits[4:]
    elif digits.startswith("44") and len(digits) == 12:
        national = digits[2:]
    elif digits.startswith("0"):
        national = digits[1:]
    else:
        return None

    if national.startswith("0"):
        national = national[1:]

    if not national.isdigit() or len(national) != 10:
        return None

    return f"+44{national}"


def validate_sort_code(sort_code: str) -> bool:
    """Sort codes are 6 digits, optionally written as 12-34-56."""
    if not sort_code:
        return False
    return bool(re.match(r"^\d{6}$", sort_code.replace("-", "").replace(" ", "")))


def clean_sort_code(sort_code: str) -> str:
    return sort_code.replace("-", "").replace(" ", "")


def validate_account_number(account_number: str) -> bool:
    """UK account numbers are 8 digits."""
    if not account_number:
        return False
    return bool(re.match(r"^\d{8}$", account_number.strip()))


def validate_payment_reference(reference: str) -> bool:
    """
    Payment references must not contain special characters and must fit
    the Faster Payments limit.
    """
    if not reference or len(reference) > PAYMENT_REFERENCE_MAX_LENGTH:
        return False
    return bool(REFERENCE_PATTERN.match(reference))


def validate_path_segment(segment: str) -> bool:
    """
    Checks that a value can be used as one segment of an object path.
    Rejects separators and traversal sequences.
    """
    if not segment or segment in (".", ".."):
        return False
    return bool(PATH_SEGMENT_PATTERN.match(segment))


def validate_field_name(name: str) -> bool:
    """
    Checks that a client-supplied key can be stored as a single document field.
    Operator prefixes and dotted paths are rejected.
    """
    return isinstance(name, str) and bool(name) and not name.startswith("$") and "." not in name
