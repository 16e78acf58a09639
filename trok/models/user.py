"""
trok/models/user.py

Purpose: User document model

- Signup identity fields and onboarding progress
- Linked Stripe account and Plaid item
- Public projection that never exposes secrets
"""

from enum import IntEnum
from typing import Any, Dict, Optional


class OnboardingStep(IntEnum):
    """
    Steps of the onboarding wizard. The staged record starts at SIGNUP and the
    client reports each later step as it is submitted.
    """

    SIGNUP = 1
    COMPANY = 2
    FINANCIAL = 3
    LOCATION = 4
    COMPLETE = 5


# Never returned to clients
PRIVATE_FIELDS = ("_id", "password", "plaid_access_token")


def public_user(user: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Strips private fields from a user or staging document."""
    if user is None:
        return None
    return {key: value for key, value in user.items() if key not in PRIVATE_FIELDS}
