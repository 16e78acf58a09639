"""
trok/services/user_service.py

Purpose: User data management

- Promote a staged signup into a durable user
- Login by email + password
- Link Stripe accounts and Plaid items to users
- User retrieval
"""

import secrets
import uuid
from typing import Any, Dict, Optional

from pymongo.errors import DuplicateKeyError

from trok.db.mongo import get_users_collection
from trok.core.exceptions import AuthenticationError, ConflictError
from trok.core.logging import get_logger, LogContext
from trok.models.user import OnboardingStep
from trok.utils.constants import LOGIN_FAILED_MESSAGE, USER_ID_PREFIX
from trok.utils.time_utils import utcnow
from trok.utils.validation_utils import normalize_email, validate_field_name

logger = get_logger(__name__)

# Staging fields copied onto the user as identity fields
IDENTITY_FIELDS = ("firstname", "lastname", "full_name", "phone", "password", "referral_code")

# Staging bookkeeping that never reaches the user document
STAGING_ONLY_FIELDS = ("_id", "expires_at", "created_at", "updated_at", "onboarding_step", "email")


def generate_user_id() -> str:
    return f"{USER_ID_PREFIX}{uuid.uuid4().hex[:24]}"


async def get_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    """
    Retrieves a user by email.

    Returns:
        User document or None if not found
    """
    users = get_users_collection()
    return await users.find_one({"email": normalize_email(email)})


async def create_user(
    email: str,
    staged: Optional[Dict[str, Any]] = None,
    **fields: Any
) -> Dict[str, Any]:
    """
    Creates or completes a durable user record.

    Staged signup fields seed the user; identity fields go to the top level
    and everything else gathered during onboarding lands under `business`.
    Explicit keyword fields win over staged values.

    Args:
        email: User email (unique)
        staged: Signup staging record, if one is still live
        **fields: Extra top-level fields (stripe_account_id, ...)

    Returns:
        The user document
    """
    email = normalize_email(email)
    staged = staged or {}

    with LogContext(email=email):
        users = get_users_collection()
        now = utcnow()

        identity = {key: staged[key] for key in IDENTITY_FIELDS if staged.get(key) is not None}
        business = {
            key: value for key, value in staged.items()
            if key not in IDENTITY_FIELDS and key not in STAGING_ONLY_FIELDS
            and not key.startswith("plaid_") and validate_field_name(key)
        }
        plaid = {key: value for key, value in staged.items() if key.startswith("plaid_")}

        updates = {
            **identity,
            **plaid,
            **fields,
            "onboarding_step": int(OnboardingStep.COMPLETE),
            "updated_at": now,
        }
        for key, value in business.items():
            updates[f"business.{key}"] = value

        try:
            await users.update_one(
                {"email": email},
                {
                    "$set": updates,
                    "$setOnInsert": {
                        "id": generate_user_id(),
                        "email": email,
                        "created_at": now
                    }
                },
                upsert=True
            )
        except DuplicateKeyError as e:
            logger.warning(f"Concurrent user creation for {email}: {e}")
            raise ConflictError("A user with this email already exists")

        user = await users.find_one({"email": email})
        logger.info(f"✅ User record saved: {user.get('id')}", extra={"email": email})
        return user


async def authenticate(email: str, password: str) -> Dict[str, Any]:
    """
    Finds the user whose email and password both match.

    Raises:
        AuthenticationError: If no user matches
    """
    email = normalize_email(email)
    user = await get_user_by_email(email)

    stored = (user or {}).get("password") or ""
    if not user or not secrets.compare_digest(str(stored).encode(), password.encode()):
        logger.warning("Login failed", extra={"email": email})
        raise AuthenticationError(LOGIN_FAILED_MESSAGE)

    logger.info("Login succeeded", extra={"email": email})
    return user


async def update_user_fields(email: str, fields: Dict[str, Any]) -> bool:
    """
    Sets fields on an existing user.

    Returns:
        True if a user matched
    """
    users = get_users_collection()
    result = await users.update_one(
        {"email": normalize_email(email)},
        {"$set": {**fields, "updated_at": utcnow()}}
    )
    return result.matched_count > 0


async def update_user_by_stripe_account(account_id: str, fields: Dict[str, Any]) -> bool:
    users = get_users_collection()
    result = await users.update_one(
        {"stripe_account_id": account_id},
        {"$set": {**fields, "updated_at": utcnow()}}
    )
    return result.matched_count > 0
