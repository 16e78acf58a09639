"""
trok/services/signup_service.py

Purpose: Signup staging (ephemeral store)

- Holds in-progress signup/onboarding fields keyed by email
- Every write resets the expiry (two days by default)
- Expired records are ignored on read and removed by the TTL index
- No sequencing: the onboarding step is stored as supplied
"""

from typing import Any, Dict, Optional

from trok.db.mongo import get_signups_collection
from trok.core.config import settings
from trok.core.exceptions import ValidationError
from trok.core.logging import get_logger, LogContext
from trok.models.user import OnboardingStep
from trok.utils.time_utils import calculate_expiry, utcnow
from trok.utils.validation_utils import normalize_email, validate_field_name

logger = get_logger(__name__)

# Keys owned by the store, never overwritten by onboarding payloads
RESERVED_KEYS = {"_id", "email", "expires_at", "created_at", "updated_at", "onboarding_step"}


def check_field_names(fields: Dict[str, Any]) -> None:
    """
    Raises ValidationError when any key would be read by MongoDB as an
    operator or a nested path instead of a plain field.
    """
    invalid = sorted(str(key) for key in fields if not validate_field_name(key))
    if invalid:
        raise ValidationError("Invalid field name", details={"keys": invalid})


async def stage_signup(info: Dict[str, Any]) -> Dict[str, Any]:
    """
    Writes a fresh staging record for a signup, replacing any earlier one.

    Args:
        info: Signup fields (firstname, lastname, email, password, phone, referral_code)

    Returns:
        The staged record
    """
    email = normalize_email(info["email"])

    with LogContext(email=email):
        signups = get_signups_collection()
        now = utcnow()

        record = {
            "firstname": info.get("firstname"),
            "lastname": info.get("lastname"),
            "full_name": info.get("full_name") or f"{info.get('firstname', '')} {info.get('lastname', '')}".strip(),
            "email": email,
            "password": info.get("password"),
            "phone": info.get("phone"),
            "referral_code": info.get("referral_code"),
            "onboarding_step": int(OnboardingStep.SIGNUP),
            "created_at": now,
            "updated_at": now,
            "expires_at": calculate_expiry(settings.SIGNUP_TTL_SECONDS, now),
        }

        await signups.replace_one({"email": email}, record, upsert=True)
        logger.info("Signup staged", extra={"email": email})

        return record


async def update_onboarding(email: str, step: int, fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merges onboarding answers into the staged record and resets its expiry.

    Args:
        email: Staging key
        step: Onboarding step reported by the client
        fields: Form answers for that step

    Returns:
        The staged record after the update
    """
    check_field_names(fields)
    email = normalize_email(email)

    with LogContext(email=email, step=step):
        signups = get_signups_collection()
        now = utcnow()

        updates = {key: value for key, value in fields.items() if key not in RESERVED_KEYS}
        dropped = set(fields) - set(updates)
        if dropped:
            logger.warning(f"Ignoring reserved onboarding keys: {sorted(dropped)}")

        updates.update({
            "onboarding_step": step,
            "updated_at": now,
            "expires_at": calculate_expiry(settings.SIGNUP_TTL_SECONDS, now),
        })

        # An expired record the TTL monitor has not reaped yet starts over
        await signups.delete_one({"email": email, "expires_at": {"$lte": now}})

        await signups.update_one(
            {"email": email},
            {
                "$set": updates,
                "$setOnInsert": {"email": email, "created_at": now}
            },
            upsert=True
        )
        logger.info(f"Onboarding step {step} saved", extra={"email": email})

        return await signups.find_one({"email": email})


async def get_signup(email: str) -> Optional[Dict[str, Any]]:
    """
    Returns the staged record for an email, or None if missing or expired.

    The TTL monitor only runs periodically, so expiry is also checked here.
    """
    signups = get_signups_collection()
    return await signups.find_one({
        "email": normalize_email(email),
        "expires_at": {"$gt": utcnow()}
    })


async def set_signup_fields(email: str, fields: Dict[str, Any]) -> bool:
    """
    Stores extra fields on a live staging record without touching its step.

    Returns:
        True if a live record was updated
    """
    check_field_names(fields)
    signups = get_signups_collection()
    now = utcnow()
    result = await signups.update_one(
        {"email": normalize_email(email), "expires_at": {"$gt": now}},
        {
            "$set": {
                **fields,
                "updated_at": now,
                "expires_at": calculate_expiry(settings.SIGNUP_TTL_SECONDS, now),
            }
        }
    )
    return result.matched_count > 0


async def clear_signup(email: str) -> bool:
    """
    Removes a staged record once the durable user exists.

    Returns:
        True if a record was deleted
    """
    signups = get_signups_collection()
    result = await signups.delete_one({"email": normalize_email(email)})
    if result.deleted_count:
        logger.debug("Signup staging record cleared", extra={"email": email})
    return result.deleted_count > 0
