"""
trok/api/auth.py

Purpose: Signup, onboarding, registration and login routes

- Stages signup and onboarding answers until the account is created
- Creates the Stripe connected account and person
- Email + password login
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Query

from trok.core.logging import get_logger, LogContext
from trok.models.user import public_user
from trok.schemas.auth import CompleteRegistrationRequest, LoginRequest, SignupInfo
from trok.schemas.response import MessageResponse
from trok.services import signup_service, user_service
from trok.services.stripe_service import StripeService, get_stripe_service
from trok.utils.constants import ONBOARDING_STEP_MESSAGE, SIGNUP_INITIATED_MESSAGE
from trok.utils.validation_utils import normalize_email

logger = get_logger(__name__)
router = APIRouter()


@router.post("/signup", response_model=MessageResponse)
async def signup(payload: SignupInfo):
    """
    Stages a new signup. Resubmitting overwrites the earlier record.
    """
    await signup_service.stage_signup(payload.model_dump())
    return {"message": SIGNUP_INITIATED_MESSAGE.format(email=payload.email)}


@router.post("/onboarding", response_model=MessageResponse)
async def onboarding(
    email: str = Query(..., min_length=3),
    step: int = Query(..., ge=1),
    payload: Dict[str, Any] = Body(default_factory=dict)
):
    """
    Merges one onboarding step into the staged record and resets its expiry.
    """
    email = normalize_email(email)
    await signup_service.update_onboarding(email, step, payload)
    return {"message": ONBOARDING_STEP_MESSAGE.format(email=email, step=step)}


@router.post("/complete-registration")
async def complete_registration(
    payload: CompleteRegistrationRequest,
    stripe: StripeService = Depends(get_stripe_service)
):
    """
    Creates the connected account and its representative from tokens
    collected by Stripe.js, then returns both objects as Stripe sent them.
    """
    account = await stripe.create_account(payload.business_profile, payload.accountToken.id)
    person = await stripe.create_person(account["id"], payload.personToken.id)

    email = payload.data.get("email")
    if email:
        with LogContext(email=email):
            staged = await signup_service.get_signup(email)
            if not staged:
                logger.warning("No live signup record; creating user from registration data only")
            await user_service.create_user(
                email,
                staged=staged,
                stripe_account_id=account["id"],
                stripe_person_id=person.get("id")
            )
            await signup_service.clear_signup(email)

    return {"account": account, "person": person}


@router.post("/login")
async def login(payload: LoginRequest):
    user = await user_service.authenticate(payload.email, payload.password)
    return public_user(user)
