"""
trok/api/plaid.py

Purpose: Bank-linking routes

- Link token for connecting the business bank account
- Public token exchange; the access token is stored, never returned
- Link token for authorising a top-up payment
"""

from fastapi import APIRouter, Depends

from trok.core.exceptions import ResourceNotFoundError
from trok.core.logging import get_logger
from trok.schemas.auth import EmailRequest
from trok.schemas.plaid import PaymentLinkTokenRequest, SetAccessTokenRequest
from trok.services import payment_service, signup_service, user_service
from trok.services.plaid_service import PlaidService, get_plaid_service

logger = get_logger(__name__)
router = APIRouter()


async def store_access_token(email: str, access_token: str, item_id: str) -> str:
    """
    Saves a Plaid item on the user, or on the staging record while the
    account is still being onboarded.

    Returns:
        "user" or "signup" depending on where it was stored

    Raises:
        ResourceNotFoundError: If neither record exists
    """
    fields = {"plaid_access_token": access_token, "plaid_item_id": item_id}

    if await user_service.update_user_fields(email, fields):
        return "user"
    if await signup_service.set_signup_fields(email, fields):
        return "signup"

    raise ResourceNotFoundError(f"No account found for {email}")


@router.post("/create_link_token")
async def create_link_token(
    payload: EmailRequest,
    plaid: PlaidService = Depends(get_plaid_service)
):
    return await plaid.create_link_token(payload.email)


@router.post("/set_access_token")
async def set_access_token(
    payload: SetAccessTokenRequest,
    plaid: PlaidService = Depends(get_plaid_service)
):
    exchange = await plaid.exchange_public_token(payload.public_token)

    if payload.email:
        stored_on = await store_access_token(payload.email, exchange["access_token"], exchange["item_id"])
        logger.info(f"Plaid item {exchange['item_id']} stored on {stored_on}", extra={"email": payload.email})
    else:
        logger.warning(f"Plaid item {exchange['item_id']} exchanged without an account email")

    return {"item_id": exchange["item_id"], "linked": True}


@router.post("/create_link_token_for_payment")
async def create_link_token_for_payment(
    payload: PaymentLinkTokenRequest,
    plaid: PlaidService = Depends(get_plaid_service)
):
    return await payment_service.start_payment(payload, plaid)
