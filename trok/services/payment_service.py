"""
trok/services/payment_service.py

Purpose: Bank transfer payments

- Starts top-up payments through Plaid payment initiation
- Records each payment against the user
- Lists a user's payments for the dashboard
"""

from typing import Any, Dict, List

from pymongo import DESCENDING

from trok.db.mongo import get_payments_collection
from trok.core.config import settings
from trok.core.exceptions import ValidationError
from trok.core.logging import get_logger, LogContext
from trok.models.payment import PaymentStatus, PaymentType
from trok.schemas.plaid import PaymentLinkTokenRequest
from trok.services.plaid_service import PlaidService
from trok.utils.constants import PAYMENT_ID_PREFIX
from trok.utils.time_utils import utcnow

logger = get_logger(__name__)


async def start_payment(request: PaymentLinkTokenRequest, plaid: PlaidService) -> Dict[str, Any]:
    """
    Creates a Plaid payment and a Link token the browser uses to authorise it.

    The recipient is the bank account in the request when supplied, otherwise
    the configured top-up account.

    Returns:
        {"link_token": ..., "expiration": ..., "payment_id": ...}
    """
    with LogContext(user_id=request.user_id):
        if request.has_bank_details:
            recipient_id = await plaid.create_payment_recipient(
                request.account_holder_name,
                request.account_number,
                request.sort_code
            )
            payment_type = PaymentType.BANK_TRANSFER
        elif settings.PLAID_PAYMENT_RECIPIENT_ID:
            recipient_id = settings.PLAID_PAYMENT_RECIPIENT_ID
            payment_type = PaymentType.TOP_UP
        else:
            raise ValidationError("No payment recipient available; supply bank details")

        plaid_payment = await plaid.create_payment(recipient_id, request.reference, request.amount)

        payment = {
            "payment_id": f"{PAYMENT_ID_PREFIX}{plaid_payment['payment_id']}",
            "plaid_payment_id": plaid_payment["payment_id"],
            "user_id": request.user_id,
            "stripe_account_id": request.stripe_account_id,
            "recipient_id": recipient_id,
            "recipient_name": request.account_holder_name,
            "amount": round(request.amount * 100),
            "reference": request.reference,
            "payment_type": payment_type.value,
            "status": PaymentStatus.IN_PROGRESS.value,
            "plaid_status": plaid_payment.get("status"),
            "created_at": utcnow(),
        }
        await get_payments_collection().insert_one(payment)

        link = await plaid.create_payment_link_token(request.user_id, plaid_payment["payment_id"])

        logger.info(
            f"Payment {payment['payment_id']} started for {payment['amount']}p",
            extra={"user_id": request.user_id}
        )
        return {**link, "payment_id": payment["payment_id"]}


async def get_payments(user_id: str) -> List[Dict[str, Any]]:
    cursor = get_payments_collection().find({"user_id": user_id}).sort("created_at", DESCENDING)
    payments = await cursor.to_list(length=500)
    for payment in payments:
        payment.pop("_id", None)
    return payments
