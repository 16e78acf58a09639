"""
trok/services/plaid_service.py

Purpose: Plaid integration (bank account linking / payment initiation)

- Creates Link tokens for linking a business bank account
- Exchanges public tokens for access tokens
- Creates payment recipients and payments for account top-ups
- Creates Link tokens bound to a payment
"""

from typing import Any, Dict, List, Optional

import httpx

from trok.core.config import settings
from trok.core.exceptions import ExternalServiceError
from trok.core.logging import get_logger
from trok.utils.constants import (
    COUNTRY_CODE,
    CURRENCY,
    LANGUAGE,
    PLAID_LINK_PRODUCTS,
    PLAID_PAYMENT_PRODUCTS,
)

logger = get_logger(__name__)


class PlaidService:
    """
    Async client for the Plaid REST API.
    Every call is a JSON POST carrying client_id and secret in the body.
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        secret: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.client_id = client_id or settings.PLAID_CLIENT_ID
        self.secret = secret or settings.PLAID_SECRET
        self.base_url = (base_url or settings.plaid_base_url).rstrip("/")
        self.client_name = settings.PLAID_CLIENT_NAME
        self._timeout = timeout or settings.EXTERNAL_SERVICE_TIMEOUT
        self._transport = transport

    def is_configured(self) -> bool:
        return bool(self.client_id and self.secret)

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.is_configured():
            raise ExternalServiceError("Plaid is not configured")

        body = {"client_id": self.client_id, "secret": self.secret, **payload}

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport
            ) as client:
                response = await client.post(f"{self.base_url}{path}", json=body)
        except httpx.TimeoutException:
            logger.error(f"Plaid API timeout: {path}")
            raise ExternalServiceError("Plaid is taking too long to respond. Please try again.")
        except httpx.RequestError as e:
            logger.error(f"Network error calling Plaid: {e}")
            raise ExternalServiceError("Unable to connect to Plaid.")

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code >= 400:
            message = (
                data.get("display_message")
                or data.get("error_message")
                or f"Plaid API error: {response.status_code}"
            )
            logger.error(
                f"❌ Plaid API error on {path}: {response.status_code} - "
                f"{data.get('error_code')} {data.get('error_message')}"
            )
            raise ExternalServiceError(
                message,
                details={
                    "status": response.status_code,
                    "error_type": data.get("error_type"),
                    "error_code": data.get("error_code"),
                    "request_id": data.get("request_id")
                }
            )

        return data

    async def create_link_token(
        self,
        client_user_id: str,
        products: Optional[List[str]] = None,
        payment_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Creates a Link token for the given user.

        Args:
            client_user_id: Stable id for the user (email during onboarding)
            products: Plaid products to enable
            payment_id: Binds the token to a payment initiation when set

        Returns:
            {"link_token": ..., "expiration": ...}
        """
        payload: Dict[str, Any] = {
            "client_name": self.client_name,
            "language": LANGUAGE,
            "country_codes": [COUNTRY_CODE],
            "user": {"client_user_id": client_user_id},
            "products": products or PLAID_LINK_PRODUCTS,
        }
        if payment_id:
            payload["payment_initiation"] = {"payment_id": payment_id}

        data = await self._post("/link/token/create", payload)
        logger.info(f"Link token created for {client_user_id}")

        return {
            "link_token": data.get("link_token"),
            "expiration": data.get("expiration")
        }

    async def exchange_public_token(self, public_token: str) -> Dict[str, Any]:
        """Returns {"access_token": ..., "item_id": ...}."""
        data = await self._post("/item/public_token/exchange", {"public_token": public_token})
        logger.info(f"✅ Public token exchanged for item {data.get('item_id')}")
        return {
            "access_token": data.get("access_token"),
            "item_id": data.get("item_id")
        }

    async def create_payment_recipient(
        self,
        name: str,
        account_number: str,
        sort_code: str
    ) -> str:
        """Registers a UK bank account as a payment recipient and returns its id."""
        data = await self._post(
            "/payment_initiation/recipient/create",
            {
                "name": name,
                "bacs": {"account": account_number, "sort_code": sort_code}
            }
        )
        return data["recipient_id"]

    async def create_payment(
        self,
        recipient_id: str,
        reference: str,
        amount: float
    ) -> Dict[str, Any]:
        """
        Creates a payment initiation.

        Args:
            recipient_id: Plaid recipient
            reference: Bank reference shown to the payee
            amount: Amount in pounds

        Returns:
            {"payment_id": ..., "status": ...}
        """
        data = await self._post(
            "/payment_initiation/payment/create",
            {
                "recipient_id": recipient_id,
                "reference": reference,
                "amount": {"currency": CURRENCY, "value": round(amount, 2)}
            }
        )
        logger.info(f"Payment {data.get('payment_id')} created for recipient {recipient_id}")
        return {
            "payment_id": data.get("payment_id"),
            "status": data.get("status")
        }

    async def create_payment_link_token(self, client_user_id: str, payment_id: str) -> Dict[str, Any]:
        return await self.create_link_token(
            client_user_id,
            products=PLAID_PAYMENT_PRODUCTS,
            payment_id=payment_id
        )


# Global Plaid service instance
_plaid_service: Optional[PlaidService] = None


def get_plaid_service() -> PlaidService:
    """Get or create the global Plaid service instance."""
    global _plaid_service
    if _plaid_service is None:
        _plaid_service = PlaidService()
    return _plaid_service
