"""
trok/services/stripe_service.py

Purpose: Stripe integration (card issuing / connected accounts)

- Creates custom connected accounts from Stripe.js account tokens
- Attaches persons from person tokens
- Retrieves connected accounts
- Verifies webhook signatures
"""

import hashlib
import hmac
import json
import time
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode

import httpx

from trok.core.config import settings
from trok.core.exceptions import ExternalServiceError, TrokError
from trok.core.logging import get_logger
from trok.utils.constants import COUNTRY_CODE, STRIPE_ACCOUNT_TYPE, STRIPE_REQUESTED_CAPABILITIES

logger = get_logger(__name__)

WEBHOOK_TOLERANCE_SECONDS = 300


class WebhookSignatureError(TrokError):
    """Raised when a webhook payload does not carry a valid Stripe signature."""

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message, code="INVALID_SIGNATURE", status_code=400)


def encode_form(data: Dict[str, Any], prefix: str = "") -> List[Tuple[str, str]]:
    """
    Flattens nested dicts/lists into Stripe's bracketed form encoding.

    {"capabilities": {"transfers": {"requested": True}}}
    becomes [("capabilities[transfers][requested]", "true")]
    """
    pairs: List[Tuple[str, str]] = []

    for key, value in data.items():
        name = f"{prefix}[{key}]" if prefix else str(key)

        if value is None:
            continue
        if isinstance(value, dict):
            pairs.extend(encode_form(value, name))
        elif isinstance(value, (list, tuple)):
            for index, entry in enumerate(value):
                entry_name = f"{name}[{index}]"
                if isinstance(entry, dict):
                    pairs.extend(encode_form(entry, entry_name))
                else:
                    pairs.append((entry_name, _form_value(entry)))
        else:
            pairs.append((name, _form_value(value)))

    return pairs


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class StripeService:
    """
    Thin async client for the Stripe REST API.
    Errors from Stripe are surfaced as ExternalServiceError with Stripe's message.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key or settings.STRIPE_SECRET_KEY
        self.base_url = (base_url or settings.STRIPE_API_URL).rstrip("/")
        self._timeout = timeout or settings.EXTERNAL_SERVICE_TIMEOUT
        self._transport = transport

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _request(
        self,
        method: str,
        path: str,
        data: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        if not self.is_configured():
            raise ExternalServiceError("Stripe is not configured")

        url = f"{self.base_url}{path}"

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport
            ) as client:
                response = await client.request(
                    method,
                    url,
                    content=urlencode(encode_form(data)) if data else None,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                    auth=(self.api_key, "")
                )
        except httpx.TimeoutException:
            logger.error(f"Stripe API timeout: {method} {path}")
            raise ExternalServiceError("Stripe is taking too long to respond. Please try again.")
        except httpx.RequestError as e:
            logger.error(f"Network error calling Stripe: {e}")
            raise ExternalServiceError("Unable to connect to Stripe.")

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400:
            error = body.get("error", {}) if isinstance(body, dict) else {}
            message = error.get("message") or f"Stripe API error: {response.status_code}"
            logger.error(f"❌ Stripe API error: {response.status_code} - {message}")
            raise ExternalServiceError(
                message,
                details={
                    "status": response.status_code,
                    "type": error.get("type"),
                    "code": error.get("code"),
                    "param": error.get("param")
                }
            )

        return body

    async def create_account(
        self,
        business_profile: Dict[str, Any],
        account_token: str
    ) -> Dict[str, Any]:
        """
        Creates a custom connected account for a fleet business.

        Args:
            business_profile: Stripe business_profile (name, mcc, url, ...)
            account_token: Token created client-side by Stripe.js

        Returns:
            Stripe account object
        """
        payload = {
            "country": COUNTRY_CODE,
            "type": STRIPE_ACCOUNT_TYPE,
            "business_profile": business_profile,
            "capabilities": {
                capability: {"requested": True}
                for capability in STRIPE_REQUESTED_CAPABILITIES
            },
            "account_token": account_token
        }

        account = await self._request("POST", "/accounts", payload)
        logger.info(f"✅ Stripe account created: {account.get('id')}")
        return account

    async def create_person(self, account_id: str, person_token: str) -> Dict[str, Any]:
        """Attaches a representative to a connected account."""
        person = await self._request(
            "POST",
            f"/accounts/{account_id}/persons",
            {"person_token": person_token}
        )
        logger.info(f"✅ Stripe person created: {person.get('id')} on {account_id}")
        return person

    async def retrieve_account(self, account_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/accounts/{account_id}")


def construct_event(
    payload: bytes,
    signature_header: Optional[str],
    secret: str,
    tolerance: int = WEBHOOK_TOLERANCE_SECONDS,
    now: Optional[int] = None
) -> Dict[str, Any]:
    """
    Verifies a Stripe-Signature header and parses the event.

    The header looks like "t=1492774577,v1=5257a869...,v0=...". The expected
    v1 signature is HMAC-SHA256(secret, "{t}.{payload}").

    Raises:
        WebhookSignatureError: On a missing, stale or mismatched signature
    """
    if not signature_header:
        raise WebhookSignatureError("Missing Stripe-Signature header")

    timestamp = None
    signatures = []
    for part in signature_header.split(","):
        key, _, value = part.strip().partition("=")
        if key == "t":
            timestamp = value
        elif key == "v1":
            signatures.append(value)

    if not timestamp or not timestamp.isdigit() or not signatures:
        raise WebhookSignatureError("Malformed Stripe-Signature header")

    signed_payload = f"{timestamp}.".encode("utf-8") + payload
    expected = hmac.new(secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest()

    if not any(hmac.compare_digest(expected, signature) for signature in signatures):
        raise WebhookSignatureError("No signatures found matching the expected signature")

    current = now if now is not None else int(time.time())
    if tolerance and current - int(timestamp) > tolerance:
        raise WebhookSignatureError("Timestamp outside the tolerance zone")

    try:
        event = json.loads(payload)
    except ValueError:
        raise WebhookSignatureError("Webhook payload is not valid JSON")

    if not isinstance(event, dict):
        raise WebhookSignatureError("Webhook payload is not an event object")
    return event


# Global Stripe service instance
_stripe_service: Optional[StripeService] = None


def get_stripe_service() -> StripeService:
    """Get or create the global Stripe service instance."""
    global _stripe_service
    if _stripe_service is None:
        _stripe_service = StripeService()
    return _stripe_service
