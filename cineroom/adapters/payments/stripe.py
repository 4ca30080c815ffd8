"""Stripe Checkout payment gateway adapter.

Implements PaymentGatewayPort against the Stripe REST API with httpx.
Stripe expects form-encoded bodies with bracketed keys for nested fields.
"""

import logging
import re
import urllib.parse
from typing import Any

import httpx

from cineroom.core.errors import PaymentGatewayError
from cineroom.core.models import CheckoutSession, Event, User
from cineroom.core.ports import PaymentGatewayPort

logger = logging.getLogger(__name__)

SESSION_ID_PATTERN = re.compile(r"^cs_[A-Za-z0-9_]+$")


class StripeCheckoutAdapter(PaymentGatewayPort):
    """Opens and reads Stripe Checkout sessions."""

    def __init__(
        self,
        api_key: str,
        api_base_url: str = "https://api.stripe.com",
        currency: str = "eur",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize Stripe adapter.

        Args:
            api_key: Stripe secret key.
            api_base_url: Base URL for the Stripe API.
            currency: ISO currency code for line items.
            timeout_seconds: Per-request timeout.
            transport: Optional httpx transport (used to stub the API).
        """
        self.api_key = api_key
        self.api_base_url = api_base_url
        self.currency = currency
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.api_base_url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout_seconds,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def build_session_form(
        self,
        event: Event,
        user: User,
        seats: int,
        success_url: str,
        cancel_url: str,
    ) -> dict[str, str]:
        """Form fields for POST /v1/checkout/sessions."""
        return {
            "mode": "payment",
            "payment_method_types[0]": "card",
            "customer_email": user.email,
            "line_items[0][quantity]": str(seats),
            "line_items[0][price_data][currency]": self.currency,
            "line_items[0][price_data][unit_amount]": str(event.price_cents),
            "line_items[0][price_data][product_data][name]": event.title,
            "line_items[0][price_data][product_data][description]": (
                f"Screening on {event.event_date.strftime('%B %d, %Y at %H:%M')}"
            ),
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata[event_id]": event.id,
            "metadata[user_id]": user.id,
            "metadata[seats]": str(seats),
        }

    async def create_checkout_session(
        self,
        event: Event,
        user: User,
        seats: int,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        form = self.build_session_form(event, user, seats, success_url, cancel_url)
        data = await self._request("POST", "/v1/checkout/sessions", data=form)
        return self._to_session(data)

    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        if not SESSION_ID_PATTERN.match(session_id or ""):
            logger.warning("Refused malformed checkout session id", extra={"session_id": session_id})
            raise PaymentGatewayError(f"Invalid checkout session id: {session_id!r}")
        path = f"/v1/checkout/sessions/{urllib.parse.quote(session_id, safe='')}"
        data = await self._request("GET", path)
        return self._to_session(data)

    async def _request(
        self, method: str, path: str, data: dict[str, str] | None = None
    ) -> dict[str, Any]:
        """Send a request and return the decoded JSON body.

        Raises:
            PaymentGatewayError: On transport errors and non-2xx responses.
        """
        client = await self._get_client()
        try:
            response = await client.request(method, path, data=data)
        except httpx.RequestError as e:
            logger.error(f"Stripe request failed: {e}", extra={"path": path})
            raise PaymentGatewayError(f"Stripe is unreachable: {e}") from e

        if response.is_success:
            try:
                body = response.json()
            except ValueError as e:
                logger.error(f"Stripe sent a non-JSON body: {e}", extra={"path": path})
                raise PaymentGatewayError("Stripe returned an unreadable response") from e
            if not isinstance(body, dict):
                raise PaymentGatewayError("Stripe returned an unexpected response")
            return body

        message = f"Stripe returned HTTP {response.status_code}"
        try:
            error = response.json().get("error", {})
            if isinstance(error, dict) and error.get("message"):
                message = str(error["message"])
            elif isinstance(error, str) and error:
                message = error
        except (ValueError, AttributeError):
            # Body is not a JSON object; keep the status line.
            message = f"Stripe returned HTTP {response.status_code}"
        logger.error(
            f"Stripe error: {message}",
            extra={"path": path, "status_code": response.status_code},
        )
        raise PaymentGatewayError(message, status_code=response.status_code)

    @staticmethod
    def _to_session(data: dict[str, Any]) -> CheckoutSession:
        try:
            return CheckoutSession(
                id=data["id"],
                url=data.get("url"),
                payment_status=data.get("payment_status") or "unpaid",
                metadata={k: str(v) for k, v in (data.get("metadata") or {}).items()},
            )
        except KeyError as e:
            raise PaymentGatewayError(f"Malformed checkout session: missing {e}") from e
