"""HTTP request receiver for the booking service.

Translates parsed HTTP requests into CheckoutPort, ModerationPort and
CheckInPort calls and their results into responses. Routing, authentication and transport
live in http_server.py.
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from cineroom.core.errors import SignatureVerificationError
from cineroom.core.models import Event, ValidationStatus
from cineroom.core.ports import CheckInPort, CheckoutPort, ModerationPort
from cineroom.mailers.previews import PreviewRenderer

from .stripe_signature import DEFAULT_TOLERANCE_SECONDS, verify_stripe_signature

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Request:
    """A parsed HTTP request."""

    method: str
    path: str
    params: Mapping[str, str] = field(default_factory=dict)
    path_params: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    def json(self) -> dict[str, Any]:
        """Decode the body as a JSON object (empty body -> {}).

        Raises:
            ValueError: If the body is not a JSON object.
        """
        if not self.body:
            return {}
        data = json.loads(self.body)
        if not isinstance(data, dict):
            raise ValueError("JSON body must be an object")
        return data


@dataclass(frozen=True)
class Response:
    status: int
    body: bytes
    content_type: str = "application/json"


def json_response(data: Mapping[str, Any], status: int = 200) -> Response:
    return Response(status=status, body=json.dumps(data).encode())


def error_response(status: int, message: str) -> Response:
    return json_response({"status": "error", "message": message}, status=status)


def html_response(html: str, status: int = 200) -> Response:
    return Response(status=status, body=html.encode(), content_type="text/html; charset=utf-8")


def _event_to_dict(event: Event) -> dict[str, Any]:
    return {
        "id": event.id,
        "title": event.title,
        "event_date": event.event_date.isoformat(),
        "price_cents": event.price_cents,
        "max_capacity": event.max_capacity,
        "creator_id": event.creator_id,
        "validation_status": event.validation_status.value,
        "validated_at": event.validated_at.isoformat() if event.validated_at else None,
    }


class AppReceiver:
    """Handles requests for checkout, webhook, moderation, check-in and previews.

    Domain errors propagate to the server, which maps them to status codes.
    """

    def __init__(
        self,
        checkout: CheckoutPort,
        moderation: ModerationPort,
        check_in: CheckInPort,
        stripe_webhook_secret: str | None = None,
        webhook_tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS,
        previews: PreviewRenderer | None = None,
    ):
        """Initialize the receiver.

        Args:
            checkout: CheckoutPort implementation for the booking flow.
            moderation: ModerationPort implementation for admin actions.
            check_in: CheckInPort implementation for entrance checks.
            stripe_webhook_secret: Signing secret for Stripe webhooks.
            webhook_tolerance_seconds: Maximum age of a signed webhook.
            previews: Preview renderer; None disables mailer previews.
        """
        self.checkout = checkout
        self.moderation = moderation
        self.check_in_service = check_in
        self.stripe_webhook_secret = stripe_webhook_secret
        self.webhook_tolerance_seconds = webhook_tolerance_seconds
        self.previews = previews

    async def health(self, request: Request) -> Response:
        return json_response({"status": "healthy"})

    # --------------------------------------------------------------- checkout

    async def checkout_success(self, request: Request) -> Response:
        """GET /stripe_checkout/success"""
        result = await self.checkout.complete_checkout(request.params.get("session_id"))
        return json_response(result.to_dict())

    async def checkout_cancel(self, request: Request) -> Response:
        """GET /stripe_checkout/cancel"""
        result = await self.checkout.cancel_checkout(request.params.get("event_id"))
        return json_response(result.to_dict())

    async def create_payment(self, request: Request) -> Response:
        """POST /events/<event_id>/payments"""
        try:
            data = request.json()
        except ValueError:
            return error_response(400, "Invalid JSON body")

        user_id = data.get("user_id")
        if not user_id:
            return error_response(400, "Missing user_id")
        try:
            seats = int(data.get("seats", 1))
        except (TypeError, ValueError):
            return error_response(400, "seats must be an integer")

        session = await self.checkout.start_checkout(
            request.path_params["event_id"], str(user_id), seats
        )
        return json_response(
            {
                "status": "success",
                "operation": "checkout",
                "session_id": session.id,
                "checkout_url": session.url,
            }
        )

    async def stripe_webhook(self, request: Request) -> Response:
        """POST /webhooks/stripe"""
        try:
            verify_stripe_signature(
                request.body,
                request.headers.get("Stripe-Signature"),
                self.stripe_webhook_secret,
                tolerance=self.webhook_tolerance_seconds,
            )
        except SignatureVerificationError as e:
            logger.warning(f"Rejected Stripe webhook: {e}")
            return json_response({"error": "Invalid signature"}, status=400)

        try:
            event = json.loads(request.body)
            if not isinstance(event, dict):
                raise ValueError("payload is not an object")
        except ValueError:
            return json_response({"error": "Invalid payload"}, status=400)

        event_type = event.get("type")
        data_object = (event.get("data") or {}).get("object") or {}

        if event_type == "checkout.session.completed":
            logger.info(f"Processing checkout session: {data_object.get('id')}")
            try:
                result = await self.checkout.fulfill_session_payload(data_object)
            except Exception as e:
                # Acknowledged regardless; the failure is only logged.
                logger.error(f"Error processing checkout session: {e}", exc_info=True)
            else:
                if result.created and result.participation is not None:
                    logger.info(
                        f"Participation created via webhook: {result.participation.id}"
                    )
        elif event_type == "payment_intent.succeeded":
            logger.info(f"Payment succeeded: {data_object.get('id')}")
        elif event_type == "payment_intent.payment_failed":
            logger.error(f"Payment failed: {data_object.get('id')}")
        else:
            logger.info(f"Unhandled Stripe event type: {event_type}")

        return json_response({"status": "success"})

    # ------------------------------------------------------------- moderation

    async def list_events(self, request: Request) -> Response:
        """GET /admin/events"""
        status = request.params.get("status")
        try:
            status_enum = ValidationStatus(status.lower()) if status else None
        except ValueError:
            return error_response(400, f"Unknown validation status: {status}")

        events = await self.moderation.list_events(status_enum)
        logger.debug(
            "Events listed via HTTP",
            extra={"count": len(events), "status_filter": status},
        )
        return json_response(
            {
                "status": "success",
                "operation": "list",
                "events": [_event_to_dict(e) for e in events],
            }
        )

    async def approve_event(self, request: Request) -> Response:
        """POST /admin/events/<event_id>/approve"""
        event_id = request.path_params["event_id"]
        try:
            event = await self.moderation.approve_event(event_id)
        except ValueError as e:
            return error_response(409, str(e))
        return json_response(
            {"status": "success", "operation": "approve", "event": _event_to_dict(event)}
        )

    async def reject_event(self, request: Request) -> Response:
        """POST /admin/events/<event_id>/reject"""
        try:
            data = request.json()
        except ValueError:
            return error_response(400, "Invalid JSON body")

        event_id = request.path_params["event_id"]
        try:
            event = await self.moderation.reject_event(event_id, data.get("reason"))
        except ValueError as e:
            return error_response(409, str(e))
        return json_response(
            {"status": "success", "operation": "reject", "event": _event_to_dict(event)}
        )

    # --------------------------------------------------------------- previews

    async def preview_index(self, request: Request) -> Response:
        """GET /mailers"""
        if self.previews is None:
            return error_response(404, "Not found")
        return html_response(self.previews.render_index())

    async def preview_email(self, request: Request) -> Response:
        """GET /mailers/<preview>/<email>"""
        if self.previews is None:
            return error_response(404, "Not found")
        try:
            html = self.previews.render_email(
                request.path_params["preview"],
                request.path_params["email"],
                part=request.params.get("part"),
            )
        except LookupError as e:
            return error_response(404, str(e))
        return html_response(html)

    # --------------------------------------------------------------- check-in

    async def check_in(self, request: Request) -> Response:
        """POST /admin/participations/<participation_id>/check_in"""
        try:
            data = request.json()
        except ValueError:
            return error_response(400, "Invalid JSON body")

        ticket_code = data.get("ticket_code")
        if not ticket_code:
            return error_response(400, "Missing ticket_code")

        result = await self.check_in_service.check_in(
            request.path_params["participation_id"], str(ticket_code)
        )
        return json_response(
            {
                "status": "success",
                "operation": "check_in",
                "message": "Check-in successful",
                "participation": result.to_dict(),
            }
        )
