"""Checkout service: implements CheckoutPort for the booking flow.

Validates booking requests before a hosted payment page is opened, and turns
paid checkout sessions into confirmed participations. Fulfilment can be
reached twice for the same payment (the success redirect and the provider
webhook), so it is keyed on the session id and creates at most one booking.
"""

import logging
import uuid
from collections.abc import Mapping
from typing import Any

from .errors import (
    DuplicateBookingError,
    EventNotBookableError,
    EventNotFoundError,
    InvalidSeatsError,
    SoldOutError,
    UserNotFoundError,
)
from .models import (
    CheckoutResult,
    CheckoutSession,
    Participation,
    ParticipationStatus,
    metadata_value,
)
from .ports import (
    BookingStorePort,
    CheckoutPort,
    NotificationPort,
    PaymentGatewayPort,
)

logger = logging.getLogger(__name__)

THANK_YOU_MESSAGE = "Thanks for your booking! Your payment was successful."
ALREADY_BOOKED_MESSAGE = "You have already booked a seat for this event."
CANCELED_MESSAGE = "Payment was canceled. No reservation has been made."
UNPAID_MESSAGE = "Your payment has not been completed yet."
INCOMPLETE_SESSION_MESSAGE = "We could not find the booking attached to this payment."
SOLD_OUT_MESSAGE = (
    "Sorry, this event sold out before your payment completed. No seats were booked."
)


class CheckoutService(CheckoutPort):
    """Core implementation of CheckoutPort."""

    def __init__(
        self,
        store: BookingStorePort,
        gateway: PaymentGatewayPort,
        notification: NotificationPort,
        base_url: str,
        max_seats: int = 5,
    ):
        """Initialize the checkout service.

        Args:
            store: BookingStorePort implementation for persistence.
            gateway: PaymentGatewayPort implementation for hosted checkout.
            notification: NotificationPort used once a booking is confirmed.
            base_url: Public URL the payment provider redirects back to.
            max_seats: Largest number of seats one booking may hold.
        """
        self.store = store
        self.gateway = gateway
        self.notification = notification
        self.base_url = base_url.rstrip("/")
        self.max_seats = max_seats

    def success_url(self) -> str:
        # {CHECKOUT_SESSION_ID} is substituted by Stripe.
        return f"{self.base_url}/stripe_checkout/success?session_id={{CHECKOUT_SESSION_ID}}"

    def cancel_url(self, event_id: str) -> str:
        return f"{self.base_url}/stripe_checkout/cancel?event_id={event_id}"

    async def start_checkout(
        self, event_id: str, user_id: str, seats: int
    ) -> CheckoutSession:
        """Validate a booking request and open a hosted checkout page."""
        if not 0 < seats <= self.max_seats:
            raise InvalidSeatsError(f"Invalid number of seats (1-{self.max_seats}).")

        event = await self.store.get_event(event_id)
        if event is None:
            raise EventNotFoundError(f"Event {event_id} not found")
        user = await self.store.get_user(user_id)
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")

        if not event.is_approved:
            raise EventNotBookableError(f"Event {event_id} is not open for booking.")

        if await self.store.find_participation(user.id, event.id) is not None:
            raise DuplicateBookingError(ALREADY_BOOKED_MESSAGE)

        available = event.max_capacity - await self.store.reserved_seats(event.id)
        if seats > available:
            raise SoldOutError(
                f"Only {max(available, 0)} seat(s) left for this event."
            )

        session = await self.gateway.create_checkout_session(
            event=event,
            user=user,
            seats=seats,
            success_url=self.success_url(),
            cancel_url=self.cancel_url(event.id),
        )
        logger.info(
            "Checkout session created",
            extra={"session_id": session.id, "event_id": event.id, "user_id": user.id, "seats": seats},
        )
        return session

    async def complete_checkout(self, session_id: str | None = None) -> CheckoutResult:
        """Handle the return from the hosted page after payment.

        Without a session id there is nothing to fulfil; the generic thank-you
        result is returned.

        Raises:
            PaymentGatewayError: If the session cannot be retrieved.
        """
        if not session_id:
            return CheckoutResult(message=THANK_YOU_MESSAGE)

        session = await self.gateway.retrieve_checkout_session(session_id)
        if not session.is_paid:
            logger.info(
                "Checkout returned before payment completed",
                extra={"session_id": session.id, "payment_status": session.payment_status},
            )
            return CheckoutResult(message=UNPAID_MESSAGE)
        return await self.fulfill_session(session)

    async def cancel_checkout(self, event_id: str | None = None) -> CheckoutResult:
        """Handle the return from the hosted page after the user gave up."""
        event = await self.store.get_event(event_id) if event_id else None
        logger.info("Checkout canceled", extra={"event_id": event_id})
        return CheckoutResult(message=CANCELED_MESSAGE, event=event)

    async def fulfill_session_payload(self, payload: Mapping[str, Any]) -> CheckoutResult:
        """Fulfil a session described by a raw webhook object."""
        session = CheckoutSession(
            id=str(payload.get("id", "")),
            url=payload.get("url"),
            payment_status=str(payload.get("payment_status", "paid")),
            metadata=dict(payload.get("metadata") or {}),
        )
        return await self.fulfill_session(session)

    async def fulfill_session(self, session: CheckoutSession) -> CheckoutResult:
        """Create the booking for a paid session, at most once.

        Returns:
            CheckoutResult with created=True only when a new participation
            was stored by this call.
        """
        existing = await self.store.get_participation_by_payment_id(session.id)
        if existing is not None:
            event = await self.store.get_event(existing.event_id)
            return CheckoutResult(
                message=THANK_YOU_MESSAGE, event=event, participation=existing
            )

        event_id = metadata_value(session.metadata, "event_id")
        user_id = metadata_value(session.metadata, "user_id")
        try:
            seats = int(metadata_value(session.metadata, "seats") or 0)
        except ValueError:
            seats = 0

        if not session.id or not event_id or not user_id or seats <= 0:
            logger.warning(
                "Checkout session is missing booking metadata",
                extra={"session_id": session.id},
            )
            return CheckoutResult(message=INCOMPLETE_SESSION_MESSAGE)

        event = await self.store.get_event(event_id)
        user = await self.store.get_user(user_id)
        if event is None or user is None:
            logger.warning(
                "Checkout session refers to unknown event or user",
                extra={"session_id": session.id, "event_id": event_id, "user_id": user_id},
            )
            return CheckoutResult(message=INCOMPLETE_SESSION_MESSAGE)

        if await self.store.find_participation(user.id, event.id) is not None:
            return CheckoutResult(message=ALREADY_BOOKED_MESSAGE, event=event)

        available = event.max_capacity - await self.store.reserved_seats(event.id)
        if seats > available:
            logger.warning(
                "Paid session exceeds remaining capacity",
                extra={
                    "session_id": session.id,
                    "event_id": event.id,
                    "seats": seats,
                    "available": max(available, 0),
                },
            )
            return CheckoutResult(message=SOLD_OUT_MESSAGE, event=event)

        participation = Participation(
            id=str(uuid.uuid4()),
            user_id=user.id,
            event_id=event.id,
            seats=seats,
            status=ParticipationStatus.CONFIRMED,
            stripe_payment_id=session.id,
        )
        try:
            await self.store.save_participation(participation)
        except DuplicateBookingError:
            # Lost a race with the other fulfilment path.
            return CheckoutResult(message=ALREADY_BOOKED_MESSAGE, event=event)

        logger.info(
            "Participation created",
            extra={
                "participation_id": participation.id,
                "session_id": session.id,
                "event_id": event.id,
                "seats": seats,
            },
        )

        try:
            await self.notification.notify_booking_confirmed(participation, event, user)
        except Exception as e:
            logger.error(
                f"Failed to send booking confirmation: {e}",
                extra={"participation_id": participation.id},
                exc_info=True,
            )

        return CheckoutResult(
            message=THANK_YOU_MESSAGE,
            event=event,
            participation=participation,
            created=True,
        )
