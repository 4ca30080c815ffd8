"""Port interfaces for the CinéRoom booking service.

These abstract base classes define the boundaries between core
domain logic and external adapters. Implementations live in the
adapters/ package.

Port Interface Categories:

1. **Driven Ports** (core calls out to adapters)
   - BookingStorePort: Persist and query users, events and participations
   - PaymentGatewayPort: Open and look up hosted checkout sessions
   - NotificationPort: Tell creators and spectators what happened
   - MailDeliveryPort: Hand a composed mail to a transport

2. **Driving Ports** (adapters/external systems call into core)
   - CheckoutPort: Booking flow entry points (HTTP, webhook)
   - ModerationPort: Admin decisions on submitted events
   - CheckInPort: Ticket checks at the entrance
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from .models import (
    CheckInResult,
    CheckoutResult,
    CheckoutSession,
    Event,
    MailMessage,
    Participation,
    User,
    ValidationStatus,
)


# ============================================================================
# DRIVEN PORTS (Core calls out to adapters)
# ============================================================================


class BookingStorePort(ABC):
    """Port for persisting users, events and participations.

    Implementations must handle:
    - Concurrent read/write access
    - Uniqueness of (user, event) bookings and of payment ids
    """

    @abstractmethod
    async def get_user(self, user_id: str) -> User | None:
        """Look up a user by id."""

    @abstractmethod
    async def save_user(self, user: User) -> None:
        """Create or update a user."""

    @abstractmethod
    async def get_event(self, event_id: str) -> Event | None:
        """Look up an event by id."""

    @abstractmethod
    async def save_event(self, event: Event) -> None:
        """Create or update an event."""

    @abstractmethod
    async def list_events(
        self, status: ValidationStatus | None = None
    ) -> list[Event]:
        """List events, optionally filtered by validation status.

        Returns:
            Events ordered by event date, soonest first.
        """

    @abstractmethod
    async def get_participation(self, participation_id: str) -> Participation | None:
        """Look up a participation by id."""

    @abstractmethod
    async def find_participation(
        self, user_id: str, event_id: str
    ) -> Participation | None:
        """Return the user's participation for an event, if any."""

    @abstractmethod
    async def get_participation_by_payment_id(
        self, stripe_payment_id: str
    ) -> Participation | None:
        """Return the participation created for a checkout session, if any."""

    @abstractmethod
    async def save_participation(self, participation: Participation) -> None:
        """Create or update a participation.

        Raises:
            DuplicateBookingError: If the user already booked the event.
        """

    @abstractmethod
    async def reserved_seats(self, event_id: str) -> int:
        """Sum of seats held by confirmed participations for an event."""


class PaymentGatewayPort(ABC):
    """Port for the hosted payment provider (Stripe Checkout).

    Implementations must handle:
    - Authentication against the provider
    - Mapping provider failures to PaymentGatewayError
    """

    @abstractmethod
    async def create_checkout_session(
        self,
        event: Event,
        user: User,
        seats: int,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        """Open a hosted checkout page for a booking.

        The session metadata must carry event_id, user_id and seats so the
        booking can be fulfilled from the session alone.

        Raises:
            PaymentGatewayError: If the provider refuses or is unreachable.
        """

    @abstractmethod
    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        """Fetch a checkout session by id.

        Raises:
            PaymentGatewayError: If the session is unknown or the provider fails.
        """


class NotificationPort(ABC):
    """Port for telling creators and spectators what happened.

    Implementations must handle:
    - Composing a message suited to the medium
    - Reporting delivery failures by raising
    """

    @abstractmethod
    async def notify_event_approved(self, event: Event, creator: User | None) -> None:
        """Tell the creator their event was approved."""

    @abstractmethod
    async def notify_event_rejected(
        self, event: Event, creator: User | None, reason: str | None = None
    ) -> None:
        """Tell the creator their event was rejected."""

    @abstractmethod
    async def notify_booking_confirmed(
        self, participation: Participation, event: Event, user: User
    ) -> None:
        """Send the booking confirmation and ticket to the spectator."""


class MailDeliveryPort(ABC):
    """Port for handing a composed mail to a transport."""

    @abstractmethod
    async def deliver(self, message: MailMessage) -> None:
        """Deliver one message.

        Raises:
            Exception: If the transport is unavailable.
        """


# ============================================================================
# DRIVING PORTS (Adapters/external systems call into core)
# ============================================================================


class CheckoutPort(ABC):
    """Port for the booking flow.

    Driving port: the HTTP server and the Stripe webhook invoke these
    methods. Implementations live in the core (checkout_service.py).
    """

    @abstractmethod
    async def start_checkout(
        self, event_id: str, user_id: str, seats: int
    ) -> CheckoutSession:
        """Validate a booking request and open a hosted checkout page.

        Raises:
            EventNotFoundError, UserNotFoundError: If an entity is missing.
            CheckoutError: If a booking rule rejects the request.
            PaymentGatewayError: If the provider fails.
        """

    @abstractmethod
    async def complete_checkout(self, session_id: str | None = None) -> CheckoutResult:
        """Handle the return from the hosted page after payment."""

    @abstractmethod
    async def cancel_checkout(self, event_id: str | None = None) -> CheckoutResult:
        """Handle the return from the hosted page after the user gave up."""

    @abstractmethod
    async def fulfill_session(self, session: CheckoutSession) -> CheckoutResult:
        """Create the booking for a paid session, at most once."""

    @abstractmethod
    async def fulfill_session_payload(self, payload: Mapping[str, Any]) -> CheckoutResult:
        """Fulfil a session described by a raw webhook object."""


class ModerationPort(ABC):
    """Port for admin decisions on submitted events.

    Driving port: the HTTP admin routes and the CLI invoke these methods.
    """

    @abstractmethod
    async def approve_event(self, event_id: str) -> Event:
        """Approve an event and notify its creator.

        Raises:
            EventNotFoundError: If the event doesn't exist.
            ValueError: If the event is already approved.
        """

    @abstractmethod
    async def reject_event(self, event_id: str, reason: str | None = None) -> Event:
        """Reject an event and notify its creator.

        Raises:
            EventNotFoundError: If the event doesn't exist.
            ValueError: If the event is already rejected.
        """

    @abstractmethod
    async def list_events(self, status: ValidationStatus | None = None) -> list[Event]:
        """List events, optionally filtered by validation status."""


class CheckInPort(ABC):
    """Port for checking tickets at the entrance.

    Driving port: the HTTP admin routes and the CLI invoke these methods.
    """

    @abstractmethod
    async def check_in(self, participation_id: str, ticket_code: str) -> CheckInResult:
        """Accept a ticket and mark it as used.

        Raises:
            ParticipationNotFoundError: If the participation doesn't exist.
            EventNotFoundError: If its event doesn't exist.
            CheckInError: If the ticket code doesn't match, the event is not
                today, the ticket was already used or the booking is not
                confirmed.
        """
