"""Mail notification adapter.

Implements NotificationPort by composing mails with the mailers and handing
them to a MailDeliveryPort.
"""

import logging

from cineroom.core.models import Event, Participation, User
from cineroom.core.ports import MailDeliveryPort, NotificationPort
from cineroom.mailers import Mailers

logger = logging.getLogger(__name__)


class MailNotificationAdapter(NotificationPort):
    """Sends creator and spectator notifications by email."""

    def __init__(self, mailers: Mailers, delivery: MailDeliveryPort):
        """Initialize mail notification adapter.

        Args:
            mailers: Configured mailer instances.
            delivery: Transport for composed mails.
        """
        self.mailers = mailers
        self.delivery = delivery

    async def notify_event_approved(self, event: Event, creator: User | None) -> None:
        message = self.mailers.event.event_approved(event, creator)
        await self.delivery.deliver(message)
        logger.info(
            "Approval mail delivered",
            extra={"event_id": event.id, "to": list(message.to)},
        )

    async def notify_event_rejected(
        self, event: Event, creator: User | None, reason: str | None = None
    ) -> None:
        message = self.mailers.event.event_rejected(event, creator, reason)
        await self.delivery.deliver(message)
        logger.info(
            "Rejection mail delivered",
            extra={"event_id": event.id, "to": list(message.to)},
        )

    async def notify_booking_confirmed(
        self, participation: Participation, event: Event, user: User
    ) -> None:
        """Send the confirmation, then the ticket."""
        await self.delivery.deliver(
            self.mailers.participation.confirmation_email(participation, event, user)
        )
        await self.delivery.deliver(
            self.mailers.ticket.ticket_confirmation(participation, event, user)
        )
        logger.info(
            "Booking mails delivered",
            extra={"participation_id": participation.id, "to": user.email},
        )
