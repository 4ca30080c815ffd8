"""Check-in service: implements CheckInPort for the entrance.

A ticket is accepted once, on the day of its screening, for a confirmed
booking whose ticket code matches. Accepting it stamps used_at.
"""

import logging
import secrets
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime

from .errors import (
    EventNotFoundError,
    EventNotTodayError,
    InvalidTicketError,
    ParticipationNotConfirmedError,
    ParticipationNotFoundError,
    TicketAlreadyUsedError,
)
from .models import CheckInResult, Event, ParticipationStatus
from .ports import BookingStorePort, CheckInPort

logger = logging.getLogger(__name__)


def _is_event_day(event: Event, now: datetime) -> bool:
    tz = event.event_date.tzinfo
    if tz is None:
        return now.replace(tzinfo=None).date() == event.event_date.date()
    return now.astimezone(tz).date() == event.event_date.date()


class CheckInService(CheckInPort):
    """Core implementation of CheckInPort."""

    def __init__(
        self,
        store: BookingStorePort,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize the check-in service.

        Args:
            store: BookingStorePort implementation for persistence.
            clock: Returns the current time; defaults to UTC now.
        """
        self.store = store
        self.clock = clock or (lambda: datetime.now(UTC))

    async def check_in(self, participation_id: str, ticket_code: str) -> CheckInResult:
        """Accept a ticket and mark it as used.

        Checks run in a fixed order: ticket code, event day, prior use,
        booking status.
        """
        participation = await self.store.get_participation(participation_id)
        if participation is None:
            raise ParticipationNotFoundError(f"Participation {participation_id} not found")

        event = await self.store.get_event(participation.event_id)
        if event is None:
            raise EventNotFoundError(f"Event {participation.event_id} not found")

        if not secrets.compare_digest(
            participation.ticket_code.encode(), (ticket_code or "").encode()
        ):
            logger.warning(
                "Ticket code mismatch", extra={"participation_id": participation_id}
            )
            raise InvalidTicketError("Invalid ticket: the code does not match.")

        now = self.clock()
        if not _is_event_day(event, now):
            raise EventNotTodayError(
                f"This ticket is for {event.event_date.date().isoformat()}, not today."
            )

        if participation.is_used:
            raise TicketAlreadyUsedError(
                f"Ticket already used at {participation.used_at.isoformat()}."
            )

        if participation.status != ParticipationStatus.CONFIRMED:
            raise ParticipationNotConfirmedError(
                f"Booking is {participation.status.value}, not confirmed."
            )

        participation = replace(participation, used_at=now)
        await self.store.save_participation(participation)
        logger.info(
            "Ticket checked in",
            extra={"participation_id": participation.id, "event_id": event.id},
        )

        user = await self.store.get_user(participation.user_id)
        return CheckInResult(participation=participation, event=event, user=user)
