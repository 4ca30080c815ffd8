"""Moderation service: implements ModerationPort for admin decisions.

Approving or rejecting an event stamps the decision time, persists it and
emails the creator. A failed email never undoes the decision.
"""

import logging
from datetime import UTC, datetime

from .errors import EventNotFoundError
from .models import Event, User, ValidationStatus
from .ports import BookingStorePort, ModerationPort, NotificationPort

logger = logging.getLogger(__name__)


class ModerationService(ModerationPort):
    """Core implementation of ModerationPort.

    All decisions are logged for audit trails.
    """

    def __init__(self, store: BookingStorePort, notification: NotificationPort):
        """Initialize the moderation service.

        Args:
            store: BookingStorePort implementation for persistence.
            notification: NotificationPort implementation for creator emails.
        """
        self.store = store
        self.notification = notification

    async def _load(self, event_id: str) -> tuple[Event, User | None]:
        event = await self.store.get_event(event_id)
        if event is None:
            raise EventNotFoundError(f"Event {event_id} not found")
        creator = None
        if event.creator_id:
            creator = await self.store.get_user(event.creator_id)
            if creator is None:
                logger.warning(
                    "Event creator not found",
                    extra={"event_id": event_id, "creator_id": event.creator_id},
                )
        return event, creator

    async def approve_event(self, event_id: str) -> Event:
        """Approve an event and notify its creator."""
        event, creator = await self._load(event_id)
        event.approve(datetime.now(UTC))
        await self.store.save_event(event)
        logger.info("Event approved", extra={"event_id": event_id})

        try:
            await self.notification.notify_event_approved(event, creator)
        except Exception as e:
            logger.error(
                f"Failed to notify creator of approval: {e}",
                extra={"event_id": event_id},
                exc_info=True,
            )
        return event

    async def reject_event(self, event_id: str, reason: str | None = None) -> Event:
        """Reject an event and notify its creator."""
        event, creator = await self._load(event_id)
        event.reject(datetime.now(UTC))
        await self.store.save_event(event)
        logger.info("Event rejected", extra={"event_id": event_id, "reason": reason})

        try:
            await self.notification.notify_event_rejected(event, creator, reason)
        except Exception as e:
            logger.error(
                f"Failed to notify creator of rejection: {e}",
                extra={"event_id": event_id},
                exc_info=True,
            )
        return event

    async def list_events(self, status: ValidationStatus | None = None) -> list[Event]:
        return await self.store.list_events(status)
