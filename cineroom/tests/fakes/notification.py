"""Fake NotificationPort implementation for testing."""

from cineroom.core.models import Event, Participation, User
from cineroom.core.ports import NotificationPort


class FakeNotificationPort(NotificationPort):
    """In-memory notification adapter for testing.

    Captures all notifications sent through this port for test assertions.
    """

    def __init__(self):
        """Initialize with empty notification history."""
        self.approved: list[tuple[Event, User | None]] = []
        self.rejected: list[tuple[Event, User | None, str | None]] = []
        self.confirmed: list[tuple[Participation, Event, User]] = []
        self.should_fail: bool = False
        self.fail_message: str = "Notification failed"

    async def notify_event_approved(self, event: Event, creator: User | None) -> None:
        if self.should_fail:
            raise RuntimeError(self.fail_message)
        self.approved.append((event, creator))

    async def notify_event_rejected(
        self, event: Event, creator: User | None, reason: str | None = None
    ) -> None:
        if self.should_fail:
            raise RuntimeError(self.fail_message)
        self.rejected.append((event, creator, reason))

    async def notify_booking_confirmed(
        self, participation: Participation, event: Event, user: User
    ) -> None:
        if self.should_fail:
            raise RuntimeError(self.fail_message)
        self.confirmed.append((participation, event, user))

    def set_should_fail(self, should_fail: bool, message: str = "Notification failed") -> None:
        """Configure the adapter to fail on the next operation."""
        self.should_fail = should_fail
        self.fail_message = message
