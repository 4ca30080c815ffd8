"""Mails sent to event creators when an admin decides on their event."""

from cineroom.core.models import Event, MailMessage, User

from .base import ApplicationMailer

DEFAULT_REJECTION_REASON = "No reason given"


class EventMailer(ApplicationMailer):
    """Moderation outcome mails.

    Both actions work without arguments, which is how previews and smoke
    tests render them; the mail then goes to the default recipient.
    """

    def event_approved(
        self, event: Event | None = None, creator: User | None = None
    ) -> MailMessage:
        return self.mail(
            "event_approved",
            subject="Event approved",
            to=creator.email if creator else None,
            event=event,
            creator=creator,
        )

    def event_rejected(
        self,
        event: Event | None = None,
        creator: User | None = None,
        reason: str | None = None,
    ) -> MailMessage:
        return self.mail(
            "event_rejected",
            subject="Event rejected",
            to=creator.email if creator else None,
            event=event,
            creator=creator,
            reason=reason or DEFAULT_REJECTION_REASON,
        )
