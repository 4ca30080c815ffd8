"""Mail composition for the CinéRoom booking service.

Mailers turn domain objects into MailMessage values using the Jinja2
templates shipped in ``templates/``:

- EventMailer: moderation outcome for event creators
- ParticipationMailer: booking confirmation for spectators
- TicketMailer: ticket with the entrance code
"""

from dataclasses import dataclass

from .base import ApplicationMailer
from .event_mailer import EventMailer
from .participation_mailer import ParticipationMailer
from .ticket_mailer import TicketMailer


@dataclass(frozen=True)
class Mailers:
    """The configured mailer instances used by the application."""

    event: EventMailer
    participation: ParticipationMailer
    ticket: TicketMailer


def build_mailers(
    default_from: str | None = None, default_to: str | None = None
) -> Mailers:
    return Mailers(
        event=EventMailer(default_from, default_to),
        participation=ParticipationMailer(default_from, default_to),
        ticket=TicketMailer(default_from, default_to),
    )


__all__ = [
    "ApplicationMailer",
    "EventMailer",
    "Mailers",
    "ParticipationMailer",
    "TicketMailer",
    "build_mailers",
]
