"""Ticket mail carrying the code checked at the door."""

from cineroom.core.models import Event, MailMessage, Participation, User

from .base import ApplicationMailer


class TicketMailer(ApplicationMailer):
    def ticket_confirmation(
        self, participation: Participation, event: Event, user: User
    ) -> MailMessage:
        return self.mail(
            "ticket_confirmation",
            subject=f"Your ticket for {event.title}",
            to=user.email,
            participation=participation,
            event=event,
            user=user,
        )
