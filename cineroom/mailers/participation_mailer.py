"""Booking confirmation mail."""

from cineroom.core.models import Event, MailMessage, Participation, User

from .base import ApplicationMailer


class ParticipationMailer(ApplicationMailer):
    def confirmation_email(
        self, participation: Participation, event: Event, user: User
    ) -> MailMessage:
        """Confirm a paid booking to the spectator."""
        return self.mail(
            "confirmation_email",
            subject=f"Booking confirmed: {event.title}",
            to=user.email,
            participation=participation,
            event=event,
            user=user,
            total_cents=event.price_cents * participation.seats,
        )
